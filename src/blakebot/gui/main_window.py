"""Console window: shows the log and controls the bot."""

import customtkinter as ctk
import tkinter
from tkinter import filedialog
from typing import TYPE_CHECKING, Callable, Optional
import logging

from ..core.errors import SettingNotFound, SettingTypeMismatch
from ..i18n import _
from ..utils.logging import CallbackHandler
from .dialogs import ChoiceDialog, ask_new_value, ask_string
from .settings_dialog import SettingsDialog

if TYPE_CHECKING:
    from ..app import BlakeBotApp

logger = logging.getLogger(__name__)

WIDTH_SETTING = "width"
HEIGHT_SETTING = "height"
DEFAULT_SIZE = (800, 600)
MIN_SIZE = (600, 400)

# Lines kept in the output pane.
MAX_OUTPUT_LINES = 5000

RESIZE_DEBOUNCE_MS = 500


class ConsoleWindow(ctk.CTk):
    """Main console window."""

    def __init__(
        self,
        app: "BlakeBotApp",
        on_close: Optional[Callable] = None,
        **kwargs,
    ):
        """Initialize the console window.

        Args:
            app: The main application instance
            on_close: Callback when window is closed
            **kwargs: Additional arguments for CTk
        """
        super().__init__(**kwargs)

        self.app = app
        self._on_close = on_close
        self._resize_job: Optional[str] = None
        self._command_buttons: list[ctk.CTkButton] = []

        self._setup_window()
        self._setup_ui()
        self._bind_events()

        self.log_handler = CallbackHandler(self.append_log)
        self.attach_log()

    def _read_size(self) -> tuple[int, int]:
        """Read the window size from the settings."""
        try:
            return (
                self.app.settings.get_int(WIDTH_SETTING),
                self.app.settings.get_int(HEIGHT_SETTING),
            )
        except (SettingNotFound, SettingTypeMismatch) as e:
            logger.warning(f"Invalid window size setting, using default: {e}")
            return DEFAULT_SIZE

    def _setup_window(self) -> None:
        self.title(_("app_title"))

        width, height = self._read_size()

        # Center window on screen
        x = (self.winfo_screenwidth() - width) // 2
        y = (self.winfo_screenheight() - height) // 2

        self.geometry(f"{width}x{height}+{x}+{y}")
        self.minsize(*MIN_SIZE)

    def _setup_ui(self) -> None:
        self.grid_rowconfigure(0, weight=1)
        self.grid_columnconfigure(0, weight=1)

        self.output = ctk.CTkTextbox(self, wrap="word", font=ctk.CTkFont(family="Courier", size=12))
        self.output.grid(row=0, column=0, sticky="nsew", padx=10, pady=(10, 5))
        self.output.configure(state="disabled")

        self._setup_footer()

    def _setup_footer(self) -> None:
        footer = ctk.CTkFrame(self, corner_radius=0)
        footer.grid(row=1, column=0, sticky="ew")

        self.connect_btn = ctk.CTkButton(
            footer,
            text=_("connect"),
            width=110,
            command=self.app.toggle_connection,
        )
        self.connect_btn.pack(side="left", padx=(10, 5), pady=8)

        for key, command in (
            ("change_username", self._change_username),
            ("change_status", self._change_status),
            ("change_presence", self._change_presence),
            ("change_image", self._change_image),
        ):
            button = ctk.CTkButton(footer, text=_(key), width=140, command=command, state="disabled")
            button.pack(side="left", padx=5, pady=8)
            self._command_buttons.append(button)

        ctk.CTkButton(
            footer,
            text=_("settings"),
            width=90,
            command=self._show_settings,
        ).pack(side="right", padx=(5, 10), pady=8)

        self.status_label = ctk.CTkLabel(
            footer,
            text=_("status_disconnected"),
            font=ctk.CTkFont(size=11),
            text_color="gray",
        )
        self.status_label.pack(side="right", padx=5, pady=8)

    def _bind_events(self) -> None:
        self.protocol("WM_DELETE_WINDOW", self._handle_close)
        self.bind("<Configure>", self._handle_configure)

    # -------------------------------------------------------------- size

    def _handle_configure(self, event) -> None:
        if event.widget is not self:
            return
        if self._resize_job is not None:
            self.after_cancel(self._resize_job)
        self._resize_job = self.after(RESIZE_DEBOUNCE_MS, self.store_size)

    def store_size(self) -> None:
        """Write the current window size to the settings."""
        self._resize_job = None
        width, height = self.winfo_width(), self.winfo_height()
        # Never mapped yet.
        if width <= 1 or height <= 1:
            return
        self.app.settings.set(WIDTH_SETTING, width)
        self.app.settings.set(HEIGHT_SETTING, height)

    def _handle_close(self) -> None:
        self.store_size()

        if self._on_close:
            self._on_close()
        else:
            self.destroy()

    # ------------------------------------------------------------ output

    def append_log(self, message: str) -> None:
        """Append a line to the output pane. Safe to call from any thread."""
        try:
            self.after(0, lambda: self._append(message))
        except (RuntimeError, tkinter.TclError):
            # Window already destroyed.
            pass

    def _append(self, message: str) -> None:
        self.output.configure(state="normal")
        self.output.insert("end", message + "\n")

        lines = int(self.output.index("end-1c").split(".")[0])
        if lines > MAX_OUTPUT_LINES:
            self.output.delete("1.0", f"{lines - MAX_OUTPUT_LINES}.0")

        self.output.configure(state="disabled")
        self.output.see("end")

    def attach_log(self) -> None:
        """Mirror the log into the output pane."""
        logging.getLogger().addHandler(self.log_handler)

    def detach_log(self) -> None:
        """Stop mirroring the log into the output pane."""
        logging.getLogger().removeHandler(self.log_handler)

    # -------------------------------------------------------- connection

    def set_connected(self, connected: bool) -> None:
        """Update the controls for the connection state."""
        self.connect_btn.configure(text=_("disconnect") if connected else _("connect"), state="normal")
        for button in self._command_buttons:
            button.configure(state="normal" if connected else "disabled")
        self.status_label.configure(text=_("status_connected") if connected else _("status_disconnected"))

    def set_busy(self, message_key: str) -> None:
        """Disable the connection button while a connection change is pending."""
        self.connect_btn.configure(state="disabled")
        self.status_label.configure(text=_(message_key))

    def set_status(self, message: str) -> None:
        self.status_label.configure(text=message)

    # ----------------------------------------------------------- actions

    def _run_bot_action(self, coro, success: Optional[Callable] = None) -> None:
        def on_error(e: Exception) -> None:
            self.set_status(str(e))

        self.app.async_bridge.run_async_with_gui_callback(
            coro,
            self.after,
            callback=success,
            error_callback=on_error,
        )

    def _change_username(self) -> None:
        client = self.app.client
        new_name = ask_new_value(
            _("new_username_title"),
            _("new_username_prompt"),
            _("same_username_prompt"),
            client.username,
        )
        if new_name is None:
            logger.debug("Name change cancelled.")
            return
        self._run_bot_action(client.set_username(new_name))

    def _change_status(self) -> None:
        client = self.app.client
        new_status = ask_new_value(
            _("new_status_title"),
            _("new_status_prompt"),
            _("same_status_prompt"),
            client.status_text,
        )
        if new_status is None:
            logger.debug("Status change cancelled.")
            return
        self._run_bot_action(client.set_playing_text(new_status))

    def _change_presence(self) -> None:
        client = self.app.client
        online, idle = _("presence_online"), _("presence_idle")
        choice = ChoiceDialog(self, _("presence_title"), _("presence_prompt"), [online, idle]).get_choice()
        if choice == online:
            self._run_bot_action(client.set_online())
        elif choice == idle:
            self._run_bot_action(client.set_idle())
        else:
            logger.debug("Presence change cancelled.")

    def _change_image(self) -> None:
        client = self.app.client
        from_file, from_url = _("image_file"), _("image_url")
        choice = ChoiceDialog(self, _("image_title"), _("image_prompt"), [from_file, from_url]).get_choice()

        if choice == from_file:
            path = filedialog.askopenfilename(
                parent=self,
                title=_("image_title"),
                filetypes=[("Images", "*.png *.jpeg *.jpg *.bmp *.gif")],
            )
            if path:
                self._run_bot_action(client.set_avatar_from_file(path), self._image_changed)
                return
        elif choice == from_url:
            url = ask_string(_("image_title"), _("image_url_prompt"))
            if url:
                self._run_bot_action(client.set_avatar_from_url(url.strip()), self._image_changed)
                return

        logger.debug("Image change cancelled.")

    def _image_changed(self, changed: bool) -> None:
        if not changed:
            self.set_status(_("image_failed"))

    def _show_settings(self) -> None:
        SettingsDialog(
            self,
            settings=self.app.settings,
            autosave=self.app.autosave,
            event_bus=self.app.event_bus,
            on_save=lambda: self.set_status(_("settings_saved")),
        )

    # -------------------------------------------------------------- tray

    def minimize_to_tray(self) -> None:
        self.withdraw()

    def restore_from_tray(self) -> None:
        self.deiconify()
        self.lift()
        self.focus_force()
