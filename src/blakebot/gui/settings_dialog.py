"""Settings dialog for configuring the bot."""

import customtkinter as ctk
from typing import TYPE_CHECKING, Callable, Optional
import logging

from ..core.context import PREFIX_SETTING, TOKEN_SETTING
from ..core.events import Event, EventBus, EventType
from ..i18n import _
from ..lifecycle.autosave import DELAY_SETTING, MIN_DELAY
from .forms import validate_settings_form

if TYPE_CHECKING:
    from ..lifecycle.autosave import AutosaveScheduler
    from ..storage.settings import LayeredSettings

logger = logging.getLogger(__name__)


class SettingsDialog(ctk.CTkToplevel):
    """Edits the token, prefix and auto-save delay."""

    def __init__(
        self,
        parent,
        settings: "LayeredSettings",
        autosave: "AutosaveScheduler",
        event_bus: EventBus,
        on_save: Optional[Callable[[], None]] = None,
        **kwargs,
    ):
        super().__init__(parent, **kwargs)

        self.settings = settings
        self.autosave = autosave
        self.event_bus = event_bus
        self._on_save = on_save
        self._error_labels: dict[str, ctk.CTkLabel] = {}

        logger.debug("Opening settings menu.")

        self.title(_("settings_title"))
        self.geometry("480x360")
        self.resizable(False, False)

        # Make modal
        self.transient(parent)
        self.grab_set()

        self._setup_ui()

        # Center on parent
        self.update_idletasks()
        x = parent.winfo_x() + (parent.winfo_width() - self.winfo_width()) // 2
        y = parent.winfo_y() + (parent.winfo_height() - self.winfo_height()) // 2
        self.geometry(f"+{x}+{y}")

    def _current(self, name: str) -> str:
        return self.settings.get(name) if self.settings.has(name) else ""

    def _add_field(self, parent, row: int, key: str, label: str, value: str) -> ctk.CTkEntry:
        """Add a labelled entry with an (initially hidden) error label below it."""
        ctk.CTkLabel(parent, text=label).grid(row=row * 2, column=0, sticky="w", padx=10, pady=(10, 0))
        entry = ctk.CTkEntry(parent, width=260)
        entry.grid(row=row * 2, column=1, padx=10, pady=(10, 0))
        entry.insert(0, value)

        error = ctk.CTkLabel(parent, text="", text_color="red", font=ctk.CTkFont(size=11))
        error.grid(row=row * 2 + 1, column=1, sticky="w", padx=10)
        self._error_labels[key] = error
        return entry

    def _setup_ui(self) -> None:
        form_frame = ctk.CTkFrame(self)
        form_frame.pack(fill="both", expand=True, padx=10, pady=10)

        self.token_entry = self._add_field(form_frame, 0, "token", _("token"), self._current(TOKEN_SETTING))
        self.prefix_entry = self._add_field(form_frame, 1, "prefix", _("prefix"), self._current(PREFIX_SETTING))
        self.delay_entry = self._add_field(
            form_frame, 2, "delay", _("autosave_delay"), self._current(DELAY_SETTING)
        )

        ctk.CTkLabel(
            form_frame,
            text=_("autosave_note", minimum=MIN_DELAY),
            font=ctk.CTkFont(size=11),
            text_color="gray",
        ).grid(row=6, column=0, columnspan=2, padx=10, pady=10)

        button_frame = ctk.CTkFrame(self, fg_color="transparent")
        button_frame.pack(fill="x", padx=10, pady=10)

        ctk.CTkButton(
            button_frame,
            text=_("cancel"),
            width=100,
            fg_color=("gray70", "gray30"),
            command=self._cancel,
        ).pack(side="right", padx=5)

        ctk.CTkButton(
            button_frame,
            text=_("save"),
            width=100,
            command=self._save_settings,
        ).pack(side="right", padx=5)

    def _cancel(self) -> None:
        logger.debug("Aborting changes.")
        self.destroy()

    def _save_settings(self) -> None:
        """Validate and save the settings, then close the dialog."""
        form = validate_settings_form(
            self.token_entry.get(),
            self.prefix_entry.get(),
            self.delay_entry.get(),
        )

        for key, label in self._error_labels.items():
            label.configure(text=_(form.errors[key]) if key in form.errors else "")

        if not form.is_valid:
            logger.error("Error in inputted settings. Aborting close.")
            return

        logger.info("Saving new settings.")
        self.settings.set(TOKEN_SETTING, form.token)
        self.settings.set(PREFIX_SETTING, form.prefix)
        self.autosave.set_delay(form.delay_value)
        self.event_bus.publish(Event(EventType.SETTINGS_CHANGED))
        logger.debug("Saved settings.")

        if self._on_save:
            self._on_save()

        self.destroy()
