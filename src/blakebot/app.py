"""Main application orchestrator."""

from concurrent.futures import Future
import customtkinter as ctk
import logging
import sys
from typing import Optional

from .bot.client import BlakeBotClient
from .bot.shutdown import BotShutdownHandler
from .core.context import TOKEN_SETTING, AppConfig, initialize
from .core.errors import ExitAborted, SettingsLoadError
from .core.events import Event, EventType
from .gui.dialogs import prompt_token
from .gui.main_window import ConsoleWindow
from .gui.system_tray import SystemTrayManager
from .i18n import _, init_translator
from .lifecycle.exit import EXIT_SUCCESS
from .utils.async_helpers import AsyncBridge
from .utils.logging import setup_logging

logger = logging.getLogger(__name__)

EXIT_SETTINGS_ERROR = 2


class BlakeBotApp:
    """Main application class that orchestrates all components."""

    def __init__(self, config: AppConfig):
        """Initialize the application.

        Raises:
            SettingsLoadError: If the settings could not be loaded
        """
        logger.info("Initializing BlakeBot")

        init_translator()

        # Core services
        self.context = initialize(config, terminate=self._terminate)
        self.config = config
        self.settings = self.context.settings
        self.autosave = self.context.autosave
        self.event_bus = self.context.event_bus
        self.exit_coordinator = self.context.exit_coordinator
        self.async_bridge = AsyncBridge()

        # Bot
        self.client = BlakeBotClient(self.settings, self.event_bus)
        self.exit_coordinator.register(BotShutdownHandler(self.client, self.async_bridge))
        self._connection: Optional[Future] = None
        self._exiting = False

        ctk.set_appearance_mode("system")
        ctk.set_default_color_theme("blue")

        # GUI components
        self.window = ConsoleWindow(self, on_close=self._handle_window_close)
        self.tray = SystemTrayManager(
            self.window,
            on_show=self.window.restore_from_tray,
            on_toggle_connection=self.toggle_connection,
            on_quit=self.quit,
        )

        self._setup_event_handlers()

    def _setup_event_handlers(self) -> None:
        self.event_bus.subscribe(EventType.CONNECTION_CHANGED, self._on_connection_changed)
        self.event_bus.subscribe(EventType.LOGOUT_FAILED, self._on_logout_failed)
        self.event_bus.subscribe(EventType.SETTINGS_CHANGED, self._on_settings_changed)

    # ------------------------------------------------------------ events

    def _on_connection_changed(self, event: Event) -> None:
        """Update the GUI for a connection change (called in the bot thread)."""
        if self._exiting:
            return
        connected = bool(event.data)
        self.window.after(0, lambda: self._show_connected(connected))

    def _show_connected(self, connected: bool) -> None:
        self.window.set_connected(connected)
        self.tray.set_connected(connected)

    def _on_logout_failed(self, event: Event) -> None:
        if self._exiting:
            return
        self.window.after(0, lambda: self.window.set_status(_("logout_failed", error=event.data)))

    def _on_settings_changed(self, event: Event) -> None:
        self.client.update_prefix()

    # -------------------------------------------------------- connection

    @property
    def is_connecting_or_connected(self) -> bool:
        return self._connection is not None and not self._connection.done()

    def toggle_connection(self) -> None:
        """Connect the bot if it is disconnected, otherwise disconnect it."""
        if self.is_connecting_or_connected:
            self.disconnect()
        else:
            self.connect()

    def connect(self) -> None:
        """Log in to Discord in the background."""
        if not self.settings.has(TOKEN_SETTING):
            logger.error("No login token set. Cannot connect.")
            self.window.set_status(_("token_missing"))
            return

        logger.info("Connecting bot.")
        self.window.set_busy("connecting")
        self._connection = self.async_bridge.run_async_with_gui_callback(
            self.client.login_and_run(),
            self.window.after,
            callback=lambda _result: self._connection_ended(None),
            error_callback=self._connection_ended,
        )

    def _connection_ended(self, error: Optional[Exception]) -> None:
        if error is not None:
            logger.error(f"Bot connection ended with an error: {error}")
            self.window.set_status(str(error))
        self._show_connected(False)

    def disconnect(self) -> None:
        """Log out of Discord in the background."""
        logger.info("Disconnecting bot.")
        self.window.set_busy("disconnecting")
        self.async_bridge.run_async(self.client.logout())

    # ------------------------------------------------------------ window

    def _handle_window_close(self) -> None:
        """Handle window close - minimize to tray or quit."""
        if self.tray.is_available:
            self.tray.minimize()
        else:
            self.quit()

    def _ensure_token(self) -> bool:
        """Ask for a login token if none is stored.

        Returns:
            False if the user cancelled
        """
        if self.settings.has(TOKEN_SETTING) and self.settings.get(TOKEN_SETTING):
            return True

        self.window.withdraw()
        token = prompt_token()
        if token is None:
            return False

        self.settings.set(TOKEN_SETTING, token)
        self.window.deiconify()
        return True

    def run(self) -> None:
        """Start the application."""
        logger.info("Starting BlakeBot")

        self.async_bridge.start()

        if not self._ensure_token():
            self.quit()
            return

        if self.tray.is_available:
            self.tray.start()

        self.connect()
        self.window.mainloop()

    def quit(self) -> None:
        """Quit the application once every exit handler has finished.

        If the exit is aborted the application keeps running.
        """
        logger.info("Quitting application")

        self.window.store_size()

        # Nothing may schedule work on the GUI thread while it waits for the
        # exit handlers.
        self._exiting = True
        self.window.detach_log()

        try:
            self.exit_coordinator.request_exit(self.config.exit_timeout)
        except ExitAborted as e:
            self._exiting = False
            self.window.attach_log()
            logger.error(f"Exit aborted: {e}")
            self.window.set_status(_("quit_aborted"))

    def _terminate(self, code: int) -> None:
        """End the process after the exit handlers finished."""
        try:
            self.tray.stop()
        except Exception as e:
            logger.error(f"Error stopping tray: {e}")

        try:
            self.window.quit()  # Stop mainloop
            self.window.destroy()
        except Exception as e:
            logger.error(f"Error destroying window: {e}")

        sys.exit(code)


def main() -> int:
    """Application entry point."""
    config = AppConfig.from_env()
    setup_logging(config.log_dir, config.log_level)

    try:
        app = BlakeBotApp(config)
    except SettingsLoadError as e:
        logger.critical(f"Could not load settings: {e}")
        return EXIT_SETTINGS_ERROR

    app.run()
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
