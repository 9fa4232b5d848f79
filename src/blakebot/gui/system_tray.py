"""System tray integration using pystray."""

import threading
from typing import TYPE_CHECKING, Optional, Callable
import logging

logger = logging.getLogger(__name__)

try:
    import pystray
    from PIL import Image, ImageDraw

    PYSTRAY_AVAILABLE = True
except ImportError:
    PYSTRAY_AVAILABLE = False
    logger.warning("pystray or Pillow not installed - system tray will not be available")

from ..i18n import _

if TYPE_CHECKING:
    from .main_window import ConsoleWindow


def create_default_icon(size: int = 64) -> "Image.Image":
    """Create the tray icon: a chat bubble on a rounded square.

    Args:
        size: Icon size in pixels

    Returns:
        A PIL Image
    """
    image = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(image)

    margin = size // 8
    draw.rounded_rectangle(
        [margin, margin, size - margin, size - margin],
        radius=size // 4,
        fill=(88, 101, 242, 255),
    )

    # Bubble
    bubble_top = size // 4
    bubble_bottom = size - size // 3
    draw.rounded_rectangle(
        [size // 4, bubble_top, size - size // 4, bubble_bottom],
        radius=size // 8,
        fill=(255, 255, 255, 255),
    )

    # Tail
    draw.polygon(
        [
            (size // 3, bubble_bottom - 1),
            (size // 3, bubble_bottom + size // 8),
            (size // 2, bubble_bottom - 1),
        ],
        fill=(255, 255, 255, 255),
    )

    return image


class SystemTrayManager:
    """Manages the system tray icon and menu."""

    def __init__(
        self,
        window: "ConsoleWindow",
        on_show: Optional[Callable] = None,
        on_toggle_connection: Optional[Callable] = None,
        on_quit: Optional[Callable] = None,
    ):
        """Initialize the system tray manager.

        Callbacks are scheduled on the GUI thread.

        Args:
            window: The console window
            on_show: Callback when "Show" is clicked
            on_toggle_connection: Callback when "Connect"/"Disconnect" is clicked
            on_quit: Callback when "Quit" is clicked
        """
        self.window = window
        self._on_show = on_show
        self._on_toggle_connection = on_toggle_connection
        self._on_quit = on_quit
        self._icon: Optional["pystray.Icon"] = None
        self._thread: Optional[threading.Thread] = None
        self._running = False
        self._connected = False

    @property
    def is_available(self) -> bool:
        """Check if system tray is available."""
        return PYSTRAY_AVAILABLE

    @property
    def is_running(self) -> bool:
        """Check if the tray icon is running."""
        return self._running and self._icon is not None

    def start(self) -> bool:
        """Start the system tray icon.

        Returns:
            True if started successfully
        """
        if not PYSTRAY_AVAILABLE:
            logger.warning("System tray not available (pystray not installed)")
            return False

        if self._running:
            return True

        try:
            menu = pystray.Menu(
                pystray.MenuItem(
                    _("tray_show"),
                    self._handle_show,
                    default=True,  # Double-click action
                ),
                pystray.Menu.SEPARATOR,
                pystray.MenuItem(
                    lambda item: _("disconnect") if self._connected else _("connect"),
                    self._handle_toggle_connection,
                ),
                pystray.Menu.SEPARATOR,
                pystray.MenuItem(
                    _("tray_quit"),
                    self._handle_quit,
                ),
            )

            self._icon = pystray.Icon(
                name="blakebot",
                icon=create_default_icon(),
                title=_("app_title"),
                menu=menu,
            )

            self._running = True
            self._thread = threading.Thread(
                target=self._run_icon,
                daemon=True,
                name="SystemTray",
            )
            self._thread.start()

            logger.info("System tray started")
            return True

        except Exception as e:
            logger.error(f"Failed to start system tray: {e}")
            self._running = False
            return False

    def _run_icon(self) -> None:
        """Run the icon (called in background thread)."""
        try:
            self._icon.run()
        except Exception as e:
            logger.error(f"System tray error: {e}")
        finally:
            self._running = False

    def _schedule(self, callback: Optional[Callable]) -> None:
        if callback:
            self.window.after(0, callback)

    def _handle_show(self, icon, item) -> None:
        self._schedule(self._on_show or self.window.restore_from_tray)

    def _handle_toggle_connection(self, icon, item) -> None:
        self._schedule(self._on_toggle_connection)

    def _handle_quit(self, icon, item) -> None:
        self._schedule(self._on_quit)

    def set_connected(self, connected: bool) -> None:
        """Update the connection menu entry and the tooltip."""
        self._connected = connected
        if self._icon and self._running:
            status = _("status_connected") if connected else _("status_disconnected")
            self._icon.title = f"{_('app_title')} - {status}"
            self._icon.update_menu()

    def stop(self) -> None:
        """Stop the system tray icon."""
        if not self._running:
            return

        self._running = False

        if self._icon:
            try:
                self._icon.stop()
            except Exception as e:
                logger.debug(f"Error stopping tray icon: {e}")
            self._icon = None

        logger.info("System tray stopped")

    def minimize(self) -> None:
        """Minimize the console to the system tray."""
        if not self._running:
            self.start()

        self.window.minimize_to_tray()
        logger.debug("Minimized to tray")
