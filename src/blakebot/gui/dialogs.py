"""Small modal dialogs used by the console."""

import customtkinter as ctk
from typing import Optional
import logging

from ..i18n import _

logger = logging.getLogger(__name__)


def ask_string(title: str, prompt: str) -> Optional[str]:
    """Ask for a line of text.

    Returns:
        The entered text, or None if the dialog was cancelled
    """
    dialog = ctk.CTkInputDialog(title=title, text=prompt)
    return dialog.get_input()


def ask_new_value(title: str, prompt: str, retry_prompt: str, current: Optional[str]) -> Optional[str]:
    """Ask for a value that differs from the current one.

    Returns:
        The new value, or None if cancelled or left empty
    """
    value = ask_string(title, prompt)
    while value is not None and value == current:
        value = ask_string(title, retry_prompt)
    return value or None


def prompt_token() -> Optional[str]:
    """Ask for the login token until a non-empty value is given.

    Returns:
        The token, or None if the dialog was cancelled
    """
    while True:
        token = ask_string(_("token_prompt_title"), _("token_prompt"))
        if token is None:
            logger.info("Token prompt cancelled.")
            return None
        token = token.strip()
        if token:
            return token


class ChoiceDialog(ctk.CTkToplevel):
    """Asks the user to pick one of a few options."""

    def __init__(self, parent, title: str, message: str, options: list[str], **kwargs):
        super().__init__(parent, **kwargs)

        self._choice: Optional[str] = None

        self.title(title)
        self.resizable(False, False)
        self.transient(parent)

        ctk.CTkLabel(self, text=message).pack(padx=20, pady=(20, 10))

        button_frame = ctk.CTkFrame(self, fg_color="transparent")
        button_frame.pack(padx=20, pady=(0, 20))
        for option in options:
            ctk.CTkButton(
                button_frame,
                text=option,
                width=100,
                command=lambda o=option: self._choose(o),
            ).pack(side="left", padx=5)

        self.protocol("WM_DELETE_WINDOW", self.destroy)

        # Center on parent
        self.update_idletasks()
        x = parent.winfo_x() + (parent.winfo_width() - self.winfo_width()) // 2
        y = parent.winfo_y() + (parent.winfo_height() - self.winfo_height()) // 2
        self.geometry(f"+{x}+{y}")

    def _choose(self, option: str) -> None:
        self._choice = option
        self.destroy()

    def get_choice(self) -> Optional[str]:
        """Wait for the dialog to close and get the chosen option."""
        self.grab_set()
        self.wait_window()
        return self._choice
