"""Validation of the settings form, kept apart from the widgets."""

from dataclasses import dataclass, field
from typing import Optional

from ..storage.settings import INTEGER_PATTERN, LONG_MAX, LONG_MIN


@dataclass
class SettingsForm:
    """The values entered in the settings dialog."""

    token: str
    prefix: str
    delay: str
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def delay_value(self) -> Optional[int]:
        if "delay" in self.errors:
            return None
        return int(self.delay)


def validate_settings_form(token: str, prefix: str, delay: str) -> SettingsForm:
    """Check the entered settings.

    The errors map a field name to the translation key of its message.
    """
    form = SettingsForm(token=token.strip(), prefix=prefix.strip(), delay=delay.strip())

    if not form.token:
        form.errors["token"] = "token_missing"
    if not form.prefix:
        form.errors["prefix"] = "prefix_missing"

    if not form.delay:
        form.errors["delay"] = "delay_missing"
    elif not INTEGER_PATTERN.fullmatch(form.delay) or not LONG_MIN <= int(form.delay) <= LONG_MAX:
        form.errors["delay"] = "delay_invalid"

    return form
