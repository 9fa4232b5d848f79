"""Exceptions raised by BlakeBot components."""

from typing import Any, Optional


class BlakeBotError(Exception):
    """Base class for all BlakeBot errors."""


class SettingsError(BlakeBotError):
    """Base class for settings errors."""


class SettingNotFound(SettingsError):
    """The requested setting is not defined in any layer."""

    def __init__(self, name: str):
        super().__init__(f"Setting does not exist: {name!r}")
        self.name = name


class SettingTypeMismatch(SettingsError):
    """The setting exists but its value cannot be read as the requested type."""

    def __init__(self, name: str, value: str, expected: str):
        super().__init__(f"Setting {name!r} does not have a {expected} value: {value!r}")
        self.name = name
        self.value = value
        self.expected = expected


class SettingsLoadError(SettingsError):
    """A mandatory settings file could not be loaded."""


class PersistenceFailure(BlakeBotError):
    """Writing state to durable storage failed."""

    def __init__(self, message: str, target: Optional[Any] = None):
        super().__init__(message)
        self.target = target


class ExitAborted(BlakeBotError):
    """Exit handlers did not finish, so the process was not terminated."""


class InfoFormatError(BlakeBotError):
    """A module info file is malformed."""
