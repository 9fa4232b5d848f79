"""Layered bot settings backed by XML property files."""

from dataclasses import dataclass, field
from pathlib import Path
import re
import threading
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union
import logging

from ..core.errors import (
    PersistenceFailure,
    SettingNotFound,
    SettingsLoadError,
    SettingTypeMismatch,
)
from ..lifecycle.saving import Saveable
from .properties import PropertiesFormatError, check_storable, load_properties, store_properties

logger = logging.getLogger(__name__)

SETTINGS_COMMENT = "Bot settings."

INT_MIN, INT_MAX = -(2**31), 2**31 - 1
LONG_MIN, LONG_MAX = -(2**63), 2**63 - 1
INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")

SettingValue = Union[str, int, bool]


@dataclass(frozen=True)
class Layer:
    """A read-only precedence tier of settings."""

    name: str
    values: Mapping[str, str] = field(default_factory=dict)
    source: Optional[Path] = None

    def __post_init__(self):
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def __contains__(self, setting: str) -> bool:
        return setting in self.values

    def __len__(self) -> int:
        return len(self.values)


def load_layer(name: str, path: Path, required: bool = True) -> Optional[Layer]:
    """Load a read-only layer from a property file.

    Args:
        name: Name of the layer (for logging)
        path: The property file
        required: Whether a missing file is an error

    Returns:
        The layer, or None if the file is optional and does not exist

    Raises:
        SettingsLoadError: If the file cannot be read or parsed, or is
            required and missing
    """
    try:
        values = load_properties(path)
    except FileNotFoundError as e:
        if required:
            raise SettingsLoadError(f"Required {name} file not found: {path}") from e
        logger.info(f"No {name} file at {path}")
        return None
    except (OSError, PropertiesFormatError) as e:
        raise SettingsLoadError(f"Error reading {name} file {path}: {e}") from e

    logger.info(f"Loaded {name} from {path}")
    return Layer(name, values, path)


class LayeredSettings(Saveable):
    """Settings resolved across layers of decreasing precedence.

    The top layer holds the user settings and is the only one that can be
    changed; the layers below it are read-only defaults. Saving writes the
    user layer, and only that layer, back to its file.
    """

    def __init__(
        self,
        user_file: Optional[Path] = None,
        user_values: Optional[Mapping[str, str]] = None,
        defaults: Optional[list[Layer]] = None,
    ):
        """Initialize the settings.

        Args:
            user_file: File the user layer is saved to
            user_values: Initial content of the user layer
            defaults: Read-only layers, highest precedence first
        """
        self._user_file = Path(user_file) if user_file is not None else None
        self._user: dict[str, str] = dict(user_values or {})
        self._defaults: list[Layer] = list(defaults or [])
        self._lock = threading.Lock()

    @classmethod
    def load(
        cls,
        user_file: Path,
        library_defaults_file: Path,
        bot_defaults_file: Optional[Path] = None,
    ) -> "LayeredSettings":
        """Load settings from their files.

        Args:
            user_file: User settings. Created on first save if missing.
            library_defaults_file: Library defaults. Must exist.
            bot_defaults_file: Bot defaults. Optional.

        Returns:
            The loaded settings

        Raises:
            SettingsLoadError: If the library defaults are missing or any
                existing file cannot be read
        """
        library = load_layer("library defaults", Path(library_defaults_file))

        defaults = [library]
        if bot_defaults_file is not None:
            bot = load_layer("bot defaults", Path(bot_defaults_file), required=False)
            if bot is not None:
                defaults.insert(0, bot)

        user_file = Path(user_file)
        user = load_layer("bot settings", user_file, required=False)
        if user is None:
            logger.info("Settings file not found. A new one will be created.")
            user_values: Mapping[str, str] = {}
        else:
            user_values = user.values

        return cls(user_file, user_values, defaults)

    @property
    def user_file(self) -> Optional[Path]:
        """Get the file the user layer is saved to."""
        return self._user_file

    @property
    def layers(self) -> list[Layer]:
        """Get a snapshot of all layers, highest precedence first."""
        with self._lock:
            return [Layer("user", self._user, self._user_file)] + self._defaults

    def has(self, name: str) -> bool:
        """Check if a setting is defined in any layer."""
        with self._lock:
            return self._lookup(name) is not None

    def get(self, name: str) -> str:
        """Get the raw value of a setting.

        Raises:
            SettingNotFound: If no layer defines the setting
        """
        with self._lock:
            value = self._lookup(name)
        if value is None:
            raise SettingNotFound(name)
        return value

    def get_str(self, name: str) -> str:
        """Get the value of a string setting."""
        return self.get(name)

    def get_int(self, name: str) -> int:
        """Get the value of an integer setting (32 bits).

        Raises:
            SettingNotFound: If no layer defines the setting
            SettingTypeMismatch: If the value is not a 32-bit integer
        """
        return self._parse_integer(name, "int", INT_MIN, INT_MAX)

    def get_long(self, name: str) -> int:
        """Get the value of a long setting (64 bits).

        Raises:
            SettingNotFound: If no layer defines the setting
            SettingTypeMismatch: If the value is not a 64-bit integer
        """
        return self._parse_integer(name, "long", LONG_MIN, LONG_MAX)

    def get_bool(self, name: str) -> bool:
        """Get the value of a boolean setting.

        Only ``true`` and ``false`` (in any case) are accepted.

        Raises:
            SettingNotFound: If no layer defines the setting
            SettingTypeMismatch: If the value is not a boolean
        """
        raw = self.get(name)
        lowered = raw.lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
        raise SettingTypeMismatch(name, raw, "boolean")

    def get_typed(self, name: str, type_: type) -> Any:
        """Get a setting parsed as the given type (str, int or bool)."""
        getters = {
            str: self.get_str,
            int: self.get_long,
            bool: self.get_bool,
        }
        try:
            getter = getters[type_]
        except KeyError:
            raise TypeError(f"Unsupported setting type: {type_!r}") from None
        return getter(name)

    def set(self, name: str, value: SettingValue) -> None:
        """Set a setting in the user layer.

        The change is visible immediately but is only written to disk when
        the settings are saved.

        Raises:
            ValueError: If the value is None, or the name or value contains
                characters that cannot be saved
            TypeError: If the value is not a str, int or bool
        """
        if value is None:
            raise ValueError("Value cannot be None.")
        if isinstance(value, bool):
            raw = "true" if value else "false"
        elif isinstance(value, (str, int)):
            raw = str(value)
        else:
            raise TypeError(f"Unsupported setting value: {value!r}")

        check_storable(name)
        check_storable(raw)

        with self._lock:
            self._user[name] = raw
        logger.debug(f"Set setting {name!r}")

    def user_values(self) -> dict[str, str]:
        """Get a copy of the user layer."""
        with self._lock:
            return dict(self._user)

    def save(self) -> None:
        """Write the user layer to the settings file.

        Raises:
            PersistenceFailure: If the file could not be written
        """
        if self._user_file is None:
            logger.debug("No settings file configured, skipping save")
            return

        logger.info("Saving properties.")
        values = self.user_values()
        try:
            store_properties(self._user_file, values, SETTINGS_COMMENT)
        except (OSError, PropertiesFormatError) as e:
            raise PersistenceFailure(
                f"Could not write properties file {self._user_file}: {e}",
                target=self._user_file,
            ) from e

    def _lookup(self, name: str) -> Optional[str]:
        """Find the raw value of a setting. Must be called with the lock held."""
        if name in self._user:
            return self._user[name]
        for layer in self._defaults:
            if name in layer.values:
                return layer.values[name]
        return None

    def _parse_integer(self, name: str, kind: str, low: int, high: int) -> int:
        raw = self.get(name)
        if not INTEGER_PATTERN.fullmatch(raw):
            raise SettingTypeMismatch(name, raw, kind)
        value = int(raw)
        if not low <= value <= high:
            raise SettingTypeMismatch(name, raw, kind)
        return value

    def __repr__(self) -> str:
        return f"LayeredSettings(user_file={self._user_file!r}, layers={len(self._defaults) + 1})"
