"""Application configuration and startup wiring."""

from dataclasses import dataclass, field
import logging
import os
from pathlib import Path
import sys
from typing import Callable, Optional

from dotenv import load_dotenv

from .events import EventBus
from ..lifecycle.autosave import AutosaveScheduler
from ..lifecycle.exit import ExitCoordinator
from ..lifecycle.saving import SaveRegistry
from ..storage.settings import LayeredSettings

logger = logging.getLogger(__name__)

APP_NAME = "BlakeBot"
RESOURCES_DIR = Path(__file__).resolve().parent.parent / "resources"

USER_SETTINGS_FILE = "properties.xml"
BOT_DEFAULTS_FILE = "botDefaults.xml"
LIBRARY_DEFAULTS_FILE = "defaultProperties.xml"

TOKEN_SETTING = "token"
PREFIX_SETTING = "Prefix"


def default_settings_dir() -> Path:
    """Get the appropriate settings directory for the platform."""
    if os.name == "nt":  # Windows
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    else:  # Linux/Mac
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))

    return base / APP_NAME


@dataclass
class AppConfig:
    """Where the application keeps its files, and how it runs."""

    settings_dir: Path = field(default_factory=default_settings_dir)
    library_defaults_file: Path = RESOURCES_DIR / LIBRARY_DEFAULTS_FILE
    log_level: int = logging.INFO
    autosave_unit_seconds: float = 60.0
    exit_workers: int = 4
    exit_timeout: Optional[float] = None
    token: Optional[str] = None

    @property
    def user_settings_file(self) -> Path:
        return self.settings_dir / USER_SETTINGS_FILE

    @property
    def bot_defaults_file(self) -> Path:
        return self.settings_dir / BOT_DEFAULTS_FILE

    @property
    def log_dir(self) -> Path:
        return self.settings_dir / "logs"

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "AppConfig":
        """Build the configuration from environment variables.

        Variables are read from a ``.env`` file first, if present:

        - ``BLAKEBOT_HOME``: settings directory
        - ``BLAKEBOT_LOG_LEVEL``: logging level name
        - ``DISCORD_TOKEN``: login token used when none is stored
        """
        load_dotenv(env_file)

        config = cls()

        home = os.getenv("BLAKEBOT_HOME")
        if home:
            config.settings_dir = Path(home).expanduser()

        level_name = os.getenv("BLAKEBOT_LOG_LEVEL")
        if level_name:
            level = logging.getLevelName(level_name.upper())
            if isinstance(level, int):
                config.log_level = level
            else:
                logger.warning(f"Unknown log level {level_name!r}, using INFO")

        config.token = os.getenv("DISCORD_TOKEN") or None
        return config


@dataclass
class AppContext:
    """The long-lived services of the application."""

    config: AppConfig
    settings: LayeredSettings
    save_registry: SaveRegistry
    autosave: AutosaveScheduler
    exit_coordinator: ExitCoordinator
    event_bus: EventBus


def initialize(
    config: AppConfig,
    terminate: Callable[[int], None] = sys.exit,
) -> AppContext:
    """Create and wire the application services.

    Loads the settings layers, registers the settings for saving, arms the
    autosave timer and registers its final save to run before exit.

    Args:
        config: The application configuration
        terminate: Called by the exit coordinator to end the process

    Raises:
        SettingsLoadError: If the settings could not be loaded
    """
    settings = LayeredSettings.load(
        config.user_settings_file,
        config.library_defaults_file,
        config.bot_defaults_file,
    )

    if config.token and not settings.has(TOKEN_SETTING):
        logger.info("Using login token from the environment.")
        settings.set(TOKEN_SETTING, config.token)

    save_registry = SaveRegistry()
    save_registry.register(settings)

    exit_coordinator = ExitCoordinator(config.exit_workers, terminate)

    autosave = AutosaveScheduler(settings, save_registry, config.autosave_unit_seconds)
    exit_coordinator.register(autosave)
    autosave.start()

    return AppContext(
        config=config,
        settings=settings,
        save_registry=save_registry,
        autosave=autosave,
        exit_coordinator=exit_coordinator,
        event_bus=EventBus(),
    )
