"""Translated strings for the BlakeBot console."""

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"


class Translator:
    """Simple JSON-based translation system."""

    _translations: dict = {}
    _language: str = ""
    _initialized: bool = False

    @classmethod
    def initialize(cls, language: str = DEFAULT_LANGUAGE) -> None:
        """Initialize the translator with a language.

        Args:
            language: Language code
        """
        if cls._language == language and cls._initialized:
            return

        cls._language = language
        cls._translations = {}

        lang_file = Path(__file__).parent / f"{language}.json"

        if lang_file.exists():
            try:
                with open(lang_file, "r", encoding="utf-8") as f:
                    cls._translations = json.load(f)
                logger.info(f"Loaded translations for '{language}'")
                cls._initialized = True
            except (json.JSONDecodeError, IOError) as e:
                logger.error(f"Failed to load translations for '{language}': {e}")
                if language != DEFAULT_LANGUAGE:
                    cls.initialize(DEFAULT_LANGUAGE)
        else:
            logger.warning(f"Translation file not found: {lang_file}")
            if language != DEFAULT_LANGUAGE:
                cls.initialize(DEFAULT_LANGUAGE)

    @classmethod
    def get(cls, key: str, **kwargs) -> str:
        """Get a translated string.

        Args:
            key: Translation key
            **kwargs: Format arguments for the string

        Returns:
            Translated string, or key if not found
        """
        if not cls._initialized:
            return key

        text = cls._translations.get(key, key)

        if kwargs:
            try:
                text = text.format(**kwargs)
            except (KeyError, ValueError):
                pass

        return text

    @classmethod
    def get_language(cls) -> str:
        return cls._language


def _(key: str, **kwargs) -> str:
    """Shortcut function for getting translations."""
    return Translator.get(key, **kwargs)


def init_translator(language: str = DEFAULT_LANGUAGE) -> None:
    Translator.initialize(language)
