"""
Shared pytest fixtures for BlakeBot tests.
"""
import pytest

from blakebot.lifecycle.saving import Saveable, SaveRegistry
from blakebot.storage.properties import store_properties
from blakebot.storage.settings import LayeredSettings


class RecordingSaveable(Saveable):
    """Saveable that records its saves and can be told to fail."""

    def __init__(self, name, log=None, error=None):
        self.name = name
        self.log = log if log is not None else []
        self.error = error
        self.saves = 0

    def save(self):
        self.saves += 1
        self.log.append(self.name)
        if self.error is not None:
            raise self.error

    def __repr__(self):
        return f"RecordingSaveable({self.name!r})"


@pytest.fixture
def write_properties(tmp_path):
    """Write a properties file under tmp_path and return its path."""
    def write(name, values, comment=None):
        path = tmp_path / name
        store_properties(path, values, comment)
        return path
    return write


@pytest.fixture
def library_defaults(write_properties):
    """Library defaults file with the settings every bot has."""
    return write_properties("defaultProperties.xml", {
        "Prefix": "?",
        "Auto-save delay": "30",
        "width": "800",
        "height": "600",
    })


@pytest.fixture
def settings(tmp_path, library_defaults):
    """Settings store with only library defaults and no user file yet."""
    return LayeredSettings.load(tmp_path / "properties.xml", library_defaults)


@pytest.fixture
def registry():
    """Empty save registry."""
    return SaveRegistry()


@pytest.fixture
def recording_saveable():
    """Factory for RecordingSaveable instances."""
    return RecordingSaveable
