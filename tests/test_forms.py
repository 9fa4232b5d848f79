"""
Tests for the settings form validation.
"""
import pytest

from blakebot.gui.forms import validate_settings_form


def test_valid_form():
    """A complete form is valid and values are trimmed."""
    form = validate_settings_form(" token ", "!", " 15 ")

    assert form.is_valid
    assert form.token == "token"
    assert form.delay_value == 15


def test_small_delay_is_valid():
    """Delays below the autosave minimum are accepted (they disable autosave)."""
    form = validate_settings_form("token", "?", "0")

    assert form.is_valid
    assert form.delay_value == 0


@pytest.mark.parametrize("token, prefix, delay, field, key", [
    ("", "?", "15", "token", "token_missing"),
    ("token", " ", "15", "prefix", "prefix_missing"),
    ("token", "?", "", "delay", "delay_missing"),
    ("token", "?", "ten", "delay", "delay_invalid"),
    ("token", "?", "1.5", "delay", "delay_invalid"),
    ("token", "?", str(2**63), "delay", "delay_invalid"),
])
def test_invalid_fields(token, prefix, delay, field, key):
    """Each invalid field gets its own error message."""
    form = validate_settings_form(token, prefix, delay)

    assert not form.is_valid
    assert form.errors == {field: key}


def test_invalid_delay_has_no_value():
    """An invalid delay has no numeric value."""
    assert validate_settings_form("t", "?", "x").delay_value is None
