"""
Tests for the XML properties file format.
"""
import io

import pytest

from blakebot.storage.properties import (
    PropertiesFormatError,
    format_properties,
    load_properties,
    parse_properties,
    read_properties,
    store_properties,
)


JAVA_DOCUMENT = """<?xml version="1.0" encoding="UTF-8" standalone="no"?>
<!DOCTYPE properties SYSTEM "http://java.sun.com/dtd/properties.dtd">
<properties>
<comment>Bot settings.</comment>
<entry key="Prefix">!</entry>
<entry key="Auto-save delay">15</entry>
<entry key="Support server"/>
</properties>
"""


def test_parse_java_document():
    """Documents written by storeToXML are read, comment skipped."""
    values = parse_properties(JAVA_DOCUMENT.encode("utf-8"))

    assert values == {"Prefix": "!", "Auto-save delay": "15", "Support server": ""}


def test_parse_keeps_document_order():
    """Entries are returned in the order they appear."""
    values = parse_properties(JAVA_DOCUMENT.encode("utf-8"))

    assert list(values) == ["Prefix", "Auto-save delay", "Support server"]


def test_parse_rejects_wrong_root():
    """A document that is not a properties document is rejected."""
    with pytest.raises(PropertiesFormatError):
        parse_properties("<settings><entry key='a'>b</entry></settings>")


def test_parse_rejects_malformed_xml():
    """Broken XML is reported as a format error."""
    with pytest.raises(PropertiesFormatError):
        parse_properties("<properties><entry key='a'>b</properties>")


def test_parse_rejects_entry_without_key():
    """Every entry needs a key."""
    with pytest.raises(PropertiesFormatError):
        parse_properties("<properties><entry>b</entry></properties>")


def test_format_has_header_and_comment():
    """Formatted documents carry the XML header, doctype and comment."""
    text = format_properties({"token": "abc"}, "Bot settings.")

    assert text.startswith('<?xml version="1.0" encoding="UTF-8" standalone="no"?>\n')
    assert '<!DOCTYPE properties SYSTEM "http://java.sun.com/dtd/properties.dtd">' in text
    assert "<comment>Bot settings.</comment>" in text
    assert '<entry key="token">abc</entry>' in text


def test_special_characters_survive_store(tmp_path):
    """Values with markup characters are escaped and read back intact."""
    path = tmp_path / "props.xml"
    values = {"greeting": "<hi> & \"bye\"", "emoji": "café ✨"}

    store_properties(path, values)

    assert load_properties(path) == values


def test_carriage_returns_survive_store(tmp_path):
    """Carriage returns in values and keys are kept as written."""
    path = tmp_path / "props.xml"
    values = {"motd": "line1\r\nline2", "odd\rkey": "\r"}

    store_properties(path, values)

    assert load_properties(path) == values


@pytest.mark.parametrize("value", ["abc\x01", "\x00", "tab\tok\x1f", "\ufffe"])
def test_format_rejects_unstorable_characters(value):
    """Characters XML cannot hold are refused before anything is written."""
    with pytest.raises(PropertiesFormatError):
        format_properties({"token": value})


def test_store_does_not_replace_file_with_unstorable_value(tmp_path):
    """A refused document leaves the previous file in place."""
    path = tmp_path / "props.xml"
    store_properties(path, {"token": "good"})

    with pytest.raises(PropertiesFormatError):
        store_properties(path, {"token": "bad\x01"})

    assert load_properties(path) == {"token": "good"}
    assert [p.name for p in tmp_path.iterdir()] == ["props.xml"]


def test_store_creates_parent_directories(tmp_path):
    """Storing into a missing directory creates it."""
    path = tmp_path / "nested" / "dir" / "props.xml"

    store_properties(path, {"a": "1"})

    assert path.exists()


def test_store_leaves_no_temp_files(tmp_path):
    """Only the target file remains after storing."""
    path = tmp_path / "props.xml"

    store_properties(path, {"a": "1"})
    store_properties(path, {"a": "2"})

    assert [p.name for p in tmp_path.iterdir()] == ["props.xml"]
    assert load_properties(path) == {"a": "2"}


def test_load_missing_file(tmp_path):
    """Loading a missing file raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        load_properties(tmp_path / "missing.xml")


def test_read_from_stream():
    """Properties can be read from a binary stream."""
    stream = io.BytesIO(JAVA_DOCUMENT.encode("utf-8"))

    assert read_properties(stream)["Prefix"] == "!"
