"""Reading and writing XML property files.

The files use the same layout as Java's ``Properties.storeToXML``::

    <?xml version="1.0" encoding="UTF-8" standalone="no"?>
    <!DOCTYPE properties SYSTEM "http://java.sun.com/dtd/properties.dtd">
    <properties>
    <comment>Bot settings.</comment>
    <entry key="Prefix">?</entry>
    </properties>
"""

import os
import re
import tempfile
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import IO, Mapping, Optional, Union
import logging

logger = logging.getLogger(__name__)

XML_HEADER = '<?xml version="1.0" encoding="UTF-8" standalone="no"?>\n'
DOCTYPE = '<!DOCTYPE properties SYSTEM "http://java.sun.com/dtd/properties.dtd">\n'

# Characters XML 1.0 cannot represent, not even as character references.
_INVALID_XML_CHARS = re.compile("[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


class PropertiesFormatError(ValueError):
    """The content is not a valid XML properties document."""


def check_storable(text: str) -> None:
    """Check that a key or value can be written to a properties file.

    Raises:
        PropertiesFormatError: If the text contains characters XML cannot hold
    """
    match = _INVALID_XML_CHARS.search(text)
    if match:
        raise PropertiesFormatError(
            f"Character {match.group()!r} at index {match.start()} cannot be stored"
        )


def parse_properties(source: Union[str, bytes]) -> dict[str, str]:
    """Parse an XML properties document.

    Args:
        source: The document content

    Returns:
        Mapping of entry keys to values, in document order

    Raises:
        PropertiesFormatError: If the document is not well formed or
            is not a properties document
    """
    try:
        root = ET.fromstring(source)
    except ET.ParseError as e:
        raise PropertiesFormatError(f"Malformed properties document: {e}") from e

    if root.tag != "properties":
        raise PropertiesFormatError(f"Unexpected root element <{root.tag}>")

    properties: dict[str, str] = {}
    for element in root:
        if element.tag == "comment":
            continue
        if element.tag != "entry":
            raise PropertiesFormatError(f"Unexpected element <{element.tag}>")
        key = element.get("key")
        if key is None:
            raise PropertiesFormatError("Entry without a key attribute")
        properties[key] = element.text or ""

    return properties


def load_properties(path: Union[str, Path]) -> dict[str, str]:
    """Load properties from a file.

    Raises:
        FileNotFoundError: If the file does not exist
        OSError: If the file cannot be read
        PropertiesFormatError: If the file content is invalid
    """
    with open(path, "rb") as f:
        return read_properties(f)


def read_properties(stream: IO[bytes]) -> dict[str, str]:
    """Load properties from a binary stream."""
    return parse_properties(stream.read())


def format_properties(properties: Mapping[str, str], comment: Optional[str] = None) -> str:
    """Render properties as an XML properties document.

    Raises:
        PropertiesFormatError: If a key, value or the comment cannot be stored
    """
    root = ET.Element("properties")
    if comment is not None:
        check_storable(comment)
        ET.SubElement(root, "comment").text = comment
    for key, value in properties.items():
        check_storable(key)
        check_storable(value)
        ET.SubElement(root, "entry", key=key).text = value

    # One element per line, like storeToXML.
    root.text = "\n"
    for element in root:
        element.tail = "\n"

    # Attributes already escape carriage returns; text does not, and the
    # parser would turn them into newlines.
    body = ET.tostring(root, encoding="unicode").replace("\r", "&#13;")
    return XML_HEADER + DOCTYPE + body + "\n"


def store_properties(
    path: Union[str, Path],
    properties: Mapping[str, str],
    comment: Optional[str] = None,
) -> None:
    """Write properties to a file, replacing it as a whole.

    The document is written to a temporary file in the same directory and
    then moved over the target, so readers never see a partial file.

    Raises:
        OSError: If the file cannot be written
        PropertiesFormatError: If the properties cannot be stored
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    content = format_properties(properties, comment)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            logger.debug(f"Could not remove temporary file {tmp_name}")
        raise
