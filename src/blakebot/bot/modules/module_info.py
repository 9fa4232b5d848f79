"""Module information files and their chat formatting.

A module info file looks like::

    alias
    Module Name
    1.0.0
    md
    [?block?]
    Short description of the module.
    [?block?]
    First information block.
    [?block?]
    Second information block.

The header holds the alias used to look the module up, its name, its
version and, optionally, the syntax highlighting used for the information
blocks.
"""

from dataclasses import dataclass, field
from pathlib import Path
import re
from typing import Iterable, Optional
import logging

from ...core.errors import InfoFormatError

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 2000
MAX_DESCRIPTION_LENGTH = MAX_MESSAGE_LENGTH // 4

BLOCK_DELIMITER = "[?block?]"
BLOCK_FORMAT = "```{highlight}\n{content}\n```"

LIST_HEADER = (
    "===[MODULE LIST]===\nTo display the information of a "
    "specific module, use this command followed by the module name."
)
LIST_ITEM = "[{alias}]\n(version {version})\n{description}"
INFO_HEADER = "[{alias}]\n{name}\nVersion {version}\n\n{description}"

# Room left for content in a block without highlighting.
LIST_BLOCK_MAX = MAX_MESSAGE_LENGTH - len(BLOCK_FORMAT.format(highlight="", content=""))

_DELIMITER_PATTERN = re.compile(r"\s*\n\s*" + re.escape(BLOCK_DELIMITER) + r"\s*\n")


def code_block(content: str, highlight: str = "") -> str:
    """Wrap text in a chat code block."""
    return BLOCK_FORMAT.format(highlight=highlight, content=content)


@dataclass(frozen=True)
class ModuleInfo:
    """Information about an installed module."""

    alias: str
    name: str
    version: str
    description: str
    highlight: str = ""
    blocks: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if len(self.description) > MAX_DESCRIPTION_LENGTH:
            raise InfoFormatError("Description exceeds maximum size.")
        for i, block in enumerate(self.blocks):
            if len(code_block(block, self.highlight)) > MAX_MESSAGE_LENGTH:
                raise InfoFormatError(f"Information block {i} would not fit in a message.")


def _parse_header(header: str) -> tuple[str, str, str, str]:
    """Parse the header block into alias, name, version and highlight."""
    lines = [line.strip() for line in header.splitlines()]
    fields = ("Alias", "Name", "Version")

    values = []
    for i, label in enumerate(fields):
        if i >= len(lines):
            raise InfoFormatError(f"Missing {label.lower()}.")
        if not lines[i]:
            raise InfoFormatError(f"{label} cannot be blank.")
        values.append(lines[i])

    highlight = ""
    if len(lines) > len(fields):
        highlight = lines[len(fields)]
        if not highlight:
            raise InfoFormatError("Syntax highlighting cannot be blank.")

    return values[0], values[1], values[2], highlight


def parse_module_info(content: str) -> ModuleInfo:
    """Parse the content of a module info file.

    Raises:
        InfoFormatError: If the content is not a valid module info
    """
    blocks = _DELIMITER_PATTERN.split(content.strip())
    if not blocks or not blocks[0]:
        raise InfoFormatError("Missing header.")
    if len(blocks) < 2:
        raise InfoFormatError("Missing description.")

    alias, name, version, highlight = _parse_header(blocks[0])
    return ModuleInfo(
        alias=alias,
        name=name,
        version=version,
        description=blocks[1],
        highlight=highlight,
        blocks=tuple(blocks[2:]),
    )


class ModuleInfoManager:
    """Holds the information of the installed modules, by alias."""

    def __init__(self, infos: Iterable[ModuleInfo] = ()):
        self._infos: dict[str, ModuleInfo] = {}
        for info in infos:
            self.add(info)

    @classmethod
    def from_directory(cls, directory: Path, pattern: str = "*.info") -> "ModuleInfoManager":
        """Load every module info file in a directory.

        Files that cannot be read or parsed are skipped.
        """
        manager = cls()
        logger.info("Loading module info files.")
        for path in sorted(Path(directory).glob(pattern)):
            logger.info(f"Parsing module info file {path}.")
            try:
                manager.add(parse_module_info(path.read_text(encoding="utf-8")))
            except OSError as e:
                logger.error(f"Could not read module info file {path}: {e}")
            except InfoFormatError as e:
                logger.error(f"Could not parse module info file {path}: {e}")
        logger.info("Finished loading module info files.")
        return manager

    def add(self, info: ModuleInfo) -> None:
        """Add a module. A module with the same alias is replaced."""
        if info.alias in self._infos:
            logger.warning(f"Duplicate module alias {info.alias!r}, replacing previous")
        self._infos[info.alias] = info

    def get(self, alias: str) -> Optional[ModuleInfo]:
        """Get a module by its alias."""
        return self._infos.get(alias)

    @property
    def infos(self) -> list[ModuleInfo]:
        """Get all modules, sorted by alias."""
        return [self._infos[alias] for alias in sorted(self._infos)]

    def __len__(self) -> int:
        return len(self._infos)


def format_short(info: ModuleInfo) -> str:
    return LIST_ITEM.format(alias=info.alias, version=info.version, description=info.description)


def format_list(infos: Iterable[ModuleInfo]) -> list[str]:
    """Format the module list as messages.

    The first message is the list header; the modules follow, packed into
    as few messages as fit.
    """
    blocks = [code_block(LIST_HEADER)]

    current = ""
    for info in infos:
        item = format_short(info)
        if not current:
            current = item
        elif len(current) + 2 + len(item) > LIST_BLOCK_MAX:
            blocks.append(code_block(current))
            current = item
        else:
            current += "\n\n" + item

    if current:
        blocks.append(code_block(current))
    return blocks


def format_long(info: ModuleInfo) -> list[str]:
    """Format the full information of a module as messages."""
    header = INFO_HEADER.format(
        alias=info.alias,
        name=info.name,
        version=info.version,
        description=info.description,
    )
    return [code_block(header)] + [code_block(block, info.highlight) for block in info.blocks]
