"""
Parser for the INI dialect used by ``~/.aws/config`` and ``~/.aws/credentials``.

Besides plain ``[section]`` headers and ``key=value`` lines, AWS files allow
one level of nested sub-properties written as indented lines under a bare
parent key::

    [profile dev]
    region = eu-west-1
    s3 =
        max_concurrent_requests = 20
        addressing_style = path

which parses to::

    {"profile dev": {"region": "eu-west-1",
                     "s3": {"max_concurrent_requests": 20,
                            "addressing_style": "path"}}}
"""
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional

from .error_handler import ConfigNotFoundError, handle_error
from .value_coercion import SettingValue, coerce

logger = logging.getLogger(__name__)

Section = Dict[str, SettingValue]
Settings = Dict[str, Section]

SECTION_PATTERN = re.compile(r"^\s*\[([\w\s+\-_]+)\]")
COMMENT_PREFIXES = ("#", ";")
INDENT_CHARS = (" ", "\t")


class FileLines:
    """
    Lazy, restartable view of a text file's lines.

    Every iteration reopens the file, so the same object can be parsed more
    than once. Trailing newlines are removed.
    """

    def __init__(self, path: str, encoding: str = "utf-8"):
        self.path = path
        self.encoding = encoding

    def __iter__(self) -> Iterator[str]:
        with open(self.path, "r", encoding=self.encoding) as f:
            for line in f:
                yield line.rstrip("\r\n")


class FileReader:
    """Filesystem access used by the config store; swap out in tests."""

    def exists(self, path: str) -> bool:
        return Path(path).is_file()

    def lines(self, path: str) -> Iterable[str]:
        return FileLines(path)


@dataclass
class ParserState:
    """State threaded through the line loop."""
    section: Optional[str] = None
    parent_key: Optional[str] = None
    settings: Settings = field(default_factory=dict)

    def current_section(self) -> Optional[Section]:
        if self.section is None:
            return None
        return self.settings.setdefault(self.section, {})


def parse(lines: Iterable[str]) -> Settings:
    """
    Parse INI lines into a mapping of section name to settings.

    Section names are kept exactly as written (``default``,
    ``profile work``); profile-name normalization is left to the caller.

    Args:
        lines: Text lines, with or without trailing newlines

    Returns:
        Settings keyed by section name
    """
    state = ParserState()
    for line in lines:
        _parse_line(state, line.rstrip("\r\n"))
    return state.settings


def _parse_line(state: ParserState, line: str) -> None:
    match = SECTION_PATTERN.match(line)
    if match:
        state.section = match.group(1).strip()
        state.parent_key = None
        state.current_section()
        return

    stripped = line.strip()
    if line.startswith(INDENT_CHARS):
        if not stripped.startswith(COMMENT_PREFIXES):
            _parse_child_line(state, stripped)
        return

    state.parent_key = None
    if not stripped or stripped.startswith(COMMENT_PREFIXES):
        return

    key, separator, raw_value = stripped.partition("=")
    key = key.strip()
    section = state.current_section()
    if not key or section is None:
        logger.debug(f"Ignoring line outside of any section: {key!r}")
        return

    # "key" and "key =" open a block of indented sub-properties; the key is
    # only stored once a child line follows
    if not separator or not raw_value.strip():
        state.parent_key = key
        return

    section[key] = coerce(raw_value)


def _parse_child_line(state: ParserState, stripped: str) -> None:
    section = state.current_section()
    if state.parent_key is None or section is None:
        return

    key, separator, raw_value = stripped.partition("=")
    key = key.strip()
    raw_value = raw_value.strip()
    if not separator or not key or not raw_value:
        return

    children = section.get(state.parent_key)
    if not isinstance(children, dict):
        children = section[state.parent_key] = {}
    children[key] = coerce(raw_value)


def load(path: str, reader: Optional[FileReader] = None) -> Settings:
    """
    Read and parse the INI file at ``path``.

    Raises:
        ConfigNotFoundError: If the file does not exist
        ConfigMalformedError: If the file exists but cannot be read or decoded
    """
    reader = reader or FileReader()
    if not reader.exists(path):
        raise ConfigNotFoundError(f"File not found: {path}", context={"path": path})

    try:
        return parse(reader.lines(path))
    except (OSError, UnicodeDecodeError) as e:
        raise handle_error(e, context={"path": os.fspath(path)}) from e
