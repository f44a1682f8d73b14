"""
AWS Profile Store

Typed access to the two flat, section-based files the AWS CLI reads
(~/.aws/config and ~/.aws/credentials). A store is loaded fresh for every
operation, changed in memory and written back in full.

Sections created by cloudctx carry a first-class ``managed`` flag. On disk the
flag is the reserved key ``cloudctx_managed = true``; sections without it
belong to the user. Every section the caller does not change is written back
with the exact text it was read from, comments and spacing included.
"""

import configparser
import logging
import os
import shutil
import tempfile
from io import StringIO
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from ..errors import StoreReadError, StoreWriteError

__all__ = [
    'MANAGED_KEY',
    'CURRENT_KEY',
    'SOURCE_KEY',
    'DEFAULT_SECTION',
    'PROFILE_PREFIX',
    'Section',
    'ProfileStore',
    'profile_section_name',
]

logger = logging.getLogger(__name__)

MANAGED_KEY = "cloudctx_managed"
CURRENT_KEY = "cloudctx_current"
SOURCE_KEY = "cloudctx_source"

DEFAULT_SECTION = "default"
PROFILE_PREFIX = "profile "

# configparser folds a section with this name into every other section;
# the AWS files have no such concept, so point it at a name nobody uses.
_NO_DEFAULT_SECTION = "__cloudctx_no_default__"


def profile_section_name(profile_name: str) -> str:
    """Return the config-file section name for a profile."""
    return f"{PROFILE_PREFIX}{profile_name}"


class Section:
    """One named section: an ordered key/value mapping plus the managed flag."""
    def __init__(self, name: str, values: Optional[Dict[str, str]] = None,
                 managed: bool = False):
        self.name = name
        self.values: Dict[str, str] = dict(values or {})
        self.managed = managed
        # Text the section was read from; None once changed or if created
        self.raw: Optional[str] = None

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.values.get(key, default)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value
        self.raw = None

    def items(self) -> List[Tuple[str, str]]:
        return list(self.values.items())

    def __contains__(self, key: str) -> bool:
        return key in self.values

    def __len__(self) -> int:
        return len(self.values)

    def __repr__(self) -> str:
        return f"Section({self.name!r}, managed={self.managed}, keys={list(self.values)})"


def _new_parser() -> configparser.ConfigParser:
    parser = configparser.ConfigParser(
        interpolation=None,
        delimiters=("=",),
        default_section=_NO_DEFAULT_SECTION,
        strict=False,
    )
    # Keys are case-sensitive
    parser.optionxform = str
    return parser


def _split_raw(text: str) -> Tuple[str, List[Tuple[str, str]]]:
    """
    Cut file text into the lines before the first header and one
    (section name, text) block per header, each running up to the next header.

    Comment lines directly above a header belong to that header's block, so
    deleting the previous section does not take them along.
    """
    header = _new_parser().SECTCRE
    preamble: List[str] = []
    blocks: List[Tuple[str, List[str]]] = []
    for line in text.splitlines(keepends=True):
        match = header.match(line.strip()) if line[:1] not in (" ", "\t") else None
        if match:
            leading: List[str] = []
            if blocks:
                previous = blocks[-1][1]
                while len(previous) > 1 and previous[-1].strip().startswith(("#", ";")):
                    leading.insert(0, previous.pop())
            blocks.append((match.group("header"), leading + [line]))
        elif blocks:
            blocks[-1][1].append(line)
        else:
            preamble.append(line)
    return "".join(preamble), [(name, "".join(lines)) for name, lines in blocks]


def _format_section(section: Section) -> str:
    lines = [f"[{section.name}]\n"]
    # The marker always leads the section
    if section.managed:
        lines.append(f"{MANAGED_KEY} = true\n")
    for key, value in section.values.items():
        value = str(value).replace("\n", "\n\t")
        lines.append(f"{key} = {value}\n")
    lines.append("\n")
    return "".join(lines)


class ProfileStore:
    """An ordered set of sections backed by one INI-style file."""

    def __init__(self, sections: Optional[List[Section]] = None, preamble: str = ""):
        self._sections: Dict[str, Section] = {}
        for section in sections or []:
            self._sections[section.name] = section
        self.preamble = preamble

    @classmethod
    def _parse(cls, path: Path) -> "ProfileStore":
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
        parser = _new_parser()
        parser.read_string(text, source=str(path))

        sections = []
        for name in parser.sections():
            values = dict(parser.items(name, raw=True))
            managed = values.pop(MANAGED_KEY, None) is not None
            sections.append(Section(name, values, managed=managed))

        preamble, blocks = _split_raw(text)
        if [name for name, _ in blocks] == parser.sections():
            for section, (_, raw) in zip(sections, blocks):
                section.raw = raw
        else:
            # Duplicate or indented headers; fall back to rewriting every section
            logger.debug("Could not map %s text to sections, rewriting it in full", path)
            preamble = ""
        return cls(sections, preamble=preamble)

    @classmethod
    def load(cls, path: Path) -> "ProfileStore":
        """
        Load a store, falling back to an empty store on any failure.

        Args:
            path: File to read

        Returns:
            ProfileStore: The parsed store, or an empty one if the file is
            missing or cannot be parsed
        """
        path = Path(path)
        if not path.exists():
            return cls()

        try:
            return cls._parse(path)
        except (configparser.Error, OSError, UnicodeDecodeError) as e:
            logger.warning("Ignoring unreadable profile store %s: %s", path, e)
            return cls()

    @classmethod
    def read(cls, path: Path) -> "ProfileStore":
        """
        Load a store, raising when an existing file cannot be parsed.

        Args:
            path: File to read

        Returns:
            ProfileStore: The parsed store (empty if the file does not exist)

        Raises:
            StoreReadError: If the file exists but cannot be read or parsed
        """
        path = Path(path)
        if not path.exists():
            return cls()

        try:
            return cls._parse(path)
        except (configparser.Error, OSError, UnicodeDecodeError) as e:
            raise StoreReadError(f"Failed to read {path}: {e}") from e

    def section(self, name: str) -> Optional[Section]:
        return self._sections.get(name)

    def has_section(self, name: str) -> bool:
        return name in self._sections

    def sections(self) -> Iterator[Section]:
        return iter(list(self._sections.values()))

    def section_names(self) -> List[str]:
        return list(self._sections)

    def delete_section(self, name: str) -> None:
        self._sections.pop(name, None)

    def new_section(self, name: str, managed: bool = False) -> Section:
        """
        Create an empty section, replacing any existing section of that name.

        A replaced section keeps its position in the file; a new one is
        appended.
        """
        section = Section(name, managed=managed)
        self._sections[name] = section
        return section

    def to_string(self) -> str:
        """
        Serialize the store in the AWS CLI file format.

        Unchanged sections are emitted as read; new or changed ones are
        written as ``key = value`` lines followed by a blank line.
        """
        buf = StringIO()
        buf.write(self.preamble)
        for section in self._sections.values():
            written = buf.getvalue()
            if section.raw is not None:
                if written and not written.endswith("\n"):
                    buf.write("\n")
                buf.write(section.raw)
                continue

            # Keep a blank line between a hand-written section and a new one
            if written and not written.endswith("\n\n"):
                buf.write("\n" if written.endswith("\n") else "\n\n")
            buf.write(_format_section(section))
        return buf.getvalue()

    def save(self, path: Path) -> None:
        """
        Write the whole store to disk, replacing the file.

        The file is written to a temporary sibling first and moved into place,
        so a failed write never leaves a truncated store behind.

        Args:
            path: File to write

        Raises:
            StoreWriteError: If the file cannot be written
        """
        path = Path(path)
        content = self.to_string()
        tmp_name = None
        try:
            path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            if path.exists():
                shutil.copymode(str(path), tmp_name)
            os.replace(tmp_name, str(path))
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreWriteError(f"Failed to write {path}: {e}") from e
        logger.debug("Saved %d sections to %s", len(self._sections), path)
