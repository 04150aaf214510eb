"""Export to the fixed-width ListNamesAlias.txt format."""

import logging
from pathlib import Path
from typing import Iterable, Mapping, Optional

from ..config import settings
from ..dictionary.storage import read_text

logger = logging.getLogger(__name__)

IGNORED_PRIMARY_NAME = "No"
PRIMARY_NAME_WIDTH = 10

HEADER = (
    "Primary      Field\n"
    "  name         names\n"
    + "=" * 99
)
FOOTER = "*" * 106

Entry = tuple[str, str]  # (primary name, field name)


def _entry_key(entry: Entry) -> tuple[str, str]:
    return (entry[0].casefold(), entry[1].casefold())


def is_separator(line: str) -> bool:
    return line.startswith(("===", "***", "---"))


class ListNamesAliasExporter:
    """
    Writes "primary field" pairs sorted by primary name, then field name.

    Ignored names are listed under the primary name "No". Each base name is
    also listed as a field name of itself.
    """

    def __init__(self, encoding: Optional[str] = None):
        self.encoding = encoding or settings.list_names_encoding

    @staticmethod
    def build_entries(
        aliases: Mapping[str, Iterable[str]], ignored: Iterable[str] = ()
    ) -> list[Entry]:
        entries: list[Entry] = []
        for primary, fields in aliases.items():
            fields = list(fields)
            entries.extend((primary, field) for field in fields)
            if primary.casefold() not in {f.casefold() for f in fields}:
                entries.append((primary, primary))
        entries.extend((IGNORED_PRIMARY_NAME, name) for name in ignored)
        return entries

    def export(
        self, path: Path, aliases: Mapping[str, Iterable[str]], ignored: Iterable[str] = ()
    ) -> int:
        """
        Write a new file, replacing any existing one.

        Returns:
            Number of entries written
        """
        entries = self.build_entries(aliases, ignored)
        self._write(Path(path), entries)
        return len(entries)

    def append_and_sort(
        self, path: Path, aliases: Mapping[str, Iterable[str]], ignored: Iterable[str] = ()
    ) -> int:
        """
        Merge entries into an existing file and re-sort all of it.

        Returns:
            Number of entries in the file afterwards
        """
        path = Path(path)
        entries = self.load_entries(path) if path.exists() else []
        seen = {_entry_key(e) for e in entries}

        for entry in self.build_entries(aliases, ignored):
            if _entry_key(entry) not in seen:
                seen.add(_entry_key(entry))
                entries.append(entry)

        self._write(path, entries)
        return len(entries)

    def load_entries(self, path: Path) -> list[Entry]:
        """Read the (primary, field) pairs between the header rule and the footer."""
        entries: list[Entry] = []
        in_body = False
        for line in read_text(Path(path), self.encoding).splitlines():
            stripped = line.strip()
            if not stripped:
                continue
            if is_separator(stripped):
                if in_body:
                    break
                in_body = True
                continue
            if not in_body:
                continue
            parts = stripped.split(None, 1)
            if len(parts) == 2:
                entries.append((parts[0], parts[1].strip()))
        return entries

    def _write(self, path: Path, entries: list[Entry]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding=self.encoding, errors="replace", newline="\r\n") as handle:
            handle.write(HEADER + "\n")
            for primary, field in sorted(entries, key=_entry_key):
                handle.write(f"{primary:<{PRIMARY_NAME_WIDTH}} {field}\n")
            handle.write(FOOTER + "\n")

        logger.info(f"Wrote {len(entries)} entries to {path}")
