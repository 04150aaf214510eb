"""Convert the legacy three-file TXT dictionary into the CSV format."""

import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from ..config import settings
from ..dictionary.alias_dictionary import normalize_key
from ..dictionary.models import AliasRecord, RecordStatus
from ..dictionary.storage import DictionaryStorage, read_text
from .list_names import is_separator

logger = logging.getLogger(__name__)

IGNORED_PRIMARY_MARKER = "no"

STATUS_ORDER = {
    RecordStatus.BASE.value: 0,
    RecordStatus.ALIAS.value: 1,
    RecordStatus.IGNORE.value: 2,
}


class ConversionResult(BaseModel):
    """Record counts written by a conversion."""

    output_path: str
    base_count: int = 0
    alias_count: int = 0
    ignored_count: int = 0
    duplicates_skipped: int = 0

    @property
    def total(self) -> int:
        return self.base_count + self.alias_count + self.ignored_count


def clean_field_name(name: str) -> str:
    """
    Normalize a legacy field name.

    Trailing dots are trimmed and anything from the first remaining dot on
    is cut, so "GR.API" and "GR." both become "GR".
    """
    name = name.strip().rstrip(".").strip()
    if "." in name:
        name = name.split(".", 1)[0].strip()
    return name


def iter_body_lines(path: Path, encoding: str):
    """Yield the stripped, non-empty lines after the first separator line."""
    in_body = False
    for line in read_text(path, encoding).splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        if is_separator(stripped):
            if in_body:
                break
            in_body = True
            continue
        if in_body:
            yield stripped


class AliasFormatConverter:
    """Builds a CSV dictionary from the ignored, primary and alias TXT lists."""

    def __init__(self, encoding: Optional[str] = None):
        self.encoding = encoding or settings.list_names_encoding

    def read_names(self, path: Path) -> list[str]:
        """Field names listed one per line (first token of each line)."""
        names = []
        for line in iter_body_lines(Path(path), self.encoding):
            name = clean_field_name(line.split()[0])
            if name:
                names.append(name)
        return names

    def read_pairs(self, path: Path) -> list[tuple[str, str]]:
        """(primary, field) pairs from "Primary Field" lines."""
        pairs = []
        for line in iter_body_lines(Path(path), self.encoding):
            parts = line.split(None, 1)
            if len(parts) != 2:
                logger.debug(f"{path}: line without a field name skipped: {line!r}")
                continue
            primary = parts[0].strip()
            field = clean_field_name(parts[1])
            if primary and field:
                pairs.append((primary, field))
        return pairs

    def convert_to_csv(
        self,
        ignored_path: Path,
        primary_path: Path,
        alias_path: Path,
        output_path: Path,
    ) -> ConversionResult:
        """
        Merge the three legacy lists into one CSV dictionary.

        A field name is written once: primary names win over aliases, aliases
        over ignored names. Alias lines whose primary is "no" are ignored names.

        Args:
            ignored_path: List of ignored field names
            primary_path: List of primary (base) names
            alias_path: "Primary Field" pairs
            output_path: CSV file to write

        Returns:
            Counts of the records written

        Raises:
            FileNotFoundError: If an input file does not exist
        """
        for path in (ignored_path, primary_path, alias_path):
            if not Path(path).is_file():
                raise FileNotFoundError(f"Input file not found: {path}")

        result = ConversionResult(output_path=str(output_path))
        records: list[AliasRecord] = []
        seen: set[str] = set()

        def add(record: AliasRecord) -> None:
            key = normalize_key(record.field_name)
            if key in seen:
                result.duplicates_skipped += 1
                return
            seen.add(key)
            records.append(record)

        for name in self.read_names(primary_path):
            add(AliasRecord(field_name=name, primary_name=name, status=RecordStatus.BASE.value))

        ignored_from_aliases = []
        for primary, field in self.read_pairs(alias_path):
            if primary.lower() == IGNORED_PRIMARY_MARKER:
                ignored_from_aliases.append(field)
                continue
            add(AliasRecord(field_name=field, primary_name=primary, status=RecordStatus.ALIAS.value))

        for name in self.read_names(ignored_path) + ignored_from_aliases:
            add(AliasRecord(field_name=name, status=RecordStatus.IGNORE.value))

        records.sort(
            key=lambda r: (
                STATUS_ORDER[r.status],
                r.primary_name.casefold(),
                r.field_name.casefold(),
            )
        )
        for record in records:
            if record.status == RecordStatus.BASE.value:
                result.base_count += 1
            elif record.status == RecordStatus.ALIAS.value:
                result.alias_count += 1
            else:
                result.ignored_count += 1

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        DictionaryStorage.write_records(output_path, records)

        logger.info(
            f"Converted to {output_path}: {result.base_count} base, "
            f"{result.alias_count} alias, {result.ignored_count} ignored "
            f"({result.duplicates_skipped} duplicates skipped)"
        )
        return result
