"""CSV persistence for the alias dictionary."""

import csv
import io
import logging
from pathlib import Path
from typing import Iterable, Optional

from ..config import settings
from .alias_dictionary import AliasDictionary
from .models import AliasRecord, LoadReport, RecordStatus

logger = logging.getLogger(__name__)

CSV_HEADER = ["FieldName", "PrimaryName", "Status", "Description"]
MINIMUM_COLUMNS = 3


def read_text(path: Path, fallback_encoding: str = "latin-1") -> str:
    """Read a text file as UTF-8 (with or without BOM), else with the fallback encoding."""
    data = path.read_bytes()
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.debug(f"{path} is not valid UTF-8, reading as {fallback_encoding}")
        return data.decode(fallback_encoding, errors="replace")


class DictionaryStorage:
    """Reads and writes the dictionary in the FieldName,PrimaryName,Status,Description format."""

    def __init__(self, path: Optional[Path] = None):
        self.path = path or settings.database_path

    def read_records(self, path: Optional[Path] = None) -> list[AliasRecord]:
        """Parse all records of a CSV dictionary file, skipping the header row."""
        path = Path(path or self.path)
        reader = csv.reader(io.StringIO(read_text(path)))

        records = []
        for line_number, fields in enumerate(reader):
            if line_number == 0 or not fields or not any(f.strip() for f in fields):
                continue
            if len(fields) < MINIMUM_COLUMNS:
                logger.debug(f"{path}:{line_number + 1}: too few columns, skipped")
                continue
            records.append(
                AliasRecord(
                    field_name=fields[0].strip(),
                    primary_name=fields[1].strip(),
                    status=fields[2].strip(),
                    description=fields[3].strip() if len(fields) > 3 else "",
                )
            )
        return records

    def load(self, path: Optional[Path] = None) -> tuple[AliasDictionary, LoadReport]:
        """
        Build a fresh dictionary from a CSV file.

        Base records are applied first, then aliases, then ignored names, so
        record order inside the file does not matter. An alias whose primary
        name has no base record creates that base name.

        Args:
            path: File to read (defaults to the configured dictionary path)

        Returns:
            The loaded dictionary and a report of skipped records
        """
        path = Path(path or self.path)
        records = self.read_records(path)
        dictionary = AliasDictionary()
        report = LoadReport(path=str(path), records_read=len(records))

        by_status: dict[str, list[AliasRecord]] = {status.value: [] for status in RecordStatus}
        for record in records:
            status = record.status.lower()
            if status not in by_status or not record.field_name:
                report.records_skipped += 1
                report.warnings.append(
                    f"Skipped record '{record.field_name}' with status '{record.status}'"
                )
                continue
            by_status[status].append(record)

        for record in by_status[RecordStatus.BASE.value]:
            dictionary.add_base_name(record.field_name)

        for record in by_status[RecordStatus.ALIAS.value]:
            if not record.primary_name:
                report.records_skipped += 1
                report.warnings.append(f"Alias '{record.field_name}' has no primary name")
                continue
            if not dictionary.is_base_name(record.primary_name):
                dictionary.add_base_name(record.primary_name)
            if not dictionary.add_alias_to_base(record.primary_name, record.field_name):
                report.records_skipped += 1
                report.warnings.append(
                    f"Alias '{record.field_name}' -> '{record.primary_name}' conflicts with a base name"
                )

        for record in by_status[RecordStatus.IGNORE.value]:
            if not dictionary.add_ignored(record.field_name):
                report.records_skipped += 1
                report.warnings.append(f"Ignored name '{record.field_name}' is a base name")

        stats = dictionary.get_statistics()
        logger.info(
            f"Loaded dictionary {path}: {stats.base_count} base names, "
            f"{stats.alias_count} aliases, {stats.ignored_count} ignored"
        )
        if report.records_skipped:
            logger.warning(f"{report.records_skipped} record(s) skipped while loading {path}")

        return dictionary, report

    def to_records(self, dictionary: AliasDictionary) -> list[AliasRecord]:
        """Order records as bases (each followed by its aliases) then ignored names."""
        records = []
        for base_name, aliases in dictionary.get_all_aliases_grouped().items():
            records.append(
                AliasRecord(
                    field_name=base_name, primary_name=base_name, status=RecordStatus.BASE.value
                )
            )
            for alias in aliases:
                records.append(
                    AliasRecord(
                        field_name=alias, primary_name=base_name, status=RecordStatus.ALIAS.value
                    )
                )

        for name in dictionary.get_all_ignored_names():
            records.append(AliasRecord(field_name=name, status=RecordStatus.IGNORE.value))

        return records

    def save(self, dictionary: AliasDictionary, path: Optional[Path] = None) -> Path:
        """Write the dictionary to CSV (UTF-8 with BOM)."""
        path = Path(path or self.path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.write_records(path, self.to_records(dictionary))
        self.path = path

        logger.info(f"Saved dictionary to {path}")
        return path

    @staticmethod
    def write_records(path: Path, records: Iterable[AliasRecord]) -> None:
        with path.open("w", encoding="utf-8-sig", newline="") as handle:
            writer = csv.writer(handle, lineterminator="\n")
            writer.writerow(CSV_HEADER)
            for record in records:
                writer.writerow(
                    [record.field_name, record.primary_name, record.status, record.description]
                )
