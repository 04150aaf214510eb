"""Main entry point tying the dictionary, LAS reading and the editing session together."""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, Optional, Union

from .analysis import FileAnalysis, FileClassifier
from .config import Settings, settings as default_settings
from .dictionary import (
    AliasDictionary,
    DictionaryNotLoadedError,
    DictionaryStorage,
    LoadReport,
    normalize_key,
)
from .export import ListNamesAliasExporter
from .las import LasFileContent, LasHeaderReader, find_las_files
from .session import IGNORE_MARKER, NEW_BASE_MARKER, ChangeSession, CommitResult, SessionSummary

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class AliasManager:
    """
    Coordinates the alias dictionary, LAS header reading and the change session.

    The session owns the live dictionary; the manager loads it from and saves
    it to CSV, feeds analyzed files into the session, and remembers what was
    committed for ListNamesAlias export.
    """

    def __init__(
        self,
        storage: Optional[DictionaryStorage] = None,
        reader: Optional[LasHeaderReader] = None,
        session: Optional[ChangeSession] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the manager.

        Args:
            storage: CSV codec (created from settings if not provided)
            reader: LAS header reader (created if not provided)
            session: Change session (created empty if not provided)
            settings: Settings to use instead of the module defaults
        """
        self.settings = settings or default_settings
        self.storage = storage or DictionaryStorage(self.settings.database_path)
        self.reader = reader or LasHeaderReader()
        self.session = session or ChangeSession()
        self.dictionary_path: Optional[Path] = None

        # Committed user edits, exported to ListNamesAlias.txt on request.
        # Keyed by normalized field name; a name is in at most one of the two.
        self._user_mappings: dict[str, tuple[str, str]] = {}
        self._user_ignored: dict[str, str] = {}

    @property
    def user_mappings(self) -> dict[str, str]:
        """Committed field name -> base name, first spelling of each field kept."""
        return {field_name: base_name for field_name, base_name in self._user_mappings.values()}

    @property
    def user_ignored(self) -> list[str]:
        return list(self._user_ignored.values())

    def remember_mapping(self, field_name: str, base_name: str) -> None:
        key = normalize_key(field_name)
        spelling = self._user_ignored.pop(key, field_name.strip())
        if key in self._user_mappings:
            spelling = self._user_mappings[key][0]
        self._user_mappings[key] = (spelling, base_name)

    def remember_ignored(self, field_name: str) -> None:
        key = normalize_key(field_name)
        if key in self._user_mappings:
            self._user_ignored[key] = self._user_mappings.pop(key)[0]
        else:
            self._user_ignored.setdefault(key, field_name.strip())

    def forget(self, field_name: str) -> None:
        key = normalize_key(field_name)
        self._user_mappings.pop(key, None)
        self._user_ignored.pop(key, None)

    @property
    def dictionary(self) -> AliasDictionary:
        return self.session.dictionary

    @property
    def is_dictionary_loaded(self) -> bool:
        return self.dictionary_path is not None

    # Dictionary

    def load_dictionary(self, path: Optional[PathLike] = None) -> LoadReport:
        """
        Load a CSV dictionary and re-classify every loaded curve against it.

        Pending edits are dropped.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        path = Path(path or self.settings.database_path)
        if not path.is_file():
            raise FileNotFoundError(f"Dictionary file not found: {path}")

        dictionary, report = self.storage.load(path)
        self.session.replace_dictionary(dictionary)
        self.dictionary_path = path
        return report

    def save_dictionary(self, path: Optional[PathLike] = None) -> Path:
        """
        Write the dictionary to CSV.

        Args:
            path: Target file (defaults to the file it was loaded from)

        Raises:
            DictionaryNotLoadedError: If no path is given and none is known
        """
        target = Path(path) if path else self.dictionary_path
        if target is None:
            raise DictionaryNotLoadedError("No dictionary file to save to")

        self.dictionary_path = self.storage.save(self.dictionary, target)
        return self.dictionary_path

    def _autosave(self) -> None:
        if self.settings.autosave_dictionary and self.dictionary_path is not None:
            self.save_dictionary()

    def add_base_name(self, name: str) -> bool:
        added = self.session.add_base_name(name)
        if added:
            self._autosave()
        return added

    def remove_base_name(self, name: str) -> bool:
        """
        Remove a base name and its aliases.

        Raises:
            BaseNameInUseError: If loaded curves still refer to it
        """
        removed = self.session.remove_base_name(name)
        if removed:
            self._autosave()
        return removed

    def rename_base_name(self, old_name: str, new_name: str) -> bool:
        renamed = self.session.rename_base_name(old_name, new_name)
        if renamed:
            self._autosave()
        return renamed

    def commit(self) -> CommitResult:
        """
        Commit pending edits, save the dictionary and remember them for export.

        Each committed field name is recorded with what the dictionary says
        about it afterwards, so the last edit of a name wins.
        """
        result = self.session.commit()

        touched = [*result.mappings, *result.ignored_names, *result.removed_names]
        for field_name in touched:
            classification = self.dictionary.classify(field_name)
            if classification.is_mapped:
                self.remember_mapping(field_name, classification.base_name)
            elif classification.is_ignored:
                self.remember_ignored(field_name)
            else:
                self.forget(field_name)

        self._autosave()
        return result

    # LAS files

    def read_file(self, path: PathLike) -> LasFileContent:
        return self.reader.read(path)

    def analyze_file(self, path: PathLike) -> FileAnalysis:
        """
        Read one LAS file and classify its curves.

        Read errors are captured in the result instead of raised.
        """
        content = self._read_or_error(Path(path))
        if isinstance(content, FileAnalysis):
            return content
        return self._classify(content)

    def _classify(self, content: LasFileContent) -> FileAnalysis:
        classification = FileClassifier(self.dictionary).classify(content.curves)
        return FileAnalysis(
            file_path=content.file_path,
            file_size=content.file_size,
            well_info=content.well_info,
            total_curves=len(content.curves),
            classification=classification,
        )

    def _read_or_error(self, path: Path) -> Union[LasFileContent, FileAnalysis]:
        try:
            return self.reader.read(path)
        except Exception as e:
            logger.warning(f"Failed to read {path}: {e}")
            return FileAnalysis(file_path=str(path), error=str(e))

    def analyze_directory(
        self, directory: Optional[PathLike] = None, recursive: Optional[bool] = None
    ) -> list[FileAnalysis]:
        """
        Analyze every LAS file under a directory.

        Headers are parsed on a thread pool; classification runs on the
        calling thread so the dictionary is never read concurrently with a
        write. A file that fails to parse yields a result with an error and
        does not stop the batch.

        Args:
            directory: Folder to scan (defaults to LAS_DIRECTORY)
            recursive: Include subfolders (defaults to INCLUDE_SUBFOLDERS)

        Returns:
            One analysis per file, in path order
        """
        directory = directory or self.settings.las_directory
        if directory is None:
            raise ValueError("No LAS directory given")
        if recursive is None:
            recursive = self.settings.include_subfolders

        paths = find_las_files(directory, recursive=recursive)
        logger.info(f"Found {len(paths)} LAS file(s) in {directory}")
        if not paths:
            return []

        workers = max(1, min(self.settings.max_parse_workers, len(paths)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            parsed = list(executor.map(self._read_or_error, paths))

        return [
            item if isinstance(item, FileAnalysis) else self._classify(item) for item in parsed
        ]

    def load_folder(
        self, directory: Optional[PathLike] = None, recursive: Optional[bool] = None
    ) -> SessionSummary:
        """Analyze a directory and replace the session's files with the results."""
        self.session.load_files(self.analyze_directory(directory, recursive))
        return self.session.summary

    @staticmethod
    def get_all_unknown_curves(analyses: Iterable[FileAnalysis]) -> list[str]:
        """Unique unknown curve names across results, first spelling kept."""
        seen: set[str] = set()
        names = []
        for analysis in analyses:
            for name in analysis.classification.unknown_field_names:
                if normalize_key(name) not in seen:
                    seen.add(normalize_key(name))
                    names.append(name)
        return names

    @staticmethod
    def get_unknown_curves_grouped(analyses: Iterable[FileAnalysis]) -> dict[str, list[str]]:
        """Unknown curve name -> paths of the files it occurs in."""
        grouped: dict[str, list[str]] = {}
        spelling: dict[str, str] = {}
        for analysis in analyses:
            for name in analysis.classification.unknown_field_names:
                display = spelling.setdefault(normalize_key(name), name)
                files = grouped.setdefault(display, [])
                if analysis.file_path not in files:
                    files.append(analysis.file_path)
        return grouped

    # Export

    def export_list_names(self, path: PathLike, user_defined_only: bool = True) -> int:
        """
        Write mappings to a ListNamesAlias.txt file.

        An existing file is merged with and re-sorted; otherwise a new one is
        created.

        Args:
            path: Output file
            user_defined_only: Export only what this manager committed,
                instead of the whole dictionary

        Returns:
            Number of entries in the file
        """
        if user_defined_only:
            aliases: dict[str, list[str]] = {}
            for field_name, base_name in self._user_mappings.values():
                aliases.setdefault(base_name, []).append(field_name)
            ignored = self.user_ignored
        else:
            aliases = self.dictionary.get_all_aliases_grouped()
            ignored = self.dictionary.get_all_ignored_names()

        return self._write_list_names(Path(path), aliases, ignored)

    def export_selected(self, path: PathLike) -> int:
        """
        Write the curves selected for export to a ListNamesAlias.txt file.

        Rows use their current (possibly uncommitted) value. Rows set to
        IGNORE_MARKER are listed as ignored, rows set to NEW_BASE_MARKER
        become a base name of their own and empty rows are skipped.

        Returns:
            Number of selected curves exported

        Raises:
            ValueError: If no selected curve has a value to export
        """
        aliases: dict[str, list[str]] = {}
        base_spelling: dict[str, str] = {}
        ignored: dict[str, str] = {}
        exported = 0

        for row in self.session.selected_rows():
            value = row.assigned_base_name.strip()
            field_name = row.field_name.strip()
            if not value or not field_name:
                continue
            exported += 1
            if value == IGNORE_MARKER:
                ignored.setdefault(normalize_key(field_name), field_name)
                continue

            base_name = field_name if value == NEW_BASE_MARKER else value
            base_name = base_spelling.setdefault(
                normalize_key(base_name), self.dictionary.get_base_name(base_name) or base_name
            )
            fields = aliases.setdefault(base_name, [])
            if normalize_key(field_name) not in {normalize_key(f) for f in fields}:
                fields.append(field_name)

        if not exported:
            raise ValueError("No selected curves to export")

        self._write_list_names(Path(path), aliases, list(ignored.values()))
        logger.info(f"Exported {exported} selected curve(s) to {path}")
        return exported

    def _write_list_names(
        self, path: Path, aliases: dict[str, list[str]], ignored: list[str]
    ) -> int:
        """Merge into an existing file, otherwise create a new one."""
        exporter = ListNamesAliasExporter(self.settings.list_names_encoding)
        if path.exists():
            return exporter.append_and_sort(path, aliases, ignored)
        return exporter.export(path, aliases, ignored)

    def clear_export_history(self) -> None:
        self._user_mappings.clear()
        self._user_ignored.clear()
