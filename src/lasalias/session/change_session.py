"""Editing session: pending curve mapping edits across a batch of LAS files."""

import logging
from contextlib import contextmanager
from typing import Callable, Iterable, Iterator, Optional

from ..analysis.models import FileAnalysis
from ..dictionary import AliasDictionary, BaseNameInUseError, Classification, normalize_key
from .models import (
    IGNORE_MARKER,
    NEW_BASE_MARKER,
    CommitFailure,
    CommitResult,
    CurveRow,
    FileNotLoadedError,
    LoadedFile,
    RowNotFoundError,
    SessionSummary,
)
from .undo import UndoLog

logger = logging.getLogger(__name__)

SummaryListener = Callable[[SessionSummary], None]


class ChangeSession:
    """
    Owns the curve rows of every loaded file and the single edit path.

    All row edits go through record_assignment, which the undo log observes.
    Nothing touches the dictionary until commit(). After every mutation the
    aggregates are recomputed and published to subscribers as one
    SessionSummary event.

    Not thread-safe: callers must serialize writes.
    """

    def __init__(self, dictionary: Optional[AliasDictionary] = None):
        self.dictionary = dictionary if dictionary is not None else AliasDictionary()
        self.undo_log = UndoLog()
        self.files: dict[str, LoadedFile] = {}
        self.failed_files: dict[str, str] = {}
        self.summary = SessionSummary()
        self._listeners: list[SummaryListener] = []
        self._bulk_depth = 0

    # Events

    def subscribe(self, listener: SummaryListener) -> Callable[[], None]:
        """Register a listener for summary updates. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        if self._bulk_depth:
            return

        rows = list(self.iter_rows())
        unsaved = sum(1 for row in rows if row.is_modified)
        self.summary = SessionSummary(
            total_files=len(self.files),
            failed_files=len(self.failed_files),
            total_curves=len(rows),
            unknown_count=sum(1 for row in rows if row.is_unknown),
            unsaved_changes_count=unsaved,
            has_unsaved_changes=unsaved > 0,
            can_undo=self.undo_log.can_undo,
            selected_count=sum(1 for row in rows if row.selected_for_export),
        )
        for listener in list(self._listeners):
            listener(self.summary)

    @contextmanager
    def _bulk(self) -> Iterator[None]:
        """Publish a single summary after a multi-row operation."""
        self._bulk_depth += 1
        try:
            yield
        finally:
            self._bulk_depth -= 1
            self._changed()

    # Files and rows

    def load_files(self, analyses: Iterable[FileAnalysis]) -> None:
        """Replace every loaded file. Undo history is discarded."""
        with self._bulk():
            self.files.clear()
            self.failed_files.clear()
            self.undo_log.clear()
            for analysis in analyses:
                self.add_file(analysis)

        logger.info(
            f"Session loaded {len(self.files)} file(s), {self.summary.total_curves} curves "
            f"({self.summary.unknown_count} unknown, {len(self.failed_files)} failed)"
        )

    def add_file(self, analysis: FileAnalysis) -> Optional[LoadedFile]:
        """
        Add one analyzed file to the session.

        Files that failed to parse are remembered with their error and kept out
        of the aggregates.
        """
        if analysis.has_error:
            self.failed_files[analysis.file_path] = analysis.error
            logger.warning(f"Not loading {analysis.file_name}: {analysis.error}")
            self._changed()
            return None

        loaded = LoadedFile(
            file_id=analysis.file_path,
            file_name=analysis.file_name,
            file_size=analysis.file_size,
            well_info=analysis.well_info,
        )
        for curve in analysis.classification.all_curves():
            row = CurveRow(
                file_id=loaded.file_id,
                field_name=curve.field_name,
                position=curve.position,
                units=curve.units,
                description=curve.description,
            )
            row.reset(Classification(kind=curve.classification, base_name=curve.base_name))
            loaded.rows.append(row)

        self.files[loaded.file_id] = loaded
        self._changed()
        return loaded

    def clear(self) -> None:
        """Close every file."""
        with self._bulk():
            self.files.clear()
            self.failed_files.clear()
            self.undo_log.clear()

    def get_file(self, file_id: str) -> LoadedFile:
        try:
            return self.files[file_id]
        except KeyError:
            raise FileNotLoadedError(f"File '{file_id}' is not loaded") from None

    def get_row(self, file_id: str, row_index: int) -> CurveRow:
        loaded = self.get_file(file_id)
        if not 0 <= row_index < len(loaded.rows):
            raise RowNotFoundError(f"Row {row_index} not found in '{loaded.file_name}'")
        return loaded.rows[row_index]

    def iter_rows(self) -> Iterator[CurveRow]:
        for loaded in self.files.values():
            yield from loaded.rows

    def rows_for_field(self, field_name: str) -> list[CurveRow]:
        key = normalize_key(field_name)
        return [row for row in self.iter_rows() if normalize_key(row.field_name) == key]

    # Editing

    def record_assignment(self, row: CurveRow, value: Optional[str]) -> bool:
        """
        Assign a value to a row through the single, undo-observed edit path.

        Args:
            row: The row to edit
            value: A base name, IGNORE_MARKER, NEW_BASE_MARKER or empty

        Returns:
            True if the value changed
        """
        new_value = value or ""
        if new_value == row.assigned_base_name:
            return False

        previous = row.assign(new_value)
        self.undo_log.push(row, previous)
        self._changed()
        return True

    def assign(self, file_id: str, row_index: int, value: Optional[str]) -> CurveRow:
        """Convenience wrapper addressing a row by file and index."""
        row = self.get_row(file_id, row_index)
        self.record_assignment(row, value)
        return row

    @property
    def can_undo(self) -> bool:
        return self.undo_log.can_undo

    def undo_last(self) -> bool:
        """
        Revert the most recent undo unit.

        Entries are replayed in recorded order through record_assignment with
        recording suppressed. A row edited more than once in the unit gets
        its earliest previous value. An empty log is a no-op.

        Returns:
            True if something was undone
        """
        unit = self.undo_log.pop_last()
        if unit is None:
            return False

        restored: set[int] = set()
        with self._bulk(), self.undo_log.suppress():
            for entry in unit.entries:
                if id(entry.row) in restored:
                    continue
                restored.add(id(entry.row))
                self.record_assignment(entry.row, entry.previous_value)

        logger.debug(f"Undid {len(unit)} edit(s)")
        return True

    def clear_changes(self) -> int:
        """Revert every modified row to its loaded value, as one undo unit."""
        modified = [row for row in self.iter_rows() if row.is_modified]
        with self._bulk(), self.undo_log.batch("clear changes"):
            for row in modified:
                self.record_assignment(row, row.original_base_name)
        return len(modified)

    def propagate(self, reference_file_id: str) -> int:
        """Apply one file's mappings to same-named curves in every other file."""
        from .propagation import BatchPropagator

        return BatchPropagator(self).propagate(reference_file_id)

    # Export selection

    def set_selected_for_export(self, file_id: str, row_index: int, selected: bool) -> CurveRow:
        """Mark one row for (or exclude it from) the selected-curves export. Not undoable."""
        row = self.get_row(file_id, row_index)
        if row.selected_for_export != selected:
            row.selected_for_export = selected
            self._changed()
        return row

    def select_all_for_export(self, file_id: Optional[str] = None) -> int:
        """Select every row of one file, or of every file. Returns how many rows changed."""
        return self._set_all_selected(True, file_id)

    def deselect_all_for_export(self, file_id: Optional[str] = None) -> int:
        return self._set_all_selected(False, file_id)

    def _set_all_selected(self, selected: bool, file_id: Optional[str]) -> int:
        rows = self.get_file(file_id).rows if file_id is not None else list(self.iter_rows())
        changed = 0
        with self._bulk():
            for row in rows:
                if row.selected_for_export != selected:
                    row.selected_for_export = selected
                    changed += 1
        return changed

    @property
    def selected_count(self) -> int:
        return sum(1 for row in self.iter_rows() if row.selected_for_export)

    def selected_rows(self) -> list[CurveRow]:
        return [row for row in self.iter_rows() if row.selected_for_export]

    # Commit

    def commit(self) -> CommitResult:
        """
        Write every pending edit into the dictionary.

        Afterwards every loaded row is re-read from the dictionary (an edit in
        one file can change rows with the same field name elsewhere), all rows
        become unmodified and the undo history is discarded.

        If applying an edit raises, the dictionary is restored to its state
        before the commit and the rows keep their pending edits.
        """
        result = CommitResult()
        modified = [row for row in self.iter_rows() if row.is_modified]

        with self.dictionary.restore_on_error():
            for row in modified:
                reason = self._apply_edit(row, result)
                if reason is None:
                    result.applied += 1
                else:
                    result.failures.append(
                        CommitFailure(
                            file_id=row.file_id,
                            field_name=row.field_name,
                            value=row.assigned_base_name,
                            reason=reason,
                        )
                    )
                    logger.warning(
                        f"Could not commit {row.field_name} -> '{row.assigned_base_name}': {reason}"
                    )

        with self._bulk(), self.undo_log.suppress():
            for row in self.iter_rows():
                before = (row.assigned_base_name, row.original_base_name, row.classification)
                row.reset(self.dictionary.classify(row.field_name))
                if before != (row.assigned_base_name, row.original_base_name, row.classification):
                    result.rows_refreshed += 1
            self.undo_log.clear()

        logger.info(
            f"Committed {result.applied} of {len(modified)} edit(s); "
            f"{result.rows_refreshed} row(s) refreshed"
        )
        return result

    def _apply_edit(self, row: CurveRow, result: CommitResult) -> Optional[str]:
        """Apply one row's pending value to the dictionary. Returns a failure reason or None."""
        dictionary = self.dictionary
        field_name = row.field_name
        value = row.assigned_base_name.strip()

        if not field_name.strip():
            return "empty field name"

        if value == IGNORE_MARKER:
            if not dictionary.add_ignored(field_name):
                return "base names cannot be ignored"
            result.ignored_names.append(field_name)
            return None

        if value == NEW_BASE_MARKER:
            dictionary.add_base_name(field_name, [field_name])
            base_name = dictionary.get_base_name(field_name)
            result.new_base_names.append(base_name)
            result.mappings[field_name] = base_name
            return None

        if not value:
            if dictionary.is_base_name(field_name):
                return "base names must be removed from the base name list"
            if dictionary.remove_field_name(field_name):
                result.removed_names.append(field_name)
            return None

        if dictionary.is_base_name(field_name) and normalize_key(field_name) != normalize_key(value):
            return f"'{field_name}' is itself a base name"

        if not dictionary.is_base_name(value):
            dictionary.add_base_name(value, [field_name])
            result.new_base_names.append(dictionary.get_base_name(value))
            result.mappings[field_name] = dictionary.get_base_name(value)
            return None

        if not dictionary.add_alias_to_base(value, field_name):
            return f"'{value}' is not a base name"
        result.mappings[field_name] = dictionary.get_base_name(value)
        return None

    # Dictionary changes that affect loaded rows

    def replace_dictionary(self, dictionary: AliasDictionary) -> None:
        """Swap in a newly loaded dictionary and re-classify every row. Pending edits are dropped."""
        self.dictionary = dictionary
        with self._bulk(), self.undo_log.suppress():
            for row in self.iter_rows():
                row.reset(dictionary.classify(row.field_name))
            self.undo_log.clear()

    def add_base_name(self, name: str) -> bool:
        """
        Add a base name to the dictionary directly.

        Returns:
            False if it already existed
        """
        if self.dictionary.is_base_name(name):
            return False
        self.dictionary.add_base_name(name)
        self._resync_rows()
        return True

    def count_usage(self, base_name: str) -> int:
        """Rows whose current or loaded value is the given base name."""
        key = normalize_key(base_name)
        return sum(
            1
            for row in self.iter_rows()
            if normalize_key(row.assigned_base_name) == key
            or normalize_key(row.original_base_name) == key
        )

    def remove_base_name(self, name: str) -> bool:
        """
        Remove a base name (and its aliases) from the dictionary.

        Raises:
            BaseNameInUseError: If any loaded row still refers to it
        """
        if not self.dictionary.is_base_name(name):
            return False

        usage = self.count_usage(name)
        if usage:
            raise BaseNameInUseError(self.dictionary.get_base_name(name), usage)

        self.dictionary.remove_base_name(name)
        self._resync_rows()
        return True

    def rename_base_name(self, old_name: str, new_name: str) -> bool:
        """
        Rename a base name and re-point every row that refers to it.

        The old name is not kept as an alias, so a curve literally named
        after the old base stays pointed at the new one as a pending edit.

        Returns:
            False if the dictionary refused the rename
        """
        if not self.dictionary.rename_base_name(old_name, new_name):
            return False

        new_display = self.dictionary.get_base_name(new_name)
        self._resync_rows(repoint=(normalize_key(old_name), new_display))

        logger.info(f"Rows re-pointed from '{old_name.strip()}' to '{new_display}'")
        return True

    def _resync_rows(self, repoint: Optional[tuple[str, str]] = None) -> int:
        """
        Re-read every row from the dictionary, keeping pending edits.

        The undo history is discarded only when some row changed, since its
        entries may no longer describe the rows.

        Args:
            repoint: (old key, new value) - rows assigned the old base name
                are assigned the new one instead

        Returns:
            Number of rows whose state changed
        """
        changed = 0
        with self._bulk(), self.undo_log.suppress():
            for row in self.iter_rows():
                before = (
                    row.assigned_base_name,
                    row.original_base_name,
                    row.classification,
                    row.is_modified,
                )
                pending = row.assigned_base_name if row.is_modified else None
                if repoint and normalize_key(row.assigned_base_name) == repoint[0]:
                    pending = repoint[1]
                row.reset(self.dictionary.classify(row.field_name))
                if pending is not None:
                    row.assign(pending)
                if before != (
                    row.assigned_base_name,
                    row.original_base_name,
                    row.classification,
                    row.is_modified,
                ):
                    changed += 1
            if changed:
                self.undo_log.clear()
        return changed
