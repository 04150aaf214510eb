"""Undo history for curve mapping edits."""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Optional

from .models import CurveRow

logger = logging.getLogger(__name__)


@dataclass
class UndoEntry:
    """A row and the value it held before an edit."""

    row: CurveRow
    previous_value: str


@dataclass
class UndoUnit:
    """One undo step: a single edit or a whole batch operation."""

    entries: list[UndoEntry] = field(default_factory=list)
    description: str = ""

    def __len__(self) -> int:
        return len(self.entries)


class RecordingSuppression:
    """
    Token held while bulk programmatic reassignment runs.

    Recording resumes when the token is released; releasing twice is harmless.
    """

    def __init__(self, log: "UndoLog"):
        self._log = log
        self._released = False
        log._suppression_depth += 1

    def release(self) -> None:
        if not self._released:
            self._released = True
            self._log._suppression_depth -= 1

    def __enter__(self) -> "RecordingSuppression":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


class UndoLog:
    """
    Stack of undo units.

    Edits pushed while a batch is open accumulate into one unit, so an
    "apply to all files" operation is undone in a single step. Nothing is
    recorded while a suppression token is held.
    """

    def __init__(self):
        self._units: list[UndoUnit] = []
        self._open_batch: Optional[UndoUnit] = None
        self._suppression_depth = 0

    @property
    def is_suppressed(self) -> bool:
        return self._suppression_depth > 0

    @property
    def in_batch(self) -> bool:
        return self._open_batch is not None

    @property
    def can_undo(self) -> bool:
        return bool(self._units)

    def __len__(self) -> int:
        return len(self._units)

    def suppress(self) -> RecordingSuppression:
        """Stop recording until the returned token is released (use as a context manager)."""
        return RecordingSuppression(self)

    def push(self, row: CurveRow, previous_value: str) -> None:
        """Record an edit as its own unit, or into the open batch."""
        if self.is_suppressed:
            return

        entry = UndoEntry(row=row, previous_value=previous_value)
        if self._open_batch is not None:
            self._open_batch.entries.append(entry)
        else:
            self._units.append(UndoUnit(entries=[entry]))

    def begin_batch(self, description: str = "") -> None:
        if self._open_batch is not None:
            raise RuntimeError("An undo batch is already open")
        self._open_batch = UndoUnit(description=description)

    def end_batch(self) -> Optional[UndoUnit]:
        """Close the open batch. Empty batches are dropped."""
        unit, self._open_batch = self._open_batch, None
        if unit is None or not unit.entries:
            return None
        self._units.append(unit)
        return unit

    @contextmanager
    def batch(self, description: str = "") -> Iterator[None]:
        """Group every edit made inside the block into one undo unit."""
        self.begin_batch(description)
        try:
            yield
        finally:
            self.end_batch()

    def pop_last(self) -> Optional[UndoUnit]:
        """Remove and return the most recent unit, or None when empty."""
        if not self._units:
            return None
        return self._units.pop()

    def clear(self) -> None:
        if self._units:
            logger.debug(f"Discarding {len(self._units)} undo unit(s)")
        self._units.clear()
        self._open_batch = None
