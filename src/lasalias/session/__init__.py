"""Editing session: curve rows, pending edits, undo and batch propagation."""

from .models import (
    IGNORE_MARKER,
    NEW_BASE_MARKER,
    EMPTY_MARKER,
    MARKERS,
    CurveRow,
    LoadedFile,
    SessionSummary,
    CommitFailure,
    CommitResult,
    FileNotLoadedError,
    RowNotFoundError,
)
from .undo import UndoLog, UndoUnit, UndoEntry, RecordingSuppression
from .change_session import ChangeSession
from .propagation import BatchPropagator

__all__ = [
    "IGNORE_MARKER",
    "NEW_BASE_MARKER",
    "EMPTY_MARKER",
    "MARKERS",
    "CurveRow",
    "LoadedFile",
    "SessionSummary",
    "CommitFailure",
    "CommitResult",
    "FileNotLoadedError",
    "RowNotFoundError",
    "UndoLog",
    "UndoUnit",
    "UndoEntry",
    "RecordingSuppression",
    "ChangeSession",
    "BatchPropagator",
]
