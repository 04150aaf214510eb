"""Data models for the editing session."""

from dataclasses import dataclass, field
from typing import Optional

from pydantic import BaseModel, Field

from ..dictionary.models import Classification, CurveClassification, LasAliasError
from ..las.models import WellInfo

IGNORE_MARKER = "[IGNORE]"
NEW_BASE_MARKER = "[NEW NAME]"
EMPTY_MARKER = ""

MARKERS = (EMPTY_MARKER, IGNORE_MARKER, NEW_BASE_MARKER)


def value_for(classification: Classification) -> str:
    """The row value that represents a dictionary classification."""
    if classification.is_mapped:
        return classification.base_name
    if classification.is_ignored:
        return IGNORE_MARKER
    return EMPTY_MARKER


@dataclass(eq=False)
class CurveRow:
    """
    One occurrence of a field name inside one loaded file.

    Rows hold plain strings, never references into the dictionary.
    Compared by identity: two occurrences of the same mnemonic are two rows.
    """

    file_id: str
    field_name: str
    position: int = 0
    assigned_base_name: str = EMPTY_MARKER
    original_base_name: str = EMPTY_MARKER
    classification: CurveClassification = CurveClassification.UNKNOWN
    units: str = ""
    description: str = ""
    is_modified: bool = False
    selected_for_export: bool = False

    def assign(self, value: Optional[str]) -> str:
        """Set the assigned value and return the previous one."""
        previous = self.assigned_base_name
        self.assigned_base_name = value or EMPTY_MARKER
        self.is_modified = self.assigned_base_name != self.original_base_name
        return previous

    def reset(self, classification: Classification) -> None:
        """Make the dictionary's view of this field the new committed state."""
        value = value_for(classification)
        self.classification = classification.kind
        self.original_base_name = value
        self.assigned_base_name = value
        self.is_modified = False

    @property
    def status(self) -> str:
        if self.is_modified:
            return "modified"
        return self.classification.value

    @property
    def is_unknown(self) -> bool:
        return not self.is_modified and self.classification == CurveClassification.UNKNOWN


@dataclass(eq=False)
class LoadedFile:
    """A LAS file whose curves are open in the session."""

    file_id: str
    file_name: str
    file_size: int = 0
    well_info: WellInfo = field(default_factory=WellInfo)
    rows: list[CurveRow] = field(default_factory=list)

    @property
    def curve_count(self) -> int:
        return len(self.rows)

    @property
    def unknown_count(self) -> int:
        return sum(1 for row in self.rows if row.is_unknown)

    @property
    def ignored_count(self) -> int:
        return sum(1 for row in self.rows if row.classification == CurveClassification.IGNORED)

    @property
    def mapped_count(self) -> int:
        return sum(1 for row in self.rows if row.classification == CurveClassification.MAPPED)

    @property
    def modified_count(self) -> int:
        return sum(1 for row in self.rows if row.is_modified)

    @property
    def has_unknown(self) -> bool:
        return self.unknown_count > 0

    @property
    def has_modified(self) -> bool:
        return any(row.is_modified for row in self.rows)


class SessionSummary(BaseModel):
    """Aggregates over every loaded file, recomputed after each change."""

    total_files: int = 0
    failed_files: int = 0
    total_curves: int = 0
    unknown_count: int = 0
    unsaved_changes_count: int = 0
    has_unsaved_changes: bool = False
    can_undo: bool = False
    selected_count: int = 0


class CommitFailure(BaseModel):
    """A pending edit the dictionary refused."""

    file_id: str
    field_name: str
    value: str
    reason: str


class CommitResult(BaseModel):
    """Outcome of committing pending edits to the dictionary."""

    applied: int = 0
    mappings: dict[str, str] = Field(default_factory=dict)  # field name -> base name
    new_base_names: list[str] = Field(default_factory=list)
    ignored_names: list[str] = Field(default_factory=list)
    removed_names: list[str] = Field(default_factory=list)
    failures: list[CommitFailure] = Field(default_factory=list)
    rows_refreshed: int = 0

    @property
    def success(self) -> bool:
        return not self.failures


class FileNotLoadedError(LasAliasError):
    """Exception raised when a file id is not part of the session."""

    pass


class RowNotFoundError(LasAliasError):
    """Exception raised when a curve row cannot be located."""

    pass
