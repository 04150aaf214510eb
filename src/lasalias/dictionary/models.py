"""Data models for the alias dictionary."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class CurveClassification(str, Enum):
    """How a field name resolves against the dictionary."""

    UNKNOWN = "unknown"  # No entry in the dictionary
    IGNORED = "ignored"  # Entry with no base name
    MAPPED = "mapped"  # Entry pointing at a base name


class Classification(BaseModel):
    """Result of a single dictionary lookup."""

    kind: CurveClassification
    base_name: Optional[str] = None

    @property
    def is_mapped(self) -> bool:
        return self.kind == CurveClassification.MAPPED

    @property
    def is_ignored(self) -> bool:
        return self.kind == CurveClassification.IGNORED

    @property
    def is_unknown(self) -> bool:
        return self.kind == CurveClassification.UNKNOWN


class DictionaryStatistics(BaseModel):
    """Counts describing a dictionary."""

    base_count: int
    alias_count: int  # Excludes base names mapped to themselves
    ignored_count: int


class RecordStatus(str, Enum):
    """Status column of the CSV dictionary format."""

    BASE = "base"
    ALIAS = "alias"
    IGNORE = "ignore"


class AliasRecord(BaseModel):
    """A single row of the CSV dictionary format."""

    field_name: str
    primary_name: str = ""
    status: str
    description: str = ""


class LoadReport(BaseModel):
    """Outcome of loading a dictionary file."""

    path: str
    records_read: int = 0
    records_skipped: int = 0
    warnings: list[str] = Field(default_factory=list)


class LasAliasError(Exception):
    """Base exception for LAS Alias Manager errors."""

    pass


class DictionaryNotLoadedError(LasAliasError):
    """Exception raised when an operation needs a dictionary file path but none is set."""

    pass


class BaseNameInUseError(LasAliasError):
    """Exception raised when removing a base name still referenced by loaded curves."""

    def __init__(self, base_name: str, usage_count: int):
        self.base_name = base_name
        self.usage_count = usage_count
        super().__init__(
            f"Base name '{base_name}' is used by {usage_count} curve(s); "
            f"remap those curves before removing it"
        )
