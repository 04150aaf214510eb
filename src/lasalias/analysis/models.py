"""Data models for per-file curve classification."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from ..dictionary.models import CurveClassification
from ..las.models import WellInfo


class ClassifiedCurve(BaseModel):
    """One curve occurrence and how it resolved."""

    field_name: str
    classification: CurveClassification
    base_name: Optional[str] = None
    position: int  # Index in the file's ~Curve section
    units: str = ""
    description: str = ""


class FileClassification(BaseModel):
    """Curves of one file partitioned into mapped, ignored and unknown."""

    mapped: dict[str, list[ClassifiedCurve]] = Field(default_factory=dict)  # base name -> curves
    ignored: list[ClassifiedCurve] = Field(default_factory=list)
    unknown: list[ClassifiedCurve] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(len(curves) for curves in self.mapped.values()) + len(self.ignored) + len(
            self.unknown
        )

    @property
    def mapped_field_names(self) -> dict[str, list[str]]:
        return {base: [c.field_name for c in curves] for base, curves in self.mapped.items()}

    @property
    def ignored_field_names(self) -> list[str]:
        return [c.field_name for c in self.ignored]

    @property
    def unknown_field_names(self) -> list[str]:
        return [c.field_name for c in self.unknown]

    def all_curves(self) -> list[ClassifiedCurve]:
        """Every curve, mapped groups first, then ignored, then unknown."""
        curves = [c for group in self.mapped.values() for c in group]
        return curves + self.ignored + self.unknown


class FileAnalysis(BaseModel):
    """Result of reading and classifying one LAS file."""

    file_path: str
    file_size: int = 0
    well_info: WellInfo = Field(default_factory=WellInfo)
    total_curves: int = 0
    classification: FileClassification = Field(default_factory=FileClassification)
    error: Optional[str] = None

    @property
    def file_name(self) -> str:
        return Path(self.file_path).name

    @property
    def has_error(self) -> bool:
        return bool(self.error)

    @property
    def has_unknown(self) -> bool:
        return bool(self.classification.unknown)

    def __str__(self) -> str:
        if self.has_error:
            return f"{self.file_name}: ERROR - {self.error}"
        c = self.classification
        mapped = c.total - len(c.ignored) - len(c.unknown)
        return (
            f"{self.file_name}: {self.total_curves} curves "
            f"({mapped} mapped, {len(c.ignored)} ignored, {len(c.unknown)} unknown)"
        )
