"""Data models for LAS header content."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class CurveDefinition(BaseModel):
    """One entry of the ~Curve section."""

    mnemonic: str
    units: str = ""
    data: str = ""  # API code / value column
    description: str = ""


class WellInfo(BaseModel):
    """Depth range from the ~Well section."""

    start: Optional[float] = None  # STRT
    stop: Optional[float] = None  # STOP
    step: Optional[float] = None  # STEP
    depth_unit: str = ""
    well_name: str = ""


class LasFileContent(BaseModel):
    """Header content of one LAS file."""

    file_path: str
    file_size: int = 0
    well_info: WellInfo = Field(default_factory=WellInfo)
    curves: list[CurveDefinition] = Field(default_factory=list)

    @property
    def file_name(self) -> str:
        return Path(self.file_path).name

    @property
    def curve_names(self) -> list[str]:
        return [curve.mnemonic for curve in self.curves]
