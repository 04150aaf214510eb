"""LAS header access: curve lists and depth range."""

from .models import CurveDefinition, WellInfo, LasFileContent
from .reader import LasHeaderReader, find_las_files, parse_depth

__all__ = [
    "CurveDefinition",
    "WellInfo",
    "LasFileContent",
    "LasHeaderReader",
    "find_las_files",
    "parse_depth",
]
