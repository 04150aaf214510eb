"""LAS header reading and directory scanning."""

import logging
from pathlib import Path
from typing import Any, Iterable, Optional, Union

import lasio

from .models import CurveDefinition, LasFileContent, WellInfo

logger = logging.getLogger(__name__)

LAS_NULL_VALUES = {"-999.25", "-999.2500", "-9999.25", "null", "-999", "-9999"}
LAS_PATTERNS = ("*.las", "*.LAS")


def parse_depth(value: Any) -> Optional[float]:
    """
    Parse a STRT/STOP/STEP header value.

    Returns None for blanks, LAS null sentinels and anything non-numeric.
    Accepts a comma as the decimal separator.
    """
    if value is None:
        return None

    text = str(value).strip()
    if not text or text.lower() in LAS_NULL_VALUES:
        return None

    try:
        number = float(text.replace(",", "."))
    except ValueError:
        return None

    if f"{number:g}" in LAS_NULL_VALUES:
        return None
    return number


def find_las_files(directory: Union[str, Path], recursive: bool = True) -> list[Path]:
    """
    Find LAS files under a directory.

    Matches both .las and .LAS; on case-insensitive file systems the same
    file is reported once.
    """
    root = Path(directory)
    if not root.is_dir():
        raise NotADirectoryError(f"Not a directory: {root}")

    seen: set[str] = set()
    found: list[Path] = []
    for pattern in LAS_PATTERNS:
        matches = root.rglob(pattern) if recursive else root.glob(pattern)
        for path in matches:
            key = str(path).casefold()
            if key in seen or not path.is_file():
                continue
            seen.add(key)
            found.append(path)

    return sorted(found)


class LasHeaderReader:
    """Reads the ~Well and ~Curve sections of a LAS file through lasio."""

    def read(self, file_path: Union[str, Path]) -> LasFileContent:
        """
        Parse a LAS file header.

        Curve mnemonics are reported as written in the file, so a mnemonic
        repeated in the ~Curve section appears once per occurrence.

        Raises:
            OSError: If the file cannot be read
            Exception: Whatever lasio raises for a malformed file
        """
        path = Path(file_path)
        las = lasio.read(str(path), ignore_data=True)

        return LasFileContent(
            file_path=str(path),
            file_size=path.stat().st_size,
            well_info=self._well_info(las),
            curves=list(self._curves(las)),
        )

    @staticmethod
    def _curves(las: "lasio.LASFile") -> Iterable[CurveDefinition]:
        for curve in las.curves:
            mnemonic = (getattr(curve, "original_mnemonic", None) or curve.mnemonic or "").strip()
            if not mnemonic:
                continue
            yield CurveDefinition(
                mnemonic=mnemonic,
                units=str(curve.unit or "").strip(),
                data=str(curve.value or "").strip(),
                description=str(curve.descr or "").strip(),
            )

    @staticmethod
    def _well_info(las: "lasio.LASFile") -> WellInfo:
        info = WellInfo()
        for item in las.well:
            mnemonic = item.mnemonic.upper()
            if mnemonic == "STRT":
                info.start = parse_depth(item.value)
                info.depth_unit = str(item.unit or "").strip()
            elif mnemonic == "STOP":
                info.stop = parse_depth(item.value)
            elif mnemonic == "STEP":
                info.step = parse_depth(item.value)
            elif mnemonic == "WELL":
                info.well_name = str(item.value or "").strip()
        return info
