"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Callable

import pytest

from lasalias.analysis import FileAnalysis, FileClassifier
from lasalias.config import Settings
from lasalias.dictionary import AliasDictionary
from lasalias.session import ChangeSession

SAMPLE_LAS = """~VERSION INFORMATION
 VERS.                  2.0 :   CWLS LOG ASCII STANDARD -VERSION 2.0
 WRAP.                   NO :   ONE LINE PER DEPTH STEP
~WELL INFORMATION
#MNEM.UNIT       DATA             DESCRIPTION
 STRT.M          {start}          : START DEPTH
 STOP.M          1700.0000        : STOP DEPTH
 STEP.M          0.1000           : STEP
 NULL.           -999.25          : NULL VALUE
 WELL.           TEST-1           : WELL
~CURVE INFORMATION
#MNEM.UNIT       API CODE         CURVE DESCRIPTION
{curves}
~A
{data}
"""


@pytest.fixture
def mock_settings(tmp_path: Path) -> Settings:
    """Create settings with test values."""
    return Settings(
        database_path=tmp_path / "aliases.csv",
        las_directory=None,
        include_subfolders=True,
        max_parse_workers=2,
        autosave_dictionary=False,
        list_names_encoding="cp1251",
        host="127.0.0.1",
        port=8000,
        debug=False,
        log_level="DEBUG",
        cors_allow_origins=["*"],
    )


@pytest.fixture
def dictionary() -> AliasDictionary:
    """A small dictionary: GR and RHOB with aliases, two ignored names."""
    d = AliasDictionary()
    d.add_base_name("GR", ["GR1", "GGK"])
    d.add_base_name("RHOB", ["DEN", "ZDEN"])
    d.add_base_name("CAL")
    d.add_ignored("TIME")
    d.add_ignored("TENS")
    return d


@pytest.fixture
def make_analysis(dictionary: AliasDictionary) -> Callable[..., FileAnalysis]:
    """Build a FileAnalysis from a list of mnemonics without touching disk."""

    def _make(file_path: str, mnemonics: list[str], error: str = None) -> FileAnalysis:
        if error:
            return FileAnalysis(file_path=file_path, error=error)
        return FileAnalysis(
            file_path=file_path,
            file_size=100,
            total_curves=len(mnemonics),
            classification=FileClassifier(dictionary).classify(mnemonics),
        )

    return _make


@pytest.fixture
def session(dictionary: AliasDictionary) -> ChangeSession:
    return ChangeSession(dictionary)


@pytest.fixture
def write_las(tmp_path: Path) -> Callable[..., Path]:
    """Write a minimal LAS 2.0 file and return its path."""

    def _write(name: str, mnemonics: list[str], start: str = "1600.0000") -> Path:
        curve_lines = "\n".join(
            f" {mnemonic:<6}.UNIT{i}          : curve {mnemonic}"
            for i, mnemonic in enumerate(mnemonics)
        )
        data = " ".join(str(float(i)) for i in range(len(mnemonics)))
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(SAMPLE_LAS.format(start=start, curves=curve_lines, data=data))
        return path

    return _write
