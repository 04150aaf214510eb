"""Alias dictionary: field names resolved to canonical base names."""

from .models import (
    CurveClassification,
    Classification,
    DictionaryStatistics,
    RecordStatus,
    AliasRecord,
    LoadReport,
    LasAliasError,
    DictionaryNotLoadedError,
    BaseNameInUseError,
)
from .alias_dictionary import AliasDictionary, normalize_key
from .storage import DictionaryStorage

__all__ = [
    "CurveClassification",
    "Classification",
    "DictionaryStatistics",
    "RecordStatus",
    "AliasRecord",
    "LoadReport",
    "LasAliasError",
    "DictionaryNotLoadedError",
    "BaseNameInUseError",
    "AliasDictionary",
    "normalize_key",
    "DictionaryStorage",
]
