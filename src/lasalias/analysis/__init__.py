"""Per-file classification of curve mnemonics."""

from .models import ClassifiedCurve, FileClassification, FileAnalysis
from .classifier import FileClassifier

__all__ = [
    "ClassifiedCurve",
    "FileClassification",
    "FileAnalysis",
    "FileClassifier",
]
