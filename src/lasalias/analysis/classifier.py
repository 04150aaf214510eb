"""Partition a file's curve mnemonics against the alias dictionary."""

import logging
from typing import Sequence, Union

from ..dictionary import AliasDictionary, CurveClassification
from ..las.models import CurveDefinition
from .models import ClassifiedCurve, FileClassification

logger = logging.getLogger(__name__)


class FileClassifier:
    """
    Buckets raw curve mnemonics into mapped, ignored and unknown.

    Every input mnemonic lands in exactly one bucket, once per occurrence;
    repeated mnemonics are not collapsed. Order inside each bucket follows
    the input order. The dictionary is only read.
    """

    def __init__(self, dictionary: AliasDictionary):
        self.dictionary = dictionary

    def classify(
        self, curves: Sequence[Union[CurveDefinition, str]]
    ) -> FileClassification:
        """
        Classify one file's curves.

        Args:
            curves: Curve definitions (or bare mnemonics) in file order

        Returns:
            FileClassification with the three groups
        """
        result = FileClassification()

        for position, curve in enumerate(curves):
            if isinstance(curve, str):
                curve = CurveDefinition(mnemonic=curve)

            field_name = curve.mnemonic.strip()
            lookup = self.dictionary.classify(field_name)
            entry = ClassifiedCurve(
                field_name=field_name,
                classification=lookup.kind,
                base_name=lookup.base_name,
                position=position,
                units=curve.units,
                description=curve.description,
            )

            if lookup.kind == CurveClassification.MAPPED:
                result.mapped.setdefault(lookup.base_name, []).append(entry)
            elif lookup.kind == CurveClassification.IGNORED:
                result.ignored.append(entry)
            else:
                result.unknown.append(entry)

        logger.debug(
            f"Classified {len(curves)} curves: {len(result.mapped)} base names, "
            f"{len(result.ignored)} ignored, {len(result.unknown)} unknown"
        )
        return result
