"""In-memory alias dictionary: field names resolved to canonical base names."""

import logging
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional

from .models import Classification, CurveClassification, DictionaryStatistics

logger = logging.getLogger(__name__)


def normalize_key(name: Optional[str]) -> str:
    """Return the lookup key for a name: trimmed and case-folded."""
    if name is None:
        return ""
    return name.strip().casefold()


def _sort_key(name: str) -> tuple[str, str]:
    return (name.casefold(), name)


class AliasDictionary:
    """
    Bidirectional mapping between field names and canonical base names.

    Every known field name maps either to a base name or to nothing (ignored).
    Base names map to themselves. Keys are trimmed and compared
    case-insensitively; the stored spelling is the one seen first.

    Invariants kept by every public mutation:
        1. every base name has a self-mapping entry;
        2. no name is both a base name and ignored;
        3. removing a base name removes every field mapped to it;
        4. no field maps to a base name that is not in the base set.
    """

    def __init__(self):
        # key -> display spelling of the field name
        self._field_names: dict[str, str] = {}
        # key -> key of the base name, or None when ignored
        self._field_to_base: dict[str, Optional[str]] = {}
        # key -> display spelling of the base name
        self._base_names: dict[str, str] = {}

    # Lookup

    def classify(self, name: str) -> Classification:
        """
        Classify a field name in a single lookup.

        This is the only sanctioned way to ask whether a name is mapped,
        ignored or unknown.
        """
        key = normalize_key(name)
        if key not in self._field_to_base:
            return Classification(kind=CurveClassification.UNKNOWN)

        base_key = self._field_to_base[key]
        if base_key is None:
            return Classification(kind=CurveClassification.IGNORED)
        return Classification(kind=CurveClassification.MAPPED, base_name=self._base_names[base_key])

    def is_base_name(self, name: str) -> bool:
        return normalize_key(name) in self._base_names

    def get_base_name(self, name: str) -> Optional[str]:
        """Return the stored spelling of a base name, or None."""
        return self._base_names.get(normalize_key(name))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_key(name) in self._field_to_base

    def __len__(self) -> int:
        return len(self._field_to_base)

    # Mutation

    def add_base_name(self, name: str, aliases: Optional[Iterable[str]] = None) -> None:
        """
        Add a base name and, optionally, field names that resolve to it.

        Re-adding an existing base name only adds the aliases that are new.
        An alias that is itself another base name is skipped.

        Args:
            name: The canonical base name
            aliases: Field names to map to it

        Raises:
            ValueError: If the base name is empty
        """
        base_key = normalize_key(name)
        if not base_key:
            raise ValueError("Base name must not be empty")

        if base_key not in self._base_names:
            self._base_names[base_key] = self._field_names.get(base_key, name.strip())
        self._set_mapping(base_key, name, base_key)

        for alias in aliases or ():
            alias_key = normalize_key(alias)
            if not alias_key or alias_key == base_key:
                continue
            if alias_key in self._base_names:
                logger.warning(
                    f"Skipping alias '{alias.strip()}' for '{self._base_names[base_key]}': "
                    f"it is a base name itself"
                )
                continue
            self._set_mapping(alias_key, alias, base_key)

    def add_alias_to_base(self, base_name: str, field_name: str) -> bool:
        """
        Map a field name to an existing base name.

        Overwrites any previous mapping or ignore state of the field name.

        Returns:
            True on success, False if the base name is unknown, the field name
            is empty, or the field name is a different base name
        """
        base_key = normalize_key(base_name)
        field_key = normalize_key(field_name)

        if base_key not in self._base_names or not field_key:
            return False
        if field_key in self._base_names and field_key != base_key:
            return False

        self._set_mapping(field_key, field_name, base_key)
        return True

    def add_ignored(self, name: str) -> bool:
        """Mark a field name as ignored. Base names cannot be ignored."""
        key = normalize_key(name)
        if not key or key in self._base_names:
            return False

        self._set_mapping(key, name, None)
        return True

    def remove_base_name(self, name: str) -> bool:
        """
        Remove a base name together with every field name mapped to it.

        Returns:
            True if the base name existed and was removed
        """
        base_key = normalize_key(name)
        if base_key not in self._base_names:
            return False

        dependents = [key for key, value in self._field_to_base.items() if value == base_key]
        for key in dependents:
            del self._field_to_base[key]
            del self._field_names[key]
        del self._base_names[base_key]

        logger.debug(f"Removed base name '{name.strip()}' and {len(dependents) - 1} alias(es)")
        return True

    def remove_field_name(self, name: str) -> bool:
        """Remove a single alias or ignored entry. Base names are refused."""
        key = normalize_key(name)
        if key in self._base_names or key not in self._field_to_base:
            return False

        del self._field_to_base[key]
        del self._field_names[key]
        return True

    def rename_base_name(self, old_name: str, new_name: str) -> bool:
        """
        Rename a base name, carrying all of its aliases over.

        The rename is all-or-nothing: if anything fails half way the dictionary
        is restored to its state before the call.

        Returns:
            True if renamed; False if the old name is not a base name, the new
            name is empty, or the new name is already another base name
        """
        old_key = normalize_key(old_name)
        new_key = normalize_key(new_name)

        if old_key not in self._base_names or not new_key:
            return False

        if old_key == new_key:
            # Only the spelling changes
            self._base_names[old_key] = new_name.strip()
            self._field_names[old_key] = new_name.strip()
            return True

        if new_key in self._base_names:
            return False

        aliases = self.get_aliases_for_base(old_name)
        with self.restore_on_error():
            self.add_base_name(new_name, aliases)
            self.remove_base_name(old_name)

        logger.info(f"Renamed base name '{old_name.strip()}' -> '{new_name.strip()}'")
        return True

    def clear(self) -> None:
        """Remove everything."""
        self._field_names.clear()
        self._field_to_base.clear()
        self._base_names.clear()

    # Enumeration

    def get_all_base_names(self) -> list[str]:
        """All base names, sorted case-insensitively."""
        return sorted(self._base_names.values(), key=_sort_key)

    def get_all_ignored_names(self) -> list[str]:
        """All ignored names, sorted case-insensitively."""
        return sorted(
            (self._field_names[key] for key, base in self._field_to_base.items() if base is None),
            key=_sort_key,
        )

    def get_aliases_for_base(self, base_name: str) -> list[str]:
        """Field names mapped to a base name, excluding the base name itself."""
        base_key = normalize_key(base_name)
        return sorted(
            (
                self._field_names[key]
                for key, value in self._field_to_base.items()
                if value == base_key and key != base_key
            ),
            key=_sort_key,
        )

    def get_all_aliases_grouped(self) -> dict[str, list[str]]:
        """Base name -> sorted aliases, for export."""
        return {name: self.get_aliases_for_base(name) for name in self.get_all_base_names()}

    def get_statistics(self) -> DictionaryStatistics:
        base_count = len(self._base_names)
        ignored_count = sum(1 for value in self._field_to_base.values() if value is None)
        mapped_count = len(self._field_to_base) - ignored_count
        return DictionaryStatistics(
            base_count=base_count,
            alias_count=mapped_count - base_count,
            ignored_count=ignored_count,
        )

    def copy(self) -> "AliasDictionary":
        clone = AliasDictionary()
        clone._field_names = dict(self._field_names)
        clone._field_to_base = dict(self._field_to_base)
        clone._base_names = dict(self._base_names)
        return clone

    @contextmanager
    def restore_on_error(self) -> Iterator[None]:
        """Roll every change made inside the block back if it raises."""
        snapshot = (dict(self._field_names), dict(self._field_to_base), dict(self._base_names))
        try:
            yield
        except Exception:
            self._field_names, self._field_to_base, self._base_names = snapshot
            logger.exception("Dictionary change failed; previous state restored")
            raise

    # Internals

    def _set_mapping(self, key: str, name: str, base_key: Optional[str]) -> None:
        self._field_names.setdefault(key, name.strip())
        self._field_to_base[key] = base_key
