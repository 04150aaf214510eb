"""Apply the mappings of one file to the other loaded files."""

import logging
from typing import TYPE_CHECKING

from ..dictionary import normalize_key

if TYPE_CHECKING:
    from .change_session import ChangeSession

logger = logging.getLogger(__name__)


class BatchPropagator:
    """
    Copies a reference file's assigned values onto same-named curves elsewhere.

    Edits go through the session's record_assignment inside one undo batch,
    so the whole operation is undone in a single step.
    """

    def __init__(self, session: "ChangeSession"):
        self.session = session

    def build_mapping(self, reference_file_id: str) -> dict[str, str]:
        """
        Field name key -> assigned value for the reference file.

        Rows with no assigned value are skipped; on duplicate field names the
        first occurrence wins.
        """
        mapping: dict[str, str] = {}
        for row in self.session.get_file(reference_file_id).rows:
            if not row.assigned_base_name:
                continue
            mapping.setdefault(normalize_key(row.field_name), row.assigned_base_name)
        return mapping

    def propagate(self, reference_file_id: str) -> int:
        """
        Apply the reference file's mappings to every other loaded file.

        Rows with no matching field name, or already holding the target value,
        are left alone and not recorded.

        Args:
            reference_file_id: The file whose assignments are copied

        Returns:
            Number of rows changed

        Raises:
            FileNotLoadedError: If the reference file is not loaded
        """
        mapping = self.build_mapping(reference_file_id)
        if not mapping:
            return 0

        session = self.session
        changed = 0
        with session._bulk(), session.undo_log.batch(f"apply {reference_file_id} to all files"):
            for file_id, loaded in session.files.items():
                if file_id == reference_file_id:
                    continue
                for row in loaded.rows:
                    target = mapping.get(normalize_key(row.field_name))
                    if target is None or row.assigned_base_name == target:
                        continue
                    if session.record_assignment(row, target):
                        changed += 1

        logger.info(f"Applied mappings from {reference_file_id} to {changed} row(s)")
        return changed
