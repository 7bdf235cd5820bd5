# processing/apply_coordinator.py
"""Commit corrected text behind a backup, and roll it back on request.

The snapshot of the pre-edit note is always written before the live note is
overwritten. A failed snapshot never blocks the edit, but the returned
`ApplyOutcome` says so and carries a user-facing warning.
"""

from __future__ import annotations

import structlog

from core.document_store import BackupStore, DocumentStore, validate_note_id
from core.exceptions import (
    BackupWriteError,
    DocumentWriteError,
    NoBackupError,
    create_error_context,
    handle_storage_error,
)
from models import ApplyOutcome

logger = structlog.get_logger(__name__)

BACKUP_FAILED_WARNING = "Changes applied but backup could not be saved."


class ApplyCoordinator:
    """Apply and restore edits for one document store and its backup store."""

    def __init__(self, documents: DocumentStore, backups: BackupStore):
        self._documents = documents
        self._backups = backups

    def _save_backup(self, note_id: str, original_text: str) -> None:
        try:
            self._backups.save_backup(note_id, original_text)
        except BackupWriteError:
            raise
        except OSError as e:
            raise handle_storage_error("backup", e, note_id=note_id) from e

    def _write_document(self, note_id: str, text: str) -> None:
        try:
            self._documents.write(note_id, text)
        except DocumentWriteError:
            raise
        except OSError as e:
            raise handle_storage_error("write", e, note_id=note_id) from e

    def apply_correction(self, note_id: str, original_text: str, corrected_text: str) -> ApplyOutcome:
        """Snapshot `original_text`, then overwrite the live note with `corrected_text`.

        Raises:
            DocumentWriteError: If the live note could not be written. A backup
                saved just before remains available for restore.
        """
        validate_note_id(note_id)

        backup_saved = True
        warning: str | None = None
        try:
            self._save_backup(note_id, original_text)
        except BackupWriteError as e:
            backup_saved = False
            warning = BACKUP_FAILED_WARNING
            logger.error("Error saving backup; applying without one", note_id=note_id, error=str(e))

        self._write_document(note_id, corrected_text)

        if backup_saved:
            logger.info("Changes applied with backup", note_id=note_id)
        else:
            logger.warning("Changes applied without backup", note_id=note_id)
        return ApplyOutcome(note_id=note_id, applied=True, backup_saved=backup_saved, warning=warning)

    def has_backup(self, note_id: str) -> bool:
        return self._backups.has_backup(note_id)

    def restore_backup(self, note_id: str) -> str:
        """Replace the live note with its most recent snapshot.

        The snapshot is consumed; restoring does not itself create a backup.

        Returns:
            The restored text.

        Raises:
            NoBackupError: If no snapshot exists for `note_id`.
        """
        backup = self._backups.get_backup(note_id)
        if backup is None:
            raise NoBackupError(
                "No backup available",
                details=create_error_context(note_id=note_id),
            )

        self._write_document(note_id, backup.snapshot_text)
        self._backups.clear_backup(note_id)
        logger.info("Restored note from backup", note_id=note_id, backup_timestamp=backup.timestamp.isoformat())
        return backup.snapshot_text
