# core/document_store.py
"""Persist live note content and the single-slot pre-apply backup.

Two interchangeable implementations are provided for each store:

- In-memory stores, used by tests and embedding callers.
- File-backed stores: notes are files in a data directory, and each note's
  backup lives at ``<data_dir>/.backups/<note_id>.backup.md``.

Notes:
    The backup store keeps one slot per note. Saving overwrites the previous
    snapshot; there is no history. Writes go through a temporary file and
    ``os.replace`` so a crash never leaves a half-written note or snapshot.
"""

from __future__ import annotations

import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

import structlog

import config
from core.exceptions import ValidationError, create_error_context
from models import Backup

logger = structlog.get_logger(__name__)


def validate_note_id(note_id: str) -> str:
    """Reject note ids that could escape the data directory.

    Raises:
        ValidationError: If the id is empty, hidden, or contains a path separator.
    """
    if (
        not isinstance(note_id, str)
        or not note_id.strip()
        or note_id.startswith(".")
        or "/" in note_id
        or "\\" in note_id
        or "\x00" in note_id
    ):
        raise ValidationError(
            "Invalid note id",
            details=create_error_context(note_id=repr(note_id)),
        )
    return note_id


class DocumentStore(Protocol):
    def read(self, note_id: str) -> str: ...

    def write(self, note_id: str, text: str) -> None: ...


class BackupStore(Protocol):
    def save_backup(self, note_id: str, text: str) -> None: ...

    def has_backup(self, note_id: str) -> bool: ...

    def get_backup(self, note_id: str) -> Backup | None: ...

    def clear_backup(self, note_id: str) -> None: ...


class InMemoryDocumentStore:
    """Dictionary-backed live documents."""

    def __init__(self, documents: dict[str, str] | None = None) -> None:
        self._documents: dict[str, str] = dict(documents or {})

    def read(self, note_id: str) -> str:
        validate_note_id(note_id)
        try:
            return self._documents[note_id]
        except KeyError:
            raise FileNotFoundError(note_id) from None

    def write(self, note_id: str, text: str) -> None:
        validate_note_id(note_id)
        self._documents[note_id] = text


class InMemoryBackupStore:
    """Dictionary-backed single-slot backups."""

    def __init__(self) -> None:
        self._backups: dict[str, Backup] = {}

    def save_backup(self, note_id: str, text: str) -> None:
        validate_note_id(note_id)
        self._backups[note_id] = Backup(note_id=note_id, snapshot_text=text)

    def has_backup(self, note_id: str) -> bool:
        return note_id in self._backups

    def get_backup(self, note_id: str) -> Backup | None:
        return self._backups.get(note_id)

    def clear_backup(self, note_id: str) -> None:
        self._backups.pop(note_id, None)


def read_text_exact(path: Path) -> str:
    """Read UTF-8 text with line endings left untouched."""
    with open(path, encoding="utf-8", newline="") as handle:
        return handle.read()


def _atomic_write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


class FileDocumentStore:
    """Notes stored as UTF-8 files named by their note id."""

    def __init__(self, data_dir: str | Path | None = None) -> None:
        self.data_dir = Path(data_dir if data_dir is not None else config.DATA_DIR)

    def path_for(self, note_id: str) -> Path:
        return self.data_dir / validate_note_id(note_id)

    def read(self, note_id: str) -> str:
        return read_text_exact(self.path_for(note_id))

    def write(self, note_id: str, text: str) -> None:
        _atomic_write_text(self.path_for(note_id), text)
        logger.debug("Wrote note", note_id=note_id, length=len(text))


class FileBackupStore:
    """Latest-only backups under ``<data_dir>/<backups_dir_name>/``."""

    def __init__(self, data_dir: str | Path | None = None, backups_dir_name: str | None = None) -> None:
        base = Path(data_dir if data_dir is not None else config.DATA_DIR)
        self.backups_dir = base / (backups_dir_name or config.BACKUPS_DIR_NAME)

    def path_for(self, note_id: str) -> Path:
        return self.backups_dir / f"{validate_note_id(note_id)}.backup.md"

    def save_backup(self, note_id: str, text: str) -> None:
        path = self.path_for(note_id)
        _atomic_write_text(path, text)
        logger.info("Saved note backup", note_id=note_id, backup_path=str(path))

    def has_backup(self, note_id: str) -> bool:
        return self.path_for(note_id).is_file()

    def get_backup(self, note_id: str) -> Backup | None:
        path = self.path_for(note_id)
        if not path.is_file():
            return None
        return Backup(
            note_id=note_id,
            snapshot_text=read_text_exact(path),
            timestamp=datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc),
        )

    def clear_backup(self, note_id: str) -> None:
        self.path_for(note_id).unlink(missing_ok=True)
