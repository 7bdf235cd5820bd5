# models/correction_models.py
"""Define the payload shapes exchanged between pipeline stages.

A correction run produces ephemeral `Chunk` and `ChunkResult` objects, merges
them into one `ReconciliationResult` for the review session, and records at most
one `Backup` per note once an apply happens.

Notes:
    `Correction` fields are free text written by the oracle. Nothing here
    guarantees they are machine-parseable; see `processing.reconciler` for the
    best-effort interpretation.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AnalysisState(str, Enum):
    """Lifecycle of a single document's correction run."""

    IDLE = "idle"
    REQUESTING = "requesting"
    RECONCILING = "reconciling"
    DONE = "done"
    FAILED = "failed"


class DiffKind(str, Enum):
    SAME = "same"
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"


class Document(BaseModel):
    """A user-authored note under review."""

    id: str = Field(..., min_length=1)
    original_text: str


class Chunk(BaseModel):
    """A paragraph-aligned slice of a document."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0)
    text: str


class Correction(BaseModel):
    """One suggested edit as reported by the oracle."""

    model_config = ConfigDict(extra="ignore")

    issue: str = ""
    location: str = ""
    correction: str = ""

    @field_validator("issue", "location", "correction", mode="before")
    @classmethod
    def _coerce_to_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    def with_section(self, section_number: int) -> Correction:
        """Return a copy whose location is prefixed with its section marker."""
        return self.model_copy(update={"location": f"Section {section_number}: {self.location}"})


class ChunkResult(BaseModel):
    """Parsed oracle output for one chunk."""

    chunk_index: int = Field(..., ge=0)
    corrections: list[Correction] = Field(default_factory=list)
    corrected_text: str | None = None
    summary: str | None = None
    salvaged: bool = False


class ReconciliationResult(BaseModel):
    """The merged outcome of one correction run, held for the review session."""

    corrections: list[Correction] = Field(default_factory=list)
    corrected_text: str
    summary: str
    chunked: bool = False
    partial: bool = False
    chunk_count: int = 1
    failed_chunks: list[int] = Field(default_factory=list)
    original_text: str = ""
    note_id: str | None = None

    @property
    def has_changes(self) -> bool:
        return self.corrected_text != self.original_text

    @property
    def can_preview_diff(self) -> bool:
        """Diff preview is offered only on the high-confidence single-response path."""
        return not self.chunked and not self.partial and self.has_changes

    @property
    def can_auto_apply(self) -> bool:
        return self.can_preview_diff


class WordSpan(BaseModel):
    """One token-level segment of a changed line."""

    kind: DiffKind
    text: str
    replacement: str | None = None


class DiffLine(BaseModel):
    """One entry of a line-level diff."""

    kind: DiffKind
    original_text: str | None = None
    corrected_text: str | None = None
    word_spans: list[WordSpan] | None = None


class Backup(BaseModel):
    """The single most recent pre-apply snapshot of a note."""

    note_id: str
    snapshot_text: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def content(self) -> str:
        return self.snapshot_text


class ApplyOutcome(BaseModel):
    """Result of committing corrected text to the live document."""

    note_id: str
    applied: bool
    backup_saved: bool
    warning: str | None = None
