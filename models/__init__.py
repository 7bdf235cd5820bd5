"""Data models for the Proofline correction pipeline."""

from .correction_models import (
    AnalysisState,
    ApplyOutcome,
    Backup,
    Chunk,
    ChunkResult,
    Correction,
    DiffKind,
    DiffLine,
    Document,
    ReconciliationResult,
    WordSpan,
)

__all__ = [
    "AnalysisState",
    "ApplyOutcome",
    "Backup",
    "Chunk",
    "ChunkResult",
    "Correction",
    "DiffKind",
    "DiffLine",
    "Document",
    "ReconciliationResult",
    "WordSpan",
]
