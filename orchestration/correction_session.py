# orchestration/correction_session.py
"""Drive one review session: analyze, preview, apply, restore.

Each document has its own state machine::

    idle -> requesting -> reconciling -> done
                 \\              \\
                  +--------------+--> failed

A second `analyze` on a document that is still requesting or reconciling is
rejected with `AnalysisInProgressError`; it is never queued. Chunks are sent to
the oracle one after another so progress can be reported as "section i/N" and
results arrive in chunk order. A cancellation request is honoured between
chunks.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

import structlog

from core.exceptions import (
    AnalysisCancelledError,
    AnalysisInProgressError,
    AutoApplyUnavailableError,
    ChunkParseError,
    OracleError,
    PreviewUnavailableError,
    ValidationError,
    WholeDocumentParseError,
    create_error_context,
)
from models import AnalysisState, ApplyOutcome, ChunkResult, DiffLine, ReconciliationResult
from processing import chunker, diff_engine, reconciler
from processing.apply_coordinator import ApplyCoordinator
from processing.response_parser import Failure, PartialSalvage, Success, parse
from utils.json_utils import strip_code_fences

logger = structlog.get_logger(__name__)

ProgressCallback = Callable[[int, int], None]

_ACTIVE_STATES = {AnalysisState.REQUESTING, AnalysisState.RECONCILING}


class ReviewOracle(Protocol):
    async def review(self, chunk_text: str, chunk_index: int = 0, chunk_count: int = 1) -> str: ...

    async def improve(self, text: str) -> str: ...


class CorrectionSession:
    """Review-session context for the documents of one editor."""

    def __init__(
        self,
        oracle: ReviewOracle,
        coordinator: ApplyCoordinator,
        *,
        chunking_threshold: int | None = None,
        max_chunk_size: int | None = None,
        on_progress: ProgressCallback | None = None,
    ):
        self._oracle = oracle
        self._coordinator = coordinator
        self._chunking_threshold = chunking_threshold
        self._max_chunk_size = max_chunk_size
        self._on_progress = on_progress
        self._states: dict[str, AnalysisState] = {}
        self._cancel_requested: set[str] = set()
        self._results: dict[str, ReconciliationResult] = {}

    def state(self, note_id: str) -> AnalysisState:
        return self._states.get(note_id, AnalysisState.IDLE)

    def is_analyzing(self, note_id: str) -> bool:
        return self.state(note_id) in _ACTIVE_STATES

    def last_result(self, note_id: str) -> ReconciliationResult | None:
        return self._results.get(note_id)

    def cancel(self, note_id: str) -> None:
        """Ask a running analysis to stop before its next chunk."""
        if self.is_analyzing(note_id):
            self._cancel_requested.add(note_id)

    def _begin(self, note_id: str, content: str) -> None:
        if self.is_analyzing(note_id):
            raise AnalysisInProgressError(
                "Analysis in progress. Please wait.",
                details=create_error_context(note_id=note_id),
            )
        if not content or not content.strip():
            raise ValidationError("Note is empty. Nothing to check.")
        self._cancel_requested.discard(note_id)
        self._results.pop(note_id, None)
        self._states[note_id] = AnalysisState.REQUESTING

    def _report_progress(self, chunk_number: int, chunk_count: int) -> None:
        if self._on_progress is not None:
            self._on_progress(chunk_number, chunk_count)

    async def _review_chunks(self, note_id: str, content: str) -> ReconciliationResult:
        chunks = chunker.plan_chunks(content, self._chunking_threshold, self._max_chunk_size)
        chunk_count = len(chunks)
        whole_document = chunk_count == 1
        chunk_results: list[ChunkResult] = []
        failed_chunks: list[int] = []

        for chunk in chunks:
            if note_id in self._cancel_requested:
                raise AnalysisCancelledError(
                    "Analysis cancelled",
                    details=create_error_context(note_id=note_id, completed_chunks=chunk.index),
                )
            self._report_progress(chunk.index + 1, chunk_count)
            log = logger.bind(note_id=note_id, chunk_index=chunk.index, chunk_count=chunk_count)

            raw_text = await self._oracle.review(chunk.text, chunk.index, chunk_count)
            outcome = parse(raw_text, whole_document=whole_document)

            if isinstance(outcome, Success):
                payload = outcome.payload
                chunk_results.append(
                    ChunkResult(
                        chunk_index=chunk.index,
                        corrections=payload.corrections,
                        corrected_text=payload.corrected_text,
                        summary=payload.summary,
                    )
                )
                log.info("Section reviewed", correction_count=len(payload.corrections), strategy=outcome.strategy)
            elif isinstance(outcome, PartialSalvage):
                chunk_results.append(
                    ChunkResult(
                        chunk_index=chunk.index,
                        corrections=outcome.payload.corrections,
                        summary=outcome.payload.summary,
                        salvaged=True,
                    )
                )
                log.warning(
                    "The response was truncated. Showing partial results",
                    correction_count=len(outcome.payload.corrections),
                )
            elif isinstance(outcome, Failure):
                if whole_document:
                    raise WholeDocumentParseError(
                        "Could not parse the review. Please try again.",
                        details=create_error_context(note_id=note_id, reason=outcome.reason),
                    )
                error = ChunkParseError(chunk.index, outcome.reason)
                log.error("Section skipped", error=str(error))
                failed_chunks.append(chunk.index)

        self._states[note_id] = AnalysisState.RECONCILING
        result = reconciler.reconcile(content, chunk_results, chunk_count, failed_chunks)
        return result.model_copy(update={"note_id": note_id})

    async def analyze(self, note_id: str, content: str) -> ReconciliationResult:
        """Run a grammar review over a note.

        Raises:
            AnalysisInProgressError: If this note is already being analyzed.
            ValidationError: If the note is empty.
            OracleError: If the review service fails; the run is aborted.
            WholeDocumentParseError: If a single-response review is unusable.
            AnalysisCancelledError: If `cancel` was called mid-run.
        """
        self._begin(note_id, content)
        try:
            result = await self._review_chunks(note_id, content)
        except (OracleError, WholeDocumentParseError, AnalysisCancelledError) as e:
            self._states[note_id] = AnalysisState.FAILED
            logger.error("Grammar check failed", note_id=note_id, error=str(e))
            raise
        except BaseException:
            self._states[note_id] = AnalysisState.FAILED
            raise
        finally:
            self._cancel_requested.discard(note_id)

        self._results[note_id] = result
        self._states[note_id] = AnalysisState.DONE
        logger.info(
            "Grammar check complete",
            note_id=note_id,
            chunked=result.chunked,
            partial=result.partial,
            correction_count=len(result.corrections),
        )
        return result

    async def improve_writing(self, note_id: str, content: str) -> ReconciliationResult:
        """Ask the oracle for a rewritten note; the result shares the apply path."""
        self._begin(note_id, content)
        try:
            self._report_progress(1, 1)
            raw_text = await self._oracle.improve(content)
            improved = strip_code_fences(raw_text) if raw_text else ""
            if not improved:
                raise WholeDocumentParseError("No improved text generated. Please try again.")
            self._states[note_id] = AnalysisState.RECONCILING
            result = ReconciliationResult(
                corrections=[],
                corrected_text=improved,
                summary="Writing improved",
                original_text=content,
                note_id=note_id,
            )
        except BaseException:
            self._states[note_id] = AnalysisState.FAILED
            raise
        finally:
            self._cancel_requested.discard(note_id)

        self._results[note_id] = result
        self._states[note_id] = AnalysisState.DONE
        return result

    def _resolve(self, result: ReconciliationResult | None, note_id: str | None) -> ReconciliationResult:
        if result is not None:
            return result
        if note_id is not None and note_id in self._results:
            return self._results[note_id]
        raise ValidationError("No review result to use")

    def preview_diff(
        self, result: ReconciliationResult | None = None, note_id: str | None = None
    ) -> list[DiffLine]:
        """Line/word diff between the original and corrected note.

        Raises:
            PreviewUnavailableError: For multi-section, salvaged or unchanged results.
        """
        result = self._resolve(result, note_id)
        if not result.can_preview_diff:
            raise PreviewUnavailableError(
                "Preview of changes is not available for this review.",
                details=create_error_context(chunked=result.chunked, partial=result.partial),
            )
        return diff_engine.diff(result.original_text, result.corrected_text)

    def apply(self, result: ReconciliationResult | None = None, note_id: str | None = None) -> ApplyOutcome:
        """Commit the corrected note behind a backup.

        Raises:
            AutoApplyUnavailableError: For multi-section, salvaged or unchanged results.
        """
        result = self._resolve(result, note_id)
        if not result.can_auto_apply or result.note_id is None:
            if result.chunked:
                message = (
                    "Automatic correction not available for multi-section notes. "
                    "Please review corrections and edit manually."
                )
            elif result.partial or not result.has_changes and result.corrections:
                message = "Could not parse corrected text. Please try again."
            else:
                message = "No changes to apply."
            raise AutoApplyUnavailableError(message)
        outcome = self._coordinator.apply_correction(result.note_id, result.original_text, result.corrected_text)
        self._results.pop(result.note_id, None)
        self._states[result.note_id] = AnalysisState.IDLE
        return outcome

    def has_backup(self, note_id: str) -> bool:
        return self._coordinator.has_backup(note_id)

    def restore(self, note_id: str) -> str:
        """Roll the live note back to its most recent pre-apply snapshot."""
        return self._coordinator.restore_backup(note_id)
