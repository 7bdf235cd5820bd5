# core/exceptions.py
"""Define standardized exception types for the Proofline pipeline.

This module provides a small exception hierarchy used across the pipeline to
propagate actionable error details without losing the original exception.

Which errors abort a run:
    - `OracleError` aborts the whole analysis and is surfaced verbatim.
    - `ChunkParseError` is logged and recorded; the run continues.
    - `WholeDocumentParseError` ends a non-chunked run and is retryable.
    - `BackupWriteError` never blocks an apply; it degrades it to a flagged
      unprotected write.
"""

from typing import Any


class ProoflineError(Exception):
    """Base exception for all Proofline errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class ValidationError(ProoflineError):
    """Errors related to invalid caller input (empty notes, bad note ids)."""


class OracleError(ProoflineError):
    """Transport, authentication or quota failure talking to the review oracle."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code

    def __str__(self) -> str:
        # Surfaced to the user as-is.
        return self.message


class ChunkParseError(ProoflineError):
    """A single chunk's oracle response could not be parsed."""

    def __init__(self, chunk_index: int, reason: str):
        super().__init__(
            f"Failed to parse section {chunk_index + 1}",
            details=create_error_context(chunk_index=chunk_index, reason=reason),
        )
        self.chunk_index = chunk_index
        self.reason = reason


class WholeDocumentParseError(ProoflineError):
    """The non-chunked response was unparsable and salvage found nothing."""

    retryable = True


class StorageError(ProoflineError):
    """Errors related to document or backup persistence."""


class BackupWriteError(StorageError):
    """The pre-apply snapshot could not be written."""


class DocumentWriteError(StorageError):
    """The live document could not be written."""


class NoBackupError(StorageError):
    """A restore was requested but no snapshot exists for the note."""


class AnalysisInProgressError(ProoflineError):
    """A correction run is already active for this document."""


class AnalysisCancelledError(ProoflineError):
    """A correction run was cancelled between chunk iterations."""


class PreviewUnavailableError(ProoflineError):
    """The diff preview is disabled for this result (chunked or partial)."""


class AutoApplyUnavailableError(ProoflineError):
    """One-click apply is disabled for this result (chunked, partial or unchanged)."""


def create_error_context(**kwargs: Any) -> dict[str, Any]:
    """Build a context dictionary for structured errors.

    Args:
        **kwargs: Key-value pairs to include.

    Returns:
        A dictionary containing only keys whose values are not `None`.
    """
    return {k: v for k, v in kwargs.items() if v is not None}


def handle_storage_error(operation: str, original_error: Exception, **context: Any) -> StorageError:
    """Convert an I/O exception into a standardized storage error.

    Args:
        operation: Either ``"backup"`` or ``"write"``; any other value yields a
            plain `StorageError`.
        original_error: The caught exception.
        **context: Additional structured context to attach.

    Returns:
        A `StorageError` subclass chosen by the failing operation.
    """
    error_details = create_error_context(
        operation=operation,
        original_error=str(original_error),
        error_type=type(original_error).__name__,
        **context,
    )

    if operation == "backup":
        return BackupWriteError("Failed to save backup", details=error_details)
    elif operation == "write":
        return DocumentWriteError("Failed to write document", details=error_details)
    else:
        return StorageError(f"Storage error during {operation}", details=error_details)
