# processing/correction_validator.py
"""Drop corrections whose cited issue text does not appear in the source note."""

from __future__ import annotations

import structlog

from models import Correction

logger = structlog.get_logger(__name__)


def is_grounded(correction: Correction, original_text: str) -> bool:
    """Return True when the correction's issue text occurs in the note, ignoring case."""
    issue = correction.issue
    if not issue:
        return False
    if issue in original_text:
        return True
    return issue.lower() in original_text.lower()


def validate(corrections: list[Correction], original_text: str) -> list[Correction]:
    """Filter out hallucinated corrections.

    If every correction would be dropped, the unfiltered list is returned
    instead: noisy feedback is kept rather than silently discarding everything.
    """
    if not corrections:
        return []

    grounded = [c for c in corrections if is_grounded(c, original_text)]
    if grounded:
        dropped = len(corrections) - len(grounded)
        if dropped:
            logger.info("Dropped ungrounded corrections", dropped=dropped, kept=len(grounded))
        return grounded

    logger.info(
        "No correction matched the source text; keeping unfiltered list",
        correction_count=len(corrections),
    )
    return list(corrections)
