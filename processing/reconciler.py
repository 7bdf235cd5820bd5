# processing/reconciler.py
"""
Merge per-chunk oracle results into one corrected note and one correction list.

Single-response reviews trust the oracle's full corrected text. Multi-section
reviews cannot stitch per-section rewrites together without seams, so the
corrected note is rebuilt by applying each correction's described edit to the
original text instead. That path is lower-fidelity and is flagged `chunked`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

import structlog

from models import ChunkResult, Correction, ReconciliationResult
from processing.correction_validator import is_grounded, validate

logger = structlog.get_logger(__name__)

SINGLE_SUMMARY_DEFAULT = "Grammar and spelling review complete"

_QUOTE_OPEN = "'\"‘“"
_QUOTE_CLOSE = "'\"’”"
_VERB = r"(?i:changed|replaced)"

_QUOTED_CHANGE_RE = re.compile(
    rf"{_VERB}\s+[{_QUOTE_OPEN}]([^{_QUOTE_CLOSE}]+)[{_QUOTE_CLOSE}]\s+(?:to|with)\s+"
    rf"[{_QUOTE_OPEN}]([^{_QUOTE_CLOSE}]+)[{_QUOTE_CLOSE}]"
)
_BARE_CHANGE_RE = re.compile(rf"{_VERB}\s+(\S+)\s+(?:to|with)\s+(\S+)")
_QUOTED_TARGET_RE = re.compile(
    rf"\b(?:to|with)\s+[{_QUOTE_OPEN}]([^{_QUOTE_CLOSE}]+)[{_QUOTE_CLOSE}]", re.IGNORECASE
)
_BARE_TARGET_RE = re.compile(r"\b(?:to|with)\s+(\S+)", re.IGNORECASE)

_TRAILING_PUNCTUATION = ".,;:!?"


@dataclass
class SubstitutionReport:
    """Outcome of best-effort substitution over one batch of corrections."""

    text: str
    applied: list[Correction] = field(default_factory=list)
    unapplied: list[Correction] = field(default_factory=list)


def _strip_sentence_punctuation(new_text: str, old_text: str) -> str:
    # "Changed teh to the." should not insert the sentence's full stop.
    if new_text and new_text[-1] in _TRAILING_PUNCTUATION and not old_text.endswith(new_text[-1]):
        return new_text.rstrip(_TRAILING_PUNCTUATION)
    return new_text


def extract_substitution(correction: Correction, text: str) -> tuple[str, str] | None:
    """Work out the literal (old, new) snippet pair a correction describes.

    Tried in order:
        1. "changed 'X' to 'Y'" with any quote style.
        2. "changed X to Y" with single bare tokens.
        3. The issue text itself, when it occurs verbatim in `text`, with the
           replacement taken from a "to/with <text>" phrase in the correction.

    Returns:
        The (old, new) pair, or None when no pattern yields both parts.
    """
    description = correction.correction

    match = _QUOTED_CHANGE_RE.search(description)
    if match:
        return match.group(1), match.group(2)

    match = _BARE_CHANGE_RE.search(description)
    if match:
        old_text, new_text = match.group(1), match.group(2)
        return old_text, _strip_sentence_punctuation(new_text, old_text)

    issue = correction.issue
    if issue and issue in text:
        match = _QUOTED_TARGET_RE.search(description)
        if match:
            return issue, match.group(1)
        match = _BARE_TARGET_RE.search(description)
        if match:
            return issue, _strip_sentence_punctuation(match.group(1), issue)

    return None


def apply_corrections_to_text(text: str, corrections: list[Correction]) -> SubstitutionReport:
    """Apply the textual edits described by free-text corrections.

    Corrections are handled from the end of the note toward the start, ordered
    by where their issue text first occurs, so nearby edits interfere less.
    Each edit replaces the first literal occurrence of its old snippet; when a
    snippet recurs, an earlier occurrence may be edited instead of the one the
    oracle meant. Corrections that match no pattern are left as suggestions.
    """
    report = SubstitutionReport(text=text)
    candidates = [c for c in corrections if c.correction]
    report.unapplied.extend(c for c in corrections if not c.correction)

    candidates.sort(key=lambda c: text.find(c.issue), reverse=True)

    result = text
    for correction in candidates:
        pair = extract_substitution(correction, result)
        if pair is None:
            report.unapplied.append(correction)
            continue
        old_text, new_text = pair
        if not new_text or old_text == new_text or old_text not in result:
            report.unapplied.append(correction)
            continue
        result = result.replace(old_text, new_text, 1)
        report.applied.append(correction)

    report.text = result
    if report.unapplied:
        logger.debug(
            "Corrections left as suggestions",
            applied=len(report.applied),
            unapplied=len(report.unapplied),
        )
    return report


def _reconcile_single(original_text: str, result: ChunkResult | None) -> ReconciliationResult:
    if result is None:
        return ReconciliationResult(
            corrections=[],
            corrected_text=original_text,
            summary=SINGLE_SUMMARY_DEFAULT,
            original_text=original_text,
        )

    corrected_text = result.corrected_text if result.corrected_text else original_text
    if not result.corrected_text and result.corrections:
        logger.info("Oracle returned no corrected text; corrections are for manual review only")

    return ReconciliationResult(
        corrections=validate(result.corrections, original_text),
        corrected_text=corrected_text,
        summary=result.summary or SINGLE_SUMMARY_DEFAULT,
        chunked=False,
        partial=result.salvaged,
        chunk_count=1,
        original_text=original_text,
    )


def _reconcile_chunked(
    original_text: str,
    results: list[ChunkResult],
    chunk_count: int,
    failed_chunks: list[int],
) -> ReconciliationResult:
    merged: list[Correction] = []
    running_text = original_text
    applied_total = 0

    for result in results:
        section_number = result.chunk_index + 1
        kept = validate(result.corrections, original_text)
        merged.extend(c.with_section(section_number) for c in kept)
        # Fallback lists are shown for review but never edit the text.
        grounded = [c for c in kept if is_grounded(c, original_text)]
        report = apply_corrections_to_text(running_text, grounded)
        running_text = report.text
        applied_total += len(report.applied)

    logger.info(
        "Reconciled chunked review",
        chunk_count=chunk_count,
        correction_count=len(merged),
        applied_count=applied_total,
        failed_chunks=failed_chunks,
    )

    return ReconciliationResult(
        corrections=merged,
        corrected_text=running_text,
        summary=f"Checked {chunk_count} sections of the note",
        chunked=True,
        partial=any(r.salvaged for r in results),
        chunk_count=chunk_count,
        failed_chunks=sorted(failed_chunks),
        original_text=original_text,
    )


def reconcile(
    original_text: str,
    chunk_results: list[ChunkResult],
    chunk_count: int,
    failed_chunks: list[int] | None = None,
) -> ReconciliationResult:
    """Merge chunk results, strictly in chunk order, into one review result.

    Args:
        original_text: The note as it was when the review started.
        chunk_results: One result per successfully answered chunk.
        chunk_count: Number of chunks the note was split into.
        failed_chunks: Indices of chunks whose responses could not be parsed.

    Returns:
        The merged `ReconciliationResult`; `chunked` is set whenever the note
        was reviewed in more than one section.
    """
    ordered = sorted(chunk_results, key=lambda r: r.chunk_index)
    if chunk_count <= 1:
        return _reconcile_single(original_text, ordered[0] if ordered else None)
    return _reconcile_chunked(original_text, ordered, chunk_count, failed_chunks or [])
