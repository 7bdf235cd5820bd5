# ui/feedback_report.py
"""Format a review result as plain text for copying or saving."""

from __future__ import annotations

from models import ReconciliationResult

MULTI_SECTION_NOTE = (
    "Long notes are checked in multiple sections. Preview of changes is not "
    "available for multi-section reviews, but you can review all corrections below."
)
PARTIAL_NOTE = "The response was truncated. Showing partial results."


def format_feedback_text(result: ReconciliationResult) -> str:
    """Render the summary and correction list in the copy-to-clipboard layout."""
    lines = ["Grammar & Spelling Review", ""]
    if result.summary:
        lines += ["Overall Assessment:", result.summary, ""]
    if result.chunked:
        lines += [f"Note: {MULTI_SECTION_NOTE}", ""]
    if result.partial:
        lines += [f"Note: {PARTIAL_NOTE}", ""]
    if result.failed_chunks:
        sections = ", ".join(str(i + 1) for i in result.failed_chunks)
        lines += [f"Sections that could not be checked: {sections}", ""]
    if result.corrections:
        lines.append("Corrections:")
        lines += [f"- {c.issue} ({c.location}): {c.correction}" for c in result.corrections]
    else:
        lines.append("No corrections needed - text is well-written!")
    return "\n".join(lines).rstrip() + "\n"
