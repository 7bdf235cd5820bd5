# utils/json_utils.py
"""JSON extraction and safe loading utilities for oracle outputs.

Centralizes the heuristics used when pulling a JSON object out of freeform
model text: fenced code blocks, prose-wrapped objects, and raw JSON.
"""

from __future__ import annotations

import json
import re
from typing import Any

_FENCED_BLOCK_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
_WRAPPING_FENCE_RE = re.compile(r"^\s*```[\w+-]*[ \t]*\n([\s\S]*?)\n?```\s*$")


def extract_fenced_block(text: str) -> str | None:
    """Return the interior of the first fenced code block, optionally tagged ``json``."""
    if not isinstance(text, str) or not text:
        return None
    match = _FENCED_BLOCK_RE.search(text)
    if match is None:
        return None
    inner = match.group(1).strip()
    return inner or None


def extract_json_object_span(text: str) -> str | None:
    """Return the substring from the first '{' to the last '}'.

    Handles oracles that wrap their JSON in explanatory prose.
    """
    if not isinstance(text, str) or not text:
        return None
    first = text.find("{")
    last = text.rfind("}")
    if first == -1 or last == -1 or last <= first:
        return None
    return text[first : last + 1]


def safe_json_loads(
    text: str | None, *, expected: type | tuple[type, ...] | None = None
) -> Any | None:
    """Safely json.loads text; optionally validate type.

    Returns None on failure or unexpected type.
    """
    if not isinstance(text, str) or not text.strip():
        return None
    try:
        obj = json.loads(text)
    except json.JSONDecodeError:
        return None

    if expected is not None and not isinstance(obj, expected):
        return None
    return obj


def strip_code_fences(text: str) -> str:
    """Remove a fence wrapping the whole text, with any language tag, returning the inner text."""
    match = _WRAPPING_FENCE_RE.match(text)
    return match.group(1).strip() if match else text.strip()


def truncate_for_log(s: str, limit: int = 300) -> str:
    """Return a truncated string for logging purposes."""
    if not isinstance(s, str):
        return ""
    return s if len(s) <= limit else s[:limit] + "..."
