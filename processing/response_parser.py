# processing/response_parser.py
"""Parse freeform oracle output into a structured correction payload.

The oracle is asked for a bare JSON object but routinely wraps it in a code
fence, surrounds it with prose, or is cut off mid-object. `parse` tries each
extraction strategy in turn and reports the outcome as one of three variants:

- `Success`: a JSON object was recovered.
- `PartialSalvage`: strict parsing failed on a whole-document response, but
  complete issue/location/correction triples were scraped from the text.
- `Failure`: nothing usable was found.

`parse` never raises on malformed input.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog
from pydantic import BaseModel, Field

from models import Correction
from utils.json_utils import (
    extract_fenced_block,
    extract_json_object_span,
    safe_json_loads,
    truncate_for_log,
)

logger = structlog.get_logger(__name__)

_JSON_STRING = r'"((?:[^"\\]|\\.)*)"'
_SALVAGE_TRIPLE_RE = re.compile(
    rf'"issue"\s*:\s*{_JSON_STRING}[\s\S]*?'
    rf'"location"\s*:\s*{_JSON_STRING}[\s\S]*?'
    rf'"correction"\s*:\s*{_JSON_STRING}'
)
_SALVAGE_SUMMARY_RE = re.compile(rf'"summary"\s*:\s*{_JSON_STRING}')


class ResponsePayload(BaseModel):
    """The normalized `{corrections, summary, correctedText?}` object."""

    corrections: list[Correction] = Field(default_factory=list)
    summary: str | None = None
    corrected_text: str | None = None


@dataclass(frozen=True)
class Success:
    payload: ResponsePayload
    strategy: str


@dataclass(frozen=True)
class PartialSalvage:
    payload: ResponsePayload


@dataclass(frozen=True)
class Failure:
    reason: str


ParseOutcome = Success | PartialSalvage | Failure


def _normalize_payload(obj: dict[str, Any]) -> ResponsePayload:
    raw_corrections = obj.get("corrections")
    corrections: list[Correction] = []
    if isinstance(raw_corrections, list):
        for entry in raw_corrections:
            if isinstance(entry, dict):
                corrections.append(Correction.model_validate(entry))
            else:
                logger.debug("Dropping non-object correction entry", entry=truncate_for_log(str(entry), 80))
    elif raw_corrections is not None:
        logger.warning("Oracle 'corrections' field is not a list; treating as empty")

    corrected_text = obj.get("correctedText", obj.get("corrected_text"))
    summary = obj.get("summary")
    return ResponsePayload(
        corrections=corrections,
        summary=summary if isinstance(summary, str) else None,
        corrected_text=corrected_text if isinstance(corrected_text, str) and corrected_text else None,
    )


_STRATEGIES: list[tuple[str, Callable[[str], str | None]]] = [
    ("fenced_block", extract_fenced_block),
    ("brace_span", extract_json_object_span),
    ("raw_text", lambda text: text),
]


def _decode_json_string(fragment: str) -> str:
    try:
        return json.loads(f'"{fragment}"')
    except json.JSONDecodeError:
        return fragment


def salvage(raw_text: str) -> ResponsePayload:
    """Scrape complete issue/location/correction triples from broken JSON.

    A triple counts only when all three string values are closed; a response
    truncated mid-value contributes nothing for that entry.
    """
    corrections = [
        Correction(
            issue=_decode_json_string(issue),
            location=_decode_json_string(location),
            correction=_decode_json_string(correction),
        )
        for issue, location, correction in _SALVAGE_TRIPLE_RE.findall(raw_text)
    ]
    summary_match = _SALVAGE_SUMMARY_RE.search(raw_text)
    summary = _decode_json_string(summary_match.group(1)) if summary_match else None
    return ResponsePayload(corrections=corrections, summary=summary)


def parse(raw_text: str, *, whole_document: bool = False) -> ParseOutcome:
    """Extract the structured payload from one oracle response.

    Args:
        raw_text: The oracle's raw reply.
        whole_document: True for the sole chunk of a non-chunked review; only
            then is a salvage pass attempted when strict parsing fails.

    Returns:
        A `Success`, `PartialSalvage` or `Failure` outcome.
    """
    if not isinstance(raw_text, str) or not raw_text.strip():
        return Failure("empty response")

    for strategy_name, extract in _STRATEGIES:
        candidate = extract(raw_text)
        obj = safe_json_loads(candidate, expected=dict)
        if obj is not None:
            logger.debug("Parsed oracle response", strategy=strategy_name)
            return Success(_normalize_payload(obj), strategy_name)

    if not whole_document:
        return Failure("no JSON object found in response")

    payload = salvage(raw_text)
    if payload.corrections:
        logger.warning(
            "Oracle response was not valid JSON; salvaged partial corrections",
            salvaged_count=len(payload.corrections),
        )
        return PartialSalvage(payload)

    logger.error("Oracle response unparsable and nothing salvageable", preview=truncate_for_log(raw_text, 120))
    return Failure("response was not valid JSON and contained no complete corrections")
