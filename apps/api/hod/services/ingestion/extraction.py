"""
Response extraction and resilient JSON parsing for LLM output.

The model is asked for one JSON object but routinely wraps it in prose or a
markdown fence, or gets cut off mid-object. Nothing here raises: a response
with no recoverable JSON becomes ``ExtractedPayload(raw_text, None)`` and the
raw text is kept verbatim so the operator can salvage it by hand.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


@dataclass(frozen=True)
class ExtractedPayload:
    raw_text: str
    parsed: Optional[dict[str, Any]] = None


# =============================================================================
# RESPONSE EXTRACTOR
# =============================================================================


def _first_candidate_parts(envelope: Any) -> list:
    if not isinstance(envelope, dict):
        return []
    candidates = envelope.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return []
    first = candidates[0]
    if not isinstance(first, dict):
        return []
    content = first.get("content")
    if not isinstance(content, dict):
        return []
    parts = content.get("parts")
    return parts if isinstance(parts, list) else []


def extract_raw_text(envelope: Any) -> str:
    """All text parts of the first candidate, newline-joined and trimmed ("" if none)."""
    texts = [
        p["text"]
        for p in _first_candidate_parts(envelope)
        if isinstance(p, dict) and isinstance(p.get("text"), str)
    ]
    return "\n".join(texts).strip()


def extract_text_candidate(envelope: Any) -> str:
    """First text-bearing part of the first candidate ("" if none)."""
    for p in _first_candidate_parts(envelope):
        if isinstance(p, dict) and isinstance(p.get("text"), str):
            return p["text"]
    return ""


# =============================================================================
# RESILIENT PARSER
# =============================================================================


def extract_json_block(raw: str) -> str:
    """Unwrap a code fence if present, then slice first '{' .. last '}'. "" when absent."""
    if not isinstance(raw, str):
        return ""
    trimmed = raw.strip()
    fenced = _FENCE_RE.search(trimmed)
    inner = fenced.group(1).strip() if fenced else trimmed
    start = inner.find("{")
    end = inner.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return ""
    return inner[start:end + 1]


def trim_to_balanced_braces(text: str) -> str:
    """Truncate to the last position where {}/[] nesting depth returned to zero."""
    depth = 0
    last_balanced = -1
    for i, ch in enumerate(text):
        if ch in "{[":
            depth += 1
        elif ch in "}]":
            depth -= 1
        if depth == 0:
            last_balanced = i
    return text[:last_balanced + 1] if last_balanced != -1 else text


def _loads_object(text: str) -> Optional[dict[str, Any]]:
    try:
        data = json.loads(text)
    except (ValueError, RecursionError):
        return None
    return data if isinstance(data, dict) else None


def parse_model_text(raw_text: str) -> ExtractedPayload:
    """Strict parse, then one brace-balancing repair, then give up with parsed=None."""
    if not raw_text:
        return ExtractedPayload(raw_text="", parsed=None)

    snippet = extract_json_block(raw_text)
    if not snippet:
        return ExtractedPayload(raw_text=raw_text, parsed=None)

    parsed = _loads_object(snippet)
    if parsed is None:
        repaired = trim_to_balanced_braces(snippet)
        parsed = _loads_object(repaired)
        if parsed is None:
            logger.warning("LLM response held no recoverable JSON (%d chars)", len(raw_text))
    return ExtractedPayload(raw_text=raw_text, parsed=parsed)


def parse_model_response(envelope: Any) -> ExtractedPayload:
    return parse_model_text(extract_raw_text(envelope))
