"""
Versioned fingerprint keys for commit-time de-duplication.

A fingerprint is the pipe-joined, normalised identity fields of a record.
Field lists live in ``KEY_SPECS`` keyed by version; persisted rows store the
version they were built with, so adding a field means adding a version, never
editing an existing one.

Batch dedup in the normalizer uses its own keys on purpose.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Literal, Mapping

from hod.domain import RecordKind

FINGERPRINT_VERSION = 1

Transform = Literal["text", "day"]
Requirement = Literal["none", "all", "any"]


@dataclass(frozen=True)
class KeySpec:
    fields: tuple[tuple[str, Transform], ...]
    # "all": every field non-blank, "any": at least one; else the key is ""
    requires: Requirement = "none"


KEY_SPECS: dict[int, dict[str, KeySpec]] = {
    1: {
        "task": KeySpec((("title", "text"), ("due_date", "day"), ("assignee", "text"), ("category", "text"))),
        "event": KeySpec((("title", "text"), ("start_date_time", "day")), requires="all"),
        "insight": KeySpec((("staff_name", "text"), ("date", "day"), ("summary", "text")), requires="all"),
        "strategy_note": KeySpec((("theme", "text"), ("note", "text")), requires="any"),
        "wellbeing": KeySpec(
            (("date", "day"), ("mood", "text"), ("energy", "text"), ("summary", "text")),
            requires="any",
        ),
    },
}


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _normalise(value: Any, transform: Transform) -> str:
    if value is None:
        return ""
    if transform == "day":
        if isinstance(value, datetime):
            return value.date().isoformat()
        if isinstance(value, date):
            return value.isoformat()
        return str(value).strip()[:10]
    return str(value).strip().lower()


def build_fingerprint(kind: RecordKind, record: Any, version: int = FINGERPRINT_VERSION) -> str:
    """Identity key for ``record``; "" means "cannot be identified" and never matches."""
    try:
        spec = KEY_SPECS[version][kind]
    except KeyError:
        raise ValueError(f"No fingerprint spec for {kind!r} at version {version}") from None

    parts = [_normalise(_field(record, name), transform) for name, transform in spec.fields]
    if spec.requires == "all" and not all(parts):
        return ""
    if spec.requires == "any" and not any(parts):
        return ""
    return "|".join(parts)


def fingerprint_task(task: Any) -> str:
    return build_fingerprint("task", task)


def fingerprint_event(event: Any) -> str:
    return build_fingerprint("event", event)


def fingerprint_insight(insight: Any) -> str:
    return build_fingerprint("insight", insight)


def fingerprint_strategy_note(note: Any) -> str:
    return build_fingerprint("strategy_note", note)


def fingerprint_wellbeing(log: Any) -> str:
    return build_fingerprint("wellbeing", log)


def fingerprint_stored_event(doc: Mapping[str, Any]) -> str:
    """Events in the context document come from two writers with different keys."""
    return fingerprint_event({
        "title": doc.get("title") or doc.get("event"),
        "start_date_time": doc.get("startDateTime") or doc.get("date"),
    })
