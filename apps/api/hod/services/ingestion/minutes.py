"""
Meeting-minutes and context-import normalisation.

Both are pure: they take whatever the model returned (already parsed, or None)
and produce typed results. Minutes never come back empty-handed for non-blank
input: missing structure falls back to the first few lines as action points.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from pydantic import Field, field_validator

from hod.domain import ContextKind

from .models import WireModel, parse_iso_day

FALLBACK_ACTION_LINES = 5
FALLBACK_ACTION_MAX_CHARS = 140
MINUTES_SUMMARY_PREVIEW_CHARS = 220

_BULLET_RE = re.compile(r"^[-\d.\s]+")


class MinutesAction(WireModel):
    title: str
    owner: str = ""
    deadline: str = ""  # YYYY-MM-DD or ""
    status: str = "open"
    notes: str = ""


class AgendaItem(WireModel):
    title: str = ""
    notes: str = ""
    owner: str = ""


class MeetingMinutes(WireModel):
    meeting_date: str = ""
    attendees: list[str] = Field(default_factory=list)
    agenda: list[AgendaItem] = Field(default_factory=list)
    actions: list[MinutesAction] = Field(default_factory=list)
    minutes_summary: str = ""


class ContextEvent(WireModel):
    date: str = ""
    event: str = ""
    type: str = ""

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, v: Any) -> str:
        day = parse_iso_day(v)
        return day.isoformat() if day else ""


class ContextGoal(WireModel):
    title: str = ""
    focus: str = ""


class ContextImport(WireModel):
    kind: ContextKind
    events: list[ContextEvent] = Field(default_factory=list)
    goals: list[ContextGoal] = Field(default_factory=list)


def _s(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ("" if value is None else str(value).strip())


def _first(data: dict, *keys: str) -> Any:
    for key in keys:
        if data.get(key):
            return data[key]
    return None


def _iso_or_blank(value: Any) -> str:
    day = parse_iso_day(value)
    return day.isoformat() if day else ""


def _dicts(value: Any) -> list[dict]:
    return [v for v in value if isinstance(v, dict)] if isinstance(value, list) else []


# -----------------------------------------------------------------------------
# Minutes
# -----------------------------------------------------------------------------


def fallback_actions(text: str) -> list[MinutesAction]:
    """First non-empty lines as open actions, bullets/numbering stripped."""
    lines = [_BULLET_RE.sub("", line).strip() for line in (text or "").split("\n")]
    actions = []
    for line in [l for l in lines if l][:FALLBACK_ACTION_LINES]:
        if len(line) > FALLBACK_ACTION_MAX_CHARS:
            line = line[:FALLBACK_ACTION_MAX_CHARS - 3].strip() + "…"
        actions.append(MinutesAction(title=line))
    return actions


def normalize_actions(raw: Any) -> list[MinutesAction]:
    out = []
    for item in _dicts(raw):
        title = _s(_first(item, "title", "task", "action"))
        if not title:
            continue
        out.append(MinutesAction(
            title=title,
            owner=_s(_first(item, "owner", "assignee", "lead")),
            deadline=_iso_or_blank(_first(item, "deadline", "dueDate")),
            status=_s(item.get("status")) or "open",
            notes=_s(_first(item, "notes", "summary")),
        ))
    return out


def normalize_agenda(raw: Any) -> list[AgendaItem]:
    out = []
    for item in _dicts(raw):
        entry = AgendaItem(
            title=_s(_first(item, "title", "agendaItem")),
            notes=_s(_first(item, "notes", "minutes", "summary")),
            owner=_s(item.get("owner")),
        )
        if entry.title or entry.notes:
            out.append(entry)
    return out


def _summary_preview(text: str) -> str:
    return (text or "")[:MINUTES_SUMMARY_PREVIEW_CHARS].strip()


def normalize_minutes(parsed: Optional[dict], source_text: str) -> MeetingMinutes:
    if not isinstance(parsed, dict):
        return fallback_minutes(source_text)

    attendees: list[str] = []
    raw_attendees = parsed.get("attendees")
    for name in raw_attendees if isinstance(raw_attendees, list) else []:
        cleaned = _s(name)
        if cleaned and cleaned not in attendees:
            attendees.append(cleaned)

    actions = normalize_actions(_first(parsed, "actions", "actionPoints", "tasks"))
    return MeetingMinutes(
        meeting_date=_iso_or_blank(_first(parsed, "meetingDate", "date", "meeting_day")),
        attendees=attendees,
        agenda=normalize_agenda(_first(parsed, "agenda", "agendaItems")),
        actions=actions or fallback_actions(source_text),
        minutes_summary=_s(_first(parsed, "minutesSummary", "summary")) or _summary_preview(source_text),
    )


def fallback_minutes(source_text: str) -> MeetingMinutes:
    return MeetingMinutes(
        actions=fallback_actions(source_text),
        minutes_summary=_summary_preview(source_text),
    )


# -----------------------------------------------------------------------------
# Context import
# -----------------------------------------------------------------------------


def normalize_context(parsed: dict, kind: ContextKind) -> ContextImport:
    if kind == "calendar":
        events = [
            ContextEvent(
                date=item.get("date") or item.get("startDateTime"),
                event=_s(_first(item, "event", "title")),
                type=_s(item.get("type")),
            )
            for item in _dicts(parsed.get("events"))
        ]
        return ContextImport(kind=kind, events=[e for e in events if e.event])
    goals = [
        ContextGoal(title=_s(item.get("title")), focus=_s(_first(item, "focus", "description")))
        for item in _dicts(parsed.get("goals"))
    ]
    return ContextImport(kind=kind, goals=[g for g in goals if g.title])
