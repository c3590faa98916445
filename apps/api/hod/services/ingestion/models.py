"""
Pydantic models for ingestion records.

Two steps: ``UnvalidatedPayload`` accepts whatever JSON the model produced and
only fixes the container shape (lists are lists, items are dicts); the
``Proposed*`` models then coerce each item field by field. Attributes are
snake_case, wire names camelCase.
"""

from __future__ import annotations

import datetime as dt
import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from hod.domain import (
    DEFAULT_CATEGORY,
    DEFAULT_EVENT_TYPE,
    DEFAULT_PRIORITY,
    ENERGY_OPTIONS,
    PRIORITIES,
    TIME_OPTIONS,
    InsightType,
    Priority,
)

_ISO_DAY_RE = re.compile(r"^\s*(\d{4}-\d{2}-\d{2})")


def parse_iso_day(value: Any) -> Optional[dt.date]:
    """Leading YYYY-MM-DD of a date/datetime string (or a date object); None otherwise."""
    if value is None:
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    m = _ISO_DAY_RE.match(str(value))
    if not m:
        return None
    try:
        return dt.date.fromisoformat(m.group(1))
    except ValueError:
        return None


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _pick(data: dict, *keys: str) -> Any:
    """First non-empty value among keys (LLMs drift between synonyms)."""
    for key in keys:
        val = data.get(key)
        if val not in (None, ""):
            return val
    return None


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# PROPOSED RECORDS
# =============================================================================


class ProposedTask(WireModel):
    title: str = ""
    due_date: Optional[dt.date] = None
    assignee: str = ""
    priority: Priority = DEFAULT_PRIORITY
    category: str = DEFAULT_CATEGORY
    summary: str = ""
    estimated_minutes: int = 0
    estimated_time: str = ""  # one of TIME_OPTIONS, or "" when nothing hints at a duration
    energy_level: str = ""  # one of ENERGY_OPTIONS once tagged
    is_weekly_win: Optional[bool] = None  # None until tagged
    theme_tag: str = ""

    @model_validator(mode="before")
    @classmethod
    def accept_llm_synonyms(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not data.get("title"):
            data["title"] = _pick(data, "task", "action", "name")
        if not data.get("assignee"):
            data["assignee"] = _pick(data, "owner", "lead")
        if not data.get("summary"):
            data["summary"] = _pick(data, "notes", "description")
        if not data.get("dueDate") and not data.get("due_date"):
            data["dueDate"] = _pick(data, "deadline")
        return data

    @field_validator("title", "assignee", "summary", "category", "theme_tag", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _text(v)

    @field_validator("category", mode="after")
    @classmethod
    def default_category(cls, v: str) -> str:
        return v or DEFAULT_CATEGORY

    @field_validator("due_date", mode="before")
    @classmethod
    def coerce_due_date(cls, v: Any) -> Optional[dt.date]:
        return parse_iso_day(v)

    @field_validator("priority", mode="before")
    @classmethod
    def coerce_priority(cls, v: Any) -> str:
        raw = _text(v).lower()
        for option in PRIORITIES:
            if raw == option.lower():
                return option
        return DEFAULT_PRIORITY

    @field_validator("estimated_minutes", mode="before")
    @classmethod
    def coerce_minutes(cls, v: Any) -> int:
        if isinstance(v, bool):
            return 0
        try:
            minutes = int(float(v))
        except (TypeError, ValueError, OverflowError):
            return 0
        return max(minutes, 0)

    @field_validator("estimated_time", mode="before")
    @classmethod
    def coerce_estimated_time(cls, v: Any) -> str:
        raw = _text(v).lower()
        for option in TIME_OPTIONS:
            if raw == option.lower():
                return option
        return ""

    @field_validator("energy_level", mode="before")
    @classmethod
    def coerce_energy_level(cls, v: Any) -> str:
        raw = _text(v).lower()
        for option in ENERGY_OPTIONS:
            if raw == option.lower():
                return option
        return ""

    @field_validator("is_weekly_win", mode="before")
    @classmethod
    def coerce_weekly_win(cls, v: Any) -> Optional[bool]:
        return v if isinstance(v, bool) else None


class ProposedCalendarEvent(WireModel):
    title: str = ""
    start_date_time: str = ""
    end_date_time: str = ""
    description: str = ""
    type: str = DEFAULT_EVENT_TYPE

    @model_validator(mode="before")
    @classmethod
    def accept_legacy_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not data.get("title"):
            data["title"] = _pick(data, "event", "name")
        if not data.get("startDateTime") and not data.get("start_date_time"):
            data["startDateTime"] = _pick(data, "date", "start")
        return data

    @field_validator("title", "start_date_time", "end_date_time", "description", "type", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _text(v)

    @field_validator("type", mode="after")
    @classmethod
    def default_type(cls, v: str) -> str:
        return v or DEFAULT_EVENT_TYPE


_INSIGHT_TYPE_MAP: dict[str, InsightType] = {
    "praise": "praise",
    "support": "praise",
    "concern": "concern",
    "challenge": "concern",
    "neutral": "neutral",
    "admin": "neutral",
}


class ProposedStaffInsight(WireModel):
    staff_name: str = ""
    summary: str = ""
    date: Optional[dt.date] = None
    type: InsightType = "neutral"

    @model_validator(mode="before")
    @classmethod
    def accept_synonyms(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not data.get("summary"):
            data["summary"] = _pick(data, "notes", "text")
        if not data.get("type"):
            data["type"] = _pick(data, "interactionType")
        return data

    @field_validator("staff_name", "summary", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _text(v)

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, v: Any) -> Optional[dt.date]:
        return parse_iso_day(v)

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, v: Any) -> str:
        return _INSIGHT_TYPE_MAP.get(_text(v).lower(), "neutral")


class ProposedStrategyNote(WireModel):
    theme: str = ""
    note: str = ""
    linked_to: str = ""

    @field_validator("theme", "note", "linked_to", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _text(v)


class ProposedWellbeingLog(WireModel):
    mood: str = "Okay"
    energy: str = "Medium"
    summary: str = ""

    @field_validator("mood", "energy", "summary", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _text(v)

    @field_validator("mood", mode="after")
    @classmethod
    def default_mood(cls, v: str) -> str:
        return v or "Okay"

    @field_validator("energy", mode="after")
    @classmethod
    def default_energy(cls, v: str) -> str:
        return v or "Medium"


DEFAULT_WELLBEING_SUMMARY = "Default wellbeing entry (model did not return one)."


class NormalizedBatch(WireModel):
    """Typed output of one ingestion: every collection present, possibly empty."""
    raw_text: str = ""
    tasks: list[ProposedTask] = Field(default_factory=list)
    wellbeing: Optional[ProposedWellbeingLog] = None
    staff_insights: list[ProposedStaffInsight] = Field(default_factory=list)
    calendar_events: list[ProposedCalendarEvent] = Field(default_factory=list)
    strategy_notes: list[ProposedStrategyNote] = Field(default_factory=list)


# =============================================================================
# UNVALIDATED PAYLOAD
# =============================================================================

_LIST_KEYS: dict[str, tuple[str, ...]] = {
    "tasks": ("tasks",),
    "staff_insights": ("staffInsights", "staff_insights", "insights"),
    "calendar_events": ("calendarEvents", "calendar_events", "events"),
    "strategy_notes": ("strategyNotes", "strategy_notes"),
}


def _dict_items(raw: Any) -> list[dict]:
    if not isinstance(raw, list):
        return []
    return [item for item in raw if isinstance(item, dict)]


class UnvalidatedPayload(BaseModel):
    """Container-level view of the model's JSON; items are still untyped dicts."""
    structured: bool = False
    tasks: list[dict] = Field(default_factory=list)
    staff_insights: list[dict] = Field(default_factory=list)
    calendar_events: list[dict] = Field(default_factory=list)
    strategy_notes: list[dict] = Field(default_factory=list)
    wellbeing_present: bool = False
    wellbeing: Optional[dict] = None

    @classmethod
    def from_parsed(cls, parsed: Optional[dict]) -> "UnvalidatedPayload":
        if not isinstance(parsed, dict):
            return cls()
        fields: dict[str, Any] = {"structured": True}
        for field_name, keys in _LIST_KEYS.items():
            raw = next((parsed[k] for k in keys if k in parsed), None)
            fields[field_name] = _dict_items(raw)
        if "wellbeing" in parsed:
            fields["wellbeing_present"] = True
            wb = parsed.get("wellbeing")
            fields["wellbeing"] = wb if isinstance(wb, dict) else None
        return cls(**fields)
