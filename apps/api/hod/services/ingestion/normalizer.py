"""
Domain normalizer: untyped model JSON -> NormalizedBatch.

Pure function of (payload, source text, today). No network, no clock reads;
the pipeline passes ``today`` in so tests can pin it.

Steps:
  1. Coerce each item into its Proposed* model (bad items are skipped)
  2. No-loss rule: no tasks + non-blank input -> one task holding the whole input
  3. Context tags, then due-date inference for tasks without a usable date
  4. In-batch dedup per record type, first occurrence wins
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Callable, Optional, TypeVar, Union

from pydantic import BaseModel, ValidationError

from hod.core.constants import CAPTURED_TITLE_MAX_CHARS
from hod.domain import STAKEHOLDER_KEYWORDS, TIME_OPTION_MINUTES

from .context_tags import apply_context_tags
from .models import (
    DEFAULT_WELLBEING_SUMMARY,
    NormalizedBatch,
    ProposedCalendarEvent,
    ProposedStaffInsight,
    ProposedStrategyNote,
    ProposedTask,
    ProposedWellbeingLog,
    UnvalidatedPayload,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

# Filled after tagging when nothing in the task hints at a duration
DEFAULT_ESTIMATED_TIME = "30 min"
CAPTURED_NOTE_TITLE = "Captured note"


# -----------------------------------------------------------------------------
# Due dates
# -----------------------------------------------------------------------------


def text_due_cue(text: str, today: date) -> Optional[date]:
    """'tomorrow' beats 'today' / 'end of day'; None when the text names neither."""
    lower = (text or "").lower()
    if "tomorrow" in lower:
        return today + timedelta(days=1)
    if "today" in lower or "end of day" in lower:
        return today
    return None


def is_stakeholder_task(task: ProposedTask) -> bool:
    text = f"{task.title} {task.summary} {task.assignee}".lower()
    return any(kw in text for kw in STAKEHOLDER_KEYWORDS)


def estimated_minutes_from_task(task: ProposedTask) -> int:
    if task.estimated_minutes > 0:
        return task.estimated_minutes
    return TIME_OPTION_MINUTES.get(task.estimated_time, 0)


def derive_due_date(task: ProposedTask, today: date, cue: Optional[date] = None) -> date:
    if task.due_date is not None:
        return task.due_date
    if cue is not None:
        return cue
    if is_stakeholder_task(task):
        return today
    minutes = estimated_minutes_from_task(task)
    if 0 < minutes < 30:
        return today if minutes <= 15 else today + timedelta(days=2)
    return today + timedelta(days=7)


# -----------------------------------------------------------------------------
# In-batch dedup keys
# -----------------------------------------------------------------------------


def _join_key(*parts: str) -> str:
    """Pipe-joined key; "" when every part is blank."""
    cleaned = [(p or "").strip().lower() for p in parts]
    if not any(cleaned):
        return ""
    return "|".join(cleaned)


def _day(value: Union[date, str, None]) -> str:
    if value is None:
        return ""
    if isinstance(value, date):
        return value.isoformat()
    return str(value)[:10]


def task_batch_key(task: ProposedTask) -> str:
    return _join_key(task.title, _day(task.due_date))


def event_batch_key(event: ProposedCalendarEvent) -> str:
    return _join_key(event.title, _day(event.start_date_time))


def insight_batch_key(insight: ProposedStaffInsight) -> str:
    return _join_key(insight.staff_name, _day(insight.date), insight.summary)


def note_batch_key(note: ProposedStrategyNote) -> str:
    return _join_key(note.theme, note.note)


def dedupe(items: list[M], key_fn: Callable[[M], str]) -> list[M]:
    seen: set[str] = set()
    out: list[M] = []
    for item in items:
        key = key_fn(item)
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(item)
    return out


# -----------------------------------------------------------------------------
# Coercion
# -----------------------------------------------------------------------------


def _coerce_all(model: type[M], raw_items: list[dict]) -> list[M]:
    out: list[M] = []
    for raw in raw_items:
        try:
            out.append(model.model_validate(raw))
        except ValidationError as e:
            logger.warning("Skipping malformed %s: %s", model.__name__, e.errors()[:1])
    return out


def captured_title(text: str) -> str:
    if len(text) > CAPTURED_TITLE_MAX_CHARS:
        return text[:CAPTURED_TITLE_MAX_CHARS - 3].rstrip() + "…"
    return text.strip() or CAPTURED_NOTE_TITLE


def synthesize_captured_task(source_text: str) -> ProposedTask:
    """Single task carrying the whole input so nothing the user typed is lost."""
    task = ProposedTask(
        title=captured_title(source_text),
        priority="Medium",
        category="General",
        estimated_minutes=0,
        assignee="",
    )
    # Verbatim input, padding included; the text validator would strip it
    return task.model_copy(update={"summary": source_text})


def normalize_wellbeing(payload: UnvalidatedPayload) -> Optional[ProposedWellbeingLog]:
    if payload.wellbeing is not None:
        try:
            return ProposedWellbeingLog.model_validate(payload.wellbeing)
        except ValidationError:
            logger.warning("Malformed wellbeing object; using default entry")
    elif payload.wellbeing_present or not payload.structured:
        return None
    return ProposedWellbeingLog(summary=DEFAULT_WELLBEING_SUMMARY)


# -----------------------------------------------------------------------------
# Entry point
# -----------------------------------------------------------------------------


def normalize_batch(
    payload: Union[UnvalidatedPayload, dict, None],
    source_text: str,
    today: date,
    *,
    raw_text: Optional[str] = None,
) -> NormalizedBatch:
    if not isinstance(payload, UnvalidatedPayload):
        payload = UnvalidatedPayload.from_parsed(payload)
    source_text = source_text or ""

    tasks = _coerce_all(ProposedTask, payload.tasks)
    if not tasks and source_text.strip():
        tasks = [synthesize_captured_task(source_text)]

    # A lone task stands for the whole input, so the whole input's cue applies
    source_cue = text_due_cue(source_text, today) if len(tasks) == 1 else None
    normalized_tasks: list[ProposedTask] = []
    for task in tasks:
        tagged = apply_context_tags(task)
        if not tagged.estimated_time:
            tagged = tagged.model_copy(update={"estimated_time": DEFAULT_ESTIMATED_TIME})
        cue = text_due_cue(f"{task.title} {task.summary}", today) or source_cue
        normalized_tasks.append(
            tagged.model_copy(update={"due_date": derive_due_date(tagged, today, cue)})
        )

    insights = [
        i if i.date is not None else i.model_copy(update={"date": today})
        for i in _coerce_all(ProposedStaffInsight, payload.staff_insights)
    ]

    return NormalizedBatch(
        raw_text=source_text if raw_text is None else raw_text,
        tasks=dedupe(normalized_tasks, task_batch_key),
        wellbeing=normalize_wellbeing(payload),
        staff_insights=dedupe(insights, insight_batch_key),
        calendar_events=dedupe(
            _coerce_all(ProposedCalendarEvent, payload.calendar_events), event_batch_key
        ),
        strategy_notes=dedupe(
            _coerce_all(ProposedStrategyNote, payload.strategy_notes), note_batch_key
        ),
    )

