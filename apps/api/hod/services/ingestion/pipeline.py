"""
Ingestion pipeline

Orchestrates: prompt -> LLM -> extract -> parse -> normalize -> (fallback) -> merge.

SECTIONS (in order):
  1. Prompt context  - Optimised context (active task titles, staff directory, event titles).
  2. Fallback rules  - needs_fallback, merge_better_payloads.
  3. Pipeline        - IngestionPipeline: brain dump, meeting minutes, context import.

Every public coroutine here degrades instead of raising: a failed LLM call
becomes a notice on the injected ErrorReporter plus a safe result (a no-loss
batch, fallback minutes, or None).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Iterable, Optional, Sequence

from hod.core.constants import (
    AI_BUSY_MESSAGE,
    AI_UNAVAILABLE_MESSAGE,
    FALLBACK_MAX_PRIMARY_TASKS,
    FALLBACK_MIN_CHARS,
    FALLBACK_MIN_LINES,
)
from hod.domain import ContextKind
from hod.prompts import (
    PROMPT_BRAIN_DUMP,
    PROMPT_BRAIN_DUMP_STRICT,
    PROMPT_CONTEXT_CALENDAR,
    PROMPT_CONTEXT_GOALS,
    PROMPT_MEETING_MINUTES,
    fill_prompt,
)
from hod.providers import ChatProvider, ChatRateLimitError, ChatServiceError

from .errors import ErrorReporter, LoggingErrorReporter
from .extraction import extract_text_candidate, parse_model_response, parse_model_text
from .minutes import ContextImport, MeetingMinutes, fallback_minutes, normalize_context, normalize_minutes
from .models import NormalizedBatch
from .normalizer import normalize_batch

logger = logging.getLogger(__name__)

PRIMARY_GENERATION_CONFIG = {
    "responseMimeType": "application/json",
    "temperature": 0.1,
    "maxOutputTokens": 6144,
}
FALLBACK_GENERATION_CONFIG = {
    "responseMimeType": "application/json",
    "temperature": 0.05,
    "maxOutputTokens": 6144,
}
MINUTES_GENERATION_CONFIG = {"responseMimeType": "application/json", "temperature": 0.1}
CONTEXT_GENERATION_CONFIG = {"responseMimeType": "application/json"}

_CLOSED_TASK_STATUSES = frozenset({"done", "completed"})


# =============================================================================
# PROMPT CONTEXT
# =============================================================================


@dataclass
class PromptContext:
    """Trimmed-down account state sent alongside the brain dump."""
    existing_task_titles: list[str] = field(default_factory=list)
    staff_directory: list[dict[str, Any]] = field(default_factory=list)
    today_events: list[str] = field(default_factory=list)
    goals: list[str] = field(default_factory=list)


def _get(obj: Any, name: str) -> Any:
    return obj.get(name) if isinstance(obj, dict) else getattr(obj, name, None)


def build_prompt_context(
    tasks: Iterable[Any] = (),
    staff: Iterable[Any] = (),
    events: Iterable[Any] = (),
    goals: Iterable[Any] = (),
) -> PromptContext:
    """Keep only what the model needs: open task titles, who's who, event and goal titles."""
    return PromptContext(
        existing_task_titles=[
            _get(t, "title") for t in tasks
            if _get(t, "title") and (_get(t, "status") or "").lower() not in _CLOSED_TASK_STATUSES
        ],
        staff_directory=[
            {"name": _get(s, "name"), "id": _get(s, "id"), "role": _get(s, "role")}
            for s in staff
        ],
        today_events=[
            _get(e, "title") or _get(e, "event") for e in events
            if _get(e, "title") or _get(e, "event")
        ],
        goals=[_get(g, "title") for g in goals if _get(g, "title")],
    )


def _staff_context(staff: Sequence[Any], context: PromptContext) -> str:
    if context.staff_directory:
        return f"Staff Directory (for assignment): {json.dumps(context.staff_directory)}"
    if not staff:
        return "No staff directory provided."
    described = [
        f"{_get(s, 'name')} (Teaches: {', '.join(_get(s, 'year_groups') or []) or 'None'})"
        for s in staff
    ]
    return f"Staff available: {'; '.join(described)}"


def render_brain_dump_prompt(
    template: str,
    text: str,
    today: date,
    staff: Sequence[Any] = (),
    context: Optional[PromptContext] = None,
) -> str:
    context = context or PromptContext()
    return fill_prompt(
        template,
        user_text=text,
        current_date=today.isoformat(),
        calendar_context=(
            f"Today's/Tomorrow's Events: {'; '.join(context.today_events)}"
            if context.today_events else "No calendar data."
        ),
        goal_context="; ".join(context.goals) if context.goals else "No specific goals.",
        staff_context=_staff_context(staff, context),
        existing_tasks=(
            f"Existing task titles (for de-duplication): {'; '.join(context.existing_task_titles)}"
            if context.existing_task_titles else "No existing tasks provided."
        ),
    )


# =============================================================================
# FALLBACK RULES
# =============================================================================


def needs_fallback(task_count: int, source_text: str) -> bool:
    """Few tasks from a long or many-line input means the model collapsed actions."""
    if task_count > FALLBACK_MAX_PRIMARY_TASKS:
        return False
    text = source_text or ""
    return len(text.split("\n")) >= FALLBACK_MIN_LINES or len(text) > FALLBACK_MIN_CHARS


def merge_better_payloads(primary: NormalizedBatch, fallback: NormalizedBatch) -> NormalizedBatch:
    """Per record type keep whichever pass found strictly more; primary wins ties."""
    update: dict[str, Any] = {}
    for name in ("tasks", "calendar_events", "staff_insights", "strategy_notes"):
        if len(getattr(fallback, name)) > len(getattr(primary, name)):
            update[name] = getattr(fallback, name)
    if not primary.raw_text and fallback.raw_text:
        update["raw_text"] = fallback.raw_text
    if primary.wellbeing is None and fallback.wellbeing is not None:
        update["wellbeing"] = fallback.wellbeing
    return primary.model_copy(update=update)


# =============================================================================
# PIPELINE
# =============================================================================


class IngestionPipeline:
    """LLM-backed ingestion; one instance per request is fine (no state beyond collaborators)."""

    def __init__(
        self,
        chat: ChatProvider,
        reporter: Optional[ErrorReporter] = None,
        today_fn: Callable[[], date] = date.today,
    ):
        self.chat = chat
        self.reporter = reporter or LoggingErrorReporter()
        self.today_fn = today_fn

    async def _generate(self, prompt: str, generation_config: dict) -> Optional[dict]:
        """One LLM call; None (plus a notice) on any transport failure."""
        try:
            return await self.chat.generate(prompt, generation_config)
        except ChatRateLimitError as e:
            logger.warning("LLM rate limited after retries: %s", e)
            self.reporter.report(AI_BUSY_MESSAGE)
        except ChatServiceError as e:
            logger.warning("LLM request failed: %s", e)
            self.reporter.report(AI_UNAVAILABLE_MESSAGE)
        return None

    async def analyze_brain_dump(
        self,
        text: str,
        staff: Sequence[Any] = (),
        context: Optional[PromptContext] = None,
    ) -> NormalizedBatch:
        today = self.today_fn()
        prompt = render_brain_dump_prompt(PROMPT_BRAIN_DUMP, text, today, staff, context)
        envelope = await self._generate(prompt, PRIMARY_GENERATION_CONFIG)
        if envelope is None:
            return normalize_batch(None, text, today)

        extracted = parse_model_response(envelope)
        primary = normalize_batch(extracted.parsed, text, today, raw_text=extracted.raw_text or text)
        if not needs_fallback(len(primary.tasks), text):
            return primary

        logger.info(
            "Primary pass under-extracted (%d task(s) from %d chars); running strict pass",
            len(primary.tasks),
            len(text),
        )
        strict_prompt = render_brain_dump_prompt(PROMPT_BRAIN_DUMP_STRICT, text, today)
        fallback_envelope = await self._generate(strict_prompt, FALLBACK_GENERATION_CONFIG)
        if fallback_envelope is None:
            return primary

        fallback_extracted = parse_model_response(fallback_envelope)
        fallback = normalize_batch(
            fallback_extracted.parsed,
            text,
            today,
            raw_text=fallback_extracted.raw_text or primary.raw_text or text,
        )
        return merge_better_payloads(primary, fallback)

    async def parse_meeting_minutes(self, text: str) -> MeetingMinutes:
        if not text or not text.strip():
            return MeetingMinutes()
        envelope = await self._generate(
            fill_prompt(PROMPT_MEETING_MINUTES, user_text=text), MINUTES_GENERATION_CONFIG
        )
        if envelope is None:
            return fallback_minutes(text)
        parsed = parse_model_text(extract_text_candidate(envelope)).parsed
        if parsed is None:
            logger.warning("Minutes response held no JSON; using line fallback")
        return normalize_minutes(parsed, text)

    async def analyze_context(self, text: str, kind: ContextKind) -> Optional[ContextImport]:
        template = PROMPT_CONTEXT_CALENDAR if kind == "calendar" else PROMPT_CONTEXT_GOALS
        envelope = await self._generate(
            fill_prompt(template, user_text=text), CONTEXT_GENERATION_CONFIG
        )
        if envelope is None:
            return None
        parsed = parse_model_text(extract_text_candidate(envelope)).parsed
        if parsed is None:
            logger.warning("Context import (%s) returned no JSON", kind)
            self.reporter.report(AI_UNAVAILABLE_MESSAGE)
            return None
        return normalize_context(parsed, kind)
