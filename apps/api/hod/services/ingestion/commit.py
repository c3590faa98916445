"""
Commit gate: fingerprint approved items against what is already stored and
persist only the new ones.

Order: tasks, wellbeing, staff insights, calendar events, strategy notes,
then staff interaction logs for newly saved insights. Each type is one batched
write. A failed primary write raises PipelineError(PERSIST) and leaves earlier
types committed; a failed staff lookup or interaction log is only recorded on the report.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Optional, TypeVar

from hod.domain import CHALLENGE_KEYWORDS, InteractionType

from .context_tags import apply_context_tags
from .errors import PipelineError, PipelineStage
from .fingerprints import (
    FINGERPRINT_VERSION,
    fingerprint_event,
    fingerprint_insight,
    fingerprint_strategy_note,
    fingerprint_task,
    fingerprint_wellbeing,
)
from .models import NormalizedBatch, ProposedStaffInsight
from .store import IngestionStore, StaffRef

logger = logging.getLogger(__name__)

T = TypeVar("T")

TASK_SOURCE = "brain-dump-reviewed"
INTERACTION_SOURCE = "brain-dump"


@dataclass
class CommitReport:
    persisted: dict[str, int] = field(default_factory=dict)
    skipped_duplicates: dict[str, int] = field(default_factory=dict)
    interactions_logged: int = 0
    secondary_failures: list[str] = field(default_factory=list)

    @property
    def total_persisted(self) -> int:
        return sum(self.persisted.values())


def staff_initials(name: str) -> str:
    return "".join(part[0] for part in name.split() if part).lower()


def match_staff(staff_name: str, staff: list[StaffRef]) -> Optional[StaffRef]:
    """Exact name (case-insensitive) first, then initials."""
    needle = (staff_name or "").strip().lower()
    if not needle:
        return None
    for member in staff:
        if member.name.strip().lower() == needle:
            return member
    for member in staff:
        initials = (member.initials or "").strip().lower() or staff_initials(member.name)
        if initials and initials == needle.replace(".", "").replace(" ", ""):
            return member
    return None


def classify_interaction(insight: ProposedStaffInsight) -> InteractionType:
    if insight.type == "concern":
        return "Challenge"
    text = insight.summary.lower()
    return "Challenge" if any(kw in text for kw in CHALLENGE_KEYWORDS) else "Support"


def _select_new(
    candidates: list[Any],
    fingerprint: Callable[[Any], str],
    existing: set[str],
) -> tuple[list[tuple[Any, str]], int]:
    """Candidates whose fingerprint is non-empty and unseen (also within this payload)."""
    seen = set(existing)
    fresh: list[tuple[Any, str]] = []
    for item in candidates:
        fp = fingerprint(item)
        if not fp or fp in seen:
            continue
        seen.add(fp)
        fresh.append((item, fp))
    return fresh, len(candidates) - len(fresh)


class CommitGate:
    def __init__(
        self,
        store: IngestionStore,
        window_days: int = 30,
        now_fn: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        today_fn: Callable[[], date] = date.today,
    ):
        self.store = store
        self.window_days = window_days
        self.now_fn = now_fn
        # Same calendar day the normalizer used for due dates
        self.today_fn = today_fn

    async def _guard(self, kind: str, op: Awaitable[T]) -> T:
        try:
            return await op
        except Exception as e:
            logger.exception("Persisting %s failed", kind)
            raise PipelineError(PipelineStage.PERSIST, f"Persisting {kind} failed", e) from e

    async def commit(self, user_id: str, payload: NormalizedBatch) -> CommitReport:
        today = self.today_fn()
        since = self.now_fn() - timedelta(days=self.window_days)
        report = CommitReport()

        def tally(kind: str, saved: int, skipped: int) -> None:
            report.persisted[kind] = saved
            report.skipped_duplicates[kind] = skipped

        # Tasks: checked against every stored task, not just recent ones
        existing = await self._guard("tasks", self.store.existing_task_fingerprints(user_id))
        tasks, skipped = _select_new(
            [apply_context_tags(t) for t in payload.tasks], fingerprint_task, existing
        )
        await self._guard("tasks", self.store.add_tasks(user_id, [
            {
                **task.model_dump(exclude={"is_weekly_win"}),
                "is_weekly_win": bool(task.is_weekly_win),
                "status": "todo",
                "original_source": TASK_SOURCE,
                "fingerprint": fp,
                "fingerprint_version": FINGERPRINT_VERSION,
            }
            for task, fp in tasks
        ]))
        tally("tasks", len(tasks), skipped)

        if payload.wellbeing is not None:
            log = {**payload.wellbeing.model_dump(), "date": today}
            existing = await self._guard(
                "wellbeing", self.store.recent_fingerprints(user_id, "wellbeing", since)
            )
            logs, skipped = _select_new([log], fingerprint_wellbeing, existing)
            await self._guard("wellbeing", self.store.add_wellbeing_logs(user_id, [
                {**row, "source": INTERACTION_SOURCE, "fingerprint": fp,
                 "fingerprint_version": FINGERPRINT_VERSION}
                for row, fp in logs
            ]))
            tally("wellbeing", len(logs), skipped)

        staff = await self._load_staff(user_id, report) if payload.staff_insights else []
        existing = await self._guard(
            "staff insights", self.store.recent_fingerprints(user_id, "insight", since)
        )
        insights, skipped = _select_new(payload.staff_insights, fingerprint_insight, existing)
        matches = [(insight, match_staff(insight.staff_name, staff)) for insight, _ in insights]
        await self._guard("staff insights", self.store.add_staff_insights(user_id, [
            {
                **insight.model_dump(),
                "staff_id": member.id if member else None,
                "fingerprint": fp,
                "fingerprint_version": FINGERPRINT_VERSION,
            }
            for (insight, fp), (_, member) in zip(insights, matches)
        ]))
        tally("staff_insights", len(insights), skipped)

        existing = await self._guard("calendar events", self.store.context_event_fingerprints(user_id))
        events, skipped = _select_new(payload.calendar_events, fingerprint_event, existing)
        await self._guard("calendar events", self.store.append_context_events(
            user_id, [event.model_dump(by_alias=True) for event, _ in events]
        ))
        tally("calendar_events", len(events), skipped)

        existing = await self._guard(
            "strategy notes", self.store.recent_fingerprints(user_id, "strategy_note", since)
        )
        notes, skipped = _select_new(payload.strategy_notes, fingerprint_strategy_note, existing)
        await self._guard("strategy notes", self.store.add_strategy_notes(user_id, [
            {**note.model_dump(), "fingerprint": fp, "fingerprint_version": FINGERPRINT_VERSION}
            for note, fp in notes
        ]))
        tally("strategy_notes", len(notes), skipped)

        await self._log_interactions(user_id, matches, today, report)
        logger.info(
            "Committed %d record(s) for user %s (duplicates skipped: %s)",
            report.total_persisted,
            user_id,
            report.skipped_duplicates,
        )
        return report

    async def _load_staff(self, user_id: str, report: CommitReport) -> list[StaffRef]:
        """Directory for matching insights; without it insights save unlinked and nothing is logged."""
        try:
            return await self.store.list_staff(user_id)
        except Exception as e:
            logger.exception("Staff lookup failed for user %s", user_id)
            report.secondary_failures.append(f"Staff lookup failed: {e}")
            return []

    async def _log_interactions(
        self,
        user_id: str,
        matches: list[tuple[ProposedStaffInsight, Optional[StaffRef]]],
        today: date,
        report: CommitReport,
    ) -> None:
        """Secondary write: failures are reported, never raised, and never undo the insight."""
        for insight, member in matches:
            if member is None or not insight.summary:
                continue
            kind = classify_interaction(insight)
            try:
                await self.store.add_staff_interaction(user_id, member.id, {
                    "staff_name": insight.staff_name or member.name,
                    "date": insight.date or today,
                    "type": kind,
                    "interaction_type": kind.upper(),
                    "buck_tag": kind,
                    "summary": insight.summary,
                    "source": INTERACTION_SOURCE,
                })
            except Exception as e:
                logger.exception("Failed to log staff interaction for %s", member.name)
                report.secondary_failures.append(
                    f"Interaction log for {member.name} failed: {e}"
                )
                continue
            report.interactions_logged += 1
