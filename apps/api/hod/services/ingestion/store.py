"""
Persistence port for the commit gate, plus its SQLAlchemy implementation.

Every write method opens its own session and commits once, so each record
type lands (or fails) on its own; there is no transaction spanning types.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Literal, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hod.db.models import (
    StaffInsight,
    StaffInteraction,
    StaffMember,
    StrategyNote,
    Task,
    UserContext,
    WellbeingLog,
)

from .fingerprints import (
    fingerprint_insight,
    fingerprint_stored_event,
    fingerprint_strategy_note,
    fingerprint_task,
    fingerprint_wellbeing,
)
from .models import parse_iso_day
from .pipeline import PromptContext, build_prompt_context

logger = logging.getLogger(__name__)

RecentKind = Literal["insight", "strategy_note", "wellbeing"]


@dataclass(frozen=True)
class StaffRef:
    id: str
    name: str
    initials: str = ""
    role: str = ""


class IngestionStore(Protocol):
    async def existing_task_fingerprints(self, user_id: str) -> set[str]: ...

    async def recent_fingerprints(self, user_id: str, kind: RecentKind, since: datetime) -> set[str]: ...

    async def context_event_fingerprints(self, user_id: str) -> set[str]: ...

    async def add_tasks(self, user_id: str, rows: list[dict[str, Any]]) -> None: ...

    async def add_wellbeing_logs(self, user_id: str, rows: list[dict[str, Any]]) -> None: ...

    async def add_staff_insights(self, user_id: str, rows: list[dict[str, Any]]) -> None: ...

    async def add_strategy_notes(self, user_id: str, rows: list[dict[str, Any]]) -> None: ...

    async def append_context_events(self, user_id: str, events: list[dict[str, Any]]) -> None: ...

    async def append_context_goals(self, user_id: str, goals: list[dict[str, Any]]) -> None: ...

    async def list_staff(self, user_id: str) -> list[StaffRef]: ...

    async def add_staff_interaction(self, user_id: str, staff_id: str, row: dict[str, Any]) -> None: ...

    async def load_prompt_context(self, user_id: str, today: date) -> PromptContext: ...


def _collect(fingerprints: Iterable[str]) -> set[str]:
    return {fp for fp in fingerprints if fp}


def _event_day(event: dict[str, Any]) -> Optional[date]:
    return parse_iso_day(event.get("startDateTime") or event.get("date"))


class SqlAlchemyIngestionStore:
    """IngestionStore over the async SQLAlchemy models."""

    # Model + fallback fingerprint for rows written before fingerprints were stored
    _RECENT = {
        "insight": (StaffInsight, fingerprint_insight),
        "strategy_note": (StrategyNote, fingerprint_strategy_note),
        "wellbeing": (WellbeingLog, fingerprint_wellbeing),
    }

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session = session_factory

    # -- reads -------------------------------------------------------------

    async def existing_task_fingerprints(self, user_id: str) -> set[str]:
        async with self._session() as db:
            result = await db.execute(select(Task).where(Task.user_id == user_id))
            return _collect(t.fingerprint or fingerprint_task(t) for t in result.scalars())

    async def recent_fingerprints(self, user_id: str, kind: RecentKind, since: datetime) -> set[str]:
        model, fallback = self._RECENT[kind]
        async with self._session() as db:
            result = await db.execute(
                select(model).where(model.user_id == user_id, model.created_at >= since)
            )
            return _collect(row.fingerprint or fallback(row) for row in result.scalars())

    async def _context(self, db: AsyncSession, user_id: str) -> Optional[UserContext]:
        result = await db.execute(select(UserContext).where(UserContext.user_id == user_id))
        return result.scalar_one_or_none()

    async def context_event_fingerprints(self, user_id: str) -> set[str]:
        async with self._session() as db:
            ctx = await self._context(db, user_id)
            events = ctx.events if ctx is not None and ctx.events else []
            return _collect(fingerprint_stored_event(e) for e in events if isinstance(e, dict))

    async def list_staff(self, user_id: str) -> list[StaffRef]:
        async with self._session() as db:
            result = await db.execute(
                select(StaffMember).where(StaffMember.user_id == user_id).order_by(StaffMember.name)
            )
            return [
                StaffRef(id=s.id, name=s.name, initials=s.initials or "", role=s.role or "")
                for s in result.scalars()
            ]

    async def load_prompt_context(self, user_id: str, today: date) -> PromptContext:
        """Open task titles, staff directory, today's/tomorrow's events and goal titles."""
        async with self._session() as db:
            tasks = await db.execute(
                select(Task.title, Task.status).where(Task.user_id == user_id, Task.archived_at.is_(None))
            )
            task_rows = [{"title": title, "status": status} for title, status in tasks.all()]
            ctx = await self._context(db, user_id)
        staff = await self.list_staff(user_id)

        events = ctx.events if ctx is not None and ctx.events else []
        goals = ctx.goals if ctx is not None and ctx.goals else []
        window = {today, today + timedelta(days=1)}
        upcoming = [e for e in events if isinstance(e, dict) and _event_day(e) in window]
        return build_prompt_context(
            tasks=task_rows,
            staff=[{"name": s.name, "id": s.id, "role": s.role} for s in staff],
            events=upcoming,
            goals=[g for g in goals if isinstance(g, dict)],
        )

    # -- writes ------------------------------------------------------------

    async def _add_all(self, model: type, user_id: str, rows: list[dict[str, Any]]) -> None:
        if not rows:
            return
        async with self._session() as db:
            db.add_all([model(user_id=user_id, **row) for row in rows])
            await db.commit()

    async def add_tasks(self, user_id: str, rows: list[dict[str, Any]]) -> None:
        await self._add_all(Task, user_id, rows)

    async def add_wellbeing_logs(self, user_id: str, rows: list[dict[str, Any]]) -> None:
        await self._add_all(WellbeingLog, user_id, rows)

    async def add_staff_insights(self, user_id: str, rows: list[dict[str, Any]]) -> None:
        await self._add_all(StaffInsight, user_id, rows)

    async def add_strategy_notes(self, user_id: str, rows: list[dict[str, Any]]) -> None:
        await self._add_all(StrategyNote, user_id, rows)

    async def _append_context(self, user_id: str, field: str, items: list[dict[str, Any]]) -> None:
        if not items:
            return
        async with self._session() as db:
            ctx = await self._context(db, user_id)
            if ctx is None:
                ctx = UserContext(user_id=user_id, events=[], goals=[])
                db.add(ctx)
            # Reassign so the JSON column is flagged dirty
            setattr(ctx, field, [*(getattr(ctx, field) or []), *items])
            await db.commit()

    async def append_context_events(self, user_id: str, events: list[dict[str, Any]]) -> None:
        await self._append_context(user_id, "events", events)

    async def append_context_goals(self, user_id: str, goals: list[dict[str, Any]]) -> None:
        await self._append_context(user_id, "goals", goals)

    async def add_staff_interaction(self, user_id: str, staff_id: str, row: dict[str, Any]) -> None:
        async with self._session() as db:
            db.add(StaffInteraction(user_id=user_id, staff_id=staff_id, **row))
            await db.commit()
