from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from hod.db.models import StaffInteraction, StaffMember, Task
from hod.db.session import Base
from hod.services.ingestion import CommitGate, NormalizedBatch, SqlAlchemyIngestionStore
from hod.services.ingestion.fingerprints import fingerprint_task
from hod.services.ingestion.models import ProposedCalendarEvent, ProposedStaffInsight, ProposedTask

LONG_AGO = datetime(2000, 1, 1, tzinfo=timezone.utc)
FAR_FUTURE = datetime(2100, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
async def session_factory():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def sql_store(session_factory):
    return SqlAlchemyIngestionStore(session_factory)


async def add_staff(session_factory, user_id, name, initials=None):
    async with session_factory() as db:
        member = StaffMember(user_id=user_id, name=name, initials=initials)
        db.add(member)
        await db.commit()
        return member.id


async def test_task_fingerprints_fall_back_for_legacy_rows(sql_store, session_factory):
    await sql_store.add_tasks("user-1", [{"title": "Mark mocks", "fingerprint": "stored|fp", "fingerprint_version": 1}])
    async with session_factory() as db:
        db.add(Task(user_id="user-1", title="Legacy task", due_date=date(2025, 3, 1), category="Admin"))
        db.add(Task(user_id="user-2", title="Someone else's task"))
        await db.commit()

    fingerprints = await sql_store.existing_task_fingerprints("user-1")

    legacy = ProposedTask(title="Legacy task", due_date=date(2025, 3, 1), category="Admin")
    assert fingerprints == {"stored|fp", fingerprint_task(legacy)}


async def test_recent_fingerprints_respect_window(sql_store):
    await sql_store.add_strategy_notes("user-1", [{"theme": "Literacy", "note": "Reading ages", "fingerprint": "lit|fp"}])

    assert await sql_store.recent_fingerprints("user-1", "strategy_note", LONG_AGO) == {"lit|fp"}
    assert await sql_store.recent_fingerprints("user-1", "strategy_note", FAR_FUTURE) == set()
    assert await sql_store.recent_fingerprints("user-2", "strategy_note", LONG_AGO) == set()


async def test_context_events_accumulate(sql_store):
    await sql_store.append_context_events("user-1", [{"title": "Mock exams", "startDateTime": "2025-03-20T09:00"}])
    await sql_store.append_context_events("user-1", [{"event": "Parents Evening", "date": "2025-03-27"}])
    await sql_store.append_context_goals("user-1", [{"title": "Raise attainment", "focus": "KS4"}])

    assert await sql_store.context_event_fingerprints("user-1") == {
        "mock exams|2025-03-20",
        "parents evening|2025-03-27",
    }
    assert await sql_store.context_event_fingerprints("user-2") == set()


async def test_list_staff_and_interactions(sql_store, session_factory):
    priya = await add_staff(session_factory, "user-1", "Priya Patel")
    await add_staff(session_factory, "user-1", "Dave Smith", "DS")
    await add_staff(session_factory, "user-2", "Other Person")

    staff = await sql_store.list_staff("user-1")
    assert [(s.name, s.initials) for s in staff] == [("Dave Smith", "DS"), ("Priya Patel", "")]

    await sql_store.add_staff_interaction("user-1", priya, {
        "staff_name": "Priya Patel",
        "date": date(2025, 3, 10),
        "type": "Support",
        "interaction_type": "SUPPORT",
        "buck_tag": "Support",
        "summary": "Great lesson",
        "source": "brain-dump",
    })
    async with session_factory() as db:
        count = await db.scalar(select(func.count()).select_from(StaffInteraction))
    assert count == 1


async def test_prompt_context_uses_open_tasks_and_upcoming_events(sql_store):
    today = date(2025, 3, 10)
    await sql_store.add_tasks("user-1", [
        {"title": "Open task", "status": "todo"},
        {"title": "Finished task", "status": "done"},
    ])
    await sql_store.append_context_events("user-1", [
        {"event": "Today's INSET", "date": "2025-03-10"},
        {"title": "Tomorrow's trip", "startDateTime": "2025-03-11T08:00"},
        {"event": "Next week's mocks", "date": "2025-03-17"},
    ])
    await sql_store.append_context_goals("user-1", [{"title": "Raise attainment"}])

    context = await sql_store.load_prompt_context("user-1", today)

    assert context.existing_task_titles == ["Open task"]
    assert context.today_events == ["Today's INSET", "Tomorrow's trip"]
    assert context.goals == ["Raise attainment"]


async def test_commit_gate_over_database_is_idempotent(sql_store, session_factory):
    await add_staff(session_factory, "user-1", "Dave Smith", "DS")
    today = datetime.now(timezone.utc).date()
    payload = NormalizedBatch(
        tasks=[ProposedTask(title="Chase cover work", due_date=today + timedelta(days=1))],
        staff_insights=[ProposedStaffInsight(staff_name="DS", summary="Covered period 3", date=today)],
        calendar_events=[ProposedCalendarEvent(title="Mock exams", start_date_time="2025-03-20T09:00")],
    )
    gate = CommitGate(sql_store)

    first = await gate.commit("user-1", payload)
    second = await gate.commit("user-1", payload)

    assert first.persisted == {"tasks": 1, "staff_insights": 1, "calendar_events": 1, "strategy_notes": 0}
    assert first.interactions_logged == 1
    assert second.total_persisted == 0
    async with session_factory() as db:
        assert await db.scalar(select(func.count()).select_from(Task)) == 1
