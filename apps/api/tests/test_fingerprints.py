from datetime import date, datetime

import pytest

from hod.services.ingestion.fingerprints import (
    FINGERPRINT_VERSION,
    build_fingerprint,
    fingerprint_event,
    fingerprint_insight,
    fingerprint_stored_event,
    fingerprint_strategy_note,
    fingerprint_task,
    fingerprint_wellbeing,
)
from hod.services.ingestion.models import (
    ProposedCalendarEvent,
    ProposedStaffInsight,
    ProposedStrategyNote,
    ProposedTask,
)


def test_task_fingerprint_uses_identity_fields_only():
    a = ProposedTask(title="Mark mocks", due_date=date(2025, 3, 17), assignee="Sam", priority="High", summary="x")
    b = ProposedTask(title="  MARK MOCKS ", due_date=date(2025, 3, 17), assignee="sam", priority="Low", summary="y")
    c = ProposedTask(title="Mark mocks", due_date=date(2025, 3, 18), assignee="Sam")

    assert fingerprint_task(a) == "mark mocks|2025-03-17|sam|general"
    assert fingerprint_task(a) == fingerprint_task(b)
    assert fingerprint_task(a) != fingerprint_task(c)


def test_mappings_and_models_agree():
    task = ProposedTask(title="Mark mocks", due_date=date(2025, 3, 17), category="Teaching")
    row = {"title": "Mark mocks", "due_date": "2025-03-17", "assignee": None, "category": "Teaching"}
    assert build_fingerprint("task", row) == fingerprint_task(task)


def test_event_needs_title_and_start():
    assert fingerprint_event(ProposedCalendarEvent(title="Mock exams", start_date_time="2025-03-20T09:00")) == (
        "mock exams|2025-03-20"
    )
    assert fingerprint_event(ProposedCalendarEvent(title="Mock exams")) == ""
    assert fingerprint_event(ProposedCalendarEvent(start_date_time="2025-03-20")) == ""


def test_stored_event_keys_from_either_writer():
    ai_written = ProposedCalendarEvent(title="Mock exams", start_date_time="2025-03-20T09:00").model_dump(by_alias=True)
    imported = {"event": "Mock Exams", "date": "2025-03-20", "type": "Exam"}
    assert fingerprint_stored_event(ai_written) == fingerprint_stored_event(imported)


def test_insight_needs_every_field():
    full = ProposedStaffInsight(staff_name="Dave", date=date(2025, 3, 10), summary="Late to duty")
    assert fingerprint_insight(full) == "dave|2025-03-10|late to duty"
    assert fingerprint_insight(full.model_copy(update={"date": None})) == ""


def test_strategy_note_needs_any_field():
    assert fingerprint_strategy_note(ProposedStrategyNote(theme="Literacy")) == "literacy|"
    assert fingerprint_strategy_note(ProposedStrategyNote()) == ""


def test_wellbeing_day_from_datetime():
    log = {"date": datetime(2025, 3, 10, 18, 30), "mood": "Tough", "energy": "Low", "summary": ""}
    assert fingerprint_wellbeing(log) == "2025-03-10|tough|low|"


def test_unknown_version_or_kind_is_an_error():
    with pytest.raises(ValueError):
        build_fingerprint("task", {}, version=FINGERPRINT_VERSION + 1)
    with pytest.raises(ValueError):
        build_fingerprint("meeting", {})
