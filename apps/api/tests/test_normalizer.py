from datetime import date, timedelta

from hod.services.ingestion.extraction import parse_model_text
from hod.services.ingestion.models import DEFAULT_WELLBEING_SUMMARY, ProposedTask, UnvalidatedPayload
from hod.services.ingestion.normalizer import (
    captured_title,
    derive_due_date,
    normalize_batch,
    text_due_cue,
)

from conftest import TODAY


def test_unparseable_response_keeps_the_whole_input():
    text = "Need to sort out the Year 11 intervention list before Friday and speak to SLT"
    batch = normalize_batch(None, text, TODAY, raw_text="Sorry, I can't do that")

    assert len(batch.tasks) == 1
    assert batch.tasks[0].summary == text
    assert batch.tasks[0].title == text
    assert batch.raw_text == "Sorry, I can't do that"
    assert batch.wellbeing is None


def test_structured_response_without_tasks_also_synthesizes_one():
    text = "  just thinking out loud about next year  "
    batch = normalize_batch({"tasks": [], "strategyNotes": [{"theme": "KS4", "note": "Options"}]}, text, TODAY)

    assert len(batch.tasks) == 1
    assert batch.tasks[0].summary == text
    assert len(batch.strategy_notes) == 1


def test_captured_title_is_truncated_with_ellipsis():
    long_text = "word " * 40
    title = captured_title(long_text)
    assert len(title) <= 78
    assert title.endswith("…")
    assert captured_title("   ") == "Captured note"


def test_empty_input_yields_empty_batch():
    extracted = parse_model_text("")
    batch = normalize_batch(extracted.parsed, "", TODAY, raw_text=extracted.raw_text)

    assert batch.tasks == []
    assert batch.staff_insights == []
    assert batch.calendar_events == []
    assert batch.strategy_notes == []
    assert batch.wellbeing is None
    assert batch.raw_text == ""


def test_tomorrow_cue_beats_minute_rule():
    payload = {"tasks": [{"title": "Photocopy worksheets", "estimatedMinutes": 10}]}
    batch = normalize_batch(payload, "Photocopy worksheets for tomorrow", TODAY)
    assert batch.tasks[0].due_date == TODAY + timedelta(days=1)


def test_two_task_example_splits_cues_per_task():
    text = "Email Year 8 parents about the trip tomorrow. Also chase Dave for the risk assessment."
    payload = {
        "tasks": [
            {"title": "Email Year 8 parents about the trip tomorrow", "category": "Admin"},
            {"title": "Chase Dave for the risk assessment", "assignee": "Dave"},
        ]
    }
    batch = normalize_batch(payload, text, TODAY)

    assert len(batch.tasks) == 2
    first, second = batch.tasks
    assert first.due_date == TODAY + timedelta(days=1)
    assert first.energy_level == "Low Energy/Admin"
    # No cue of its own: "chase" means a 15 minute job, due today
    assert second.estimated_time == "15 min"
    assert second.due_date == TODAY


def test_due_date_rule_order():
    assert derive_due_date(ProposedTask(due_date=date(2025, 4, 1)), TODAY, TODAY) == date(2025, 4, 1)
    assert derive_due_date(ProposedTask(title="Reply to the headteacher"), TODAY) == TODAY
    assert derive_due_date(ProposedTask(title="Tidy", estimated_minutes=15), TODAY) == TODAY
    assert derive_due_date(ProposedTask(title="Tidy", estimated_minutes=20), TODAY) == TODAY + timedelta(days=2)
    assert derive_due_date(ProposedTask(title="Tidy", estimated_minutes=30), TODAY) == TODAY + timedelta(days=7)
    assert derive_due_date(ProposedTask(title="Tidy"), TODAY) == TODAY + timedelta(days=7)


def test_text_due_cue():
    assert text_due_cue("do it tomorrow", TODAY) == TODAY + timedelta(days=1)
    assert text_due_cue("by END OF DAY please", TODAY) == TODAY
    assert text_due_cue("today or tomorrow", TODAY) == TODAY + timedelta(days=1)
    assert text_due_cue("next week", TODAY) is None


def test_explicit_due_date_is_kept_and_trimmed_to_a_day():
    payload = {"tasks": [{"title": "Submit data drop", "dueDate": "2025-04-01T09:00:00Z"}]}
    batch = normalize_batch(payload, "Submit data drop tomorrow", TODAY)
    assert batch.tasks[0].due_date == date(2025, 4, 1)


def test_tasks_leave_fully_tagged():
    payload = {"tasks": [{"title": "Photocopy worksheets"}, {"title": "Plan the scheme of work"}]}
    batch = normalize_batch(payload, "", TODAY)

    for task in batch.tasks:
        assert task.estimated_time in ("5 min", "15 min", "30 min", "1 hr+")
        assert task.energy_level in ("High Focus", "Low Energy/Admin")
        assert task.is_weekly_win is not None
    assert batch.tasks[0].estimated_time == "30 min"
    assert batch.tasks[0].due_date == TODAY + timedelta(days=7)


def test_llm_synonyms_are_accepted():
    payload = {
        "tasks": [{"task": "Mark mocks", "owner": "Sam", "deadline": "2025-03-12", "priority": "high"}],
        "insights": [{"staffName": "Dave Smith", "notes": "Great lesson", "type": "Support"}],
        "events": [{"event": "Mock exams", "date": "2025-03-20"}],
    }
    batch = normalize_batch(payload, "", TODAY)

    task = batch.tasks[0]
    assert (task.title, task.assignee, task.due_date, task.priority) == ("Mark mocks", "Sam", date(2025, 3, 12), "High")
    insight = batch.staff_insights[0]
    assert (insight.summary, insight.type, insight.date) == ("Great lesson", "praise", TODAY)
    event = batch.calendar_events[0]
    assert (event.title, event.start_date_time, event.type) == ("Mock exams", "2025-03-20", "Other")


def test_non_object_items_are_dropped():
    batch = normalize_batch({"tasks": ["not a task", 3, {"title": "Real task"}]}, "", TODAY)
    assert [t.title for t in batch.tasks] == ["Real task"]


def test_in_batch_duplicates_collapse_first_wins():
    payload = {
        "tasks": [
            {"title": "Mark books", "dueDate": "2025-03-12", "priority": "High"},
            {"title": "  mark BOOKS ", "dueDate": "2025-03-12", "priority": "Low"},
            {"title": "Mark books", "dueDate": "2025-03-13"},
        ],
        "staffInsights": [
            {"staffName": "Dave", "date": "2025-03-10", "summary": "Late to duty"},
            {"staffName": "dave", "date": "2025-03-10", "summary": "late to duty"},
        ],
        "strategyNotes": [{"theme": "Literacy", "note": "Reading age data"}, {"theme": "literacy", "note": "reading age data"}],
        "calendarEvents": [{"title": "Parents Evening", "startDateTime": "2025-03-20T16:00"}, {"title": "Parents evening", "startDateTime": "2025-03-20T17:00"}],
    }
    batch = normalize_batch(payload, "", TODAY)

    assert [(t.title, t.priority) for t in batch.tasks] == [("Mark books", "High"), ("Mark books", "Medium")]
    assert len(batch.staff_insights) == 1
    assert len(batch.strategy_notes) == 1
    assert len(batch.calendar_events) == 1


def test_wellbeing_present_missing_and_null():
    given = normalize_batch({"tasks": [], "wellbeing": {"mood": "Tough", "summary": "Long week"}}, "", TODAY)
    missing = normalize_batch({"tasks": []}, "", TODAY)
    null = normalize_batch({"tasks": [], "wellbeing": None}, "", TODAY)

    assert (given.wellbeing.mood, given.wellbeing.energy, given.wellbeing.summary) == ("Tough", "Medium", "Long week")
    assert missing.wellbeing.summary == DEFAULT_WELLBEING_SUMMARY
    assert null.wellbeing is None


def test_unvalidated_payload_fixes_container_shapes():
    payload = UnvalidatedPayload.from_parsed({"tasks": {"title": "not a list"}, "staff_insights": [{"a": 1}, "b"]})
    assert payload.structured is True
    assert payload.tasks == []
    assert payload.staff_insights == [{"a": 1}]
    assert payload.wellbeing_present is False
    assert UnvalidatedPayload.from_parsed(None).structured is False


def test_non_finite_minutes_coerce_to_zero():
    batch = normalize_batch({"tasks": [{"title": "Mark books", "estimatedMinutes": 1e999}]}, "Mark books", TODAY)
    assert [(t.title, t.estimated_minutes) for t in batch.tasks] == [("Mark books", 0)]

    parsed = parse_model_text('{"tasks": [{"title": "Mark books", "estimatedMinutes": Infinity}]}').parsed
    assert normalize_batch(parsed, "Mark books", TODAY).tasks[0].estimated_minutes == 0
    assert ProposedTask(estimated_minutes="-inf").estimated_minutes == 0
    assert ProposedTask(estimated_minutes="nan").estimated_minutes == 0


def test_captured_task_keeps_trailing_newline():
    text = "Ring the exam board about late entries\n"
    assert normalize_batch(None, text, TODAY).tasks[0].summary == text
