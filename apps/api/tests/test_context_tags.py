import pytest

from hod.services.ingestion.context_tags import (
    apply_context_tags,
    derive_energy_level,
    derive_estimated_time,
    minutes_to_time_option,
)
from hod.services.ingestion.models import ProposedTask


@pytest.mark.parametrize(
    "minutes, option",
    [(1, "5 min"), (5, "5 min"), (10, "15 min"), (15, "15 min"), (30, "30 min"), (31, "1 hr+"), (240, "1 hr+")],
)
def test_minutes_to_time_option(minutes, option):
    assert minutes_to_time_option(minutes) == option


def test_admin_keywords_and_category_mean_low_energy():
    assert derive_energy_level(ProposedTask(title="Email Year 8 parents")) == "Low Energy/Admin"
    assert derive_energy_level(ProposedTask(title="Sort cover", category="Admin")) == "Low Energy/Admin"
    assert derive_energy_level(ProposedTask(title="Redesign KS3 assessment")) == "High Focus"


def test_estimated_time_prefers_explicit_then_minutes_then_keywords():
    assert derive_estimated_time(ProposedTask(title="Email parents", estimated_time="1 hr+")) == "1 hr+"
    assert derive_estimated_time(ProposedTask(title="Email parents", estimated_minutes=45)) == "1 hr+"
    assert derive_estimated_time(ProposedTask(title="Email parents")) == "5 min"
    assert derive_estimated_time(ProposedTask(title="Chase Dave")) == "15 min"
    assert derive_estimated_time(ProposedTask(title="Mark Year 10 mocks")) == "30 min"
    assert derive_estimated_time(ProposedTask(title="Draft the SEF")) == "1 hr+"
    assert derive_estimated_time(ProposedTask(title="Photocopy worksheets")) == ""


def test_weekly_win_rules():
    strategic = apply_context_tags(ProposedTask(title="Sort cover", category="Strategic"))
    themed = apply_context_tags(ProposedTask(title="Sort cover", theme_tag="Literacy"))
    impactful = apply_context_tags(ProposedTask(title="Curriculum map for Year 9"))
    urgent = apply_context_tags(ProposedTask(title="Redesign marking policy", priority="High"))
    admin_urgent = apply_context_tags(ProposedTask(title="Send register", priority="High", category="Admin"))
    routine = apply_context_tags(ProposedTask(title="Tidy the office"))

    assert strategic.is_weekly_win is True
    assert themed.is_weekly_win is True
    assert impactful.is_weekly_win is True
    assert urgent.is_weekly_win is True
    assert admin_urgent.is_weekly_win is False
    assert routine.is_weekly_win is False


def test_explicit_values_win():
    task = ProposedTask(
        title="Email governors",
        energy_level="High Focus",
        estimated_time="30 min",
        is_weekly_win=False,
        category="Strategic",
    )
    tagged = apply_context_tags(task)
    assert tagged.energy_level == "High Focus"
    assert tagged.estimated_time == "30 min"
    assert tagged.is_weekly_win is False


@pytest.mark.parametrize(
    "task",
    [
        ProposedTask(title="Email Year 8 parents about the trip"),
        ProposedTask(title="Plan the curriculum review", priority="High"),
        ProposedTask(title="Photocopy worksheets", estimated_minutes=20),
        ProposedTask(title="", summary=""),
        ProposedTask(title="Register", category="Admin", theme_tag="Attendance"),
    ],
)
def test_tagging_is_idempotent(task):
    once = apply_context_tags(task)
    assert apply_context_tags(once) == once


def test_tagging_does_not_mutate_input():
    task = ProposedTask(title="Email parents")
    apply_context_tags(task)
    assert task.energy_level == ""
    assert task.is_weekly_win is None
