"""
Domain vocabulary for department records.
Single source of truth for prompts, validation, and API.
"""

from typing import Literal, get_args

# -----------------------------------------------------------------------------
# 1. Enums
# -----------------------------------------------------------------------------

Priority = Literal["High", "Medium", "Low"]

TaskCategory = Literal["Admin", "Pastoral", "Strategic", "Teaching", "General"]

EnergyLevel = Literal["High Focus", "Low Energy/Admin"]

EstimatedTime = Literal["5 min", "15 min", "30 min", "1 hr+"]

InsightType = Literal["praise", "concern", "neutral"]

EventType = Literal["Parents Evening", "Exam", "Meeting", "CPD", "Trip", "Other"]

Mood = Literal["Tough", "Okay", "Great"]

EnergyRating = Literal["Low", "Medium", "High"]

InteractionType = Literal["Challenge", "Support"]

ContextKind = Literal["calendar", "goals"]

RecordKind = Literal["task", "event", "insight", "strategy_note", "wellbeing"]

# -----------------------------------------------------------------------------
# 2. Constants
# -----------------------------------------------------------------------------

PRIORITIES: tuple[str, ...] = get_args(Priority)
TASK_CATEGORIES: tuple[str, ...] = get_args(TaskCategory)
ENERGY_OPTIONS: tuple[str, ...] = get_args(EnergyLevel)
TIME_OPTIONS: tuple[str, ...] = get_args(EstimatedTime)
INSIGHT_TYPES: tuple[str, ...] = get_args(InsightType)
EVENT_TYPES: tuple[str, ...] = get_args(EventType)

HIGH_FOCUS: EnergyLevel = "High Focus"
LOW_ENERGY_ADMIN: EnergyLevel = "Low Energy/Admin"

DEFAULT_PRIORITY: Priority = "Medium"
DEFAULT_CATEGORY = "General"
DEFAULT_EVENT_TYPE: EventType = "Other"

# Minutes represented by each time bucket (upper bound; 1 hr+ counts as an hour)
TIME_OPTION_MINUTES: dict[str, int] = {
    "5 min": 5,
    "15 min": 15,
    "30 min": 30,
    "1 hr+": 60,
}

# Requests from these people get same-day due dates
STAKEHOLDER_KEYWORDS: tuple[str, ...] = (
    "stakeholder",
    "vip",
    "headteacher",
    "head teacher",
    "principal",
    "ceo",
    "governor",
    "trust lead",
    "executive",
    "senior leader",
    "slg",
    "parent",
    "ofsted",
    "inspector",
)

# Insight text containing these reads as holding someone to account
CHALLENGE_KEYWORDS: tuple[str, ...] = ("deadline", "late", "due", "missed", "ensure", "must", "review")
