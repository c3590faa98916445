"""
Context tagging: energy level, time estimate and weekly-win flag for a task.

Explicit values always win, so tagging an already-tagged task is a no-op.
"""

from hod.domain import HIGH_FOCUS, LOW_ENERGY_ADMIN

from .models import ProposedTask

_ADMIN_KEYWORDS = ("email", "invite", "form", "register")
_HIGH_IMPACT_KEYWORDS = ("strategy", "curriculum", "scheme", "plan", "project", "milestone")

# First match wins
_TIME_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("5 min", ("email", "reply", "send to", "nudge")),
    ("15 min", ("call", "follow up", "chase")),
    ("30 min", ("review", "mark", "feedback")),
    ("1 hr+", ("draft", "write", "strategy", "curriculum")),
)


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    lower = text.lower()
    return any(kw in lower for kw in keywords)


def _task_text(task: ProposedTask) -> str:
    return f"{task.title} {task.summary}".lower()


def derive_energy_level(task: ProposedTask) -> str:
    if task.energy_level:
        return task.energy_level
    if "admin" in task.category.lower() or _contains_any(_task_text(task), _ADMIN_KEYWORDS):
        return LOW_ENERGY_ADMIN
    return HIGH_FOCUS


def minutes_to_time_option(minutes: int) -> str:
    if minutes <= 5:
        return "5 min"
    if minutes <= 15:
        return "15 min"
    if minutes <= 30:
        return "30 min"
    return "1 hr+"


def derive_estimated_time(task: ProposedTask) -> str:
    """Explicit value, else bucketed minutes, else keyword guess; "" when nothing hints."""
    if task.estimated_time:
        return task.estimated_time
    if task.estimated_minutes > 0:
        return minutes_to_time_option(task.estimated_minutes)
    text = _task_text(task)
    for option, keywords in _TIME_KEYWORDS:
        if _contains_any(text, keywords):
            return option
    return ""


def derive_is_weekly_win(task: ProposedTask, energy_level: str) -> bool:
    if task.is_weekly_win is not None:
        return task.is_weekly_win
    if "strategic" in task.category.lower() or task.theme_tag:
        return True
    high_focus = energy_level == HIGH_FOCUS
    if high_focus and _contains_any(_task_text(task), _HIGH_IMPACT_KEYWORDS):
        return True
    return high_focus and task.priority.lower() == "high"


def apply_context_tags(task: ProposedTask) -> ProposedTask:
    energy_level = derive_energy_level(task)
    estimated_time = derive_estimated_time(task)
    return task.model_copy(update={
        "energy_level": energy_level,
        "estimated_time": estimated_time,
        "is_weekly_win": derive_is_weekly_win(task, energy_level),
    })
