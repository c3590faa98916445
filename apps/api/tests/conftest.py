import json
import os
from datetime import date

# Settings are read once per process; pin them before anything imports hod
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("GEMINI_API_KEY", "test-key")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest

from hod.providers import ChatProvider, ChatServiceError
from hod.services.ingestion import StaffRef, build_prompt_context
from hod.services.ingestion.fingerprints import fingerprint_stored_event

TODAY = date(2025, 3, 10)


def envelope(payload) -> dict:
    """Wrap a payload (dict -> JSON text, str as-is) in a generateContent response."""
    text = payload if isinstance(payload, str) else json.dumps(payload)
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class FakeChat(ChatProvider):
    """Replays scripted envelopes in order; an Exception entry is raised instead."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.prompts: list[str] = []
        self.configs: list = []

    async def generate(self, prompt, generation_config=None):
        self.prompts.append(prompt)
        self.configs.append(generation_config)
        if not self.responses:
            raise ChatServiceError("no scripted response left")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class InMemoryStore:
    """IngestionStore kept in lists; methods named in fail_on raise RuntimeError."""

    def __init__(self, staff=None):
        self.tasks: list[dict] = []
        self.wellbeing: list[dict] = []
        self.insights: list[dict] = []
        self.notes: list[dict] = []
        self.events: list[dict] = []
        self.goals: list[dict] = []
        self.interactions: list[dict] = []
        self.staff: list[StaffRef] = list(staff or [])
        self.fail_on: set[str] = set()

    def _check(self, name: str) -> None:
        if name in self.fail_on:
            raise RuntimeError(f"{name} failed")

    async def existing_task_fingerprints(self, user_id):
        self._check("existing_task_fingerprints")
        return {row["fingerprint"] for row in self.tasks}

    async def recent_fingerprints(self, user_id, kind, since):
        self._check("recent_fingerprints")
        rows = {"insight": self.insights, "strategy_note": self.notes, "wellbeing": self.wellbeing}[kind]
        return {row["fingerprint"] for row in rows}

    async def context_event_fingerprints(self, user_id):
        self._check("context_event_fingerprints")
        return {fp for fp in (fingerprint_stored_event(e) for e in self.events) if fp}

    async def add_tasks(self, user_id, rows):
        self._check("add_tasks")
        self.tasks.extend(rows)

    async def add_wellbeing_logs(self, user_id, rows):
        self._check("add_wellbeing_logs")
        self.wellbeing.extend(rows)

    async def add_staff_insights(self, user_id, rows):
        self._check("add_staff_insights")
        self.insights.extend(rows)

    async def add_strategy_notes(self, user_id, rows):
        self._check("add_strategy_notes")
        self.notes.extend(rows)

    async def append_context_events(self, user_id, events):
        self._check("append_context_events")
        self.events.extend(events)

    async def append_context_goals(self, user_id, goals):
        self._check("append_context_goals")
        self.goals.extend(goals)

    async def list_staff(self, user_id):
        self._check("list_staff")
        return list(self.staff)

    async def add_staff_interaction(self, user_id, staff_id, row):
        self._check("add_staff_interaction")
        self.interactions.append({**row, "staff_id": staff_id})

    async def load_prompt_context(self, user_id, today):
        self._check("load_prompt_context")
        return build_prompt_context(
            tasks=self.tasks,
            staff=[{"name": s.name, "id": s.id, "role": s.role} for s in self.staff],
            events=self.events,
            goals=self.goals,
        )


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def store():
    return InMemoryStore(staff=[
        StaffRef(id="staff-1", name="Dave Smith", initials="DS", role="Teacher"),
        StaffRef(id="staff-2", name="Priya Patel", role="KS3 Lead"),
    ])


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def _sleep(delay):
        sleeps.append(delay)

    return _sleep
