"""
Review/diff staging.

A ReviewSession holds one normalized batch between "the AI proposed this" and
"the human approved it":

  IDLE -> POPULATED -> EDITING -> APPROVING -> COMMITTED
                                            \\-> (failure) back to EDITING
  any open state -> CANCELLED

``originals`` is a deep copy taken at populate time and never touched again;
edits go to ``working``. Approval diffs the two for the audit log, hands the
non-ignored items to the commit gate, and is single-flight on ``saving``.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Literal, Optional, Union

from pydantic import BaseModel, Field

from .errors import ReviewInFlightError, ReviewItemNotFoundError, ReviewStateError
from .models import (
    NormalizedBatch,
    ProposedCalendarEvent,
    ProposedStaffInsight,
    ProposedStrategyNote,
    ProposedTask,
    ProposedWellbeingLog,
    WireModel,
)

if TYPE_CHECKING:
    from .commit import CommitGate, CommitReport

logger = logging.getLogger(__name__)

StagedKind = Literal["tasks", "calendar_events", "staff_insights", "strategy_notes", "wellbeing"]

# Fields compared at approval time (attribute names; corrections use wire names)
TRACKED_TASK_FIELDS: tuple[str, ...] = (
    "title",
    "due_date",
    "assignee",
    "priority",
    "category",
    "summary",
    "estimated_minutes",
    "theme_tag",
    "energy_level",
    "estimated_time",
    "is_weekly_win",
)


def _staging_id() -> str:
    return uuid.uuid4().hex


class StagedTask(ProposedTask):
    id: str = Field(default_factory=_staging_id)
    ignore: bool = False


class StagedCalendarEvent(ProposedCalendarEvent):
    id: str = Field(default_factory=_staging_id)
    ignore: bool = False


class StagedStaffInsight(ProposedStaffInsight):
    id: str = Field(default_factory=_staging_id)
    ignore: bool = False


class StagedStrategyNote(ProposedStrategyNote):
    id: str = Field(default_factory=_staging_id)
    ignore: bool = False


class StagedWellbeing(ProposedWellbeingLog):
    ignore: bool = False


StagedItem = Union[StagedTask, StagedCalendarEvent, StagedStaffInsight, StagedStrategyNote, StagedWellbeing]


class ReviewBatch(WireModel):
    raw_text: str = ""
    tasks: list[StagedTask] = Field(default_factory=list)
    wellbeing: Optional[StagedWellbeing] = None
    staff_insights: list[StagedStaffInsight] = Field(default_factory=list)
    calendar_events: list[StagedCalendarEvent] = Field(default_factory=list)
    strategy_notes: list[StagedStrategyNote] = Field(default_factory=list)

    @classmethod
    def from_normalized(cls, batch: NormalizedBatch) -> "ReviewBatch":
        def stage(model: type[BaseModel], items: list[BaseModel]) -> list[Any]:
            return [model.model_construct(**item.model_dump()) for item in items]

        return cls(
            raw_text=batch.raw_text,
            tasks=stage(StagedTask, batch.tasks),
            wellbeing=(
                StagedWellbeing.model_construct(**batch.wellbeing.model_dump())
                if batch.wellbeing is not None else None
            ),
            staff_insights=stage(StagedStaffInsight, batch.staff_insights),
            calendar_events=stage(StagedCalendarEvent, batch.calendar_events),
            strategy_notes=stage(StagedStrategyNote, batch.strategy_notes),
        )


class CorrectionRecord(WireModel):
    """Audit entry: which tracked fields of one task the human changed."""
    type: Literal["task"] = "task"
    label: str
    changes: dict[str, dict[str, Any]]


def diff_task_corrections(originals: list[StagedTask], edited: list[StagedTask]) -> list[CorrectionRecord]:
    """One record per edited task with at least one changed tracked field (or newly ignored)."""
    baseline_by_id = {t.id: t for t in originals}
    records: list[CorrectionRecord] = []
    for position, task in enumerate(edited, start=1):
        baseline = baseline_by_id.get(task.id)
        if baseline is None:
            continue
        before = baseline.model_dump(mode="json", by_alias=True, include=set(TRACKED_TASK_FIELDS))
        after = task.model_dump(mode="json", by_alias=True, include=set(TRACKED_TASK_FIELDS))
        changes = {
            key: {"from": before[key], "to": after[key]}
            for key in after
            if before[key] != after[key]
        }
        if task.ignore and not baseline.ignore:
            changes["ignore"] = {"from": False, "to": True}
        if changes:
            records.append(CorrectionRecord(label=task.title or f"Task {position}", changes=changes))
    return records


def _strip_staging(item: BaseModel, model: type[BaseModel]) -> Any:
    return model.model_construct(**item.model_dump(exclude={"id", "ignore"}))


class ReviewState(str, Enum):
    IDLE = "idle"
    POPULATED = "populated"
    EDITING = "editing"
    APPROVING = "approving"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


_EDITABLE_STATES = frozenset({ReviewState.POPULATED, ReviewState.EDITING})


class ReviewSession:
    """Editable staging area for one ingestion result, owned by one user."""

    def __init__(self, user_id: str, session_id: Optional[str] = None):
        self.id = session_id or uuid.uuid4().hex
        self.user_id = user_id
        self.state = ReviewState.IDLE
        self.saving = False
        self.originals: Optional[ReviewBatch] = None
        self.working: Optional[ReviewBatch] = None
        self.notices: list[str] = []
        self.last_corrections: list[CorrectionRecord] = []
        self.created_at = datetime.now(timezone.utc)

    # -- lifecycle ---------------------------------------------------------

    def populate(self, batch: NormalizedBatch, notices: Optional[list[str]] = None) -> ReviewBatch:
        if self.state not in (ReviewState.IDLE, *_EDITABLE_STATES):
            raise ReviewStateError(f"Cannot load a new result while review is {self.state.value}")
        staged = ReviewBatch.from_normalized(batch)
        self.originals = staged.model_copy(deep=True)
        self.working = staged.model_copy(deep=True)
        self.notices = list(notices or [])
        self.state = ReviewState.POPULATED
        return self.working

    def close(self) -> None:
        """Discard the staged batch; nothing was persisted so nothing to undo."""
        if self.state == ReviewState.APPROVING:
            raise ReviewInFlightError("Cannot cancel while the reviewed items are being saved")
        if self.state != ReviewState.COMMITTED:
            self.state = ReviewState.CANCELLED
        self.working = None

    # -- editing -----------------------------------------------------------

    def _require_editable(self) -> ReviewBatch:
        if self.state not in _EDITABLE_STATES or self.working is None:
            raise ReviewStateError(f"Review is {self.state.value}; edits are not allowed")
        return self.working

    def _find(self, kind: StagedKind, item_id: Optional[str]) -> tuple[list[Any] | None, int]:
        batch = self._require_editable()
        if kind == "wellbeing":
            if batch.wellbeing is None:
                raise ReviewItemNotFoundError("No wellbeing entry in this review")
            return None, -1
        items = getattr(batch, kind)
        for index, item in enumerate(items):
            if item.id == item_id:
                return items, index
        raise ReviewItemNotFoundError(f"No {kind} item with id {item_id!r}")

    def update_item(self, kind: StagedKind, item_id: Optional[str], changes: dict[str, Any]) -> StagedItem:
        """Apply field edits (snake_case or camelCase keys); values are re-coerced by the model."""
        items, index = self._find(kind, item_id)
        current = self.working.wellbeing if items is None else items[index]
        model = type(current)
        by_alias = {f.alias or name: name for name, f in model.model_fields.items()}
        merged = current.model_dump()
        touched: set[str] = set()
        for key, value in changes.items():
            name = by_alias.get(key, key)
            if name not in model.model_fields or name == "id":
                raise ValueError(f"Unknown or read-only field {key!r} for {kind}")
            merged[name] = value
            touched.add(name)
        # Untouched fields keep their staged value exactly
        updated = model.model_validate(merged).model_copy(
            update={name: getattr(current, name) for name in model.model_fields if name not in touched}
        )
        if items is None:
            self.working.wellbeing = updated
        else:
            items[index] = updated
        self.state = ReviewState.EDITING
        return updated

    def set_ignored(self, kind: StagedKind, item_id: Optional[str], ignore: bool = True) -> StagedItem:
        return self.update_item(kind, item_id, {"ignore": ignore})

    # -- approval ----------------------------------------------------------

    def corrections(self) -> list[CorrectionRecord]:
        if self.originals is None or self.working is None:
            return []
        return diff_task_corrections(self.originals.tasks, self.working.tasks)

    def approved_payload(self) -> NormalizedBatch:
        batch = self.working or ReviewBatch()
        wellbeing = batch.wellbeing
        return NormalizedBatch(
            raw_text=batch.raw_text,
            tasks=[
                _strip_staging(t, ProposedTask) for t in batch.tasks
                if not t.ignore and (t.title or t.summary)
            ],
            wellbeing=(
                _strip_staging(wellbeing, ProposedWellbeingLog)
                if wellbeing is not None and not wellbeing.ignore else None
            ),
            staff_insights=[
                _strip_staging(i, ProposedStaffInsight) for i in batch.staff_insights
                if not i.ignore and (i.summary or i.staff_name)
            ],
            calendar_events=[
                _strip_staging(e, ProposedCalendarEvent) for e in batch.calendar_events
                if not e.ignore and e.title
            ],
            strategy_notes=[
                _strip_staging(n, ProposedStrategyNote) for n in batch.strategy_notes
                if not n.ignore and (n.theme or n.note)
            ],
        )

    async def approve(self, gate: "CommitGate", user_id: Optional[str] = None) -> "CommitReport":
        """Commit the approved items once; a second call while saving is rejected, not queued."""
        if self.saving:
            raise ReviewInFlightError("The reviewed items are already being saved")
        if self.state not in _EDITABLE_STATES:
            raise ReviewStateError(f"Review is {self.state.value}; nothing to approve")

        self.saving = True
        previous_state = self.state
        self.state = ReviewState.APPROVING
        try:
            corrections = self.corrections()
            if corrections:
                logger.info(
                    "Brain dump corrections for review %s: %s",
                    self.id,
                    json.dumps([c.model_dump(mode="json") for c in corrections]),
                )
            report = await gate.commit(user_id or self.user_id, self.approved_payload())
        except Exception:
            self.state = previous_state
            raise
        finally:
            self.saving = False

        self.last_corrections = corrections
        self.state = ReviewState.COMMITTED
        return report
