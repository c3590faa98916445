from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from hod.domain import ContextKind
from hod.services.ingestion import ContextImport, CorrectionRecord, MeetingMinutes, ReviewBatch

MAX_INPUT_CHARS = 20_000


class ItemKind(str, Enum):
    """Path segment for staged item collections."""
    TASKS = "tasks"
    EVENTS = "events"
    INSIGHTS = "insights"
    NOTES = "notes"

    @property
    def staged_kind(self) -> str:
        return {
            "tasks": "tasks",
            "events": "calendar_events",
            "insights": "staff_insights",
            "notes": "strategy_notes",
        }[self.value]


class BrainDumpRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=MAX_INPUT_CHARS)
    # Send open task titles, staff directory and upcoming events with the prompt
    use_account_context: bool = True


class ReviewResponse(BaseModel):
    """Staged batch awaiting human review (items use camelCase record fields)."""

    review_id: str
    state: str
    items: Optional[ReviewBatch] = None
    notices: list[str] = []


class IgnoreRequest(BaseModel):
    ignore: bool = True


class ApproveResponse(BaseModel):
    review_id: str
    state: str
    persisted: dict[str, int] = {}
    skipped_duplicates: dict[str, int] = {}
    interactions_logged: int = 0
    secondary_failures: list[str] = []
    corrections: list[CorrectionRecord] = []


class MinutesRequest(BaseModel):
    text: str = Field(..., max_length=MAX_INPUT_CHARS)


class MinutesResponse(BaseModel):
    minutes: MeetingMinutes
    notices: list[str] = []


class ContextImportRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=MAX_INPUT_CHARS)
    kind: ContextKind
    save: bool = False


class ContextImportResponse(BaseModel):
    result: Optional[ContextImport] = None
    saved: bool = False
    notices: list[str] = []


ItemChanges = dict[str, Any]
