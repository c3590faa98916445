"""Shared stage/error types and the error-reporting port for the ingestion pipeline."""

import logging
from enum import Enum
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    """Pipeline stage identifiers for error reporting."""
    EXTRACT = "extract"
    FALLBACK = "fallback"
    REVIEW = "review"
    PERSIST = "persist"
    SECONDARY = "secondary"


class PipelineError(Exception):
    """Pipeline error with stage context."""
    def __init__(self, stage: PipelineStage, message: str, cause: Optional[Exception] = None):
        self.stage = stage
        self.message = message
        self.cause = cause
        super().__init__(f"[{stage.value}] {message}")


class ReviewStateError(Exception):
    """Raised when a review action is not valid in the session's current state."""


class ReviewInFlightError(ReviewStateError):
    """Raised when approval is requested while a commit is already running."""


class ReviewItemNotFoundError(LookupError):
    """Raised when an edit targets a staged item id the session does not hold."""


class ErrorReporter(Protocol):
    """Receives user-facing failure notices (toast/banner text)."""

    def report(self, message: str) -> None: ...


class LoggingErrorReporter:
    """Reporter that only logs; used when no caller collects notices."""

    def report(self, message: str) -> None:
        logger.error("AI notice: %s", message)


class CollectingErrorReporter:
    """Request-scoped reporter; notices are returned to the client alongside the result."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def report(self, message: str) -> None:
        logger.warning("AI notice: %s", message)
        if message not in self.messages:
            self.messages.append(message)
