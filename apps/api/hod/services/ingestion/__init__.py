"""Brain-dump ingestion: extract, parse, normalize, fallback, review, commit."""

from .commit import CommitGate, CommitReport, classify_interaction, match_staff
from .context_tags import apply_context_tags
from .errors import (
    CollectingErrorReporter,
    ErrorReporter,
    LoggingErrorReporter,
    PipelineError,
    PipelineStage,
    ReviewInFlightError,
    ReviewItemNotFoundError,
    ReviewStateError,
)
from .extraction import ExtractedPayload, extract_raw_text, parse_model_response, parse_model_text
from .fingerprints import FINGERPRINT_VERSION, build_fingerprint
from .minutes import ContextImport, MeetingMinutes
from .models import NormalizedBatch, UnvalidatedPayload
from .normalizer import normalize_batch
from .pipeline import (
    IngestionPipeline,
    PromptContext,
    build_prompt_context,
    merge_better_payloads,
    needs_fallback,
)
from .review import CorrectionRecord, ReviewBatch, ReviewSession, ReviewState, diff_task_corrections
from .sessions import ReviewRegistry
from .store import IngestionStore, SqlAlchemyIngestionStore, StaffRef

__all__ = [
    "CommitGate",
    "CommitReport",
    "classify_interaction",
    "match_staff",
    "apply_context_tags",
    "CollectingErrorReporter",
    "ErrorReporter",
    "LoggingErrorReporter",
    "PipelineError",
    "PipelineStage",
    "ReviewInFlightError",
    "ReviewItemNotFoundError",
    "ReviewStateError",
    "ExtractedPayload",
    "extract_raw_text",
    "parse_model_response",
    "parse_model_text",
    "FINGERPRINT_VERSION",
    "build_fingerprint",
    "ContextImport",
    "MeetingMinutes",
    "NormalizedBatch",
    "UnvalidatedPayload",
    "normalize_batch",
    "IngestionPipeline",
    "PromptContext",
    "build_prompt_context",
    "merge_better_payloads",
    "needs_fallback",
    "CorrectionRecord",
    "ReviewBatch",
    "ReviewSession",
    "ReviewState",
    "diff_task_corrections",
    "ReviewRegistry",
    "IngestionStore",
    "SqlAlchemyIngestionStore",
    "StaffRef",
]
