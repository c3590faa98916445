import logging
from typing import Annotated

from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response, status
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from hod.core import SAVE_FAILED_MESSAGE
from hod.core.limiter import ingest_rate_limit, limiter
from hod.dependencies import (
    get_commit_gate,
    get_current_user_id,
    get_error_reporter,
    get_ingestion_pipeline,
    get_ingestion_store,
    get_review_or_404,
    get_review_registry,
)
from hod.schemas import (
    ApproveResponse,
    BrainDumpRequest,
    ContextImportRequest,
    ContextImportResponse,
    IgnoreRequest,
    ItemChanges,
    ItemKind,
    MinutesRequest,
    MinutesResponse,
    ReviewResponse,
)
from hod.services.ingestion import (
    CollectingErrorReporter,
    CommitGate,
    IngestionPipeline,
    IngestionStore,
    PipelineError,
    ReviewInFlightError,
    ReviewItemNotFoundError,
    ReviewRegistry,
    ReviewSession,
    ReviewStateError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ingestion", tags=["ingestion"])


def _review_response(session: ReviewSession) -> ReviewResponse:
    return ReviewResponse(
        review_id=session.id,
        state=session.state.value,
        items=session.working,
        notices=session.notices,
    )


def _edit(session: ReviewSession, kind: str, item_id: str | None, changes: ItemChanges) -> ReviewResponse:
    try:
        if kind == "wellbeing":
            session.update_item("wellbeing", None, changes)
        else:
            session.update_item(kind, item_id, changes)
    except ReviewItemNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ReviewStateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except (ValueError, ValidationError) as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    return _review_response(session)


# -----------------------------------------------------------------------------
# Brain dump -> review
# -----------------------------------------------------------------------------


@router.post("/brain-dump", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(ingest_rate_limit)
async def start_brain_dump(
    request: Request,
    body: BrainDumpRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    pipeline: Annotated[IngestionPipeline, Depends(get_ingestion_pipeline)],
    reporter: Annotated[CollectingErrorReporter, Depends(get_error_reporter)],
    store: Annotated[IngestionStore, Depends(get_ingestion_store)],
    registry: Annotated[ReviewRegistry, Depends(get_review_registry)],
):
    """Run the AI pass and stage the result for review. Nothing is saved yet."""
    context = None
    if body.use_account_context:
        try:
            context = await store.load_prompt_context(user_id, pipeline.today_fn())
        except SQLAlchemyError:
            logger.warning("Could not load prompt context for %s; continuing without it", user_id)
    batch = await pipeline.analyze_brain_dump(body.text, context=context)
    session = await registry.open(user_id, batch, reporter.messages)
    return _review_response(session)


@router.get("/reviews/{review_id}", response_model=ReviewResponse)
async def get_review(session: Annotated[ReviewSession, Depends(get_review_or_404)]):
    return _review_response(session)


@router.patch("/reviews/{review_id}/items/{kind}/{item_id}", response_model=ReviewResponse)
async def update_review_item(
    kind: ItemKind,
    item_id: str,
    session: Annotated[ReviewSession, Depends(get_review_or_404)],
    changes: Annotated[ItemChanges, Body()],
):
    """Edit fields of one staged item (camelCase or snake_case keys, including ``ignore``)."""
    return _edit(session, kind.staged_kind, item_id, changes)


@router.put("/reviews/{review_id}/items/{kind}/{item_id}/ignore", response_model=ReviewResponse)
async def set_review_item_ignored(
    kind: ItemKind,
    item_id: str,
    body: IgnoreRequest,
    session: Annotated[ReviewSession, Depends(get_review_or_404)],
):
    return _edit(session, kind.staged_kind, item_id, {"ignore": body.ignore})


@router.patch("/reviews/{review_id}/wellbeing", response_model=ReviewResponse)
async def update_review_wellbeing(
    session: Annotated[ReviewSession, Depends(get_review_or_404)],
    changes: Annotated[ItemChanges, Body()],
):
    return _edit(session, "wellbeing", None, changes)


@router.post("/reviews/{review_id}/approve", response_model=ApproveResponse)
async def approve_review(
    session: Annotated[ReviewSession, Depends(get_review_or_404)],
    gate: Annotated[CommitGate, Depends(get_commit_gate)],
):
    """Commit the non-ignored items. A second call while saving gets 409, not a queue slot."""
    try:
        report = await session.approve(gate)
    except ReviewStateError as e:  # includes ReviewInFlightError
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except PipelineError as e:
        logger.error("Approve failed for review %s: %s", session.id, e)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=SAVE_FAILED_MESSAGE)
    return ApproveResponse(
        review_id=session.id,
        state=session.state.value,
        persisted=report.persisted,
        skipped_duplicates=report.skipped_duplicates,
        interactions_logged=report.interactions_logged,
        secondary_failures=report.secondary_failures,
        corrections=session.last_corrections,
    )


@router.delete("/reviews/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_review(
    review_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    registry: Annotated[ReviewRegistry, Depends(get_review_registry)],
):
    """Discard the staged batch. Nothing was persisted, so nothing is rolled back."""
    try:
        found = await registry.discard(user_id, review_id)
    except ReviewInFlightError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if not found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Review not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# -----------------------------------------------------------------------------
# Meeting minutes / context import
# -----------------------------------------------------------------------------


@router.post("/minutes", response_model=MinutesResponse)
@limiter.limit(ingest_rate_limit)
async def import_minutes(
    request: Request,
    body: MinutesRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    pipeline: Annotated[IngestionPipeline, Depends(get_ingestion_pipeline)],
    reporter: Annotated[CollectingErrorReporter, Depends(get_error_reporter)],
):
    minutes = await pipeline.parse_meeting_minutes(body.text)
    return MinutesResponse(minutes=minutes, notices=reporter.messages)


@router.post("/context", response_model=ContextImportResponse)
@limiter.limit(ingest_rate_limit)
async def import_context(
    request: Request,
    body: ContextImportRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    pipeline: Annotated[IngestionPipeline, Depends(get_ingestion_pipeline)],
    reporter: Annotated[CollectingErrorReporter, Depends(get_error_reporter)],
    store: Annotated[IngestionStore, Depends(get_ingestion_store)],
):
    """Extract calendar dates or strategic goals; optionally append them to the account context."""
    result = await pipeline.analyze_context(body.text, body.kind)
    saved = False
    if result is not None and body.save:
        try:
            if body.kind == "calendar":
                await store.append_context_events(user_id, [e.model_dump() for e in result.events])
            else:
                await store.append_context_goals(user_id, [g.model_dump() for g in result.goals])
        except SQLAlchemyError:
            logger.exception("Saving imported %s context failed", body.kind)
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=SAVE_FAILED_MESSAGE)
        saved = True
    return ContextImportResponse(result=result, saved=saved, notices=reporter.messages)
