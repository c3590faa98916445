from datetime import date
from functools import lru_cache
from typing import Annotated, Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from hod.core import decode_access_token, get_settings
from hod.db.session import async_session
from hod.providers import ChatProvider, get_chat_provider
from hod.services.ingestion import (
    CollectingErrorReporter,
    CommitGate,
    IngestionPipeline,
    IngestionStore,
    ReviewRegistry,
    ReviewSession,
    SqlAlchemyIngestionStore,
)

security = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> str:
    """Acting user's id from the bearer token; accounts live with the identity provider."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user_id = decode_access_token(credentials.credentials)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id


@lru_cache
def get_ingestion_store() -> IngestionStore:
    return SqlAlchemyIngestionStore(async_session)


@lru_cache
def get_review_registry() -> ReviewRegistry:
    return ReviewRegistry(max_sessions=get_settings().review_session_max)


def get_chat() -> ChatProvider:
    try:
        return get_chat_provider()
    except RuntimeError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


def get_error_reporter() -> CollectingErrorReporter:
    """Request-scoped; FastAPI caches it so the pipeline and the route share one."""
    return CollectingErrorReporter()


def get_today_fn() -> Callable[[], date]:
    """One calendar clock for due-date derivation and commit-time dates."""
    return date.today


def get_ingestion_pipeline(
    chat: Annotated[ChatProvider, Depends(get_chat)],
    reporter: Annotated[CollectingErrorReporter, Depends(get_error_reporter)],
    today_fn: Annotated[Callable[[], date], Depends(get_today_fn)],
) -> IngestionPipeline:
    return IngestionPipeline(chat, reporter, today_fn=today_fn)


def get_commit_gate(
    store: Annotated[IngestionStore, Depends(get_ingestion_store)],
    today_fn: Annotated[Callable[[], date], Depends(get_today_fn)],
) -> CommitGate:
    return CommitGate(
        store, window_days=get_settings().recent_fingerprint_window_days, today_fn=today_fn
    )


async def get_review_or_404(
    review_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    registry: Annotated[ReviewRegistry, Depends(get_review_registry)],
) -> ReviewSession:
    """Open review session by id for current user or raise 404. Requires path param review_id."""
    session = await registry.get(user_id, review_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Review not found")
    return session
