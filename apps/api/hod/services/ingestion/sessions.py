"""
In-process registry of open review sessions.

Review state lives between requests (populate, several edits, approve), so the
API keeps sessions here keyed by id and scoped to their owner. Capped LRU: the
least recently touched session is evicted first, except one mid-approval.
Single worker only; multi-instance deployments need a shared store later.
"""

import asyncio
import logging
from collections import OrderedDict
from typing import Optional

from .models import NormalizedBatch
from .review import ReviewSession, ReviewState

logger = logging.getLogger(__name__)


class ReviewRegistry:
    def __init__(self, max_sessions: int = 256):
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, ReviewSession]" = OrderedDict()
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    async def open(
        self,
        user_id: str,
        batch: NormalizedBatch,
        notices: Optional[list[str]] = None,
    ) -> ReviewSession:
        session = ReviewSession(user_id)
        session.populate(batch, notices)
        async with self._lock:
            self._evict_if_full()
            self._sessions[session.id] = session
        return session

    async def get(self, user_id: str, session_id: str) -> Optional[ReviewSession]:
        """Session if it exists and belongs to user_id; other users' sessions look absent."""
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None or session.user_id != user_id:
                return None
            self._sessions.move_to_end(session_id)
            return session

    async def discard(self, user_id: str, session_id: str) -> bool:
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None or session.user_id != user_id:
                return False
            session.close()
            del self._sessions[session_id]
            return True

    def _evict_if_full(self) -> None:
        while len(self._sessions) >= self.max_sessions:
            victim = next(
                (sid for sid, s in self._sessions.items() if s.state != ReviewState.APPROVING),
                None,
            )
            if victim is None:
                break
            logger.info("Evicting review session %s (registry full)", victim)
            del self._sessions[victim]
