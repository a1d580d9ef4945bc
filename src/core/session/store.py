"""Session persistence keyed by project id.

Sessions are stored as their JSON serialisation, so a load always returns a
fresh object and nothing a caller mutates leaks back into the store until
it is saved again.  Each project id also gets an :class:`asyncio.Lock`
that callers hold for the length of a turn to keep turns in arrival order.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

from src.core.session.models import ConversationSession, utcnow
from src.utils.exceptions import SessionExistsError, SessionNotFoundError
from src.utils.logging import get_logger

logger = get_logger(__name__)


class SessionStore(Protocol):
    async def create(self, session: ConversationSession) -> ConversationSession: ...

    async def get(self, project_id: str) -> ConversationSession: ...

    async def save(self, session: ConversationSession) -> None: ...

    async def delete(self, project_id: str) -> None: ...

    def lock_for(self, project_id: str) -> asyncio.Lock: ...


class InMemorySessionStore:
    """Process-local store.

    Intentionally simple -- a production deployment would back this with a
    database or key/value service using the same JSON documents.
    """

    def __init__(self) -> None:
        self._documents: dict[str, str] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    async def create(self, session: ConversationSession) -> ConversationSession:
        if session.project_id in self._documents:
            raise SessionExistsError(session.project_id)
        self._documents[session.project_id] = session.model_dump_json()
        logger.info("session_created", project_id=session.project_id)
        return ConversationSession.model_validate_json(self._documents[session.project_id])

    async def get(self, project_id: str) -> ConversationSession:
        document = self._documents.get(project_id)
        if document is None:
            raise SessionNotFoundError(project_id)
        return ConversationSession.model_validate_json(document)

    async def save(self, session: ConversationSession) -> None:
        if session.project_id not in self._documents:
            raise SessionNotFoundError(session.project_id)
        session.updated_at = utcnow()
        self._documents[session.project_id] = session.model_dump_json()
        logger.debug(
            "session_saved",
            project_id=session.project_id,
            stage=session.stage.value,
            turns=len(session.history),
        )

    async def delete(self, project_id: str) -> None:
        if self._documents.pop(project_id, None) is None:
            raise SessionNotFoundError(project_id)
        self._locks.pop(project_id, None)
        logger.info("session_deleted", project_id=project_id)

    def lock_for(self, project_id: str) -> asyncio.Lock:
        lock = self._locks.get(project_id)
        if lock is None:
            lock = asyncio.Lock()
            # Unknown ids get a throwaway lock; the load inside it will fail.
            if project_id in self._documents:
                self._locks[project_id] = lock
        return lock

    def __len__(self) -> int:
        return len(self._documents)
