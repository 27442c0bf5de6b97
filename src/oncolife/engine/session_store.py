"""
Session Store

Keeps one ``SessionState`` per conversation id and serializes concurrent
turns for the same conversation.
"""

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import AsyncContextManager, Dict, Optional
import asyncio

import structlog

from oncolife.engine.constants import TERMINAL_PHASES
from oncolife.engine.models import SessionState, utcnow
from oncolife.exceptions import SessionStoreError

logger = structlog.get_logger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60
# Completed and emergency sessions are kept only long enough to answer late turns
DEFAULT_TERMINAL_TTL_SECONDS = 15 * 60


class SessionStore(ABC):
    """Storage interface for conversation sessions."""

    @abstractmethod
    async def get(self, conversation_id: str) -> Optional[SessionState]:
        ...

    @abstractmethod
    async def put(self, session: SessionState) -> None:
        ...

    @abstractmethod
    async def delete(self, conversation_id: str) -> None:
        ...

    @abstractmethod
    def lock(self, conversation_id: str) -> AsyncContextManager:
        """Context manager held for the duration of one turn."""
        ...


class InMemorySessionStore(SessionStore):
    """
    Process-local session store.

    Sessions idle longer than ``ttl_seconds`` (``terminal_ttl_seconds`` once
    completed or in emergency) are dropped when next accessed and by
    ``sweep``, which runs on every write. Locks go with their session; a
    lock held by a running turn is left for the next sweep.
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        terminal_ttl_seconds: int = DEFAULT_TERMINAL_TTL_SECONDS,
    ):
        self.ttl_seconds = ttl_seconds
        self.terminal_ttl_seconds = terminal_ttl_seconds
        self._sessions: Dict[str, SessionState] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def _is_expired(self, session: SessionState) -> bool:
        ttl = self.terminal_ttl_seconds if session.phase in TERMINAL_PHASES else self.ttl_seconds
        return utcnow() - session.updated_at > timedelta(seconds=ttl)

    def _evict(self, conversation_id: str) -> None:
        self._sessions.pop(conversation_id, None)
        lock = self._locks.get(conversation_id)
        if lock is not None and not lock.locked():
            del self._locks[conversation_id]

    async def get(self, conversation_id: str) -> Optional[SessionState]:
        session = self._sessions.get(conversation_id)
        if session is None:
            return None
        if self._is_expired(session):
            logger.info("Session expired", conversation_id=conversation_id)
            self._evict(conversation_id)
            return None
        return session.model_copy(deep=True)

    async def put(self, session: SessionState) -> None:
        session.touch()
        self._sessions[session.conversation_id] = session
        self.sweep()

    async def delete(self, conversation_id: str) -> None:
        self._sessions.pop(conversation_id, None)
        self._locks.pop(conversation_id, None)

    def lock(self, conversation_id: str) -> asyncio.Lock:
        if conversation_id not in self._locks:
            self._locks[conversation_id] = asyncio.Lock()
        return self._locks[conversation_id]

    def sweep(self) -> int:
        """Evict expired sessions and idle locks without a session. Returns sessions evicted."""
        expired = [cid for cid, session in self._sessions.items() if self._is_expired(session)]
        for conversation_id in expired:
            self._evict(conversation_id)

        orphaned = [
            cid for cid, lock in self._locks.items()
            if cid not in self._sessions and not lock.locked()
        ]
        for conversation_id in orphaned:
            del self._locks[conversation_id]

        if expired:
            logger.info("Expired sessions evicted", count=len(expired), remaining=len(self._sessions))
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)


class RedisSessionStore(SessionStore):
    """
    Redis-backed session store.

    Sessions are stored as JSON with a key TTL refreshed on every write
    (shortened to ``terminal_ttl_seconds`` once the conversation is over),
    and turns are serialized with a Redis lock so several API workers can
    share one backend.
    """

    def __init__(
        self,
        redis_client,
        key_prefix: str = "oncolife:session:",
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        lock_timeout: float = 30.0,
        terminal_ttl_seconds: int = DEFAULT_TERMINAL_TTL_SECONDS,
    ):
        self.redis_client = redis_client
        self.key_prefix = key_prefix
        self.ttl_seconds = ttl_seconds
        self.lock_timeout = lock_timeout
        self.terminal_ttl_seconds = terminal_ttl_seconds

    def _key(self, conversation_id: str) -> str:
        return f"{self.key_prefix}{conversation_id}"

    async def get(self, conversation_id: str) -> Optional[SessionState]:
        try:
            payload = await self.redis_client.get(self._key(conversation_id))
        except Exception as e:
            logger.error("Failed to load session from Redis", conversation_id=conversation_id, error=str(e))
            raise SessionStoreError(str(e)) from e

        if not payload:
            return None
        return SessionState.model_validate_json(payload)

    async def put(self, session: SessionState) -> None:
        session.touch()
        ttl = self.terminal_ttl_seconds if session.phase in TERMINAL_PHASES else self.ttl_seconds
        try:
            await self.redis_client.setex(
                self._key(session.conversation_id),
                ttl,
                session.model_dump_json(),
            )
        except Exception as e:
            logger.error(
                "Failed to save session to Redis",
                conversation_id=session.conversation_id,
                error=str(e),
            )
            raise SessionStoreError(str(e)) from e
        logger.debug("Session saved to Redis", conversation_id=session.conversation_id)

    async def delete(self, conversation_id: str) -> None:
        await self.redis_client.delete(self._key(conversation_id))

    def lock(self, conversation_id: str) -> AsyncContextManager:
        return self.redis_client.lock(
            f"{self._key(conversation_id)}:lock",
            timeout=self.lock_timeout,
            blocking_timeout=self.lock_timeout,
        )
