"""Per-user session persistence with expiry.

``SessionStore`` never fails outward on reads: a miss, a storage error or a
corrupt document all yield a fresh default session. Writes stamp the current
time and log storage errors instead of raising. ``update`` is the single
mutation primitive used by the conversation engine; it serializes
read-modify-write cycles per user with an ``asyncio.Lock`` that lives only
while an operation holds or waits on it.
"""

import asyncio
import weakref
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from pydantic import ValidationError

from src.adapters.session_backends import SessionBackend
from src.models.models import Language, Session, utc_now
from src.utils.config import config
from src.utils.logger import logger
from src.utils.safe_execute import safe_execute_async

SESSION_KEY_PREFIX = "session:"


class SessionStore:
    """Session repository on top of an injected key/value backend."""

    def __init__(
        self,
        backend: SessionBackend,
        ttl_seconds: Optional[int] = None,
        default_language: Optional[str] = None,
    ) -> None:
        """Initialize store.

        Args:
            backend: Storage backend (in-memory or MongoDB).
            ttl_seconds: Idle expiry. Defaults to ``config.SESSION_TTL_SECONDS``.
            default_language: Language of fresh sessions. Defaults to ``config.DEFAULT_LANGUAGE``.
        """
        self.backend = backend
        self.ttl_seconds = ttl_seconds or config.SESSION_TTL_SECONDS
        self.default_language = Language(default_language or config.DEFAULT_LANGUAGE)
        # Entries vanish once no coroutine holds or awaits the lock
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    @staticmethod
    def _key(user_id: str) -> str:
        return f"{SESSION_KEY_PREFIX}{user_id}"

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    def default_session(self, user_id: str) -> Session:
        return Session.default(user_id, language=self.default_language)

    async def get(self, user_id: str) -> Session:
        """Load the session for ``user_id``.

        Returns:
            Stored session, or a fresh default on miss, storage error or corrupt data.
        """
        try:
            raw = await self.backend.get(self._key(user_id))
        except Exception as e:
            logger.warning(f"Session read failed, using default session: {e}", extra={"user_id": user_id})
            return self.default_session(user_id)

        if raw is None:
            return self.default_session(user_id)

        try:
            return Session.from_json(raw)
        except ValidationError as e:
            logger.warning(
                f"Stored session is corrupt ({e.error_count()} error(s)), using default session",
                extra={"user_id": user_id},
            )
            return self.default_session(user_id)

    async def _write(self, user_id: str, session: Session) -> Session:
        stamped = session.model_copy(update={"user_id": user_id, "timestamp": utc_now()})
        await safe_execute_async(
            self.backend.set(self._key(user_id), stamped.to_json(), self.ttl_seconds),
            f"Session write for {user_id}",
            log_level="error",
        )
        return stamped

    async def set(self, user_id: str, session: Session) -> Session:
        """Persist ``session`` with a fresh timestamp. Storage errors are logged, not raised."""
        async with self._lock_for(user_id):
            return await self._write(user_id, session)

    async def update(self, user_id: str, changes: dict[str, Any]) -> Session:
        """Atomically merge ``changes`` into the stored session.

        Args:
            user_id: Session owner.
            changes: Field values to overwrite (shallow merge).

        Returns:
            The validated, persisted session.

        Raises:
            ValidationError: If the merged session is invalid (caller bug).
        """
        async with self._lock_for(user_id):
            current = await self.get(user_id)
            merged = Session.model_validate({**current.model_dump(), **changes, "user_id": user_id})
            return await self._write(user_id, merged)

    async def clear(self, user_id: str) -> None:
        """Delete the session. Storage errors are logged, not raised."""
        async with self._lock_for(user_id):
            await safe_execute_async(
                self.backend.delete(self._key(user_id)),
                f"Session delete for {user_id}",
                log_level="error",
            )

    async def sweep_expired(self, now: Optional[datetime] = None) -> int:
        """Remove sessions idle for longer than the TTL.

        No-op on backends with native TTL.

        Args:
            now: Reference instant (tests). Defaults to current UTC time.

        Returns:
            Number of sessions removed.
        """
        if self.backend.supports_native_ttl:
            return 0

        cutoff = (now or datetime.now(timezone.utc)) - timedelta(seconds=self.ttl_seconds)
        entries = await safe_execute_async(
            self.backend.scan(SESSION_KEY_PREFIX),
            "Session scan",
            default_return=[],
        )

        removed = 0
        for key, raw in entries:
            user_id = key[len(SESSION_KEY_PREFIX):]
            try:
                expired = Session.from_json(raw).timestamp < cutoff
            except ValidationError:
                expired = True
            if not expired:
                continue
            lock = self._locks.get(user_id)
            if lock is not None and lock.locked():
                continue
            await safe_execute_async(self.backend.delete(key), f"Session expiry for {user_id}")
            removed += 1

        if removed:
            logger.info(f"Cleaned up {removed} expired sessions")
        return removed


async def run_session_sweeper(store: SessionStore, interval_seconds: Optional[float] = None) -> None:
    """Background task: call ``store.sweep_expired()`` every interval until cancelled."""
    interval = interval_seconds or config.SESSION_SWEEP_INTERVAL_SECONDS
    if store.backend.supports_native_ttl:
        logger.debug("Session backend expires keys natively, sweeper not needed")
        return

    logger.debug(f"Session sweeper running every {interval}s")
    while True:
        await asyncio.sleep(interval)
        await safe_execute_async(store.sweep_expired(), "Session sweep", log_level="error")
