"""Listening progress persistence.

Hey future me - this is where checkpoints become durable rows! Two rules:

1. Failures are LOGGED AND SWALLOWED. A broken database must never stop someone from
   listening. load_progress() returns None, save_progress() returns False.
2. Writes for the same (user, book) are SERIALIZED through one asyncio.Lock per pair.
   The timed checkpoint and a seek checkpoint can fire back to back; without the lock both
   can see "no row yet" and both insert. With it, the second one sees the first one's row
   and updates. (The unique constraint on the table is the backstop, not the mechanism.)
"""

import asyncio
import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from talebox.domain.entities import ContinueListeningEntry, ListeningProgress, utc_now
from talebox.domain.exceptions import DomainException
from talebox.domain.ports import IListeningProgressRepository
from talebox.infrastructure.persistence.repositories import ListeningProgressRepository
from talebox.infrastructure.persistence.retry import with_db_retry

logger = logging.getLogger(__name__)

SessionScope = Callable[[], AbstractAsyncContextManager[AsyncSession]]
RepositoryFactory = Callable[[AsyncSession], IListeningProgressRepository]

# What a persistence failure can look like from here
PERSISTENCE_ERRORS = (SQLAlchemyError, DomainException, OSError)


class ProgressService:
    """Load and checkpoint listening positions per (user, book)."""

    def __init__(
        self,
        session_scope: SessionScope,
        repository_factory: RepositoryFactory = ListeningProgressRepository,
        continue_listening_limit: int = 5,
    ) -> None:
        """Initialize progress service.

        Args:
            session_scope: Transaction factory, usually Database.session_scope
            repository_factory: Builds a repository for a session (tests swap it)
            continue_listening_limit: Default size of the Continue Listening shelf
        """
        self._session_scope = session_scope
        self._repository_factory = repository_factory
        self.continue_listening_limit = continue_listening_limit
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}
        self._lock_users: dict[tuple[str, str], int] = {}

    async def load_progress(self, user_id: str, book_id: str) -> ListeningProgress | None:
        """Get the last checkpoint. No row is a normal outcome → None."""
        try:
            async with self._session_scope() as session:
                progress = await self._repository_factory(session).get(user_id, book_id)
        except PERSISTENCE_ERRORS:
            logger.exception("[PROGRESS] Error loading progress for %s/%s", user_id, book_id)
            return None

        if progress is None:
            logger.debug("[PROGRESS] No saved progress for %s/%s", user_id, book_id)
        return progress

    async def save_progress(
        self,
        user_id: str,
        book_id: str,
        position: float,
        duration: float | None = None,
    ) -> bool:
        """Checkpoint a position: update the existing row, else insert one.

        Returns:
            True when the checkpoint was written
        """
        key = (user_id, book_id)
        lock = self._acquire_lock(key)
        try:
            async with lock:
                await self._write(user_id, book_id, max(0.0, position), duration)
        except PERSISTENCE_ERRORS:
            logger.exception(
                "[PROGRESS] Failed to save progress %.1fs for %s/%s", position, user_id, book_id
            )
            return False
        finally:
            self._release_lock(key)

        logger.debug("[PROGRESS] Saved %.1fs for %s/%s", position, user_id, book_id)
        return True

    @with_db_retry(max_attempts=3)
    async def _write(
        self, user_id: str, book_id: str, position: float, duration: float | None
    ) -> None:
        async with self._session_scope() as session:
            repo = self._repository_factory(session)
            progress = ListeningProgress(
                user_id=user_id,
                book_id=book_id,
                current_position=position,
                duration=duration,
                updated_at=utc_now(),
            )
            if await repo.get(user_id, book_id) is not None:
                await repo.update(progress)
            else:
                await repo.add(progress)

    async def continue_listening(
        self, user_id: str, limit: int | None = None
    ) -> list[ContinueListeningEntry]:
        """Books the user is part-way through, newest first. Errors → []."""
        try:
            async with self._session_scope() as session:
                return await self._repository_factory(session).list_in_progress(
                    user_id, limit or self.continue_listening_limit
                )
        except PERSISTENCE_ERRORS:
            logger.exception("[PROGRESS] Error fetching continue listening for %s", user_id)
            return []

    # -- per-pair locks -----------------------------------------------------
    # Locks are refcounted and dropped when idle so the dict doesn't grow with every
    # book anyone ever opened.

    def _acquire_lock(self, key: tuple[str, str]) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        return lock

    def _release_lock(self, key: tuple[str, str]) -> None:
        remaining = self._lock_users.get(key, 1) - 1
        if remaining <= 0:
            self._lock_users.pop(key, None)
            self._locks.pop(key, None)
        else:
            self._lock_users[key] = remaining

    def pending_writers(self) -> dict[tuple[str, str], int]:
        """Pairs with in-flight or queued saves (debugging aid)."""
        return dict(self._lock_users)
