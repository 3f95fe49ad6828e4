"""Personal library: liked and saved books.

Hey future me - toggles are check-then-act too, but unlike progress a lost race here is
harmless: the second insert hits the unique constraint, the repository raises
DuplicateEntityException, and we treat that as "already in your library".
"""

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from talebox.application.services.notification_service import NotificationService
from talebox.domain.entities import Book, User
from talebox.domain.exceptions import AuthenticationError, DuplicateEntityException
from talebox.domain.ports import IBookCollectionRepository, NotificationPriority
from talebox.infrastructure.persistence.repositories import (
    BookLikeRepository,
    BookSaveRepository,
)

logger = logging.getLogger(__name__)

SessionScope = Callable[[], AbstractAsyncContextManager[AsyncSession]]
CollectionFactory = Callable[[AsyncSession], IBookCollectionRepository]


class _Collection:
    """One per-user book collection (likes or saves) with its toast wording."""

    def __init__(self, name: str, factory: CollectionFactory, added: str, removed: str) -> None:
        self.name = name
        self.factory = factory
        self.added = added
        self.removed = removed


class LibraryService:
    """Toggle and list liked/saved books for the signed-in user."""

    def __init__(
        self,
        session_scope: SessionScope,
        notifications: NotificationService,
        likes_factory: CollectionFactory = BookLikeRepository,
        saves_factory: CollectionFactory = BookSaveRepository,
    ) -> None:
        self._session_scope = session_scope
        self._notifications = notifications
        self._likes = _Collection(
            "likes", likes_factory,
            added="Book added to your library!",
            removed="Book removed from your library",
        )
        self._saves = _Collection(
            "saves", saves_factory,
            added="Book saved for later!",
            removed="Book removed from saved",
        )

    # -- likes --------------------------------------------------------------

    async def toggle_like(self, user: User | None, book_id: str) -> bool:
        """Like/unlike a book. Returns the new liked state."""
        return await self._toggle(self._likes, user, book_id)

    async def is_liked(self, user: User | None, book_id: str) -> bool:
        return book_id in await self.liked_book_ids(user)

    async def liked_book_ids(self, user: User | None) -> set[str]:
        return await self._ids(self._likes, user)

    async def liked_books(self, user: User | None) -> list[Book]:
        return await self._books(self._likes, user)

    # -- saves --------------------------------------------------------------

    async def toggle_save(self, user: User | None, book_id: str) -> bool:
        """Save/unsave a book. Returns the new saved state."""
        return await self._toggle(self._saves, user, book_id)

    async def is_saved(self, user: User | None, book_id: str) -> bool:
        return book_id in await self.saved_book_ids(user)

    async def saved_book_ids(self, user: User | None) -> set[str]:
        return await self._ids(self._saves, user)

    async def saved_books(self, user: User | None) -> list[Book]:
        return await self._books(self._saves, user)

    # -- shared -------------------------------------------------------------

    async def _toggle(self, collection: _Collection, user: User | None, book_id: str) -> bool:
        if user is None:
            raise AuthenticationError("User must be logged in")

        try:
            async with self._session_scope() as session:
                repo = collection.factory(session)
                if await repo.exists(user.id, book_id):
                    await repo.remove(user.id, book_id)
                    now_in_collection = False
                else:
                    await repo.add(user.id, book_id)
                    now_in_collection = True
        except DuplicateEntityException:
            # Lost the race against another toggle - the book IS in the collection
            await self._notifications.notify_library(
                "Book is already in your library",
                priority=NotificationPriority.LOW,
                user_id=user.id,
            )
            return True
        except SQLAlchemyError:
            logger.exception("Error toggling %s for %s/%s", collection.name, user.id, book_id)
            await self._notifications.notify_library(
                "Failed to update library",
                priority=NotificationPriority.CRITICAL,
                user_id=user.id,
            )
            raise

        await self._notifications.notify_library(
            collection.added if now_in_collection else collection.removed,
            user_id=user.id,
            data={"book_id": book_id, "collection": collection.name},
        )
        return now_in_collection

    async def _ids(self, collection: _Collection, user: User | None) -> set[str]:
        if user is None:
            return set()
        try:
            async with self._session_scope() as session:
                return await collection.factory(session).list_book_ids(user.id)
        except SQLAlchemyError:
            logger.exception("Error fetching %s for %s", collection.name, user.id)
            return set()

    async def _books(self, collection: _Collection, user: User | None) -> list[Book]:
        if user is None:
            return []
        try:
            async with self._session_scope() as session:
                return await collection.factory(session).list_books(user.id)
        except SQLAlchemyError:
            logger.exception("Error fetching %s books for %s", collection.name, user.id)
            return []
