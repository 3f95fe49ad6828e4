"""Dependency injection for API endpoints."""

import logging
from collections.abc import AsyncGenerator
from typing import Annotated, cast

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from talebox.application.services import (
    GlobalPlaybackSession,
    LibraryService,
    PlayerScreens,
    ProgressService,
)
from talebox.domain.entities import Book, User
from talebox.domain.exceptions import AuthenticationError, EntityNotFoundException
from talebox.domain.value_objects import ClientEnvironment
from talebox.infrastructure.notifications import ToastNotificationProvider
from talebox.infrastructure.persistence import BookRepository, Database

logger = logging.getLogger(__name__)


# Hey future me - everything long-lived hangs off app.state (see lifecycle.lifespan()).
# A missing attribute means startup didn't get that far, so it's a 503, not a 500.
def _from_state(request: Request, name: str) -> object:
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(status_code=503, detail=f"{name} not initialized")
    return value


def get_database(request: Request) -> Database:
    return cast(Database, _from_state(request, "db"))


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield a transactional session (commit on success, rollback on error)."""
    db = get_database(request)
    async with db.session_scope() as session:
        yield session


def get_playback(request: Request) -> GlobalPlaybackSession:
    return cast(GlobalPlaybackSession, _from_state(request, "playback"))


def get_screens(request: Request) -> PlayerScreens:
    return cast(PlayerScreens, _from_state(request, "screens"))


def get_progress_service(request: Request) -> ProgressService:
    return cast(ProgressService, _from_state(request, "progress_service"))


def get_library_service(request: Request) -> LibraryService:
    return cast(LibraryService, _from_state(request, "library_service"))


def get_toasts(request: Request) -> ToastNotificationProvider:
    return cast(ToastNotificationProvider, _from_state(request, "toasts"))


# Sign-in lives in the hosted backend; by the time a request reaches us the user id
# has been established there and is forwarded as a header.
def get_current_user(
    x_user_id: Annotated[str | None, Header()] = None,
) -> User | None:
    if x_user_id is None or not x_user_id.strip():
        return None
    return User(id=x_user_id.strip())


def require_user(user: Annotated[User | None, Depends(get_current_user)]) -> User:
    if user is None:
        raise AuthenticationError("User must be logged in")
    return user


def get_client_environment(request: Request) -> ClientEnvironment:
    return ClientEnvironment.from_headers(request.headers)


# Hey future me - this opens its OWN short transaction instead of taking the request
# session. Opening a screen probes the network for seconds; holding a DB session across
# that would pin a pooled connection for nothing.
async def load_book(db: Database, book_id: str) -> Book:
    """Load a catalog book or raise EntityNotFoundException (→ 404)."""
    async with db.session_scope() as session:
        book = await BookRepository(session).get_by_id(book_id)
    if book is None:
        raise EntityNotFoundException("Book", book_id)
    return book
