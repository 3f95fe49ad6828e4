"""Personal library endpoints: liked and saved books."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from talebox.api.dependencies import (
    get_database,
    get_library_service,
    load_book,
    require_user,
)
from talebox.api.schemas import BookResponse, CollectionResponse, CollectionToggleResponse
from talebox.application.services import LibraryService
from talebox.domain.entities import User
from talebox.infrastructure.persistence import Database

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/library", tags=["library"])

CurrentUser = Annotated[User, Depends(require_user)]
Library = Annotated[LibraryService, Depends(get_library_service)]
Db = Annotated[Database, Depends(get_database)]


@router.post("/likes/{book_id}", response_model=CollectionToggleResponse)
async def toggle_like(book_id: str, user: CurrentUser, library: Library, db: Db) -> CollectionToggleResponse:
    # Unknown books are a 404 here, not a foreign key error inside the toggle
    await load_book(db, book_id)
    liked = await library.toggle_like(user, book_id)
    return CollectionToggleResponse(book_id=book_id, in_collection=liked)


@router.get("/likes", response_model=CollectionResponse)
async def list_likes(user: CurrentUser, library: Library) -> CollectionResponse:
    books = await library.liked_books(user)
    return CollectionResponse(books=[BookResponse.from_entity(b) for b in books], total=len(books))


@router.post("/saves/{book_id}", response_model=CollectionToggleResponse)
async def toggle_save(book_id: str, user: CurrentUser, library: Library, db: Db) -> CollectionToggleResponse:
    await load_book(db, book_id)
    saved = await library.toggle_save(user, book_id)
    return CollectionToggleResponse(book_id=book_id, in_collection=saved)


@router.get("/saves", response_model=CollectionResponse)
async def list_saves(user: CurrentUser, library: Library) -> CollectionResponse:
    books = await library.saved_books(user)
    return CollectionResponse(books=[BookResponse.from_entity(b) for b in books], total=len(books))
