"""Catalog lookup for the player screen."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from talebox.api.dependencies import get_db_session
from talebox.api.schemas import BookResponse
from talebox.domain.exceptions import EntityNotFoundException
from talebox.infrastructure.persistence import BookRepository

router = APIRouter(prefix="/books", tags=["books"])

Session = Annotated[AsyncSession, Depends(get_db_session)]


@router.get("", response_model=list[BookResponse])
async def search_books(
    session: Session,
    q: Annotated[str, Query(description="Title or author fragment")] = "",
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> list[BookResponse]:
    books = await BookRepository(session).search(q, limit)
    return [BookResponse.from_entity(book) for book in books]


@router.get("/{book_id}", response_model=BookResponse)
async def get_book(book_id: str, session: Session) -> BookResponse:
    book = await BookRepository(session).get_by_id(book_id)
    if book is None:
        raise EntityNotFoundException("Book", book_id)
    return BookResponse.from_entity(book)
