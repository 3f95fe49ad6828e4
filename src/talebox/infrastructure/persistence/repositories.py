"""Repository implementations using SQLAlchemy."""

from typing import NoReturn

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from talebox.domain.entities import Book, ContinueListeningEntry, ListeningProgress
from talebox.domain.exceptions import DuplicateEntityException, EntityNotFoundException
from talebox.domain.ports import (
    IBookCollectionRepository,
    IBookRepository,
    IListeningProgressRepository,
)
from talebox.infrastructure.persistence.models import (
    BookLikeModel,
    BookModel,
    BookSaveModel,
    ListeningProgressModel,
    ensure_utc_aware,
)


def _book_to_entity(model: BookModel) -> Book:
    return Book(
        id=model.id,
        title=model.title,
        author=model.author,
        audio_path=model.audio_path or "",
        cover_url=model.cover_url,
        genre=model.genre,
        description=model.description,
        duration=model.duration,
        created_at=ensure_utc_aware(model.created_at),
        updated_at=ensure_utc_aware(model.updated_at),
    )


def _progress_to_entity(model: ListeningProgressModel) -> ListeningProgress:
    return ListeningProgress(
        user_id=model.user_id,
        book_id=model.book_id,
        current_position=model.current_position,
        duration=model.duration,
        updated_at=ensure_utc_aware(model.updated_at),
    )


def _raise_for_integrity_error(error: IntegrityError, entity_type: str, user_id: str, book_id: str) -> NoReturn:
    """Map a failed insert on a (user, book) table to a domain error.

    SQLite says "FOREIGN KEY constraint failed", PostgreSQL "violates foreign key constraint".
    """
    if "foreign key" in str(error.orig).lower():
        raise EntityNotFoundException("Book", book_id) from error
    raise DuplicateEntityException(entity_type, f"{user_id}/{book_id}") from error


class BookRepository(IBookRepository):
    """SQLAlchemy implementation of the Book repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    async def add(self, book: Book) -> None:
        """Add a new book."""
        model = BookModel(
            id=book.id,
            title=book.title,
            author=book.author,
            cover_url=book.cover_url,
            genre=book.genre,
            description=book.description,
            audio_path=book.audio_path or None,
            duration=book.duration,
            created_at=book.created_at,
            updated_at=book.updated_at,
        )
        self.session.add(model)
        await self.session.flush()

    async def get_by_id(self, book_id: str) -> Book | None:
        """Get a book by ID."""
        model = await self.session.get(BookModel, book_id)
        return _book_to_entity(model) if model else None

    async def search(self, query: str, limit: int = 20) -> list[Book]:
        """Case-insensitive search over title and author."""
        pattern = f"%{query.strip().lower()}%"
        stmt = (
            select(BookModel)
            .where(
                or_(
                    func.lower(BookModel.title).like(pattern),
                    func.lower(BookModel.author).like(pattern),
                )
            )
            .order_by(BookModel.title)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [_book_to_entity(model) for model in result.scalars().all()]


# Hey future me, this is where the composite key lives! get() is the "exists?" half of
# check-then-act, add()/update() the "act" half. They're deliberately dumb - the single-writer
# locking lives in ProgressService, because a repository only sees one session at a time.
class ListeningProgressRepository(IListeningProgressRepository):
    """SQLAlchemy implementation of the listening progress repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    async def _get_model(self, user_id: str, book_id: str) -> ListeningProgressModel | None:
        stmt = select(ListeningProgressModel).where(
            ListeningProgressModel.user_id == user_id,
            ListeningProgressModel.book_id == book_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get(self, user_id: str, book_id: str) -> ListeningProgress | None:
        """Get the checkpoint for (user, book)."""
        model = await self._get_model(user_id, book_id)
        return _progress_to_entity(model) if model else None

    async def add(self, progress: ListeningProgress) -> None:
        """Insert a new checkpoint row."""
        model = ListeningProgressModel(
            user_id=progress.user_id,
            book_id=progress.book_id,
            current_position=progress.current_position,
            duration=progress.duration,
            updated_at=progress.updated_at,
        )
        self.session.add(model)
        try:
            await self.session.flush()
        except IntegrityError as e:
            _raise_for_integrity_error(e, "ListeningProgress", progress.user_id, progress.book_id)

    async def update(self, progress: ListeningProgress) -> None:
        """Update position, duration and timestamp of the existing row."""
        model = await self._get_model(progress.user_id, progress.book_id)
        if model is None:
            raise EntityNotFoundException(
                "ListeningProgress", f"{progress.user_id}/{progress.book_id}"
            )

        model.current_position = progress.current_position
        model.duration = progress.duration
        model.updated_at = progress.updated_at
        await self.session.flush()

    async def count_for(self, user_id: str, book_id: str) -> int:
        """Number of rows for (user, book). Always 0 or 1 unless something is badly wrong."""
        stmt = select(func.count()).select_from(ListeningProgressModel).where(
            ListeningProgressModel.user_id == user_id,
            ListeningProgressModel.book_id == book_id,
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def list_in_progress(
        self, user_id: str, limit: int = 5
    ) -> list[ContinueListeningEntry]:
        """Books with position > 0, most recently updated first."""
        stmt = (
            select(ListeningProgressModel)
            .options(joinedload(ListeningProgressModel.book))
            .where(
                ListeningProgressModel.user_id == user_id,
                ListeningProgressModel.current_position > 0,
            )
            .order_by(ListeningProgressModel.updated_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [
            ContinueListeningEntry(
                progress=_progress_to_entity(model),
                book=_book_to_entity(model.book),
            )
            for model in result.scalars().all()
            if model.book is not None
        ]


class _BookCollectionRepository(IBookCollectionRepository):
    """Shared implementation for (user, book) collection tables."""

    model_class: type[BookLikeModel] | type[BookSaveModel]
    entity_name: str

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    async def exists(self, user_id: str, book_id: str) -> bool:
        model = self.model_class
        stmt = select(model.id).where(model.user_id == user_id, model.book_id == book_id)
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def add(self, user_id: str, book_id: str) -> None:
        self.session.add(self.model_class(user_id=user_id, book_id=book_id))
        try:
            await self.session.flush()
        except IntegrityError as e:
            _raise_for_integrity_error(e, self.entity_name, user_id, book_id)

    async def remove(self, user_id: str, book_id: str) -> bool:
        model = self.model_class
        stmt = delete(model).where(model.user_id == user_id, model.book_id == book_id)
        result = await self.session.execute(stmt)
        return bool(result.rowcount)  # type: ignore[attr-defined]

    async def list_book_ids(self, user_id: str) -> set[str]:
        model = self.model_class
        result = await self.session.execute(
            select(model.book_id).where(model.user_id == user_id)
        )
        return set(result.scalars().all())

    async def list_books(self, user_id: str) -> list[Book]:
        model = self.model_class
        stmt = (
            select(BookModel)
            .join(model, model.book_id == BookModel.id)
            .where(model.user_id == user_id)
            .order_by(model.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return [_book_to_entity(book) for book in result.scalars().all()]


class BookLikeRepository(_BookCollectionRepository):
    """SQLAlchemy implementation for liked books."""

    model_class = BookLikeModel
    entity_name = "BookLike"


class BookSaveRepository(_BookCollectionRepository):
    """SQLAlchemy implementation for saved books."""

    model_class = BookSaveModel
    entity_name = "BookSave"
