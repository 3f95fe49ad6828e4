"""SQLAlchemy ORM models for Talebox.

Hey future me - these mirror the hosted backend's tables (books, listening_progress,
book_likes, book_saves). The backend only exposes what the client needs; profiles,
genre preferences and hero carousel tables are managed elsewhere and aren't mapped here.
"""

import uuid
from datetime import UTC, datetime

import sqlalchemy as sa
from sqlalchemy import Float, ForeignKey, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


# Hey future me - SQLite doesn't preserve timezone info! Datetimes come back naive.
# ALWAYS run DB datetimes through this before comparing with datetime.now(UTC).
def ensure_utc_aware(dt: datetime) -> datetime:
    """Ensure datetime is UTC-aware, assuming naive datetimes are UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class BookModel(Base):
    """SQLAlchemy model for catalog books.

    audio_path is either an object key in the audio bucket ("author/book.mp3")
    or an absolute http(s) URL - AudioUrlResolver handles both.
    """

    __tablename__ = "books"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    author: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    cover_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    genre: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    audio_path: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    duration: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=utc_now, onupdate=utc_now, nullable=False
    )


# Listen up, ONE row per (user_id, book_id)! The unique constraint is the last line of defense -
# ProgressService already serializes check-then-act per pair so two checkpoints can't both insert.
# user_id is NOT a foreign key: users live in the backend's auth schema, not in our tables.
class ListeningProgressModel(Base):
    """SQLAlchemy model for listening progress checkpoints."""

    __tablename__ = "listening_progress"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    book_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("books.id", ondelete="CASCADE"), nullable=False
    )
    current_position: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    duration: Mapped[float | None] = mapped_column(Float, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, nullable=False)

    book: Mapped["BookModel"] = relationship("BookModel")

    __table_args__ = (
        sa.UniqueConstraint("user_id", "book_id", name="uq_listening_progress_user_book"),
        Index("ix_listening_progress_user_updated", "user_id", "updated_at"),
    )


class BookLikeModel(Base):
    """A book the user liked (shown in their library)."""

    __tablename__ = "book_likes"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    book_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("books.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(default=utc_now, nullable=False)

    book: Mapped["BookModel"] = relationship("BookModel")

    __table_args__ = (
        sa.UniqueConstraint("user_id", "book_id", name="uq_book_likes_user_book"),
    )


class BookSaveModel(Base):
    """A book the user saved for later."""

    __tablename__ = "book_saves"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    book_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("books.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(default=utc_now, nullable=False)

    book: Mapped["BookModel"] = relationship("BookModel")

    __table_args__ = (
        sa.UniqueConstraint("user_id", "book_id", name="uq_book_saves_user_book"),
    )
