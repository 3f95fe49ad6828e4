"""Domain entities."""

import math
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum


def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


# Hey future me, this is the per-screen state machine's state set! The happy path is
# IDLE → RESOLVING → READY → PLAYING ⇄ PAUSED → ENDED. ERROR_FALLBACK is only ever a
# pass-through from RESOLVING: we swap in the demo URL and land in READY right after.
class PlaybackState(str, Enum):
    """State of a secure audio session."""

    IDLE = "idle"
    RESOLVING = "resolving"
    READY = "ready"
    PLAYING = "playing"
    PAUSED = "paused"
    ENDED = "ended"
    ERROR_FALLBACK = "error_fallback"


@dataclass(frozen=True)
class User:
    """Authenticated user as seen by the app (identity lives in the hosted backend)."""

    id: str
    email: str | None = None


@dataclass(frozen=True)
class ActiveBook:
    """The book the global playback session is currently holding.

    Replaced wholesale on start, never mutated - hence frozen.
    """

    id: str
    title: str
    author: str
    audio_path: str
    cover_url: str | None = None


@dataclass
class Book:
    """Catalog book."""

    id: str
    title: str
    author: str
    audio_path: str = ""
    cover_url: str | None = None
    genre: str | None = None
    description: str | None = None
    duration: float | None = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def to_active_book(self) -> ActiveBook:
        """Build the playback view of this book."""
        return ActiveBook(
            id=self.id,
            title=self.title,
            author=self.author,
            audio_path=self.audio_path,
            cover_url=self.cover_url,
        )


@dataclass
class ListeningProgress:
    """Durable listening checkpoint, one per (user, book)."""

    user_id: str
    book_id: str
    current_position: float
    duration: float | None = None
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def percent_complete(self) -> float:
        """Progress as a 0-100 percentage (0 when duration is unknown)."""
        if not self.duration or self.duration <= 0:
            return 0.0
        return min(100.0, max(0.0, self.current_position / self.duration * 100))

    @property
    def remaining_seconds(self) -> float:
        """Seconds left until the end of the book (0 when duration is unknown)."""
        if not self.duration:
            return 0.0
        return max(0.0, self.duration - self.current_position)


@dataclass
class ContinueListeningEntry:
    """One card of the "Continue Listening" shelf."""

    progress: ListeningProgress
    book: Book

    @property
    def time_left(self) -> str:
        return format_time_left(self.progress.remaining_seconds)


def format_clock(seconds: float) -> str:
    """Format a media position as m:ss, or h:mm:ss past the hour."""
    if not math.isfinite(seconds) or seconds < 0:
        seconds = 0
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_time_left(seconds: float) -> str:
    """Format remaining time the way the shelf shows it ("1:05:00 left", "12:00 left")."""
    total = max(0, int(seconds))
    hours = total // 3600
    minutes = (total % 3600) // 60
    if hours > 0:
        return f"{hours}:{minutes:02d}:00 left"
    return f"{minutes}:00 left"


__all__ = [
    "ActiveBook",
    "Book",
    "ContinueListeningEntry",
    "ListeningProgress",
    "PlaybackState",
    "User",
    "format_clock",
    "format_time_left",
    "utc_now",
]
