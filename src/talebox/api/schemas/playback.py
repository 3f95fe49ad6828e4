"""API schemas for playback, progress and the library."""

from datetime import datetime

from pydantic import BaseModel, Field

from talebox.application.services import PlaybackSnapshot, SecureAudioSnapshot
from talebox.domain.entities import (
    ActiveBook,
    Book,
    ContinueListeningEntry,
    ListeningProgress,
    PlaybackState,
    format_clock,
)


class ActiveBookResponse(BaseModel):
    """Book held by the global playback session."""

    id: str
    title: str
    author: str
    audio_path: str
    cover_url: str | None = None

    @classmethod
    def from_entity(cls, book: ActiveBook) -> "ActiveBookResponse":
        return cls(
            id=book.id,
            title=book.title,
            author=book.author,
            audio_path=book.audio_path,
            cover_url=book.cover_url,
        )


class BookResponse(BaseModel):
    """Catalog book."""

    id: str
    title: str
    author: str
    cover_url: str | None = None
    genre: str | None = None
    description: str | None = None
    duration: float | None = None

    @classmethod
    def from_entity(cls, book: Book) -> "BookResponse":
        return cls(
            id=book.id,
            title=book.title,
            author=book.author,
            cover_url=book.cover_url,
            genre=book.genre,
            description=book.description,
            duration=book.duration,
        )


class ProgressResponse(BaseModel):
    """Saved listening position."""

    book_id: str
    current_position: float
    duration: float | None = None
    percent_complete: float
    updated_at: datetime

    @classmethod
    def from_entity(cls, progress: ListeningProgress) -> "ProgressResponse":
        return cls(
            book_id=progress.book_id,
            current_position=progress.current_position,
            duration=progress.duration,
            percent_complete=round(progress.percent_complete, 1),
            updated_at=progress.updated_at,
        )


class ContinueListeningResponse(BaseModel):
    """One card of the Continue Listening shelf."""

    book: BookResponse
    progress: ProgressResponse
    time_left: str

    @classmethod
    def from_entity(cls, entry: ContinueListeningEntry) -> "ContinueListeningResponse":
        return cls(
            book=BookResponse.from_entity(entry.book),
            progress=ProgressResponse.from_entity(entry.progress),
            time_left=entry.time_left,
        )


class PlayerStateResponse(BaseModel):
    """Global playback state (mini player)."""

    active_book: ActiveBookResponse | None
    is_playing: bool
    current_time: float
    duration: float
    show_mini_player: bool

    @classmethod
    def from_snapshot(cls, snapshot: PlaybackSnapshot) -> "PlayerStateResponse":
        return cls(
            active_book=(
                ActiveBookResponse.from_entity(snapshot.active_book)
                if snapshot.active_book
                else None
            ),
            is_playing=snapshot.is_playing,
            current_time=snapshot.current_time,
            duration=snapshot.duration,
            show_mini_player=snapshot.show_mini_player,
        )


class ScreenStateResponse(BaseModel):
    """State of one mounted player screen."""

    screen_id: str
    book_id: str
    state: PlaybackState
    resolved_url: str
    is_playing: bool
    current_time: float
    duration: float
    elapsed: str = Field(description="current_time as m:ss / h:mm:ss")
    total: str = Field(description="duration as m:ss / h:mm:ss")
    is_loading: bool
    progress: ProgressResponse | None = None
    retry_count: int
    using_demo_audio: bool
    is_mobile_device: bool
    is_slow_network: bool
    playback_rate: float

    @classmethod
    def from_snapshot(cls, screen_id: str, snapshot: SecureAudioSnapshot) -> "ScreenStateResponse":
        return cls(
            screen_id=screen_id,
            book_id=snapshot.book_id,
            state=snapshot.state,
            resolved_url=snapshot.resolved_url,
            is_playing=snapshot.is_playing,
            current_time=snapshot.current_time,
            duration=snapshot.duration,
            elapsed=format_clock(snapshot.current_time),
            total=format_clock(snapshot.duration),
            is_loading=snapshot.is_loading,
            progress=(
                ProgressResponse.from_entity(snapshot.progress) if snapshot.progress else None
            ),
            retry_count=snapshot.retry_count,
            using_demo_audio=snapshot.using_demo_audio,
            is_mobile_device=snapshot.is_mobile_device,
            is_slow_network=snapshot.is_slow_network,
            playback_rate=snapshot.playback_rate,
        )


class BookRequest(BaseModel):
    """Request naming a catalog book."""

    book_id: str = Field(..., min_length=1, description="Catalog book ID")


class SeekRequest(BaseModel):
    """Seek target in seconds."""

    time: float = Field(..., ge=0, description="Position in seconds")


class SkipRequest(BaseModel):
    """Relative skip in seconds (negative = back)."""

    seconds: float = Field(..., description="Seconds to skip")


class SpeedRequest(BaseModel):
    """Playback speed."""

    rate: float = Field(..., gt=0, description="Playback rate, one of the speed options")


class VisibilityRequest(BaseModel):
    """Mini player visibility."""

    visible: bool


class CollectionToggleResponse(BaseModel):
    """Result of a like/save toggle."""

    book_id: str
    in_collection: bool


class CollectionResponse(BaseModel):
    """Books in a user's likes or saves."""

    books: list[BookResponse]
    total: int
