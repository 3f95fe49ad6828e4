"""App-wide playback session backing the mini player.

Hey future me - this one owns the GLOBAL output handle and nothing else touches it.
The player screen builds its own SecureAudioSession with its own handle; the two never
share a source, so playing on the screen can't yank the mini player around (and vice versa).

Invariants kept here:
- is_playing implies active_book is set
- mini player visible implies active_book is set
- stop() clears everything in one go
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from talebox.application.services.audio_url_service import AudioUrlResolver
from talebox.domain.entities import ActiveBook
from talebox.domain.ports import AudioEvent, AudioSubscriptions, IAudioOutput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlaybackSnapshot:
    """Immutable view of the global playback state."""

    active_book: ActiveBook | None
    is_playing: bool
    current_time: float
    duration: float
    show_mini_player: bool


SnapshotListener = Callable[[PlaybackSnapshot], None]


class GlobalPlaybackSession:
    """Single shared "what is playing" state."""

    def __init__(self, output: IAudioOutput, url_resolver: AudioUrlResolver | None = None) -> None:
        self._output = output
        self._resolver = url_resolver
        self._active_book: ActiveBook | None = None
        self._is_playing = False
        self._current_time = 0.0
        self._duration = 0.0
        self._show_mini_player = False
        self._listeners: list[SnapshotListener] = []

        self._subscriptions = AudioSubscriptions()
        for event, handler in (
            (AudioEvent.TIME_UPDATE, self._on_time_update),
            (AudioEvent.METADATA_LOADED, self._on_metadata_loaded),
            (AudioEvent.ENDED, self._on_ended),
            (AudioEvent.PLAYED, self._on_played),
            (AudioEvent.PAUSED, self._on_paused),
        ):
            self._subscriptions.add(output.subscribe(event, handler))

    # -- read side ----------------------------------------------------------

    @property
    def active_book(self) -> ActiveBook | None:
        return self._active_book

    @property
    def is_playing(self) -> bool:
        return self._is_playing

    @property
    def current_time(self) -> float:
        return self._current_time

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def show_mini_player(self) -> bool:
        return self._show_mini_player

    def snapshot(self) -> PlaybackSnapshot:
        return PlaybackSnapshot(
            active_book=self._active_book,
            is_playing=self._is_playing,
            current_time=self._current_time,
            duration=self._duration,
            show_mini_player=self._show_mini_player,
        )

    def add_listener(self, listener: SnapshotListener) -> Callable[[], None]:
        """Observe state changes. Returns a function that removes the listener."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    # -- commands -----------------------------------------------------------

    def start(self, book: ActiveBook) -> None:
        """Make book the active one and load it (no autoplay).

        Starting the book that's already active keeps its position - that's what
        lets the mini player pick up where the screen left off.
        """
        if self._active_book is not None and self._active_book.id == book.id:
            self._active_book = book
            self._notify()
            return

        logger.info("[PLAYBACK] Global session starting book %s", book.id)
        self._active_book = book
        self._is_playing = False
        self._current_time = 0.0
        self._duration = 0.0
        self._output.src = self._source_for(book)
        self._output.load()
        self._notify()

    def stop(self) -> None:
        """Pause, rewind, forget the active book, hide the mini player."""
        self._output.pause()
        self._output.current_time = 0
        self._active_book = None
        self._is_playing = False
        self._current_time = 0.0
        self._duration = 0.0
        self._show_mini_player = False
        logger.info("[PLAYBACK] Global session stopped")
        self._notify()

    async def toggle(self) -> None:
        """Pause if playing, else try to play. A refused play() is logged, not raised."""
        if self._active_book is None:
            return

        if self._is_playing:
            self._output.pause()
            self._is_playing = False
        else:
            try:
                await self._output.play()
                self._is_playing = True
            except Exception as e:
                logger.warning("[PLAYBACK] Global play failed: %s", e)
                self._is_playing = False
        self._notify()

    def seek_to(self, time: float) -> None:
        if self._active_book is None:
            return
        self._output.current_time = time
        self._current_time = self._output.current_time
        self._notify()

    def set_mini_player_visible(self, visible: bool) -> None:
        # Nothing to show without a book
        self._show_mini_player = visible and self._active_book is not None
        self._notify()

    def on_player_screen_mounted(self) -> None:
        self.set_mini_player_visible(False)

    def on_player_screen_unmounted(self) -> None:
        self.set_mini_player_visible(self._active_book is not None)

    def close(self) -> None:
        self._subscriptions.cancel_all()
        self._output.close()
        self._listeners.clear()

    # -- internals ----------------------------------------------------------

    def _source_for(self, book: ActiveBook) -> str:
        if self._resolver is None:
            return book.audio_path
        return self._resolver.resolve_audio_url(book.audio_path)

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("[PLAYBACK] Playback listener failed")

    def _on_time_update(self) -> None:
        self._current_time = self._output.current_time
        self._notify()

    def _on_metadata_loaded(self) -> None:
        self._duration = self._output.duration
        self._notify()

    def _on_ended(self) -> None:
        self._is_playing = False
        self._notify()

    def _on_played(self) -> None:
        if self._active_book is not None:
            self._is_playing = True
            self._notify()

    def _on_paused(self) -> None:
        if self._is_playing:
            self._is_playing = False
            self._notify()
