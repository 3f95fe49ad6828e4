"""Per-screen playback engine: resolve, restore, play, checkpoint.

Hey future me - this is THE state machine of the app. One instance per mounted player
screen, owning its OWN output handle (never the global one!):

    IDLE → RESOLVING → READY → PLAYING ⇄ PAUSED → ENDED
                 ↘ ERROR_FALLBACK → READY (demo audio)

Ground rules:
- Nothing raises out of here. Resolution problems become demo audio, play() problems
  become toasts, persistence problems are logged by ProgressService.
- Demo audio NEVER reads or writes progress. It isn't the book.
- Every resolution attempt gets a token. If a newer attempt started (book switched,
  retry, unmount) while we were awaiting the network, the old result is thrown away.
- Checkpoints are driven by MEDIA time: one write per checkpoint_interval bucket
  of elapsed media time, plus pause / seek / end / teardown.
"""

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass
from typing import Any

from talebox.application.services.audio_url_service import AudioUrlResolver
from talebox.application.services.network_detection import (
    detect_mobile_device,
    is_slow_network,
)
from talebox.application.services.notification_service import NotificationService
from talebox.application.services.progress_service import ProgressService
from talebox.config import PlaybackSettings
from talebox.domain.entities import ListeningProgress, PlaybackState
from talebox.domain.exceptions import (
    PlaybackErrorKind,
    PlaybackStartError,
    ValidationException,
)
from talebox.domain.ports import AudioEvent, AudioSubscriptions, IAudioOutput, IAuthProvider
from talebox.domain.value_objects import ClientEnvironment

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class SecureAudioSnapshot:
    """Observable fields of a secure audio session."""

    book_id: str
    state: PlaybackState
    resolved_url: str
    is_playing: bool
    current_time: float
    duration: float
    is_loading: bool
    progress: ListeningProgress | None
    retry_count: int
    using_demo_audio: bool
    is_mobile_device: bool
    is_slow_network: bool
    playback_rate: float


class SecureAudioSession:
    """Playback engine for one player screen."""

    def __init__(
        self,
        book_id: str,
        audio_path: str,
        output: IAudioOutput,
        url_resolver: AudioUrlResolver,
        progress_service: ProgressService,
        auth: IAuthProvider,
        notifications: NotificationService,
        settings: PlaybackSettings,
        environment: ClientEnvironment | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.book_id = book_id
        self.audio_path = audio_path
        self._output = output
        self._resolver = url_resolver
        self._progress_service = progress_service
        self._auth = auth
        self._notifications = notifications
        self._settings = settings
        self._sleep = sleep

        environment = environment or ClientEnvironment()
        self.is_mobile_device = detect_mobile_device(environment.user_agent)
        self.is_slow_network = is_slow_network(environment)

        self.state = PlaybackState.IDLE
        self.resolved_url = ""
        self.is_playing = False
        self.current_time = 0.0
        self.duration = 0.0
        self.is_loading = False
        self.progress: ListeningProgress | None = None
        self.retry_count = 0
        self.using_demo_audio = False
        self.playback_rate = 1.0

        self._attempt = 0
        self._resolving_key: tuple[str, str] | None = None
        self._init_task: asyncio.Task[None] | None = None
        self._pending_restore: float | None = None
        self._metadata_loaded = False
        self._last_checkpoint_bucket: int | None = None
        self._background: set[asyncio.Task[Any]] = set()
        self._subscriptions = AudioSubscriptions()
        self._mounted = False
        self._closed = False

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def mount(self) -> None:
        """Wire the output's events and start resolving. Needs a running event loop."""
        if self._mounted or self._closed:
            return
        self._mounted = True

        handlers = {
            AudioEvent.TIME_UPDATE: self._on_time_update,
            AudioEvent.METADATA_LOADED: self._on_metadata_loaded,
            AudioEvent.ENDED: self._on_ended,
            AudioEvent.PLAYED: self._on_played,
            AudioEvent.PAUSED: self._on_paused,
        }
        for event, handler in handlers.items():
            self._subscriptions.add(self._output.subscribe(event, handler))

        logger.debug("[PLAYBACK] Session mounted for book %s", self.book_id)
        self._start_initialization()

    async def unmount(self) -> None:
        """Tear down: final checkpoint, cancel in-flight work, release the output."""
        if self._closed:
            return
        self._closed = True
        self._attempt += 1  # anything still resolving is now stale

        init_task = self._init_task
        if init_task is not None and not init_task.done():
            init_task.cancel()
            try:
                await init_task
            except asyncio.CancelledError:
                pass

        if self.current_time > 0 and self.state != PlaybackState.ENDED:
            await self._checkpoint(self.current_time)
        await self.wait_idle()

        self._subscriptions.cancel_all()
        self._output.pause()
        self._output.close()
        self.is_playing = False
        logger.debug("[PLAYBACK] Session unmounted for book %s", self.book_id)

    async def __aenter__(self) -> "SecureAudioSession":
        self.mount()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.unmount()

    @property
    def closed(self) -> bool:
        return self._closed

    async def wait_ready(self) -> None:
        """Wait for the current initialization to finish."""
        task = self._init_task
        if task is not None:
            try:
                await asyncio.shield(task)
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise

    async def wait_idle(self) -> None:
        """Wait for background checkpoints to land."""
        while True:
            pending = [task for task in self._background if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def snapshot(self) -> SecureAudioSnapshot:
        return SecureAudioSnapshot(
            book_id=self.book_id,
            state=self.state,
            resolved_url=self.resolved_url,
            is_playing=self.is_playing,
            current_time=self.current_time,
            duration=self.duration,
            is_loading=self.is_loading,
            progress=self.progress,
            retry_count=self.retry_count,
            using_demo_audio=self.using_demo_audio,
            is_mobile_device=self.is_mobile_device,
            is_slow_network=self.is_slow_network,
            playback_rate=self.playback_rate,
        )

    # =========================================================================
    # RESOLUTION
    # =========================================================================

    def _start_initialization(self, force: bool = False) -> None:
        self._init_task = asyncio.get_running_loop().create_task(self.initialize(force=force))

    async def change_source(self, book_id: str, audio_path: str) -> None:
        """Switch this screen to another book. Same identity is a no-op."""
        if (book_id, audio_path) == (self.book_id, self.audio_path) or self._closed:
            return

        if self.current_time > 0 and self.state != PlaybackState.ENDED:
            await self._checkpoint(self.current_time)
        # Queued checkpoints belong to the old book, let them land first
        await self.wait_idle()
        if self.is_playing:
            self._output.pause()

        logger.info("[PLAYBACK] Switching from book %s to %s", self.book_id, book_id)
        self.book_id = book_id
        self.audio_path = audio_path
        self.progress = None
        self.retry_count = 0
        self._start_initialization()

    async def initialize(self, force: bool = False) -> None:
        """Resolve the audio source and restore progress. Never raises."""
        if self._closed:
            return
        if self.is_loading and not force and self._resolving_key == (self.book_id, self.audio_path):
            logger.debug("[PLAYBACK] Already resolving %s, skipping", self.audio_path)
            return

        self._attempt += 1
        attempt = self._attempt
        book_id, path = self.book_id, self.audio_path

        self.is_loading = True
        self._resolving_key = (book_id, path)
        self.state = PlaybackState.RESOLVING
        logger.info("[PLAYBACK] Resolving audio for book %s (attempt %d)", book_id, attempt)

        try:
            url = self._resolver.resolve_audio_url(path, self.is_mobile_device)
            reachable = bool(url) and await self._resolver.check_reachable(url)
        except Exception:
            logger.exception("[PLAYBACK] Failed to resolve audio for book %s", book_id)
            url, reachable = "", False

        if attempt != self._attempt:
            logger.info("[PLAYBACK] Discarding stale resolution for book %s", book_id)
            return

        try:
            if reachable:
                self._apply_source(url, demo=False)
                await self._restore_progress(book_id, attempt)
            else:
                await self._fall_back(book_id)
        finally:
            if attempt == self._attempt:
                self.is_loading = False
                self._resolving_key = None

    async def retry(self, force: bool = True) -> None:
        """Manual retry: resolve again, bypassing the in-flight guard when forced."""
        if self._closed:
            return
        self.retry_count += 1
        logger.info("[PLAYBACK] Manual retry #%d for book %s", self.retry_count, self.book_id)
        task = asyncio.get_running_loop().create_task(self.initialize(force=force))
        self._init_task = task
        await self.wait_ready()

    def _apply_source(self, url: str, demo: bool) -> None:
        self.resolved_url = url
        self.using_demo_audio = demo
        self.is_playing = False
        self.current_time = 0.0
        self.duration = 0.0
        self._pending_restore = None
        self._last_checkpoint_bucket = 0

        self._output.src = url
        self._output.playback_rate = self.playback_rate
        self.state = PlaybackState.READY
        self._metadata_loaded = False
        self._output.load()

    async def _fall_back(self, book_id: str) -> None:
        self.state = PlaybackState.ERROR_FALLBACK
        logger.warning("[PLAYBACK] Audio for book %s unavailable, using demo audio", book_id)

        self.progress = None
        self.retry_count = 0
        self._apply_source(self._resolver.fallback_audio_url(), demo=True)

        user = self._auth.current_user()
        await self._notifications.notify_demo_audio(book_id, user.id if user else None)

    async def _restore_progress(self, book_id: str, attempt: int) -> None:
        user = self._auth.current_user()
        if user is None or self.using_demo_audio:
            return

        progress = await self._progress_service.load_progress(user.id, book_id)
        if attempt != self._attempt:
            return

        self.progress = progress
        if progress is None or progress.current_position <= 0:
            return

        logger.info(
            "[PLAYBACK] Resuming book %s at %.1fs", book_id, progress.current_position
        )
        self._pending_restore = progress.current_position
        self.current_time = progress.current_position
        # load() may have announced metadata already, with or without a duration
        if self._metadata_loaded:
            self._apply_pending_restore()

    def _apply_pending_restore(self) -> None:
        position = self._pending_restore
        self._pending_restore = None
        if position is None:
            return
        if self.duration > 0:
            position = min(position, self.duration)
        self.current_time = position
        self._last_checkpoint_bucket = self._bucket(position)
        self._output.current_time = position

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    def _ready(self) -> bool:
        return (
            not self._closed
            and bool(self.resolved_url)
            and self.state not in (PlaybackState.IDLE, PlaybackState.RESOLVING)
        )

    async def toggle_play(self) -> None:
        """Play when paused, pause when playing. Never raises."""
        if not self._ready():
            logger.warning("[PLAYBACK] Audio element or URL not ready")
            await self._notifications.notify_player_not_ready(self._user_id())
            return

        if self.is_playing:
            self._output.pause()
            self.is_playing = False
            self.state = PlaybackState.PAUSED
            await self._checkpoint(self.current_time)
            return

        try:
            if self.is_mobile_device:
                await self._reload_for_mobile()
                if self._closed:
                    return
            await self._output.play()
        except Exception as e:
            await self._handle_play_error(e)
            return

        self.is_playing = True
        self.retry_count = 0
        self.state = PlaybackState.PLAYING
        logger.info("[PLAYBACK] Playback started for book %s", self.book_id)

    async def _reload_for_mobile(self) -> None:
        # Hey future me - mobile browsers get stuck on a half-buffered source; a fresh
        # load() plus a short settle delay before play() unsticks them. load() rewinds
        # to 0, so we put the position back afterwards.
        position = self.current_time
        self._output.load()
        await self._sleep(self._settings.mobile_settle_delay)
        if position > 0:
            self._last_checkpoint_bucket = self._bucket(position)
            self._output.current_time = position

    async def _handle_play_error(self, error: Exception) -> None:
        self.is_playing = False
        self.retry_count += 1
        kind = PlaybackStartError.classify(error)
        logger.warning(
            "[PLAYBACK] Play failed for book %s (%s): %s", self.book_id, kind.value, error
        )

        user_id = self._user_id()
        if kind == PlaybackErrorKind.PERMISSION_REQUIRED:
            await self._notifications.notify_permission_required(user_id)
        elif kind == PlaybackErrorKind.FORMAT_UNSUPPORTED:
            await self._notifications.notify_format_unsupported(user_id)
        else:
            await self._notifications.notify_playback_failed(str(error) or "unknown error", user_id)

    async def seek_to(self, time: float) -> None:
        """Jump to time (seconds) and checkpoint it. Clamping is the caller's job."""
        if not self._ready():
            await self._notifications.notify_player_not_ready(self._user_id())
            return

        position = max(0.0, float(time))
        self._pending_restore = None
        self.current_time = position
        self._last_checkpoint_bucket = self._bucket(position)
        self._output.current_time = position
        if self.state == PlaybackState.ENDED:
            self.state = PlaybackState.PAUSED
        await self._checkpoint(position)

    async def skip(self, delta: float) -> None:
        """Skip forward/back by delta seconds, clamped into [0, duration].

        With an unknown duration only the lower bound applies.
        """
        target = max(0.0, self.current_time + delta)
        if self.duration > 0:
            target = min(self.duration, target)
        await self.seek_to(target)

    def set_playback_rate(self, rate: float) -> None:
        """Change speed; only the configured speed options are allowed."""
        if rate not in self._settings.speed_options:
            raise ValidationException(
                f"Unsupported playback speed {rate}; choose one of {self._settings.speed_options}"
            )
        self.playback_rate = rate
        if not self._closed:
            self._output.playback_rate = rate

    # =========================================================================
    # OUTPUT EVENTS
    # =========================================================================

    def _on_time_update(self) -> None:
        self.current_time = self._output.current_time
        bucket = self._bucket(self.current_time)
        if bucket == self._last_checkpoint_bucket:
            return
        self._last_checkpoint_bucket = bucket
        if self.is_playing:
            self._spawn(self._save(self.current_time))

    def _on_metadata_loaded(self) -> None:
        self.duration = self._output.duration
        self._metadata_loaded = True
        logger.debug("[PLAYBACK] Audio duration loaded: %.1fs", self.duration)
        if self._pending_restore is not None:
            self._apply_pending_restore()

    def _on_ended(self) -> None:
        self.is_playing = False
        self.state = PlaybackState.ENDED
        self._last_checkpoint_bucket = 0
        # Position 0 = finished, ready to start over
        self._spawn(self._save(0.0))

    def _on_played(self) -> None:
        self.is_playing = True
        self.state = PlaybackState.PLAYING

    def _on_paused(self) -> None:
        if self.is_playing:
            self.is_playing = False
            self.state = PlaybackState.PAUSED

    # =========================================================================
    # CHECKPOINTS
    # =========================================================================

    def _bucket(self, position: float) -> int:
        if not math.isfinite(position) or position < 0:
            return 0
        return int(position // self._settings.checkpoint_interval)

    def _user_id(self) -> str | None:
        user = self._auth.current_user()
        return user.id if user else None

    async def _checkpoint(self, position: float) -> bool:
        """Save position now, after any queued background checkpoints.

        A timed checkpoint spawned a moment ago must not land AFTER this one
        and overwrite the newer position.
        """
        await self.wait_idle()
        return await self._save(position)

    async def _save(self, position: float) -> bool:
        """Durably save position unless anonymous or on demo audio."""
        user = self._auth.current_user()
        if user is None or self.using_demo_audio or not self.book_id:
            return False
        return await self._progress_service.save_progress(
            user.id, self.book_id, position, self.duration or None
        )

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
