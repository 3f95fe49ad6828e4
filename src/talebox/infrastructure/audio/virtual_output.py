"""Headless, clock-driven audio output.

Hey future me - this is the output handle the app uses when there is no real media element
(server-side sessions, CLI, tests). It behaves like an <audio> element as far as the sessions
can tell: same five events, same play() failure modes, load() resets the position.

Time only moves when advance() is called - either by YOU (tests drive it by hand) or by the
built-in clock task when autotick=True (the API does that).
"""

import asyncio
import contextlib
import logging
from collections.abc import Callable

from talebox.domain.exceptions import PlaybackNotAllowedError, PlaybackNotSupportedError
from talebox.domain.ports.audio_output import AudioEvent, IAudioOutput

logger = logging.getLogger(__name__)

DurationProbe = Callable[[str], float | None]


class VirtualAudioOutput(IAudioOutput):
    """In-process IAudioOutput implementation."""

    def __init__(
        self,
        duration_probe: DurationProbe | None = None,
        default_duration: float = 0.0,
        tick_interval: float = 0.25,
        autotick: bool = False,
    ) -> None:
        """Initialize output.

        Args:
            duration_probe: Maps a source URL to its duration (None = unknown)
            default_duration: Duration reported when the probe doesn't know
            tick_interval: Granularity of TIME_UPDATE events (seconds of media time)
            autotick: Advance time with a background asyncio task while playing
        """
        super().__init__()
        self._duration_probe = duration_probe
        self._default_duration = default_duration
        self.tick_interval = tick_interval
        self.autotick = autotick

        self._src = ""
        self._current_time = 0.0
        self._duration = 0.0
        self._paused = True
        self._playback_rate = 1.0
        self._clock_task: asyncio.Task[None] | None = None

        # Failure injection, the way a browser would refuse play()
        self.autoplay_blocked = False
        self.unsupported_sources: set[str] = set()
        self.load_count = 0
        self.play_count = 0

    # -- properties ---------------------------------------------------------

    @property
    def src(self) -> str:
        return self._src

    @src.setter
    def src(self, url: str) -> None:
        self._stop_clock()
        self._src = url or ""
        self._current_time = 0.0
        self._duration = 0.0
        self._paused = True

    @property
    def current_time(self) -> float:
        return self._current_time

    @current_time.setter
    def current_time(self, seconds: float) -> None:
        position = max(0.0, float(seconds))
        if self._duration > 0:
            position = min(position, self._duration)
        self._current_time = position
        self.emit(AudioEvent.TIME_UPDATE)

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def playback_rate(self) -> float:
        return self._playback_rate

    @playback_rate.setter
    def playback_rate(self, rate: float) -> None:
        if rate <= 0:
            raise ValueError("playback rate must be positive")
        self._playback_rate = rate

    # -- media --------------------------------------------------------------

    def load(self) -> None:
        """Reload the source: position back to 0, metadata re-announced."""
        self._stop_clock()
        self.load_count += 1
        self._paused = True
        self._current_time = 0.0
        if not self._src:
            self._duration = 0.0
            return

        duration = self._duration_probe(self._src) if self._duration_probe else None
        self._duration = float(duration if duration is not None else self._default_duration)
        self.emit(AudioEvent.METADATA_LOADED)

    async def play(self) -> None:
        if not self._src or self._src in self.unsupported_sources:
            raise PlaybackNotSupportedError()
        if self.autoplay_blocked:
            raise PlaybackNotAllowedError()

        self.play_count += 1
        if not self._paused:
            return
        self._paused = False
        self.emit(AudioEvent.PLAYED)
        if self.autotick:
            self._start_clock()

    def pause(self) -> None:
        self._stop_clock()
        if self._paused:
            return
        self._paused = True
        self.emit(AudioEvent.PAUSED)

    def advance(self, seconds: float) -> None:
        """Move media time forward by wall-clock seconds (scaled by playback rate).

        Emits TIME_UPDATE every tick_interval of media time, then PAUSED + ENDED
        when the end of a known duration is reached.
        """
        remaining = seconds * self._playback_rate
        while remaining > 0 and not self._paused:
            step = min(self.tick_interval, remaining)
            remaining -= step
            self._current_time += step
            if self._duration > 0 and self._current_time >= self._duration:
                self._current_time = self._duration
                self.emit(AudioEvent.TIME_UPDATE)
                self._finish()
                return
            self.emit(AudioEvent.TIME_UPDATE)

    def _finish(self) -> None:
        self._stop_clock()
        self._paused = True
        self.emit(AudioEvent.PAUSED)
        self.emit(AudioEvent.ENDED)

    # -- clock --------------------------------------------------------------

    def _start_clock(self) -> None:
        if self._clock_task is None or self._clock_task.done():
            self._clock_task = asyncio.get_running_loop().create_task(self._run_clock())

    def _stop_clock(self) -> None:
        task = self._clock_task
        self._clock_task = None
        if task is not None and not task.done() and task is not _current_task():
            task.cancel()

    async def _run_clock(self) -> None:
        while not self._paused:
            await asyncio.sleep(self.tick_interval)
            self.advance(self.tick_interval)

    def close(self) -> None:
        self._stop_clock()
        self._paused = True
        super().close()


def _current_task() -> "asyncio.Task[object] | None":
    with contextlib.suppress(RuntimeError):
        return asyncio.current_task()
    return None
