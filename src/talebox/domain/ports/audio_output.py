"""Audio output port - the capability-bearing handle that actually makes sound.

Hey future me - this is the Python shape of an <audio> element! It emits exactly
FIVE events (time update, metadata loaded, ended, played, paused) and the sessions
subscribe to exactly those. Subscriptions are handles: cancel them on teardown or
you leak listeners across repeated player-screen mounts.

Ownership rule: whoever CONSTRUCTS an output owns it. The global playback session
owns the app-wide handle; each secure audio session owns its screen-local handle.
Nobody touches a handle they don't own.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import Enum

logger = logging.getLogger(__name__)


class AudioEvent(str, Enum):
    """Native playback events an output emits."""

    TIME_UPDATE = "timeupdate"
    METADATA_LOADED = "loadedmetadata"
    ENDED = "ended"
    PLAYED = "play"
    PAUSED = "pause"


AudioEventCallback = Callable[[], None]


class Subscription:
    """Handle for one event listener. cancel() is idempotent."""

    def __init__(self, output: "IAudioOutput", event: AudioEvent, callback: AudioEventCallback) -> None:
        self._output = output
        self.event = event
        self.callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._output._remove_listener(self)


class AudioSubscriptions:
    """Groups the subscriptions of one owner so they're released together."""

    def __init__(self) -> None:
        self._items: list[Subscription] = []

    def add(self, subscription: Subscription) -> None:
        self._items.append(subscription)

    def __len__(self) -> int:
        return sum(1 for item in self._items if item.active)

    def cancel_all(self) -> None:
        for item in self._items:
            item.cancel()
        self._items.clear()


class IAudioOutput(ABC):
    """Interface for an audio output handle.

    Implementations keep the listener bookkeeping from this base class and
    provide the media behaviour (load/play/pause/seek).
    """

    def __init__(self) -> None:
        self._listeners: dict[AudioEvent, list[Subscription]] = {
            event: [] for event in AudioEvent
        }

    # -- events -------------------------------------------------------------

    def subscribe(self, event: AudioEvent, callback: AudioEventCallback) -> Subscription:
        """Register callback for event. Returns the handle to cancel it."""
        subscription = Subscription(self, event, callback)
        self._listeners[event].append(subscription)
        return subscription

    def _remove_listener(self, subscription: Subscription) -> None:
        listeners = self._listeners[subscription.event]
        if subscription in listeners:
            listeners.remove(subscription)

    def listener_count(self, event: AudioEvent | None = None) -> int:
        """Number of live listeners (for one event or all)."""
        if event is not None:
            return len(self._listeners[event])
        return sum(len(items) for items in self._listeners.values())

    def emit(self, event: AudioEvent) -> None:
        """Dispatch event to listeners. A failing listener never breaks the others."""
        for subscription in list(self._listeners[event]):
            try:
                subscription.callback()
            except Exception:
                logger.exception("[PLAYBACK] Listener for %s failed", event.value)

    # -- media --------------------------------------------------------------

    @property
    @abstractmethod
    def src(self) -> str:
        """Current source URL ("" when none)."""
        pass

    @src.setter
    @abstractmethod
    def src(self, url: str) -> None:
        pass

    @property
    @abstractmethod
    def current_time(self) -> float:
        """Playback position in seconds."""
        pass

    @current_time.setter
    @abstractmethod
    def current_time(self, seconds: float) -> None:
        pass

    @property
    @abstractmethod
    def duration(self) -> float:
        """Media duration in seconds (0 until metadata is loaded)."""
        pass

    @property
    @abstractmethod
    def paused(self) -> bool:
        pass

    @property
    @abstractmethod
    def playback_rate(self) -> float:
        pass

    @playback_rate.setter
    @abstractmethod
    def playback_rate(self, rate: float) -> None:
        pass

    @abstractmethod
    def load(self) -> None:
        """(Re)load the current source. Emits METADATA_LOADED once known."""
        pass

    @abstractmethod
    async def play(self) -> None:
        """Start playback.

        Raises:
            PlaybackStartError (or subclass) when playback cannot start
        """
        pass

    @abstractmethod
    def pause(self) -> None:
        pass

    def close(self) -> None:
        """Release the handle and drop every listener."""
        for event in AudioEvent:
            for subscription in list(self._listeners[event]):
                subscription.cancel()
