"""Registry of mounted player screens.

Hey future me - over HTTP there is no component tree, so "mounting the player screen"
is POST /api/screens and "leaving it" is DELETE. Each screen gets its own
SecureAudioSession with its own output handle. The registry also tells the global
session when screens come and go so the mini player hides/reappears.
"""

import logging
from collections.abc import Callable
from uuid import uuid4

from talebox.application.services.playback_session import GlobalPlaybackSession
from talebox.application.services.secure_audio_session import SecureAudioSession
from talebox.domain.entities import Book, User
from talebox.domain.exceptions import EntityNotFoundException
from talebox.domain.value_objects import ClientEnvironment

logger = logging.getLogger(__name__)

SessionFactory = Callable[[Book, User | None, ClientEnvironment], SecureAudioSession]


class PlayerScreens:
    """Keeps mounted SecureAudioSessions by screen id."""

    def __init__(self, session_factory: SessionFactory, playback: GlobalPlaybackSession) -> None:
        self._session_factory = session_factory
        self._playback = playback
        self._screens: dict[str, SecureAudioSession] = {}

    def __len__(self) -> int:
        return len(self._screens)

    async def open(
        self, book: Book, user: User | None, environment: ClientEnvironment
    ) -> tuple[str, SecureAudioSession]:
        """Mount a screen for book and wait until its source is resolved."""
        screen_id = str(uuid4())
        session = self._session_factory(book, user, environment)
        self._screens[screen_id] = session
        # The mini player takes over this book when the screen closes
        self._playback.start(book.to_active_book())
        self._playback.on_player_screen_mounted()

        session.mount()
        await session.wait_ready()
        logger.info("[PLAYBACK] Player screen %s opened for book %s", screen_id, book.id)
        return screen_id, session

    def get(self, screen_id: str) -> SecureAudioSession:
        session = self._screens.get(screen_id)
        if session is None:
            raise EntityNotFoundException("PlayerScreen", screen_id)
        return session

    async def close(self, screen_id: str) -> None:
        session = self._screens.pop(screen_id, None)
        if session is None:
            raise EntityNotFoundException("PlayerScreen", screen_id)

        await session.unmount()
        if not self._screens:
            self._playback.on_player_screen_unmounted()
        logger.info("[PLAYBACK] Player screen %s closed", screen_id)

    async def close_all(self) -> None:
        for screen_id in list(self._screens):
            try:
                await self.close(screen_id)
            except Exception:
                logger.exception("[PLAYBACK] Error closing player screen %s", screen_id)
