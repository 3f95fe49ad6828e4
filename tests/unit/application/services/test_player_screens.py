"""Unit tests for the PlayerScreens registry."""

import pytest

from talebox.application.services import GlobalPlaybackSession, PlayerScreens
from talebox.domain.entities import PlaybackState
from talebox.domain.exceptions import EntityNotFoundException
from talebox.domain.value_objects import ClientEnvironment
from talebox.infrastructure.audio import VirtualAudioOutput
from talebox.infrastructure.lifecycle import build_screen_session_factory

from tests.conftest import AUDIO_PREFIX, DEMO_URL


@pytest.fixture
def playback(resolver) -> GlobalPlaybackSession:
    return GlobalPlaybackSession(VirtualAudioOutput(default_duration=600.0), resolver)


@pytest.fixture
def screens(settings, resolver, progress_service, notifications, playback) -> PlayerScreens:
    factory = build_screen_session_factory(settings, resolver, progress_service, notifications)
    return PlayerScreens(factory, playback)


class TestOpenClose:
    """Mount / unmount through the registry."""

    async def test_open_resolves_before_returning(self, screens, book, user, reachable_urls):
        reachable_urls.add(f"{AUDIO_PREFIX}tolkien/the-hobbit.mp3")

        screen_id, session = await screens.open(book, user, ClientEnvironment())

        assert screens.get(screen_id) is session
        assert session.state == PlaybackState.READY
        assert session.duration == 600.0
        assert session.using_demo_audio is False

    async def test_unreachable_book_opens_on_demo_audio(self, screens, book, user):
        _, session = await screens.open(book, user, ClientEnvironment())

        assert session.using_demo_audio is True
        assert session.resolved_url == DEMO_URL

    async def test_each_screen_has_its_own_output(self, screens, book, user):
        _, first = await screens.open(book, user, ClientEnvironment())
        _, second = await screens.open(book, user, ClientEnvironment())

        assert first._output is not second._output
        assert len(screens) == 2

    async def test_close_saves_and_forgets(self, screens, book, user, reachable_urls, progress_service):
        reachable_urls.add(f"{AUDIO_PREFIX}tolkien/the-hobbit.mp3")
        screen_id, session = await screens.open(book, user, ClientEnvironment())
        await session.seek_to(75)

        await screens.close(screen_id)

        assert session.closed is True
        assert (await progress_service.load_progress(user.id, book.id)).current_position == 75.0
        with pytest.raises(EntityNotFoundException):
            screens.get(screen_id)

    async def test_closing_unknown_screen_raises(self, screens):
        with pytest.raises(EntityNotFoundException):
            await screens.close("nope")

    async def test_close_all(self, screens, book, user):
        for _ in range(3):
            await screens.open(book, user, ClientEnvironment())

        await screens.close_all()

        assert len(screens) == 0


class TestMiniPlayerHandOff:
    """Screens hide the mini player while any of them is mounted."""

    async def test_mini_player_returns_after_last_screen(self, screens, playback, book, user):
        playback.start(book.to_active_book())
        playback.set_mini_player_visible(True)

        first, _ = await screens.open(book, user, ClientEnvironment())
        second, _ = await screens.open(book, user, ClientEnvironment())
        assert playback.show_mini_player is False

        await screens.close(first)
        assert playback.show_mini_player is False

        await screens.close(second)
        assert playback.show_mini_player is True

    async def test_opening_a_screen_primes_the_mini_player(self, screens, playback, book, user):
        screen_id, _ = await screens.open(book, user, ClientEnvironment())
        assert playback.active_book.id == book.id
        assert playback.show_mini_player is False

        await screens.close(screen_id)

        assert playback.show_mini_player is True

    async def test_opening_the_active_book_keeps_its_position(self, screens, playback, book, user):
        playback.start(book.to_active_book())
        playback.seek_to(42)

        await screens.open(book, user, ClientEnvironment())

        assert playback.current_time == 42.0
