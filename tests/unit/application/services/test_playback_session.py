"""Unit tests for GlobalPlaybackSession (mini player state)."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from talebox.application.services import GlobalPlaybackSession, SecureAudioSession
from talebox.domain.entities import ActiveBook
from talebox.infrastructure.audio import VirtualAudioOutput

from tests.conftest import AUDIO_PREFIX

HOBBIT = ActiveBook(id="book-1", title="The Hobbit", author="J. R. R. Tolkien", audio_path="tolkien/the-hobbit.mp3")
DUNE = ActiveBook(id="book-2", title="Dune", author="Frank Herbert", audio_path="https://cdn.example.com/dune.mp3")


@pytest.fixture
def global_output() -> VirtualAudioOutput:
    return VirtualAudioOutput(default_duration=600.0)


@pytest.fixture
def playback(global_output: VirtualAudioOutput, resolver) -> GlobalPlaybackSession:
    return GlobalPlaybackSession(global_output, resolver)


def assert_invariants(playback: GlobalPlaybackSession) -> None:
    if playback.is_playing:
        assert playback.active_book is not None
    if playback.show_mini_player:
        assert playback.active_book is not None


class TestStartStop:
    """start() / stop()."""

    def test_start_loads_without_playing(self, playback, global_output):
        playback.start(HOBBIT)

        assert playback.active_book == HOBBIT
        assert playback.is_playing is False
        assert global_output.src == f"{AUDIO_PREFIX}tolkien/the-hobbit.mp3"
        assert global_output.load_count == 1
        assert playback.duration == 600.0
        assert global_output.play_count == 0

    def test_absolute_urls_are_used_as_is(self, playback, global_output):
        playback.start(DUNE)
        assert global_output.src == "https://cdn.example.com/dune.mp3"

    def test_restarting_the_active_book_keeps_position(self, playback, global_output):
        playback.start(HOBBIT)
        playback.seek_to(90)

        playback.start(HOBBIT)

        assert global_output.load_count == 1
        assert playback.current_time == 90

    def test_starting_another_book_replaces_it(self, playback, global_output):
        playback.start(HOBBIT)
        playback.seek_to(90)

        playback.start(DUNE)

        assert playback.active_book == DUNE
        assert playback.current_time == 0.0

    async def test_stop_clears_everything(self, playback, global_output):
        playback.start(HOBBIT)
        await playback.toggle()
        playback.set_mini_player_visible(True)
        global_output.advance(5)

        playback.stop()

        assert playback.active_book is None
        assert playback.is_playing is False
        assert playback.current_time == 0.0
        assert playback.show_mini_player is False
        assert global_output.paused is True
        assert global_output.current_time == 0.0


class TestToggle:
    """toggle() follows the output."""

    async def test_toggle_plays_and_pauses(self, playback, global_output):
        playback.start(HOBBIT)

        await playback.toggle()
        assert playback.is_playing is True
        assert global_output.paused is False

        await playback.toggle()
        assert playback.is_playing is False
        assert global_output.paused is True

    async def test_toggle_without_book_does_nothing(self, playback, global_output):
        await playback.toggle()
        assert playback.is_playing is False
        assert global_output.play_count == 0

    async def test_refused_play_is_logged_not_raised(self, playback, global_output):
        playback.start(HOBBIT)
        global_output.autoplay_blocked = True

        await playback.toggle()

        assert playback.is_playing is False

    async def test_ended_stops_playing(self, playback, global_output):
        playback.start(HOBBIT)
        await playback.toggle()

        global_output.advance(601)

        assert playback.is_playing is False
        assert playback.active_book == HOBBIT


class TestMiniPlayer:
    """Mini player visibility rules."""

    def test_cannot_show_without_active_book(self, playback):
        playback.set_mini_player_visible(True)
        assert playback.show_mini_player is False

    def test_player_screen_hides_and_restores(self, playback):
        playback.start(HOBBIT)
        playback.set_mini_player_visible(True)

        playback.on_player_screen_mounted()
        assert playback.show_mini_player is False

        playback.on_player_screen_unmounted()
        assert playback.show_mini_player is True

    def test_leaving_screen_without_book_keeps_it_hidden(self, playback):
        playback.on_player_screen_mounted()
        playback.on_player_screen_unmounted()
        assert playback.show_mini_player is False

    async def test_invariants_hold_across_operations(self, playback, global_output):
        steps = [
            lambda: playback.set_mini_player_visible(True),
            lambda: playback.start(HOBBIT),
            lambda: playback.set_mini_player_visible(True),
            lambda: playback.seek_to(30),
            lambda: playback.stop(),
            lambda: playback.on_player_screen_unmounted(),
        ]
        for step in steps:
            step()
            assert_invariants(playback)

        await playback.toggle()
        assert_invariants(playback)


class TestListeners:
    """Snapshot listeners."""

    def test_listener_gets_snapshots_until_removed(self, playback):
        listener = MagicMock()
        remove = playback.add_listener(listener)

        playback.start(HOBBIT)
        assert listener.call_args.args[0].active_book == HOBBIT

        remove()
        listener.reset_mock()
        playback.stop()
        listener.assert_not_called()

    def test_failing_listener_does_not_break_others(self, playback):
        good = MagicMock()
        playback.add_listener(MagicMock(side_effect=RuntimeError("ui gone")))
        playback.add_listener(good)

        playback.start(HOBBIT)

        good.assert_called()

    def test_close_releases_the_output(self, playback, global_output):
        playback.close()
        assert global_output.listener_count() == 0


class TestIndependentFromPlayerScreen:
    """The screen's session and the global session never share a handle."""

    async def test_screen_playback_leaves_global_state_alone(
        self, playback, global_output, resolver, progress_service, auth, notifications, settings, reachable_urls, book
    ):
        reachable_urls.add(f"{AUDIO_PREFIX}tolkien/the-hobbit.mp3")
        playback.start(HOBBIT)
        global_src = global_output.src
        screen_output = VirtualAudioOutput(default_duration=600.0)
        screen = SecureAudioSession(
            book_id=HOBBIT.id,
            audio_path=HOBBIT.audio_path,
            output=screen_output,
            url_resolver=resolver,
            progress_service=progress_service,
            auth=auth,
            notifications=notifications,
            settings=settings.playback,
            sleep=AsyncMock(),
        )
        screen.mount()
        await screen.wait_ready()

        await screen.toggle_play()
        screen_output.advance(20)
        await screen.seek_to(100)

        assert screen.is_playing is True
        assert playback.is_playing is False
        assert playback.current_time == 0.0
        assert global_output.src == global_src
        assert global_output.play_count == 0
        assert global_output.current_time == 0.0

        await screen.unmount()
        assert playback.active_book == HOBBIT
