"""Integration tests for player screen endpoints.

Hey future me - these run the real lifespan: in-memory SQLite, the storage double from
conftest (only URLs in reachable_urls answer 200) and VirtualAudioOutputs with a live clock.
Avoid asserting exact positions while a screen is PLAYING, the clock keeps moving.
"""

from fastapi.testclient import TestClient

from tests.conftest import DEMO_URL, HOBBIT_URL

USER = {"X-User-Id": "user-1"}
IPHONE = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X)"


def open_screen(client: TestClient, headers: dict[str, str] | None = None) -> dict:
    response = client.post("/api/screens", json={"book_id": "book-1"}, headers=USER if headers is None else headers)
    assert response.status_code == 201
    return response.json()


class TestOpenScreen:
    """Resolution on mount."""

    def test_unreachable_audio_falls_back_to_demo(self, api_client: TestClient):
        screen = open_screen(api_client)

        assert screen["state"] == "ready"
        assert screen["using_demo_audio"] is True
        assert screen["resolved_url"] == DEMO_URL
        assert screen["is_loading"] is False

        toasts = api_client.get("/api/notifications").json()
        assert [t["title"] for t in toasts] == ["Using Demo Audio"]

    def test_reachable_audio_is_used(self, api_client: TestClient, reachable_urls):
        reachable_urls.add(HOBBIT_URL)

        screen = open_screen(api_client)

        assert screen["using_demo_audio"] is False
        assert screen["resolved_url"] == HOBBIT_URL
        assert screen["duration"] == 600.0
        assert screen["total"] == "10:00"

    def test_mobile_clients_get_cache_busting_url(self, api_client: TestClient, reachable_urls):
        reachable_urls.add(HOBBIT_URL)

        screen = open_screen(api_client, {**USER, "User-Agent": IPHONE, "ECT": "2g"})

        assert screen["is_mobile_device"] is True
        assert screen["is_slow_network"] is True
        assert "mobile=1" in screen["resolved_url"]

    def test_unknown_book_is_404(self, api_client: TestClient):
        response = api_client.post("/api/screens", json={"book_id": "nope"}, headers=USER)
        assert response.status_code == 404

    def test_unknown_screen_is_404(self, api_client: TestClient):
        assert api_client.get("/api/screens/nope").status_code == 404
        assert api_client.delete("/api/screens/nope").status_code == 404


class TestResume:
    """Checkpoints survive the screen."""

    def test_position_is_restored_on_next_mount(self, api_client: TestClient, reachable_urls):
        reachable_urls.add(HOBBIT_URL)
        screen = open_screen(api_client)

        seeked = api_client.post(f"/api/screens/{screen['screen_id']}/seek", json={"time": 90}).json()
        assert seeked["elapsed"] == "1:30"
        assert api_client.delete(f"/api/screens/{screen['screen_id']}").status_code == 204

        progress = api_client.get("/api/progress/book-1", headers=USER).json()
        assert progress["current_position"] == 90.0
        assert progress["percent_complete"] == 15.0

        again = open_screen(api_client)
        assert again["current_time"] == 90.0
        assert again["progress"]["current_position"] == 90.0

    def test_anonymous_listening_is_not_saved(self, api_client: TestClient, reachable_urls):
        reachable_urls.add(HOBBIT_URL)
        screen = open_screen(api_client, headers={})

        api_client.post(f"/api/screens/{screen['screen_id']}/seek", json={"time": 120})
        api_client.delete(f"/api/screens/{screen['screen_id']}")

        assert api_client.get("/api/progress/book-1", headers=USER).status_code == 404

    def test_demo_audio_never_touches_progress(self, api_client: TestClient):
        screen = open_screen(api_client)

        api_client.post(f"/api/screens/{screen['screen_id']}/seek", json={"time": 30})
        api_client.delete(f"/api/screens/{screen['screen_id']}")

        assert api_client.get("/api/progress/book-1", headers=USER).status_code == 404


class TestTransport:
    """Play/pause, skip, speed, retry."""

    def test_toggle_play_and_pause(self, api_client: TestClient, reachable_urls):
        reachable_urls.add(HOBBIT_URL)
        screen_id = open_screen(api_client)["screen_id"]

        playing = api_client.post(f"/api/screens/{screen_id}/toggle").json()
        assert playing["is_playing"] is True
        assert playing["state"] == "playing"

        paused = api_client.post(f"/api/screens/{screen_id}/toggle").json()
        assert paused["is_playing"] is False
        assert paused["state"] == "paused"

        progress = api_client.get("/api/progress/book-1", headers=USER).json()
        assert progress["current_position"] == paused["current_time"]

    def test_skip_is_clamped(self, api_client: TestClient, reachable_urls):
        reachable_urls.add(HOBBIT_URL)
        screen_id = open_screen(api_client)["screen_id"]
        api_client.post(f"/api/screens/{screen_id}/seek", json={"time": 10})

        back = api_client.post(f"/api/screens/{screen_id}/skip", json={"seconds": -15}).json()
        assert back["current_time"] == 0.0

        forward = api_client.post(f"/api/screens/{screen_id}/skip", json={"seconds": 1000}).json()
        assert forward["current_time"] == 600.0

    def test_seek_past_the_end_is_clamped(self, api_client: TestClient, reachable_urls):
        reachable_urls.add(HOBBIT_URL)
        screen_id = open_screen(api_client)["screen_id"]

        state = api_client.post(f"/api/screens/{screen_id}/seek", json={"time": 9999}).json()

        assert state["current_time"] == 600.0

    def test_speed_must_be_an_offered_option(self, api_client: TestClient):
        screen_id = open_screen(api_client)["screen_id"]

        assert api_client.post(f"/api/screens/{screen_id}/speed", json={"rate": 3.0}).status_code == 422
        assert api_client.post(f"/api/screens/{screen_id}/speed", json={"rate": 0}).status_code == 422

        state = api_client.post(f"/api/screens/{screen_id}/speed", json={"rate": 1.5}).json()
        assert state["playback_rate"] == 1.5

    def test_retry_picks_up_audio_that_came_back(self, api_client: TestClient, reachable_urls):
        screen_id = open_screen(api_client)["screen_id"]
        reachable_urls.add(HOBBIT_URL)

        state = api_client.post(f"/api/screens/{screen_id}/retry").json()

        assert state["using_demo_audio"] is False
        assert state["resolved_url"] == HOBBIT_URL
        assert state["state"] == "ready"


class TestMiniPlayerHandOff:
    """Screens hide the mini player; leaving brings it back."""

    def test_mini_player_hidden_while_screen_is_open(self, api_client: TestClient):
        api_client.post("/api/player/start", json={"book_id": "book-1"})
        api_client.post("/api/player/mini-player", json={"visible": True})

        screen_id = open_screen(api_client)["screen_id"]
        assert api_client.get("/api/player/state").json()["show_mini_player"] is False

        api_client.delete(f"/api/screens/{screen_id}")
        assert api_client.get("/api/player/state").json()["show_mini_player"] is True

    def test_screen_playback_does_not_touch_global_state(self, api_client: TestClient, reachable_urls):
        reachable_urls.add(HOBBIT_URL)
        api_client.post("/api/player/start", json={"book_id": "book-1"})
        screen_id = open_screen(api_client)["screen_id"]

        api_client.post(f"/api/screens/{screen_id}/toggle")
        api_client.post(f"/api/screens/{screen_id}/seek", json={"time": 200})

        state = api_client.get("/api/player/state").json()
        assert state["is_playing"] is False
        assert state["current_time"] == 0.0

    def test_closing_a_screen_shows_the_mini_player(self, api_client: TestClient):
        screen_id = open_screen(api_client)["screen_id"]

        api_client.delete(f"/api/screens/{screen_id}")

        state = api_client.get("/api/player/state").json()
        assert state["active_book"]["id"] == "book-1"
        assert state["show_mini_player"] is True
        assert state["is_playing"] is False
