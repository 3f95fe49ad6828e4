"""Integration tests for the global playback (mini player) endpoints."""

from fastapi.testclient import TestClient


def test_initial_state_is_empty(api_client: TestClient):
    response = api_client.get("/api/player/state")

    assert response.status_code == 200
    assert response.json() == {
        "active_book": None,
        "is_playing": False,
        "current_time": 0.0,
        "duration": 0.0,
        "show_mini_player": False,
    }


def test_start_loads_book_without_playing(api_client: TestClient):
    response = api_client.post("/api/player/start", json={"book_id": "book-1"})

    assert response.status_code == 200
    state = response.json()
    assert state["active_book"]["title"] == "The Hobbit"
    assert state["active_book"]["audio_path"] == "tolkien/the-hobbit.mp3"
    assert state["is_playing"] is False


def test_start_unknown_book_is_404(api_client: TestClient):
    response = api_client.post("/api/player/start", json={"book_id": "nope"})
    assert response.status_code == 404


def test_start_requires_book_id(api_client: TestClient):
    response = api_client.post("/api/player/start", json={"book_id": ""})
    assert response.status_code == 422


def test_mini_player_needs_an_active_book(api_client: TestClient):
    hidden = api_client.post("/api/player/mini-player", json={"visible": True}).json()
    assert hidden["show_mini_player"] is False

    api_client.post("/api/player/start", json={"book_id": "book-1"})
    shown = api_client.post("/api/player/mini-player", json={"visible": True}).json()
    assert shown["show_mini_player"] is True


def test_toggle_and_stop(api_client: TestClient):
    api_client.post("/api/player/start", json={"book_id": "book-1"})

    playing = api_client.post("/api/player/toggle").json()
    assert playing["is_playing"] is True

    paused = api_client.post("/api/player/toggle").json()
    assert paused["is_playing"] is False

    api_client.post("/api/player/mini-player", json={"visible": True})
    stopped = api_client.post("/api/player/stop").json()
    assert stopped["active_book"] is None
    assert stopped["show_mini_player"] is False
    assert stopped["current_time"] == 0.0


def test_seek_rejects_negative_positions(api_client: TestClient):
    api_client.post("/api/player/start", json={"book_id": "book-1"})

    assert api_client.post("/api/player/seek", json={"time": -1}).status_code == 422
    assert api_client.post("/api/player/seek", json={"time": 42}).json()["current_time"] == 42.0
