"""Global playback (mini player) endpoints.

Hey future me - these drive the ONE app-wide session. The player screen has its own
endpoints (screens.py) with its own output; nothing here touches a screen.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from talebox.api.dependencies import get_database, get_playback, load_book
from talebox.api.schemas import (
    BookRequest,
    PlayerStateResponse,
    SeekRequest,
    VisibilityRequest,
)
from talebox.application.services import GlobalPlaybackSession
from talebox.infrastructure.persistence import Database

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/player", tags=["player"])

Playback = Annotated[GlobalPlaybackSession, Depends(get_playback)]


@router.get("/state", response_model=PlayerStateResponse)
async def get_player_state(playback: Playback) -> PlayerStateResponse:
    """Current global playback snapshot."""
    return PlayerStateResponse.from_snapshot(playback.snapshot())


@router.post("/start", response_model=PlayerStateResponse)
async def start_playback(
    body: BookRequest,
    playback: Playback,
    db: Annotated[Database, Depends(get_database)],
) -> PlayerStateResponse:
    """Make a book the active one (loaded, not playing)."""
    book = await load_book(db, body.book_id)
    playback.start(book.to_active_book())
    return PlayerStateResponse.from_snapshot(playback.snapshot())


@router.post("/toggle", response_model=PlayerStateResponse)
async def toggle_playback(playback: Playback) -> PlayerStateResponse:
    await playback.toggle()
    return PlayerStateResponse.from_snapshot(playback.snapshot())


@router.post("/stop", response_model=PlayerStateResponse)
async def stop_playback(playback: Playback) -> PlayerStateResponse:
    playback.stop()
    return PlayerStateResponse.from_snapshot(playback.snapshot())


@router.post("/seek", response_model=PlayerStateResponse)
async def seek_playback(body: SeekRequest, playback: Playback) -> PlayerStateResponse:
    playback.seek_to(body.time)
    return PlayerStateResponse.from_snapshot(playback.snapshot())


@router.post("/mini-player", response_model=PlayerStateResponse)
async def set_mini_player(body: VisibilityRequest, playback: Playback) -> PlayerStateResponse:
    """Show/hide the mini player. Showing it without an active book is a no-op."""
    playback.set_mini_player_visible(body.visible)
    return PlayerStateResponse.from_snapshot(playback.snapshot())
