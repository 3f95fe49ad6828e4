"""Player screen endpoints.

POST /screens mounts a screen (SecureAudioSession with its own output) and returns
once the source is resolved - either the real book or the demo audio. DELETE unmounts
it, which writes the teardown checkpoint and brings the mini player back if a book is
still active globally.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from talebox.api.dependencies import (
    get_client_environment,
    get_current_user,
    get_database,
    get_screens,
    load_book,
)
from talebox.api.schemas import (
    BookRequest,
    ScreenStateResponse,
    SeekRequest,
    SkipRequest,
    SpeedRequest,
)
from talebox.application.services import PlayerScreens
from talebox.domain.entities import User
from talebox.domain.value_objects import ClientEnvironment
from talebox.infrastructure.persistence import Database

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/screens", tags=["screens"])

Screens = Annotated[PlayerScreens, Depends(get_screens)]


@router.post("", response_model=ScreenStateResponse, status_code=status.HTTP_201_CREATED)
async def open_screen(
    body: BookRequest,
    screens: Screens,
    db: Annotated[Database, Depends(get_database)],
    user: Annotated[User | None, Depends(get_current_user)],
    environment: Annotated[ClientEnvironment, Depends(get_client_environment)],
) -> ScreenStateResponse:
    """Mount a player screen for a book."""
    book = await load_book(db, body.book_id)
    screen_id, session = await screens.open(book, user, environment)
    return ScreenStateResponse.from_snapshot(screen_id, session.snapshot())


@router.get("/{screen_id}", response_model=ScreenStateResponse)
async def get_screen(screen_id: str, screens: Screens) -> ScreenStateResponse:
    session = screens.get(screen_id)
    return ScreenStateResponse.from_snapshot(screen_id, session.snapshot())


@router.post("/{screen_id}/toggle", response_model=ScreenStateResponse)
async def toggle_screen(screen_id: str, screens: Screens) -> ScreenStateResponse:
    """Play/pause. Refusals surface as toasts (GET /notifications), not errors."""
    session = screens.get(screen_id)
    await session.toggle_play()
    return ScreenStateResponse.from_snapshot(screen_id, session.snapshot())


@router.post("/{screen_id}/seek", response_model=ScreenStateResponse)
async def seek_screen(screen_id: str, body: SeekRequest, screens: Screens) -> ScreenStateResponse:
    session = screens.get(screen_id)
    target = body.time
    if session.duration > 0:
        target = min(target, session.duration)
    await session.seek_to(target)
    return ScreenStateResponse.from_snapshot(screen_id, session.snapshot())


@router.post("/{screen_id}/skip", response_model=ScreenStateResponse)
async def skip_screen(screen_id: str, body: SkipRequest, screens: Screens) -> ScreenStateResponse:
    session = screens.get(screen_id)
    await session.skip(body.seconds)
    return ScreenStateResponse.from_snapshot(screen_id, session.snapshot())


@router.post("/{screen_id}/retry", response_model=ScreenStateResponse)
async def retry_screen(screen_id: str, screens: Screens) -> ScreenStateResponse:
    """Re-resolve the audio source, even if a resolution is in flight."""
    session = screens.get(screen_id)
    await session.retry(force=True)
    return ScreenStateResponse.from_snapshot(screen_id, session.snapshot())


@router.post("/{screen_id}/speed", response_model=ScreenStateResponse)
async def set_screen_speed(
    screen_id: str, body: SpeedRequest, screens: Screens
) -> ScreenStateResponse:
    session = screens.get(screen_id)
    session.set_playback_rate(body.rate)
    return ScreenStateResponse.from_snapshot(screen_id, session.snapshot())


@router.delete("/{screen_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_screen(screen_id: str, screens: Screens) -> None:
    await screens.close(screen_id)
