"""Listening progress endpoints (read side - writes happen in the player sessions)."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from talebox.api.dependencies import get_progress_service, require_user
from talebox.api.schemas import ContinueListeningResponse, ProgressResponse
from talebox.application.services import ProgressService
from talebox.domain.entities import User
from talebox.domain.exceptions import EntityNotFoundException

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/progress", tags=["progress"])


@router.get("/continue", response_model=list[ContinueListeningResponse])
async def continue_listening(
    user: Annotated[User, Depends(require_user)],
    progress_service: Annotated[ProgressService, Depends(get_progress_service)],
    limit: Annotated[int | None, Query(ge=1, le=50)] = None,
) -> list[ContinueListeningResponse]:
    """Books the user is part-way through, most recently listened first."""
    entries = await progress_service.continue_listening(user.id, limit)
    return [ContinueListeningResponse.from_entity(entry) for entry in entries]


@router.get("/{book_id}", response_model=ProgressResponse)
async def get_progress(
    book_id: str,
    user: Annotated[User, Depends(require_user)],
    progress_service: Annotated[ProgressService, Depends(get_progress_service)],
) -> ProgressResponse:
    progress = await progress_service.load_progress(user.id, book_id)
    if progress is None:
        raise EntityNotFoundException("ListeningProgress", book_id)
    return ProgressResponse.from_entity(progress)
