"""API router initialization."""

# Hey future me, this aggregates every sub-router; main.py mounts it under /api.
# Each router file defines its own prefix ("/player", "/screens", ...). Health lives
# outside /api (see main.py) so probes don't depend on the API prefix.

from fastapi import APIRouter

from talebox.api.routers import (
    books,
    health,
    library,
    notifications,
    player,
    progress,
    screens,
)

api_router = APIRouter()

api_router.include_router(books.router)
api_router.include_router(player.router)
api_router.include_router(screens.router)
api_router.include_router(progress.router)
api_router.include_router(library.router)
api_router.include_router(notifications.router)

__all__ = [
    "api_router",
    "books",
    "health",
    "library",
    "notifications",
    "player",
    "progress",
    "screens",
]
