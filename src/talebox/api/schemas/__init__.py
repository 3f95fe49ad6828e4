"""API request/response schemas."""

from talebox.api.schemas.playback import (
    ActiveBookResponse,
    BookRequest,
    BookResponse,
    CollectionResponse,
    CollectionToggleResponse,
    ContinueListeningResponse,
    PlayerStateResponse,
    ProgressResponse,
    ScreenStateResponse,
    SeekRequest,
    SkipRequest,
    SpeedRequest,
    VisibilityRequest,
)

__all__ = [
    "ActiveBookResponse",
    "BookRequest",
    "BookResponse",
    "CollectionResponse",
    "CollectionToggleResponse",
    "ContinueListeningResponse",
    "PlayerStateResponse",
    "ProgressResponse",
    "ScreenStateResponse",
    "SeekRequest",
    "SkipRequest",
    "SpeedRequest",
    "VisibilityRequest",
]
