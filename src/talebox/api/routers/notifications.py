"""Toast endpoint.

Hey future me - toasts are fire-and-forget: the UI polls this, shows what it gets and
they're gone. Use ?peek=true to look without consuming (handy while debugging).
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from talebox.api.dependencies import get_toasts
from talebox.infrastructure.notifications import ToastNotificationProvider

router = APIRouter(prefix="/notifications", tags=["notifications"])


class ToastResponse(BaseModel):
    """Single toast."""

    id: str
    type: str
    style: str
    title: str
    message: str
    created_at: datetime
    user_id: str | None


@router.get("", response_model=list[ToastResponse])
async def list_toasts(
    toasts: Annotated[ToastNotificationProvider, Depends(get_toasts)],
    peek: Annotated[bool, Query()] = False,
) -> list[ToastResponse]:
    items = toasts.peek() if peek else toasts.drain()
    return [
        ToastResponse(
            id=toast.id,
            type=toast.type.value,
            style=toast.style,
            title=toast.title,
            message=toast.message,
            created_at=toast.created_at,
            user_id=toast.user_id,
        )
        for toast in items
    ]
