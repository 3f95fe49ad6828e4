"""API module for Talebox.

Structure:
- routers/: endpoints (player, screens, progress, library, books, notifications, health)
- schemas/: Pydantic request/response models
- dependencies.py: dependency injection (app.state services, current user)
- exception_handlers.py: global error handlers
"""

from talebox.api.exception_handlers import register_exception_handlers
from talebox.api.routers import api_router

__all__ = ["api_router", "register_exception_handlers"]
