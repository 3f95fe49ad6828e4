"""FastAPI application entry point.

Run with:
    uvicorn talebox.main:app
or:
    python -m talebox.main
"""

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from talebox import __version__
from talebox.api import api_router, register_exception_handlers
from talebox.api.routers import health
from talebox.config import Settings, get_settings
from talebox.infrastructure.lifecycle import lifespan
from talebox.infrastructure.observability import RequestLoggingMiddleware


def create_app(
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        settings: Settings to use (defaults to get_settings())
        http_client: Client for storage probes (tests pass one with a MockTransport)
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Talebox",
        description="Resumable audiobook playback service",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.http_client = http_client

    app.add_middleware(
        RequestLoggingMiddleware,
        log_request_body=settings.observability.log_request_body,
    )
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)
    app.include_router(health.router)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run("talebox.main:app", host=_settings.api.host, port=_settings.api.port)
