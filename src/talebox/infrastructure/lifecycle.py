"""Application lifecycle management for startup and shutdown tasks.

This module holds the FastAPI lifespan context manager that wires the services
onto app.state and tears them down again.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI

from talebox.application.services import (
    AudioUrlResolver,
    CurrentUserProvider,
    GlobalPlaybackSession,
    LibraryService,
    NotificationService,
    PlayerScreens,
    ProgressService,
    SecureAudioSession,
)
from talebox.application.services.player_screens import SessionFactory
from talebox.config import Settings, get_settings
from talebox.domain.entities import Book, User
from talebox.domain.exceptions import ConfigurationError
from talebox.domain.value_objects import ClientEnvironment
from talebox.infrastructure.audio import VirtualAudioOutput
from talebox.infrastructure.integrations import HttpClientPool, StorageClient
from talebox.infrastructure.notifications import ToastNotificationProvider
from talebox.infrastructure.observability import configure_logging
from talebox.infrastructure.persistence import Database

logger = logging.getLogger(__name__)


# Hey future me, this validates SQLite paths BEFORE we create the DB engine! SQLite needs
# to create -journal/-wal files next to the .db file, so the directory must be writable.
# Only runs for SQLite URLs (returns early for Postgres and :memory:).
def _validate_sqlite_path(settings: Settings) -> None:
    db_path = settings._get_sqlite_db_path()
    if db_path is None:
        return

    try:
        if db_path.parent and str(db_path.parent) != ".":
            db_path.parent.mkdir(parents=True, exist_ok=True)
            logger.debug("Ensured SQLite parent directory exists: %s", db_path.parent)
    except OSError as exc:
        raise ConfigurationError(
            f"Unable to create SQLite database directory '{db_path.parent}': {exc}. "
            "Update DATABASE__URL or adjust directory permissions."
        ) from exc

    try:
        test_file = db_path.parent / f".{db_path.stem}_write_test"
        test_file.write_bytes(b"test")
        test_file.unlink()
    except OSError as exc:
        raise ConfigurationError(
            f"Unable to write files in database directory '{db_path.parent}': {exc}. "
            "SQLite requires write permissions to create database and journal files."
        ) from exc


def build_screen_session_factory(
    settings: Settings,
    resolver: AudioUrlResolver,
    progress_service: ProgressService,
    notifications: NotificationService,
) -> SessionFactory:
    """Factory for player screen sessions, each with its OWN output handle."""

    def build(book: Book, user: User | None, environment: ClientEnvironment) -> SecureAudioSession:
        output = VirtualAudioOutput(
            duration_probe=lambda _url: book.duration,
            autotick=True,
        )
        return SecureAudioSession(
            book_id=book.id,
            audio_path=book.audio_path,
            output=output,
            url_resolver=resolver,
            progress_service=progress_service,
            auth=CurrentUserProvider(user),
            notifications=notifications,
            settings=settings.playback,
            environment=environment,
        )

    return build


# Everything before `yield` runs at STARTUP, everything after at SHUTDOWN. The finally
# block makes sure cleanup runs even when startup fails halfway.
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Startup: logging, database (tables auto-created on SQLite), storage client,
    notifications, progress/library services, global playback session, screen registry.
    Shutdown: close screens (teardown checkpoints!), global session, database, HTTP pool.
    """
    settings: Settings = getattr(app.state, "settings", None) or get_settings()

    configure_logging(
        log_level=settings.log_level,
        json_format=settings.observability.log_json_format,
        app_name=settings.app_name,
    )
    logger.info("Starting application: %s", settings.app_name)

    try:
        _validate_sqlite_path(settings)

        db = Database(settings)
        app.state.db = db
        if settings.database.url.startswith("sqlite"):
            # Postgres schema is managed by alembic; local SQLite just gets the tables
            await db.create_tables()
        logger.info("Database initialized: %s", settings.database.url)

        storage = StorageClient(settings.storage, getattr(app.state, "http_client", None))
        resolver = AudioUrlResolver(settings, storage)
        app.state.resolver = resolver

        toasts = ToastNotificationProvider()
        notifications = NotificationService([toasts])
        app.state.toasts = toasts
        app.state.notifications = notifications

        progress_service = ProgressService(
            db.session_scope,
            continue_listening_limit=settings.playback.continue_listening_limit,
        )
        app.state.progress_service = progress_service
        app.state.library_service = LibraryService(db.session_scope, notifications)

        playback = GlobalPlaybackSession(VirtualAudioOutput(autotick=True), resolver)
        app.state.playback = playback
        app.state.screens = PlayerScreens(
            build_screen_session_factory(settings, resolver, progress_service, notifications),
            playback,
        )

        app.state.startup_time = datetime.now(UTC)
        logger.info("Application started")

        yield

    except Exception as e:
        logger.exception("Error during application startup: %s", e)
        raise
    finally:
        logger.info("Shutting down application")

        # 1. Close player screens first - their teardown checkpoints need the database
        screens = getattr(app.state, "screens", None)
        if screens is not None:
            await screens.close_all()

        # 2. Global session
        playback = getattr(app.state, "playback", None)
        if playback is not None:
            try:
                playback.close()
            except Exception as e:
                logger.exception("Error closing playback session: %s", e)

        # 3. Database
        try:
            if getattr(app.state, "db", None) is not None:
                await app.state.db.close()
                logger.info("Database connection closed")
        except Exception as e:
            logger.exception("Error closing database: %s", e)

        # 4. HTTP client pool
        try:
            await HttpClientPool.close()
        except Exception as e:
            logger.exception("Error closing HTTP client pool: %s", e)
