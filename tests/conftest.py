"""Shared fixtures.

Hey future me - every test gets a FRESH in-memory SQLite database (StaticPool keeps it
alive across sessions, see Database). Foreign keys are ON, so progress/likes rows need
a book row first - use the `book` fixture.
"""

from collections.abc import AsyncGenerator, Callable, Generator

import httpx
import pytest
from fastapi.testclient import TestClient

from talebox.application.services import (
    AudioUrlResolver,
    CurrentUserProvider,
    NotificationService,
    ProgressService,
)
from talebox.config import DatabaseSettings, PlaybackSettings, Settings, StorageSettings
from talebox.domain.entities import Book, User
from talebox.infrastructure.integrations import StorageClient
from talebox.infrastructure.notifications import ToastNotificationProvider
from talebox.infrastructure.persistence import BookRepository, Database
from talebox.main import create_app

STORAGE_URL = "https://storage.test"
AUDIO_PREFIX = f"{STORAGE_URL}/storage/v1/object/public/book-audios/"
DEMO_URL = f"{AUDIO_PREFIX}demo/demo-audio.mp3"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        database=DatabaseSettings(url="sqlite+aiosqlite:///:memory:"),
        storage=StorageSettings(backend_url=STORAGE_URL),
        playback=PlaybackSettings(mobile_settle_delay=0.0, probe_timeout=1.0),
    )


@pytest.fixture
async def db(settings: Settings) -> AsyncGenerator[Database, None]:
    database = Database(settings)
    await database.create_tables()
    yield database
    await database.close()


async def add_book(db: Database, book: Book) -> Book:
    async with db.session_scope() as session:
        await BookRepository(session).add(book)
    return book


@pytest.fixture
async def book(db: Database) -> Book:
    return await add_book(
        db,
        Book(
            id="book-1",
            title="The Hobbit",
            author="J. R. R. Tolkien",
            audio_path="tolkien/the-hobbit.mp3",
            duration=600.0,
        ),
    )


@pytest.fixture
def user() -> User:
    return User(id="user-1", email="reader@example.com")


@pytest.fixture
def auth(user: User) -> CurrentUserProvider:
    return CurrentUserProvider(user)


@pytest.fixture
def toasts() -> ToastNotificationProvider:
    return ToastNotificationProvider()


@pytest.fixture
def notifications(toasts: ToastNotificationProvider) -> NotificationService:
    return NotificationService([toasts])


@pytest.fixture
def progress_service(db: Database) -> ProgressService:
    return ProgressService(db.session_scope)


# Storage double: a URL is reachable when it's in `reachable_urls` (query string ignored).
# HEAD of anything else → 404, GET → 404.
@pytest.fixture
def reachable_urls() -> set[str]:
    return {DEMO_URL}


@pytest.fixture
def storage_handler(reachable_urls: set[str]) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url).split("?", 1)[0]
        return httpx.Response(200 if url in reachable_urls else 404)

    return handler


@pytest.fixture
async def http_client(
    storage_handler: Callable[[httpx.Request], httpx.Response],
) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(storage_handler)) as client:
        yield client


@pytest.fixture
def resolver(settings: Settings, http_client: httpx.AsyncClient) -> AudioUrlResolver:
    return AudioUrlResolver(settings, StorageClient(settings.storage, http_client))


# -- API ---------------------------------------------------------------------
# Hey future me - the app runs its own event loop in the TestClient's portal thread, so
# anything touching app.state.db (seeding books) must go through client.portal.call().

HOBBIT = Book(
    id="book-1",
    title="The Hobbit",
    author="J. R. R. Tolkien",
    audio_path="tolkien/the-hobbit.mp3",
    duration=600.0,
)
HOBBIT_URL = f"{AUDIO_PREFIX}tolkien/the-hobbit.mp3"


@pytest.fixture
def api_client(
    settings: Settings,
    storage_handler: Callable[[httpx.Request], httpx.Response],
) -> Generator[TestClient, None, None]:
    http = httpx.AsyncClient(transport=httpx.MockTransport(storage_handler))
    app = create_app(settings, http_client=http)
    with TestClient(app) as client:
        client.portal.call(add_book, app.state.db, HOBBIT)
        yield client
