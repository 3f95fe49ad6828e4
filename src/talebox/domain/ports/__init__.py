"""Domain ports (interfaces) for dependency inversion."""

from abc import ABC, abstractmethod

from talebox.domain.entities import (
    Book,
    ContinueListeningEntry,
    ListeningProgress,
    User,
)
from talebox.domain.ports.audio_output import (
    AudioEvent,
    AudioEventCallback,
    AudioSubscriptions,
    IAudioOutput,
    Subscription,
)
from talebox.domain.ports.notification import (
    INotificationProvider,
    Notification,
    NotificationPriority,
    NotificationResult,
    NotificationType,
)


class IBookRepository(ABC):
    """Repository interface for catalog books."""

    @abstractmethod
    async def add(self, book: Book) -> None:
        """Add a new book."""
        pass

    @abstractmethod
    async def get_by_id(self, book_id: str) -> Book | None:
        """Get a book by ID."""
        pass

    @abstractmethod
    async def search(self, query: str, limit: int = 20) -> list[Book]:
        """Case-insensitive title/author search."""
        pass


# Hey future me, the progress table is keyed by the COMPOSITE (user_id, book_id)! There is no
# get-by-row-id here on purpose - callers only ever know the pair. add() on an existing pair is a
# bug in the caller (ProgressService serializes check-then-act per pair, see progress_service.py).
class IListeningProgressRepository(ABC):
    """Repository interface for listening progress checkpoints."""

    @abstractmethod
    async def get(self, user_id: str, book_id: str) -> ListeningProgress | None:
        """Get the checkpoint for (user, book), None when there is none."""
        pass

    @abstractmethod
    async def add(self, progress: ListeningProgress) -> None:
        """Insert a new checkpoint row."""
        pass

    @abstractmethod
    async def update(self, progress: ListeningProgress) -> None:
        """Update the existing checkpoint row for (user, book)."""
        pass

    @abstractmethod
    async def list_in_progress(
        self, user_id: str, limit: int = 5
    ) -> list[ContinueListeningEntry]:
        """Books with position > 0, most recently updated first."""
        pass


class IBookCollectionRepository(ABC):
    """Repository interface for per-user book collections (likes, saves)."""

    @abstractmethod
    async def exists(self, user_id: str, book_id: str) -> bool:
        pass

    @abstractmethod
    async def add(self, user_id: str, book_id: str) -> None:
        """Add book to the collection.

        Raises:
            DuplicateEntityException: if (user, book) is already present
        """
        pass

    @abstractmethod
    async def remove(self, user_id: str, book_id: str) -> bool:
        """Remove book from the collection. Returns False if it wasn't there."""
        pass

    @abstractmethod
    async def list_book_ids(self, user_id: str) -> set[str]:
        pass

    @abstractmethod
    async def list_books(self, user_id: str) -> list[Book]:
        pass


class IAuthProvider(ABC):
    """Who is listening right now. None means anonymous."""

    @abstractmethod
    def current_user(self) -> User | None:
        pass


__all__ = [
    "AudioEvent",
    "AudioEventCallback",
    "AudioSubscriptions",
    "IAudioOutput",
    "IAuthProvider",
    "IBookCollectionRepository",
    "IBookRepository",
    "IListeningProgressRepository",
    "INotificationProvider",
    "Notification",
    "NotificationPriority",
    "NotificationResult",
    "NotificationType",
    "Subscription",
]
