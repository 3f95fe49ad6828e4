"""Infrastructure persistence layer."""

from .database import Database
from .models import (
    Base,
    BookLikeModel,
    BookModel,
    BookSaveModel,
    ListeningProgressModel,
)
from .repositories import (
    BookLikeRepository,
    BookRepository,
    BookSaveRepository,
    ListeningProgressRepository,
)
from .retry import with_db_retry

__all__ = [
    "Base",
    "BookLikeModel",
    "BookLikeRepository",
    "BookModel",
    "BookRepository",
    "BookSaveModel",
    "BookSaveRepository",
    "Database",
    "ListeningProgressModel",
    "ListeningProgressRepository",
    "with_db_retry",
]
