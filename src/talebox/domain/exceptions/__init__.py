"""Domain exceptions."""

from enum import Enum
from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, we store message as an attribute so code can inspect it without parsing str(exception).
    # This is your base class - DON'T raise it directly! Use a specific subclass so callers can catch precisely.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class EntityNotFoundException(DomainException):
    """Raised when an entity is not found."""

    # Yo, this is for "get by ID" operations that fail at the API edge - Book 123 doesn't exist.
    # Repositories return None for "not found"; the ROUTERS decide it's exceptional.
    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(f"{entity_type} with id {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class ValidationException(DomainException):
    """Raised when input or entity validation fails.

    Example: negative seek position, unsupported playback speed.
    """

    pass


class InvalidStateException(DomainException):
    """Raised when an object is in an invalid state for the requested operation.

    Example: toggling a player screen that was already unmounted.
    """

    pass


class DuplicateEntityException(DomainException):
    """Raised when trying to create a duplicate entity."""

    # Listen, the library tables (likes/saves) are unique per (user, book). A second insert
    # lands here and the LibraryService turns it into "already in your library".
    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(f"{entity_type} with id {entity_id} already exists")
        self.entity_type = entity_type
        self.entity_id = entity_id


class ExternalServiceError(DomainException):
    """The hosted backend (storage, database) returned an error.

    HTTP Status: 502 (Bad Gateway)
    """

    pass


class AuthenticationError(DomainException):
    """User is not authenticated.

    HTTP Status: 401

    Example:
        raise AuthenticationError("User must be logged in")
    """

    pass


class ConfigurationError(DomainException):
    """Application misconfiguration.

    HTTP Status: 503 (Service Unavailable)
    """

    pass


# =============================================================================
# Playback exceptions
# Hey future me - these never escape the playback sessions! The sessions catch
# them and turn them into state flags + toasts. Audio outputs RAISE them from
# play(); the session CLASSIFIES them via PlaybackStartError.kind.
# =============================================================================


class PlaybackErrorKind(str, Enum):
    """Classification of a failed play request."""

    PERMISSION_REQUIRED = "permission_required"  # autoplay policy blocked us
    FORMAT_UNSUPPORTED = "format_unsupported"  # codec/network, element gave up
    GENERIC = "generic"


class PlayerNotReadyError(DomainException):
    """Transport was invoked before the output handle or URL exists."""

    def __init__(self, message: str = "Audio player is not ready yet") -> None:
        super().__init__(message)


class PlaybackStartError(DomainException):
    """Starting playback failed."""

    def __init__(
        self, message: str, kind: PlaybackErrorKind = PlaybackErrorKind.GENERIC
    ) -> None:
        super().__init__(message)
        self.kind = kind

    @classmethod
    def classify(cls, error: BaseException) -> PlaybackErrorKind:
        """Map any exception raised by play() to an error kind."""
        if isinstance(error, PlaybackStartError):
            return error.kind
        return PlaybackErrorKind.GENERIC


class PlaybackNotAllowedError(PlaybackStartError):
    """Autoplay policy rejected play() - needs a user gesture."""

    def __init__(self, message: str = "Playback requires user interaction") -> None:
        super().__init__(message, PlaybackErrorKind.PERMISSION_REQUIRED)


class PlaybackNotSupportedError(PlaybackStartError):
    """Media format unsupported or source unreachable at play() time."""

    def __init__(
        self, message: str = "Audio format not supported or network issue"
    ) -> None:
        super().__init__(message, PlaybackErrorKind.FORMAT_UNSUPPORTED)


__all__ = [
    "DomainException",
    "EntityNotFoundException",
    "ValidationException",
    "InvalidStateException",
    "DuplicateEntityException",
    "ExternalServiceError",
    "AuthenticationError",
    "ConfigurationError",
    "PlaybackErrorKind",
    "PlayerNotReadyError",
    "PlaybackStartError",
    "PlaybackNotAllowedError",
    "PlaybackNotSupportedError",
]
