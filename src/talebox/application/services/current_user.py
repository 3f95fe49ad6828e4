"""Current user holder.

Sign-in itself happens against the hosted backend's auth service; this app only needs
to know WHO is listening (or that nobody is). Anonymous listeners can play, but their
position is never restored or saved.
"""

import logging

from talebox.domain.entities import User
from talebox.domain.ports import IAuthProvider

logger = logging.getLogger(__name__)


class CurrentUserProvider(IAuthProvider):
    """Mutable holder for the signed-in user."""

    def __init__(self, user: User | None = None) -> None:
        self._user = user

    def current_user(self) -> User | None:
        return self._user

    def sign_in(self, user: User) -> None:
        logger.info("User signed in: %s", user.id)
        self._user = user

    def sign_out(self) -> None:
        if self._user is not None:
            logger.info("User signed out: %s", self._user.id)
        self._user = None
