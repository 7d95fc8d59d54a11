"""Explicit user session passed to persistence operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Final

LOGGER = logging.getLogger(__name__)

__all__ = ["FREE_USER_TOKEN", "SessionManager", "UserSession"]

FREE_USER_TOKEN: Final[str] = "free-user-token"


@dataclass(frozen=True, slots=True)
class UserSession:
    """Identity of the user on whose behalf a call is made.

    Attributes:
        user_id: Identifier issued by the authentication backend.
        display_name: Human readable name, used on the leaderboard.
        token: Bearer token for the calculator API.
    """

    user_id: str | None = None
    display_name: str | None = None
    token: str | None = None

    @classmethod
    def anonymous(cls) -> UserSession:
        """Return a session without identity or credentials."""

        return cls()

    @property
    def is_authenticated(self) -> bool:
        """Return ``True`` when the session carries a bearer token."""

        return bool(self.token)

    def bearer_token(self, *, require_auth: bool) -> str | None:
        """Return the token to present to the calculator API.

        Anonymous callers hitting an endpoint that does not require
        authentication present the shared free-user token.
        """

        if self.token:
            return self.token
        if require_auth:
            return None
        return FREE_USER_TOKEN


class SessionManager:
    """Own the current session and its login/logout lifecycle."""

    def __init__(self) -> None:
        self._current = UserSession.anonymous()

    @property
    def current(self) -> UserSession:
        return self._current

    def login(
        self, user_id: str, token: str, display_name: str | None = None
    ) -> UserSession:
        """Replace the current session with an authenticated one."""

        if not user_id or not token:
            raise ValueError("login requires both a user id and a token")
        self._current = UserSession(
            user_id=user_id, display_name=display_name or "User", token=token
        )
        LOGGER.info("Session started", extra={"user_id": user_id})
        return self._current

    def logout(self) -> UserSession:
        """Drop credentials and return the anonymous session."""

        if self._current.user_id:
            LOGGER.info("Session ended", extra={"user_id": self._current.user_id})
        self._current = UserSession.anonymous()
        return self._current
