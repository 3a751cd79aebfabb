"""Sign in, sign up and password recovery flows."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import parse_qs, urlsplit

from idea_board_interface.store import AuthError, RemoteStore, Session

from idea_board.errors import ValidationError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class RecoveryTokens:
    """Tokens carried by a password recovery link. Any of them may be missing."""

    access_token: str | None = None
    refresh_token: str | None = None
    token: str | None = None


def parse_recovery_link(url: str) -> RecoveryTokens | None:
    """Extract the tokens of a recovery link, or None if the link is not a recovery link.

    The backend may put the parameters in the query string or in the fragment.
    """
    parts = urlsplit(url)
    params: dict[str, list[str]] = {}
    for raw in (parts.fragment, parts.query):
        for key, values in parse_qs(raw).items():
            params.setdefault(key, values)

    def first(key: str) -> str | None:
        values = params.get(key)
        return values[0] if values else None

    if first("type") != "recovery":
        return None
    return RecoveryTokens(
        access_token=first("access_token"),
        refresh_token=first("refresh_token"),
        token=first("token") or first("token_hash"),
    )


def validate_new_password(password: str, confirmation: str) -> None:
    if password != confirmation:
        raise ValidationError("Passwords do not match")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


class AuthFlow:
    """
    Args:
        store: Remote store whose session the flows establish or end
    """

    def __init__(self, store: RemoteStore) -> None:
        self._store = store

    def sign_in(self, email: str, password: str) -> Session:
        return self._store.authenticate(email.strip(), password)

    def sign_up(self, email: str, password: str, name: str) -> Session | None:
        """Register a user. None means the account awaits email confirmation."""
        return self._store.sign_up(email.strip(), password, name=name.strip())

    def sign_out(self) -> None:
        self._store.sign_out()

    def request_password_reset(self, email: str) -> None:
        email = (email or "").strip()
        if not email:
            raise ValidationError("Email is required to reset the password")
        self._store.send_password_reset(email)
        logger.info("password reset requested for %s", email)

    def reset_password(self, tokens: RecoveryTokens, password: str, confirmation: str) -> None:
        """
        Notes on usage:
            The recovery session is taken, in order, from the access/refresh token pair,
            an already active session, or the recovery token hash.

        Raises:
            ValidationError: Mismatched or too short password, before any remote call.
            AuthError: The recovery link is invalid or expired.
        """
        validate_new_password(password, confirmation)

        if tokens.access_token and tokens.refresh_token:
            self._store.set_session(tokens.access_token, tokens.refresh_token)
        elif self._store.session is None:
            if not tokens.token:
                raise AuthError("No password reset session found")
            self._store.verify_recovery_token(tokens.token)

        self._store.update_current_user(password=password)
        logger.info("password updated")
