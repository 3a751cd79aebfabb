"""Core remote store contract definitions and factory placeholder."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from idea_board_interface.records import ChangeEvent, Table

__all__ = [
    "AuthError",
    "RecordNotFoundError",
    "RemoteStore",
    "Session",
    "StoreError",
    "Subscription",
    "get_store",
]


class StoreError(Exception):
    """Base exception raised when the remote store rejects or fails a request."""


class RecordNotFoundError(StoreError):
    """Raised when a requested record or record set does not exist."""


class AuthError(StoreError):
    """Raised on invalid credentials, expired tokens or forbidden requests."""


@dataclass(frozen=True)
class Session:
    """An authenticated session on the remote store."""

    access_token: str
    refresh_token: str
    user_id: str
    email: str = ""


class Subscription(ABC):
    """Handle on a standing change-notification stream."""

    @property
    @abstractmethod
    def active(self) -> bool:
        """Return whether events are still being delivered."""
        raise NotImplementedError

    @abstractmethod
    def unsubscribe(self) -> None:
        """Stop delivering events. Calling it twice is harmless."""
        raise NotImplementedError


class RemoteStore(ABC):
    """Hosted store for board records, authentication and change notifications."""

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    @abstractmethod
    def select(
        self,
        table: Table,
        *, # all calls must name the optional arguments: select(Table.IDEAS, order="position_in_column")
        filters: dict | None = None,
        order: str | None = None,
        columns: str = "*",
        ) -> list[dict]:
        """Read rows."""
        """Args:
            table:   Record set to read from
            filters: Equality predicates, {column: value}; all must match
            order:   Column to sort by, ascending unless suffixed with ".desc"
            columns: Comma separated column list, "*" for all

        Returns:
            The matching rows as plain dicts
        """
        raise NotImplementedError

    @abstractmethod
    def insert(self, table: Table, record: dict) -> dict:
        """Insert a row and return it as stored."""
        raise NotImplementedError

    @abstractmethod
    def update(self, table: Table, partial: dict, filters: dict) -> list[dict]:
        """Update rows."""
        """Args:
            table:   Record set to update
            partial: Column values to set; other columns are left unchanged
            filters: Equality predicates selecting the rows to update

        Returns:
            The updated rows (empty when nothing matched)
        """
        raise NotImplementedError

    @abstractmethod
    def delete(self, table: Table, filters: dict) -> None:
        """Delete every row matching the equality predicates."""
        raise NotImplementedError

    @abstractmethod
    def subscribe(self, tables: Iterable[Table], callback: Callable[[ChangeEvent], None]) -> Subscription:
        """Deliver a ChangeEvent to callback for every insert, update or delete on the given tables."""
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    @property
    @abstractmethod
    def session(self) -> Session | None:
        """Return the current session, or None when signed out."""
        raise NotImplementedError

    @abstractmethod
    def authenticate(self, email: str, password: str) -> Session:
        """Sign in with email and password.

        Raises:
            AuthError: If the credentials are rejected.
        """
        raise NotImplementedError

    @abstractmethod
    def sign_up(self, email: str, password: str, *, name: str) -> Session | None:
        """Register a user. Returns None when the backend requires email confirmation first."""
        raise NotImplementedError

    @abstractmethod
    def sign_out(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def send_password_reset(self, email: str) -> None:
        """Ask the backend to email a password recovery link."""
        raise NotImplementedError

    @abstractmethod
    def set_session(self, access_token: str, refresh_token: str) -> Session:
        """Adopt an existing pair of tokens, e.g. from a recovery link."""
        raise NotImplementedError

    @abstractmethod
    def verify_recovery_token(self, token: str) -> Session:
        """Exchange a recovery token hash for a session."""
        raise NotImplementedError

    @abstractmethod
    def update_current_user(self, *, password: str) -> None:
        """Change the password of the signed in user."""
        raise NotImplementedError


def get_store(*, interactive: bool = False) -> RemoteStore:
    """Create instance of store."""
    """
    Args:
        interactive: When True, the implementation can prompt the user for missing connection settings.
                     When False, it should rely solely on environment variables.

    Returns:
        A concrete RemoteStore instance.

    Raises:
        NotImplementedError: Until replaced by a concrete factory.

    """
    raise NotImplementedError
