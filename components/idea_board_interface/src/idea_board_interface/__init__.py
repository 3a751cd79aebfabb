"""Record types and the remote store contract shared by every board component."""

from idea_board_interface.records import (
    ChangeEvent,
    ChangeKind,
    Column,
    Comment,
    Idea,
    IdeaUpdate,
    Profile,
    Table,
    Vote,
)
from idea_board_interface.store import (
    AuthError,
    RecordNotFoundError,
    RemoteStore,
    Session,
    StoreError,
    Subscription,
)

__all__ = [
    "AuthError",
    "ChangeEvent",
    "ChangeKind",
    "Column",
    "Comment",
    "Idea",
    "IdeaUpdate",
    "Profile",
    "RecordNotFoundError",
    "RemoteStore",
    "Session",
    "StoreError",
    "Subscription",
    "Table",
    "Vote",
]
