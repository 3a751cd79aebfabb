"""Record contract - core representation of the rows kept by the remote store."""

from __future__ import annotations

from dataclasses import dataclass, fields as dataclass_fields
from enum import Enum


class Table(str, Enum):
    PROFILES = "profiles"
    COLUMNS = "columns"
    IDEAS = "ideas"
    VOTES = "votes"
    COMMENTS = "comments"


class ChangeKind(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    """A single change notification. Only ``table`` is guaranteed to be meaningful."""

    table: Table
    kind: ChangeKind
    record_id: str | None = None


@dataclass(frozen=True)
class Profile:
    id: str
    name: str
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_row(cls, row: dict) -> Profile:
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            created_at=row.get("created_at") or "",
            updated_at=row.get("updated_at") or "",
        )


@dataclass(frozen=True)
class Column:
    """A named, ordered bucket of ideas."""

    id: str
    name: str
    position: int
    color: str = ""
    created_at: str = ""

    @classmethod
    def from_row(cls, row: dict) -> Column:
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            position=int(row.get("position") or 0),
            color=row.get("color") or "",
            created_at=row.get("created_at") or "",
        )


@dataclass(frozen=True)
class Vote:
    id: str
    user_id: str
    idea_id: str
    created_at: str = ""
    user: Profile | None = None

    @classmethod
    def from_row(cls, row: dict, user: Profile | None = None) -> Vote:
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            idea_id=str(row["idea_id"]),
            created_at=row.get("created_at") or "",
            user=user,
        )


@dataclass(frozen=True)
class Comment:
    id: str
    content: str
    user_id: str
    idea_id: str
    created_at: str = ""
    updated_at: str = ""
    user: Profile | None = None

    @classmethod
    def from_row(cls, row: dict, user: Profile | None = None) -> Comment:
        return cls(
            id=str(row["id"]),
            content=row.get("content") or "",
            user_id=str(row["user_id"]),
            idea_id=str(row["idea_id"]),
            created_at=row.get("created_at") or "",
            updated_at=row.get("updated_at") or "",
            user=user,
        )


@dataclass(frozen=True)
class Idea:
    """A card on the board.

    ``vote_count``, ``comment_count`` and ``user_has_voted`` are derived from the
    vote and comment sets at snapshot time and are never stored.
    """

    id: str
    title: str
    creator_id: str
    column_id: str
    position_in_column: int
    created_at: str = ""
    updated_at: str = ""
    description: str | None = None
    creator: Profile | None = None
    votes: tuple[Vote, ...] = ()
    comments: tuple[Comment, ...] = ()
    vote_count: int = 0
    comment_count: int = 0
    user_has_voted: bool = False

    @classmethod
    def from_row(cls, row: dict) -> Idea:
        return cls(
            id=str(row["id"]),
            title=row.get("title") or "",
            creator_id=str(row.get("creator_id") or ""),
            column_id=str(row.get("column_id") or ""),
            position_in_column=int(row.get("position_in_column") or 0),
            created_at=row.get("created_at") or "",
            updated_at=row.get("updated_at") or "",
            description=row.get("description"),
        )

    def __repr__(self) -> str:
        return f"<Idea id={self.id!r} title={self.title!r} column={self.column_id!r} pos={self.position_in_column}>"


@dataclass
#plain dataclass so callers can build partial updates field by field
class IdeaUpdate:
    """
    All fields default to None. During an update, only fields explicitly set to a non-None value are sent.
    An empty description clears the stored description.
    """

    title: str | None = None
    description: str | None = None
    column_id: str | None = None
    position_in_column: int | None = None

    def set_fields(self) -> dict:
        """Return a dict containing only the fields explicitly set to non-None values (the only ones to be updated)."""
        changed = {f.name: getattr(self, f.name) for f in dataclass_fields(self) if getattr(self, f.name) is not None}
        if changed.get("description") == "":
            changed["description"] = None
        return changed
