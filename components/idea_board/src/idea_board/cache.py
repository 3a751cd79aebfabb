"""Board state cache: the in-memory snapshot of columns and ideas.

The snapshot is rebuilt wholesale on every refresh and replaced with a single
assignment, so readers on any thread see either the old or the new snapshot,
never a mix of both. A refresh that was already reading when the cache was
cleared is discarded instead of bringing the old board back.
"""
from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from idea_board_interface.records import Column, Comment, Idea, Profile, Table, Vote
from idea_board_interface.store import RemoteStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """Columns and ideas (with derived counts) as of the last successful refresh."""

    columns: tuple[Column, ...] = ()
    ideas: tuple[Idea, ...] = ()
    fetched_at: datetime | None = None
    _columns_by_id: dict[str, Column] = field(init=False, repr=False, compare=False)
    _ideas_by_id: dict[str, Idea] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        #frozen, so the lookup tables are filled through object.__setattr__
        object.__setattr__(self, "_columns_by_id", {c.id: c for c in self.columns})
        object.__setattr__(self, "_ideas_by_id", {i.id: i for i in self.ideas})

    def has_column(self, column_id: str) -> bool:
        return column_id in self._columns_by_id

    def column(self, column_id: str) -> Column | None:
        return self._columns_by_id.get(column_id)

    def idea(self, idea_id: str) -> Idea | None:
        return self._ideas_by_id.get(idea_id)

    def ideas_in(self, column_id: str) -> list[Idea]:
        """Ideas cached as belonging to a column, in snapshot order."""
        return [i for i in self.ideas if i.column_id == column_id]


def build_idea(
    row: dict,
    votes: list[Vote],
    comments: list[Comment],
    creator: Profile | None,
    viewer_id: str | None,
) -> Idea:
    """Join an idea row with its creator, vote set and comment set, and derive the counts."""
    idea = Idea.from_row(row)
    return replace(
        idea,
        creator=creator,
        votes=tuple(votes),
        comments=tuple(comments),
        vote_count=len(votes),
        comment_count=len(comments),
        user_has_voted=viewer_id is not None and any(v.user_id == viewer_id for v in votes),
    )


class BoardStateCache:
    """Owns the board snapshot for the lifetime of a mounted board view.

    Args:
        store: Remote store the snapshot is read from. The viewer is whoever holds
               the store's session at refresh time.
    """

    def __init__(self, store: RemoteStore) -> None:
        self._store = store
        self._snapshot = Snapshot()
        self._generation = 0
        self._lock = threading.Lock()

    def get_snapshot(self) -> Snapshot:
        return self._snapshot

    def clear(self) -> None:
        with self._lock:
            self._generation += 1
            self._snapshot = Snapshot()

    def refresh(self) -> Snapshot:
        """Refetch everything and replace the snapshot.

        If ``clear`` runs while the reads are in flight, the fetched board is
        dropped and the cleared snapshot is returned.

        Raises:
            StoreError: If any read fails. The previous snapshot is kept.
        """
        generation = self._generation
        session = self._store.session
        viewer_id = session.user_id if session else None

        column_rows = self._store.select(Table.COLUMNS, order="position")
        idea_rows = self._store.select(Table.IDEAS, order="position_in_column")
        vote_rows = self._store.select(Table.VOTES)
        comment_rows = self._store.select(Table.COMMENTS, order="created_at")
        profile_rows = self._store.select(Table.PROFILES)

        profiles = {str(p["id"]): Profile.from_row(p) for p in profile_rows}
        votes_by_idea: dict[str, list[Vote]] = defaultdict(list)
        for row in vote_rows:
            vote = Vote.from_row(row, user=profiles.get(str(row["user_id"])))
            votes_by_idea[vote.idea_id].append(vote)
        comments_by_idea: dict[str, list[Comment]] = defaultdict(list)
        for row in comment_rows:
            comment = Comment.from_row(row, user=profiles.get(str(row["user_id"])))
            comments_by_idea[comment.idea_id].append(comment)

        ideas = tuple(
            build_idea(
                row,
                votes_by_idea.get(str(row["id"]), []),
                comments_by_idea.get(str(row["id"]), []),
                profiles.get(str(row.get("creator_id"))),
                viewer_id,
            )
            for row in idea_rows
        )
        snapshot = Snapshot(
            columns=tuple(Column.from_row(c) for c in column_rows),
            ideas=ideas,
            fetched_at=datetime.now(timezone.utc),
        )
        with self._lock:
            if generation != self._generation:
                logger.debug("cache cleared during refresh, discarding result")
                return self._snapshot
            self._snapshot = snapshot
        logger.debug("board refreshed: %d columns, %d ideas", len(snapshot.columns), len(snapshot.ideas))
        return snapshot
