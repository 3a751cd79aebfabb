"""Idea, vote and comment operations issued directly against the store.

None of these touch the board snapshot: the reconciliation loop picks the
change up and refreshes the board.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from idea_board_interface.records import Comment, Idea, IdeaUpdate, Profile, Table, Vote
from idea_board_interface.store import RemoteStore

from idea_board.errors import NotAuthorizedError, NotSignedInError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdeaDetails:
    """Comments and votes of one idea, each joined with its author."""

    idea_id: str
    comments: tuple[Comment, ...]
    votes: tuple[Vote, ...]
    user_has_voted: bool


class IdeaActions:
    """
    Args:
        store: Remote store; the acting user is whoever holds its session
    """

    def __init__(self, store: RemoteStore) -> None:
        self._store = store

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _viewer_id(self) -> str:
        session = self._store.session
        if session is None:
            raise NotSignedInError("Sign in first")
        return session.user_id

    def _require_creator(self, idea: Idea) -> str:
        viewer_id = self._viewer_id()
        if idea.creator_id != viewer_id:
            raise NotAuthorizedError(f"Only the creator can change idea {idea.id}")
        return viewer_id

    def _profiles(self, user_ids: set[str]) -> dict[str, Profile]:
        if not user_ids:
            return {}
        #filters are equality only, so read every profile and keep the ones needed
        rows = self._store.select(Table.PROFILES)
        return {str(r["id"]): Profile.from_row(r) for r in rows if str(r["id"]) in user_ids}

    # ------------------------------------------------------------------
    # Ideas
    # ------------------------------------------------------------------

    def create_idea(self, title: str, column_id: str, description: str | None = None) -> Idea:
        """
        Notes on usage:
            The new idea goes to the end of its column; the position is counted from the
            store at creation time, not from the cached snapshot.

        Raises:
            ValidationError: Empty title or no column, before any remote call.
        """
        title = (title or "").strip()
        if not title:
            raise ValidationError("Title is required")
        if not column_id:
            raise ValidationError("Choose a column")
        creator_id = self._viewer_id()

        position = len(self._store.select(Table.IDEAS, filters={"column_id": column_id}, columns="id"))
        row = self._store.insert(Table.IDEAS, {
            "title": title,
            "description": (description or "").strip() or None,
            "creator_id": creator_id,
            "column_id": column_id,
            "position_in_column": position,
        })
        logger.info("created idea %s in column %s at %d", row.get("id"), column_id, position)
        return Idea.from_row(row)

    def edit_idea(self, idea: Idea, title: str, description: str | None = None) -> None:
        title = (title or "").strip()
        if not title:
            raise ValidationError("Title is required")
        self._require_creator(idea)
        #empty description clears it
        update = IdeaUpdate(title=title, description=(description or "").strip())
        self._store.update(Table.IDEAS, update.set_fields(), {"id": idea.id})
        logger.info("edited idea %s", idea.id)

    def delete_idea(self, idea: Idea) -> None:
        self._require_creator(idea)
        self._store.delete(Table.IDEAS, {"id": idea.id})
        logger.info("deleted idea %s", idea.id)

    # ------------------------------------------------------------------
    # Votes and comments
    # ------------------------------------------------------------------

    def toggle_vote(self, idea: Idea) -> bool:
        """Remove the viewer's vote if they voted, add one otherwise. Returns the new voted state."""
        viewer_id = self._viewer_id()
        if idea.user_has_voted:
            self._store.delete(Table.VOTES, {"user_id": viewer_id, "idea_id": idea.id})
            logger.info("removed vote of %s on %s", viewer_id, idea.id)
            return False
        self._store.insert(Table.VOTES, {"user_id": viewer_id, "idea_id": idea.id})
        logger.info("added vote of %s on %s", viewer_id, idea.id)
        return True

    def add_comment(self, idea_id: str, content: str) -> Comment:
        content = (content or "").strip()
        if not content:
            raise ValidationError("Comment cannot be empty")
        viewer_id = self._viewer_id()
        row = self._store.insert(Table.COMMENTS, {"content": content, "user_id": viewer_id, "idea_id": idea_id})
        logger.info("comment %s added on %s", row.get("id"), idea_id)
        return Comment.from_row(row)

    def get_idea_details(self, idea_id: str) -> IdeaDetails:
        comment_rows = self._store.select(Table.COMMENTS, filters={"idea_id": idea_id}, order="created_at")
        vote_rows = self._store.select(Table.VOTES, filters={"idea_id": idea_id})
        profiles = self._profiles({str(r["user_id"]) for r in comment_rows} | {str(r["user_id"]) for r in vote_rows})

        comments = tuple(Comment.from_row(r, user=profiles.get(str(r["user_id"]))) for r in comment_rows)
        votes = tuple(Vote.from_row(r, user=profiles.get(str(r["user_id"]))) for r in vote_rows)
        session = self._store.session
        user_has_voted = session is not None and any(v.user_id == session.user_id for v in votes)
        return IdeaDetails(idea_id, comments, votes, user_has_voted)

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def get_profile(self, user_id: str | None = None) -> Profile | None:
        """Return the profile of ``user_id``, or of the viewer when omitted. None when signed out or missing."""
        if user_id is None:
            session = self._store.session
            if session is None:
                return None
            user_id = session.user_id
        rows = self._store.select(Table.PROFILES, filters={"id": user_id})
        if not rows:
            return None
        return Profile.from_row(rows[0])
