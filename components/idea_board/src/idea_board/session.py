"""Board session: the controller behind a mounted board view.

Wires the cache, the reconciliation loop, the reorder resolver and the filter
view together, and turns every failure into a transient Notice while keeping
the previous board state. Validation errors from the idea actions are left to
the caller, which shows them next to the form field.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from idea_board_interface.records import Comment, Idea
from idea_board_interface.store import RemoteStore, StoreError

from idea_board.actions import IdeaActions
from idea_board.cache import BoardStateCache, Snapshot
from idea_board.errors import NotAuthorizedError, NotSignedInError
from idea_board.filters import filter_ideas, group_by_column
from idea_board.reconcile import ReconciliationLoop
from idea_board.reorder import DragState, ReorderResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notice:
    """A transient message for the user."""

    title: str
    description: str = ""
    variant: str = "default"  # "default" | "destructive"


Notifier = Callable[[Notice], None]


def _log_notice(notice: Notice) -> None:
    level = logging.WARNING if notice.variant == "destructive" else logging.INFO
    logger.log(level, "%s: %s", notice.title, notice.description)


class BoardSession:
    """
    Args:
        store:  Remote store backing the board
        notify: Receives a Notice for every user-facing outcome; defaults to logging it
    """

    def __init__(self, store: RemoteStore, notify: Notifier | None = None) -> None:
        self._notify = notify or _log_notice
        self.cache = BoardStateCache(store)
        self.resolver = ReorderResolver(store, self.cache)
        self.actions = IdeaActions(store)
        self.loop = ReconciliationLoop(store, self.cache, on_error=self._refresh_failed)
        self.query = ""
        self.column_filter: str | None = None

    # ------------------------------------------------------------------
    # Lifetime
    # ------------------------------------------------------------------

    def mount(self) -> None:
        self.refresh()
        self.loop.start()

    def unmount(self) -> None:
        self.loop.stop()
        self.resolver.cancel()
        self.cache.clear()

    def __enter__(self) -> BoardSession:
        self.mount()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unmount()

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def refresh(self, *, manual: bool = False) -> bool:
        try:
            self.cache.refresh()
        except StoreError as exc:
            self._refresh_failed(exc)
            return False
        if manual:
            self._notify(Notice("Board refreshed", "The board is up to date."))
        return True

    def _refresh_failed(self, exc: StoreError) -> None:
        logger.error("could not load board: %s", exc)
        self._notify(Notice("Could not load the board", str(exc), "destructive"))

    @property
    def snapshot(self) -> Snapshot:
        return self.cache.get_snapshot()

    # ------------------------------------------------------------------
    # Filter view
    # ------------------------------------------------------------------

    def search(self, query: str) -> None:
        self.query = query

    def select_column(self, column_id: str | None) -> None:
        self.column_filter = column_id

    def visible_ideas(self) -> list[Idea]:
        return filter_ideas(self.snapshot.ideas, self.query, self.column_filter)

    def visible_board(self) -> dict[str, list[Idea]]:
        """Visible ideas grouped per column, in column order."""
        snapshot = self.snapshot
        return group_by_column(snapshot.columns, filter_ideas(snapshot.ideas, self.query, self.column_filter))

    # ------------------------------------------------------------------
    # Drag and drop
    # ------------------------------------------------------------------

    @property
    def state(self) -> DragState:
        return self.resolver.state

    def begin_drag(self, idea_id: str) -> bool:
        return self.resolver.pick_up(idea_id)

    def cancel_drag(self) -> None:
        self.resolver.cancel()

    def end_drag(self, target_id: str | None) -> bool:
        """Drop the dragged idea. Returns True when a move was written."""
        try:
            move = self.resolver.drop(target_id)
        except StoreError as exc:
            logger.error("move failed: %s", exc)
            self._notify(Notice("Could not move the idea", str(exc), "destructive"))
            return False
        if move is None:
            return False
        self._notify(Notice("Idea moved", "The idea was moved."))
        return True

    # ------------------------------------------------------------------
    # Idea actions
    # ------------------------------------------------------------------

    def _attempt(self, failure: str, action: Callable[..., Any], *args: Any) -> tuple[bool, Any]:
        try:
            return True, action(*args)
        except (StoreError, NotSignedInError, NotAuthorizedError) as exc:
            logger.error("%s: %s", failure, exc)
            self._notify(Notice(failure, str(exc), "destructive"))
            return False, None

    def create_idea(self, title: str, column_id: str, description: str | None = None) -> Idea | None:
        ok, idea = self._attempt("Could not create the idea", self.actions.create_idea, title, column_id, description)
        if ok:
            self._notify(Notice("Idea created", idea.title))
        return idea

    def edit_idea(self, idea: Idea, title: str, description: str | None = None) -> bool:
        ok, _ = self._attempt("Could not update the idea", self.actions.edit_idea, idea, title, description)
        if ok:
            self._notify(Notice("Idea updated", "The changes were saved."))
        return ok

    def delete_idea(self, idea: Idea) -> bool:
        ok, _ = self._attempt("Could not delete the idea", self.actions.delete_idea, idea)
        if ok:
            self._notify(Notice("Idea deleted", "The idea was removed from the board."))
        return ok

    def toggle_vote(self, idea: Idea) -> bool | None:
        """Returns True once voted, False once unvoted, None when the vote failed."""
        ok, voted = self._attempt("Could not vote", self.actions.toggle_vote, idea)
        if not ok:
            return None
        self._notify(Notice("Vote added" if voted else "Vote removed"))
        return voted

    def add_comment(self, idea_id: str, content: str) -> Comment | None:
        ok, comment = self._attempt("Could not comment", self.actions.add_comment, idea_id, content)
        if ok:
            self._notify(Notice("Comment added"))
        return comment
