"""Reorder resolver: drag-and-drop of ideas between columns.

An explicit three state machine::

    IDLE --pick_up--> DRAGGING --drop--> RESOLVING --settled--> IDLE
                         |
                         +--cancel / invalid drop / same column--> IDLE

A move always appends the idea to the end of the target column, even when it
was dropped in the middle of the list.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from idea_board_interface.records import IdeaUpdate, Table
from idea_board_interface.store import RemoteStore

from idea_board.cache import BoardStateCache, Snapshot

logger = logging.getLogger(__name__)


class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    RESOLVING = "resolving"


@dataclass(frozen=True)
class Move:
    """A move that was written to the store."""

    idea_id: str
    from_column_id: str
    to_column_id: str
    position: int


def resolve_target(snapshot: Snapshot, target_id: str | None) -> str | None:
    """Return the column a drop on ``target_id`` lands in, or None for an invalid drop zone.

    A column id is its own target; an idea id resolves to that idea's current column.
    """
    if target_id is None:
        return None
    if snapshot.has_column(target_id):
        return target_id
    idea = snapshot.idea(target_id)
    if idea is not None:
        return idea.column_id
    return None


class ReorderResolver:
    """
    Args:
        store: Store the move is written to
        cache: Snapshot used to resolve drop targets and compute positions; never mutated here
    """

    def __init__(self, store: RemoteStore, cache: BoardStateCache) -> None:
        self._store = store
        self._cache = cache
        self._state = DragState.IDLE
        self._dragged_id: str | None = None

    @property
    def state(self) -> DragState:
        return self._state

    @property
    def dragged_id(self) -> str | None:
        return self._dragged_id

    def pick_up(self, idea_id: str) -> bool:
        """Start dragging an idea. Returns False, staying idle, when the idea is not on the board."""
        if self._cache.get_snapshot().idea(idea_id) is None:
            logger.warning("cannot drag unknown idea %s", idea_id)
            self._reset()
            return False
        self._dragged_id = idea_id
        self._state = DragState.DRAGGING
        logger.debug("dragging idea %s", idea_id)
        return True

    def cancel(self) -> None:
        self._reset()

    def drop(self, target_id: str | None) -> Move | None:
        """Finish the gesture on ``target_id`` (a column id, an idea id, or None outside any zone).

        Returns:
            The Move written to the store, or None when the drop was a no-op.

        Raises:
            StoreError: If the update fails. The resolver is idle again and the cache is untouched.
        """
        if self._state is not DragState.DRAGGING or self._dragged_id is None:
            return None

        idea_id = self._dragged_id
        snapshot = self._cache.get_snapshot()
        idea = snapshot.idea(idea_id)
        if idea is None:
            logger.warning("dragged idea %s disappeared before the drop", idea_id)
            self._reset()
            return None

        target_column_id = resolve_target(snapshot, target_id)
        if target_column_id is None:
            logger.debug("drop of %s outside any column (%r)", idea_id, target_id)
            self._reset()
            return None
        if target_column_id == idea.column_id:
            logger.debug("idea %s dropped in its own column, nothing to do", idea_id)
            self._reset()
            return None

        new_position = len(snapshot.ideas_in(target_column_id))
        update = IdeaUpdate(column_id=target_column_id, position_in_column=new_position)
        self._state = DragState.RESOLVING
        try:
            self._store.update(Table.IDEAS, update.set_fields(), {"id": idea_id})
        finally:
            self._reset()

        logger.info("moved idea %s from %s to %s at %d", idea_id, idea.column_id, target_column_id, new_position)
        return Move(idea_id, idea.column_id, target_column_id, new_position)

    def _reset(self) -> None:
        self._state = DragState.IDLE
        self._dragged_id = None
