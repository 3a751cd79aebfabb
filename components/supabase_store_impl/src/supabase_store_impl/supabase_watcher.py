"""Polling change feed for the Supabase store.

Every tick reads the full rows of each watched table, fingerprints each row,
compares the fingerprints with the previous tick and delivers one ChangeEvent
per inserted, updated or deleted row. The first tick only records a baseline.
"""
from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from idea_board_interface.records import ChangeEvent, ChangeKind, Table
from idea_board_interface.store import StoreError, Subscription

if TYPE_CHECKING:
    from idea_board_interface.store import RemoteStore

logger = logging.getLogger(__name__)


def row_version(row: dict[str, Any]) -> str:
    """Fingerprint of every column of a row.

    Timestamps alone are not enough: a PATCH that leaves ``updated_at`` alone
    (a move between columns, say) still has to surface as an UPDATE.
    """
    return json.dumps(row, sort_keys=True, default=str)


def diff_versions(table: Table, previous: dict[str, str], current: dict[str, str]) -> list[ChangeEvent]:
    """Return the events that turn ``previous`` into ``current``."""
    events: list[ChangeEvent] = []
    for record_id, version in current.items():
        if record_id not in previous:
            events.append(ChangeEvent(table, ChangeKind.INSERT, record_id))
        elif previous[record_id] != version:
            events.append(ChangeEvent(table, ChangeKind.UPDATE, record_id))
    for record_id in previous:
        if record_id not in current:
            events.append(ChangeEvent(table, ChangeKind.DELETE, record_id))
    return events


class PollingSubscription(Subscription):
    """
    Args:
        store:    Store the rows are read from
        tables:   Record sets to watch
        callback: Called with every ChangeEvent, on the polling thread
        interval: Seconds between two ticks
    """

    def __init__(
        self,
        store: RemoteStore,
        tables: Iterable[Table],
        callback: Callable[[ChangeEvent], None],
        *,
        interval: float = 2.0,
    ) -> None:
        self._store = store
        self._tables = tuple(Table(t) for t in tables)
        self._callback = callback
        self._interval = interval
        self._versions: dict[Table, dict[str, str]] = {}
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def active(self) -> bool:
        return self._thread is not None and not self._stopped.is_set()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="supabase-change-feed", daemon=True)
        self._thread.start()

    def unsubscribe(self) -> None:
        #no join: a hung request would block the caller, late results are dropped instead
        self._stopped.set()

    def _run(self) -> None:
        while not self._stopped.is_set():
            self.poll_once()
            self._stopped.wait(self._interval)

    def poll_once(self) -> list[ChangeEvent]:
        """Run a single tick and return the events it delivered."""
        events: list[ChangeEvent] = []
        for table in self._tables:
            try:
                rows = self._store.select(table, columns="*")
            except StoreError as exc:
                logger.warning("change feed poll of %s failed: %s", table.value, exc)
                continue
            current = {str(row["id"]): row_version(row) for row in rows}
            previous = self._versions.get(table)
            self._versions[table] = current
            if previous is None:
                continue
            events.extend(diff_versions(table, previous, current))

        delivered: list[ChangeEvent] = []
        for event in events:
            if self._stopped.is_set():
                break
            self._dispatch(event)
            delivered.append(event)
        return delivered

    def _dispatch(self, event: ChangeEvent) -> None:
        logger.debug("change on %s: %s %s", event.table.value, event.kind.value, event.record_id)
        try:
            self._callback(event)
        except Exception:
            logger.exception("change feed callback failed for %s", event)
