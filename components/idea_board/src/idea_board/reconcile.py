"""Reconciliation loop: refetch the whole board on any change notification."""
from __future__ import annotations

import logging
from collections.abc import Callable

from idea_board_interface.records import ChangeEvent, Table
from idea_board_interface.store import RemoteStore, StoreError, Subscription

from idea_board.cache import BoardStateCache, Snapshot

logger = logging.getLogger(__name__)

WATCHED_TABLES: frozenset[Table] = frozenset({Table.IDEAS, Table.VOTES, Table.COMMENTS})


class ReconciliationLoop:
    """Keeps a BoardStateCache in step with the store for as long as it runs.

    The event payload is never inspected: every insert, update or delete on a
    watched table triggers its own full refresh. Refreshes are neither coalesced
    nor serialized, so the last one to complete decides the snapshot.

    Use as a context manager to tie the subscription to a scope::

        with ReconciliationLoop(store, cache):
            ...
    """

    def __init__(
        self,
        store: RemoteStore,
        cache: BoardStateCache,
        *,
        on_refresh: Callable[[Snapshot], None] | None = None,
        on_error: Callable[[StoreError], None] | None = None,
    ) -> None:
        self._store = store
        self._cache = cache
        self._on_refresh = on_refresh
        self._on_error = on_error
        self._subscription: Subscription | None = None

    @property
    def running(self) -> bool:
        return self._subscription is not None

    def start(self) -> None:
        if self._subscription is not None:
            return
        self._subscription = self._store.subscribe(WATCHED_TABLES, self._on_change)
        logger.debug("reconciliation started on %s", sorted(t.value for t in WATCHED_TABLES))

    def stop(self) -> None:
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.unsubscribe()
            logger.debug("reconciliation stopped")

    def __enter__(self) -> ReconciliationLoop:
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def _on_change(self, event: ChangeEvent) -> None:
        subscription = self._subscription
        if subscription is None:
            return
        logger.debug("%s on %s, refreshing board", event.kind.value, event.table.value)
        try:
            snapshot = self._cache.refresh()
        except StoreError as exc:
            logger.warning("refresh after %s on %s failed: %s", event.kind.value, event.table.value, exc)
            if self._on_error is not None and self._subscription is subscription:
                self._on_error(exc)
            return
        #stopped (or restarted) while refreshing: the outcome belongs to a closed run
        if self._subscription is not subscription:
            logger.debug("reconciliation stopped during refresh, dropping result")
            return
        if self._on_refresh is not None:
            self._on_refresh(snapshot)
