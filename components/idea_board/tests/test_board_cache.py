"""Unit tests for the board state cache."""

import pytest

from idea_board.cache import BoardStateCache, Snapshot
from idea_board_interface.records import Table
from idea_board_interface.store import StoreError


@pytest.fixture
def cache(board_store):
    return BoardStateCache(board_store)


def test_snapshot_is_empty_before_first_refresh(cache):
    snapshot = cache.get_snapshot()

    assert snapshot.columns == ()
    assert snapshot.ideas == ()
    assert snapshot.fetched_at is None


def test_refresh_orders_columns_and_ideas(board_store, cache):
    # Setup: seed a column out of order
    board_store.seed(Table.COLUMNS, id="ideas", name="Ideas", position=-1)

    snapshot = cache.refresh()

    assert [c.id for c in snapshot.columns] == ["ideas", "backlog", "doing", "done"]
    assert [i.position_in_column for i in snapshot.ideas] == sorted(i.position_in_column for i in snapshot.ideas)
    assert cache.get_snapshot() is snapshot


def test_vote_count_and_user_has_voted(board_store, cache):
    # Setup: two votes on i1 (one by the viewer), one vote on i2 by someone else
    board_store.seed(Table.VOTES, user_id="u1", idea_id="i1")
    board_store.seed(Table.VOTES, user_id="u2", idea_id="i1")
    board_store.seed(Table.VOTES, user_id="u2", idea_id="i2")

    snapshot = cache.refresh()

    i1, i2, i3 = snapshot.idea("i1"), snapshot.idea("i2"), snapshot.idea("i3")
    assert (i1.vote_count, i1.user_has_voted) == (2, True)
    assert (i2.vote_count, i2.user_has_voted) == (1, False)
    assert (i3.vote_count, i3.user_has_voted) == (0, False)


def test_comment_count_and_creator(board_store, cache):
    board_store.seed(Table.COMMENTS, content="Nice", user_id="u2", idea_id="i1")
    board_store.seed(Table.COMMENTS, content="Agreed", user_id="u1", idea_id="i1")

    idea = cache.refresh().idea("i1")

    assert idea.comment_count == 2
    assert [c.content for c in idea.comments] == ["Nice", "Agreed"]
    assert idea.comments[0].user.name == "Bruno"
    assert idea.creator.name == "Ana"


def test_user_has_voted_is_false_when_signed_out(board_store, cache):
    board_store.seed(Table.VOTES, user_id="u1", idea_id="i1")
    board_store.sign_out()

    idea = cache.refresh().idea("i1")

    assert idea.vote_count == 1
    assert idea.user_has_voted is False


def test_failed_refresh_keeps_previous_snapshot(board_store, cache):
    before = cache.refresh()
    board_store.fail_on.add("select")

    with pytest.raises(StoreError):
        cache.refresh()

    assert cache.get_snapshot() is before


def test_clear_discards_snapshot(cache):
    cache.refresh()

    cache.clear()

    assert cache.get_snapshot().ideas == ()


def test_clear_during_refresh_discards_result(board_store, cache):
    # Setup: the board is cleared while the last read of a refresh is in flight
    select = board_store.select

    def select_then_clear(table, **kwargs):
        rows = select(table, **kwargs)
        if table is Table.PROFILES:
            cache.clear()
        return rows

    board_store.select = select_then_clear

    # Act:
    result = cache.refresh()

    # Assert: the fetched board never replaces the cleared one
    assert result.ideas == ()
    assert cache.get_snapshot().ideas == ()

    board_store.select = select
    assert len(cache.refresh().ideas) == 3


def test_snapshot_lookups():
    snapshot = Snapshot()

    assert snapshot.idea("missing") is None
    assert snapshot.column("missing") is None
    assert not snapshot.has_column("missing")
    assert snapshot.ideas_in("missing") == []


def test_ideas_in_counts_cached_ideas(cache):
    snapshot = cache.refresh()

    assert [i.id for i in snapshot.ideas_in("backlog")] == ["i1", "i2"]
    assert snapshot.ideas_in("doing") == []
