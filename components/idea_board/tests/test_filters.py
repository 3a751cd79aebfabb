"""Unit tests for the filter view."""

import pytest

from idea_board.filters import filter_ideas, group_by_column, matches_query
from idea_board_interface.records import Column, Idea


@pytest.fixture
def ideas():
    return [
        Idea(id="1", title="Add login", creator_id="u1", column_id="backlog", position_in_column=0,
             description="Email and password"),
        Idea(id="2", title="Dark mode", creator_id="u2", column_id="backlog", position_in_column=1),
        Idea(id="3", title="Export CSV", creator_id="u2", column_id="done", position_in_column=0,
             description="Download the board as a LOGIN report"),
    ]


def test_empty_query_and_no_column_returns_everything_in_order(ideas):
    assert filter_ideas(ideas) == ideas
    assert filter_ideas(ideas, "", None) == ideas


def test_query_is_case_insensitive_on_title_or_description(ideas):
    result = filter_ideas(ideas, "LoGiN")

    # "Add login" matches on the title, "Export CSV" on the description
    assert [i.id for i in result] == ["1", "3"]


def test_missing_description_does_not_match(ideas):
    assert filter_ideas(ideas, "password") == [ideas[0]]
    assert not matches_query(ideas[1], "password")


def test_column_filter(ideas):
    assert [i.id for i in filter_ideas(ideas, column_id="backlog")] == ["1", "2"]


def test_query_and_column_combine(ideas):
    assert [i.id for i in filter_ideas(ideas, "login", "done")] == ["3"]


def test_filter_is_idempotent_and_does_not_mutate_input(ideas):
    original = list(ideas)

    once = filter_ideas(ideas, "o")
    twice = filter_ideas(once, "o")

    assert once == twice
    assert ideas == original


def test_group_by_column_keeps_every_column():
    columns = [Column("backlog", "Backlog", 0), Column("doing", "Doing", 1)]
    ideas = [
        Idea(id="1", title="a", creator_id="u", column_id="backlog", position_in_column=0),
        Idea(id="2", title="b", creator_id="u", column_id="gone", position_in_column=0),
    ]

    grouped = group_by_column(columns, ideas)

    assert list(grouped) == ["backlog", "doing"]
    assert [i.id for i in grouped["backlog"]] == ["1"]
    assert grouped["doing"] == []
