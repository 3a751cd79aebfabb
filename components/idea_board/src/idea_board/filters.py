"""Filter view over the cached ideas. Pure functions, no side effects."""
from __future__ import annotations

from collections.abc import Iterable

from idea_board_interface.records import Column, Idea


def matches_query(idea: Idea, query: str) -> bool:
    """Case-insensitive substring match on title or description."""
    if not query:
        return True
    needle = query.lower()
    return needle in idea.title.lower() or (bool(idea.description) and needle in idea.description.lower())


def filter_ideas(ideas: Iterable[Idea], query: str = "", column_id: str | None = None) -> list[Idea]:
    """Return the ideas matching ``query`` and, when set, belonging to ``column_id``, in input order."""
    return [
        idea for idea in ideas
        if matches_query(idea, query) and (not column_id or idea.column_id == column_id)
    ]


def group_by_column(columns: Iterable[Column], ideas: Iterable[Idea]) -> dict[str, list[Idea]]:
    """Split ideas per column for rendering. Every column gets an entry, even an empty one."""
    grouped: dict[str, list[Idea]] = {column.id: [] for column in columns}
    for idea in ideas:
        if idea.column_id in grouped:
            grouped[idea.column_id].append(idea)
    return grouped
