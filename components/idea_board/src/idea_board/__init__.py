"""Idea board core: snapshot cache, reconciliation, drag-and-drop and filtering."""

from idea_board.actions import IdeaActions, IdeaDetails
from idea_board.auth import AuthFlow, RecoveryTokens, parse_recovery_link
from idea_board.cache import BoardStateCache, Snapshot
from idea_board.errors import BoardError, NotAuthorizedError, NotSignedInError, ValidationError
from idea_board.filters import filter_ideas, group_by_column
from idea_board.reconcile import ReconciliationLoop
from idea_board.reorder import DragState, Move, ReorderResolver, resolve_target
from idea_board.session import BoardSession, Notice

__all__ = [
    "AuthFlow",
    "BoardError",
    "BoardSession",
    "BoardStateCache",
    "DragState",
    "IdeaActions",
    "IdeaDetails",
    "Move",
    "Notice",
    "NotAuthorizedError",
    "NotSignedInError",
    "ReconciliationLoop",
    "RecoveryTokens",
    "ReorderResolver",
    "Snapshot",
    "ValidationError",
    "filter_ideas",
    "group_by_column",
    "parse_recovery_link",
    "resolve_target",
]
