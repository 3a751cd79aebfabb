"""Errors raised by the board layer before or instead of a remote call."""


class BoardError(Exception):
    """Base exception for board operations."""


class ValidationError(BoardError):
    """Raised when user input is rejected before any remote call (empty title, short password...)."""


class NotSignedInError(BoardError):
    """Raised when an operation needs a signed in viewer and there is none."""


class NotAuthorizedError(BoardError):
    """Raised when the viewer may not change the record (e.g. editing someone else's idea)."""
