"""Exceptions raised inside the split/join engine.

None of these cross the public boundary of :class:`piecesplit.engine.PieceEngine`;
they are converted into the terminal status snapshot instead.
"""

from __future__ import annotations

__all__ = [
    "PieceError",
    "PreconditionError",
    "PieceSequenceError",
    "PieceSizeError",
    "OperationCancelled",
]


class PieceError(Exception):
    """Base class for split/join failures."""


class PreconditionError(PieceError):
    """Raised when an operation is rejected before any output is written."""


class PieceSequenceError(PreconditionError):
    """Raised when a piece folder is not a contiguous, correctly named set."""

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(f"Invalid piece set. Expected ({expected}), got ({actual})")
        self.expected = expected
        self.actual = actual


class PieceSizeError(PieceError):
    """Raised when a piece's on-disk size is out of bounds during a join."""


class OperationCancelled(PieceError):
    """Raised at a piece boundary once the cancel token is set."""

    def __init__(self) -> None:
        super().__init__("Operation cancelled.")
