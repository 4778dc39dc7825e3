# piece_trades/exceptions.py
"""
Defines custom exceptions for the piece-trades annotator.

Centralizing exceptions in this module prevents circular dependencies between
the text model, the driver and the rules-engine adapter. All of them derive
from `PieceTradesError`; the driver converts every one of them into a
best-effort annotated result rather than letting them escape `run`.
"""

from typing import Optional


class PieceTradesError(Exception):
    """Base class for all application-specific, catchable errors."""
    pass


class PgnError(PieceTradesError):
    """Base class for errors related to PGN (Portable Game Notation) handling."""
    pass


class PgnParsingError(PgnError):
    """
    Raised when the input record cannot be loaded by the rules engine.

    The driver answers this with a fixed-shape diagnostic record instead of an
    annotated game.
    """
    pass


class ReplayError(PieceTradesError):
    """Base class for errors raised while replaying a loaded game."""
    pass


class ReplayDesyncError(ReplayError):
    """
    Raised when a historical move fails to reapply on the private board.

    Attributes:
        ply: The 1-based ply that could not be replayed.
        san: The move text of that ply, if known.
    """
    def __init__(self, message: str, ply: int, san: Optional[str] = None):
        super().__init__(message)
        self.ply = ply
        self.san = san


class QueryError(PieceTradesError):
    """Raised when a position precondition query is malformed."""
    pass
