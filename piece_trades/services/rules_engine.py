# piece_trades/services/rules_engine.py
"""
Provides the `python-chess` implementation of the `RulesEngine` protocol.

This adapter is an Anti-Corruption Layer: it reads PGN text with
`chess.pgn.read_game`, walks the main line, and translates every move into the
`PlayedMove` contract the annotation core works with. It never raises on bad
input; a record it cannot use is reported as `None`.
"""
import io
from typing import List, Optional

import chess
import chess.pgn
import structlog

from piece_trades.types import FEN, LoadedGame, PlayedMove

logger = structlog.get_logger(__name__)


def _describe_move(board: chess.Board, move: chess.Move) -> PlayedMove:
    """Builds a `PlayedMove` for `move`, which must be legal on `board` (before it is pushed)."""
    return PlayedMove(
        san=board.san(move),
        color=board.turn,
        piece_type=board.piece_type_at(move.from_square),
        from_square=move.from_square,
        to_square=move.to_square,
        captured=board.is_capture(move),
    )


class PythonChessRulesEngine:
    """A stateless rules engine backed by `python-chess`."""

    def load(self, pgn_text: str) -> Optional[LoadedGame]:
        """
        Loads a single game's main line.

        SAN parsing in `python-chess` accepts redundant disambiguation and
        other common sloppiness. Any error collected by the reader (illegal or
        ambiguous move, broken FEN set-up) makes the record unusable.

        Args:
            pgn_text: Complete PGN text of one game.

        Returns:
            A `LoadedGame`, or None if the text could not be read cleanly.
        """
        try:
            game = chess.pgn.read_game(io.StringIO(pgn_text))
        except (ValueError, RuntimeError) as e:
            logger.warning("PGN reader failed.", error=str(e))
            return None

        if game is None:
            logger.warning("PGN text contains no game.")
            return None
        if game.errors:
            logger.warning("PGN reader reported errors.", errors=[str(e) for e in game.errors])
            return None

        try:
            starting_board = game.board()
        except ValueError as e:
            logger.warning("Invalid starting position.", error=str(e))
            return None

        board = starting_board.copy()
        moves: List[PlayedMove] = []
        for node in game.mainline():
            moves.append(_describe_move(board, node.move))
            board.push(node.move)

        return LoadedGame(starting_board=starting_board, moves=moves, final_position=self.position_key(board))

    def apply_move(self, board: chess.Board, move: PlayedMove) -> Optional[PlayedMove]:
        """
        Plays `move` (by its SAN) on `board` in place.

        Returns:
            The move as actually made, or None if it is not legal on `board`.
        """
        try:
            parsed = board.parse_san(move.san)
        except ValueError:
            return None
        made = _describe_move(board, parsed)
        board.push(parsed)
        return made

    def position_key(self, board: chess.Board) -> FEN:
        """The canonical, complete position string used for equality checks."""
        return board.fen()
