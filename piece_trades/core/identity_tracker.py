# piece_trades/core/identity_tracker.py
"""
Gives durable labels to the knights and bishops of a game and follows them.

Labels are assigned once from the starting position (`N1 N2 B1 B2` for White,
`n1 n2 b1 b2` for Black) and are then moved along with their piece as moves
are replayed. A label is dropped for good when a capture lands on its square.
Only two pieces per colour and type are ever tracked; a third knight or bishop
(for instance from an underpromotion) stays unlabelled.
"""
from collections import OrderedDict
from typing import Dict, List, Optional

import chess
import structlog

from piece_trades.types import LABEL_ORDER, Label, PieceIdentity, PieceTag, PlayedMove
from piece_trades.utils.metrics import TRACKING_MISSES_TOTAL

logger = structlog.get_logger(__name__)

_TRACKED_TYPES = (chess.KNIGHT, chess.BISHOP)
_SLOT_PREFIXES: Dict[tuple, str] = {
    (chess.WHITE, chess.KNIGHT): "N", (chess.WHITE, chess.BISHOP): "B",
    (chess.BLACK, chess.KNIGHT): "n", (chess.BLACK, chess.BISHOP): "b",
}
_SLOTS_PER_GROUP = 2


class IdentityTracker:
    """Owns the label -> identity map for one annotation run."""

    def __init__(self) -> None:
        self._identities: "OrderedDict[Label, PieceIdentity]" = OrderedDict()

    @classmethod
    def from_board(cls, board: chess.Board) -> "IdentityTracker":
        tracker = cls()
        tracker.initialize(board)
        return tracker

    def initialize(self, board: chess.Board) -> Dict[Label, PieceIdentity]:
        """
        Labels the minor pieces of `board`.

        Each (colour, type) group is sorted by square name and the first two
        receive slots 1 and 2. The assignment depends only on the position.

        Args:
            board: The starting position of the game.

        Returns:
            The label -> identity map, in fixed label order.
        """
        assigned: Dict[Label, PieceIdentity] = {}
        for (color, piece_type), prefix in _SLOT_PREFIXES.items():
            squares = sorted(board.pieces(piece_type, color), key=chess.square_name)
            for slot, square in enumerate(squares[:_SLOTS_PER_GROUP], start=1):
                label = f"{prefix}{slot}"
                assigned[label] = PieceIdentity(
                    label=label, color=color, piece_type=piece_type,
                    square=square, last_tag=PieceTag.NEUTRAL,
                )
            if len(squares) > _SLOTS_PER_GROUP:
                logger.info(
                    "Extra minor pieces are not tracked.",
                    group=prefix, untracked=[chess.square_name(sq) for sq in squares[_SLOTS_PER_GROUP:]],
                )

        self._identities = OrderedDict((label, assigned[label]) for label in LABEL_ORDER if label in assigned)
        logger.debug(
            "Initialized tracked minors.",
            identities={label: chess.square_name(i.square) for label, i in self._identities.items()},
        )
        return dict(self._identities)

    def apply(self, move: PlayedMove, ply: Optional[int] = None) -> None:
        """
        Updates identities for one replayed move. Never raises.

        A capture removes whatever identity sits on the destination square,
        whatever piece made the capture. A knight or bishop move relocates the
        identity of the same colour and type found on the origin square; if
        none is found (already captured, or never tracked) the move is skipped.
        """
        if move.captured:
            victim = self.identity_at(move.to_square)
            if victim is not None:
                del self._identities[victim.label]
                logger.info(
                    "Captured tracked minor.",
                    label=victim.label, square=chess.square_name(move.to_square), ply=ply,
                )

        if move.piece_type not in _TRACKED_TYPES:
            return

        for identity in self._identities.values():
            if (identity.square == move.from_square
                    and identity.piece_type == move.piece_type
                    and identity.color == move.color):
                identity.square = move.to_square
                return

        TRACKING_MISSES_TOTAL.inc()
        logger.warning(
            "Moving minor piece is not tracked.",
            san=move.san, origin=chess.square_name(move.from_square),
            destination=chess.square_name(move.to_square), ply=ply,
        )

    def identity_at(self, square: chess.Square) -> Optional[PieceIdentity]:
        for identity in self._identities.values():
            if identity.square == square:
                return identity
        return None

    def get(self, label: Label) -> Optional[PieceIdentity]:
        return self._identities.get(label)

    def live_identities(self) -> List[PieceIdentity]:
        """Returns the live identities in fixed label order."""
        return list(self._identities.values())

    def __len__(self) -> int:
        return len(self._identities)

    def __contains__(self, label: object) -> bool:
        return label in self._identities
