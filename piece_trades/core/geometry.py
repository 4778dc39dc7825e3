# piece_trades/core/geometry.py
"""
Provides pure, stateless board-geometry helpers built on `python-chess` bitboards.

These are the counting primitives of the feature scorer (attackers, defenders,
mobility, edge squares, pawns on a square colour) plus two small knight-geometry
utilities: `forkable`, which tells whether a single knight square can hit two
given squares, and `bitboard_to_ascii`, a debugging renderer for masks.
"""

from typing import Final, Optional

import chess
import structlog

logger = structlog.get_logger(__name__)

EDGE_SQUARES: Final[chess.Bitboard] = chess.BB_FILE_A | chess.BB_FILE_H | chess.BB_RANK_1 | chess.BB_RANK_8


def parse_square(name: str) -> chess.Square:
    """Converts a square name such as 'e4' into a square index."""
    if not isinstance(name, str) or len(name) != 2:
        raise ValueError(f"Invalid square: {name!r}")
    try:
        return chess.parse_square(name)
    except ValueError:
        raise ValueError(f"Invalid square: {name!r}") from None

def is_edge_square(square: chess.Square) -> bool:
    return bool(chess.BB_SQUARES[square] & EDGE_SQUARES)

def square_color_name(square: chess.Square) -> str:
    return "dark" if chess.BB_SQUARES[square] & chess.BB_DARK_SQUARES else "light"

def count_attackers(board: chess.Board, square: chess.Square, color: chess.Color) -> int:
    """
    Counts the pieces of `color` that attack `square`.

    Sliding pieces only count when the ray between them and the square is
    empty. Pins and legality are ignored, as for a human counting attackers.
    """
    return len(board.attackers(color, square))

def count_mobility(board: chess.Board, square: chess.Square) -> int:
    """
    Counts the squares the piece on `square` reaches that are not occupied by
    its own side. A ray stops at the first piece; an enemy blocker is counted.
    """
    piece = board.piece_at(square)
    if piece is None:
        return 0
    return len(board.attacks(square) & ~chess.SquareSet(board.occupied_co[piece.color]))

def count_pawns_on_color(board: chess.Board, color: chess.Color, square_color: str) -> int:
    """Counts `color`'s pawns on 'dark' or 'light' squares."""
    mask = chess.BB_DARK_SQUARES if square_color == "dark" else chess.BB_LIGHT_SQUARES
    return len(board.pieces(chess.PAWN, color) & chess.SquareSet(mask))


# --- Knight geometry ---

def forkable(square_a: str, square_b: str, verbose: bool = False) -> bool:
    """
    Tells whether some square is a knight's step away from both given squares.

    Args:
        square_a: The first target square name, e.g. 'c3'.
        square_b: The second target square name.
        verbose: When True, the masks involved are logged as ASCII boards.

    Returns:
        True if the knight-attack masks of the two squares intersect.

    Raises:
        ValueError: If either square name is invalid.
    """
    a = parse_square(square_a)
    b = parse_square(square_b)
    mask_a = chess.BB_KNIGHT_ATTACKS[a]
    mask_b = chess.BB_KNIGHT_ATTACKS[b]
    intersection = mask_a & mask_b

    if verbose:
        logger.info(
            "Knight fork geometry.",
            square_a=square_a, square_b=square_b, forkable=bool(intersection),
            attacks_a=bitboard_to_ascii(mask_a, label=f"Knight attacks from {square_a}"),
            attacks_b=bitboard_to_ascii(mask_b, label=f"Knight attacks from {square_b}"),
            intersection=bitboard_to_ascii(intersection, label="Intersection (A & B)"),
        )
    return intersection != 0

def bitboard_to_ascii(mask: chess.Bitboard, label: Optional[str] = None) -> str:
    """Renders a bitboard with ranks 8..1 top to bottom and files a..h left to right."""
    lines = [label] if label else []
    lines.append("    a b c d e f g h")
    lines.append("  +-----------------+")
    for rank in range(7, -1, -1):
        cells = " ".join(
            "1" if mask & chess.BB_SQUARES[chess.square(file, rank)] else "."
            for file in range(8)
        )
        lines.append(f"{rank + 1} | {cells} |")
    lines.append("  +-----------------+")
    return "\n".join(lines)
