# tests/core/test_geometry.py
import chess
import pytest

from piece_trades.core import geometry


@pytest.mark.parametrize("square_a, square_b, expected", [
    ("c3", "e3", True),
    ("d4", "e1", True),
    ("b1", "g2", False),
    ("a1", "h8", False),
])
def test_forkable(square_a, square_b, expected):
    assert geometry.forkable(square_a, square_b) is expected

def test_forkable_is_symmetric():
    assert geometry.forkable("e1", "d4") == geometry.forkable("d4", "e1")

def test_forkable_verbose_still_answers():
    assert geometry.forkable("c3", "e3", verbose=True) is True

@pytest.mark.parametrize("bad", ["z9", "e44", "", "e0"])
def test_invalid_square_raises(bad):
    with pytest.raises(ValueError):
        geometry.forkable(bad, "e4")

def test_bitboard_to_ascii_layout():
    text = geometry.bitboard_to_ascii(chess.BB_A1 | chess.BB_H8, label="corners")
    lines = text.splitlines()

    assert lines[0] == "corners"
    assert lines[1] == "    a b c d e f g h"
    assert lines[3] == "8 | . . . . . . . 1 |"
    assert lines[10] == "1 | 1 . . . . . . . |"
    assert lines[-1] == "  +-----------------+"

def test_edge_and_colour_helpers():
    assert geometry.is_edge_square(chess.A4)
    assert geometry.is_edge_square(chess.E8)
    assert not geometry.is_edge_square(chess.E4)
    assert geometry.square_color_name(chess.A1) == "dark"
    assert geometry.square_color_name(chess.B1) == "light"

def test_counting_primitives_on_start_position():
    board = chess.Board()
    assert geometry.count_attackers(board, chess.B1, chess.WHITE) == 1
    assert geometry.count_attackers(board, chess.B1, chess.BLACK) == 0
    assert geometry.count_mobility(board, chess.G1) == 2
    assert geometry.count_mobility(board, chess.E4) == 0
    assert geometry.count_pawns_on_color(board, chess.WHITE, "dark") == 4
    assert geometry.count_pawns_on_color(board, chess.BLACK, "light") == 4

def test_mobility_counts_enemy_blocker_but_not_beyond():
    board = chess.Board("4k3/8/8/8/p7/8/8/4KB2 w - - 0 1")
    # Bf1: g2, h3, e2, d3, c4, b5, a6 (no own blockers)
    assert geometry.count_mobility(board, chess.F1) == 7
    board = chess.Board("4k3/8/8/8/8/3p4/8/4KB2 w - - 0 1")
    # Bf1: g2, h3, e2, d3 (enemy pawn counted, ray stops)
    assert geometry.count_mobility(board, chess.F1) == 4
