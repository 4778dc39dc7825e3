# tests/test_evaluators.py
import io

import chess.pgn
import pytest

from piece_trades.evaluators import EVALUATORS, get_evaluator

GAME = '[Event "Club"]\n[Result "*"]\n\n1. e4 e5 2. Nf3 Nc6 3. Bb5 *'


def test_registry_ids():
    assert [entry.id for entry in EVALUATORS] == ["mock", "piecetrades"]

def test_unknown_evaluator_raises():
    with pytest.raises(KeyError):
        get_evaluator("stockfish")


class TestMockEvaluator:
    def test_adds_fixed_comments_and_directives(self):
        text = get_evaluator("mock").run(GAME)

        assert text.startswith('[Event "Evaluated (mock)"]\n[Result "*"]\n[Annotator "piece-trades eval: mock"]\n\n')
        assert "{ [%csl Re4,Yd4] [%cal Ge2e4] } 1. e4 { mock: develop minors; avoid rim knights } e5" in text
        assert "Nc6 { mock: before trading minors, ask who gains activity or structure } 3. Bb5" in text
        assert text.endswith(" *\n")

    def test_output_stays_loadable(self):
        text = get_evaluator("mock").run(GAME)
        game = chess.pgn.read_game(io.StringIO(text))
        assert len(list(game.mainline_moves())) == 5

    def test_one_move_game_gets_only_first_comment(self):
        text = get_evaluator("mock").run("1. d4 *")
        assert "mock: develop minors" in text
        assert "before trading minors" not in text

    def test_second_move_without_black_reply(self):
        text = get_evaluator("mock").run("1. d4 d5 2. c4 *")
        assert "c4 { mock: before trading minors" in text


def test_piece_trades_evaluator_annotates():
    text = get_evaluator("piecetrades").run(GAME)
    assert "[%csl " in text
    assert text.endswith(" *\n")
