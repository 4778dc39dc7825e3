# tests/core/test_position_query.py
import pytest

from piece_trades.core.position_query import (PositionQuery, count_matched_preconditions,
                                              match_preconditions)
from piece_trades.exceptions import QueryError

GREEK_GIFT = {
    "name": "greek-gift-preconditions",
    "predicates": [
        {"op": "at", "piece": {"ref": "Bd3"}},
        {"op": "at", "piece": {"ref": "Ng5"}},
        {"op": "attacks", "attacker": {"ref": "Ng5"}, "target": {"ref": "ph7"}},
        {"op": "attacks", "attacker": {"ref": "Bd3"}, "target": {"ref": "ph7"}},
    ],
}

SET_UP = "r1bqkbnr/pppppppp/2n5/6N1/8/3B4/PPPPPPPP/RNBQK2R b KQkq - 0 1"
NOT_YET = "r1bqkbnr/pppppppp/2n5/8/8/3B1N2/PPPPPPPP/RNBQK2R b KQkq - 0 1"


def test_all_preconditions_hold():
    assert count_matched_preconditions(SET_UP, GREEK_GIFT) == 4

def test_partial_match_reports_each_predicate():
    report = match_preconditions(NOT_YET, GREEK_GIFT)
    assert report.count == 2
    assert [r.matched for r in report.results] == [True, False, False, True]
    assert [r.op for r in report.results] == ["at", "at", "attacks", "attacks"]

def test_assert_false_negates():
    query = {"predicates": [{"op": "at", "piece": {"ref": "Ng5"}, "assert": False}]}
    assert count_matched_preconditions(NOT_YET, query) == 1
    assert count_matched_preconditions(SET_UP, query) == 0

def test_attacks_requires_both_pieces_present():
    query = {"predicates": [{"op": "attacks", "attacker": {"ref": "Bd3"}, "target": {"ref": "nh7"}}]}
    assert count_matched_preconditions(SET_UP, query) == 0

def test_unknown_op_and_malformed_refs_never_match():
    query = {"predicates": [
        {"op": "pins", "piece": {"ref": "Bd3"}},
        {"op": "at", "piece": {"ref": "B"}},
        {"op": "at", "piece": {"ref": "Xd3"}},
        {"op": "at"},
    ]}
    assert count_matched_preconditions(SET_UP, query) == 0

def test_accepts_model_instances():
    query = PositionQuery.model_validate(GREEK_GIFT)
    assert count_matched_preconditions(SET_UP, query) == 4

def test_malformed_query_raises():
    with pytest.raises(QueryError):
        count_matched_preconditions(SET_UP, {"predicates": "at Bd3"})

def test_invalid_fen_raises():
    with pytest.raises(QueryError):
        count_matched_preconditions("not a fen", GREEK_GIFT)


class TestAttacksIsALegalCapture:
    def test_own_piece_is_never_attacked(self):
        query = {"predicates": [{"op": "attacks", "attacker": {"ref": "Nf3"}, "target": {"ref": "Pe5"}}]}
        assert count_matched_preconditions("4k3/8/8/4P3/8/5N2/8/4K3 w - - 0 1", query) == 0

    def test_enemy_piece_in_reach_is_attacked(self):
        query = {"predicates": [{"op": "attacks", "attacker": {"ref": "Nf3"}, "target": {"ref": "pe5"}}]}
        assert count_matched_preconditions("4k3/8/8/4p3/8/5N2/8/4K3 w - - 0 1", query) == 1

    def test_pinned_attacker_does_not_attack(self):
        # Ne2 is pinned to the king by the rook on e8.
        query = {"predicates": [{"op": "attacks", "attacker": {"ref": "Ne2"}, "target": {"ref": "pd4"}}]}
        assert count_matched_preconditions("4r1k1/8/8/8/3p4/8/4N3/4K3 w - - 0 1", query) == 0
        assert count_matched_preconditions("6k1/8/8/8/3p4/8/4N3/4K3 w - - 0 1", query) == 1

    def test_attacker_side_is_judged_whoever_is_to_move(self):
        query = {"predicates": [{"op": "attacks", "attacker": {"ref": "Nf3"}, "target": {"ref": "pe5"}}]}
        assert count_matched_preconditions("4k3/8/8/4p3/8/5N2/8/4K3 b - - 0 1", query) == 1
        pinned = {"predicates": [{"op": "attacks", "attacker": {"ref": "Ne2"}, "target": {"ref": "pd4"}}]}
        assert count_matched_preconditions("4r1k1/8/8/8/3p4/8/4N3/4K3 b - - 0 1", pinned) == 0
