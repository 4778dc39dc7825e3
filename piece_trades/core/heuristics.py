# piece_trades/core/heuristics.py
"""
Contains the concrete `Heuristic` rules of the minor-piece scoring chain.

Each rule is a single, composable step adhering to the `Heuristic` protocol
in `types.py`: it reads the `ScoringContext`, adjusts the running score and
appends exactly one reason to the `FeatureReport`. Rules never short-circuit
each other; the chain order is part of the scoring contract, so the reason
list reads the same way for every piece and every ply.
"""

from dataclasses import replace
from typing import TYPE_CHECKING

import chess

from piece_trades.core import geometry
from piece_trades.types import Heuristic

if TYPE_CHECKING:
    from piece_trades.types import FeatureReport, ScoringContext


def _adjust(report: "FeatureReport", delta: int, reason: str) -> "FeatureReport":
    return replace(report, score=report.score + delta, reasons=report.reasons + (reason,))


class LooseHeuristic(Heuristic):
    """Heavily penalizes a piece attacked more often than it is defended."""
    def apply(self, context: "ScoringContext", report: "FeatureReport") -> "FeatureReport":
        att, dfn = context.attackers, context.defenders
        if att >= dfn + 1:
            return _adjust(
                report, -context.settings.loose_penalty,
                f"LOOSE: attacked {att}, defended {dfn}; a tactical liability the opponent can often trade or win.",
            )
        return _adjust(report, 0, f"Not loose: attacked {att}, defended {dfn}.")


class TensionHeuristic(Heuristic):
    """Any direct attack means a trade can happen without further preparation."""
    def apply(self, context: "ScoringContext", report: "FeatureReport") -> "FeatureReport":
        s = context.settings
        if context.attackers > 0:
            return _adjust(report, -s.tension_penalty, "TENSION: currently attacked; trades can happen naturally.")
        return _adjust(report, s.no_pressure_bonus, "No direct pressure; the opponent must spend time to trade it.")


class StabilityHeuristic(Heuristic):
    """Rewards a defended piece that is not heavily challenged."""
    def apply(self, context: "ScoringContext", report: "FeatureReport") -> "FeatureReport":
        att, dfn = context.attackers, context.defenders
        if dfn >= 1 and att <= 1:
            return _adjust(
                report, context.settings.stability_bonus,
                "STABLE: defended and not heavily challenged; the piece can stay and keep its influence.",
            )
        return _adjust(report, 0, f"Not stable by this test (def={dfn}, att={att}).")


class BadBishopHeuristic(Heuristic):
    """
    Penalizes a bishop hemmed in by its own pawns on its square colour.

    Knights pass through this rule unchanged.
    """
    def apply(self, context: "ScoringContext", report: "FeatureReport") -> "FeatureReport":
        identity = context.identity
        if identity.piece_type != chess.BISHOP:
            return report

        s = context.settings
        square_color = geometry.square_color_name(identity.square)
        pawns = geometry.count_pawns_on_color(context.board, identity.color, square_color)
        if pawns >= s.bad_bishop_pawn_count:
            return _adjust(
                report, -s.bad_bishop_penalty,
                f"BAD BISHOP: own pawns on {square_color} squares={pawns}; the bishop may be restricted.",
            )
        return _adjust(
            report, s.bishop_scope_bonus,
            f"Bishop scope looks OK: own pawns on bishop colour={pawns} (lower is better).",
        )


class RimKnightHeuristic(Heuristic):
    """Penalizes a knight on the edge of the board. Bishops pass through unchanged."""
    def apply(self, context: "ScoringContext", report: "FeatureReport") -> "FeatureReport":
        identity = context.identity
        if identity.piece_type != chess.KNIGHT:
            return report

        s = context.settings
        if geometry.is_edge_square(identity.square):
            return _adjust(
                report, -s.rim_knight_penalty,
                "RIM KNIGHT: an edge square reduces options; often a target or needs time to reroute.",
            )
        return _adjust(report, s.central_knight_bonus, "Knight not on the rim (usually more flexible).")


class MobilityHeuristic(Heuristic):
    """Scores how many squares the piece reaches that are not blocked by its own side."""
    def apply(self, context: "ScoringContext", report: "FeatureReport") -> "FeatureReport":
        s = context.settings
        mobility = geometry.count_mobility(context.board, context.identity.square)
        report = replace(report, mobility=mobility)

        if mobility >= s.high_mobility_threshold:
            return _adjust(
                report, s.high_mobility_bonus,
                f"MOBILITY: attacks {mobility} squares; active, the opponent may prefer to trade it.",
            )
        if mobility >= s.low_mobility_threshold:
            return _adjust(report, 0, f"MOBILITY: attacks {mobility} squares; average.")
        return _adjust(
            report, -s.low_mobility_penalty,
            f"MOBILITY: attacks {mobility} squares; cramped, a candidate to trade or improve.",
        )
