# piece_trades/core/feature_scorer.py
"""
Contains the static classifier for tracked minor pieces.

The `FeatureScorer` counts attackers and defenders of a piece's square, runs
the ordered chain of scoring heuristics over it, and maps the resulting score
to a three-way `PieceTag`. It performs no search: every feature is read off
the single board it is given.
"""
from typing import List, Optional, TYPE_CHECKING

import chess

from piece_trades.config.settings import ScoringSettingsModel
from piece_trades.core import geometry
from piece_trades.core.heuristics import (BadBishopHeuristic, LooseHeuristic,
                                          MobilityHeuristic, RimKnightHeuristic,
                                          StabilityHeuristic, TensionHeuristic)
from piece_trades.types import FeatureReport, PieceTag, ScoringContext

if TYPE_CHECKING:
    from piece_trades.types import Heuristic, PieceIdentity

_TRADE_PREDICTIONS = {
    PieceTag.LOW: "TRADE PREDICTION: the opponent is usually happy to exchange this minor if possible.",
    PieceTag.HIGH: "TRADE PREDICTION: avoid trading this unless you win something concrete or improve structure.",
    PieceTag.NEUTRAL: "TRADE PREDICTION: depends; compare the resulting pawn structure and remaining minors.",
}


class FeatureScorer:
    """
    A stateless scorer that runs a fixed chain of heuristics over one tracked piece.

    Every heuristic runs for every piece, in the order below; a heuristic that
    does not apply to the piece type passes the report through unchanged.
    """

    def __init__(self, settings: Optional[ScoringSettingsModel] = None):
        self._settings = settings or ScoringSettingsModel()
        self._heuristic_chain: List["Heuristic"] = [
            LooseHeuristic(),       # 1. Attacked more than defended
            TensionHeuristic(),     # 2. Attacked at all
            StabilityHeuristic(),   # 3. Defended and not heavily challenged
            BadBishopHeuristic(),   # 4. Bishops: own pawns on the bishop's colour
            RimKnightHeuristic(),   # 5. Knights: edge squares
            MobilityHeuristic(),    # 6. Reachable squares
        ]

    @property
    def settings(self) -> ScoringSettingsModel:
        return self._settings

    def tag_for_score(self, score: int) -> PieceTag:
        if score >= self._settings.high_tag_min_score:
            return PieceTag.HIGH
        if score <= self._settings.low_tag_max_score:
            return PieceTag.LOW
        return PieceTag.NEUTRAL

    def classify(self, board: chess.Board, identity: "PieceIdentity") -> FeatureReport:
        """
        Scores one tracked piece on `board`.

        Args:
            board: The position to read features from.
            identity: The tracked piece; its recorded square is the one scored.

        Returns:
            A `FeatureReport` with the score, the tag and the ordered reasons
            produced by every rule, ending with a trade prediction.
        """
        opponent = not identity.color
        attackers = geometry.count_attackers(board, identity.square, opponent)
        defenders = geometry.count_attackers(board, identity.square, identity.color)

        context = ScoringContext(
            board=board, identity=identity, attackers=attackers,
            defenders=defenders, settings=self._settings,
        )
        report = FeatureReport(score=0, tag=PieceTag.NEUTRAL, reasons=(), attackers=attackers, defenders=defenders)

        for heuristic in self._heuristic_chain:
            report = heuristic.apply(context, report)

        tag = self.tag_for_score(report.score)
        return FeatureReport(
            score=report.score,
            tag=tag,
            reasons=report.reasons + (_TRADE_PREDICTIONS[tag],),
            attackers=attackers,
            defenders=defenders,
            mobility=report.mobility,
        )
