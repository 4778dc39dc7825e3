# piece_trades/evaluators.py
"""
A registry of PGN evaluators that can be selected by id.

Every entry takes the PGN text of one game and returns annotated PGN text.
`piecetrades` is the minor-piece trade annotator; `mock` is a fixed
demonstration annotation, useful for checking that a viewer renders comments
and `[%csl]`/`[%cal]` directives without involving any chess logic.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional

from piece_trades.core import movetext
from piece_trades.orchestration.annotation_driver import AnnotationDriver
from piece_trades.types import TokenKind, Token


@dataclass(frozen=True, slots=True)
class EvaluatorEntry:
    id: str; name: str; description: str; run: Callable[[str], str]


def _closing_ply_of_move(tokens: List[Token], move_number: int) -> Optional[int]:
    """Returns the ply of the last move in the `move_number` pair (white and black), if present."""
    ply = 0
    in_group = False
    closing: Optional[int] = None
    moves_in_group = 0

    for token in tokens:
        if token.kind is TokenKind.RESULT:
            break
        if token.kind is TokenKind.MOVE_NUMBER:
            if in_group:
                break
            in_group = token.text.rstrip(".") == str(move_number)
        elif token.kind is TokenKind.SAN_MOVE:
            ply += 1
            if in_group:
                closing = ply
                moves_in_group += 1
                if moves_in_group == 2:
                    break
    return closing


def mock_minor_piece_eval(raw: str) -> str:
    """Adds a fixed set of demonstration comments and drawing directives."""
    record = movetext.parse(raw)
    record.headers = movetext.ensure_headers(record.headers, {
        "Event": "Evaluated (mock)",
        "Annotator": "piece-trades eval: mock",
    })

    injections = {}
    if record.has_moves():
        injections[1] = [movetext.make_comment("mock: develop minors; avoid rim knights")]
    second = _closing_ply_of_move(record.tokens, 2)
    if second is not None:
        injections.setdefault(second, []).append(
            movetext.make_comment("mock: before trading minors, ask who gains activity or structure")
        )

    record = movetext.insert_leading_comment(record, "{ [%csl Re4,Yd4] [%cal Ge2e4] }")
    return movetext.ensure_trailing_result(movetext.format_game(record, injections))


def piece_trades_eval(raw: str) -> str:
    return AnnotationDriver().run(raw)


EVALUATORS: List[EvaluatorEntry] = [
    EvaluatorEntry(
        id="mock",
        name="Mock minor-piece annotation",
        description="Returns a loadable PGN with [%csl]/[%cal] directives and two fixed comments.",
        run=mock_minor_piece_eval,
    ),
    EvaluatorEntry(
        id="piecetrades",
        name="Piece trades tutor",
        description=(
            "Tracks minors by labels N1/N2/B1/B2 and n1/n2/b1/b2, scores them every ply and "
            "explains a piece's colour only when its classification changes."
        ),
        run=piece_trades_eval,
    ),
]


def get_evaluator(evaluator_id: str) -> EvaluatorEntry:
    """Looks up a registered evaluator, raising `KeyError` for unknown ids."""
    for entry in EVALUATORS:
        if entry.id == evaluator_id:
            return entry
    raise KeyError(f"Unknown evaluator: {evaluator_id!r}")
