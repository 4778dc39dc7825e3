# piece_trades/core/position_query.py
"""
Evaluates simple precondition queries against a position.

A query is a list of predicates over piece references such as `Bd3` (white
bishop on d3) or `ph7` (black pawn on h7). Two operators exist: `at` checks
that the referenced piece stands on its square, `attacks` checks that one
referenced piece can legally capture the other. This is the building block for
recognising pattern preconditions (for instance the Greek gift set-up)
without any search.
"""

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple, Union

import chess
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from piece_trades.exceptions import QueryError

logger = structlog.get_logger(__name__)


class PieceRefModel(BaseModel):
    ref: str


class PredicateModel(BaseModel):
    """A single predicate. `assert: false` negates it."""
    model_config = ConfigDict(populate_by_name=True)

    op: str
    piece: Optional[PieceRefModel] = None
    attacker: Optional[PieceRefModel] = None
    target: Optional[PieceRefModel] = None
    expected: bool = Field(True, alias="assert")


class PositionQuery(BaseModel):
    name: Optional[str] = None
    predicates: List[PredicateModel] = Field(default_factory=list)


@dataclass(frozen=True, slots=True)
class PredicateResult:
    op: str; matched: bool

@dataclass(frozen=True)
class QueryReport:
    count: int; results: List[PredicateResult]


def _parse_ref(ref: Optional[PieceRefModel]) -> Optional[Tuple[chess.Piece, chess.Square]]:
    """Splits a reference like 'Ng5' into a piece and a square; None if malformed."""
    if ref is None or len(ref.ref) != 3:
        return None
    try:
        return chess.Piece.from_symbol(ref.ref[0]), chess.parse_square(ref.ref[1:])
    except ValueError:
        return None

def _matches_at(board: chess.Board, predicate: PredicateModel) -> bool:
    parsed = _parse_ref(predicate.piece)
    if parsed is None:
        return False
    piece, square = parsed
    return board.piece_at(square) == piece

def _matches_attacks(board: chess.Board, predicate: PredicateModel) -> bool:
    """
    True if the attacker has a legal capture on the target's square.

    Legality is judged from the attacker's side, whoever is to move, so a
    pinned attacker or a target of the attacker's own colour never matches.
    """
    attacker = _parse_ref(predicate.attacker)
    target = _parse_ref(predicate.target)
    if attacker is None or target is None:
        return False

    (attacker_piece, attacker_square), (target_piece, target_square) = attacker, target
    if board.piece_at(attacker_square) != attacker_piece or board.piece_at(target_square) != target_piece:
        return False

    position = board
    if board.turn != attacker_piece.color:
        position = board.copy(stack=False)
        position.turn = attacker_piece.color
        position.ep_square = None
    return any(
        position.is_capture(move)
        for move in position.generate_legal_moves(
            from_mask=chess.BB_SQUARES[attacker_square], to_mask=chess.BB_SQUARES[target_square],
        )
    )

_OPERATORS = {
    "at": _matches_at,
    "attacks": _matches_attacks,
}

def _coerce_query(query: Union[PositionQuery, Mapping[str, Any]]) -> PositionQuery:
    if isinstance(query, PositionQuery):
        return query
    try:
        return PositionQuery.model_validate(query)
    except ValidationError as e:
        raise QueryError(f"Malformed position query: {e}") from e

def match_preconditions(fen: str, query: Union[PositionQuery, Mapping[str, Any]]) -> QueryReport:
    """
    Evaluates every predicate of `query` on the position `fen`.

    Unknown operators never match (before negation).

    Raises:
        QueryError: If the FEN or the query is malformed.
    """
    parsed_query = _coerce_query(query)
    try:
        board = chess.Board(fen)
    except ValueError as e:
        raise QueryError(f"Invalid FEN {fen!r}: {e}") from e

    results: List[PredicateResult] = []
    for predicate in parsed_query.predicates:
        matcher = _OPERATORS.get(predicate.op)
        matched = matcher(board, predicate) if matcher else False
        results.append(PredicateResult(op=predicate.op, matched=matched if predicate.expected else not matched))

    report = QueryReport(count=sum(r.matched for r in results), results=results)
    logger.debug("Evaluated position query.", query=parsed_query.name, count=report.count, total=len(results))
    return report

def count_matched_preconditions(fen: str, query: Union[PositionQuery, Mapping[str, Any]]) -> int:
    """Returns how many predicates of `query` hold on `fen`."""
    return match_preconditions(fen, query).count
