# piece_trades/types.py
"""
A central module for shared data structures and the rules-engine interface (Protocol).
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Protocol, Tuple, TYPE_CHECKING, TypeAlias, runtime_checkable

import chess

if TYPE_CHECKING:
    from piece_trades.config.settings import ScoringSettingsModel

FEN: TypeAlias = str
Label: TypeAlias = str
InjectionMap: TypeAlias = Dict[int, List[str]]

# Deterministic label order keeps highlight directives stable between runs.
LABEL_ORDER: Tuple[Label, ...] = ("N1", "N2", "B1", "B2", "n1", "n2", "b1", "b2")

RESULT_MARKERS: Tuple[str, ...] = ("1-0", "0-1", "1/2-1/2", "*")


class TokenKind(str, Enum):
    MOVE_NUMBER = "MoveNumber"; SAN_MOVE = "SanMove"; COMMENT = "Comment"; RESULT = "Result"


class PieceTag(str, Enum):
    HIGH = "high"; NEUTRAL = "neutral"; LOW = "low"

    @property
    def letter(self) -> str:
        """The colour letter used inside a `[%csl ...]` directive."""
        return _TAG_LETTERS[self]

    @property
    def display_name(self) -> str:
        return _TAG_NAMES[self]


_TAG_LETTERS = {PieceTag.HIGH: "G", PieceTag.NEUTRAL: "Y", PieceTag.LOW: "R"}
_TAG_NAMES = {PieceTag.HIGH: "GREEN", PieceTag.NEUTRAL: "YELLOW", PieceTag.LOW: "RED"}


# --- MOVETEXT CONTRACTS ---

@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind; text: str

@dataclass
class GameRecord:
    headers: "OrderedDict[str, str]" = field(default_factory=OrderedDict)
    tokens: List[Token] = field(default_factory=list)
    # Header values exactly as written in the input, still escaped.
    header_source: Dict[str, str] = field(default_factory=dict)

    def has_moves(self) -> bool:
        return any(t.kind is TokenKind.SAN_MOVE for t in self.tokens)


# --- RULES-ENGINE BOUNDARY ---

@dataclass(frozen=True, slots=True)
class PlayedMove:
    """A single move as reported by the rules engine; the only move type the core consumes."""
    san: str
    color: chess.Color
    piece_type: chess.PieceType
    from_square: chess.Square
    to_square: chess.Square
    captured: bool

@dataclass(frozen=True)
class LoadedGame:
    starting_board: chess.Board; moves: List[PlayedMove]; final_position: FEN


@runtime_checkable
class RulesEngine(Protocol):
    """Defines the abstract interface for the chess rules collaborator."""
    def load(self, pgn_text: str) -> Optional[LoadedGame]: ...
    def apply_move(self, board: chess.Board, move: PlayedMove) -> Optional[PlayedMove]: ...
    def position_key(self, board: chess.Board) -> FEN: ...


# --- TRACKING & SCORING CONTRACTS ---

@dataclass(slots=True)
class PieceIdentity:
    label: Label; color: chess.Color; piece_type: chess.PieceType
    square: chess.Square; last_tag: PieceTag = PieceTag.NEUTRAL

    @property
    def side_name(self) -> str:
        return "White" if self.color == chess.WHITE else "Black"

    @property
    def piece_name(self) -> str:
        return "Knight" if self.piece_type == chess.KNIGHT else "Bishop"

@dataclass(frozen=True, slots=True)
class FeatureReport:
    score: int; tag: PieceTag; reasons: Tuple[str, ...]
    attackers: int = 0; defenders: int = 0; mobility: int = 0

@dataclass(frozen=True)
class ScoringContext:
    board: chess.Board; identity: PieceIdentity; attackers: int; defenders: int
    settings: "ScoringSettingsModel"

@dataclass(frozen=True, slots=True)
class TagChange:
    label: Label; side_name: str; piece_name: str; square_name: str
    previous: PieceTag; current: PieceTag; report: FeatureReport


# --- DRIVER OUTPUT ---

@dataclass
class AnnotationResult:
    text: str
    degraded: bool = False
    evaluations: int = 0
    tag_changes: int = 0
    halted_at_ply: Optional[int] = None
    parity_ok: Optional[bool] = None
    injections: InjectionMap = field(default_factory=dict, repr=False)


class Heuristic(Protocol):
    """Protocol defining the interface for a single, composable scoring rule."""
    def apply(self, context: ScoringContext, report: FeatureReport) -> FeatureReport: ...
