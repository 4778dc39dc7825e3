# piece_trades/core/annotation_comments.py
"""
Renders the comment tokens the annotator inserts into move text.

Three kinds of comment exist: the per-ply highlight directive, the one-time
assumptions note, and the per-piece rationale emitted when a tag changes.
All functions return complete `{ ... }` tokens with escaped bodies.
"""

from typing import Iterable, List

import chess

from piece_trades.core.movetext import make_comment
from piece_trades.types import PieceIdentity, PlayedMove, TagChange

_ASSUMPTIONS = (
    "Assumptions (stated once):",
    "• No engine calculation.",
    "• Human-countable features only: attacked/defended, stability, mobility, rim knight, bad-bishop proxy.",
    "• Colours are a trade desirability hint: GREEN=keep, YELLOW=depends, RED=trade target.",
    "• Only persistent state across plies is the piece label and its last shown colour.",
)


def highlight_entries(identities: Iterable[PieceIdentity]) -> List[str]:
    """Returns `<letter><square>` entries using each identity's last-emitted tag."""
    return [f"{i.last_tag.letter}{chess.square_name(i.square)}" for i in identities]

def render_highlight(identities: Iterable[PieceIdentity]) -> str:
    entries = highlight_entries(identities)
    directive = f"[%csl {','.join(entries)}]" if entries else "[%csl ]"
    return f"{{ {directive} }}"

def render_assumptions(ply: int, move: PlayedMove) -> str:
    side = "White" if move.color == chess.WHITE else "Black"
    lines = [
        "piece-trades: first rationale emission",
        f"position after {side} played {move.san} (ply {ply})",
        "",
        *_ASSUMPTIONS,
    ]
    return make_comment("\n".join(lines))

def render_rationale(change: TagChange) -> str:
    lines = [
        f"{change.label} ({change.side_name} {change.piece_name} @ {change.square_name}) went from "
        f"{change.previous.display_name} to {change.current.display_name} (score={change.report.score})"
    ]
    lines.extend(f"• {reason}" for reason in change.report.reasons)
    return make_comment("\n".join(lines))
