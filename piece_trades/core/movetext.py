# piece_trades/core/movetext.py
"""
Parses raw PGN text into a `GameRecord` and serializes it back with insertions.

This module is the text model of the annotator. It deliberately does not use
`python-chess` for reading the move text: the rules engine is free to
normalize what it reads, whereas the annotated output must reproduce every
original token (moves, move numbers, comments, result) verbatim and in order.
Move text is therefore scanned by a small explicit lexer into typed tokens,
and `reconstruct` is the only serializer. Nothing here raises on malformed
input; fragments the lexer cannot classify become move-like tokens.
"""
import re
import string
from collections import OrderedDict
from datetime import date
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from piece_trades.types import RESULT_MARKERS, GameRecord, InjectionMap, Token, TokenKind

_HEADER_LINE = re.compile(r'^\s*\[([A-Za-z0-9_]+)\s+"((?:[^"\\]|\\.)*)"\]\s*$')
_HIGHLIGHT = re.compile(r"\[%csl\s+[^\]]*\]")


# --- Lexer ---

def _scan_move_number(text: str, pos: int) -> Optional[int]:
    """Returns the end of a move-number marker ("12." or "12...") starting at `pos`."""
    end = pos
    while end < len(text) and text[end] in string.digits:
        end += 1
    if end == pos or end >= len(text) or text[end] != ".":
        return None
    end += 1
    if text.startswith("..", end):
        end += 2
    return end

def _match_result(text: str, pos: int) -> Optional[str]:
    for marker in RESULT_MARKERS:
        if text.startswith(marker, pos):
            return marker
    return None

def _scan_run(text: str, pos: int, stop_at_comment: bool = True) -> int:
    end = pos + 1
    while end < len(text) and not text[end].isspace():
        if stop_at_comment and text[end] in "{;":
            break
        end += 1
    return end

def tokenize_movetext(movetext: str) -> List[Token]:
    """
    Splits move text into typed tokens.

    At each non-blank position the lexer tries, in priority order: a
    brace-delimited comment (non-nested), a `;` comment running to the end of
    the line, a move-number marker, one of the four termination markers, and
    finally a run of non-blank characters which is taken as a move. An opening
    brace without a closing one is absorbed into a move-like token.
    """
    tokens: List[Token] = []
    pos = 0
    length = len(movetext)

    while pos < length:
        char = movetext[pos]
        if char.isspace():
            pos += 1
            continue

        if char == "{":
            close = movetext.find("}", pos + 1)
            if close >= 0:
                tokens.append(Token(TokenKind.COMMENT, movetext[pos:close + 1]))
                pos = close + 1
            else:
                end = _scan_run(movetext, pos, stop_at_comment=False)
                tokens.append(Token(TokenKind.SAN_MOVE, movetext[pos:end]))
                pos = end
            continue

        if char == ";":
            end = movetext.find("\n", pos)
            end = length if end < 0 else end
            tokens.append(Token(TokenKind.COMMENT, movetext[pos:end].rstrip()))
            pos = end
            continue

        number_end = _scan_move_number(movetext, pos)
        if number_end is not None:
            tokens.append(Token(TokenKind.MOVE_NUMBER, movetext[pos:number_end]))
            pos = number_end
            continue

        marker = _match_result(movetext, pos)
        if marker is not None:
            tokens.append(Token(TokenKind.RESULT, marker))
            pos += len(marker)
            continue

        end = _scan_run(movetext, pos)
        tokens.append(Token(TokenKind.SAN_MOVE, movetext[pos:end]))
        pos = end

    return tokens

def iter_move_plies(tokens: List[Token]) -> Iterator[Tuple[int, Token]]:
    """Yields (ply, token) for every move token before the first result marker."""
    ply = 0
    for token in tokens:
        if token.kind is TokenKind.RESULT:
            return
        if token.kind is TokenKind.SAN_MOVE:
            ply += 1
            yield ply, token


# --- Headers ---

def _unescape(value: str) -> str:
    return re.sub(r'\\([\\"])', r"\1", value)

def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')

def render_headers(headers: Mapping[str, str], source: Optional[Mapping[str, str]] = None) -> str:
    """
    Renders header tag lines. A value still equal to its `source` text (as read
    from the input) is written back in that original spelling.
    """
    source = source or {}
    lines = []
    for key, value in headers.items():
        raw = source.get(key)
        text = raw if raw is not None and _unescape(raw) == str(value) else _escape(str(value))
        lines.append(f'[{key} "{text}"]')
    return "\n".join(lines)

def ensure_headers(
    headers: Mapping[str, str],
    overrides: Optional[Mapping[str, str]] = None,
    today: Optional[date] = None,
) -> "OrderedDict[str, str]":
    """
    Returns a copy of `headers` guaranteed to carry a minimal header set.

    A record without any header receives the Seven Tag Roster; otherwise only a
    missing `Result` is appended. Override values then replace matching keys in
    place or are appended after the existing ones.
    """
    result: "OrderedDict[str, str]" = OrderedDict(headers)
    if not result:
        stamp = (today or date.today()).strftime("%Y.%m.%d")
        result.update([
            ("Event", "piece-trades"), ("Site", "Local"), ("Date", stamp), ("Round", "?"),
            ("White", "?"), ("Black", "?"), ("Result", "*"),
        ])
    elif "Result" not in result:
        result["Result"] = "*"

    for key, value in (overrides or {}).items():
        result[key] = str(value)
    return result


# --- Parse / serialize ---

def parse(raw: str) -> GameRecord:
    """
    Splits raw PGN text into ordered headers and move-text tokens.

    Leading `[Key "Value"]` lines form the header block; the first line that is
    not a header tag starts the move text.
    """
    lines = (raw or "").replace("\r", "").split("\n")
    headers: "OrderedDict[str, str]" = OrderedDict()
    source: Dict[str, str] = {}

    index = 0
    while index < len(lines) and not lines[index].strip():
        index += 1
    while index < len(lines):
        match = _HEADER_LINE.match(lines[index])
        if not match:
            break
        headers[match.group(1)] = _unescape(match.group(2))
        source[match.group(1)] = match.group(2)
        index += 1

    return GameRecord(
        headers=headers, tokens=tokenize_movetext("\n".join(lines[index:])), header_source=source,
    )

def reconstruct(tokens: List[Token], injections_by_ply: Optional[InjectionMap] = None) -> str:
    """
    Re-emits tokens in their original order, splicing in per-ply insertions.

    Injected strings for ply N are written immediately after the N-th move
    token. Ply counting stops at the first result marker, but any tokens after
    it are still emitted. A `;` comment runs to the end of its line, so the
    token after it starts a new line.
    """
    injections_by_ply = injections_by_ply or {}
    out: List[str] = []
    ply = 0
    counting = True

    for token in tokens:
        out.append(token.text)
        if not counting:
            continue
        if token.kind is TokenKind.RESULT:
            counting = False
            continue
        if token.kind is not TokenKind.SAN_MOVE:
            continue
        ply += 1
        out.extend(injections_by_ply.get(ply, ()))

    return _join(out)

def _join(texts: List[str]) -> str:
    pieces: List[str] = []
    for text in texts:
        if pieces:
            pieces.append("\n" if pieces[-1].startswith(";") else " ")
        pieces.append(text)
    return "".join(pieces)

def format_game(record: GameRecord, injections_by_ply: Optional[InjectionMap] = None) -> str:
    """Serializes headers, a blank line and the reconstructed move text."""
    movetext = reconstruct(record.tokens, injections_by_ply)
    header_block = render_headers(record.headers, record.header_source)
    if not header_block:
        return movetext.strip() + "\n"
    return f"{header_block}\n\n{movetext}".rstrip() + "\n"

def insert_leading_comment(record: GameRecord, comment: str) -> GameRecord:
    """Returns a copy of `record` with `comment` placed before the first move-text token."""
    return GameRecord(
        headers=OrderedDict(record.headers),
        tokens=[Token(TokenKind.COMMENT, comment)] + list(record.tokens),
        header_source=dict(record.header_source),
    )


# --- Result marker helpers ---

def ensure_trailing_result(text: str) -> str:
    """
    Guarantees that `text` ends with a termination marker.

    The Result header's value is used when it is a valid marker, otherwise `*`.
    """
    stripped = (text or "").strip()
    record = parse(stripped)
    last = record.tokens[-1] if record.tokens else None
    if last is not None and last.kind is TokenKind.RESULT:
        return stripped + "\n"

    result = record.headers.get("Result", "*")
    if result not in RESULT_MARKERS:
        result = "*"
    separator = "\n" if last is not None and last.text.startswith(";") else " "
    return f"{stripped}{separator}{result}".strip() + "\n"


# --- Comment helpers ---

def escape_comment_body(body: str) -> str:
    """PGN comment bodies cannot contain braces; they become parentheses."""
    return (body or "").replace("\r", "").replace("{", "(").replace("}", ")").strip()

def make_comment(body: str) -> str:
    return f"{{ {escape_comment_body(body)} }}"

def has_highlight(text: str) -> bool:
    return _HIGHLIGHT.search(text or "") is not None

def clip(text: str, max_chars: int) -> str:
    """Truncates `text` to `max_chars`, noting how much was cut."""
    text = text or ""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + f"\n... ({len(text) - max_chars} more chars)"
