# piece_trades/tracing.py

"""
tracing
~~~~~~~

This module provides components for run traceability and context-aware
logging: a correlation id bound to every log line of one annotation run, the
game id derivation used inside it, and a decorator that traces driver stages.
"""

import functools
import re
import uuid
from dataclasses import asdict, dataclass
from typing import Any, Callable, List, Mapping, Tuple

import structlog

logger = structlog.get_logger(__name__)

# Tried in order; the first matching header wins.
_GAME_ID_EXTRACTION_PATTERNS: List[Tuple[str, re.Pattern]] = [
    ("Link", re.compile(r"lichess\.org/([a-zA-Z0-9]{8})")),
    ("Site", re.compile(r"lichess\.org/([a-zA-Z0-9]{8})")),
    ("Link", re.compile(r"chess\.com/game/live/(\d+)")),
    ("Site", re.compile(r"chess\.com/game/live/(\d+)")),
]


@dataclass(frozen=True, slots=True)
class CorrelationID:
    """A unique identifier for a single annotation run."""
    run_id: str
    game_id: str

    @classmethod
    def for_headers(cls, headers: Mapping[str, str]) -> "CorrelationID":
        return cls(run_id=uuid.uuid4().hex[:12], game_id=extract_game_id(headers))

    def as_dict(self) -> dict:
        """Returns the ID as a dictionary suitable for logging."""
        return asdict(self)


def extract_game_id(headers: Mapping[str, str]) -> str:
    """
    Extracts a readable game id from PGN headers.

    Lichess and Chess.com game URLs found in the "Link" or "Site" tags are
    preferred. Otherwise an id is built from the player names and the date.
    """
    for tag_name, pattern in _GAME_ID_EXTRACTION_PATTERNS:
        if header_value := headers.get(tag_name):
            if match := pattern.search(str(header_value)):
                prefix = "lichess" if "lichess" in str(header_value) else "chesscom"
                return f"{prefix}_{match.group(1)}"

    white = headers.get("White", "Unknown").replace(" ", "_")
    black = headers.get("Black", "Unknown").replace(" ", "_")
    date = headers.get("Date", "0000.00.00")
    return f"local_{white}_vs_{black}_{date}"


def trace_stage(func: Callable) -> Callable:
    """A decorator to add structured tracing to a driver stage."""
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        stage_name = func.__name__.lstrip("_")
        logger.debug("Entering annotation stage.", stage=stage_name)
        result = func(*args, **kwargs)
        logger.debug("Exiting annotation stage.", stage=stage_name)
        return result
    return wrapper
