# piece_trades/utils/logging_config.py
"""
Configures structured logging for annotation runs using structlog.

Annotator events and foreign records (python-chess reports reader errors
through the stdlib `chess.pgn` logger) go through the same processor chain, so
every line carries the run's `run_id`/`game_id` context. The PGN reader's own
messages duplicate what the rules engine already logs with context; they are
held at `chess_log_level` unless asked for.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional

import structlog
from structlog.types import Processor

from piece_trades.config.settings import settings

_PYTHON_CHESS_LOGGERS = ("chess", "chess.pgn")


def _shared_processors() -> List[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

def _handler(handler: logging.Handler, pre_chain: List[Processor], renderer: Processor) -> logging.Handler:
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(foreign_pre_chain=pre_chain, processor=renderer))
    return handler

def setup_logging(
    log_level: Optional[str] = None,
    log_to_console: bool = True,
    log_file: Optional[Path] = None,
    force_json_console: bool = False,
    extra_processors: Optional[List[Processor]] = None,
    chess_log_level: str = "CRITICAL",
) -> None:
    """
    Routes structlog through the stdlib root logger.

    Args:
        log_level: Root level; defaults to `settings.default_log_level`.
        log_to_console: Attach a stdout handler (pretty, or JSON when forced).
        log_file: Also append JSON lines to this file.
        force_json_console: Render console output as JSON.
        extra_processors: Run after the shared chain, before rendering.
        chess_log_level: Level for python-chess's own loggers.
    """
    shared = _shared_processors()

    structlog.configure(
        processors=shared + list(extra_processors or []) + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handlers: List[logging.Handler] = []
    if log_to_console:
        console_renderer: Processor = (
            structlog.processors.JSONRenderer() if force_json_console
            else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
        )
        handlers.append(_handler(logging.StreamHandler(sys.stdout), shared, console_renderer))
    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        handlers.append(_handler(file_handler, shared, structlog.processors.JSONRenderer()))

    level = (log_level or settings.default_log_level).upper()
    logging.basicConfig(handlers=handlers, level=level, force=True)
    for name in _PYTHON_CHESS_LOGGERS:
        logging.getLogger(name).setLevel(chess_log_level.upper())
