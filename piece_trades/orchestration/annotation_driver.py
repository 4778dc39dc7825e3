# piece_trades/orchestration/annotation_driver.py
"""
Defines the `AnnotationDriver`, which turns one PGN record into an annotated one.

The driver ties the components together: the text model parses the record and
later re-emits it, the rules engine loads and replays the moves, the identity
tracker follows the minor pieces, and the feature scorer classifies them. Per
ply, from the configured start ply on, two steps run in a fixed order:

1.  Highlight (always): one `[%csl ...]` comment showing every live piece's
    last-emitted tag on its current square.
2.  Rationale (on change only): the one-time assumptions note, then one
    comment per piece whose tag changed at this ply.

No error escapes `run`. An unreadable record becomes a diagnostic fallback
record; a replay failure truncates the annotations but keeps every move; a
parity mismatch is only logged.
"""

import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import List, Optional

import chess
import structlog

from piece_trades.config.settings import AnnotationSettings, settings as app_settings
from piece_trades.core import annotation_comments, movetext
from piece_trades.core.feature_scorer import FeatureScorer
from piece_trades.core.identity_tracker import IdentityTracker
from piece_trades.exceptions import PgnParsingError, ReplayDesyncError
from piece_trades.services.rules_engine import PythonChessRulesEngine
from piece_trades.tracing import CorrelationID, trace_stage
from piece_trades.types import (AnnotationResult, GameRecord, InjectionMap,
                                LoadedGame, PlayedMove, RulesEngine, TagChange)
from piece_trades.utils.metrics import (ANNOTATION_RUN_DURATION_SECONDS,
                                        ANNOTATION_RUNS_TOTAL,
                                        IDENTITY_EVALUATIONS_TOTAL,
                                        PARITY_WARNINGS_TOTAL, TAG_CHANGES_TOTAL)

logger = structlog.get_logger(__name__)

_PLACEHOLDER_MOVETEXT = "1. e4 e5 { [%csl Ye4] } *"


@dataclass
class _RunState:
    """Mutable state owned by exactly one run."""
    injections: InjectionMap = field(default_factory=dict)
    assumptions_emitted: bool = False
    evaluations: int = 0
    tag_changes: int = 0
    halted_at_ply: Optional[int] = None

    def inject(self, ply: int, comment: str) -> None:
        self.injections.setdefault(ply, []).append(comment)


class AnnotationDriver:
    """Annotates PGN records with minor-piece trade hints. Holds no per-run state."""

    def __init__(
        self,
        rules_engine: Optional[RulesEngine] = None,
        scorer: Optional[FeatureScorer] = None,
        settings: Optional[AnnotationSettings] = None,
    ):
        self._settings = settings or app_settings.annotation
        self._rules_engine = rules_engine or PythonChessRulesEngine()
        self._scorer = scorer or FeatureScorer(self._settings.scoring)

    def run(self, raw: str, start_ply: Optional[int] = None) -> str:
        """Returns the annotated text for `raw`. Never raises."""
        return self.annotate(raw, start_ply).text

    def annotate(self, raw: str, start_ply: Optional[int] = None) -> AnnotationResult:
        """
        Annotates one PGN record and reports how the run went.

        Args:
            raw: The PGN text of a single game.
            start_ply: First ply to score and annotate; defaults to the
                configured `start_ply`.

        Returns:
            An `AnnotationResult` whose `text` is always a loadable PGN record.
        """
        start_ply = max(1, start_ply if start_ply is not None else self._settings.start_ply)
        started = time.perf_counter()
        record = movetext.parse(raw)
        record.headers = movetext.ensure_headers(record.headers, self._settings.header_overrides)
        correlation = CorrelationID.for_headers(record.headers)

        with structlog.contextvars.bound_contextvars(**correlation.as_dict()):
            logger.debug("Annotation input.", text=movetext.clip(raw or "", self._settings.log_clip_chars))
            try:
                result = self._annotate_record(record, start_ply)
                outcome = "partial" if result.halted_at_ply is not None else "annotated"
            except PgnParsingError as e:
                logger.error("Input PGN could not be parsed; returning diagnostic record.", error=str(e))
                result = AnnotationResult(text=self._fallback_record(raw), degraded=True)
                outcome = "parse_failure"
            except Exception:
                logger.exception("Unexpected error while annotating; returning diagnostic record.")
                result = AnnotationResult(text=self._fallback_record(raw), degraded=True)
                outcome = "error"

            ANNOTATION_RUNS_TOTAL.labels(outcome=outcome).inc()
            ANNOTATION_RUN_DURATION_SECONDS.observe(time.perf_counter() - started)
            logger.info(
                "Annotation finished.", outcome=outcome, start_ply=start_ply,
                evaluations=result.evaluations, tag_changes=result.tag_changes,
            )
            logger.debug("Annotation output.", text=movetext.clip(result.text, self._settings.log_clip_chars))
        return result

    # --- Stages ---

    def _annotate_record(self, record: GameRecord, start_ply: int) -> AnnotationResult:
        loaded = self._load(record)
        tracker = IdentityTracker.from_board(loaded.starting_board)
        state = _RunState()

        self._replay(loaded, tracker, start_ply, state)
        text = self._serialize(record, state.injections)
        parity_ok = self._check_parity(text, loaded)

        return AnnotationResult(
            text=text, evaluations=state.evaluations, tag_changes=state.tag_changes,
            halted_at_ply=state.halted_at_ply, parity_ok=parity_ok, injections=state.injections,
        )

    @trace_stage
    def _load(self, record: GameRecord) -> LoadedGame:
        loaded = self._rules_engine.load(movetext.format_game(record))
        if loaded is None:
            raise PgnParsingError("The rules engine could not read the record.")

        token_moves = sum(1 for _ in movetext.iter_move_plies(record.tokens))
        if token_moves and not loaded.moves:
            raise PgnParsingError("The move text contains moves, but none could be read.")
        if token_moves != len(loaded.moves):
            logger.warning(
                "Move token count differs from moves read; annotations may be offset.",
                move_tokens=token_moves, moves_read=len(loaded.moves),
            )
        return loaded

    @trace_stage
    def _replay(self, loaded: LoadedGame, tracker: IdentityTracker, start_ply: int, state: _RunState) -> None:
        board = loaded.starting_board.copy()
        for ply, historical in enumerate(loaded.moves, start=1):
            try:
                made = self._replay_move(board, historical, ply)
            except ReplayDesyncError as e:
                logger.error("Failed to replay historical move; stopping.", ply=e.ply, san=e.san)
                state.halted_at_ply = e.ply
                break

            tracker.apply(made, ply)
            if ply < start_ply:
                continue

            changes = self._evaluate(board, tracker, state)
            self._emit_highlight(ply, tracker, state)
            self._emit_rationale(ply, made, changes, state)

    def _replay_move(self, board: chess.Board, historical: PlayedMove, ply: int) -> PlayedMove:
        made = self._rules_engine.apply_move(board, historical)
        if made is None:
            raise ReplayDesyncError(f"Move {historical.san} could not be replayed.", ply=ply, san=historical.san)
        return made

    def _evaluate(self, board: chess.Board, tracker: IdentityTracker, state: _RunState) -> List[TagChange]:
        """Classifies every live identity and records the ones whose tag changed."""
        changes: List[TagChange] = []
        for identity in tracker.live_identities():
            report = self._scorer.classify(board, identity)
            state.evaluations += 1
            IDENTITY_EVALUATIONS_TOTAL.inc()
            if report.tag is identity.last_tag:
                continue

            changes.append(TagChange(
                label=identity.label, side_name=identity.side_name, piece_name=identity.piece_name,
                square_name=chess.square_name(identity.square),
                previous=identity.last_tag, current=report.tag, report=report,
            ))
            identity.last_tag = report.tag
        return changes

    def _emit_highlight(self, ply: int, tracker: IdentityTracker, state: _RunState) -> None:
        state.inject(ply, annotation_comments.render_highlight(tracker.live_identities()))

    def _emit_rationale(self, ply: int, move: PlayedMove, changes: List[TagChange], state: _RunState) -> None:
        if not changes:
            return

        if not state.assumptions_emitted:
            state.inject(ply, annotation_comments.render_assumptions(ply, move))
            state.assumptions_emitted = True

        for change in changes:
            state.inject(ply, annotation_comments.render_rationale(change))
            TAG_CHANGES_TOTAL.labels(tag=change.current.value).inc()
        state.tag_changes += len(changes)

        logger.info(
            "Tracked minor tags changed.", ply=ply, san=move.san,
            changes=[f"{c.label}:{c.previous.letter}->{c.current.letter}" for c in changes],
        )

    @trace_stage
    def _serialize(self, record: GameRecord, injections: InjectionMap) -> str:
        text = movetext.format_game(record, injections)
        if not movetext.has_highlight(text):
            logger.warning("Output has no highlight directive; inserting fallback.")
            fallback = f"{{ {self._settings.fallback_highlight} }}"
            text = movetext.format_game(movetext.insert_leading_comment(record, fallback), injections)
        return movetext.ensure_trailing_result(text)

    @trace_stage
    def _check_parity(self, text: str, loaded: LoadedGame) -> bool:
        reloaded = self._rules_engine.load(text)
        actual = reloaded.final_position if reloaded is not None else None
        if actual != loaded.final_position:
            PARITY_WARNINGS_TOTAL.inc()
            logger.warning(
                "Annotated output does not replay to the input position.",
                expected=loaded.final_position, actual=actual,
            )
            return False
        return True

    # --- Fallback ---

    def _fallback_record(self, raw: str) -> str:
        """Builds the fixed-shape record returned when the input cannot be used."""
        headers = OrderedDict([
            ("Event", "Evaluated (piece-trades) • PARSE FAILURE"), ("Site", "?"),
            ("Date", time.strftime("%Y.%m.%d")), ("Round", "-"),
            ("White", "?"), ("Black", "?"), ("Result", "*"),
        ])
        limit = self._settings.diagnostic_clip_chars
        diagnostic = movetext.make_comment(
            f"piece-trades: could not parse input PGN. First {limit} chars:\n"
            f"{movetext.clip(raw or '', limit)}"
        )
        text = f"{movetext.render_headers(headers)}\n\n{diagnostic}\n{_PLACEHOLDER_MOVETEXT}\n"
        return movetext.ensure_trailing_result(text)
