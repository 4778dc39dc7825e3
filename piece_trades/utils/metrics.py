"""
Centralized Prometheus metrics definitions for the piece-trades annotator.

This module uses the prometheus-client library to define every metric the
annotation driver updates. Grouping them here provides a single overview of
the instrumentation points; exposing them is left to the embedding process.
"""
from prometheus_client import Counter, Histogram

# A common prefix for all application-specific metrics.
PREFIX = "piece_trades"

# --- Run Metrics ---

ANNOTATION_RUNS_TOTAL = Counter(
    f"{PREFIX}_annotation_runs_total",
    "Total number of annotation runs, by how they ended.",
    ["outcome"],  # e.g., outcome="annotated", "partial", "parse_failure", "error"
)

ANNOTATION_RUN_DURATION_SECONDS = Histogram(
    f"{PREFIX}_annotation_run_duration_seconds",
    "Histogram of the time taken to annotate a single game.",
    buckets=(0.005, 0.01, 0.05, 0.1, 0.5, 1, 5, float("inf"))
)

# --- Tracking & Scoring Metrics ---

IDENTITY_EVALUATIONS_TOTAL = Counter(
    f"{PREFIX}_identity_evaluations_total",
    "Total number of (tracked piece, ply) classifications computed.",
)

TAG_CHANGES_TOTAL = Counter(
    f"{PREFIX}_tag_changes_total",
    "Total number of tracked-piece classification changes emitted as rationale.",
    ["tag"],  # the new tag
)

TRACKING_MISSES_TOTAL = Counter(
    f"{PREFIX}_tracking_misses_total",
    "Total number of minor-piece moves that matched no tracked identity.",
)

PARITY_WARNINGS_TOTAL = Counter(
    f"{PREFIX}_parity_warnings_total",
    "Total number of annotated outputs whose replayed position differed from the input's.",
)
