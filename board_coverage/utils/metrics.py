"""
Centralized Prometheus metrics definitions for the Board Coverage tracker.

This module uses the prometheus-client library to define all metrics exposed
for monitoring. Grouping them here gives a single overview of the tracker's
instrumentation points.
"""
from prometheus_client import Counter, Gauge

# A common prefix for all application-specific metrics.
PREFIX = "board_coverage"

# --- Game Stream Metrics ---

SOURCE_REQUESTS_TOTAL = Counter(
    f"{PREFIX}_source_requests_total",
    "Total number of export requests sent to the game provider.",
    ["outcome"],  # e.g., outcome="ok", "empty", "rate_limited", "unavailable"
)

SOURCE_TRANSIENT_ERRORS_TOTAL = Counter(
    f"{PREFIX}_source_transient_errors_total",
    "Total number of transient source errors that triggered a retry.",
    ["operation"],
)

MALFORMED_RECORDS_TOTAL = Counter(
    f"{PREFIX}_malformed_records_total",
    "Total number of NDJSON lines that could not be parsed into a game record.",
)

GAMES_FILTERED_TOTAL = Counter(
    f"{PREFIX}_games_filtered_total",
    "Total number of received games the stream did not yield.",
    ["reason"],  # e.g., reason="correspondence", "no_clock", "duplicate"
)

GAMES_YIELDED_TOTAL = Counter(
    f"{PREFIX}_games_yielded_total",
    "Total number of qualifying games yielded by the stream.",
)

# --- Coverage Metrics ---

GAMES_PROCESSED_TOTAL = Counter(
    f"{PREFIX}_games_processed_total",
    "Total number of games folded into coverage and statistics.",
)

GAMES_SKIPPED_TOTAL = Counter(
    f"{PREFIX}_games_skipped_total",
    "Total number of yielded games skipped at the per-game boundary.",
    ["reason"],  # e.g., reason="no_target_player", "malformed_move"
)

COVERAGE_PROGRESS = Gauge(
    f"{PREFIX}_coverage_progress",
    "Fraction of (piece, square) pairs visited at least once.",
)
