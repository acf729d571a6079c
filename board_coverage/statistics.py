"""
Tallies operational events of a tracking run.

This module provides `RunStatistics`, a small counter of what happened to the
records the tracker saw (processed, skipped and why, rate-limited polls). It is
distinct from `StatsTracker`, which holds the speedrun's headline figures.
"""
from collections import Counter
from enum import Enum, auto
from typing import Dict

import structlog

logger = structlog.get_logger(__name__)


class StatKey(Enum):
    """Enumeration for keys used in RunStatistics for type safety."""
    GAMES_RECEIVED = auto()
    GAMES_PROCESSED = auto()
    GAMES_SKIPPED_TOTAL = auto()
    SKIPPED_NO_TARGET_PLAYER = auto()
    SKIPPED_MALFORMED_MOVE = auto()
    RATE_LIMITED_POLLS = auto()


STAT_DISPLAY_NAMES: Dict[StatKey, str] = {
    StatKey.GAMES_RECEIVED: "Qualifying Games Received",
    StatKey.GAMES_PROCESSED: "Games Folded into Coverage",
    StatKey.GAMES_SKIPPED_TOTAL: "Total Games Skipped",
    StatKey.SKIPPED_NO_TARGET_PLAYER: "  - Skipped (Player Not in Game)",
    StatKey.SKIPPED_MALFORMED_MOVE: "  - Skipped (Unparseable Move)",
    StatKey.RATE_LIMITED_POLLS: "Polls Refused by Rate Limit",
}


class RunStatistics:
    """A stateful class to aggregate and report operational counts for one run."""

    def __init__(self):
        self.stats: Counter[StatKey] = Counter()

    def add_stat(self, key: StatKey, count: int = 1) -> None:
        """Increments a statistic by a given amount."""
        self.stats[key] += count

    def record_skip(self, reason: StatKey) -> None:
        """Counts a skipped game under both its reason and the skip total."""
        self.stats[reason] += 1
        self.stats[StatKey.GAMES_SKIPPED_TOTAL] += 1

    def get(self, key: StatKey) -> int:
        return self.stats.get(key, 0)

    def log_summary(self) -> None:
        """Logs a formatted summary of all collected statistics for the run."""
        logger.info("=" * 14 + " Tracking Run Summary " + "=" * 14)
        for key in StatKey:
            count = self.get(key)
            if count:
                logger.info(f"{STAT_DISPLAY_NAMES[key]:<40}: {count:>8}")
        logger.info("=" * 50)
