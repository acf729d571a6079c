# board_coverage/orchestration/game_processor.py
"""
Defines the `GameProcessor`, the per-game boundary of the consumer loop.

For one yielded game it determines the tracked player's side, records the
player's moves into coverage and folds the game into the statistics. Games that
cannot be processed are skipped and counted here, so that one bad record never
stops the stream.
"""

from typing import Optional

import structlog

from board_coverage.core import chess_utils
from board_coverage.core.coverage_tracker import CoverageTracker
from board_coverage.core.stats_tracker import StatsTracker
from board_coverage.exceptions import MoveResolutionError
from board_coverage.statistics import RunStatistics, StatKey
from board_coverage.types import GameRecord, ProcessedGameResult
from board_coverage.utils import metrics

logger = structlog.get_logger(__name__)


class GameProcessor:
    """Applies one game to the run's coverage and statistics accumulators."""

    def __init__(
        self,
        user_id: str,
        coverage: CoverageTracker,
        stats: StatsTracker,
        run_stats: RunStatistics,
    ):
        self._user_id = user_id
        self._coverage = coverage
        self._stats = stats
        self._run_stats = run_stats

    def process_game(self, game: GameRecord) -> Optional[ProcessedGameResult]:
        """
        Processes a single game.

        Returns:
            A `ProcessedGameResult` with fresh snapshots, or None if the game was
            skipped (tracked player absent, or a move could not be resolved).
            Moves recorded before an unresolvable one remain in coverage.
        """
        self._run_stats.add_stat(StatKey.GAMES_RECEIVED)

        side = chess_utils.get_player_side(game, self._user_id)
        if side is None:
            logger.warning("Skipping game without the tracked player.", game_id=game.id, user_id=self._user_id)
            self._skip(StatKey.SKIPPED_NO_TARGET_PLAYER, "no_target_player")
            return None

        try:
            self._coverage.update_from_game(game, side)
        except MoveResolutionError as e:
            logger.warning("Skipping game with an unparseable move.", game_id=game.id, error=str(e))
            self._skip(StatKey.SKIPPED_MALFORMED_MOVE, "malformed_move")
            return None

        coverage = self._coverage.snapshot()
        stats = self._stats.update(game, coverage, side)

        self._run_stats.add_stat(StatKey.GAMES_PROCESSED)
        metrics.GAMES_PROCESSED_TOTAL.inc()
        metrics.COVERAGE_PROGRESS.set(stats.progress)

        return ProcessedGameResult(game_id=game.id, side=side, coverage=coverage, stats=stats)

    def _skip(self, key: StatKey, reason: str) -> None:
        self._run_stats.record_skip(key)
        metrics.GAMES_SKIPPED_TOTAL.labels(reason=reason).inc()
