# board_coverage/core/stats_tracker.py
"""
Derives the speedrun statistics: games played, coverage progress and think time.

The tracker folds one processed game at a time. Progress is recomputed from the
full coverage snapshot rather than incremented, so it always equals the share
of (piece, square) pairs visited at least once.

Cumulative elapsed time adds the think time of *both* sides of every game,
whichever side the tracked player had. A game's contribution to the speedrun
clock is the whole game's duration at the board.
"""

from typing import Callable, Optional

import structlog

from board_coverage.core import chess_utils, time_parser
from board_coverage.types import (CoverageSnapshot, ElapsedTimeMethod, GameRecord,
                                  Side, StatsSnapshot)

logger = structlog.get_logger(__name__)

ElapsedTimeFunc = Callable[[GameRecord], float]


def get_elapsed_time(game: GameRecord, method: ElapsedTimeMethod = ElapsedTimeMethod.CLOCK_ANNOTATIONS) -> float:
    """
    Estimates the think time of one game, in seconds.

    - CLOCK_ANNOTATIONS: both sides' time reconstructed from `%clk` readouts.
    - CLOCK_TOTAL_TIME: the provider's `clock.totalTime`, which is imprecise.
    - GAME_DURATION: wall time between game creation and the last move.
    """
    match method:
        case ElapsedTimeMethod.CLOCK_ANNOTATIONS:
            if game.clock is None:
                return 0.0
            return time_parser.elapsed(game.pgn, game.clock).total
        case ElapsedTimeMethod.CLOCK_TOTAL_TIME:
            if game.clock is None or game.clock.total_time is None:
                return 0.0
            return float(game.clock.total_time)
        case ElapsedTimeMethod.GAME_DURATION:
            if game.last_move_at is None:
                return 0.0
            return max(0.0, (game.last_move_at - game.created_at) / 1000)
        case _:
            raise ValueError(f"Unknown elapsed time method: {method!r}")


class StatsTracker:
    """A stateful accumulator of the run's headline statistics."""

    def __init__(self, elapsed_time_func: Optional[ElapsedTimeFunc] = None):
        self._elapsed_time_func = elapsed_time_func or get_elapsed_time
        self.games_played = 0
        self.progress = 0.0
        self.cumulative_elapsed_seconds = 0.0

    def update(self, game: GameRecord, coverage: CoverageSnapshot, side: Side) -> StatsSnapshot:
        """
        Folds one processed game into the statistics.

        Args:
            game: The game that was just recorded into coverage.
            coverage: The coverage snapshot taken after recording `game`.
            side: The tracked player's side. It does not change the elapsed
                  time, which always covers both sides.

        Returns:
            The updated `StatsSnapshot`.
        """
        game_elapsed = self._elapsed_time_func(game)

        self.games_played += 1
        self.progress = coverage.covered_squares() / chess_utils.TOTAL_TRACKED_SQUARES
        self.cumulative_elapsed_seconds += game_elapsed

        logger.debug(
            "Statistics updated.",
            game_id=game.id, side=side.value, game_elapsed_seconds=round(game_elapsed, 1),
            games_played=self.games_played, progress=round(self.progress, 4),
        )
        return self.snapshot()

    def snapshot(self) -> StatsSnapshot:
        return StatsSnapshot(
            games_played=self.games_played,
            progress=self.progress,
            cumulative_elapsed_seconds=self.cumulative_elapsed_seconds,
        )
