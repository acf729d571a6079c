"""
Defines the Dependency Injection (DI) container for a tracking run.

This module uses the `punq` library to wire the game source, the stream, the
accumulators and the per-game processor. Accumulators are registered as
singletons: they are created once per run and shared by the processor and the
orchestrator's final report.
"""

import functools

import punq

from board_coverage.config.settings import RunConfig
from board_coverage.core.coverage_tracker import CoverageTracker
from board_coverage.core.move_resolver import resolve
from board_coverage.core.stats_tracker import StatsTracker, get_elapsed_time
from board_coverage.orchestration.game_processor import GameProcessor
from board_coverage.orchestration.game_stream import GameStream
from board_coverage.services.lichess_source import LichessGameSource
from board_coverage.statistics import RunStatistics, StatKey
from board_coverage.types import GameSource


def get_container(run_config: RunConfig) -> punq.Container:
    """
    Initializes and returns a DI container configured for a specific run.
    """
    container = punq.Container()

    container.register(RunConfig, instance=run_config)
    container.register(GameSource, factory=lambda: LichessGameSource(run_config.source), scope=punq.Scope.singleton)

    container.register(RunStatistics, scope=punq.Scope.singleton)
    container.register(CoverageTracker, factory=lambda: CoverageTracker(resolve), scope=punq.Scope.singleton)
    container.register(
        StatsTracker,
        factory=lambda: StatsTracker(functools.partial(get_elapsed_time, method=run_config.elapsed_time_method)),
        scope=punq.Scope.singleton,
    )
    container.register(
        GameProcessor,
        factory=lambda: GameProcessor(
            run_config.user_id,
            container.resolve(CoverageTracker),
            container.resolve(StatsTracker),
            container.resolve(RunStatistics),
        ),
    )

    # The source is entered by the orchestrator, so the stream is built per
    # resolution with the live source and the run's shutdown event.
    def create_game_stream(source, shutdown_event):
        run_stats: RunStatistics = container.resolve(RunStatistics)
        return GameStream(
            source=source,
            user_id=run_config.user_id,
            start_cursor=run_config.start_timestamp_ms,
            source_settings=run_config.source,
            retry_settings=run_config.retry,
            shutdown_event=shutdown_event,
            on_rate_limited=lambda: run_stats.add_stat(StatKey.RATE_LIMITED_POLLS),
        )

    container.register(GameStream, factory=create_game_stream)

    return container
