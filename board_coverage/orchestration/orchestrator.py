# board_coverage/orchestration/orchestrator.py
"""
The top-level tracking orchestrator: the single consumer loop of a run.
"""

import asyncio
import uuid
from typing import Awaitable, Callable, List, Optional

import punq
import structlog

from board_coverage.config.settings import RunConfig
from board_coverage.core.coverage_tracker import CoverageTracker
from board_coverage.core.stats_tracker import StatsTracker
from board_coverage.exceptions import GameSourceError
from board_coverage.orchestration.game_processor import GameProcessor
from board_coverage.orchestration.game_stream import GameStream
from board_coverage.statistics import RunStatistics
from board_coverage.tracing import CorrelationID, bound_correlation_id
from board_coverage.types import GameSource, ProcessedGameResult, RunReport

logger = structlog.get_logger(__name__)

ProgressCallback = Callable[[ProcessedGameResult], Awaitable[None]]


class CoverageOrchestrator:
    """
    Drives one tracking run: pulls games from the stream, applies each one, and
    hands immutable snapshots to the presentation layer after every game.

    The run has no natural end. It stops when `shutdown_event` is set or when
    the game source stays unavailable after its retries.
    """

    def __init__(
        self,
        config: RunConfig,
        container: punq.Container,
        progress_callback: Optional[ProgressCallback] = None,
        shutdown_event: Optional[asyncio.Event] = None,
    ):
        self._config = config
        self._container = container
        self._progress_callback = progress_callback
        self._shutdown_event = shutdown_event or asyncio.Event()

    async def run(self) -> RunReport:
        run_id = f"run-{uuid.uuid4().hex[:8]}"
        logger.info(
            "Starting coverage tracking.",
            run_id=run_id, user_id=self._config.user_id, since=self._config.start_timestamp_ms,
        )
        warnings: List[str] = []
        processor: GameProcessor = self._container.resolve(GameProcessor)

        try:
            async with self._container.resolve(GameSource) as source:
                stream: GameStream = self._container.resolve(
                    GameStream, source=source, shutdown_event=self._shutdown_event
                )
                async for game in stream.games():
                    with bound_correlation_id(CorrelationID(run_id=run_id, game_id=game.id)):
                        result = processor.process_game(game)
                        if result is None:
                            continue
                        logger.info(
                            "Game applied to coverage.",
                            games_played=result.stats.games_played,
                            progress=round(result.stats.progress, 4),
                        )
                        if self._progress_callback:
                            await self._progress_callback(result)
        except GameSourceError as e:
            logger.critical("Game source unavailable, stopping the run.", error=str(e))
            self._shutdown_event.set()
            warnings.append(f"Fatal error: {e}")
        finally:
            self._container.resolve(RunStatistics).log_summary()
            logger.info("Coverage tracking finished.", run_id=run_id)

        stats = self._container.resolve(StatsTracker).snapshot()
        return RunReport(
            run_id=run_id,
            coverage=self._container.resolve(CoverageTracker).snapshot(),
            stats=stats,
            warnings=warnings,
        )
