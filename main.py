# main.py
"""
The console entry point for the Board Coverage speedrun tracker.

Usage:
  python main.py <username> [--since 2026-10-18T12:00] [--log-level INFO] [--log-file run.jsonl]
"""
import argparse
import asyncio
import sys
from datetime import datetime
from pathlib import Path

import structlog

from board_coverage.config.settings import settings
from board_coverage.containers import get_container
from board_coverage.core.chess_utils import format_hhmmss
from board_coverage.orchestration.orchestrator import CoverageOrchestrator
from board_coverage.orchestration.run_config_factory import RunConfigFactory
from board_coverage.types import PieceKind, ProcessedGameResult
from board_coverage.utils.logging_config import setup_logging
from board_coverage.utils.signal_manager import AsyncSignalManager

logger = structlog.get_logger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Track which squares every piece has moved to across your games.")
    parser.add_argument("username", help="Lichess user name to track.")
    parser.add_argument(
        "--since", type=datetime.fromisoformat, default=None,
        help="Speedrun start as an ISO datetime (UTC unless an offset is given). Defaults to now.",
    )
    parser.add_argument("--log-level", default=settings.default_log_level)
    parser.add_argument("--log-file", type=Path, default=None)
    return parser.parse_args(argv)


async def report_progress(result: ProcessedGameResult) -> None:
    """Logs the headline figures after each processed game."""
    covered = result.coverage.covered_by_piece()
    logger.info(
        "Speedrun progress.",
        games_played=result.stats.games_played,
        progress=f"{result.stats.progress * 100:.1f}%",
        time_taken=format_hhmmss(result.stats.cumulative_elapsed_seconds),
        **{piece.name.lower(): covered[piece] for piece in PieceKind},
    )


async def run(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(log_level=args.log_level, log_file=args.log_file)

    run_config = RunConfigFactory.create_from_cli(
        args.username, since=args.since, log_file=str(args.log_file) if args.log_file else None
    )
    shutdown_event = asyncio.Event()
    orchestrator = CoverageOrchestrator(
        run_config, get_container(run_config),
        progress_callback=report_progress, shutdown_event=shutdown_event,
    )
    async with AsyncSignalManager(shutdown_event):
        report = await orchestrator.run()

    logger.info(
        "Final speedrun standing.",
        games_played=report.stats.games_played,
        progress=f"{report.stats.progress * 100:.1f}%",
        time_taken=format_hhmmss(report.stats.cumulative_elapsed_seconds),
    )
    return 1 if report.warnings else 0


def main():
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
