# board_coverage/core/time_parser.py
"""
Provides pure, stateless utilities to estimate think time from PGN clock annotations.

A game exported with clocks carries one `[%clk H:MM:SS]` readout per ply, in ply
order. From the first and last readouts of each side, plus the clock
configuration, the elapsed think time per side can be reconstructed:

    elapsed = start - end + (moves_by_side - 1) * increment

The first move of each side receives no increment credit. A side that
berserked (started with exactly half the initial time) forfeits its increment.

Known approximation: games that end abruptly (mate, stalemate, rule-based
termination) may not be credited the final increment by the platform; the
estimate always assumes it was.
"""

import math
import re
from typing import List, Optional

from board_coverage.types import ClockConfig, ElapsedTime

# Captures "%clk H:MM:SS" with optional hours and optional fractional seconds.
# The surrounding "[ ]" of the PGN comment is not required.
CLK_PATTERN = re.compile(
    r"%clk\s+"
    r"((?P<h>\d+):)?"          # Optional hours group (e.g., "1:")
    r"(?P<m>\d{1,2}):"         # Minutes group (e.g., "05:")
    r"(?P<s>\d{1,2})"          # Seconds group (e.g., "33")
    r"(\.(?P<ds>\d+))?"        # Optional fractional seconds group (e.g., ".7")
)

NO_ELAPSED_TIME = ElapsedTime(white=0.0, black=0.0)


def _match_to_seconds(match: "re.Match[str]") -> float:
    parts = match.groupdict()
    hours = int(parts.get("h") or 0)
    minutes = int(parts["m"])
    seconds = int(parts["s"])
    fractional_seconds = float(f"0.{parts.get('ds') or '0'}")
    return (hours * 3600) + (minutes * 60) + seconds + fractional_seconds


def extract_clock_readings(pgn_text: Optional[str]) -> List[float]:
    """Extracts every clock readout of a PGN text, in ply order, as seconds."""
    if not pgn_text:
        return []
    return [_match_to_seconds(match) for match in CLK_PATTERN.finditer(pgn_text)]


def is_berserk(start_seconds: float, initial_seconds: int) -> bool:
    """A side berserked if it started with exactly half of the configured initial time."""
    return start_seconds * 2 == initial_seconds


def elapsed(pgn_text: Optional[str], clock_config: ClockConfig) -> ElapsedTime:
    """
    Estimates the think time each side spent in one game.

    Args:
        pgn_text: The game's PGN (or any text) with embedded `%clk` annotations.
        clock_config: The game's initial time and increment, in seconds.

    Returns:
        An `ElapsedTime` with per-side seconds. With fewer than two readouts
        (the game ended before Black's first recorded clock), both are zero.
    """
    times = extract_clock_readings(pgn_text)
    plies = len(times)
    if plies < 2:
        return NO_ELAPSED_TIME

    start_white, start_black = times[0], times[1]

    # With an even ply count Black made the last recorded move.
    if plies % 2 == 0:
        end_white, end_black = times[-2], times[-1]
    else:
        end_white, end_black = times[-1], times[-2]

    increment = clock_config.increment_seconds
    increment_white = 0 if is_berserk(start_white, clock_config.initial_seconds) else increment
    increment_black = 0 if is_berserk(start_black, clock_config.initial_seconds) else increment

    moves_white = math.ceil(plies / 2)
    moves_black = plies // 2
    bonus_white = (moves_white - 1) * increment_white
    bonus_black = (moves_black - 1) * increment_black

    return ElapsedTime(
        white=start_white - end_white + bonus_white,
        black=start_black - end_black + bonus_black,
    )
