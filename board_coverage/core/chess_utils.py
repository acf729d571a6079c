# board_coverage/core/chess_utils.py
"""
Provides a collection of pure, stateless helpers for the chess domain.

This module acts as the "math library" of the tracker: the coverage total,
side detection for the tracked player, per-side move extraction and time
formatting. It depends only on the data contracts in `types.py`.
"""

from typing import Final, List, Optional

from board_coverage.exceptions import InvalidSideError
from board_coverage.types import BOARD_SIZE, GameRecord, PieceKind, Side

# Six piece kinds on 64 squares each.
TOTAL_TRACKED_SQUARES: Final[int] = BOARD_SIZE * BOARD_SIZE * len(PieceKind)


def get_player_side(game: GameRecord, user_id: str) -> Optional[Side]:
    """
    Determines which side the tracked user played in a game.

    Anonymous players carry no user entry and never match.

    Returns:
        The user's `Side`, or None if the user did not take part.
    """
    user_id = user_id.lower()
    white_user = game.players.white.user
    if white_user is not None and white_user.id.lower() == user_id:
        return Side.WHITE
    black_user = game.players.black.user
    if black_user is not None and black_user.id.lower() == user_id:
        return Side.BLACK
    return None


def get_player_moves(game: GameRecord, side: Side) -> List[str]:
    """Returns the SAN tokens played by `side`: even plies for White, odd for Black."""
    moves = game.moves.split()
    match side:
        case Side.WHITE:
            return moves[0::2]
        case Side.BLACK:
            return moves[1::2]
        case _:
            raise InvalidSideError(side)


def format_hhmmss(seconds: float) -> str:
    """
    Formats a duration as zero-padded HH:MM:SS. Hours are not wrapped at 24.

    Example: 3725.4 -> "01:02:05"
    """
    remaining = max(0, int(seconds))
    hours, remaining = divmod(remaining, 3600)
    minutes, secs = divmod(remaining, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
