# board_coverage/core/coverage_tracker.py
"""
Accumulates, per piece kind, how many times each square has been moved to.

The tracker is owned by the single consumer loop of a run. Counters only ever
grow; there is no decrement or reset. Consumers outside the loop read
`CoverageSnapshot` copies, never the live grids.
"""

from typing import Callable, Dict, List, Tuple

import structlog

from board_coverage.core import chess_utils
from board_coverage.core.move_resolver import resolve
from board_coverage.types import BOARD_SIZE, CoverageSnapshot, GameRecord, PieceKind, Side, Square

logger = structlog.get_logger(__name__)

MoveResolverFunc = Callable[[str, Side], Tuple[PieceKind, Square]]


def _empty_grid() -> List[List[int]]:
    return [[0] * BOARD_SIZE for _ in range(BOARD_SIZE)]


class CoverageTracker:
    """Holds one 8x8 counter grid per `PieceKind`, indexed grid[rank][file]."""

    def __init__(self, resolver: MoveResolverFunc = resolve):
        self._resolver = resolver
        self._grids: Dict[PieceKind, List[List[int]]] = {piece: _empty_grid() for piece in PieceKind}

    def push(self, piece: PieceKind, square: Square) -> None:
        """Records one visit of `piece` to `square`."""
        self._grids[piece][square.rank][square.file] += 1

    def update_from_game(self, game: GameRecord, side: Side) -> int:
        """
        Resolves every move `side` played in `game` and records its destination.

        Moves are pushed one at a time; if a token cannot be resolved the error
        propagates and the moves pushed before it stay recorded.

        Returns:
            The number of moves recorded.

        Raises:
            MoveSyntaxError: If a move token is not valid SAN.
            InvalidSideError: If `side` is not a `Side`.
        """
        pushed = 0
        for token in chess_utils.get_player_moves(game, side):
            piece, square = self._resolver(token, side)
            self.push(piece, square)
            pushed += 1
        logger.debug("Recorded moves from game.", game_id=game.id, side=side.value, moves=pushed)
        return pushed

    def count(self, piece: PieceKind, square: Square) -> int:
        return self._grids[piece][square.rank][square.file]

    def snapshot(self) -> CoverageSnapshot:
        """Returns an immutable copy of all counters."""
        return CoverageSnapshot(
            grids={piece: tuple(tuple(row) for row in grid) for piece, grid in self._grids.items()}
        )
