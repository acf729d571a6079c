# board_coverage/types.py
"""
A central module for shared data structures and service interfaces (Protocols).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import (Dict, List, Mapping, Optional, Protocol, Tuple, TypeAlias,
                    Union, runtime_checkable)

import chess
from pydantic import BaseModel, ConfigDict, Field

Cursor: TypeAlias = int  # Millisecond UTC timestamp watermark.
Grid: TypeAlias = Tuple[Tuple[int, ...], ...]

BOARD_SIZE = 8


class Side(str, Enum):
    WHITE = "white"; BLACK = "black"


class PieceKind(str, Enum):
    PAWN = "P"; KNIGHT = "N"; BISHOP = "B"; ROOK = "R"; QUEEN = "Q"; KING = "K"


class Speed(str, Enum):
    ULTRA_BULLET = "ultraBullet"; BULLET = "bullet"; BLITZ = "blitz"
    RAPID = "rapid"; CLASSICAL = "classical"; CORRESPONDENCE = "correspondence"


class ElapsedTimeMethod(str, Enum):
    """How the think-time of a single game is estimated."""
    CLOCK_ANNOTATIONS = "clock_annotations"
    CLOCK_TOTAL_TIME = "clock_total_time"
    GAME_DURATION = "game_duration"


@dataclass(frozen=True, slots=True)
class Square:
    """A board square as (rank, file), both in [0, 7]. Rank 0 is rank "1"."""
    rank: int
    file: int

    def __post_init__(self) -> None:
        if not (0 <= self.rank < BOARD_SIZE and 0 <= self.file < BOARD_SIZE):
            raise ValueError(f"Square out of range: rank={self.rank}, file={self.file}")

    @classmethod
    def from_algebraic(cls, name: str) -> "Square":
        """Builds a square from its algebraic name, e.g. "e4"."""
        index = chess.parse_square(name)
        return cls(rank=chess.square_rank(index), file=chess.square_file(index))

    @property
    def algebraic(self) -> str:
        return chess.square_name(chess.square(self.file, self.rank))

    def __str__(self) -> str:
        return self.algebraic


# --- Wire contracts: one NDJSON line from the game provider ---

class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


class LichessUser(_WireModel):
    id: str
    name: Optional[str] = None


class PlayerEntry(_WireModel):
    user: Optional[LichessUser] = None
    rating: Optional[int] = None


class Players(_WireModel):
    white: PlayerEntry = Field(default_factory=PlayerEntry)
    black: PlayerEntry = Field(default_factory=PlayerEntry)


class ClockConfig(_WireModel):
    """The clock settings of a game. `total_time` is the provider's own estimate."""
    initial_seconds: int = Field(alias="initial")
    increment_seconds: int = Field(alias="increment")
    total_time: Optional[int] = Field(None, alias="totalTime")


class GameRecord(_WireModel):
    """A completed game as exported by the provider with `pgnInJson` and `clocks` enabled."""
    id: str = ""
    created_at: Cursor = Field(alias="createdAt")
    last_move_at: Optional[int] = Field(None, alias="lastMoveAt")
    speed: Speed
    players: Players = Field(default_factory=Players)
    moves: str = ""
    clock: Optional[ClockConfig] = None
    pgn: Optional[str] = None

    @property
    def has_clock(self) -> bool:
        return self.clock is not None and self.clock.total_time is not None


# --- Results handed across component boundaries ---

@dataclass(frozen=True, slots=True)
class RateLimited:
    """Outcome of a fetch the provider refused with HTTP 429."""
    retry_after: Optional[str] = None


FetchResult: TypeAlias = Union[List[GameRecord], RateLimited]


@dataclass(frozen=True, slots=True)
class ElapsedTime:
    white: float; black: float

    @property
    def total(self) -> float:
        return self.white + self.black


@dataclass(frozen=True)
class CoverageSnapshot:
    """An immutable copy of the per-piece visit counters, indexed grid[rank][file]."""
    grids: Mapping[PieceKind, Grid]

    def count(self, piece: PieceKind, square: Square) -> int:
        return self.grids[piece][square.rank][square.file]

    def covered_squares(self) -> int:
        return sum(1 for grid in self.grids.values() for row in grid for cell in row if cell > 0)

    def covered_by_piece(self) -> Dict[PieceKind, int]:
        return {piece: sum(1 for row in grid for cell in row if cell > 0) for piece, grid in self.grids.items()}


@dataclass(frozen=True, slots=True)
class StatsSnapshot:
    games_played: int = 0
    progress: float = 0.0
    cumulative_elapsed_seconds: float = 0.0


@dataclass(frozen=True)
class ProcessedGameResult:
    game_id: str; side: Side; coverage: CoverageSnapshot; stats: StatsSnapshot


@dataclass
class RunReport:
    run_id: str
    coverage: Optional[CoverageSnapshot] = None
    stats: StatsSnapshot = field(default_factory=StatsSnapshot)
    warnings: List[str] = field(default_factory=list)


# --- PROTOCOLS: Abstract Interfaces for Services ---

@runtime_checkable
class GameSource(Protocol):
    """Defines the abstract interface for an external game-record provider."""
    async def fetch_page(self, user_id: str, cursor: Cursor) -> FetchResult: ...
