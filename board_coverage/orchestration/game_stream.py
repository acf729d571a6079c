# board_coverage/orchestration/game_stream.py
"""
Defines `GameStream`, the unbounded cursor-advancing sequence of qualifying games.

The stream is a small state machine:

    FETCHING ──page──▶ (yield qualifying games) ──▶ IDLE(poll interval) ──▶ FETCHING
       │                                                  ▲
       ├──empty page──────────────────────────────────────┘
       └──HTTP 429──▶ RATE_LIMITED(cooldown) ──▶ FETCHING

Any state moves to STOPPED as soon as the shutdown event is seen. The event is
checked before each fetch, before each yield and after each suspension, and the
default sleeper wakes up as soon as it is set.

The cursor only moves forward: after a non-empty page it becomes the newest
creation timestamp of *all* records in that page, including the ones filtered
out, so a page made entirely of filtered games still advances the stream.
"""

import asyncio
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable, FrozenSet, List, Optional, Tuple

import structlog

from board_coverage.config.settings import RetrySettings, SourceSettings
from board_coverage.exceptions import GameSourceError
from board_coverage.types import Cursor, FetchResult, GameRecord, GameSource, RateLimited, Speed
from board_coverage.utils import metrics
from board_coverage.utils.retry import retry_with_backoff

logger = structlog.get_logger(__name__)

Sleeper = Callable[[float], Awaitable[None]]
BoundaryKey = Tuple[str, Cursor]


class StreamState(str, Enum):
    FETCHING = "fetching"; IDLE = "idle"; RATE_LIMITED = "rate_limited"; STOPPED = "stopped"


def make_interruptible_sleeper(shutdown_event: asyncio.Event) -> Sleeper:
    """Builds a sleeper that returns early when `shutdown_event` is set."""
    async def _sleep(seconds: float) -> None:
        try:
            await asyncio.wait_for(shutdown_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass
    return _sleep


def _boundary_key(game: GameRecord) -> BoundaryKey:
    return game.id, game.created_at


def filter_reason(game: GameRecord) -> Optional[str]:
    """Returns why `game` must not be yielded, or None if it qualifies."""
    if game.speed is Speed.CORRESPONDENCE:
        return "correspondence"
    if not game.has_clock:
        return "no_clock"
    return None


class GameStream:
    """
    Polls a `GameSource` for one user's new games and yields the qualifying ones.

    A stream is consumed once; start a new stream (with a new cursor) to resume.
    """

    def __init__(
        self,
        source: GameSource,
        user_id: str,
        start_cursor: Cursor,
        source_settings: SourceSettings,
        retry_settings: RetrySettings,
        shutdown_event: asyncio.Event,
        sleeper: Optional[Sleeper] = None,
        on_rate_limited: Optional[Callable[[], None]] = None,
    ):
        self._user_id = user_id
        self._cursor = start_cursor
        self._poll_interval_s = source_settings.poll_interval_s
        self._cooldown_s = source_settings.rate_limit_cooldown_s
        self._shutdown_event = shutdown_event
        self._sleep = sleeper or make_interruptible_sleeper(shutdown_event)
        self._on_rate_limited = on_rate_limited
        self._state = StreamState.IDLE
        self._consumed = False
        # (id, created_at) of records created exactly at the cursor; `since` is
        # inclusive, so the provider sends them again on the next poll.
        self._boundary_keys: FrozenSet[BoundaryKey] = frozenset()
        self._fetch_page: Callable[[str, Cursor], Awaitable[FetchResult]] = retry_with_backoff(
            attempts=retry_settings.attempts,
            initial_backoff_s=retry_settings.initial_backoff_s,
            max_backoff_s=retry_settings.max_backoff_s,
            operation="fetch_page",
            sleeper=self._sleep,
            should_stop=shutdown_event.is_set,
        )(source.fetch_page)

    @property
    def cursor(self) -> Cursor:
        return self._cursor

    @property
    def state(self) -> StreamState:
        return self._state

    def _stopping(self) -> bool:
        if self._shutdown_event.is_set():
            self._state = StreamState.STOPPED
            return True
        return False

    async def _suspend(self, state: StreamState, seconds: float) -> None:
        self._state = state
        logger.debug("Game stream suspended.", state=state.value, seconds=seconds, cursor=self._cursor)
        await self._sleep(seconds)

    def _advance_cursor(self, page: List[GameRecord]) -> None:
        newest = max(game.created_at for game in page)
        if newest < self._cursor:
            logger.warning("Page older than cursor; keeping cursor.", newest=newest, cursor=self._cursor)
            return
        boundary = frozenset(_boundary_key(game) for game in page if game.created_at == newest)
        self._boundary_keys = boundary if newest > self._cursor else self._boundary_keys | boundary
        self._cursor = newest

    def _select(self, page: List[GameRecord], already_seen: FrozenSet[BoundaryKey]) -> List[GameRecord]:
        selected: List[GameRecord] = []
        for game in page:
            reason = "duplicate" if _boundary_key(game) in already_seen else filter_reason(game)
            if reason is not None:
                metrics.GAMES_FILTERED_TOTAL.labels(reason=reason).inc()
                logger.debug("Game filtered out.", game_id=game.id, reason=reason)
                continue
            selected.append(game)
        return selected

    async def games(self) -> AsyncIterator[GameRecord]:
        """
        Yields qualifying games in arrival order until the shutdown event is set.

        Raises:
            SourceUnavailable: Once the bounded retries of a fetch are exhausted.
                Not raised when the shutdown event is set; the stream just ends.
            RuntimeError: If the stream was already consumed.
        """
        if self._consumed:
            raise RuntimeError("GameStream can only be consumed once; create a new stream to resume.")
        self._consumed = True

        try:
            while not self._stopping():
                self._state = StreamState.FETCHING
                try:
                    result = await self._fetch_page(self._user_id, self._cursor)
                except GameSourceError:
                    if self._stopping():
                        logger.info("Source error during shutdown; stopping quietly.", cursor=self._cursor)
                        return
                    raise

                if isinstance(result, RateLimited):
                    if self._on_rate_limited:
                        self._on_rate_limited()
                    await self._suspend(StreamState.RATE_LIMITED, self._cooldown_s)
                    continue

                if not result:
                    await self._suspend(StreamState.IDLE, self._poll_interval_s)
                    continue

                already_seen = self._boundary_keys
                self._advance_cursor(result)
                for game in self._select(result, already_seen):
                    if self._stopping():
                        return
                    metrics.GAMES_YIELDED_TOTAL.inc()
                    yield game

                await self._suspend(StreamState.IDLE, self._poll_interval_s)
        finally:
            self._state = StreamState.STOPPED
            logger.info("Game stream stopped.", cursor=self._cursor)
