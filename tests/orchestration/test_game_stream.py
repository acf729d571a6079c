# tests/orchestration/test_game_stream.py
import asyncio

import pytest

from board_coverage.config.settings import RetrySettings, SourceSettings
from board_coverage.exceptions import SourceUnavailable
from board_coverage.orchestration.game_stream import GameStream, StreamState, make_interruptible_sleeper
from board_coverage.types import GameRecord, RateLimited

POLL = 10.0
COOLDOWN = 60.0


def make_game(game_id, created_at, speed="blitz", clock=True):
    data = {"id": game_id, "createdAt": created_at, "speed": speed, "moves": "e4"}
    if clock:
        data["clock"] = {"initial": 180, "increment": 0, "totalTime": 180}
    return GameRecord.model_validate(data)


class ScriptedSource:
    """Returns the scripted results in order, then stops the run with a final empty page."""

    def __init__(self, script, shutdown_event):
        self._script = list(script)
        self._shutdown_event = shutdown_event
        self.cursors = []

    async def fetch_page(self, user_id, cursor):
        self.cursors.append(cursor)
        if not self._script:
            self._shutdown_event.set()
            return []
        result = self._script.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class RecordingSleeper:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


def make_stream(script, start_cursor=0, attempts=1, sleeper=None):
    shutdown_event = asyncio.Event()
    source = ScriptedSource(script, shutdown_event)
    sleeper = sleeper or RecordingSleeper()
    stream = GameStream(
        source=source,
        user_id="alice",
        start_cursor=start_cursor,
        source_settings=SourceSettings(poll_interval_s=POLL, rate_limit_cooldown_s=COOLDOWN),
        retry_settings=RetrySettings(attempts=attempts, initial_backoff_s=0, max_backoff_s=0),
        shutdown_event=shutdown_event,
        sleeper=sleeper,
    )
    return stream, source, sleeper, shutdown_event


async def collect(stream):
    return [game async for game in stream.games()]


@pytest.mark.asyncio
async def test_stream_yields_qualifying_games_in_order():
    page = [make_game("a", 100), make_game("b", 200), make_game("c", 300)]
    stream, source, sleeper, _ = make_stream([page])
    games = await collect(stream)
    assert [g.id for g in games] == ["a", "b", "c"]
    assert source.cursors == [0, 300]
    assert sleeper.calls == [POLL, POLL]
    assert stream.state is StreamState.STOPPED


@pytest.mark.asyncio
async def test_stream_filters_correspondence_and_clockless_games():
    page = [
        make_game("a", 100, speed="correspondence"),
        make_game("b", 200, clock=False),
        make_game("c", 300),
    ]
    stream, _, _, _ = make_stream([page])
    assert [g.id for g in await collect(stream)] == ["c"]


@pytest.mark.asyncio
async def test_clock_without_total_time_counts_as_missing():
    game = GameRecord.model_validate({
        "id": "a", "createdAt": 100, "speed": "blitz", "clock": {"initial": 180, "increment": 0},
    })
    stream, _, _, _ = make_stream([[game]])
    assert await collect(stream) == []


@pytest.mark.asyncio
async def test_cursor_advances_past_filtered_games():
    page = [make_game("a", 100), make_game("b", 500, speed="correspondence")]
    stream, source, _, _ = make_stream([page])
    games = await collect(stream)
    assert [g.id for g in games] == ["a"]
    assert stream.cursor == 500
    assert source.cursors[-1] == 500


@pytest.mark.asyncio
async def test_fully_filtered_page_still_advances_cursor():
    page = [make_game("a", 100, clock=False), make_game("b", 700, speed="correspondence")]
    stream, source, _, _ = make_stream([page], start_cursor=50)
    assert await collect(stream) == []
    assert source.cursors == [50, 700]


@pytest.mark.asyncio
async def test_empty_page_waits_poll_interval_without_moving_cursor():
    stream, source, sleeper, _ = make_stream([[], [make_game("a", 100)]], start_cursor=42)
    games = await collect(stream)
    assert [g.id for g in games] == ["a"]
    assert source.cursors == [42, 42, 100]
    assert sleeper.calls == [POLL, POLL, POLL]


@pytest.mark.asyncio
async def test_rate_limit_waits_cooldown_and_retries_same_window():
    stream, source, sleeper, _ = make_stream([RateLimited(), [make_game("a", 100)]], start_cursor=42)
    games = await collect(stream)
    assert [g.id for g in games] == ["a"]
    assert source.cursors == [42, 42, 100]
    assert sleeper.calls == [COOLDOWN, POLL, POLL]


@pytest.mark.asyncio
async def test_games_at_the_cursor_boundary_are_not_yielded_twice():
    first = [make_game("a", 100), make_game("b", 200)]
    second = [make_game("b", 200), make_game("c", 300)]
    stream, _, _, _ = make_stream([first, second])
    assert [g.id for g in await collect(stream)] == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_cursor_never_moves_backwards():
    stream, _, _, _ = make_stream([[make_game("a", 50)]], start_cursor=100)
    await collect(stream)
    assert stream.cursor == 100


@pytest.mark.asyncio
async def test_source_unavailable_is_retried_then_raised():
    failure = SourceUnavailable("down", status_code=503)
    stream, source, _, _ = make_stream([failure, [make_game("a", 100)]], attempts=2)
    assert [g.id for g in await collect(stream)] == ["a"]

    stream, source, _, _ = make_stream([failure, failure, failure], attempts=2)
    with pytest.raises(SourceUnavailable):
        await collect(stream)
    assert len(source.cursors) == 2


@pytest.mark.asyncio
async def test_shutdown_stops_before_next_yield():
    page = [make_game("a", 100), make_game("b", 200)]
    stream, source, _, shutdown_event = make_stream([page])
    yielded = []
    async for game in stream.games():
        yielded.append(game.id)
        shutdown_event.set()
    assert yielded == ["a"]
    assert source.cursors == [0]
    assert stream.state is StreamState.STOPPED


@pytest.mark.asyncio
async def test_stream_cannot_be_consumed_twice():
    stream, _, _, _ = make_stream([])
    await collect(stream)
    with pytest.raises(RuntimeError):
        await collect(stream)


@pytest.mark.asyncio
async def test_interruptible_sleeper_returns_when_shutdown_is_set():
    shutdown_event = asyncio.Event()
    sleep = make_interruptible_sleeper(shutdown_event)
    asyncio.get_running_loop().call_later(0.01, shutdown_event.set)
    await asyncio.wait_for(sleep(30), timeout=1)
    assert shutdown_event.is_set()


@pytest.mark.asyncio
async def test_games_without_id_at_the_boundary_are_not_yielded_twice():
    first = [make_game("", 100)]
    second = [make_game("", 100), make_game("b", 200)]
    stream, _, _, _ = make_stream([first, second])
    assert [g.id for g in await collect(stream)] == ["", "b"]


class OutageSource:
    """Always fails; optionally requests shutdown on its first call."""

    def __init__(self, shutdown_event, shutdown_on_call):
        self._shutdown_event = shutdown_event
        self._shutdown_on_call = shutdown_on_call
        self.calls = 0

    async def fetch_page(self, user_id, cursor):
        self.calls += 1
        if self._shutdown_on_call:
            self._shutdown_event.set()
        raise SourceUnavailable("down", status_code=503)


def make_outage_stream(shutdown_event, shutdown_on_call, sleeper=None):
    source = OutageSource(shutdown_event, shutdown_on_call)
    stream = GameStream(
        source=source,
        user_id="alice",
        start_cursor=0,
        source_settings=SourceSettings(poll_interval_s=POLL, rate_limit_cooldown_s=COOLDOWN),
        retry_settings=RetrySettings(attempts=3, initial_backoff_s=0.5, max_backoff_s=1.0),
        shutdown_event=shutdown_event,
        sleeper=sleeper,
    )
    return stream, source


@pytest.mark.asyncio
async def test_shutdown_during_outage_stops_without_retrying():
    stream, source = make_outage_stream(asyncio.Event(), shutdown_on_call=True)
    assert await asyncio.wait_for(collect(stream), timeout=0.4) == []
    assert source.calls == 1
    assert stream.state is StreamState.STOPPED


@pytest.mark.asyncio
async def test_shutdown_during_retry_backoff_stops_without_retrying():
    shutdown_event = asyncio.Event()

    async def sleeper(seconds):
        shutdown_event.set()

    stream, source = make_outage_stream(shutdown_event, shutdown_on_call=False, sleeper=sleeper)
    assert await collect(stream) == []
    assert source.calls == 1
