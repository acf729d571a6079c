# tests/core/test_coverage_tracker.py
import pytest
from unittest.mock import MagicMock

from board_coverage.core.coverage_tracker import CoverageTracker
from board_coverage.exceptions import MoveSyntaxError
from board_coverage.types import GameRecord, PieceKind, Side, Square


def make_game(moves):
    return GameRecord.model_validate({"id": "g1", "createdAt": 1, "speed": "blitz", "moves": moves})


def total_visits(snapshot):
    return sum(cell for grid in snapshot.grids.values() for row in grid for cell in row)


def test_new_tracker_is_empty():
    snapshot = CoverageTracker().snapshot()
    assert set(snapshot.grids) == set(PieceKind)
    assert snapshot.covered_squares() == 0
    assert sum(len(row) for grid in snapshot.grids.values() for row in grid) == 384


def test_push_increments_counter():
    tracker = CoverageTracker()
    e4 = Square.from_algebraic("e4")
    tracker.push(PieceKind.PAWN, e4)
    tracker.push(PieceKind.PAWN, e4)
    assert tracker.count(PieceKind.PAWN, e4) == 2
    assert tracker.count(PieceKind.KNIGHT, e4) == 0


def test_push_is_monotonic():
    tracker = CoverageTracker()
    previous = 0
    for name in ["a1", "h8", "a1", "d4", "d4", "d4"]:
        tracker.push(PieceKind.QUEEN, Square.from_algebraic(name))
        current = total_visits(tracker.snapshot())
        assert current == previous + 1
        previous = current


def test_update_from_game_records_only_the_given_side():
    tracker = CoverageTracker()
    game = make_game("e4 e5 Nf3 Nc6 O-O")
    assert tracker.update_from_game(game, Side.WHITE) == 3

    snapshot = tracker.snapshot()
    assert snapshot.count(PieceKind.PAWN, Square.from_algebraic("e4")) == 1
    assert snapshot.count(PieceKind.KNIGHT, Square.from_algebraic("f3")) == 1
    assert snapshot.count(PieceKind.KING, Square.from_algebraic("g1")) == 1
    assert snapshot.count(PieceKind.PAWN, Square.from_algebraic("e5")) == 0
    assert snapshot.covered_squares() == 3


def test_update_from_game_for_black():
    tracker = CoverageTracker()
    tracker.update_from_game(make_game("d4 d5 c4 O-O-O"), Side.BLACK)
    snapshot = tracker.snapshot()
    assert snapshot.count(PieceKind.PAWN, Square.from_algebraic("d5")) == 1
    assert snapshot.count(PieceKind.KING, Square.from_algebraic("c8")) == 1


def test_update_from_game_keeps_moves_before_a_malformed_one():
    tracker = CoverageTracker()
    with pytest.raises(MoveSyntaxError):
        tracker.update_from_game(make_game("e4 e5 Z9 Nc6 Nf3"), Side.WHITE)
    assert tracker.count(PieceKind.PAWN, Square.from_algebraic("e4")) == 1
    assert tracker.count(PieceKind.KNIGHT, Square.from_algebraic("f3")) == 0


def test_update_from_game_uses_injected_resolver():
    resolver = MagicMock(return_value=(PieceKind.ROOK, Square.from_algebraic("a8")))
    tracker = CoverageTracker(resolver)
    tracker.update_from_game(make_game("x y z"), Side.BLACK)
    resolver.assert_called_once_with("y", Side.BLACK)
    assert tracker.count(PieceKind.ROOK, Square.from_algebraic("a8")) == 1


def test_snapshot_is_detached_from_live_counters():
    tracker = CoverageTracker()
    snapshot = tracker.snapshot()
    tracker.push(PieceKind.BISHOP, Square.from_algebraic("c4"))
    assert snapshot.count(PieceKind.BISHOP, Square.from_algebraic("c4")) == 0
    assert tracker.snapshot().count(PieceKind.BISHOP, Square.from_algebraic("c4")) == 1
