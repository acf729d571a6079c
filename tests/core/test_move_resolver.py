# tests/core/test_move_resolver.py
import pytest

from board_coverage.core.move_resolver import resolve
from board_coverage.exceptions import InvalidSideError, MoveSyntaxError
from board_coverage.types import PieceKind, Side, Square


def sq(name: str) -> Square:
    return Square.from_algebraic(name)


@pytest.mark.parametrize("token, side, expected", [
    ("O-O", Side.WHITE, (PieceKind.KING, sq("g1"))),
    ("O-O-O", Side.WHITE, (PieceKind.KING, sq("c1"))),
    ("o-o#", Side.BLACK, (PieceKind.KING, sq("g8"))),
    ("O-O-O++", Side.BLACK, (PieceKind.KING, sq("c8"))),
    ("0-0", Side.BLACK, (PieceKind.KING, sq("g8"))),
    ("0-0-0+", Side.WHITE, (PieceKind.KING, sq("c1"))),
])
def test_resolve_castling(token, side, expected):
    assert resolve(token, side) == expected


@pytest.mark.parametrize("token, expected", [
    ("e4", (PieceKind.PAWN, sq("e4"))),
    ("Nbd2", (PieceKind.KNIGHT, sq("d2"))),
    ("Raxe1+", (PieceKind.ROOK, sq("e1"))),
    ("e8=Q", (PieceKind.PAWN, sq("e8"))),
    ("dxc3", (PieceKind.PAWN, sq("c3"))),
    ("N@c3", (PieceKind.KNIGHT, sq("c3"))),
    ("@c2", (PieceKind.PAWN, sq("c2"))),
    ("Qh4xe1#", (PieceKind.QUEEN, sq("e1"))),
    ("Bxf7+", (PieceKind.BISHOP, sq("f7"))),
    ("Kxd1", (PieceKind.KING, sq("d1"))),
    ("gxh1=N++", (PieceKind.PAWN, sq("h1"))),
])
def test_resolve_regular_moves(token, expected):
    assert resolve(token, Side.WHITE) == expected


def test_regular_moves_do_not_depend_on_side():
    assert resolve("Nf6", Side.WHITE) == resolve("Nf6", Side.BLACK)


@pytest.mark.parametrize("token", ["Z9", "", "e9", "i4", "O-O-O-O", "Nxx4", "e4!", "oO-O"])
def test_resolve_rejects_malformed_tokens(token):
    with pytest.raises(MoveSyntaxError) as excinfo:
        resolve(token, Side.WHITE)
    assert excinfo.value.token == token


def test_resolve_rejects_unknown_side():
    with pytest.raises(InvalidSideError):
        resolve("e4", "white")


def test_resolve_is_pure():
    assert resolve("Raxe1+", Side.BLACK) == resolve("Raxe1+", Side.BLACK)
