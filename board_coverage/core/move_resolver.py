# board_coverage/core/move_resolver.py
"""
Maps a recorded SAN move token to the piece that moved and the square it landed on.

This is a pure grammar with no notion of board state: legality is never checked,
and disambiguation or capture markers never influence the result. Two declarative
patterns are tried in order, castling first, then regular moves (including the
`@` drop notation used by crazyhouse-style variants).

Handled examples: "O-O", "o-o#", "0-0-0", "O-O-O++", "e4", "Nbd2", "Raxe1+",
"e8=Q", "dxc3", "N@c3", "@c2".
"""

import re
from typing import Final, Tuple

from board_coverage.exceptions import InvalidSideError, MoveSyntaxError
from board_coverage.types import PieceKind, Side, Square

# Short ("O-O") or long ("O-O-O") castling, spelled with O, o or 0, plus an
# optional check or mate suffix.
CASTLING_PATTERN: Final = re.compile(
    r"^(?P<castle>O-O(?:-O)?|o-o(?:-o)?|0-0(?:-0)?)"
    r"(?:\+{1,2}|#)?$"
)

REGULAR_MOVE_PATTERN: Final = re.compile(
    r"^@?"                           # Optional drop marker
    r"(?P<piece>[PNBRQK]?)"          # Optional piece letter; absence means pawn
    r"(?:[a-h]?[1-8]?|@)"            # Optional origin file/rank, or a drop marker
    r"x?"                            # Optional capture marker
    r"(?P<square>[a-h][1-8])"        # Mandatory destination square
    r"(?:=[NBRQ])?"                  # Optional promotion suffix
    r"(?:\+{1,2}|#)?$"               # Optional check or mate suffix
)


def _back_rank(side: Side) -> str:
    match side:
        case Side.WHITE:
            return "1"
        case Side.BLACK:
            return "8"
        case _:
            raise InvalidSideError(side)


def _castling_destination(castle: str, side: Side) -> Square:
    """King-side castling lands the king on g1/g8, queen-side on c1/c8."""
    match len(castle):
        case 3:
            file = "g"
        case 5:
            file = "c"
        case _:
            raise MoveSyntaxError(castle)
    return Square.from_algebraic(file + _back_rank(side))


def resolve(move_token: str, side: Side) -> Tuple[PieceKind, Square]:
    """
    Resolves a single SAN token to the moved piece kind and its destination square.

    Args:
        move_token: One move in Standard Algebraic Notation.
        side: The side that played the move. Only castling depends on it.

    Returns:
        A `(PieceKind, Square)` pair. Promotions resolve to the piece that moved
        (a pawn), not the piece it became.

    Raises:
        InvalidSideError: If `side` is not a member of `Side`.
        MoveSyntaxError: If the token matches neither grammar.
    """
    if not isinstance(side, Side):
        raise InvalidSideError(side)

    if match := CASTLING_PATTERN.match(move_token):
        return PieceKind.KING, _castling_destination(match.group("castle"), side)

    if match := REGULAR_MOVE_PATTERN.match(move_token):
        letter = match.group("piece") or PieceKind.PAWN.value
        return PieceKind(letter), Square.from_algebraic(match.group("square"))

    raise MoveSyntaxError(move_token)
