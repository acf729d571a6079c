# board_coverage/exceptions.py
"""
Defines custom exceptions for the Board Coverage tracker.

Centralizing exceptions in this module prevents circular dependencies between
the pure core (move resolution) and the I/O services (the game source). A common
`BoardCoverageError` base allows callers to catch everything the tracker raises
on purpose while letting genuine programming errors propagate.

Note that a rate-limited request is deliberately *not* an exception: it is a
recoverable outcome represented by `board_coverage.types.RateLimited`.
"""

from typing import Any, Optional


class BoardCoverageError(Exception):
    """Base class for all application-specific, catchable errors."""
    pass


class MoveResolutionError(BoardCoverageError):
    """Base class for errors raised while mapping a SAN token to a destination."""
    pass


class MoveSyntaxError(MoveResolutionError):
    """
    Raised when a SAN token matches neither the castling nor the regular-move grammar.

    Attributes:
        token: The offending move token, exactly as it appeared in the record.
    """
    def __init__(self, token: str):
        super().__init__(f"Cannot parse move {token!r}.")
        self.token = token


class InvalidSideError(MoveResolutionError):
    """
    Raised when a side outside the closed `Side` enumeration reaches the resolver.

    Attributes:
        side: The rejected value.
    """
    def __init__(self, side: Any):
        super().__init__(f"Unknown side {side!r}.")
        self.side = side


class GameSourceError(BoardCoverageError):
    """Base class for errors related to the external game-record provider."""
    pass


class SourceUnavailable(GameSourceError):
    """
    Raised when the provider answers with a non-2xx, non-429 status, or cannot be reached.

    Attributes:
        status_code: The HTTP status of the failed response, or None for
                     transport-level failures (DNS, connection reset, timeout).
    """
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
