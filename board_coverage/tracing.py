# board_coverage/tracing.py

"""
tracing
~~~~~~~

Correlation identifiers bound into structlog's context for every processed game.
"""

import contextlib
from dataclasses import dataclass
from typing import Iterator

import structlog


@dataclass(frozen=True, slots=True)
class CorrelationID:
    """Identifies one game within one tracking run."""
    run_id: str
    game_id: str

    @property
    def short_id(self) -> str:
        return f"{self.run_id}:{self.game_id}"


@contextlib.contextmanager
def bound_correlation_id(cid: CorrelationID) -> Iterator[CorrelationID]:
    """Binds `cid` to every log line emitted inside the block."""
    with structlog.contextvars.bound_contextvars(correlation_id=cid.short_id):
        yield cid
