# board_coverage/services/lichess_source.py
"""
Provides the game source backed by the Lichess game export API.

This module is a stateless adapter to the provider: one call issues one request
for a user's games created since a cursor, with the PGN and its clock
annotations inlined, and parses the newline-delimited JSON answer into
`GameRecord` values. HTTP 429 is reported as a `RateLimited` outcome; any other
failure raises `SourceUnavailable`.
"""

from typing import List, Optional

import httpx
import pydantic
import structlog

from board_coverage.config.settings import SourceSettings
from board_coverage.exceptions import SourceUnavailable
from board_coverage.types import Cursor, FetchResult, GameRecord, RateLimited
from board_coverage.utils import metrics

logger = structlog.get_logger(__name__)

NDJSON_MEDIA_TYPE = "application/x-ndjson"
HTTP_TOO_MANY_REQUESTS = 429


def parse_ndjson_page(text: str) -> List[GameRecord]:
    """
    Parses an NDJSON payload into game records, one line at a time.

    Blank lines are ignored. A line that is not valid JSON, or not a valid game
    record, is logged and skipped without affecting the rest of the page.
    """
    games: List[GameRecord] = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            games.append(GameRecord.model_validate_json(line))
        except pydantic.ValidationError as e:
            metrics.MALFORMED_RECORDS_TOTAL.inc()
            logger.warning(
                "Skipping malformed game record.",
                line_number=line_number, errors=e.error_count(), preview=line[:80],
            )
    return games


class LichessGameSource:
    """
    Fetches pages of a user's games. Use as an async context manager so the
    underlying `httpx.AsyncClient` is closed when the run ends.
    """

    def __init__(self, settings: SourceSettings, client: Optional[httpx.AsyncClient] = None):
        self._settings = settings
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "LichessGameSource":
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._settings.base_url,
                timeout=self._settings.request_timeout_s,
                headers={"User-Agent": self._settings.user_agent},
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    @staticmethod
    def build_query(cursor: Cursor) -> dict:
        """Query parameters of an export request for games created since `cursor`."""
        return {
            "since": cursor,
            "pgnInJson": "true",
            "clocks": "true",
            "sort": "dateAsc",
        }

    async def fetch_page(self, user_id: str, cursor: Cursor) -> FetchResult:
        """
        Requests every game of `user_id` created at or after `cursor`.

        Returns:
            The games in arrival order, or `RateLimited` if the provider refused
            the request with HTTP 429.

        Raises:
            SourceUnavailable: On any other non-2xx response or a transport error.
        """
        if self._client is None:
            raise RuntimeError("LichessGameSource must be entered with 'async with' before use.")

        try:
            response = await self._client.get(
                f"/api/games/user/{user_id}",
                params=self.build_query(cursor),
                headers={"Accept": NDJSON_MEDIA_TYPE},
            )
        except httpx.TransportError as e:
            metrics.SOURCE_REQUESTS_TOTAL.labels(outcome="unavailable").inc()
            raise SourceUnavailable(f"Could not reach game provider: {e}") from e

        if response.status_code == HTTP_TOO_MANY_REQUESTS:
            metrics.SOURCE_REQUESTS_TOTAL.labels(outcome="rate_limited").inc()
            retry_after = response.headers.get("Retry-After")
            logger.warning("Game provider rate limit hit.", user_id=user_id, retry_after=retry_after)
            return RateLimited(retry_after=retry_after)

        if not response.is_success:
            metrics.SOURCE_REQUESTS_TOTAL.labels(outcome="unavailable").inc()
            raise SourceUnavailable(
                f"Game provider answered HTTP {response.status_code} for user {user_id!r}.",
                status_code=response.status_code,
            )

        games = parse_ndjson_page(response.text)
        metrics.SOURCE_REQUESTS_TOTAL.labels(outcome="ok" if games else "empty").inc()
        logger.debug("Fetched page of games.", user_id=user_id, cursor=cursor, count=len(games))
        return games
