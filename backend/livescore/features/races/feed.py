"""
Live timing feed client.

Fetches raw feed bodies from the timing provider. This is the only place
in the races feature that raises on failure: parsing and scoring always
produce a result.
"""

import logging
from typing import Optional

import httpx

from livescore.config import settings

logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================

class LiveScoreError(Exception):
    """Base live scoring error."""
    pass


class FeedFetchError(LiveScoreError):
    """Raw feed could not be retrieved."""

    def __init__(self, race_id: str, message: str):
        self.race_id = race_id
        super().__init__(message)


# =============================================================================
# Client
# =============================================================================

class LiveTimingClient:
    """
    Async client for the live timing raw feed endpoint.

    One request per race: GET <endpoint>?r=<race_id>.
    Pass a shared httpx.AsyncClient to reuse connections across races.
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.endpoint = endpoint or settings.live_timing_url
        self.timeout = timeout or settings.fetch_timeout_s
        self._client = client

    async def fetch_raw(self, race_id: str) -> str:
        """
        Fetch the raw feed body for a race.

        Raises:
            FeedFetchError: On transport errors or non-2xx responses
        """
        try:
            if self._client is not None:
                response = await self._client.get(
                    self.endpoint, params={"r": race_id}, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(self.endpoint, params={"r": race_id})
        except httpx.HTTPError as e:
            logger.warning(f"Live feed request failed for race {race_id}: {e}")
            raise FeedFetchError(race_id, f"Live feed request failed ({e})") from e

        if not response.is_success:
            logger.warning(
                f"Live feed request failed for race {race_id}: {response.status_code}"
            )
            raise FeedFetchError(
                race_id, f"Live feed request failed ({response.status_code})"
            )

        return response.text
