"""HTTP client for the upstream match-data API.

Every method returns decoded JSON or raises one of the store's network
errors; callers decide how a failure is recorded.
"""

import logging
from typing import Any, Optional

import httpx

from dota_scout.exceptions import EntityNotFoundError, NetworkError

logger = logging.getLogger(__name__)


class ScoutApiClient:
    """Thin async wrapper over the match-data endpoints."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the API client.

        Args:
            base_url: Root URL of the match-data API, e.g. http://localhost:3000/api
            timeout: Request timeout in seconds
            transport: Optional transport override (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _get_json(self, path: str, force: bool = False) -> Any:
        params = {"force": "true"} if force else None
        try:
            client = await self._get_client()
            response = await client.get(path, params=params)
        except httpx.HTTPError as e:
            logger.error(f"Request to {path} failed: {e}")
            raise NetworkError(f"Request to {path} failed: {e}") from e

        if response.status_code == 404:
            raise EntityNotFoundError(f"Not found: {path}")
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NetworkError(
                f"Request to {path} returned {response.status_code}",
                status_code=response.status_code,
            ) from e
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Response from {path} is not valid JSON: {e}")
            raise NetworkError(
                f"Response from {path} is not valid JSON", status_code=response.status_code
            ) from e

    async def get_heroes(self) -> Any:
        return await self._get_json("/heroes")

    async def get_items(self) -> Any:
        return await self._get_json("/items")

    async def get_leagues(self) -> Any:
        return await self._get_json("/leagues")

    async def get_team(self, team_id: int) -> dict:
        return await self._get_json(f"/teams/{team_id}")

    async def get_league_matches(self, league_id: int, force: bool = False) -> dict:
        return await self._get_json(f"/leagues/{league_id}", force=force)

    async def get_match(self, match_id: int, force: bool = False) -> dict:
        return await self._get_json(f"/matches/{match_id}", force=force)

    async def get_player(self, player_id: int) -> dict:
        return await self._get_json(f"/players/{player_id}")


def get_api_client(base_url: str, timeout: float = 15.0) -> ScoutApiClient:
    """Factory for the configured API client."""
    logger.info(f"Using match-data API at {base_url}")
    return ScoutApiClient(base_url, timeout=timeout)
