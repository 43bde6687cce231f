"""Search upstream client."""
import logging
from typing import Any, Dict

import httpx

from alexzo.core.errors import InternalError, UpstreamError

logger = logging.getLogger(__name__)

FETCH_FAILED_MESSAGE = "Failed to fetch search results"


class SearchClient:
    """HTTP client for the JSON search upstream."""

    def __init__(self, http_client: httpx.AsyncClient, base_url: str):
        self._client = http_client
        self.base_url = base_url.rstrip('/')

    async def search(self, query: str) -> Dict[str, Any]:
        """
        Run a query and return the upstream JSON unchanged

        Raises:
            UpstreamError: upstream answered with a non-2xx status
            InternalError: transport failure or a non-JSON body
        """
        try:
            response = await self._client.get(
                f'{self.base_url}/search',
                params={'q': query, 'format': 'json'}
            )
        except httpx.HTTPError as e:
            logger.error("Search upstream request failed: %s", e)
            raise InternalError("Internal server error") from e

        if not response.is_success:
            logger.warning("Search upstream returned %d", response.status_code)
            raise UpstreamError(response.status_code, FETCH_FAILED_MESSAGE)

        try:
            return response.json()
        except ValueError as e:
            logger.error("Search upstream returned invalid JSON: %s", e)
            raise InternalError("Internal server error") from e
