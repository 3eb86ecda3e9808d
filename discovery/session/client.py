"""
Explore API client - lets a search session run against a remote explore
endpoint instead of an in-process ExploreService.
"""

import asyncio
import logging
from typing import Optional

import aiohttp

from discovery.error_handling import FieldError, QueryValidationError, StoreUnavailableError
from discovery.models import ExploreResponse
from discovery.query import QuerySpecification

logger = logging.getLogger(__name__)


class ExploreClient:
    """
    HTTP client for GET /api/properties/explore.

    Usable directly as a SearchSessionController search function:
    `SearchSessionController(client.search)`.
    """

    EXPLORE_PATH = "/api/properties/explore"

    def __init__(
        self,
        base_url: str,
        session: Optional[aiohttp.ClientSession] = None,
        timeout_seconds: float = 10.0
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self):
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the session if this client created it"""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def _ensure_session(self):
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True

    async def search(self, spec: QuerySpecification) -> ExploreResponse:
        """
        Run one specification against the remote endpoint.

        Raises:
            QueryValidationError: On a 400 response
            StoreUnavailableError: On any other failure
        """
        await self._ensure_session()
        url = f"{self.base_url}{self.EXPLORE_PATH}"

        try:
            async with self._session.get(url, params=spec.to_query_params()) as response:
                if response.status == 400:
                    body = await response.json()
                    raise _validation_error(body)
                if response.status != 200:
                    text = await response.text()
                    logger.warning(f"Explore request failed with {response.status}: {text[:200]}")
                    raise StoreUnavailableError(f"Explore request failed with status {response.status}")
                payload = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Explore request to {url} failed: {e}")
            raise StoreUnavailableError("Explore endpoint unreachable", cause=e) from e

        return ExploreResponse.model_validate(payload)

    async def record_view(self, listing_id: str) -> Optional[int]:
        """Count one view; None when the listing is unknown or not live."""
        await self._ensure_session()
        url = f"{self.base_url}/api/properties/{listing_id}/view"
        try:
            async with self._session.post(url) as response:
                if response.status == 404:
                    return None
                if response.status != 200:
                    raise StoreUnavailableError(f"View tracking failed with status {response.status}")
                payload = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise StoreUnavailableError("Explore endpoint unreachable", cause=e) from e
        return int(payload.get("views", 0))


def _validation_error(body: dict) -> QueryValidationError:
    # FastAPI nests HTTPException payloads under "detail"
    detail = body.get("detail", body) if isinstance(body, dict) else {}
    details = detail.get("details", []) if isinstance(detail, dict) else []
    errors = [
        FieldError(field=item.get("field", "query"), message=item.get("message", "invalid value"))
        for item in details
    ]
    return QueryValidationError(errors or [FieldError("query", "invalid value")])
