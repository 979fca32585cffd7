"""Async HTTP clients for the cover search service and the remote book store."""
import asyncio
import httpx
from typing import List, Optional, Dict, Any
import logging

from journal.errors import RemoteStoreError

logger = logging.getLogger(__name__)


class AsyncOpenLibraryClient:
    """Async client for Open Library searches."""

    BASE_URL = "https://openlibrary.org/search.json"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: int = 10,
        max_concurrent: int = 5,
        client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize async client.

        Args:
            base_url: Search endpoint (defaults to Open Library)
            timeout: Request timeout
            max_concurrent: Maximum concurrent requests
            client: Preconfigured httpx client (tests pass a mock transport)
        """
        self.base_url = base_url or self.BASE_URL
        self.timeout = timeout
        self.semaphore = asyncio.Semaphore(max_concurrent)

        # Create async HTTP client
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def search(
        self,
        query: str,
        limit: int = 1
    ) -> Optional[Dict[str, Any]]:
        """
        Search for books asynchronously.

        Args:
            query: Free text query
            limit: Max results

        Returns:
            API response or None
        """
        params = {
            "q": query,
            "limit": limit
        }

        # Use semaphore to limit concurrency
        async with self.semaphore:
            try:
                logger.info(f"Cover search: {query}")
                response = await self.client.get(self.base_url, params=params)

                if response.status_code == 200:
                    return response.json()
                else:
                    logger.warning(f"Status {response.status_code} for query: {query}")
                    return None

            except Exception as e:
                logger.error(f"Cover search failed: {e}")
                return None

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()


class AsyncRemoteStoreClient:
    """Async client for the single-slot remote book store.

    GET returns the stored array (an empty array if never set), POST replaces it.
    """

    def __init__(
        self,
        url: str,
        timeout: int = 10,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.url = url
        self.timeout = timeout
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def fetch(self) -> List[Any]:
        """
        Fetch the stored collection.

        Returns:
            Decoded JSON array

        Raises:
            RemoteStoreError: on transport failure, non-200 status or a
                payload that is not a JSON array
        """
        try:
            response = await self.client.get(self.url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise RemoteStoreError(f"Remote load failed: {e}") from e

        if response.status_code != 200:
            raise RemoteStoreError(f"Remote load returned status {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise RemoteStoreError(f"Remote load returned invalid JSON: {e}") from e

        if payload is None:
            return []
        if not isinstance(payload, list):
            raise RemoteStoreError(f"Remote load returned {type(payload).__name__}, expected list")
        return payload

    async def replace(self, payload: List[Dict[str, Any]]) -> None:
        """
        Replace the stored collection.

        Raises:
            RemoteStoreError: on transport failure or non-success status
        """
        try:
            response = await self.client.post(self.url, json=payload)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise RemoteStoreError(f"Remote save failed: {e}") from e

        if not response.is_success:
            raise RemoteStoreError(f"Remote save returned status {response.status_code}")

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
