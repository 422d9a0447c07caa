"""Async client for loading several catalog documents in parallel."""
import asyncio
import httpx
from typing import Any
import logging

from reviewshelf.client import is_remote, join_url, read_local_document
from reviewshelf.errors import LoadFailure

logger = logging.getLogger(__name__)


class AsyncDataClient:
    """Async client for parallel document fetches."""

    def __init__(
        self,
        base_url: str = "data/",
        timeout: int = 10,
        max_concurrent: int = 5
    ):
        """
        Initialize async client.

        Args:
            base_url: Directory path or http(s) URL holding the JSON documents
            timeout: Request timeout
            max_concurrent: Maximum concurrent requests
        """
        self.base_url = base_url
        self.timeout = timeout
        self.semaphore = asyncio.Semaphore(max_concurrent)

        # Create async HTTP client
        self.client = httpx.AsyncClient(timeout=timeout)

    async def fetch(self, name: str) -> Any:
        """
        Fetch one document asynchronously.

        Args:
            name: Document file name

        Returns:
            The decoded JSON value

        Raises:
            LoadFailure: the document is unreachable or not valid JSON
        """
        if not is_remote(self.base_url):
            return await asyncio.to_thread(read_local_document, self.base_url, name)

        url = join_url(self.base_url, name)

        # Use semaphore to limit concurrency
        async with self.semaphore:
            try:
                logger.info(f"Async request: {url}")
                response = await self.client.get(url)
            except httpx.HTTPError as e:
                logger.error(f"Async request failed: {e}")
                raise LoadFailure(name, str(e))

        if response.status_code != 200:
            logger.warning(f"Status {response.status_code} for {url}")
            raise LoadFailure(name, f"HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise LoadFailure(name, f"invalid JSON: {e}")

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
