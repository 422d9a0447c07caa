"""
Load-once cache of catalog documents.

A ``DataStore`` owns the cache for the documents it serves. Each key is
fetched at most once; later loads return the cached ``LoadResult``
without touching the source. Concurrent async loads of the same key
share a single in-flight fetch.

Whether a failed load is cached is a policy choice: with
``cache_failures=False`` (the default) a failure is returned to the
caller but not remembered, so the next access tries the source again.
With ``cache_failures=True`` the failure is kept until ``invalidate``.

A sync ``load`` of a key whose async fetch is still running does not
fetch it again; it returns a failed result and leaves the cache alone.
``invalidate`` also applies to running fetches: their callers still get
the result, but it is not cached.
"""
import asyncio
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
import logging

from reviewshelf.async_client import AsyncDataClient
from reviewshelf.client import DataClient
from reviewshelf.errors import LoadFailure, LoadResult
from reviewshelf.parse import (
    parse_books_document,
    parse_genres_document,
    parse_settings_document,
)

logger = logging.getLogger(__name__)

BOOKS = "books"
GENRES = "genres"
SITE = "site"
PERSONAL = "personal"

# key -> (document name, parser)
DOCUMENTS: Dict[str, Tuple[str, Callable[[Any, str], Any]]] = {
    BOOKS: ("books.json", parse_books_document),
    GENRES: ("categories.json", parse_genres_document),
    SITE: ("site.json", parse_settings_document),
    PERSONAL: ("personal.json", parse_settings_document),
}


class DataStore:
    """In-memory, load-once store of parsed catalog documents."""

    def __init__(
        self,
        client: Optional[DataClient] = None,
        async_client: Optional[AsyncDataClient] = None,
        cache_failures: bool = False,
    ):
        """
        Initialize the store.

        Args:
            client: Sync client used by ``load``
            async_client: Async client used by ``aload``
            cache_failures: Keep failed loads cached until invalidated
        """
        self.client = client
        self.async_client = async_client
        self.cache_failures = cache_failures
        self._cache: Dict[str, LoadResult] = {}
        self._inflight: Dict[str, "asyncio.Future[LoadResult]"] = {}
        self._last_errors: Dict[str, LoadFailure] = {}
        # Bumped by invalidate; loads started under an older generation are discarded
        self._generations: Dict[str, int] = {}

    def cached(self, key: str) -> Optional[LoadResult]:
        """Return the cached result for ``key`` without loading it."""
        return self._cache.get(key)

    def load(self, key: str) -> LoadResult:
        """
        Load a document, fetching it only if it is not cached yet.

        Args:
            key: One of ``books``, ``genres``, ``site``, ``personal``

        Returns:
            LoadResult with the parsed value or the failure
        """
        cached = self._cache.get(key)
        if cached is not None:
            logger.info(f"Cache hit: {key}")
            return cached

        if key in self._inflight:
            # A sync caller cannot wait on the async fetch, and must not start a second one
            logger.warning(f"Load already in flight: {key}")
            return LoadResult(key, error=LoadFailure(key, "load already in progress"))

        logger.info(f"Cache miss: {key}")
        generation = self._generation(key)
        return self._remember(self._load_with(key, self.client), generation)

    async def aload(self, key: str) -> LoadResult:
        """
        Async variant of ``load``.

        Callers that ask for the same uncached key while a fetch is running
        wait on that fetch instead of starting another one.
        """
        cached = self._cache.get(key)
        if cached is not None:
            logger.info(f"Cache hit: {key}")
            return cached

        pending = self._inflight.get(key)
        if pending is None:
            logger.info(f"Cache miss: {key}")
            pending = asyncio.ensure_future(self._aload_uncached(key, self._generation(key)))
            self._inflight[key] = pending
            pending.add_done_callback(lambda done: self._forget_inflight(key, done))
        else:
            logger.info(f"Joining in-flight load: {key}")

        # Shield so one cancelled caller does not cancel the shared fetch
        return await asyncio.shield(pending)

    async def aload_all(self, keys: Iterable[str]) -> Dict[str, LoadResult]:
        """Load independent keys concurrently."""
        keys = list(keys)
        results = await asyncio.gather(*(self.aload(key) for key in keys))
        return dict(zip(keys, results))

    def invalidate(self, key: Optional[str] = None):
        """
        Drop a cached result so the next load refetches it.

        Args:
            key: Key to drop; all keys when omitted
        """
        if key is None:
            logger.info("Invalidating all cached documents")
            keys = set(DOCUMENTS) | set(self._cache) | set(self._inflight)
        else:
            logger.info(f"Invalidating cached document: {key}")
            keys = {key}

        for k in keys:
            self._generations[k] = self._generation(k) + 1
            self._cache.pop(k, None)
            # Waiters on a running fetch still get its result; the cache does not
            self._inflight.pop(k, None)

    def failures(self) -> List[str]:
        """Keys whose most recent load failed."""
        return list(self._last_errors)

    def _generation(self, key: str) -> int:
        return self._generations.get(key, 0)

    def _forget_inflight(self, key: str, done: "asyncio.Future[LoadResult]"):
        if self._inflight.get(key) is done:
            del self._inflight[key]

    async def _aload_uncached(self, key: str, generation: int) -> LoadResult:
        if key not in DOCUMENTS:
            return self._remember(self._unknown(key), generation)
        name, parser = DOCUMENTS[key]
        if self.async_client is None:
            error = LoadFailure(name, "no async client configured")
            return self._remember(self._failure(key, error), generation)
        try:
            document = await self.async_client.fetch(name)
            result = LoadResult(key, data=parser(document, name))
        except LoadFailure as e:
            result = self._failure(key, e)
        return self._remember(result, generation)

    def _load_with(self, key: str, client: Optional[DataClient]) -> LoadResult:
        if key not in DOCUMENTS:
            return self._unknown(key)
        name, parser = DOCUMENTS[key]
        if client is None:
            return self._failure(key, LoadFailure(name, "no client configured"))
        try:
            return LoadResult(key, data=parser(client.fetch(name), name))
        except LoadFailure as e:
            return self._failure(key, e)

    def _unknown(self, key: str) -> LoadResult:
        return self._failure(key, LoadFailure(key, "unknown document"))

    def _failure(self, key: str, error: LoadFailure) -> LoadResult:
        logger.error(str(error))
        return LoadResult(key, error=error)

    def _remember(self, result: LoadResult, generation: int) -> LoadResult:
        if generation != self._generation(result.name):
            logger.info(f"Discarding stale load: {result.name}")
            return result
        if result.ok:
            self._last_errors.pop(result.name, None)
        else:
            self._last_errors[result.name] = result.error
        if result.ok or self.cache_failures:
            self._cache[result.name] = result
        return result
