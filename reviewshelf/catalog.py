"""Catalog facade: queries and statistics over the cached collections."""
from typing import Any, Callable, Dict, List, Optional, Sequence
import asyncio
import logging
import random

from reviewshelf import query as engine
from reviewshelf import stats as aggregator
from reviewshelf.async_client import AsyncDataClient
from reviewshelf.client import DataClient
from reviewshelf.config import Config
from reviewshelf.errors import LoadResult
from reviewshelf.models import Book, Criteria, Genre, Profile, Quote, ReadingGoal, StatsSummary
from reviewshelf.parse import parse_profile, parse_reading_goal
from reviewshelf.store import BOOKS, DOCUMENTS, GENRES, PERSONAL, SITE, DataStore

logger = logging.getLogger(__name__)


class Catalog:
    """
    Book catalog backed by a ``DataStore``.

    Every read goes through the store, so each document is fetched at most
    once and all operations see the currently cached snapshot. Load
    failures degrade to empty results; ``last_failures()`` tells which
    documents are missing.

    The catalog owns the store's clients: use it as a context manager or
    call ``close()`` when done.
    """

    def __init__(self, store: DataStore):
        self.store = store

    @classmethod
    def from_config(cls, config: Config, base_url: Optional[str] = None) -> "Catalog":
        """Build a catalog with sync and async clients for the configured source."""
        base_url = base_url or config.DATA_URL
        client = DataClient(
            base_url=base_url,
            timeout=config.DEFAULT_TIMEOUT,
            max_retries=config.DEFAULT_MAX_RETRIES,
            base_backoff=config.DEFAULT_BACKOFF,
        )
        async_client = AsyncDataClient(
            base_url=base_url,
            timeout=config.DEFAULT_TIMEOUT,
            max_concurrent=config.MAX_CONCURRENT,
        )
        return cls(DataStore(client, async_client, cache_failures=config.CACHE_FAILED_LOADS))

    async def preload(self) -> Dict[str, LoadResult]:
        """Load every known document concurrently."""
        return await self.store.aload_all(DOCUMENTS)

    def books(self) -> LoadResult:
        return self.store.load(BOOKS)

    def genres(self) -> List[Genre]:
        return self.store.load(GENRES).items

    def query(self, criteria: Optional[Criteria] = None, **filters: Any) -> List[Book]:
        """
        Query the book collection.

        Accepts either a ``Criteria`` or its fields as keyword arguments.
        """
        if criteria is None:
            criteria = Criteria(**filters)
        return engine.query(self.books().items, criteria)

    def compute_stats(self) -> StatsSummary:
        return aggregator.compute_stats(self.books().items)

    def years_read(self) -> List[str]:
        return aggregator.distinct_years(self.books().items)

    def get_book(self, book_id: str) -> Optional[Book]:
        return engine.get_by_id(self.books().items, book_id)

    def get_genre(self, genre_id: str) -> Optional[Genre]:
        return engine.get_genre(self.genres(), genre_id)

    def genres_for(self, book: Book) -> List[Genre]:
        return engine.resolve_genres(book, self.genres())

    def featured_book(self) -> Optional[Book]:
        """The book of the month, when ``site.json`` enables one that exists."""
        site = self.store.load(SITE)
        if not site.ok:
            return None
        featured = site.data.get("bookOfMonth") or {}
        if not isinstance(featured, dict):
            return None
        if not featured.get("enabled") or not featured.get("bookId"):
            return None
        book = self.get_book(str(featured["bookId"]))
        if book is None:
            logger.warning(f"Book of the month not found: {featured['bookId']}")
        return book

    def reading_goal(self) -> Optional[ReadingGoal]:
        personal = self.store.load(PERSONAL)
        if not personal.ok:
            return None
        return parse_reading_goal(personal.data)

    def favorite_quote(
        self, choice: Callable[[Sequence[Any]], Any] = random.choice
    ) -> Optional[Quote]:
        """
        Pick a quote from one of the three most recent favorites.

        Args:
            choice: Picks one element of a sequence; used once for the book
                and once for the quote

        Returns:
            The quote, or None when no recent favorite has quotes
        """
        candidates = [b for b in self.query(favorite=True, limit=3) if b.quotes]
        if not candidates:
            return None
        book = choice(candidates)
        return Quote(text=choice(book.quotes), title=book.title, author=book.author)

    def profile(self) -> Optional[Profile]:
        """The reader profile; social links are left out if ``site.json`` fails."""
        personal = self.store.load(PERSONAL)
        if not personal.ok:
            return None
        site = self.store.load(SITE)
        return parse_profile(personal.data, site.data if site.ok else {})

    def last_failures(self) -> List[str]:
        return self.store.failures()

    def close(self):
        """Close the underlying HTTP sessions."""
        if self.store.client is not None:
            self.store.client.close()
        async_client = self.store.async_client
        if async_client is not None and not async_client.client.is_closed:
            asyncio.run(async_client.close())

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
