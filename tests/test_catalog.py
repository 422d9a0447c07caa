"""Tests for the catalog facade over local documents."""
import asyncio
import json

import pytest

from reviewshelf.catalog import Catalog
from reviewshelf.client import DataClient
from reviewshelf.config import Config
from reviewshelf.models import Criteria, Quote, TopAuthor
from reviewshelf.store import DataStore

BOOKS = [
    {"id": "one", "author": "A", "title": "Uno", "pages": 100, "rating": 4, "favorite": True,
     "dateRead": "2023-05", "genres": ["classici"]},
    {"id": "two", "author": "A", "title": "Due", "pages": 200, "rating": 5, "favorite": False,
     "dateRead": "2022-01", "genres": ["saggi"]},
    {"id": "three", "author": "B", "title": "Tre", "pages": 50, "rating": 3, "favorite": False,
     "dateRead": "2023-11", "genres": ["classici", "ghost"]},
]

GENRES = [
    {"id": "classici", "name": "Classici", "icon": "🏛️"},
    {"id": "saggi", "name": "Saggi", "icon": "🧠"},
]


def write(path, name, document):
    (path / name).write_text(json.dumps(document), encoding="utf-8")


@pytest.fixture
def data_dir(tmp_path):
    write(tmp_path, "books.json", {"books": BOOKS})
    write(tmp_path, "categories.json", {"genres": GENRES})
    write(tmp_path, "site.json", {"bookOfMonth": {"enabled": True, "bookId": "two"}})
    write(tmp_path, "personal.json", {"readingGoal": {"year": 2023, "current": 2, "target": 12}})
    return tmp_path


@pytest.fixture
def catalog(data_dir):
    return Catalog(DataStore(DataClient(base_url=str(data_dir))))


def test_query_defaults_to_newest_first(catalog):
    assert [b.id for b in catalog.query()] == ["three", "one", "two"]


def test_query_with_criteria_or_keywords(catalog):
    by_criteria = catalog.query(Criteria(genre="classici", limit=1))
    by_keywords = catalog.query(genre="classici", limit=1)

    assert [b.id for b in by_criteria] == ["three"]
    assert by_keywords == by_criteria


def test_compute_stats(catalog):
    stats = catalog.compute_stats()

    assert stats.total_books == 3
    assert stats.total_pages == 350
    assert stats.average_rating == 4.0
    assert stats.favorite_count == 1
    assert stats.top_author == TopAuthor(name="A", count=2)


def test_years_read(catalog):
    assert catalog.years_read() == ["2023", "2022"]


def test_lookups(catalog):
    assert catalog.get_book("two").title == "Due"
    assert catalog.get_book("missing") is None
    assert catalog.get_genre("saggi").name == "Saggi"
    assert catalog.get_genre("missing") is None


def test_genres_for_skips_unknown_ids(catalog):
    book = catalog.get_book("three")
    assert [g.id for g in catalog.genres_for(book)] == ["classici"]


def test_featured_book(catalog):
    assert catalog.featured_book().id == "two"


def test_featured_book_disabled(data_dir, catalog):
    write(data_dir, "site.json", {"bookOfMonth": {"enabled": False, "bookId": "two"}})
    assert catalog.featured_book() is None


def test_featured_book_unknown_id(data_dir, catalog):
    write(data_dir, "site.json", {"bookOfMonth": {"enabled": True, "bookId": "nope"}})
    assert catalog.featured_book() is None


def test_reading_goal(catalog):
    goal = catalog.reading_goal()

    assert goal.year == 2023
    assert goal.remaining == 10
    assert not goal.reached


def test_missing_books_degrade_to_empty(tmp_path):
    """Without books.json every operation returns a neutral result."""
    catalog = Catalog(DataStore(DataClient(base_url=str(tmp_path))))

    assert catalog.query() == []
    assert catalog.compute_stats().total_books == 0
    assert catalog.get_book("one") is None
    assert catalog.years_read() == []
    assert catalog.featured_book() is None
    assert catalog.reading_goal() is None
    assert "books" in catalog.last_failures()
    assert not catalog.books().ok


def test_documents_are_read_once(data_dir, catalog):
    """Changes on disk are not seen until the store is invalidated."""
    catalog.query()
    write(data_dir, "books.json", {"books": BOOKS[:1]})

    assert len(catalog.query()) == 3

    catalog.store.invalidate("books")
    assert len(catalog.query()) == 1


def test_from_config_and_preload(data_dir):
    catalog = Catalog.from_config(Config(), base_url=str(data_dir))

    async def run():
        try:
            return await catalog.preload()
        finally:
            await catalog.store.async_client.close()

    results = asyncio.run(run())

    assert all(result.ok for result in results.values())
    assert set(results) == {"books", "genres", "site", "personal"}
    assert catalog.store.cached("books") is results["books"]


def test_years_read_ignore_malformed_dates(data_dir, catalog):
    write(data_dir, "books.json", {"books": BOOKS + [
        {"id": "four", "title": "Quattro", "dateRead": "2021"},
        {"id": "five", "title": "Cinque"},
    ]})

    assert catalog.years_read() == ["2023", "2022", "2021"]
    assert [b.id for b in catalog.query(year_read="2021")] == ["four"]
    assert [b.id for b in catalog.query(year_read=2023)] == ["three", "one"]


def first(items):
    return items[0]


def test_favorite_quote(data_dir, catalog):
    books = [dict(b, favorite=True) for b in BOOKS]
    books[0]["quotes"] = ["Uno, primo"]
    books[2]["quotes"] = ["Tre, primo", "Tre, secondo"]
    write(data_dir, "books.json", {"books": books})

    quote = catalog.favorite_quote(choice=first)

    # Newest favorite with quotes is "three" (read 2023-11)
    assert quote == Quote(text="Tre, primo", title="Tre", author="B")
    assert catalog.favorite_quote(choice=lambda items: items[-1]).text == "Uno, primo"


def test_favorite_quote_only_recent_favorites(data_dir, catalog):
    """Quotes come from the three most recently read favorites only."""
    books = [
        {"id": f"b{i}", "title": f"T{i}", "author": "A", "favorite": True,
         "dateRead": f"202{i}-01", "quotes": [f"q{i}"] if i == 0 else []}
        for i in range(4)
    ]
    write(data_dir, "books.json", {"books": books})

    assert catalog.favorite_quote(choice=first) is None


def test_favorite_quote_without_books(tmp_path):
    with Catalog(DataStore(DataClient(base_url=str(tmp_path)))) as catalog:
        assert catalog.favorite_quote() is None


def test_profile(data_dir, catalog):
    write(data_dir, "personal.json", {
        "name": "Reader",
        "role": "Lettrice",
        "funFacts": [{"icon": "☕", "text": "Caffè"}],
    })
    write(data_dir, "site.json", {"social": {"email": {"address": "r@example.com"}}})

    profile = catalog.profile()

    assert profile.name == "Reader"
    assert profile.role == "Lettrice"
    assert [f.text for f in profile.fun_facts] == ["Caffè"]
    assert [s.url for s in profile.social] == ["mailto:r@example.com"]


def test_profile_without_site(data_dir, catalog):
    (data_dir / "site.json").unlink()

    profile = catalog.profile()

    assert profile.social == []
    assert "site" in catalog.last_failures()


def test_profile_without_personal(data_dir, catalog):
    (data_dir / "personal.json").unlink()
    assert catalog.profile() is None


def test_close_releases_sessions(data_dir):
    with Catalog.from_config(Config(), base_url=str(data_dir)) as catalog:
        assert catalog.query()

    assert catalog.store.async_client.client.is_closed


def test_close_after_preload(data_dir):
    """Closing again after the async client was closed is harmless."""
    catalog = Catalog.from_config(Config(), base_url=str(data_dir))

    async def run():
        try:
            await catalog.preload()
        finally:
            await catalog.store.async_client.close()

    asyncio.run(run())
    catalog.close()
    catalog.close()

    assert catalog.store.async_client.client.is_closed
