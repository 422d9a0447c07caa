"""Filter, sort and lookup over an in-memory book collection."""
import unicodedata
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from reviewshelf.models import (
    Book,
    Criteria,
    DEFAULT_SORT,
    Genre,
    SORT_DATE_ASC,
    SORT_DATE_DESC,
    SORT_RATING_ASC,
    SORT_RATING_DESC,
    SORT_TITLE_ASC,
    SORT_TITLE_DESC,
)


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def collation_key(text: Optional[str]) -> Tuple[str, str]:
    """
    Sort key approximating locale-aware string comparison.

    Accents and case are ignored at the first level; the raw text
    breaks ties so the ordering is total.
    """
    text = text or ""
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(c for c in decomposed if not unicodedata.combining(c))
    return base.casefold(), text


def _date_key(book: Book) -> str:
    return book.date_read or ""


def _rating_key(book: Book) -> int:
    return book.rating or 0


def _title_key(book: Book) -> Tuple[str, str]:
    return collation_key(book.title)


# sort key -> (key function, descending)
SORTS: Dict[str, Tuple[Callable[[Book], Any], bool]] = {
    SORT_DATE_DESC: (_date_key, True),
    SORT_DATE_ASC: (_date_key, False),
    SORT_RATING_DESC: (_rating_key, True),
    SORT_RATING_ASC: (_rating_key, False),
    SORT_TITLE_ASC: (_title_key, False),
    SORT_TITLE_DESC: (_title_key, True),
}


def sort_books(books: List[Book], sort: Optional[str] = None) -> List[Book]:
    """
    Sort books by one of the known sort keys.

    ``list.sort`` is stable in both directions, so books that compare
    equal keep their incoming order. Unknown keys return the books as given.
    """
    sorting = SORTS.get(sort or DEFAULT_SORT)
    if sorting is None:
        return books
    key, descending = sorting
    return sorted(books, key=key, reverse=descending)


def query(books: Sequence[Book], criteria: Optional[Criteria] = None) -> List[Book]:
    """
    Filter, sort and truncate a book collection.

    Filters are applied in order (genre, rating, favorite, year read,
    search), then the sort, then the limit. The input sequence is never
    modified. Malformed criteria never raise: a rating that is not a
    number matches nothing and a limit that is not a positive number is
    ignored.

    Args:
        books: The collection to query
        criteria: Filter/sort/limit parameters; None returns everything
            in default order

    Returns:
        A new list of matching books
    """
    criteria = criteria or Criteria()
    items = list(books)

    if criteria.genre:
        items = [b for b in items if criteria.genre in b.genres]

    if criteria.rating not in (None, "", 0):
        rating = _as_int(criteria.rating)
        items = [b for b in items if rating is not None and b.rating == rating]

    if criteria.favorite:
        items = [b for b in items if b.favorite is True]

    if criteria.year_read:
        year = str(criteria.year_read)
        items = [b for b in items if b.year_read == year]

    if criteria.search:
        term = str(criteria.search).lower()
        items = [
            b for b in items
            if term in b.title.lower() or term in b.author.lower()
        ]

    items = sort_books(items, criteria.sort)

    limit = _as_int(criteria.limit)
    if limit is not None and limit > 0:
        items = items[:limit]

    return items


def get_by_id(books: Sequence[Book], book_id: str) -> Optional[Book]:
    """Return the book with ``book_id``, or None."""
    return next((b for b in books if b.id == book_id), None)


def get_genre(genres: Sequence[Genre], genre_id: str) -> Optional[Genre]:
    """Return the genre with ``genre_id``, or None."""
    return next((g for g in genres if g.id == genre_id), None)


def resolve_genres(book: Book, genres: Sequence[Genre]) -> List[Genre]:
    """Map a book's genre ids to Genre records, skipping unknown ids."""
    by_id = {g.id: g for g in genres}
    return [by_id[gid] for gid in book.genres if gid in by_id]
