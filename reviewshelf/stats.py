"""Summary statistics over a book collection."""
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Sequence

from reviewshelf.models import Book, StatsSummary, TopAuthor


def round_one_decimal(value: float) -> float:
    """Round half away from zero to one decimal place."""
    return float(Decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def compute_stats(books: Sequence[Book]) -> StatsSummary:
    """
    Compute summary metrics for a collection.

    Missing page counts and ratings count as 0. The top author is the
    one with the most books; on a tie the author seen first wins.
    """
    total_books = len(books)
    if total_books == 0:
        return StatsSummary()

    total_pages = sum(b.pages or 0 for b in books)
    average_rating = round_one_decimal(sum(b.rating or 0 for b in books) / total_books)
    favorite_count = sum(1 for b in books if b.favorite)

    # dicts keep insertion order and max() returns the first maximum
    author_counts: Dict[str, int] = {}
    for book in books:
        author_counts[book.author] = author_counts.get(book.author, 0) + 1
    name, count = max(author_counts.items(), key=lambda item: item[1])

    return StatsSummary(
        total_books=total_books,
        total_pages=total_pages,
        average_rating=average_rating,
        favorite_count=favorite_count,
        top_author=TopAuthor(name=name, count=count),
    )


def _year_value(year: str):
    return (int(year) if year.isdigit() else -1, year)


def distinct_years(books: Sequence[Book]) -> List[str]:
    """Distinct years read, newest first."""
    years = {b.year_read for b in books if b.year_read}
    return sorted(years, key=_year_value, reverse=True)


def count_by_genre(books: Sequence[Book]) -> Dict[str, int]:
    """Number of books per genre id, in order of first appearance."""
    counts: Dict[str, int] = {}
    for book in books:
        for genre_id in book.genres:
            counts[genre_id] = counts.get(genre_id, 0) + 1
    return counts


def count_by_rating(books: Sequence[Book]) -> Dict[int, int]:
    """Number of books per rating, from 5 down to 1."""
    counts = {rating: 0 for rating in range(5, 0, -1)}
    for book in books:
        if book.rating in counts:
            counts[book.rating] += 1
    return counts
