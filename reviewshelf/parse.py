"""Parse and normalize catalog JSON documents."""
from typing import Dict, Any, List, Optional
import logging

from reviewshelf.errors import LoadFailure
from reviewshelf.models import Book, FunFact, Genre, Profile, ReadingGoal, SocialLink

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def _optional_int(value: Any) -> Optional[int]:
    if value in (None, ""):
        return None
    return int(value)


def _rating(value: Any, book_id: Any) -> Optional[int]:
    """A whole-number rating in 1..5; anything else is dropped with a warning."""
    if value in (None, ""):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = None
    if (
        isinstance(value, bool)
        or number is None
        or not number.is_integer()
        or not MIN_RATING <= number <= MAX_RATING
    ):
        logger.warning(f"Ignoring invalid rating {value!r} for book {book_id}")
        return None
    return int(number)


def _string_list(value: Any) -> List[str]:
    if not value:
        return []
    if not isinstance(value, list):
        raise ValueError(f"expected a list, got {type(value).__name__}")
    return [str(v) for v in value]


def parse_book(item: Dict[str, Any]) -> Optional[Book]:
    """
    Parse a single book record from ``books.json``.

    Args:
        item: Single entry of the ``books`` list

    Returns:
        Book object or None if the record is unusable
    """
    try:
        book_id = item.get("id")
        if not book_id:
            return None

        date_read = item.get("dateRead") or None

        return Book(
            id=str(book_id),
            title=str(item.get("title") or ""),
            author=str(item.get("author") or ""),
            genres=_string_list(item.get("genres")),
            rating=_rating(item.get("rating"), book_id),
            favorite=item.get("favorite") is True,
            date_read=str(date_read) if date_read else None,
            pages=_optional_int(item.get("pages")),
            year=_optional_int(item.get("year")),
            publisher=item.get("publisher") or None,
            review=str(item.get("review") or ""),
            quotes=_string_list(item.get("quotes")),
            tags=_string_list(item.get("tags")),
            cover=str(item.get("cover") or ""),
        )
    except (AttributeError, TypeError, ValueError) as e:
        # Log but don't fail the whole document over one bad record
        logger.warning(f"Failed to parse book: {e}")
        return None


def parse_genre(item: Dict[str, Any]) -> Optional[Genre]:
    """Parse a single genre record from ``categories.json``."""
    try:
        genre_id = item.get("id")
        if not genre_id:
            return None
        return Genre(
            id=str(genre_id),
            name=str(item.get("name") or genre_id),
            icon=str(item.get("icon") or ""),
            description=item.get("description") or None,
        )
    except AttributeError as e:
        logger.warning(f"Failed to parse genre: {e}")
        return None


def _records(document: Any, name: str, field: str) -> List[Any]:
    if not isinstance(document, dict):
        raise LoadFailure(name, "document is not a JSON object")
    records = document.get(field, [])
    if not isinstance(records, list):
        raise LoadFailure(name, f"'{field}' is not a list")
    return records


def parse_books_document(document: Any, name: str = "books.json") -> List[Book]:
    """
    Parse a full ``books.json`` document.

    Args:
        document: Decoded JSON document
        name: Document name used in error reports

    Returns:
        List of Book objects (empty if the document has no books)

    Raises:
        LoadFailure: the document does not have the expected shape
    """
    books = []

    for item in _records(document, name, "books"):
        book = parse_book(item)
        if book:
            books.append(book)

    return deduplicate(books)


def parse_genres_document(document: Any, name: str = "categories.json") -> List[Genre]:
    """Parse a full ``categories.json`` document."""
    genres = []

    for item in _records(document, name, "genres"):
        genre = parse_genre(item)
        if genre:
            genres.append(genre)

    return deduplicate(genres)


def parse_settings_document(document: Any, name: str) -> Dict[str, Any]:
    """Validate a free-form settings document (``site.json``, ``personal.json``)."""
    if not isinstance(document, dict):
        raise LoadFailure(name, "document is not a JSON object")
    return document


def parse_reading_goal(personal: Dict[str, Any]) -> Optional[ReadingGoal]:
    """Extract the ``readingGoal`` block from ``personal.json``."""
    goal = personal.get("readingGoal")
    if not isinstance(goal, dict):
        return None
    try:
        return ReadingGoal(
            year=int(goal["year"]),
            current=int(goal.get("current") or 0),
            target=int(goal["target"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Ignoring malformed reading goal: {e}")
        return None


def _social_links(social: Any) -> List[SocialLink]:
    links = []
    if not isinstance(social, dict):
        return links
    for name, entry in social.items():
        if not isinstance(entry, dict):
            continue
        icon = str(entry.get("icon") or "")
        if entry.get("address"):
            address = str(entry["address"])
            links.append(SocialLink(name, f"mailto:{address}", address, icon))
        elif entry.get("url"):
            username = entry.get("username")
            handle = f"@{username}" if username else str(entry["url"])
            links.append(SocialLink(name, str(entry["url"]), handle, icon))
    return links


def parse_profile(personal: Dict[str, Any], site: Dict[str, Any]) -> Profile:
    """
    Build the reader profile from ``personal.json`` and the ``social``
    block of ``site.json``. Malformed entries are skipped.
    """
    favorite_genres = [
        genre for genre in (
            parse_genre(dict(item, id=item.get("id") or item.get("name")))
            for item in personal.get("favoriteGenres") or []
            if isinstance(item, dict)
        )
        if genre
    ]
    fun_facts = [
        FunFact(icon=str(item.get("icon") or ""), text=str(item["text"]))
        for item in personal.get("funFacts") or []
        if isinstance(item, dict) and item.get("text")
    ]
    return Profile(
        name=str(personal.get("name") or ""),
        role=str(personal.get("role") or ""),
        bio=str(personal.get("bio") or ""),
        bio_extended=str(personal.get("bioExtended") or ""),
        favorite_genres=favorite_genres,
        fun_facts=fun_facts,
        social=_social_links(site.get("social")),
    )


def deduplicate(records: List[Any]) -> List[Any]:
    """
    Remove records whose id was already seen, keeping the first.

    Args:
        records: List of Book or Genre objects

    Returns:
        Deduplicated list of records
    """
    seen_ids = set()
    unique = []

    for record in records:
        if record.id not in seen_ids:
            seen_ids.add(record.id)
            unique.append(record)
        else:
            logger.warning(f"Skipping duplicate id: {record.id}")

    return unique
