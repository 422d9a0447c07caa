#!/usr/bin/env python3
"""Review Shelf Explorer CLI - browse a book-review catalog."""
import argparse
import asyncio
import sys
import json
from dataclasses import asdict
from tabulate import tabulate
from reviewshelf.catalog import Catalog
from reviewshelf.config import Config
from reviewshelf.formatting import format_date, rating_label, stars
from reviewshelf.models import Criteria, SORT_KEYS, DEFAULT_SORT
from reviewshelf.stats import count_by_genre, count_by_rating
from reviewshelf.store import GENRES
import logging

logger = logging.getLogger(__name__)


def setup_logging(config: Config, verbose: bool):
    """Configure logging for the CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )


async def preload(catalog: Catalog):
    """Load every document concurrently, then release the async client."""
    try:
        return await catalog.preload()
    finally:
        await catalog.store.async_client.close()


def setup_catalog(args, config: Config) -> Catalog:
    """Build the catalog, optionally loading every document up front."""
    catalog = Catalog.from_config(config, base_url=args.data)

    if args.preload:
        results = asyncio.run(preload(catalog))
        loaded = [key for key, result in results.items() if result.ok]
        logger.info(f"Preloaded: {', '.join(loaded) or 'nothing'}")

    return catalog


def require_books(catalog: Catalog) -> bool:
    """Report a failed books load; True when books are available."""
    result = catalog.books()
    if not result.ok:
        logger.error(f"❌ {result.error}")
        return False
    return True


def list_books(args, catalog: Catalog) -> int:
    """List books matching the given filters."""
    if not require_books(catalog):
        return 1

    criteria = Criteria(
        genre=args.genre,
        rating=args.rating,
        favorite=args.favorite or None,
        year_read=args.year,
        search=args.search,
        sort=args.sort,
        limit=args.limit,
    )
    books = catalog.query(criteria)
    logger.info(f"Found {len(books)} books")

    display_books(books, args.format)
    return 0


def display_books(books, format_type: str):
    """Display books in specified format."""
    if format_type == "table":
        headers = ["ID", "Title", "Author", "Rating", "Read", "Pages", "Genres"]
        rows = [
            [
                book.id,
                book.title[:50] + "..." if len(book.title) > 50 else book.title,
                book.author[:30] + "..." if len(book.author) > 30 else book.author,
                stars(book.rating) + (" ❤" if book.favorite else ""),
                format_date(book.date_read) or "Unknown",
                book.pages or "N/A",
                book.genres_str
            ]
            for book in books
        ]
        print("\n" + tabulate(rows, headers=headers, tablefmt="grid"))

    elif format_type == "json":
        print(json.dumps([asdict(book) for book in books], indent=2, ensure_ascii=False))

    elif format_type == "compact":
        for i, book in enumerate(books, 1):
            print(f"{i}. {book.title} - {book.author}")


def show_book(args, catalog: Catalog) -> int:
    """Show a single book with its review."""
    if not require_books(catalog):
        return 1

    book = catalog.get_book(args.book_id)
    if book is None:
        logger.error(f"❌ Book not found: {args.book_id}")
        return 1

    if args.format == "json":
        print(json.dumps(asdict(book), indent=2, ensure_ascii=False))
        return 0

    genres = ", ".join(g.label for g in catalog.genres_for(book)) or "None"
    print("\n" + "=" * 50)
    print(book.title)
    print(f"by {book.author}")
    print("=" * 50)
    print(tabulate(
        [
            ["Rating", f"{stars(book.rating)} {rating_label(book.rating)}"],
            ["Genres", genres],
            ["Pages", book.pages or "N/A"],
            ["Year", book.year or "N/A"],
            ["Publisher", book.publisher or "N/A"],
            ["Read", format_date(book.date_read) or "N/A"],
            ["Tags", " ".join(f"#{tag}" for tag in book.tags)],
        ],
        tablefmt="plain"
    ))
    if book.review:
        print("\n" + book.review)
    for quote in book.quotes:
        print(f'\n  "{quote}"')
    print()
    return 0


def show_stats(args, catalog: Catalog) -> int:
    """Show reading statistics."""
    if not require_books(catalog):
        return 1

    stats = catalog.compute_stats()

    if args.format == "json":
        print(json.dumps(asdict(stats), indent=2, ensure_ascii=False))
        return 0

    print("\n" + "=" * 50)
    print("READING STATISTICS")
    print("=" * 50)
    print(f"Books read: {stats.total_books}")
    print(f"Total pages: {stats.total_pages:,}")
    print(f"Average rating: {stats.average_rating}")
    print(f"Favorites: {stats.favorite_count}")
    if stats.top_author:
        print(f"Top author: {stats.top_author.name} ({stats.top_author.count} books)")
    print("=" * 50)

    rows = [[stars(rating), count] for rating, count in count_by_rating(catalog.books().items).items()]
    print(tabulate(rows, headers=["Rating", "Books"], tablefmt="simple"))

    goal = catalog.reading_goal()
    if goal:
        status = "🎉 Goal reached!" if goal.reached else f"{goal.remaining} books to go"
        print(f"\n📖 {goal.year} goal: {goal.current} / {goal.target} ({goal.percentage:.0f}%) - {status}")
    print()
    return 0


def list_years(args, catalog: Catalog) -> int:
    """List the years books were read in."""
    if not require_books(catalog):
        return 1

    for year in catalog.years_read():
        print(year)
    return 0


def list_genres(args, catalog: Catalog) -> int:
    """List genres with their book counts."""
    genres = catalog.genres()
    if GENRES in catalog.last_failures():
        logger.error("❌ Genres could not be loaded")
        return 1

    counts = count_by_genre(catalog.books().items)

    rows = [[g.id, g.label, counts.get(g.id, 0), g.description or ""] for g in genres]
    print("\n" + tabulate(rows, headers=["ID", "Genre", "Books", "Description"], tablefmt="grid"))
    return 0


def show_featured(args, catalog: Catalog) -> int:
    """Show the book of the month."""
    book = catalog.featured_book()
    if book is None:
        print("No book of the month.")
        return 0

    print(f"⭐ Book of the month: {book.title} - {book.author} {stars(book.rating)}")
    return 0


def show_quote(args, catalog: Catalog) -> int:
    """Show a random quote from a recent favorite."""
    quote = catalog.favorite_quote()
    if quote is None:
        print("No quotes from favorite books.")
        return 0

    print(f'\n  "{quote.text}"\n    - {quote.title}, {quote.author}\n')
    return 0


def show_about(args, catalog: Catalog) -> int:
    """Show the reader profile."""
    profile = catalog.profile()
    if profile is None:
        logger.error("❌ Profile could not be loaded")
        return 1

    if args.format == "json":
        print(json.dumps(asdict(profile), indent=2, ensure_ascii=False))
        return 0

    print("\n" + "=" * 50)
    print(profile.name)
    if profile.role:
        print(profile.role)
    print("=" * 50)
    for paragraph in (profile.bio, profile.bio_extended):
        if paragraph:
            print(paragraph + "\n")

    if profile.favorite_genres:
        rows = [[g.label, g.description or ""] for g in profile.favorite_genres]
        print(tabulate(rows, headers=["Favorite genres", ""], tablefmt="simple"))
    for fact in profile.fun_facts:
        print(f"{fact.icon} {fact.text}".strip())
    if profile.social:
        print()
        print(tabulate([[link.name, link.handle, link.url] for link in profile.social], tablefmt="plain"))
    print()
    return 0


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Review Shelf Explorer - browse a book-review catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Latest six reviews
  %(prog)s books --limit 6

  # Five-star fantasy, best titles first
  %(prog)s books --genre fantasy --rating 5 --sort title-asc

  # Everything read in 2023 by an author matching "calvino"
  %(prog)s books --year 2023 --search calvino --format compact

  # Statistics from a remote catalog
  %(prog)s --data https://example.com/data/ stats
        """
    )
    parser.add_argument("--data", help="Data directory or URL (default: REVIEWSHELF_DATA_URL or data/)")
    parser.add_argument("--preload", action="store_true", help="Load all documents in parallel first")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Books command
    books_parser = subparsers.add_parser("books", help="List and filter books")
    books_parser.add_argument("--genre", help="Genre id")
    books_parser.add_argument("--rating", type=int, choices=range(1, 6), help="Exact rating")
    books_parser.add_argument("--favorite", action="store_true", help="Favorites only")
    books_parser.add_argument("--year", help="Year read (YYYY)")
    books_parser.add_argument("--search", help="Search title or author")
    books_parser.add_argument("--sort", choices=SORT_KEYS, default=DEFAULT_SORT, help=f"Sort order (default: {DEFAULT_SORT})")
    books_parser.add_argument("--limit", type=int, help="Max results")
    books_parser.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")

    # Show command
    show_parser = subparsers.add_parser("show", help="Show a single book")
    show_parser.add_argument("book_id", help="Book id")
    show_parser.add_argument("--format", choices=["text", "json"], default="text", help="Output format")

    # Stats command
    stats_parser = subparsers.add_parser("stats", help="Show reading statistics")
    stats_parser.add_argument("--format", choices=["text", "json"], default="text", help="Output format")

    subparsers.add_parser("years", help="List years read")
    subparsers.add_parser("genres", help="List genres")
    subparsers.add_parser("featured", help="Show the book of the month")
    subparsers.add_parser("quote", help="Show a random quote from a favorite book")

    about_parser = subparsers.add_parser("about", help="Show the reader profile")
    about_parser.add_argument("--format", choices=["text", "json"], default="text", help="Output format")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    config = Config()
    setup_logging(config, args.verbose)

    commands = {
        "books": list_books,
        "show": show_book,
        "stats": show_stats,
        "years": list_years,
        "genres": list_genres,
        "featured": show_featured,
        "quote": show_quote,
        "about": show_about,
    }

    try:
        with setup_catalog(args, config) as catalog:
            status = commands[args.command](args, catalog)
        sys.exit(status)

    except KeyboardInterrupt:
        logger.info("\n⚠️  Interrupted by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"❌ Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
