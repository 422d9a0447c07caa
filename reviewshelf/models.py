"""Data models for the review catalog."""
from dataclasses import dataclass, field
from typing import Optional, List, Any


# Sort keys understood by the query engine
SORT_DATE_DESC = "date-desc"
SORT_DATE_ASC = "date-asc"
SORT_RATING_DESC = "rating-desc"
SORT_RATING_ASC = "rating-asc"
SORT_TITLE_ASC = "title-asc"
SORT_TITLE_DESC = "title-desc"

SORT_KEYS = [
    SORT_DATE_DESC,
    SORT_DATE_ASC,
    SORT_RATING_DESC,
    SORT_RATING_ASC,
    SORT_TITLE_ASC,
    SORT_TITLE_DESC,
]
DEFAULT_SORT = SORT_DATE_DESC


@dataclass
class Book:
    """A reviewed book."""
    id: str
    title: str
    author: str
    genres: List[str] = field(default_factory=list)
    rating: Optional[int] = None
    favorite: bool = False
    date_read: Optional[str] = None  # YYYY-MM
    pages: Optional[int] = None
    year: Optional[int] = None
    publisher: Optional[str] = None
    review: str = ""
    quotes: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    cover: str = ""

    @property
    def year_read(self) -> Optional[str]:
        """Four-character year prefix of ``date_read``."""
        return self.date_read[:4] if self.date_read else None

    @property
    def genres_str(self) -> str:
        """Format genre ids as comma-separated string."""
        return ", ".join(self.genres) if self.genres else "None"


@dataclass
class Genre:
    """A genre (category) a book can belong to."""
    id: str
    name: str
    icon: str = ""
    description: Optional[str] = None

    @property
    def label(self) -> str:
        return f"{self.icon} {self.name}".strip()


@dataclass
class Criteria:
    """
    Filter, sort and limit parameters for a catalog query.

    Every field is optional; ``None`` means no constraint on that dimension.
    Values are taken as given (for example straight from a form or the CLI)
    and are never validated here.
    """
    genre: Optional[str] = None
    rating: Any = None
    favorite: Optional[bool] = None
    year_read: Optional[str] = None
    search: Optional[str] = None
    sort: Optional[str] = None
    limit: Any = None


@dataclass
class TopAuthor:
    """Most-read author and the number of their books."""
    name: str
    count: int


@dataclass
class StatsSummary:
    """Summary metrics over a book collection."""
    total_books: int = 0
    total_pages: int = 0
    average_rating: float = 0
    favorite_count: int = 0
    top_author: Optional[TopAuthor] = None


@dataclass
class ReadingGoal:
    """Yearly reading target from the personal settings."""
    year: int
    current: int
    target: int

    @property
    def percentage(self) -> float:
        """Progress towards the target, capped at 100."""
        if self.target <= 0:
            return 100.0
        return min(self.current / self.target * 100, 100.0)

    @property
    def remaining(self) -> int:
        return max(self.target - self.current, 0)

    @property
    def reached(self) -> bool:
        return self.current >= self.target


@dataclass
class Quote:
    """A quote together with the book it comes from."""
    text: str
    title: str
    author: str


@dataclass
class FunFact:
    icon: str
    text: str


@dataclass
class SocialLink:
    """A contact link; ``handle`` is what gets shown (address or @username)."""
    name: str
    url: str
    handle: str
    icon: str = ""


@dataclass
class Profile:
    """The reader behind the catalog, from the personal and site settings."""
    name: str = ""
    role: str = ""
    bio: str = ""
    bio_extended: str = ""
    favorite_genres: List[Genre] = field(default_factory=list)
    fun_facts: List[FunFact] = field(default_factory=list)
    social: List[SocialLink] = field(default_factory=list)
