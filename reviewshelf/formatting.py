"""Display helpers for ratings and read dates."""
import calendar
from typing import Optional

RATING_LABELS = {
    5: "Masterpiece",
    4: "Excellent",
    3: "Good",
    2: "Fair",
    1: "Disappointing",
}


def rating_label(rating: Optional[int]) -> str:
    return RATING_LABELS.get(rating, "")


def stars(rating: Optional[int], out_of: int = 5) -> str:
    """Render a rating as filled and empty stars, e.g. ``★★★☆☆``."""
    filled = max(0, min(rating or 0, out_of))
    return "★" * filled + "☆" * (out_of - filled)


def format_date(date_read: Optional[str]) -> str:
    """
    Format a ``YYYY-MM`` date for display, e.g. ``2023-05`` -> ``May 2023``.

    A bare year, or anything that does not parse, is returned unchanged.
    """
    if not date_read:
        return ""
    year, _, month = date_read.partition("-")
    try:
        month_number = int(month)
    except ValueError:
        return date_read
    if not 1 <= month_number <= 12:
        return date_read
    return f"{calendar.month_name[month_number]} {year}"
