"""Error types for catalog data loading."""
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class LoadFailure(Exception):
    """A data document could not be fetched or parsed."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Failed to load {name}: {reason}")


@dataclass
class LoadResult(Generic[T]):
    """
    Outcome of loading one named document.

    ``data`` holds the parsed value when the load succeeded. ``error`` is
    set when it failed, so callers can tell an empty collection apart from
    a source that could not be read.
    """
    name: str
    data: Optional[T] = None
    error: Optional[LoadFailure] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def items(self) -> Any:
        """The loaded collection, or an empty list when nothing was loaded."""
        return self.data if self.data is not None else []
