"""Caller-facing data contract.

A ``DataModel`` describes what the grid shows: the first generation of
rows and, optionally, how to fetch the children of an expandable row and
how to decide whether a row matches a search query.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, List, Optional, TypeVar

from .node import KeyType

T = TypeVar('T')

FetchChildren = Callable[['Row'], Awaitable[Optional[List['Row']]]]


@dataclass(frozen=True)
class Row(Generic[T]):
    """A single row of caller data.

    Attributes:
        key: Unique key within the tree
        value: Arbitrary caller payload
        expandable: Whether the row may have children to load and search
        matches_search: Optional predicate ``(search_text) -> bool``
    """

    key: KeyType
    value: T = None
    expandable: bool = False
    matches_search: Optional[Callable[[str], bool]] = field(default=None, compare=False)


@dataclass
class DataModel(Generic[T]):
    """Rows plus the collaborators the grid calls back into.

    Attributes:
        rows: Children of the (hidden) root
        fetch_children: ``async (row) -> rows or None``; ``None`` disables loading
        matches_search: Fallback predicate ``(row, text) -> bool`` for rows
            without their own ``matches_search``
        to_string: ``(row, column) -> str``, only used for log messages
    """

    rows: List[Row[T]] = field(default_factory=list)
    fetch_children: Optional[FetchChildren] = None
    matches_search: Optional[Callable[[Row[T], str], bool]] = None
    to_string: Optional[Callable[[Row[T], int], str]] = None

    @property
    def can_fetch(self) -> bool:
        return self.fetch_children is not None

    def row_matches(self, row: Optional[Row[T]], search_text: str) -> bool:
        """Check ``row`` against ``search_text``; rows with no predicate never match."""
        if row is None:
            return False
        if row.matches_search is not None:
            return bool(row.matches_search(search_text))
        if self.matches_search is not None:
            return bool(self.matches_search(row, search_text))
        return False

    def describe(self, row: Optional[Any]) -> str:
        if row is None:
            return "<root>"
        if self.to_string is not None:
            return self.to_string(row, 0)
        return repr(row.key)
