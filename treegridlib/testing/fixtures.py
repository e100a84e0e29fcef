"""Test fixtures for treegridlib consumers.

``DictDataSource`` is an in-memory stand-in for a remote data source.
It answers ``fetch_children`` from a dict and lets a test stall, fail or
release individual fetches so that the grid's loading, search and
"expand all" behaviour can be driven deterministically.
"""

import asyncio
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from ..core import DataModel, KeyType, Row


class DictDataSource:
    """In-memory data source backed by ``{parent_key: [child rows]}``.

    Example:
        source = DictDataSource({
            None: [Row("a", "Alice", expandable=True)],
            "a": [Row("b", "Bob")],
        })
        grid = TreeGrid(source.data_model())
    """

    def __init__(self,
                 children: Dict[Optional[KeyType], List[Row]],
                 delay: float = 0.0):
        """Initialize the source.

        Args:
            children: Child rows per parent key; ``None`` holds the top level
            delay: Seconds every fetch sleeps before answering
        """
        self.children = children
        self.delay = delay
        self.calls: List[KeyType] = []
        self._stalled: Set[KeyType] = set()
        self._absent: Set[KeyType] = set()
        self._failures: Dict[KeyType, Exception] = {}
        self._gates: Dict[KeyType, asyncio.Event] = {}

    @classmethod
    def from_paths(cls, paths: Iterable[str], sep: str = "/", **kwargs) -> 'DictDataSource':
        """Build a source from slash-separated paths like ``"a/b/c"``.

        Every path prefix becomes a row keyed by the prefix, valued by its
        last segment. Rows with children are expandable.
        """
        children: Dict[Optional[KeyType], List[Row]] = {}
        parents: Set[str] = set()
        seen: Set[str] = set()
        edges: List[Tuple[Optional[str], str, str]] = []
        for path in paths:
            parts = path.split(sep)
            for i in range(len(parts)):
                key = sep.join(parts[:i + 1])
                parent = sep.join(parts[:i]) if i else None
                if parent is not None:
                    parents.add(parent)
                if key not in seen:
                    seen.add(key)
                    edges.append((parent, key, parts[i]))
        for parent, key, name in edges:
            children.setdefault(parent, []).append(
                Row(key, name, expandable=key in parents,
                    matches_search=_substring_match(name))
            )
        return cls(children, **kwargs)

    @property
    def rows(self) -> List[Row]:
        return list(self.children.get(None, []))

    def data_model(self, **kwargs) -> DataModel:
        return DataModel(rows=self.rows, fetch_children=self.fetch_children, **kwargs)

    def stall(self, key: KeyType) -> None:
        """Make fetches for ``key`` hang until ``release(key)``."""
        self._stalled.add(key)
        self._gates.setdefault(key, asyncio.Event())

    def release(self, key: KeyType) -> None:
        self._stalled.discard(key)
        gate = self._gates.pop(key, None)
        if gate is not None:
            gate.set()

    def answer_nothing(self, key: KeyType) -> None:
        """Make fetches for ``key`` resolve to ``None``."""
        self._absent.add(key)

    def fail(self, key: KeyType, error: Exception) -> None:
        """Make fetches for ``key`` raise ``error``."""
        self._failures[key] = error

    async def fetch_children(self, row: Row) -> Optional[List[Row]]:
        key = row.key
        self.calls.append(key)
        if self.delay:
            await asyncio.sleep(self.delay)
        if key in self._stalled:
            await self._gates[key].wait()
        if key in self._failures:
            raise self._failures[key]
        if key in self._absent:
            return None
        return list(self.children.get(key, []))


def _substring_match(name: str) -> Callable[[str], bool]:
    lowered = name.lower()
    return lambda text: text.lower() in lowered
