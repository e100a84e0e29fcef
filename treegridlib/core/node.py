"""Immutable tree node and its loading state.

A ``Node`` never changes after construction. Every ``with_*`` method
returns a fresh node carrying every field of the receiver except the one
being overwritten, so snapshots that still reference the old node are
unaffected.
"""

from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Any, Optional, Tuple, Union

KeyType = Union[str, int]

ROOT_KEY: KeyType = "root"


class LoadingState(IntEnum):
    """Where a node is in the child-fetch lifecycle.

    Values are ordered by intent: a node only moves forward through
    these states in normal operation.
    """
    NOT_LOADED = 0       # Children unknown
    LOAD_REQUESTED = 1   # Someone asked for children, fetch not dispatched
    LOADING = 2          # Fetch dispatched, awaiting result
    LOADED = 3           # child_ids is authoritative


@dataclass(frozen=True)
class Node:
    """One entry in a tree snapshot.

    Attributes:
        row: Caller-supplied payload, ``None`` only for the root
        parent_id: Key of the parent node (the root points at itself)
        depth: Distance from the root (root = 0)
        loading_state: Current ``LoadingState``
        is_expanded: Whether the presentation should show the children
        child_ids: Child keys in arrival order
        should_scroll: ``None`` until set, then True/False
    """

    row: Optional[Any]
    parent_id: KeyType
    depth: int = 0
    loading_state: LoadingState = LoadingState.NOT_LOADED
    is_expanded: bool = False
    child_ids: Tuple[KeyType, ...] = field(default_factory=tuple)
    should_scroll: Optional[bool] = None

    @classmethod
    def create_new(cls, row: Optional[Any], parent_id: KeyType, depth: int) -> 'Node':
        """Create a collapsed, not-yet-loaded node."""
        return cls(row=row, parent_id=parent_id, depth=depth)

    @property
    def key(self) -> KeyType:
        if self.row is None:
            return ROOT_KEY
        return self.row.key

    @property
    def is_root(self) -> bool:
        return self.key == self.parent_id

    @property
    def is_expandable(self) -> bool:
        """True if the payload says this node may have children."""
        return bool(getattr(self.row, 'expandable', False))

    def with_child(self, child: 'Node') -> 'Node':
        """Return a copy with ``child``'s key appended to ``child_ids``."""
        return replace(self, child_ids=self.child_ids + (child.key,))

    def with_loading_state(self, loading_state: LoadingState) -> 'Node':
        return replace(self, loading_state=loading_state)

    def with_expanded(self, expanded: bool) -> 'Node':
        return replace(self, is_expanded=expanded)

    def with_should_scroll(self, should_scroll: Optional[bool]) -> 'Node':
        return replace(self, should_scroll=should_scroll)

    def __repr__(self) -> str:
        return (f"Node(key={self.key!r}, depth={self.depth}, "
                f"state={self.loading_state.name}, expanded={self.is_expanded}, "
                f"children={len(self.child_ids)})")
