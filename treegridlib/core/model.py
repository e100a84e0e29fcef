"""Persistent, versioned tree snapshot.

``TreeModel`` maps node keys to immutable ``Node`` values. Every mutating
method returns a new ``TreeModel``; the receiver is left untouched so
that asynchronous work holding an older snapshot never observes later
changes. Only the key -> node mapping is copied on write, individual
nodes are shared between snapshots.
"""

from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping

from ..exceptions import DuplicateKeyError, UnknownNodeError
from .node import ROOT_KEY, KeyType, LoadingState, Node


class TreeModel:
    """One immutable version of the whole tree."""

    __slots__ = ('_nodes', '_root_id', '_version')

    def __init__(self, root_id: KeyType, nodes: Mapping[KeyType, Node], version: int = 0):
        self._root_id = root_id
        self._nodes: Mapping[KeyType, Node] = MappingProxyType(dict(nodes))
        self._version = version

    @classmethod
    def _wrap(cls, root_id: KeyType, nodes: Dict[KeyType, Node], version: int) -> 'TreeModel':
        # ``nodes`` is a fresh dict owned by the new snapshot
        model = cls.__new__(cls)
        model._root_id = root_id
        model._nodes = MappingProxyType(nodes)
        model._version = version
        return model

    @classmethod
    def create(cls) -> 'TreeModel':
        """Create a snapshot holding only a loaded, expanded root."""
        # The root is its own parent
        root = (Node.create_new(None, parent_id=ROOT_KEY, depth=0)
                .with_loading_state(LoadingState.LOADED)
                .with_expanded(True))
        return cls(root.key, {root.key: root})

    @classmethod
    def from_rows(cls, rows: Iterable[Any]) -> 'TreeModel':
        """Create a snapshot whose root already holds ``rows`` as children."""
        model = cls.create()
        return model.add_children(model.root, rows)

    @property
    def root(self) -> Node:
        return self._nodes[self._root_id]

    @property
    def root_id(self) -> KeyType:
        return self._root_id

    @property
    def version(self) -> int:
        """Number of mutations between ``create()`` and this snapshot."""
        return self._version

    def get(self, key: KeyType) -> Node:
        """Get the node stored under ``key``.

        Raises:
            UnknownNodeError: If the key is not in this snapshot
        """
        try:
            return self._nodes[key]
        except KeyError:
            raise UnknownNodeError(key) from None

    def all_nodes(self) -> List[Node]:
        return list(self._nodes.values())

    def upsert(self, node: Node) -> 'TreeModel':
        """Return a snapshot with ``node`` stored under its key.

        Keeping the tree consistent (not orphaning children, keeping
        depths right) is the caller's job.
        """
        nodes: Dict[KeyType, Node] = dict(self._nodes)
        nodes[node.key] = node
        return TreeModel._wrap(self._root_id, nodes, self._version + 1)

    def upsert_all(self, nodes: Iterable[Node]) -> 'TreeModel':
        """Return a snapshot with all of ``nodes`` stored in one copy."""
        updated: Dict[KeyType, Node] = dict(self._nodes)
        changed = False
        for node in nodes:
            updated[node.key] = node
            changed = True
        if not changed:
            return self
        return TreeModel._wrap(self._root_id, updated, self._version + 1)

    def add_child(self, parent: Node, row: Any) -> 'TreeModel':
        """Add ``row`` as the last child of ``parent``.

        Adding a row whose key is already among the parent's children
        returns this snapshot unchanged. Keys are unique across the whole
        tree and the root's key is reserved.

        Args:
            parent: Parent node (re-read from this snapshot by key)
            row: Payload for the new child; must have a ``key``

        Returns:
            New snapshot, or ``self`` for a duplicate

        Raises:
            DuplicateKeyError: If the key is already used by another node
        """
        parent = self.get(parent.key)
        if row.key in parent.child_ids:
            return self
        existing = self._nodes.get(row.key)
        if existing is not None:
            raise DuplicateKeyError(row.key, existing.parent_id)

        child = Node.create_new(row, parent.key, parent.depth + 1)
        nodes: Dict[KeyType, Node] = dict(self._nodes)
        nodes[child.key] = child
        nodes[parent.key] = parent.with_child(child)
        return TreeModel._wrap(self._root_id, nodes, self._version + 1)

    def add_children(self, parent: Node, rows: Iterable[Any]) -> 'TreeModel':
        """Add each of ``rows`` under ``parent`` in order."""
        model = self
        parent_id = parent.key
        for row in rows:
            model = model.add_child(model.get(parent_id), row)
        return model

    def __contains__(self, key: object) -> bool:
        return key in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes.values())

    def __repr__(self) -> str:
        return f"TreeModel(version={self._version}, nodes={len(self._nodes)})"
