"""Read-only helpers for a presentation layer.

Nothing here changes state. These functions answer the questions a
renderer asks of a snapshot and a search session: which rows are on
screen, how each one should be highlighted, and what the result counter
says.
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional

from .core import KeyType, LoadingState, Node, TreeModel
from .search import SearchSession


@dataclass(frozen=True)
class VisibleRow:
    """One line of the rendered table.

    Attributes:
        node: The node shown on this line (for a placeholder, the node
            whose children are loading)
        depth: Indentation level
        is_placeholder: True for the "Loading..." line under a node
    """

    node: Node
    depth: int
    is_placeholder: bool = False

    @property
    def key(self) -> KeyType:
        return self.node.key


@dataclass(frozen=True)
class RenderHints:
    is_search_match: bool = False
    is_selected_search_match: bool = False
    search_text: str = ""


def iter_visible_rows(model: TreeModel) -> Iterator[VisibleRow]:
    """Yield the rows a renderer would show, top to bottom.

    A node's children are shown only when it is expanded and LOADED. An
    expanded node whose children are requested or in flight is followed
    by a single placeholder row.
    """
    def walk(key: KeyType) -> Iterator[VisibleRow]:
        node = model.get(key)
        yield VisibleRow(node, node.depth)
        if not node.is_expanded:
            return
        if node.loading_state in (LoadingState.LOAD_REQUESTED, LoadingState.LOADING):
            yield VisibleRow(node, node.depth + 1, is_placeholder=True)
        elif node.loading_state == LoadingState.LOADED:
            for child_id in node.child_ids:
                yield from walk(child_id)

    for key in model.root.child_ids:
        yield from walk(key)


def visible_keys(model: TreeModel) -> List[KeyType]:
    """Keys of the visible, non-placeholder rows."""
    return [row.key for row in iter_visible_rows(model) if not row.is_placeholder]


def render_hints(session: SearchSession, key: KeyType) -> RenderHints:
    return RenderHints(
        is_search_match=key in session.matches,
        is_selected_search_match=session.selected_key == key,
        search_text=session.search_text,
    )


def result_count(session: SearchSession) -> Optional[str]:
    """Counter text such as ``"2/7"``, or None when nothing is selected."""
    if session.selected_index is None or not session.matches:
        return None
    return f"{session.selected_index + 1}/{len(session.matches)}"
