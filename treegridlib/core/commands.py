"""Pure snapshot transformations behind the grid's user actions.

Each function takes a snapshot and returns a new one (or the same one
when nothing changes). None of them publish anything; ``TreeGrid``
commits the result.
"""

from .model import TreeModel
from .node import KeyType, LoadingState


def expand(model: TreeModel, key: KeyType, can_fetch: bool) -> TreeModel:
    """Expand a node, requesting its children if they were never loaded.

    Args:
        model: Current snapshot
        key: Node to expand
        can_fetch: Whether a fetch collaborator is configured

    Returns:
        Snapshot with the node expanded (and possibly LOAD_REQUESTED)
    """
    node = model.get(key)
    new_node = node.with_expanded(True)
    if node.loading_state == LoadingState.NOT_LOADED and can_fetch:
        new_node = new_node.with_loading_state(LoadingState.LOAD_REQUESTED)
    return model.upsert(new_node)


def collapse(model: TreeModel, key: KeyType) -> TreeModel:
    """Collapse a node; loaded children stay cached."""
    return model.upsert(model.get(key).with_expanded(False))


def toggle(model: TreeModel, key: KeyType, can_fetch: bool) -> TreeModel:
    """Flip expansion, ignoring clicks while the node's children are in flight."""
    node = model.get(key)
    if node.loading_state in (LoadingState.LOAD_REQUESTED, LoadingState.LOADING):
        return model
    if node.is_expanded:
        return collapse(model, key)
    return expand(model, key, can_fetch)


def load_children(model: TreeModel, key: KeyType, can_fetch: bool) -> TreeModel:
    """Request children without touching expansion.

    No-op unless the node is NOT_LOADED and a fetch collaborator exists.
    """
    node = model.get(key)
    if node.loading_state != LoadingState.NOT_LOADED or not can_fetch:
        return model
    return model.upsert(node.with_loading_state(LoadingState.LOAD_REQUESTED))


def ensure_visible(model: TreeModel, key: KeyType) -> TreeModel:
    """Flag a node for scrolling and expand all of its ancestors.

    The result is a single snapshot regardless of how deep the node is.
    Ancestors are not asked to load; they already are, since the node
    was reached through them.
    """
    node = model.get(key)
    updated = [node.with_should_scroll(True)]
    current = node
    while not current.is_root:
        parent = model.get(current.parent_id)
        if not parent.is_expanded:
            updated.append(parent.with_expanded(True))
        current = parent
    return model.upsert_all(updated)


def collapse_all(model: TreeModel) -> TreeModel:
    """Collapse every node except the root."""
    return model.upsert_all(
        node.with_expanded(False)
        for node in model
        if node.is_expanded and not node.is_root
    )


def acknowledge_scroll(model: TreeModel, key: KeyType) -> TreeModel:
    """Clear ``should_scroll`` once the presentation has acted on it."""
    node = model.get(key)
    if not node.should_scroll:
        return model
    return model.upsert(node.with_should_scroll(False))
