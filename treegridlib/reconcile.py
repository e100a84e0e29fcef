"""Loading state machine transitions.

The grid calls ``promote_requested`` on every tick. All LOAD_REQUESTED
nodes are moved to LOADING in a single snapshot before any fetch is
dispatched, so a fetch is never started twice for the same node.
When a fetch resolves, ``merge_children`` folds its rows into whatever
snapshot is current at that moment.
"""

from typing import Iterable, List, Tuple

from loguru import logger

from .core import KeyType, LoadingState, Row, TreeModel


def requested_keys(model: TreeModel) -> List[KeyType]:
    """Keys of every node waiting for its fetch to be dispatched."""
    return [node.key for node in model
            if node.loading_state == LoadingState.LOAD_REQUESTED]


def promote_requested(model: TreeModel) -> Tuple[TreeModel, List[KeyType]]:
    """Move every LOAD_REQUESTED node to LOADING.

    Args:
        model: Current snapshot

    Returns:
        Tuple of (new snapshot, promoted keys). The snapshot is ``model``
        itself when nothing was waiting.
    """
    keys = requested_keys(model)
    if not keys:
        return model, keys

    model = model.upsert_all(
        model.get(key).with_loading_state(LoadingState.LOADING) for key in keys
    )
    logger.debug("Promoted {} node(s) to LOADING: {}", len(keys), keys)
    return model, keys


def merge_children(model: TreeModel, key: KeyType, rows: Iterable[Row]) -> TreeModel:
    """Add fetched ``rows`` under ``key`` and mark it LOADED.

    Rows whose key is already a child of ``key`` are skipped.
    """
    model = model.add_children(model.get(key), rows)
    return model.upsert(model.get(key).with_loading_state(LoadingState.LOADED))
