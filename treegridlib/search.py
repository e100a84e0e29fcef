"""Incremental breadth-first search over a lazily loaded tree.

A search never walks the whole tree at once. Each call to
``step_search`` looks at the head of the session's queue and either
waits for it to load, asks for it to be loaded, or dequeues it and
examines its children. The grid calls it once per tick, so a search over
a tree that is still being fetched simply resumes as nodes arrive.

Matches are recorded in discovery order, which is level order over the
expandable part of the tree.
"""

from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple

from loguru import logger

from .core import KeyType, LoadingState, TreeModel, DataModel
from .core import commands


@dataclass(frozen=True)
class SearchSession:
    """State of the current search.

    Attributes:
        search_text: The query
        search_changed: Query changed since the last step
        search_started: A non-empty query is being processed
        queue: Keys still to visit, head first
        start_time: Clock value when the current query started
        matches: Matching keys in discovery order
        selected_index: Index into ``matches``, ``None`` until the first match
    """

    search_text: str = ""
    search_changed: bool = False
    search_started: bool = False
    queue: Tuple[KeyType, ...] = field(default_factory=tuple)
    start_time: float = 0.0
    matches: Tuple[KeyType, ...] = field(default_factory=tuple)
    selected_index: Optional[int] = None

    @property
    def selected_key(self) -> Optional[KeyType]:
        if self.selected_index is None or not self.matches:
            return None
        return self.matches[self.selected_index]


def set_search_text(session: SearchSession, text: str) -> SearchSession:
    return replace(session, search_text=text, search_changed=True)


def clear_search(session: SearchSession) -> SearchSession:
    return set_search_text(session, "")


def restart(session: SearchSession, model: TreeModel, now: float) -> SearchSession:
    """Throw away any traversal in progress and start over for the current text."""
    active = session.search_text != ""
    return replace(
        session,
        search_changed=False,
        search_started=active,
        queue=(model.root_id,) if active else (),
        start_time=now,
        matches=(),
        selected_index=None,
    )


def step_search(session: SearchSession,
                model: TreeModel,
                data_model: DataModel,
                now: float) -> Tuple[SearchSession, TreeModel]:
    """Advance the search by at most one node.

    Without a fetch collaborator a NOT_LOADED node can never load, so it
    is searched with whatever children it already has.

    Args:
        session: Current search state
        model: Current snapshot
        data_model: Supplies the match predicate and fetch availability
        now: Current clock value

    Returns:
        Tuple of (new session, new snapshot). Either may be the same
        object that was passed in when nothing changed.
    """
    if session.search_changed:
        session = restart(session, model, now)

    if not session.queue or session.search_text == "":
        return session, model

    node = model.get(session.queue[0])
    if node.loading_state == LoadingState.NOT_LOADED and data_model.can_fetch:
        return session, commands.load_children(model, node.key, True)
    if node.loading_state in (LoadingState.LOAD_REQUESTED, LoadingState.LOADING):
        # Wait for the fetch to settle
        return session, model

    queue: List[KeyType] = list(session.queue[1:])
    matches: List[KeyType] = list(session.matches)
    selected = session.selected_index
    for child_id in node.child_ids:
        child = model.get(child_id)
        if data_model.row_matches(child.row, session.search_text):
            matches.append(child.key)
            logger.debug("Search match for {!r}: {}", session.search_text,
                         data_model.describe(child.row))
            if selected is None:
                selected = 0
                model = commands.ensure_visible(model, child.key)
        if child.is_expandable:
            queue.append(child.key)

    session = replace(session, queue=tuple(queue), matches=tuple(matches),
                      selected_index=selected)
    return session, model


def is_searching(session: SearchSession, now: float, delay: float = 1.0) -> bool:
    """Whether to show a "searching" indicator.

    Only true once the search has been running longer than ``delay``
    seconds, so fast searches do not flicker.
    """
    if not session.search_started or not session.queue:
        return False
    return now - session.start_time > delay


def _move_selection(session: SearchSession,
                    model: TreeModel,
                    delta: int) -> Tuple[SearchSession, TreeModel]:
    if session.selected_index is None:
        return session, model
    index = session.selected_index + delta
    if index < 0 or index >= len(session.matches):
        return session, model
    session = replace(session, selected_index=index)
    return session, commands.ensure_visible(model, session.matches[index])


def next_result(session: SearchSession, model: TreeModel) -> Tuple[SearchSession, TreeModel]:
    """Select the next match and bring it into view; no-op on the last match."""
    return _move_selection(session, model, 1)


def prev_result(session: SearchSession, model: TreeModel) -> Tuple[SearchSession, TreeModel]:
    """Select the previous match and bring it into view; no-op on the first match."""
    return _move_selection(session, model, -1)
