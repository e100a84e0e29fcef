"""FIFO queue of long-running, steppable background operations.

An ``Operation`` is an immutable record of a task's progress. The grid
advances the head of its ``OperationQueue`` once per tick by calling the
operation's ``step`` function, which returns the next version of the
operation. Once an operation is marked done it is dropped on the
following advance and the next one starts.

"Expand all" is the built-in operation: it keeps requesting loads for
every expandable node it finds until nothing is left to load or its time
budget runs out.
"""

import itertools
from dataclasses import dataclass, field, replace
from typing import Callable, FrozenSet, Generic, Iterator, List, Optional, Tuple, TypeVar

from loguru import logger

from .core import KeyType, LoadingState, TreeModel

S = TypeVar('S')

Step = Callable[['Operation[S]'], 'Operation[S]']


@dataclass(frozen=True)
class Operation(Generic[S]):
    """One queued background task.

    Attributes:
        id: Identity, unique within the owning queue
        state: Task-specific progress
        step: ``(operation) -> operation`` producing the next version
        is_done: Set once the task has finished (or given up)
    """

    id: int
    state: S
    step: Step = field(compare=False, repr=False)
    is_done: bool = False

    def mark_done(self) -> 'Operation[S]':
        return replace(self, is_done=True)

    def update_state(self, state: S) -> 'Operation[S]':
        return replace(self, state=state)


class OperationQueue:
    """Operations processed strictly one at a time, in enqueue order.

    Each queue numbers its own operations; two grids never share ids or
    influence each other's numbering.
    """

    def __init__(self, first_id: int = 0):
        self._ids = itertools.count(first_id)
        self._operations: Tuple[Operation, ...] = ()

    def enqueue(self, state: S, step: Step) -> Operation[S]:
        """Append a new operation and return it."""
        op = Operation(id=next(self._ids), state=state, step=step)
        self._operations = self._operations + (op,)
        logger.debug("Enqueued operation {}", op.id)
        return op

    @property
    def head(self) -> Optional[Operation]:
        return self._operations[0] if self._operations else None

    def advance(self) -> bool:
        """Drop the head if done, otherwise step it once.

        Returns:
            True if the queue changed
        """
        head = self.head
        if head is None:
            return False
        if head.is_done:
            logger.debug("Operation {} done, dequeuing", head.id)
            self._operations = self._operations[1:]
            return True

        new_head = head.step(head)
        self._operations = (new_head,) + self._operations[1:]
        return new_head != head

    def operations(self) -> List[Operation]:
        return list(self._operations)

    def __len__(self) -> int:
        return len(self._operations)

    def __bool__(self) -> bool:
        return bool(self._operations)

    def __iter__(self) -> Iterator[Operation]:
        return iter(self._operations)


@dataclass(frozen=True)
class ExpandAllState:
    """Progress of an "expand all" operation.

    Attributes:
        loading_ids: Keys whose children have been requested but not arrived
        start_time: Clock value when the operation was enqueued
        expanded_ids: Keys this operation has already expanded once; a
            later collapse of one of them is left alone
    """

    loading_ids: FrozenSet[KeyType]
    start_time: float
    expanded_ids: FrozenSet[KeyType] = frozenset()


def expand_all_step(op: Operation[ExpandAllState],
                    model: TreeModel,
                    now: float,
                    budget: float = 5.0,
                    can_fetch: bool = True,
                    expand: bool = False) -> Tuple[Operation[ExpandAllState], TreeModel]:
    """Advance "expand all" by one tick.

    Args:
        op: The operation being stepped
        model: Current snapshot
        now: Current clock value
        budget: Seconds after which the operation gives up
        can_fetch: Whether a fetch collaborator exists; without one no
            loads are requested
        expand: Also expand each expandable node the first time it is seen

    Returns:
        Tuple of (next operation, snapshot with new load requests)
    """
    state = op.state
    if not state.loading_ids:
        logger.debug("Expand all: nothing left to load")
        return op.mark_done(), model

    if now - state.start_time > budget:
        logger.info("Expand all: still loading {} node(s) after {:.1f}s, giving up",
                    len(state.loading_ids), budget)
        return op.mark_done(), model

    loading = {key for key in state.loading_ids
               if model.get(key).loading_state != LoadingState.LOADED}

    need_to_load = []
    if can_fetch:
        need_to_load = [node for node in model
                        if node.is_expandable
                        and node.key not in loading
                        and node.loading_state == LoadingState.NOT_LOADED]
    loading.update(node.key for node in need_to_load)

    updated = {node.key: node.with_loading_state(LoadingState.LOAD_REQUESTED)
               for node in need_to_load}
    expanded_ids = state.expanded_ids
    if expand:
        newly_seen = [node for node in model
                      if node.is_expandable and node.key not in expanded_ids]
        for node in newly_seen:
            if not node.is_expanded:
                updated[node.key] = updated.get(node.key, node).with_expanded(True)
        expanded_ids = expanded_ids | {node.key for node in newly_seen}
    model = model.upsert_all(updated.values())
    logger.debug("Expand all: waiting on {} node(s)", len(loading))

    if not loading:
        logger.info("Expand all: finished after {:.1f}s", now - state.start_time)
        return op.mark_done(), model
    return op.update_state(ExpandAllState(frozenset(loading), state.start_time, expanded_ids)), model
