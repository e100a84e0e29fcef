"""TreeGrid: the reactive controller behind an expandable, searchable tree table.

The grid owns three pieces of state: the current ``TreeModel`` snapshot,
the current ``SearchSession`` and an ``OperationQueue``. Handlers such as
``expand`` or ``set_search_text`` compute a new value and publish it.
Every publication schedules a *tick* on the event loop, and a tick does
three things in order:

1. reconciliation: promote LOAD_REQUESTED nodes to LOADING in one
   snapshot, then start a fetch task for each of them
2. search: advance the search session by at most one node
3. operations: step the head of the operation queue

Each of these may publish again, which schedules the next tick, so the
grid keeps going until nothing changes. Fetch tasks publish their merged
snapshot when they complete, which wakes the loop up again.

Everything runs on one event loop; snapshots are never modified in
place, so whoever publishes last simply wins and the next tick works
from that.
"""

import asyncio
import functools
from typing import Callable, Dict, List, Optional, Set, Union

from loguru import logger

from .config import GridConfig
from .core import DataModel, KeyType, Node, TreeModel, commands
from .exceptions import FetchError, InvalidConfigError
from .fetching import ErrorHandlingFetcher
from .operations import ExpandAllState, Operation, OperationQueue, expand_all_step
from .reconcile import merge_children, promote_requested
from . import search as _search
from .search import SearchSession
from .view import VisibleRow, iter_visible_rows, result_count

NodeRef = Union[Node, KeyType]
Listener = Callable[['TreeGrid'], None]


class TreeGrid:
    """Expandable, searchable tree over a lazily fetched data source.

    Example:
        async with TreeGrid(DataModel(rows=rows, fetch_children=fetch)) as grid:
            grid.set_search_text("bob")
            await grid.wait_idle(timeout=10)
            print(grid.search.matches)
    """

    def __init__(self, data_model: DataModel, config: Optional[GridConfig] = None):
        """Initialize grid.

        Args:
            data_model: Rows and collaborators
            config: Grid configuration (defaults if None)

        Raises:
            InvalidConfigError: If the configuration does not validate
        """
        self.config = config or GridConfig()
        errors = self.config.validate()
        if errors:
            raise InvalidConfigError(errors)

        self.data_model = data_model
        self._fetch: Optional[ErrorHandlingFetcher] = None
        if data_model.fetch_children is not None:
            self._fetch = ErrorHandlingFetcher(
                data_model.fetch_children,
                policy=self.config.error_policy,
                timeout=self.config.fetch_timeout,
            )

        self._model = TreeModel.from_rows(data_model.rows)
        self._search = SearchSession()
        self._operations = OperationQueue()

        self._fetch_tasks: Dict[KeyType, asyncio.Task] = {}
        self._failures: List[FetchError] = []
        self._listeners: List[Listener] = []

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._tick_handle: Optional[asyncio.Handle] = None
        self._started = False
        self._closed = False

    # Read-only state

    @property
    def model(self) -> TreeModel:
        """The current snapshot."""
        return self._model

    @property
    def search(self) -> SearchSession:
        return self._search

    @property
    def operations(self) -> List[Operation]:
        return self._operations.operations()

    @property
    def can_fetch(self) -> bool:
        return self._fetch is not None

    @property
    def pending_fetches(self) -> Set[KeyType]:
        """Keys whose fetch task has been started and not yet finished."""
        return set(self._fetch_tasks)

    @property
    def is_searching(self) -> bool:
        """Whether a "searching" indicator should be shown right now."""
        return _search.is_searching(self._search, self.config.clock(),
                                    self.config.search_spinner_delay)

    @property
    def result_count(self) -> Optional[str]:
        return result_count(self._search)

    @property
    def is_idle(self) -> bool:
        """True when no tick, fetch or operation is pending."""
        return (self._tick_handle is None
                and not self._fetch_tasks
                and not self._operations)

    def get(self, key: KeyType) -> Node:
        return self._model.get(key)

    def visible_rows(self) -> List[VisibleRow]:
        return list(iter_visible_rows(self._model))

    # Handlers

    def expand(self, node: NodeRef) -> None:
        self.commit(commands.expand(self._model, _key(node), self.can_fetch))

    def collapse(self, node: NodeRef) -> None:
        self.commit(commands.collapse(self._model, _key(node)))

    def toggle(self, node: NodeRef) -> None:
        self.commit(commands.toggle(self._model, _key(node), self.can_fetch))

    def load_children(self, node: NodeRef) -> None:
        """Request children without expanding the node."""
        self.commit(commands.load_children(self._model, _key(node), self.can_fetch))

    def ensure_visible(self, node: NodeRef) -> None:
        self.commit(commands.ensure_visible(self._model, _key(node)))

    def acknowledge_scroll(self, node: NodeRef) -> None:
        """Tell the grid the presentation has scrolled ``node`` into view."""
        self.commit(commands.acknowledge_scroll(self._model, _key(node)))

    def collapse_all(self) -> None:
        self.commit(commands.collapse_all(self._model))

    def set_search_text(self, text: str) -> None:
        self._publish_search(_search.set_search_text(self._search, text))

    def clear_search(self) -> None:
        self._publish_search(_search.clear_search(self._search))

    def next_result(self) -> None:
        session, model = _search.next_result(self._search, self._model)
        self.commit(model)
        self._publish_search(session)

    def prev_result(self) -> None:
        session, model = _search.prev_result(self._search, self._model)
        self.commit(model)
        self._publish_search(session)

    def expand_all(self) -> Operation[ExpandAllState]:
        """Queue an "expand all" operation.

        The operation keeps requesting loads for every expandable node it
        can reach until there is nothing left or ``expand_all_budget``
        seconds have passed.

        Returns:
            The queued operation (as first enqueued)
        """
        state = ExpandAllState(frozenset([self._model.root_id]), self.config.clock())

        def step(op: Operation[ExpandAllState]) -> Operation[ExpandAllState]:
            op, model = expand_all_step(
                op,
                self._model,
                self.config.clock(),
                budget=self.config.expand_all_budget,
                can_fetch=self.can_fetch,
                expand=True,
            )
            self.commit(model)
            return op

        op = self._operations.enqueue(state, step)
        self._schedule_tick()
        return op

    # Publishing

    def commit(self, model: TreeModel) -> None:
        """Publish ``model`` as the current snapshot."""
        if model is self._model:
            return
        self._model = model
        self._changed()

    def _publish_search(self, session: SearchSession) -> None:
        if session == self._search:
            return
        self._search = session
        self._changed()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(grid)`` after every published change.

        Exceptions raised by a listener are logged and otherwise ignored.

        Returns:
            A function that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        self._notify()
        self._schedule_tick()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                # The tick carries on past a failing listener
                logger.exception("Listener {!r} raised; continuing", listener)

    # Reactive loop

    def _schedule_tick(self, delay: float = 0.0) -> None:
        if self._loop is None or self._closed:
            # start() runs the first tick
            return
        handle = self._tick_handle
        if handle is not None:
            if delay > 0 or not isinstance(handle, asyncio.TimerHandle):
                return
            handle.cancel()
        if delay > 0:
            self._tick_handle = self._loop.call_later(delay, self._tick)
        else:
            self._tick_handle = self._loop.call_soon(self._tick)

    def _tick(self) -> None:
        self._tick_handle = None
        if self._closed:
            return
        self._reconcile()
        self._step_search()
        self._step_operations()

    def _reconcile(self) -> None:
        if self._fetch is None:
            return
        model, keys = promote_requested(self._model)
        if not keys:
            return
        self.commit(model)
        for key in keys:
            self._dispatch(key)

    def _dispatch(self, key: KeyType) -> None:
        task = self._loop.create_task(self._load(key))
        self._fetch_tasks[key] = task
        task.add_done_callback(functools.partial(self._fetch_done, key))

    async def _load(self, key: KeyType) -> None:
        row = self._model.get(key).row
        logger.debug("Fetching children of {}", self.data_model.describe(row))
        children = await self._fetch(row)

        if children is None:
            logger.warning("No children returned for {}; node stays loading",
                           self.data_model.describe(row))
            return

        # Merge into whatever is current now, not the snapshot we started from
        self.commit(merge_children(self._model, key, children))
        logger.debug("Children of {} are now {}", self.data_model.describe(row),
                     list(self._model.get(key).child_ids))

    def _fetch_done(self, key: KeyType, task: asyncio.Task) -> None:
        self._fetch_tasks.pop(key, None)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Fetching children of {!r} failed: {!r}", key, error)
            self._failures.append(FetchError(key, error))

    def _step_search(self) -> None:
        session, model = _search.step_search(
            self._search, self._model, self.data_model, self.config.clock()
        )
        self.commit(model)
        self._publish_search(session)

    def _step_operations(self) -> None:
        if not self._operations:
            return
        if self._operations.advance():
            self._notify()
        if self._operations:
            self._schedule_tick(self.config.operation_poll_interval)

    # Lifecycle

    async def start(self) -> 'TreeGrid':
        """Attach to the running event loop and run the first tick.

        With ``expand_first_generation`` set, every expandable top-level
        row is expanded (and so loaded) right away.
        """
        if self._started:
            return self
        self._loop = asyncio.get_running_loop()
        self._started = True

        if self.config.expand_first_generation:
            model = self._model
            for key in model.root.child_ids:
                if model.get(key).is_expandable:
                    model = commands.expand(model, key, self.can_fetch)
            self.commit(model)
        self._schedule_tick()
        return self

    async def wait_idle(self, timeout: Optional[float] = None) -> None:
        """Wait until the grid has nothing left to do.

        A search waiting on a node whose fetch never completes does not
        keep the grid busy; a fetch that never returns does.

        Args:
            timeout: Seconds to wait, None for no limit

        Raises:
            FetchError: A fetch failed and the error policy re-raised it
            asyncio.TimeoutError: ``timeout`` elapsed first
        """
        if not self._started:
            await self.start()

        async def _wait() -> None:
            while not self.is_idle:
                self._raise_failures()
                await asyncio.sleep(self.config.poll_interval)
            self._raise_failures()

        await asyncio.wait_for(_wait(), timeout)

    def _raise_failures(self) -> None:
        if self._failures:
            raise self._failures.pop(0)

    async def close(self) -> None:
        """Stop ticking and cancel fetches still in flight."""
        if self._closed:
            return
        self._closed = True
        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None
        tasks = list(self._fetch_tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._fetch_tasks.clear()

    async def __aenter__(self) -> 'TreeGrid':
        return await self.start()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def __repr__(self) -> str:
        return (f"TreeGrid(nodes={len(self._model)}, search={self._search.search_text!r}, "
                f"operations={len(self._operations)}, fetching={len(self._fetch_tasks)})")


def _key(node: NodeRef) -> KeyType:
    if isinstance(node, Node):
        return node.key
    return node
