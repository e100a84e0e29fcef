"""treegridlib - Core of an expandable, searchable tree table.

treegridlib keeps a lazily loaded tree in immutable snapshots and drives
it with a small reactive loop: expanding a row requests its children,
a search walks the tree breadth-first while it loads, and "expand all"
runs as a bounded background operation.

Typical use:
━━━━━━━━━━━━━━━━━━━━━━━━━━
    from treegridlib import DataModel, Row, TreeGrid

    async with TreeGrid(DataModel(rows=rows, fetch_children=fetch)) as grid:
        grid.set_search_text("bob")
        await grid.wait_idle(timeout=10)
━━━━━━━━━━━━━━━━━━━━━━━━━━

Rendering is left to the caller; see ``treegridlib.view`` for the
read-only helpers a renderer needs.
"""

from loguru import logger

__version__ = "0.3.0"

from .core import (
    ROOT_KEY,
    KeyType,
    LoadingState,
    Node,
    TreeModel,
    DataModel,
    Row,
    commands,
)
from .config import GridConfig
from .exceptions import (
    TreeGridError,
    UnknownNodeError,
    DuplicateKeyError,
    FetchError,
    InvalidConfigError,
)
from .fetching import (
    FetchErrorPolicy,
    StallPolicy,
    TreatAsLeafPolicy,
    FailFastPolicy,
    ThresholdPolicy,
    ErrorHandlingFetcher,
    CachingFetcher,
)
from .operations import ExpandAllState, Operation, OperationQueue, expand_all_step
from .search import SearchSession
from .view import RenderHints, VisibleRow, iter_visible_rows, render_hints, result_count
from .grid import TreeGrid
from .logging_config import configure_logging

# Library code stays quiet until the application opts in
logger.disable("treegridlib")

__all__ = [
    "__version__",
    # Core
    "ROOT_KEY",
    "KeyType",
    "LoadingState",
    "Node",
    "TreeModel",
    "DataModel",
    "Row",
    "commands",
    # Controller
    "TreeGrid",
    "GridConfig",
    # Search and operations
    "SearchSession",
    "Operation",
    "OperationQueue",
    "ExpandAllState",
    "expand_all_step",
    # Fetching
    "FetchErrorPolicy",
    "StallPolicy",
    "TreatAsLeafPolicy",
    "FailFastPolicy",
    "ThresholdPolicy",
    "ErrorHandlingFetcher",
    "CachingFetcher",
    # View
    "VisibleRow",
    "RenderHints",
    "iter_visible_rows",
    "render_hints",
    "result_count",
    # Errors
    "TreeGridError",
    "UnknownNodeError",
    "DuplicateKeyError",
    "FetchError",
    "InvalidConfigError",
    # Logging
    "configure_logging",
]
