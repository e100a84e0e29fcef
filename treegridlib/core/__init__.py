"""Core data structures: nodes, snapshots, rows and snapshot commands.

Nothing in this package does I/O or touches the event loop.
"""

from .node import ROOT_KEY, KeyType, LoadingState, Node
from .model import TreeModel
from .rows import DataModel, FetchChildren, Row
from . import commands

__all__ = [
    'ROOT_KEY',
    'KeyType',
    'LoadingState',
    'Node',
    'TreeModel',
    'DataModel',
    'FetchChildren',
    'Row',
    'commands',
]
