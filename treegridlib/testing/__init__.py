"""Testing utilities for treegridlib consumers.

This module provides fixtures that drive a TreeGrid against an
in-memory data source, without any real I/O.
"""

from .fixtures import DictDataSource

__all__ = ['DictDataSource']
