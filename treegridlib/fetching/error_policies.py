"""
Fetch error policies for treegridlib.

A fetch_children call that raises (or times out) is handed to a policy,
which decides what happens to the node whose children were being
fetched:

- return ``None``: the node stays LOADING
- return a list: it is merged as the node's children and the node
  becomes LOADED
- raise: the failure propagates and ``TreeGrid.wait_idle`` reports it
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from loguru import logger


class FetchErrorPolicy(ABC):
    """
    Base class for fetch error policies.

    Subclasses implement different strategies for a failed fetch.
    """

    @abstractmethod
    async def handle(self, error: Exception, row: Any) -> Optional[List[Any]]:
        """
        Handle an error raised while fetching the children of ``row``.

        Args:
            error: The exception that was raised
            row: The row whose children were being fetched

        Returns:
            ``None`` to leave the node loading, a list of child rows to
            settle it, or re-raises to propagate.
        """
        pass

    @staticmethod
    def _record(error: Exception, row: Any) -> Dict[str, Any]:
        return {
            'key': getattr(row, 'key', None),
            'error': error,
            'error_type': type(error).__name__,
            'error_message': str(error),
        }


class StallPolicy(FetchErrorPolicy):
    """
    Policy that records the error and leaves the node LOADING forever.

    This is the default. Nothing is retried; the rest of the tree keeps
    working and the failed node shows a perpetual loading state.
    """

    def __init__(self, verbose: bool = True):
        """
        Initialize the policy.

        Args:
            verbose: If True, log each failure at WARNING, otherwise at DEBUG
        """
        self.errors: List[Dict[str, Any]] = []
        self.verbose = verbose

    async def handle(self, error: Exception, row: Any) -> Optional[List[Any]]:
        record = self._record(error, row)
        self.errors.append(record)
        level = "WARNING" if self.verbose else "DEBUG"
        logger.log(level, "Fetching children of {!r} failed ({}: {}); node stays loading",
                   record['key'], record['error_type'], record['error_message'])
        return None

    def get_statistics(self) -> dict:
        """
        Get statistics about errors encountered.

        Returns:
            Dictionary with error counts and details
        """
        return {
            'total_errors': len(self.errors),
            'timeouts': sum(1 for e in self.errors if e['error_type'] == 'TimeoutError'),
            'stalled_keys': [e['key'] for e in self.errors],
            'errors': self.errors,
        }


class TreatAsLeafPolicy(StallPolicy):
    """
    Policy that settles a failed node as LOADED with no children.

    Useful when a failing branch should simply look empty rather than
    spin forever.
    """

    async def handle(self, error: Exception, row: Any) -> Optional[List[Any]]:
        record = self._record(error, row)
        self.errors.append(record)
        level = "WARNING" if self.verbose else "DEBUG"
        logger.log(level, "Fetching children of {!r} failed ({}: {}); treating as leaf",
                   record['key'], record['error_type'], record['error_message'])
        return []


class FailFastPolicy(FetchErrorPolicy):
    """
    Policy that immediately re-raises any error.

    The node stays LOADING and the failure is reported by
    ``TreeGrid.wait_idle``.
    """

    async def handle(self, error: Exception, row: Any) -> Optional[List[Any]]:
        """Re-raise the error immediately."""
        raise error


class ThresholdPolicy(FetchErrorPolicy):
    """
    Policy that treats failures as leaves up to a threshold, then fails fast.

    Useful when some failures are expected but too many indicate the data
    source itself is broken.
    """

    def __init__(self, max_errors: int = 10, verbose: bool = True):
        """
        Initialize threshold policy.

        Args:
            max_errors: Maximum errors to tolerate before failing
            verbose: If True, log each tolerated failure at WARNING
        """
        self.max_errors = max_errors
        self.error_count = 0
        self.verbose = verbose
        self.errors: List[Exception] = []

    async def handle(self, error: Exception, row: Any) -> Optional[List[Any]]:
        """Settle as a leaf if under threshold, otherwise raise."""
        self.error_count += 1
        self.errors.append(error)

        if self.error_count > self.max_errors:
            raise RuntimeError(f"Fetch error threshold exceeded ({self.max_errors} errors)") from error

        if self.verbose:
            logger.warning("[{}/{}] Fetching children of {!r} failed: {}",
                           self.error_count, self.max_errors, getattr(row, 'key', row), error)
        return []
