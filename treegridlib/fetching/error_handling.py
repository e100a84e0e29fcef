"""
Error handling wrapper for fetch_children callables.

``ErrorHandlingFetcher`` sits between the grid and the caller's fetch
function. It applies the optional timeout and hands any failure to a
``FetchErrorPolicy``; the grid only ever sees a list of rows, ``None``,
or an exception the policy chose to propagate.
"""

import asyncio
from typing import Any, List, Optional

from .error_policies import FetchErrorPolicy, StallPolicy
from ..core import FetchChildren


class ErrorHandlingFetcher:
    """
    Wraps a fetch_children callable and delegates failures to a policy.
    """

    def __init__(self,
                 fetch: FetchChildren,
                 policy: Optional[FetchErrorPolicy] = None,
                 timeout: Optional[float] = None):
        """
        Initialize the error handling fetcher.

        Args:
            fetch: The fetch_children callable to wrap
            policy: Error handling policy (defaults to StallPolicy)
            timeout: Seconds to wait for a fetch, None to wait forever
        """
        self._fetch = fetch
        self._policy = policy or StallPolicy()
        self.timeout = timeout

    async def __call__(self, row: Any) -> Optional[List[Any]]:
        try:
            if self.timeout is None:
                return await self._fetch(row)
            return await asyncio.wait_for(self._fetch(row), self.timeout)
        except Exception as e:
            return await self._policy.handle(e, row)

    @property
    def policy(self) -> FetchErrorPolicy:
        return self._policy

    def set_policy(self, policy: FetchErrorPolicy) -> None:
        """
        Change the error policy.

        Args:
            policy: The new FetchErrorPolicy to use
        """
        self._policy = policy

    def get_base_fetcher(self) -> FetchChildren:
        return self._fetch

    def __repr__(self) -> str:
        return f"ErrorHandlingFetcher({self._fetch!r}, policy={self._policy.__class__.__name__})"
