"""Configuration for TreeGrid.

Timing constants that govern the reactive loop, the search indicator and
"expand all" live here, together with the opt-in fetch timeout and the
policy that decides what a failed fetch does to its node.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional


@dataclass
class GridConfig:
    """Complete configuration for a TreeGrid.

    All durations are in seconds and measured with ``clock``.
    """

    # Search
    search_spinner_delay: float = 1.0           # Show "searching" only after this long

    # Operations
    expand_all_budget: float = 5.0              # "Expand all" gives up after this long
    operation_poll_interval: float = 0.01       # Re-step queued operations this often

    # Loading
    expand_first_generation: bool = True        # Expand root's children on start()
    fetch_timeout: Optional[float] = None       # None = wait forever for a fetch
    error_policy: Optional[Any] = None          # FetchErrorPolicy, None = StallPolicy

    # Infrastructure
    clock: Callable[[], float] = field(default=time.monotonic)
    poll_interval: float = 0.005                # How often wait_idle() checks

    def validate(self) -> List[str]:
        """Check the configuration for problems.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        if self.search_spinner_delay < 0:
            errors.append("search_spinner_delay cannot be negative")
        if self.expand_all_budget < 0:
            errors.append("expand_all_budget cannot be negative")
        if self.operation_poll_interval < 0:
            errors.append("operation_poll_interval cannot be negative")
        if self.fetch_timeout is not None and self.fetch_timeout <= 0:
            errors.append("fetch_timeout must be positive")
        if self.poll_interval <= 0:
            errors.append("poll_interval must be positive")
        if not callable(self.clock):
            errors.append("clock must be callable")
        if self.error_policy is not None and not hasattr(self.error_policy, 'handle'):
            errors.append("error_policy must provide handle()")

        return errors

    # Convenience constructors for common configurations

    @classmethod
    def lazy(cls) -> 'GridConfig':
        """Load nothing until the user expands a row."""
        return cls(expand_first_generation=False)

    @classmethod
    def eager(cls, expand_all_budget: float = 30.0) -> 'GridConfig':
        """Expand the first generation and give "expand all" a longer budget.

        Args:
            expand_all_budget: Seconds before "expand all" gives up

        Returns:
            GridConfig for eagerly loaded trees
        """
        return cls(expand_first_generation=True, expand_all_budget=expand_all_budget)
