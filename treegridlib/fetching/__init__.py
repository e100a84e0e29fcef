"""Wrappers around the caller's fetch_children collaborator.

- ``ErrorHandlingFetcher``: timeout plus pluggable failure policy
- ``CachingFetcher``: TTL cache with in-flight sharing
"""

from .error_policies import (
    FetchErrorPolicy,
    StallPolicy,
    TreatAsLeafPolicy,
    FailFastPolicy,
    ThresholdPolicy,
)
from .error_handling import ErrorHandlingFetcher
from .caching import CachingFetcher

__all__ = [
    'FetchErrorPolicy',
    'StallPolicy',
    'TreatAsLeafPolicy',
    'FailFastPolicy',
    'ThresholdPolicy',
    'ErrorHandlingFetcher',
    'CachingFetcher',
]
