"""Exception types raised by treegridlib."""

from typing import Any, List, Optional


class TreeGridError(Exception):
    """Base class for all treegridlib errors."""


class UnknownNodeError(TreeGridError, KeyError):
    """Raised when a key is not present in the snapshot being queried.

    This is a programming error: usually a key taken from one snapshot
    is being looked up in another that does not (yet) contain it.
    """

    def __init__(self, key: Any):
        self.key = key
        super().__init__(key)

    def __str__(self) -> str:
        return f"No node with key {self.key!r} in this snapshot"


class FetchError(TreeGridError):
    """A fetch_children call failed and the error policy let it propagate."""

    def __init__(self, key: Any, error: BaseException):
        self.key = key
        self.error = error
        super().__init__(f"Fetching children of {key!r} failed: {error!r}")


class InvalidConfigError(TreeGridError, ValueError):
    """Raised when a GridConfig does not validate."""

    def __init__(self, errors: List[str], message: Optional[str] = None):
        self.errors = errors
        super().__init__(message or f"Invalid configuration: {', '.join(errors)}")


class DuplicateKeyError(TreeGridError, ValueError):
    """Raised when a row's key is already used elsewhere in the snapshot.

    This includes the root's reserved key.
    """

    def __init__(self, key: Any, existing_parent: Any):
        self.key = key
        self.existing_parent = existing_parent
        super().__init__(f"Key {key!r} is already in the tree under {existing_parent!r}")
