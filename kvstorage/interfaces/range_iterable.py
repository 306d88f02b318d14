"""
RangeIterable protocol for ordered structures that can be walked by key range.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Any


class RangeIterable(ABC):
    """
    Protocol for data structures that support ordered iteration over keys.

    Implementations must support:
    - Full in-order iteration via __iter__
    - Range-bounded iteration via iterator(start, end)
    - Prefix-bounded iteration via prefix_iterator(prefix)
    """

    @abstractmethod
    def __iter__(self) -> Iterator[tuple[str, Any]]:
        """Return an iterator over all key-value pairs in sorted order."""
        pass

    @abstractmethod
    def iterator(
        self, start: str | None = None, end: str | None = None
    ) -> Iterator[tuple[str, Any]]:
        """
        Return an iterator over key-value pairs in the specified range.

        Args:
            start: Start key (inclusive). If None, starts from the beginning.
            end: End key (exclusive). If None, iterates to the end.

        Returns:
            Iterator yielding (key, value) tuples in sorted order.
        """
        pass

    @abstractmethod
    def prefix_iterator(self, prefix: str) -> Iterator[tuple[str, Any]]:
        """
        Return an iterator over key-value pairs whose key starts with prefix.

        Keys sharing a prefix form a contiguous run in key order, so the walk
        starts at the first key >= prefix and stops at the first key that no
        longer matches.

        Args:
            prefix: Key prefix. The empty string matches every key.

        Returns:
            Iterator yielding (key, value) tuples in sorted order.
        """
        pass
