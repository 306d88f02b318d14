"""
SortedContainer abstract base class for ordered key-value indexes.
"""

from abc import abstractmethod
from typing import Any

from kvstorage.interfaces.range_iterable import RangeIterable


class SortedContainer(RangeIterable):
    """
    Abstract base class for sorted key-value containers.

    Provides O(log N) operations for put, get, and delete.
    Inherits ordered iteration from RangeIterable.

    Implementations:
    - RedBlackTree
    """

    @abstractmethod
    def put(self, key: str, value: Any) -> bool:
        """
        Insert or replace a key-value pair.

        Args:
            key: The key to insert/update.
            value: The value to associate with the key.

        Returns:
            True if a new key was created, False if an existing one was replaced.

        Time complexity: O(log N)
        """
        pass

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """
        Retrieve the value for a given key.

        Args:
            key: The key to look up.

        Returns:
            The value if found, None otherwise.

        Time complexity: O(log N)
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove a key-value pair.

        Args:
            key: The key to remove.

        Returns:
            True if the key was found and removed, False otherwise.

        Time complexity: O(log N)
        """
        pass

    @abstractmethod
    def has(self, key: str) -> bool:
        """Check if a key exists. O(log N)"""
        pass

    @abstractmethod
    def size(self) -> int:
        """Return the number of key-value pairs. O(1)"""
        pass

    @abstractmethod
    def size_bytes(self) -> int:
        """Return the approximate memory footprint in bytes."""
        pass

    @abstractmethod
    def check_invariants(self) -> None:
        """
        Verify the structural invariants of the container.

        Raises:
            InternalError: Describing the first violated invariant.
        """
        pass
