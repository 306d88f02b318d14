"""
StorageEngine - the in-process key-value store.
"""

from enum import Enum

from kvstorage.engine.rwlock import ReadWriteLock
from kvstorage.interfaces.sorted_container import SortedContainer
from kvstorage.models.entry import Entry
from kvstorage.models.exceptions import (
    EngineClosedError,
    InvalidArgumentError,
    KeyNotFoundError,
)
from kvstorage.models.sortedcontainers import RedBlackTree

BytesLike = bytes | bytearray | memoryview


class DeletePolicy(str, Enum):
    """What delete() does when the key is absent."""

    STRICT = "strict"  # raise KeyNotFoundError
    IGNORE_MISSING = "ignore_missing"  # silent no-op


def validate_key(key: str, field: str = "key") -> None:
    """
    Check that key is a non-empty string with a UTF-8 encoding.

    Raises:
        InvalidArgumentError: If the key is empty, not a string, or holds
            lone surrogates.
    """
    if not isinstance(key, str):
        raise InvalidArgumentError(field, f"expected str, got {type(key).__name__}")
    if not key:
        raise InvalidArgumentError(field, "empty key")
    _check_utf8(key, field)


def validate_prefix(prefix: str) -> None:
    """Like validate_key, but the empty prefix is allowed."""
    if not isinstance(prefix, str):
        raise InvalidArgumentError("prefix", f"expected str, got {type(prefix).__name__}")
    _check_utf8(prefix, "prefix")


def _check_utf8(text: str, field: str) -> None:
    try:
        text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidArgumentError(field, "not valid UTF-8 text") from e


def coerce_value(value: BytesLike) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, (bytearray, memoryview)):
        # Copy so the caller cannot mutate stored data afterwards
        return bytes(value)
    raise InvalidArgumentError("value", f"expected bytes, got {type(value).__name__}")


class StorageEngine:
    """
    Thread-safe, ordered, in-memory key-value store.

    Provides:
    - get(key): Point lookup
    - put(key, value): Insert or overwrite (upsert)
    - delete(key): Point delete
    - scan_prefix(prefix): Ordered enumeration of keys with a prefix

    Architecture:
    - A single SortedContainer (RedBlackTree by default) maps key -> Entry
    - A writer-preferring ReadWriteLock guards the container: lookups and
      scans share it, puts and deletes take it exclusively
    - Entries are immutable, so a value read under the lock is never torn

    Failures are raised as StorageError subclasses. The engine neither logs
    nor retries.
    """

    def __init__(
        self,
        delete_policy: DeletePolicy = DeletePolicy.STRICT,
        container: SortedContainer | None = None,
    ) -> None:
        """
        Initialize an empty engine.

        Args:
            delete_policy: Behaviour of delete() for an absent key.
            container: Backing index. Must be empty. Defaults to a RedBlackTree.
        """
        if container is None:
            container = RedBlackTree()
        if container.size() != 0:
            raise ValueError("container must be empty")

        self._delete_policy = DeletePolicy(delete_policy)
        self._container = container
        self._lock = ReadWriteLock()
        self._closed = False

    @property
    def delete_policy(self) -> DeletePolicy:
        return self._delete_policy

    @property
    def closed(self) -> bool:
        return self._closed

    def get(self, key: str) -> bytes:
        """
        Retrieve the value stored under key.

        Raises:
            KeyNotFoundError: If no entry has exactly this key.
            InvalidArgumentError: If the key is empty or malformed.
        """
        validate_key(key)
        with self._lock.read_locked():
            self._check_open()
            entry = self._container.get(key)

        if entry is None:
            raise KeyNotFoundError(key)
        return entry.value

    def put(self, key: str, value: BytesLike) -> None:
        """
        Create the entry, or replace its value entirely if the key exists.

        Raises:
            InvalidArgumentError: If the key is empty or malformed, or the
                value is not bytes-like.
        """
        validate_key(key)
        entry = Entry(key=key, value=coerce_value(value))

        with self._lock.write_locked():
            self._check_open()
            self._container.put(key, entry)

    def delete(self, key: str) -> None:
        """
        Remove the entry stored under key.

        Raises:
            KeyNotFoundError: If the key is absent and the policy is STRICT.
            InvalidArgumentError: If the key is empty or malformed.
        """
        validate_key(key)
        with self._lock.write_locked():
            self._check_open()
            removed = self._container.delete(key)

        if not removed and self._delete_policy is DeletePolicy.STRICT:
            raise KeyNotFoundError(key)

    def scan_prefix(self, prefix: str) -> list[str]:
        """
        Return every key starting with prefix, in byte-lexicographic order.

        The empty prefix matches all keys. No match yields an empty list.
        Cost is O(log N + K) for K matches.
        """
        return [key for key, _ in self.scan_prefix_items(prefix)]

    def scan_prefix_items(self, prefix: str) -> list[tuple[str, bytes]]:
        """Like scan_prefix, but returns (key, value) pairs."""
        validate_prefix(prefix)
        with self._lock.read_locked():
            self._check_open()
            return [
                (key, entry.value) for key, entry in self._container.prefix_iterator(prefix)
            ]

    def contains(self, key: str) -> bool:
        validate_key(key)
        with self._lock.read_locked():
            self._check_open()
            return self._container.has(key)

    def __contains__(self, key: str) -> bool:
        return self.contains(key)

    def __len__(self) -> int:
        with self._lock.read_locked():
            return self._container.size()

    def size_bytes(self) -> int:
        """Estimated memory held by keys, values and index nodes."""
        with self._lock.read_locked():
            return self._container.size_bytes()

    def verify(self) -> None:
        """
        Check the index invariants. O(N)

        Raises:
            InternalError: If the index is corrupt.
        """
        with self._lock.read_locked():
            self._check_open()
            self._container.check_invariants()

    def close(self) -> None:
        """Drop all entries and refuse further operations. Idempotent."""
        with self._lock.write_locked():
            if self._closed:
                return
            self._closed = True
            self._container = RedBlackTree()

    def _check_open(self) -> None:
        if self._closed:
            raise EngineClosedError()

    def __enter__(self) -> "StorageEngine":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
