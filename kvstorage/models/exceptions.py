"""
Exceptions raised by the storage engine.
"""


class StorageError(Exception):
    """Base class for every failure reported by the storage engine."""


class KeyNotFoundError(StorageError):
    """
    Raised when an operation names a key that is not in the store.

    Callers may treat this as recoverable (e.g. a Delete retried after it
    already succeeded).
    """

    def __init__(self, key: str):
        """
        Initialize not-found error.

        Args:
            key: The key that was looked up.
        """
        self.key = key
        super().__init__(f"No entry found for key {key!r}")


class InvalidArgumentError(StorageError):
    """Raised when a request field is empty or malformed."""

    def __init__(self, field: str, detail: str):
        self.field = field
        self.detail = detail
        super().__init__(f"Invalid {field}: {detail}")


class InternalError(StorageError):
    """
    Raised when an index invariant does not hold.

    Never expected under correct operation. Fatal to the request that
    observed it, not to the process.
    """

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Index invariant violated: {detail}")


class EngineClosedError(StorageError):
    """Raised when an operation is attempted after the engine was closed."""

    def __init__(self) -> None:
        super().__init__("Storage engine is closed")
