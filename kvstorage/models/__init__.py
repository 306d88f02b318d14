"""
Data models for the storage engine.
"""

from kvstorage.models.entry import Entry
from kvstorage.models.exceptions import (
    EngineClosedError,
    InternalError,
    InvalidArgumentError,
    KeyNotFoundError,
    StorageError,
)

__all__ = [
    "Entry",
    "StorageError",
    "KeyNotFoundError",
    "InvalidArgumentError",
    "InternalError",
    "EngineClosedError",
]
