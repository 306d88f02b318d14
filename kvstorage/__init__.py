"""
In-process key-value storage service.

This package provides an ordered, thread-safe key-value store with:
- get(key) / FindByKey - O(log N) point lookup
- put(key, value) / Insert - O(log N) upsert
- delete(key) / Delete - O(log N) point delete
- scan_prefix(prefix) / Keys - O(log N + K) ordered prefix enumeration
"""

from kvstorage.engine import DeletePolicy, StorageEngine
from kvstorage.service import RequestHandler

__all__ = ["StorageEngine", "DeletePolicy", "RequestHandler"]
