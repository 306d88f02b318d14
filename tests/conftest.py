"""
Shared pytest fixtures for storage engine and service tests.
"""

import pytest

from kvstorage.engine import DeletePolicy, StorageEngine
from kvstorage.models.sortedcontainers import RedBlackTree
from kvstorage.service import RequestHandler


@pytest.fixture
def engine():
    """Provide an empty engine with the strict delete policy."""
    with StorageEngine() as eng:
        yield eng


@pytest.fixture
def lenient_engine():
    """Provide an engine whose delete ignores missing keys."""
    with StorageEngine(delete_policy=DeletePolicy.IGNORE_MISSING) as eng:
        yield eng


@pytest.fixture
def handler(engine):
    """Provide a RequestHandler bound to the strict engine."""
    return RequestHandler(engine)


@pytest.fixture
def tree():
    """Provide a fresh RedBlackTree instance."""
    return RedBlackTree()


@pytest.fixture
def sample_entries():
    """Provide the sample store used by the prefix scan examples."""
    return [
        ("a1", b"x"),
        ("a2", b"y"),
        ("b1", b"z"),
    ]


@pytest.fixture
def large_sample_entries():
    """Provide larger sample for stress testing."""
    return [(f"key{i:04d}", f"value{i}".encode()) for i in range(1000)]
