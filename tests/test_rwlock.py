"""
Tests for the ReadWriteLock.
"""

import threading
import time

import pytest

from kvstorage.engine.rwlock import ReadWriteLock


def _wait_for(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return False


class TestReadWriteLock:
    """Shared/exclusive semantics."""

    def test_readers_share_the_lock(self):
        """Three readers inside the lock at once can meet at a barrier."""
        lock = ReadWriteLock()
        barrier = threading.Barrier(3, timeout=5)
        errors: list[BaseException] = []

        def reader() -> None:
            try:
                with lock.read_locked():
                    barrier.wait()
            except threading.BrokenBarrierError as e:
                errors.append(e)

        threads = [threading.Thread(target=reader) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert errors == []
        assert lock.readers == 0

    def test_writer_excludes_readers(self):
        lock = ReadWriteLock()
        entered = threading.Event()

        def reader() -> None:
            with lock.read_locked():
                entered.set()

        with lock.write_locked():
            assert lock.writer_active
            t = threading.Thread(target=reader)
            t.start()
            assert not entered.wait(0.1)

        assert entered.wait(5)
        t.join(timeout=5)

    def test_writer_excludes_writer(self):
        lock = ReadWriteLock()
        entered = threading.Event()

        def writer() -> None:
            with lock.write_locked():
                entered.set()

        with lock.write_locked():
            t = threading.Thread(target=writer)
            t.start()
            assert not entered.wait(0.1)

        assert entered.wait(5)
        t.join(timeout=5)

    def test_waiting_writer_goes_before_new_readers(self):
        """A reader arriving after a queued writer waits for that writer."""
        lock = ReadWriteLock()
        order: list[str] = []

        def writer() -> None:
            with lock.write_locked():
                order.append("writer")

        def reader() -> None:
            with lock.read_locked():
                order.append("reader")

        lock.acquire_read()
        w = threading.Thread(target=writer)
        w.start()
        assert _wait_for(lambda: lock._writers_waiting == 1)

        r = threading.Thread(target=reader)
        r.start()
        time.sleep(0.05)
        assert order == []

        lock.release_read()
        w.join(timeout=5)
        r.join(timeout=5)

        assert order == ["writer", "reader"]

    def test_lock_released_on_exception(self):
        lock = ReadWriteLock()

        with pytest.raises(KeyError):
            with lock.write_locked():
                raise KeyError("boom")

        assert not lock.writer_active
        with lock.read_locked():
            assert lock.readers == 1

    def test_unbalanced_release(self):
        lock = ReadWriteLock()

        with pytest.raises(RuntimeError):
            lock.release_read()
        with pytest.raises(RuntimeError):
            lock.release_write()
