"""
Tests for the reader/writer lock.
"""

import threading
import time

import pytest

from webindex.concurrency import ReadWriteLock


def test_readers_share_the_lock():
    lock = ReadWriteLock()
    inside = threading.Barrier(3, timeout=5)

    def reader():
        with lock.read():
            # All three readers must be inside at once to pass the barrier
            inside.wait()

    threads = [threading.Thread(target=reader) for _ in range(3)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(5)

    assert not any(thread.is_alive() for thread in threads)
    assert lock.readers == 0


def test_writer_excludes_readers_and_writers():
    lock = ReadWriteLock()
    active = []
    overlaps = []
    guard = threading.Lock()

    def worker(mode):
        context = lock.write() if mode == 'w' else lock.read()
        with context:
            with guard:
                active.append(mode)
                if 'w' in active and len(active) > 1:
                    overlaps.append(list(active))
            time.sleep(0.002)
            with guard:
                active.remove(mode)

    threads = [threading.Thread(target=worker, args=('w' if i % 3 == 0 else 'r',))
               for i in range(30)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(10)

    assert overlaps == []
    assert lock.readers == 0
    assert not lock.write_locked


def test_waiting_writer_blocks_new_readers():
    lock = ReadWriteLock()
    lock.acquire_read()

    writer_done = threading.Event()
    late_reader_done = threading.Event()

    def writer():
        with lock.write():
            writer_done.set()

    def late_reader():
        with lock.read():
            late_reader_done.set()

    writer_thread = threading.Thread(target=writer)
    writer_thread.start()
    time.sleep(0.05)

    reader_thread = threading.Thread(target=late_reader)
    reader_thread.start()
    time.sleep(0.05)

    # The writer is queued behind the first reader, the late reader behind the writer
    assert not writer_done.is_set()
    assert not late_reader_done.is_set()

    lock.release_read()
    writer_thread.join(5)
    reader_thread.join(5)

    assert writer_done.is_set()
    assert late_reader_done.is_set()


def test_lock_released_when_block_raises():
    lock = ReadWriteLock()

    with pytest.raises(KeyError):
        with lock.write():
            raise KeyError("boom")

    assert not lock.write_locked

    with pytest.raises(KeyError):
        with lock.read():
            raise KeyError("boom")

    assert lock.readers == 0


def test_unmatched_release_raises():
    lock = ReadWriteLock()

    with pytest.raises(RuntimeError):
        lock.release_read()

    with pytest.raises(RuntimeError):
        lock.release_write()
