"""
Shared fixtures for the test suite.
"""

import pytest

from webindex.concurrency import WorkQueue
from webindex.utils.monitoring import IndexMonitor


@pytest.fixture
def work_queue():
    queue = WorkQueue(4)
    yield queue
    queue.shutdown()


@pytest.fixture
def monitor():
    return IndexMonitor()
