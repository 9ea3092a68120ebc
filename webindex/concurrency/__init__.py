"""
Thread coordination primitives shared by the indexing and crawling code.
"""

from .read_write_lock import ReadWriteLock
from .work_queue import WorkQueue, WorkQueueShutdownError

__all__ = ['ReadWriteLock', 'WorkQueue', 'WorkQueueShutdownError']
