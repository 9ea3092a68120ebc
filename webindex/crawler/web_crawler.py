"""
Multithreaded breadth-first web crawler that builds an inverted index.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Dict, Optional, Set

from ..concurrency.read_write_lock import ReadWriteLock
from ..concurrency.work_queue import WorkQueue, WorkQueueShutdownError
from ..index.inverted_index import InvertedIndex
from ..index.word_index import WordIndex
from ..text.html_parser import ContentParser
from ..text.word_parser import parse_words
from ..utils.logger import get_index_logger
from ..utils.monitoring import IndexMonitor


@dataclass
class CrawlStats:
    """Statistics for a crawl."""
    start_time: float
    pages_indexed: int = 0
    fetch_failures: int = 0
    links_queued: int = 0
    tasks_skipped: int = 0

    @property
    def elapsed_time(self) -> float:
        return time.time() - self.start_time


class VisitedSet:
    """URLs that have been indexed, guarded by their own reader/writer lock."""

    def __init__(self):
        self._urls: Set[str] = set()
        self._lock = ReadWriteLock()

    def add(self, url: str) -> bool:
        """Add a URL. Returns False if it was already present."""
        with self._lock.write():
            if url in self._urls:
                return False
            self._urls.add(url)
            return True

    def copy(self) -> Set[str]:
        with self._lock.read():
            return set(self._urls)

    def __contains__(self, url: str) -> bool:
        with self._lock.read():
            return url in self._urls

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._urls)


class WebCrawler:
    """
    Crawls outward from a seed URL, one work queue task per page, until the
    document limit is reached or no undiscovered links remain.

    The limit is a soft bound. Each task checks it several times before doing
    work, but a check and the indexing that follows it are not atomic, so a
    few tasks that passed their last check concurrently may push the number of
    indexed pages slightly past the limit.

    ``fetcher`` is any object with a ``fetch_body(url) -> Optional[str]``
    method, normally a started :class:`WebFetcher`.
    """

    def __init__(self, fetcher, limit: int = 50,
                 parser: Optional[ContentParser] = None,
                 index: Optional[InvertedIndex] = None,
                 monitor: Optional[IndexMonitor] = None):
        if limit < 1:
            raise ValueError("limit must be at least 1")

        self.fetcher = fetcher
        self.limit = limit
        self.parser = parser or ContentParser()
        self.index = index if index is not None else InvertedIndex()
        self.monitor = monitor
        self.visited = VisitedSet()

        self.logger = get_index_logger(__name__, 'web')
        self.stats = CrawlStats(start_time=time.time())
        self._stats_lock = threading.Lock()
        self._stopped = threading.Event()

    def crawl(self, seed_url: str, work_queue: WorkQueue) -> InvertedIndex:
        """
        Crawl from ``seed_url`` and block until every crawl task has finished.

        Returns:
            The crawl's inverted index, complete and safe to read

        Raises:
            ValueError: if the seed is not an absolute HTTP(S) URL
        """
        seed = self.parser.normalize_url(seed_url)
        if not self.parser.is_valid_url(seed):
            raise ValueError(f"Invalid seed URL: {seed_url}")

        self.stats = CrawlStats(start_time=time.time())
        self._stopped.clear()
        self.logger.info(f"Crawling from {seed} (limit {self.limit})")

        work_queue.submit(self._crawl_task, seed, work_queue)
        try:
            work_queue.await_completion()
        except BaseException:
            # Interrupted: tasks still queued must not touch the fetcher
            self.stop()
            raise

        self._log_final_stats()
        return self.index

    def stop(self):
        """Make every crawl task that has not started fetching return at once."""
        if not self._stopped.is_set():
            self._stopped.set()
            self.logger.info("Crawl stopped")

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def _should_stop(self) -> bool:
        return self._stopped.is_set() or len(self.visited) >= self.limit

    def _crawl_task(self, url: str, work_queue: WorkQueue):
        """Fetch, fan out, parse and index a single page."""
        if self._should_stop():
            self._count('tasks_skipped')
            return

        html = self.fetcher.fetch_body(url)
        if html is None:
            self._count('fetch_failures')
            if self.monitor:
                self.monitor.record_fetch_failure()
            self.logger.log_document_event(logging.DEBUG, url, 'fetch_failed', f"Fetch failed: {url}")
            return

        if self._should_stop():
            self._count('tasks_skipped')
            return

        # Links come from the raw page, before markup is stripped
        parsed_content = self.parser.parse(url, html)

        if self._should_stop():
            self._count('tasks_skipped')
            return

        queued = 0
        try:
            for link in parsed_content.links:
                if link != url and link not in self.visited:
                    work_queue.submit(self._crawl_task, link, work_queue)
                    queued += 1
        except WorkQueueShutdownError:
            self.stop()
            return
        finally:
            self._count('links_queued', queued)

        if self._should_stop():
            self._count('tasks_skipped')
            return

        word_index = WordIndex(parse_words(parsed_content.content))
        self.index.add_document(url, word_index)

        if self.visited.add(url):
            self._count('pages_indexed')
            if self.monitor:
                self.monitor.record_document_indexed('web')
        self.logger.log_document_event(logging.DEBUG, url, 'indexed',
                                       f"{url}: {len(word_index)} words, {queued} links queued")

    def _count(self, stat_name: str, amount: int = 1):
        with self._stats_lock:
            setattr(self.stats, stat_name, getattr(self.stats, stat_name) + amount)

    def _log_final_stats(self):
        self.logger.info("=== CRAWL COMPLETED ===")
        self.logger.info(f"Pages indexed: {self.stats.pages_indexed}")
        self.logger.info(f"Fetch failures: {self.stats.fetch_failures}")
        self.logger.info(f"Links queued: {self.stats.links_queued}")
        self.logger.info(f"Tasks skipped: {self.stats.tasks_skipped}")
        self.logger.info(f"Words in index: {self.index.size()}")
        self.logger.info(f"Total time: {self.stats.elapsed_time:.2f} seconds")

    def get_stats(self) -> Dict:
        """Get current crawl statistics."""
        with self._stats_lock:
            return {
                'pages_indexed': self.stats.pages_indexed,
                'fetch_failures': self.stats.fetch_failures,
                'links_queued': self.stats.links_queued,
                'tasks_skipped': self.stats.tasks_skipped,
                'elapsed_time': self.stats.elapsed_time
            }


def crawl(seed_url: str, limit: int, work_queue: WorkQueue, fetcher,
          monitor: Optional[IndexMonitor] = None) -> InvertedIndex:
    """Crawl from a seed URL and return the resulting inverted index."""
    return WebCrawler(fetcher, limit=limit, monitor=monitor).crawl(seed_url, work_queue)
