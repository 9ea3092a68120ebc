"""
Query parsing, execution and result collection.
"""

import logging
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from ..concurrency.work_queue import WorkQueue
from ..index.inverted_index import InvertedIndex
from ..index.search_result import SearchResult
from ..text.word_parser import parse_words
from ..utils.monitoring import IndexMonitor


QueryKey = Tuple[str, ...]


def canonical_query(words: Iterable[str]) -> QueryKey:
    """Sorted, de-duplicated form of a query's words."""
    return tuple(sorted({word.strip() for word in words if word and word.strip()}))


def query_text(key: QueryKey) -> str:
    return ' '.join(key)


def query(index: InvertedIndex, words: Iterable[str], exact: bool = True) -> List[SearchResult]:
    """Run one query against an index and return its ranked results."""
    return index.search(canonical_query(words), exact)


class QueryEngine:
    """
    Runs a batch of queries against an inverted index.

    Queries are stored in canonical form, so lines that differ only in word
    order, case or repetition share one result list. Empty lines are kept as
    empty queries but never appear in the exported results.
    """

    def __init__(self, monitor: Optional[IndexMonitor] = None):
        self.queries: List[QueryKey] = []
        self.monitor = monitor
        self.logger = logging.getLogger(__name__)

        self._results: Dict[QueryKey, List[SearchResult]] = {}
        self._lock = threading.Lock()

    def load_queries(self, lines: Iterable[str]):
        """Parse each line into a canonical query."""
        for line in lines:
            self.queries.append(canonical_query(parse_words(line)))

    def parse_file(self, path: Union[str, Path]):
        """Load queries from a UTF-8 text file, one query per line."""
        with open(path, 'r', encoding='utf-8') as file:
            self.load_queries(file.read().splitlines())
        self.logger.info(f"Loaded {len(self.queries)} queries from {path}")

    def _unique_queries(self) -> List[QueryKey]:
        return list(dict.fromkeys(self.queries))

    def _search(self, index: InvertedIndex, key: QueryKey, exact: bool) -> List[SearchResult]:
        results = index.search(key, exact)
        if self.monitor and key:
            self.monitor.record_query(exact)
        return results

    def run_sequential(self, index: InvertedIndex, exact: bool = True) -> Dict[QueryKey, List[SearchResult]]:
        """Run every loaded query on the calling thread."""
        run_results = {key: self._search(index, key, exact) for key in self._unique_queries()}

        with self._lock:
            self._results.update(run_results)

        self.logger.debug(f"Ran {len(run_results)} {'exact' if exact else 'partial'} queries")
        return run_results

    def run_parallel(self, work_queue: WorkQueue, index: InvertedIndex,
                     exact: bool = True) -> Dict[QueryKey, List[SearchResult]]:
        """
        Run every loaded query as its own work queue task and wait for them.

        Each task searches on its own and only takes the run's result lock to
        store its finished list.
        """
        run_results: Dict[QueryKey, List[SearchResult]] = {}
        run_lock = threading.Lock()

        def query_task(key: QueryKey):
            results = self._search(index, key, exact)
            with run_lock:
                run_results[key] = results

        for key in self._unique_queries():
            work_queue.submit(query_task, key)
        work_queue.await_completion()

        with self._lock:
            self._results.update(run_results)

        self.logger.debug(f"Ran {len(run_results)} {'exact' if exact else 'partial'} queries "
                          f"on {work_queue.num_threads} threads")
        return run_results

    def run(self, index: InvertedIndex, exact: bool = True,
            work_queue: Optional[WorkQueue] = None) -> Dict[QueryKey, List[SearchResult]]:
        """Run the loaded queries, in parallel when a work queue is given."""
        if work_queue is None:
            return self.run_sequential(index, exact)
        return self.run_parallel(work_queue, index, exact)

    def get_results(self, words: Iterable[str]) -> List[SearchResult]:
        """Stored results for a query (empty if it has not been run)."""
        with self._lock:
            return list(self._results.get(canonical_query(words), []))

    def sorted_queries(self) -> List[QueryKey]:
        """
        Non-empty stored queries in export order.

        Ordering by the space-joined words puts a query before any longer
        query that starts with the same words.
        """
        with self._lock:
            keys = [key for key in self._results if key]
        return sorted(keys, key=query_text)

    def export(self) -> List[Dict]:
        """Query results as plain records, in export order."""
        with self._lock:
            results = dict(self._results)

        return [
            {
                'queries': query_text(key),
                'results': [result.to_dict() for result in results[key]]
            }
            for key in self.sorted_queries()
        ]
