"""
Tests for the breadth-first web crawler, using an in-memory fetcher.
"""

import threading

import pytest

from webindex.concurrency import WorkQueue
from webindex.crawler import VisitedSet, WebCrawler, crawl

from helpers import BlockingFetcher, FakeFetcher, make_page, wait_until


A = "http://site.test/a"
B = "http://site.test/b"
C = "http://site.test/c"
MISSING = "http://site.test/missing"


@pytest.fixture
def cycle_fetcher():
    return FakeFetcher({
        A: make_page("alpha shared", B),
        B: make_page("beta shared", C),
        C: make_page("gamma shared", A),
    })


def test_cycle_with_limit_terminates(cycle_fetcher, work_queue):
    crawler = WebCrawler(cycle_fetcher, limit=2)

    index = crawler.crawl(A, work_queue)

    visited = crawler.visited.copy()
    # Soft limit: may overshoot by in-flight pages, never beyond the 3 that exist
    assert 2 <= len(visited) <= 3
    assert set(index.documents("shared")) == visited
    assert work_queue.pending == 0


def test_cycle_without_reaching_limit_indexes_every_page(cycle_fetcher, work_queue):
    crawler = WebCrawler(cycle_fetcher, limit=10)

    index = crawler.crawl(A, work_queue)

    assert crawler.visited.copy() == {A, B, C}
    assert index.documents("shared") == [A, B, C]
    assert index.positions("gamma", C) == [2]
    assert index.positions("alpha", A) == [2]
    assert crawler.get_stats()['pages_indexed'] == 3


def test_single_thread_respects_limit_exactly(cycle_fetcher):
    with WorkQueue(1) as queue:
        crawler = WebCrawler(cycle_fetcher, limit=2)
        crawler.crawl(A, queue)

    assert crawler.visited.copy() == {A, B}
    assert C not in cycle_fetcher.requested


def test_fetch_failures_are_skipped(work_queue, monitor):
    fetcher = FakeFetcher({
        A: make_page("root", MISSING, B),
        B: make_page("leaf"),
    })
    crawler = WebCrawler(fetcher, limit=10, monitor=monitor)

    index = crawler.crawl(A, work_queue)

    assert crawler.visited.copy() == {A, B}
    assert MISSING in fetcher.requested
    assert MISSING not in crawler.visited
    assert index.documents("leaf") == [B]
    assert crawler.get_stats()['fetch_failures'] == 1
    assert monitor.get_summary()['fetch_failures'] == 1
    assert monitor.get_summary()['documents_indexed_web'] == 2


def test_failed_seed_gives_empty_index(work_queue):
    crawler = WebCrawler(FakeFetcher({}), limit=5)

    index = crawler.crawl(A, work_queue)

    assert index.size() == 0
    assert len(crawler.visited) == 0


def test_seed_is_normalized(work_queue):
    fetcher = FakeFetcher({"http://site.test/": make_page("home")})

    index = crawl("HTTP://SITE.test#intro", 5, work_queue, fetcher)

    assert index.documents("home") == ["http://site.test/"]


def test_invalid_seed(work_queue):
    crawler = WebCrawler(FakeFetcher({}))

    with pytest.raises(ValueError):
        crawler.crawl("not a url", work_queue)


def test_invalid_limit():
    with pytest.raises(ValueError):
        WebCrawler(FakeFetcher({}), limit=0)


def test_wide_fan_out_limit(work_queue):
    pages = {A: make_page("hub", *[f"http://site.test/p{i}" for i in range(40)])}
    for i in range(40):
        pages[f"http://site.test/p{i}"] = make_page("page shared", A)
    crawler = WebCrawler(FakeFetcher(pages), limit=10)

    crawler.crawl(A, work_queue)

    indexed = len(crawler.visited)
    # Soft bound: at most one in-flight page per worker past the limit
    assert 10 <= indexed <= 10 + work_queue.num_threads


def test_visited_set():
    visited = VisitedSet()

    assert visited.add(A) is True
    assert visited.add(A) is False
    assert A in visited
    assert B not in visited
    assert len(visited) == 1


def hub_pages(count):
    links = [f"http://site.test/p{i}" for i in range(count)]
    pages = {A: make_page("hub", *links)}
    for link in links:
        pages[link] = make_page("leaf", A)
    return pages


def test_stop_skips_queued_tasks():
    fetcher = BlockingFetcher(hub_pages(40), free=[A])
    crawler = WebCrawler(fetcher, limit=50)

    with WorkQueue(2) as queue:
        thread = threading.Thread(target=crawler.crawl, args=(A, queue))
        thread.start()

        # Seed indexed, both workers blocked mid-fetch
        assert wait_until(lambda: len(fetcher.requested) == 3)
        crawler.stop()
        fetcher.release.set()
        thread.join(10)

        assert not thread.is_alive()
        assert queue.pending == 0

    assert len(fetcher.requested) == 3
    assert crawler.visited.copy() == {A}
    assert crawler.get_stats()['tasks_skipped'] >= 38


class InterruptedQueue(WorkQueue):
    """Work queue whose wait is interrupted as if by Ctrl-C."""

    def await_completion(self, timeout=None):
        raise KeyboardInterrupt


def test_interrupted_crawl_leaves_no_work_running():
    fetcher = BlockingFetcher(hub_pages(10))
    crawler = WebCrawler(fetcher, limit=50)
    queue = InterruptedQueue(2)

    with pytest.raises(KeyboardInterrupt):
        crawler.crawl(A, queue)

    assert crawler.stopped
    fetcher.release.set()
    queue.shutdown(wait=False)
    for worker in queue.workers:
        worker.join(10)
        assert not worker.is_alive()

    assert fetcher.requested in ([], [A])
    assert len(crawler.visited) == 0


def test_fan_out_into_shut_down_queue_stops_crawl():
    crawler = WebCrawler(FakeFetcher(hub_pages(3)), limit=50)
    queue = WorkQueue(1)
    queue.shutdown()

    crawler._crawl_task(A, queue)

    assert crawler.stopped
    assert len(crawler.visited) == 0
    assert crawler.get_stats()['links_queued'] == 0
