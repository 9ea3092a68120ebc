"""
Test helpers shared by the crawler and query tests.
"""

import threading
import time
from typing import Dict, List, Optional


class FakeFetcher:
    """In-memory stand-in for WebFetcher: URL -> HTML, None for anything else."""

    def __init__(self, pages: Dict[str, str]):
        self.pages = pages
        self.requested: List[str] = []
        self._lock = threading.Lock()

    def fetch_body(self, url: str) -> Optional[str]:
        with self._lock:
            self.requested.append(url)
        return self.pages.get(url)


def make_page(text: str, *links: str) -> str:
    anchors = ''.join(f'<a href="{link}">link</a>' for link in links)
    return f"<html><head><title>page</title></head><body><p>{text}</p>{anchors}</body></html>"


class BlockingFetcher(FakeFetcher):
    """FakeFetcher whose fetches (except for URLs in ``free``) wait for ``release``."""

    def __init__(self, pages: Dict[str, str], free=()):
        super().__init__(pages)
        self.free = set(free)
        self.release = threading.Event()

    def fetch_body(self, url: str) -> Optional[str]:
        body = super().fetch_body(url)
        if url not in self.free:
            self.release.wait(10)
        return body


def wait_until(condition, timeout: float = 10.0) -> bool:
    deadline = time.time() + timeout
    while not condition():
        if time.time() > deadline:
            return False
        time.sleep(0.01)
    return True
