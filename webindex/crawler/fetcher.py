"""
Web page fetcher used by crawl worker threads.

Requests run on an aiohttp session that lives on a private event loop thread;
``fetch_body`` lets the (synchronous) crawl tasks block on a single request.
"""

import asyncio
import concurrent.futures
import aiohttp
import logging
import threading
import time
from typing import Optional, Dict
from dataclasses import dataclass
from aiohttp import ClientSession, ClientTimeout, ClientError


@dataclass
class FetchResult:
    """Result of a fetch operation."""
    url: str
    status_code: int
    content: Optional[str] = None
    error: Optional[str] = None
    fetch_time: float = 0.0
    content_type: Optional[str] = None


class WebFetcher:
    """
    Fetches HTML pages with redirect, size and timeout limits.

    Anything other than a 200 response with an HTML content type is reported
    as an error; nothing is retried.
    """

    def __init__(self, user_agent: str, request_timeout: float = 10.0,
                 max_redirects: int = 3, max_content_bytes: int = 10 * 1024 * 1024,
                 max_concurrent_requests: int = 10):
        self.user_agent = user_agent
        self.request_timeout = request_timeout
        self.max_redirects = max_redirects
        self.max_content_bytes = max_content_bytes
        self.max_concurrent_requests = max_concurrent_requests

        self.logger = logging.getLogger(__name__)

        # Event loop management
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._loop_thread: Optional[threading.Thread] = None
        self._start_lock = threading.Lock()
        self._closed = False
        self.session: Optional[ClientSession] = None
        self.semaphore: Optional[asyncio.Semaphore] = None

        self._stats_lock = threading.Lock()
        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'total_bytes_downloaded': 0
        }

    @classmethod
    def from_config(cls, crawler_config, max_concurrent_requests: int = 10) -> 'WebFetcher':
        """Create a fetcher from a CrawlerConfig section."""
        return cls(
            user_agent=crawler_config.user_agent,
            request_timeout=crawler_config.request_timeout,
            max_redirects=crawler_config.max_redirects,
            max_content_bytes=crawler_config.max_content_bytes,
            max_concurrent_requests=max_concurrent_requests
        )

    def __enter__(self) -> 'WebFetcher':
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def start(self):
        """Start the event loop thread and open the HTTP session."""
        with self._start_lock:
            if self._loop is not None:
                return

            loop = asyncio.new_event_loop()
            self._loop_thread = threading.Thread(
                target=self._run_loop,
                args=(loop,),
                name="fetcher-loop",
                daemon=True
            )
            self._loop_thread.start()
            asyncio.run_coroutine_threadsafe(self._open_session(), loop).result()
            self._loop = loop
            self._closed = False
            self.logger.info("WebFetcher session started")

    def close(self):
        """
        Cancel in-flight fetches, close the HTTP session and stop the event
        loop thread.

        Threads blocked in ``fetch_body`` get None back, as do any later calls.
        """
        with self._start_lock:
            loop, loop_thread = self._loop, self._loop_thread
            if loop is None:
                return
            # No fetch can be scheduled on the loop after this point
            self._loop = None
            self._loop_thread = None
            self._closed = True

        try:
            asyncio.run_coroutine_threadsafe(self._shutdown(), loop).result()
        finally:
            loop.call_soon_threadsafe(loop.stop)
            loop_thread.join()
            loop.close()
        self.logger.info("WebFetcher session closed")

    @staticmethod
    def _run_loop(loop: asyncio.AbstractEventLoop):
        asyncio.set_event_loop(loop)
        loop.run_forever()

    async def _shutdown(self):
        current = asyncio.current_task()
        tasks = [task for task in asyncio.all_tasks() if task is not current]
        for task in tasks:
            task.cancel()
        if tasks:
            self.logger.info(f"Cancelled {len(tasks)} in-flight fetches")
            await asyncio.gather(*tasks, return_exceptions=True)
        await self._close_session()

    async def _open_session(self):
        self.session = aiohttp.ClientSession(
            timeout=ClientTimeout(total=self.request_timeout),
            headers={'User-Agent': self.user_agent}
        )
        self.semaphore = asyncio.Semaphore(self.max_concurrent_requests)

    async def _close_session(self):
        if self.session:
            await self.session.close()
            self.session = None

    def fetch_body(self, url: str) -> Optional[str]:
        """
        Fetch a page from any thread.

        Returns:
            The HTML body, or None if the page could not be fetched
        """
        with self._start_lock:
            if self._loop is None:
                if self._closed:
                    self.logger.debug(f"Fetcher closed, not fetching {url}")
                    return None
                raise RuntimeError("WebFetcher has not been started")
            future = asyncio.run_coroutine_threadsafe(self.fetch(url), self._loop)

        try:
            result = future.result()
        except concurrent.futures.CancelledError:
            self.logger.debug(f"Fetch cancelled: {url}")
            return None

        if result.error:
            return None
        return result.content

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch a single URL.

        Args:
            url: The URL to fetch

        Returns:
            FetchResult object containing the response data or error information
        """
        start_time = time.time()

        async with self.semaphore:
            try:
                self._record('total_requests', 1)

                async with self.session.get(url, allow_redirects=True,
                                            max_redirects=self.max_redirects) as response:
                    content_type = response.headers.get('content-type', '').lower()

                    if response.status != 200:
                        self._record('failed_requests', 1)
                        self.logger.debug(f"Skipping {url}: HTTP {response.status}")
                        return FetchResult(
                            url=url,
                            status_code=response.status,
                            content_type=content_type,
                            error=f"HTTP {response.status}",
                            fetch_time=time.time() - start_time
                        )

                    if not self._is_html_content(content_type):
                        self._record('failed_requests', 1)
                        self.logger.debug(f"Skipping non-HTML content: {url} ({content_type})")
                        return FetchResult(
                            url=url,
                            status_code=response.status,
                            content_type=content_type,
                            error="Non-HTML content type",
                            fetch_time=time.time() - start_time
                        )

                    content = await self._read_content_safely(response)
                    if content is None:
                        self._record('failed_requests', 1)
                        return FetchResult(
                            url=url,
                            status_code=response.status,
                            content_type=content_type,
                            error="Content unreadable or too large",
                            fetch_time=time.time() - start_time
                        )

                    self._record('successful_requests', 1)
                    self._record('total_bytes_downloaded', len(content))
                    self.logger.debug(f"Fetched {url}: {response.status} ({len(content)} chars)")

                    return FetchResult(
                        url=url,
                        status_code=response.status,
                        content=content,
                        content_type=content_type,
                        fetch_time=time.time() - start_time
                    )

            except asyncio.TimeoutError:
                error_msg = "Request timeout"
                self.logger.warning(f"Timeout fetching {url}")

            except ClientError as e:
                error_msg = f"Client error: {e}"
                self.logger.warning(f"Client error fetching {url}: {e}")

            except ValueError as e:
                error_msg = f"Invalid URL: {e}"
                self.logger.warning(f"Invalid URL {url}: {e}")

            self._record('failed_requests', 1)
            return FetchResult(
                url=url,
                status_code=0,
                error=error_msg,
                fetch_time=time.time() - start_time
            )

    @staticmethod
    def _is_html_content(content_type: str) -> bool:
        """Check if content type is HTML."""
        return 'text/html' in content_type or 'application/xhtml+xml' in content_type

    async def _read_content_safely(self, response) -> Optional[str]:
        """
        Read response content with a size limit.

        Returns:
            Content string or None if too large or unreadable
        """
        content_length = response.headers.get('content-length')
        if content_length and content_length.isdigit() and int(content_length) > self.max_content_bytes:
            self.logger.warning(f"Content too large ({content_length} bytes): {response.url}")
            return None

        chunks = []
        size = 0
        async for chunk in response.content.iter_chunked(8192):
            size += len(chunk)
            if size > self.max_content_bytes:
                self.logger.warning(f"Content exceeded size limit during reading: {response.url}")
                return None
            chunks.append(chunk)

        content_bytes = b''.join(chunks)
        encoding = response.charset or 'utf-8'
        try:
            return content_bytes.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            return content_bytes.decode('utf-8', errors='replace')

    def _record(self, stat_name: str, amount: int):
        with self._stats_lock:
            self.stats[stat_name] += amount

    def get_stats(self) -> Dict[str, int]:
        """Get fetcher statistics."""
        with self._stats_lock:
            return self.stats.copy()
