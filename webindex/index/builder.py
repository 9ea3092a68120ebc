"""
Builds an inverted index from HTML files on disk.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..concurrency.work_queue import WorkQueue
from ..text.html_parser import ContentParser
from ..text.word_parser import parse_words
from ..utils.logger import get_index_logger
from ..utils.monitoring import IndexMonitor
from .inverted_index import InvertedIndex
from .word_index import WordIndex


HTML_SUFFIXES = ('.html', '.htm')


def is_html_file(path: Path) -> bool:
    """Check whether a path names an HTML file (by extension, any case)."""
    return path.is_file() and path.name.lower().endswith(HTML_SUFFIXES)


class IndexBuilder:
    """
    Walks a file or directory tree and adds every HTML file it finds to an
    inverted index.

    Without a work queue the walk is sequential. With one, every directory
    entry becomes its own task and directories submit tasks for their
    children, so the caller only has to wait for the queue to drain.
    """

    def __init__(self, index: Optional[InvertedIndex] = None,
                 parser: Optional[ContentParser] = None,
                 monitor: Optional[IndexMonitor] = None):
        self.index = index if index is not None else InvertedIndex()
        self.parser = parser or ContentParser()
        self.monitor = monitor
        self.logger = get_index_logger(__name__, 'file')

    def build(self, path: Union[str, Path], work_queue: Optional[WorkQueue] = None) -> InvertedIndex:
        """
        Index the file or directory tree at ``path``.

        Raises:
            FileNotFoundError: if ``path`` does not exist
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Input path not found: {path}")

        if work_queue is None:
            self._walk(path)
        else:
            work_queue.submit(self._index_task, path, work_queue)
            work_queue.await_completion()

        self.logger.info(f"Indexed {path}: {self.index.size()} words")
        return self.index

    def index_file(self, path: Path) -> bool:
        """
        Parse one HTML file and add it to the index.

        Returns:
            True if the file was indexed, False if it was skipped
        """
        if not is_html_file(path):
            return False

        try:
            html = path.read_text(encoding='utf-8', errors='replace')
        except OSError as e:
            self.logger.log_document_event(logging.WARNING, str(path), 'skipped', f"Unreadable file {path}: {e}")
            return False

        word_index = WordIndex(parse_words(self.parser.strip_markup(html)))
        self.index.add_document(str(path), word_index)

        if self.monitor:
            self.monitor.record_document_indexed('file')
        self.logger.log_document_event(logging.DEBUG, str(path), 'indexed', f"{path}: {len(word_index)} words")
        return True

    def _walk(self, path: Path):
        if path.is_dir():
            for child in self._list_directory(path):
                self._walk(child)
        else:
            self.index_file(path)

    def _index_task(self, path: Path, work_queue: WorkQueue):
        if path.is_dir():
            for child in self._list_directory(path):
                work_queue.submit(self._index_task, child, work_queue)
        else:
            self.index_file(path)

    def _list_directory(self, directory: Path):
        try:
            return sorted(directory.iterdir())
        except OSError as e:
            self.logger.warning(f"Skipping unreadable directory {directory}: {e}")
            return []


def build_from_path(path: Union[str, Path], work_queue: Optional[WorkQueue] = None,
                    index: Optional[InvertedIndex] = None,
                    monitor: Optional[IndexMonitor] = None) -> InvertedIndex:
    """Build (or extend) an inverted index from a file or directory."""
    return IndexBuilder(index=index, monitor=monitor).build(path, work_queue)
