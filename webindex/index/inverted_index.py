"""
Thread-safe inverted index: word -> document -> sorted positions.
"""

import logging
from typing import Dict, Iterable, List, Optional

from ..concurrency.read_write_lock import ReadWriteLock
from .search_result import SearchResult, rank_results
from .word_index import WordIndex


class InvertedIndex:
    """
    Stores the mapping from words to the documents and positions where those
    words were found.

    Every access to the internal maps goes through a single ReadWriteLock:
    mutations (``add_document``, ``merge``) hold it exclusively, lookups and
    exports hold it shared. A word entry is therefore never observed half
    written, and every word present has at least one document.
    """

    def __init__(self):
        self._index: Dict[str, Dict[str, List[int]]] = {}
        self._lock = ReadWriteLock()
        self.logger = logging.getLogger(__name__)

    def add_document(self, document_id: str, word_index: WordIndex):
        """
        Add every word of a document. For each of its words, positions
        previously stored for the same document are replaced.

        Args:
            document_id: File path or canonical URL of the document
            word_index: Word positions collected for the document
        """
        entries = list(word_index.items())

        with self._lock.write():
            for word, positions in entries:
                if not positions:
                    continue
                self._index.setdefault(word, {})[document_id] = positions

        self.logger.debug(f"Indexed {len(entries)} words from {document_id}")

    def merge(self, other: 'InvertedIndex'):
        """
        Fold another index into this one.

        For words already present, documents from ``other`` overwrite this
        index's entries for the same document; other documents are left alone.
        Words only present in ``other`` are adopted as a whole.
        """
        if other is self:
            return

        # Copied under other's lock first so the two locks are never held together
        incoming = other.snapshot_sorted()

        with self._lock.write():
            for word, documents in incoming.items():
                self._index.setdefault(word, {}).update(documents)

        self.logger.debug(f"Merged {len(incoming)} words into index")

    def exact_search(self, words: Iterable[str]) -> List[SearchResult]:
        """
        Search for documents containing any of the query words verbatim.

        Returns:
            Ranked list with one result per matching document
        """
        query = [word for word in dict.fromkeys(words) if word]
        results: Dict[str, SearchResult] = {}

        with self._lock.read():
            for word in query:
                documents = self._index.get(word)
                if documents:
                    self._collect(results, documents)

        return rank_results(results.values())

    def partial_search(self, words: Iterable[str]) -> List[SearchResult]:
        """
        Search for documents containing any word that starts with one of the
        query words.

        An index word matched by several query prefixes is only counted once.

        Returns:
            Ranked list with one result per matching document
        """
        prefixes = tuple(word for word in dict.fromkeys(words) if word)
        results: Dict[str, SearchResult] = {}

        if not prefixes:
            return []

        with self._lock.read():
            for word, documents in self._index.items():
                if word.startswith(prefixes):
                    self._collect(results, documents)

        return rank_results(results.values())

    def search(self, words: Iterable[str], exact: bool = True) -> List[SearchResult]:
        """Run an exact or partial search."""
        if exact:
            return self.exact_search(words)
        return self.partial_search(words)

    @staticmethod
    def _collect(results: Dict[str, SearchResult], documents: Dict[str, List[int]]):
        for document_id, positions in documents.items():
            result = results.get(document_id)
            if result is None:
                result = results[document_id] = SearchResult(document_id)
            result.update(positions)

    def contains(self, word: str, document_id: Optional[str] = None) -> bool:
        """Whether the word is indexed (optionally: for the given document)."""
        with self._lock.read():
            documents = self._index.get(word)
            if documents is None:
                return False
            return document_id is None or document_id in documents

    def documents(self, word: str) -> List[str]:
        """Sorted document IDs containing ``word``."""
        with self._lock.read():
            return sorted(self._index.get(word, {}))

    def positions(self, word: str, document_id: str) -> List[int]:
        """Copy of the positions of ``word`` in a document (empty if absent)."""
        with self._lock.read():
            return list(self._index.get(word, {}).get(document_id, ()))

    def size(self) -> int:
        """Number of distinct words in the index."""
        with self._lock.read():
            return len(self._index)

    def __len__(self) -> int:
        return self.size()

    def snapshot_sorted(self) -> Dict[str, Dict[str, List[int]]]:
        """
        Consistent copy of the index with words, and documents within each
        word, in ascending order.
        """
        with self._lock.read():
            return {
                word: {
                    document_id: list(self._index[word][document_id])
                    for document_id in sorted(self._index[word])
                }
                for word in sorted(self._index)
            }

    def __repr__(self) -> str:
        return f"InvertedIndex(words={self.size()})"
