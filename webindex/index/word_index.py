"""
Per-document word position accumulator.
"""

from typing import Dict, Iterable, Iterator, List, Set, Tuple


class WordIndex:
    """
    Maps each word of a single document to the positions where it occurs.

    Positions are 1-based offsets into the document's token stream. A
    WordIndex is built by exactly one task and only read once it has been
    handed to :meth:`InvertedIndex.add_document`, so it carries no lock.
    """

    def __init__(self, words: Iterable[str] = (), start: int = 1):
        self._index: Dict[str, Set[int]] = {}
        self.add_all(words, start)

    def add(self, word: str, position: int):
        """Record that ``word`` occurs at ``position``."""
        self._index.setdefault(word, set()).add(position)

    def add_all(self, words: Iterable[str], start: int = 1):
        """Add a sequence of words, the first one at position ``start``."""
        for position, word in enumerate(words, start):
            self.add(word, position)

    def count(self, word: str) -> int:
        """Number of positions recorded for ``word``."""
        return len(self._index.get(word, ()))

    def contains(self, word: str) -> bool:
        return word in self._index

    def copy_words(self) -> List[str]:
        """Sorted copy of the words in this index."""
        return sorted(self._index)

    def copy_positions(self, word: str) -> List[int]:
        """Sorted copy of the positions of ``word`` (empty if absent)."""
        return sorted(self._index.get(word, ()))

    def items(self) -> Iterator[Tuple[str, List[int]]]:
        """Yield ``(word, sorted positions)`` pairs in word order."""
        for word in self.copy_words():
            yield word, self.copy_positions(word)

    def __contains__(self, word: str) -> bool:
        return self.contains(word)

    def __len__(self) -> int:
        return len(self._index)

    def __repr__(self) -> str:
        return f"WordIndex({dict(self.items())!r})"
