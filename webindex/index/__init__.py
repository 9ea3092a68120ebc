"""
Inverted index data structures and the filesystem index builder.
"""

from .word_index import WordIndex
from .search_result import SearchResult, rank_results
from .inverted_index import InvertedIndex
from .builder import IndexBuilder, build_from_path

__all__ = [
    'WordIndex', 'SearchResult', 'rank_results',
    'InvertedIndex', 'IndexBuilder', 'build_from_path'
]
