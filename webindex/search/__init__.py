"""
Query engine for searching an inverted index.
"""

from .query_engine import QueryEngine, canonical_query, query, query_text

__all__ = ['QueryEngine', 'canonical_query', 'query', 'query_text']
