"""
Export layer for indexes and query results.
"""

from .json_writer import StorageError, write_index, write_results

__all__ = ['StorageError', 'write_index', 'write_results']
