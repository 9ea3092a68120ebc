"""
JSON export of inverted indexes and query results.

Both files are written as pretty JSON indented with tabs, UTF-8 encoded.
"""

import json
import logging
from pathlib import Path
from typing import Any, Union

from ..index.inverted_index import InvertedIndex
from ..search.query_engine import QueryEngine


logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when an export file cannot be written."""
    pass


def _write_json(data: Any, path: Union[str, Path]):
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as file:
            json.dump(data, file, indent='\t', ensure_ascii=False)
    except OSError as e:
        raise StorageError(f"Unable to write {path}: {e}") from e


def write_index(index: InvertedIndex, path: Union[str, Path]):
    """Write the index as a nested object: word -> document -> positions."""
    snapshot = index.snapshot_sorted()
    _write_json(snapshot, path)
    logger.info(f"Wrote {len(snapshot)} words to {path}")


def write_results(engine: QueryEngine, path: Union[str, Path]):
    """Write query results as an array of {queries, results} records."""
    records = engine.export()
    _write_json(records, path)
    logger.info(f"Wrote results for {len(records)} queries to {path}")
