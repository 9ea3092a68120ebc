"""
Search result records and their ranking order.
"""

import sys
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple, Union


@dataclass
class SearchResult:
    """
    Occurrences of a query within a single document.

    Results are ranked by occurrence count (descending), then by first
    occurrence position (ascending), then by document name compared
    case-insensitively.
    """
    where: str
    count: int = 0
    first_position: int = sys.maxsize

    def update(self, positions: List[int]):
        """Fold one matched word's sorted positions into this result."""
        self.count += len(positions)
        if positions and positions[0] < self.first_position:
            self.first_position = positions[0]

    @property
    def sort_key(self) -> Tuple[int, int, str, str]:
        # The raw name keeps documents that differ only in case in a fixed order
        return (-self.count, self.first_position, self.where.lower(), self.where)

    def __lt__(self, other: 'SearchResult') -> bool:
        return self.sort_key < other.sort_key

    def to_dict(self) -> Dict[str, Union[str, int]]:
        """Convert to the exported result record."""
        return {
            'where': self.where,
            'count': self.count,
            'index': self.first_position
        }


def rank_results(results: Iterable[SearchResult]) -> List[SearchResult]:
    """Return the results as a new list in ranking order."""
    return sorted(results, key=lambda result: result.sort_key)
