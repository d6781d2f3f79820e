"""
Junction-table detection.

A junction (bridge) table implements a many-to-many relationship: it holds
two or more foreign keys and little else. Tables with many non-key columns
are real entities that merely happen to reference several others.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from relmap.models import TableStats

logger = logging.getLogger(__name__)

MIN_JUNCTION_FOREIGN_KEYS = 2
MAX_JUNCTION_COLUMNS = 4


def is_junction_table(stats: Optional[TableStats]) -> bool:
    """
    Decide whether a table is a many-to-many bridge.

    Args:
        stats: Column counts for the table, or None when unknown

    Returns:
        True if the table has at least MIN_JUNCTION_FOREIGN_KEYS foreign key
        columns and no more than MAX_JUNCTION_COLUMNS columns in total
    """
    if stats is None:
        return False
    return (
        stats.foreign_key_column_count >= MIN_JUNCTION_FOREIGN_KEYS
        and stats.total_column_count <= MAX_JUNCTION_COLUMNS
    )


class JunctionTableDetector:
    """Answers junction-table queries for a set of tables, case-insensitively."""

    def __init__(self, table_stats: Dict[str, TableStats]):
        self._stats: Dict[str, TableStats] = {}
        for name, stats in table_stats.items():
            # first entry wins when names differ only by case
            self._stats.setdefault(name.lower(), stats)
        self._cache: Dict[str, bool] = {}

    def has_table(self, table_name: str) -> bool:
        return table_name.lower() in self._stats

    def is_junction(self, table_name: str) -> bool:
        key = table_name.lower()
        if key not in self._cache:
            result = is_junction_table(self._stats.get(key))
            if result:
                stats = self._stats[key]
                logger.debug(
                    f"Detected M:N - {table_name} is junction table "
                    f"({stats.foreign_key_column_count} FK of {stats.total_column_count} columns)"
                )
            self._cache[key] = result
        return self._cache[key]

    def junction_tables(self) -> List[str]:
        """Names of all junction tables, in input order."""
        return [s.name for s in self._stats.values() if is_junction_table(s)]


def junction_tables(table_stats: Dict[str, TableStats]) -> List[str]:
    """Convenience function listing the junction tables among the given stats."""
    return JunctionTableDetector(table_stats).junction_tables()
