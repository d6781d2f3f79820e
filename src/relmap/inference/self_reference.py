"""
Self-reference detection.

A foreign key whose referenced table is the same logical table as its source
(e.g. employees.manager_id -> employees.id) would render as a self-loop. Table
names are compared case-insensitively and with trivial pluralization folded.
Besides dropping one trailing `s`, the matcher also folds `es` and `ies -> y`,
so `category` and `categories` denote the same table. This matches more
loosely than removing a single trailing `s` would.
"""

from __future__ import annotations

from typing import Set


def _get_table_variants(table_name: str) -> Set[str]:
    """Get a lowercased table name plus its naive singular forms."""
    table_lower = table_name.strip().lower()
    variants = {table_lower}

    if table_lower.endswith("ies") and len(table_lower) > 3:
        variants.add(table_lower[:-3] + "y")
    if table_lower.endswith("es") and len(table_lower) > 2:
        variants.add(table_lower[:-2])
    if table_lower.endswith("s") and len(table_lower) > 1:
        variants.add(table_lower[:-1])

    return variants


def is_same_table(table1: str, table2: str) -> bool:
    """True if both names denote the same logical table."""
    return bool(_get_table_variants(table1) & _get_table_variants(table2))


def is_self_reference(source_table: str, referenced_table: str) -> bool:
    """True if a foreign key from source_table to referenced_table points back at itself."""
    return is_same_table(source_table, referenced_table)
