"""
Relationship inference over schema metadata.

Usage:
    from relmap.inference import classify_relationships

    relationships = classify_relationships(columns, foreign_keys, table_stats)
"""

from relmap.inference.classifier import (
    RelationshipClassifier,
    classify_relationships,
    classify_snapshot,
)
from relmap.inference.junction import (
    MAX_JUNCTION_COLUMNS,
    MIN_JUNCTION_FOREIGN_KEYS,
    JunctionTableDetector,
    is_junction_table,
    junction_tables,
)
from relmap.inference.self_reference import is_same_table, is_self_reference

__all__ = [
    "RelationshipClassifier",
    "classify_relationships",
    "classify_snapshot",
    "MAX_JUNCTION_COLUMNS",
    "MIN_JUNCTION_FOREIGN_KEYS",
    "JunctionTableDetector",
    "is_junction_table",
    "junction_tables",
    "is_same_table",
    "is_self_reference",
]
