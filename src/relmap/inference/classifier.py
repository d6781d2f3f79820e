"""
Relationship Classifier - assigns a cardinality to every foreign-key column.

Decision procedure, first match wins:
1. The FK column is a primary key or belongs to a unique index -> one-to-one
2. The owning table is a junction table -> many-to-many
3. Otherwise -> many-to-one

Classifications are stored in the referencing -> referenced direction, so
one-to-many is never produced here; use RelationshipClassification.reversed()
to describe an edge from the referenced table's side.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from relmap.inference.junction import JunctionTableDetector
from relmap.inference.self_reference import is_self_reference
from relmap.models import (
    ClassificationResult,
    Column,
    DataQualityWarning,
    ForeignKeyEdge,
    KeyRole,
    RelationshipClassification,
    RelationshipKind,
    SchemaSnapshot,
    TableStats,
    WarningCode,
)

logger = logging.getLogger(__name__)


class RelationshipClassifier:
    """
    Classifies foreign-key edges using column key roles and table statistics.

    All metadata for the schema must be supplied up front: junction detection
    needs whole-table statistics, not just the column under consideration.
    """

    def __init__(
        self,
        columns: Iterable[Column],
        table_stats: Dict[str, TableStats],
        keep_self_references: bool = False,
    ):
        """
        Initialize the classifier.

        Args:
            columns: Columns of all tables, each tagged with its table
            table_stats: Dict of table_name -> TableStats
            keep_self_references: Emit self-referencing edges with kind
                SELF_REFERENCING instead of dropping them
        """
        self._columns: Dict[Tuple[str, str], Column] = {
            (c.table.lower(), c.name.lower()): c for c in columns
        }
        self._column_tables = {table for table, _ in self._columns}
        self.junctions = JunctionTableDetector(table_stats)
        self.keep_self_references = keep_self_references

    def get_column(self, table_name: str, column_name: str) -> Optional[Column]:
        return self._columns.get((table_name.lower(), column_name.lower()))

    def has_referenced_column(self, edge: ForeignKeyEdge) -> bool:
        """
        False only when the referenced table's columns are known and lack the
        referenced column. Tables supplied without columns are not checked.
        """
        if edge.referenced_table.lower() not in self._column_tables:
            return True
        return self.get_column(edge.referenced_table, edge.referenced_column) is not None

    def determine_kind(self, edge: ForeignKeyEdge) -> RelationshipKind:
        """Classify one edge, ignoring self-reference and missing-table checks."""
        column = self.get_column(edge.source_table, edge.source_column)
        key_role = column.key_role if column else KeyRole.FOREIGN

        if key_role.is_unique:
            logger.debug(f"Detected 1:1 - {edge.source_table}.{edge.source_column} is unique/primary")
            return RelationshipKind.ONE_TO_ONE

        if self.junctions.is_junction(edge.source_table):
            return RelationshipKind.MANY_TO_MANY

        logger.debug(f"Detected N:1 - {edge}")
        return RelationshipKind.MANY_TO_ONE

    def classify(self, foreign_keys: Iterable[ForeignKeyEdge]) -> ClassificationResult:
        """
        Classify all foreign-key edges.

        Edges whose referenced table or column is unknown are skipped with a
        warning.
        Self references are dropped (or tagged) according to
        keep_self_references.

        Args:
            foreign_keys: FK edges to classify

        Returns:
            ClassificationResult with classifications in input order
        """
        result = ClassificationResult()

        for edge in foreign_keys:
            if is_self_reference(edge.source_table, edge.referenced_table):
                if self.keep_self_references:
                    result.classifications.append(RelationshipClassification.from_edge(
                        edge, RelationshipKind.SELF_REFERENCING,
                    ))
                    continue
                message = f"Dropping self-referencing relationship {edge}"
                logger.debug(message)
                result.warnings.append(DataQualityWarning(
                    code=WarningCode.SELF_REFERENCE,
                    edge=edge,
                    message=message,
                ))
                continue

            if not self.junctions.has_table(edge.referenced_table):
                message = (
                    f"Skipping {edge}: referenced table "
                    f"'{edge.referenced_table}' not found in schema metadata"
                )
                logger.warning(message)
                result.warnings.append(DataQualityWarning(
                    code=WarningCode.MISSING_REFERENCED_TABLE,
                    edge=edge,
                    message=message,
                ))
                continue

            if not self.has_referenced_column(edge):
                message = (
                    f"Skipping {edge}: referenced column "
                    f"'{edge.referenced_column}' not found in table '{edge.referenced_table}'"
                )
                logger.warning(message)
                result.warnings.append(DataQualityWarning(
                    code=WarningCode.MISSING_REFERENCED_COLUMN,
                    edge=edge,
                    message=message,
                ))
                continue

            result.classifications.append(
                RelationshipClassification.from_edge(edge, self.determine_kind(edge))
            )

        logger.info(
            f"Classified {len(result.classifications)} relationships "
            f"({len(result.warnings)} edges skipped)"
        )
        return result


def classify_relationships(
    columns: Iterable[Column],
    foreign_keys: Iterable[ForeignKeyEdge],
    table_stats: Dict[str, TableStats],
    keep_self_references: bool = False,
) -> List[RelationshipClassification]:
    """
    Convenience function to classify relationships.

    Args:
        columns: All columns of one or more tables
        foreign_keys: All FK edges for those tables
        table_stats: Dict of table_name -> TableStats
        keep_self_references: Tag self references instead of dropping them

    Returns:
        List of RelationshipClassification, one per surviving edge
    """
    classifier = RelationshipClassifier(columns, table_stats, keep_self_references)
    return classifier.classify(foreign_keys).classifications


def classify_snapshot(
    snapshot: SchemaSnapshot,
    keep_self_references: bool = False,
) -> ClassificationResult:
    """Classify every foreign key in a snapshot, keeping the warnings."""
    classifier = RelationshipClassifier(
        snapshot.columns,
        snapshot.table_stats,
        keep_self_references,
    )
    return classifier.classify(snapshot.foreign_keys)
