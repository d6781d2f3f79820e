"""
Diagram builder - turns classified relationships into nodes and typed edges
for the schema diagram renderer.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from relmap.models import Column, RelationshipClassification, RelationshipKind, SchemaSnapshot

logger = logging.getLogger(__name__)

HORIZONTAL_SPACING = 400
VERTICAL_SPACING = 400
ORIGIN_X = 50
ORIGIN_Y = 88  # leaves room for the page header


@dataclass
class DiagramNode:
    """A table box placed on the diagram grid."""
    id: str
    x: int
    y: int
    columns: List[Column] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": "tableNode",
            "position": {"x": self.x, "y": self.y},
            "data": {
                "tableName": self.id,
                "columns": [c.to_dict() for c in self.columns],
            },
            "sourcePosition": "right",
            "targetPosition": "left",
        }


@dataclass
class DiagramEdge:
    """A relationship line from a referencing column to the column it references."""
    id: str
    source: str
    target: str
    source_handle: str
    target_handle: str
    label: str
    relationship: RelationshipClassification

    @property
    def kind(self) -> RelationshipKind:
        return self.relationship.kind

    def to_dict(self) -> Dict[str, Any]:
        rel = self.relationship
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "sourceHandle": self.source_handle,
            "targetHandle": self.target_handle,
            "label": self.label,
            "type": "custom",
            "data": {
                "relationshipType": rel.kind.value,
                "cardinality": rel.cardinality,
                "sourceTable": rel.source_table,
                "sourceColumn": rel.source_column,
                "targetTable": rel.referenced_table,
                "targetColumn": rel.referenced_column,
                "constraintName": rel.constraint_name,
            },
        }


@dataclass
class Diagram:
    nodes: List[DiagramNode] = field(default_factory=list)
    edges: List[DiagramEdge] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


def edge_label(relationship: RelationshipClassification) -> str:
    """Edge label such as 'N:1 customer_id'."""
    return f"{relationship.cardinality} {relationship.source_column}"


def layout_nodes(tables: List[str], snapshot: Optional[SchemaSnapshot] = None) -> List[DiagramNode]:
    """Place tables on a square grid, row by row."""
    if not tables:
        return []

    cols = math.ceil(math.sqrt(len(tables)))
    nodes = []
    for index, table in enumerate(tables):
        row, col = divmod(index, cols)
        nodes.append(DiagramNode(
            id=table,
            x=col * HORIZONTAL_SPACING + ORIGIN_X,
            y=row * VERTICAL_SPACING + ORIGIN_Y,
            columns=snapshot.columns_for(table) if snapshot else [],
        ))
    return nodes


def build_edges(
    relationships: Iterable[RelationshipClassification],
    tables: Iterable[str],
) -> List[DiagramEdge]:
    """
    Build one edge per relationship whose tables both have nodes.

    Args:
        relationships: Classified relationships
        tables: Table names present on the diagram

    Returns:
        List of DiagramEdge
    """
    # node ids by lowercased table name
    known = {table.lower(): table for table in tables}
    edges = []

    for rel in relationships:
        source = known.get(rel.source_table.lower())
        target = known.get(rel.referenced_table.lower())
        if source is None or target is None:
            logger.debug(f"No node for {rel.source_table} -> {rel.referenced_table}, skipping edge")
            continue

        edges.append(DiagramEdge(
            id=f"{source}-{target}-{rel.source_column}",
            source=source,
            target=target,
            source_handle=f"{source}-{rel.source_column}-source",
            target_handle=f"{target}-{rel.referenced_column}-target",
            label=edge_label(rel),
            relationship=rel,
        ))

    return edges


def build_diagram(
    snapshot: SchemaSnapshot,
    relationships: Iterable[RelationshipClassification],
) -> Diagram:
    """Build the full diagram (grid-placed nodes plus typed edges) for a snapshot."""
    tables = snapshot.tables
    diagram = Diagram(
        nodes=layout_nodes(tables, snapshot),
        edges=build_edges(relationships, tables),
    )
    logger.info(f"Built diagram with {len(diagram.nodes)} nodes and {len(diagram.edges)} edges")
    return diagram
