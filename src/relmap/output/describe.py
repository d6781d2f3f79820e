"""
Natural-language schema descriptions for the AI prompt builder.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from relmap.models import Column, KeyRole, RelationshipClassification, SchemaSnapshot

KEY_MARKERS = {
    KeyRole.PRIMARY: "PRIMARY KEY",
    KeyRole.FOREIGN: "FOREIGN KEY",
    KeyRole.UNIQUE_INDEXED: "UNIQUE",
}


def describe_column(column: Column) -> str:
    """e.g. 'customer_id (int, FOREIGN KEY, NOT NULL)'."""
    parts = [column.full_type or column.data_type]
    marker = KEY_MARKERS.get(column.key_role)
    if marker:
        parts.append(marker)
    if not column.nullable:
        parts.append("NOT NULL")
    return f"{column.name} ({', '.join(parts)})"


def describe_relationship(relationship: RelationshipClassification) -> str:
    """e.g. 'orders.customer_id -> customers.id (Many-to-One, N:1)'."""
    return (
        f"{relationship.source_table}.{relationship.source_column} -> "
        f"{relationship.referenced_table}.{relationship.referenced_column} "
        f"({relationship.kind.display_name}, {relationship.cardinality})"
    )


def describe_table(
    snapshot: SchemaSnapshot,
    table_name: str,
    relationships: Iterable[RelationshipClassification],
) -> str:
    """Describe one table: its columns, then the relationships it takes part in."""
    table_lower = table_name.lower()
    lines = [f"Table: {table_name}"]

    columns = snapshot.columns_for(table_name)
    lines.append("Columns: " + (", ".join(describe_column(c) for c in columns) or "None"))

    related = [
        r for r in relationships
        if r.source_table.lower() == table_lower or r.referenced_table.lower() == table_lower
    ]
    if related:
        lines.append("Relationships:")
        lines.extend(f"  - {describe_relationship(r)}" for r in related)
    else:
        lines.append("Relationships: None")

    return "\n".join(lines)


def describe_schema(
    snapshot: SchemaSnapshot,
    relationships: Iterable[RelationshipClassification],
    tables: Optional[List[str]] = None,
) -> str:
    """
    Describe a schema for use in an LLM prompt.

    Args:
        snapshot: Collected schema metadata
        relationships: Classified relationships
        tables: Restrict the description to these tables

    Returns:
        Multi-line description, one block per table
    """
    relationships = list(relationships)
    blocks = []
    if snapshot.schema:
        blocks.append(f"Database: {snapshot.schema}")
    for table_name in tables or snapshot.tables:
        blocks.append(describe_table(snapshot, table_name, relationships))
    return "\n\n".join(blocks)
