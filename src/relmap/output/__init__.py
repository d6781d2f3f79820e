"""
Output module for classified relationships.

Consumers:
- Diagram renderer (nodes and typed edges)
- AI prompt builder (natural-language schema description)
- Files (JSON, YAML, CSV)
"""

from relmap.output.describe import describe_relationship, describe_schema, describe_table
from relmap.output.diagram import Diagram, DiagramEdge, DiagramNode, build_diagram, build_edges
from relmap.output.writer import RelationshipWriter, write_result

__all__ = [
    "describe_relationship",
    "describe_schema",
    "describe_table",
    "Diagram",
    "DiagramEdge",
    "DiagramNode",
    "build_diagram",
    "build_edges",
    "RelationshipWriter",
    "write_result",
]
