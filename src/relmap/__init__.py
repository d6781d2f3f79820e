"""
relmap - Relationship classification for MySQL schemas

Reads INFORMATION_SCHEMA metadata and classifies every foreign key as
one-to-one, many-to-one or many-to-many, for schema diagrams and for
natural-language schema descriptions fed to an LLM.

Features:
- Unique/primary key detection for one-to-one relationships
- Junction-table detection for many-to-many relationships
- Pluralization-aware suppression of self-referencing edges
- Live MySQL extraction or offline snapshots / CSV exports
"""

__version__ = "0.1.0"

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
)
from relmap.inference import (
    RelationshipClassifier,
    classify_relationships,
    classify_snapshot,
)
from relmap.cache import SummaryCache

__all__ = [
    # Core models
    "ClassificationResult",
    "Column",
    "DataQualityWarning",
    "ForeignKeyEdge",
    "KeyRole",
    "RelationshipClassification",
    "RelationshipKind",
    "SchemaSnapshot",
    "TableStats",
    # Inference
    "RelationshipClassifier",
    "classify_relationships",
    "classify_snapshot",
    # Services
    "SummaryCache",
]
