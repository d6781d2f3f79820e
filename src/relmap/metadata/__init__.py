"""
Metadata collection from MySQL information schema views.

Provides a live MySQL extractor plus offline loaders for snapshot files and
CSV exports, all producing a validated SchemaSnapshot.
"""

from relmap.metadata.information_schema import build_snapshot
from relmap.metadata.mysql import MySQLMetadataExtractor
from relmap.metadata.snapshot import (
    load_information_schema_csv,
    load_snapshot,
    save_snapshot,
)

__all__ = [
    "build_snapshot",
    "MySQLMetadataExtractor",
    "load_information_schema_csv",
    "load_snapshot",
    "save_snapshot",
]
