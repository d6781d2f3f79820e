"""
Offline metadata sources: snapshot files and CSV exports of the information schema.

Snapshot files are YAML or JSON documents produced by SchemaSnapshot.to_dict().
CSV exports are a directory holding one file per information schema view:

    columns.csv             # INFORMATION_SCHEMA.COLUMNS (required)
    key_column_usage.csv    # INFORMATION_SCHEMA.KEY_COLUMN_USAGE (required)
    statistics.csv          # INFORMATION_SCHEMA.STATISTICS (optional)
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd
import yaml

from relmap.errors import MetadataError
from relmap.metadata.information_schema import build_snapshot
from relmap.models import SchemaSnapshot

logger = logging.getLogger(__name__)

COLUMNS_FILE = "columns.csv"
KEY_COLUMN_USAGE_FILE = "key_column_usage.csv"
STATISTICS_FILE = "statistics.csv"


def load_snapshot(path: Path) -> SchemaSnapshot:
    """
    Load a snapshot from a YAML or JSON file.

    Args:
        path: Snapshot file (.yaml, .yml or .json)

    Returns:
        SchemaSnapshot
    """
    path = Path(path)
    if not path.exists():
        raise MetadataError(f"Snapshot file not found: {path}")

    with open(path, "r") as f:
        if path.suffix.lower() == ".json":
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise MetadataError(f"Invalid JSON in {path}: {e}") from e
        else:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise MetadataError(f"Invalid YAML in {path}: {e}") from e

    snapshot = SchemaSnapshot.from_dict(data)
    logger.info(f"Loaded snapshot of {len(snapshot.tables)} tables from {path}")
    return snapshot


def save_snapshot(snapshot: SchemaSnapshot, path: Path) -> Path:
    """Save a snapshot as YAML or JSON depending on the file suffix."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        if path.suffix.lower() == ".json":
            json.dump(snapshot.to_dict(), f, indent=2)
        else:
            yaml.safe_dump(snapshot.to_dict(), f, default_flow_style=False, sort_keys=False)

    logger.info(f"Saved snapshot to {path}")
    return path


def _read_rows(path: Path) -> List[Dict[str, Any]]:
    """Read a CSV export into row dicts, with empty cells as None."""
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    return [
        {key: (None if value in ("", "NULL") else value) for key, value in row.items()}
        for row in df.to_dict(orient="records")
    ]


def load_information_schema_csv(
    csv_dir: Path,
    schema: Optional[str] = None,
) -> SchemaSnapshot:
    """
    Build a snapshot from CSV exports of the information schema views.

    Args:
        csv_dir: Directory containing columns.csv, key_column_usage.csv and
            optionally statistics.csv
        schema: Schema name to record (defaults to the directory name)

    Returns:
        SchemaSnapshot
    """
    csv_dir = Path(csv_dir)
    columns_path = csv_dir / COLUMNS_FILE
    fk_path = csv_dir / KEY_COLUMN_USAGE_FILE
    stats_path = csv_dir / STATISTICS_FILE

    for required in (columns_path, fk_path):
        if not required.exists():
            raise MetadataError(f"Missing information schema export: {required}")

    logger.info(f"Reading information schema exports from {csv_dir}")

    unique_rows = _read_rows(stats_path) if stats_path.exists() else []
    if not unique_rows:
        logger.warning(f"No {STATISTICS_FILE} in {csv_dir}; UNI column keys are the only unique markers")

    return build_snapshot(
        _read_rows(columns_path),
        _read_rows(fk_path),
        unique_rows,
        schema=schema or csv_dir.name,
    )
