"""
Relationship Writer - saves classification results as JSON, YAML or CSV.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import pandas as pd
import yaml

from relmap.models import ClassificationResult

logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    "source_table",
    "source_column",
    "referenced_table",
    "referenced_column",
    "constraint_name",
    "kind",
    "cardinality",
]


class RelationshipWriter:
    """
    Writes a ClassificationResult in the format implied by the file suffix.

    Formats:
    - .json / .yaml / .yml: relationships, warnings and run metadata
    - .csv: one row per relationship
    """

    def __init__(self, result: ClassificationResult, schema: Optional[str] = None):
        self.result = result
        self.schema = schema

    def _document(self) -> Dict[str, Any]:
        return {
            "schema": self.schema,
            "generated_at": datetime.now().isoformat(),
            "relationship_count": len(self.result.classifications),
            **self.result.to_dict(),
        }

    def to_dataframe(self) -> pd.DataFrame:
        """Relationships as a DataFrame with one row per edge."""
        rows = [c.to_dict() for c in self.result.classifications]
        return pd.DataFrame(rows, columns=CSV_COLUMNS)

    def write(self, path: Path) -> Path:
        """
        Write the result to path.

        Args:
            path: Output file; suffix selects the format

        Returns:
            The written path
        """
        path = Path(path)
        suffix = path.suffix.lower()
        if suffix not in (".json", ".yaml", ".yml", ".csv"):
            raise ValueError(f"Unknown output format: {path.suffix or '(none)'}")

        path.parent.mkdir(parents=True, exist_ok=True)

        if suffix == ".csv":
            self.to_dataframe().to_csv(path, index=False)
        elif suffix == ".json":
            with open(path, "w") as f:
                json.dump(self._document(), f, indent=2)
        else:
            with open(path, "w") as f:
                yaml.safe_dump(self._document(), f, default_flow_style=False, sort_keys=False)

        logger.info(f"Wrote {len(self.result.classifications)} relationships to {path}")
        return path


def write_result(result: ClassificationResult, path: Path, schema: Optional[str] = None) -> Path:
    """Convenience function to write a classification result."""
    return RelationshipWriter(result, schema).write(path)
