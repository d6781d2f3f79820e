"""
Normalization of raw INFORMATION_SCHEMA rows into typed metadata.

Rows may come from a live MySQL cursor or from CSV exports of the same views.
Field names are matched case-insensitively. Every row is validated here so the
classifier never sees partially-shaped records.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from relmap.errors import MetadataError
from relmap.models import (
    Column,
    ForeignKeyEdge,
    KeyRole,
    SchemaSnapshot,
    TableStats,
)

logger = logging.getLogger(__name__)

Row = Mapping[str, Any]


def _field(row: Row, name: str, required: bool = False) -> Any:
    """Get a field from a row by case-insensitive name."""
    for key, value in row.items():
        if key.upper() == name:
            if value is None and required:
                break
            return value
    if required:
        raise MetadataError(f"Row is missing required field {name}: {dict(row)!r}")
    return None


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    text = str(value).strip()
    return text or None


def parse_nullable(value: Any) -> bool:
    """Interpret IS_NULLABLE ('YES'/'NO') or a boolean-like value."""
    if isinstance(value, bool):
        return value
    if value is None:
        return True
    return str(value).strip().upper() in ("YES", "Y", "TRUE", "1")


def parse_unique_columns(rows: Iterable[Row]) -> Set[Tuple[str, str]]:
    """(table, column) pairs that belong to a non-primary unique index."""
    unique: Set[Tuple[str, str]] = set()
    for row in rows:
        index_name = _text(_field(row, "INDEX_NAME"))
        if index_name and index_name.upper() == "PRIMARY":
            continue
        non_unique = _field(row, "NON_UNIQUE")
        if non_unique is not None and str(non_unique).strip() not in ("0", "0.0", "False"):
            continue
        table = _text(_field(row, "TABLE_NAME", required=True))
        column = _text(_field(row, "COLUMN_NAME", required=True))
        unique.add((table.lower(), column.lower()))
    return unique


def parse_columns(
    rows: Iterable[Row],
    unique_columns: Optional[Set[Tuple[str, str]]] = None,
) -> List[Column]:
    """
    Build Column objects from INFORMATION_SCHEMA.COLUMNS rows.

    Args:
        rows: Rows with TABLE_NAME, COLUMN_NAME, DATA_TYPE, COLUMN_KEY,
            IS_NULLABLE and optionally COLUMN_TYPE, COLUMN_COMMENT, EXTRA
        unique_columns: (table, column) pairs in a unique index; non-primary
            members are promoted to KeyRole.UNIQUE_INDEXED

    Returns:
        List of Column in row order
    """
    unique_columns = unique_columns or set()
    columns = []
    for row in rows:
        table = _text(_field(row, "TABLE_NAME", required=True))
        name = _text(_field(row, "COLUMN_NAME", required=True))
        if not table or not name:
            raise MetadataError(f"Column row has an empty table or column name: {dict(row)!r}")

        key_role = KeyRole.from_column_key(_text(_field(row, "COLUMN_KEY")))
        if key_role is not KeyRole.PRIMARY and (table.lower(), name.lower()) in unique_columns:
            key_role = KeyRole.UNIQUE_INDEXED

        columns.append(Column(
            table=table,
            name=name,
            data_type=(_text(_field(row, "DATA_TYPE")) or "unknown").lower(),
            key_role=key_role,
            nullable=parse_nullable(_field(row, "IS_NULLABLE")),
            full_type=_text(_field(row, "COLUMN_TYPE")),
            comment=_text(_field(row, "COLUMN_COMMENT")),
            extra=_text(_field(row, "EXTRA")),
        ))
    return columns


def parse_foreign_keys(rows: Iterable[Row]) -> List[ForeignKeyEdge]:
    """Build ForeignKeyEdge objects from INFORMATION_SCHEMA.KEY_COLUMN_USAGE rows."""
    edges = []
    for row in rows:
        referenced_table = _text(_field(row, "REFERENCED_TABLE_NAME"))
        if not referenced_table:
            # PRIMARY/UNIQUE usage rows carry no reference
            continue
        edges.append(ForeignKeyEdge(
            source_table=_text(_field(row, "TABLE_NAME", required=True)),
            source_column=_text(_field(row, "COLUMN_NAME", required=True)),
            referenced_table=referenced_table,
            referenced_column=_text(_field(row, "REFERENCED_COLUMN_NAME", required=True)),
            constraint_name=_text(_field(row, "CONSTRAINT_NAME")),
        ))
    return edges


def count_table_stats(column_rows: Iterable[Row]) -> Dict[str, TableStats]:
    """
    Count total and foreign-key columns per table.

    Foreign-key columns are those whose COLUMN_KEY is MUL, matching how MySQL
    reports indexed FK columns.
    """
    totals: Dict[str, int] = {}
    fk_counts: Dict[str, int] = {}
    for row in column_rows:
        table = _text(_field(row, "TABLE_NAME", required=True))
        totals[table] = totals.get(table, 0) + 1
        fk_counts.setdefault(table, 0)
        if (_text(_field(row, "COLUMN_KEY")) or "").upper() == "MUL":
            fk_counts[table] += 1

    return {
        table: TableStats(
            name=table,
            total_column_count=total,
            foreign_key_column_count=fk_counts[table],
        )
        for table, total in totals.items()
    }


def build_snapshot(
    column_rows: Iterable[Row],
    foreign_key_rows: Iterable[Row],
    unique_rows: Optional[Iterable[Row]] = None,
    schema: Optional[str] = None,
) -> SchemaSnapshot:
    """
    Build a SchemaSnapshot from raw information schema rows.

    Args:
        column_rows: INFORMATION_SCHEMA.COLUMNS rows
        foreign_key_rows: INFORMATION_SCHEMA.KEY_COLUMN_USAGE rows
        unique_rows: INFORMATION_SCHEMA.STATISTICS rows (optional)
        schema: Schema name

    Returns:
        Validated SchemaSnapshot
    """
    column_rows = list(column_rows)
    unique_columns = parse_unique_columns(unique_rows or [])

    snapshot = SchemaSnapshot(
        schema=schema,
        columns=parse_columns(column_rows, unique_columns),
        foreign_keys=parse_foreign_keys(foreign_key_rows),
        table_stats=count_table_stats(column_rows),
    )

    logger.info(
        f"Collected {len(snapshot.tables)} tables, {len(snapshot.columns)} columns, "
        f"{len(snapshot.foreign_keys)} foreign keys"
    )
    return snapshot
