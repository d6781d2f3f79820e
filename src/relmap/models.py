"""
Core data models for the relmap package.

Defines the typed metadata read from a MySQL information schema (columns,
foreign-key edges, table statistics) and the relationship classifications
produced from it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from relmap.errors import MetadataError


class KeyRole(str, Enum):
    """Role a column plays in the table's keys."""
    NONE = "none"
    PRIMARY = "primary"
    FOREIGN = "foreign"
    UNIQUE_INDEXED = "unique-indexed"

    @classmethod
    def from_column_key(cls, column_key: Optional[str]) -> KeyRole:
        """Map a MySQL COLUMN_KEY value (PRI/UNI/MUL/'') to a key role."""
        return COLUMN_KEY_ROLES.get((column_key or "").strip().upper(), cls.NONE)

    @property
    def is_unique(self) -> bool:
        return self in (KeyRole.PRIMARY, KeyRole.UNIQUE_INDEXED)


COLUMN_KEY_ROLES = {
    "PRI": KeyRole.PRIMARY,
    "UNI": KeyRole.UNIQUE_INDEXED,
    "MUL": KeyRole.FOREIGN,
}


class RelationshipKind(str, Enum):
    """Cardinality of a foreign-key relationship."""
    ONE_TO_ONE = "one-to-one"
    ONE_TO_MANY = "one-to-many"
    MANY_TO_ONE = "many-to-one"
    MANY_TO_MANY = "many-to-many"
    SELF_REFERENCING = "self-referencing"

    @property
    def notation(self) -> str:
        """Cardinality shorthand (1:1, 1:N, N:1, M:N)."""
        return KIND_NOTATION[self]

    @property
    def display_name(self) -> str:
        """Human readable name, e.g. 'Many-to-One'."""
        words = self.value.split("-")
        return "-".join([words[0].capitalize()] + words[1:-1] + [words[-1].capitalize()])

    def reversed(self) -> RelationshipKind:
        """Return the kind as seen from the referenced table."""
        if self is RelationshipKind.MANY_TO_ONE:
            return RelationshipKind.ONE_TO_MANY
        if self is RelationshipKind.ONE_TO_MANY:
            return RelationshipKind.MANY_TO_ONE
        return self


KIND_NOTATION = {
    RelationshipKind.ONE_TO_ONE: "1:1",
    RelationshipKind.ONE_TO_MANY: "1:N",
    RelationshipKind.MANY_TO_ONE: "N:1",
    RelationshipKind.MANY_TO_MANY: "M:N",
    RelationshipKind.SELF_REFERENCING: "SELF",
}


@dataclass(frozen=True)
class Column:
    """Metadata for a single column, tagged with its owning table."""
    table: str
    name: str
    data_type: str
    key_role: KeyRole = KeyRole.NONE
    nullable: bool = True
    full_type: Optional[str] = None  # COLUMN_TYPE, e.g. int(10) unsigned
    comment: Optional[str] = None
    extra: Optional[str] = None  # e.g. auto_increment

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "table": self.table,
            "name": self.name,
            "data_type": self.data_type,
            "key_role": self.key_role.value,
            "nullable": self.nullable,
            "full_type": self.full_type,
            "comment": self.comment,
            "extra": self.extra,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Column:
        """Create from dictionary."""
        try:
            return cls(
                table=data["table"],
                name=data["name"],
                data_type=data.get("data_type", "unknown"),
                key_role=KeyRole(data.get("key_role", "none")),
                nullable=data.get("nullable", True),
                full_type=data.get("full_type"),
                comment=data.get("comment"),
                extra=data.get("extra"),
            )
        except KeyError as e:
            raise MetadataError(f"Column entry missing field {e}: {data!r}") from e
        except ValueError as e:
            raise MetadataError(f"Invalid column entry {data!r}: {e}") from e


@dataclass(frozen=True)
class ForeignKeyEdge:
    """A foreign-key column and the key it references."""
    source_table: str
    source_column: str
    referenced_table: str
    referenced_column: str
    constraint_name: Optional[str] = None

    def __str__(self) -> str:
        return (
            f"{self.source_table}.{self.source_column} -> "
            f"{self.referenced_table}.{self.referenced_column}"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "source_table": self.source_table,
            "source_column": self.source_column,
            "referenced_table": self.referenced_table,
            "referenced_column": self.referenced_column,
            "constraint_name": self.constraint_name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ForeignKeyEdge:
        """Create from dictionary."""
        try:
            return cls(
                source_table=data["source_table"],
                source_column=data["source_column"],
                referenced_table=data["referenced_table"],
                referenced_column=data["referenced_column"],
                constraint_name=data.get("constraint_name"),
            )
        except KeyError as e:
            raise MetadataError(f"Foreign key entry missing field {e}: {data!r}") from e


@dataclass(frozen=True)
class TableStats:
    """Column counts of a table, used for junction-table detection."""
    name: str
    total_column_count: int
    foreign_key_column_count: int

    def __post_init__(self):
        if self.total_column_count < 0 or self.foreign_key_column_count < 0:
            raise MetadataError(f"Negative column count for table {self.name}")
        if self.foreign_key_column_count > self.total_column_count:
            raise MetadataError(
                f"Table {self.name} has more foreign key columns "
                f"({self.foreign_key_column_count}) than columns ({self.total_column_count})"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "total_column_count": self.total_column_count,
            "foreign_key_column_count": self.foreign_key_column_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TableStats:
        """Create from dictionary."""
        try:
            return cls(
                name=data["name"],
                total_column_count=int(data["total_column_count"]),
                foreign_key_column_count=int(data["foreign_key_column_count"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise MetadataError(f"Invalid table stats entry {data!r}: {e}") from e


@dataclass(frozen=True)
class RelationshipClassification:
    """A foreign-key edge with its inferred relationship kind."""
    source_table: str
    source_column: str
    referenced_table: str
    referenced_column: str
    constraint_name: Optional[str]
    kind: RelationshipKind

    @classmethod
    def from_edge(cls, edge: ForeignKeyEdge, kind: RelationshipKind) -> RelationshipClassification:
        return cls(
            source_table=edge.source_table,
            source_column=edge.source_column,
            referenced_table=edge.referenced_table,
            referenced_column=edge.referenced_column,
            constraint_name=edge.constraint_name,
            kind=kind,
        )

    @property
    def cardinality(self) -> str:
        return self.kind.notation

    def reversed(self) -> RelationshipClassification:
        """Describe the same edge from the referenced table's side."""
        return RelationshipClassification(
            source_table=self.referenced_table,
            source_column=self.referenced_column,
            referenced_table=self.source_table,
            referenced_column=self.source_column,
            constraint_name=self.constraint_name,
            kind=self.kind.reversed(),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "source_table": self.source_table,
            "source_column": self.source_column,
            "referenced_table": self.referenced_table,
            "referenced_column": self.referenced_column,
            "constraint_name": self.constraint_name,
            "kind": self.kind.value,
            "cardinality": self.cardinality,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> RelationshipClassification:
        """Create from dictionary."""
        return cls(
            source_table=data["source_table"],
            source_column=data["source_column"],
            referenced_table=data["referenced_table"],
            referenced_column=data["referenced_column"],
            constraint_name=data.get("constraint_name"),
            kind=RelationshipKind(data["kind"]),
        )


class WarningCode(str, Enum):
    """Kinds of data-quality problems found during classification."""
    MISSING_REFERENCED_TABLE = "missing-referenced-table"
    MISSING_REFERENCED_COLUMN = "missing-referenced-column"
    SELF_REFERENCE = "self-reference"


@dataclass(frozen=True)
class DataQualityWarning:
    """A foreign-key edge that was left out of the classification output."""
    code: WarningCode
    edge: ForeignKeyEdge
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "edge": self.edge.to_dict(),
            "message": self.message,
        }


@dataclass
class ClassificationResult:
    """Classifications plus the warnings collected while producing them."""
    classifications: List[RelationshipClassification] = field(default_factory=list)
    warnings: List[DataQualityWarning] = field(default_factory=list)

    def for_table(self, table_name: str) -> List[RelationshipClassification]:
        """Classifications where the table is the referencing side."""
        table_lower = table_name.lower()
        return [c for c in self.classifications if c.source_table.lower() == table_lower]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "relationships": [c.to_dict() for c in self.classifications],
            "warnings": [w.to_dict() for w in self.warnings],
        }


@dataclass
class SchemaSnapshot:
    """
    All metadata collected for one schema.

    Stats missing for a table that has columns are derived from those columns
    when the snapshot is created.
    """
    schema: Optional[str] = None
    columns: List[Column] = field(default_factory=list)
    foreign_keys: List[ForeignKeyEdge] = field(default_factory=list)
    table_stats: Dict[str, TableStats] = field(default_factory=dict)

    def __post_init__(self):
        known = {name.lower() for name in self.table_stats}
        for table_name in self.tables:
            if table_name.lower() not in known:
                self.table_stats[table_name] = self.derive_stats(table_name)

    @property
    def tables(self) -> List[str]:
        """Table names in first-seen order, one spelling per case-insensitive name."""
        names: Dict[str, str] = {}
        for col in self.columns:
            names.setdefault(col.table.lower(), col.table)
        for name in self.table_stats:
            names.setdefault(name.lower(), name)
        return list(names.values())

    def columns_for(self, table_name: str) -> List[Column]:
        """Columns of a table (case-insensitive)."""
        table_lower = table_name.lower()
        return [c for c in self.columns if c.table.lower() == table_lower]

    def foreign_keys_for(self, table_name: str) -> List[ForeignKeyEdge]:
        """Foreign keys whose source is the given table."""
        table_lower = table_name.lower()
        return [fk for fk in self.foreign_keys if fk.source_table.lower() == table_lower]

    def derive_stats(self, table_name: str) -> TableStats:
        """Count a table's columns and its distinct foreign-key source columns."""
        columns = self.columns_for(table_name)
        fk_columns = {fk.source_column.lower() for fk in self.foreign_keys_for(table_name)}
        return TableStats(
            name=table_name,
            total_column_count=len(columns),
            foreign_key_column_count=min(len(fk_columns), len(columns)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "schema": self.schema,
            "columns": [c.to_dict() for c in self.columns],
            "foreign_keys": [fk.to_dict() for fk in self.foreign_keys],
            "table_stats": [s.to_dict() for s in self.table_stats.values()],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SchemaSnapshot:
        """Create from dictionary."""
        if not isinstance(data, dict):
            raise MetadataError("Snapshot must be a mapping")
        stats = [TableStats.from_dict(s) for s in data.get("table_stats") or []]
        return cls(
            schema=data.get("schema"),
            columns=[Column.from_dict(c) for c in data.get("columns") or []],
            foreign_keys=[ForeignKeyEdge.from_dict(fk) for fk in data.get("foreign_keys") or []],
            table_stats={s.name: s for s in stats},
        )
