"""
Tests for relationship inference.

Covers the classifier decision procedure, junction-table detection and the
self-reference filter.
"""

import logging

import pytest

from relmap.inference import (
    MAX_JUNCTION_COLUMNS,
    MIN_JUNCTION_FOREIGN_KEYS,
    JunctionTableDetector,
    RelationshipClassifier,
    classify_relationships,
    classify_snapshot,
    is_junction_table,
    is_same_table,
    is_self_reference,
    junction_tables,
)
from relmap.models import (
    ForeignKeyEdge,
    KeyRole,
    RelationshipKind,
    SchemaSnapshot,
    TableStats,
    WarningCode,
)

from conftest import col


def kinds_by_column(classifications):
    return {(c.source_table, c.source_column): c.kind for c in classifications}


class TestJunctionTableDetector:
    """Tests for junction-table detection."""

    def test_thresholds(self):
        """Test the junction thresholds are fixed at 2 FKs and 4 columns."""
        assert MIN_JUNCTION_FOREIGN_KEYS == 2
        assert MAX_JUNCTION_COLUMNS == 4

    @pytest.mark.parametrize("total, fks, expected", [
        (2, 2, True),
        (4, 2, True),
        (4, 3, True),
        (5, 2, False),
        (3, 1, False),
        (2, 0, False),
    ])
    def test_is_junction_table(self, total, fks, expected):
        """Test the junction test at and around its thresholds."""
        assert is_junction_table(TableStats("t", total, fks)) is expected

    def test_unknown_table_is_not_junction(self):
        """Test a table without stats never counts as a junction."""
        assert is_junction_table(None) is False
        detector = JunctionTableDetector({})
        assert detector.is_junction("anything") is False

    def test_case_insensitive_lookup(self):
        """Test table names are matched regardless of case."""
        detector = JunctionTableDetector({"User_Roles": TableStats("User_Roles", 2, 2)})
        assert detector.has_table("user_roles")
        assert detector.is_junction("USER_ROLES")

    def test_first_stats_win_on_case_collision(self):
        """Test a later entry differing only by case does not replace the first."""
        detector = JunctionTableDetector({
            "user_roles": TableStats("user_roles", 2, 2),
            "User_Roles": TableStats("User_Roles", 2, 0),
        })
        assert detector.is_junction("user_roles")

    def test_junction_tables(self, shop_stats):
        """Test listing the junction tables of a schema."""
        assert junction_tables(shop_stats) == ["user_roles"]


class TestSelfReference:
    """Tests for pluralization-aware table name matching."""

    @pytest.mark.parametrize("table1, table2", [
        ("employees", "employees"),
        ("employees", "employee"),
        ("Employee", "EMPLOYEES"),
        ("categories", "category"),
        ("addresses", "address"),
        ("node", "nodes"),
    ])
    def test_same_table(self, table1, table2):
        """Test singular, plural and case variants match in both directions."""
        assert is_same_table(table1, table2)
        assert is_same_table(table2, table1)

    @pytest.mark.parametrize("table1, table2", [
        ("orders", "customers"),
        ("user_roles", "users"),
        ("category", "categorization"),
    ])
    def test_different_tables(self, table1, table2):
        """Test distinct tables are not treated as self references."""
        assert not is_self_reference(table1, table2)


class TestRelationshipClassifier:
    """Tests for the classification decision procedure."""

    def test_shop_schema(self, shop_columns, shop_foreign_keys, shop_stats):
        """Test every relationship kind in a small shop schema."""
        result = classify_relationships(shop_columns, shop_foreign_keys, shop_stats)

        assert kinds_by_column(result) == {
            ("orders", "customer_id"): RelationshipKind.MANY_TO_ONE,
            ("profiles", "user_id"): RelationshipKind.ONE_TO_ONE,
            ("user_roles", "user_id"): RelationshipKind.MANY_TO_MANY,
            ("user_roles", "role_id"): RelationshipKind.MANY_TO_MANY,
        }

    def test_output_preserves_input_order(self, shop_columns, shop_foreign_keys, shop_stats):
        """Test classifications come back in foreign-key input order."""
        result = classify_relationships(shop_columns, shop_foreign_keys, shop_stats)
        assert [c.constraint_name for c in result] == [
            "fk_orders_customer",
            "fk_profiles_user",
            "fk_user_roles_user",
            "fk_user_roles_role",
        ]

    def test_totality(self, shop_columns, shop_stats):
        """Test every edge between known, distinct tables gets exactly one kind."""
        edges = [
            ForeignKeyEdge("orders", "customer_id", "customers", "id"),
            ForeignKeyEdge("profiles", "user_id", "users", "id"),
            ForeignKeyEdge("user_roles", "role_id", "roles", "id"),
        ]
        result = classify_relationships(shop_columns, edges, shop_stats)

        assert len(result) == len(edges)
        assert all(c.kind is not None for c in result)

    @pytest.mark.parametrize("role", [KeyRole.PRIMARY, KeyRole.UNIQUE_INDEXED])
    def test_unique_column_beats_junction(self, role):
        """Test a unique FK column is one-to-one even inside a junction table."""
        columns = [
            col("links", "a_id", role),
            col("links", "b_id", KeyRole.FOREIGN),
            col("a", "id", KeyRole.PRIMARY),
            col("b", "id", KeyRole.PRIMARY),
        ]
        edges = [
            ForeignKeyEdge("links", "a_id", "a", "id"),
            ForeignKeyEdge("links", "b_id", "b", "id"),
        ]
        stats = {
            "links": TableStats("links", 2, 2),
            "a": TableStats("a", 1, 0),
            "b": TableStats("b", 1, 0),
        }
        result = kinds_by_column(classify_relationships(columns, edges, stats))

        assert result[("links", "a_id")] is RelationshipKind.ONE_TO_ONE
        assert result[("links", "b_id")] is RelationshipKind.MANY_TO_MANY

    def test_junction_overrides_every_fk_column(self):
        """Test all non-unique FK columns of a junction table are many-to-many."""
        columns = [
            col("tags_posts", "id", KeyRole.PRIMARY),
            col("tags_posts", "tag_id", KeyRole.FOREIGN),
            col("tags_posts", "post_id", KeyRole.FOREIGN),
            col("tags_posts", "created_at", data_type="datetime"),
            col("tags", "id", KeyRole.PRIMARY),
            col("posts", "id", KeyRole.PRIMARY),
        ]
        edges = [
            ForeignKeyEdge("tags_posts", "tag_id", "tags", "id"),
            ForeignKeyEdge("tags_posts", "post_id", "posts", "id"),
        ]
        stats = {
            "tags_posts": TableStats("tags_posts", 4, 2),
            "tags": TableStats("tags", 1, 0),
            "posts": TableStats("posts", 1, 0),
        }
        result = classify_relationships(columns, edges, stats)
        assert {c.kind for c in result} == {RelationshipKind.MANY_TO_MANY}

    def test_wide_table_with_two_fks_is_many_to_one(self):
        """Test a table with more than four columns is not a junction."""
        columns = [col("shipments", name, KeyRole.FOREIGN) for name in ("order_id", "carrier_id")]
        columns += [col("shipments", name) for name in ("id", "tracking", "weight")]
        columns += [col("orders", "id", KeyRole.PRIMARY), col("carriers", "id", KeyRole.PRIMARY)]
        edges = [
            ForeignKeyEdge("shipments", "order_id", "orders", "id"),
            ForeignKeyEdge("shipments", "carrier_id", "carriers", "id"),
        ]
        stats = {
            "shipments": TableStats("shipments", 5, 2),
            "orders": TableStats("orders", 1, 0),
            "carriers": TableStats("carriers", 1, 0),
        }
        result = classify_relationships(columns, edges, stats)
        assert {c.kind for c in result} == {RelationshipKind.MANY_TO_ONE}

    def test_never_reports_one_to_many(self, shop_columns, shop_foreign_keys, shop_stats):
        """Test classification output is always from the referencing side."""
        result = classify_relationships(shop_columns, shop_foreign_keys, shop_stats)
        assert RelationshipKind.ONE_TO_MANY not in {c.kind for c in result}

    def test_reversed_perspective(self, shop_columns, shop_foreign_keys, shop_stats):
        """Test reversing a many-to-one edge gives one-to-many."""
        result = classify_relationships(shop_columns, shop_foreign_keys, shop_stats)
        orders = result[0].reversed()

        assert orders.source_table == "customers"
        assert orders.referenced_table == "orders"
        assert orders.kind is RelationshipKind.ONE_TO_MANY
        assert orders.cardinality == "1:N"

    def test_missing_source_column_uses_foreign_role(self, shop_stats):
        """Test an FK column absent from the column list is treated as a plain FK."""
        edges = [ForeignKeyEdge("orders", "customer_id", "customers", "id")]
        result = classify_relationships([], edges, shop_stats)
        assert result[0].kind is RelationshipKind.MANY_TO_ONE

    def test_source_table_without_stats_defaults_to_many_to_one(self):
        """Test a source table without stats cannot be a junction."""
        columns = [col("log", "a_id", KeyRole.FOREIGN), col("log", "b_id", KeyRole.FOREIGN)]
        edges = [
            ForeignKeyEdge("log", "a_id", "a", "id"),
            ForeignKeyEdge("log", "b_id", "b", "id"),
        ]
        stats = {"a": TableStats("a", 1, 0), "b": TableStats("b", 1, 0)}
        result = classify_relationships(columns, edges, stats)
        assert {c.kind for c in result} == {RelationshipKind.MANY_TO_ONE}

    def test_referenced_table_without_columns_is_not_checked(self, shop_stats):
        """Test the referenced column is only checked when that table's columns are known."""
        edges = [ForeignKeyEdge("orders", "customer_id", "customers", "uuid")]
        result = RelationshipClassifier([], shop_stats).classify(edges)

        assert len(result.classifications) == 1
        assert result.warnings == []


class TestScenarios:
    """End-to-end scenarios for classify_relationships."""

    def test_orders_customer_is_many_to_one(self):
        """Test an entity table with a single FK is many-to-one."""
        columns = [col("orders", "customer_id", KeyRole.FOREIGN), col("customers", "id", KeyRole.PRIMARY)]
        edges = [ForeignKeyEdge("orders", "customer_id", "customers", "id", "fk_orders_customer")]
        stats = {
            "orders": TableStats("orders", 8, 1),
            "customers": TableStats("customers", 3, 0),
        }

        result = classify_relationships(columns, edges, stats)

        assert len(result) == 1
        assert result[0].kind is RelationshipKind.MANY_TO_ONE
        assert result[0].constraint_name == "fk_orders_customer"

    def test_user_roles_is_many_to_many(self):
        """Test both FKs of a two-column bridge table are many-to-many."""
        columns = [col("user_roles", "user_id", KeyRole.FOREIGN), col("user_roles", "role_id", KeyRole.FOREIGN)]
        edges = [
            ForeignKeyEdge("user_roles", "user_id", "users", "id"),
            ForeignKeyEdge("user_roles", "role_id", "roles", "id"),
        ]
        stats = {
            "user_roles": TableStats("user_roles", 2, 2),
            "users": TableStats("users", 2, 0),
            "roles": TableStats("roles", 2, 0),
        }

        result = classify_relationships(columns, edges, stats)

        assert [c.kind for c in result] == [RelationshipKind.MANY_TO_MANY] * 2

    def test_profiles_user_is_one_to_one(self):
        """Test a unique-indexed FK column is one-to-one."""
        columns = [col("profiles", "user_id", KeyRole.UNIQUE_INDEXED)]
        edges = [ForeignKeyEdge("profiles", "user_id", "users", "id")]
        stats = {
            "profiles": TableStats("profiles", 3, 1),
            "users": TableStats("users", 2, 0),
        }

        result = classify_relationships(columns, edges, stats)

        assert [c.kind for c in result] == [RelationshipKind.ONE_TO_ONE]

    def test_employee_manager_is_suppressed(self, shop_columns, shop_stats):
        """Test self references are dropped, including singular spellings."""
        edges = [
            ForeignKeyEdge("employees", "manager_id", "employees", "id"),
            ForeignKeyEdge("employees", "manager_id", "employee", "id"),
        ]
        assert classify_relationships(shop_columns, edges, shop_stats) == []

    def test_missing_referenced_table_is_skipped(self, shop_columns, shop_stats, caplog):
        """Test an edge to an unknown table is dropped with a warning."""
        columns = shop_columns + [col("invoices", "client_id", KeyRole.FOREIGN)]
        stats = dict(shop_stats, invoices=TableStats("invoices", 4, 1))
        edges = [
            ForeignKeyEdge("invoices", "client_id", "clients", "id"),
            ForeignKeyEdge("orders", "customer_id", "customers", "id"),
        ]

        with caplog.at_level(logging.WARNING):
            result = RelationshipClassifier(columns, stats).classify(edges)

        assert [c.source_table for c in result.classifications] == ["orders"]
        assert len(result.warnings) == 1
        assert result.warnings[0].code is WarningCode.MISSING_REFERENCED_TABLE
        assert result.warnings[0].edge.referenced_table == "clients"
        assert "clients" in caplog.text

    def test_missing_referenced_column_is_skipped(self, caplog):
        """Test an edge to a column the referenced table lacks is dropped with a warning."""
        columns = [
            col("orders", "id", KeyRole.PRIMARY),
            col("orders", "customer_id", KeyRole.FOREIGN),
            col("customers", "id", KeyRole.PRIMARY),
        ]
        edges = [
            ForeignKeyEdge("orders", "customer_id", "customers", "uuid"),
            ForeignKeyEdge("orders", "customer_id", "Customers", "ID"),
        ]
        stats = {
            "orders": TableStats("orders", 2, 1),
            "customers": TableStats("customers", 1, 0),
        }

        with caplog.at_level(logging.WARNING):
            result = RelationshipClassifier(columns, stats).classify(edges)

        assert [c.referenced_column for c in result.classifications] == ["ID"]
        assert len(result.warnings) == 1
        assert result.warnings[0].code is WarningCode.MISSING_REFERENCED_COLUMN
        assert result.warnings[0].edge.referenced_column == "uuid"
        assert "uuid" in caplog.text

    def test_singular_parent_category_is_suppressed(self):
        """Test a singular referenced name still counts as a self reference."""
        columns = [col("categories", "id", KeyRole.PRIMARY), col("categories", "parent_category", KeyRole.FOREIGN)]
        edges = [ForeignKeyEdge("categories", "parent_category", "category", "id")]
        stats = {"categories": TableStats("categories", 2, 1)}

        result = RelationshipClassifier(columns, stats).classify(edges)

        assert result.classifications == []
        assert result.warnings[0].code is WarningCode.SELF_REFERENCE


class TestMixedCaseNames:
    """Tests for table names spelled differently across columns, stats and edges."""

    def test_explicit_stats_match_columns_case_insensitively(self):
        """Test explicit junction stats survive columns tagged with another spelling."""
        snapshot = SchemaSnapshot.from_dict({
            "schema": "app",
            "columns": [
                {"table": "User_Roles", "name": "user_id", "key_role": "foreign"},
                {"table": "User_Roles", "name": "role_id", "key_role": "foreign"},
                {"table": "users", "name": "id", "key_role": "primary"},
                {"table": "roles", "name": "id", "key_role": "primary"},
            ],
            "foreign_keys": [
                {"source_table": "user_roles", "source_column": "user_id",
                 "referenced_table": "users", "referenced_column": "id"},
                {"source_table": "user_roles", "source_column": "role_id",
                 "referenced_table": "roles", "referenced_column": "id"},
            ],
            "table_stats": [
                {"name": "user_roles", "total_column_count": 2, "foreign_key_column_count": 2},
            ],
        })

        result = classify_snapshot(snapshot)

        assert [c.kind for c in result.classifications] == [RelationshipKind.MANY_TO_MANY] * 2
        assert snapshot.tables == ["User_Roles", "users", "roles"]

    def test_edges_match_tables_in_any_case(self):
        """Test edge, column and stats names are matched without regard to case."""
        columns = [col("Orders", "Customer_ID", KeyRole.FOREIGN), col("CUSTOMERS", "id", KeyRole.PRIMARY)]
        edges = [ForeignKeyEdge("orders", "customer_id", "Customers", "Id")]
        stats = {
            "ORDERS": TableStats("ORDERS", 8, 1),
            "customers": TableStats("customers", 3, 0),
        }

        result = RelationshipClassifier(columns, stats).classify(edges)

        assert [c.kind for c in result.classifications] == [RelationshipKind.MANY_TO_ONE]
        assert result.warnings == []


class TestClassifySnapshot:
    """Tests for snapshot-level classification."""

    def test_warnings_are_reported(self, shop_snapshot):
        """Test dropped self references are reported as warnings."""
        result = classify_snapshot(shop_snapshot)

        assert len(result.classifications) == 4
        assert [w.code for w in result.warnings] == [WarningCode.SELF_REFERENCE]

    def test_keep_self_references(self, shop_snapshot):
        """Test self references are tagged instead of dropped on request."""
        result = classify_snapshot(shop_snapshot, keep_self_references=True)

        employees = result.for_table("employees")
        assert len(employees) == 1
        assert employees[0].kind is RelationshipKind.SELF_REFERENCING
        assert employees[0].cardinality == "SELF"
        assert result.warnings == []
