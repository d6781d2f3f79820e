"""Shared fixtures: a small shop schema covering every relationship kind."""

import pytest

from relmap.models import Column, ForeignKeyEdge, KeyRole, SchemaSnapshot, TableStats


def col(table, name, key_role=KeyRole.NONE, data_type="int", nullable=True):
    return Column(table=table, name=name, data_type=data_type, key_role=key_role, nullable=nullable)


@pytest.fixture
def shop_columns():
    return [
        col("customers", "id", KeyRole.PRIMARY, nullable=False),
        col("customers", "name", data_type="varchar"),
        col("customers", "email", KeyRole.UNIQUE_INDEXED, data_type="varchar"),

        col("orders", "id", KeyRole.PRIMARY, nullable=False),
        col("orders", "customer_id", KeyRole.FOREIGN, nullable=False),
        col("orders", "status", data_type="varchar"),
        col("orders", "total", data_type="decimal"),
        col("orders", "currency", data_type="char"),
        col("orders", "notes", data_type="text"),
        col("orders", "created_at", data_type="datetime"),
        col("orders", "updated_at", data_type="datetime"),

        col("users", "id", KeyRole.PRIMARY, nullable=False),
        col("users", "name", data_type="varchar"),

        col("profiles", "id", KeyRole.PRIMARY, nullable=False),
        col("profiles", "user_id", KeyRole.UNIQUE_INDEXED),
        col("profiles", "bio", data_type="text"),

        col("roles", "id", KeyRole.PRIMARY, nullable=False),
        col("roles", "name", data_type="varchar"),

        col("user_roles", "user_id", KeyRole.FOREIGN, nullable=False),
        col("user_roles", "role_id", KeyRole.FOREIGN, nullable=False),

        col("employees", "id", KeyRole.PRIMARY, nullable=False),
        col("employees", "manager_id", KeyRole.FOREIGN),
        col("employees", "name", data_type="varchar"),
    ]


@pytest.fixture
def shop_foreign_keys():
    return [
        ForeignKeyEdge("orders", "customer_id", "customers", "id", "fk_orders_customer"),
        ForeignKeyEdge("profiles", "user_id", "users", "id", "fk_profiles_user"),
        ForeignKeyEdge("user_roles", "user_id", "users", "id", "fk_user_roles_user"),
        ForeignKeyEdge("user_roles", "role_id", "roles", "id", "fk_user_roles_role"),
        ForeignKeyEdge("employees", "manager_id", "employees", "id", "fk_employees_manager"),
    ]


@pytest.fixture
def shop_stats():
    return {
        "customers": TableStats("customers", 3, 0),
        "orders": TableStats("orders", 8, 1),
        "users": TableStats("users", 2, 0),
        "profiles": TableStats("profiles", 3, 1),
        "roles": TableStats("roles", 2, 0),
        "user_roles": TableStats("user_roles", 2, 2),
        "employees": TableStats("employees", 3, 1),
    }


@pytest.fixture
def shop_snapshot(shop_columns, shop_foreign_keys, shop_stats):
    return SchemaSnapshot(
        schema="shop",
        columns=shop_columns,
        foreign_keys=shop_foreign_keys,
        table_stats=dict(shop_stats),
    )
