"""Pytest fixtures for ExploreQL tests."""

from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest

from exploreql.executor.duckdb_executor import DuckDBExecutor
from exploreql.models.explore import Explore
from exploreql.parser.loader import ExploreRegistry
from exploreql.settings import Settings
from exploreql.store import ExploreStore


@pytest.fixture
def explore_data() -> dict[str, Any]:
    """Orders explore in its camelCase wire shape.

    customers is joined, products is defined but never joined - handy for
    missing join tests.
    """
    return {
        "name": "orders",
        "baseTable": "orders",
        "joinedTables": [
            {"table": "customers", "sqlOn": "${orders}.customer_id = ${customers}.id"},
        ],
        "tables": {
            "orders": {
                "sqlTable": "orders",
                "description": "One row per order",
                "dimensions": {
                    "status": {"type": "string", "sql": "${TABLE}.status"},
                    "amount": {"type": "number", "sql": "${TABLE}.amount"},
                    "created": {"type": "date", "sql": "${TABLE}.created_at"},
                    "is_paid": {"type": "boolean", "sql": "${TABLE}.is_paid"},
                },
                "measures": {
                    "total": {"type": "sum", "sql": "${TABLE}.amount"},
                    "count": {"type": "count", "sql": "${TABLE}.order_id"},
                    "unique_customers": {
                        "type": "count_distinct",
                        "sql": "${TABLE}.customer_id",
                    },
                    "average_amount": {"type": "average", "sql": "${TABLE}.amount"},
                },
            },
            "customers": {
                "sqlTable": "customers",
                "dimensions": {
                    "country": {"type": "string", "sql": "${TABLE}.country"},
                    "age": {"type": "number", "sql": "${TABLE}.age"},
                },
                "measures": {},
            },
            "products": {
                "sqlTable": "products",
                "dimensions": {
                    "category": {"type": "string", "sql": "${TABLE}.category"},
                },
                "measures": {},
            },
        },
    }


@pytest.fixture
def explore(explore_data: dict[str, Any]) -> Explore:
    return Explore.model_validate(explore_data)


@pytest.fixture
def sample_explores_yaml() -> str:
    """Sample explore YAML content for testing."""
    return """
explores:
  - name: orders
    baseTable: orders
    joinedTables:
      - table: customers
        sqlOn: ${orders}.customer_id = ${customers}.id
    tables:
      orders:
        sqlTable: orders
        dimensions:
          status:
            type: string
            sql: ${TABLE}.status
            description: "Order status"
          amount:
            type: number
            sql: ${TABLE}.amount
          created:
            type: date
            sql: ${TABLE}.created_at
        measures:
          total:
            type: sum
            sql: ${TABLE}.amount
            description: "Total order amount"
          count:
            type: count
            sql: ${TABLE}.order_id
          unique_customers:
            type: count_distinct
            sql: ${TABLE}.customer_id
          average_amount:
            type: average
            sql: ${TABLE}.amount
      customers:
        sqlTable: customers
        dimensions:
          country:
            type: string
            sql: ${TABLE}.country
          age:
            type: number
            sql: ${TABLE}.age
        measures: {}

  - name: customers
    baseTable: customers
    tables:
      customers:
        sqlTable: customers
        dimensions:
          country:
            type: string
            sql: ${TABLE}.country
        measures:
          count:
            type: count
            sql: ${TABLE}.id
"""


@pytest.fixture
def explores_dir(tmp_path: Path, sample_explores_yaml: str) -> Path:
    """Create a temporary explores directory with sample YAML."""
    explores_path = tmp_path / "explores"
    explores_path.mkdir()
    (explores_path / "test.yaml").write_text(sample_explores_yaml)
    return explores_path


@pytest.fixture
def registry(explores_dir: Path) -> ExploreRegistry:
    reg = ExploreRegistry()
    reg.load_directory(explores_dir)
    return reg


@pytest.fixture
def sample_orders_data() -> list[tuple]:
    return [
        (1, 1, 100.0, "paid", "2024-01-15", True),
        (2, 2, 150.0, "paid", "2024-01-16", True),
        (3, 1, 200.0, "pending", "2024-01-17", False),
        (4, 3, 75.0, "paid", "2024-02-01", True),
        (5, 4, 300.0, "cancelled", "2024-02-10", False),
        (6, 2, 50.0, "paid", "2024-03-01", True),
    ]


@pytest.fixture
def sample_customers_data() -> list[tuple]:
    return [
        (1, "US", 34),
        (2, "UK", 28),
        (3, "US", 45),
        (4, "DE", 52),
    ]


def _load_sample_tables(
    executor: DuckDBExecutor, orders: list[tuple], customers: list[tuple]
) -> None:
    executor.conn.execute("""
        CREATE TABLE orders (
            order_id INTEGER,
            customer_id INTEGER,
            amount DOUBLE,
            status VARCHAR,
            created_at DATE,
            is_paid BOOLEAN
        )
    """)
    executor.conn.executemany("INSERT INTO orders VALUES (?, ?, ?, ?, ?, ?)", orders)

    executor.conn.execute("""
        CREATE TABLE customers (
            id INTEGER,
            country VARCHAR,
            age INTEGER
        )
    """)
    executor.conn.executemany("INSERT INTO customers VALUES (?, ?, ?)", customers)


@pytest.fixture
def db_with_data(
    sample_orders_data: list[tuple], sample_customers_data: list[tuple]
) -> Generator[DuckDBExecutor, None, None]:
    executor = DuckDBExecutor()
    _load_sample_tables(executor, sample_orders_data, sample_customers_data)
    yield executor
    executor.close()


@pytest.fixture
def settings() -> Settings:
    return Settings(dialect="duckdb", default_limit=500, pretty_sql=False)


@pytest.fixture
def store_with_data(
    explores_dir: Path,
    settings: Settings,
    sample_orders_data: list[tuple],
    sample_customers_data: list[tuple],
) -> Generator[ExploreStore, None, None]:
    store = ExploreStore(explores_dir, settings=settings)
    _load_sample_tables(store.executor, sample_orders_data, sample_customers_data)
    yield store
    store.close()
