"""Tests for the explore loader and schema introspection."""

import json
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from exploreql.errors import DuplicateFieldIdError
from exploreql.executor.duckdb_executor import DuckDBExecutor
from exploreql.models.field import DimensionType, MeasureType
from exploreql.parser.introspect import explore_from_schema, introspect_tables, table_from_schema
from exploreql.parser.loader import ExploreRegistry, explore_to_dict


class TestExploreRegistry:
    def test_load_directory(self, registry: ExploreRegistry):
        """Can load every explore from a directory."""
        assert set(registry.explores) == {"orders", "customers"}

    def test_loaded_explore(self, registry: ExploreRegistry):
        orders = registry.get_explore("orders")
        assert orders.base_table == "orders"
        assert [j.table for j in orders.joined_tables] == ["customers"]
        assert orders.get_field("orders_status").description == "Order status"
        assert orders.get_field("orders_unique_customers").type == MeasureType.COUNT_DISTINCT

    def test_get_unknown_explore(self, registry: ExploreRegistry):
        with pytest.raises(KeyError, match="Unknown explore"):
            registry.get_explore("nonexistent")

    def test_missing_directory(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            ExploreRegistry().load_directory(tmp_path / "nope")

    def test_empty_directory(self, tmp_path: Path):
        with pytest.raises(ValueError, match="No explore definition files"):
            ExploreRegistry().load_directory(tmp_path)

    def test_empty_file_ignored(self, explores_dir: Path):
        (explores_dir / "empty.yml").write_text("")
        registry = ExploreRegistry()
        registry.load_directory(explores_dir)
        assert len(registry.explores) == 2

    def test_json_file(self, tmp_path: Path, explore_data: dict):
        (tmp_path / "orders.json").write_text(json.dumps({"explores": [explore_data]}))
        registry = ExploreRegistry()
        registry.load_directory(tmp_path)
        assert registry.get_explore("orders").is_joined("customers")

    def test_nested_directories(self, explores_dir: Path, explore_data: dict):
        nested = explores_dir / "nested"
        nested.mkdir()
        explore_data["name"] = "orders_full"
        (nested / "full.yaml").write_text(yaml.safe_dump({"explores": [explore_data]}))

        registry = ExploreRegistry()
        registry.load_directory(explores_dir)
        assert "orders_full" in registry.explores

    def test_duplicate_explore(self, explores_dir: Path, sample_explores_yaml: str):
        (explores_dir / "again.yaml").write_text(sample_explores_yaml)
        with pytest.raises(ValueError, match="Duplicate explore"):
            ExploreRegistry().load_directory(explores_dir)

    def test_top_level_list_rejected(self, tmp_path: Path):
        (tmp_path / "bad.yaml").write_text("- name: orders\n")
        with pytest.raises(ValueError, match="Expected a mapping"):
            ExploreRegistry().load_directory(tmp_path)

    def test_invalid_explore_rejected(self, tmp_path: Path):
        (tmp_path / "bad.yaml").write_text(
            "explores:\n  - name: broken\n    baseTable: missing\n    tables: {}\n"
        )
        with pytest.raises(ValidationError):
            ExploreRegistry().load_directory(tmp_path)

    def test_duplicate_field_id_in_file(self, tmp_path: Path, explore_data: dict):
        explore_data["tables"]["orders"]["measures"]["status"] = {
            "type": "count",
            "sql": "${TABLE}.status",
        }
        (tmp_path / "dup.yaml").write_text(yaml.safe_dump({"explores": [explore_data]}))
        with pytest.raises(DuplicateFieldIdError):
            ExploreRegistry().load_directory(tmp_path)

    def test_explore_to_dict_round_trips(self, registry: ExploreRegistry):
        orders = registry.get_explore("orders")
        data = explore_to_dict(orders)

        assert data["baseTable"] == "orders"
        assert data["joinedTables"][0]["sqlOn"] == "${orders}.customer_id = ${customers}.id"
        assert ExploreRegistry.parse_explore(data) == orders


class TestIntrospect:
    def test_table_from_schema(self):
        table = table_from_schema(
            "orders",
            [("order_id", "INTEGER"), ("status", "VARCHAR"), ("created_at", "DATE")],
            sql_table="analytics.orders",
        )

        assert table.sql_table == "analytics.orders"
        assert table.dimensions["order_id"].type == DimensionType.NUMBER
        assert table.dimensions["status"].sql == "${TABLE}.status"
        assert table.dimensions["created_at"].type == DimensionType.DATE
        assert table.dimensions["created_at"].description == "Created at"
        assert table.measures["count"].type == MeasureType.COUNT

    def test_count_name_collision(self):
        table = table_from_schema("events", [("count", "BIGINT")])
        assert "count" in table.dimensions
        assert "count_rows" in table.measures

    def test_explore_from_schema(self):
        explore = explore_from_schema("customers", [("id", "INTEGER"), ("country", "TEXT")])

        assert explore.name == "customers"
        assert explore.base_table == "customers"
        assert explore.joined_tables == []
        assert {f.field_id for f in explore.get_fields()} == {
            "customers_id",
            "customers_country",
            "customers_count",
        }

    def test_introspect_tables(self, db_with_data: DuckDBExecutor):
        orders, customers = introspect_tables(db_with_data, ["orders", "customers"])

        assert orders.get_dimension("orders_is_paid").type == DimensionType.BOOLEAN
        assert orders.get_dimension("orders_amount").type == DimensionType.NUMBER
        assert {f.field_id for f in customers.get_dimensions()} == {
            "customers_id",
            "customers_country",
            "customers_age",
        }

    def test_introspect_unknown_table(self, db_with_data: DuckDBExecutor):
        with pytest.raises(KeyError, match="nope"):
            introspect_tables(db_with_data, ["nope"])
