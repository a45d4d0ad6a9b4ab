"""Tests for CLI commands."""

import json
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from exploreql.cli.main import app
from exploreql.executor.duckdb_executor import DuckDBExecutor
from exploreql.store import ExploreStore

runner = CliRunner()


@pytest.fixture
def db_file(tmp_path: Path, sample_orders_data: list[tuple], sample_customers_data: list[tuple]) -> str:
    """A DuckDB file holding the sample orders and customers."""
    path = str(tmp_path / "sample.duckdb")
    with DuckDBExecutor(path) as executor:
        executor.conn.execute(
            "CREATE TABLE orders (order_id INTEGER, customer_id INTEGER, amount DOUBLE, "
            "status VARCHAR, created_at DATE, is_paid BOOLEAN)"
        )
        executor.conn.executemany(
            "INSERT INTO orders VALUES (?, ?, ?, ?, ?, ?)", sample_orders_data
        )
        executor.conn.execute("CREATE TABLE customers (id INTEGER, country VARCHAR, age INTEGER)")
        executor.conn.executemany("INSERT INTO customers VALUES (?, ?, ?)", sample_customers_data)
    return path


class TestCLIList:
    def test_list_explores(self, explores_dir: Path):
        """Can list explores via CLI."""
        result = runner.invoke(app, ["list", "explores", "--dir", str(explores_dir)])
        assert result.exit_code == 0
        assert "orders" in result.stdout
        assert "customers" in result.stdout

    def test_list_dimensions(self, explores_dir: Path):
        """Can list dimensions via CLI."""
        result = runner.invoke(
            app, ["list", "dimensions", "--dir", str(explores_dir), "--explore", "orders"]
        )
        assert result.exit_code == 0
        assert "orders_status" in result.stdout

    def test_list_measures(self, explores_dir: Path):
        """Can list measures via CLI."""
        result = runner.invoke(app, ["list", "measures", "--dir", str(explores_dir)])
        assert result.exit_code == 0
        assert "orders_total" in result.stdout

    def test_list_invalid_type(self, explores_dir: Path):
        """Reports error for invalid list type."""
        result = runner.invoke(app, ["list", "invalid", "--dir", str(explores_dir)])
        assert result.exit_code == 1
        assert "unknown type" in result.stdout.lower()

    def test_list_unknown_explore(self, explores_dir: Path):
        result = runner.invoke(
            app, ["list", "dimensions", "--dir", str(explores_dir), "--explore", "nope"]
        )
        assert result.exit_code == 1
        assert "unknown explore" in result.stdout.lower()

    def test_list_nonexistent_directory(self, tmp_path: Path):
        """Reports error for nonexistent directory."""
        result = runner.invoke(app, ["list", "explores", "--dir", str(tmp_path / "nope")])
        assert result.exit_code == 1
        assert "error" in result.stdout.lower()


class TestCLIValidate:
    def test_validate_success(self, explores_dir: Path):
        """Validate passes for valid explores."""
        result = runner.invoke(app, ["validate", "--dir", str(explores_dir)])
        assert result.exit_code == 0
        assert "Validated 2 explores and 11 fields successfully!" in result.stdout

    def test_validate_failure(self, tmp_path: Path):
        (tmp_path / "bad.yaml").write_text(
            """
explores:
  - name: orders
    baseTable: orders
    tables:
      orders:
        sqlTable: orders
        dimensions:
          status:
            type: string
            sql: ${TABEL}.status
"""
        )
        result = runner.invoke(app, ["validate", "--dir", str(tmp_path)])
        assert result.exit_code == 1
        assert "validation failed" in result.stdout.lower()

    def test_validate_nonexistent_directory(self, tmp_path: Path):
        """Validate fails for nonexistent directory."""
        result = runner.invoke(app, ["validate", "--dir", str(tmp_path / "nope")])
        assert result.exit_code == 1


class TestCLIShowSQL:
    def test_show_sql(self, explores_dir: Path):
        """Plain output is exactly the compiled SQL."""
        result = runner.invoke(
            app,
            [
                "show-sql",
                "orders",
                "--dir",
                str(explores_dir),
                "-g",
                "orders_status",
                "-m",
                "orders_total",
                "-f",
                "orders_status=paid",
                "--sort",
                "-orders_status",
                "-l",
                "10",
                "--plain",
            ],
        )
        assert result.exit_code == 0
        assert (
            "SELECT\n"
            "  orders.status AS orders_status,\n"
            "  SUM(orders.amount) AS orders_total\n"
            "FROM orders AS orders\n"
            "WHERE (orders.status IN ('paid'))\n"
            "GROUP BY orders_status\n"
            "ORDER BY orders_status DESC\n"
            "LIMIT 10"
        ) in result.stdout

    def test_show_sql_dialect(self, explores_dir: Path):
        result = runner.invoke(
            app,
            [
                "show-sql",
                "orders",
                "--dir",
                str(explores_dir),
                "-g",
                "orders_status,customers_country",
                "-m",
                "orders_total",
                "--dialect",
                "redshift",
                "--plain",
            ],
        )
        assert result.exit_code == 0
        assert "GROUP BY 1, 2" in result.stdout
        assert "LEFT JOIN customers AS customers" in result.stdout

    def test_show_sql_multiple_filters(self, explores_dir: Path):
        result = runner.invoke(
            app,
            [
                "show-sql",
                "orders",
                "--dir",
                str(explores_dir),
                "-m",
                "orders_count",
                "-f",
                "orders_status!=cancelled;orders_amount>50",
                "--plain",
            ],
        )
        assert result.exit_code == 0
        assert (
            "WHERE (orders.status NOT IN ('cancelled')) AND (orders.amount > 50)"
            in result.stdout
        )

    def test_show_sql_highlighted(self, explores_dir: Path):
        result = runner.invoke(
            app, ["show-sql", "orders", "--dir", str(explores_dir), "-m", "orders_total"]
        )
        assert result.exit_code == 0
        assert "SELECT" in result.stdout

    def test_show_sql_unknown_field(self, explores_dir: Path):
        """Reports error for unknown field."""
        result = runner.invoke(
            app, ["show-sql", "orders", "--dir", str(explores_dir), "-g", "orders_nope"]
        )
        assert result.exit_code == 1
        assert "error" in result.stdout.lower()

    def test_show_sql_empty_query(self, explores_dir: Path):
        result = runner.invoke(app, ["show-sql", "orders", "--dir", str(explores_dir)])
        assert result.exit_code == 1
        assert "at least one dimension or measure" in result.stdout

    def test_show_sql_unknown_dialect(self, explores_dir: Path):
        result = runner.invoke(
            app,
            ["show-sql", "orders", "--dir", str(explores_dir), "-m", "orders_total", "--dialect", "oracle"],
        )
        assert result.exit_code == 1


class TestCLIQuery:
    def test_query_json_output(self, explores_dir: Path, db_file: str):
        result = runner.invoke(
            app,
            [
                "query",
                "orders",
                "--dir",
                str(explores_dir),
                "--db",
                db_file,
                "-g",
                "orders_status",
                "-m",
                "orders_total",
                "--sort",
                "-orders_total",
                "--output",
                "json",
            ],
        )
        assert result.exit_code == 0
        assert json.loads(result.stdout) == [
            {"orders_status": "paid", "orders_total": 375.0},
            {"orders_status": "cancelled", "orders_total": 300.0},
            {"orders_status": "pending", "orders_total": 200.0},
        ]

    def test_query_table_output(self, explores_dir: Path, db_file: str):
        result = runner.invoke(
            app,
            ["query", "orders", "--dir", str(explores_dir), "--db", db_file, "-m", "orders_count"],
        )
        assert result.exit_code == 0
        assert "orders_count" in result.stdout
        assert "6" in result.stdout

    def test_query_with_show_sql(self, explores_dir: Path, db_file: str):
        result = runner.invoke(
            app,
            [
                "query",
                "orders",
                "--dir",
                str(explores_dir),
                "--db",
                db_file,
                "-m",
                "orders_total",
                "--sql",
            ],
        )
        assert result.exit_code == 0
        assert "SUM" in result.stdout

    def test_query_missing_table(self, explores_dir: Path):
        """In-memory database has no tables, so execution fails cleanly."""
        result = runner.invoke(
            app, ["query", "orders", "--dir", str(explores_dir), "-m", "orders_total"]
        )
        assert result.exit_code == 1
        assert "query error" in result.stdout.lower()


class TestCLIIntrospect:
    def test_introspect_to_stdout(self, db_file: str):
        result = runner.invoke(app, ["introspect", "orders,customers", "--db", db_file])
        assert result.exit_code == 0

        data = yaml.safe_load(result.stdout)
        names = [e["name"] for e in data["explores"]]
        assert names == ["orders", "customers"]
        orders = data["explores"][0]["tables"]["orders"]
        assert orders["dimensions"]["amount"]["type"] == "number"
        assert orders["dimensions"]["is_paid"]["type"] == "boolean"
        assert orders["measures"]["count"]["type"] == "count"

    def test_introspect_to_file(self, db_file: str, tmp_path: Path):
        out = tmp_path / "generated" / "customers.yaml"
        out.parent.mkdir()
        result = runner.invoke(
            app, ["introspect", "customers", "--db", db_file, "--output", str(out)]
        )
        assert result.exit_code == 0

        # generated definitions load straight back in
        check = runner.invoke(app, ["validate", "--dir", str(out.parent)])
        assert check.exit_code == 0

    def test_introspect_unknown_table(self, db_file: str):
        result = runner.invoke(app, ["introspect", "nope", "--db", db_file])
        assert result.exit_code == 1
        assert "introspection error" in result.stdout.lower()


class TestCLIStoreLifecycle:
    @pytest.mark.parametrize(
        "args",
        [
            ["list", "explores"],
            ["list", "invalid"],
            ["validate"],
            ["show-sql", "orders", "-m", "orders_total", "--plain"],
            ["show-sql", "orders"],
            ["query", "orders", "-m", "orders_total"],
        ],
    )
    def test_store_is_closed(self, explores_dir: Path, monkeypatch: pytest.MonkeyPatch, args):
        """Every command closes its store, whether it succeeds or fails."""
        closed = []
        monkeypatch.setattr(ExploreStore, "close", lambda self: closed.append(self))

        runner.invoke(app, [*args, "--dir", str(explores_dir)])
        assert len(closed) == 1


class TestCLIHelp:
    def test_main_help(self):
        """Main help works."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "explore" in result.stdout.lower()

    @pytest.mark.parametrize("command", ["list", "query", "validate", "show-sql", "introspect"])
    def test_command_help(self, command: str):
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0

    def test_verbose_flag(self, explores_dir: Path):
        result = runner.invoke(app, ["--verbose", "list", "explores", "--dir", str(explores_dir)])
        assert result.exit_code == 0
