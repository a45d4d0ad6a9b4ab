"""DuckDB query executor for ExploreQL.

runs compiled sql on an embedded duckdb database, in memory unless a file
path is given. other warehouses would implement the same
execute(sql) -> QueryResult shape.
"""

import logging
import time
from typing import Any

import duckdb

from exploreql.models.query import QueryResult

logger = logging.getLogger(__name__)


class DuckDBExecutor:
    """Execute queries against DuckDB.

    thin wrapper around duckdb that handles connection management
    and result formatting.
    """

    def __init__(self, database_path: str | None = None) -> None:
        """Initialize DuckDB connection.

        Args:
            database_path: Path to DuckDB file, or None for in-memory.
        """
        self.database_path = database_path
        self._conn: duckdb.DuckDBPyConnection | None = None  # lazy init

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        """Get or create the DuckDB connection."""
        if self._conn is None:
            self._conn = duckdb.connect(self.database_path or ":memory:")
        return self._conn

    def execute(self, sql: str) -> QueryResult:
        """Execute SQL and return structured results."""
        start = time.perf_counter()

        result = self.conn.execute(sql)
        columns = [desc[0] for desc in result.description]
        rows = result.fetchall()

        elapsed_ms = (time.perf_counter() - start) * 1000
        data = [dict(zip(columns, row)) for row in rows]
        logger.debug("Query returned %d rows in %.2fms", len(data), elapsed_ms)

        return QueryResult(
            sql=sql,
            columns=columns,
            data=data,
            row_count=len(data),
            execution_time_ms=round(elapsed_ms, 2),
        )

    def get_table_schema(self, table_name: str) -> list[tuple[str, str]]:
        """Get (column name, native type) pairs for a table.

        goes through information_schema with a bound parameter so the table
        name never gets spliced into the sql.
        """
        result = self.conn.execute(
            "SELECT column_name, data_type FROM information_schema.columns "
            "WHERE table_name = ? ORDER BY ordinal_position",
            [table_name],
        )
        columns = [(row[0], row[1]) for row in result.fetchall()]
        if not columns:
            raise KeyError(f"Unknown table: {table_name}")
        return columns

    def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "DuckDBExecutor":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
