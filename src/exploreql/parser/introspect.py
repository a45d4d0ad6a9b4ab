"""Build explores from warehouse table schemas.

a quick way to get started: every column becomes a dimension with a type
guessed from its native column type, plus a row count measure.
"""

import logging

from exploreql.executor.duckdb_executor import DuckDBExecutor
from exploreql.models.explore import Explore, Table
from exploreql.models.field import (
    Dimension,
    Measure,
    MeasureType,
    friendly_name,
    map_column_type_to_dimension_type,
)

logger = logging.getLogger(__name__)


def table_from_schema(
    name: str, columns: list[tuple[str, str]], sql_table: str | None = None
) -> Table:
    """Build a table from (column_name, column_type) pairs."""
    dimensions = {
        column: Dimension(
            type=map_column_type_to_dimension_type(column_type),
            name=column,
            table=name,
            sql=f"${{TABLE}}.{column}",
            description=friendly_name(column) or None,
        )
        for column, column_type in columns
    }

    # the count measure can't share a name with a column dimension
    count_name = "count"
    while count_name in dimensions:
        count_name = f"{count_name}_rows"

    measures = {
        count_name: Measure(
            type=MeasureType.COUNT,
            name=count_name,
            table=name,
            sql="*",
            description="Number of rows",
        )
    }
    return Table(
        name=name,
        sql_table=sql_table or name,
        dimensions=dimensions,
        measures=measures,
    )


def explore_from_schema(
    name: str, columns: list[tuple[str, str]], sql_table: str | None = None
) -> Explore:
    """Build a single-table explore from a table's schema."""
    table = table_from_schema(name, columns, sql_table)
    return Explore(name=name, base_table=name, joined_tables=[], tables={name: table})


def introspect_tables(executor: DuckDBExecutor, table_names: list[str]) -> list[Explore]:
    """Generate single-table explores from tables in the database.

    raises KeyError for a table the database doesn't have.
    """
    explores = []
    for table_name in table_names:
        columns = executor.get_table_schema(table_name)
        explores.append(explore_from_schema(table_name, columns))
        logger.info("Introspected %s (%d columns)", table_name, len(columns))
    return explores
