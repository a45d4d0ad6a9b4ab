"""Main ExploreStore interface for ExploreQL."""

import logging
import re
from pathlib import Path
from typing import Any

from exploreql.compiler.sql_builder import SQLCompiler
from exploreql.errors import ExploreQLError
from exploreql.executor.duckdb_executor import DuckDBExecutor
from exploreql.models.explore import Explore
from exploreql.models.field import Dimension, DimensionType, field_id
from exploreql.models.filters import (
    FilterGroupOperator,
    NumberFilterGroup,
    StringFilterGroup,
    assert_filterable_dimension,
)
from exploreql.models.query import (
    MetricQuery,
    QueryResult,
    SavedMetricQuery,
    SavedQuery,
    SavedSortField,
    resolve_metric_query,
)
from exploreql.parser.loader import ExploreRegistry
from exploreql.settings import Settings

logger = logging.getLogger(__name__)

# "orders_status=paid|refunded", "orders_amount>100", "orders_status is not null"
_COMPARISON_PATTERN = re.compile(r"^\s*(\w+)\s*(!=|\^=|=|>|<)\s*(.*?)\s*$")
_NULL_PATTERN = re.compile(r"^\s*(\w+)\s+is\s+(not\s+)?null\s*$", re.IGNORECASE)

_OPERATOR_NAMES = {
    "=": "equals",
    "!=": "notEquals",
    "^=": "startsWith",
    ">": "greaterThan",
    "<": "lessThan",
}


def parse_sort(sort: str) -> SavedSortField:
    """Parse "field_id" (ascending) or "-field_id" (descending)."""
    sort = sort.strip()
    if sort.startswith("-"):
        return SavedSortField(field_id=sort[1:], descending=True)
    return SavedSortField(field_id=sort, descending=False)


def _parse_number(text: str) -> int | float:
    try:
        return int(text)
    except ValueError:
        try:
            return float(text)
        except ValueError:
            raise ValueError(f"Expected a number, got '{text}'") from None


def build_filter_group(
    dimension: Dimension,
    operator: str,
    values: list[str],
    group_operator: FilterGroupOperator = FilterGroupOperator.AND,
) -> StringFilterGroup | NumberFilterGroup:
    """Build a single-filter group from raw text values."""
    if assert_filterable_dimension(dimension) is None:
        raise ValueError(
            f"Dimension '{dimension.field_id}' of type {dimension.type.value} can't be filtered"
        )

    if operator in ("isNull", "notNull"):
        filter_data: dict[str, Any] = {"operator": operator}
    elif operator in ("equals", "notEquals"):
        if dimension.type == DimensionType.NUMBER:
            filter_data = {"operator": operator, "values": [_parse_number(v) for v in values]}
        else:
            filter_data = {"operator": operator, "values": values}
    else:
        if len(values) != 1:
            raise ValueError(f"Operator '{operator}' takes exactly one value")
        value: Any = values[0]
        if dimension.type == DimensionType.NUMBER:
            value = _parse_number(value)
        filter_data = {"operator": operator, "value": value}

    group_class = StringFilterGroup if dimension.type == DimensionType.STRING else NumberFilterGroup
    return group_class.model_validate(
        {"dimension": dimension, "operator": group_operator, "filters": [filter_data]}
    )


class ExploreStore:
    """Main interface for ExploreQL.

    ties together the registry, the compiler and an executor so callers can
    go from field ids straight to sql or rows.
    """

    def __init__(
        self,
        explores_path: str | Path | None = None,
        database_path: str | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the explore store.

        Args:
            explores_path: Directory containing explore definition files.
            database_path: Path to DuckDB file, or None for in-memory.
            settings: Settings to use, read from the environment if omitted.
        """
        self.settings = settings or Settings()
        self.explores_path = Path(explores_path or self.settings.explores_dir)
        self.registry = ExploreRegistry()
        self.compiler = SQLCompiler(self.settings.dialect, pretty=self.settings.pretty_sql)
        self.executor = DuckDBExecutor(database_path or self.settings.database_path)

        # load and validate upfront
        self.registry.load_directory(self.explores_path)

    def build_query(
        self,
        explore: str,
        dimensions: list[str] | None = None,
        measures: list[str] | None = None,
        filters: list[Any] | None = None,
        sorts: list[str] | None = None,
        limit: int | None = None,
    ) -> MetricQuery:
        """Build a MetricQuery from field ids.

        Args:
            explore: Name of the explore to query.
            dimensions: Dimension field ids to select.
            measures: Measure field ids to select.
            filters: Filter groups (objects or wire-shaped dicts).
            sorts: Field ids to sort by, prefix with "-" for descending.
            limit: Maximum rows, defaults to the configured default limit.
        """
        saved = SavedMetricQuery(
            dimensions=dimensions or [],
            metrics=measures or [],
            filters=filters or [],
            sorts=[parse_sort(s) for s in sorts or []],
            limit=self.settings.default_limit if limit is None else limit,
        )
        return resolve_metric_query(self.registry.get_explore(explore), saved)

    def get_sql(
        self,
        explore: str,
        dimensions: list[str] | None = None,
        measures: list[str] | None = None,
        filters: list[Any] | None = None,
        sorts: list[str] | None = None,
        limit: int | None = None,
    ) -> str:
        """Get the SQL without executing it."""
        query = self.build_query(explore, dimensions, measures, filters, sorts, limit)
        return self.compiler.compile(query)

    def query(
        self,
        explore: str,
        dimensions: list[str] | None = None,
        measures: list[str] | None = None,
        filters: list[Any] | None = None,
        sorts: list[str] | None = None,
        limit: int | None = None,
    ) -> QueryResult:
        """Compile and run a query."""
        sql = self.get_sql(explore, dimensions, measures, filters, sorts, limit)
        return self.executor.execute(sql)

    def compile_saved(self, saved_query: SavedQuery | dict[str, Any]) -> str:
        """Compile a saved query record (or its dict form)."""
        if not isinstance(saved_query, SavedQuery):
            saved_query = SavedQuery.model_validate(saved_query)
        explore = self.registry.get_explore(saved_query.table_name)
        query = resolve_metric_query(explore, saved_query.metric_query)
        return self.compiler.compile(query)

    def run_saved(self, saved_query: SavedQuery | dict[str, Any]) -> QueryResult:
        return self.executor.execute(self.compile_saved(saved_query))

    def parse_filter(self, explore: str, expression: str) -> StringFilterGroup | NumberFilterGroup:
        """Parse a filter expression like "orders_status=paid|refunded".

        supported: =, != (values separated by |), ^= (starts with), >, <,
        "is null" and "is not null".
        """
        explore_obj = self.registry.get_explore(explore)

        null_match = _NULL_PATTERN.match(expression)
        if null_match:
            dimension = explore_obj.get_dimension(null_match.group(1))
            operator = "notNull" if null_match.group(2) else "isNull"
            return build_filter_group(dimension, operator, [])

        match = _COMPARISON_PATTERN.match(expression)
        if not match:
            raise ValueError(f"Cannot parse filter: '{expression}'")
        fid, symbol, raw = match.groups()
        dimension = explore_obj.get_dimension(fid)
        operator = _OPERATOR_NAMES[symbol]
        values = raw.split("|") if operator in ("equals", "notEquals") else [raw]
        return build_filter_group(dimension, operator, values)

    def list_explores(self) -> list[dict]:
        """List all available explores."""
        return [
            {
                "name": e.name,
                "base_table": e.base_table,
                "joined_tables": [j.table for j in e.joined_tables],
                "fields": len(e.get_fields()),
            }
            for e in self.registry.explores.values()
        ]

    def _explores(self, explore: str | None) -> list[Explore]:
        if explore is None:
            return list(self.registry.explores.values())
        return [self.registry.get_explore(explore)]

    def list_dimensions(self, explore: str | None = None) -> list[dict]:
        """List dimensions, for one explore or all of them."""
        return [
            {
                "field_id": field_id(dim),
                "type": dim.type.value,
                "table": dim.table,
                "explore": e.name,
                "filterable": assert_filterable_dimension(dim) is not None,
                "description": dim.description,
            }
            for e in self._explores(explore)
            for dim in e.get_dimensions()
        ]

    def list_measures(self, explore: str | None = None) -> list[dict]:
        """List measures, for one explore or all of them."""
        return [
            {
                "field_id": field_id(measure),
                "type": measure.type.value,
                "table": measure.table,
                "explore": e.name,
                "description": measure.description,
            }
            for e in self._explores(explore)
            for measure in e.get_measures()
        ]

    def validate(self) -> list[str]:
        """Compile every field of every explore on its own. Returns list of errors.

        catches what load-time validation can't: broken templates and
        fields on tables the explore never joins.
        """
        errors = []
        for explore in self.registry.explores.values():
            for field in explore.get_fields():
                is_dim = isinstance(field, Dimension)
                query = MetricQuery(
                    explore=explore,
                    dimensions=[field] if is_dim else [],
                    measures=[] if is_dim else [field],
                    limit=1,
                )
                try:
                    self.compiler.compile(query)
                except ExploreQLError as e:
                    errors.append(f"Explore '{explore.name}' field '{field_id(field)}': {e}")
        if errors:
            logger.warning("Validation found %d broken fields", len(errors))
        return errors

    def close(self) -> None:
        """Close database connection."""
        self.executor.close()

    def __enter__(self) -> "ExploreStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
