"""Pydantic models for ExploreQL."""

from exploreql.models.explore import (
    Explore,
    ExploreJoin,
    Table,
    get_dimensions,
    get_fields,
    get_measures,
)
from exploreql.models.field import (
    Dimension,
    DimensionType,
    Field,
    Measure,
    MeasureType,
    field_id,
    friendly_name,
    is_dimension,
    map_column_type_to_dimension_type,
)
from exploreql.models.filters import (
    FilterGroup,
    FilterGroupOperator,
    NumberFilterGroup,
    StringFilterGroup,
    assert_filterable_dimension,
    filterable_dimensions_only,
    new_filter_group,
)
from exploreql.models.query import (
    Direction,
    MetricQuery,
    QueryResult,
    SavedMetricQuery,
    SavedQuery,
    SavedSortField,
    SortField,
    resolve_metric_query,
)
from exploreql.models.state import ExplorerState

__all__ = [
    "Dimension",
    "DimensionType",
    "Direction",
    "Explore",
    "ExploreJoin",
    "ExplorerState",
    "Field",
    "FilterGroup",
    "FilterGroupOperator",
    "Measure",
    "MeasureType",
    "MetricQuery",
    "NumberFilterGroup",
    "QueryResult",
    "SavedMetricQuery",
    "SavedQuery",
    "SavedSortField",
    "SortField",
    "StringFilterGroup",
    "Table",
    "assert_filterable_dimension",
    "field_id",
    "filterable_dimensions_only",
    "friendly_name",
    "get_dimensions",
    "get_fields",
    "get_measures",
    "is_dimension",
    "map_column_type_to_dimension_type",
    "new_filter_group",
    "resolve_metric_query",
]
