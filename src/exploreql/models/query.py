"""Pydantic models for metric queries and results.

there are two shapes of query here:
  - MetricQuery holds full field objects and is what the compiler consumes
  - SavedMetricQuery is the wire/persisted form that only carries field ids

resolve_metric_query turns the second into the first against an explore.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from exploreql.models.explore import Explore
from exploreql.models.field import Dimension, Measure, field_id
from exploreql.models.filters import FilterGroup, NumberFilterGroup, StringFilterGroup

DEFAULT_LIMIT = 500


class Direction(str, Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"


class SortField(BaseModel):
    """Sort by a field - the field must exist in the explore."""

    model_config = ConfigDict(frozen=True)

    field: Dimension | Measure
    direction: Direction = Direction.ASCENDING


class MetricQuery(BaseModel):
    """A request to compute dimensions and measures over one explore.

    validation against the explore happens in the compiler, not here, so a
    query can be built incrementally and still report precise errors.
    """

    model_config = ConfigDict(frozen=True)

    explore: Explore
    dimensions: list[Dimension] = Field(default_factory=list)
    measures: list[Measure] = Field(default_factory=list)
    filters: list[FilterGroup] = Field(default_factory=list)  # ANDed together
    sorts: list[SortField] = Field(default_factory=list)
    limit: int | None = None  # required by the compiler


class SavedSortField(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    field_id: str
    descending: bool = False


class SavedMetricQuery(BaseModel):
    """The id-only form of a query, as the explorer state and saved queries hold it."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    dimensions: list[str] = Field(default_factory=list)
    metrics: list[str] = Field(default_factory=list)  # measure field ids
    filters: list[FilterGroup] = Field(default_factory=list)
    sorts: list[SavedSortField] = Field(default_factory=list)
    limit: int = DEFAULT_LIMIT


class SavedQuery(BaseModel):
    """A saved query record: a query plus the explore it runs against."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    uuid: str | None = None
    name: str
    table_name: str  # the explore name
    metric_query: SavedMetricQuery
    chart_config: dict[str, Any] = Field(default_factory=dict)


class QueryResult(BaseModel):
    """Result of running a compiled query.

    the sql travels with the data so it's always possible to see what ran.
    """

    sql: str
    columns: list[str]
    data: list[dict]
    row_count: int
    execution_time_ms: float


def resolve_metric_query(explore: Explore, saved: SavedMetricQuery) -> MetricQuery:
    """Swap the field ids in a saved query for the explore's field objects.

    filter dimensions are re-resolved too, so a stale copy of a dimension in
    a persisted filter picks up the explore's current definition.
    """
    dimensions = [explore.get_dimension(fid) for fid in saved.dimensions]
    measures = [explore.get_measure(fid) for fid in saved.metrics]

    filters: list[StringFilterGroup | NumberFilterGroup] = []
    for group in saved.filters:
        dimension = explore.get_dimension(field_id(group.dimension))
        filters.append(type(group).model_validate({**group.model_dump(), "dimension": dimension}))

    sorts = [
        SortField(
            field=explore.get_field(sort.field_id),
            direction=Direction.DESCENDING if sort.descending else Direction.ASCENDING,
        )
        for sort in saved.sorts
    ]

    return MetricQuery(
        explore=explore,
        dimensions=dimensions,
        measures=measures,
        filters=filters,
        sorts=sorts,
        limit=saved.limit,
    )


def to_saved_metric_query(query: MetricQuery) -> SavedMetricQuery:
    """Reduce a MetricQuery to its id-only form."""
    return SavedMetricQuery(
        dimensions=[field_id(d) for d in query.dimensions],
        metrics=[field_id(m) for m in query.measures],
        filters=query.filters,
        sorts=[
            SavedSortField(
                field_id=field_id(s.field),
                descending=s.direction == Direction.DESCENDING,
            )
            for s in query.sorts
        ],
        limit=query.limit if query.limit is not None else DEFAULT_LIMIT,
    )
