"""Explorer state - the query a user is building, one click at a time.

every operation returns a new state instead of mutating, so callers can keep
the last-run ("pristine") state around and diff against it.

the invariant that matters to the compiler: sorts only ever reference active
fields. toggling a field off prunes its sort, and setting sorts drops any
that point at inactive fields.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from exploreql.models.filters import FilterGroup
from exploreql.models.query import DEFAULT_LIMIT, SavedMetricQuery, SavedSortField


def _toggle(values: list[str], value: str) -> list[str]:
    if value in values:
        return [v for v in values if v != value]
    return [*values, value]


def calc_column_order(column_order: list[str], field_ids: list[str]) -> list[str]:
    """Keep the known columns in their order, append any new ones at the end."""
    kept = [column for column in column_order if column in field_ids]
    missing = [fid for fid in field_ids if fid not in kept]
    return [*kept, *missing]


class ExplorerState(BaseModel):
    model_config = ConfigDict(frozen=True)

    table_name: str | None = None
    dimensions: list[str] = Field(default_factory=list)
    metrics: list[str] = Field(default_factory=list)
    filters: list[FilterGroup] = Field(default_factory=list)
    sorts: list[SavedSortField] = Field(default_factory=list)
    column_order: list[str] = Field(default_factory=list)
    limit: int = DEFAULT_LIMIT

    @property
    def active_fields(self) -> set[str]:
        return {*self.dimensions, *self.metrics}

    @property
    def is_valid_query(self) -> bool:
        return len(self.active_fields) > 0

    def set_table_name(self, table_name: str) -> "ExplorerState":
        return self.model_copy(update={"table_name": table_name})

    def toggle_dimension(self, field_id: str) -> "ExplorerState":
        dimensions = _toggle(self.dimensions, field_id)
        return self.model_copy(
            update={
                "dimensions": dimensions,
                "sorts": [s for s in self.sorts if s.field_id != field_id],
                "column_order": calc_column_order(self.column_order, [*dimensions, *self.metrics]),
            }
        )

    def toggle_metric(self, field_id: str) -> "ExplorerState":
        metrics = _toggle(self.metrics, field_id)
        return self.model_copy(
            update={
                "metrics": metrics,
                "sorts": [s for s in self.sorts if s.field_id != field_id],
                "column_order": calc_column_order(self.column_order, [*self.dimensions, *metrics]),
            }
        )

    def toggle_active_field(self, field_id: str, is_dimension: bool) -> "ExplorerState":
        if is_dimension:
            return self.toggle_dimension(field_id)
        return self.toggle_metric(field_id)

    def toggle_sort_field(self, field_id: str) -> "ExplorerState":
        """Cycle a field's sort: none -> ascending -> descending -> none.

        inactive fields can't be sorted, so toggling one is a no-op.
        """
        if field_id not in self.active_fields:
            return self

        existing = next((s for s in self.sorts if s.field_id == field_id), None)
        if existing is None:
            sorts = [*self.sorts, SavedSortField(field_id=field_id, descending=False)]
        else:
            sorts = []
            for sort in self.sorts:
                if sort.field_id != field_id:
                    sorts.append(sort)
                elif not sort.descending:
                    sorts.append(sort.model_copy(update={"descending": True}))
                # already descending: drop it
        return self.model_copy(update={"sorts": sorts})

    def set_sort_fields(self, sorts: list[SavedSortField]) -> "ExplorerState":
        active = self.active_fields
        return self.model_copy(update={"sorts": [s for s in sorts if s.field_id in active]})

    def set_row_limit(self, limit: int) -> "ExplorerState":
        return self.model_copy(update={"limit": limit})

    def set_filters(self, filters: list[FilterGroup]) -> "ExplorerState":
        return self.model_copy(update={"filters": list(filters)})

    def set_column_order(self, order: list[str]) -> "ExplorerState":
        return self.model_copy(
            update={"column_order": calc_column_order(order, [*self.dimensions, *self.metrics])}
        )

    def to_metric_query(self) -> SavedMetricQuery:
        """The id-only query this state describes, ready to resolve and compile."""
        return SavedMetricQuery(
            dimensions=list(self.dimensions),
            metrics=list(self.metrics),
            filters=list(self.filters),
            sorts=list(self.sorts),
            limit=self.limit,
        )


class DiffType(str, Enum):
    ADDED = "added"
    DELETED = "deleted"
    PRISTINE = "pristine"


def field_status(pristine: ExplorerState, current: ExplorerState, field_id: str) -> DiffType:
    """How a field's active status changed since the last run query."""
    was_active = field_id in pristine.active_fields
    is_active = field_id in current.active_fields
    if is_active and not was_active:
        return DiffType.ADDED
    if was_active and not is_active:
        return DiffType.DELETED
    return DiffType.PRISTINE
