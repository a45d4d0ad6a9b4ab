"""Pydantic models for tables and explores.

an explore is the unit of querying: one base table plus any number of joined
tables. all the fields of all its tables live in one flat namespace keyed by
field id, so "orders_status" and "customers_country" can sit side by side
in a single query.
"""

from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from exploreql.errors import DuplicateFieldIdError, UnknownFieldError
from exploreql.models.field import Dimension, Field as AnyField, Measure, field_id


def _fill_field_identity(fields: Any, table_name: Any) -> Any:
    # definitions usually key fields by name and leave name/table implicit
    if not isinstance(fields, dict):
        return fields
    filled = {}
    for key, value in fields.items():
        if isinstance(value, dict):
            value = {"name": key, "table": table_name, **value}
        filled[key] = value
    return filled


class Table(BaseModel):
    """A table in an explore, backed by a single warehouse relation."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    name: str  # sql friendly (a-z, 0-9, _) since it doubles as the alias
    sql_table: str  # the warehouse identifier, e.g. "analytics.orders"
    description: str | None = None
    dimensions: dict[str, Dimension] = Field(default_factory=dict)
    measures: dict[str, Measure] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def fill_field_names(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            table_name = data.get("name")
            for key in ("dimensions", "measures"):
                if key in data:
                    data[key] = _fill_field_identity(data[key], table_name)
        return data

    @model_validator(mode="after")
    def validate_fields(self) -> Self:
        """Mapping keys, field names and owning table must all agree."""
        for kind, fields in (("dimension", self.dimensions), ("measure", self.measures)):
            for key, field in fields.items():
                if field.name != key:
                    raise ValueError(
                        f"Table '{self.name}' {kind} key '{key}' does not match "
                        f"field name '{field.name}'"
                    )
                if field.table != self.name:
                    raise ValueError(
                        f"Table '{self.name}' {kind} '{key}' claims to belong to "
                        f"table '{field.table}'"
                    )
        return self


class ExploreJoin(BaseModel):
    """A table joined onto the explore's base table.

    sql_on is templated with the table names in the explore, e.g.
    "${orders}.customer_id = ${customers}.id".
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    table: str
    sql_on: str


class Explore(BaseModel):
    """A named, queryable join graph over one or more tables."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    name: str
    base_table: str
    joined_tables: list[ExploreJoin] = Field(default_factory=list)
    tables: dict[str, Table]

    @model_validator(mode="before")
    @classmethod
    def fill_table_names(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("tables"), dict):
            data = dict(data)
            data["tables"] = {
                key: {"name": key, **value} if isinstance(value, dict) else value
                for key, value in data["tables"].items()
            }
        return data

    @model_validator(mode="after")
    def validate_tables(self) -> Self:
        """Check table references and field id uniqueness.

        a field id collision raises DuplicateFieldIdError, which pydantic
        lets through unwrapped since it isn't a ValueError.
        """
        for key, table in self.tables.items():
            if table.name != key:
                raise ValueError(f"Table key '{key}' does not match table name '{table.name}'")

        if self.base_table not in self.tables:
            raise ValueError(
                f"Explore '{self.name}' base table '{self.base_table}' is not in tables"
            )

        seen_joins = set()
        for join in self.joined_tables:
            if join.table not in self.tables:
                raise ValueError(
                    f"Explore '{self.name}' joins table '{join.table}' which is not in tables"
                )
            if join.table == self.base_table or join.table in seen_joins:
                raise ValueError(
                    f"Explore '{self.name}' joins table '{join.table}' more than once"
                )
            seen_joins.add(join.table)

        # single pass, fail on the first collision
        seen_ids: set[str] = set()
        for field in get_fields(self):
            fid = field_id(field)
            if fid in seen_ids:
                raise DuplicateFieldIdError(fid, field.table, field.name)
            seen_ids.add(fid)
        return self

    def get_dimensions(self) -> list[Dimension]:
        return get_dimensions(self)

    def get_measures(self) -> list[Measure]:
        return get_measures(self)

    def get_fields(self) -> list[AnyField]:
        return get_fields(self)

    def get_field(self, fid: str) -> AnyField:
        """Look up a field by id, raising UnknownFieldError if it isn't here."""
        for field in get_fields(self):
            if field_id(field) == fid:
                return field
        raise UnknownFieldError(fid, self.name)

    def get_dimension(self, fid: str) -> Dimension:
        field = self.get_field(fid)
        if not isinstance(field, Dimension):
            raise UnknownFieldError(fid, self.name, reason="field is a measure, not a dimension")
        return field

    def get_measure(self, fid: str) -> Measure:
        field = self.get_field(fid)
        if not isinstance(field, Measure):
            raise UnknownFieldError(fid, self.name, reason="field is a dimension, not a measure")
        return field

    def is_joined(self, table_name: str) -> bool:
        """True for the base table and every declared join."""
        return table_name == self.base_table or any(
            join.table == table_name for join in self.joined_tables
        )


def get_dimensions(explore: Explore) -> list[Dimension]:
    """All dimensions across every table of the explore."""
    return [dim for table in explore.tables.values() for dim in table.dimensions.values()]


def get_measures(explore: Explore) -> list[Measure]:
    """All measures across every table of the explore."""
    return [m for table in explore.tables.values() for m in table.measures.values()]


def get_fields(explore: Explore) -> list[AnyField]:
    return [*get_dimensions(explore), *get_measures(explore)]
