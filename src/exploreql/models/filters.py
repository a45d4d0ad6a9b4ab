"""Pydantic models for filter groups and filters.

a filter group binds to exactly one dimension and combines a list of filters
with AND or OR. the filters available depend on the dimension type, which is
why string and number groups are separate classes rather than one generic one.
timestamp/date/boolean dimensions can't be filtered yet.
"""

from enum import Enum
from types import MappingProxyType
from typing import Annotated, Literal, Self, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from exploreql.models.field import Dimension, DimensionType

_FILTER_CONFIG = ConfigDict(frozen=True)


class FilterGroupOperator(str, Enum):
    AND = "and"
    OR = "or"


# --- filters shared by every filterable type ---


class IsNullFilter(BaseModel):
    model_config = _FILTER_CONFIG

    operator: Literal["isNull"] = "isNull"


class NotNullFilter(BaseModel):
    model_config = _FILTER_CONFIG

    operator: Literal["notNull"] = "notNull"


# --- string filters ---


class StringEqualsFilter(BaseModel):
    model_config = _FILTER_CONFIG

    operator: Literal["equals"] = "equals"
    values: list[str] = Field(default_factory=list)


class StringNotEqualsFilter(BaseModel):
    model_config = _FILTER_CONFIG

    operator: Literal["notEquals"] = "notEquals"
    values: list[str] = Field(default_factory=list)


class StartsWithFilter(BaseModel):
    model_config = _FILTER_CONFIG

    operator: Literal["startsWith"] = "startsWith"
    value: str = ""


StringFilter = Annotated[
    Union[StringEqualsFilter, StringNotEqualsFilter, StartsWithFilter, IsNullFilter, NotNullFilter],
    Field(discriminator="operator"),
]


# --- number filters ---


class NumberEqualsFilter(BaseModel):
    model_config = _FILTER_CONFIG

    operator: Literal["equals"] = "equals"
    values: list[int | float] = Field(default_factory=list)


class NumberNotEqualsFilter(BaseModel):
    model_config = _FILTER_CONFIG

    operator: Literal["notEquals"] = "notEquals"
    values: list[int | float] = Field(default_factory=list)


class GreaterThanFilter(BaseModel):
    model_config = _FILTER_CONFIG

    operator: Literal["greaterThan"] = "greaterThan"
    value: int | float = 0


class LessThanFilter(BaseModel):
    model_config = _FILTER_CONFIG

    operator: Literal["lessThan"] = "lessThan"
    value: int | float = 0


NumberFilter = Annotated[
    Union[
        NumberEqualsFilter,
        NumberNotEqualsFilter,
        GreaterThanFilter,
        LessThanFilter,
        IsNullFilter,
        NotNullFilter,
    ],
    Field(discriminator="operator"),
]


# --- groups ---


class StringFilterGroup(BaseModel):
    """Filters on a string dimension."""

    model_config = _FILTER_CONFIG

    type: Literal["string"] = "string"
    dimension: Dimension
    operator: FilterGroupOperator = FilterGroupOperator.AND
    filters: list[StringFilter] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_dimension_type(self) -> Self:
        if self.dimension.type != DimensionType.STRING:
            raise ValueError(
                f"String filter group needs a string dimension, "
                f"'{self.dimension.field_id}' is {self.dimension.type.value}"
            )
        return self


class NumberFilterGroup(BaseModel):
    """Filters on a number dimension."""

    model_config = _FILTER_CONFIG

    type: Literal["number"] = "number"
    dimension: Dimension
    operator: FilterGroupOperator = FilterGroupOperator.AND
    filters: list[NumberFilter] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_dimension_type(self) -> Self:
        if self.dimension.type != DimensionType.NUMBER:
            raise ValueError(
                f"Number filter group needs a number dimension, "
                f"'{self.dimension.field_id}' is {self.dimension.type.value}"
            )
        return self


FilterGroup = Annotated[Union[StringFilterGroup, NumberFilterGroup], Field(discriminator="type")]


def assert_filterable_dimension(dimension: Dimension) -> Dimension | None:
    """Return the dimension if it can be filtered, otherwise None.

    None is an expected answer here (timestamps, dates, booleans), not an error.
    """
    if dimension.type == DimensionType.STRING:
        return dimension
    elif dimension.type == DimensionType.NUMBER:
        return dimension
    return None


def filterable_dimensions_only(dimensions: list[Dimension]) -> list[Dimension]:
    """Keep the filterable dimensions, preserving order."""
    return [d for d in dimensions if assert_filterable_dimension(d) is not None]


# what a filter row resets to when the user switches its operator
DEFAULT_STRING_FILTERS = MappingProxyType(
    {
        "equals": StringEqualsFilter(values=[]),
        "notEquals": StringNotEqualsFilter(values=[]),
        "startsWith": StartsWithFilter(value=""),
        "isNull": IsNullFilter(),
        "notNull": NotNullFilter(),
    }
)

DEFAULT_NUMBER_FILTERS = MappingProxyType(
    {
        "equals": NumberEqualsFilter(values=[]),
        "notEquals": NumberNotEqualsFilter(values=[]),
        "greaterThan": GreaterThanFilter(value=0),
        "lessThan": LessThanFilter(value=0),
        "isNull": IsNullFilter(),
        "notNull": NotNullFilter(),
    }
)


def new_filter_group(dimension: Dimension) -> StringFilterGroup | NumberFilterGroup:
    """Start a filter group on a dimension with a single empty equals filter."""
    if dimension.type == DimensionType.STRING:
        return StringFilterGroup(dimension=dimension, filters=[DEFAULT_STRING_FILTERS["equals"]])
    elif dimension.type == DimensionType.NUMBER:
        return NumberFilterGroup(dimension=dimension, filters=[DEFAULT_NUMBER_FILTERS["equals"]])
    raise ValueError(f"Dimension '{dimension.field_id}' of type {dimension.type.value} is not filterable")
