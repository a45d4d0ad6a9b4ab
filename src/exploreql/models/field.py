"""Pydantic models for dimensions and measures.

every dimension and measure is a field. fields are addressed across the whole
explore by their field id, which is just "{table}_{name}" - simple enough to
use as a column alias in the generated sql.
"""

import re
from enum import Enum
from types import MappingProxyType
from typing import Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from exploreql.errors import UnsupportedFieldTypeError


class DimensionType(str, Enum):
    """Types of dimensions.

    the type drives which filter operators apply - only string and number
    dimensions can be filtered for now.
    """

    STRING = "string"
    NUMBER = "number"
    TIMESTAMP = "timestamp"
    DATE = "date"
    BOOLEAN = "boolean"


class MeasureType(str, Enum):
    """Supported aggregation types for measures."""

    AVERAGE = "average"
    COUNT = "count"
    COUNT_DISTINCT = "count_distinct"
    SUM = "sum"
    MIN = "min"
    MAX = "max"


class Dimension(BaseModel):
    """A dimension (groupable attribute) of a table.

    sql is a template - ${TABLE} is replaced with the owning table's alias
    at compile time, so "${TABLE}.status" becomes "orders.status".
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    type: DimensionType
    name: str  # unique within a table
    table: str  # name of the owning table in the explore
    sql: str
    description: str | None = None

    @property
    def field_id(self) -> str:
        return field_id(self)


class Measure(BaseModel):
    """A measure (aggregate) computed over a table."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    type: MeasureType
    name: str
    table: str
    sql: str  # the expression being aggregated, not the aggregate itself
    description: str | None = None

    @property
    def field_id(self) -> str:
        return field_id(self)


Field = Union[Dimension, Measure]


def field_id(field: Field) -> str:
    """Build the explore-wide id for a field."""
    return f"{field.table}_{field.name}"


def is_dimension(field: Field) -> bool:
    """Classify a field by its type tag.

    every tag is listed, an unlisted one raises UnsupportedFieldTypeError.
    """
    field_type = field.type
    # dimensions
    if field_type == DimensionType.STRING:
        return True
    elif field_type == DimensionType.NUMBER:
        return True
    elif field_type == DimensionType.TIMESTAMP:
        return True
    elif field_type == DimensionType.DATE:
        return True
    elif field_type == DimensionType.BOOLEAN:
        return True
    # measures
    elif field_type == MeasureType.AVERAGE:
        return False
    elif field_type == MeasureType.COUNT:
        return False
    elif field_type == MeasureType.COUNT_DISTINCT:
        return False
    elif field_type == MeasureType.SUM:
        return False
    elif field_type == MeasureType.MIN:
        return False
    elif field_type == MeasureType.MAX:
        return False
    raise UnsupportedFieldTypeError(field_type)


# native warehouse column types -> dimension types. used to autogenerate
# explore tables from database schemas. anything not listed becomes a string,
# which covers the awkward ones (TIMETZ, INTERVAL, BYTEA, geometric types...)
_COLUMN_TYPE_MAP: MappingProxyType[str, DimensionType] = MappingProxyType(
    {
        "INTEGER": DimensionType.NUMBER,
        "INT32": DimensionType.NUMBER,
        "INT64": DimensionType.NUMBER,
        "FLOAT": DimensionType.NUMBER,
        "NUMERIC": DimensionType.NUMBER,
        "BOOLEAN": DimensionType.BOOLEAN,
        "STRING": DimensionType.STRING,
        "TIMESTAMP": DimensionType.TIMESTAMP,
        "DATETIME": DimensionType.STRING,
        "DATE": DimensionType.DATE,
        "TIME": DimensionType.STRING,
        "BOOL": DimensionType.BOOLEAN,
        "ARRAY": DimensionType.STRING,
        "GEOGRAPHY": DimensionType.STRING,
        "NUMBER": DimensionType.NUMBER,
        "DECIMAL": DimensionType.NUMBER,
        "INT": DimensionType.NUMBER,
        "BIGINT": DimensionType.NUMBER,
        "SMALLINT": DimensionType.NUMBER,
        "FLOAT4": DimensionType.NUMBER,
        "FLOAT8": DimensionType.NUMBER,
        "DOUBLE": DimensionType.NUMBER,
        "DOUBLE PRECISION": DimensionType.NUMBER,
        "REAL": DimensionType.NUMBER,
        "VARCHAR": DimensionType.STRING,
        "CHAR": DimensionType.STRING,
        "CHARACTER": DimensionType.STRING,
        "TEXT": DimensionType.STRING,
        "BINARY": DimensionType.STRING,
        "VARBINARY": DimensionType.STRING,
        "TIMESTAMP_NTZ": DimensionType.TIMESTAMP,
        "VARIANT": DimensionType.STRING,
        "OBJECT": DimensionType.STRING,
        "INT2": DimensionType.NUMBER,
        "INT4": DimensionType.NUMBER,
        "INT8": DimensionType.NUMBER,
        "NCHAR": DimensionType.STRING,
        "BPCHAR": DimensionType.STRING,
        "CHARACTER VARYING": DimensionType.STRING,
        "NVARCHAR": DimensionType.STRING,
        "TIMESTAMP WITHOUT TIME ZONE": DimensionType.TIMESTAMP,
        "GEOMETRY": DimensionType.STRING,
        "TIME WITHOUT TIME ZONE": DimensionType.STRING,
        "XML": DimensionType.STRING,
        "UUID": DimensionType.STRING,
        "PG_LSN": DimensionType.STRING,
        "MACADDR": DimensionType.STRING,
        "JSON": DimensionType.STRING,
        "JSONB": DimensionType.STRING,
        "CIDR": DimensionType.STRING,
        "INET": DimensionType.STRING,
        "MONEY": DimensionType.NUMBER,
        "SMALLSERIAL": DimensionType.NUMBER,
        "SERIAL2": DimensionType.NUMBER,
        "SERIAL": DimensionType.NUMBER,
        "SERIAL4": DimensionType.NUMBER,
        "BIGSERIAL": DimensionType.NUMBER,
        "SERIAL8": DimensionType.NUMBER,
        # duckdb spellings, so introspecting a local database does the right thing
        "TINYINT": DimensionType.NUMBER,
        "HUGEINT": DimensionType.NUMBER,
        "UTINYINT": DimensionType.NUMBER,
        "USMALLINT": DimensionType.NUMBER,
        "UINTEGER": DimensionType.NUMBER,
        "UBIGINT": DimensionType.NUMBER,
        "FLOAT32": DimensionType.NUMBER,
        "FLOAT64": DimensionType.NUMBER,
        "TIMESTAMP_S": DimensionType.TIMESTAMP,
        "TIMESTAMP_MS": DimensionType.TIMESTAMP,
        "TIMESTAMP_NS": DimensionType.TIMESTAMP,
        "BLOB": DimensionType.STRING,
    }
)


def map_column_type_to_dimension_type(column_type: str) -> DimensionType:
    """Map a native column type name to a dimension type.

    case-insensitive and total - unknown types fall back to string.
    parameterised types like DECIMAL(10,2) or VARCHAR(255) are looked up
    by their base name.
    """
    normalized = " ".join(column_type.strip().upper().split())
    if normalized in _COLUMN_TYPE_MAP:
        return _COLUMN_TYPE_MAP[normalized]
    base = normalized.split("(", 1)[0].strip()
    return _COLUMN_TYPE_MAP.get(base, DimensionType.STRING)


_WORD_PATTERN = re.compile(r"[0-9]*[A-Za-z][a-z]*")


def friendly_name(text: str) -> str:
    """Turn an identifier like "order_status" into a label like "Order status"."""
    words = _WORD_PATTERN.findall(text)
    if not words:
        return ""
    first, *rest = words
    return " ".join([first[:1].upper() + first[1:], *rest])
