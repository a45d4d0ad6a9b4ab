"""SQL dialect policies.

the compiler emits ANSI-shaped sql everywhere, the bits that actually differ
between warehouses live here: how string literals and LIKE patterns get
escaped, and how GROUP BY refers back to the selected dimensions.
"""

import math
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from exploreql.errors import InvalidFilterValueError


class GroupByPolicy(str, Enum):
    """How GROUP BY refers to selected dimensions.

    grouping by alias is the nicest to read but some engines reject it,
    so position and full expression are available too.
    """

    ALIAS = "alias"  # GROUP BY orders_status
    POSITION = "position"  # GROUP BY 1, 2
    EXPRESSION = "expression"  # GROUP BY orders.status


@dataclass(frozen=True)
class SqlDialect:
    name: str
    sqlglot_name: str  # dialect name sqlglot uses for pretty printing
    group_by: GroupByPolicy = GroupByPolicy.ALIAS
    # some engines treat backslash as an escape inside string literals
    backslash_escapes: bool = False
    like_escape: str = "\\"
    supports_like_escape_clause: bool = True

    def quote_string(self, value: str) -> str:
        """Render a user supplied string as a safe SQL literal."""
        if self.backslash_escapes:
            escaped = value.replace("\\", "\\\\").replace("'", "\\'")
        else:
            escaped = value.replace("'", "''")
        return f"'{escaped}'"

    def render_number(self, value: int | float) -> str:
        # bools are ints in python - refuse them rather than emit 1/0
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidFilterValueError(value, "expected a number")
        if isinstance(value, float) and not math.isfinite(value):
            raise InvalidFilterValueError(value, "number is not finite")
        return repr(value)

    def escape_like(self, value: str) -> str:
        """Escape LIKE wildcards so the value only ever matches literally."""
        esc = self.like_escape
        return value.replace(esc, esc + esc).replace("%", esc + "%").replace("_", esc + "_")

    def render_starts_with(self, sql: str, value: str) -> str:
        pattern = self.quote_string(self.escape_like(value) + "%")
        if self.supports_like_escape_clause:
            return f"{sql} LIKE {pattern} ESCAPE {self.quote_string(self.like_escape)}"
        return f"{sql} LIKE {pattern}"


ANSI = SqlDialect(name="ansi", sqlglot_name="")

DIALECTS: MappingProxyType[str, SqlDialect] = MappingProxyType(
    {
        "ansi": ANSI,
        "duckdb": SqlDialect(name="duckdb", sqlglot_name="duckdb"),
        "postgres": SqlDialect(name="postgres", sqlglot_name="postgres"),
        "redshift": SqlDialect(
            name="redshift", sqlglot_name="redshift", group_by=GroupByPolicy.POSITION
        ),
        "snowflake": SqlDialect(
            name="snowflake", sqlglot_name="snowflake", backslash_escapes=True
        ),
        # bigquery has no ESCAPE clause, backslash is the built-in LIKE escape
        "bigquery": SqlDialect(
            name="bigquery",
            sqlglot_name="bigquery",
            backslash_escapes=True,
            supports_like_escape_clause=False,
        ),
        "databricks": SqlDialect(
            name="databricks",
            sqlglot_name="databricks",
            group_by=GroupByPolicy.EXPRESSION,
            backslash_escapes=True,
        ),
    }
)


def get_dialect(name: str) -> SqlDialect:
    """Look up a dialect by name (case-insensitive)."""
    dialect = DIALECTS.get(name.lower())
    if dialect is None:
        available = ", ".join(sorted(DIALECTS))
        raise ValueError(f"Unknown dialect '{name}'. Available: {available}")
    return dialect
