"""SQL compiler for metric queries.

this is where the magic happens - translating a MetricQuery over an explore
into a single sql statement.

the basic flow:
  1. check every referenced field exists in the explore
  2. figure out which joins the query actually needs
  3. build select/from/where/group by/order by/limit clauses
  4. optionally pretty print with sqlglot

compilation is a pure function of the query - no io, no shared state - so
the same query always produces byte-identical sql.
"""

import logging
from string import Template

import sqlglot
from sqlglot.errors import ParseError

from exploreql.compiler.dialect import ANSI, GroupByPolicy, SqlDialect, get_dialect
from exploreql.errors import (
    EmptyQueryError,
    InvalidLimitError,
    InvalidSortError,
    MissingJoinError,
    TemplateError,
    UnknownFieldError,
    UnsupportedFieldTypeError,
)
from exploreql.models.explore import Explore, ExploreJoin
from exploreql.models.field import Dimension, Field, Measure, MeasureType, field_id
from exploreql.models.filters import (
    GreaterThanFilter,
    IsNullFilter,
    LessThanFilter,
    NotNullFilter,
    NumberEqualsFilter,
    NumberFilterGroup,
    NumberNotEqualsFilter,
    StartsWithFilter,
    StringEqualsFilter,
    StringFilterGroup,
    StringNotEqualsFilter,
)
from exploreql.models.query import Direction, MetricQuery

logger = logging.getLogger(__name__)

# rendered in place of IN/NOT IN with an empty value list
ALWAYS_FALSE = "1 = 0"
ALWAYS_TRUE = "1 = 1"


def render_template(template: str, placeholders: dict[str, str]) -> str:
    """Substitute ${NAME} placeholders in a sql template.

    only the placeholders passed in are allowed, anything else is a
    TemplateError.
    """
    try:
        return Template(template).substitute(placeholders)
    except KeyError as e:
        raise TemplateError(template, f"unknown placeholder ${{{e.args[0]}}}") from e
    except ValueError as e:
        raise TemplateError(template, str(e)) from e


class SQLCompiler:
    """Compiles metric queries into SQL.

    holds only the dialect and the formatting choice.
    """

    # count_distinct is special-cased in _build_measure_expr
    AGG_MAP = {
        MeasureType.AVERAGE: "AVG",
        MeasureType.SUM: "SUM",
        MeasureType.MIN: "MIN",
        MeasureType.MAX: "MAX",
        MeasureType.COUNT: "COUNT",
        MeasureType.COUNT_DISTINCT: "COUNT",
    }

    def __init__(self, dialect: SqlDialect | str = ANSI, pretty: bool = False) -> None:
        self.dialect = get_dialect(dialect) if isinstance(dialect, str) else dialect
        self.pretty = pretty

    def compile(self, query: MetricQuery) -> str:
        """Convert a MetricQuery into SQL.

        steps run in a fixed order so the error a bad query gets is
        predictable: unknown fields, then joins, then empty selection,
        then sorts, then limit.
        """
        explore = query.explore

        # step 1: every referenced field must be in the explore. from here on
        # we use the explore's definitions, not whatever the caller passed
        dimensions = [self._lookup(explore, d) for d in query.dimensions]
        measures = [self._lookup(explore, m) for m in query.measures]
        filter_dimensions = [self._lookup(explore, g.dimension) for g in query.filters]
        sort_fields = [self._lookup(explore, s.field) for s in query.sorts]

        # step 2: joins
        joins = self._resolve_joins(
            explore, [*dimensions, *measures, *filter_dimensions, *sort_fields]
        )

        # step 3-8: clauses
        if not dimensions and not measures:
            raise EmptyQueryError()

        select_exprs = self._build_select_exprs(dimensions, measures)
        from_clause = self._build_from_clause(explore)
        join_clauses = [self._build_join_clause(explore, join) for join in joins]
        where_conditions = self._build_where_conditions(query, filter_dimensions)
        group_by_exprs = self._build_group_by_exprs(dimensions, measures)
        order_by_exprs = self._build_order_by_exprs(query, dimensions, measures, sort_fields)
        limit = self._validate_limit(query.limit)

        logger.debug(
            "Compiling query on explore %s (joins: %s)",
            explore.name,
            ", ".join(j.table for j in joins) or "none",
        )

        sql = self._assemble_query(
            select_exprs=select_exprs,
            from_clause=from_clause,
            join_clauses=join_clauses,
            where_conditions=where_conditions,
            group_by_exprs=group_by_exprs,
            order_by_exprs=order_by_exprs,
            limit=limit,
        )

        if self.pretty:
            return self._format_sql(sql)
        return sql

    def _lookup(self, explore: Explore, field: Field) -> Field:
        fid = field_id(field)
        registered = explore.get_field(fid)
        if isinstance(field, Dimension) != isinstance(registered, Dimension):
            raise UnknownFieldError(fid, explore.name, reason="field kind does not match")
        return registered

    def _resolve_joins(self, explore: Explore, fields: list[Field]) -> list[ExploreJoin]:
        """Pick the joins the query needs.

        a join is emitted if a selected, filtered or sorted field lives on
        that table, or if the ON clause of another emitted join names it.
        joins keep their declared order since an ON clause can refer to
        tables joined before it.
        """
        referenced = set()
        for field in fields:
            if not explore.is_joined(field.table):
                raise MissingJoinError(field_id(field), field.table)
            referenced.add(field.table)

        joins_by_table = {join.table: join for join in explore.joined_tables}
        pending = sorted(joins_by_table.keys() & referenced)
        while pending:
            join = joins_by_table[pending.pop(0)]
            for name in Template(join.sql_on).get_identifiers():
                # unknown names are reported when the ON clause is rendered
                if name in referenced or name not in explore.tables:
                    continue
                if not explore.is_joined(name):
                    raise TemplateError(join.sql_on, f"table '{name}' is not joined in the explore")
                referenced.add(name)
                if name in joins_by_table:
                    pending.append(name)

        return [join for join in explore.joined_tables if join.table in referenced]

    def _render_field_sql(self, field: Field) -> str:
        return render_template(field.sql, {"TABLE": field.table})

    def _build_measure_expr(self, measure: Measure) -> str:
        """Wrap a measure's sql in its aggregate function."""
        measure_type = measure.type
        if measure_type not in self.AGG_MAP:
            raise UnsupportedFieldTypeError(measure_type, kind="measure type")

        col_expr = self._render_field_sql(measure)
        agg_func = self.AGG_MAP[measure_type]
        # DISTINCT goes inside the parens
        if measure_type == MeasureType.COUNT_DISTINCT:
            return f"{agg_func}(DISTINCT {col_expr})"
        return f"{agg_func}({col_expr})"

    def _build_select_exprs(self, dimensions: list[Field], measures: list[Field]) -> list[str]:
        """Build SELECT expressions, dimensions first."""
        exprs = []
        for dim in dimensions:
            exprs.append(f"{self._render_field_sql(dim)} AS {field_id(dim)}")
        for measure in measures:
            exprs.append(f"{self._build_measure_expr(measure)} AS {field_id(measure)}")
        return exprs

    def _build_from_clause(self, explore: Explore) -> str:
        base = explore.tables[explore.base_table]
        return f"{base.sql_table} AS {base.name}"

    def _build_join_clause(self, explore: Explore, join: ExploreJoin) -> str:
        table = explore.tables[join.table]
        aliases = {name: name for name in explore.tables}
        sql_on = render_template(join.sql_on, aliases)
        return f"LEFT JOIN {table.sql_table} AS {table.name} ON ({sql_on})"

    def _build_where_conditions(
        self, query: MetricQuery, filter_dimensions: list[Field]
    ) -> list[str]:
        """Build WHERE conditions, one per non-empty filter group.

        groups are ANDed together at the top level no matter what their own
        operator is.
        """
        conditions = []
        for group, dimension in zip(query.filters, filter_dimensions):
            condition = self._build_filter_group(group, self._render_field_sql(dimension))
            if condition:
                conditions.append(condition)
        return conditions

    def _build_filter_group(
        self, group: StringFilterGroup | NumberFilterGroup, dim_sql: str
    ) -> str | None:
        if isinstance(group, StringFilterGroup):
            clauses = [self._build_string_filter(f, dim_sql) for f in group.filters]
        elif isinstance(group, NumberFilterGroup):
            clauses = [self._build_number_filter(f, dim_sql) for f in group.filters]
        else:
            raise UnsupportedFieldTypeError(getattr(group, "type", group), kind="filter type")

        if not clauses:
            # an empty group is a filter still being edited, it constrains nothing
            return None
        connective = f" {group.operator.value.upper()} "
        return f"({connective.join(clauses)})"

    def _build_string_filter(self, f: object, dim_sql: str) -> str:
        quote = self.dialect.quote_string
        if isinstance(f, StringEqualsFilter):
            return self._build_in_list(dim_sql, [quote(v) for v in f.values], negate=False)
        elif isinstance(f, StringNotEqualsFilter):
            return self._build_in_list(dim_sql, [quote(v) for v in f.values], negate=True)
        elif isinstance(f, StartsWithFilter):
            return self.dialect.render_starts_with(dim_sql, f.value)
        elif isinstance(f, IsNullFilter):
            return f"{dim_sql} IS NULL"
        elif isinstance(f, NotNullFilter):
            return f"{dim_sql} IS NOT NULL"
        raise UnsupportedFieldTypeError(getattr(f, "operator", f), kind="string filter operator")

    def _build_number_filter(self, f: object, dim_sql: str) -> str:
        number = self.dialect.render_number
        if isinstance(f, NumberEqualsFilter):
            return self._build_in_list(dim_sql, [number(v) for v in f.values], negate=False)
        elif isinstance(f, NumberNotEqualsFilter):
            return self._build_in_list(dim_sql, [number(v) for v in f.values], negate=True)
        elif isinstance(f, GreaterThanFilter):
            return f"{dim_sql} > {number(f.value)}"
        elif isinstance(f, LessThanFilter):
            return f"{dim_sql} < {number(f.value)}"
        elif isinstance(f, IsNullFilter):
            return f"{dim_sql} IS NULL"
        elif isinstance(f, NotNullFilter):
            return f"{dim_sql} IS NOT NULL"
        raise UnsupportedFieldTypeError(getattr(f, "operator", f), kind="number filter operator")

    def _build_in_list(self, dim_sql: str, literals: list[str], negate: bool) -> str:
        # IN () isn't valid sql
        if not literals:
            return ALWAYS_TRUE if negate else ALWAYS_FALSE
        keyword = "NOT IN" if negate else "IN"
        return f"{dim_sql} {keyword} ({', '.join(literals)})"

    def _build_group_by_exprs(self, dimensions: list[Field], measures: list[Field]) -> list[str]:
        """Build GROUP BY expressions.

        only needed when something is aggregated - a dimension-only query
        lists rows as they are rather than deduplicating them.
        """
        if not measures or not dimensions:
            return []

        policy = self.dialect.group_by
        if policy == GroupByPolicy.ALIAS:
            return [field_id(d) for d in dimensions]
        elif policy == GroupByPolicy.POSITION:
            return [str(i) for i in range(1, len(dimensions) + 1)]
        elif policy == GroupByPolicy.EXPRESSION:
            return [self._render_field_sql(d) for d in dimensions]
        raise UnsupportedFieldTypeError(policy, kind="group by policy")

    def _build_order_by_exprs(
        self,
        query: MetricQuery,
        dimensions: list[Field],
        measures: list[Field],
        sort_fields: list[Field],
    ) -> list[str]:
        selected = {field_id(f) for f in [*dimensions, *measures]}
        exprs = []
        for sort, field in zip(query.sorts, sort_fields):
            fid = field_id(field)
            if fid not in selected:
                raise InvalidSortError(fid)
            direction = "DESC" if sort.direction == Direction.DESCENDING else "ASC"
            exprs.append(f"{fid} {direction}")
        return exprs

    def _validate_limit(self, limit: object) -> int:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise InvalidLimitError(limit)
        return limit

    def _assemble_query(
        self,
        select_exprs: list[str],
        from_clause: str,
        join_clauses: list[str],
        where_conditions: list[str],
        group_by_exprs: list[str],
        order_by_exprs: list[str],
        limit: int,
    ) -> str:
        """Assemble the final SQL query."""
        separator = ",\n  "
        parts = [f"SELECT\n  {separator.join(select_exprs)}"]
        parts.append(f"FROM {from_clause}")
        parts.extend(join_clauses)

        if where_conditions:
            parts.append(f"WHERE {' AND '.join(where_conditions)}")

        if group_by_exprs:
            parts.append(f"GROUP BY {', '.join(group_by_exprs)}")

        if order_by_exprs:
            parts.append(f"ORDER BY {', '.join(order_by_exprs)}")

        parts.append(f"LIMIT {limit}")

        return "\n".join(parts)

    def _format_sql(self, sql: str) -> str:
        """Pretty print SQL with sqlglot.

        if sqlglot can't parse it (some warehouse specific expression in a
        field template, usually) we hand back the unformatted sql rather
        than fail a query that's otherwise fine.
        """
        name = self.dialect.sqlglot_name or None
        try:
            return sqlglot.transpile(sql, read=name, write=name, pretty=True)[0]
        except ParseError:
            logger.warning("sqlglot could not parse generated sql, returning it unformatted")
            return sql
