"""Metric query to SQL compilation."""

from exploreql.compiler.dialect import DIALECTS, GroupByPolicy, SqlDialect, get_dialect
from exploreql.compiler.sql_builder import SQLCompiler, render_template

__all__ = ["DIALECTS", "GroupByPolicy", "SQLCompiler", "SqlDialect", "get_dialect", "render_template"]
