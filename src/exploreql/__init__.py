"""ExploreQL - semantic explores and metric queries compiled to SQL."""

from exploreql.compiler.sql_builder import SQLCompiler
from exploreql.models.explore import Explore
from exploreql.models.query import MetricQuery, SavedMetricQuery
from exploreql.store import ExploreStore

__version__ = "0.1.0"

__all__ = ["Explore", "ExploreStore", "MetricQuery", "SQLCompiler", "SavedMetricQuery"]
