"""Settings loaded from environment / .env file."""

import logging

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration for ExploreQL.

    every value can be set with an EXPLOREQL_ prefixed environment variable,
    e.g. EXPLOREQL_DIALECT=postgres, or from a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="EXPLOREQL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"
    dialect: str = "ansi"
    pretty_sql: bool = False
    default_limit: int = 500
    explores_dir: str = "./explores"
    database_path: str | None = None  # None means an in-memory duckdb


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
