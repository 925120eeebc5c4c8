"""Configuration models describing solrsync settings."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class SolrSyncBaseModel(BaseModel):
    """Shared configuration for solrsync Pydantic settings models."""

    model_config = ConfigDict(extra="forbid")


class ConnectionSettings(SolrSyncBaseModel):
    """Where and how to reach the Solr server.

    Attributes:
        host: Hostname of the Solr server.
        port: Port the Solr server listens on.
        path: Path under which the Solr request handlers live.
        timeout_seconds: Timeout applied to ordinary requests.
        optimize_timeout_seconds: Timeout applied to optimize requests.
        auto_commit: Whether every add/delete is followed by a commit.
    """

    host: str = "127.0.0.1"
    port: int = 8982
    path: str = "solr"
    timeout_seconds: float = 10.0
    optimize_timeout_seconds: float = 300.0
    auto_commit: bool = True

    @property
    def base_url(self) -> str:
        """Return the base URL for the configured Solr core."""
        return f"http://{self.host}:{self.port}/{self.path.strip('/')}"


class IndexingSettings(SolrSyncBaseModel):
    """Options governing automatic index maintenance.

    Attributes:
        auto_index: Whether lifecycle events update the index.
        reindex_batch_size: Number of entities fetched per reindex batch.
    """

    auto_index: bool = True
    reindex_batch_size: int = Field(default=1_000, gt=0)


class QuerySettings(SolrSyncBaseModel):
    """Defaults for compiling queries.

    Attributes:
        default_operator: Operator joining clauses built from request params.
        default_search_field: Param name treated as the free-text search term.
        default_per_page: Page size used when a find call does not specify one.
    """

    default_operator: Literal["AND", "OR"] = "AND"
    default_search_field: str = "q"
    default_per_page: int = Field(default=10, gt=0)


class LoggingSettings(SolrSyncBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
    """

    level: str = "WARNING"


class CLIOptions(SolrSyncBaseModel):
    """CLI behavior defaults.

    Attributes:
        json_default: Whether commands emit JSON unless told otherwise.
    """

    json_default: bool = False


class SolrSyncConfig(SolrSyncBaseModel):
    """Top-level configuration struct for solrsync.

    Attributes:
        connection: Solr connection settings.
        indexing: Index maintenance settings.
        query: Query compilation defaults.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    connection: ConnectionSettings = Field(default_factory=ConnectionSettings)
    indexing: IndexingSettings = Field(default_factory=IndexingSettings)
    query: QuerySettings = Field(default_factory=QuerySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "SolrSyncBaseModel",
    "ConnectionSettings",
    "IndexingSettings",
    "QuerySettings",
    "LoggingSettings",
    "CLIOptions",
    "SolrSyncConfig",
]
