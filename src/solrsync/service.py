"""Service container wiring the schema, indexer, dispatcher and finder together."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence

import httpx

from solrsync.client.client import SearchClient
from solrsync.config.models import SolrSyncConfig
from solrsync.declarations import TypeDeclaration
from solrsync.documents.accessors import EntityAccessor
from solrsync.documents.builder import DocumentBuilder
from solrsync.indexing.dispatcher import ChangeDispatcher
from solrsync.indexing.indexer import Indexer
from solrsync.observers import ObserverGraph
from solrsync.query.faceted import FacetedQueryBuilder
from solrsync.query.filters import params_to_query
from solrsync.query.finder import Finder
from solrsync.query.results import ResultCollection
from solrsync.schema.models import Association
from solrsync.schema.registry import SchemaRegistry

LOGGER = logging.getLogger(__name__)


class SolrSync:
    """One instance per application, built at start-up.

    Entity types declare their fields through ``declare`` before any lifecycle
    event is dispatched. The persistence layer then calls ``dispatcher``'s
    ``on_create``/``on_update``/``on_destroy`` hooks after each successful write.

    Args:
        config: Effective configuration; defaults apply when omitted.
        accessor: Capability used to read entity values.
        transport: Optional httpx transport, mainly for tests.
    """

    def __init__(
        self,
        config: Optional[SolrSyncConfig] = None,
        *,
        accessor: Optional[EntityAccessor] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.config = config or SolrSyncConfig()
        self.registry = SchemaRegistry()
        self.graph = ObserverGraph(self.registry)
        self.builder = DocumentBuilder(self.registry, accessor)
        self.client = SearchClient.from_settings(self.config.connection, transport=transport)
        self.indexer = Indexer(
            self.client,
            self.builder,
            auto_index=self.config.indexing.auto_index,
            reindex_batch_size=self.config.indexing.reindex_batch_size,
        )
        self.dispatcher = ChangeDispatcher(self.indexer, self.builder, self.graph)
        self.finder = Finder(self.client, self.builder, default_per_page=self.config.query.default_per_page)
        LOGGER.debug("solrsync ready for %s", self.client.base_url)

    def declare(
        self,
        type_name: str,
        *,
        parent: Optional[str] = None,
        associations: Iterable[Association] = (),
        fetch_many: Optional[Callable[[list], Iterable[Any]]] = None,
        fetch_all: Optional[Callable[[int, int, List[str]], Sequence[Any]]] = None,
    ) -> TypeDeclaration:
        """Register ``type_name`` and return its declaration helper."""
        return TypeDeclaration(
            self.registry,
            self.graph,
            type_name,
            parent=parent,
            associations=associations,
            fetch_many=fetch_many,
            fetch_all=fetch_all,
        )

    def faceted_query(self, **options: Any) -> FacetedQueryBuilder:
        """Return a faceted query builder bound to this schema."""
        return FacetedQueryBuilder(self.registry, **options)

    def params_to_query(self, params: Mapping[str, Any]) -> str:
        """Compile request parameters with the configured defaults."""
        return params_to_query(
            params,
            self.registry,
            default_search_field=self.config.query.default_search_field,
            default_operator=self.config.query.default_operator,
        )

    def find(self, query: Any, **options: Any) -> ResultCollection:
        return self.finder.find(query, **options)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "SolrSync":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


__all__ = ["SolrSync"]
