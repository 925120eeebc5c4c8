"""Top-level search: run a select request and shape the results."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import ValidationError

from solrsync.client.client import SearchClient
from solrsync.client.models import SelectResponse
from solrsync.documents.builder import DocumentBuilder
from solrsync.documents.stored import StoredDocument
from solrsync.errors import ArgumentError, RehydrationError, SolrResponseError
from solrsync.schema.registry import SchemaRegistry

from .compiler import QueryExpression, compile_query
from .results import ResultCollection

LOGGER = logging.getLogger(__name__)

FORMAT_FIELDS: Dict[str, str] = {
    "active_record": "solr_id,score",
    "document": "*,score",
    "hash": "*,score",
    "ids": "solr_id",
}
DEFAULT_FORMAT = "active_record"


def _solr_id(document: Mapping[str, Any]) -> str:
    value = document["solr_id"]
    if isinstance(value, list):
        return str(value[0])
    return str(value)


def _split_solr_id(solr_id: str) -> Tuple[str, Any]:
    type_name, _, key = solr_id.rpartition("-")
    return type_name, int(key) if key.isdigit() else key


def _positive(value: Any, name: str, default: int) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ArgumentError(f"{name} must be blank or an integer > 0, got {value!r}") from None
    if number <= 0:
        raise ArgumentError(f"{name} must be blank or an integer > 0, got {value!r}")
    return number


class Finder:
    """Execute searches and turn the matches into entities, documents, raw hashes or ids.

    Args:
        client: Client used for the select request.
        builder: Builder whose registry and accessor describe the indexed types.
        default_per_page: Page size used when none is given.
    """

    def __init__(self, client: SearchClient, builder: DocumentBuilder, *, default_per_page: int = 10) -> None:
        self.client = client
        self.builder = builder
        self.default_per_page = default_per_page

    @property
    def registry(self) -> SchemaRegistry:
        return self.builder.registry

    def find(
        self,
        query: QueryExpression,
        *,
        format: Optional[str] = None,
        page: Any = None,
        per_page: Any = None,
        sort: Optional[str] = None,
        facets: Optional[Sequence[str]] = None,
        select: Optional[Mapping[str, Any]] = None,
    ) -> ResultCollection:
        """Search the index.

        Args:
            query: Query expression accepted by ``compile_query``.
            format: ``active_record`` (default), ``document``, ``hash`` or ``ids``.
            page: One-based page number; blank means 1.
            per_page: Page size; blank means ``default_per_page``.
            sort: Solr sort expression.
            facets: Fields to facet on.
            select: Extra select parameters; computed paging, sort, field
                list and response format take precedence over them.

        Returns:
            ResultCollection: The requested page.

        Raises:
            ArgumentError: On an invalid format or paging option, before any request.
            RehydrationError: If matches belong to a type without a ``fetch_many`` loader.
        """
        format_name = format or DEFAULT_FORMAT
        if format_name not in FORMAT_FIELDS:
            raise ArgumentError(f"Invalid format option '{format}'")

        page_number = _positive(page, "page", 1)
        page_size = _positive(per_page, "per_page", self.default_per_page)

        request: Dict[str, Any] = dict(select or {})
        if facets:
            request.update(
                {
                    "facet": True,
                    "facet.field": list(facets),
                    "facet.limit": -1,
                    "facet.missing": False,
                    "facet.zeros": False,
                }
            )
        request.update(
            {
                "q": compile_query(query),
                "start": (page_number - 1) * page_size,
                "rows": page_size,
                "sort": sort,
                "wt": "json",
                "fl": FORMAT_FIELDS[format_name],
            }
        )

        payload = self.client.select(request)
        try:
            response = SelectResponse.model_validate(payload)
        except ValidationError as exc:
            raise SolrResponseError(200, f"Unexpected select response: {exc.error_count()} error(s)") from exc

        docs = response.response.docs
        missing: List[str] = []
        items: List[Any]
        if format_name == "ids":
            items = [_solr_id(doc) for doc in docs]
        elif format_name == "document":
            items = [StoredDocument(doc, self.registry) for doc in docs]
        elif format_name == "hash":
            items = list(docs)
        else:
            items, missing = self._rehydrate([_solr_id(doc) for doc in docs])

        return ResultCollection(
            items,
            page_number,
            page_size,
            response.response.num_found,
            response=response,
            facets=response.facet_counts,
            missing_ids=missing,
        )

    def find_ids(self, query: QueryExpression, **options: Any) -> ResultCollection:
        """Return only the ``solr_id`` values of the matches."""
        options["format"] = "ids"
        return self.find(query, **options)

    def _rehydrate(self, solr_ids: List[str]) -> Tuple[List[Any], List[str]]:
        grouped: Dict[str, List[Any]] = {}
        for solr_id in solr_ids:
            type_name, key = _split_solr_id(solr_id)
            grouped.setdefault(type_name, []).append(key)

        loaded: Dict[str, Any] = {}
        for type_name, keys in grouped.items():
            descriptor = self.registry.find_type(type_name)
            if descriptor is None or descriptor.fetch_many is None:
                raise RehydrationError(f"No fetch_many loader registered for type '{type_name}'")
            for entity in descriptor.fetch_many(keys):
                loaded[self.builder.solr_id(entity)] = entity

        position = {solr_id: index for index, solr_id in enumerate(solr_ids)}
        entities = sorted(
            (entity for solr_id, entity in loaded.items() if solr_id in position),
            key=lambda entity: position[self.builder.solr_id(entity)],
        )
        missing = [solr_id for solr_id in solr_ids if solr_id not in loaded]
        if missing:
            LOGGER.warning(
                "Dropped %d search result(s) that no longer resolve: %s",
                len(missing),
                ", ".join(missing),
            )
        return entities, missing


__all__ = ["Finder", "FORMAT_FIELDS"]
