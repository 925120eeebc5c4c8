"""Configurable dismax search with paging, named sorts, field filters and facets."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from solrsync.documents.builder import coerce_solr_date
from solrsync.errors import ArgumentError
from solrsync.schema.registry import SchemaRegistry

from .compiler import MATCH_ALL, escape_term
from .finder import Finder
from .results import ResultCollection

# Select parameter name mapped to the builder attribute holding its value.
SCORE_MODIFIERS: Dict[str, str] = {
    "qt": "query_type",
    "qf": "query_fields",
    "mm": "minimum_match",
    "pf": "phrase_fields",
    "ps": "phrase_slop",
    "qs": "query_phrase_slop",
    "tie": "tie_breaker",
    "bq": "boost_query",
    "bf": "boost_functions",
}
RESERVED_PARAMS = ("q", "page", "per_page", "sort")

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_ID_FIELD = re.compile(r"(?:^|_)id$")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return not value
    return False


def strip_blank(value: Any) -> Any:
    """Recursively drop blank strings, lists and mappings from ``value``."""
    if isinstance(value, Mapping):
        cleaned = {key: strip_blank(item) for key, item in value.items()}
        return {key: item for key, item in cleaned.items() if not _is_blank(item)}
    if isinstance(value, (list, tuple)):
        return [item for item in (strip_blank(member) for member in value) if not _is_blank(item)]
    return value


def leading_int(value: Any) -> int:
    """Parse the leading integer of ``value`` the lenient way, returning 0 when there is none."""
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else 0


@dataclass
class CompiledSelect:
    """Select parameters plus the filter categories that shaped them."""

    select: Dict[str, Any]
    crumbs: List[str] = field(default_factory=list)


class FacetedQueryBuilder:
    """Build dismax select requests from user-facing search parameters.

    Scoring knobs, sorts, page sizes and facets are plain attributes set once
    and reused for every request. Static overrides set with ``builder[key] =
    value`` are applied after everything else.
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        *,
        query_type: Optional[str] = "dismax",
        query_fields: Optional[str] = None,
        minimum_match: Optional[str] = "100%",
        phrase_fields: Optional[str] = None,
        phrase_slop: Optional[int] = 20,
        query_phrase_slop: Optional[int] = 100,
        tie_breaker: Optional[float] = 0.1,
        boost_query: Optional[str] = None,
        boost_functions: Optional[str] = None,
        filter_query: Optional[List[str]] = None,
        sorts: Optional[Dict[str, str]] = None,
        default_sort: str = "relevancy",
        per_pages: Optional[List[int]] = None,
        simple_facets: Optional[List[str]] = None,
    ) -> None:
        self.registry = registry
        self.query_type = query_type
        self.query_fields = query_fields
        self.minimum_match = minimum_match
        self.phrase_fields = phrase_fields
        self.phrase_slop = phrase_slop
        self.query_phrase_slop = query_phrase_slop
        self.tie_breaker = tie_breaker
        self.boost_query = boost_query
        self.boost_functions = boost_functions
        self.filter_query: List[str] = list(filter_query or [])
        self.sorts: Dict[str, str] = dict(sorts or {"relevancy": "score desc"})
        self.default_sort = default_sort
        self.per_pages: List[int] = list(per_pages or [10, 25, 50])
        self.simple_facets: List[str] = list(simple_facets or [])
        self._static_select: Dict[str, Any] = {}

        if self.default_sort not in self.sorts:
            raise ArgumentError(f"Default sort '{default_sort}' is not one of the named sorts")

    def __getitem__(self, key: str) -> Any:
        return self._static_select.get(str(key))

    def __setitem__(self, key: str, value: Any) -> None:
        self._static_select[str(key)] = value

    def compile(self, raw_params: Mapping[str, Any]) -> CompiledSelect:
        """Turn request parameters into select parameters.

        Args:
            raw_params: User-supplied parameters (``q``, ``page``, ``per_page``,
                ``sort`` and any index field names).

        Returns:
            CompiledSelect: Parameters ready for ``SearchClient.select`` and the
            crumbs recording which filter categories were applied.
        """
        params = strip_blank(dict(raw_params))
        select: Dict[str, Any] = {}
        crumbs: List[str] = []

        for param, attribute in SCORE_MODIFIERS.items():
            value = getattr(self, attribute)
            if not _is_blank(value):
                select[param] = value

        if "q" in params:
            select["q"] = params["q"]
            crumbs.append("q")

        page = leading_int(params["page"]) if "page" in params else 1
        if page <= 0:
            page = 1
        per_page = leading_int(params["per_page"]) if "per_page" in params else self.per_pages[0]
        if per_page not in self.per_pages:
            per_page = self.per_pages[0]
        select["start"] = (page - 1) * per_page
        select["rows"] = per_page

        sort = params.get("sort")
        if not isinstance(sort, str) or sort not in self.sorts:
            sort = self.default_sort
        select["sort"] = self.sorts[sort]

        param_filters: List[str] = []
        for name, raw in params.items():
            if name in RESERVED_PARAMS:
                continue
            definition = self.registry.field(name)
            if definition is None:
                continue
            values = raw if isinstance(raw, list) else [raw]
            for value in values:
                if definition.type == "date":
                    value = coerce_solr_date(value)
                elif _ID_FIELD.search(name):
                    value = leading_int(value)
                param_filters.append(f"{name}:{escape_term(value)}")
            crumbs.append(name)

        select["fq"] = self.filter_query + param_filters

        if self.simple_facets:
            select["facet"] = True
            select["facet.field"] = list(self.simple_facets)
            select["facet.limit"] = -1
            select["facet.mincount"] = 1

        select.update(self._static_select)
        return CompiledSelect(select=select, crumbs=crumbs)

    def find(self, raw_params: Mapping[str, Any], finder: Finder, *, format: Optional[str] = None) -> ResultCollection:
        """Compile ``raw_params`` and run the search through ``finder``.

        The free-text term is sent as a literal query. Paging is derived from
        the final ``start``/``rows`` so static overrides are honoured.
        """
        compiled = self.compile(raw_params)
        select = dict(compiled.select)
        query = select.pop("q", MATCH_ALL)
        if isinstance(query, list):
            query = " ".join(str(term) for term in query)
        rows = leading_int(select.pop("rows")) or self.per_pages[0]
        start = leading_int(select.pop("start", 0))
        sort = select.pop("sort", None)

        collection = finder.find(
            str(query),
            format=format,
            page=start // rows + 1,
            per_page=rows,
            sort=sort,
            select=select,
        )
        collection.crumbs = list(compiled.crumbs)
        return collection


__all__ = [
    "CompiledSelect",
    "FacetedQueryBuilder",
    "SCORE_MODIFIERS",
    "leading_int",
    "strip_blank",
]
