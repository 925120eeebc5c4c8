"""Paginated result collections returned by searches."""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Optional

from solrsync.client.models import SelectResponse


class ResultCollection(list):
    """A page of search results with pagination metadata.

    Attributes:
        current_page: One-based page number.
        per_page: Page size.
        total_entries: Total number of matches reported by Solr.
        total_pages: ``ceil(total_entries / per_page)``.
        response: Decoded select response.
        facets: Facet counts when faceting was requested.
        crumbs: Filter categories that contributed to the request.
        missing_ids: Ids Solr returned that could not be loaded back.
    """

    def __init__(
        self,
        items: Iterable[Any],
        current_page: int,
        per_page: int,
        total_entries: int,
        *,
        response: Optional[SelectResponse] = None,
        facets: Optional[Dict[str, Any]] = None,
        crumbs: Optional[List[str]] = None,
        missing_ids: Optional[List[str]] = None,
    ) -> None:
        super().__init__(items)
        self.current_page = current_page
        self.per_page = per_page
        self.total_entries = int(total_entries)
        self.total_pages = math.ceil(self.total_entries / per_page) if per_page else 0
        self.response = response
        self.facets = facets
        self.crumbs: List[str] = list(crumbs or [])
        self.missing_ids: List[str] = list(missing_ids or [])

    @property
    def partial(self) -> bool:
        """True when some matches could not be loaded back from the store."""
        return bool(self.missing_ids)

    @property
    def out_of_bounds(self) -> bool:
        return self.current_page > self.total_pages

    @property
    def offset(self) -> int:
        return (self.current_page - 1) * self.per_page

    @property
    def previous_page(self) -> Optional[int]:
        return self.current_page - 1 if self.current_page > 1 else None

    @property
    def next_page(self) -> Optional[int]:
        return self.current_page + 1 if self.current_page < self.total_pages else None

    def __repr__(self) -> str:
        return (
            f"<ResultCollection current_page={self.current_page} per_page={self.per_page} "
            f"total_entries={self.total_entries} total_pages={self.total_pages}>"
        )


__all__ = ["ResultCollection"]
