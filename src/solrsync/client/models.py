"""Response schema for Solr select results (``wt=json``)."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ResponseHeader(BaseModel):
    """Header block Solr returns with every response."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    status: int = 0
    q_time: Optional[int] = Field(default=None, alias="QTime")


class ResponseBody(BaseModel):
    """The ``response`` block holding matched documents.

    Attributes:
        num_found: Total number of matching documents.
        start: Offset of the first returned document.
        max_score: Highest score when scores were requested.
        docs: Returned documents in relevance order.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    num_found: int = Field(alias="numFound")
    start: int = 0
    max_score: Optional[float] = Field(default=None, alias="maxScore")
    docs: List[Dict[str, Any]] = Field(default_factory=list)


class SelectResponse(BaseModel):
    """Decoded select response.

    Attributes:
        header: Response header.
        response: Matched documents and counts.
        facet_counts: Facet results when faceting was requested.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    header: ResponseHeader = Field(default_factory=ResponseHeader, alias="responseHeader")
    response: ResponseBody
    facet_counts: Optional[Dict[str, Any]] = None


__all__ = ["ResponseHeader", "ResponseBody", "SelectResponse"]
