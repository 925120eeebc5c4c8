"""Tests for top-level find, result collections and faceted query building."""

import logging
from typing import Any, Dict, List

import pytest

from conftest import Widget, WidgetStore
from solrsync.documents import DocumentBuilder, StoredDocument
from solrsync.errors import ArgumentError, RehydrationError, SolrResponseError
from solrsync.query import FacetedQueryBuilder, Finder, ResultCollection, Sequence


class _SelectClient:
    """Answers every select with a canned payload and records the params."""

    def __init__(self, docs: List[Dict[str, Any]], num_found: int | None = None, **extra: Any) -> None:
        self.payload: Dict[str, Any] = {
            "responseHeader": {"status": 0, "QTime": 3},
            "response": {
                "numFound": len(docs) if num_found is None else num_found,
                "start": 0,
                "docs": docs,
            },
            **extra,
        }
        self.requests: List[Dict[str, Any]] = []

    def select(self, params: Dict[str, Any]) -> Dict[str, Any]:
        self.requests.append(dict(params))
        return self.payload


def _finder(builder: DocumentBuilder, client: _SelectClient) -> Finder:
    return Finder(client, builder)  # type: ignore[arg-type]


def _ids(*solr_ids: str) -> List[Dict[str, Any]]:
    return [{"solr_id": [solr_id], "score": 1.0} for solr_id in solr_ids]


def test_find_ids_returns_solr_ids(builder: DocumentBuilder) -> None:
    client = _SelectClient(_ids("Widget-3", "Widget-1"), num_found=12)

    result = _finder(builder, client).find_ids({"title": "lamp"}, page=2, per_page=5)

    assert list(result) == ["Widget-3", "Widget-1"]
    assert client.requests == [
        {
            "q": "title:lamp",
            "start": 5,
            "rows": 5,
            "sort": None,
            "wt": "json",
            "fl": "solr_id",
        }
    ]
    assert (result.current_page, result.per_page, result.total_entries, result.total_pages) == (
        2,
        5,
        12,
        3,
    )


def test_find_rehydrates_in_relevance_order_with_one_fetch_per_type(
    builder: DocumentBuilder, store: WidgetStore
) -> None:
    store.put(Widget(id=1, title="a"), Widget(id=2, title="b"), Widget(id=3, title="c"))
    client = _SelectClient(_ids("Widget-3", "Widget-1", "Widget-2"))

    result = _finder(builder, client).find("*:*")

    assert [widget.id for widget in result] == [3, 1, 2]
    assert store.fetch_calls == [[3, 1, 2]]
    assert client.requests[0]["fl"] == "solr_id,score"
    assert result.partial is False


def test_find_drops_and_reports_unresolvable_ids(
    builder: DocumentBuilder, store: WidgetStore, caplog: pytest.LogCaptureFixture
) -> None:
    store.put(Widget(id=1, title="a"))
    client = _SelectClient(_ids("Widget-9", "Widget-1"))
    caplog.set_level(logging.WARNING)

    result = _finder(builder, client).find("*:*")

    assert [widget.id for widget in result] == [1]
    assert result.missing_ids == ["Widget-9"]
    assert result.partial is True
    assert "Widget-9" in caplog.text


def test_find_without_loader_raises_rehydration_error(builder: DocumentBuilder) -> None:
    client = _SelectClient(_ids("Gizmo-1"))

    with pytest.raises(RehydrationError):
        _finder(builder, client).find("*:*")


def test_document_and_hash_formats(builder: DocumentBuilder) -> None:
    docs = [{"solr_id": ["Widget-4"], "title": ["Lamp"], "score": 2.0}]
    client = _SelectClient(docs)
    finder = _finder(builder, client)

    (document,) = finder.find("*:*", format="document")
    assert isinstance(document, StoredDocument)
    assert document.title == "Lamp"

    hashes = finder.find("*:*", format="hash")
    assert list(hashes) == docs
    assert client.requests[-1]["fl"] == "*,score"


def test_find_requests_facets(builder: DocumentBuilder) -> None:
    facet_counts = {"facet_fields": {"color": ["red", 3, "blue", 1]}}
    client = _SelectClient([], facet_counts=facet_counts)

    result = _finder(builder, client).find(
        Sequence("title:?", ["lamp"]), format="ids", facets=["color"], sort="title asc"
    )

    request = client.requests[0]
    assert request["facet"] is True
    assert request["facet.field"] == ["color"]
    assert request["facet.limit"] == -1
    assert request["facet.missing"] is False
    assert request["facet.zeros"] is False
    assert request["sort"] == "title asc"
    assert result.facets == facet_counts


@pytest.mark.parametrize(
    "options",
    [{"page": 0}, {"page": "abc"}, {"per_page": -5}, {"format": "xml"}],
)
def test_invalid_find_options_fail_before_any_request(
    builder: DocumentBuilder, options: Dict[str, Any]
) -> None:
    client = _SelectClient([])

    with pytest.raises(ArgumentError):
        _finder(builder, client).find("*:*", **options)

    assert client.requests == []


def test_blank_paging_options_use_defaults(builder: DocumentBuilder) -> None:
    client = _SelectClient([])

    result = _finder(builder, client).find("*:*", format="ids", page="", per_page=None)

    assert (result.current_page, result.per_page) == (1, 10)


def test_malformed_response_raises_response_error(builder: DocumentBuilder) -> None:
    client = _SelectClient([])
    client.payload = {"responseHeader": {"status": 0}}

    with pytest.raises(SolrResponseError):
        _finder(builder, client).find("*:*", format="ids")


def test_result_collection_pagination() -> None:
    collection = ResultCollection([], current_page=10, per_page=10, total_entries=95)

    assert collection.total_pages == 10
    assert collection.out_of_bounds is False
    assert collection.offset == 90
    assert collection.previous_page == 9
    assert collection.next_page is None
    assert ResultCollection([], current_page=11, per_page=10, total_entries=95).out_of_bounds
    assert ResultCollection([], current_page=1, per_page=10, total_entries=95).previous_page is None


def test_faceted_compile_defaults(builder: DocumentBuilder) -> None:
    compiled = FacetedQueryBuilder(builder.registry).compile({})

    assert compiled.select == {
        "qt": "dismax",
        "mm": "100%",
        "ps": 20,
        "qs": 100,
        "tie": 0.1,
        "start": 0,
        "rows": 10,
        "sort": "score desc",
        "fq": [],
    }
    assert compiled.crumbs == []


@pytest.mark.parametrize(
    ("params", "start", "rows"),
    [
        ({"page": 0}, 0, 10),
        ({"page": "abc"}, 0, 10),
        ({"page": "3"}, 20, 10),
        ({"page": "2", "per_page": "25"}, 25, 25),
        ({"per_page": 999}, 0, 10),
    ],
)
def test_faceted_paging(builder: DocumentBuilder, params: Dict[str, Any], start: int, rows: int) -> None:
    select = FacetedQueryBuilder(builder.registry).compile(params).select

    assert (select["start"], select["rows"]) == (start, rows)


def test_faceted_compile_filters_sorts_facets_and_overrides(builder: DocumentBuilder) -> None:
    query = FacetedQueryBuilder(
        builder.registry,
        query_fields="title^2 owner_name",
        filter_query=["solr_type:Widget"],
        sorts={"relevancy": "score desc", "newest": "published_at desc"},
        simple_facets=["owner_name"],
    )
    query["rows"] = 5

    compiled = query.compile(
        {
            "q": "desk lamp",
            "sort": "newest",
            "title": ["Big Lamp", "", "a:b"],
            "published_at": "2024-01-02",
            "ignored": "x",
            "owner_name": [],
        }
    )

    select = compiled.select
    assert select["q"] == "desk lamp"
    assert select["qf"] == "title^2 owner_name"
    assert select["sort"] == "published_at desc"
    assert select["fq"] == [
        "solr_type:Widget",
        "title:Big Lamp",
        r"title:a\:b",
        r"published_at:2024\-01\-02T00\:00\:00Z",
    ]
    assert select["facet"] is True
    assert select["facet.field"] == ["owner_name"]
    assert select["facet.limit"] == -1
    assert select["facet.mincount"] == 1
    assert select["rows"] == 5
    assert compiled.crumbs == ["q", "title", "published_at"]


def test_faceted_unknown_sort_falls_back_to_default(builder: DocumentBuilder) -> None:
    select = FacetedQueryBuilder(builder.registry).compile({"sort": "cheapest"}).select

    assert select["sort"] == "score desc"


def test_faceted_find_runs_through_finder(builder: DocumentBuilder) -> None:
    client = _SelectClient(_ids("Widget-1"), num_found=40)
    query = FacetedQueryBuilder(builder.registry, per_pages=[20, 40])

    result = query.find({"q": "lamp", "page": "2", "title": "Lamp"}, _finder(builder, client), format="ids")

    request = client.requests[0]
    assert request["q"] == "lamp"
    assert request["qt"] == "dismax"
    assert request["fq"] == ["title:Lamp"]
    assert (request["start"], request["rows"]) == (20, 20)
    assert result.crumbs == ["q", "title"]
    assert (result.current_page, result.total_pages) == (2, 2)
