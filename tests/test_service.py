"""End-to-end tests for the SolrSync service container against a mocked Solr."""

import httpx
import respx

from conftest import Widget, WidgetStore, declare_widgets
from solrsync.config import SolrSyncConfig
from solrsync.service import SolrSync

BASE_URL = "http://127.0.0.1:8982/solr"


def _service(store: WidgetStore, **overrides: object) -> SolrSync:
    config = SolrSyncConfig.model_validate(overrides) if overrides else SolrSyncConfig()
    service = SolrSync(config)
    declare_widgets(service.registry, service.graph, store)
    return service


def test_lifecycle_events_reach_the_update_handler() -> None:
    store = WidgetStore()
    with respx.mock, _service(store) as service:
        route = respx.post(f"{BASE_URL}/update").mock(return_value=httpx.Response(200))

        service.dispatcher.on_create(Widget(id=1, title="Lamp"))

        bodies = [call.request.content.decode("utf-8") for call in route.calls]
        assert '<field name="solr_id">Widget-1</field>' in bodies[0]
        assert bodies[1] == "<commit/>"


def test_batch_sends_a_single_add() -> None:
    store = WidgetStore()
    with respx.mock, _service(store, connection={"auto_commit": False}) as service:
        route = respx.post(f"{BASE_URL}/update").mock(return_value=httpx.Response(200))

        with service.indexer.batch():
            service.dispatcher.on_create(Widget(id=1, title="a"))
            service.dispatcher.on_create(Widget(id=2, title="b"))

        assert len(route.calls) == 1
        assert route.calls[0].request.content.decode("utf-8").count("<doc>") == 2


def test_find_rehydrates_entities_from_select() -> None:
    store = WidgetStore()
    store.put(Widget(id=1, title="a"), Widget(id=2, title="b"))
    payload = {
        "responseHeader": {"status": 0},
        "response": {
            "numFound": 2,
            "start": 0,
            "docs": [{"solr_id": ["Widget-2"], "score": 2.0}, {"solr_id": ["Widget-1"], "score": 1.0}],
        },
    }
    with respx.mock, _service(store) as service:
        route = respx.get(f"{BASE_URL}/select").mock(return_value=httpx.Response(200, json=payload))

        results = service.find(service.params_to_query({"title": "a"}))

        assert [widget.id for widget in results] == [2, 1]
        assert route.calls[0].request.url.params["q"] == "title:a"


def test_params_to_query_uses_configured_defaults() -> None:
    service = _service(WidgetStore(), query={"default_operator": "OR", "default_search_field": "term"})

    query = service.params_to_query({"term": "lamp", "title": "desk", "q": "ignored"})

    assert query == "lamp OR title:desk"
    service.close()


def test_faceted_query_is_bound_to_the_schema() -> None:
    service = _service(WidgetStore())

    compiled = service.faceted_query(simple_facets=["tags"]).compile({"tags": "metal"})

    assert compiled.select["fq"] == ["tags:metal"]
    assert compiled.crumbs == ["tags"]
    service.close()
