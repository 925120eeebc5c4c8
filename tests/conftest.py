"""Shared sample domain for solrsync tests: widgets owned by owners."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytest

from solrsync.declarations import TypeDeclaration
from solrsync.documents.builder import DocumentBuilder
from solrsync.observers import ObserverGraph
from solrsync.schema import Association, SchemaRegistry


@dataclass
class Owner:
    id: int
    name: str
    widgets: List["Widget"] = field(default_factory=list)


@dataclass
class Widget:
    id: int
    title: str
    owner: Optional[Owner] = None
    archived: bool = False
    tags: List[str] = field(default_factory=list)
    published_at: Optional[datetime] = None


class RecordingClient:
    """Stand-in for SearchClient that records the calls it receives."""

    def __init__(self) -> None:
        self.calls: List[tuple[str, Any]] = []

    def add(self, documents: Any) -> None:
        batch = list(documents)
        if batch:
            self.calls.append(("add", batch))

    def delete(self, solr_ids: Any) -> None:
        ids = list(solr_ids)
        if ids:
            self.calls.append(("delete", ids))

    def delete_all(self, query: Optional[str] = None) -> None:
        self.calls.append(("delete_all", query))

    def select(self, params: Dict[str, Any]) -> Dict[str, Any]:
        raise AssertionError("select is not expected in this test")

    def added_ids(self) -> List[str]:
        return [doc["solr_id"][0] for name, batch in self.calls if name == "add" for doc in batch]

    def deleted_ids(self) -> List[str]:
        return [solr_id for name, ids in self.calls if name == "delete" for solr_id in ids]


class WidgetStore:
    """In-memory persistence used as the ``fetch_many``/``fetch_all`` loaders."""

    def __init__(self) -> None:
        self.widgets: Dict[int, Widget] = {}
        self.fetch_calls: List[List[Any]] = []
        self.eager_loads: List[List[str]] = []

    def put(self, *widgets: Widget) -> None:
        for widget in widgets:
            self.widgets[widget.id] = widget

    def fetch_many(self, ids: List[Any]) -> List[Widget]:
        self.fetch_calls.append(list(ids))
        return [self.widgets[key] for key in ids if key in self.widgets]

    def fetch_all(self, offset: int, limit: int, eager_load: List[str]) -> List[Widget]:
        self.eager_loads.append(list(eager_load))
        ordered = [self.widgets[key] for key in sorted(self.widgets)]
        return ordered[offset : offset + limit]


def declare_widgets(
    registry: SchemaRegistry,
    graph: ObserverGraph,
    store: Optional[WidgetStore] = None,
) -> TypeDeclaration:
    """Declare the Widget type the way an application would at start-up."""
    widgets = TypeDeclaration(
        registry,
        graph,
        "Widget",
        associations=[Association("owner", "Owner")],
        fetch_many=store.fetch_many if store else None,
        fetch_all=store.fetch_all if store else None,
    )
    widgets.attribute("title", stored=True)
    widgets.attribute("published_at", type="date", stored=True)
    widgets.method("tags", type="string", stored=True, multi_valued=True)
    widgets.association("owner", "name", as_="owner_name", stored=True)
    widgets.save_unless("archived")
    return widgets


@pytest.fixture
def registry() -> SchemaRegistry:
    return SchemaRegistry()


@pytest.fixture
def graph(registry: SchemaRegistry) -> ObserverGraph:
    return ObserverGraph(registry)


@pytest.fixture
def store() -> WidgetStore:
    return WidgetStore()


@pytest.fixture
def builder(registry: SchemaRegistry, graph: ObserverGraph, store: WidgetStore) -> DocumentBuilder:
    declare_widgets(registry, graph, store)
    return DocumentBuilder(registry)


@pytest.fixture
def recording_client() -> RecordingClient:
    return RecordingClient()
