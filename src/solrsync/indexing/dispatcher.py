"""Translate entity lifecycle events into index adds and deletes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from solrsync.documents.builder import DocumentBuilder, SolrDocument, as_members
from solrsync.observers import ObserverGraph, ObserverRule

from .buffer import document_id
from .indexer import Indexer

LOGGER = logging.getLogger(__name__)


@dataclass
class Dispatch:
    """Operations emitted for one lifecycle event, in emission order.

    Attributes:
        documents: Documents sent to ``Indexer.add``.
        delete_ids: Ids sent to ``Indexer.delete`` after the add.
    """

    documents: List[SolrDocument] = field(default_factory=list)
    delete_ids: List[str] = field(default_factory=list)


class ChangeDispatcher:
    """React to create, update and destroy events of the persistence layer.

    Adds are always emitted before deletes for the same event so a buffered
    writer never sees a delete overtake an add. The dispatcher does not retry;
    errors raised by the indexer propagate to the caller unchanged.
    """

    def __init__(self, indexer: Indexer, builder: DocumentBuilder, graph: ObserverGraph) -> None:
        self.indexer = indexer
        self.builder = builder
        self.graph = graph

    def on_create(self, entity: Any) -> Dispatch:
        """Index a new entity and refresh every entity that embeds its values."""
        dispatch = Dispatch()
        if not self.indexer.auto_index:
            return dispatch

        if self.builder.saveable(entity):
            dispatch.documents.append(self.builder.build(entity))
        for rule in self._rules(entity):
            dispatch.documents.extend(self._observer_documents(entity, rule))
        return self._emit(dispatch)

    def on_update(self, entity: Any, dirty_attributes: Iterable[str]) -> Dispatch:
        """Reindex after an update.

        A saveable entity is re-added only when a watched attribute changed. An
        entity that is no longer saveable is always deleted, whatever changed.
        Observers are refreshed when one of their observed attributes changed.
        """
        dispatch = Dispatch()
        if not self.indexer.auto_index:
            return dispatch

        dirty = [str(name) for name in dirty_attributes]
        descriptor = self.builder.descriptor(entity)
        if descriptor is not None and descriptor.powered:
            if self.builder.saveable(entity):
                if descriptor.watches_any(dirty):
                    dispatch.documents.append(self.builder.build(entity))
            else:
                dispatch.delete_ids.append(self.builder.solr_id(entity))

        for rule in self._rules(entity):
            if rule.triggered_by(dirty):
                dispatch.documents.extend(self._observer_documents(entity, rule))
        return self._emit(dispatch)

    def on_destroy(self, entity: Any) -> Dispatch:
        """Refresh observers of a destroyed entity, then remove its own document."""
        dispatch = Dispatch()
        if not self.indexer.auto_index:
            return dispatch

        for rule in self._rules(entity):
            dispatch.documents.extend(self._observer_documents(entity, rule))
        if self.builder.powered(entity):
            dispatch.delete_ids.append(self.builder.solr_id(entity))
        return self._emit(dispatch)

    def on_association_change(
        self,
        owner: Any,
        member: Any,
        *,
        removed: bool = False,
        member_deleted: bool = False,
    ) -> Dispatch:
        """Reindex ``owner`` after ``member`` was linked to or unlinked from it.

        Link-table changes of a many-to-many association alter no attribute of
        either side, so ``on_update`` never sees them.

        Args:
            owner: Entity whose association membership changed.
            member: Entity that was added to or removed from the association.
            removed: True when ``member`` was unlinked.
            member_deleted: True when the unlink also deleted ``member`` from the
                store, as a dependent bulk delete does. Ignored unless ``removed``.
        """
        dispatch = Dispatch()
        if not self.indexer.auto_index:
            return dispatch

        if self.builder.powered(owner):
            if self.builder.saveable(owner):
                dispatch.documents.append(self.builder.build(owner))
            else:
                dispatch.delete_ids.append(self.builder.solr_id(owner))
        if removed and member_deleted and self.builder.powered(member):
            dispatch.delete_ids.append(self.builder.solr_id(member))
        return self._emit(dispatch)

    def _rules(self, entity: Any) -> List[ObserverRule]:
        return self.graph.observers_for(self.builder.type_name(entity))

    def _observer_documents(self, entity: Any, rule: ObserverRule) -> List[SolrDocument]:
        members = as_members(self.builder.accessor.related(entity, rule.return_association))
        return [self.builder.build(member) for member in members if self.builder.saveable(member)]

    def _emit(self, dispatch: Dispatch) -> Dispatch:
        unique: Dict[str, SolrDocument] = {}
        for document in dispatch.documents:
            unique[document_id(document)] = document
        dispatch.documents = list(unique.values())

        if dispatch.documents or dispatch.delete_ids:
            LOGGER.debug(
                "Dispatching %d add(s) and %d delete(s)",
                len(dispatch.documents),
                len(dispatch.delete_ids),
            )
        self.indexer.add(dispatch.documents)
        self.indexer.delete(dispatch.delete_ids)
        return dispatch


__all__ = ["ChangeDispatcher", "Dispatch"]
