"""Pending add/delete operations collected inside one batch scope."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping

from solrsync.documents.builder import SolrDocument


def document_id(document: Mapping[str, Any]) -> str:
    """Return the ``solr_id`` of a document whether stored as a list or a scalar."""
    value = document["solr_id"]
    if isinstance(value, (list, tuple)):
        return str(value[0])
    return str(value)


class BatchBuffer:
    """Last-write-wins buffer of pending index operations keyed by ``solr_id``.

    An id is never pending in both maps at once: adding a document evicts a
    pending delete for the same id, and deleting an id evicts a pending add.
    """

    def __init__(self) -> None:
        self.pending_adds: Dict[str, SolrDocument] = {}
        self.pending_deletes: Dict[str, None] = {}

    def add(self, documents: Iterable[SolrDocument]) -> None:
        for document in documents:
            solr_id = document_id(document)
            self.pending_adds[solr_id] = document
            self.pending_deletes.pop(solr_id, None)

    def delete(self, solr_ids: Iterable[str]) -> None:
        for solr_id in solr_ids:
            self.pending_deletes[solr_id] = None
            self.pending_adds.pop(solr_id, None)

    def documents(self) -> List[SolrDocument]:
        return list(self.pending_adds.values())

    def delete_ids(self) -> List[str]:
        return list(self.pending_deletes)

    def clear(self) -> None:
        self.pending_adds.clear()
        self.pending_deletes.clear()

    def __len__(self) -> int:
        return len(self.pending_adds) + len(self.pending_deletes)

    def __repr__(self) -> str:
        return f"<BatchBuffer adds={len(self.pending_adds)} deletes={len(self.pending_deletes)}>"


__all__ = ["BatchBuffer", "document_id"]
