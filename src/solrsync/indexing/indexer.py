"""Routing of index writes through an optional per-context batch buffer."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterable, Iterator, List, Optional, Sequence

from solrsync.client.client import SearchClient
from solrsync.documents.builder import DocumentBuilder, SolrDocument
from solrsync.errors import ArgumentError, NestedBatchError

from .buffer import BatchBuffer

LOGGER = logging.getLogger(__name__)


class Indexer:
    """Send index writes to Solr, buffering them while a batch scope is active.

    The buffer and the auto-index toggle live in context variables owned by
    the instance, so concurrent units of work (threads, tasks) each see their
    own scope.
    """

    def __init__(
        self,
        client: SearchClient,
        builder: DocumentBuilder,
        *,
        auto_index: bool = True,
        reindex_batch_size: int = 1_000,
    ) -> None:
        self.client = client
        self.builder = builder
        self.reindex_batch_size = reindex_batch_size
        self._auto_index = auto_index
        self._auto_index_override: ContextVar[Optional[bool]] = ContextVar(
            f"solrsync_auto_index_{id(self)}", default=None
        )
        self._buffer: ContextVar[Optional[BatchBuffer]] = ContextVar(
            f"solrsync_batch_{id(self)}", default=None
        )

    # Toggles -------------------------------------------------------------

    @property
    def auto_index(self) -> bool:
        override = self._auto_index_override.get()
        return self._auto_index if override is None else override

    @auto_index.setter
    def auto_index(self, value: bool) -> None:
        self._auto_index = value

    @contextmanager
    def disable_auto_index(self) -> Iterator[None]:
        """Ignore lifecycle events in the current context until the block exits."""
        token = self._auto_index_override.set(False)
        try:
            yield
        finally:
            self._auto_index_override.reset(token)

    # Batching ------------------------------------------------------------

    @property
    def current_batch(self) -> Optional[BatchBuffer]:
        return self._buffer.get()

    @contextmanager
    def batch(self) -> Iterator[BatchBuffer]:
        """Buffer index writes until the block completes, then flush them.

        On normal completion all pending documents are added in one request and
        pending ids are deleted afterwards. If the block raises, the pending
        operations are discarded and the exception propagates. The buffer is
        emptied on every exit path.

        Raises:
            NestedBatchError: If a batch is already active in this context.
        """
        if self._buffer.get() is not None:
            raise NestedBatchError("A batch scope is already active in this context.")

        buffer = BatchBuffer()
        token = self._buffer.set(buffer)
        try:
            yield buffer
        except BaseException:
            if len(buffer):
                LOGGER.warning(
                    "Discarding %d pending add(s) and %d pending delete(s) after an error.",
                    len(buffer.pending_adds),
                    len(buffer.pending_deletes),
                )
            raise
        else:
            documents, delete_ids = buffer.documents(), buffer.delete_ids()
            LOGGER.info("Flushing batch: %d add(s), %d delete(s)", len(documents), len(delete_ids))
            self.client.add(documents)
            self.client.delete(delete_ids)
        finally:
            buffer.clear()
            self._buffer.reset(token)

    # Writes --------------------------------------------------------------

    def add(self, documents: Iterable[SolrDocument]) -> None:
        batch = list(documents)
        buffer = self._buffer.get()
        if buffer is not None:
            buffer.add(batch)
        elif batch:
            self.client.add(batch)

    def delete(self, solr_ids: Iterable[str]) -> None:
        ids = list(solr_ids)
        buffer = self._buffer.get()
        if buffer is not None:
            buffer.delete(ids)
        elif ids:
            self.client.delete(ids)

    def save(self, entity: Any) -> None:
        """Bring the index entry of ``entity`` up to date.

        The document is added when the entity is saveable and its id deleted
        otherwise.

        Raises:
            ArgumentError: If the entity's type does not index itself.
        """
        if not self.builder.powered(entity):
            raise ArgumentError(
                f"Called save on an entity whose type ({self.builder.type_name(entity)}) "
                "is not indexed."
            )
        if self.builder.saveable(entity):
            self.add([self.builder.build(entity)])
        else:
            self.delete([self.builder.solr_id(entity)])

    def reindex(
        self,
        type_name: str,
        batches: Optional[Iterable[Sequence[Any]]] = None,
        *,
        delete_first: bool = True,
    ) -> int:
        """Rebuild the index entries of one type.

        Args:
            type_name: Type tag to reindex.
            batches: Iterable of entity batches. When omitted, the type's
                ``fetch_all`` loader is paged ``reindex_batch_size`` rows at a time
                and asked to preload the associations the documents read.
            delete_first: Remove every document of the type before adding.

        Returns:
            int: Number of documents sent to Solr.

        Raises:
            ArgumentError: If the type is not indexed, or no batches were given
                and the type has no ``fetch_all`` loader.
        """
        descriptor = self.builder.registry.get_type(type_name)
        if not descriptor.powered:
            raise ArgumentError(f"Type '{type_name}' is not indexed.")
        if batches is None:
            if descriptor.fetch_all is None:
                raise ArgumentError(f"Type '{type_name}' has no fetch_all loader to reindex from.")
            batches = self._paged(descriptor.fetch_all, list(descriptor.eager_load_associations))

        if delete_first:
            self.client.delete_all(f"solr_type:{type_name}")

        total = 0
        for entities in batches:
            documents = [self.builder.build(entity) for entity in entities if self.builder.saveable(entity)]
            if documents:
                self.client.add(documents)
            total += len(documents)
            LOGGER.info("Reindexed %d %s document(s) so far", total, type_name)
        return total

    def _paged(self, fetch_all: Any, eager_load: List[str]) -> Iterator[Sequence[Any]]:
        size = self.reindex_batch_size
        offset = 0
        while True:
            page = fetch_all(offset, size, eager_load)
            yield page
            if len(page) != size:
                return
            offset += size


__all__ = ["Indexer"]
