"""Index write routing: batch buffering, explicit saves and lifecycle dispatch."""

from .buffer import BatchBuffer, document_id
from .dispatcher import ChangeDispatcher, Dispatch
from .indexer import Indexer

__all__ = ["BatchBuffer", "ChangeDispatcher", "Dispatch", "Indexer", "document_id"]
