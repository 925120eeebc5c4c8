"""Solr schema fields and indexed type descriptors."""

from .models import (
    Association,
    Direct,
    FieldDefinition,
    FieldExtractor,
    IndexedType,
    Indirect,
)
from .registry import SchemaRegistry

__all__ = [
    "Association",
    "Direct",
    "FieldDefinition",
    "FieldExtractor",
    "IndexedType",
    "Indirect",
    "SchemaRegistry",
]
