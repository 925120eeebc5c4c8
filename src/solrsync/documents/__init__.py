"""Entity-to-document rendering and stored result documents."""

from .accessors import AttributeAccessor, EntityAccessor
from .builder import (
    DocumentBuilder,
    SolrDocument,
    as_members,
    coerce_solr_date,
    format_solr_date,
)
from .stored import StoredDocument

__all__ = [
    "AttributeAccessor",
    "EntityAccessor",
    "DocumentBuilder",
    "SolrDocument",
    "StoredDocument",
    "as_members",
    "coerce_solr_date",
    "format_solr_date",
]
