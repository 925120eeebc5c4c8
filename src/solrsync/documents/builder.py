"""Render entities into Solr documents."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from solrsync.errors import ArgumentError
from solrsync.schema.models import Direct, IndexedType, SaveCondition
from solrsync.schema.registry import SchemaRegistry

from .accessors import AttributeAccessor, EntityAccessor

SOLR_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

SolrDocument = Dict[str, List[Any]]


def format_solr_date(value: date) -> str:
    """Format a date or datetime the way Solr expects.

    The value is rendered in its own time zone with a literal ``Z``; it is not
    converted to UTC first.
    """
    return value.strftime(SOLR_DATE_FORMAT)


def coerce_solr_date(value: Any) -> str:
    """Return ``value`` (a date, datetime or ISO-8601 string) as a Solr date string.

    Raises:
        ArgumentError: If a string cannot be parsed as a date.
    """
    if isinstance(value, date):
        return format_solr_date(value)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1]
    try:
        parsed: date = datetime.fromisoformat(text)
    except ValueError:
        try:
            parsed = date.fromisoformat(text)
        except ValueError:
            raise ArgumentError(f"Unable to parse date value {value!r}") from None
    return format_solr_date(parsed)


def as_members(value: Any) -> List[Any]:
    """Normalize a single object, collection, or None into a list without Nones."""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return [member for member in value if member is not None]
    return [value]


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


class DocumentBuilder:
    """Build document snapshots and evaluate indexing conditions for entities."""

    def __init__(self, registry: SchemaRegistry, accessor: Optional[EntityAccessor] = None) -> None:
        self.registry = registry
        self.accessor: EntityAccessor = accessor or AttributeAccessor()

    def type_name(self, entity: Any) -> str:
        return self.accessor.type_name(entity)

    def solr_id(self, entity: Any) -> str:
        """Return ``"{Type}-{primaryKey}"`` for ``entity``."""
        return f"{self.accessor.type_name(entity)}-{self.accessor.primary_key(entity)}"

    def descriptor(self, entity: Any) -> Optional[IndexedType]:
        return self.registry.find_type(self.accessor.type_name(entity))

    def powered(self, entity: Any) -> bool:
        descriptor = self.descriptor(entity)
        return descriptor is not None and descriptor.powered

    def saveable(self, entity: Any) -> bool:
        """Return True if ``entity`` should be present in the index.

        An entity is saveable when its type is powered, its ``save_if``
        condition (if any) is truthy and its ``save_unless`` condition (if any)
        is falsy.
        """
        descriptor = self.descriptor(entity)
        if descriptor is None or not descriptor.powered:
            return False
        if descriptor.save_if is not None and not self._evaluate(descriptor.save_if, entity):
            return False
        if descriptor.save_unless is not None and self._evaluate(descriptor.save_unless, entity):
            return False
        return True

    def build(self, entity: Any) -> SolrDocument:
        """Render ``entity`` into a document.

        Args:
            entity: Entity of a registered type.

        Returns:
            SolrDocument: Field name mapped to an ordered list of values,
            always carrying ``solr_id`` and ``solr_type``.

        Raises:
            ArgumentError: If the entity's type has not been registered.
        """
        type_name = self.accessor.type_name(entity)
        descriptor = self.registry.get_type(type_name)
        document: SolrDocument = {
            "solr_id": [self.solr_id(entity)],
            "solr_type": [type_name],
        }
        for field_name, extractor in descriptor.document_fields.items():
            if isinstance(extractor, Direct):
                raw = self.accessor.read(entity, extractor.name)
                values = list(raw) if isinstance(raw, (list, tuple)) else [raw]
            else:
                members = as_members(self.accessor.related(entity, extractor.association))
                values = [self.accessor.read(member, extractor.remote_method) for member in members]

            document[field_name] = [
                format_solr_date(value) if isinstance(value, date) else value
                for value in values
                if not _is_empty(value)
            ]
        return document

    def _evaluate(self, condition: SaveCondition, entity: Any) -> Any:
        if isinstance(condition, str):
            return self.accessor.read(entity, condition)
        return condition(entity)


__all__ = [
    "DocumentBuilder",
    "SolrDocument",
    "SOLR_DATE_FORMAT",
    "format_solr_date",
    "coerce_solr_date",
    "as_members",
]
