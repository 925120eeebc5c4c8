"""Registry of Solr fields and indexed entity types."""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional

from solrsync.errors import ArgumentError, ConfigConflict

from .models import FieldDefinition, FieldExtractor, IndexedType

LOGGER = logging.getLogger(__name__)


class SchemaRegistry:
    """Hold field definitions and type descriptors built once at start-up.

    Field registration is idempotent for identical definitions; a differing
    definition under an existing name raises ``ConfigConflict``. Types are
    registered explicitly with their parent type tag so observer lookups can
    walk a single-table-inheritance style hierarchy without reflection.
    """

    def __init__(self) -> None:
        self._fields: Dict[str, FieldDefinition] = {}
        self._types: Dict[str, IndexedType] = {}

    # Fields -------------------------------------------------------------

    def register(self, definition: FieldDefinition) -> FieldDefinition:
        """Register ``definition`` and return the stored instance.

        Args:
            definition: Field to add to the schema.

        Returns:
            FieldDefinition: The registered definition.

        Raises:
            ConfigConflict: If a different definition already uses the name.
        """
        existing = self._fields.get(definition.name)
        if existing is not None:
            if existing != definition:
                raise ConfigConflict(
                    definition.name,
                    existing.model_dump(),
                    definition.model_dump(),
                )
            return existing
        self._fields[definition.name] = definition
        LOGGER.debug("Registered Solr field %s (%s)", definition.name, definition.type)
        return definition

    def field(self, name: str) -> Optional[FieldDefinition]:
        """Return the definition registered under ``name`` if any."""
        return self._fields.get(name)

    def has_field(self, name: str) -> bool:
        return name in self._fields

    @property
    def fields(self) -> Dict[str, FieldDefinition]:
        """Return a copy of the registered fields keyed by name."""
        return dict(self._fields)

    # Types --------------------------------------------------------------

    def register_type(self, indexed_type: IndexedType) -> IndexedType:
        """Register an entity type by its tag.

        Raises:
            ArgumentError: If a different descriptor already uses the tag.
        """
        existing = self._types.get(indexed_type.name)
        if existing is not None and existing is not indexed_type:
            raise ArgumentError(f"Type '{indexed_type.name}' is already registered.")
        self._types[indexed_type.name] = indexed_type
        return indexed_type

    def get_type(self, name: str) -> IndexedType:
        """Return the descriptor for ``name``.

        Raises:
            ArgumentError: If the type has not been registered.
        """
        try:
            return self._types[name]
        except KeyError:
            raise ArgumentError(f"Type '{name}' has not been registered.") from None

    def find_type(self, name: str) -> Optional[IndexedType]:
        return self._types.get(name)

    def add_document_field(self, type_name: str, field_name: str, extractor: FieldExtractor) -> None:
        """Map ``field_name`` to ``extractor`` for documents of ``type_name``.

        Raises:
            ArgumentError: If the type already fills ``field_name``.
        """
        indexed_type = self.get_type(type_name)
        if field_name in indexed_type.document_fields:
            raise ArgumentError(
                f"The Solr field '{field_name}' is already configured for {type_name}."
            )
        indexed_type.document_fields[field_name] = extractor

    def ancestry(self, type_name: str) -> List[str]:
        """Return ``type_name`` followed by its registered supertypes, nearest first."""
        chain: List[str] = []
        current: Optional[str] = type_name
        while current is not None and current not in chain:
            chain.append(current)
            descriptor = self._types.get(current)
            current = descriptor.parent if descriptor is not None else None
        return chain

    def powered_types(self) -> Iterator[IndexedType]:
        """Yield every registered type that indexes itself."""
        return (indexed for indexed in self._types.values() if indexed.powered)


__all__ = ["SchemaRegistry"]
