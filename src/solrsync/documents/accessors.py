"""Accessor capability used to read values out of application entities."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class EntityAccessor(Protocol):
    """Capability the persistence layer provides so entities can be indexed."""

    def type_name(self, entity: Any) -> str:
        """Return the type tag of ``entity``."""
        ...

    def primary_key(self, entity: Any) -> Any:
        """Return the primary key of ``entity``."""
        ...

    def read(self, entity: Any, name: str) -> Any:
        """Return the value of an attribute or zero-argument method."""
        ...

    def related(self, entity: Any, association: str) -> Any:
        """Return the object, collection, or None reached through ``association``."""
        ...


class AttributeAccessor:
    """Default accessor reading plain Python attributes.

    The type tag is the entity's class name unless the class defines
    ``solr_type_name``. Callables found on the entity are invoked without
    arguments, so methods and properties index the same way.
    """

    def __init__(self, primary_key_attribute: str = "id") -> None:
        self.primary_key_attribute = primary_key_attribute

    def type_name(self, entity: Any) -> str:
        return getattr(type(entity), "solr_type_name", None) or type(entity).__name__

    def primary_key(self, entity: Any) -> Any:
        return getattr(entity, self.primary_key_attribute)

    def read(self, entity: Any, name: str) -> Any:
        value = getattr(entity, name)
        return value() if callable(value) else value

    def related(self, entity: Any, association: str) -> Any:
        return self.read(entity, association)


__all__ = ["EntityAccessor", "AttributeAccessor"]
