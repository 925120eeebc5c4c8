"""Start-up helpers declaring how an entity type is indexed.

Each entity type calls these from its own initialization code, e.g.::

    widgets = TypeDeclaration(registry, graph, "Widget", associations=[owner])
    widgets.attribute("title", stored=True)
    widgets.association("owner", "name", as_="owner_name")
    widgets.save_unless("archived")
"""

from __future__ import annotations

import re
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence

from solrsync.errors import ArgumentError, ObserverConfigError
from solrsync.observers import ObserverGraph, ObserverRule
from solrsync.schema.models import (
    Association,
    Direct,
    FieldDefinition,
    IndexedType,
    Indirect,
    SaveCondition,
)
from solrsync.schema.registry import SchemaRegistry

_FIELD_OPTIONS = ("type", "indexed", "stored", "multi_valued", "required", "copy_to")


def _underscore(type_name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", type_name).lower()


def _merge_type(
    indexed_type: IndexedType,
    parent: Optional[str],
    associations: Iterable[Association],
    fetch_many: Optional[Callable[[list], Iterable[Any]]],
    fetch_all: Optional[Callable[[int, int, List[str]], Sequence[Any]]],
) -> None:
    """Fold a repeated declaration into an already registered type.

    Unset values are filled in; a value that differs from the registered one
    raises instead of being dropped.

    Raises:
        ArgumentError: If ``parent``, a loader or an association of the same
            name disagrees with the registered type.
    """
    name = indexed_type.name
    for attribute, value in (("parent", parent), ("fetch_many", fetch_many), ("fetch_all", fetch_all)):
        if value is None:
            continue
        current = getattr(indexed_type, attribute)
        if current is None:
            setattr(indexed_type, attribute, value)
        elif current != value:
            raise ArgumentError(f"{name} is already declared with a different {attribute}.")

    for association in associations:
        current_association = indexed_type.associations.get(association.name)
        if current_association is None:
            indexed_type.associations[association.name] = association
        elif current_association != association:
            raise ArgumentError(
                f"{name} already declares association {association.name} differently."
            )


class TypeDeclaration:
    """Fluent declaration API for one entity type."""

    def __init__(
        self,
        registry: SchemaRegistry,
        graph: ObserverGraph,
        type_name: str,
        *,
        parent: Optional[str] = None,
        associations: Iterable[Association] = (),
        fetch_many: Optional[Callable[[list], Iterable[Any]]] = None,
        fetch_all: Optional[Callable[[int, int, List[str]], Sequence[Any]]] = None,
    ) -> None:
        self._registry = registry
        self._graph = graph
        existing = registry.find_type(type_name)
        if existing is None:
            existing = registry.register_type(
                IndexedType(
                    name=type_name,
                    parent=parent,
                    associations={assoc.name: assoc for assoc in associations},
                    fetch_many=fetch_many,
                    fetch_all=fetch_all,
                )
            )
        else:
            _merge_type(existing, parent, associations, fetch_many, fetch_all)
        self.indexed_type = existing

    @property
    def name(self) -> str:
        return self.indexed_type.name

    def attribute(self, *attribute_names: str, as_: Optional[str] = None, **options: Any) -> "TypeDeclaration":
        """Index one or more plain attributes and watch them for changes.

        Raises:
            ArgumentError: If no names are given, ``multi_valued`` is passed, or
                ``as_`` is combined with several attribute names.
        """
        if "multi_valued" in options:
            raise ArgumentError("multi_valued is assumed False for entity attributes.")
        if not attribute_names:
            raise ArgumentError("At least one attribute name is required.")
        if as_ is not None and len(attribute_names) > 1:
            raise ArgumentError("as_ is only allowed with a single attribute name.")

        for attribute_name in attribute_names:
            field_name = as_ or attribute_name
            self._register_field(field_name, options, multi_valued=False)
            self._registry.add_document_field(self.name, field_name, Direct(attribute_name))

        self.indexed_type.powered = True
        self.indexed_type.watch(*attribute_names)
        return self

    def method(
        self,
        method_name: str,
        *,
        as_: Optional[str] = None,
        attributes: Iterable[str] = (),
        associations: Iterable[Mapping[str, Any]] = (),
        **options: Any,
    ) -> "TypeDeclaration":
        """Index the return value of ``method_name``.

        Args:
            method_name: Attribute or zero-argument method to call.
            as_: Solr field name, defaults to ``method_name``.
            attributes: Local attributes whose change forces a reindex.
            associations: Mappings with ``name``, ``attributes`` and
                ``return_association`` describing related values the method reads.
            **options: Field definition options.
        """
        observed_associations = [
            (self._association(observed["name"]), observed) for observed in associations
        ]
        field_name = as_ or method_name
        self._register_field(field_name, options)
        self._registry.add_document_field(self.name, field_name, Direct(method_name))

        self.indexed_type.watch(*attributes)
        for association, observed in observed_associations:
            self._observe(association, observed.get("attributes", ()), observed["return_association"])
        self.indexed_type.powered = True
        return self

    def association(
        self,
        association_name: str,
        remote_method: str,
        *,
        as_: Optional[str] = None,
        association_attributes: Optional[Iterable[str]] = None,
        return_association: Optional[str] = None,
        attributes: Iterable[str] = (),
        **options: Any,
    ) -> "TypeDeclaration":
        """Index ``remote_method`` of the members of an association.

        Changes to ``association_attributes`` (default: ``remote_method``) of the
        related entities reindex this type through ``return_association``.
        """
        association = self._association(association_name)
        options.setdefault("multi_valued", association.collection)
        field_name = as_ or association_name
        self._register_field(field_name, options)
        self._registry.add_document_field(
            self.name, field_name, Indirect(association.name, remote_method)
        )

        if return_association is None:
            if association.kind in ("has_one", "has_many"):
                return_association = _underscore(self.name)
            else:
                return_association = _underscore(self.name) + "s"
        observed = list(association_attributes) if association_attributes is not None else [remote_method]
        self._observe(association, observed, return_association)

        self.indexed_type.watch(*attributes)
        if association.name not in self.indexed_type.eager_load_associations:
            self.indexed_type.eager_load_associations.append(association.name)
        self.indexed_type.powered = True
        return self

    def save_if(self, condition: SaveCondition) -> "TypeDeclaration":
        """Only index entities for which ``condition`` is truthy."""
        self.indexed_type.save_if = condition
        return self

    def save_unless(self, condition: SaveCondition) -> "TypeDeclaration":
        """Skip entities for which ``condition`` is truthy."""
        self.indexed_type.save_unless = condition
        return self

    def _association(self, name: str) -> Association:
        try:
            return self.indexed_type.associations[name]
        except KeyError:
            raise ObserverConfigError(
                f"Unable to index {name}; it is not defined on {self.name}."
            ) from None

    def _observe(self, association: Association, attributes: Iterable[str], return_association: str) -> None:
        self._graph.register(
            ObserverRule(
                observing_type=self.name,
                association=association.name,
                observed_type=association.target_type,
                observed_attributes=tuple(attributes),
                return_association=return_association,
            )
        )

    def _register_field(self, name: str, options: Mapping[str, Any], **forced: Any) -> None:
        unknown = set(options) - set(_FIELD_OPTIONS)
        if unknown:
            raise ArgumentError(f"Unknown field options for {name}: {sorted(unknown)}")
        values = {key: options[key] for key in _FIELD_OPTIONS if key in options}
        values.update(forced)
        if "type" in values:
            values["type"] = str(values["type"])
        self._registry.register(FieldDefinition(name=name, **values))


__all__ = ["TypeDeclaration"]
