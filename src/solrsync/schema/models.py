"""Schema data models: field definitions, extractors, and indexed type descriptors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict

AssociationKind = Literal["belongs_to", "has_one", "has_many", "has_and_belongs_to_many"]
SaveCondition = Union[str, Callable[[Any], Any]]


class FieldDefinition(BaseModel):
    """Definition of a single Solr schema field.

    Attributes:
        name: Unique field name in the Solr schema.
        type: Solr field type (``string``, ``integer``, ``date``, ``text`` ...).
        indexed: Whether the field is searchable.
        stored: Whether the field value is returned with results.
        multi_valued: Whether the field holds more than one value.
        required: Whether every document must carry the field.
        copy_to: Optional destination field for a ``copyField`` directive.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    type: str = "string"
    indexed: bool = True
    stored: bool = False
    multi_valued: bool = False
    required: bool = False
    copy_to: Optional[str] = None


@dataclass(frozen=True)
class Direct:
    """Read a field value from an attribute or zero-argument method of the entity."""

    name: str


@dataclass(frozen=True)
class Indirect:
    """Read a field value through an association, calling ``remote_method`` on each member."""

    association: str
    remote_method: str


FieldExtractor = Union[Direct, Indirect]


@dataclass(frozen=True)
class Association:
    """Reflection of an association declared by the persistence layer.

    Attributes:
        name: Association name on the owning type.
        target_type: Type tag of the related entities.
        kind: Cardinality of the association.
        polymorphic: True when the target type is decided per row.
        inverse_as: Name of an ``as``-style polymorphic inverse, if any.
        through: Name of an intermediate association, if the association is indirect.
    """

    name: str
    target_type: str
    kind: AssociationKind = "belongs_to"
    polymorphic: bool = False
    inverse_as: Optional[str] = None
    through: Optional[str] = None

    @property
    def collection(self) -> bool:
        """Return True when the association yields several members."""
        return self.kind in ("has_many", "has_and_belongs_to_many")


@dataclass
class IndexedType:
    """Per-type indexing configuration, mutated only during start-up.

    Attributes:
        name: Type tag (also the prefix of every ``solr_id``).
        parent: Type tag of the supertype, or None at the root of a hierarchy.
        associations: Associations the type declares, keyed by name.
        fetch_many: Loader returning live entities for a list of primary keys.
        fetch_all: Optional loader ``(offset, limit, eager_load) -> entities`` used when
            reindexing; ``eager_load`` lists the associations to preload.
        document_fields: Solr field name mapped to the extractor that fills it.
        watched_attributes: Local attributes whose change forces a reindex.
        eager_load_associations: Associations to preload when reindexing.
        save_if: Condition that must be truthy for the entity to be indexed.
        save_unless: Condition that must be falsy for the entity to be indexed.
        powered: Whether the type indexes itself.
    """

    name: str
    parent: Optional[str] = None
    associations: Dict[str, Association] = field(default_factory=dict)
    fetch_many: Optional[Callable[[List[Any]], Iterable[Any]]] = None
    fetch_all: Optional[Callable[[int, int, List[str]], Sequence[Any]]] = None
    document_fields: Dict[str, FieldExtractor] = field(default_factory=dict)
    watched_attributes: List[str] = field(default_factory=list)
    eager_load_associations: List[str] = field(default_factory=list)
    save_if: Optional[SaveCondition] = None
    save_unless: Optional[SaveCondition] = None
    powered: bool = False

    def watch(self, *attribute_names: str) -> None:
        """Add attributes to the watched set, keeping declaration order."""
        for name in attribute_names:
            if name not in self.watched_attributes:
                self.watched_attributes.append(name)

    def watches_any(self, attribute_names: Iterable[str]) -> bool:
        """Return True when any of ``attribute_names`` is watched."""
        watched = set(self.watched_attributes)
        return any(name in watched for name in attribute_names)


__all__ = [
    "AssociationKind",
    "SaveCondition",
    "FieldDefinition",
    "Direct",
    "Indirect",
    "FieldExtractor",
    "Association",
    "IndexedType",
]
