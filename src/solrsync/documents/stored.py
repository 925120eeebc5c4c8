"""Read-only view over a stored Solr result document."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Mapping

from solrsync.errors import ArgumentError
from solrsync.schema.registry import SchemaRegistry

from .builder import SOLR_DATE_FORMAT

_SOLR_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z$")


def _first(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


class StoredDocument:
    """Lazy accessor over the stored fields of one result document.

    Field access is checked against the schema: reading a field that was never
    registered, or one that is not stored, raises ``ArgumentError``.
    Multi-valued fields come back as lists, single-valued fields as scalars,
    and Solr date strings are parsed into ``datetime`` objects.
    """

    _BUILTINS = ("solr_id", "id", "type_name", "score")

    def __init__(self, raw: Mapping[str, Any], registry: SchemaRegistry) -> None:
        self._raw = dict(raw)
        self._registry = registry

    @property
    def solr_id(self) -> str:
        return str(_first(self._raw["solr_id"]))

    @property
    def type_name(self) -> str:
        return self.solr_id.rpartition("-")[0]

    @property
    def id(self) -> Any:
        key = self.solr_id.rpartition("-")[2]
        return int(key) if key.isdigit() else key

    @property
    def score(self) -> Any:
        return self._raw.get("score")

    def __getitem__(self, name: str) -> Any:
        name = name.rstrip("?")
        if name in self._BUILTINS:
            return getattr(self, name)

        definition = self._registry.field(name)
        if definition is None:
            raise ArgumentError(f"Undefined solr field: {name}")
        if not definition.stored:
            raise ArgumentError(f"Attempting to access solr field {name} which is not stored.")

        if name not in self._raw:
            return [] if definition.multi_valued else None

        raw = self._raw[name]
        if definition.multi_valued:
            values = raw if isinstance(raw, list) else [raw]
            return [self._convert(value) for value in values]
        return self._convert(_first(raw))

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self[name]
        except ArgumentError as exc:
            raise AttributeError(str(exc)) from exc

    def to_dict(self) -> dict[str, Any]:
        """Return the raw document as received from Solr."""
        return dict(self._raw)

    def __repr__(self) -> str:
        return f"<StoredDocument {self.solr_id} score={self.score}>"

    @staticmethod
    def _convert(value: Any) -> Any:
        if isinstance(value, str) and _SOLR_DATE.match(value):
            return datetime.strptime(value, SOLR_DATE_FORMAT)
        return value


__all__ = ["StoredDocument"]
