"""Translate request parameters into a compiled filter query."""

from __future__ import annotations

import re
from typing import Any, List, Mapping

from solrsync.documents.builder import coerce_solr_date
from solrsync.errors import ArgumentError
from solrsync.schema.registry import SchemaRegistry

from .compiler import MATCH_ALL, Sequence, compile_query

_KEY = re.compile(r"^(.+?)(?:-(.+))?$")
_BUILTIN_FIELDS = ("solr_id", "solr_type")


def _values(raw: Any) -> List[Any]:
    if isinstance(raw, (list, tuple)):
        return list(raw)
    return [raw]


def params_to_query(
    params: Mapping[str, Any],
    registry: SchemaRegistry,
    *,
    default_search_field: str = "q",
    default_operator: str = "AND",
) -> str:
    """Build a query string from request-style parameters.

    Keys name an indexed field, optionally followed by a suffix:

    ``field``              ``field:value`` (the default search field maps to a bare term)
    ``field-min``          ``field:[value TO *]``
    ``field-max``          ``field:[* TO value]``
    ``field-range``        ``field:[lo TO hi]`` from a ``"lo,hi"`` value
    ``field-begins-with``  ``field:value*``
    ``field-in``           ``(field:a OR field:b ...)``

    Keys that are not index fields are ignored. Values of date fields are
    normalized to Solr date strings and every value is escaped.

    Args:
        params: Request parameters; list values produce one clause each.
        registry: Schema used to recognise field names and date fields.
        default_search_field: Parameter name holding free-text terms.
        default_operator: Operator joining the clauses.

    Returns:
        str: Compiled query, ``*:*`` when no clause applies.

    Raises:
        ArgumentError: On an unknown suffix or a malformed range.
    """
    clauses: List[str] = []
    args: List[Any] = []

    for key, raw in params.items():
        match = _KEY.match(str(key))
        if match is None:
            continue
        name, suffix = match.group(1), match.group(2)
        definition = registry.field(name)
        if definition is None and name not in _BUILTIN_FIELDS and name != default_search_field:
            continue

        is_date = definition is not None and definition.type == "date"
        values = [coerce_solr_date(value) if is_date and suffix != "range" else value for value in _values(raw)]
        if not values:
            continue

        if suffix == "in":
            clauses.append("(" + " OR ".join(f"{name}:?" for _ in values) + ")")
            args.extend(values)
            continue

        for value in values:
            if suffix is None:
                clauses.append("?" if name == default_search_field else f"{name}:?")
                args.append(value)
            elif suffix == "min":
                clauses.append(f"{name}:[? TO *]")
                args.append(value)
            elif suffix == "max":
                clauses.append(f"{name}:[* TO ?]")
                args.append(value)
            elif suffix == "range":
                low, sep, high = str(value).partition(",")
                if not sep:
                    raise ArgumentError(f"Range value for '{key}' must look like 'low,high': {value!r}")
                bounds = []
                for bound in (low.strip(), high.strip()):
                    # An open bound stays a bare wildcard.
                    if not bound:
                        bounds.append("*")
                        continue
                    bounds.append("?")
                    args.append(coerce_solr_date(bound) if is_date else bound)
                clauses.append(f"{name}:[{bounds[0]} TO {bounds[1]}]")
            elif suffix == "begins-with":
                clauses.append(f"{name}:?*")
                args.append(value)
            else:
                raise ArgumentError(f"Unknown filter suffix '{suffix}' in parameter '{key}'")

    template = f" {default_operator} ".join(clauses) or MATCH_ALL
    return compile_query(Sequence(template, args))


__all__ = ["params_to_query"]
