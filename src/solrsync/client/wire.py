"""Encoders for the Solr XML update protocol and select query strings."""

from __future__ import annotations

import re
from html import escape
from typing import Any, Iterable, List, Mapping, Tuple
from urllib.parse import urlencode

# C0 controls and DEL, except tab, line feed and carriage return.
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def strip_control_chars(payload: str) -> str:
    """Remove characters Solr rejects from an update payload."""
    return _CONTROL_CHARS.sub("", payload)


def to_wire_value(value: Any) -> str:
    """Render a scalar the way Solr reads it (booleans as ``true``/``false``)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_add(documents: Iterable[Mapping[str, Any]]) -> str:
    """Serialize documents into an ``<add>`` batch.

    List values become one ``<field>`` element per value; all names and
    values are HTML-escaped.
    """
    lines = ["<add>"]
    for document in documents:
        lines.append("  <doc>")
        for name, value in document.items():
            values = value if isinstance(value, (list, tuple)) else [value]
            for item in values:
                lines.append(
                    f'    <field name="{escape(str(name))}">{escape(to_wire_value(item))}</field>'
                )
        lines.append("  </doc>")
    lines.append("</add>")
    return "\n".join(lines)


def encode_delete_id(solr_id: str) -> str:
    return f"<delete><id>{escape(str(solr_id))}</id></delete>"


def encode_delete_query(query: str) -> str:
    return f"<delete><query>{escape(query)}</query></delete>"


def encode_command(command: str, options: Mapping[str, Any] | None = None) -> str:
    """Render a ``<commit/>`` or ``<optimize/>`` element with optional attributes."""
    attributes = "".join(
        f' {name}="{escape(to_wire_value(value))}"'
        for name, value in (options or {}).items()
        if value is not None
    )
    return f"<{command}{attributes}/>"


def param_pairs(params: Mapping[str, Any]) -> List[Tuple[str, str]]:
    """Flatten select params into ordered pairs, repeating keys for list values."""
    pairs: List[Tuple[str, str]] = []
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            pairs.extend((key, to_wire_value(item)) for item in value)
        else:
            pairs.append((key, to_wire_value(value)))
    return pairs


def encode_params(params: Mapping[str, Any]) -> str:
    """Return the URL-encoded query string for a select request."""
    return urlencode(param_pairs(params))


__all__ = [
    "strip_control_chars",
    "to_wire_value",
    "encode_add",
    "encode_delete_id",
    "encode_delete_query",
    "encode_command",
    "param_pairs",
    "encode_params",
]
