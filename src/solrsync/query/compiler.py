"""Compile literal, templated and mapping filter expressions into Lucene query strings."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, List, Mapping, Union

from solrsync.documents.builder import format_solr_date
from solrsync.errors import ArgumentError

MATCH_ALL = "*:*"
PLACEHOLDER = "?"

_SPECIAL = re.compile(r'&&|\|\||[+\-!(){}\[\]^"~*?:\\]')


def escape_term(term: Any) -> str:
    """Backslash-escape Lucene syntax characters in ``term``.

    ``&&`` and ``||`` are matched as whole operators, so a lone ``&`` or ``|``
    is left untouched.
    """
    return _SPECIAL.sub(lambda match: "".join("\\" + char for char in match.group(0)), str(term))


@dataclass(frozen=True)
class Sequence:
    """A query template with positional ``?`` placeholders and their arguments."""

    template: str
    args: List[Any] = field(default_factory=list)


QueryExpression = Union[str, Sequence, Mapping[str, Any], tuple, list]


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    return False


def _render_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, date):
        return escape_term(format_solr_date(value))
    return escape_term(value)


def _render_argument(value: Any) -> str:
    if _is_blank(value):
        return MATCH_ALL
    if isinstance(value, (list, tuple, set, frozenset)):
        return "(" + " OR ".join(_render_scalar(term) for term in value) + ")"
    return _render_scalar(value)


def _compile_sequence(sequence: Sequence) -> str:
    pieces = sequence.template.split(PLACEHOLDER)
    expected = len(pieces) - 1
    if expected != len(sequence.args):
        raise ArgumentError(
            f"Query template {sequence.template!r} has {expected} placeholder(s) "
            f"but {len(sequence.args)} argument(s) were given."
        )
    parts = [pieces[0]]
    for argument, piece in zip(sequence.args, pieces[1:]):
        parts.append(_render_argument(argument))
        parts.append(piece)
    return "".join(parts)


def compile_query(query: QueryExpression) -> str:
    """Compile a query expression into a Lucene query string.

    Args:
        query: One of
            * a literal string, returned verbatim;
            * a ``Sequence`` or a ``(template, *args)`` tuple/list, whose ``?``
              placeholders are replaced left to right by escaped arguments
              (blank arguments become ``*:*`` and lists become ``(a OR b)``);
            * a mapping of field name to value, AND-joined in key order.

    Returns:
        str: The compiled query.

    Raises:
        ArgumentError: If the shape is unsupported or placeholders and
            arguments do not line up.
    """
    if isinstance(query, str):
        return query
    if isinstance(query, Sequence):
        return _compile_sequence(query)
    if isinstance(query, Mapping):
        template = " AND ".join(f"{name}:{PLACEHOLDER}" for name in query)
        return compile_query(Sequence(template, list(query.values())))
    if isinstance(query, (tuple, list)):
        if not query or not isinstance(query[0], str):
            raise ArgumentError("A query sequence must start with a template string.")
        return _compile_sequence(Sequence(query[0], list(query[1:])))
    raise ArgumentError(f"Don't know how to build a query from {type(query).__name__}")


__all__ = [
    "MATCH_ALL",
    "QueryExpression",
    "Sequence",
    "compile_query",
    "escape_term",
]
