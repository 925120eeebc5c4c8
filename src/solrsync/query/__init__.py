"""Query compilation, faceted search building and result shaping."""

from .compiler import MATCH_ALL, Sequence, compile_query, escape_term
from .faceted import CompiledSelect, FacetedQueryBuilder
from .filters import params_to_query
from .finder import FORMAT_FIELDS, Finder
from .results import ResultCollection

__all__ = [
    "MATCH_ALL",
    "Sequence",
    "compile_query",
    "escape_term",
    "CompiledSelect",
    "FacetedQueryBuilder",
    "params_to_query",
    "FORMAT_FIELDS",
    "Finder",
    "ResultCollection",
]
