"""Result normalization and pagination."""

from poemgraph.graph.normalizer import (
    GraphBuilder,
    normalize_poem_rows,
    normalize_relationship_rows,
    normalize_subgraph,
    resolve_label,
    resolve_node_id,
    resolve_type,
)
from poemgraph.graph.pagination import (
    Page,
    clamp,
    coerce_limit,
    coerce_non_negative_int,
    coerce_offset,
    paginate,
)

__all__ = [
    "GraphBuilder",
    "normalize_relationship_rows",
    "normalize_subgraph",
    "normalize_poem_rows",
    "resolve_label",
    "resolve_type",
    "resolve_node_id",
    "Page",
    "paginate",
    "clamp",
    "coerce_limit",
    "coerce_offset",
    "coerce_non_negative_int",
]
