"""Turn raw Neo4j rows into deduplicated node/link view models.

Rows are plain dicts as returned by `storage.fetch_rows`:

- relationship rows: ``sourceId``, ``sourceLabels``, ``sourceProps``,
  ``relType``, ``targetId``, ``targetLabels``, ``targetProps``
- subgraph node rows: ``id``, ``labels``, ``properties``
- subgraph relationship rows: ``type``, ``start``, ``end``
- poem rows: ``id``, ``properties``

Node identity is the internal Neo4j id when present, otherwise the display
label. Two anonymous nodes that share a label therefore collapse into one.
"""

import logging
from collections.abc import Iterable
from typing import Any

from poemgraph.models import (
    UNKNOWN_TYPE,
    GraphLink,
    GraphNode,
    GraphView,
    NodeId,
    PoemRecord,
    dedupe_poems,
    first_present,
)

logger = logging.getLogger(__name__)

LABEL_KEYS = ("name", "title", "genre")


def resolve_label(props: dict[str, Any] | None, identity: int | None) -> str:
    """Display label: name, then title, then genre, then the identity."""
    value = first_present(props or {}, LABEL_KEYS, default=None)
    if value is not None:
        return str(value)
    return "null" if identity is None else str(identity)


def resolve_type(labels: Iterable[str] | None) -> str:
    """Primary classification: the first declared label."""
    for label in labels or ():
        return label
    return UNKNOWN_TYPE


def resolve_node_id(identity: int | None, label: str) -> NodeId:
    return identity if identity is not None else label


class GraphBuilder:
    """Accumulates one response's nodes and links.

    First occurrence of an id wins; later rows for the same id are ignored.
    Insertion order follows first appearance.
    """

    def __init__(self) -> None:
        self._nodes: dict[NodeId, GraphNode] = {}
        self._links: list[GraphLink] = []

    def add_node(
        self,
        identity: int | None,
        labels: Iterable[str] | None,
        props: dict[str, Any] | None,
    ) -> NodeId:
        """Register a node and return its resolved id."""
        props = dict(props or {})
        label = resolve_label(props, identity)
        node_id = resolve_node_id(identity, label)
        if node_id not in self._nodes:
            self._nodes[node_id] = GraphNode(
                id=node_id,
                label=label,
                type=resolve_type(labels),
                properties=props,
                neo4j_id=identity,
            )
        return node_id

    def add_link(self, source: NodeId, target: NodeId, rel_type: str) -> None:
        self._links.append(GraphLink(source=source, target=target, type=rel_type))

    def build(self) -> GraphView:
        return GraphView(nodes=list(self._nodes.values()), links=list(self._links))


def normalize_relationship_rows(rows: Iterable[dict[str, Any]]) -> GraphView:
    """Build a view from (source)-[rel]->(target) rows."""
    builder = GraphBuilder()
    for row in rows:
        source = builder.add_node(
            row.get("sourceId"), row.get("sourceLabels"), row.get("sourceProps")
        )
        target = builder.add_node(
            row.get("targetId"), row.get("targetLabels"), row.get("targetProps")
        )
        builder.add_link(source, target, row.get("relType") or "")
    return builder.build()


def normalize_subgraph(
    node_rows: Iterable[dict[str, Any]],
    rel_rows: Iterable[dict[str, Any]],
) -> GraphView:
    """Build a view from separate path-node and path-relationship rows.

    Relationships carry explicit start/end identities, so links reference
    the internal ids directly. Relationships missing an endpoint are dropped.
    """
    builder = GraphBuilder()
    for row in node_rows:
        builder.add_node(row.get("id"), row.get("labels"), row.get("properties"))

    skipped = 0
    for row in rel_rows:
        start, end = row.get("start"), row.get("end")
        if start is None or end is None:
            skipped += 1
            continue
        builder.add_link(start, end, row.get("type") or "")
    if skipped:
        logger.debug(f"Skipped {skipped} relationships without endpoints")
    return builder.build()


def normalize_poem_rows(rows: Iterable[dict[str, Any]]) -> list[PoemRecord]:
    """Map Poem node rows to records, deduplicated by id."""
    records = [
        PoemRecord.from_properties(dict(row.get("properties") or {}), row.get("id"))
        for row in rows
    ]
    return dedupe_poems(records)
