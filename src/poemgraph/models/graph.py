"""Graph view models - nodes and links handed to the force-graph front end."""

from dataclasses import dataclass, field
from typing import Any

NodeId = int | str

UNKNOWN_TYPE = "unknown"


@dataclass
class GraphNode:
    """
    A node in the rendered graph.

    `id` is the Neo4j internal identity when available, otherwise the
    resolved display label. `group` mirrors `type` so the front end can
    colour by a key that may later diverge from the node label.
    """

    id: NodeId
    label: str
    type: str = UNKNOWN_TYPE
    properties: dict[str, Any] = field(default_factory=dict)
    group: str | None = None
    neo4j_id: int | None = None

    def __post_init__(self) -> None:
        if self.group is None:
            self.group = self.type

    def to_dict(self) -> dict:
        """Convert to the JSON shape consumed by the front end."""
        return {
            "id": self.id,
            "label": self.label,
            "type": self.type,
            "group": self.group,
            "properties": self.properties,
            "neo4jId": self.neo4j_id,
        }


@dataclass
class GraphLink:
    """A directed, typed edge between two node ids of the same response."""

    source: NodeId
    target: NodeId
    type: str

    def to_dict(self) -> dict:
        return {"source": self.source, "target": self.target, "type": self.type}


@dataclass
class GraphView:
    """Ordered nodes and links for one response."""

    nodes: list[GraphNode] = field(default_factory=list)
    links: list[GraphLink] = field(default_factory=list)

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def link_count(self) -> int:
        return len(self.links)

    def to_dict(self) -> dict:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "links": [link.to_dict() for link in self.links],
        }
