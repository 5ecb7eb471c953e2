"""Poemgraph view models."""

from poemgraph.models.graph import UNKNOWN_TYPE, GraphLink, GraphNode, GraphView, NodeId
from poemgraph.models.poem import PoemRecord, dedupe_poems, first_present

__all__ = [
    "GraphNode",
    "GraphLink",
    "GraphView",
    "NodeId",
    "UNKNOWN_TYPE",
    "PoemRecord",
    "dedupe_poems",
    "first_present",
]
