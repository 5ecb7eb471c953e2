"""Storage layer for Poemgraph."""

from poemgraph.storage.gateway import KnowledgeGraphGateway
from poemgraph.storage.neo4j_client import Neo4jClient, fetch_rows

__all__ = [
    "Neo4jClient",
    "KnowledgeGraphGateway",
    "fetch_rows",
]
