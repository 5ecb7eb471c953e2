"""Parameterized Cypher queries behind the HTTP endpoints.

Each public method holds exactly one session for its whole duration and
returns plain row dicts for the normalizer. Driver failures surface as
`UpstreamFailure`.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from neo4j import AsyncSession
from neo4j.exceptions import DriverError, Neo4jError

from poemgraph.config import Settings, settings as default_settings
from poemgraph.errors import NotFound, UpstreamFailure
from poemgraph.graph.pagination import Page, clamp, paginate
from poemgraph.storage.neo4j_client import Neo4jClient, fetch_rows

logger = logging.getLogger(__name__)

# Both endpoints of a relationship, flattened so rows carry no driver objects.
RELATIONSHIP_PROJECTION = """
RETURN id(n) AS sourceId, labels(n) AS sourceLabels, properties(n) AS sourceProps,
       type(r) AS relType,
       id(m) AS targetId, labels(m) AS targetLabels, properties(m) AS targetProps
"""

SEARCH_RELATIONSHIPS_QUERY = """
MATCH (n)-[r]->(m)
WHERE n.name CONTAINS $searchTerm OR n.title CONTAINS $searchTerm
   OR m.name CONTAINS $searchTerm OR m.title CONTAINS $searchTerm
""" + RELATIONSHIP_PROJECTION

NODE_EXISTS_QUERY = "MATCH (n) WHERE id(n) = $nodeId RETURN id(n) AS id LIMIT 1"

POEM_PROJECTION = """
WITH DISTINCT poem
RETURN id(poem) AS id, properties(poem) AS properties
ORDER BY rand()
"""

SEARCH_POEMS_QUERY = """
MATCH (poem:Poem)
WHERE coalesce(poem.title, '') CONTAINS $q OR coalesce(poem.name, '') CONTAINS $q
   OR coalesce(poem.text, '') CONTAINS $q OR coalesce(poem.content, '') CONTAINS $q
   OR coalesce(poem.body, '') CONTAINS $q OR coalesce(poem.author, '') CONTAINS $q
""" + POEM_PROJECTION

ALL_POEMS_QUERY = """
MATCH (poem:Poem)
""" + POEM_PROJECTION

RAW_POEMS_QUERY = """
MATCH (p:Poem)
RETURN id(p) AS id, labels(p) AS labels, properties(p) AS properties
LIMIT $limit
"""

POET_COUNT_QUERY = "MATCH (p:Poet) RETURN count(p) AS c"
POEM_COUNT_QUERY = "MATCH (m:Poem) RETURN count(m) AS c"
TOP_WROTE_QUERY = """
MATCH (p:Poet)-[:WROTE]->(m:Poem)
RETURN p.name AS poet, count(m) AS cnt
ORDER BY cnt DESC
LIMIT $limit
"""
TOP_WROTE_LIMIT = 20


def sample_relationships_query(anchor_label: str) -> str:
    """Relationships anchored at `anchor_label`, in random order."""
    return f"""
MATCH (n:`{anchor_label}`)-[r]->(m)
""" + RELATIONSHIP_PROJECTION + "ORDER BY rand()\n"


def subgraph_nodes_query(depth: int) -> str:
    """Distinct nodes on paths of length 1..depth from the start node.

    Variable-length bounds cannot be parameters, so `depth` is rendered
    into the query text and must already be a validated int.
    """
    return f"""
MATCH (start) WHERE id(start) = $nodeId
MATCH p = (start)-[*1..{int(depth)}]-(m)
UNWIND nodes(p) AS nd
WITH DISTINCT nd
RETURN id(nd) AS id, labels(nd) AS labels, properties(nd) AS properties
LIMIT $limit
"""


def subgraph_relationships_query(depth: int) -> str:
    """Distinct relationships on paths of length 1..depth from the start node."""
    return f"""
MATCH (start) WHERE id(start) = $nodeId
MATCH p = (start)-[*1..{int(depth)}]-(m)
UNWIND relationships(p) AS rl
WITH DISTINCT rl
RETURN id(rl) AS id, type(rl) AS type,
       id(startNode(rl)) AS start, id(endNode(rl)) AS end
LIMIT $limit
"""


class KnowledgeGraphGateway:
    """Read-only query surface over the poetry graph."""

    def __init__(self, client: Neo4jClient, settings: Settings | None = None) -> None:
        self.client = client
        self.settings = settings or default_settings

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncGenerator[AsyncSession, None]:
        try:
            async with self.client.session() as session:
                yield session
        except (Neo4jError, DriverError) as e:
            logger.error(f"Neo4j query failed during {operation}: {e}")
            raise UpstreamFailure(f"Failed to fetch {operation}") from e

    async def relationship_rows(self, search: str | None, page: Page) -> list[dict[str, Any]]:
        """Relationship rows matching `search`, or a random sample when empty."""
        if search and search.strip():
            query = SEARCH_RELATIONSHIPS_QUERY
        else:
            query = sample_relationships_query(self.settings.anchor_label)
        params: dict[str, Any] = {"searchTerm": search or None, **page.params()}
        logger.debug(f"Running knowledge graph query with params: {params}")

        async with self._session("knowledge graph") as session:
            return await fetch_rows(session, paginate(query), **params)

    async def subgraph_rows(
        self, node_id: int, depth: int, limit: int
    ) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
        """Node rows and relationship rows within `depth` hops of `node_id`.

        Raises:
            NotFound: if no node has the given internal id.
        """
        depth = clamp(int(depth), 1, self.settings.max_depth)
        logger.debug(f"Running subgraph query for node {node_id} (depth={depth}, limit={limit})")

        async with self._session("subgraph") as session:
            exists = await fetch_rows(session, NODE_EXISTS_QUERY, nodeId=node_id)
            if not exists:
                raise NotFound("Node not found")
            node_rows = await fetch_rows(
                session, subgraph_nodes_query(depth), nodeId=node_id, limit=limit
            )
            rel_rows = await fetch_rows(
                session, subgraph_relationships_query(depth), nodeId=node_id, limit=limit
            )
        return node_rows, rel_rows

    async def poem_rows(self, search: str | None, page: Page) -> list[dict[str, Any]]:
        """Poem node rows in random order, optionally filtered by `search`."""
        params: dict[str, Any] = page.params()
        term = (search or "").strip()
        if term:
            query = SEARCH_POEMS_QUERY
            params["q"] = term
        else:
            query = ALL_POEMS_QUERY
        logger.debug(f"Running poems query with params: search={term or None}, {page}")

        async with self._session("poems") as session:
            return await fetch_rows(session, paginate(query), **params)

    async def raw_poem_rows(self, limit: int) -> list[dict[str, Any]]:
        """First `limit` Poem nodes with labels and raw properties."""
        async with self._session("raw poems") as session:
            return await fetch_rows(session, RAW_POEMS_QUERY, limit=limit)

    async def stats(self) -> dict[str, Any]:
        """Poet and poem counts plus the most prolific poets."""
        async with self._session("stats") as session:
            poets = await fetch_rows(session, POET_COUNT_QUERY)
            poems = await fetch_rows(session, POEM_COUNT_QUERY)
            top = await fetch_rows(session, TOP_WROTE_QUERY, limit=TOP_WROTE_LIMIT)

        return {
            "poets": poets[0]["c"] if poets else 0,
            "poems": poems[0]["c"] if poems else 0,
            "top_wrote": [{"poet": row["poet"], "count": row["cnt"]} for row in top],
        }
