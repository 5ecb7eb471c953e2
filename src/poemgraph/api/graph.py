"""Knowledge graph endpoints for the force-graph view."""

import logging

from fastapi import APIRouter, Depends

from poemgraph.api.dependencies import get_gateway, get_settings
from poemgraph.config import Settings
from poemgraph.errors import InvalidInput
from poemgraph.graph import (
    Page,
    clamp,
    coerce_limit,
    normalize_relationship_rows,
    normalize_subgraph,
)
from poemgraph.storage import KnowledgeGraphGateway

logger = logging.getLogger(__name__)

router = APIRouter(tags=["graph"])


def parse_node_id(value: str) -> int:
    """Parse a path segment as an internal node id."""
    try:
        return int(value.strip())
    except ValueError:
        raise InvalidInput("Invalid nodeId") from None


@router.get("/knowledgeGraph")
async def get_knowledge_graph(
    search: str | None = None,
    limit: str | None = None,
    skip: str | None = None,
    gateway: KnowledgeGraphGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Relationships matching `search`, or a random sample around poets.

    Malformed `limit`/`skip` fall back to their defaults instead of failing.
    """
    page = Page.from_query(skip, limit, settings.graph_default_limit)
    rows = await gateway.relationship_rows(search, page)
    view = normalize_relationship_rows(rows)
    logger.info(f"Knowledge graph: {view.node_count} nodes, {view.link_count} links")
    return view.to_dict()


@router.get("/knowledgeGraph/node/{node_id}")
async def get_node_graph(
    node_id: str,
    depth: str | None = None,
    limit: str | None = None,
    gateway: KnowledgeGraphGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Subgraph within `depth` hops of a node."""
    target = parse_node_id(node_id)
    hops = clamp(coerce_limit(depth, 1) or 1, 1, settings.max_depth)
    cap = coerce_limit(limit, settings.graph_default_limit) or settings.graph_default_limit

    node_rows, rel_rows = await gateway.subgraph_rows(target, hops, cap)
    view = normalize_subgraph(node_rows, rel_rows)

    return {
        **view.to_dict(),
        "description": f"Subgraph around node {target} (depth {hops})",
        "metadata": {"nodeCount": view.node_count, "linkCount": view.link_count},
    }
