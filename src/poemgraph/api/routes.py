"""API routes for poems, statistics and health.

Provides:
- /poems with on-disk fallback when Neo4j fails
- /poems/raw for inspecting stored properties
- /stats and /health
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from poemgraph.api.dependencies import get_fallback, get_gateway, get_settings
from poemgraph.config import Settings
from poemgraph.errors import UpstreamFailure
from poemgraph.graph import Page, clamp, coerce_limit, normalize_poem_rows
from poemgraph.poems import FallbackPoemSource, filter_records
from poemgraph.storage import KnowledgeGraphGateway

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Response Models
# ============================================================================


class WroteCount(BaseModel):
    """Number of poems written by one poet."""

    poet: str | None
    count: int


class StatsResponse(BaseModel):
    """Dataset statistics."""

    poets: int
    poems: int
    top_wrote: list[WroteCount] = Field(default_factory=list, serialization_alias="topWrote")


# ============================================================================
# Poem Endpoints
# ============================================================================


@router.get("/poems")
async def list_poems(
    search: str | None = None,
    limit: str | None = None,
    skip: str | None = None,
    gateway: KnowledgeGraphGateway = Depends(get_gateway),
    fallback: FallbackPoemSource = Depends(get_fallback),
    settings: Settings = Depends(get_settings),
) -> dict:
    """
    Poems in random order, optionally filtered by `search`.

    If Neo4j fails, poems are served from the fallback directory and
    `metadata.fallback` is set. If that yields nothing, the original
    error is returned.
    """
    page = Page.from_query(skip, limit, settings.poem_default_limit)

    try:
        rows = await gateway.poem_rows(search, page)
    except UpstreamFailure as error:
        logger.error(f"Poem query failed, reading fallback poems from {fallback.directory}")
        return await fallback_poems(fallback, search, page, error)

    poems = normalize_poem_rows(rows)
    return {
        "poems": [poem.to_dict() for poem in poems],
        "metadata": {"count": len(poems), "limit": page.limit, "skip": page.skip},
    }


async def fallback_poems(
    fallback: FallbackPoemSource,
    search: str | None,
    page: Page,
    error: UpstreamFailure,
) -> dict:
    """Serve a window of fallback poems.

    `error` is re-raised only when the snapshot directory yields no records;
    a search that matches nothing is an empty fallback result.
    """
    records = await fallback.load()
    if not records:
        raise error

    matched = filter_records(records, search)
    window = matched[page.skip:page.skip + page.limit]
    return {
        "poems": [poem.to_dict() for poem in window],
        "metadata": {"fallback": True, "count": len(matched)},
    }


@router.get("/poems/raw")
async def raw_poems(
    limit: str | None = None,
    gateway: KnowledgeGraphGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Raw Poem nodes, for checking property names after an import."""
    size = clamp(
        coerce_limit(limit, settings.raw_default_limit), 1, settings.raw_max_limit
    )
    rows = await gateway.raw_poem_rows(size)
    return {
        "count": len(rows),
        "rows": [
            {
                "id": row.get("id"),
                "labels": list(row.get("labels") or []),
                "properties": dict(row.get("properties") or {}),
            }
            for row in rows
        ],
    }


# ============================================================================
# Admin Endpoints
# ============================================================================


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    gateway: KnowledgeGraphGateway = Depends(get_gateway),
) -> StatsResponse:
    """Poet/poem counts and the top poets by number of poems."""
    result = await gateway.stats()
    return StatsResponse(
        poets=result["poets"],
        poems=result["poems"],
        top_wrote=[WroteCount(**row) for row in result["top_wrote"]],
    )


@router.get("/health", response_class=PlainTextResponse)
async def health_check() -> str:
    """Liveness probe; does not touch Neo4j."""
    return "OK"
