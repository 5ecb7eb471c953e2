"""Request-scoped access to the objects created by the app factory."""

from fastapi import Request

from poemgraph.config import Settings
from poemgraph.poems import FallbackPoemSource
from poemgraph.storage import KnowledgeGraphGateway


def get_settings(request: Request) -> Settings:
    """Get settings from app state."""
    return request.app.state.settings


def get_gateway(request: Request) -> KnowledgeGraphGateway:
    """Get the query gateway from app state."""
    return request.app.state.gateway


def get_fallback(request: Request) -> FallbackPoemSource:
    """Get the fallback poem source from app state."""
    return request.app.state.fallback
