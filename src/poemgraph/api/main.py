"""FastAPI application for the Poemgraph API.

Serves the knowledge graph view, the poem list and diagnostic endpoints.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from poemgraph import __version__
from poemgraph.api.graph import router as graph_router
from poemgraph.api.routes import router
from poemgraph.config import Settings, settings as default_settings
from poemgraph.errors import PoemGraphError
from poemgraph.poems import FallbackPoemSource
from poemgraph.storage import KnowledgeGraphGateway, Neo4jClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan - startup and shutdown."""
    client = app.state.client

    # Startup; a driver that cannot be created aborts the process
    logger.info("Starting Poemgraph API...")
    try:
        await client.connect()
    except Exception:
        logger.critical("Failed to initialize Neo4j driver", exc_info=True)
        raise

    yield

    # Shutdown
    logger.info("Shutting down Poemgraph API...")
    await client.close()


async def handle_domain_error(request: Request, exc: PoemGraphError) -> JSONResponse:
    """Map domain errors to a status code and a short JSON message."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> Response:
    """Unmatched routes get a plain-text 404."""
    if exc.status_code == 404:
        return PlainTextResponse("Sorry can't find that!", status_code=404)
    return await http_exception_handler(request, exc)


async def handle_unexpected_error(request: Request, exc: Exception) -> PlainTextResponse:
    logger.exception(f"Unhandled error in {request.method} {request.url.path}: {exc}")
    return PlainTextResponse("Something broke!", status_code=500)


def create_app(
    settings: Settings | None = None,
    client: Neo4jClient | None = None,
    fallback: FallbackPoemSource | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    The client, gateway and fallback source live on `app.state` and reach
    handlers through dependencies, so tests can pass their own.
    """
    settings = settings or default_settings
    client = client or Neo4jClient(settings=settings)

    app = FastAPI(
        title="Poemgraph",
        description="Knowledge graph browser for classical poetry",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.client = client
    app.state.gateway = KnowledgeGraphGateway(client, settings)
    app.state.fallback = fallback or FallbackPoemSource(settings.fallback_dir)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(PoemGraphError, handle_domain_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    # Include routes
    app.include_router(router)
    app.include_router(graph_router)

    return app


def run() -> None:
    """Run the API with uvicorn."""
    import uvicorn

    logging.basicConfig(
        level=default_settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    uvicorn.run(
        "poemgraph.api.main:app",
        host=default_settings.api_host,
        port=default_settings.api_port,
        reload=default_settings.api_debug,
    )


# Create app instance
app = create_app()


if __name__ == "__main__":
    run()
