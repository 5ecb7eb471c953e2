"""Neo4j client for graph database operations."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from neo4j import AsyncDriver, AsyncGraphDatabase, AsyncSession
from neo4j.exceptions import DriverError, Neo4jError

from poemgraph.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class Neo4jClient:
    """Async Neo4j client shared by all requests of one process."""

    def __init__(
        self,
        uri: str | None = None,
        user: str | None = None,
        password: str | None = None,
        database: str | None = None,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or default_settings
        self.uri = uri or settings.neo4j_uri
        self.user = user or settings.neo4j_user
        self.password = password or settings.neo4j_password
        self.database = database or settings.neo4j_database
        self._driver: AsyncDriver | None = None

    async def connect(self) -> None:
        """Create the driver.

        A driver that cannot be constructed (e.g. an invalid URI) raises and is
        fatal to startup. An unreachable server or rejected credentials are
        only logged; those failures surface per request instead.
        """
        if self._driver is None:
            self._driver = AsyncGraphDatabase.driver(
                self.uri,
                auth=(self.user, self.password),
            )
            logger.info(f"Neo4j driver initialized ({self.uri})")
            try:
                await self._driver.verify_connectivity()
                logger.info(f"Connected to Neo4j at {self.uri}")
            except (Neo4jError, DriverError) as e:
                logger.warning(f"Neo4j connectivity check failed at startup: {e}")

    async def close(self) -> None:
        """Close the database connection."""
        if self._driver is not None:
            await self._driver.close()
            self._driver = None
            logger.info("Disconnected from Neo4j")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a database session, closed on every exit path."""
        if self._driver is None:
            await self.connect()
        assert self._driver is not None
        async with self._driver.session(database=self.database) as session:
            yield session


async def fetch_rows(session: AsyncSession, query: str, **params: Any) -> list[dict[str, Any]]:
    """Run a query on an open session and collect records as dicts."""
    results: list[dict[str, Any]] = []
    result = await session.run(query, **params)
    async for record in result:
        results.append(dict(record))
    return results
