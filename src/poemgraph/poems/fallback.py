"""Poem snapshots read from disk when Neo4j cannot serve the poem list."""

import json
import logging
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from poemgraph.errors import PartialParseFailure
from poemgraph.models import PoemRecord, dedupe_poems, first_present
from poemgraph.models.poem import ID_KEYS

logger = logging.getLogger(__name__)


def record_from_item(item: dict[str, Any]) -> PoemRecord:
    """Map one snapshot item to a PoemRecord using the shared field aliases."""
    return PoemRecord.from_properties(item, identity=first_present(item, ID_KEYS, default=None))


def filter_records(records: list[PoemRecord], term: str | None) -> list[PoemRecord]:
    """Records matching `term`; all records when the term is blank."""
    term = (term or "").strip()
    if not term:
        return records
    return [record for record in records if record.matches(term)]


class FallbackPoemSource:
    """Reads every ``*.json`` array file in a directory as poem records."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    async def list_files(self) -> list[Path]:
        if not await aiofiles.os.path.isdir(self.directory):
            logger.warning(f"Fallback directory {self.directory} does not exist")
            return []
        names = await aiofiles.os.listdir(self.directory)
        files: list[Path] = []
        for name in sorted(names):
            path = self.directory / name
            if path.suffix.lower() == ".json" and await aiofiles.os.path.isfile(path):
                files.append(path)
        return files

    async def read_file(self, path: Path) -> list[PoemRecord]:
        """Parse one snapshot file.

        Raises:
            PartialParseFailure: if the file cannot be read, is not valid JSON,
                or its top level is not an array.
        """
        try:
            async with aiofiles.open(path, encoding="utf-8") as f:
                content = await f.read()
            data = json.loads(content)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise PartialParseFailure(str(path), str(e)) from e

        if not isinstance(data, list):
            raise PartialParseFailure(str(path), "top-level value is not an array")

        return [record_from_item(item) for item in data if isinstance(item, dict)]

    async def load(self) -> list[PoemRecord]:
        """All records from all readable files, deduplicated by id.

        A malformed file is logged and skipped; it never aborts the scan.
        """
        records: list[PoemRecord] = []
        for path in await self.list_files():
            try:
                records.extend(await self.read_file(path))
            except PartialParseFailure as e:
                logger.warning(f"Skipping fallback file {e.path}: {e.reason}")
        logger.info(f"Loaded {len(records)} fallback poems from {self.directory}")
        return dedupe_poems(records)

    async def search(self, term: str | None = None) -> list[PoemRecord]:
        """Load records, keeping those matching `term` when one is given."""
        return filter_records(await self.load(), term)
