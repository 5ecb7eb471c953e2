"""Pytest configuration and fixtures."""

import json
from pathlib import Path
from typing import Any

import pytest

from poemgraph.config import Settings
from poemgraph.poems import FallbackPoemSource
from poemgraph.storage import KnowledgeGraphGateway

from tests.fakes import FakeClient, relationship_row


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Test settings with defaults and a temporary fallback directory."""
    return Settings(
        neo4j_uri="bolt://localhost:7687",
        neo4j_user="neo4j",
        neo4j_password="test_password",
        fallback_dir=str(tmp_path / "output_poems"),
    )


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def gateway(fake_client: FakeClient, test_settings: Settings) -> KnowledgeGraphGateway:
    return KnowledgeGraphGateway(fake_client, test_settings)


@pytest.fixture
def wrote_rows() -> list[dict[str, Any]]:
    """(PoetA)-[WROTE]->(PoemX), (PoetA)-[WROTE]->(PoemY), (PoetB)-[WROTE]->(PoemX)."""
    return [
        relationship_row(1, {"name": "李白"}, 10, {"title": "静夜思"}),
        relationship_row(1, {"name": "李白"}, 11, {"title": "将进酒"}),
        relationship_row(2, {"name": "杜甫"}, 10, {"title": "静夜思"}),
    ]


@pytest.fixture
def fallback_dir(test_settings: Settings) -> Path:
    """Fallback directory holding one valid snapshot file."""
    directory = Path(test_settings.fallback_dir)
    directory.mkdir(parents=True)
    poems = [
        {"id": "p1", "author": "李白", "title": "静夜思", "content": "床前明月光", "dynasty": "唐"},
        {"_id": "p2", "poet": "杜甫", "name": "春望", "body": "国破山河在"},
    ]
    (directory / "tang.json").write_text(json.dumps(poems, ensure_ascii=False), encoding="utf-8")
    return directory


@pytest.fixture
def fallback_source(test_settings: Settings) -> FallbackPoemSource:
    return FallbackPoemSource(test_settings.fallback_dir)
