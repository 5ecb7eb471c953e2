"""Unit tests for API endpoints."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from neo4j.exceptions import AuthError, ServiceUnavailable

from poemgraph.api.main import create_app
from poemgraph.api.routes import StatsResponse, WroteCount
from poemgraph.graph.pagination import MAX_INT64
from poemgraph.storage import Neo4jClient

from tests.fakes import FakeClient


def unavailable(query, params):
    raise ServiceUnavailable("connection refused")


@pytest.fixture
def api(test_settings, fake_client):
    """Test client bound to an app using the fake Neo4j client."""
    app = create_app(settings=test_settings, client=fake_client)
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client


class TestStatsModels:
    """Tests for the stats response model."""

    def test_serializes_top_wrote_alias(self) -> None:
        resp = StatsResponse(poets=1, poems=2, top_wrote=[WroteCount(poet="李白", count=2)])
        assert resp.model_dump(by_alias=True)["topWrote"] == [{"poet": "李白", "count": 2}]


class TestLifespan:
    """Tests for startup and shutdown."""

    def test_connects_and_closes(self, test_settings, fake_client: FakeClient) -> None:
        app = create_app(settings=test_settings, client=fake_client)
        with TestClient(app):
            fake_client.connect.assert_awaited_once()
        fake_client.close.assert_awaited_once()

    def test_driver_failure_is_fatal(self, test_settings, fake_client: FakeClient) -> None:
        fake_client.connect.side_effect = ValueError("bad URI scheme")
        app = create_app(settings=test_settings, client=fake_client)
        with pytest.raises(ValueError):
            with TestClient(app):
                pass

    def test_rejected_credentials_do_not_stop_startup(self, test_settings) -> None:
        driver = MagicMock()
        driver.verify_connectivity = AsyncMock(side_effect=AuthError("Unauthorized"))
        driver.close = AsyncMock()
        with patch("poemgraph.storage.neo4j_client.AsyncGraphDatabase") as graph_db:
            graph_db.driver.return_value = driver
            app = create_app(settings=test_settings, client=Neo4jClient(settings=test_settings))
            with TestClient(app) as client:
                response = client.get("/health")

        assert response.status_code == 200
        assert response.text == "OK"
        driver.close.assert_awaited_once()


class TestHealth:
    """Tests for /health."""

    def test_ok(self, api) -> None:
        response = api.get("/health")
        assert response.status_code == 200
        assert response.text == "OK"

    def test_ok_when_database_down(self, api, fake_client) -> None:
        fake_client.responder = unavailable
        assert api.get("/health").status_code == 200
        assert fake_client.calls == []


class TestKnowledgeGraph:
    """Tests for /knowledgeGraph."""

    def test_normalized_response(self, api, fake_client, wrote_rows) -> None:
        fake_client.responder = lambda query, params: wrote_rows

        response = api.get("/knowledgeGraph", params={"search": "李白"})

        assert response.status_code == 200
        data = response.json()
        assert [node["label"] for node in data["nodes"]] == ["李白", "静夜思", "将进酒", "杜甫"]
        assert len(data["links"]) == 3
        assert fake_client.calls[0][1]["searchTerm"] == "李白"

    @pytest.mark.parametrize("limit,skip", [("abc", "xyz"), ("-5", "-1"), (None, None)])
    def test_bad_pagination_uses_defaults(self, api, fake_client, limit, skip) -> None:
        params = {k: v for k, v in {"limit": limit, "skip": skip}.items() if v is not None}

        assert api.get("/knowledgeGraph", params=params).status_code == 200

        sent = fake_client.calls[0][1]
        assert sent["limit"] == 200
        assert sent["skip"] == 0

    def test_huge_pagination_capped(self, api, fake_client) -> None:
        response = api.get("/knowledgeGraph", params={"limit": "1e20", "skip": "1e25"})

        assert response.status_code == 200
        sent = fake_client.calls[0][1]
        assert sent["limit"] == MAX_INT64
        assert sent["skip"] == MAX_INT64

    def test_database_failure(self, api, fake_client) -> None:
        fake_client.responder = unavailable
        response = api.get("/knowledgeGraph")
        assert response.status_code == 500
        assert "error" in response.json()


class TestNodeGraph:
    """Tests for /knowledgeGraph/node/{id}."""

    def test_non_numeric_id(self, api, fake_client) -> None:
        response = api.get("/knowledgeGraph/node/abc")
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid nodeId"}
        assert fake_client.calls == []

    def test_missing_node(self, api) -> None:
        response = api.get("/knowledgeGraph/node/404")
        assert response.status_code == 404
        assert response.json() == {"error": "Node not found"}

    def test_subgraph(self, api, fake_client) -> None:
        def respond(query, params):
            if "LIMIT 1" in query:
                return [{"id": 1}]
            if "UNWIND nodes(p)" in query:
                return [
                    {"id": 1, "labels": ["Poet"], "properties": {"name": "李白"}},
                    {"id": 10, "labels": ["Poem"], "properties": {"title": "静夜思"}},
                ]
            return [{"id": 100, "type": "WROTE", "start": 1, "end": 10}]

        fake_client.responder = respond
        response = api.get("/knowledgeGraph/node/1", params={"depth": "2", "limit": "abc"})

        assert response.status_code == 200
        data = response.json()
        assert data["metadata"] == {"nodeCount": 2, "linkCount": 1}
        assert data["links"] == [{"source": 1, "target": 10, "type": "WROTE"}]
        assert "depth 2" in data["description"]
        assert "[*1..2]" in fake_client.calls[1][0]
        assert fake_client.calls[1][1]["limit"] == 200

    def test_default_depth(self, api, fake_client) -> None:
        fake_client.responder = lambda query, params: [{"id": 1}] if "LIMIT 1" in query else []
        api.get("/knowledgeGraph/node/1", params={"depth": "zero"})
        assert "[*1..1]" in fake_client.calls[1][0]


class TestPoems:
    """Tests for /poems."""

    def test_from_database(self, api, fake_client) -> None:
        fake_client.responder = lambda query, params: [
            {"id": 10, "properties": {"title": "静夜思", "author": "李白", "text": "床前明月光"}},
            {"id": 10, "properties": {"title": "静夜思", "author": "李白", "text": "床前明月光"}},
        ]

        response = api.get("/poems", params={"limit": "abc"})

        data = response.json()
        assert response.status_code == 200
        assert len(data["poems"]) == 1
        assert data["poems"][0]["text"] == "床前明月光"
        assert data["metadata"] == {"count": 1, "limit": 50, "skip": 0}

    def test_fallback_on_database_failure(self, api, fake_client, fallback_dir) -> None:
        fake_client.responder = unavailable

        response = api.get("/poems")

        assert response.status_code == 200
        data = response.json()
        assert data["metadata"] == {"fallback": True, "count": 2}
        assert data["poems"][0]["title"] == "静夜思"
        assert data["poems"][0]["text"] == "床前明月光"
        assert data["poems"][1]["author"] == "杜甫"

    def test_fallback_respects_window(self, api, fake_client, fallback_dir) -> None:
        fake_client.responder = unavailable
        data = api.get("/poems", params={"limit": "1", "skip": "1"}).json()
        assert [poem["id"] for poem in data["poems"]] == ["p2"]
        assert data["metadata"]["count"] == 2

    def test_failure_without_fallback_data(self, api, fake_client) -> None:
        fake_client.responder = unavailable
        response = api.get("/poems")
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch poems"}

    def test_fallback_search_without_match(self, api, fake_client, fallback_dir) -> None:
        fake_client.responder = unavailable

        response = api.get("/poems", params={"search": "不存在"})

        assert response.status_code == 200
        assert response.json() == {"poems": [], "metadata": {"fallback": True, "count": 0}}

    def test_fallback_with_object_ids(self, api, fake_client, fallback_dir) -> None:
        (fallback_dir / "mongo.json").write_text(
            json.dumps([{"_id": {"$oid": "abc"}, "title": "登高"}], ensure_ascii=False),
            encoding="utf-8",
        )
        fake_client.responder = unavailable

        response = api.get("/poems")

        assert response.status_code == 200
        data = response.json()
        assert data["metadata"] == {"fallback": True, "count": 3}
        assert data["poems"][0]["id"] == {"$oid": "abc"}

    def test_raw_limit_clamped(self, api, fake_client) -> None:
        fake_client.responder = lambda query, params: [
            {"id": 1, "labels": ["Poem"], "properties": {"title": "登高"}}
        ]

        response = api.get("/poems/raw", params={"limit": "5000"})

        assert response.json() == {
            "count": 1,
            "rows": [{"id": 1, "labels": ["Poem"], "properties": {"title": "登高"}}],
        }
        assert fake_client.calls[0][1] == {"limit": 200}

    def test_raw_default_limit(self, api, fake_client) -> None:
        api.get("/poems/raw")
        assert fake_client.calls[0][1] == {"limit": 20}


class TestStats:
    """Tests for /stats."""

    def test_stats(self, api, fake_client) -> None:
        def respond(query, params):
            if query.endswith("AS c"):
                return [{"c": 2}]
            return [{"poet": "李白", "cnt": 5}]

        fake_client.responder = respond
        data = api.get("/stats").json()
        assert data == {"poets": 2, "poems": 2, "topWrote": [{"poet": "李白", "count": 5}]}


class TestErrorHandling:
    """Tests for fallback error responses."""

    def test_unknown_route(self, api) -> None:
        response = api.get("/nope")
        assert response.status_code == 404
        assert response.text == "Sorry can't find that!"

    def test_unexpected_error(self, api, fake_client) -> None:
        def boom(query, params):
            raise RuntimeError("unexpected")

        fake_client.responder = boom
        response = api.get("/stats")
        assert response.status_code == 500
        assert response.text == "Something broke!"
