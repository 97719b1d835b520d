"""Unit tests for the API routes."""

import json
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from folkfeed import __version__
from folkfeed.api import routes
from folkfeed.clients.snapshot import SnapshotWriter
from folkfeed.config import get_settings
from folkfeed.errors import PersistError
from folkfeed.main import app
from folkfeed.models import ArticleRecord, FailedFeed, Snapshot
from folkfeed.services.aggregator import AggregationResult

REFRESH_TOKEN = "hedgerow-secret"
AUTH = {"Authorization": f"Bearer {REFRESH_TOKEN}"}


@pytest.fixture
def snapshot_path(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[Path]:
    feeds_file = tmp_path / "feeds.json"
    feeds_file.write_text("[]", encoding="utf-8")
    path = tmp_path / "data" / "articles.json"
    monkeypatch.setenv("FOLKFEED_OUTPUT_PATH", str(path))
    monkeypatch.setenv("FOLKFEED_FEEDS_FILE", str(feeds_file))
    monkeypatch.delenv("FOLKFEED_DRY_RUN", raising=False)
    monkeypatch.setenv("FOLKFEED_REFRESH_TOKEN", REFRESH_TOKEN)
    get_settings.cache_clear()
    yield path
    get_settings.cache_clear()


@pytest.fixture
def client(snapshot_path: Path) -> TestClient:
    return TestClient(app)


def _write_snapshot(path: Path) -> None:
    SnapshotWriter(path).write(
        Snapshot(
            generated_at="2024-06-01T12:00:00+00:00",
            items=[
                ArticleRecord(
                    title="Fairy Ring Walks",
                    link="https://example.com/fairy",
                    date="2024-05-02T00:00:00+00:00",
                    source="Eatweeds (Foraging)",
                    tags=["fairy"],
                    excerpt="Circles of mushrooms.",
                ),
                ArticleRecord(
                    title="Mushroom Foraging Basics",
                    link="https://example.com/mushroom",
                    date="2024-05-01T00:00:00+00:00",
                    source="Wild Food UK (Foraging)",
                    tags=["foraging", "mushroom"],
                    excerpt="Start with the easy ones.",
                ),
            ],
        )
    )


def _result(feeds_total: int, feeds_failed: int) -> AggregationResult:
    return AggregationResult(
        feeds_total=feeds_total,
        feeds_failed=feeds_failed,
        items_matched=4,
        items_written=3,
        generated_at="2024-06-01T12:00:00+00:00",
        dry_run=False,
        failed_feeds=[
            FailedFeed(url=f"https://bad{i}.example.com/feed", source="Bad", reason="HTTP 500")
            for i in range(feeds_failed)
        ],
    )


class TestInfoRoutes:
    """Tests for root and health endpoints."""

    def test_root(self, client: TestClient) -> None:
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["name"] == "Folkfeed"

    def test_health(self, client: TestClient) -> None:
        response = client.get("/api/v1/health")
        assert response.json() == {"status": "healthy", "version": __version__}


class TestSnapshotFile:
    """Tests for serving the raw snapshot."""

    def test_missing_snapshot_is_404(self, client: TestClient) -> None:
        assert client.get("/data/articles.json").status_code == 404

    def test_serves_snapshot_without_caching(
        self, client: TestClient, snapshot_path: Path
    ) -> None:
        _write_snapshot(snapshot_path)

        response = client.get("/data/articles.json")

        assert response.status_code == 200
        assert response.headers["cache-control"] == "no-store"
        assert response.headers["content-type"].startswith("application/json")
        assert response.json()["generatedAt"] == "2024-06-01T12:00:00+00:00"


class TestArticles:
    """Tests for the filtered article listing."""

    def test_lists_all_articles(self, client: TestClient, snapshot_path: Path) -> None:
        _write_snapshot(snapshot_path)

        data = client.get("/api/v1/articles").json()

        assert data["generatedAt"] == "2024-06-01T12:00:00+00:00"
        assert data["total"] == 2
        assert data["count"] == 2
        assert [item["title"] for item in data["items"]] == [
            "Fairy Ring Walks",
            "Mushroom Foraging Basics",
        ]

    def test_filters_by_query(self, client: TestClient, snapshot_path: Path) -> None:
        _write_snapshot(snapshot_path)

        data = client.get("/api/v1/articles", params={"q": "Wild Food"}).json()

        assert data["count"] == 1
        assert data["items"][0]["link"] == "https://example.com/mushroom"

    def test_missing_snapshot_is_404(self, client: TestClient) -> None:
        assert client.get("/api/v1/articles").status_code == 404

    def test_malformed_snapshot_is_503(self, client: TestClient, snapshot_path: Path) -> None:
        snapshot_path.parent.mkdir(parents=True)
        snapshot_path.write_text("{oops", encoding="utf-8")

        assert client.get("/api/v1/articles").status_code == 503


class TestRefresh:
    """Tests for the refresh endpoint."""

    def test_refresh_writes_snapshot(self, client: TestClient, snapshot_path: Path) -> None:
        response = client.post("/api/v1/refresh", headers=AUTH)

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["feeds_total"] == 0
        assert json.loads(snapshot_path.read_text(encoding="utf-8"))["items"] == []

    def test_refresh_dry_run(self, client: TestClient, snapshot_path: Path) -> None:
        response = client.post("/api/v1/refresh", params={"dry_run": "true"}, headers=AUTH)

        assert response.json()["dry_run"] is True
        assert not snapshot_path.exists()

    @pytest.mark.parametrize(
        ("feeds_total", "feeds_failed", "expected"),
        [(3, 0, "success"), (3, 1, "partial_success"), (3, 3, "failed")],
    )
    def test_refresh_status(
        self,
        client: TestClient,
        monkeypatch: pytest.MonkeyPatch,
        feeds_total: int,
        feeds_failed: int,
        expected: str,
    ) -> None:
        monkeypatch.setattr(
            routes, "run_aggregation", AsyncMock(return_value=_result(feeds_total, feeds_failed))
        )

        body = client.post("/api/v1/refresh", headers=AUTH).json()

        assert body["status"] == expected
        assert len(body["failed_feeds"]) == feeds_failed

    def test_refresh_persist_failure_is_500(
        self, client: TestClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(
            routes, "run_aggregation", AsyncMock(side_effect=PersistError("read-only"))
        )

        response = client.post("/api/v1/refresh", headers=AUTH)

        assert response.status_code == 500
        assert "read-only" in response.json()["detail"]


class TestRefreshAuth:
    """Tests for the refresh endpoint token guard."""

    def test_disabled_without_configured_token(
        self, client: TestClient, monkeypatch: pytest.MonkeyPatch, snapshot_path: Path
    ) -> None:
        monkeypatch.delenv("FOLKFEED_REFRESH_TOKEN")
        get_settings.cache_clear()

        response = client.post("/api/v1/refresh", headers=AUTH)

        assert response.status_code == 403
        assert not snapshot_path.exists()

    def test_missing_header_is_401(self, client: TestClient, snapshot_path: Path) -> None:
        response = client.post("/api/v1/refresh")

        assert response.status_code == 401
        assert response.json()["detail"] == "Missing authorization header"
        assert not snapshot_path.exists()

    def test_wrong_scheme_is_401(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/refresh", headers={"Authorization": f"Token {REFRESH_TOKEN}"}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid authorization header format"

    def test_wrong_token_is_401(
        self, client: TestClient, monkeypatch: pytest.MonkeyPatch, snapshot_path: Path
    ) -> None:
        run = AsyncMock(return_value=_result(1, 0))
        monkeypatch.setattr(routes, "run_aggregation", run)

        response = client.post("/api/v1/refresh", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401
        run.assert_not_called()

    def test_valid_token_runs_refresh(
        self, client: TestClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        run = AsyncMock(return_value=_result(1, 0))
        monkeypatch.setattr(routes, "run_aggregation", run)

        response = client.post("/api/v1/refresh", headers=AUTH)

        assert response.status_code == 200
        run.assert_awaited_once()
