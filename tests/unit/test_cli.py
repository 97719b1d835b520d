"""Unit tests for the aggregator entry point."""

import json
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from folkfeed import cli
from folkfeed.config import get_settings
from folkfeed.errors import PersistError


@pytest.fixture
def settings_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[Path]:
    """Point the aggregator at an empty feed list and a temporary snapshot path."""
    feeds_file = tmp_path / "feeds.json"
    feeds_file.write_text("[]", encoding="utf-8")
    output = tmp_path / "data" / "articles.json"
    monkeypatch.setenv("FOLKFEED_FEEDS_FILE", str(feeds_file))
    monkeypatch.setenv("FOLKFEED_OUTPUT_PATH", str(output))
    monkeypatch.setenv("FOLKFEED_LOG_FORMAT", "console")
    monkeypatch.delenv("FOLKFEED_DRY_RUN", raising=False)
    get_settings.cache_clear()
    yield output
    get_settings.cache_clear()


class TestMain:
    """Tests for cli.main."""

    def test_success_writes_snapshot(self, settings_env: Path) -> None:
        assert cli.main() == 0

        data = json.loads(settings_env.read_text(encoding="utf-8"))
        assert data["items"] == []
        assert data["generatedAt"]

    def test_dry_run_writes_nothing(
        self, settings_env: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("FOLKFEED_DRY_RUN", "true")
        get_settings.cache_clear()

        assert cli.main() == 0
        assert not settings_env.exists()

    def test_persist_failure_exits_non_zero(
        self, settings_env: Path, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        monkeypatch.setenv("FOLKFEED_OUTPUT_PATH", str(blocker / "articles.json"))
        get_settings.cache_clear()

        assert cli.main() == 1

    def test_unexpected_error_exits_non_zero(
        self, settings_env: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(cli, "run_aggregation", AsyncMock(side_effect=RuntimeError("boom")))

        assert cli.main() == 1

    def test_persist_error_from_run_exits_non_zero(
        self, settings_env: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(
            cli, "run_aggregation", AsyncMock(side_effect=PersistError("read-only"))
        )

        assert cli.main() == 1

    def test_missing_feeds_file_exits_non_zero(
        self, settings_env: Path, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("FOLKFEED_FEEDS_FILE", str(tmp_path / "missing.json"))
        get_settings.cache_clear()

        assert cli.main() == 1

    def test_invalid_settings_exit_non_zero(
        self, settings_env: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("FOLKFEED_MAX_ITEMS", "-1")
        get_settings.cache_clear()

        assert cli.main() == 1
