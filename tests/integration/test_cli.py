"""Integration tests for the command-line interface."""

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from click.testing import CliRunner

from paperfeed.cli import cli
from paperfeed.store import SqliteStore
from tests.helpers.factories import make_enrichment, make_paper, make_profile


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "paperfeed.sqlite"


class TestValidateCommand:
    """Tests for `paperfeed validate`."""

    def test_valid_config(self, runner: CliRunner, tmp_path: Path) -> None:
        config_path = tmp_path / "ranking.yaml"
        config_path.write_text("version: '1.0'\nfusion:\n  clamp: false\n")

        result = runner.invoke(cli, ["validate", "--config", str(config_path)])

        assert result.exit_code == 0
        assert "Configuration is valid!" in result.output
        assert "Fusion clamp: False" in result.output
        assert "Checksum:" in result.output

    def test_invalid_config(self, runner: CliRunner, tmp_path: Path) -> None:
        """Test schema violations are listed and exit non-zero."""
        config_path = tmp_path / "ranking.yaml"
        config_path.write_text("fusion:\n  novelty: 2.0\n")

        result = runner.invoke(cli, ["validate", "--config", str(config_path)])

        assert result.exit_code == 1
        assert "fusion.novelty" in result.output


class TestDbStatsCommand:
    """Tests for `paperfeed db-stats`."""

    def test_json_output(self, runner: CliRunner, db_path: Path) -> None:
        with SqliteStore(db_path) as store:
            store.upsert_paper(make_paper("a"))

        result = runner.invoke(cli, ["db-stats", "--state", str(db_path), "--json"])

        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["tables"]["papers"] == 1
        assert payload["schema_version"] >= 1


class TestJobCommands:
    """Tests for `paperfeed rank` and `paperfeed digest`."""

    def test_rank(self, runner: CliRunner, db_path: Path) -> None:
        with SqliteStore(db_path) as store:
            store.upsert_paper(make_paper("a", enrichment=make_enrichment([1.0, 0.0])))
            store.upsert_paper(make_paper("b", enrichment=make_enrichment([0.0, 1.0])))

        result = runner.invoke(
            cli, ["rank", "--state", str(db_path), "--no-json-logs"]
        )

        assert result.exit_code == 0
        assert "Ranked 2 papers (0 failed, 0 excluded)" in result.output
        with SqliteStore(db_path) as store:
            assert store.get_score("a") is not None

    def test_digest(self, runner: CliRunner, db_path: Path) -> None:
        """Test the digest command writes today's briefing."""
        now = datetime.now(UTC)
        with SqliteStore(db_path) as store:
            store.save_profile(make_profile(score_threshold=0.0))
            store.upsert_paper(make_paper("a", published_at=now - timedelta(hours=1)))

        runner.invoke(cli, ["rank", "--state", str(db_path), "--no-json-logs"])
        result = runner.invoke(
            cli, ["digest", "--state", str(db_path), "--no-json-logs"]
        )

        assert result.exit_code == 0
        assert "Generated 1/1 digests (0 failed)" in result.output
        with SqliteStore(db_path) as store:
            briefing = store.get_latest_briefing("user-1")
        assert briefing is not None
        assert briefing.paper_ids == ["a"]
