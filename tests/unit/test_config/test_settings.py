"""Unit tests for environment settings."""

from pathlib import Path

import pytest

from paperfeed.settings import AppSettings, get_settings


class TestAppSettings:
    """Tests for AppSettings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.chdir(tmp_path)
        settings = AppSettings()
        assert settings.db_path == Path("data/paperfeed.sqlite")
        assert settings.config_path is None
        assert settings.log_json is True

    def test_environment_overrides(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        """Test PAPERFEED_ variables override defaults."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("PAPERFEED_DB_PATH", str(tmp_path / "x.sqlite"))
        monkeypatch.setenv("PAPERFEED_LOG_JSON", "false")
        monkeypatch.setenv("PAPERFEED_LOG_LEVEL", "DEBUG")

        settings = get_settings()

        assert settings.db_path == tmp_path / "x.sqlite"
        assert settings.log_json is False
        assert settings.log_level == "DEBUG"
