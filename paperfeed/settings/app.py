"""Application settings powered by Pydantic BaseSettings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Environment configuration for ranking and digest jobs."""

    model_config = SettingsConfigDict(
        env_prefix="PAPERFEED_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    db_path: Path = Field(default=Path("data/paperfeed.sqlite"))
    config_path: Path | None = Field(
        default=None, description="Optional ranking.yaml overriding default weights"
    )
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=True)


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
