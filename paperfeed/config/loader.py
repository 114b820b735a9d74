"""YAML loader for the ranking configuration."""

import hashlib
from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError

from paperfeed.config.schemas import RankingConfig


logger = structlog.get_logger()


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, errors: list[dict[str, str]], file_path: str) -> None:
        """Initialize the error.

        Args:
            errors: List of validation error details.
            file_path: Path to the file that failed validation.
        """
        self.errors = errors
        self.file_path = file_path
        super().__init__(f"Validation failed for {file_path}: {len(errors)} errors")


class ConfigLoader:
    """Loads and validates ranking.yaml."""

    def __init__(self) -> None:
        self._file_checksums: dict[str, str] = {}
        self._log = logger.bind(component="config")

    @property
    def file_checksums(self) -> dict[str, str]:
        """Get SHA-256 checksums of loaded files."""
        return self._file_checksums.copy()

    def load(self, path: Path | None) -> RankingConfig:
        """Load a ranking configuration file.

        Args:
            path: Path to ranking.yaml, or None for built-in defaults.

        Returns:
            Validated RankingConfig.

        Raises:
            FileNotFoundError: If the file does not exist.
            yaml.YAMLError: If YAML parsing fails.
            ConfigValidationError: If the content violates the schema.
        """
        if path is None:
            self._log.info("config_defaults_used")
            return RankingConfig()

        content_bytes = path.read_bytes()
        checksum = hashlib.sha256(content_bytes).hexdigest()
        self._file_checksums[str(path.resolve())] = checksum

        data = yaml.safe_load(content_bytes.decode("utf-8")) or {}

        try:
            config = RankingConfig.model_validate(data)
        except ValidationError as e:
            errors = [
                {
                    "loc": ".".join(str(loc) for loc in err["loc"]),
                    "msg": err["msg"],
                    "type": err["type"],
                }
                for err in e.errors()
            ]
            self._log.error(
                "config_validation_failed",
                file_path=str(path),
                validation_error_count=len(errors),
                errors=errors,
            )
            raise ConfigValidationError(errors, str(path)) from e

        self._log.info(
            "config_file_loaded",
            file_path=str(path),
            file_sha256=checksum,
        )
        return config
