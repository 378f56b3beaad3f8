"""
Configuration for docprep.

The processing configuration is a frozen model: it is built once before a
pipeline starts and shared read-only by every step and page task.
"""

import os
import tempfile
import tomllib
from pathlib import Path
from typing import Any, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from docprep.utils.errors import ConfigurationError

ENV_PREFIX = "DOCPREP_"


def _default_threads() -> int:
    return os.cpu_count() or 1


class Config(BaseModel):
    """Processing configuration shared by all steps."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_image_size_mb: int = Field(3, ge=1, description="Hard ceiling for an optimized image")
    max_rows: int = Field(1000, ge=1, description="Maximum spreadsheet rows read")
    max_cols: int = Field(100, ge=1, description="Maximum spreadsheet columns read")
    ocr_language: str = Field("eng", min_length=1, description="Tesseract language code")
    ocr_quality_threshold: float = Field(
        0.5,
        ge=0.0,
        le=1.0,
        description="Accepted for compatibility; the quality heuristic does not consult it",
    )
    temp_dir: Path = Field(
        default_factory=lambda: Path(tempfile.gettempdir()),
        description="Where kept temporaries are moved",
    )
    threads: int = Field(default_factory=_default_threads, ge=1, description="PDF page workers")
    timeout_seconds: int = Field(300, ge=0, description="Whole-document budget, 0 disables")
    keep_temps: bool = Field(False, description="Keep OCR temporaries in temp_dir")

    @property
    def max_image_size_bytes(self) -> int:
        """Get the image ceiling in bytes."""
        return self.max_image_size_mb * 1024 * 1024

    def with_overrides(self, **overrides: Any) -> "Config":
        """Return a copy with the given non-None fields replaced."""
        values = {key: value for key, value in overrides.items() if value is not None}
        if not values:
            return self
        try:
            return Config.model_validate({**self.model_dump(), **values})
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration override: {e}") from e

    @classmethod
    def from_env(cls, env_file: Optional[Union[str, Path]] = None) -> "Config":
        """
        Build a configuration from DOCPREP_* environment variables.

        Args:
            env_file: Optional .env file loaded before reading the environment

        Returns:
            Validated configuration
        """
        load_dotenv(env_file)

        values = {}
        for name in cls.model_fields:
            raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None and raw != "":
                values[name] = raw

        try:
            return cls.model_validate(values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid environment configuration: {e}") from e

    @classmethod
    def from_toml(cls, path: Union[str, Path]) -> "Config":
        """
        Load a configuration from a TOML file.

        Args:
            path: TOML file with any subset of the config fields

        Returns:
            Validated configuration

        Raises:
            ConfigurationError: If the file is missing, malformed or invalid
        """
        path = Path(path)
        try:
            with path.open("rb") as f:
                values = tomllib.load(f)
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Malformed config file {path}: {e}") from e

        try:
            return cls.model_validate(values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid config file {path}: {e}") from e


# Singleton instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the process-wide configuration, reading the environment once."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config
