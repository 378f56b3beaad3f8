"""
Tests for configuration module.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from docprep.config import Config, get_config
from docprep.utils.errors import ConfigurationError


class TestConfig:
    """Test the Config model."""

    def test_default_config(self):
        """Test default configuration values."""
        config = Config()

        assert config.max_image_size_mb == 3
        assert config.max_rows == 1000
        assert config.max_cols == 100
        assert config.ocr_language == "eng"
        assert config.ocr_quality_threshold == 0.5
        assert config.timeout_seconds == 300
        assert config.keep_temps is False
        assert config.threads >= 1
        assert isinstance(config.temp_dir, Path)

    def test_helper_properties(self):
        """Test the byte ceiling helper."""
        assert Config(max_image_size_mb=10).max_image_size_bytes == 10 * 1024 * 1024

    def test_frozen(self):
        """Test that a built configuration cannot be mutated."""
        config = Config()

        with pytest.raises(ValidationError):
            config.threads = 8

    @pytest.mark.parametrize(
        "field,value",
        [
            ("max_image_size_mb", 0),
            ("threads", 0),
            ("timeout_seconds", -1),
            ("ocr_quality_threshold", 1.5),
            ("ocr_language", ""),
        ],
    )
    def test_validation(self, field, value):
        """Test field bounds."""
        with pytest.raises(ValidationError):
            Config(**{field: value})

    def test_unknown_field_rejected(self):
        """Test that typos are not silently ignored."""
        with pytest.raises(ValidationError):
            Config(max_row=10)

    def test_with_overrides(self):
        """Test that overrides return a modified copy and skip None values."""
        config = Config(max_rows=10)

        updated = config.with_overrides(max_rows=20, keep_temps=None, timeout_seconds=0)

        assert updated.max_rows == 20
        assert updated.keep_temps is False
        assert updated.timeout_seconds == 0
        assert config.max_rows == 10

    def test_with_overrides_invalid(self):
        """Test that invalid overrides raise a configuration error."""
        with pytest.raises(ConfigurationError):
            Config().with_overrides(max_image_size_mb=0)


class TestConfigLoading:
    """Test loading from the environment and TOML files."""

    def test_from_env(self, monkeypatch, tmp_path):
        """Test DOCPREP_* variables."""
        monkeypatch.setenv("DOCPREP_MAX_ROWS", "50")
        monkeypatch.setenv("DOCPREP_KEEP_TEMPS", "true")
        monkeypatch.setenv("DOCPREP_TEMP_DIR", str(tmp_path))

        config = Config.from_env(tmp_path / "missing.env")

        assert config.max_rows == 50
        assert config.keep_temps is True
        assert config.temp_dir == tmp_path

    def test_from_env_file(self, monkeypatch, tmp_path):
        """Test that a .env file is loaded without overriding the environment."""
        # Register both variables so monkeypatch removes what load_dotenv sets
        monkeypatch.setenv("DOCPREP_OCR_LANGUAGE", "unset")
        monkeypatch.delenv("DOCPREP_OCR_LANGUAGE")
        monkeypatch.setenv("DOCPREP_THREADS", "3")
        env_file = tmp_path / ".env"
        env_file.write_text("DOCPREP_OCR_LANGUAGE=deu\nDOCPREP_THREADS=7\n")

        config = Config.from_env(env_file)

        assert config.ocr_language == "deu"
        assert config.threads == 3

    def test_from_env_invalid(self, monkeypatch, tmp_path):
        """Test that a bad environment value raises a configuration error."""
        monkeypatch.setenv("DOCPREP_THREADS", "many")

        with pytest.raises(ConfigurationError):
            Config.from_env(tmp_path / "missing.env")

    def test_from_toml(self, tmp_path):
        """Test loading a TOML file."""
        path = tmp_path / "docprep.toml"
        path.write_text(
            'max_image_size_mb = 5\nocr_language = "fra"\nkeep_temps = true\n'
            f'temp_dir = "{tmp_path.as_posix()}"\n'
        )

        config = Config.from_toml(path)

        assert config.max_image_size_mb == 5
        assert config.ocr_language == "fra"
        assert config.keep_temps is True
        assert config.temp_dir == tmp_path
        assert config.max_rows == 1000

    @pytest.mark.parametrize(
        "content",
        [
            "max_image_size_mb = ",
            "unknown_option = 1",
            "threads = 0",
        ],
    )
    def test_from_toml_invalid(self, tmp_path, content):
        """Test malformed, unknown and out-of-range content."""
        path = tmp_path / "bad.toml"
        path.write_text(content)

        with pytest.raises(ConfigurationError):
            Config.from_toml(path)

    def test_from_toml_missing(self, tmp_path):
        """Test a missing config file."""
        with pytest.raises(ConfigurationError):
            Config.from_toml(tmp_path / "nope.toml")

    def test_get_config_singleton(self):
        """Test that get_config returns the same instance."""
        assert get_config() is get_config()
