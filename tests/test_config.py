"""Tests for RohDBConfig."""

import pytest

from rohdb.config import RohDBConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "ROHDB_DATABASE_DIR",
        "ROHDB_DIST_DIR",
        "ROHDB_SCHEMAS_DIR",
        "ROHDB_RASTERIZER",
        "ROHDB_ASSET_CONCURRENCY",
        "ROHDB_LLM_MODEL",
        "ROHDB_VISION_MODEL",
        "ROHDB_PDF_RENDERER",
        "OPENAI_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    """Tests for default values and overrides."""

    def test_defaults(self):
        """Defaults describe the standard layout and retry policy."""
        config = RohDBConfig()
        assert config.database_dir == "database"
        assert config.dist_dir == "dist"
        assert config.artifact_name == "database_v1.jsonl"
        assert (config.line_art_width, config.line_art_height) == (96, 64)
        assert config.image_size == 1024
        assert config.split_max_attempts == 10
        assert config.split_initial_temperature == 0.2
        assert config.split_temperature_step == 0.05
        assert config.split_retry_delay_seconds == 5.0

    def test_keyword_override(self):
        """Keyword arguments override defaults."""
        config = RohDBConfig(dist_dir="build", asset_concurrency=2)
        assert config.dist_dir == "build"
        assert config.asset_concurrency == 2

    def test_unknown_option_rejected(self):
        """Unknown options raise ValueError."""
        with pytest.raises(ValueError, match="Unknown configuration option"):
            RohDBConfig(not_an_option=1)

    def test_environment(self, monkeypatch):
        """Environment variables override defaults."""
        monkeypatch.setenv("ROHDB_DATABASE_DIR", "/data/db")
        monkeypatch.setenv("ROHDB_ASSET_CONCURRENCY", "3")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

        config = RohDBConfig()

        assert config.database_dir == "/data/db"
        assert config.asset_concurrency == 3
        assert config.openai_api_key == "sk-test"

    def test_with_overrides_copies(self):
        """with_overrides leaves the original untouched."""
        base = RohDBConfig()
        derived = base.with_overrides(database_dir="other")
        assert derived.database_dir == "other"
        assert base.database_dir == "database"
        assert derived.dist_dir == base.dist_dir


class TestConfigFile:
    """Tests for TOML loading and saving."""

    def test_from_file_sections(self, tmp_path):
        """Sections are flattened with their prefixes."""
        path = tmp_path / "rohdb.toml"
        path.write_text(
            '[paths]\ndatabase_dir = "./db"\n\n'
            "[assets]\nasset_concurrency = 4\n\n"
            '[llm]\nmodel = "gpt-4o"\n\n'
            "[split]\nmax_attempts = 3\n"
        )

        config = RohDBConfig.from_file(path)

        assert config.database_dir == "./db"
        assert config.asset_concurrency == 4
        assert config.llm_model == "gpt-4o"
        assert config.split_max_attempts == 3

    def test_missing_file(self, tmp_path):
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            RohDBConfig.from_file(tmp_path / "missing.toml")

    def test_round_trip_without_key(self, tmp_path, monkeypatch):
        """to_file output loads back and never contains the API key."""
        monkeypatch.setenv("OPENAI_API_KEY", "sk-secret")
        path = tmp_path / "out.toml"

        RohDBConfig(dist_dir="build", split_max_attempts=4).to_file(path)
        loaded = RohDBConfig.from_file(path)

        assert "sk-secret" not in path.read_text()
        assert loaded.dist_dir == "build"
        assert loaded.split_max_attempts == 4


class TestOratorySettings:
    """Tests for the PDF import settings."""

    def test_defaults(self):
        """Vision model, renderer and batch size have defaults."""
        config = RohDBConfig()
        assert config.vision_model == "gpt-4o"
        assert config.pdf_renderer_command == "convert"
        assert config.oratory_chunk_size == 8

    def test_environment(self, monkeypatch):
        """Vision model and renderer can come from the environment."""
        monkeypatch.setenv("ROHDB_VISION_MODEL", "gpt-4.1")
        monkeypatch.setenv("ROHDB_PDF_RENDERER", "/usr/bin/magick")
        config = RohDBConfig()
        assert config.vision_model == "gpt-4.1"
        assert config.pdf_renderer_command == "/usr/bin/magick"

    def test_file_round_trip(self, tmp_path):
        """The vision and oratory sections load back with their prefixes."""
        path = tmp_path / "out.toml"

        RohDBConfig(vision_model="gpt-4.1", oratory_chunk_size=2).to_file(path)
        loaded = RohDBConfig.from_file(path)

        assert "[vision]" in path.read_text()
        assert loaded.vision_model == "gpt-4.1"
        assert loaded.oratory_chunk_size == 2
