"""
RohDBConfig - Configuration Management

Sensible defaults with full override capability.

Example:
    >>> # Use defaults (reads from environment)
    >>> config = RohDBConfig()

    >>> # Explicit configuration
    >>> config = RohDBConfig(database_dir="./database", dist_dir="./dist")

    >>> # From config file
    >>> config = RohDBConfig.from_file("./rohdb.toml")

Environment Variables:
    ROHDB_DATABASE_DIR - Catalog source tree root
    ROHDB_DIST_DIR - Output directory for assets and database_v1.jsonl
    ROHDB_SCHEMAS_DIR - Directory holding vendor/product/eq schema files
    ROHDB_RASTERIZER - SVG rasterizer executable
    ROHDB_ASSET_CONCURRENCY - Max concurrent asset operations
    ROHDB_LLM_MODEL - Model for vendor/product name splitting
    ROHDB_VISION_MODEL - Model reading EQ tables from rendered PDFs
    ROHDB_PDF_RENDERER - PDF renderer executable (ImageMagick convert)
    OPENAI_API_KEY - OpenAI API key (standard name)
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any


class RohDBConfig:
    """Configuration for rohdb."""

    # === Paths ===

    database_dir: str = "database"
    """Root of the catalog source tree (contains vendors/)"""

    dist_dir: str = "dist"
    """Build output directory (assets/ and the record artifact)"""

    schemas_dir: str | None = None
    """Directory with vendor_info.json, product_info.json, eq_info.json (None = packaged)"""

    artifact_name: str = "database_v1.jsonl"
    """File name of the newline-delimited record artifact"""

    # === Assets ===

    raster_version: str = "v1"
    """Transform version tag embedded in derived raster file names"""

    line_art_width: int = 96
    """Width of the raster derived from product line art"""

    line_art_height: int = 64
    """Height of the raster derived from product line art"""

    image_size: int = 1024
    """Required width and height of logo/photo PNGs"""

    rasterizer_command: str = "rsvg-convert"
    """Executable used to rasterize SVG line art"""

    asset_concurrency: int = 8
    """Max concurrent hashing/copy/rasterize operations"""

    pdf_renderer_command: str = "convert"
    """Executable used to render Oratory PDFs to PNG"""

    # === Classification ===

    llm_model: str = "gpt-4o-mini"
    """Model used to split raw product names into vendor and product"""

    openai_api_key: str | None = None

    split_max_attempts: int = 10
    """Attempt budget for one vendor/product split"""

    split_initial_temperature: float = 0.2
    """Sampling temperature of the first attempt"""

    split_temperature_step: float = 0.05
    """Temperature increase per failed attempt"""

    split_retry_delay_seconds: float = 5.0
    """Pause between failed attempts"""

    # === Oratory import ===

    vision_model: str = "gpt-4o"
    """Model that reads EQ tables from rendered PDF pages"""

    oratory_chunk_size: int = 8
    """PDFs processed concurrently per batch"""

    def __init__(self, **kwargs: Any) -> None:
        """
        Initialize configuration.

        Args:
            **kwargs: Override any configuration option
        """
        # Load from environment first
        self._load_from_env()

        # Apply explicit overrides
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)
            else:
                raise ValueError(f"Unknown configuration option: {key}")

    def _load_from_env(self) -> None:
        """Load configuration from environment variables."""
        import os

        self.openai_api_key = os.getenv("OPENAI_API_KEY")

        if database_dir := os.getenv("ROHDB_DATABASE_DIR"):
            self.database_dir = database_dir
        if dist_dir := os.getenv("ROHDB_DIST_DIR"):
            self.dist_dir = dist_dir
        if schemas_dir := os.getenv("ROHDB_SCHEMAS_DIR"):
            self.schemas_dir = schemas_dir
        if rasterizer := os.getenv("ROHDB_RASTERIZER"):
            self.rasterizer_command = rasterizer
        if concurrency := os.getenv("ROHDB_ASSET_CONCURRENCY"):
            self.asset_concurrency = int(concurrency)
        if model := os.getenv("ROHDB_LLM_MODEL"):
            self.llm_model = model
        if vision_model := os.getenv("ROHDB_VISION_MODEL"):
            self.vision_model = vision_model
        if renderer := os.getenv("ROHDB_PDF_RENDERER"):
            self.pdf_renderer_command = renderer

    @classmethod
    def from_file(cls, path: str | Path) -> "RohDBConfig":
        """
        Load configuration from TOML file.

        The TOML file can contain any configuration option as a key.
        Nested sections are flattened with underscores.

        Example TOML:
            [paths]
            database_dir = "./database"
            dist_dir = "./dist"

            [assets]
            raster_version = "v1"
            asset_concurrency = 4

            [split]
            max_attempts = 5

            [vision]
            model = "gpt-4o"

            [oratory]
            chunk_size = 4

        Args:
            path: Path to TOML configuration file

        Returns:
            RohDBConfig instance with values from file

        Raises:
            FileNotFoundError: If config file doesn't exist
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "rb") as f:
            data = tomllib.load(f)

        # Map section names to config key prefixes
        section_mapping = {
            "paths": "",
            "assets": "",
            "llm": "llm_",
            "split": "split_",
            "vision": "vision_",
            "oratory": "oratory_",
        }

        flat_config: dict[str, Any] = {}
        for section, prefix in section_mapping.items():
            if section in data:
                for key, value in data[section].items():
                    flat_config[f"{prefix}{key}"] = value

        # Also support flat top-level keys
        for key, value in data.items():
            if key not in section_mapping and not isinstance(value, dict):
                flat_config[key] = value

        return cls(**flat_config)

    @classmethod
    def from_env(cls) -> "RohDBConfig":
        """Load configuration from environment variables only."""
        return cls()

    def to_file(self, path: str | Path) -> None:
        """
        Save configuration to TOML file.

        The API key is never written; set OPENAI_API_KEY instead.

        Args:
            path: Path to write TOML configuration file
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        sections: dict[str, dict[str, str | int | float | None]] = {
            "paths": {
                "database_dir": self.database_dir,
                "dist_dir": self.dist_dir,
                "schemas_dir": self.schemas_dir,
                "artifact_name": self.artifact_name,
            },
            "assets": {
                "raster_version": self.raster_version,
                "line_art_width": self.line_art_width,
                "line_art_height": self.line_art_height,
                "image_size": self.image_size,
                "rasterizer_command": self.rasterizer_command,
                "asset_concurrency": self.asset_concurrency,
                "pdf_renderer_command": self.pdf_renderer_command,
            },
            "llm": {
                "model": self.llm_model,
            },
            "split": {
                "max_attempts": self.split_max_attempts,
                "initial_temperature": self.split_initial_temperature,
                "temperature_step": self.split_temperature_step,
                "retry_delay_seconds": self.split_retry_delay_seconds,
            },
            "vision": {
                "model": self.vision_model,
            },
            "oratory": {
                "chunk_size": self.oratory_chunk_size,
            },
        }

        lines = ["# rohdb configuration", ""]

        for section_name, section_values in sections.items():
            lines.append(f"[{section_name}]")
            for key, value in section_values.items():
                if isinstance(value, str):
                    lines.append(f'{key} = "{value}"')
                elif isinstance(value, bool):
                    lines.append(f"{key} = {str(value).lower()}")
                elif isinstance(value, (int, float)):
                    lines.append(f"{key} = {value}")
            lines.append("")

        lines.extend([
            "# The OpenAI API key should be set via OPENAI_API_KEY.",
            "",
        ])

        path.write_text("\n".join(lines))

    def with_overrides(self, **kwargs: Any) -> "RohDBConfig":
        """Return new config with specified overrides."""
        new_config = RohDBConfig.__new__(RohDBConfig)
        for key in dir(self):
            if not key.startswith("_") and not callable(getattr(self, key)):
                setattr(new_config, key, getattr(self, key))
        for key, value in kwargs.items():
            if not hasattr(new_config, key):
                raise ValueError(f"Unknown configuration option: {key}")
            setattr(new_config, key, value)
        return new_config
