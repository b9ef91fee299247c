from __future__ import annotations

import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field


class ParserConfig(BaseModel):
    """Decoder configuration."""

    # Extract and classify embedded cover art
    fetch_images: bool = Field(default=False)

    # Size of the trailing window searched for the APEv2 tag (bytes)
    tail_window_size: int = Field(default=1024 * 128, ge=160)

    # Backward tag scan starts this many bytes before the end of the window
    tag_scan_margin: int = Field(default=160, ge=8)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="WARNING")  # DEBUG, INFO, WARNING, ERROR
    format: str = Field(default="%(message)s")
    hash_paths: bool = Field(default=False)


class Config(BaseModel):
    """
    Main configuration for ape-meta.

    Loads from TOML file with optional environment variable overrides.
    """

    parser: ParserConfig = Field(default_factory=ParserConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Path | None = None) -> Config:
        """
        Load configuration from TOML file with environment variable overrides.

        Environment variables take precedence and follow the pattern:
        APE_META_<SECTION>_<KEY> (e.g., APE_META_PARSER_FETCH_IMAGES)

        All values are gathered into a single dictionary first, then validated
        by Pydantic to ensure consistent type checking and coercion.
        """
        config_dict: dict[str, object] = {}

        if config_path and config_path.exists():
            config_dict = tomllib.loads(config_path.read_text())

        config_dict = cls._merge_env_overrides(config_dict)
        return cls.model_validate(config_dict)

    @classmethod
    def _merge_env_overrides(cls, config_dict: dict[str, object]) -> dict[str, object]:
        """
        Merge environment variable overrides into config dictionary.

        Returns a new dictionary with env vars applied, ready for Pydantic validation.
        """
        env_prefix = "APE_META_"

        parser = config_dict.setdefault("parser", {})
        if not isinstance(parser, dict):
            parser = {}
            config_dict["parser"] = parser

        if fetch_images := os.getenv(f"{env_prefix}PARSER_FETCH_IMAGES"):
            parser["fetch_images"] = fetch_images.lower() in ("true", "1", "yes")
        if tail_size := os.getenv(f"{env_prefix}PARSER_TAIL_WINDOW_SIZE"):
            parser["tail_window_size"] = tail_size
        if scan_margin := os.getenv(f"{env_prefix}PARSER_TAG_SCAN_MARGIN"):
            parser["tag_scan_margin"] = scan_margin

        logging_config = config_dict.setdefault("logging", {})
        if not isinstance(logging_config, dict):
            logging_config = {}
            config_dict["logging"] = logging_config

        if log_level := os.getenv(f"{env_prefix}LOGGING_LEVEL"):
            logging_config["level"] = log_level
        if log_format := os.getenv(f"{env_prefix}LOGGING_FORMAT"):
            logging_config["format"] = log_format
        if log_hash_paths := os.getenv(f"{env_prefix}LOGGING_HASH_PATHS"):
            logging_config["hash_paths"] = log_hash_paths.lower() in ("true", "1", "yes")

        return config_dict


## Tests


def test_config_defaults():
    config = Config()
    assert config.parser.fetch_images is False
    assert config.parser.tail_window_size == 131072
    assert config.parser.tag_scan_margin == 160
    assert config.logging.level == "WARNING"


def test_config_from_dict():
    config = Config.model_validate(
        {
            "parser": {"fetch_images": True, "tag_scan_margin": 8},
        }
    )
    assert config.parser.fetch_images is True
    assert config.parser.tag_scan_margin == 8


def test_config_env_overrides(
    monkeypatch,  # pyright: ignore[reportMissingParameterType,reportUnknownParameterType]
):
    monkeypatch.setenv(  # pyright: ignore[reportUnknownMemberType]
        "APE_META_PARSER_FETCH_IMAGES", "yes"
    )
    monkeypatch.setenv(  # pyright: ignore[reportUnknownMemberType]
        "APE_META_PARSER_TAIL_WINDOW_SIZE", "4096"
    )
    monkeypatch.setenv(  # pyright: ignore[reportUnknownMemberType]
        "APE_META_LOGGING_LEVEL", "DEBUG"
    )

    config = Config.load()
    assert config.parser.fetch_images is True
    assert config.parser.tail_window_size == 4096
    assert config.logging.level == "DEBUG"


def test_config_load_nonexistent_file():
    config = Config.load(Path("/nonexistent/config.toml"))
    assert config.parser.fetch_images is False
    assert config.parser.tail_window_size == 131072
