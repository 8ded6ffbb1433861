# src/rowstream/core/config.py
"""
Configuration schema and loading for rowstream.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

from pathlib import Path, PurePosixPath
from typing import Any, Literal
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, field_validator

from rowstream.contracts.enums import SourceFormat

_JSONL_SUFFIXES = frozenset({".jsonl", ".ndjson"})


def detect_format(location: str) -> SourceFormat:
    """Guess the wire format from a path or URL suffix.

    A trailing ``.gz`` is ignored. ``.jsonl`` and ``.ndjson`` mean JSON lines;
    everything else is treated as CSV.
    """
    path = urlsplit(location).path if "://" in location else location
    suffixes = [s.lower() for s in PurePosixPath(path).suffixes]
    if suffixes and suffixes[-1] == ".gz":
        suffixes.pop()
    if suffixes and suffixes[-1] in _JSONL_SUFFIXES:
        return SourceFormat.JSONL
    return SourceFormat.CSV


class SourceSettings(BaseModel):
    """Where rows come from and how they are decoded.

    Example YAML:
        source:
          location: https://example.com/export/orders.jsonl.gz
          format: jsonl
          options:
            skip_comments: true
            strict: true
    """

    model_config = {"frozen": True, "extra": "forbid"}

    location: str = Field(description="Local file path or http(s) URL")
    format: SourceFormat | None = Field(
        default=None,
        description="Wire format; detected from the location suffix when omitted",
    )
    options: dict[str, Any] = Field(
        default_factory=dict,
        description="Decoder options, validated by the decoder's config class",
    )
    chunk_size: int = Field(default=64 * 1024, gt=0, description="Bytes read from the source per chunk")
    timeout_seconds: float = Field(default=30.0, gt=0, description="HTTP timeout for remote sources")

    @field_validator("location")
    @classmethod
    def validate_location_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("location cannot be empty")
        return v

    @property
    def resolved_format(self) -> SourceFormat:
        return self.format if self.format is not None else detect_format(self.location)


class LoggingSettings(BaseModel):
    """Logging output configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    json_output: bool = False


class RowStreamSettings(BaseModel):
    """Top-level rowstream configuration.

    All settings are validated and frozen after construction.
    """

    model_config = {"frozen": True}

    source: SourceSettings
    pause_every: int = Field(
        default=1000,
        ge=0,
        description="Rows between checkpoint-safe pauses for the CLI processor; 0 never pauses",
    )
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def load_settings(config_path: Path) -> RowStreamSettings:
    """Load settings from a YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (ROWSTREAM_*) - highest priority
    2. Config file
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: ROWSTREAM_SOURCE__LOCATION for nested keys.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated RowStreamSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="ROWSTREAM",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; convert to lowercase for Pydantic
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}

    return RowStreamSettings(**raw_config)
