# tests/unit/core/test_config.py
"""Tests for settings schema and Dynaconf loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from rowstream.contracts import SourceFormat
from rowstream.core.config import (
    LoggingSettings,
    RowStreamSettings,
    SourceSettings,
    detect_format,
    load_settings,
)


class TestDetectFormat:
    @pytest.mark.parametrize(
        ("location", "expected"),
        [
            ("data.csv", SourceFormat.CSV),
            ("data.jsonl", SourceFormat.JSONL),
            ("data.ndjson", SourceFormat.JSONL),
            ("data.JSONL.gz", SourceFormat.JSONL),
            ("data.csv.gz", SourceFormat.CSV),
            ("https://example.com/export/rows.jsonl.gz?token=abc", SourceFormat.JSONL),
            ("https://example.com/export/rows", SourceFormat.CSV),
            ("no_suffix", SourceFormat.CSV),
        ],
    )
    def test_detect_format(self, location: str, expected: SourceFormat) -> None:
        assert detect_format(location) is expected


class TestSourceSettings:
    def test_defaults(self) -> None:
        source = SourceSettings(location="rows.csv")
        assert source.format is None
        assert source.options == {}
        assert source.chunk_size == 64 * 1024
        assert source.timeout_seconds == 30.0
        assert source.resolved_format is SourceFormat.CSV

    def test_explicit_format_wins_over_suffix(self) -> None:
        source = SourceSettings(location="rows.csv", format="jsonl")
        assert source.resolved_format is SourceFormat.JSONL

    def test_empty_location_rejected(self) -> None:
        with pytest.raises(ValidationError, match="location cannot be empty"):
            SourceSettings(location="   ")

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SourceSettings(location="rows.csv", delimiter=";")

    def test_non_positive_chunk_size_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SourceSettings(location="rows.csv", chunk_size=0)

    def test_settings_are_frozen(self) -> None:
        source = SourceSettings(location="rows.csv")
        with pytest.raises(ValidationError):
            source.location = "other.csv"  # type: ignore[misc]


class TestRowStreamSettings:
    def test_defaults(self) -> None:
        settings = RowStreamSettings(source={"location": "rows.csv"})
        assert settings.pause_every == 1000
        assert settings.logging == LoggingSettings()

    def test_negative_pause_every_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RowStreamSettings(source={"location": "rows.csv"}, pause_every=-1)

    def test_invalid_log_level_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RowStreamSettings(source={"location": "rows.csv"}, logging={"level": "TRACE"})


class TestLoadSettings:
    def test_load_from_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(
            """
source:
  location: https://example.com/rows.jsonl
  options:
    skip_comments: true
    strict: true
pause_every: 50
logging:
  level: DEBUG
"""
        )

        settings = load_settings(config_file)

        assert settings.source.location == "https://example.com/rows.jsonl"
        assert settings.source.resolved_format is SourceFormat.JSONL
        assert settings.source.options == {"skip_comments": True, "strict": True}
        assert settings.pause_every == 50
        assert settings.logging.level == "DEBUG"

    def test_env_var_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(
            """
source:
  location: rows.csv
pause_every: 50
"""
        )
        monkeypatch.setenv("ROWSTREAM_PAUSE_EVERY", "7")

        settings = load_settings(config_file)

        assert settings.pause_every == 7

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            load_settings(tmp_path / "missing.yaml")

    def test_invalid_values_raise_validation_error(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(
            """
source:
  location: rows.csv
pause_every: -5
"""
        )

        with pytest.raises(ValidationError):
            load_settings(config_file)
