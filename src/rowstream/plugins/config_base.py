# src/rowstream/plugins/config_base.py
"""Base classes for typed decoder configurations.

This module provides base classes that decoders inherit from to get:
- Strict validation (reject unknown fields)
- Factory methods with clear error messages
- Common tabular options (headers, strict, skip_lines, encoding, max_row_bytes)

Example usage:
    class CsvDecoderConfig(TabularDecoderConfig):
        separator: str = ","

    cfg = CsvDecoderConfig.from_dict({"separator": ";"})
"""

import codecs
from typing import Any, Literal, Self

from pydantic import BaseModel, Field, ValidationError, field_validator

from rowstream.contracts import ConfigError

# headers option: None = read from first line, list = supplied, False = positional keys
HeadersOption = list[str | None] | Literal[False] | None


class DecoderConfig(BaseModel):
    """Base class for typed decoder configurations.

    All decoder configs should inherit from this class.
    """

    model_config = {"extra": "forbid", "frozen": True}

    encoding: str = "utf-8"
    max_row_bytes: int | None = Field(
        default=None,
        gt=0,
        description="Maximum encoded size of a single row; larger rows are a decode error",
    )

    @field_validator("encoding")
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        try:
            codecs.lookup(v)
        except LookupError as e:
            raise ValueError(f"unknown encoding: {v}") from e
        return v

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> Self:
        """Create config from dict with clear error on validation failure.

        Args:
            config: Dictionary of configuration values.

        Returns:
            Validated configuration instance.

        Raises:
            ConfigError: If configuration is invalid.
        """
        if not isinstance(config, dict):
            raise ConfigError(f"Invalid configuration for {cls.__name__}: config must be a dict, got {type(config).__name__}.")

        try:
            return cls.model_validate(config)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration for {cls.__name__}: {e}") from e


class TabularDecoderConfig(DecoderConfig):
    """Options shared by decoders that zip cells against a header.

    headers:
        None  - the first non-skipped line is the header
        list  - caller-supplied header; a None entry drops that column
        False - no header, keys are positional indexes ("0", "1", ...)
    strict:
        A row whose cell count differs from the header length is a decode
        error. Ignored when headers is False.
    skip_lines:
        Number of leading lines discarded before the header.
    """

    headers: HeadersOption = None
    strict: bool = False
    skip_lines: int = Field(default=0, ge=0)

    @property
    def effective_strict(self) -> bool:
        return self.strict and self.headers is not False
