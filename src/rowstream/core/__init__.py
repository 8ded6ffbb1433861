"""Core infrastructure: canonical fingerprints, configuration, logging."""

from rowstream.core.canonical import (
    FINGERPRINT_VERSION,
    canonical_json,
    row_fingerprint,
    stable_hash,
)
from rowstream.core.config import (
    LoggingSettings,
    RowStreamSettings,
    SourceSettings,
    detect_format,
    load_settings,
)
from rowstream.core.logging import (
    configure_from_settings,
    configure_logging,
    get_logger,
)

__all__ = [
    "FINGERPRINT_VERSION",
    "LoggingSettings",
    "RowStreamSettings",
    "SourceSettings",
    "canonical_json",
    "configure_from_settings",
    "configure_logging",
    "detect_format",
    "get_logger",
    "load_settings",
    "row_fingerprint",
    "stable_hash",
]
