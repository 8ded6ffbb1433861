# src/rowstream/core/canonical.py
"""
Canonical JSON serialization and row fingerprints.

Two-phase approach:
1. Normalize: Convert datetime/Decimal/bytes/tuples to JSON-safe primitives (our code)
2. Serialize: Produce deterministic JSON per RFC 8785/JCS (rfc8785 package)

A row fingerprint is the SHA-256 of the canonical JSON of a fully decoded
row. It is used only as a resume marker, never as a business identifier.
Because keys are sorted during canonicalization, column order does not
affect the fingerprint, and two rows with identical decoded content always
share a fingerprint.

IMPORTANT: NaN and Infinity are strictly REJECTED, not silently converted.
"""

from __future__ import annotations

import base64
import hashlib
import math
from collections.abc import Mapping
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import rfc8785

# Stored beside persisted markers so a change of algorithm is detected on resume
FINGERPRINT_VERSION = "sha256-rfc8785-v1"


def _normalize_value(obj: Any) -> Any:
    """Convert a single value to a JSON-safe primitive.

    Raises:
        ValueError: If value is a non-finite float or Decimal
    """
    if isinstance(obj, float):
        if math.isnan(obj) or math.isinf(obj):
            raise ValueError(f"Cannot canonicalize non-finite float: {obj}. Use None for missing values, not NaN.")
        return obj

    if obj is None or isinstance(obj, str | int | bool):
        return obj

    if isinstance(obj, datetime):
        # Naive datetimes assumed UTC
        if obj.tzinfo is None:
            obj = obj.replace(tzinfo=UTC)
        return obj.astimezone(UTC).isoformat()

    if isinstance(obj, bytes):
        return {"__bytes__": base64.b64encode(obj).decode("ascii")}

    if isinstance(obj, Decimal):
        if not obj.is_finite():
            raise ValueError(f"Cannot canonicalize non-finite Decimal: {obj}. Use None for missing values, not NaN/Infinity.")
        return str(obj)

    return obj


def _normalize_for_canonical(data: Any) -> Any:
    """Recursively normalize a data structure for canonical JSON."""
    if isinstance(data, Mapping):
        return {str(k): _normalize_for_canonical(v) for k, v in data.items()}
    if isinstance(data, list | tuple):
        return [_normalize_for_canonical(v) for v in data]
    return _normalize_value(data)


def canonical_json(obj: Any) -> str:
    """Produce canonical JSON for hashing.

    Args:
        obj: Data structure to serialize

    Returns:
        Canonical JSON string (no whitespace, sorted keys)

    Raises:
        ValueError: If data contains NaN, Infinity, or other non-finite values
        TypeError: If data contains types that cannot be serialized
    """
    normalized = _normalize_for_canonical(obj)
    result: bytes = rfc8785.dumps(normalized)
    return result.decode("utf-8")


def stable_hash(obj: Any) -> str:
    """SHA-256 hex digest of the canonical JSON of obj."""
    canonical = canonical_json(obj)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def row_fingerprint(row: Mapping[str, Any]) -> str:
    """Compute the resume marker for a decoded row.

    Computed identically regardless of the wire format the row came from.

    Note: a source containing duplicate rows yields duplicate fingerprints,
    and fastforward always stops at the first occurrence.
    """
    return stable_hash(row)
