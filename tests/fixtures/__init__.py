"""Shared test helpers for rowstream tests.

Available helpers:
- RecordingProcessor: records rows, pauses on a configurable schedule
- FailingProcessor: raises on a chosen row
- CountingByteSource: byte source that records how many chunks were pulled
"""

from tests.fixtures.processors import CountingByteSource, FailingProcessor, RecordingProcessor

__all__ = [
    "CountingByteSource",
    "FailingProcessor",
    "RecordingProcessor",
]
