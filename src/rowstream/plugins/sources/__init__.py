"""Byte sources: local streams, files and remote URLs."""

from rowstream.plugins.sources.byte_source import (
    DEFAULT_CHUNK_SIZE,
    FileByteSource,
    IterableByteSource,
    StreamByteSource,
    gunzip_chunks,
)
from rowstream.plugins.sources.http_source import HttpByteSource, open_byte_source

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "FileByteSource",
    "HttpByteSource",
    "IterableByteSource",
    "StreamByteSource",
    "gunzip_chunks",
    "open_byte_source",
]
