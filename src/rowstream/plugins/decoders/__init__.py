"""Built-in format decoders.

Decoders are usually looked up by name via DecoderManager:
    manager = DecoderManager()
    manager.register_builtin_plugins()
    decoder = manager.create_decoder("jsonl", {"skip_comments": True})
"""

from rowstream.plugins.decoders.base import BaseDecoder, RowAssembler
from rowstream.plugins.decoders.csv_decoder import CsvDecoder, CsvDecoderConfig
from rowstream.plugins.decoders.jsonl_decoder import JsonLinesDecoder, JsonLinesDecoderConfig, JsonLinesFramer

__all__ = [
    "BaseDecoder",
    "CsvDecoder",
    "CsvDecoderConfig",
    "JsonLinesDecoder",
    "JsonLinesDecoderConfig",
    "JsonLinesFramer",
    "RowAssembler",
]
