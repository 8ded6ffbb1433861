"""Plugin system: format decoders, byte sources, row processors.

Uses pluggy for decoder registration. Byte sources and processors are
plain classes composed by the caller.
"""

from rowstream.plugins.hookspecs import hookimpl, hookspec
from rowstream.plugins.manager import DecoderManager

__all__ = [
    "DecoderManager",
    "hookimpl",
    "hookspec",
]
