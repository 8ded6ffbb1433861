# src/rowstream/plugins/manager.py
"""Decoder manager for registration and lookup.

Uses pluggy for hook-based plugin registration.
"""

from typing import Any

import pluggy

from rowstream.contracts import ConfigError
from rowstream.plugins.config_base import DecoderConfig
from rowstream.plugins.decoders.base import BaseDecoder
from rowstream.plugins.hookspecs import PROJECT_NAME, RowStreamDecoderSpec, hookimpl


class BuiltinDecoders:
    """Hook implementation registering the decoders shipped with rowstream."""

    @hookimpl
    def rowstream_get_decoders(self) -> list[type[BaseDecoder]]:
        from rowstream.plugins.decoders.csv_decoder import CsvDecoder
        from rowstream.plugins.decoders.jsonl_decoder import JsonLinesDecoder

        return [CsvDecoder, JsonLinesDecoder]


class DecoderManager:
    """Manages decoder registration and lookup.

    Usage:
        manager = DecoderManager()
        manager.register_builtin_plugins()

        decoder = manager.create_decoder("csv", {"separator": ";"})
    """

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(RowStreamDecoderSpec)
        self._decoders: dict[str, type[BaseDecoder]] = {}

    def register_builtin_plugins(self) -> None:
        """Register the built-in csv and jsonl decoders."""
        self.register(BuiltinDecoders())

    def register(self, plugin: Any) -> None:
        """Register a plugin.

        Args:
            plugin: Plugin instance implementing hook methods

        Raises:
            ValueError: If a decoder with the same name is already registered
        """
        self._pm.register(plugin)
        try:
            self._refresh_caches()
        except ValueError:
            self._pm.unregister(plugin)
            raise

    def _refresh_caches(self) -> None:
        new_decoders: dict[str, type[BaseDecoder]] = {}
        for decoders in self._pm.hook.rowstream_get_decoders():
            for cls in decoders:
                name = cls.name
                if name in new_decoders:
                    raise ValueError(f"Duplicate decoder plugin name: '{name}'. Already registered by {new_decoders[name].__name__}")
                new_decoders[name] = cls
        self._decoders = new_decoders

    def get_decoders(self) -> list[type[BaseDecoder]]:
        """Get all registered decoder classes."""
        return list(self._decoders.values())

    def get_decoder_by_name(self, name: str) -> type[BaseDecoder] | None:
        """Get decoder class by name."""
        return self._decoders.get(name)

    def create_decoder(self, name: str, options: dict[str, Any] | DecoderConfig | None = None) -> BaseDecoder:
        """Instantiate a decoder by name.

        Raises:
            ConfigError: If no decoder has that name or the options are invalid.
        """
        decoder_cls = self.get_decoder_by_name(name)
        if decoder_cls is None:
            raise ConfigError(f"Unknown decoder '{name}'. Available decoders: {sorted(self._decoders)}")
        return decoder_cls(options)
