# src/rowstream/plugins/hookspecs.py
"""pluggy hook specifications for rowstream plugins.

Plugins implement these hooks to register themselves with the framework.
The decoder manager calls these hooks during registration.

Usage (implementing a plugin):
    from rowstream.plugins.hookspecs import hookimpl

    class MyPlugin:
        @hookimpl  # NOT @hookspec - that's for defining specs
        def rowstream_get_decoders(self):
            return [MyDecoder]
"""

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from rowstream.plugins.decoders.base import BaseDecoder

PROJECT_NAME = "rowstream"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class RowStreamDecoderSpec:
    """Hook specifications for format decoder plugins."""

    @hookspec
    def rowstream_get_decoders(self) -> list[type["BaseDecoder"]]:  # type: ignore[empty-body]
        """Return decoder plugin classes.

        Returns:
            List of decoder classes (not instances)
        """
