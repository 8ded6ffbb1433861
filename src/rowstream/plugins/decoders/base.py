# src/rowstream/plugins/decoders/base.py
"""Base class and shared row assembly for format decoders."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator, Sequence
from typing import Any, ClassVar

from rowstream.contracts import DecodeError, Row
from rowstream.plugins.config_base import DecoderConfig

ValueMapper = Callable[[str, int, Any], Any]


class BaseDecoder(ABC):
    """Base class for format decoders.

    Subclasses set ``name`` and ``config_class`` and implement ``decode``.
    Options may be given as a dict (validated through ``config_class``) or as
    an already-built config instance.
    """

    name: ClassVar[str]
    config_class: ClassVar[type[DecoderConfig]]

    def __init__(self, options: dict[str, Any] | DecoderConfig | None = None) -> None:
        if options is None:
            options = {}
        if isinstance(options, DecoderConfig):
            if not isinstance(options, self.config_class):
                raise TypeError(f"{type(self).__name__} expects {self.config_class.__name__}, got {type(options).__name__}")
            self._config = options
        else:
            self._config = self.config_class.from_dict(options)

    @property
    def config(self) -> DecoderConfig:
        return self._config

    @abstractmethod
    def decode(self, chunks: Iterable[bytes]) -> Iterator[Row]:
        """Decode byte chunks into rows, lazily."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._config!r})"


class RowAssembler:
    """Zips decoded cells against a header to build rows.

    Header semantics:
    - headers is None: keys are positional indexes ("0", "1", ...)
    - a None header entry drops the corresponding column
    - a cell beyond the header length is keyed by its index ("_3")
    - strict: a cell count differing from the header length is an error

    One assembler belongs to one decode pass; headers discovered from the
    source are set on it via ``headers``.
    """

    def __init__(
        self,
        headers: Sequence[str | None] | None = None,
        *,
        strict: bool = False,
        map_values: ValueMapper | None = None,
    ) -> None:
        self.headers: list[str | None] | None = list(headers) if headers is not None else None
        self._strict = strict
        self._map_values = map_values

    def assemble(self, cells: Sequence[Any], line_number: int | None = None) -> Row:
        """Build a row from cells.

        Raises:
            DecodeError: In strict mode when cell count and header length differ.
        """
        headers = self.headers
        if headers is None:
            return {str(index): self._value(str(index), index, cell) for index, cell in enumerate(cells)}

        if self._strict and len(cells) != len(headers):
            raise DecodeError(
                f"Row length does not match headers: expected {len(headers)} cells, got {len(cells)}",
                line_number=line_number,
            )

        row: Row = {}
        header_count = len(headers)
        for index, cell in enumerate(cells):
            if index < header_count:
                key = headers[index]
                if key is None:
                    continue
            else:
                key = f"_{index}"
            row[key] = self._value(key, index, cell)
        return row

    def _value(self, key: str, index: int, cell: Any) -> Any:
        if self._map_values is None:
            return cell
        return self._map_values(key, index, cell)
