# tests/unit/plugins/decoders/test_jsonl_decoder.py
"""Tests for the JSON lines framer and decoder."""

from collections.abc import Iterable
from typing import Any

import pytest

from rowstream.contracts import ConfigError, DecodeError, RowTooLargeError
from rowstream.plugins.decoders.csv_decoder import CsvDecoderConfig
from rowstream.plugins.decoders.jsonl_decoder import (
    JsonLinesDecoder,
    JsonLinesDecoderConfig,
    JsonLinesFramer,
)


def _decode(chunks: Iterable[bytes | str], **options: Any) -> list[dict[str, Any]]:
    return list(JsonLinesDecoder(options).decode(chunks))


def _frame(chunks: Iterable[bytes], **kwargs: Any) -> list[bytes]:
    framer = JsonLinesFramer(**kwargs)
    lines: list[bytes] = []
    for chunk in chunks:
        lines.extend(framer.feed(chunk))
    lines.extend(framer.close())
    return lines


class TestJsonLinesFramer:
    """Line reconstruction across arbitrary chunk boundaries."""

    def test_lf_lines(self) -> None:
        assert _frame([b"a\nb\n"]) == [b"a", b"b"]

    def test_crlf_lines_are_stripped(self) -> None:
        assert _frame([b"a\r\nb\r\n"]) == [b"a", b"b"]

    def test_bare_cr_lines(self) -> None:
        assert _frame([b"a\rb\r"]) == [b"a", b"b"]

    def test_crlf_split_between_cr_and_lf(self) -> None:
        """The terminator is only decided once the byte after \\r is seen."""
        framer = JsonLinesFramer()

        assert list(framer.feed(b"a\r")) == []
        assert framer.newline is None

        assert list(framer.feed(b"\nb\r\n")) == [b"a", b"b"]
        assert framer.newline == b"\n"
        assert list(framer.close()) == []

    def test_trailing_bare_cr_at_end_of_input(self) -> None:
        assert _frame([b"a\r"]) == [b"a"]

    def test_unterminated_last_line_is_flushed(self) -> None:
        assert _frame([b"a\nb"]) == [b"a", b"b"]

    def test_line_split_across_many_chunks(self) -> None:
        assert _frame([b"ab", b"cd", b"e\nf", b"g"]) == [b"abcde", b"fg"]

    def test_detected_terminator_is_frozen(self) -> None:
        """After LF is detected, a later bare CR is part of the line content."""
        assert _frame([b"a\nb\rc\n"]) == [b"a", b"b\rc"]

    def test_custom_newline(self) -> None:
        assert _frame([b"a;b;"], newline=b";") == [b"a", b"b"]

    def test_custom_newline_keeps_carriage_returns(self) -> None:
        assert _frame([b"a\r;b"], newline=b";") == [b"a\r", b"b"]

    def test_line_number_counts_physical_lines(self) -> None:
        framer = JsonLinesFramer()
        list(framer.feed(b"a\n\nb\n"))
        assert framer.line_number == 3

    def test_empty_input(self) -> None:
        assert _frame([]) == []

    def test_max_row_bytes_counts_terminator(self) -> None:
        assert _frame([b"abc\n"], max_row_bytes=4) == [b"abc"]
        with pytest.raises(RowTooLargeError):
            _frame([b"abcd\n"], max_row_bytes=4)

    def test_max_row_bytes_checks_partial_line(self) -> None:
        """An unterminated line is rejected as soon as it outgrows the limit."""
        framer = JsonLinesFramer(max_row_bytes=4)
        assert list(framer.feed(b"ok\n")) == [b"ok"]
        with pytest.raises(RowTooLargeError) as exc_info:
            list(framer.feed(b"toolong"))
        assert exc_info.value.line_number == 2

    def test_feed_after_close_is_an_error(self) -> None:
        framer = JsonLinesFramer()
        list(framer.close())
        with pytest.raises(RuntimeError):
            list(framer.feed(b"a\n"))


class TestTabularDecoding:
    def test_header_then_rows(self) -> None:
        rows = _decode([b'["id","name"]\n["1","a"]\n["2","b"]\n'])
        assert rows == [{"id": "1", "name": "a"}, {"id": "2", "name": "b"}]

    def test_values_keep_json_types(self) -> None:
        rows = _decode([b'["n","flag","nested"]\n[1.5,true,{"x":null}]\n'])
        assert rows == [{"n": 1.5, "flag": True, "nested": {"x": None}}]

    def test_key_order_follows_header(self) -> None:
        rows = _decode([b'["b","a"]\n[1,2]\n'])
        assert list(rows[0]) == ["b", "a"]

    def test_crlf_source(self) -> None:
        assert _decode([b'["id"]\r\n["1"]\r\n']) == [{"id": "1"}]

    def test_cr_source(self) -> None:
        assert _decode([b'["id"]\r["1"]\r']) == [{"id": "1"}]

    def test_no_trailing_newline(self) -> None:
        assert _decode([b'["id"]\n["1"]']) == [{"id": "1"}]

    def test_str_chunks_are_accepted(self) -> None:
        assert _decode(['["id"]\n', '["1"]\n']) == [{"id": "1"}]

    def test_empty_source(self) -> None:
        assert _decode([]) == []

    def test_header_only(self) -> None:
        assert _decode([b'["id"]\n']) == []

    def test_blank_lines_are_skipped(self) -> None:
        assert _decode([b'["id"]\n\n["1"]\n  \n["2"]\n']) == [{"id": "1"}, {"id": "2"}]

    def test_extra_cells_keyed_by_index(self) -> None:
        rows = _decode([b'["a"]\n["1","2","3"]\n'])
        assert rows == [{"a": "1", "_1": "2", "_2": "3"}]

    def test_short_row_omits_missing_columns(self) -> None:
        rows = _decode([b'["a","b"]\n["1"]\n'])
        assert rows == [{"a": "1"}]

    def test_non_string_header_is_an_error(self) -> None:
        with pytest.raises(DecodeError, match=r"The first line must be an array of strings \(headers\)") as exc_info:
            _decode([b'[1,"b"]\n[1,2]\n'])
        assert exc_info.value.line_number == 1

    def test_non_array_line_is_an_error(self) -> None:
        with pytest.raises(DecodeError, match="Each line must be a JSON array, got dict"):
            _decode([b'["a"]\n{"a":1}\n'])

    def test_malformed_json_reports_line(self) -> None:
        with pytest.raises(DecodeError, match="JSON parse error") as exc_info:
            _decode([b'["id"]\n["1",\n'])
        assert exc_info.value.line_number == 2

    def test_nan_is_rejected(self) -> None:
        with pytest.raises(DecodeError, match="Non-standard JSON constant"):
            _decode([b'["v"]\n[NaN]\n'])

    def test_invalid_utf8_is_a_decode_error(self) -> None:
        with pytest.raises(DecodeError, match="invalid utf-8 encoding") as exc_info:
            _decode([b'["id"]\n["\xff"]\n'])
        assert exc_info.value.line_number == 2

    def test_latin1_encoding(self) -> None:
        rows = _decode(['["name"]\n["café"]\n'.encode("latin-1")], encoding="latin-1")
        assert rows == [{"name": "café"}]

    def test_rows_before_an_error_are_delivered(self) -> None:
        rows = JsonLinesDecoder().decode([b'["id"]\n["1"]\n["2",\n'])
        assert next(rows) == {"id": "1"}
        with pytest.raises(DecodeError):
            next(rows)


class TestStrictMode:
    def test_length_mismatch_is_an_error(self) -> None:
        with pytest.raises(DecodeError, match="Row length does not match headers: expected 2 cells, got 1") as exc_info:
            _decode([b'["a","b"]\n["1"]\n'], strict=True)
        assert exc_info.value.line_number == 2

    def test_extra_cells_are_an_error(self) -> None:
        with pytest.raises(DecodeError, match="Row length does not match headers"):
            _decode([b'["a"]\n["1","2"]\n'], strict=True)

    def test_matching_rows_pass(self) -> None:
        assert _decode([b'["a","b"]\n["1","2"]\n'], strict=True) == [{"a": "1", "b": "2"}]

    def test_strict_is_ignored_without_headers(self) -> None:
        assert _decode([b"[1]\n[1,2]\n"], strict=True, headers=False) == [{"0": 1}, {"0": 1, "1": 2}]


class TestHeaderOption:
    def test_supplied_headers_make_first_line_data(self) -> None:
        rows = _decode([b"[1,2]\n[3,4]\n"], headers=["a", "b"])
        assert rows == [{"a": 1, "b": 2}, {"a": 3, "b": 4}]

    def test_none_header_drops_column(self) -> None:
        rows = _decode([b"[1,2,3]\n"], headers=["a", None, "c"])
        assert rows == [{"a": 1, "c": 3}]

    def test_headers_false_uses_positional_keys(self) -> None:
        rows = _decode([b'["x","y"]\n[1,2]\n'], headers=False)
        assert rows == [{"0": "x", "1": "y"}, {"0": 1, "1": 2}]


class TestSkipping:
    def test_skip_comments_default_prefix(self) -> None:
        rows = _decode([b'# exported 2024-01-01\n["id"]\n# note\n["1"]\n'], skip_comments=True)
        assert rows == [{"id": "1"}]

    def test_skip_comments_custom_prefix(self) -> None:
        rows = _decode([b'// preamble\n["id"]\n["1"]\n'], skip_comments="//")
        assert rows == [{"id": "1"}]

    def test_comments_are_errors_when_not_skipped(self) -> None:
        with pytest.raises(DecodeError):
            _decode([b'# preamble\n["id"]\n'])

    def test_skip_lines_are_not_parsed(self) -> None:
        rows = _decode([b'title: not json\n{broken\n["id"]\n["1"]\n'], skip_lines=2)
        assert rows == [{"id": "1"}]

    def test_comments_do_not_count_toward_skip_lines(self) -> None:
        rows = _decode([b'# c\nskipped\n["id"]\n["1"]\n'], skip_comments=True, skip_lines=1)
        assert rows == [{"id": "1"}]


class TestObjectMode:
    def test_objects_become_rows(self) -> None:
        rows = _decode([b'{"a":1}\n{"b":[1,2]}\n'], tabular=False)
        assert rows == [{"a": 1}, {"b": [1, 2]}]

    def test_non_object_line_is_an_error(self) -> None:
        with pytest.raises(DecodeError, match="Each line must be a JSON object, got list") as exc_info:
            _decode([b"[1,2]\n"], tabular=False)
        assert exc_info.value.line_number == 1

    def test_null_line_is_an_error(self) -> None:
        with pytest.raises(DecodeError, match="Each line must be a JSON object, got NoneType") as exc_info:
            _decode([b'{"a":1}\nnull\n'], tabular=False)
        assert exc_info.value.line_number == 2


class TestMaxRowBytes:
    def test_oversized_line_is_an_error(self) -> None:
        with pytest.raises(RowTooLargeError) as exc_info:
            _decode([b'["id"]\n["1"]\n["123456"]\n'], max_row_bytes=8)
        assert exc_info.value.line_number == 3

    def test_oversized_unterminated_line_fails_before_end_of_input(self) -> None:
        def chunks():
            yield b'["id"]\n'
            yield b'["1234567890'
            pytest.fail("decoder kept buffering past max_row_bytes")

        with pytest.raises(RowTooLargeError):
            _decode(chunks(), max_row_bytes=8)


class TestJsonLinesDecoderConfig:
    def test_defaults(self) -> None:
        config = JsonLinesDecoderConfig()
        assert config.newline is None
        assert config.skip_comments is False
        assert config.tabular is True
        assert config.headers is None
        assert config.comment_prefix is None

    def test_comment_prefix(self) -> None:
        assert JsonLinesDecoderConfig(skip_comments=True).comment_prefix == b"#"
        assert JsonLinesDecoderConfig(skip_comments="--").comment_prefix == b"--"

    def test_custom_newline(self) -> None:
        assert _decode([b'["id"];["1"];'], newline=";") == [{"id": "1"}]

    @pytest.mark.parametrize(
        "options",
        [
            {"newline": "ab"},
            {"skip_comments": ""},
            {"encoding": "utf-16"},
            {"encoding": "not-a-codec"},
            {"max_row_bytes": 0},
            {"skip_lines": -1},
            {"unknown_option": True},
        ],
    )
    def test_invalid_options_raise_config_error(self, options: dict[str, Any]) -> None:
        with pytest.raises(ConfigError):
            JsonLinesDecoder(options)

    def test_config_instance_is_accepted(self) -> None:
        decoder = JsonLinesDecoder(JsonLinesDecoderConfig(tabular=False))
        assert decoder.config.tabular is False

    def test_wrong_config_class_is_rejected(self) -> None:
        with pytest.raises(TypeError, match="expects JsonLinesDecoderConfig"):
            JsonLinesDecoder(CsvDecoderConfig())
