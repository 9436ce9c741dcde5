"""Tests for newline framing of chunked streams."""

import pytest

from local_chat.framing import LineFramer

SOURCE = (
    '{"response":"He"}\n'
    '{"response":"llo, wörld ☃"}\n'
    '{"response":"🦙"}\n'
    '{"done":true}\n'
).encode("utf-8")

EXPECTED = [
    '{"response":"He"}',
    '{"response":"llo, wörld ☃"}',
    '{"response":"🦙"}',
    '{"done":true}',
]


def _frame(chunks):
    framer = LineFramer()
    lines = []
    for chunk in chunks:
        lines.extend(framer.feed(chunk))
    lines.extend(framer.flush())
    return lines


class TestLineBoundaries:
    """Lines come out whole whatever the chunking."""

    @pytest.mark.parametrize("split", range(1, len(SOURCE)))
    def test_any_single_split(self, split):
        """Every two-chunk split yields the same lines, byte for byte."""
        lines = _frame([SOURCE[:split], SOURCE[split:]])

        assert lines == EXPECTED
        assert [line.encode("utf-8") for line in lines] == SOURCE.split(b"\n")[:-1]

    def test_byte_at_a_time(self):
        assert _frame([SOURCE[i:i + 1] for i in range(len(SOURCE))]) == EXPECTED

    def test_many_lines_in_one_chunk(self):
        assert _frame([SOURCE]) == EXPECTED

    def test_line_completed_by_later_chunk(self):
        framer = LineFramer()

        assert list(framer.feed(b'{"respo')) == []
        assert framer.pending == '{"respo'
        assert list(framer.feed(b'nse":"x"}\n{"do')) == ['{"response":"x"}']
        assert framer.pending == '{"do'


class TestMultiByteCharacters:
    def test_split_inside_character(self):
        snowman = "☃".encode("utf-8")
        framer = LineFramer()

        assert list(framer.feed(b'"a' + snowman[:1])) == []
        assert list(framer.feed(snowman[1:] + b'b"\n')) == ['"a☃b"']

    def test_invalid_bytes_are_replaced(self):
        lines = _frame([b"ok\xff\n"])
        assert lines == ["ok\ufffd"]


class TestBlankLinesAndFlush:
    def test_blank_lines_dropped(self):
        assert _frame([b"\n  \n{}\n\t\n\n"]) == ["{}"]

    def test_flush_returns_unterminated_tail(self):
        assert _frame([b'{"a":1}\n{"done":', b"true}"]) == ['{"a":1}', '{"done":true}']

    def test_flush_ignores_blank_tail(self):
        assert _frame([b'{"a":1}\n   ']) == ['{"a":1}']

    def test_flush_empties_buffer(self):
        framer = LineFramer()
        list(framer.feed(b"partial"))

        assert list(framer.flush()) == ["partial"]
        assert framer.pending == ""
        assert list(framer.flush()) == []

    def test_chunk_buffered_without_iterating(self):
        framer = LineFramer()
        framer.feed(b'{"response":"a"}\n{"do')
        framer.feed(b'ne":true}')

        assert list(framer.flush()) == ['{"response":"a"}', '{"done":true}']

    def test_abandoned_iterator_keeps_remaining_lines(self):
        framer = LineFramer()
        lines = framer.feed(b"one\ntwo\nthree\n")

        assert next(lines) == "one"
        # Remaining lines stay buffered for the next call
        assert list(framer.feed(b"")) == ["two", "three"]
