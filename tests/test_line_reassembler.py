"""
Tests for line reassembly.
"""

import pytest
from simcomphone.core import LineReassembler


def feed_all(chunks):
    """Feed chunks in order and collect every emitted line."""
    lines = LineReassembler()
    out = []
    for chunk in chunks:
        out.extend(lines.feed(chunk))
    return out, lines


class TestLineReassembler:
    """Test LineReassembler."""

    def test_complete_lines(self):
        """Test a chunk holding whole lines."""
        out, lines = feed_all([b"\r\nRING\r\n\r\n+CLIP: \"+15551234\",145\r\n"])

        assert out == ["RING", '+CLIP: "+15551234",145']
        assert lines.pending == ""

    def test_partial_line_is_carried(self):
        """Test that a fragment waits for its delimiter."""
        lines = LineReassembler()

        assert lines.feed(b"+CMTI: \"SM\"") == []
        assert lines.pending == '+CMTI: "SM"'
        assert lines.feed(b",3\r\n") == ['+CMTI: "SM",3']

    def test_crlf_split_across_chunks(self):
        """Test that CR and LF in different chunks form one delimiter."""
        out, lines = feed_all([b"RING\r", b"\nOK\r\n"])

        assert out == ["RING", "OK"]

    def test_bare_lf(self):
        """Test that a bare LF terminates a line."""
        out, _ = feed_all([b"RING\nNO CARRIER\n"])

        assert out == ["RING", "NO CARRIER"]

    def test_blank_lines_dropped(self):
        """Test that empty and whitespace-only lines are not emitted."""
        out, _ = feed_all([b"\r\n\r\n   \r\nOK\r\n"])

        assert out == ["OK"]

    def test_keep_blank(self):
        """Test that blank lines are returned as empty strings on request."""
        lines = LineReassembler()

        assert lines.feed(b"\r\nOK\r\n\r\n", keep_blank=True) == ["", "OK", ""]

    def test_accepts_text(self):
        """Test that already-decoded text is accepted."""
        out, _ = feed_all(["VOICE CALL: BEGIN\r\n"])

        assert out == ["VOICE CALL: BEGIN"]

    def test_undecodable_bytes_ignored(self):
        """Test that invalid UTF-8 does not raise."""
        out, _ = feed_all([b"RI\xffNG\r\n"])

        assert out == ["RING"]

    def test_multibyte_char_split(self):
        """Test that a UTF-8 character split across chunks survives."""
        out, _ = feed_all([b"Gr\xc3", b"\xbc\xc3\x9fe\r\n"])

        assert out == ["Grüße"]

    @pytest.mark.parametrize("size", [1, 2, 3, 7])
    def test_split_invariance(self, size):
        """Test that chunk boundaries do not change the emitted lines."""
        stream = (
            b"\r\nRING\r\n\r\n+CLIP: \"+15551234\",145,,,,0\r\n"
            b"\r\nRING\r\nVOICE CALL: BEGIN\r\n+CMT: \"+15550000\",\"\",\"24/03/01,12:00:00+04\"\r\n"
            b"Hello there\r\n"
        )
        whole, _ = feed_all([stream])
        chunks = [stream[i:i + size] for i in range(0, len(stream), size)]

        split, _ = feed_all(chunks)

        assert split == whole
        assert len(whole) == 6

    def test_reset(self):
        """Test that reset drops the carry-over."""
        lines = LineReassembler()
        lines.feed(b"NO CARR")

        lines.reset()

        assert lines.pending == ""
        assert lines.feed(b"IER\r\n") == ["IER"]
