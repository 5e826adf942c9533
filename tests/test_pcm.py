"""
Tests for PCM scaling and the playback buffer.
"""

import struct

import pytest
from simcomphone.audio import BYTES_PER_SECOND, RelayBuffer, scale_pcm16


def pcm(*samples):
    """Pack int16 samples as little-endian PCM."""
    return struct.pack(f"<{len(samples)}h", *samples)


def samples_of(data):
    return list(struct.unpack(f"<{len(data) // 2}h", data))


class TestScalePcm16:
    """Test gain scaling."""

    def test_half_gain(self):
        assert samples_of(scale_pcm16(pcm(20000), 0.5)) == [10000]

    def test_unity_gain_is_identity(self):
        data = pcm(-32768, -1, 0, 1, 32767)

        assert scale_pcm16(data, 1.0) == data

    def test_unity_gain_returns_copy(self):
        data = bytearray(pcm(100))

        result = scale_pcm16(data, 1.0)
        data[0] = 0

        assert samples_of(result) == [100]

    def test_truncates_toward_zero(self):
        assert samples_of(scale_pcm16(pcm(3, -3), 0.5)) == [1, -1]

    def test_clips_instead_of_wrapping(self):
        assert samples_of(scale_pcm16(pcm(30000, -30000), 2.0)) == [32767, -32768]

    def test_extremes_at_unity(self):
        assert samples_of(scale_pcm16(pcm(-32768, 32767), 1.0)) == [-32768, 32767]

    def test_odd_trailing_byte_kept(self):
        data = pcm(1000) + b"\x7f"

        result = scale_pcm16(data, 0.5)

        assert len(result) == 3
        assert samples_of(result[:2]) == [500]
        assert result[2:] == b"\x7f"

    def test_empty(self):
        assert scale_pcm16(b"", 0.5) == b""


class TestRelayBuffer:
    """Test the duration-bounded playback buffer."""

    def test_add_and_read(self):
        buffer = RelayBuffer()
        buffer.add(pcm(1, 2, 3))

        assert buffer.read(4) == pcm(1, 2)
        assert buffer.read(10) == pcm(3)
        assert buffer.read(10) == b""

    def test_read_whole_samples_only(self):
        buffer = RelayBuffer()
        buffer.add(pcm(1, 2))

        assert buffer.read(3) == pcm(1)
        assert buffer.buffered_bytes == 2

    def test_duration(self):
        buffer = RelayBuffer()
        buffer.add(bytes(800))

        assert buffer.buffered_duration == pytest.approx(0.05)

    def test_below_ceiling_accumulates(self):
        buffer = RelayBuffer(ceiling=0.1)
        buffer.add(bytes(1000))
        buffer.add(bytes(500))

        assert buffer.buffered_bytes == 1500
        assert buffer.flush_count == 0

    def test_overflow_keeps_only_new_frame(self):
        """Test that at the ceiling, stale audio is dropped wholesale."""
        buffer = RelayBuffer(ceiling=0.1)
        stale = pcm(7) * 800        # 1600 bytes = 100 ms
        fresh = pcm(9) * 160        # 20 ms

        buffer.add(stale)
        buffer.add(fresh)

        assert buffer.flush_count == 1
        assert buffer.buffered_bytes == len(fresh)
        assert buffer.read(4096) == fresh

    def test_never_exceeds_ceiling_by_more_than_one_insert(self):
        buffer = RelayBuffer(ceiling=0.1)
        block = bytes(480)  # 30 ms

        for _ in range(50):
            buffer.add(block)
            assert buffer.buffered_duration < 0.1 + len(block) / BYTES_PER_SECOND

    def test_capacity_keeps_newest_bytes(self):
        buffer = RelayBuffer(ceiling=10.0, capacity_bytes=8)

        buffer.add(pcm(1, 2, 3, 4, 5, 6))

        assert buffer.read(100) == pcm(3, 4, 5, 6)

    def test_flush_keeps_sample_alignment(self):
        """Test that a dangling half sample survives a flush."""
        buffer = RelayBuffer(ceiling=0.001)
        buffer.add(bytes(16) + b"\x34")   # half of a sample
        buffer.add(b"\x12" + pcm(5))      # completes it

        assert samples_of(buffer.read(100)) == [0x1234, 5]

    def test_clear(self):
        buffer = RelayBuffer()
        buffer.add(bytes(100))

        buffer.clear()

        assert buffer.buffered_bytes == 0
