"""
PCM utilities for the modem audio channel.

The modem's audio port carries raw 16-bit signed little-endian mono PCM
at 8000 Hz. Nothing is negotiated.
"""

import logging
import threading

import numpy as np

logger = logging.getLogger(__name__)

SAMPLE_RATE = 8000
CHANNELS = 1
SAMPLE_WIDTH = 2
BYTES_PER_SECOND = SAMPLE_RATE * CHANNELS * SAMPLE_WIDTH

INT16_MIN = -32768
INT16_MAX = 32767


def bytes_to_seconds(nbytes: int) -> float:
    """Duration of nbytes of PCM audio."""
    return nbytes / BYTES_PER_SECOND


def scale_pcm16(data: bytes, factor: float) -> bytes:
    """
    Scale 16-bit PCM samples by a gain factor.

    Results are truncated toward zero and clipped to the int16 range, so
    loud samples saturate instead of wrapping around. A trailing odd byte
    is passed through untouched.

    Args:
        data: Little-endian int16 samples
        factor: Gain to apply

    Returns:
        Scaled samples, same length as data
    """
    if factor == 1.0:
        return bytes(data)

    usable = len(data) - (len(data) % SAMPLE_WIDTH)
    samples = np.frombuffer(data[:usable], dtype="<i2").astype(np.float64)
    scaled = np.clip(np.trunc(samples * factor), INT16_MIN, INT16_MAX).astype("<i2")
    return scaled.tobytes() + bytes(data[usable:])


class RelayBuffer:
    """
    Duration-bounded queue of audio waiting for playback.

    When the buffered duration is at or above the ceiling as new data
    arrives, everything buffered is dropped before the new data is added.
    The queue never blocks and never grows without bound.
    """

    def __init__(
        self,
        ceiling: float = 0.1,
        capacity_bytes: int = 4096
    ) -> None:
        """
        Initialize relay buffer.

        Args:
            ceiling: Buffered duration in seconds that triggers a flush
            capacity_bytes: Hard size limit; only the newest bytes of an
                oversized insert are kept
        """
        self.ceiling = ceiling
        self.capacity_bytes = capacity_bytes - (capacity_bytes % SAMPLE_WIDTH)
        self.flush_count = 0

        self._data = bytearray()
        self._lock = threading.Lock()

    @property
    def buffered_bytes(self) -> int:
        with self._lock:
            return len(self._data)

    @property
    def buffered_duration(self) -> float:
        """Buffered audio in seconds."""
        return bytes_to_seconds(self.buffered_bytes)

    def add(self, data: bytes) -> None:
        """Append received audio, flushing stale audio first if over the ceiling."""
        with self._lock:
            if bytes_to_seconds(len(self._data)) >= self.ceiling:
                self._drop_whole_samples()
                self.flush_count += 1
                logger.debug("Audio buffer full, removing old audio")

            self._data.extend(data)

            excess = len(self._data) - self.capacity_bytes
            if excess > 0:
                excess += excess % SAMPLE_WIDTH
                del self._data[:excess]

    def read(self, nbytes: int) -> bytes:
        """
        Pop up to nbytes of whole samples.

        Returns:
            Buffered audio, possibly shorter than requested
        """
        with self._lock:
            count = min(nbytes, len(self._data))
            count -= count % SAMPLE_WIDTH
            data = bytes(self._data[:count])
            del self._data[:count]
            return data

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def _drop_whole_samples(self) -> None:
        # A dangling half sample stays so the next insert completes it
        tail = len(self._data) % SAMPLE_WIDTH
        del self._data[:len(self._data) - tail]
