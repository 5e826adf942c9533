"""
Duplex audio relay between the host sound card and the modem audio port.

Capture -> transport: microphone blocks are attenuated while the speaker is
playing (crude echo suppression) and written to the modem.
Transport -> playback: modem audio is queued in a RelayBuffer that drops
stale audio instead of letting latency build up.
"""

import logging
import threading
from typing import Optional

from .devices import AudioDevice
from .pcm import RelayBuffer, scale_pcm16
from ..core.transport import Transport

logger = logging.getLogger(__name__)


class AudioRelay:
    """
    Moves PCM audio between an AudioDevice and the modem's audio transport.

    Both directions start and stop together. The only state shared with
    the device threads is the ``playback_active`` flag and the buffer.
    """

    def __init__(
        self,
        transport: Transport,
        device: AudioDevice,
        echo_suppression: float = 0.5,
        buffer_ceiling: float = 0.1,
        buffer_capacity: int = 4096
    ) -> None:
        """
        Initialize audio relay.

        Args:
            transport: Modem audio channel transport
            device: Host capture/playback device
            echo_suppression: Capture gain while playback is active, in (0, 1]
            buffer_ceiling: Buffered playback duration (seconds) that triggers a flush
            buffer_capacity: Hard playback buffer size in bytes

        Raises:
            ValueError: If echo_suppression is outside (0, 1]
        """
        if not 0.0 < echo_suppression <= 1.0:
            raise ValueError(f"echo_suppression must be in (0, 1], got {echo_suppression}")

        self.transport = transport
        self.device = device
        self.echo_suppression = echo_suppression
        self.buffer_ceiling = buffer_ceiling
        self.buffer_capacity = buffer_capacity

        # Written by the playback thread, read by the capture thread
        self.playback_active = False

        self.frames_sent = 0
        self.io_errors = 0

        self._buffer: Optional[RelayBuffer] = None
        self._running = False
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def buffer(self) -> Optional[RelayBuffer]:
        """Playback buffer of the current session, None while stopped."""
        return self._buffer

    def start(self) -> None:
        """
        Start relaying in both directions.

        Raises:
            TransportUnavailableError: If the audio device cannot be opened
        """
        with self._lock:
            if self._running:
                logger.debug("Audio relay already running")
                return

            self._buffer = RelayBuffer(
                ceiling=self.buffer_ceiling,
                capacity_bytes=self.buffer_capacity
            )
            self.playback_active = False
            self.transport.set_listener(self._on_modem_audio)

            try:
                self.device.start(self._on_capture, self._fill_playback)
            except Exception:
                self.transport.set_listener(None)
                self._buffer = None
                raise

            self._running = True
            logger.info("Audio relay started")

    def stop(self) -> None:
        """Stop relaying. Calling stop() on a stopped relay does nothing."""
        with self._lock:
            if not self._running:
                return
            self._running = False

            try:
                self.device.stop()
            except Exception as e:
                logger.error(f"Error stopping audio device: {e}")

            self.transport.set_listener(None)
            self._buffer = None
            self.playback_active = False
            logger.info(f"Audio relay stopped ({self.frames_sent} frames sent, "
                        f"{self.io_errors} I/O errors)")

    def _on_capture(self, frame: bytes) -> None:
        """Attenuate a captured block if needed and send it to the modem."""
        gain = self.echo_suppression if self.playback_active else 1.0
        try:
            self.transport.write(scale_pcm16(frame, gain))
            self.frames_sent += 1
        except Exception as e:
            self.io_errors += 1
            logger.error(f"Audio error sending capture block: {e}")

    def _on_modem_audio(self, data: bytes) -> None:
        """Queue audio received from the modem for playback."""
        buffer = self._buffer
        if buffer is None:
            return
        buffer.add(data)

    def _fill_playback(self, nbytes: int) -> bytes:
        """Hand nbytes to the speaker, padding with silence on underrun."""
        buffer = self._buffer
        data = buffer.read(nbytes) if buffer is not None else b""
        self.playback_active = bool(data)

        if len(data) < nbytes:
            data += bytes(nbytes - len(data))
        return data
