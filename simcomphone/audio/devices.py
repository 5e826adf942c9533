"""
Host audio device interface.

Capture and playback run on their own device-driven callback threads.
The format is fixed: 8000 Hz, mono, 16-bit signed PCM.
"""

from abc import ABC, abstractmethod
from typing import Callable

# Type aliases for device callbacks
CaptureCallback = Callable[[bytes], None]
PlaybackSource = Callable[[int], bytes]


class AudioDevice(ABC):
    """Abstract base class for a duplex host audio device."""

    @abstractmethod
    def start(self, on_capture: CaptureCallback, fill_playback: PlaybackSource) -> None:
        """
        Start capture and playback.

        Args:
            on_capture: Called with each captured block of PCM bytes
            fill_playback: Called with a byte count, returns exactly that
                many bytes of PCM to play

        Raises:
            TransportUnavailableError: If the device cannot be opened
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop and release both streams."""
        pass
