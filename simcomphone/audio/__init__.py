"""
Audio relay between the host sound card and the modem audio port.

The PortAudio backend lives in ``simcomphone.audio.portaudio`` and is only
imported when a real device is needed.
"""

from .pcm import RelayBuffer, scale_pcm16, SAMPLE_RATE, BYTES_PER_SECOND
from .devices import AudioDevice, CaptureCallback, PlaybackSource
from .relay import AudioRelay

__all__ = [
    "RelayBuffer",
    "scale_pcm16",
    "SAMPLE_RATE",
    "BYTES_PER_SECOND",
    "AudioDevice",
    "CaptureCallback",
    "PlaybackSource",
    "AudioRelay",
]
