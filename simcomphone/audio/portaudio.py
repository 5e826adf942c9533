"""
PortAudio host device backed by sounddevice raw streams.
"""

import logging
from typing import Optional, Union

import sounddevice as sd

from .devices import AudioDevice, CaptureCallback, PlaybackSource
from .pcm import CHANNELS, SAMPLE_RATE
from ..exceptions import TransportUnavailableError

logger = logging.getLogger(__name__)


class SoundDeviceIO(AudioDevice):
    """Audio device backed by PortAudio through sounddevice raw streams."""

    def __init__(
        self,
        input_device: Optional[Union[int, str]] = None,
        output_device: Optional[Union[int, str]] = None,
        capture_block_ms: int = 30,
        output_latency: float = 0.05
    ) -> None:
        """
        Initialize sounddevice backend.

        Args:
            input_device: Capture device index or name (default device if None)
            output_device: Playback device index or name (default device if None)
            capture_block_ms: Capture block duration in milliseconds
            output_latency: Target playback latency in seconds
        """
        self.input_device = input_device
        self.output_device = output_device
        self.capture_block_ms = capture_block_ms
        self.output_latency = output_latency

        self._input: Optional[sd.RawInputStream] = None
        self._output: Optional[sd.RawOutputStream] = None
        self._on_capture: Optional[CaptureCallback] = None
        self._fill_playback: Optional[PlaybackSource] = None

    def start(self, on_capture: CaptureCallback, fill_playback: PlaybackSource) -> None:
        self._on_capture = on_capture
        self._fill_playback = fill_playback

        blocksize = SAMPLE_RATE * self.capture_block_ms // 1000
        try:
            self._output = sd.RawOutputStream(
                samplerate=SAMPLE_RATE,
                channels=CHANNELS,
                dtype="int16",
                device=self.output_device,
                latency=self.output_latency,
                callback=self._output_callback
            )
            self._input = sd.RawInputStream(
                samplerate=SAMPLE_RATE,
                channels=CHANNELS,
                dtype="int16",
                blocksize=blocksize,
                device=self.input_device,
                callback=self._input_callback
            )
            self._output.start()
            self._input.start()
        except sd.PortAudioError as e:
            logger.error(f"Failed to open audio device: {e}")
            self.stop()
            raise TransportUnavailableError(f"Failed to open audio device: {e}") from e

        logger.info(f"Audio device started ({SAMPLE_RATE} Hz, {blocksize}-frame capture blocks)")

    def _input_callback(self, indata, frames, time_info, status) -> None:
        if status:
            logger.debug(f"Capture status: {status}")
        self._on_capture(bytes(indata))

    def _output_callback(self, outdata, frames, time_info, status) -> None:
        if status:
            logger.debug(f"Playback status: {status}")
        outdata[:] = self._fill_playback(len(outdata))

    def stop(self) -> None:
        for stream in (self._input, self._output):
            if stream is None:
                continue
            try:
                stream.stop()
                stream.close()
            except sd.PortAudioError as e:
                logger.warning(f"Error closing audio stream: {e}")
        self._input = None
        self._output = None
        logger.info("Audio device stopped")
