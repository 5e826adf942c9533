"""
Pytest configuration and fixtures.

Provides shared test fixtures for SIMComPhone tests.
"""

import pytest
import logging

from simcomphone.audio import AudioDevice
from simcomphone.core import MockTransport, ModemCore
from simcomphone import SerialAudioPhone


# Enable logging for tests
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


class FakeAudioDevice(AudioDevice):
    """
    Audio device double.

    Tests drive the relay by calling capture() and play() the way the
    sound card callbacks would.
    """

    def __init__(self, start_error=None):
        self.start_error = start_error
        self.running = False
        self.start_count = 0
        self.stop_count = 0
        self._on_capture = None
        self._fill_playback = None

    def start(self, on_capture, fill_playback):
        if self.start_error is not None:
            raise self.start_error
        self._on_capture = on_capture
        self._fill_playback = fill_playback
        self.running = True
        self.start_count += 1

    def stop(self):
        self.running = False
        self.stop_count += 1

    def capture(self, frame: bytes):
        """Deliver a microphone block."""
        self._on_capture(frame)

    def play(self, nbytes: int) -> bytes:
        """Pull a speaker block."""
        return self._fill_playback(nbytes)


@pytest.fixture
def mock_transport():
    """
    Create a MockTransport for the command channel.

    Example:
        def test_something(mock_transport):
            mock_transport.feed("\\r\\nRING\\r\\n")
            # ... test code ...
    """
    transport = MockTransport(name="command")
    yield transport
    transport.close()


@pytest.fixture
def audio_transport():
    """Create a MockTransport for the audio channel."""
    transport = MockTransport(name="audio")
    yield transport
    transport.close()


@pytest.fixture
def audio_device():
    """Create a FakeAudioDevice."""
    return FakeAudioDevice()


@pytest.fixture
def modem_core(mock_transport):
    """
    Create a started ModemCore on MockTransport with no settle delay.

    Example:
        def test_at_command(modem_core, mock_transport):
            modem_core.send_at("AT+CHUP")
            assert mock_transport.commands() == ["AT+CHUP"]
    """
    core = ModemCore(transport=mock_transport, command_delay=0, log_urcs=False)
    core.start()
    yield core
    core.close()


@pytest.fixture
def phone(mock_transport, audio_transport, audio_device):
    """
    Create a started SerialAudioPhone on mock transports with no delays.

    Start-up commands are cleared from the transport so tests only see
    what they trigger.

    Example:
        def test_dial(phone, mock_transport):
            phone.calls.dial("+15551234")
            assert "ATD+15551234;" in mock_transport.commands()
    """
    phone_instance = SerialAudioPhone(
        command_transport=mock_transport,
        audio_transport=audio_transport,
        audio_device=audio_device,
        command_delay=0,
        settle_delay=0,
        sms_prompt_delay=0
    )
    phone_instance.services.query_delay = 0
    phone_instance.start()
    mock_transport.clear_written()
    yield phone_instance
    phone_instance.close()
