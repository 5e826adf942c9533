"""
Main SerialAudioPhone class.

User-facing API that wires the command channel, the audio channel and all
feature managers together, and tears them down in a safe order.
"""

import logging
from typing import Callable, Optional

from .audio import AudioDevice, AudioRelay
from .core import ModemCore, PortResolver, SerialTransport, Transport
from .exceptions import SIMComError, TransportUnavailableError
from .features import CallManager, DeviceManager, SMSManager, SupplementaryServices
from .types import CallState, PortPair

logger = logging.getLogger(__name__)


class SerialAudioPhone:
    """
    Main interface for a SIMCom voice modem.

    Provides a high-level API through feature managers:

    - calls: Dial, answer and end voice calls (audio relayed automatically)
    - sms: Text-mode SMS messaging
    - services: Call waiting and call forwarding
    - device: Caller ID and echo/gain configuration

    Example usage with context manager:

    .. code-block:: python

        with SerialAudioPhone(ports=PortPair("/dev/ttyUSB2", "/dev/ttyUSB4")) as phone:
            phone.sms.on_message(lambda msg: print(f"{msg.sender}: {msg.text}"))
            phone.calls.dial("+15551234")

    Example usage with USB auto-detection:

    .. code-block:: python

        phone = SerialAudioPhone(port_resolver=UsbPortResolver())
        phone.start()
        # ... use phone ...
        phone.close()
    """

    def __init__(
        self,
        ports: Optional[PortPair] = None,
        port_resolver: Optional[PortResolver] = None,
        command_transport: Optional[Transport] = None,
        audio_transport: Optional[Transport] = None,
        audio_device: Optional[AudioDevice] = None,
        baudrate: int = 115200,
        timeout: float = 0.05,
        command_delay: float = 0.8,
        settle_delay: float = 2.0,
        sms_prompt_delay: float = 0.5,
        echo_suppression: float = 0.5,
        buffer_ceiling: float = 0.1,
        log_urcs: bool = False,
        max_event_history: int = 1000,
        auto_start: bool = False,
        on_disconnect: Optional[Callable[[Exception], None]] = None
    ) -> None:
        """
        Initialize SerialAudioPhone.

        Args:
            ports: Command and audio serial ports
            port_resolver: Used to find the ports when ``ports`` is not given
            command_transport: Custom command transport (for testing). Overrides ports.
            audio_transport: Custom audio transport (for testing). Overrides ports.
            audio_device: Host audio device (default: sounddevice on the default devices)
            baudrate: Serial port baud rate (default: 115200)
            timeout: Serial read timeout in seconds (default: 0.05)
            command_delay: Settle delay after each AT command (default: 0.8)
            settle_delay: Pause after flushing ports before dial/answer (default: 2.0)
            sms_prompt_delay: Wait for the SMS "> " prompt (default: 0.5)
            echo_suppression: Microphone gain while the speaker plays, in (0, 1] (default: 0.5)
            buffer_ceiling: Playback buffer duration that triggers a flush (default: 0.1)
            log_urcs: Log URC events at INFO level instead of DEBUG (default: False)
            max_event_history: Maximum URC events kept in history (default: 1000)
            auto_start: Start immediately (default: False)
            on_disconnect: Called if the command port's device disconnects
                          or its reader stops after repeated errors.
                          Signature: callback(exception: Exception) -> None

        Raises:
            ValueError: If no way to reach the command channel is given
            TransportUnavailableError: If the command port cannot be opened

        A missing audio port or audio device is logged and disables the audio
        relay only; calls and SMS keep working.
        """
        if command_transport is None or audio_transport is None:
            if ports is None:
                if port_resolver is None:
                    raise ValueError(
                        "Either 'ports', 'port_resolver' or both transports must be provided"
                    )
                ports = port_resolver.resolve()

            if command_transport is None:
                command_transport = SerialTransport(
                    port=ports.command_port,
                    baudrate=baudrate,
                    timeout=timeout,
                    name="command",
                    on_disconnect=on_disconnect
                )

            if audio_transport is None:
                try:
                    audio_transport = SerialTransport(
                        port=ports.audio_port,
                        baudrate=baudrate,
                        timeout=timeout,
                        name="audio"
                    )
                except TransportUnavailableError as e:
                    logger.error(f"Audio port unavailable, calls will have no audio: {e}")

        self._core = ModemCore(
            transport=command_transport,
            command_delay=command_delay,
            log_urcs=log_urcs,
            max_event_history=max_event_history
        )
        self.audio_transport = audio_transport

        self.relay: Optional[AudioRelay] = None
        if audio_transport is not None:
            if audio_device is None:
                audio_device = self._default_audio_device()
            if audio_device is not None:
                self.relay = AudioRelay(
                    transport=audio_transport,
                    device=audio_device,
                    echo_suppression=echo_suppression,
                    buffer_ceiling=buffer_ceiling
                )

        self.calls = CallManager(
            self._core,
            relay=self.relay,
            audio_transport=audio_transport,
            settle_delay=settle_delay
        )
        self.sms = SMSManager(self._core, prompt_delay=sms_prompt_delay)
        self.services = SupplementaryServices(self._core)
        self.device = DeviceManager(self._core)

        self._started = False
        self._closed = False

        logger.info("Initialized SerialAudioPhone")

        if auto_start:
            self.start()

    @staticmethod
    def _default_audio_device() -> Optional[AudioDevice]:
        """Create the sounddevice backend, or None if PortAudio is missing."""
        try:
            from .audio.portaudio import SoundDeviceIO
        except OSError as e:
            logger.error(f"PortAudio not available, calls will have no audio: {e}")
            return None
        return SoundDeviceIO()

    def start(self) -> None:
        """
        Start both channels and configure the modem.

        Sends the SMS environment setup and voice configuration commands,
        each followed by its settle delay.
        """
        if self._started:
            logger.warning("SerialAudioPhone already started")
            return

        self._core.start()
        if self.audio_transport is not None:
            self.audio_transport.start()
        self._started = True

        self.sms.initialize()
        self.device.configure_voice()
        logger.info("Phone started")

    def close(self) -> None:
        """
        Close the phone.

        Ends any call, stops the audio relay before closing the audio port,
        and unsubscribes event consumers before closing the command port.
        Calling close() again does nothing.
        """
        if self._closed:
            return
        self._closed = True

        logger.info("Closing phone")
        if self._started and not self.calls.state.is_idle:
            try:
                self.calls.end_call()
            except SIMComError as e:
                logger.warning(f"Could not end call during shutdown: {e}")

        self._core.dispatcher.clear_callbacks()
        self.calls.close()

        if self.relay is not None:
            self.relay.stop()
        if self.audio_transport is not None:
            self.audio_transport.close()

        self._core.close()
        self._started = False
        logger.info("Phone closed")

    @property
    def core(self) -> ModemCore:
        return self._core

    @property
    def state(self) -> CallState:
        """Current call state."""
        return self.calls.state

    @property
    def is_running(self) -> bool:
        """
        Check if the phone is started and not closed.

        Returns:
            True if running, False otherwise
        """
        return self._started and not self._closed

    def send_raw_at(self, cmd: str) -> None:
        """
        Send a raw AT command.

        For advanced users who need commands not covered by feature managers.
        Any reply arrives on the command channel as unsolicited output.

        Example:

        .. code-block:: python

            phone.send_raw_at("AT+CSQ")
        """
        self._core.send_at(cmd)

    def __enter__(self):
        """
        Context manager entry.

        Automatically starts the phone if not already running.
        """
        if not self._started:
            self.start()
        return self

    def __exit__(self, *exc):
        """
        Context manager exit.

        Automatically closes the phone.
        """
        self.close()

    def __repr__(self) -> str:
        """String representation of phone."""
        status = "running" if self.is_running else "stopped"
        return f"<SerialAudioPhone status={status} call={self.state.status.value}>"
