"""
Transport layer abstraction for modem communication.

Provides abstractions for serial communication with dependency injection support.
Received data is pushed to a single listener from the transport's own reader
thread, in chunks of whatever size the port happened to deliver.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional, Union

import serial
from serial import SerialException

from ..exceptions import DeviceDisconnectedError, TransportError, TransportUnavailableError

logger = logging.getLogger(__name__)

# Type alias for chunk listeners
ChunkListener = Callable[[bytes], None]

_DISCONNECT_PHRASES = (
    "device disconnected",
    "device reports readiness to read but returned no data",
    "no such device",
    "device not configured",
    "input/output error",
)


class Transport(ABC):
    """Abstract base class for modem transport."""

    name: str = "transport"

    def __init__(self) -> None:
        self._listener: Optional[ChunkListener] = None

    def set_listener(self, listener: Optional[ChunkListener]) -> None:
        """
        Set the callback receiving every chunk read from the transport.

        Args:
            listener: Function called with each received chunk, or None to detach
        """
        self._listener = listener

    def _notify(self, data: bytes) -> None:
        """Push a received chunk to the listener, isolating its failures."""
        listener = self._listener
        if listener is None:
            return
        try:
            listener(data)
        except Exception as e:
            logger.error(f"{self.name}: listener failed on {len(data)} bytes: {e}", exc_info=True)

    @abstractmethod
    def write(self, data: bytes) -> int:
        """
        Write data to the transport.

        Args:
            data: Bytes to write

        Returns:
            Number of bytes written

        Raises:
            TransportError: If write fails
        """
        pass

    @abstractmethod
    def discard_buffers(self) -> None:
        """Drop pending data in both directions."""
        pass

    @abstractmethod
    def start(self) -> None:
        """Begin delivering received chunks to the listener."""
        pass

    @abstractmethod
    def is_open(self) -> bool:
        """Check if transport is open."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Stop delivery and close the transport."""
        pass


class SerialTransport(Transport):
    """Serial port transport implementation."""

    def __init__(
        self,
        port: str,
        baudrate: int = 115200,
        timeout: float = 0.05,
        name: str = "serial",
        on_disconnect: Optional[Callable[[Exception], None]] = None
    ) -> None:
        """
        Initialize serial transport.

        Args:
            port: Serial port path (e.g., /dev/ttyUSB2 or COM5)
            baudrate: Baud rate for serial communication
            timeout: Read timeout in seconds, bounds reader thread shutdown latency
            name: Label used in log messages ("command", "audio")
            on_disconnect: Optional callback invoked when the device vanishes
                          or the reader thread gives up after repeated errors

        Raises:
            TransportUnavailableError: If serial port cannot be opened
        """
        super().__init__()
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.name = name
        self._on_disconnect = on_disconnect

        # Reader thread management
        self._reader_thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._running = False
        self._disconnected = False

        # Error handling
        self._consecutive_errors = 0
        self._max_consecutive_errors = 5

        try:
            self._serial = serial.Serial(
                port=port,
                baudrate=baudrate,
                timeout=timeout
            )
            logger.info(f"Opened {name} port {port} at {baudrate} baud")
        except SerialException as e:
            logger.error(f"Failed to open {name} port {port}: {e}")
            raise TransportUnavailableError(f"Failed to open {name} port {port}: {e}") from e

    def write(self, data: bytes) -> int:
        """Write data to serial port."""
        if not self.is_open():
            raise TransportError(f"{self.name} port {self.port} is not open")
        try:
            written = self._serial.write(data)
            logger.debug(f"{self.name}: wrote {written} bytes")
            return written
        except SerialException as e:
            logger.error(f"{self.name}: serial write failed: {e}")
            raise TransportError(f"Serial write failed: {e}") from e

    def discard_buffers(self) -> None:
        """Clear the serial input and output buffers."""
        if not self.is_open():
            return
        try:
            self._serial.reset_input_buffer()
            self._serial.reset_output_buffer()
            logger.debug(f"{self.name}: discarded port buffers")
        except SerialException as e:
            logger.error(f"{self.name}: failed to discard buffers: {e}")
            raise TransportError(f"Failed to discard buffers: {e}") from e

    def start(self) -> None:
        """
        Start the reader thread.

        The reader thread continuously reads whatever bytes are available
        and pushes them to the listener.
        """
        if self._running:
            logger.warning(f"{self.name}: reader already started")
            return

        self._disconnected = False
        self._consecutive_errors = 0

        self._stop_event.clear()
        self._reader_thread = threading.Thread(
            target=self._reader_loop,
            daemon=True,
            name=f"{self.name.capitalize()}ReaderThread"
        )
        self._running = True
        self._reader_thread.start()
        logger.info(f"Started {self.name} reader thread")

    def stop(self) -> None:
        """
        Stop the reader thread.

        Waits for the thread to terminate gracefully.
        """
        if not self._running:
            return

        logger.info(f"Stopping {self.name} reader thread...")
        self._stop_event.set()

        if self._reader_thread and self._reader_thread is not threading.current_thread():
            self._reader_thread.join(timeout=1.0)
            if self._reader_thread.is_alive():
                logger.warning(f"{self.name} reader thread did not terminate in time")

        self._running = False
        logger.info(f"Stopped {self.name} reader thread")

    def _read_available(self) -> bytes:
        """Read every byte currently waiting, blocking up to the timeout for the first."""
        try:
            return self._serial.read(self._serial.in_waiting or 1)
        except SerialException as e:
            error_str = str(e).lower()

            # Detect device disconnection
            if any(phrase in error_str for phrase in _DISCONNECT_PHRASES):
                logger.error(f"{self.name}: device disconnected: {e}")
                raise DeviceDisconnectedError(
                    f"Serial device disconnected: {e}",
                    response=[str(e)]
                ) from e

            # Other serial errors
            logger.error(f"{self.name}: serial read failed: {e}")
            raise TransportError(f"Serial read failed: {e}") from e

    def _reader_loop(self) -> None:
        """Continuously read chunks from the port and push them to the listener."""
        logger.debug(f"{self.name} reader thread started")

        while not self._stop_event.is_set():
            try:
                data = self._read_available()

                # Reset error counter on successful read
                self._consecutive_errors = 0

                if not data:
                    continue

                self._notify(data)

            except DeviceDisconnectedError as e:
                # Device is actually disconnected - stop the reader thread
                logger.error(f"{self.name}: device disconnected, stopping reader thread")
                self._running = False
                self._disconnected = True

                if self._on_disconnect:
                    self._on_disconnect(e)

                break
            except Exception as e:
                # Handle consecutive errors with backoff
                self._consecutive_errors += 1
                logger.error(f"Error in {self.name} reader loop "
                             f"({self._consecutive_errors}/{self._max_consecutive_errors}): {e}")

                if self._consecutive_errors >= self._max_consecutive_errors:
                    logger.error(f"Too many consecutive errors ({self._consecutive_errors}), "
                                 f"stopping {self.name} reader thread")
                    self._running = False

                    if self._on_disconnect:
                        self._on_disconnect(TransportError(
                            f"{self.name} reader stopped after "
                            f"{self._consecutive_errors} consecutive errors: {e}"
                        ))

                    break

                # Exponential backoff: 0.1s, 0.2s, 0.4s, 0.8s, 1.6s
                backoff_time = 0.1 * (2 ** (self._consecutive_errors - 1))
                time.sleep(backoff_time)

        logger.debug(f"{self.name} reader thread stopped")

    def is_running(self) -> bool:
        """Check if the reader thread is running."""
        return self._running

    def is_disconnected(self) -> bool:
        """Check if the device was disconnected during operation."""
        return self._disconnected

    def is_open(self) -> bool:
        """Check if serial port is open."""
        return bool(self._serial and self._serial.is_open)

    def close(self) -> None:
        """Stop the reader thread and close the serial port."""
        self.stop()
        if self._serial and self._serial.is_open:
            self._serial.close()
            logger.info(f"Closed {self.name} port {self.port}")


class MockTransport(Transport):
    """
    Mock transport for testing.

    Records everything written and lets tests push chunks as if the
    modem had sent them.
    """

    def __init__(self, name: str = "mock") -> None:
        """Initialize mock transport."""
        super().__init__()
        self.name = name
        self._open = True
        self._started = False
        self.written: list[bytes] = []
        self.discard_count = 0
        self.write_error: Optional[Exception] = None
        self._lock = threading.Lock()
        logger.info(f"Initialized MockTransport ({name})")

    def feed(self, data: Union[bytes, str]) -> None:
        """
        Deliver a chunk to the listener, as the reader thread would.

        Args:
            data: Chunk to deliver (str is UTF-8 encoded)
        """
        if isinstance(data, str):
            data = data.encode("utf-8")
        logger.debug(f"Mock feed ({self.name}): {data!r}")
        self._notify(data)

    def write(self, data: bytes) -> int:
        """Simulate writing data."""
        if not self._open:
            raise TransportError(f"MockTransport ({self.name}) is closed")
        if self.write_error is not None:
            raise self.write_error

        with self._lock:
            self.written.append(bytes(data))
        logger.debug(f"Mock write ({self.name}): {data!r}")
        return len(data)

    def commands(self) -> list[str]:
        """Return every write decoded and stripped of its line terminator."""
        with self._lock:
            return [w.decode("utf-8", errors="replace").rstrip("\r\n") for w in self.written]

    def clear_written(self) -> None:
        """Forget recorded writes (useful for testing)."""
        with self._lock:
            self.written.clear()

    def discard_buffers(self) -> None:
        """Count discard requests."""
        self.discard_count += 1
        logger.debug(f"Discarded mock buffers ({self.name})")

    def start(self) -> None:
        self._started = True

    def is_started(self) -> bool:
        return self._started

    def is_open(self) -> bool:
        """Check if mock transport is open."""
        return self._open

    def close(self) -> None:
        """Close mock transport."""
        self._open = False
        self._started = False
        logger.info(f"Closed MockTransport ({self.name})")
