"""
Tests for transport layer.
"""

import queue
import time

import pytest
import serial
from serial import SerialException

from simcomphone.core import MockTransport, SerialTransport
from simcomphone.exceptions import (
    DeviceDisconnectedError,
    SIMComError,
    TransportError,
    TransportUnavailableError,
)


class FakeSerial:
    """Stand-in for serial.Serial fed from a queue of chunks."""

    open_error = None

    def __init__(self, port=None, baudrate=9600, timeout=None):
        if FakeSerial.open_error is not None:
            raise FakeSerial.open_error
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.is_open = True
        self.chunks = queue.Queue()
        self.read_error = None
        self.read_count = 0
        self.written = bytearray()
        self.input_resets = 0
        self.output_resets = 0

    @property
    def in_waiting(self):
        return self.chunks.qsize()

    def read(self, size=1):
        self.read_count += 1
        if self.read_error is not None:
            raise self.read_error
        try:
            return self.chunks.get(timeout=self.timeout)
        except queue.Empty:
            return b""

    def write(self, data):
        self.written += data
        return len(data)

    def reset_input_buffer(self):
        self.input_resets += 1

    def reset_output_buffer(self):
        self.output_resets += 1

    def close(self):
        self.is_open = False


def wait_for(predicate, timeout=2.0):
    """Poll predicate until it is true or timeout expires."""
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def fake_serial(monkeypatch):
    """Patch serial.Serial with FakeSerial."""
    FakeSerial.open_error = None
    monkeypatch.setattr(serial, "Serial", FakeSerial)
    yield FakeSerial
    FakeSerial.open_error = None


class TestMockTransport:
    """Test MockTransport behaviour used throughout the suite."""

    def test_write(self):
        """Test MockTransport write operation."""
        transport = MockTransport()

        written = transport.write(b"AT\r\n")
        assert written == 4  # AT\r\n is 4 bytes
        assert transport.written == [b"AT\r\n"]
        assert transport.commands() == ["AT"]

        transport.close()

    def test_feed_reaches_listener(self):
        """Test that fed chunks are pushed to the listener."""
        transport = MockTransport()
        received = []
        transport.set_listener(received.append)

        transport.feed(b"RI")
        transport.feed("NG\r\n")

        assert received == [b"RI", b"NG\r\n"]
        transport.close()

    def test_feed_without_listener(self):
        """Test that feeding with no listener is harmless."""
        transport = MockTransport()
        transport.feed(b"RING\r\n")
        transport.close()

    def test_listener_failure_is_isolated(self):
        """Test that a failing listener does not propagate to the feeder."""
        transport = MockTransport()

        def broken(data):
            raise RuntimeError("boom")

        transport.set_listener(broken)
        transport.feed(b"RING\r\n")  # Should not raise
        transport.close()

    def test_is_open(self):
        """Test MockTransport is_open status."""
        transport = MockTransport()

        assert transport.is_open() is True

        transport.close()
        assert transport.is_open() is False

    def test_write_when_closed(self):
        """Test MockTransport raises error when writing to closed transport."""
        transport = MockTransport()
        transport.close()

        with pytest.raises(TransportError):
            transport.write(b"AT\r\n")

    def test_write_error_injection(self):
        """Test that an injected write error is raised."""
        transport = MockTransport()
        transport.write_error = TransportError("cable pulled")

        with pytest.raises(SIMComError, match="cable pulled"):
            transport.write(b"AT\r\n")

        transport.close()

    def test_discard_buffers(self):
        """Test MockTransport counts discard requests."""
        transport = MockTransport()

        transport.discard_buffers()
        transport.discard_buffers()

        assert transport.discard_count == 2
        transport.close()

    def test_clear_written(self):
        """Test MockTransport clear_written."""
        transport = MockTransport()
        transport.write(b"AT+CHUP\r\n")

        transport.clear_written()

        assert transport.commands() == []
        transport.close()


class TestSerialTransport:
    """Test SerialTransport against a patched serial.Serial."""

    def test_open_failure(self, fake_serial):
        """Test that an unopenable port raises TransportUnavailableError."""
        fake_serial.open_error = SerialException("could not open port /dev/ttyUSB9")

        with pytest.raises(TransportUnavailableError) as exc_info:
            SerialTransport("/dev/ttyUSB9", name="command")

        assert isinstance(exc_info.value, TransportError)
        assert "/dev/ttyUSB9" in str(exc_info.value)

    def test_opens_with_settings(self, fake_serial):
        """Test that port settings are passed to pyserial."""
        transport = SerialTransport("/dev/ttyUSB2", baudrate=9600, timeout=0.02)

        assert transport._serial.port == "/dev/ttyUSB2"
        assert transport._serial.baudrate == 9600
        assert transport._serial.timeout == 0.02
        assert transport.is_open() is True

        transport.close()
        assert transport.is_open() is False

    def test_write(self, fake_serial):
        """Test writing to the serial port."""
        transport = SerialTransport("/dev/ttyUSB2")

        assert transport.write(b"ATA\r\n") == 5
        assert bytes(transport._serial.written) == b"ATA\r\n"

        transport.close()

    def test_write_failure_wrapped(self, fake_serial):
        """Test that pyserial write errors become TransportError."""
        transport = SerialTransport("/dev/ttyUSB2")

        def failing_write(data):
            raise SerialException("write failed")

        transport._serial.write = failing_write

        with pytest.raises(TransportError):
            transport.write(b"AT\r\n")

        transport.close()

    def test_write_after_close(self, fake_serial):
        """Test that writing to a closed port raises TransportError."""
        transport = SerialTransport("/dev/ttyUSB2")
        transport.close()

        with pytest.raises(TransportError):
            transport.write(b"AT\r\n")

    def test_discard_buffers(self, fake_serial):
        """Test that both pyserial buffers are reset."""
        transport = SerialTransport("/dev/ttyUSB2")

        transport.discard_buffers()

        assert transport._serial.input_resets == 1
        assert transport._serial.output_resets == 1
        transport.close()

    def test_reader_pushes_chunks(self, fake_serial):
        """Test that the reader thread delivers chunks to the listener."""
        transport = SerialTransport("/dev/ttyUSB2", timeout=0.01)
        received = []
        transport.set_listener(received.append)
        transport.start()

        transport._serial.chunks.put(b"\r\nRI")
        transport._serial.chunks.put(b"NG\r\n")

        assert wait_for(lambda: len(received) == 2)
        assert b"".join(received) == b"\r\nRING\r\n"
        assert transport.is_running() is True

        transport.close()
        assert transport.is_running() is False

    def test_reader_survives_listener_failure(self, fake_serial):
        """Test that a failing listener does not stop the reader thread."""
        transport = SerialTransport("/dev/ttyUSB2", timeout=0.01)
        received = []

        def listener(data):
            received.append(data)
            if len(received) == 1:
                raise RuntimeError("listener bug")

        transport.set_listener(listener)
        transport.start()

        transport._serial.chunks.put(b"first")
        transport._serial.chunks.put(b"second")

        assert wait_for(lambda: len(received) == 2)
        assert transport.is_running() is True
        transport.close()

    def test_start_twice(self, fake_serial):
        """Test that starting twice keeps a single reader thread."""
        transport = SerialTransport("/dev/ttyUSB2", timeout=0.01)
        transport.start()
        thread = transport._reader_thread

        transport.start()

        assert transport._reader_thread is thread
        transport.close()


class TestDisconnection:
    """Test device disconnection handling."""

    def test_disconnection_callback(self, fake_serial):
        """Test that disconnection callback is called when device disconnects."""
        errors = []
        transport = SerialTransport(
            "/dev/ttyUSB2",
            timeout=0.01,
            on_disconnect=errors.append
        )
        transport.start()

        assert transport.is_running() is True
        assert transport.is_disconnected() is False

        # Simulate disconnection
        transport._serial.read_error = SerialException(
            "device reports readiness to read but returned no data "
            "(device disconnected or multiple access on port?)"
        )

        assert wait_for(lambda: transport.is_disconnected())
        assert wait_for(lambda: len(errors) == 1)
        assert isinstance(errors[0], DeviceDisconnectedError)
        assert transport.is_running() is False

        transport.close()

    def test_no_infinite_loop_on_disconnection(self, fake_serial):
        """Test that disconnection doesn't cause infinite error loop."""
        errors = []
        transport = SerialTransport(
            "/dev/ttyUSB2",
            timeout=0.01,
            on_disconnect=errors.append
        )
        transport.start()

        transport._serial.read_error = SerialException("[Errno 19] No such device")

        assert wait_for(lambda: transport.is_disconnected())
        read_count = transport._serial.read_count
        time.sleep(0.3)

        # Callback should only be called once, not looping
        assert len(errors) == 1
        assert transport._serial.read_count == read_count

        transport.close()

    def test_disconnection_without_callback(self, fake_serial):
        """Test that disconnection works even without a callback."""
        transport = SerialTransport("/dev/ttyUSB2", timeout=0.01)
        transport.start()

        transport._serial.read_error = SerialException("Input/output error")

        assert wait_for(lambda: transport.is_disconnected())
        assert transport.is_running() is False

        transport.close()

    @pytest.mark.timeout(10)
    def test_consecutive_error_limit(self, fake_serial):
        """Test that too many consecutive errors stops the reader thread."""
        errors = []
        transport = SerialTransport(
            "/dev/ttyUSB2",
            timeout=0.01,
            on_disconnect=errors.append
        )
        transport.start()

        # Regular error, not a disconnection
        transport._serial.read_error = SerialException("Test error")

        # Backoff before the fifth error: 0.1s + 0.2s + 0.4s + 0.8s = 1.5s
        assert wait_for(lambda: not transport.is_running(), timeout=5.0)
        assert transport._serial.read_count >= 5
        assert transport.is_disconnected() is False

        # The owner still learns that delivery has stopped
        assert wait_for(lambda: len(errors) == 1)
        assert isinstance(errors[0], TransportError)
        assert not isinstance(errors[0], DeviceDisconnectedError)

        transport.close()

    def test_successful_reads_reset_error_counter(self, fake_serial):
        """Test that successful reads reset the consecutive error counter."""
        transport = SerialTransport("/dev/ttyUSB2", timeout=0.01)
        received = []
        transport.set_listener(received.append)
        transport.start()

        transport._serial.chunks.put(b"+CSQ: 24,99\r\n")
        transport._serial.chunks.put(b"OK\r\n")

        assert wait_for(lambda: len(received) == 2)
        assert transport._consecutive_errors == 0
        assert transport.is_running() is True

        transport.close()
