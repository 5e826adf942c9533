"""
Tests for AT command issue and the modem core.
"""

import threading

import pytest
from simcomphone.core import ATProtocol, MockTransport, ModemCore
from simcomphone.core.protocol import escape_non_printable
from simcomphone.exceptions import ModemNotStartedError, TransportError
from simcomphone.types import IncomingCallRinging


class TestATProtocol:
    """Test command normalisation and raw writes."""

    def test_adds_terminator(self, mock_transport):
        protocol = ATProtocol(mock_transport, command_delay=0)

        protocol.send_command("AT+CHUP")

        assert mock_transport.written == [b"AT+CHUP\r\n"]

    def test_adds_prefix(self, mock_transport):
        protocol = ATProtocol(mock_transport, command_delay=0)

        protocol.send_command("+CPCMREG=1")

        assert mock_transport.commands() == ["AT+CPCMREG=1"]

    def test_strips_whitespace(self, mock_transport):
        protocol = ATProtocol(mock_transport, command_delay=0)

        protocol.send_command("  ATA \r\n")

        assert mock_transport.written == [b"ATA\r\n"]

    def test_send_raw(self, mock_transport):
        protocol = ATProtocol(mock_transport, command_delay=0)

        protocol.send_raw("Hi\x1a")
        protocol.send_raw(b"\x00\x01")

        assert mock_transport.written == [b"Hi\x1a", b"\x00\x01"]

    def test_write_error_propagates(self, mock_transport):
        protocol = ATProtocol(mock_transport, command_delay=0)
        mock_transport.close()

        with pytest.raises(TransportError):
            protocol.send_command("ATA")

    def test_settle_delay(self, mock_transport, monkeypatch):
        sleeps = []
        monkeypatch.setattr("simcomphone.core.protocol.time.sleep", sleeps.append)
        protocol = ATProtocol(mock_transport, command_delay=0.8)

        protocol.send_command("ATA")
        protocol.send_raw("x")

        assert sleeps == [0.8]

    def test_send_with_prompt(self, mock_transport, monkeypatch):
        sleeps = []
        monkeypatch.setattr("simcomphone.core.protocol.time.sleep", sleeps.append)
        protocol = ATProtocol(mock_transport, command_delay=0)

        protocol.send_with_prompt('AT+CMGS="+15551234"', "Hello\x1a", prompt_delay=0.5)

        assert mock_transport.written == [b'AT+CMGS="+15551234"\r\n', b"Hello\x1a"]
        assert sleeps == [0.5]

    def test_command_waits_for_prompt_exchange(self, mock_transport):
        """Test that a command from another thread cannot split a prompt exchange."""
        protocol = ATProtocol(mock_transport, command_delay=0)
        in_prompt = threading.Event()
        original_write = mock_transport.write

        def write(data):
            written = original_write(data)
            if data.startswith(b"AT+CMGS"):
                in_prompt.set()
            return written

        mock_transport.write = write
        sender = threading.Thread(
            target=protocol.send_with_prompt,
            args=('AT+CMGS="+15551234"', "Hello\x1a", 0.2)
        )
        sender.start()
        assert in_prompt.wait(timeout=2)

        protocol.send_command("AT+CHUP")
        sender.join(timeout=2)

        assert mock_transport.commands() == ['AT+CMGS="+15551234"', "Hello\x1a", "AT+CHUP"]

    def test_escape_non_printable(self):
        assert escape_non_printable("Hi\x1a\r\n") == "Hi<CTRL+Z><CR><LF>"


class TestModemCore:
    """Test ModemCore wiring and lifecycle."""

    def test_start_subscribes(self, mock_transport):
        core = ModemCore(mock_transport, command_delay=0)
        received = []
        core.register_event_callback(IncomingCallRinging, received.append)

        core.start()
        mock_transport.feed(b"\r\nRING\r\n")

        assert mock_transport.is_started()
        assert received == [IncomingCallRinging()]
        core.close()

    def test_send_before_start(self, mock_transport):
        core = ModemCore(mock_transport, command_delay=0)

        with pytest.raises(ModemNotStartedError):
            core.send_at("ATA")
        with pytest.raises(ModemNotStartedError):
            core.send_raw("x")

        assert mock_transport.written == []
        core.close()

    def test_send_at(self, modem_core, mock_transport):
        modem_core.send_at("AT+CLIP=1")

        assert mock_transport.commands() == ["AT+CLIP=1"]

    def test_unregister(self, modem_core, mock_transport):
        received = []
        modem_core.register_event_callback(IncomingCallRinging, received.append)

        assert modem_core.unregister_event_callback(IncomingCallRinging, received.append)
        mock_transport.feed(b"RING\r\n")

        assert received == []

    def test_close_detaches_and_closes(self, mock_transport):
        core = ModemCore(mock_transport, command_delay=0)
        received = []
        core.register_event_callback(IncomingCallRinging, received.append)
        core.start()

        core.close()
        core.close()  # idempotent
        mock_transport.feed(b"RING\r\n")

        assert received == []
        assert not mock_transport.is_open()
        assert not core.is_running()

    def test_defer(self, modem_core, mock_transport):
        future = modem_core.defer(modem_core.send_at, "AT+CMGR=1")
        future.result(timeout=2)

        assert mock_transport.commands() == ["AT+CMGR=1"]

    def test_defer_failure_logged(self, modem_core):
        def broken():
            raise RuntimeError("deferred bug")

        future = modem_core.defer(broken)

        assert future.result(timeout=2) is None

    def test_defer_after_close(self, mock_transport):
        core = ModemCore(mock_transport, command_delay=0)
        core.start()
        core.close()

        assert core.defer(lambda: None) is None

    def test_context_manager(self):
        transport = MockTransport()

        with ModemCore(transport, command_delay=0) as core:
            assert core.is_running()

        assert not core.is_running()
        assert not transport.is_open()
