"""
AT command protocol handler.

Issues AT commands over the command transport. Commands are not matched
against their acknowledgements: each write is followed by a fixed settle
delay that gives the modem time to process it.
"""

import logging
import threading
import time
from typing import Union

from .transport import Transport

logger = logging.getLogger(__name__)

CTRL_Z = "\x1A"


def escape_non_printable(data: str) -> str:
    """Replace control characters with readable tags for logging."""
    return (
        data
        .replace(CTRL_Z, "<CTRL+Z>")
        .replace("\r", "<CR>")
        .replace("\n", "<LF>")
    )


class ATProtocol:
    """
    AT command protocol handler.

    Serialises writes from concurrent callers so two commands never
    interleave on the wire.
    """

    def __init__(
        self,
        transport: Transport,
        command_delay: float = 0.8
    ) -> None:
        """
        Initialize AT protocol handler.

        Args:
            transport: Transport instance for communication
            command_delay: Settle delay after each command in seconds
        """
        self.transport = transport
        self.command_delay = command_delay

        # Thread safety for AT commands, reentrant so a prompt exchange can
        # hold it across its command and payload writes
        self._at_lock = threading.RLock()

        logger.info("Initialized AT protocol handler")

    def send_command(self, cmd: str = "AT") -> None:
        """
        Send an AT command and wait out the settle delay.

        Args:
            cmd: AT command to send (e.g., "AT+CHUP" or "+CHUP")

        Raises:
            TransportError: If the write fails
        """
        with self._at_lock:
            cmd = self._normalize_command(cmd)
            logger.debug(f"Sending AT command: {cmd.strip()}")
            self.transport.write(cmd.encode("utf-8"))
            if self.command_delay > 0:
                time.sleep(self.command_delay)

    def send_raw(self, data: Union[str, bytes]) -> None:
        """
        Write data verbatim, without a line terminator or settle delay.

        Args:
            data: Text or bytes to write (e.g., an SMS body ending in Ctrl+Z)

        Raises:
            TransportError: If the write fails
        """
        if isinstance(data, str):
            text = data
            data = data.encode("utf-8")
        else:
            text = data.decode("utf-8", errors="replace")

        with self._at_lock:
            self.transport.write(data)
            logger.debug(f"Raw TX: {escape_non_printable(text)}")

    def send_with_prompt(
        self,
        cmd: str,
        payload: Union[str, bytes],
        prompt_delay: float = 0.5
    ) -> None:
        """
        Send a command that answers with a "> " prompt, then its payload.

        No other command reaches the wire between the two writes, otherwise
        the modem would take it as part of the payload.

        Args:
            cmd: Command that opens the prompt (e.g., AT+CMGS="+123")
            payload: Data written verbatim once the prompt is up
            prompt_delay: Time allowed for the prompt to appear in seconds

        Raises:
            TransportError: If a write fails
        """
        with self._at_lock:
            self.send_command(cmd)
            if prompt_delay > 0:
                time.sleep(prompt_delay)
            self.send_raw(payload)

    def _normalize_command(self, cmd: str) -> str:
        """
        Normalize AT command format.

        Ensures command starts with "AT" and ends with "\r\n".
        """
        cmd = cmd.strip()

        # Add AT prefix if missing
        if not cmd.upper().startswith("AT"):
            cmd = "AT" + cmd

        return cmd + "\r\n"
