"""
Serial port resolution.

The modem exposes its AT command channel and its PCM audio channel as two
separate serial ports. A PortResolver decides which ports those are.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Optional

from serial.tools import list_ports

from ..exceptions import TransportUnavailableError
from ..types import PortPair

logger = logging.getLogger(__name__)

# SIMCom SIM7600 series in its default USB composition
SIMCOM_VID = 0x1E0E
SIMCOM_PID = 0x9005

# Linux: "1-1.2:1.4", Windows: "1-4:x.4"
_LOCATION_IFACE_RE = re.compile(r'[:.](\d+)$')


class PortResolver(ABC):
    """Abstract base class for port resolution."""

    @abstractmethod
    def resolve(self) -> PortPair:
        """
        Find the command and audio ports.

        Returns:
            PortPair(command_port, audio_port)

        Raises:
            TransportUnavailableError: If either port cannot be found
        """
        pass


class StaticPortResolver(PortResolver):
    """Resolver returning ports given up front (e.g., on the command line)."""

    def __init__(self, command_port: str, audio_port: str) -> None:
        self.ports = PortPair(command_port, audio_port)

    def resolve(self) -> PortPair:
        return self.ports


class UsbPortResolver(PortResolver):
    """
    Resolver matching USB vendor/product IDs and interface numbers.

    The SIM7600 exposes the AT port on interface 2 and the audio port on
    interface 4.
    """

    def __init__(
        self,
        vid: int = SIMCOM_VID,
        pid: int = SIMCOM_PID,
        command_interface: int = 2,
        audio_interface: int = 4
    ) -> None:
        self.vid = vid
        self.pid = pid
        self.command_interface = command_interface
        self.audio_interface = audio_interface

    @staticmethod
    def _interface_number(port) -> Optional[int]:
        """Extract the USB interface number from a list_ports entry."""
        match = _LOCATION_IFACE_RE.search(port.location or "")
        if not match:
            return None
        return int(match.group(1))

    def resolve(self) -> PortPair:
        command_port = None
        audio_port = None

        for port in list_ports.comports():
            if port.vid != self.vid or port.pid != self.pid:
                continue

            interface = self._interface_number(port)
            logger.debug(f"Candidate {port.device}: interface {interface}")
            if interface == self.command_interface:
                command_port = port.device
            elif interface == self.audio_interface:
                audio_port = port.device

        if command_port is None or audio_port is None:
            raise TransportUnavailableError(
                f"Modem ports not found for {self.vid:04X}:{self.pid:04X} "
                f"(command={command_port}, audio={audio_port})"
            )

        logger.info(f"Resolved ports: command={command_port}, audio={audio_port}")
        return PortPair(command_port, audio_port)
