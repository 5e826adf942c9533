"""
Core modem infrastructure.

Provides low-level building blocks for modem communication:
- Transport: Serial communication abstraction with push delivery
- Protocol: AT command issue with settle pacing
- Lines: Reassembly of chunked data into lines
- URC: Unsolicited result code classification and dispatch
- Ports: Resolution of the command and audio serial ports
- ModemCore: Coordination of all core components
"""

from .transport import Transport, SerialTransport, MockTransport, ChunkListener
from .protocol import ATProtocol
from .lines import LineReassembler
from .urc import URCDispatcher, EventCallback
from .ports import PortResolver, StaticPortResolver, UsbPortResolver
from .modem import ModemCore

__all__ = [
    "Transport",
    "SerialTransport",
    "MockTransport",
    "ChunkListener",
    "ATProtocol",
    "LineReassembler",
    "URCDispatcher",
    "EventCallback",
    "PortResolver",
    "StaticPortResolver",
    "UsbPortResolver",
    "ModemCore",
]
