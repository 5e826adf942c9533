"""
Data types and structures for simcomphone.

Provides type-safe representations of call state, SMS records and the
unsolicited events decoded from the modem's command channel.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import NamedTuple, Optional, Union


class CallStatus(Enum):
    """Lifecycle of the single tracked call."""
    IDLE = "idle"
    RINGING = "ringing"
    ACTIVE = "active"


@dataclass(frozen=True)
class CallState:
    """
    Snapshot of the call state machine.

    Attributes:
        status: Current lifecycle status
        caller_number: Caller ID while ringing, if the modem reported one
    """
    status: CallStatus = CallStatus.IDLE
    caller_number: Optional[str] = None

    @property
    def is_idle(self) -> bool:
        return self.status is CallStatus.IDLE

    @property
    def is_ringing(self) -> bool:
        return self.status is CallStatus.RINGING

    @property
    def is_active(self) -> bool:
        return self.status is CallStatus.ACTIVE


class CallForwardReason(IntEnum):
    """Call forwarding reasons (AT+CCFC <reason>)."""
    UNCONDITIONAL = 0
    BUSY = 1
    NO_REPLY = 2
    NOT_REACHABLE = 3
    ALL_FORWARDING = 4
    ALL_CONDITIONAL = 5


class PortPair(NamedTuple):
    """Serial ports of the modem's AT channel and PCM audio channel."""
    command_port: str
    audio_port: str


@dataclass(frozen=True)
class Immediate:
    """Message delivered directly via +CMT, never written to storage."""


@dataclass(frozen=True)
class Stored:
    """
    Message read back from modem storage.

    ``index`` is None only when a +CMGR reply could not be matched
    to the read request that produced it.
    """
    index: Optional[int]


Provenance = Union[Immediate, Stored]


@dataclass(frozen=True)
class SmsMessage:
    """
    SMS message data.

    Attributes:
        provenance: Immediate() or Stored(index)
        sender: Sender phone number
        timestamp: Timestamp (format: YY/MM/DD,HH:MM:SS+TZ)
        text: Message body
    """
    provenance: Provenance
    sender: str
    timestamp: str
    text: str

    @property
    def index(self) -> Optional[int]:
        """Storage index, None for immediate messages."""
        if isinstance(self.provenance, Stored):
            return self.provenance.index
        return None

    @property
    def is_stored(self) -> bool:
        return isinstance(self.provenance, Stored)


# Unsolicited events decoded from the command channel


@dataclass(frozen=True)
class IncomingCallRinging:
    """RING seen on the command channel."""


@dataclass(frozen=True)
class CallerIdAvailable:
    """+CLIP: "<number>",<type>"""
    number: str


@dataclass(frozen=True)
class RemoteCallEnded:
    """NO CARRIER, BUSY or ERROR seen on the command channel."""


@dataclass(frozen=True)
class CallConnected:
    """VOICE CALL: BEGIN"""


@dataclass(frozen=True)
class CallDisconnected:
    """VOICE CALL: END"""


@dataclass(frozen=True)
class CallWaitingStatus:
    """+CCWA: <class>,<status>"""
    enabled: bool


@dataclass(frozen=True)
class NewStoredMessage:
    """+CMTI: "<mem>",<index>"""
    index: int


@dataclass(frozen=True)
class ImmediateSmsReceived:
    """+CMT: header followed by its body line."""
    sender: str
    timestamp: str
    body: str

    @property
    def message(self) -> SmsMessage:
        return SmsMessage(Immediate(), self.sender, self.timestamp, self.body)


@dataclass(frozen=True)
class StoredSmsRead:
    """+CMGR: or +CMGL: header followed by its body line."""
    index: Optional[int]
    sender: str
    timestamp: str
    body: str

    @property
    def message(self) -> SmsMessage:
        return SmsMessage(Stored(self.index), self.sender, self.timestamp, self.body)


UnsolicitedEvent = Union[
    IncomingCallRinging,
    CallerIdAvailable,
    RemoteCallEnded,
    CallConnected,
    CallDisconnected,
    CallWaitingStatus,
    NewStoredMessage,
    ImmediateSmsReceived,
    StoredSmsRead,
]

SMS_EVENTS = (ImmediateSmsReceived, StoredSmsRead)
