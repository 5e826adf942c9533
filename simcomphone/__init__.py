"""
SIMComPhone - Python library for using a SIMCom modem as a telephone.
"""

from .version import __version__
from .phone import SerialAudioPhone
from .core import MockTransport, StaticPortResolver, UsbPortResolver

from .types import (
    CallState,
    CallStatus,
    CallForwardReason,
    PortPair,
    Immediate,
    Stored,
    SmsMessage,
    IncomingCallRinging,
    CallerIdAvailable,
    RemoteCallEnded,
    CallConnected,
    CallDisconnected,
    CallWaitingStatus,
    NewStoredMessage,
    ImmediateSmsReceived,
    StoredSmsRead,
)

from .exceptions import (
    SIMComError,
    TransportError,
    TransportUnavailableError,
    DeviceDisconnectedError,
    ModemNotStartedError,
    InvalidInputError,
    InvalidStateTransitionError,
)

__all__ = [
    "__version__",
    "SerialAudioPhone",
    "MockTransport",
    "StaticPortResolver",
    "UsbPortResolver",
    "CallState",
    "CallStatus",
    "CallForwardReason",
    "PortPair",
    "Immediate",
    "Stored",
    "SmsMessage",
    "IncomingCallRinging",
    "CallerIdAvailable",
    "RemoteCallEnded",
    "CallConnected",
    "CallDisconnected",
    "CallWaitingStatus",
    "NewStoredMessage",
    "ImmediateSmsReceived",
    "StoredSmsRead",
    "SIMComError",
    "TransportError",
    "TransportUnavailableError",
    "DeviceDisconnectedError",
    "ModemNotStartedError",
    "InvalidInputError",
    "InvalidStateTransitionError",
]
