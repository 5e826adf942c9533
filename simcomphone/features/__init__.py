"""
Feature managers for modem functionality.

Provides high-level managers for different modem capabilities:
- CallManager: Voice call state machine and audio relay control
- SMSManager: Text-mode SMS messaging
- SupplementaryServices: Call waiting and call forwarding
- DeviceManager: Caller ID and echo/gain configuration
"""

from .call import CallManager
from .sms import SMSManager
from .services import SupplementaryServices
from .device import DeviceManager

__all__ = [
    "CallManager",
    "SMSManager",
    "SupplementaryServices",
    "DeviceManager",
]
