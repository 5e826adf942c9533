"""
Parsers for unsolicited modem output.

Turns complete text lines from the command channel into typed events.
"""

from .urc import URCParser
from .sms import SMSParser, SMSReassembler

__all__ = [
    "URCParser",
    "SMSParser",
    "SMSReassembler",
]
