"""
Unsolicited result code parsers.

Extracts fields from call-related URC lines:
- +CLIP (Calling line identification)
- +CCWA (Call waiting status)
- +CMTI (New message indication)

Every parser returns None when the line does not have the expected shape;
an unrecognised line is not an error.
"""

import re
from typing import Optional

from ..types import CallerIdAvailable, CallWaitingStatus, NewStoredMessage

CLIP_PREFIX = "+CLIP:"
CCWA_PREFIX = "+CCWA:"
CMTI_PREFIX = "+CMTI:"

# +CLIP: "+491701234567",129
_CLIP_RE = re.compile(r'\+CLIP:\s*"([^"]*)",\s*\d+')

# +CCWA: 1,1
_CCWA_RE = re.compile(r'\+CCWA:\s*(\d+),\s*(\d+)')

# +CMTI: "SM",3
_CMTI_RE = re.compile(r'\+CMTI:\s*"[^"]+",\s*(\d+)')


class URCParser:
    """Parser for call and message notification URCs."""

    @staticmethod
    def parse_clip(line: str) -> Optional[CallerIdAvailable]:
        """
        Parse a +CLIP caller ID line.

        Expected format:
            +CLIP: "+491701234567",129

        Args:
            line: Line starting with +CLIP:

        Returns:
            CallerIdAvailable event, or None if the line is malformed
        """
        match = _CLIP_RE.match(line)
        if not match:
            return None
        return CallerIdAvailable(number=match.group(1))

    @staticmethod
    def parse_ccwa(line: str) -> Optional[CallWaitingStatus]:
        """
        Parse a +CCWA status line.

        Expected format:
            +CCWA: <class>,<status>

        where status 1 means call waiting is enabled. The call-waiting
        indication sent during a call (+CCWA: "<number>",...) does not
        match and is ignored.
        """
        match = _CCWA_RE.match(line)
        if not match:
            return None
        return CallWaitingStatus(enabled=int(match.group(2)) == 1)

    @staticmethod
    def parse_cmti(line: str) -> Optional[NewStoredMessage]:
        """
        Parse a +CMTI new message indication.

        Expected format:
            +CMTI: "SM",3
        """
        match = _CMTI_RE.match(line)
        if not match:
            return None
        return NewStoredMessage(index=int(match.group(1)))
