"""
SMS response parsers for text mode.

Parses SMS records reported on the command channel:
- +CMT (Message delivered directly, not stored)
- +CMGR (Read message)
- +CMGL (List messages)

Each record is a header line followed by exactly one body line.
SMSReassembler pairs them up across delivery boundaries.
"""

import logging
import re
import threading
from typing import Optional, Union

from ..types import ImmediateSmsReceived, StoredSmsRead

logger = logging.getLogger(__name__)

CMT_PREFIX = "+CMT:"
CMGR_PREFIX = "+CMGR:"
CMGL_PREFIX = "+CMGL:"

SMS_HEADER_PREFIXES = (CMT_PREFIX, CMGR_PREFIX, CMGL_PREFIX)

# First quoted phone number: "+123456789" or "123456789"
_SENDER_RE = re.compile(r'"(\+?\d+)"')

# 23/05/14,10:30:10+08
_TIMESTAMP_RE = re.compile(r'(\d{2}/\d{2}/\d{2},\d{2}:\d{2}:\d{2}[+-]\d{2})')

# +CMGL: <index>,...
_CMGL_INDEX_RE = re.compile(r'\+CMGL:\s*(\d+)')

SmsEvent = Union[ImmediateSmsReceived, StoredSmsRead]


class SMSParser:
    """Parser for text-mode SMS header lines."""

    @staticmethod
    def parse_sender(header: str) -> str:
        """Return the first quoted phone number in the header, or ""."""
        match = _SENDER_RE.search(header)
        return match.group(1) if match else ""

    @staticmethod
    def parse_timestamp(header: str) -> str:
        """Return the service centre timestamp in the header, or ""."""
        match = _TIMESTAMP_RE.search(header)
        return match.group(1) if match else ""

    @staticmethod
    def parse_cmt(header: str, body: str) -> ImmediateSmsReceived:
        """
        Parse a +CMT header and its body line.

        Expected format:
            +CMT: "+123456789","","23/05/14,10:30:10+08"
            Hello from me

        Args:
            header: Line starting with +CMT:
            body: The line that followed the header

        Returns:
            ImmediateSmsReceived event
        """
        return ImmediateSmsReceived(
            sender=SMSParser.parse_sender(header),
            timestamp=SMSParser.parse_timestamp(header),
            body=body.strip()
        )

    @staticmethod
    def parse_stored(header: str, body: str, index: Optional[int] = None) -> StoredSmsRead:
        """
        Parse a +CMGR or +CMGL header and its body line.

        Expected formats:
            +CMGR: "REC UNREAD","+123456789",,"23/05/14,10:30:10+08"
            +CMGL: 1,"REC UNREAD","+123456789",,"23/05/14,10:32:01+08"

        +CMGR does not report an index, so the caller supplies the one it
        asked for. The leading integer of +CMGL always takes precedence.

        Args:
            header: Line starting with +CMGR: or +CMGL:
            body: The line that followed the header
            index: Storage index requested with AT+CMGR, if known

        Returns:
            StoredSmsRead event
        """
        match = _CMGL_INDEX_RE.match(header)
        if match:
            index = int(match.group(1))

        return StoredSmsRead(
            index=index,
            sender=SMSParser.parse_sender(header),
            timestamp=SMSParser.parse_timestamp(header),
            body=body.strip()
        )


class SMSReassembler:
    """
    Correlates SMS header lines with the body line that follows them.

    Works on complete lines. Once a header is accepted the next line is
    consumed as its body, even when it only arrives in a later chunk, and
    is not dispatched any further. A blank line as the body means the
    message has no text.
    """

    def __init__(self) -> None:
        self._parser = SMSParser()
        self._header: Optional[str] = None
        self._header_index: Optional[int] = None
        self._read_index: Optional[int] = None
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        """True while a header is waiting for its body line."""
        return self._header is not None

    def note_read_request(self, index: int) -> None:
        """
        Remember the index of an AT+CMGR request.

        The next +CMGR header is attributed to this index.
        """
        with self._lock:
            self._read_index = index

    @staticmethod
    def is_header(line: str) -> bool:
        """Check whether a line opens a +CMT, +CMGR or +CMGL record."""
        return line.startswith(SMS_HEADER_PREFIXES)

    def begin(self, line: str) -> bool:
        """
        Accept a line as an SMS header.

        Args:
            line: Complete line from the command channel

        Returns:
            True if the line was a header and the body is now pending
        """
        if not self.is_header(line):
            return False

        index = None
        if line.startswith(CMGR_PREFIX):
            with self._lock:
                index, self._read_index = self._read_index, None

        self._header = line
        self._header_index = index
        logger.debug(f"SMS header pending body: {line}")
        return True

    def complete(self, body: str) -> Optional[SmsEvent]:
        """
        Consume the body line for the pending header.

        Args:
            body: The line that followed the header

        Returns:
            The completed SMS event, or None if no header was pending
        """
        header, index = self._header, self._header_index
        if header is None:
            return None

        self._header = None
        self._header_index = None

        if header.startswith(CMT_PREFIX):
            return self._parser.parse_cmt(header, body)
        return self._parser.parse_stored(header, body, index)

    def reset(self) -> None:
        """Drop a pending header and any noted read request."""
        self._header = None
        self._header_index = None
        with self._lock:
            self._read_index = None
