"""
Line reassembly for the command channel.

The serial port hands over data in arbitrary chunks that do not line up with
modem response lines. LineReassembler carries incomplete fragments across
chunks and emits complete lines. Empty lines are dropped unless the caller
asks to keep them.
"""

import codecs
import logging
from typing import Union

logger = logging.getLogger(__name__)


class LineReassembler:
    """
    Turns a chunked byte stream into delimiter-bounded lines.

    CRLF and bare LF both terminate a line. A CR that ends a chunk stays in
    the carry-over until the next chunk shows whether an LF follows, so a
    CRLF split across two chunks still counts as a single delimiter.

    Example:

    .. code-block:: python

        lines = LineReassembler()
        lines.feed(b"RI")          # []
        lines.feed(b"NG\\r")        # []
        lines.feed(b"\\n+CLIP: ")   # ["RING"]
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="ignore")
        self._pending = ""

    @property
    def pending(self) -> str:
        """Incomplete fragment waiting for its delimiter."""
        return self._pending

    def feed(self, chunk: Union[bytes, str], keep_blank: bool = False) -> list[str]:
        """
        Append a chunk and return every line it completes, in arrival order.

        Args:
            chunk: Raw bytes from the transport, or already-decoded text
            keep_blank: Also return empty lines, as "", so callers can see
                        where a record had no content

        Returns:
            Complete lines with surrounding whitespace stripped
        """
        if isinstance(chunk, (bytes, bytearray)):
            text = self._decoder.decode(bytes(chunk))
        else:
            text = chunk

        if not text:
            return []

        parts = (self._pending + text).split("\n")
        self._pending = parts.pop()

        lines = [part.strip() for part in parts]
        if keep_blank:
            return lines
        return [line for line in lines if line]

    def reset(self) -> None:
        """Drop the carry-over."""
        if self._pending:
            logger.debug(f"Discarding partial line: {self._pending!r}")
        self._pending = ""
        self._decoder.reset()
