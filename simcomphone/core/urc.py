"""
Unsolicited Result Code (URC) dispatcher.

Turns command-channel chunks into typed events and hands each event to the
callbacks registered for its kind, in a thread-safe manner.
"""

import logging
import threading
from collections import deque
from typing import Callable, Deque, Dict, Optional, Type, Union

from .lines import LineReassembler
from ..parsers.sms import SMSReassembler
from ..parsers.urc import CCWA_PREFIX, CLIP_PREFIX, CMTI_PREFIX, URCParser
from ..types import (
    CallConnected,
    CallDisconnected,
    CallWaitingStatus,
    IncomingCallRinging,
    RemoteCallEnded,
    UnsolicitedEvent,
)

logger = logging.getLogger(__name__)

# Type alias for event callbacks
EventCallback = Callable[[UnsolicitedEvent], None]

# Keywords matched anywhere in a line, since some firmware embeds them in
# longer diagnostic output.
KEYWORD_EVENTS = (
    ("RING", IncomingCallRinging),
    ("NO CARRIER", RemoteCallEnded),
    ("BUSY", RemoteCallEnded),
    ("ERROR", RemoteCallEnded),
    ("VOICE CALL: BEGIN", CallConnected),
    ("VOICE CALL: END", CallDisconnected),
)


class URCDispatcher:
    """
    Classifies modem output into unsolicited events and dispatches them.

    Features:
    - Line reassembly across arbitrarily split chunks
    - SMS header/body pairing via SMSReassembler
    - Per-event-kind callback registration table
    - Bounded history of recent events
    - Error handling for misbehaving callbacks

    Dispatch runs synchronously on the thread that delivered the chunk,
    so callbacks must return quickly.
    """

    def __init__(
        self,
        max_history: int = 1000,
        log_urcs: bool = False
    ) -> None:
        """
        Initialize URC dispatcher.

        Args:
            max_history: Maximum number of events kept in history
            log_urcs: Whether to log events at INFO level
        """
        self.log_urcs = log_urcs
        self.sms = SMSReassembler()

        self._lines = LineReassembler()
        self._parser = URCParser()

        # Bounded event history
        self._history: Deque[UnsolicitedEvent] = deque(maxlen=max_history)

        # Callback registry: event type -> callbacks in registration order
        self._callbacks: Dict[Type, list[EventCallback]] = {}

        # Thread safety
        self._lock = threading.Lock()

        logger.info(f"Initialized URC dispatcher (max_history={max_history})")

    def register(self, event_type: Type, callback: EventCallback) -> None:
        """
        Register a callback for one kind of event.

        Args:
            event_type: Event class (e.g., IncomingCallRinging)
            callback: Function called with the event instance.
                     Signature: callback(event) -> None

        Example:

        .. code-block:: python

            dispatcher.register(CallerIdAvailable, lambda e: print(e.number))
        """
        with self._lock:
            self._callbacks.setdefault(event_type, []).append(callback)
            logger.debug(f"Registered callback for {event_type.__name__}")

    def unregister(self, event_type: Type, callback: EventCallback) -> bool:
        """
        Unregister a callback.

        Returns:
            True if callback was removed, False if not found
        """
        with self._lock:
            callbacks = self._callbacks.get(event_type, [])
            if callback in callbacks:
                callbacks.remove(callback)
                logger.debug(f"Unregistered callback for {event_type.__name__}")
                return True
            return False

    def clear_callbacks(self) -> None:
        """Clear all registered callbacks."""
        with self._lock:
            count = sum(len(cbs) for cbs in self._callbacks.values())
            self._callbacks.clear()
            logger.info(f"Cleared {count} URC callbacks")

    def feed(self, chunk: Union[bytes, str]) -> list[UnsolicitedEvent]:
        """
        Run one dispatch pass over a received chunk.

        Args:
            chunk: Raw data from the command transport

        Returns:
            Events emitted by this pass, in dispatch order
        """
        # Blank lines are kept so an SMS header followed by one has an empty body
        lines = self._lines.feed(chunk, keep_blank=True)
        if not lines:
            return []

        for line in lines:
            if line:
                logger.debug(f"Modem line: {line}")

        events = self.classify(lines)
        for event in events:
            self._handle_event(event)
        return events

    def classify(self, lines: list[str]) -> list[UnsolicitedEvent]:
        """
        Classify the complete lines of one pass.

        Keyword events are emitted at most once per kind and only the last
        +CCWA status of the pass is kept. An SMS header followed by a blank
        line or by another header gets an empty body.
        """
        events: list[UnsolicitedEvent] = []
        seen_keywords: set = set()

        for line in lines:
            if self.sms.pending:
                if self.sms.is_header(line):
                    events.append(self.sms.complete(""))
                else:
                    sms_event = self.sms.complete(line)
                    if sms_event is not None:
                        events.append(sms_event)
                    continue

            if not line:
                continue

            if self.sms.begin(line):
                continue

            event = self._match_prefix(line)
            if isinstance(event, CallWaitingStatus):
                events = [e for e in events if not isinstance(e, CallWaitingStatus)]
            if event is not None:
                events.append(event)
                continue

            for keyword, event_type in KEYWORD_EVENTS:
                if keyword in line and event_type not in seen_keywords:
                    seen_keywords.add(event_type)
                    events.append(event_type())

        return events

    def _match_prefix(self, line: str) -> Optional[UnsolicitedEvent]:
        """Match header-style URCs by line prefix."""
        if line.startswith(CLIP_PREFIX):
            return self._parser.parse_clip(line)
        if line.startswith(CCWA_PREFIX):
            return self._parser.parse_ccwa(line)
        if line.startswith(CMTI_PREFIX):
            return self._parser.parse_cmti(line)
        return None

    def _handle_event(self, event: UnsolicitedEvent) -> None:
        """Record an event and dispatch it to matching callbacks."""
        if self.log_urcs:
            logger.info(f"URC event: {event}")
        else:
            logger.debug(f"URC event: {event}")

        # Add to history (automatically drops oldest if full)
        with self._lock:
            self._history.append(event)
            callbacks = list(self._callbacks.get(type(event), []))

        # Call callbacks outside lock
        for callback in callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Callback for {type(event).__name__} failed: {e}", exc_info=True)

    def recent_events(self) -> list[UnsolicitedEvent]:
        """
        Get a copy of the event history.

        Returns:
            List of events (oldest first)
        """
        with self._lock:
            return list(self._history)

    def clear_history(self) -> int:
        """
        Clear the event history.

        Returns:
            Number of events that were cleared
        """
        with self._lock:
            count = len(self._history)
            self._history.clear()
            return count

    def get_callbacks(self) -> Dict[Type, list[EventCallback]]:
        """
        Get registered callbacks (for debugging).

        Returns:
            Dictionary mapping event types to callbacks
        """
        with self._lock:
            return {k: list(v) for k, v in self._callbacks.items()}

    def reset(self) -> None:
        """Drop partial lines and any pending SMS header."""
        self._lines.reset()
        self.sms.reset()
