"""
Voice call manager.

Owns the call state machine. Local user actions (dial, answer, end call)
and modem notifications (RING, +CLIP, NO CARRIER, ...) both feed into it,
and all transitions run one at a time on a dedicated worker thread.
"""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Callable, Optional

from ..core.transport import Transport
from ..exceptions import (
    InvalidInputError,
    InvalidStateTransitionError,
    ModemNotStartedError,
    SIMComError,
    TransportError,
)
from ..types import (
    CallConnected,
    CallDisconnected,
    CallerIdAvailable,
    CallState,
    CallStatus,
    IncomingCallRinging,
    RemoteCallEnded,
    UnsolicitedEvent,
)

if TYPE_CHECKING:
    from ..audio import AudioRelay
    from ..core import ModemCore

logger = logging.getLogger(__name__)

CALL_EVENTS = (IncomingCallRinging, CallerIdAvailable, RemoteCallEnded, CallConnected, CallDisconnected)

# Type alias for state listeners
StateListener = Callable[[CallState], None]


class CallManager:
    """
    Manages the lifecycle of the single tracked voice call.

    States: IDLE -> RINGING -> ACTIVE -> IDLE, or IDLE -> ACTIVE when
    dialing out. Entering ACTIVE starts the audio relay and leaving it
    stops the relay.

    The delivery thread only enqueues events; it never touches the state.
    User operations block until their transition has run and raise if it
    does not apply to the current state.
    """

    def __init__(
        self,
        modem_core: "ModemCore",
        relay: Optional["AudioRelay"],
        audio_transport: Optional[Transport],
        settle_delay: float = 2.0
    ) -> None:
        """
        Initialize call manager.

        Args:
            modem_core: ModemCore instance for AT command issue
            relay: Audio relay started while a call is active, or None
                when no audio is available
            audio_transport: Modem audio channel, flushed before each call
            settle_delay: Pause after flushing the ports before dialing or
                answering, in seconds
        """
        self.modem = modem_core
        self.relay = relay
        self.audio_transport = audio_transport
        self.settle_delay = settle_delay

        self._state = CallState()
        self._listeners: list[StateListener] = []
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="CallState")
        self._closed = False
        self._close_lock = threading.Lock()

        for event_type in CALL_EVENTS:
            self.modem.register_event_callback(event_type, self.handle_event)

        logger.debug("Initialized CallManager")

    @property
    def state(self) -> CallState:
        """Snapshot of the current call state."""
        return self._state

    def add_listener(self, listener: StateListener) -> None:
        """
        Register a callback for state changes.

        Listeners run on the call worker thread.
        """
        self._listeners.append(listener)

    def dial(self, number: str) -> None:
        """
        Place a voice call.

        Args:
            number: Phone number to dial (e.g., "+15551234")

        Raises:
            InvalidInputError: If the number is blank
            InvalidStateTransitionError: If a call is ringing or active

        Example:

        .. code-block:: python

            phone.calls.dial("+15551234")
        """
        if not number or not number.strip():
            raise InvalidInputError("Invalid phone number")
        self._run(self._dial, number.strip())

    def answer(self) -> None:
        """
        Answer the ringing call.

        Raises:
            InvalidStateTransitionError: If nothing is ringing
        """
        self._run(self._answer)

    def end_call(self) -> None:
        """
        Reject the ringing call or hang up the active one.

        Raises:
            InvalidStateTransitionError: If there is no call
        """
        self._run(self._end_call)

    def handle_event(self, event: UnsolicitedEvent) -> None:
        """
        Queue a modem event for the state machine.

        Safe to call from the transport delivery thread; returns at once.
        """
        self._submit(self._on_event, event)

    def sync(self, timeout: Optional[float] = None) -> None:
        """Wait until every queued transition has run."""
        future = self._submit(lambda: None)
        if future is not None:
            future.result(timeout)

    def close(self) -> None:
        """Stop the worker after draining queued transitions."""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        self._executor.shutdown(wait=True)
        logger.debug("CallManager closed")

    def _submit(self, fn: Callable, *args) -> Optional[Future]:
        try:
            return self._executor.submit(fn, *args)
        except RuntimeError:
            logger.warning(f"Call manager closed, dropping {getattr(fn, '__name__', fn)}")
            return None

    def _run(self, fn: Callable, *args) -> None:
        if not self.modem.is_running():
            raise ModemNotStartedError("Modem is not started. Call start() first.")
        future = self._submit(fn, *args)
        if future is None:
            raise ModemNotStartedError("Call manager is closed")
        future.result()

    # Transitions, run on the worker thread only

    def _set_state(self, state: CallState) -> None:
        previous, self._state = self._state, state
        if previous == state:
            return
        logger.info(f"Call state: {previous.status.value} -> {state.status.value}")
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error(f"Call state listener failed: {e}", exc_info=True)

    def _dial(self, number: str) -> None:
        if not self._state.is_idle:
            raise InvalidStateTransitionError(
                f"Cannot dial while a call is {self._state.status.value}"
            )

        self._set_state(CallState(CallStatus.ACTIVE))
        self._prepare_channels()

        logger.info(f"Dialing {number}")
        self._issue(f"ATD{number};", "AT+CPCMREG=1")
        self._start_relay()

    def _answer(self) -> None:
        if not self._state.is_ringing:
            raise InvalidStateTransitionError("There's no call to answer")

        caller = self._state.caller_number
        self._set_state(CallState(CallStatus.ACTIVE))
        self._prepare_channels()

        logger.info(f"Answering call from {caller or 'unknown caller'}")
        self._issue("ATA", "AT+CPCMREG=1")
        self._start_relay()

    def _end_call(self) -> None:
        if self._state.is_ringing:
            self._set_state(CallState())
            self._issue("AT+CHUP")
            logger.info("Incoming call rejected by local user")
        elif self._state.is_active:
            self._set_state(CallState())
            self._hang_up()
            logger.info("Call ended by local user")
        else:
            raise InvalidStateTransitionError("There is no active or incoming call")

    def _on_event(self, event: UnsolicitedEvent) -> None:
        state = self._state

        if isinstance(event, IncomingCallRinging):
            if state.is_idle:
                logger.info("Incoming call is ringing...")
                self._set_state(CallState(CallStatus.RINGING))

        elif isinstance(event, CallerIdAvailable):
            if state.is_ringing:
                logger.info(f"Incoming call from {event.number}")
                self._set_state(CallState(CallStatus.RINGING, event.number or None))

        elif isinstance(event, (RemoteCallEnded, CallDisconnected)):
            if state.is_active:
                logger.info("Call ended by remote side or an error occurred")
                self._set_state(CallState())
                self._hang_up()

        elif isinstance(event, CallConnected):
            if state.is_active:
                logger.info("Voice call connected")

    def _prepare_channels(self) -> None:
        """Flush both ports and let the modem settle."""
        for transport in (self.modem.transport, self.audio_transport):
            if transport is None:
                continue
            try:
                transport.discard_buffers()
            except TransportError as e:
                logger.error(f"Failed to clear {transport.name} buffers: {e}")
        # Fragments from before the flush must not join post-dial output
        self.modem.dispatcher.reset()
        if self.settle_delay > 0:
            time.sleep(self.settle_delay)

    def _hang_up(self) -> None:
        if self.relay is not None:
            self.relay.stop()
        self._issue("AT+CHUP", "AT+CPCMREG=0,1")

    def _issue(self, *commands: str) -> None:
        for cmd in commands:
            try:
                self.modem.send_at(cmd)
            except SIMComError as e:
                logger.error(f"Error sending AT command {cmd}: {e}")

    def _start_relay(self) -> None:
        if self.relay is None:
            logger.warning("No audio relay configured, call has no audio")
            return
        try:
            self.relay.start()
        except SIMComError as e:
            logger.error(f"Audio relay failed to start, call continues without audio: {e}")
