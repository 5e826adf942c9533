"""
Core modem class coordinating transport, protocol, and URC dispatch.

This is the foundation that feature managers build upon.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional, Type, Union

from ..exceptions import ModemNotStartedError
from .transport import Transport
from .protocol import ATProtocol
from .urc import URCDispatcher, EventCallback

logger = logging.getLogger(__name__)


class ModemCore:
    """
    Core modem functionality.

    Coordinates:
    - Transport layer (serial communication, push delivery)
    - Protocol layer (AT command issue with settle pacing)
    - URC dispatch (unsolicited result codes)
    - Deferred worker (commands triggered from the delivery thread)

    This class provides the foundation for feature-specific managers.
    """

    def __init__(
        self,
        transport: Transport,
        command_delay: float = 0.8,
        log_urcs: bool = False,
        max_event_history: int = 1000
    ) -> None:
        """
        Initialize modem core.

        Args:
            transport: Command channel transport
            command_delay: Settle delay after each AT command in seconds
            log_urcs: Whether to log URC events at INFO level
            max_event_history: Maximum events kept in dispatcher history
        """
        self.transport = transport
        self.protocol = ATProtocol(transport, command_delay=command_delay)
        self.dispatcher = URCDispatcher(
            max_history=max_event_history,
            log_urcs=log_urcs
        )

        self._deferred = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ModemDeferred")
        self._running = False
        self._closed = False

        logger.info("Initialized ModemCore")

    def start(self) -> None:
        """
        Start receiving from the command transport.

        Every received chunk is fed to the URC dispatcher on the
        transport's delivery thread.
        """
        if self._running:
            logger.warning("ModemCore already started")
            return

        self.transport.set_listener(self._on_chunk)
        self.transport.start()
        self._running = True
        logger.info("Started command channel delivery")

    def close(self) -> None:
        """
        Close the modem connection.

        Unsubscribes event consumers before closing the transport.
        Calling close() again does nothing.
        """
        if self._closed:
            return
        self._closed = True

        logger.info("Closing modem connection")
        self.dispatcher.clear_callbacks()
        self.transport.set_listener(None)
        self._deferred.shutdown(wait=True, cancel_futures=True)
        self.transport.close()
        self._running = False
        logger.info("Modem connection closed")

    def _on_chunk(self, data: bytes) -> None:
        """Feed a chunk from the command transport to the dispatcher."""
        self.dispatcher.feed(data)

    def register_event_callback(self, event_type: Type, callback: EventCallback) -> None:
        """
        Register a callback for one kind of unsolicited event.

        Example:

        .. code-block:: python

            core.register_event_callback(NewStoredMessage, lambda e: print(e.index))
        """
        self.dispatcher.register(event_type, callback)

    def unregister_event_callback(self, event_type: Type, callback: EventCallback) -> bool:
        """Unregister an event callback."""
        return self.dispatcher.unregister(event_type, callback)

    def send_at(self, cmd: str) -> None:
        """
        Send an AT command.

        This is a convenience wrapper around protocol.send_command().

        Raises:
            ModemNotStartedError: If start() has not been called
            TransportError: If the write fails
        """
        self._check_running()
        self.protocol.send_command(cmd)

    def send_raw(self, data: Union[str, bytes]) -> None:
        """Write data verbatim to the command channel."""
        self._check_running()
        self.protocol.send_raw(data)

    def send_with_prompt(self, cmd: str, payload: Union[str, bytes], prompt_delay: float) -> None:
        """Send a prompting command and its payload as one exchange."""
        self._check_running()
        self.protocol.send_with_prompt(cmd, payload, prompt_delay)

    def _check_running(self) -> None:
        if not self._running:
            raise ModemNotStartedError("Modem is not started. Call start() first.")

    def discard_buffers(self) -> None:
        """Drop pending data on the command transport."""
        self.transport.discard_buffers()

    def defer(self, fn: Callable, *args) -> Optional[Future]:
        """
        Run fn(*args) on the deferred worker.

        Used for commands that are triggered by an event but must not
        block the delivery thread. Failures are logged.

        Returns:
            The Future, or None once the core is closed
        """
        if self._closed:
            logger.warning(f"Modem closed, dropping deferred {getattr(fn, '__name__', fn)}")
            return None

        def run():
            try:
                return fn(*args)
            except Exception as e:
                logger.error(f"Deferred {getattr(fn, '__name__', fn)} failed: {e}", exc_info=True)

        try:
            return self._deferred.submit(run)
        except RuntimeError:
            # Executor shut down between the check and the submit
            logger.warning(f"Modem closed, dropping deferred {getattr(fn, '__name__', fn)}")
            return None

    def is_running(self) -> bool:
        """
        Check if the command channel is being received.

        Returns:
            True if running
        """
        return self._running

    def __enter__(self):
        """Context manager entry."""
        if not self._running:
            self.start()
        return self

    def __exit__(self, *exc):
        """Context manager exit."""
        self.close()
