"""
Supplementary services manager.

Handles network-side call features: call waiting and call forwarding.
"""

import logging
import time
from typing import TYPE_CHECKING, Optional

from ..exceptions import InvalidInputError
from ..types import CallForwardReason, CallWaitingStatus

if TYPE_CHECKING:
    from ..core import ModemCore

logger = logging.getLogger(__name__)

# Service class 1 = voice
VOICE_CLASS = 1

# Type of address: unknown/international
ADDRESS_TYPE = 129


class SupplementaryServices:
    """
    Manages call waiting and call forwarding.

    The call waiting status is learned from +CCWA replies and kept in
    ``call_waiting_enabled``.
    """

    def __init__(self, modem_core: "ModemCore", query_delay: float = 0.5) -> None:
        """
        Initialize supplementary services manager.

        Args:
            modem_core: ModemCore instance for AT command execution
            query_delay: Extra wait after a call waiting query, in seconds
        """
        self.modem = modem_core
        self.query_delay = query_delay
        self.call_waiting_enabled = False

        self.modem.register_event_callback(CallWaitingStatus, self._on_call_waiting_status)

        logger.debug("Initialized SupplementaryServices")

    def set_call_waiting(self, enable: bool) -> None:
        """
        Enable or disable call waiting for voice calls.

        Example:

        .. code-block:: python

            phone.services.set_call_waiting(not phone.services.call_waiting_enabled)
        """
        mode = 1 if enable else 0
        logger.info(f"Requesting call waiting {'enable' if enable else 'disable'}")
        self.modem.send_at(f"AT+CCWA={VOICE_CLASS},{mode},{VOICE_CLASS}")

    def query_call_waiting(self) -> None:
        """
        Query call waiting status.

        The reply comes back as a +CCWA line and updates
        ``call_waiting_enabled``.
        """
        logger.info("Querying call waiting status")
        self.modem.send_at(f"AT+CCWA={VOICE_CLASS},2,{VOICE_CLASS}")
        if self.query_delay > 0:
            time.sleep(self.query_delay)

    def set_call_forwarding(
        self,
        reason: CallForwardReason,
        enable: bool,
        forward_number: Optional[str] = None
    ) -> None:
        """
        Enable or disable call forwarding.

        Args:
            reason: When calls are forwarded (e.g., CallForwardReason.BUSY)
            enable: True to enable, False to disable
            forward_number: Target number, required when enabling

        Raises:
            InvalidInputError: If enabling without a forwarding number

        Example:

        .. code-block:: python

            phone.services.set_call_forwarding(
                CallForwardReason.UNCONDITIONAL, True, "+15551234"
            )
        """
        reason = CallForwardReason(reason)

        if enable:
            if not forward_number or not forward_number.strip():
                raise InvalidInputError(
                    "Forwarding number must be provided if enabling call forward."
                )
            cmd = f'AT+CCFC={reason.value},1,"{forward_number.strip()}",{ADDRESS_TYPE}'
        else:
            cmd = f"AT+CCFC={reason.value},0"

        logger.info(f"Call forwarding {reason.name}: {'enable' if enable else 'disable'}")
        self.modem.send_at(cmd)

    def _on_call_waiting_status(self, event: CallWaitingStatus) -> None:
        self.call_waiting_enabled = event.enabled
        logger.info(f"Voice call waiting => {'ENABLED' if event.enabled else 'DISABLED'}")
