"""
SMS manager.

Handles text-mode SMS messaging: environment setup, sending, reading,
listing and deleting. Received messages arrive asynchronously as +CMT,
+CMGR or +CMGL records and are handed to registered callbacks.
"""

import logging
from typing import TYPE_CHECKING, Callable

from ..core.protocol import CTRL_Z
from ..exceptions import InvalidInputError
from ..types import (
    ImmediateSmsReceived,
    NewStoredMessage,
    SmsMessage,
    StoredSmsRead,
)

if TYPE_CHECKING:
    from ..core import ModemCore

logger = logging.getLogger(__name__)

# Type alias for message callbacks
MessageCallback = Callable[[SmsMessage], None]


class SMSManager:
    """
    Manages SMS messaging operations.

    Features:
    - Text mode setup with direct +CMT delivery of new messages
    - Send SMS
    - Read SMS by index (automatically on +CMTI)
    - List all stored messages
    - Delete messages
    """

    def __init__(
        self,
        modem_core: "ModemCore",
        prompt_delay: float = 0.5,
        auto_read: bool = True
    ) -> None:
        """
        Initialize SMS manager.

        Args:
            modem_core: ModemCore instance for AT command execution
            prompt_delay: Wait for the "> " prompt after AT+CMGS, in seconds
            auto_read: Read messages announced by +CMTI automatically
        """
        self.modem = modem_core
        self.prompt_delay = prompt_delay
        self.auto_read = auto_read
        self._callbacks: list[MessageCallback] = []

        self.modem.register_event_callback(NewStoredMessage, self._on_new_message)
        self.modem.register_event_callback(ImmediateSmsReceived, self._on_sms_event)
        self.modem.register_event_callback(StoredSmsRead, self._on_sms_event)

        logger.debug("Initialized SMSManager")

    def initialize(self) -> None:
        """
        Configure the modem for text-mode SMS.

        Sets text mode, the GSM character set, default text mode parameters
        and routes new messages directly to the command channel via +CMT.
        """
        logger.info("Configuring SMS environment")
        self.modem.send_at("AT+CMGF=1")
        self.modem.send_at('AT+CSCS="GSM"')
        self.modem.send_at("AT+CSMP=17,167,0,0")
        self.modem.send_at("AT+CNMI=2,2,0,0,0")

    def on_message(self, callback: MessageCallback) -> None:
        """
        Register a callback for received or read messages.

        Callbacks run on the command channel delivery thread.

        Example:

        .. code-block:: python

            phone.sms.on_message(lambda msg: print(f"{msg.sender}: {msg.text}"))
        """
        self._callbacks.append(callback)

    def send_sms(self, recipient: str, message: str) -> None:
        """
        Send a text-mode SMS.

        Args:
            recipient: Recipient phone number (e.g., "+123456789")
            message: Message text

        Raises:
            InvalidInputError: If recipient or message is blank
            TransportError: If a write fails

        Example:

        .. code-block:: python

            phone.sms.send_sms("+1234567890", "Hello!")
        """
        if not recipient or not recipient.strip():
            raise InvalidInputError("No recipient specified. SMS not sent.")
        if not message or not message.strip():
            raise InvalidInputError("Cannot send an empty message.")

        recipient = recipient.strip()
        logger.info(f"Sending SMS to {recipient}")

        self.modem.send_with_prompt(
            f'AT+CMGS="{recipient}"',
            message + CTRL_Z,
            self.prompt_delay
        )
        logger.debug(f"SMS out -> {recipient}: {message}")

    def read_message(self, index: int) -> None:
        """
        Request the message stored at index.

        The +CMGR reply is delivered to on_message callbacks.

        Args:
            index: Message index in storage
        """
        logger.info(f"Reading SMS at index {index}")
        self.modem.dispatcher.sms.note_read_request(index)
        self.modem.send_at(f"AT+CMGR={index}")

    def read_all_messages(self) -> None:
        """
        Request every stored message.

        The +CMGL replies are delivered to on_message callbacks.
        """
        logger.info("Listing all messages")
        self.modem.send_at('AT+CMGL="ALL"')

    def delete_message(self, index: int) -> None:
        """
        Delete SMS message by index.

        Args:
            index: Message index to delete
        """
        logger.info(f"Deleting message at index {index}")
        self.modem.send_at(f"AT+CMGD={index}")

    def delete_all_messages(self, max_index: int = 50) -> None:
        """
        Delete messages at indexes 1..max_index one by one.

        Args:
            max_index: Highest storage index to clear
        """
        logger.warning(f"Deleting messages 1..{max_index}")
        for index in range(1, max_index + 1):
            self.modem.send_at(f"AT+CMGD={index}")

    def _on_new_message(self, event: NewStoredMessage) -> None:
        logger.info(f"New message at index {event.index}")
        if self.auto_read:
            # Not on the delivery thread: the read waits out a settle delay
            self.modem.defer(self.read_message, event.index)

    def _on_sms_event(self, event) -> None:
        message = event.message
        logger.info(f"SMS from {message.sender} ({message.timestamp}), index {message.index}")

        for callback in list(self._callbacks):
            try:
                callback(message)
            except Exception as e:
                logger.error(f"SMS callback failed: {e}", exc_info=True)
