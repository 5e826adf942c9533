"""
Exceptions for simcomphone.

Provides detailed error information for debugging modem communication issues.
"""

from typing import Optional


class SIMComError(Exception):
    """
    Base exception for SIMCom modem errors.

    All simcomphone exceptions inherit from this class.
    """

    def __init__(
        self,
        message: str,
        command: Optional[str] = None,
        response: Optional[list[str]] = None
    ) -> None:
        """
        Initialize exception with context.

        Args:
            message: Error description
            command: AT command that caused the error (if applicable)
            response: Modem response (if applicable)
        """
        self.command = command
        self.response = response
        super().__init__(message)

    def __str__(self) -> str:
        """Format error message with context."""
        parts = [super().__str__()]

        if self.command:
            parts.append(f"Command: {self.command}")

        if self.response:
            parts.append(f"Response: {self.response}")

        return " | ".join(parts)


class TransportError(SIMComError):
    """
    Raised when a single read or write on a transport fails.

    This indicates:
    - Serial port issues
    - Port closed underneath a writer
    - Hardware communication failure
    """
    pass


class TransportUnavailableError(TransportError):
    """
    Raised when a command or audio transport cannot be opened.

    Fatal to the owning subsystem. There is no automatic retry.
    """
    pass


class DeviceDisconnectedError(TransportError):
    """
    Raised when device is disconnected during operation.

    This is a fatal error that requires closing and reopening the connection.
    """
    pass


class ModemNotStartedError(SIMComError):
    """
    Raised when attempting to use the phone before it was started.
    """
    pass


class InvalidInputError(SIMComError):
    """
    Raised when user input is rejected before any command is sent.

    This indicates:
    - Blank phone number
    - Blank SMS body or recipient
    - Call forwarding enabled without a target number
    """
    pass


class InvalidStateTransitionError(SIMComError):
    """
    Raised when a call action does not apply to the current call state.

    No command is issued and the state is left unchanged.
    """
    pass
