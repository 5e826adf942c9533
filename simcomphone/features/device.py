"""
Device configuration manager.

Handles one-time voice setup: caller ID presentation, echo cancellation
and audio gains.
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core import ModemCore

logger = logging.getLogger(__name__)


class DeviceManager:
    """
    Manages device-level voice configuration.

    The default values are tuned for a SIM7600 with a headset on the host.
    """

    def __init__(
        self,
        modem_core: "ModemCore",
        echo_cancellation: int = 7,
        echo_wideband: str = "0x0800",
        mic_gain: int = 5,
        output_gain: int = 6,
        noise_suppression: str = "0x1000"
    ) -> None:
        """
        Initialize device manager.

        Args:
            modem_core: ModemCore instance for AT command execution
            echo_cancellation: AT+CECM echo cancellation mode
            echo_wideband: AT+CECWB wideband echo canceller parameters
            mic_gain: AT+CMICGAIN microphone gain level
            output_gain: AT+COUTGAIN speaker gain level
            noise_suppression: AT+CNSN noise suppression parameters
        """
        self.modem = modem_core
        self.echo_cancellation = echo_cancellation
        self.echo_wideband = echo_wideband
        self.mic_gain = mic_gain
        self.output_gain = output_gain
        self.noise_suppression = noise_suppression

        logger.debug("Initialized DeviceManager")

    def set_caller_id(self, enable: bool = True) -> None:
        """Enable or disable +CLIP caller ID presentation."""
        logger.info(f"Caller ID presentation {'enabled' if enable else 'disabled'}")
        self.modem.send_at(f"AT+CLIP={1 if enable else 0}")

    def configure_voice(self) -> None:
        """
        Apply caller ID and echo/gain settings.

        Example:

        .. code-block:: python

            phone.device.configure_voice()
        """
        logger.info("Configuring voice settings")
        self.set_caller_id(True)
        self.modem.send_at(f"AT+CECM={self.echo_cancellation}")
        self.modem.send_at(f"AT+CECWB={self.echo_wideband}")
        self.modem.send_at(f"AT+CMICGAIN={self.mic_gain}")
        self.modem.send_at(f"AT+COUTGAIN={self.output_gain}")
        self.modem.send_at(f"AT+CNSN={self.noise_suppression}")
