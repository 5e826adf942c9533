"""
Call services example.

Demonstrates call waiting and call forwarding configuration.
"""

import sys
from simcomphone import CallForwardReason, PortPair, SerialAudioPhone

# Replace with your serial ports
COMMAND_PORT = "/dev/ttyUSB2"
AUDIO_PORT = "/dev/ttyUSB4"


def main():
    """Main function."""
    print("SIMComPhone - Call Services Example\n")

    forward_to = sys.argv[1] if len(sys.argv) > 1 else None

    with SerialAudioPhone(ports=PortPair(COMMAND_PORT, AUDIO_PORT)) as phone:
        print("=== Call Waiting ===")
        phone.services.query_call_waiting()
        enabled = phone.services.call_waiting_enabled
        print(f"Call waiting: {'ENABLED' if enabled else 'DISABLED'}")

        print("Toggling call waiting...")
        phone.services.set_call_waiting(not enabled)

        print("\n=== Call Forwarding ===")
        if forward_to:
            print(f"Forwarding calls to {forward_to} when busy")
            phone.services.set_call_forwarding(CallForwardReason.BUSY, True, forward_to)
        else:
            print("Disabling forwarding when busy")
            phone.services.set_call_forwarding(CallForwardReason.BUSY, False)

    print("\nPhone closed.")


if __name__ == "__main__":
    main()
