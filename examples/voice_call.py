"""
Voice call example.

Demonstrates dialing out, answering incoming calls and hanging up.
Call audio is relayed between the modem and the default sound card.
"""

import sys
import time
from simcomphone import PortPair, SerialAudioPhone, SIMComError

# Replace with your serial ports
COMMAND_PORT = "/dev/ttyUSB2"
AUDIO_PORT = "/dev/ttyUSB4"


def on_state_change(state):
    """Print call state changes."""
    if state.is_ringing:
        print(f"\nRinging! Caller: {state.caller_number or 'unknown'}")
    elif state.is_active:
        print("\nCall active, audio relay running")
    else:
        print("\nCall ended")


def main():
    """Main function."""
    print("SIMComPhone - Voice Call Example\n")

    number = sys.argv[1] if len(sys.argv) > 1 else None

    # Connect using context manager
    # This automatically starts and closes the phone
    with SerialAudioPhone(ports=PortPair(COMMAND_PORT, AUDIO_PORT)) as phone:
        phone.calls.add_listener(on_state_change)

        try:
            if number:
                print(f"Dialing {number}...")
                phone.calls.dial(number)
                input("Press Enter to hang up\n")
                if phone.state.is_active:
                    phone.calls.end_call()
            else:
                print("Waiting for an incoming call (Ctrl+C to stop)...")
                while not phone.state.is_ringing:
                    time.sleep(0.2)
                phone.calls.answer()
                input("Press Enter to hang up\n")
                if phone.state.is_active:
                    phone.calls.end_call()

        except SIMComError as e:
            print(f"Call error: {e}")
        except KeyboardInterrupt:
            print("\nStopping...")

    print("\nPhone closed.")


if __name__ == "__main__":
    main()
