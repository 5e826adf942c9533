"""
Event callback example.

Demonstrates registering callbacks for unsolicited modem events.
"""

import time
from simcomphone import (
    CallerIdAvailable,
    CallWaitingStatus,
    IncomingCallRinging,
    NewStoredMessage,
    SerialAudioPhone,
    UsbPortResolver,
)


def on_ring(event: IncomingCallRinging):
    """Handle RING."""
    print("\n[RING]")


def on_caller_id(event: CallerIdAvailable):
    """Handle +CLIP caller identification."""
    print(f"\n[CALLER ID] {event.number}")


def on_new_message(event: NewStoredMessage):
    """Handle +CMTI new message notification."""
    print(f"\n[NEW MESSAGE] stored at index {event.index}")


def on_call_waiting(event: CallWaitingStatus):
    """Handle +CCWA status."""
    print(f"\n[CALL WAITING] {'enabled' if event.enabled else 'disabled'}")


def main():
    """Main function."""
    print("SIMComPhone - Event Callback Example\n")

    # Finds the SIM7600 command and audio ports by USB VID/PID
    with SerialAudioPhone(port_resolver=UsbPortResolver(), log_urcs=True) as phone:
        print("Registering event callbacks...\n")

        phone.core.register_event_callback(IncomingCallRinging, on_ring)
        phone.core.register_event_callback(CallerIdAvailable, on_caller_id)
        phone.core.register_event_callback(NewStoredMessage, on_new_message)
        phone.core.register_event_callback(CallWaitingStatus, on_call_waiting)

        print("Callbacks registered!")
        print("Waiting for events (Ctrl+C to stop)...\n")

        try:
            # Keep running to receive events
            while True:
                time.sleep(1)

        except KeyboardInterrupt:
            print("\nStopping...")


if __name__ == "__main__":
    main()
