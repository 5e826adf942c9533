#!/usr/bin/env python3
"""
SMS Operations Example

Demonstrates text-mode SMS functionality:
- Sending SMS
- Reading a message by index
- Listing all stored messages
- Deleting messages
- Receiving new messages (delivered directly or read automatically)

Usage:
    python examples/sms_operations.py /dev/ttyUSB2 /dev/ttyUSB4
"""

import sys
from simcomphone import PortPair, SerialAudioPhone, SmsMessage


def on_message(msg: SmsMessage):
    """
    Callback for received or read messages.

    Args:
        msg: Parsed message; msg.index is None for directly delivered messages
    """
    where = f"stored at index {msg.index}" if msg.is_stored else "delivered directly"
    print(f"\nSMS from {msg.sender} ({where})")
    print(f"   Time: {msg.timestamp}")
    print(f"   {msg.text}\n")


def send_sms_example(phone: SerialAudioPhone):
    """Demonstrate sending SMS."""
    print("\n" + "="*50)
    print("SENDING SMS")
    print("="*50)

    try:
        recipient = input("Enter recipient number (e.g., +1234567890): ").strip()
        message = input("Enter message text: ").strip()

        if recipient and message:
            phone.sms.send_sms(recipient, message)
            print("SMS sent")
        else:
            print("Skipped - no input provided")
    except Exception as e:
        print(f"Failed to send SMS: {e}")


def read_sms_example(phone: SerialAudioPhone):
    """Demonstrate reading one message."""
    index = input("\nEnter message index to read: ").strip()
    if not index:
        print("Skipped")
        return

    try:
        # The message arrives through on_message
        phone.sms.read_message(int(index))
    except ValueError:
        print("Invalid index")
    except Exception as e:
        print(f"Failed to read message: {e}")


def delete_messages_example(phone: SerialAudioPhone):
    """Demonstrate deleting messages."""
    choice = input("\nIndex to delete, or 'all': ").strip()

    try:
        if choice == "all":
            confirm = input("Delete ALL messages? (type 'DELETE ALL'): ").strip()
            if confirm == "DELETE ALL":
                phone.sms.delete_all_messages()
                print("All messages deleted")
            else:
                print("Cancelled")
        elif choice:
            phone.sms.delete_message(int(choice))
            print(f"Message {choice} deleted")
    except Exception as e:
        print(f"Delete failed: {e}")


def main():
    """Main example program."""
    if len(sys.argv) < 3:
        print("Usage: python sms_operations.py <command_port> <audio_port>")
        print("Example: python sms_operations.py /dev/ttyUSB2 /dev/ttyUSB4")
        sys.exit(1)

    phone = SerialAudioPhone(ports=PortPair(sys.argv[1], sys.argv[2]))

    try:
        print("\nStarting phone...")
        phone.sms.on_message(on_message)
        phone.start()
        print("Phone started")

        while True:
            print("\n" + "="*50)
            print("MENU")
            print("="*50)
            print("1. Send SMS")
            print("2. Read SMS")
            print("3. List all messages")
            print("4. Delete messages")
            print("5. Exit")

            choice = input("\nChoice (1-5): ").strip()

            if choice == '1':
                send_sms_example(phone)
            elif choice == '2':
                read_sms_example(phone)
            elif choice == '3':
                phone.sms.read_all_messages()
            elif choice == '4':
                delete_messages_example(phone)
            elif choice == '5':
                break
            else:
                print("Invalid choice")

    except KeyboardInterrupt:
        print("\n\nInterrupted by user")

    except Exception as e:
        print(f"\nError: {e}")

    finally:
        print("\nClosing phone...")
        phone.close()
        print("Done")


if __name__ == "__main__":
    main()
