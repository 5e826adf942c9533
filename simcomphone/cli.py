"""
CLI REPL (Read-Eval-Print Loop) for SIMComPhone.

Provides an interactive telephone: dial, answer, hang up, SMS and
supplementary service toggles.
"""

import sys
import logging
from typing import Optional

from .phone import SerialAudioPhone
from .version import __version__
from .core import UsbPortResolver
from .exceptions import SIMComError
from .types import CallForwardReason, CallState, PortPair, SmsMessage


class PhoneCLI:
    """Interactive phone REPL."""

    def __init__(
        self,
        ports: Optional[PortPair] = None,
        baudrate: int = 115200,
        echo_suppression: float = 0.5,
        log_urcs: bool = True
    ):
        """
        Initialize CLI.

        Args:
            ports: Command and audio ports, or None to detect them over USB
            baudrate: Baud rate
            echo_suppression: Microphone gain while the speaker plays
            log_urcs: Display incoming calls and messages in real-time
        """
        self.ports = ports
        self.baudrate = baudrate
        self.echo_suppression = echo_suppression
        self.log_urcs = log_urcs
        self.phone: Optional[SerialAudioPhone] = None

    def _setup_event_display(self):
        """Set up call and SMS display callbacks."""
        def display_state(state: CallState):
            if state.is_ringing:
                caller = state.caller_number or "unknown caller"
                print(f"\n[CALL] Incoming call from {caller}. Type 'a' to answer or 'h' to reject")
            elif state.is_active:
                print("\n[CALL] Call active")
            else:
                print("\n[CALL] Call ended")
            print("> ", end="", flush=True)

        def display_sms(msg: SmsMessage):
            print("\n=== New SMS ===")
            print(f"Index: {msg.index}, From: {msg.sender}, Time: {msg.timestamp}")
            print(f"Text: {msg.text}")
            print("> ", end="", flush=True)

        if self.log_urcs:
            self.phone.calls.add_listener(display_state)
            self.phone.sms.on_message(display_sms)

    def run(self):
        """Run the REPL."""
        print(f"SIMComPhone CLI v{__version__}")
        print("Type 'help' for commands, 'quit' to exit\n")

        try:
            if self.ports is None:
                print("Detecting modem ports over USB...")
                resolver = UsbPortResolver()
            else:
                resolver = None
                print(f"Connecting to {self.ports.command_port} (audio {self.ports.audio_port})...")

            self.phone = SerialAudioPhone(
                ports=self.ports,
                port_resolver=resolver,
                baudrate=self.baudrate,
                echo_suppression=self.echo_suppression
            )
            self._setup_event_display()
            self.phone.start()

            print("Connected! Ready.\n")

            # REPL loop
            while True:
                try:
                    line = input("> ").strip()

                    if not line:
                        continue

                    cmd, _, arg = line.partition(" ")
                    cmd = cmd.lower()
                    arg = arg.strip()

                    if cmd in ("quit", "exit", "q"):
                        break
                    elif cmd == "help":
                        self._print_help()
                    elif cmd == "clear":
                        print("\033[2J\033[H", end="")  # Clear screen
                    else:
                        self._dispatch(cmd, arg)

                except KeyboardInterrupt:
                    print("\nUse 'quit' to exit")
                    continue
                except EOFError:
                    break

        except SIMComError as e:
            print(f"\nError: {e}")
            return 1
        except Exception as e:
            print(f"\nUnexpected error: {e}")
            logging.exception("CLI error")
            return 1
        finally:
            if self.phone:
                print("\nClosing connection...")
                self.phone.close()
                print("Goodbye!")

        return 0

    def _dispatch(self, cmd: str, arg: str):
        """Run one REPL command."""
        try:
            if cmd in ("d", "dial"):
                number = arg or input("Enter number to dial: ").strip()
                self.phone.calls.dial(number)
            elif cmd in ("a", "answer"):
                self.phone.calls.answer()
            elif cmd in ("h", "hangup"):
                self.phone.calls.end_call()
            elif cmd == "sms":
                self._sms_command(arg)
            elif cmd in ("w", "waiting"):
                self._call_waiting_command(arg)
            elif cmd in ("f", "forward"):
                self._call_forwarding_command(arg)
            elif cmd == "status":
                self._show_status()
            elif cmd == "events":
                self._show_events()
            elif cmd.startswith("at"):
                self.phone.send_raw_at(f"{cmd.upper()} {arg}".strip())
            else:
                print(f"Unknown command: {cmd}. Type 'help' for commands")

        except SIMComError as e:
            print(f"Error: {e}")
        except Exception as e:
            print(f"Unexpected error: {e}")

    def _sms_command(self, arg: str):
        """Handle 'sms send|read|delete'."""
        action, _, rest = arg.partition(" ")
        action = action.lower()

        if action == "send":
            recipient = rest.strip() or input("Enter recipient: ").strip()
            text = input("Enter SMS text: ")
            self.phone.sms.send_sms(recipient, text)
            print("SMS sent")
        elif action == "read":
            if rest.strip():
                self.phone.sms.read_message(int(rest))
            else:
                self.phone.sms.read_all_messages()
        elif action == "delete":
            if rest.strip() == "all":
                self.phone.sms.delete_all_messages()
            else:
                self.phone.sms.delete_message(int(rest))
        else:
            print("Usage: sms send [number] | sms read [index] | sms delete <index|all>")

    def _call_waiting_command(self, arg: str):
        """Handle 'waiting [toggle|query]'."""
        services = self.phone.services
        if arg in ("", "toggle"):
            services.set_call_waiting(not services.call_waiting_enabled)
        elif arg == "query":
            services.query_call_waiting()
            state = "ENABLED" if services.call_waiting_enabled else "DISABLED"
            print(f"Call waiting: {state}")
        else:
            print("Usage: waiting [toggle|query]")

    def _call_forwarding_command(self, arg: str):
        """Handle 'forward <reason> on <number>' and 'forward <reason> off'."""
        parts = arg.split()
        if len(parts) < 2 or parts[1] not in ("on", "off"):
            reasons = ", ".join(r.name.lower() for r in CallForwardReason)
            print(f"Usage: forward <reason> on <number> | forward <reason> off  (reasons: {reasons})")
            return

        try:
            reason = CallForwardReason[parts[0].upper()]
        except KeyError:
            print(f"Unknown forwarding reason: {parts[0]}")
            return

        enable = parts[1] == "on"
        number = parts[2] if len(parts) > 2 else None
        if enable and number is None:
            number = input("Enter forward-to number: ").strip()
        self.phone.services.set_call_forwarding(reason, enable, number)

    def _print_help(self):
        """Print help message."""
        print("""
Available commands:
  d/dial [number]              - Dial a number
  a/answer                     - Answer the ringing call
  h/hangup                     - Reject the ringing call or hang up
  sms send [number]            - Send an SMS (text is prompted)
  sms read [index]             - Read one message, or all messages
  sms delete <index|all>       - Delete messages
  w/waiting [toggle|query]     - Toggle or query call waiting
  f/forward <reason> on <num>  - Enable call forwarding
  f/forward <reason> off       - Disable call forwarding
  status                       - Show call and service status
  events                       - Show recent modem events
  AT...                        - Send a raw AT command
  help                         - Show this help message
  clear                        - Clear screen
  quit/exit/q                  - Exit CLI

Forwarding reasons: unconditional, busy, no_reply, not_reachable, all_forwarding, all_conditional
        """)

    def _show_status(self):
        """Show call and service status."""
        state = self.phone.state
        print(f"\nCall: {state.status.value}")
        if state.caller_number:
            print(f"Caller: {state.caller_number}")
        print(f"Call waiting: {'ENABLED' if self.phone.services.call_waiting_enabled else 'DISABLED'}")

        relay = self.phone.relay
        if relay is None:
            print("Audio: unavailable")
        else:
            print(f"Audio relay: {'running' if relay.is_running else 'stopped'}")
            print(f"Frames sent: {relay.frames_sent}, I/O errors: {relay.io_errors}")

    def _show_events(self):
        """Show recent unsolicited events."""
        events = self.phone.core.dispatcher.recent_events()[-20:]
        print(f"\nRecent events: {len(events)}")
        for event in events:
            print(f"  - {event}")


def main():
    """Main entry point for CLI."""
    import argparse

    parser = argparse.ArgumentParser(
        description="SIMComPhone CLI - Use a SIMCom modem as a telephone",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  simcom-phone
  simcom-phone --command-port /dev/ttyUSB2 --audio-port /dev/ttyUSB4
  simcom-phone --echo-suppression 0.3 -v
        """
    )

    parser.add_argument(
        "--command-port",
        help="AT command port (e.g., /dev/ttyUSB2, COM3). Detected over USB if omitted"
    )
    parser.add_argument(
        "--audio-port",
        help="PCM audio port (e.g., /dev/ttyUSB4, COM5). Detected over USB if omitted"
    )
    parser.add_argument(
        "-b", "--baudrate",
        type=int,
        default=115200,
        help="Baud rate (default: 115200)"
    )
    parser.add_argument(
        "--echo-suppression",
        type=float,
        default=0.5,
        help="Microphone gain while the speaker plays, 0 < g <= 1 (default: 0.5)"
    )
    parser.add_argument(
        "--no-urcs",
        action="store_true",
        help="Disable call and SMS display"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args()

    if bool(args.command_port) != bool(args.audio_port):
        parser.error("--command-port and --audio-port must be given together")

    # Setup logging
    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
    else:
        logging.basicConfig(
            level=logging.WARNING,
            format='%(levelname)s: %(message)s'
        )

    ports = None
    if args.command_port:
        ports = PortPair(args.command_port, args.audio_port)

    # Run CLI
    cli = PhoneCLI(
        ports=ports,
        baudrate=args.baudrate,
        echo_suppression=args.echo_suppression,
        log_urcs=not args.no_urcs
    )

    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
