"""
CLI Module

Architectural Intent:
- Command-line interface for drawbridge
- Entry point for all user interactions
- Delegates to application use cases via composition root
- Supports --verbose/--debug flags for log level control

Commands:
- open   <names...> --protocol PROTO... --source CIDR|IP|self...
- close  <names...>
- start  <names...> [--instance-type TYPE]
- stop   <names...>

Exit status: 0 on success, 1 on any drawbridge error, 130 on Ctrl+C.
"""

import argparse
import sys
import traceback
from typing import Optional, Sequence

from drawbridge.application.dtos.dispatch_dtos import DispatchReport
from drawbridge.application.use_cases.parse_command import PROTOCOL_ALIASES, ParseCommand
from drawbridge.composition_root import PROVIDERS, create_container
from drawbridge.domain.entities.command import Command
from drawbridge.domain.exceptions import DrawbridgeError
from drawbridge.domain.value_objects.ingress_rule import format_rules
from drawbridge.infrastructure.config import load_config
from drawbridge.infrastructure.logging import configure_logging, select_level


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="drawbridge",
        description="Open and close firewall ingress, start and stop instances on demand",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose output"
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug output with tracebacks"
    )
    parser.add_argument(
        "--log-json", action="store_true", help="Emit logs as JSON lines"
    )
    parser.add_argument(
        "--config", "-c", default=None, help="Path to config file (default: drawbridge.json)"
    )
    parser.add_argument(
        "--provider", choices=PROVIDERS, default=None, help="Cloud/DNS provider"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    open_parser = subparsers.add_parser(
        "open", help="Allow ingress through the named firewalls"
    )
    open_parser.add_argument("names", nargs="+", help="Firewall names")
    open_parser.add_argument(
        "--protocol",
        "-p",
        action="append",
        required=True,
        help="PORT[-PORT]/tcp|udp or one of: " + ", ".join(PROTOCOL_ALIASES),
    )
    open_parser.add_argument(
        "--source",
        "-s",
        action="append",
        required=True,
        help="CIDR, IP address, or 'self' for this machine's public address",
    )

    close_parser = subparsers.add_parser(
        "close", help="Remove all ingress from the named firewalls"
    )
    close_parser.add_argument("names", nargs="+", help="Firewall names")

    start_parser = subparsers.add_parser(
        "start", help="Start the named instances and bind their hostnames"
    )
    start_parser.add_argument("names", nargs="+", help="Instance names")
    start_parser.add_argument(
        "--instance-type", "-t", default=None, help="Change the instance type first"
    )

    stop_parser = subparsers.add_parser(
        "stop", help="Unbind the named instances' hostnames and stop them"
    )
    stop_parser.add_argument("names", nargs="+", help="Instance names")

    return parser


def parse_command(parser: ParseCommand, args: argparse.Namespace) -> Command:
    if args.command == "open":
        return parser.open(args.names, args.protocol, args.source)
    if args.command == "close":
        return parser.close(args.names)
    if args.command == "start":
        return parser.start(args.names, args.instance_type)
    return parser.stop(args.names)


def print_report(report: DispatchReport) -> None:
    for result in report.firewalls:
        if result.added:
            print(f"[+] {result.firewall}: added {format_rules(result.added)}")
        if result.removed:
            print(f"[+] {result.firewall}: removed {format_rules(result.removed)}")
        if not result.changed:
            print(f"[*] {result.firewall}: already up to date")

    for outcome in report.instances:
        if outcome.running is not None:
            print(
                f"[+] {outcome.name}: running ({outcome.running.instance_type}) "
                f"at {outcome.running.address.value}"
            )
            if outcome.fqdn:
                print(f"[+] {outcome.fqdn} -> {outcome.running.address}")
        else:
            print(f"[+] {outcome.name}: stopped")
            if outcome.fqdn:
                print(f"[+] {outcome.fqdn} unbound")

    for name in report.missing:
        print(f"[-] {name}: not found")


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    verbose = args.verbose or args.debug
    container = None

    try:
        config = load_config(args.config)

        configure_logging(
            level=select_level(args.verbose, args.debug, config.log_level),
            json_format=args.log_json,
        )

        container = create_container(config, provider=args.provider)
        command = parse_command(container.parse_command, args)

        print(f"[*] {args.command}: {', '.join(command.names)}")
        report = container.dispatcher.dispatch(command)
        print_report(report)
    except KeyboardInterrupt:
        print("\n[*] Interrupted.")
        sys.exit(130)
    except DrawbridgeError as e:
        print(f"[-] {e}")
        if verbose:
            traceback.print_exc()
        sys.exit(1)
    finally:
        if container is not None:
            container.telemetry.shutdown()


if __name__ == "__main__":
    main()
