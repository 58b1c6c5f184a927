"""
Command-line entry point for wifiwand.
"""

import argparse
import json
import sys
from typing import Callable, List, Optional

from wifiwand.client import WifiClient
from wifiwand.config import load_config, load_dns_test_domains, load_tcp_test_endpoints, load_timing_config
from wifiwand.errors import WifiWandError
from wifiwand.logging import configure_logging, get_logger
from wifiwand.services.command_executor import OsCommandError
from wifiwand.services.connectivity_tester import NetworkConnectivityTester
from wifiwand.services.status_waiter import TARGET_ALIASES, WAIT_TARGETS
from wifiwand.wifi.nm_model import NmcliModel

logger = get_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wifiwand", description="Manage WiFi from the command line.")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output to stderr")
    parser.add_argument("--config", help="path to a YAML config file")
    parser.add_argument("--log-file", help="also write logs to this file")
    parser.add_argument("--interface", help="WiFi interface to use (default: detected)")

    sub = parser.add_subparsers(dest="command", required=True)

    connect = sub.add_parser("connect", help="connect to a network")
    connect.add_argument("network_name")
    connect.add_argument("password", nargs="?", default=None,
                         help="password; omit to use the saved one, pass '' for an open network")

    till = sub.add_parser("till", help="wait until WiFi reaches a state")
    till.add_argument("target", choices=list(WAIT_TARGETS) + list(TARGET_ALIASES))
    till.add_argument("--timeout", type=float, default=None, help="seconds to wait (default: forever)")
    till.add_argument("--interval", type=float, default=None, help="seconds between checks")

    sub.add_parser("ci", help="check internet connectivity")
    sub.add_parser("info", help="print WiFi and internet information as JSON")
    sub.add_parser("network", help="print the connected network name")
    sub.add_parser("on", help="turn WiFi on")
    sub.add_parser("off", help="turn WiFi off")
    sub.add_parser("cycle", help="turn WiFi off and then on again")
    sub.add_parser("disconnect", help="disconnect from the current network")
    sub.add_parser("pref_nets", help="list saved (preferred) networks")
    password = sub.add_parser("password", help="print the saved password of a preferred network")
    password.add_argument("network_name")
    return parser


def create_client(args: argparse.Namespace) -> WifiClient:
    cfg = load_config(args.config)
    timing = load_timing_config(cfg)
    tester = NetworkConnectivityTester(
        timing,
        tcp_endpoints=load_tcp_test_endpoints(cfg),
        dns_domains=load_dns_test_domains(cfg),
    )
    model = NmcliModel(wifi_interface=args.interface, timing=timing).init()
    return WifiClient(model, timing=timing, connectivity_tester=tester)


def run_command(client: WifiClient, args: argparse.Namespace, out=None) -> int:
    out = out or sys.stdout
    if args.command == "connect":
        client.connect(args.network_name, args.password)
        suffix = " (using saved password)" if client.last_connection_used_saved_password() else ""
        print(f"Connected to {args.network_name}{suffix}", file=out)
    elif args.command == "till":
        client.till(args.target, timeout=args.timeout, poll_interval=args.interval)
    elif args.command == "ci":
        connected = client.connected_to_internet()
        print("yes" if connected else "no", file=out)
        return 0 if connected else 1
    elif args.command == "info":
        print(json.dumps(client.wifi_info(), indent=2, default=str), file=out)
    elif args.command == "network":
        print(client.connected_network_name() or "", file=out)
    elif args.command == "on":
        client.wifi_on()
    elif args.command == "off":
        client.wifi_off()
    elif args.command == "cycle":
        client.cycle_network()
    elif args.command == "disconnect":
        client.disconnect()
    elif args.command == "pref_nets":
        for name in client.preferred_network_names():
            print(name, file=out)
    elif args.command == "password":
        print(client.preferred_network_password(args.network_name) or "", file=out)
    return 0


def main(argv: Optional[List[str]] = None,
         client_factory: Callable[[argparse.Namespace], WifiClient] = create_client) -> int:
    """wifiwand entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(
        log_level="DEBUG" if args.verbose else "WARNING",
        log_file=args.log_file)

    try:
        client = client_factory(args)
        return run_command(client, args)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130
    except (WifiWandError, OsCommandError) as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.debug("Error details", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
