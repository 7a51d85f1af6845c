"""
Command-line diagnostics for a hashnote deployment.

Commands:
- health: Print the health report (status, version, ledger mode)
- check-rpc: Check that the configured JSON-RPC node answers
- check-balance: Print the ETH balance of an address (default: the sender)

Usage:
    hashnote health
    hashnote check-rpc
    hashnote check-balance [ADDRESS]

Configuration is read from the environment, the same variables the
service uses (BLOCKCHAIN_RPC_URL, BLOCKCHAIN_PRIVATE_KEY, ...).
"""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Coroutine
from typing import Any, TypeVar

from hashnote.bootstrap import create_ledger_client, create_rpc_client
from hashnote.config import AppConfig, load_config
from hashnote.diagnostics import (
    check_balance,
    check_rpc,
    explorer_url,
    health_report,
    sender_address,
)
from hashnote.logs import configure_logging, secret_variants

T = TypeVar("T")


def _run_check(config: AppConfig, check: Coroutine[Any, Any, T]) -> T:
    """Run one async check with log output redacted for the configured key."""
    handler = configure_logging(config.logging.level, secret_variants(config.ledger.private_key))
    try:
        return asyncio.run(check)
    finally:
        logging.getLogger("hashnote").removeHandler(handler)


def cmd_health(args: argparse.Namespace) -> int:
    """
    Print the health report as JSON.

    Returns:
        0 on success, 1 on a configuration error
    """
    try:
        config = load_config()
        ledger = create_ledger_client(config.ledger)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(health_report(config, ledger).to_dict(), indent=2))
    return 0


def cmd_check_rpc(args: argparse.Namespace) -> int:
    """
    Query the latest block and chain id from the configured node.

    Returns:
        0 if the node answered, 1 otherwise
    """
    try:
        config = load_config()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    result = _run_check(config, check_rpc(create_rpc_client(config.ledger)))
    print(f"RPC URL: {result.rpc_url}")
    if not result.reachable:
        print(f"Error: RPC node not reachable: {result.error}", file=sys.stderr)
        return 1

    print(f"Latest block: {result.block_number}")
    if result.chain_id is not None:
        print(f"Chain ID: {result.chain_id} ({result.network_name})")
        if result.chain_id != config.ledger.chain_id:
            print(
                f"Warning: node reports chain id {result.chain_id}, "
                f"configured chain id is {config.ledger.chain_id}",
                file=sys.stderr,
            )
    else:
        print("Chain ID: unknown")
    return 0


def cmd_check_balance(args: argparse.Namespace) -> int:
    """
    Print the balance of ADDRESS, or of the account behind
    BLOCKCHAIN_PRIVATE_KEY when no address is given.

    Returns:
        0 if the balance was read, 1 otherwise
    """
    try:
        config = load_config()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    address = args.address
    if address is None:
        if not config.ledger.private_key:
            print(
                "Error: pass an address or set BLOCKCHAIN_PRIVATE_KEY",
                file=sys.stderr,
            )
            return 1
        try:
            address = sender_address(config.ledger.private_key)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    result = _run_check(config, check_balance(create_rpc_client(config.ledger), address))
    print(f"Address: {result.address}")
    if result.balance_wei is None:
        print(f"Error: could not read balance: {result.error}", file=sys.stderr)
        return 1

    print(f"Balance: {result.balance_eth} ETH ({result.balance_wei} wei)")
    if result.level == "low":
        print("Balance is low; fund this address before anchoring messages.")
    elif result.level == "testing":
        print("Balance is enough for some test transactions.")
    else:
        print("Balance is sufficient.")

    url = explorer_url(config.ledger.network, result.address)
    if url:
        print(f"Explorer: {url}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="hashnote",
        description="hashnote - anchor text messages on an EVM ledger",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    health_parser = subparsers.add_parser(
        "health",
        help="Print the health report",
        description="Print status, version and configured ledger mode as JSON.",
    )
    health_parser.set_defaults(func=cmd_health)

    rpc_parser = subparsers.add_parser(
        "check-rpc",
        help="Check connectivity to the JSON-RPC node",
        description="Query eth_blockNumber and eth_chainId on BLOCKCHAIN_RPC_URL.",
    )
    rpc_parser.set_defaults(func=cmd_check_rpc)

    balance_parser = subparsers.add_parser(
        "check-balance",
        help="Check the ETH balance of an address",
        description=(
            "Query eth_getBalance for ADDRESS. Without ADDRESS, the sender "
            "derived from BLOCKCHAIN_PRIVATE_KEY is checked."
        ),
    )
    balance_parser.add_argument("address", nargs="?", help="Address to check")
    balance_parser.set_defaults(func=cmd_check_balance)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
