"""
Bridge configuration tooling CLI.

Offline helpers for operators. Nothing here touches a ledger.

Usage::

    python -m xchain_sync packet 0x0000000000000001277c... --dst-width 20
    python -m xchain_sync adapter-params 0x000100000000000249f0
    python -m xchain_sync target profile.yaml --remote 10121 --remote 10143 -o target.yaml

Commands:
    packet           Decode an encoded packet, print its hash, guid and transfer.
    adapter-params   Decode adapter params.
    target           Expand a wiring profile into a target configuration (YAML).
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import yaml
from rich.console import Console
from rich.table import Table

from xchain_sync.codec import (
    SEND_PAYLOAD_SIZE,
    compute_guid,
    decode_adapter_params,
    decode_packet,
    decode_send_payload,
    hash_packet,
)
from xchain_sync.config import WiringProfile, build_target_config
from xchain_sync.log import setup_logging
from xchain_sync.types import XChainSyncError, address_to_bytes

logger = logging.getLogger(__name__)


def _fields_table(title: str, rows: list[tuple[str, str]]) -> Table:
    table = Table(title=title, show_header=False)
    table.add_column("field")
    table.add_column("value")
    for name, value in rows:
        table.add_row(name, value)
    return table


def show_packet(console: Console, encoded: str, dst_width: int) -> None:
    """Print a decoded packet and, when it carries one, its coin transfer."""
    packet = decode_packet(address_to_bytes(encoded), dst_width)
    rows = [
        ("nonce", str(packet.nonce)),
        ("src_chain_id", str(packet.src_chain_id)),
        ("src_address", "0x" + packet.src_address.hex()),
        ("dst_chain_id", str(packet.dst_chain_id)),
        ("dst_address", "0x" + packet.dst_address.hex()),
        ("payload_size", str(len(packet.payload))),
        ("hash", hash_packet(packet)),
        ("guid", compute_guid(packet)),
    ]
    console.print(_fields_table("Packet", rows))

    if len(packet.payload) == SEND_PAYLOAD_SIZE:
        transfer = decode_send_payload(packet.payload)
        console.print(
            _fields_table(
                "Transfer",
                [
                    ("packet_type", str(transfer.packet_type)),
                    ("remote_coin", "0x" + transfer.remote_coin_address.hex()),
                    ("receiver", "0x" + transfer.receiver.hex()),
                    ("amount_sd", str(transfer.amount_sd)),
                    ("unwrap", str(transfer.unwrap).lower()),
                ],
            )
        )


def show_adapter_params(console: Console, encoded: str) -> None:
    """Print decoded adapter params."""
    tag, gas_limit, amount, address = decode_adapter_params(address_to_bytes(encoded))
    rows = [("tag", str(tag)), ("gas_limit", str(gas_limit))]
    if amount:
        rows += [("airdrop_amount", str(amount)), ("airdrop_address", address)]
    console.print(_fields_table("Adapter params", rows))


def write_target(profile_path: Path, remotes: list[int], output: Path | None) -> str:
    """Expand a profile and write the target as YAML, or return it."""
    profile = WiringProfile.from_yaml_file(profile_path)
    target = build_target_config(profile, remotes)
    content = yaml.safe_dump(target.model_dump(mode="json", by_alias=True), sort_keys=False)
    if output is not None:
        output.write_text(content)
        logger.info("Wrote target for %d remotes to %s", len(target.remote_chain_ids), output)
    return content


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="xchain-sync",
        description="Bridge configuration tooling",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    commands = parser.add_subparsers(dest="command", required=True)

    packet = commands.add_parser("packet", help="Decode an encoded packet")
    packet.add_argument("encoded", help="Packet bytes as hex")
    packet.add_argument(
        "--dst-width",
        type=int,
        default=20,
        help="Byte width of destination addresses (default: 20)",
    )

    params = commands.add_parser("adapter-params", help="Decode adapter params")
    params.add_argument("encoded", help="Adapter params as hex")

    target = commands.add_parser("target", help="Expand a wiring profile")
    target.add_argument("profile", type=Path, help="Path to the wiring profile YAML")
    target.add_argument(
        "--remote",
        action="append",
        type=int,
        required=True,
        dest="remotes",
        help="Remote chain endpoint id (can be repeated)",
    )
    target.add_argument("-o", "--output", type=Path, default=None, help="Output YAML path")

    args = parser.parse_args(argv)
    setup_logging(args.verbose, args.no_color)
    console = Console(no_color=args.no_color)

    try:
        if args.command == "packet":
            show_packet(console, args.encoded, args.dst_width)
        elif args.command == "adapter-params":
            show_adapter_params(console, args.encoded)
        else:
            content = write_target(args.profile, args.remotes, args.output)
            if args.output is None:
                console.print(content, markup=False, highlight=False)
    except (XChainSyncError, ValueError, OSError, yaml.YAMLError) as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
