"""
Address normalization.

Accounts on the local ledger are 32 bytes wide. Remote chains use their own
width, commonly 20 bytes. Addresses travel as `0x`-prefixed hex strings and
may be written in short form (`0x1`), so every comparison pads first.
"""

from __future__ import annotations

from .exceptions import AddressWidthMismatch

LOCAL_ADDRESS_WIDTH = 32
"""Byte width of an account address on the local ledger."""

EVM_ADDRESS_WIDTH = 20
"""Byte width of an address on EVM-style remote chains."""


def address_to_bytes(address: str | bytes) -> bytes:
    """
    Convert a hex address to raw bytes without padding.

    Odd-length hex (`0x1`) is left-padded with a single zero nibble.
    """
    if isinstance(address, (bytes, bytearray)):
        return bytes(address)
    digits = address.removeprefix("0x").removeprefix("0X")
    if len(digits) % 2:
        digits = "0" + digits
    return bytes.fromhex(digits)


def padded_address_bytes(address: str | bytes, width: int = LOCAL_ADDRESS_WIDTH) -> bytes:
    """
    Left-zero-pad an address to exactly `width` bytes.

    Raises:
        AddressWidthMismatch: If the address is already wider than `width`.
    """
    raw = address_to_bytes(address)
    if len(raw) > width:
        label = address if isinstance(address, str) else "0x" + raw.hex()
        raise AddressWidthMismatch(label, expected=width, actual=len(raw))
    return raw.rjust(width, b"\x00")


def full_address(address: str | bytes, width: int = LOCAL_ADDRESS_WIDTH) -> str:
    """Render an address as lowercase `0x` hex padded to `width` bytes."""
    return "0x" + padded_address_bytes(address, width).hex()


def is_zero_address(address: str | bytes) -> bool:
    """Check whether an address is empty or all zero bytes."""
    return not any(address_to_bytes(address))


def is_same_address(a: str | bytes, b: str | bytes, width: int = LOCAL_ADDRESS_WIDTH) -> bool:
    """
    Compare two addresses after padding both to `width`.

    An address wider than `width` never equals a narrower one.
    """
    try:
        return padded_address_bytes(a, width) == padded_address_bytes(b, width)
    except AddressWidthMismatch:
        return False
