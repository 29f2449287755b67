"""
Adapter params encoding and decoding.

Adapter params tell the executor how much gas to forward to the receiving
application and, optionally, how much native token to drop at an address.

Layout by tag::

    tag 1 (default):  tag(2) || gas-limit(8)                               exactly 10 bytes
    tag 2 (airdrop):  tag(2) || gas-limit(8) || amount(8) || address(n)    more than 18 bytes

All integers are big-endian. The airdrop address takes every remaining byte.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import NamedTuple

from xchain_sync.types import UINT64_MAX, InvalidAdapterParams, address_to_bytes

TAG_SIZE = 2
"""Size of the leading tag in bytes."""

DEFAULT_PARAMS_SIZE = 10
"""Exact size of default (tag 1) params."""

AIRDROP_HEADER_SIZE = 18
"""Size of the fixed part of airdrop (tag 2) params, before the address."""


class AdapterParamsTag(IntEnum):
    """Tag in the first two bytes of adapter params."""

    DEFAULT = 1
    AIRDROP = 2


class DecodedAdapterParams(NamedTuple):
    """Flat view of decoded adapter params."""

    tag: int
    """1 for default params, 2 for airdrop params."""

    gas_limit: int
    """Gas forwarded to the receiving application."""

    amount: int
    """Airdropped native amount. 0 for default params."""

    address: str
    """Airdrop receiver as `0x` hex. Empty for default params."""


@dataclass(frozen=True, slots=True)
class DefaultAdapterParams:
    """Gas limit only."""

    gas_limit: int

    def encode(self) -> bytes:
        """Encode as tag 1 params."""
        return build_default_adapter_params(self.gas_limit)


@dataclass(frozen=True, slots=True)
class AirdropAdapterParams:
    """Gas limit plus a native token drop."""

    gas_limit: int
    amount: int
    address: bytes

    def encode(self) -> bytes:
        """Encode as tag 2 params."""
        return build_airdrop_adapter_params(self.gas_limit, self.amount, self.address)


AdapterParams = DefaultAdapterParams | AirdropAdapterParams
"""Either adapter params variant."""


def _check_uint64(name: str, value: int) -> None:
    if not 0 <= value < UINT64_MAX:
        raise ValueError(f"{name} out of uint64 range: {value}")


def build_default_adapter_params(gas_limit: int) -> bytes:
    """Encode default params carrying only a gas limit."""
    _check_uint64("gas_limit", gas_limit)
    return struct.pack(">HQ", AdapterParamsTag.DEFAULT, gas_limit)


def build_airdrop_adapter_params(gas_limit: int, amount: int, address: str | bytes) -> bytes:
    """
    Encode airdrop params.

    A zero airdrop amount encodes as default params instead.
    """
    _check_uint64("gas_limit", gas_limit)
    _check_uint64("amount", amount)
    if amount == 0:
        return build_default_adapter_params(gas_limit)
    header = struct.pack(">HQQ", AdapterParamsTag.AIRDROP, gas_limit, amount)
    return header + address_to_bytes(address)


def decode_adapter_params(data: bytes) -> DecodedAdapterParams:
    """
    Decode adapter params into `(tag, gas_limit, amount, address)`.

    Raises:
        InvalidAdapterParams: On an unknown tag, or a length that does not
            match the tag.
    """
    if len(data) < TAG_SIZE:
        raise InvalidAdapterParams("missing tag", length=len(data))

    (tag,) = struct.unpack(">H", data[:TAG_SIZE])

    if tag == AdapterParamsTag.DEFAULT:
        if len(data) != DEFAULT_PARAMS_SIZE:
            raise InvalidAdapterParams(
                f"tag 1 must be {DEFAULT_PARAMS_SIZE} bytes, got {len(data)}",
                tag=tag,
                length=len(data),
            )
        (gas_limit,) = struct.unpack(">Q", data[TAG_SIZE:DEFAULT_PARAMS_SIZE])
        return DecodedAdapterParams(tag, gas_limit, 0, "")

    if tag == AdapterParamsTag.AIRDROP:
        if len(data) <= AIRDROP_HEADER_SIZE:
            raise InvalidAdapterParams(
                f"tag 2 must be longer than {AIRDROP_HEADER_SIZE} bytes, got {len(data)}",
                tag=tag,
                length=len(data),
            )
        gas_limit, amount = struct.unpack(">QQ", data[TAG_SIZE:AIRDROP_HEADER_SIZE])
        address = "0x" + data[AIRDROP_HEADER_SIZE:].hex()
        return DecodedAdapterParams(tag, gas_limit, amount, address)

    raise InvalidAdapterParams(f"unknown tag {tag}", tag=tag, length=len(data))


def parse_adapter_params(data: bytes) -> AdapterParams:
    """Decode adapter params into their variant object."""
    decoded = decode_adapter_params(data)
    if decoded.tag == AdapterParamsTag.DEFAULT:
        return DefaultAdapterParams(gas_limit=decoded.gas_limit)
    return AirdropAdapterParams(
        gas_limit=decoded.gas_limit,
        amount=decoded.amount,
        address=address_to_bytes(decoded.address),
    )
