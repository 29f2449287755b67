"""
Cross-chain packet encoding, hashing and decoding.

Packet wire layout (no length prefixes, no padding)::

    packet = nonce || src-chain-id || src-address || dst-chain-id || dst-address || payload
    nonce = 8 bytes (big-endian)
    src-chain-id = 2 bytes (big-endian)
    src-address = raw bytes (32 on the local ledger)
    dst-chain-id = 2 bytes (big-endian)
    dst-address = raw bytes (width depends on the destination chain)
    payload = remaining bytes

Address fields carry no length, so a decoder must know both widths. The
source width is fixed for packets emitted by the local ledger. The
destination width is resolved from the destination chain id.
"""

from __future__ import annotations

import hashlib
import struct
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from xchain_sync.types import LOCAL_ADDRESS_WIDTH, UINT16_MAX, UINT64_MAX, TruncatedPacket

NONCE_SIZE = 8
"""Size of the nonce field in bytes."""

CHAIN_ID_SIZE = 2
"""Size of a chain endpoint id field in bytes."""

AddressWidthResolver = Callable[[int], int]
"""Maps a destination chain id to the byte width of addresses on that chain."""


@dataclass(frozen=True, slots=True)
class Packet:
    """A message travelling between two chains."""

    nonce: int
    """Per-path sequence number. uint64."""

    src_chain_id: int
    """Endpoint id of the sending chain. uint16."""

    src_address: bytes
    """Sending application address, raw bytes."""

    dst_chain_id: int
    """Endpoint id of the receiving chain. uint16."""

    dst_address: bytes
    """Receiving application address, raw bytes."""

    payload: bytes
    """Opaque application payload."""

    def __post_init__(self) -> None:
        """Reject values that do not fit their wire width."""
        if not 0 <= self.nonce < UINT64_MAX:
            raise ValueError(f"Nonce out of uint64 range: {self.nonce}")
        for name in ("src_chain_id", "dst_chain_id"):
            value = getattr(self, name)
            if not 0 <= value < UINT16_MAX:
                raise ValueError(f"{name} out of uint16 range: {value}")


def _encode_header(packet: Packet) -> bytes:
    return (
        struct.pack(">QH", packet.nonce, packet.src_chain_id)
        + packet.src_address
        + struct.pack(">H", packet.dst_chain_id)
        + packet.dst_address
    )


def encode_packet(packet: Packet) -> bytes:
    """Encode a packet into its canonical byte form."""
    return _encode_header(packet) + packet.payload


def hash_packet(packet: Packet) -> str:
    """
    Hash a packet as lowercase hex SHA3-256 of its encoding.

    Any change to any field (including the payload) changes the hash.
    """
    return hashlib.sha3_256(encode_packet(packet)).hexdigest()


def compute_guid(packet: Packet) -> str:
    """
    Compute the globally unique id of a packet.

    Same as `hash_packet` over the encoding with the payload left out, so the
    id only depends on the path and nonce.
    """
    return hashlib.sha3_256(_encode_header(packet)).hexdigest()


def _take(data: bytes, offset: int, size: int, field: str) -> bytes:
    available = max(len(data) - offset, 0)
    if available < size:
        raise TruncatedPacket(field, size, available)
    return data[offset : offset + size]


def decode_packet(
    data: bytes,
    dst_address_width: int | AddressWidthResolver,
    *,
    src_address_width: int = LOCAL_ADDRESS_WIDTH,
) -> Packet:
    """
    Decode a packet from bytes.

    Args:
        data: Encoded packet.
        dst_address_width: Fixed width of the destination address, or a
            resolver called with the parsed destination chain id.
        src_address_width: Width of the source address. Packets emitted by
            the local ledger always carry a 32 byte source.

    Returns:
        The decoded packet. Whatever follows the destination address is the payload.

    Raises:
        TruncatedPacket: If any fixed-width field is incomplete.
    """
    offset = 0
    (nonce,) = struct.unpack(">Q", _take(data, offset, NONCE_SIZE, "nonce"))
    offset += NONCE_SIZE

    (src_chain_id,) = struct.unpack(">H", _take(data, offset, CHAIN_ID_SIZE, "src_chain_id"))
    offset += CHAIN_ID_SIZE

    src_address = _take(data, offset, src_address_width, "src_address")
    offset += src_address_width

    (dst_chain_id,) = struct.unpack(">H", _take(data, offset, CHAIN_ID_SIZE, "dst_chain_id"))
    offset += CHAIN_ID_SIZE

    if callable(dst_address_width):
        width = dst_address_width(dst_chain_id)
    else:
        width = dst_address_width
    dst_address = _take(data, offset, width, "dst_address")
    offset += width

    return Packet(
        nonce=nonce,
        src_chain_id=src_chain_id,
        src_address=bytes(src_address),
        dst_chain_id=dst_chain_id,
        dst_address=bytes(dst_address),
        payload=bytes(data[offset:]),
    )


def rebuild_packet_from_event(
    event_data: Mapping[str, Any],
    dst_address_width: int | AddressWidthResolver,
) -> Packet:
    """
    Rebuild a packet from the data of a captured send event.

    The event carries the encoded packet as hex under `encoded_packet`.
    """
    encoded = bytes.fromhex(str(event_data["encoded_packet"]).removeprefix("0x"))
    return decode_packet(encoded, dst_address_width)
