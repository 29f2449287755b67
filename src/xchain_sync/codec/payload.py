"""
Bridge send payload decoding.

A coin transfer travels as a fixed 74 byte payload::

    payload = packet-type(1) || remote-coin(32) || receiver(32) || amount-sd(8) || unwrap(1)

The amount is in shared decimals (see `xchain_sync.bridge.limiter`).
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum

from xchain_sync.types import InvalidWireFormat

SEND_PAYLOAD_SIZE = 74
"""Exact size of a send payload in bytes."""


class BridgePacketType(IntEnum):
    """Packet types understood by the coin bridge."""

    RECEIVE = 0
    SEND = 1


@dataclass(frozen=True, slots=True)
class SendPayload:
    """Decoded coin transfer."""

    packet_type: int
    remote_coin_address: bytes
    receiver: bytes
    amount_sd: int
    unwrap: bool


def decode_send_payload(payload: bytes) -> SendPayload:
    """
    Decode a coin transfer payload.

    Raises:
        InvalidWireFormat: If the payload is not exactly 74 bytes.
    """
    if len(payload) != SEND_PAYLOAD_SIZE:
        raise InvalidWireFormat(
            f"Send payload must be {SEND_PAYLOAD_SIZE} bytes, got {len(payload)}"
        )
    packet_type, remote_coin, receiver, amount_sd, unwrap = struct.unpack(">B32s32sQB", payload)
    return SendPayload(
        packet_type=packet_type,
        remote_coin_address=remote_coin,
        receiver=receiver,
        amount_sd=amount_sd,
        unwrap=unwrap != 0,
    )


def encode_send_payload(payload: SendPayload) -> bytes:
    """Encode a coin transfer payload."""
    return struct.pack(
        ">B32s32sQB",
        payload.packet_type,
        payload.remote_coin_address.rjust(32, b"\x00"),
        payload.receiver.rjust(32, b"\x00"),
        payload.amount_sd,
        int(payload.unwrap),
    )
