"""Wire codecs for packets, adapter params and bridge payloads."""

from .adapter_params import (
    AdapterParams,
    AdapterParamsTag,
    AirdropAdapterParams,
    DecodedAdapterParams,
    DefaultAdapterParams,
    build_airdrop_adapter_params,
    build_default_adapter_params,
    decode_adapter_params,
    parse_adapter_params,
)
from .packet import (
    Packet,
    compute_guid,
    decode_packet,
    encode_packet,
    hash_packet,
    rebuild_packet_from_event,
)
from .payload import (
    SEND_PAYLOAD_SIZE,
    BridgePacketType,
    SendPayload,
    decode_send_payload,
    encode_send_payload,
)

__all__ = [
    "SEND_PAYLOAD_SIZE",
    "AdapterParams",
    "AdapterParamsTag",
    "AirdropAdapterParams",
    "BridgePacketType",
    "DecodedAdapterParams",
    "DefaultAdapterParams",
    "Packet",
    "SendPayload",
    "build_airdrop_adapter_params",
    "build_default_adapter_params",
    "compute_guid",
    "decode_adapter_params",
    "decode_packet",
    "decode_send_payload",
    "encode_packet",
    "encode_send_payload",
    "hash_packet",
    "parse_adapter_params",
    "rebuild_packet_from_event",
]
