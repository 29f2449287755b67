"""Reusable type definitions for the bridge configuration tooling."""

from .address import (
    EVM_ADDRESS_WIDTH,
    LOCAL_ADDRESS_WIDTH,
    address_to_bytes,
    full_address,
    is_same_address,
    is_zero_address,
    padded_address_bytes,
)
from .base import CamelModel, FrozenModel
from .exceptions import (
    AddressWidthMismatch,
    ConfigurationInvariantViolation,
    InvalidAdapterParams,
    InvalidWireFormat,
    NotFoundOnChain,
    TransactionRejected,
    TruncatedPacket,
    XChainSyncError,
)
from .uint import (
    UINT8_MAX,
    UINT16_MAX,
    UINT64_MAX,
    BasisPoint,
    ChainEndpointId,
    Uint8,
    Uint16,
    Uint64,
)

__all__ = [
    # Core types
    "Uint8",
    "Uint16",
    "Uint64",
    "UINT8_MAX",
    "UINT16_MAX",
    "UINT64_MAX",
    "BasisPoint",
    "ChainEndpointId",
    "CamelModel",
    "FrozenModel",
    # Addresses
    "EVM_ADDRESS_WIDTH",
    "LOCAL_ADDRESS_WIDTH",
    "address_to_bytes",
    "full_address",
    "is_same_address",
    "is_zero_address",
    "padded_address_bytes",
    # Exceptions
    "XChainSyncError",
    "NotFoundOnChain",
    "InvalidWireFormat",
    "TruncatedPacket",
    "InvalidAdapterParams",
    "AddressWidthMismatch",
    "ConfigurationInvariantViolation",
    "TransactionRejected",
]
