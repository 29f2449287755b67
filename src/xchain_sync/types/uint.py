"""Unsigned integer aliases for on-chain quantities."""

from typing import Annotated

from pydantic import Field

UINT8_MAX = 2**8
"""The exclusive upper bound of an unsigned 8-bit integer."""

UINT16_MAX = 2**16
"""The exclusive upper bound of an unsigned 16-bit integer."""

UINT64_MAX = 2**64
"""The exclusive upper bound of an unsigned 64-bit integer."""

Uint8 = Annotated[int, Field(ge=0, lt=UINT8_MAX)]
"""A type alias to represent a uint8."""

Uint16 = Annotated[int, Field(ge=0, lt=UINT16_MAX)]
"""A type alias to represent a uint16, the width of a chain endpoint id."""

Uint64 = Annotated[int, Field(ge=0, lt=UINT64_MAX)]
"""A type alias to represent a uint64."""

ChainEndpointId = Uint16
"""
Identifier of a chain and stage pair (for example a testnet of one chain).

Encoded as a big-endian uint16 wherever it appears on the wire.
"""

BasisPoint = Annotated[
    int,
    Field(ge=0, le=10000, description="A value in basis points (1/10000)."),
]
"""
A type alias for basis points.

A basis point (bps) is 1/100th of a percent. 100% = 10,000 bps.
"""
