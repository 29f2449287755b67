"""
Fee schedules and quoting.

A message pays three parties:

- The relayer and the oracle, each charging a base fee plus a fee per
  payload byte for the destination chain.
- The protocol treasury, taking basis points of the relayer + oracle total.
- The executor, charging for destination gas and any airdrop, converted to
  local native token through a price ratio.
"""

from __future__ import annotations

from xchain_sync.codec import decode_adapter_params
from xchain_sync.types import BasisPoint, FrozenModel, Uint64

PRICE_RATIO_DENOMINATOR = 10**10
"""Fixed-point denominator of the executor price ratio."""

GAS_LIMIT_SAFETY_BPS = 2000
"""Headroom added on top of a measured gas usage, in basis points."""


class ExecutorFee(FrozenModel):
    """Executor fee schedule towards one destination chain."""

    airdrop_amt_cap: Uint64
    """Maximum native amount the executor will drop on the destination."""

    price_ratio: Uint64
    """Destination to local native price, scaled by 10**10."""

    gas_price: Uint64
    """Destination gas price, in destination native units."""


class SignerFee(FrozenModel):
    """Relayer or oracle fee schedule towards one destination chain."""

    base_fee: Uint64
    """Flat fee per message."""

    fee_per_byte: Uint64 = 0
    """Additional fee per payload byte."""


def quote_executor_fee(fee: ExecutorFee, adapter_params: bytes) -> int:
    """
    Quote the executor fee for a message.

    `((gas_limit * gas_price + airdrop_amount) * price_ratio) // 10**10`.

    Raises:
        InvalidAdapterParams: If the adapter params cannot be decoded.
    """
    _, gas_limit, amount, _ = decode_adapter_params(adapter_params)
    return ((gas_limit * fee.gas_price + amount) * fee.price_ratio) // PRICE_RATIO_DENOMINATOR


def quote_messaging_fee(
    oracle_fee: SignerFee,
    relayer_fee: SignerFee,
    payload_size: int,
    treasury_fee_bps: BasisPoint = 0,
) -> int:
    """Quote the relayer + oracle fee, plus the treasury share of it."""
    total = relayer_fee.base_fee + relayer_fee.fee_per_byte * payload_size
    total += oracle_fee.base_fee + oracle_fee.fee_per_byte * payload_size
    total += (treasury_fee_bps * total) // 10000
    return total


def quote_total_fee(
    oracle_fee: SignerFee,
    relayer_fee: SignerFee,
    executor_fee: ExecutorFee,
    adapter_params: bytes,
    payload_size: int,
    treasury_fee_bps: BasisPoint = 0,
) -> int:
    """Quote everything a sender pays for one message."""
    return quote_messaging_fee(
        oracle_fee, relayer_fee, payload_size, treasury_fee_bps
    ) + quote_executor_fee(executor_fee, adapter_params)


def apply_gas_limit_safety(gas_used: int) -> int:
    """Pad a measured gas usage with the safety margin."""
    return gas_used * (10000 + GAS_LIMIT_SAFETY_BPS) // 10000
