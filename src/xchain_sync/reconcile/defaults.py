"""
Fallback values for settings that are absent on chain.

A setting that was never written reads as not found. For most settings
that simply means "unset" and the reader substitutes the value below, so
the differencer sees a difference and plans a write. Settings marked
`REQUIRED` only exist once the owning module is deployed; their absence
aborts the run.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Final

from xchain_sync.bridge import (
    DEFAULT_LIMITER_CAP_SD,
    DEFAULT_LIMITER_WINDOW_SEC,
    ExecutorFee,
    RateLimiterState,
    SignerFee,
)
from xchain_sync.codec import build_default_adapter_params
from xchain_sync.config import AppConfig, ExecutorRef, LibraryVersion


class _Required:
    """Marker for settings without a fallback."""

    def __repr__(self) -> str:
        return "REQUIRED"


REQUIRED: Final = _Required()
"""Absence of this setting is fatal."""


class ReadField(StrEnum):
    """Every setting the state reader can fetch."""

    CHAIN_ADDRESS_SIZE = "chain_address_size"
    DEFAULT_APP_CONFIG = "default_app_config"
    DEFAULT_SEND_VERSION = "default_send_version"
    DEFAULT_RECEIVE_VERSION = "default_receive_version"
    DEFAULT_EXECUTOR = "default_executor"
    DEFAULT_ADAPTER_PARAMS = "default_adapter_params"
    EXECUTOR_REGISTERED = "executor_registered"
    EXECUTOR_FEE = "executor_fee"
    SIGNER_REGISTERED = "signer_registered"
    SIGNER_FEE = "signer_fee"
    ORACLE_VALIDATORS = "oracle_validators"
    ORACLE_THRESHOLD = "oracle_threshold"
    CUSTOM_ADAPTER_PARAMS = "custom_adapter_params"
    REMOTE_BRIDGE = "remote_bridge"
    MIN_DST_GAS = "min_dst_gas"
    COIN_REGISTERED = "coin_registered"
    LD2SD_RATE = "ld2sd_rate"
    COIN_LIMITER = "coin_limiter"
    REMOTE_COIN = "remote_coin"
    LEDGER_TIMESTAMP = "ledger_timestamp"


FIELD_DEFAULTS: Final[dict[ReadField, Any]] = {
    ReadField.CHAIN_ADDRESS_SIZE: 0,
    ReadField.DEFAULT_APP_CONFIG: AppConfig(
        oracle="",
        relayer="",
        inbound_confirmations=0,
        outbound_confirmations=0,
    ),
    ReadField.DEFAULT_SEND_VERSION: LibraryVersion(major=0, minor=0),
    ReadField.DEFAULT_RECEIVE_VERSION: LibraryVersion(major=0, minor=0),
    ReadField.DEFAULT_EXECUTOR: ExecutorRef(version=0, address=""),
    ReadField.DEFAULT_ADAPTER_PARAMS: build_default_adapter_params(0),
    ReadField.EXECUTOR_REGISTERED: False,
    ReadField.EXECUTOR_FEE: ExecutorFee(airdrop_amt_cap=0, price_ratio=0, gas_price=0),
    ReadField.SIGNER_REGISTERED: False,
    ReadField.SIGNER_FEE: SignerFee(base_fee=0, fee_per_byte=0),
    ReadField.ORACLE_VALIDATORS: REQUIRED,
    ReadField.ORACLE_THRESHOLD: REQUIRED,
    ReadField.CUSTOM_ADAPTER_PARAMS: REQUIRED,
    ReadField.REMOTE_BRIDGE: b"",
    ReadField.MIN_DST_GAS: 0,
    ReadField.COIN_REGISTERED: False,
    ReadField.LD2SD_RATE: REQUIRED,
    ReadField.COIN_LIMITER: RateLimiterState(
        enabled=False,
        cap_sd=DEFAULT_LIMITER_CAP_SD,
        window_sec=DEFAULT_LIMITER_WINDOW_SEC,
    ),
    ReadField.REMOTE_COIN: None,
    ReadField.LEDGER_TIMESTAMP: REQUIRED,
}
"""One fallback per setting. Never duplicate these at call sites."""
