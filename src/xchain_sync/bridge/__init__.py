"""Bridge math: rate limiting and fee quoting."""

from .fees import (
    GAS_LIMIT_SAFETY_BPS,
    ExecutorFee,
    SignerFee,
    apply_gas_limit_safety,
    quote_executor_fee,
    quote_messaging_fee,
    quote_total_fee,
)
from .limiter import (
    DEFAULT_LIMITER_CAP_SD,
    DEFAULT_LIMITER_WINDOW_SEC,
    LimiterReading,
    RateLimiterState,
    amount_ld_to_sd,
    amount_sd_to_ld,
    decayed_sum_sd,
    remaining_capacity,
    remaining_capacity_sd,
)

__all__ = [
    "DEFAULT_LIMITER_CAP_SD",
    "DEFAULT_LIMITER_WINDOW_SEC",
    "GAS_LIMIT_SAFETY_BPS",
    "ExecutorFee",
    "LimiterReading",
    "RateLimiterState",
    "SignerFee",
    "amount_ld_to_sd",
    "amount_sd_to_ld",
    "apply_gas_limit_safety",
    "decayed_sum_sd",
    "quote_executor_fee",
    "quote_messaging_fee",
    "quote_total_fee",
    "remaining_capacity",
    "remaining_capacity_sd",
]
