"""
Decaying window rate limiter.

The bridge caps how much value can leave within a time window. Each
outbound transfer adds its amount, in shared decimals, to `sum_sd`. Every
full window that passes since `t0_sec` halves the sum, so old traffic fades
out geometrically rather than dropping off a cliff.

Amounts come in two scales:

- Shared decimals (SD): the common precision all chains agree on.
- Local decimals (LD): the coin's precision on the local ledger.

`amount_ld = amount_sd * ld2sd_rate`.
"""

from __future__ import annotations

from dataclasses import dataclass

from xchain_sync.types import FrozenModel, Uint64

DEFAULT_LIMITER_CAP_SD = 1_000_000_000_000
"""Cap applied when a coin is registered without an explicit one."""

DEFAULT_LIMITER_WINDOW_SEC = 3600 * 4
"""Default decay window: four hours."""


class RateLimiterState(FrozenModel):
    """On-chain limiter of one coin."""

    enabled: bool
    """Whether transfers are limited at all."""

    cap_sd: Uint64
    """Maximum outstanding amount within a window, in shared decimals."""

    window_sec: Uint64
    """Length of one decay window in seconds."""

    t0_sec: Uint64 = 0
    """Start of the current accounting period."""

    sum_sd: Uint64 = 0
    """Accumulated amount at `t0_sec`, in shared decimals."""


@dataclass(frozen=True, slots=True)
class LimiterReading:
    """Result of evaluating a limiter at a point in time."""

    limited: bool
    """False when the limiter is disabled."""

    amount_ld: int
    """Remaining capacity in local decimals. 0 when the limiter is disabled."""


def decayed_sum_sd(state: RateLimiterState, now_sec: int) -> int:
    """
    Compute the effective outstanding amount at `now_sec`.

    The sum is halved once per full window elapsed since `t0_sec`. A clock
    reading before `t0_sec` counts as zero windows.
    """
    if state.window_sec == 0:
        return state.sum_sd

    elapsed = max(0, (now_sec - state.t0_sec) // state.window_sec)

    # Shifting past the bit length is zero already; skip the huge shift.
    if elapsed >= state.sum_sd.bit_length():
        return 0
    return state.sum_sd >> elapsed


def remaining_capacity_sd(state: RateLimiterState, now_sec: int) -> int:
    """Remaining capacity in shared decimals, never below zero."""
    return max(0, state.cap_sd - decayed_sum_sd(state, now_sec))


def remaining_capacity(state: RateLimiterState, now_sec: int, ld2sd_rate: int) -> LimiterReading:
    """
    Evaluate how much can still be sent, in local decimals.

    This is a pure read: the stored state is not touched.
    """
    if not state.enabled:
        return LimiterReading(limited=False, amount_ld=0)
    return LimiterReading(
        limited=True,
        amount_ld=amount_sd_to_ld(remaining_capacity_sd(state, now_sec), ld2sd_rate),
    )


def amount_sd_to_ld(amount_sd: int, ld2sd_rate: int) -> int:
    """Convert shared decimals to local decimals."""
    return amount_sd * ld2sd_rate


def amount_ld_to_sd(amount_ld: int, ld2sd_rate: int) -> int:
    """Convert local decimals to shared decimals, dropping dust."""
    if ld2sd_rate <= 0:
        raise ValueError(f"ld2sd_rate must be positive, got {ld2sd_rate}")
    return amount_ld // ld2sd_rate
