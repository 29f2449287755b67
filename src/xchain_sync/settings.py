"""
Run settings for a reconciliation.

Read from `XCHAIN_SYNC_*` environment variables, falling back to defaults
suitable for an operator at a terminal.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import Field

from .types import FrozenModel

ENV_PREFIX = "XCHAIN_SYNC_"
"""Prefix of every environment variable read by `ReconcileSettings.from_env`."""

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _parse_flag(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for {ENV_PREFIX}{name}: {raw!r}")


class ReconcileSettings(FrozenModel):
    """Knobs of one reconciliation run."""

    transactions_csv: Path = Path("transactions.csv")
    """Where the audit export of every planned task is written."""

    prompt: bool = True
    """Ask for confirmation before any write."""

    dry_run: bool = False
    """Plan and export only. Never submit."""

    call_timeout: float = Field(default=30.0, gt=0)
    """Deadline in seconds for every single read or submit."""

    max_concurrent_reads: int = Field(default=8, ge=1)
    """Upper bound on reads in flight while planning."""

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ReconcileSettings:
        """
        Build settings from environment variables.

        Recognized: `XCHAIN_SYNC_TRANSACTIONS_CSV`, `XCHAIN_SYNC_PROMPT`,
        `XCHAIN_SYNC_DRY_RUN`, `XCHAIN_SYNC_CALL_TIMEOUT`,
        `XCHAIN_SYNC_MAX_CONCURRENT_READS`.

        Raises:
            ValueError: If a flag is not a recognizable boolean.
            pydantic.ValidationError: If a value fails validation.
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}

        if (raw := env.get(f"{ENV_PREFIX}TRANSACTIONS_CSV")) is not None:
            values["transactions_csv"] = Path(raw)
        for flag in ("prompt", "dry_run"):
            if (raw := env.get(f"{ENV_PREFIX}{flag.upper()}")) is not None:
                values[flag] = _parse_flag(flag.upper(), raw)
        if (raw := env.get(f"{ENV_PREFIX}CALL_TIMEOUT")) is not None:
            values["call_timeout"] = raw
        if (raw := env.get(f"{ENV_PREFIX}MAX_CONCURRENT_READS")) is not None:
            values["max_concurrent_reads"] = raw

        return cls.model_validate(values)
