"""
Reconciliation tasks.

A task is one comparison between a declared value and the ledger, together
with the call that would make them equal. Tasks are produced by the
differencer, consumed once by the reconciler, and exported by the reporter.

Authorities
-----------
Every call must be signed by the account that owns the setting:

- layerzero: module owner of the messaging library, endpoint and executor config.
- relayer: relayer signer account.
- executor: executor account.
- oracle: oracle module admin.
- bridge: bridge application owner.

Calls for one authority run in order. Different authorities run concurrently.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from xchain_sync.chain import EntryFunctionPayload


class Authority(StrEnum):
    """Account that signs a class of calls."""

    LAYERZERO = "layerzero"
    RELAYER = "relayer"
    EXECUTOR = "executor"
    ORACLE = "oracle"
    BRIDGE = "bridge"


class Domain(StrEnum):
    """Setting compared by a task."""

    CHAIN_ADDRESS_SIZE = "chain_address_size"
    DEFAULT_APP_CONFIG = "default_app_config"
    DEFAULT_SEND_LIBRARY = "default_send_library"
    DEFAULT_RECEIVE_LIBRARY = "default_receive_library"
    DEFAULT_EXECUTOR = "default_executor"
    DEFAULT_ADAPTER_PARAMS = "default_adapter_params"
    RELAYER_REGISTRATION = "relayer_registration"
    RELAYER_FEE = "relayer_fee"
    EXECUTOR_REGISTRATION = "executor_registration"
    EXECUTOR_FEE = "executor_fee"
    ORACLE_VALIDATOR = "oracle_validator"
    ORACLE_THRESHOLD = "oracle_threshold"
    ORACLE_FEE = "oracle_fee"
    CUSTOM_ADAPTER_PARAMS = "custom_adapter_params"
    COIN_REGISTRATION = "coin_registration"
    COIN_LIMITER = "coin_limiter"
    REMOTE_BRIDGE = "remote_bridge"
    MIN_DST_GAS = "min_dst_gas"
    REMOTE_COIN = "remote_coin"


DOMAIN_AUTHORITY: dict[Domain, Authority] = {
    Domain.CHAIN_ADDRESS_SIZE: Authority.LAYERZERO,
    Domain.DEFAULT_APP_CONFIG: Authority.LAYERZERO,
    Domain.DEFAULT_SEND_LIBRARY: Authority.LAYERZERO,
    Domain.DEFAULT_RECEIVE_LIBRARY: Authority.LAYERZERO,
    Domain.DEFAULT_EXECUTOR: Authority.LAYERZERO,
    Domain.DEFAULT_ADAPTER_PARAMS: Authority.LAYERZERO,
    Domain.RELAYER_REGISTRATION: Authority.RELAYER,
    Domain.RELAYER_FEE: Authority.RELAYER,
    Domain.EXECUTOR_REGISTRATION: Authority.EXECUTOR,
    Domain.EXECUTOR_FEE: Authority.EXECUTOR,
    Domain.ORACLE_VALIDATOR: Authority.ORACLE,
    Domain.ORACLE_THRESHOLD: Authority.ORACLE,
    Domain.ORACLE_FEE: Authority.ORACLE,
    Domain.CUSTOM_ADAPTER_PARAMS: Authority.BRIDGE,
    Domain.COIN_REGISTRATION: Authority.BRIDGE,
    Domain.COIN_LIMITER: Authority.BRIDGE,
    Domain.REMOTE_BRIDGE: Authority.BRIDGE,
    Domain.MIN_DST_GAS: Authority.BRIDGE,
    Domain.REMOTE_COIN: Authority.BRIDGE,
}
"""Authority that signs the calls of each domain."""


def task_key(domain: Domain, *parts: object) -> str:
    """
    Identity of a task within a run, e.g. `remote_coin/10121/USDC`.

    Dependencies between tasks refer to these keys.
    """
    return "/".join([str(domain), *(str(part) for part in parts)])


@dataclass(frozen=True, slots=True)
class FieldDiff:
    """One field whose ledger value differs from the declared one."""

    field: str
    current: Any
    target: Any


@dataclass(frozen=True, slots=True)
class CallDescriptor:
    """A built call, with the module it targets in readable form."""

    module: str
    """Module name as shown to operators, e.g. `layerzero::uln_config`."""

    function: str
    """Function name within the module."""

    payload: EntryFunctionPayload
    """The call exactly as it would be submitted."""

    @property
    def args(self) -> tuple[Any, ...]:
        """Arguments of the call."""
        return self.payload.arguments


@dataclass(frozen=True, slots=True)
class ReconciliationTask:
    """One planned comparison and the call that resolves it."""

    authority: Authority
    domain: Domain
    key: str
    need_change: bool
    chain_id: int
    remote_chain_id: int | None
    call: CallDescriptor
    diff: tuple[FieldDiff, ...] = ()
    """Differing fields. Empty when nothing needs to change."""

    depends_on: tuple[str, ...] = ()
    """Keys of tasks that must have run before this one."""

    @property
    def module(self) -> str:
        return self.call.module

    @property
    def function(self) -> str:
        return self.call.function

    @property
    def args(self) -> tuple[Any, ...]:
        return self.call.args

    @property
    def payload(self) -> EntryFunctionPayload:
        return self.call.payload

    def diff_dict(self) -> dict[str, dict[str, Any]] | None:
        """Differing fields as `{field: {oldValue, newValue}}`, or None."""
        if not self.diff:
            return None
        return {d.field: {"oldValue": d.current, "newValue": d.target} for d in self.diff}
