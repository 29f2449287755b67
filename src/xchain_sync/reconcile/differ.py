"""
Differencer.

Compares the target configuration against the ledger and plans one task per
managed setting. Reads for independent settings run concurrently; the plan
keeps a fixed order (authority, then global settings, then per remote) so
two runs over the same state produce the same plan.

Equality rules:

- Numbers compare as integers, whatever their on-chain representation.
- Addresses compare after left-zero-padding to the setting's width.
- Booleans and strings compare strictly.

A declaration that cannot produce a valid call rejects only its own task,
and any task that depends on it. Every other task is still planned.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from xchain_sync.codec import AdapterParamsTag, BridgePacketType, decode_adapter_params
from xchain_sync.config import TargetConfig
from xchain_sync.metrics import tasks_planned, tasks_rejected
from xchain_sync.types import (
    LOCAL_ADDRESS_WIDTH,
    AddressWidthMismatch,
    ConfigurationInvariantViolation,
    InvalidAdapterParams,
    XChainSyncError,
    full_address,
    is_same_address,
    padded_address_bytes,
)

from .builder import TransactionBuilder, require_address
from .reader import StateReader
from .tasks import (
    DOMAIN_AUTHORITY,
    Authority,
    CallDescriptor,
    Domain,
    FieldDiff,
    ReconciliationTask,
    task_key,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RejectedTask:
    """A setting whose call could not be built."""

    domain: Domain
    key: str
    error: XChainSyncError


@dataclass(frozen=True, slots=True)
class ReconciliationPlan:
    """Every planned task of a run, plus the ones that were rejected."""

    tasks: tuple[ReconciliationTask, ...]
    rejected: tuple[RejectedTask, ...] = ()

    @property
    def need_change(self) -> bool:
        """Whether any task, for any authority, needs a write."""
        return any(task.need_change for task in self.tasks)

    def pending(self) -> list[ReconciliationTask]:
        """Tasks that need a write, in plan order."""
        return [task for task in self.tasks if task.need_change]

    def by_authority(self) -> dict[Authority, list[ReconciliationTask]]:
        """All tasks grouped per authority, in plan order."""
        grouped: dict[Authority, list[ReconciliationTask]] = {a: [] for a in Authority}
        for task in self.tasks:
            grouped[task.authority].append(task)
        return grouped


CheckResult = ReconciliationTask | None
Check = Callable[[], Awaitable[CheckResult]]


@dataclass(frozen=True, slots=True)
class _PlannedCheck:
    domain: Domain
    key: str
    run: Check


class Differencer:
    """Plans the writes that bring the ledger to the target configuration."""

    def __init__(
        self, reader: StateReader, builder: TransactionBuilder, target: TargetConfig
    ) -> None:
        self.reader = reader
        self.builder = builder
        self.target = target

    # -------------------------------------------------------------------------
    # Planning
    # -------------------------------------------------------------------------

    async def plan(self) -> ReconciliationPlan:
        """
        Read the ledger and plan every task.

        Raises:
            NotFoundOnChain: If a required setting is missing.
            TimeoutError: If a read exceeds its deadline.
        """
        checks = self._checks()
        rejected: list[RejectedTask] = []

        async def guarded(check: _PlannedCheck) -> CheckResult:
            try:
                return await check.run()
            except (ConfigurationInvariantViolation, AddressWidthMismatch) as exc:
                logger.warning("Skipping %s: %s", check.key, exc.message)
                rejected.append(RejectedTask(check.domain, check.key, exc))
                return None

        try:
            async with asyncio.TaskGroup() as tg:
                futures = [tg.create_task(guarded(check)) for check in checks]
        except ExceptionGroup as group:
            # Surface the first failure as is. The group only wraps it.
            raise group.exceptions[0] from group

        order = {check.key: index for index, check in enumerate(checks)}
        rejected.sort(key=lambda r: order[r.key])
        tasks = [result for f in futures if (result := f.result()) is not None]
        tasks, rejected = _drop_orphans(tasks, rejected)

        for task in tasks:
            tasks_planned.labels(authority=task.authority, need_change=str(task.need_change)).inc()
        for reject in rejected:
            tasks_rejected.labels(domain=reject.domain).inc()

        plan = ReconciliationPlan(tasks=tuple(tasks), rejected=tuple(rejected))
        logger.info(
            "Planned %d tasks, %d need change, %d rejected",
            len(plan.tasks),
            len(plan.pending()),
            len(plan.rejected),
        )
        return plan

    def _checks(self) -> list[_PlannedCheck]:
        """Every comparison of the run, in plan order."""
        target = self.target
        remotes = target.remote_chain_ids
        checks: list[_PlannedCheck] = []

        def add(domain: Domain, parts: tuple[object, ...], run: Check) -> None:
            checks.append(_PlannedCheck(domain, task_key(domain, *parts), run))

        # Module owner, per remote.
        for remote in remotes:
            add(Domain.CHAIN_ADDRESS_SIZE, (remote,), lambda r=remote: self._chain_address_size(r))
            if remote in target.msglib.default_app_config:
                add(
                    Domain.DEFAULT_APP_CONFIG,
                    (remote,),
                    lambda r=remote: self._default_app_config(r),
                )
            add(Domain.DEFAULT_SEND_LIBRARY, (remote,), lambda r=remote: self._send_library(r))
            add(
                Domain.DEFAULT_RECEIVE_LIBRARY,
                (remote,),
                lambda r=remote: self._receive_library(r),
            )
            add(Domain.DEFAULT_EXECUTOR, (remote,), lambda r=remote: self._default_executor(r))
            if remote in target.endpoint.default_adapter_params:
                add(
                    Domain.DEFAULT_ADAPTER_PARAMS,
                    (remote,),
                    lambda r=remote: self._default_adapter_params(r),
                )

        # Relayer.
        add(Domain.RELAYER_REGISTRATION, (), self._relayer_registration)
        for remote in remotes:
            if remote in target.relayer.fee:
                add(Domain.RELAYER_FEE, (remote,), lambda r=remote: self._relayer_fee(r))

        # Executor.
        add(Domain.EXECUTOR_REGISTRATION, (), self._executor_registration)
        for remote in remotes:
            if remote in target.executor.fee:
                add(Domain.EXECUTOR_FEE, (remote,), lambda r=remote: self._executor_fee(r))

        # Oracle.
        for validator, active in target.oracle.validators.items():
            add(
                Domain.ORACLE_VALIDATOR,
                (validator,),
                lambda v=validator, a=active: self._oracle_validator(v, a),
            )
        add(Domain.ORACLE_THRESHOLD, (), self._oracle_threshold)
        for remote in remotes:
            if remote in target.oracle.fee:
                add(Domain.ORACLE_FEE, (remote,), lambda r=remote: self._oracle_fee(r))

        # Bridge.
        add(Domain.CUSTOM_ADAPTER_PARAMS, (), self._custom_adapter_params)
        for symbol in target.bridge.coins:
            add(Domain.COIN_REGISTRATION, (symbol,), lambda s=symbol: self._coin_registration(s))
            add(Domain.COIN_LIMITER, (symbol,), lambda s=symbol: self._coin_limiter(s))
        for remote in remotes:
            if remote in target.bridge.remote_bridge:
                add(Domain.REMOTE_BRIDGE, (remote,), lambda r=remote: self._remote_bridge(r))
            for packet_type, gas_by_remote in target.bridge.min_dst_gas.items():
                if remote in gas_by_remote:
                    add(
                        Domain.MIN_DST_GAS,
                        (remote, packet_type),
                        lambda r=remote, p=packet_type: self._min_dst_gas(r, p),
                    )
            for symbol, coin in target.bridge.coins.items():
                if remote in coin.remotes:
                    add(
                        Domain.REMOTE_COIN,
                        (remote, symbol),
                        lambda r=remote, s=symbol: self._remote_coin(r, s),
                    )

        return checks

    def _task(
        self,
        domain: Domain,
        key_parts: tuple[object, ...],
        call: CallDescriptor,
        diff: list[FieldDiff],
        *,
        need_change: bool | None = None,
        remote_chain_id: int | None = None,
        depends_on: tuple[str, ...] = (),
    ) -> ReconciliationTask:
        """Assemble a task. Without an explicit verdict, any diff means change."""
        change = bool(diff) if need_change is None else need_change
        return ReconciliationTask(
            authority=DOMAIN_AUTHORITY[domain],
            domain=domain,
            key=task_key(domain, *key_parts),
            need_change=change,
            chain_id=self.target.local_chain_id,
            remote_chain_id=remote_chain_id,
            call=call,
            diff=tuple(diff) if change else (),
            depends_on=depends_on,
        )

    # -------------------------------------------------------------------------
    # Module owner
    # -------------------------------------------------------------------------

    async def _chain_address_size(self, remote: int) -> CheckResult:
        size = self.target.msglib.address_size
        call = self.builder.set_chain_address_size(remote, size)
        current = await self.reader.chain_address_size(remote)
        diff = _diff_ints("address_size", current, size)
        return self._task(
            Domain.CHAIN_ADDRESS_SIZE, (remote,), call, diff, remote_chain_id=remote
        )

    async def _default_app_config(self, remote: int) -> CheckResult:
        declared = self.target.msglib.default_app_config[remote]
        call = self.builder.set_default_app_config(remote, declared)
        current = await self.reader.default_app_config(remote)
        diff = [
            *_diff_addresses("oracle", current.oracle, declared.oracle),
            *_diff_addresses("relayer", current.relayer, declared.relayer),
            *_diff_ints(
                "inbound_confirmations",
                current.inbound_confirmations,
                declared.inbound_confirmations,
            ),
            *_diff_ints(
                "outbound_confirmations",
                current.outbound_confirmations,
                declared.outbound_confirmations,
            ),
        ]
        return self._task(
            Domain.DEFAULT_APP_CONFIG, (remote,), call, diff, remote_chain_id=remote
        )

    async def _send_library(self, remote: int) -> CheckResult:
        declared = self.target.msglib.default_send_version
        call = self.builder.set_default_send_library(remote, declared)
        current = await self.reader.default_send_version(remote)
        diff = _diff_versions("default_send_library", str(current), str(declared))
        return self._task(
            Domain.DEFAULT_SEND_LIBRARY, (remote,), call, diff, remote_chain_id=remote
        )

    async def _receive_library(self, remote: int) -> CheckResult:
        declared = self.target.msglib.default_receive_version
        call = self.builder.set_default_receive_library(remote, declared)
        current = await self.reader.default_receive_version(remote)
        diff = _diff_versions("default_receive_library", str(current), str(declared))
        return self._task(
            Domain.DEFAULT_RECEIVE_LIBRARY, (remote,), call, diff, remote_chain_id=remote
        )

    async def _default_executor(self, remote: int) -> CheckResult:
        declared = self.target.endpoint.default_executor
        call = self.builder.set_default_executor(remote, declared)
        current = await self.reader.default_executor(remote)
        diff = [
            *_diff_addresses("executor", current.address, declared.address),
            *_diff_ints("version", current.version, declared.version),
        ]
        return self._task(
            Domain.DEFAULT_EXECUTOR, (remote,), call, diff, remote_chain_id=remote
        )

    async def _default_adapter_params(self, remote: int) -> CheckResult:
        ua_gas = self.target.endpoint.default_adapter_params[remote]
        call = self.builder.set_default_adapter_params(remote, ua_gas)
        raw = await self.reader.default_adapter_params(remote)
        try:
            tag, current_gas, _, _ = decode_adapter_params(raw)
        except InvalidAdapterParams as exc:
            logger.warning("Stored adapter params for %d are unreadable: %s", remote, exc.message)
            diff = [FieldDiff("adapter_params", "0x" + raw.hex(), ua_gas)]
        else:
            diff = _diff_ints("ua_gas", current_gas, ua_gas)
            if tag != AdapterParamsTag.DEFAULT:
                diff.append(FieldDiff("tag", tag, int(AdapterParamsTag.DEFAULT)))
        return self._task(
            Domain.DEFAULT_ADAPTER_PARAMS, (remote,), call, diff, remote_chain_id=remote
        )

    # -------------------------------------------------------------------------
    # Relayer and executor
    # -------------------------------------------------------------------------

    async def _relayer_registration(self) -> CheckResult:
        signer = require_address("Relayer signer", self.target.relayer.signer_address)
        call = self.builder.register_relayer()
        registered = await self.reader.signer_registered(signer)
        diff = [] if registered else [FieldDiff("registered", False, True)]
        return self._task(Domain.RELAYER_REGISTRATION, (), call, diff)

    async def _relayer_fee(self, remote: int) -> CheckResult:
        signer = require_address("Relayer signer", self.target.relayer.signer_address)
        declared = self.target.relayer.fee[remote]
        call = self.builder.set_relayer_fee(remote, declared)
        current = await self.reader.signer_fee(signer, remote)
        diff = [
            *_diff_ints("base_fee", current.base_fee, declared.base_fee),
            *_diff_ints("fee_per_byte", current.fee_per_byte, declared.fee_per_byte),
        ]
        return self._task(
            Domain.RELAYER_FEE,
            (remote,),
            call,
            diff,
            remote_chain_id=remote,
            depends_on=(task_key(Domain.RELAYER_REGISTRATION),),
        )

    async def _executor_registration(self) -> CheckResult:
        executor = require_address("Executor", self.target.executor.address)
        call = self.builder.register_executor()
        registered = await self.reader.executor_registered(executor)
        diff = [] if registered else [FieldDiff("registered", False, True)]
        return self._task(Domain.EXECUTOR_REGISTRATION, (), call, diff)

    async def _executor_fee(self, remote: int) -> CheckResult:
        executor = require_address("Executor", self.target.executor.address)
        declared = self.target.executor.fee[remote]
        call = self.builder.set_executor_fee(remote, declared)
        current = await self.reader.executor_fee(executor, remote)

        # Price ratio and gas price move with the market and are maintained
        # elsewhere once set. Only an unset value calls for a write.
        need_change = (
            current.airdrop_amt_cap != declared.airdrop_amt_cap
            or current.price_ratio == 0
            or current.gas_price == 0
        )
        diff = [
            *_diff_ints("airdrop_amt_cap", current.airdrop_amt_cap, declared.airdrop_amt_cap),
            *_diff_ints("price_ratio", current.price_ratio, declared.price_ratio),
            *_diff_ints("gas_price", current.gas_price, declared.gas_price),
        ]
        return self._task(
            Domain.EXECUTOR_FEE,
            (remote,),
            call,
            diff,
            need_change=need_change,
            remote_chain_id=remote,
            depends_on=(task_key(Domain.EXECUTOR_REGISTRATION),),
        )

    # -------------------------------------------------------------------------
    # Oracle
    # -------------------------------------------------------------------------

    async def _oracle_validator(self, validator: str, active: bool) -> CheckResult:
        call = self.builder.set_oracle_validator(validator, active)
        validators = await self.reader.oracle_validators()
        current = full_address(validator) in validators
        diff = []
        if current != active:
            diff.append(FieldDiff("validator", {validator: current}, {validator: active}))
        return self._task(Domain.ORACLE_VALIDATOR, (validator,), call, diff)

    async def _oracle_threshold(self) -> CheckResult:
        declared = self.target.oracle.threshold
        call = self.builder.set_oracle_threshold(declared)
        current = await self.reader.oracle_threshold()
        diff = _diff_ints("threshold", current, declared)
        return self._task(Domain.ORACLE_THRESHOLD, (), call, diff)

    async def _oracle_fee(self, remote: int) -> CheckResult:
        signer = require_address("Oracle signer", self.target.oracle.signer_address)
        declared = self.target.oracle.fee[remote]
        call = self.builder.set_oracle_fee(remote, declared)
        current = await self.reader.signer_fee(signer, remote)
        diff = _diff_ints("base_fee", current.base_fee, declared.base_fee)
        return self._task(
            Domain.ORACLE_FEE, (remote,), call, diff, remote_chain_id=remote
        )

    # -------------------------------------------------------------------------
    # Bridge
    # -------------------------------------------------------------------------

    async def _custom_adapter_params(self) -> CheckResult:
        declared = self.target.bridge.enable_custom_adapter_params
        call = self.builder.enable_custom_adapter_params(declared)
        current = await self.reader.custom_adapter_params_enabled()
        diff = _diff_flags("custom_adapter_params", current, declared)
        return self._task(Domain.CUSTOM_ADAPTER_PARAMS, (), call, diff)

    async def _coin_registration(self, symbol: str) -> CheckResult:
        coin = self.target.bridge.coins[symbol]
        call = self.builder.register_coin(coin)
        registered = await self.reader.coin_registered(self.builder.layout.coin_type(symbol))
        diff = [] if registered else [FieldDiff("registered", False, True)]
        return self._task(Domain.COIN_REGISTRATION, (symbol,), call, diff)

    async def _coin_limiter(self, symbol: str) -> CheckResult:
        declared = self.target.bridge.coins[symbol].limiter
        call = self.builder.set_limiter(symbol, declared)
        current = await self.reader.limiter(self.builder.layout.coin_type(symbol))
        diff = [
            *_diff_flags("enabled", current.enabled, declared.enabled),
            *_diff_ints("cap_sd", current.cap_sd, declared.cap_sd),
            *_diff_ints("window_sec", current.window_sec, declared.window_sec),
        ]
        return self._task(
            Domain.COIN_LIMITER,
            (symbol,),
            call,
            diff,
            depends_on=(task_key(Domain.COIN_REGISTRATION, symbol),),
        )

    async def _remote_bridge(self, remote: int) -> CheckResult:
        declared = self.target.bridge.remote_bridge[remote]
        call = self.builder.set_remote_bridge(remote, declared)
        current = await self.reader.remote_bridge(remote)
        width = declared.address_size
        if len(current) == width and is_same_address(current, declared.address, width):
            diff: list[FieldDiff] = []
        else:
            diff = [
                FieldDiff(
                    "address",
                    "0x" + current.hex(),
                    "0x" + padded_address_bytes(declared.address, width).hex(),
                )
            ]
        return self._task(
            Domain.REMOTE_BRIDGE, (remote,), call, diff, remote_chain_id=remote
        )

    async def _min_dst_gas(self, remote: int, packet_type: int) -> CheckResult:
        declared = self.target.bridge.min_dst_gas[packet_type][remote]
        call = self.builder.set_min_dst_gas(remote, packet_type, declared)
        current = await self.reader.min_dst_gas(remote, packet_type)
        field = "gas" if packet_type == BridgePacketType.SEND else f"gas[{packet_type}]"
        diff = _diff_ints(field, current, declared)
        return self._task(
            Domain.MIN_DST_GAS, (remote, packet_type), call, diff, remote_chain_id=remote
        )

    async def _remote_coin(self, remote: int, symbol: str) -> CheckResult:
        declared = self.target.bridge.coins[symbol].remotes[remote]
        call = self.builder.set_remote_coin(symbol, remote, declared)
        current = await self.reader.remote_coin(self.builder.layout.coin_type(symbol), remote)
        target_address = "0x" + padded_address_bytes(declared.address, LOCAL_ADDRESS_WIDTH).hex()
        if current is None:
            mapping = {"address": target_address, "unwrappable": declared.unwrappable}
            diff = [FieldDiff("remote_coin", None, mapping)]
        else:
            diff = [
                *_diff_addresses("address", "0x" + current.address.hex(), declared.address),
                *_diff_flags("unwrappable", current.unwrappable, declared.unwrappable),
            ]
        return self._task(
            Domain.REMOTE_COIN,
            (remote, symbol),
            call,
            diff,
            remote_chain_id=remote,
            depends_on=(task_key(Domain.COIN_REGISTRATION, symbol),),
        )


def _diff_ints(field: str, current: int, target: int) -> list[FieldDiff]:
    if int(current) == int(target):
        return []
    return [FieldDiff(field, str(current), str(target))]


def _diff_flags(field: str, current: bool, target: bool) -> list[FieldDiff]:
    return [] if bool(current) is bool(target) else [FieldDiff(field, current, target)]


def _diff_addresses(field: str, current: str, target: str) -> list[FieldDiff]:
    if current and is_same_address(current, target, LOCAL_ADDRESS_WIDTH):
        return []
    return [FieldDiff(field, full_address(current) if current else "", full_address(target))]


def _diff_versions(field: str, current: str, target: str) -> list[FieldDiff]:
    return [] if current == target else [FieldDiff(field, current, target)]


def _drop_orphans(
    tasks: list[ReconciliationTask],
    rejected: list[RejectedTask],
) -> tuple[list[ReconciliationTask], list[RejectedTask]]:
    """Reject every task that depends, directly or not, on a rejected task."""
    rejected_keys = {r.key for r in rejected}
    kept = list(tasks)
    changed = True
    while changed:
        changed = False
        for task in list(kept):
            missing = [dep for dep in task.depends_on if dep in rejected_keys]
            if missing:
                kept.remove(task)
                rejected_keys.add(task.key)
                rejected.append(
                    RejectedTask(
                        task.domain,
                        task.key,
                        ConfigurationInvariantViolation(
                            f"{task.key} depends on rejected {missing[0]}"
                        ),
                    )
                )
                changed = True
    return kept, rejected
