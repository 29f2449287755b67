"""
State reader.

Fetches the current value of every managed setting through a ledger client.
Nothing is cached: each comparison reads fresh, so a plan always reflects
the ledger at planning time.

Every read goes through one optional-read path. A `NotFoundOnChain` from
the client becomes the setting's fallback from `FIELD_DEFAULTS`, unless the
setting is `REQUIRED`, in which case the error propagates. Any other error
is a transport failure and also propagates.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from xchain_sync.bridge import (
    ExecutorFee,
    LimiterReading,
    RateLimiterState,
    SignerFee,
    remaining_capacity,
)
from xchain_sync.chain import LedgerClient
from xchain_sync.config import AppConfig, ExecutorRef, LibraryVersion
from xchain_sync.types import NotFoundOnChain, address_to_bytes, full_address

from .defaults import FIELD_DEFAULTS, REQUIRED, ReadField
from .modules import TIMESTAMP_RESOURCE, ModuleLayout

logger = logging.getLogger(__name__)

T = TypeVar("T")

MICROSECONDS_PER_SECOND = 1_000_000


@dataclass(frozen=True, slots=True)
class RemoteCoinState:
    """A coin's mapping to a remote token, as stored on chain."""

    address: bytes
    """Remote token address, padded to 32 bytes."""

    tvl_sd: int
    """Value locked towards that remote, in shared decimals."""

    unwrappable: bool


class StateReader:
    """Reads managed settings from the ledger."""

    def __init__(
        self,
        client: LedgerClient,
        layout: ModuleLayout,
        *,
        call_timeout: float = 30.0,
        max_concurrent_reads: int = 8,
    ) -> None:
        """
        Args:
            client: Ledger to read from.
            layout: Where the modules are published.
            call_timeout: Deadline in seconds for each single read.
            max_concurrent_reads: Reads allowed in flight at once.
        """
        self._client = client
        self.layout = layout
        self._call_timeout = call_timeout
        self._semaphore = asyncio.Semaphore(max_concurrent_reads)

    # -------------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------------

    async def _call(self, read: Callable[..., Awaitable[T]], *args: Any) -> T:
        """Run one client read under the concurrency bound and deadline."""
        async with self._semaphore:
            return await asyncio.wait_for(read(*args), timeout=self._call_timeout)

    async def _optional(self, field: ReadField, read: Callable[[], Awaitable[T]]) -> T:
        """Run a read, substituting the setting's fallback when it is absent."""
        try:
            return await read()
        except NotFoundOnChain as exc:
            default = FIELD_DEFAULTS[field]
            if default is REQUIRED:
                logger.error("Required setting %s is missing: %s", field, exc.message)
                raise
            logger.debug("%s not set on chain, using %r", field, default)
            return default

    async def _resource(self, address: str, resource_type: str) -> dict[str, Any]:
        return await self._call(self._client.read_account_state, address, resource_type)

    async def _table_entry(
        self,
        address: str,
        resource_type: str,
        table_field: str,
        key_type: str,
        value_type: str,
        key: Any,
    ) -> Any:
        """Read an entry of a table referenced by a resource field."""
        resource = await self._resource(address, resource_type)
        table = resource.get(table_field)
        if not isinstance(table, dict) or "handle" not in table:
            raise NotFoundOnChain(resource_type, table_field)
        handle = table["handle"]
        return await self._call(self._client.read_table_entry, handle, key_type, value_type, key)

    # -------------------------------------------------------------------------
    # Messaging library and endpoint (module owner)
    # -------------------------------------------------------------------------

    async def chain_address_size(self, remote_chain_id: int) -> int:
        """Peer address width registered for a remote chain."""
        layout = self.layout

        async def read() -> int:
            value = await self._table_entry(
                layout.layerzero,
                layout.chain_config_resource,
                "chain_address_size",
                "u64",
                "u64",
                str(remote_chain_id),
            )
            return int(value)

        return await self._optional(ReadField.CHAIN_ADDRESS_SIZE, read)

    async def default_app_config(self, remote_chain_id: int) -> AppConfig:
        """Default oracle, relayer and confirmations towards a remote chain."""
        layout = self.layout

        async def read() -> AppConfig:
            value = await self._table_entry(
                layout.layerzero,
                layout.default_uln_config_resource,
                "config",
                "u64",
                layout.uln_config_type,
                str(remote_chain_id),
            )
            return AppConfig(
                oracle=value["oracle"],
                relayer=value["relayer"],
                inbound_confirmations=value["inbound_confirmations"],
                outbound_confirmations=value["outbound_confirmations"],
            )

        return await self._optional(ReadField.DEFAULT_APP_CONFIG, read)

    async def _library_version(
        self, field: ReadField, table: str, remote_chain_id: int
    ) -> LibraryVersion:
        layout = self.layout

        async def read() -> LibraryVersion:
            value = await self._table_entry(
                layout.layerzero,
                layout.msglib_config_resource,
                table,
                "u64",
                layout.semver_type,
                str(remote_chain_id),
            )
            return LibraryVersion(major=value["major"], minor=value["minor"])

        return await self._optional(field, read)

    async def default_send_version(self, remote_chain_id: int) -> LibraryVersion:
        """Messaging library version used by default to send to a remote."""
        return await self._library_version(
            ReadField.DEFAULT_SEND_VERSION, "send_version", remote_chain_id
        )

    async def default_receive_version(self, remote_chain_id: int) -> LibraryVersion:
        """Messaging library version used by default to receive from a remote."""
        return await self._library_version(
            ReadField.DEFAULT_RECEIVE_VERSION, "receive_version", remote_chain_id
        )

    async def default_executor(self, remote_chain_id: int) -> ExecutorRef:
        """Executor applications use by default towards a remote."""
        layout = self.layout

        async def read() -> ExecutorRef:
            value = await self._table_entry(
                layout.layerzero,
                layout.executor_config_store,
                "config",
                "u64",
                layout.executor_ref_type,
                str(remote_chain_id),
            )
            return ExecutorRef(version=value["version"], address=value["executor"])

        return await self._optional(ReadField.DEFAULT_EXECUTOR, read)

    async def default_adapter_params(self, remote_chain_id: int) -> bytes:
        """Encoded adapter params applications get by default towards a remote."""
        layout = self.layout

        async def read() -> bytes:
            value = await self._table_entry(
                layout.layerzero,
                layout.adapter_params_resource,
                "params",
                "u64",
                "vector<u8>",
                str(remote_chain_id),
            )
            return address_to_bytes(value)

        return await self._optional(ReadField.DEFAULT_ADAPTER_PARAMS, read)

    # -------------------------------------------------------------------------
    # Executor, relayer and oracle signers
    # -------------------------------------------------------------------------

    async def executor_registered(self, executor: str) -> bool:
        """Whether an account has registered as executor."""

        async def read() -> bool:
            await self._resource(executor, self.layout.executor_resource)
            return True

        return await self._optional(ReadField.EXECUTOR_REGISTERED, read)

    async def executor_fee(self, executor: str, remote_chain_id: int) -> ExecutorFee:
        """Executor's fee schedule towards a remote."""
        layout = self.layout

        async def read() -> ExecutorFee:
            value = await self._table_entry(
                executor,
                layout.executor_resource,
                "fee",
                "u64",
                layout.executor_fee_type,
                str(remote_chain_id),
            )
            return ExecutorFee(
                airdrop_amt_cap=value["airdrop_amt_cap"],
                price_ratio=value["price_ratio"],
                gas_price=value["gas_price"],
            )

        return await self._optional(ReadField.EXECUTOR_FEE, read)

    async def signer_registered(self, signer: str) -> bool:
        """Whether an account has registered as relayer or oracle signer."""

        async def read() -> bool:
            await self._resource(signer, self.layout.signer_resource)
            return True

        return await self._optional(ReadField.SIGNER_REGISTERED, read)

    async def signer_fee(self, signer: str, remote_chain_id: int) -> SignerFee:
        """Relayer or oracle signer's fee schedule towards a remote."""
        layout = self.layout

        async def read() -> SignerFee:
            value = await self._table_entry(
                signer,
                layout.signer_resource,
                "fees",
                "u64",
                layout.signer_fee_type,
                str(remote_chain_id),
            )
            return SignerFee(base_fee=value["base_fee"], fee_per_byte=value["fee_per_byte"])

        return await self._optional(ReadField.SIGNER_FEE, read)

    async def oracle_validators(self) -> frozenset[str]:
        """Active oracle validators, as full addresses."""

        async def read() -> frozenset[str]:
            resource = await self._resource(self.layout.oracle, self.layout.oracle_config_resource)
            return frozenset(full_address(v) for v in resource["validators"])

        return await self._optional(ReadField.ORACLE_VALIDATORS, read)

    async def oracle_threshold(self) -> int:
        """Validator approvals the oracle requires."""

        async def read() -> int:
            value = await self._call(
                self._client.read_named_value, self.layout.oracle_config_resource, "threshold"
            )
            return int(value)

        return await self._optional(ReadField.ORACLE_THRESHOLD, read)

    # -------------------------------------------------------------------------
    # Bridge
    # -------------------------------------------------------------------------

    async def custom_adapter_params_enabled(self) -> bool:
        """Whether the bridge accepts caller-supplied adapter params."""

        async def read() -> bool:
            value = await self._call(
                self._client.read_named_value,
                self.layout.bridge_config_resource,
                "custom_adapter_params",
            )
            return bool(value)

        return await self._optional(ReadField.CUSTOM_ADAPTER_PARAMS, read)

    async def remote_bridge(self, remote_chain_id: int) -> bytes:
        """Trusted bridge peer for a remote, raw bytes."""
        layout = self.layout

        async def read() -> bytes:
            value = await self._table_entry(
                layout.bridge,
                layout.remotes_resource,
                "peers",
                "u64",
                "vector<u8>",
                str(remote_chain_id),
            )
            return address_to_bytes(value)

        return await self._optional(ReadField.REMOTE_BRIDGE, read)

    async def min_dst_gas(self, remote_chain_id: int, packet_type: int) -> int:
        """Minimum gas the bridge forwards for a packet type to a remote."""
        layout = self.layout

        async def read() -> int:
            value = await self._table_entry(
                layout.bridge,
                layout.lzapp_config_resource,
                "min_dst_gas_lookup",
                layout.path_type,
                "u64",
                {"chain_id": str(remote_chain_id), "packet_type": str(packet_type)},
            )
            return int(value)

        return await self._optional(ReadField.MIN_DST_GAS, read)

    async def coin_registered(self, coin_type: str) -> bool:
        """Whether a coin is registered with the bridge."""

        async def read() -> bool:
            await self._resource(self.layout.bridge, self.layout.coin_store_resource(coin_type))
            return True

        return await self._optional(ReadField.COIN_REGISTERED, read)

    async def ld2sd_rate(self, coin_type: str) -> int:
        """Local to shared decimals rate of a registered coin."""

        async def read() -> int:
            store = self.layout.coin_store_resource(coin_type)
            resource = await self._resource(self.layout.bridge, store)
            return int(resource["ld2sd_rate"])

        return await self._optional(ReadField.LD2SD_RATE, read)

    async def limiter(self, coin_type: str) -> RateLimiterState:
        """Rate limiter of a coin."""

        async def read() -> RateLimiterState:
            limiter = self.layout.limiter_resource(coin_type)
            resource = await self._resource(self.layout.bridge, limiter)
            return RateLimiterState(
                enabled=resource["enabled"],
                cap_sd=resource["cap_sd"],
                window_sec=resource["window_sec"],
                t0_sec=resource.get("t0_sec", 0),
                sum_sd=resource.get("sum_sd", 0),
            )

        return await self._optional(ReadField.COIN_LIMITER, read)

    async def remote_coin(self, coin_type: str, remote_chain_id: int) -> RemoteCoinState | None:
        """A coin's remote token towards a chain, or None if unmapped."""
        layout = self.layout

        async def read() -> RemoteCoinState | None:
            value = await self._table_entry(
                layout.bridge,
                layout.coin_store_resource(coin_type),
                "remote_coins",
                "u64",
                layout.remote_coin_type,
                str(remote_chain_id),
            )
            return RemoteCoinState(
                address=address_to_bytes(value["remote_address"]),
                tvl_sd=int(value["tvl_sd"]),
                unwrappable=bool(value["unwrappable"]),
            )

        return await self._optional(ReadField.REMOTE_COIN, read)

    async def ledger_timestamp(self) -> int:
        """Ledger clock in seconds."""

        async def read() -> int:
            value = await self._call(
                self._client.read_named_value, TIMESTAMP_RESOURCE, "microseconds"
            )
            return int(value) // MICROSECONDS_PER_SECOND

        return await self._optional(ReadField.LEDGER_TIMESTAMP, read)

    async def limiter_capacity(self, coin_type: str) -> LimiterReading:
        """How much of a coin can still leave, in local decimals."""
        state = await self.limiter(coin_type)
        if not state.enabled:
            return remaining_capacity(state, 0, 1)
        now, rate = await asyncio.gather(self.ledger_timestamp(), self.ld2sd_rate(coin_type))
        return remaining_capacity(state, now, rate)
