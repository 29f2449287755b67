"""
Shared builders for reconciliation tests.

Provides a sample deployment (profile, target, signers) and an in-memory
ledger whose call handlers emulate the managed modules closely enough for a
full plan, apply, re-plan cycle.
"""

from __future__ import annotations

from typing import Any

from xchain_sync.bridge import DEFAULT_LIMITER_WINDOW_SEC
from xchain_sync.chain import EntryFunctionPayload, InMemoryLedgerClient, Signer
from xchain_sync.config import (
    CoinDeclaration,
    LimiterConfig,
    TargetConfig,
    WiringProfile,
    build_target_config,
)
from xchain_sync.reconcile import (
    Authority,
    CallDescriptor,
    Differencer,
    Domain,
    ModuleLayout,
    ReconciliationTask,
    StateReader,
    TransactionBuilder,
)
from xchain_sync.reconcile.modules import TIMESTAMP_RESOURCE
from xchain_sync.types import full_address

LOCAL_CHAIN_ID = 10108
ETHEREUM = 10121
ARBITRUM = 10143

LAYERZERO = "0x54ad"
EXECUTOR = "0xe1ec"
RELAYER = "0x4e1a"
ORACLE = "0x0ac1"
ORACLE_SIGNER = "0x0ac2"
BRIDGE = "0xb41d"
VALIDATOR_A = "0xa1"
VALIDATOR_B = "0xa2"

PEER_ETHEREUM = "0x50002593b7e2d5b0ab27be3c0d1b8f1e0a6c7d63"
PEER_ARBITRUM = "0x1a44076050125825900e736c501f859c50fe728c"
USDC_ETHEREUM = "0x07865c6e87b9f70255377e024ace6630c1eaa37f"
USDC_ARBITRUM = "0xfd064a18f3bf249cf1f87fc203e90d8f650f2d63"
WETH_ETHEREUM = "0xb4fbf271143f4fbf7b91a5ded31805e42b2208d6"

NOW_SEC = 1_700_000_000


def make_profile(**overrides: Any) -> WiringProfile:
    """Two remotes, two oracle validators, USDC on both remotes and WETH on one."""
    fields: dict[str, Any] = {
        "local_chain_id": LOCAL_CHAIN_ID,
        "layerzero_address": LAYERZERO,
        "executor_address": EXECUTOR,
        "relayer_signer_address": RELAYER,
        "oracle_address": ORACLE,
        "oracle_signer_address": ORACLE_SIGNER,
        "oracle_validators": {VALIDATOR_A: True, VALIDATOR_B: True},
        "oracle_threshold": 2,
        "bridge_address": BRIDGE,
        "block_confirmations": {ETHEREUM: 15, ARBITRUM: 20},
        "remote_bridges": {ETHEREUM: PEER_ETHEREUM, ARBITRUM: PEER_ARBITRUM},
        "coins": [
            CoinDeclaration(
                name="USD Coin",
                symbol="USDC",
                decimals=6,
                limiter=LimiterConfig(enabled=True, cap_sd=100_000_000_000),
                remote_tokens={ETHEREUM: USDC_ETHEREUM, ARBITRUM: USDC_ARBITRUM},
            ),
            CoinDeclaration(
                name="Wrapped Ether",
                symbol="WETH",
                decimals=8,
                remote_tokens={ETHEREUM: WETH_ETHEREUM},
                unwrappable=True,
            ),
        ],
    }
    fields.update(overrides)
    return WiringProfile(**fields)


def make_target(remotes: tuple[int, ...] = (ETHEREUM, ARBITRUM), **overrides: Any) -> TargetConfig:
    """Target built from the sample profile."""
    return build_target_config(make_profile(**overrides), remotes)


def make_signers() -> dict[Authority, Signer]:
    """One signer per authority, each the account owning its modules."""
    return {
        Authority.LAYERZERO: Signer(LAYERZERO, label="layerzero"),
        Authority.RELAYER: Signer(RELAYER, label="relayer"),
        Authority.EXECUTOR: Signer(EXECUTOR, label="executor"),
        Authority.ORACLE: Signer(ORACLE, label="oracle"),
        Authority.BRIDGE: Signer(BRIDGE, label="bridge"),
    }


# -----------------------------------------------------------------------------
# Ledger emulation
# -----------------------------------------------------------------------------


def table_handle(client: InMemoryLedgerClient, address: str, resource_type: str, field: str) -> str:
    """Handle of a table stored in a resource, creating both if needed."""
    resource = client.get_resource(address, resource_type)
    if resource is None:
        resource = {}
        client.put_resource(address, resource_type, resource)
    if field not in resource:
        resource[field] = {"handle": client.create_table()}
    return resource[field]["handle"]


def put_entry(
    client: InMemoryLedgerClient,
    address: str,
    resource_type: str,
    field: str,
    key: Any,
    value: Any,
) -> None:
    client.put_table_entry(table_handle(client, address, resource_type, field), key, value)


def deploy_modules(client: InMemoryLedgerClient, layout: ModuleLayout) -> None:
    """Publish what exists right after the modules are deployed."""
    oracle_config = {"validators": [], "threshold": "0"}
    client.put_resource(layout.oracle, layout.oracle_config_resource, oracle_config)
    bridge_config = {"custom_adapter_params": False}
    client.put_resource(layout.bridge, layout.bridge_config_resource, bridge_config)
    client.put_resource("0x1", TIMESTAMP_RESOURCE, {"microseconds": str(NOW_SEC * 1_000_000)})


def install_handlers(
    client: InMemoryLedgerClient, layout: ModuleLayout, oracle_signer: str
) -> None:
    """Emulate the effect of every managed call on ledger state."""

    def on(function: str):
        def register(handler):
            client.on(function, handler)
            return handler

        return register

    @on("uln_config::set_chain_address_size")
    def _(c: InMemoryLedgerClient, signer: Signer, p: EntryFunctionPayload) -> None:
        remote, size = p.arguments
        resource = layout.chain_config_resource
        put_entry(c, layout.layerzero, resource, "chain_address_size", remote, str(size))

    @on("uln_config::set_default_config")
    def _(c: InMemoryLedgerClient, signer: Signer, p: EntryFunctionPayload) -> None:
        remote, oracle, relayer, inbound, outbound = p.arguments
        value = {
            "oracle": oracle,
            "relayer": relayer,
            "inbound_confirmations": str(inbound),
            "outbound_confirmations": str(outbound),
        }
        put_entry(c, layout.layerzero, layout.default_uln_config_resource, "config", remote, value)

    @on("msglib_config::set_default_send_msglib")
    def _(c: InMemoryLedgerClient, signer: Signer, p: EntryFunctionPayload) -> None:
        remote, major, minor = p.arguments
        value = {"major": str(major), "minor": minor}
        put_entry(c, layout.layerzero, layout.msglib_config_resource, "send_version", remote, value)

    @on("msglib_config::set_default_receive_msglib")
    def _(c: InMemoryLedgerClient, signer: Signer, p: EntryFunctionPayload) -> None:
        remote, major, minor = p.arguments
        value = {"major": str(major), "minor": minor}
        resource = layout.msglib_config_resource
        put_entry(c, layout.layerzero, resource, "receive_version", remote, value)

    @on("executor_config::set_default_executor")
    def _(c: InMemoryLedgerClient, signer: Signer, p: EntryFunctionPayload) -> None:
        remote, version, executor = p.arguments
        value = {"executor": executor, "version": str(version)}
        put_entry(c, layout.layerzero, layout.executor_config_store, "config", remote, value)

    @on("executor_v1::set_default_adapter_params")
    def _(c: InMemoryLedgerClient, signer: Signer, p: EntryFunctionPayload) -> None:
        remote, params = p.arguments
        put_entry(c, layout.layerzero, layout.adapter_params_resource, "params", remote, params)

    @on("executor_v1::register")
    def _(c: InMemoryLedgerClient, signer: Signer, p: EntryFunctionPayload) -> None:
        table_handle(c, signer.address, layout.executor_resource, "fee")

    @on("executor_v1::set_fee")
    def _(c: InMemoryLedgerClient, signer: Signer, p: EntryFunctionPayload) -> None:
        remote, cap, ratio, gas_price = p.arguments
        value = {
            "airdrop_amt_cap": str(cap),
            "price_ratio": str(ratio),
            "gas_price": str(gas_price),
        }
        put_entry(c, signer.address, layout.executor_resource, "fee", remote, value)

    @on("uln_signer::register")
    def _(c: InMemoryLedgerClient, signer: Signer, p: EntryFunctionPayload) -> None:
        table_handle(c, signer.address, layout.signer_resource, "fees")

    @on("uln_signer::set_fee")
    def _(c: InMemoryLedgerClient, signer: Signer, p: EntryFunctionPayload) -> None:
        remote, base_fee, fee_per_byte = p.arguments
        value = {"base_fee": str(base_fee), "fee_per_byte": str(fee_per_byte)}
        put_entry(c, signer.address, layout.signer_resource, "fees", remote, value)

    @on("oracle::set_validator")
    def _(c: InMemoryLedgerClient, signer: Signer, p: EntryFunctionPayload) -> None:
        validator, active = p.arguments
        config = c.get_resource(layout.oracle, layout.oracle_config_resource)
        validators = [v for v in config["validators"] if full_address(v) != full_address(validator)]
        if active:
            validators.append(validator)
        config["validators"] = validators

    @on("oracle::set_threshold")
    def _(c: InMemoryLedgerClient, signer: Signer, p: EntryFunctionPayload) -> None:
        (threshold,) = p.arguments
        c.get_resource(layout.oracle, layout.oracle_config_resource)["threshold"] = str(threshold)

    @on("oracle::set_fee")
    def _(c: InMemoryLedgerClient, signer: Signer, p: EntryFunctionPayload) -> None:
        # The oracle module charges through its signer account.
        remote, base_fee = p.arguments
        value = {"base_fee": str(base_fee), "fee_per_byte": "0"}
        put_entry(c, oracle_signer, layout.signer_resource, "fees", remote, value)

    @on("coin_bridge::enable_custom_adapter_params")
    def _(c: InMemoryLedgerClient, signer: Signer, p: EntryFunctionPayload) -> None:
        (enabled,) = p.arguments
        config = c.get_resource(layout.bridge, layout.bridge_config_resource)
        config["custom_adapter_params"] = enabled

    @on("remote::set")
    def _(c: InMemoryLedgerClient, signer: Signer, p: EntryFunctionPayload) -> None:
        remote, peer = p.arguments
        put_entry(c, layout.bridge, layout.remotes_resource, "peers", remote, peer)

    @on("lzapp::set_min_dst_gas")
    def _(c: InMemoryLedgerClient, signer: Signer, p: EntryFunctionPayload) -> None:
        remote, packet_type, gas = p.arguments
        key = {"chain_id": str(remote), "packet_type": str(packet_type)}
        resource = layout.lzapp_config_resource
        put_entry(c, layout.bridge, resource, "min_dst_gas_lookup", key, str(gas))

    @on("coin_bridge::register_coin")
    def _(c: InMemoryLedgerClient, signer: Signer, p: EntryFunctionPayload) -> None:
        (coin_type,) = p.type_arguments
        _, _, decimals, cap_sd = p.arguments
        rate = 10 ** max(decimals - 6, 0)
        c.put_resource(
            layout.bridge,
            layout.coin_store_resource(coin_type),
            {"ld2sd_rate": str(rate), "remote_coins": {"handle": c.create_table()}},
        )
        c.put_resource(
            layout.bridge,
            layout.limiter_resource(coin_type),
            {
                "enabled": True,
                "cap_sd": str(cap_sd),
                "window_sec": str(DEFAULT_LIMITER_WINDOW_SEC),
                "t0_sec": "0",
                "sum_sd": "0",
            },
        )

    @on("coin_bridge::set_limiter_cap")
    def _(c: InMemoryLedgerClient, signer: Signer, p: EntryFunctionPayload) -> None:
        (coin_type,) = p.type_arguments
        enabled, cap_sd, window_sec = p.arguments
        limiter = c.get_resource(layout.bridge, layout.limiter_resource(coin_type))
        limiter.update(enabled=enabled, cap_sd=str(cap_sd), window_sec=str(window_sec))

    @on("coin_bridge::set_remote_coin")
    def _(c: InMemoryLedgerClient, signer: Signer, p: EntryFunctionPayload) -> None:
        (coin_type,) = p.type_arguments
        remote, token, unwrappable = p.arguments
        value = {"remote_address": token, "tvl_sd": "0", "unwrappable": unwrappable}
        store = layout.coin_store_resource(coin_type)
        put_entry(c, layout.bridge, store, "remote_coins", remote, value)


def make_ledger(target: TargetConfig) -> InMemoryLedgerClient:
    """Freshly deployed ledger that applies every managed call."""
    client = InMemoryLedgerClient()
    layout = ModuleLayout.from_target(target)
    deploy_modules(client, layout)
    install_handlers(client, layout, target.oracle.signer_address)
    return client


def make_differencer(client: InMemoryLedgerClient, target: TargetConfig) -> Differencer:
    """Differencer over `client` with the layout `target` names."""
    layout = ModuleLayout.from_target(target)
    builder = TransactionBuilder(layout, chain_address_size=target.msglib.address_size)
    return Differencer(StateReader(client, layout), builder, target)


def make_task(
    authority: Authority,
    key: str,
    *,
    need_change: bool = True,
    depends_on: tuple[str, ...] = (),
    domain: Domain = Domain.ORACLE_THRESHOLD,
) -> ReconciliationTask:
    """Stand-alone task whose call is named after its key."""
    function = key.replace("/", "_")
    return ReconciliationTask(
        authority=authority,
        domain=domain,
        key=key,
        need_change=need_change,
        chain_id=LOCAL_CHAIN_ID,
        remote_chain_id=None,
        call=CallDescriptor(
            module=f"test::{authority}",
            function=function,
            payload=EntryFunctionPayload(f"0x1::{authority}::{function}"),
        ),
        depends_on=depends_on,
    )
