"""
Target configuration assembly.

A wiring profile holds what an operator declares once per deployment stage:
module accounts, validator set, block confirmations, peer and token
address books, and the fee policy. `build_target_config` expands it for a
given set of remote chains into a `TargetConfig`.

The builder is a pure function. It never mutates the profile and returns a
new `TargetConfig` on every call.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

import yaml
from pydantic import Field

from xchain_sync.bridge import ExecutorFee, SignerFee
from xchain_sync.codec import BridgePacketType
from xchain_sync.types import (
    EVM_ADDRESS_WIDTH,
    ChainEndpointId,
    ConfigurationInvariantViolation,
    FrozenModel,
    Uint8,
    Uint64,
)

from .target import (
    AddressWidth,
    AppConfig,
    BridgeConfig,
    CoinConfig,
    EndpointConfig,
    ExecutorConfig,
    ExecutorRef,
    LibraryVersion,
    LimiterConfig,
    MsgLibConfig,
    OracleConfig,
    RelayerConfig,
    RemoteBridge,
    RemoteCoin,
    TargetConfig,
)

logger = logging.getLogger(__name__)

PRICE_RATIO_ONE = 10**10
"""Price ratio meaning one destination native unit per local native unit."""


class FeePolicy(FrozenModel):
    """
    Per-remote values filled in for every chain in scope.

    Gas-denominated values are multiplied by the chain's gas multiplier.
    """

    min_dst_gas_send: Uint64 = 150_000
    """Minimum gas a send must forward to the remote bridge."""

    default_ua_gas: Uint64 = 200_000
    """Default gas limit forwarded to applications."""

    relayer_base_fee: Uint64 = 200_000
    relayer_fee_per_byte: Uint64 = 1
    oracle_base_fee: Uint64 = 200_000

    executor_airdrop_cap: Uint64 = 10_000_000_000
    executor_price_ratio: Uint64 = PRICE_RATIO_ONE
    executor_gas_price: Uint64 = 1

    outbound_confirmations: Uint64 = 10
    """Confirmations the local chain waits before relaying out."""


class CoinDeclaration(FrozenModel):
    """A coin and where it lives on remote chains."""

    name: str
    symbol: str
    decimals: Uint8
    limiter: LimiterConfig = Field(default_factory=LimiterConfig)
    remote_tokens: dict[ChainEndpointId, str] = Field(default_factory=dict)
    """Token address per remote chain."""

    unwrappable: bool = False
    """Whether the remote token can be unwrapped to the native coin."""


class WiringProfile(FrozenModel):
    """Static declarations for one deployment stage."""

    local_chain_id: ChainEndpointId
    layerzero_address: str
    executor_address: str
    executor_version: Uint64 = 1
    relayer_signer_address: str
    oracle_address: str
    oracle_signer_address: str
    oracle_validators: dict[str, bool]
    oracle_threshold: Uint64
    bridge_address: str
    enable_custom_adapter_params: bool = True

    remote_address_size: AddressWidth = EVM_ADDRESS_WIDTH
    """Peer address width on every remote in scope."""

    send_version: LibraryVersion = Field(default_factory=lambda: LibraryVersion(major=1, minor=0))
    receive_version: LibraryVersion = Field(
        default_factory=lambda: LibraryVersion(major=1, minor=0)
    )

    block_confirmations: dict[ChainEndpointId, Uint64]
    """Inbound confirmations required from each remote chain."""

    remote_bridges: dict[ChainEndpointId, str]
    """Bridge peer address on each remote chain."""

    gas_multipliers: dict[ChainEndpointId, int] = Field(default_factory=dict)
    """Multiplier for gas-denominated values, for chains with unusual gas units."""

    fee_policy: FeePolicy = Field(default_factory=FeePolicy)
    coins: list[CoinDeclaration] = Field(default_factory=list)

    @classmethod
    def from_yaml_file(cls, path: Path | str) -> WiringProfile:
        """
        Load a wiring profile from a YAML file.

        Raises:
            FileNotFoundError: If the file does not exist.
            yaml.YAMLError: If the file is not valid YAML.
            pydantic.ValidationError: If the data fails validation.
        """
        path = Path(path)
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return cls.model_validate(data)

    @classmethod
    def from_yaml(cls, content: str) -> WiringProfile:
        """Load a wiring profile from a YAML string."""
        return cls.model_validate(yaml.safe_load(content))


def build_target_config(profile: WiringProfile, remote_chain_ids: Iterable[int]) -> TargetConfig:
    """
    Expand a wiring profile for the given remote chains.

    Raises:
        ConfigurationInvariantViolation: If the profile lacks block
            confirmations or a bridge peer for a chain in scope.
    """
    remotes = list(dict.fromkeys(remote_chain_ids))
    policy = profile.fee_policy

    for chain_id in remotes:
        if chain_id not in profile.block_confirmations:
            raise ConfigurationInvariantViolation(
                f"No block confirmations declared for chain {chain_id}"
            )
        if chain_id not in profile.remote_bridges:
            raise ConfigurationInvariantViolation(f"No bridge peer declared for chain {chain_id}")

    def scaled(chain_id: int, value: int) -> int:
        return value * profile.gas_multipliers.get(chain_id, 1)

    msglib = MsgLibConfig(
        address_size=profile.remote_address_size,
        default_send_version=profile.send_version,
        default_receive_version=profile.receive_version,
        default_app_config={
            chain_id: AppConfig(
                oracle=profile.oracle_signer_address,
                relayer=profile.relayer_signer_address,
                inbound_confirmations=profile.block_confirmations[chain_id],
                outbound_confirmations=policy.outbound_confirmations,
            )
            for chain_id in remotes
        },
    )

    endpoint = EndpointConfig(
        default_executor=ExecutorRef(
            version=profile.executor_version,
            address=profile.executor_address,
        ),
        default_adapter_params={
            chain_id: scaled(chain_id, policy.default_ua_gas) for chain_id in remotes
        },
    )

    executor = ExecutorConfig(
        address=profile.executor_address,
        fee={
            chain_id: ExecutorFee(
                airdrop_amt_cap=scaled(chain_id, policy.executor_airdrop_cap),
                price_ratio=policy.executor_price_ratio,
                gas_price=policy.executor_gas_price,
            )
            for chain_id in remotes
        },
    )

    relayer = RelayerConfig(
        signer_address=profile.relayer_signer_address,
        fee={
            chain_id: SignerFee(
                base_fee=scaled(chain_id, policy.relayer_base_fee),
                fee_per_byte=policy.relayer_fee_per_byte,
            )
            for chain_id in remotes
        },
    )

    oracle = OracleConfig(
        address=profile.oracle_address,
        signer_address=profile.oracle_signer_address,
        fee={
            chain_id: SignerFee(base_fee=scaled(chain_id, policy.oracle_base_fee))
            for chain_id in remotes
        },
        validators=dict(profile.oracle_validators),
        threshold=profile.oracle_threshold,
    )

    coins: dict[str, CoinConfig] = {}
    for coin in profile.coins:
        # Tokens on chains outside this run are left out entirely.
        coin_remotes = {
            chain_id: RemoteCoin(
                address=profile_token,
                unwrappable=coin.unwrappable,
            )
            for chain_id, profile_token in coin.remote_tokens.items()
            if chain_id in remotes
        }
        coins[coin.symbol] = CoinConfig(
            name=coin.name,
            symbol=coin.symbol,
            decimals=coin.decimals,
            limiter=coin.limiter,
            remotes=coin_remotes,
        )

    bridge = BridgeConfig(
        address=profile.bridge_address,
        enable_custom_adapter_params=profile.enable_custom_adapter_params,
        remote_bridge={
            chain_id: RemoteBridge(
                address=profile.remote_bridges[chain_id],
                address_size=profile.remote_address_size,
            )
            for chain_id in remotes
        },
        min_dst_gas={
            BridgePacketType.SEND: {
                chain_id: scaled(chain_id, policy.min_dst_gas_send) for chain_id in remotes
            },
        },
        coins=coins,
    )

    logger.debug("Built target config for %d remote chains", len(remotes))
    return TargetConfig(
        local_chain_id=profile.local_chain_id,
        remote_chain_ids=remotes,
        layerzero_address=profile.layerzero_address,
        msglib=msglib,
        endpoint=endpoint,
        executor=executor,
        relayer=relayer,
        oracle=oracle,
        bridge=bridge,
    )
