"""
Target configuration.

The declared end state of every managed setting, per authority and per
remote chain. Loaded from a YAML file or assembled by
`xchain_sync.config.builder.build_target_config`.

Per-remote maps are keyed by chain endpoint id. A chain outside the run's
scope never appears as a key.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

import yaml
from pydantic import Field, field_validator, model_validator

from xchain_sync.bridge import (
    DEFAULT_LIMITER_CAP_SD,
    DEFAULT_LIMITER_WINDOW_SEC,
    ExecutorFee,
    SignerFee,
)
from xchain_sync.types import (
    LOCAL_ADDRESS_WIDTH,
    ChainEndpointId,
    FrozenModel,
    Uint8,
    Uint64,
    full_address,
)

AddressWidth = Annotated[int, Field(gt=0, le=LOCAL_ADDRESS_WIDTH)]
"""Byte width of a peer address."""


class LibraryVersion(FrozenModel):
    """Messaging library version, written as `"major.minor"` in files."""

    major: Uint64
    minor: Uint8

    @model_validator(mode="before")
    @classmethod
    def parse_semantic_version(cls, v: Any) -> Any:
        """Accept the `"major.minor"` string form."""
        if isinstance(v, str):
            major, sep, minor = v.partition(".")
            if not sep or not major.isdigit() or not minor.isdigit():
                raise ValueError(f"Library version must look like 'major.minor', got {v!r}")
            return {"major": int(major), "minor": int(minor)}
        return v

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"


class AppConfig(FrozenModel):
    """Default messaging config an application gets towards one remote."""

    oracle: str
    relayer: str
    inbound_confirmations: Uint64
    outbound_confirmations: Uint64


class MsgLibConfig(FrozenModel):
    """Messaging library settings owned by the module owner."""

    address_size: AddressWidth
    """Width of peer addresses on the remotes in scope."""

    default_send_version: LibraryVersion
    default_receive_version: LibraryVersion
    default_app_config: dict[ChainEndpointId, AppConfig] = Field(default_factory=dict)


class ExecutorRef(FrozenModel):
    """Executor selected by default for applications."""

    version: Uint64
    address: str


class EndpointConfig(FrozenModel):
    """Endpoint defaults owned by the module owner."""

    default_executor: ExecutorRef
    default_adapter_params: dict[ChainEndpointId, Uint64] = Field(default_factory=dict)
    """Default gas limit forwarded to applications, per remote."""


class ExecutorConfig(FrozenModel):
    """Executor account and its fee schedule."""

    address: str
    fee: dict[ChainEndpointId, ExecutorFee] = Field(default_factory=dict)


class RelayerConfig(FrozenModel):
    """Relayer signer account and its fee schedule."""

    signer_address: str
    fee: dict[ChainEndpointId, SignerFee] = Field(default_factory=dict)


class OracleConfig(FrozenModel):
    """Oracle module, its signer account, fee schedule and validator set."""

    address: str
    signer_address: str
    fee: dict[ChainEndpointId, SignerFee] = Field(default_factory=dict)
    validators: dict[str, bool] = Field(default_factory=dict)
    """Validator address to whether it should be active."""

    threshold: Uint64


class RemoteBridge(FrozenModel):
    """Trusted bridge peer on a remote chain."""

    address: str
    address_size: AddressWidth


class LimiterConfig(FrozenModel):
    """Declared rate limiter of a coin."""

    enabled: bool = True
    cap_sd: Uint64 = DEFAULT_LIMITER_CAP_SD
    window_sec: Uint64 = DEFAULT_LIMITER_WINDOW_SEC


class RemoteCoin(FrozenModel):
    """Token a coin maps to on a remote chain."""

    address: str
    unwrappable: bool = False


class CoinConfig(FrozenModel):
    """A bridged coin."""

    name: str
    symbol: str
    decimals: Uint8
    limiter: LimiterConfig = Field(default_factory=LimiterConfig)
    remotes: dict[ChainEndpointId, RemoteCoin] = Field(default_factory=dict)


class BridgeConfig(FrozenModel):
    """Bridge application settings."""

    address: str
    enable_custom_adapter_params: bool
    remote_bridge: dict[ChainEndpointId, RemoteBridge] = Field(default_factory=dict)
    min_dst_gas: dict[Uint8, dict[ChainEndpointId, Uint64]] = Field(default_factory=dict)
    """Minimum destination gas per packet type, then per remote."""

    coins: dict[str, CoinConfig] = Field(default_factory=dict)
    """Coins keyed by symbol."""

    def coin_type(self, symbol: str) -> str:
        """Fully qualified type of a bridged coin."""
        return f"{full_address(self.address)}::asset::{symbol}"


class TargetConfig(FrozenModel):
    """Declared configuration of one local chain towards its remotes."""

    local_chain_id: ChainEndpointId
    remote_chain_ids: list[ChainEndpointId]
    """Remote chains this run manages."""

    layerzero_address: str
    """Account that owns the messaging modules."""

    msglib: MsgLibConfig
    endpoint: EndpointConfig
    executor: ExecutorConfig
    relayer: RelayerConfig
    oracle: OracleConfig
    bridge: BridgeConfig

    @field_validator("remote_chain_ids")
    @classmethod
    def reject_duplicate_remotes(cls, v: list[int]) -> list[int]:
        """Each remote appears once."""
        if len(set(v)) != len(v):
            raise ValueError(f"Duplicate remote chain ids: {v}")
        return v

    @model_validator(mode="after")
    def validate_remote_scope(self) -> TargetConfig:
        """Per-remote entries only exist for chains in scope."""
        scope = set(self.remote_chain_ids)
        per_remote: dict[str, set[int]] = {
            "msglib.defaultAppConfig": set(self.msglib.default_app_config),
            "endpoint.defaultAdapterParams": set(self.endpoint.default_adapter_params),
            "executor.fee": set(self.executor.fee),
            "relayer.fee": set(self.relayer.fee),
            "oracle.fee": set(self.oracle.fee),
            "bridge.remoteBridge": set(self.bridge.remote_bridge),
        }
        for packet_type, gas in self.bridge.min_dst_gas.items():
            per_remote[f"bridge.minDstGas[{packet_type}]"] = set(gas)
        for symbol, coin in self.bridge.coins.items():
            per_remote[f"bridge.coins[{symbol}].remotes"] = set(coin.remotes)

        for where, chains in per_remote.items():
            if stray := sorted(chains - scope):
                raise ValueError(f"{where} has entries for chains outside scope: {stray}")
        return self

    @classmethod
    def from_yaml_file(cls, path: Path | str) -> TargetConfig:
        """
        Load a target configuration from a YAML file.

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
    def from_yaml(cls, content: str) -> TargetConfig:
        """Load a target configuration from a YAML string."""
        return cls.model_validate(yaml.safe_load(content))
