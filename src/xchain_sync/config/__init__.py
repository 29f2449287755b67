"""Target configuration: declared models, YAML loading and the profile builder."""

from .builder import CoinDeclaration, FeePolicy, WiringProfile, build_target_config
from .target import (
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

__all__ = [
    "AppConfig",
    "BridgeConfig",
    "CoinConfig",
    "CoinDeclaration",
    "EndpointConfig",
    "ExecutorConfig",
    "ExecutorRef",
    "FeePolicy",
    "LibraryVersion",
    "LimiterConfig",
    "MsgLibConfig",
    "OracleConfig",
    "RelayerConfig",
    "RemoteBridge",
    "RemoteCoin",
    "TargetConfig",
    "WiringProfile",
    "build_target_config",
]
