"""
On-chain module layout.

Where every managed setting lives: the module that owns it, the resource
that stores it, and the table types inside that resource. Three accounts
publish the modules:

- layerzero: messaging library, endpoint, executor and app plumbing.
- oracle: the oracle module.
- bridge: the coin bridge and its limiter.
"""

from __future__ import annotations

from dataclasses import dataclass

from xchain_sync.config import TargetConfig
from xchain_sync.types import full_address

TIMESTAMP_RESOURCE = "0x1::timestamp::CurrentTimeMicroseconds"
"""Ledger clock, in microseconds."""

ULN_CONFIG_MODULE_NAME = "layerzero::uln_config"
MSGLIB_CONFIG_MODULE_NAME = "layerzero::msglib_config"
ENDPOINT_MODULE_NAME = "layerzero::endpoint"
EXECUTOR_MODULE_NAME = "layerzero::executor_v1"
ULN_SIGNER_MODULE_NAME = "layerzero::uln_signer"
ORACLE_MODULE_NAME = "oracle::oracle"
BRIDGE_MODULE_NAME = "bridge::coin_bridge"


@dataclass(frozen=True, slots=True)
class ModuleLayout:
    """Module paths and resource types derived from the three publishing accounts."""

    layerzero: str
    oracle: str
    bridge: str

    def __post_init__(self) -> None:
        for name in ("layerzero", "oracle", "bridge"):
            object.__setattr__(self, name, full_address(getattr(self, name)))

    @classmethod
    def from_target(cls, target: TargetConfig) -> ModuleLayout:
        """Layout of the accounts a target configuration names."""
        return cls(
            layerzero=target.layerzero_address,
            oracle=target.oracle.address,
            bridge=target.bridge.address,
        )

    # -------------------------------------------------------------------------
    # Modules
    # -------------------------------------------------------------------------

    @property
    def uln_config(self) -> str:
        return f"{self.layerzero}::uln_config"

    @property
    def msglib_config(self) -> str:
        return f"{self.layerzero}::msglib_config"

    @property
    def executor_config(self) -> str:
        return f"{self.layerzero}::executor_config"

    @property
    def executor_v1(self) -> str:
        return f"{self.layerzero}::executor_v1"

    @property
    def uln_signer(self) -> str:
        return f"{self.layerzero}::uln_signer"

    @property
    def remote(self) -> str:
        return f"{self.layerzero}::remote"

    @property
    def lzapp(self) -> str:
        return f"{self.layerzero}::lzapp"

    @property
    def oracle_module(self) -> str:
        return f"{self.oracle}::oracle"

    @property
    def coin_bridge(self) -> str:
        return f"{self.bridge}::coin_bridge"

    @property
    def limiter(self) -> str:
        return f"{self.bridge}::limiter"

    # -------------------------------------------------------------------------
    # Resources and table types
    # -------------------------------------------------------------------------

    @property
    def chain_config_resource(self) -> str:
        return f"{self.uln_config}::ChainConfig"

    @property
    def default_uln_config_resource(self) -> str:
        return f"{self.uln_config}::DefaultUlnConfig"

    @property
    def uln_config_type(self) -> str:
        return f"{self.uln_config}::UlnConfig"

    @property
    def msglib_config_resource(self) -> str:
        return f"{self.msglib_config}::MsgLibConfig"

    @property
    def semver_type(self) -> str:
        return f"{self.layerzero}::semver::SemVer"

    @property
    def executor_config_store(self) -> str:
        return f"{self.executor_config}::ConfigStore"

    @property
    def executor_ref_type(self) -> str:
        return f"{self.executor_config}::Config"

    @property
    def adapter_params_resource(self) -> str:
        return f"{self.executor_v1}::AdapterParamsConfig"

    @property
    def executor_resource(self) -> str:
        return f"{self.executor_v1}::ExecutorConfig"

    @property
    def executor_fee_type(self) -> str:
        return f"{self.executor_v1}::Fee"

    @property
    def signer_resource(self) -> str:
        return f"{self.uln_signer}::Config"

    @property
    def signer_fee_type(self) -> str:
        return f"{self.uln_signer}::Fee"

    @property
    def oracle_config_resource(self) -> str:
        return f"{self.oracle_module}::Config"

    @property
    def bridge_config_resource(self) -> str:
        return f"{self.coin_bridge}::Config"

    @property
    def remotes_resource(self) -> str:
        return f"{self.remote}::Remotes"

    @property
    def lzapp_config_resource(self) -> str:
        return f"{self.lzapp}::Config"

    @property
    def path_type(self) -> str:
        return f"{self.lzapp}::Path"

    @property
    def bridge_ua_type(self) -> str:
        """Type that identifies the bridge as a messaging application."""
        return f"{self.coin_bridge}::BridgeUA"

    @property
    def remote_coin_type(self) -> str:
        return f"{self.coin_bridge}::RemoteCoin"

    def coin_type(self, symbol: str) -> str:
        """Fully qualified type of a bridged coin."""
        return f"{self.bridge}::asset::{symbol}"

    def coin_store_resource(self, coin_type: str) -> str:
        return f"{self.coin_bridge}::CoinStore<{coin_type}>"

    def limiter_resource(self, coin_type: str) -> str:
        return f"{self.limiter}::Limiter<{coin_type}>"
