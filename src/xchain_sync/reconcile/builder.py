"""
Transaction builder.

Turns a declared value into the exact call that writes it. Building is
pure: no ledger access, no side effects. Preconditions a call must meet are
checked here, so a bad declaration fails before anything is submitted.
"""

from __future__ import annotations

from typing import Any

from xchain_sync.bridge import ExecutorFee, SignerFee
from xchain_sync.chain import EntryFunctionPayload
from xchain_sync.codec import build_default_adapter_params
from xchain_sync.config import (
    AppConfig,
    CoinConfig,
    ExecutorRef,
    LibraryVersion,
    LimiterConfig,
    RemoteBridge,
    RemoteCoin,
)
from xchain_sync.types import (
    LOCAL_ADDRESS_WIDTH,
    AddressWidthMismatch,
    ConfigurationInvariantViolation,
    full_address,
    is_zero_address,
    padded_address_bytes,
)

from .modules import (
    BRIDGE_MODULE_NAME,
    ENDPOINT_MODULE_NAME,
    EXECUTOR_MODULE_NAME,
    MSGLIB_CONFIG_MODULE_NAME,
    ORACLE_MODULE_NAME,
    ULN_CONFIG_MODULE_NAME,
    ULN_SIGNER_MODULE_NAME,
    ModuleLayout,
)
from .tasks import CallDescriptor


def require_address(what: str, address: str) -> str:
    """Reject an empty or zero address, return it in full form."""
    if not address or is_zero_address(address):
        raise ConfigurationInvariantViolation(f"{what} address is empty")
    return full_address(address)


def _hex(data: bytes) -> str:
    return "0x" + data.hex()


def _require_release(direction: str, version: LibraryVersion) -> None:
    # Major 0 is what an unset library reads as.
    if version.major == 0:
        raise ConfigurationInvariantViolation(
            f"Default {direction} library must be a released version, got {version}"
        )


class TransactionBuilder:
    """Builds the call for each managed setting."""

    def __init__(self, layout: ModuleLayout, chain_address_size: int) -> None:
        """
        Args:
            layout: Where the modules are published.
            chain_address_size: Peer address width the messaging library is
                configured with for the remotes in scope.
        """
        self.layout = layout
        self.chain_address_size = chain_address_size

    @staticmethod
    def _call(
        module_name: str,
        module_path: str,
        function: str,
        arguments: tuple[Any, ...] = (),
        type_arguments: tuple[str, ...] = (),
    ) -> CallDescriptor:
        return CallDescriptor(
            module=module_name,
            function=function,
            payload=EntryFunctionPayload(
                function=f"{module_path}::{function}",
                type_arguments=type_arguments,
                arguments=arguments,
            ),
        )

    # -------------------------------------------------------------------------
    # Module owner
    # -------------------------------------------------------------------------

    def set_chain_address_size(self, remote_chain_id: int, size: int) -> CallDescriptor:
        if not 0 < size <= LOCAL_ADDRESS_WIDTH:
            raise ConfigurationInvariantViolation(f"Invalid chain address size {size}")
        return self._call(
            ULN_CONFIG_MODULE_NAME,
            self.layout.uln_config,
            "set_chain_address_size",
            (remote_chain_id, size),
        )

    def set_default_app_config(self, remote_chain_id: int, config: AppConfig) -> CallDescriptor:
        oracle = require_address("Default oracle", config.oracle)
        relayer = require_address("Default relayer", config.relayer)
        return self._call(
            ULN_CONFIG_MODULE_NAME,
            self.layout.uln_config,
            "set_default_config",
            (
                remote_chain_id,
                oracle,
                relayer,
                config.inbound_confirmations,
                config.outbound_confirmations,
            ),
        )

    def set_default_send_library(
        self, remote_chain_id: int, version: LibraryVersion
    ) -> CallDescriptor:
        _require_release("send", version)
        return self._call(
            MSGLIB_CONFIG_MODULE_NAME,
            self.layout.msglib_config,
            "set_default_send_msglib",
            (remote_chain_id, version.major, version.minor),
        )

    def set_default_receive_library(
        self, remote_chain_id: int, version: LibraryVersion
    ) -> CallDescriptor:
        _require_release("receive", version)
        return self._call(
            MSGLIB_CONFIG_MODULE_NAME,
            self.layout.msglib_config,
            "set_default_receive_msglib",
            (remote_chain_id, version.major, version.minor),
        )

    def set_default_executor(self, remote_chain_id: int, executor: ExecutorRef) -> CallDescriptor:
        address = require_address("Default executor", executor.address)
        return self._call(
            ENDPOINT_MODULE_NAME,
            self.layout.executor_config,
            "set_default_executor",
            (remote_chain_id, executor.version, address),
        )

    def set_default_adapter_params(self, remote_chain_id: int, ua_gas: int) -> CallDescriptor:
        return self._call(
            EXECUTOR_MODULE_NAME,
            self.layout.executor_v1,
            "set_default_adapter_params",
            (remote_chain_id, _hex(build_default_adapter_params(ua_gas))),
        )

    # -------------------------------------------------------------------------
    # Executor, relayer and oracle
    # -------------------------------------------------------------------------

    def register_executor(self) -> CallDescriptor:
        return self._call(EXECUTOR_MODULE_NAME, self.layout.executor_v1, "register")

    def set_executor_fee(self, remote_chain_id: int, fee: ExecutorFee) -> CallDescriptor:
        if fee.price_ratio == 0 or fee.gas_price == 0:
            raise ConfigurationInvariantViolation(
                f"Executor fee for {remote_chain_id} needs a non-zero price ratio and gas price"
            )
        return self._call(
            EXECUTOR_MODULE_NAME,
            self.layout.executor_v1,
            "set_fee",
            (remote_chain_id, fee.airdrop_amt_cap, fee.price_ratio, fee.gas_price),
        )

    def register_relayer(self) -> CallDescriptor:
        return self._call(ULN_SIGNER_MODULE_NAME, self.layout.uln_signer, "register")

    def set_relayer_fee(self, remote_chain_id: int, fee: SignerFee) -> CallDescriptor:
        return self._call(
            ULN_SIGNER_MODULE_NAME,
            self.layout.uln_signer,
            "set_fee",
            (remote_chain_id, fee.base_fee, fee.fee_per_byte),
        )

    def set_oracle_validator(self, validator: str, active: bool) -> CallDescriptor:
        address = require_address("Oracle validator", validator)
        return self._call(
            ORACLE_MODULE_NAME,
            self.layout.oracle_module,
            "set_validator",
            (address, active),
        )

    def set_oracle_threshold(self, threshold: int) -> CallDescriptor:
        if threshold == 0:
            raise ConfigurationInvariantViolation("Oracle threshold must be at least 1")
        return self._call(
            ORACLE_MODULE_NAME, self.layout.oracle_module, "set_threshold", (threshold,)
        )

    def set_oracle_fee(self, remote_chain_id: int, fee: SignerFee) -> CallDescriptor:
        return self._call(
            ORACLE_MODULE_NAME,
            self.layout.oracle_module,
            "set_fee",
            (remote_chain_id, fee.base_fee),
        )

    # -------------------------------------------------------------------------
    # Bridge
    # -------------------------------------------------------------------------

    def enable_custom_adapter_params(self, enabled: bool) -> CallDescriptor:
        return self._call(
            BRIDGE_MODULE_NAME,
            self.layout.coin_bridge,
            "enable_custom_adapter_params",
            (enabled,),
        )

    def set_remote_bridge(self, remote_chain_id: int, remote: RemoteBridge) -> CallDescriptor:
        """
        Trust a bridge peer on a remote chain.

        Raises:
            ConfigurationInvariantViolation: If the peer address is empty.
            AddressWidthMismatch: If the peer is wider than its declared
                width, or the declared width differs from the width the
                messaging library enforces for remotes.
        """
        require_address("Remote bridge", remote.address)
        if remote.address_size != self.chain_address_size:
            raise AddressWidthMismatch(
                remote.address,
                expected=self.chain_address_size,
                actual=remote.address_size,
            )
        peer = padded_address_bytes(remote.address, remote.address_size)
        return self._call(
            BRIDGE_MODULE_NAME,
            self.layout.remote,
            "set",
            (remote_chain_id, _hex(peer)),
        )

    def set_min_dst_gas(self, remote_chain_id: int, packet_type: int, gas: int) -> CallDescriptor:
        return self._call(
            BRIDGE_MODULE_NAME,
            self.layout.lzapp,
            "set_min_dst_gas",
            (remote_chain_id, packet_type, gas),
            (self.layout.bridge_ua_type,),
        )

    def register_coin(self, coin: CoinConfig) -> CallDescriptor:
        return self._call(
            BRIDGE_MODULE_NAME,
            self.layout.coin_bridge,
            "register_coin",
            (coin.name, coin.symbol, coin.decimals, coin.limiter.cap_sd),
            (self.layout.coin_type(coin.symbol),),
        )

    def set_limiter(self, symbol: str, limiter: LimiterConfig) -> CallDescriptor:
        return self._call(
            BRIDGE_MODULE_NAME,
            self.layout.coin_bridge,
            "set_limiter_cap",
            (limiter.enabled, limiter.cap_sd, limiter.window_sec),
            (self.layout.coin_type(symbol),),
        )

    def set_remote_coin(
        self, symbol: str, remote_chain_id: int, remote: RemoteCoin
    ) -> CallDescriptor:
        """
        Map a coin to its token on a remote chain.

        The token address travels left-padded to 32 bytes.
        """
        token = padded_address_bytes(remote.address, LOCAL_ADDRESS_WIDTH)
        return self._call(
            BRIDGE_MODULE_NAME,
            self.layout.coin_bridge,
            "set_remote_coin",
            (remote_chain_id, _hex(token), remote.unwrappable),
            (self.layout.coin_type(symbol),),
        )
