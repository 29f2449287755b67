"""Tests for building the call of each managed setting."""

import pytest

from tests.xchain_sync.helpers import ETHEREUM, PEER_ETHEREUM, USDC_ETHEREUM, make_target
from xchain_sync.bridge import ExecutorFee
from xchain_sync.config import AppConfig, ExecutorRef, LibraryVersion, RemoteBridge, RemoteCoin
from xchain_sync.reconcile import ModuleLayout, TransactionBuilder, require_address
from xchain_sync.types import AddressWidthMismatch, ConfigurationInvariantViolation, full_address

TARGET = make_target()
LAYOUT = ModuleLayout.from_target(TARGET)


@pytest.fixture
def builder() -> TransactionBuilder:
    return TransactionBuilder(LAYOUT, chain_address_size=20)


class TestModuleOwnerCalls:
    def test_app_config_uses_full_addresses(self, builder: TransactionBuilder) -> None:
        config = AppConfig(
            oracle="0x0ac2", relayer="0x4e1a", inbound_confirmations=15, outbound_confirmations=10
        )
        call = builder.set_default_app_config(ETHEREUM, config)

        assert call.module == "layerzero::uln_config"
        assert call.function == "set_default_config"
        assert call.payload.function == f"{LAYOUT.layerzero}::uln_config::set_default_config"
        assert call.args == (ETHEREUM, full_address("0x0ac2"), full_address("0x4e1a"), 15, 10)

    def test_app_config_requires_relayer(self, builder: TransactionBuilder) -> None:
        config = AppConfig(
            oracle="0x0ac2", relayer="0x0", inbound_confirmations=15, outbound_confirmations=10
        )
        with pytest.raises(ConfigurationInvariantViolation, match="relayer"):
            builder.set_default_app_config(ETHEREUM, config)

    def test_library_version(self, builder: TransactionBuilder) -> None:
        call = builder.set_default_send_library(ETHEREUM, LibraryVersion(major=1, minor=2))
        assert call.function == "set_default_send_msglib"
        assert call.args == (ETHEREUM, 1, 2)

    @pytest.mark.parametrize("direction", ["send", "receive"])
    def test_unreleased_library_rejected(self, builder: TransactionBuilder, direction: str) -> None:
        build = getattr(builder, f"set_default_{direction}_library")
        with pytest.raises(ConfigurationInvariantViolation, match="released version, got 0.1"):
            build(ETHEREUM, LibraryVersion(major=0, minor=1))

    def test_default_executor_requires_address(self, builder: TransactionBuilder) -> None:
        with pytest.raises(ConfigurationInvariantViolation):
            builder.set_default_executor(ETHEREUM, ExecutorRef(version=1, address=""))

    def test_adapter_params_are_encoded(self, builder: TransactionBuilder) -> None:
        call = builder.set_default_adapter_params(ETHEREUM, 200_000)
        assert call.args == (ETHEREUM, "0x0001" + (200_000).to_bytes(8, "big").hex())

    @pytest.mark.parametrize("size", [0, 33])
    def test_chain_address_size_bounds(self, builder: TransactionBuilder, size: int) -> None:
        with pytest.raises(ConfigurationInvariantViolation):
            builder.set_chain_address_size(ETHEREUM, size)


class TestSignerCalls:
    def test_executor_fee(self, builder: TransactionBuilder) -> None:
        fee = ExecutorFee(airdrop_amt_cap=1, price_ratio=2, gas_price=3)
        call = builder.set_executor_fee(ETHEREUM, fee)

        assert call.module == "layerzero::executor_v1"
        assert call.args == (ETHEREUM, 1, 2, 3)

    @pytest.mark.parametrize(
        "fee",
        [
            ExecutorFee(airdrop_amt_cap=1, price_ratio=0, gas_price=3),
            ExecutorFee(airdrop_amt_cap=1, price_ratio=2, gas_price=0),
        ],
    )
    def test_executor_fee_needs_market_fields(
        self, builder: TransactionBuilder, fee: ExecutorFee
    ) -> None:
        with pytest.raises(ConfigurationInvariantViolation, match="non-zero"):
            builder.set_executor_fee(ETHEREUM, fee)

    def test_register_has_no_arguments(self, builder: TransactionBuilder) -> None:
        assert builder.register_relayer().args == ()
        assert builder.register_executor().payload.function.endswith("::executor_v1::register")

    def test_zero_threshold_rejected(self, builder: TransactionBuilder) -> None:
        with pytest.raises(ConfigurationInvariantViolation, match="at least 1"):
            builder.set_oracle_threshold(0)

    def test_oracle_validator(self, builder: TransactionBuilder) -> None:
        call = builder.set_oracle_validator("0xa1", False)

        assert call.module == "oracle::oracle"
        assert call.args == (full_address("0xa1"), False)


class TestBridgeCalls:
    def test_remote_bridge_keeps_its_width(self, builder: TransactionBuilder) -> None:
        remote = RemoteBridge(address=PEER_ETHEREUM, address_size=20)
        call = builder.set_remote_bridge(ETHEREUM, remote)
        assert call.args == (ETHEREUM, PEER_ETHEREUM)

    def test_short_remote_bridge_is_padded(self, builder: TransactionBuilder) -> None:
        call = builder.set_remote_bridge(ETHEREUM, RemoteBridge(address="0xabcd", address_size=20))
        assert call.args == (ETHEREUM, "0x" + "00" * 18 + "abcd")

    def test_remote_bridge_wider_than_declared(self, builder: TransactionBuilder) -> None:
        remote = RemoteBridge(address="0x" + "11" * 21, address_size=20)
        with pytest.raises(AddressWidthMismatch):
            builder.set_remote_bridge(ETHEREUM, remote)

    def test_remote_bridge_width_must_match_chain(self, builder: TransactionBuilder) -> None:
        remote = RemoteBridge(address=PEER_ETHEREUM, address_size=32)
        with pytest.raises(AddressWidthMismatch) as exc_info:
            builder.set_remote_bridge(ETHEREUM, remote)

        assert (exc_info.value.expected, exc_info.value.actual) == (20, 32)

    def test_remote_bridge_zero_address(self, builder: TransactionBuilder) -> None:
        with pytest.raises(ConfigurationInvariantViolation):
            builder.set_remote_bridge(ETHEREUM, RemoteBridge(address="0x00", address_size=20))

    def test_remote_coin_padded_to_local_width(self, builder: TransactionBuilder) -> None:
        call = builder.set_remote_coin("USDC", ETHEREUM, RemoteCoin(address=USDC_ETHEREUM))

        assert call.payload.type_arguments == (LAYOUT.coin_type("USDC"),)
        assert call.args == (ETHEREUM, full_address(USDC_ETHEREUM), False)

    def test_min_dst_gas_typed_by_bridge(self, builder: TransactionBuilder) -> None:
        call = builder.set_min_dst_gas(ETHEREUM, 1, 150_000)

        assert call.payload.type_arguments == (LAYOUT.bridge_ua_type,)
        assert call.args == (ETHEREUM, 1, 150_000)

    def test_register_coin(self, builder: TransactionBuilder) -> None:
        coin = TARGET.bridge.coins["USDC"]
        call = builder.register_coin(coin)

        assert call.args == ("USD Coin", "USDC", 6, coin.limiter.cap_sd)
        assert call.payload.type_arguments == (LAYOUT.coin_type("USDC"),)

    def test_building_is_pure(self, builder: TransactionBuilder) -> None:
        coin = TARGET.bridge.coins["WETH"]
        assert builder.register_coin(coin) == builder.register_coin(coin)


def test_require_address() -> None:
    assert require_address("Oracle", "0x1") == full_address("0x1")
    with pytest.raises(ConfigurationInvariantViolation, match="Oracle address is empty"):
        require_address("Oracle", "")
