"""Tests for the target configuration models and YAML loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from xchain_sync.codec import BridgePacketType
from xchain_sync.config import LibraryVersion, TargetConfig
from xchain_sync.types import full_address

TARGET_YAML = """
localChainId: 10108
remoteChainIds: [10121]
layerzeroAddress: "0x54ad"
msglib:
  addressSize: 20
  defaultSendVersion: "1.0"
  defaultReceiveVersion: "1.0"
  defaultAppConfig:
    10121:
      oracle: "0x0ac2"
      relayer: "0x4e1a"
      inboundConfirmations: 15
      outboundConfirmations: 10
endpoint:
  defaultExecutor:
    version: 1
    address: "0xe1ec"
  defaultAdapterParams:
    10121: 200000
executor:
  address: "0xe1ec"
  fee:
    10121: {airdropAmtCap: 10000000000, priceRatio: 10000000000, gasPrice: 1}
relayer:
  signerAddress: "0x4e1a"
  fee:
    10121: {baseFee: 200000, feePerByte: 1}
oracle:
  address: "0x0ac1"
  signerAddress: "0x0ac2"
  fee:
    10121: {baseFee: 200000}
  validators:
    "0xa1": true
  threshold: 1
bridge:
  address: "0xb41d"
  enableCustomAdapterParams: true
  remoteBridge:
    10121: {address: "0x50002593b7e2d5b0ab27be3c0d1b8f1e0a6c7d63", addressSize: 20}
  minDstGas:
    1: {10121: 150000}
  coins:
    USDC:
      name: USD Coin
      symbol: USDC
      decimals: 6
      remotes:
        10121: {address: "0x07865c6e87b9f70255377e024ace6630c1eaa37f"}
"""


class TestLoading:
    """YAML loading with camel case keys."""

    def test_from_yaml(self) -> None:
        target = TargetConfig.from_yaml(TARGET_YAML)

        assert target.remote_chain_ids == [10121]
        assert target.msglib.default_send_version == LibraryVersion(major=1, minor=0)
        assert target.executor.fee[10121].price_ratio == 10**10
        assert target.bridge.min_dst_gas[BridgePacketType.SEND][10121] == 150_000
        assert target.bridge.coins["USDC"].limiter.enabled is True
        assert target.bridge.coins["USDC"].remotes[10121].unwrappable is False

    def test_from_yaml_file(self, tmp_path: Path) -> None:
        path = tmp_path / "target.yaml"
        path.write_text(TARGET_YAML)
        assert TargetConfig.from_yaml_file(path) == TargetConfig.from_yaml(TARGET_YAML)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            TargetConfig.from_yaml_file(tmp_path / "missing.yaml")

    def test_dump_loads_back(self) -> None:
        target = TargetConfig.from_yaml(TARGET_YAML)
        dumped = target.model_dump(mode="json", by_alias=True)
        assert TargetConfig.model_validate(dumped) == target

    def test_coin_type(self) -> None:
        target = TargetConfig.from_yaml(TARGET_YAML)
        assert target.bridge.coin_type("USDC") == f"{full_address('0xb41d')}::asset::USDC"


class TestValidation:
    """Structural checks on load."""

    def test_entries_outside_scope_rejected(self) -> None:
        content = TARGET_YAML.replace("remoteChainIds: [10121]", "remoteChainIds: [10143]")
        with pytest.raises(ValidationError, match="outside scope"):
            TargetConfig.from_yaml(content)

    def test_duplicate_remotes_rejected(self) -> None:
        content = TARGET_YAML.replace("remoteChainIds: [10121]", "remoteChainIds: [10121, 10121]")
        with pytest.raises(ValidationError, match="Duplicate"):
            TargetConfig.from_yaml(content)

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(ValidationError):
            TargetConfig.from_yaml(TARGET_YAML + "unexpected: 1\n")

    def test_chain_id_must_fit_uint16(self) -> None:
        content = TARGET_YAML.replace("localChainId: 10108", "localChainId: 70000")
        with pytest.raises(ValidationError):
            TargetConfig.from_yaml(content)

    def test_target_is_immutable(self) -> None:
        target = TargetConfig.from_yaml(TARGET_YAML)
        with pytest.raises(ValidationError):
            target.local_chain_id = 1  # type: ignore[misc]


class TestLibraryVersion:
    def test_parse_and_render(self) -> None:
        version = LibraryVersion.model_validate("2.1")
        assert (version.major, version.minor) == (2, 1)
        assert str(version) == "2.1"

    @pytest.mark.parametrize("raw", ["2", "a.b", "1.", "1.2.3"])
    def test_malformed(self, raw: str) -> None:
        with pytest.raises(ValidationError):
            LibraryVersion.model_validate(raw)
