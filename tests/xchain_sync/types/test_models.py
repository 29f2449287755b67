"""Tests for the model base classes and unsigned integer aliases."""

import pytest
from pydantic import ValidationError

from xchain_sync.types import (
    UINT16_MAX,
    UINT64_MAX,
    BasisPoint,
    CamelModel,
    FrozenModel,
    Uint16,
    Uint64,
)


class Sample(FrozenModel):
    chain_id: Uint16
    gas_limit: Uint64
    fee_bps: BasisPoint = 0


class Draft(CamelModel):
    gas_limit: Uint64


def test_camel_case_aliases_and_field_names_both_accepted() -> None:
    assert Sample.model_validate({"chainId": 1, "gasLimit": 2}).gas_limit == 2
    assert Sample(chain_id=1, gas_limit=2).chain_id == 1


def test_dump_by_alias_uses_camel_case() -> None:
    dumped = Sample(chain_id=1, gas_limit=2).model_dump(by_alias=True)
    assert dumped == {"chainId": 1, "gasLimit": 2, "feeBps": 0}


def test_numeric_strings_are_accepted() -> None:
    """Ledgers return u64 values as decimal strings."""
    assert Sample(chain_id="10121", gas_limit="200000").gas_limit == 200_000


@pytest.mark.parametrize(
    "field, value",
    [
        ("chain_id", UINT16_MAX),
        ("chain_id", -1),
        ("gas_limit", UINT64_MAX),
        ("fee_bps", 10_001),
    ],
)
def test_out_of_range_rejected(field: str, value: int) -> None:
    fields = {"chain_id": 1, "gas_limit": 1, field: value}
    with pytest.raises(ValidationError):
        Sample(**fields)


def test_frozen_model_is_immutable() -> None:
    sample = Sample(chain_id=1, gas_limit=2)
    with pytest.raises(ValidationError):
        sample.gas_limit = 3  # type: ignore[misc]


def test_frozen_model_rejects_unknown_fields() -> None:
    with pytest.raises(ValidationError):
        Sample(chain_id=1, gas_limit=2, extra=3)  # type: ignore[call-arg]


def test_copy_returns_independent_instance() -> None:
    draft = Draft(gas_limit=1)
    copied = draft.copy()
    copied.gas_limit = 5
    assert draft.gas_limit == 1
