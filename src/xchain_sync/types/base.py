"""Reusable, immutable base models for configuration and ledger records."""

from typing import Any, Self

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    A base model that converts field names to camel case when serializing.

    For example, the field name `remote_chain_ids` in a Python model will be
    represented as `remoteChainIds` in YAML or JSON.

    Wiring files written by operators use the camel case spelling.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_default=True,
    )

    def copy(self: Self, **kwargs: Any) -> Self:
        """Create a copy of the model with the updated fields that are validated."""
        return self.__class__(**(self.model_dump(exclude_unset=True) | kwargs))


class FrozenModel(CamelModel):
    """
    An immutable pydantic base model that rejects unknown fields.

    Validation stays lax: ledgers report u64 values as decimal strings and
    those must coerce to `int`.
    """

    model_config = CamelModel.model_config | {
        "extra": "forbid",
        "frozen": True,
    }
