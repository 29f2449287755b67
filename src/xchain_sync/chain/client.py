"""
Ledger client interface.

Defines the Protocol the reconciliation engine reads and writes through.
The concrete transport (RPC, indexer, signing) lives outside this package.
Uses structural subtyping: any class with matching methods satisfies it.

Storage model
-------------
- Resources: typed records published at an account, addressed by
  `(account address, resource type)`.
- Tables: key/value stores referenced by a handle found inside a resource.
- Named values: a single field of a resource published at the account that
  owns the resource's module.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EntryFunctionPayload:
    """A call to an on-chain entry function."""

    function: str
    """Fully qualified function: `<address>::<module>::<name>`."""

    type_arguments: tuple[str, ...] = ()
    """Generic type arguments, fully qualified."""

    arguments: tuple[Any, ...] = ()
    """Call arguments. Bytes travel as `0x` hex strings."""

    def to_dict(self) -> dict[str, Any]:
        """Render in the shape ledger APIs accept."""
        return {
            "function": self.function,
            "type_arguments": list(self.type_arguments),
            "arguments": list(self.arguments),
        }


@dataclass(frozen=True, slots=True)
class Signer:
    """
    Identity that signs calls for one authority.

    Key material never passes through this package. The ledger client maps
    the signer to whatever it needs to sign.
    """

    address: str
    """Account address of the signer."""

    label: str = field(default="", compare=False)
    """Human-readable name for logs."""


class LedgerClient(Protocol):
    """
    Protocol for reading and writing ledger state.

    Every read raises `NotFoundOnChain` when the value does not exist. Any
    other exception is a transport failure.
    """

    async def read_named_value(self, resource_type: str, field: str) -> Any:
        """
        Read one field of a resource published by its module's account.

        Args:
            resource_type: Fully qualified resource type. The account is the
                address prefix of the type.
            field: Name of the field inside the resource.
        """
        ...

    async def read_table_entry(
        self,
        handle: str,
        key_type: str,
        value_type: str,
        key: Any,
    ) -> Any:
        """
        Read one entry of an on-chain table.

        Args:
            handle: Table handle, taken from a resource.
            key_type: Move type of the key.
            value_type: Move type of the value.
            key: The key, in the JSON shape the ledger expects.
        """
        ...

    async def read_account_state(self, address: str, resource_type: str) -> dict[str, Any]:
        """Read a whole resource published at `address`."""
        ...

    async def submit(self, signer: Signer, payload: EntryFunctionPayload) -> str:
        """
        Sign, submit and wait for a call.

        Returns:
            The transaction hash.

        Raises:
            TransactionRejected: If the ledger rejects or fails the call.
        """
        ...


ClientBuilder = Callable[[str], LedgerClient]
"""Builds a client for a network name."""


def chain_family(network: str) -> str:
    """Family of a network name: `aptos-testnet` belongs to `aptos`."""
    return network.split("-", 1)[0]


class ClientFactory:
    """
    Builds and caches one ledger client per network.

    The cache belongs to the factory instance. Two factories never share
    clients, so tests and concurrent runs stay isolated.
    """

    def __init__(
        self,
        builders: Mapping[str, ClientBuilder],
        family_of: Callable[[str], str] = chain_family,
    ) -> None:
        """
        Args:
            builders: Client builder per chain family.
            family_of: Maps a network name to its chain family.
        """
        self._builders = dict(builders)
        self._family_of = family_of
        self._clients: dict[str, LedgerClient] = {}

    def get(self, network: str) -> LedgerClient:
        """
        Get the client for a network, building it on first use.

        Raises:
            KeyError: If no builder is registered for the network's family.
        """
        client = self._clients.get(network)
        if client is None:
            family = self._family_of(network)
            if family not in self._builders:
                raise KeyError(f"No ledger client builder for chain family {family!r}")
            logger.debug("Building %s client for %s", family, network)
            client = self._builders[family](network)
            self._clients[network] = client
        return client

    def cached_networks(self) -> list[str]:
        """Networks with a client already built."""
        return sorted(self._clients)

    def clear(self) -> None:
        """Drop every cached client."""
        self._clients.clear()
