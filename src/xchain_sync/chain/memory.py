"""
In-memory ledger client, the reference backend for tests and offline dry runs.

No network transport ships with this package. Holds resources and tables
in dictionaries and records every submitted call. Calls only change state
through handlers registered per function, so a caller decides how much
contract behavior to emulate.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Callable
from copy import deepcopy
from dataclasses import dataclass
from typing import Any

from xchain_sync.types import NotFoundOnChain, TransactionRejected, full_address

from .client import EntryFunctionPayload, Signer

logger = logging.getLogger(__name__)

CallHandler = Callable[["InMemoryLedgerClient", Signer, EntryFunctionPayload], None]
"""Applies the effect of one call. Raise `TransactionRejected` to fail it."""


def _canonical_key(key: Any) -> str:
    """Stable string form of a table key. Integers and their decimal strings collide."""

    def normalize(value: Any) -> Any:
        if isinstance(value, bool):
            return value
        if isinstance(value, int):
            return str(value)
        if isinstance(value, dict):
            return {k: normalize(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [normalize(v) for v in value]
        return value

    return json.dumps(normalize(key), sort_keys=True)


def function_suffix(function: str) -> str:
    """Strip the address from a fully qualified function: `module::name`."""
    return function.split("::", 1)[-1]


@dataclass(frozen=True, slots=True)
class SubmittedCall:
    """One call accepted by the in-memory ledger."""

    signer: Signer
    payload: EntryFunctionPayload
    tx_hash: str


class InMemoryLedgerClient:
    """Ledger client backed by dictionaries."""

    def __init__(self) -> None:
        self._resources: dict[tuple[str, str], dict[str, Any]] = {}
        self._tables: dict[str, dict[str, Any]] = {}
        self._handlers: dict[str, CallHandler] = {}
        self._failures: dict[str, str] = {}
        self.submitted: list[SubmittedCall] = []
        self.reads = 0

    # -------------------------------------------------------------------------
    # State setup
    # -------------------------------------------------------------------------

    def put_resource(self, address: str, resource_type: str, data: dict[str, Any]) -> None:
        """Publish or replace a resource."""
        self._resources[(full_address(address), resource_type)] = data

    def get_resource(self, address: str, resource_type: str) -> dict[str, Any] | None:
        """Access a stored resource directly, or None."""
        return self._resources.get((full_address(address), resource_type))

    def create_table(self) -> str:
        """Create an empty table and return its handle."""
        handle = "0x" + format(len(self._tables) + 1, "064x")
        self._tables[handle] = {}
        return handle

    def put_table_entry(self, handle: str, key: Any, value: Any) -> None:
        """Insert or replace a table entry."""
        self._tables[handle][_canonical_key(key)] = value

    def on(self, function: str, handler: CallHandler) -> None:
        """Register the effect of calls to `module::name`."""
        self._handlers[function] = handler

    def fail_on(self, function: str, reason: str) -> None:
        """Reject every call to `module::name` with `reason`."""
        self._failures[function] = reason

    # -------------------------------------------------------------------------
    # LedgerClient
    # -------------------------------------------------------------------------

    async def read_named_value(self, resource_type: str, field: str) -> Any:
        """Read a field of a resource published at its module's account."""
        address = resource_type.split("::", 1)[0]
        data = await self.read_account_state(address, resource_type)
        if field not in data:
            raise NotFoundOnChain(resource_type, field)
        return deepcopy(data[field])

    async def read_table_entry(
        self,
        handle: str,
        key_type: str,
        value_type: str,
        key: Any,
    ) -> Any:
        """Read a table entry."""
        self.reads += 1
        table = self._tables.get(handle)
        if table is None:
            raise NotFoundOnChain(f"table {handle}")
        canonical = _canonical_key(key)
        if canonical not in table:
            raise NotFoundOnChain(f"table {handle} ({key_type} -> {value_type})", key)
        return deepcopy(table[canonical])

    async def read_account_state(self, address: str, resource_type: str) -> dict[str, Any]:
        """Read a whole resource."""
        self.reads += 1
        data = self._resources.get((full_address(address), resource_type))
        if data is None:
            raise NotFoundOnChain(f"{full_address(address)}/{resource_type}")
        return deepcopy(data)

    async def submit(self, signer: Signer, payload: EntryFunctionPayload) -> str:
        """Apply a call through its handler and record it."""
        name = function_suffix(payload.function)
        if name in self._failures:
            raise TransactionRejected(payload.function, self._failures[name])

        handler = self._handlers.get(name)
        if handler is not None:
            handler(self, signer, payload)

        encoded = json.dumps(
            [full_address(signer.address), payload.to_dict(), len(self.submitted)],
            sort_keys=True,
            default=str,
        )
        tx_hash = "0x" + hashlib.sha3_256(encoded.encode()).hexdigest()
        self.submitted.append(SubmittedCall(signer=signer, payload=payload, tx_hash=tx_hash))
        logger.debug("Applied %s from %s as %s", payload.function, signer.address, tx_hash)
        return tx_hash
