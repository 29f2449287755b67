"""Ledger access: client protocol, per-network factory and an in-memory client."""

from .client import (
    ClientBuilder,
    ClientFactory,
    EntryFunctionPayload,
    LedgerClient,
    Signer,
    chain_family,
)
from .memory import CallHandler, InMemoryLedgerClient, SubmittedCall, function_suffix

__all__ = [
    "CallHandler",
    "ClientBuilder",
    "ClientFactory",
    "EntryFunctionPayload",
    "InMemoryLedgerClient",
    "LedgerClient",
    "Signer",
    "SubmittedCall",
    "chain_family",
    "function_suffix",
]
