"""Exception hierarchy for configuration reconciliation and the wire codecs."""

from __future__ import annotations

from typing import Any


class XChainSyncError(Exception):
    """
    Base exception for all reconciliation and codec errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class NotFoundOnChain(XChainSyncError):
    """
    Raised by a ledger client when a requested value does not exist.

    The state reader maps this to a declared default for optional fields.
    For required fields it propagates and the run aborts.

    Attributes:
        resource: The resource type, table handle, or named value that was read.
        key: The table key or field, if any.
    """

    def __init__(self, resource: str, key: Any = None) -> None:
        self.resource = resource
        self.key = key

        msg = f"{resource} not found on chain"
        if key is not None:
            msg = f"{resource}[{key!r}] not found on chain"

        super().__init__(msg)


class InvalidWireFormat(XChainSyncError):
    """Raised when bytes cannot be decoded as the expected wire format."""


class TruncatedPacket(InvalidWireFormat):
    """
    Raised when a packet ends before a fixed-width field is complete.

    Attributes:
        field: The field that could not be read.
        needed: Bytes required for that field.
        available: Bytes left in the buffer.
    """

    def __init__(self, field: str, needed: int, available: int) -> None:
        self.field = field
        self.needed = needed
        self.available = available
        super().__init__(f"Packet truncated reading {field}: need {needed} bytes, have {available}")


class InvalidAdapterParams(InvalidWireFormat):
    """
    Raised when adapter params have an unknown tag or the wrong length.

    Attributes:
        tag: The tag read from the first two bytes, if any.
        length: Total length of the encoded params.
    """

    def __init__(self, detail: str, *, tag: int | None = None, length: int | None = None) -> None:
        self.tag = tag
        self.length = length
        super().__init__(f"Invalid adapter params: {detail}")


class AddressWidthMismatch(XChainSyncError):
    """
    Raised when a peer address does not fit the byte width the chain expects.

    Attributes:
        address: The offending address, as given.
        expected: The declared width in bytes.
        actual: The width of the address in bytes.
    """

    def __init__(self, address: str, *, expected: int, actual: int) -> None:
        self.address = address
        self.expected = expected
        self.actual = actual
        super().__init__(f"Address {address} is {actual} bytes, expected {expected}")


class ConfigurationInvariantViolation(XChainSyncError):
    """
    Raised when the target configuration cannot produce a valid call.

    Examples are a required signer address left empty, or a dependency
    declared on a task that does not run before it.
    """


class TransactionRejected(XChainSyncError):
    """
    Raised when the ledger rejects or fails to confirm a submitted call.

    Attributes:
        function: Fully qualified function of the rejected call.
        reason: The error reported by the ledger client.
    """

    def __init__(self, function: str, reason: str) -> None:
        self.function = function
        self.reason = reason
        super().__init__(f"{function} rejected: {reason}")
