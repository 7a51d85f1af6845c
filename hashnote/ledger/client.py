"""
Ledger client protocol — the network boundary.

Defines the interface that the anchoring service depends on, not a
concrete implementation. Three variants exist and are selected once at
startup (see ``hashnote.bootstrap.create_ledger_client``):

    - SimulatedLedgerClient (in-memory, randomized confirmation delay)
    - ReadOnlyLedgerClient (JSON-RPC reads, cannot sign)
    - SigningLedgerClient (JSON-RPC reads and signed writes)

The protocol has exactly three methods:
    - submit(msg_hash) → SubmitResult
    - get_receipt(tx_hash) → TxReceipt | None
    - is_confirmed(tx_hash) → bool

All return boring frozen dataclasses or plain values. No exceptions for
"expected" failures — those are captured in the result objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol, runtime_checkable

from hashnote.ledger.errors import ErrorCode

# Receipt status value for a successful transaction.
RECEIPT_STATUS_SUCCESS = "0x1"


class LedgerMode(StrEnum):
    """Which ledger variant is wired in."""

    SIMULATED = "simulated"
    READ_ONLY = "read_only"
    SIGNING = "signing"


# =========================================================================
# Result types
# =========================================================================


@dataclass(frozen=True)
class SubmitResult:
    """Result of submitting a message hash to the ledger.

    Attributes:
        accepted: Whether the ledger accepted the transaction. True does
            NOT mean mined — only that a transaction hash was issued.
        tx_hash: Transaction hash ("0x" + 64 hex). None when rejected.
        error_code: Failure category when accepted is False.
        detail: Human-readable cause, preserved from the underlying
            failure (RPC error message, signing error, ...).
    """

    accepted: bool
    tx_hash: str | None = None
    error_code: ErrorCode | None = None
    detail: str | None = None

    @classmethod
    def failure(cls, error_code: ErrorCode, detail: str) -> SubmitResult:
        return cls(accepted=False, error_code=error_code, detail=detail)


@dataclass(frozen=True)
class TxReceipt:
    """A ledger receipt for a mined transaction.

    Attributes:
        tx_hash: Transaction hash the receipt belongs to.
        status: Raw receipt status ("0x1" success, "0x0" reverted).
        block_number: Block height, decoded to int. None if the ledger
            did not report one.
        logs: Log entries emitted by the transaction (raw dicts).
    """

    tx_hash: str
    status: str
    block_number: int | None = None
    logs: tuple[dict[str, Any], ...] = field(default_factory=tuple)

    @property
    def succeeded(self) -> bool:
        return self.status == RECEIPT_STATUS_SUCCESS

    def has_log_from(self, address: str) -> bool:
        """True if any log was emitted by ``address`` (case-insensitive)."""
        wanted = address.lower()
        for log in self.logs:
            emitter = log.get("address")
            if isinstance(emitter, str) and emitter.lower() == wanted:
                return True
        return False


# =========================================================================
# Protocol
# =========================================================================


@runtime_checkable
class LedgerClient(Protocol):
    """Interface for ledger operations.

    Methods are async because network I/O is inherently asynchronous.
    Implementations never retry internally; a negative result goes back
    to the caller, who decides whether to try again later.
    """

    @property
    def mode(self) -> LedgerMode:
        """Which variant this client is."""
        ...

    async def submit(self, msg_hash: str) -> SubmitResult:
        """Anchor a message hash on the ledger.

        Args:
            msg_hash: Content hash ("0x" + 64 hex).

        Returns:
            SubmitResult. Never raises for expected ledger failures.
        """
        ...

    async def get_receipt(self, tx_hash: str) -> TxReceipt | None:
        """Fetch the receipt of a transaction.

        Returns:
            TxReceipt, or None if there is no receipt yet (including when
            the ledger could not be reached).
        """
        ...

    async def is_confirmed(self, tx_hash: str) -> bool:
        """Whether the transaction is mined, succeeded and (where a
        contract is configured) was emitted by that contract."""
        ...
