"""
Anchoring service — the operations exposed to the HTTP boundary.

    - create(text)       hash, submit (mode-dependent), save once
    - reconcile(id)      one explicit reconciliation attempt
    - get(id)            reconcile, then read
    - verify(id)         reconcile, reload, ask the ledger
    - process_pending()  bulk reconcile; the periodic "tick"

Submission policy by ledger mode:
    simulated  failures are logged and swallowed; the message is still
               saved as pending without a tx_hash.
    signing    failures are returned to the caller; nothing is saved, so
               an anchoring intent is never silently lost.
    read_only  create is rejected up front (no write capability).

Expected failures come back in ``CreateResult.error`` with an
``ErrorCode``; the boundary maps VALIDATION_FAILED to a client error and
UNSUPPORTED_OPERATION to "not implemented".
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Callable

from hashnote.integrity import content_hash
from hashnote.ledger.client import LedgerClient, LedgerMode
from hashnote.ledger.errors import ErrorCode
from hashnote.messages.model import MAX_TEXT_LENGTH, Message
from hashnote.messages.reconcile import ReconciliationEngine
from hashnote.messages.storage import MessageStore

logger = logging.getLogger(__name__)


def _default_now() -> str:
    """RFC3339 UTC timestamp."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S+00:00")


def _default_id() -> str:
    return str(uuid.uuid4())


# =========================================================================
# Result types
# =========================================================================


@dataclass(frozen=True)
class ServiceError:
    """Structured failure returned by service operations."""

    code: ErrorCode
    detail: str

    def to_dict(self) -> dict[str, str]:
        return {"code": str(self.code), "detail": self.detail}


@dataclass(frozen=True)
class CreateResult:
    """Outcome of ``create``: exactly one of message / error is set."""

    message: Message | None = None
    error: ServiceError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of ``verify``.

    Attributes:
        valid: Whether the ledger considers the transaction confirmed.
        status: Stored message status after reconciliation.
        tx_hash: Transaction reference, None if never submitted.
        network: Configured network label.
        block_number: Block height from the receipt, if any.
        contract_address: Configured anchoring contract, if any.
        contract_log_match: Whether the receipt carries a log from the
            contract. Only set for a configured contract on a real ledger.
        error: Reason verification could not run.
    """

    valid: bool
    status: str
    tx_hash: str | None
    network: str
    block_number: int | None = None
    contract_address: str | None = None
    contract_log_match: bool | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "valid": self.valid,
            "status": self.status,
            "tx_hash": self.tx_hash,
            "network": self.network,
        }
        if self.block_number is not None:
            result["block_number"] = self.block_number
        if self.contract_address is not None:
            result["contract_address"] = self.contract_address
        if self.contract_log_match is not None:
            result["contract_log_match"] = self.contract_log_match
        if self.error is not None:
            result["error"] = self.error
        return result


# =========================================================================
# Service
# =========================================================================


class AnchoringService:
    """Creates, reads and verifies anchored messages.

    Args:
        store: Message store.
        ledger: Ledger client (its ``mode`` drives submission policy).
        network: Network label reported by ``verify``.
        contract_address: Optional anchoring contract.
        engine: Reconciliation engine. Built from ledger + store if omitted.
        now_fn: Callable returning RFC3339 UTC timestamps.
        id_fn: Callable returning fresh message ids.
    """

    def __init__(
        self,
        store: MessageStore,
        ledger: LedgerClient,
        *,
        network: str = "localhost",
        contract_address: str | None = None,
        engine: ReconciliationEngine | None = None,
        now_fn: Callable[[], str] | None = None,
        id_fn: Callable[[], str] | None = None,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._network = network
        self._contract_address = contract_address or None
        self._now_fn = now_fn or _default_now
        self._id_fn = id_fn or _default_id
        self._engine = engine or ReconciliationEngine(ledger, store, now_fn=self._now_fn)

    @property
    def mode(self) -> LedgerMode:
        return self._ledger.mode

    # -----------------------------------------------------------------
    # create
    # -----------------------------------------------------------------

    async def create(self, text: str) -> CreateResult:
        text = text.strip()
        if not 1 <= len(text) <= MAX_TEXT_LENGTH:
            logger.warning("Rejected message of length %d", len(text))
            return CreateResult(
                error=ServiceError(
                    ErrorCode.VALIDATION_FAILED,
                    f"Message must be between 1 and {MAX_TEXT_LENGTH} characters",
                )
            )

        try:
            text.encode("utf-8")
        except UnicodeEncodeError:
            logger.warning("Rejected message that is not valid UTF-8 text")
            return CreateResult(
                error=ServiceError(
                    ErrorCode.VALIDATION_FAILED,
                    "Message must be valid UTF-8 text",
                )
            )

        mode = self._ledger.mode
        if mode is LedgerMode.READ_ONLY:
            logger.error("create rejected: ledger is read-only")
            return CreateResult(
                error=ServiceError(
                    ErrorCode.UNSUPPORTED_OPERATION,
                    "read-only mode does not support writing transactions",
                )
            )

        msg_hash = content_hash(text)
        message = Message(
            id=self._id_fn(),
            text=text,
            msg_hash=msg_hash,
            created_at=self._now_fn(),
        )

        result = await self._ledger.submit(msg_hash)
        if result.accepted:
            message = replace(message, tx_hash=result.tx_hash)
        elif mode is LedgerMode.SIGNING:
            logger.error("create %s aborted, submission failed: %s", message.id, result.detail)
            return CreateResult(
                error=ServiceError(
                    result.error_code or ErrorCode.SUBMISSION_FAILED,
                    result.detail or "submission failed",
                )
            )
        else:
            logger.warning(
                "Submission failed for %s in %s mode, saving without tx_hash: %s",
                message.id,
                mode,
                result.detail,
            )

        self._store.save(message)
        logger.info("Created message %s (hash=%s, tx=%s)", message.id, msg_hash, message.tx_hash)
        return CreateResult(message=message)

    # -----------------------------------------------------------------
    # reads
    # -----------------------------------------------------------------

    async def reconcile(self, message_id: str) -> Message | None:
        """Run one reconciliation attempt for a pending message."""
        message = self._store.find_by_id(message_id)
        if message is None:
            return None
        return (await self._engine.reconcile(message)).message

    async def get(self, message_id: str) -> Message | None:
        if await self.reconcile(message_id) is None:
            return None
        return self._store.find_by_id(message_id)

    async def verify(self, message_id: str) -> VerificationResult | None:
        message = self._store.find_by_id(message_id)
        if message is None:
            logger.warning("verify: message %s not found", message_id)
            return None

        if message.tx_hash is None:
            return VerificationResult(
                valid=False,
                status=message.status.value,
                tx_hash=None,
                network=self._network,
                error="No transaction hash",
            )

        tx_hash = message.tx_hash
        await self._engine.reconcile(message)
        reloaded = self._store.find_by_id(message_id)
        if reloaded is None:
            logger.error("verify: message %s vanished during reconciliation", message_id)
            return None
        message = reloaded

        valid = await self._ledger.is_confirmed(tx_hash)
        receipt = await self._ledger.get_receipt(tx_hash)

        contract_log_match = None
        if (
            self._contract_address is not None
            and receipt is not None
            and self._ledger.mode is not LedgerMode.SIMULATED
        ):
            contract_log_match = receipt.has_log_from(self._contract_address)

        logger.info("Verified message %s: valid=%s status=%s", message_id, valid, message.status)
        return VerificationResult(
            valid=valid,
            status=message.status.value,
            tx_hash=tx_hash,
            network=self._network,
            block_number=receipt.block_number if receipt is not None else None,
            contract_address=self._contract_address,
            contract_log_match=contract_log_match,
        )

    # -----------------------------------------------------------------
    # tick
    # -----------------------------------------------------------------

    async def process_pending(self) -> int:
        """Reconcile every pending message with a tx_hash.

        A message whose reconciliation raises is logged and left pending
        for the next tick; the rest of the batch still runs.

        Returns:
            Number of messages whose status changed.
        """
        changed = 0
        for message in self._store.find_pending_with_reference():
            try:
                result = await self._engine.reconcile(message)
            except Exception:
                logger.exception("process_pending: reconciling %s failed", message.id)
                continue
            if result.changed:
                changed += 1
        if changed:
            logger.info("process_pending settled %d message(s)", changed)
        return changed
