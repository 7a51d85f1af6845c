"""
Reconciliation — bring a stored message in line with the ledger.

One call to ``reconcile()`` does:
    1. Skip messages without a tx_hash (nothing to check).
    2. Skip terminal messages (confirmed/failed never change again).
    3. Fetch the receipt. No receipt → no transition.
    4. Re-read the stored row; the caller's copy may be stale by now.
       A row that is already terminal is left alone.
    5. Map the receipt status: success → confirmed, otherwise failed.
    6. If the mapped status differs from the stored one, persist it via
       a compare-and-set ``store.update``. On confirmed, block_number and
       confirmed_at are set in the same step.

Repeated calls against an unchanged ledger perform no further writes.
No loops, no retries; callers decide when to try again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from hashnote.ledger.client import LedgerClient
from hashnote.messages.model import Message, MessageStatus
from hashnote.messages.storage import MessageStore

logger = logging.getLogger(__name__)


def _default_now() -> str:
    """RFC3339 UTC timestamp."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S+00:00")


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of reconciling one message.

    Attributes:
        message: The message as it stands after reconciliation.
        changed: True if a transition was applied and persisted.
    """

    message: Message
    changed: bool = False


class ReconciliationEngine:
    """Advances message status from ledger receipts.

    Args:
        ledger: Ledger client used for receipt lookups.
        store: Message store used to persist transitions.
        now_fn: Callable returning RFC3339 UTC timestamps. Inject for tests.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        store: MessageStore,
        *,
        now_fn: Callable[[], str] | None = None,
    ) -> None:
        self._ledger = ledger
        self._store = store
        self._now_fn = now_fn or _default_now

    async def reconcile(self, message: Message) -> ReconcileResult:
        if message.tx_hash is None or message.status.is_terminal:
            return ReconcileResult(message)

        receipt = await self._ledger.get_receipt(message.tx_hash)
        if receipt is None:
            logger.debug("No receipt yet for message %s (%s)", message.id, message.tx_hash)
            return ReconcileResult(message)

        # the snapshot may be stale after the await above
        current = self._store.find_by_id(message.id)
        if current is None:
            logger.warning("Message %s disappeared during reconciliation", message.id)
            return ReconcileResult(message)
        if current.status.is_terminal:
            return ReconcileResult(current)

        status = MessageStatus.CONFIRMED if receipt.succeeded else MessageStatus.FAILED
        if status == current.status:
            return ReconcileResult(current)

        if status is MessageStatus.CONFIRMED:
            updated = current.with_status(
                status,
                block_number=receipt.block_number,
                confirmed_at=self._now_fn(),
            )
        else:
            updated = current.with_status(status)

        if not self._store.update(updated, expected_status=current.status):
            logger.info("Message %s settled concurrently, skipping write", message.id)
            return ReconcileResult(self._store.find_by_id(message.id) or current)

        logger.info(
            "Message %s moved %s → %s (tx=%s, block=%s)",
            message.id,
            current.status,
            status,
            message.tx_hash,
            updated.block_number,
        )
        return ReconcileResult(updated, changed=True)
