"""
Simulated ledger — in-memory, best-effort, for development and demos.

Each submission gets a random transaction hash and a confirmation delay
drawn uniformly from [5, 10] seconds. Until the elapsed time exceeds the
delay there is no receipt; after that the transaction flips to
confirmed with a random block number.

Restart tolerance:
    A hash the table has never seen (e.g. the process restarted and the
    table was lost) is treated as already confirmed with a synthesized
    block number, so stored messages still settle.

State:
    The transaction table lives in an injectable ``SimulatedLedgerState``
    guarded by a lock. It is process-local; replicas do not share it.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from hashnote.ledger.client import LedgerMode, SubmitResult, TxReceipt

logger = logging.getLogger(__name__)

# Confirmation delay bounds, in seconds.
MIN_CONFIRM_DELAY = 5.0
MAX_CONFIRM_DELAY = 10.0

# Range for synthesized block numbers.
MIN_BLOCK_NUMBER = 1_000_000
MAX_BLOCK_NUMBER = 9_999_999


def _default_now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S+00:00")


@dataclass
class SimulatedTx:
    """One row of the simulated transaction table."""

    tx_hash: str
    msg_hash: str
    created_at: float
    confirm_after: float
    confirmed: bool = False
    block_number: int | None = None
    confirmed_at: str | None = None


@dataclass
class SimulatedLedgerState:
    """Process-local transaction table, keyed by tx hash."""

    transactions: dict[str, SimulatedTx] = field(default_factory=dict)
    lock: threading.Lock = field(default_factory=threading.Lock)


class SimulatedLedgerClient:
    """In-memory LedgerClient with a randomized confirmation delay.

    Args:
        state: Transaction table. A fresh one is created if omitted.
        clock: Returns the current time in seconds. Inject for tests.
        rng: Random source for hashes, delays and block numbers.
        now_iso: Returns RFC3339 timestamps for confirmation records.
    """

    def __init__(
        self,
        state: SimulatedLedgerState | None = None,
        *,
        clock: Callable[[], float] | None = None,
        rng: random.Random | None = None,
        now_iso: Callable[[], str] | None = None,
    ) -> None:
        self._state = state if state is not None else SimulatedLedgerState()
        self._clock = clock or time.time
        self._rng = rng or random.Random()
        self._now_iso = now_iso or _default_now_iso

    @property
    def mode(self) -> LedgerMode:
        return LedgerMode.SIMULATED

    @property
    def state(self) -> SimulatedLedgerState:
        return self._state

    async def submit(self, msg_hash: str) -> SubmitResult:
        now = self._clock()
        delay = self._rng.uniform(MIN_CONFIRM_DELAY, MAX_CONFIRM_DELAY)

        with self._state.lock:
            tx_hash = self._new_hash()
            while tx_hash in self._state.transactions:
                tx_hash = self._new_hash()
            self._state.transactions[tx_hash] = SimulatedTx(
                tx_hash=tx_hash,
                msg_hash=msg_hash,
                created_at=now,
                confirm_after=now + delay,
            )

        logger.info(
            "Simulated submission of %s as %s (confirms in %.1fs)",
            msg_hash,
            tx_hash,
            delay,
        )
        return SubmitResult(accepted=True, tx_hash=tx_hash)

    async def get_receipt(self, tx_hash: str) -> TxReceipt | None:
        now = self._clock()

        with self._state.lock:
            tx = self._state.transactions.get(tx_hash)
            if tx is None:
                tx = SimulatedTx(
                    tx_hash=tx_hash,
                    msg_hash="",
                    created_at=now,
                    confirm_after=now,
                    confirmed=True,
                    block_number=self._random_block(),
                    confirmed_at=self._now_iso(),
                )
                self._state.transactions[tx_hash] = tx
                logger.info("Simulated ledger has no record of %s; treating as confirmed", tx_hash)
            elif not tx.confirmed and now > tx.confirm_after:
                tx.confirmed = True
                tx.block_number = self._random_block()
                tx.confirmed_at = self._now_iso()
                logger.debug("Simulated transaction %s confirmed in block %d", tx_hash, tx.block_number)

            if not tx.confirmed:
                return None
            return TxReceipt(tx_hash=tx_hash, status="0x1", block_number=tx.block_number)

    async def is_confirmed(self, tx_hash: str) -> bool:
        receipt = await self.get_receipt(tx_hash)
        return receipt is not None and receipt.succeeded

    def _new_hash(self) -> str:
        return "0x" + self._rng.getrandbits(256).to_bytes(32, "big").hex()

    def _random_block(self) -> int:
        return self._rng.randint(MIN_BLOCK_NUMBER, MAX_BLOCK_NUMBER)
