"""
Tests for the in-memory simulated ledger.

Test plan:
- submit: accepted, 0x + 64 hex tx hash, distinct hashes
- confirmation delay drawn from [5, 10] seconds
- no receipt until the delay is exceeded, success receipt with block after it
- block number stable across reads
- unknown hash → synthesized confirmed receipt
- injected state is shared between clients
"""

import random

import pytest

from hashnote.ledger.client import LedgerMode
from hashnote.ledger.codec import is_hex
from hashnote.ledger.simulated import (
    MAX_BLOCK_NUMBER,
    MAX_CONFIRM_DELAY,
    MIN_BLOCK_NUMBER,
    MIN_CONFIRM_DELAY,
    SimulatedLedgerClient,
    SimulatedLedgerState,
)

MSG_HASH = "0x" + "12" * 32


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_client(clock: FakeClock, state: SimulatedLedgerState | None = None) -> SimulatedLedgerClient:
    return SimulatedLedgerClient(
        state,
        clock=clock,
        rng=random.Random(1234),
        now_iso=lambda: "2026-01-01T00:00:00+00:00",
    )


class TestSubmit:
    @pytest.mark.asyncio
    async def test_accepted_with_hash(self) -> None:
        client = make_client(FakeClock())
        result = await client.submit(MSG_HASH)
        assert result.accepted
        assert result.error_code is None
        assert result.tx_hash is not None
        assert result.tx_hash.startswith("0x")
        assert is_hex(result.tx_hash, 64)

    @pytest.mark.asyncio
    async def test_hashes_are_distinct(self) -> None:
        client = make_client(FakeClock())
        hashes = {(await client.submit(MSG_HASH)).tx_hash for _ in range(20)}
        assert len(hashes) == 20

    @pytest.mark.asyncio
    async def test_delay_within_bounds(self) -> None:
        clock = FakeClock()
        client = make_client(clock)
        for _ in range(50):
            result = await client.submit(MSG_HASH)
            tx = client.state.transactions[result.tx_hash]
            delay = tx.confirm_after - tx.created_at
            assert MIN_CONFIRM_DELAY <= delay <= MAX_CONFIRM_DELAY

    def test_mode(self) -> None:
        assert make_client(FakeClock()).mode is LedgerMode.SIMULATED


class TestConfirmation:
    @pytest.mark.asyncio
    async def test_no_receipt_before_delay(self) -> None:
        clock = FakeClock()
        client = make_client(clock)
        tx_hash = (await client.submit(MSG_HASH)).tx_hash
        tx = client.state.transactions[tx_hash]

        clock.now = tx.confirm_after - 0.001
        assert await client.get_receipt(tx_hash) is None
        assert not await client.is_confirmed(tx_hash)

    @pytest.mark.asyncio
    async def test_no_receipt_exactly_at_delay(self) -> None:
        clock = FakeClock()
        client = make_client(clock)
        tx_hash = (await client.submit(MSG_HASH)).tx_hash
        tx = client.state.transactions[tx_hash]

        clock.now = tx.confirm_after
        assert await client.get_receipt(tx_hash) is None

        clock.now = tx.confirm_after + 0.001
        assert await client.get_receipt(tx_hash) is not None

    @pytest.mark.asyncio
    async def test_never_confirms_before_minimum_delay(self) -> None:
        clock = FakeClock()
        client = make_client(clock)
        tx_hash = (await client.submit(MSG_HASH)).tx_hash

        clock.advance(MIN_CONFIRM_DELAY - 0.01)
        assert await client.get_receipt(tx_hash) is None

    @pytest.mark.asyncio
    async def test_receipt_after_delay(self) -> None:
        clock = FakeClock()
        client = make_client(clock)
        tx_hash = (await client.submit(MSG_HASH)).tx_hash

        clock.advance(MAX_CONFIRM_DELAY + 0.5)
        receipt = await client.get_receipt(tx_hash)
        assert receipt is not None
        assert receipt.succeeded
        assert receipt.tx_hash == tx_hash
        assert MIN_BLOCK_NUMBER <= receipt.block_number <= MAX_BLOCK_NUMBER
        assert await client.is_confirmed(tx_hash)

    @pytest.mark.asyncio
    async def test_block_number_is_stable(self) -> None:
        clock = FakeClock()
        client = make_client(clock)
        tx_hash = (await client.submit(MSG_HASH)).tx_hash
        clock.advance(MAX_CONFIRM_DELAY + 0.5)

        first = await client.get_receipt(tx_hash)
        clock.advance(60)
        second = await client.get_receipt(tx_hash)
        assert first is not None and second is not None
        assert first.block_number == second.block_number

    @pytest.mark.asyncio
    async def test_unknown_hash_is_confirmed(self) -> None:
        client = make_client(FakeClock())
        unknown = "0x" + "ee" * 32
        receipt = await client.get_receipt(unknown)
        assert receipt is not None
        assert receipt.succeeded
        assert receipt.block_number is not None
        assert await client.is_confirmed(unknown)


class TestSharedState:
    @pytest.mark.asyncio
    async def test_state_shared_between_clients(self) -> None:
        clock = FakeClock()
        state = SimulatedLedgerState()
        writer = make_client(clock, state)
        reader = make_client(clock, state)

        tx_hash = (await writer.submit(MSG_HASH)).tx_hash
        assert await reader.get_receipt(tx_hash) is None
        clock.advance(MAX_CONFIRM_DELAY + 0.5)
        assert await reader.is_confirmed(tx_hash)
