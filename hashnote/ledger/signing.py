"""
Signing ledger client — the full write path.

``submit(msg_hash)`` runs six steps:

    1. nonce      eth_getTransactionCount(sender, "pending")
    2. gas price  eth_gasPrice, clamped up to the configured floor;
                  the floor is also the fallback when the call fails
    3. gas limit  21000 without a contract; otherwise eth_estimateGas
                  plus 20%, falling back to 100000
    4. build      to = contract or self, value 0, data = hash or call,
                  chain id from eth_chainId or the configured fallback
    5. sign       EIP-155 with the chain id; failure ends the submission
    6. broadcast  eth_sendRawTransaction

The "pending" nonce view counts mempool transactions, so two submissions
issued before either is mined still get distinct nonces. Steps 1–6 hold
a per-client lock for the same reason: the second submission reads the
count only after the first has been broadcast.

Reads (get_receipt, is_confirmed) delegate to a ReadOnlyLedgerClient
sharing the same JSON-RPC caller.

No retries. Every failure comes back as SUBMISSION_FAILED with the
underlying message preserved in ``detail``.
"""

from __future__ import annotations

import asyncio
import logging

from hashnote.ledger.client import LedgerMode, SubmitResult, TxReceipt
from hashnote.ledger.codec import from_quantity, to_quantity
from hashnote.ledger.errors import ErrorCode
from hashnote.ledger.jsonrpc_client import JsonRpcClient
from hashnote.ledger.readonly import ReadOnlyLedgerClient
from hashnote.ledger.signer import SigningTransactionBuilder, TransactionSigner
from hashnote.ledger.tx import (
    DEFAULT_CHAIN_ID,
    FALLBACK_CONTRACT_GAS,
    SIMPLE_TRANSFER_GAS,
    apply_gas_margin,
    encode_contract_call,
)

logger = logging.getLogger(__name__)

# Default gas price floor: 2 gwei.
DEFAULT_MIN_GAS_PRICE_WEI = 2_000_000_000


class SubmissionError(Exception):
    """Internal: aborts the submit pipeline with a caller-facing detail."""


class SigningLedgerClient:
    """LedgerClient that builds, signs and broadcasts transactions.

    Args:
        rpc: Shared JSON-RPC caller.
        signer: Key holder for the sending account.
        contract_address: Optional anchoring contract.
        min_gas_price_wei: Gas price floor (and fallback).
        fallback_chain_id: Chain id used when eth_chainId fails.
    """

    def __init__(
        self,
        rpc: JsonRpcClient,
        signer: TransactionSigner,
        *,
        contract_address: str | None = None,
        min_gas_price_wei: int = DEFAULT_MIN_GAS_PRICE_WEI,
        fallback_chain_id: int = DEFAULT_CHAIN_ID,
    ) -> None:
        if min_gas_price_wei <= 0:
            raise ValueError(f"min_gas_price_wei must be > 0, got: {min_gas_price_wei}")

        self._rpc = rpc
        self._contract_address = contract_address or None
        self._builder = SigningTransactionBuilder(signer, self._contract_address)
        self._reader = ReadOnlyLedgerClient(rpc, self._contract_address)
        self._min_gas_price_wei = min_gas_price_wei
        self._fallback_chain_id = fallback_chain_id
        self._submit_lock = asyncio.Lock()

        logger.info(
            "Signing ledger client ready (rpc=%s, sender=%s, contract=%s)",
            rpc.url,
            self.sender,
            self._contract_address,
        )

    @property
    def mode(self) -> LedgerMode:
        return LedgerMode.SIGNING

    @property
    def sender(self) -> str:
        return self._builder.sender

    # -----------------------------------------------------------------
    # LedgerClient protocol methods
    # -----------------------------------------------------------------

    async def submit(self, msg_hash: str) -> SubmitResult:
        async with self._submit_lock:
            try:
                tx_hash = await self._submit(msg_hash)
            except SubmissionError as exc:
                logger.error("Submission of %s failed: %s", msg_hash, exc)
                return SubmitResult.failure(ErrorCode.SUBMISSION_FAILED, str(exc))

        logger.info("Anchored %s in transaction %s", msg_hash, tx_hash)
        return SubmitResult(accepted=True, tx_hash=tx_hash)

    async def get_receipt(self, tx_hash: str) -> TxReceipt | None:
        return await self._reader.get_receipt(tx_hash)

    async def is_confirmed(self, tx_hash: str) -> bool:
        return await self._reader.is_confirmed(tx_hash)

    # -----------------------------------------------------------------
    # Pipeline
    # -----------------------------------------------------------------

    async def _submit(self, msg_hash: str) -> str:
        nonce = await self._get_nonce()
        gas_price = await self._get_gas_price()
        gas = await self._get_gas_limit(msg_hash, gas_price)
        chain_id = await self._get_chain_id()
        logger.info(
            "Submitting %s: nonce=%d gas_price=%d gas=%d chain_id=%d",
            msg_hash,
            nonce,
            gas_price,
            gas,
            chain_id,
        )

        try:
            tx = self._builder.build(
                msg_hash,
                nonce=nonce,
                gas_price=gas_price,
                gas=gas,
                chain_id=chain_id,
            )
            signed = self._builder.sign(tx)
        except Exception as exc:
            raise SubmissionError(f"signing failed: {exc}") from exc

        return await self._broadcast(signed.raw_transaction)

    async def _get_nonce(self) -> int:
        response = await self._rpc.call("eth_getTransactionCount", [self.sender, "pending"])
        nonce = from_quantity(response.result) if response.ok else None
        if nonce is None:
            raise SubmissionError(f"failed to get nonce: {response.error or 'no result'}")
        return nonce

    async def _get_gas_price(self) -> int:
        response = await self._rpc.call("eth_gasPrice", [])
        price = from_quantity(response.result) if response.ok else None
        if price is None:
            logger.warning(
                "eth_gasPrice unavailable, using floor of %d wei", self._min_gas_price_wei
            )
            return self._min_gas_price_wei
        if price < self._min_gas_price_wei:
            logger.info(
                "Network gas price %d wei below floor, using %d wei",
                price,
                self._min_gas_price_wei,
            )
            return self._min_gas_price_wei
        return price

    async def _get_gas_limit(self, msg_hash: str, gas_price: int) -> int:
        if self._contract_address is None:
            return SIMPLE_TRANSFER_GAS

        call = {
            "from": self.sender,
            "to": self._contract_address,
            "data": encode_contract_call(msg_hash),
            "gasPrice": to_quantity(gas_price),
        }
        response = await self._rpc.call("eth_estimateGas", [call])
        estimate = from_quantity(response.result) if response.ok else None
        if estimate is None:
            logger.warning("Gas estimation failed, using %d", FALLBACK_CONTRACT_GAS)
            return FALLBACK_CONTRACT_GAS
        return apply_gas_margin(estimate)

    async def _get_chain_id(self) -> int:
        response = await self._rpc.call("eth_chainId", [])
        chain_id = from_quantity(response.result) if response.ok else None
        if not chain_id:
            return self._fallback_chain_id
        return chain_id

    async def _broadcast(self, raw_transaction: str) -> str:
        response = await self._rpc.call("eth_sendRawTransaction", [raw_transaction])
        if not response.ok:
            raise SubmissionError(f"failed to send transaction: {response.error}")
        if not isinstance(response.result, str) or not response.result:
            raise SubmissionError("failed to send transaction: no transaction hash returned")
        return response.result
