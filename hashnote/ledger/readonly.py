"""
Read-only ledger client — JSON-RPC reads, no signing key.

Can look up receipts and decide confirmation, but cannot write: every
``submit`` comes back as UNSUPPORTED_OPERATION.

Confirmation rule:
    - the receipt exists and its status is "0x1", AND
    - if a contract address is configured, at least one log entry was
      emitted by that contract (case-insensitive address match).

A successful transaction without a matching contract log is NOT
confirmed.
"""

from __future__ import annotations

import logging

from hashnote.ledger.client import LedgerMode, SubmitResult, TxReceipt
from hashnote.ledger.errors import ErrorCode
from hashnote.ledger.jsonrpc_client import JsonRpcClient, parse_receipt

logger = logging.getLogger(__name__)


class ReadOnlyLedgerClient:
    """LedgerClient backed by JSON-RPC reads only.

    Args:
        rpc: Shared JSON-RPC caller.
        contract_address: Optional contract whose logs prove confirmation.
    """

    def __init__(self, rpc: JsonRpcClient, contract_address: str | None = None) -> None:
        self._rpc = rpc
        self._contract_address = contract_address or None

    @property
    def mode(self) -> LedgerMode:
        return LedgerMode.READ_ONLY

    @property
    def contract_address(self) -> str | None:
        return self._contract_address

    async def submit(self, msg_hash: str) -> SubmitResult:
        return SubmitResult.failure(
            ErrorCode.UNSUPPORTED_OPERATION,
            "read-only ledger cannot sign transactions; "
            "use simulated mode for testing or signing mode for production",
        )

    async def get_receipt(self, tx_hash: str) -> TxReceipt | None:
        response = await self._rpc.call("eth_getTransactionReceipt", [tx_hash])
        if not response.ok:
            return None
        return parse_receipt(response.result, tx_hash)

    async def is_confirmed(self, tx_hash: str) -> bool:
        receipt = await self.get_receipt(tx_hash)
        if receipt is None or not receipt.succeeded:
            return False

        if self._contract_address is not None:
            matched = receipt.has_log_from(self._contract_address)
            if not matched:
                logger.info(
                    "Transaction %s succeeded but has no log from contract %s",
                    tx_hash,
                    self._contract_address,
                )
            return matched

        return True
