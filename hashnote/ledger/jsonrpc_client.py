"""
Shared JSON-RPC routine and receipt parsing.

Every RPC call made by the read-only and signing ledger clients goes
through ``JsonRpcClient.call``. It fails closed: transport exceptions,
non-200 responses, unparsable bodies and RPC-level ``error`` objects all
come back as an ``RpcResponse`` with ``error`` set. Nothing is raised
past this boundary, so a flaky node can never throw into unrelated code
paths; callers treat "no result" as "not yet".

No retry loops. No secrets in logs.

Receipt parsing targets ``eth_getTransactionReceipt`` conventions:
    - null result: transaction unknown or not yet mined
    - status: "0x1" success, "0x0" reverted
    - blockNumber: hex quantity
    - logs: list of {address, topics, data, ...}
"""

from __future__ import annotations

import itertools
import logging
import time
from dataclasses import dataclass
from typing import Any

import jsonschema

from hashnote.ledger.client import TxReceipt
from hashnote.ledger.codec import from_quantity
from hashnote.ledger.transport import HttpxTransport, JsonRpcTransport

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"

_request_ids = itertools.count(1)


def _next_request_id() -> int:
    return next(_request_ids)


# Minimal shape check for eth_getTransactionReceipt results.
RECEIPT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "transactionHash": {"type": "string"},
        "status": {"type": "string", "pattern": "^0x[0-9a-fA-F]+$"},
        "blockNumber": {"type": ["string", "integer", "null"]},
        "logs": {
            "type": "array",
            "items": {"type": "object"},
        },
    },
}


@dataclass(frozen=True)
class RpcResponse:
    """Outcome of one JSON-RPC call.

    Attributes:
        result: The ``result`` member of the response. May legitimately be
            None (e.g. receipt of an unmined transaction).
        error: Failure description when the call failed at any level.
            None on success.
    """

    result: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class JsonRpcClient:
    """Fail-closed JSON-RPC caller.

    Args:
        url: The JSON-RPC endpoint URL (e.g. "http://localhost:8545").
        transport: Injectable transport for HTTP POST. Defaults to
            HttpxTransport. Pass a FakeTransport for testing.
    """

    def __init__(
        self,
        url: str,
        transport: JsonRpcTransport | None = None,
    ) -> None:
        self._url = url
        self._transport = transport or HttpxTransport()

    @property
    def url(self) -> str:
        """The JSON-RPC endpoint URL."""
        return self._url

    async def call(self, method: str, params: list[Any] | None = None) -> RpcResponse:
        """POST one JSON-RPC request and classify the outcome."""
        payload = {
            "jsonrpc": JSONRPC_VERSION,
            "method": method,
            "params": params if params is not None else [],
            "id": _next_request_id(),
        }

        started = time.monotonic()
        try:
            response = await self._transport.post_json(self._url, payload)
        except Exception as exc:
            logger.error(
                "RPC %s failed at transport level after %.0f ms: %s",
                method,
                (time.monotonic() - started) * 1000,
                exc,
            )
            return RpcResponse(error=f"transport: {exc}")

        elapsed_ms = (time.monotonic() - started) * 1000
        error = response.get("error")
        if error is not None:
            message = _rpc_error_message(error)
            logger.error("RPC %s returned error after %.0f ms: %s", method, elapsed_ms, message)
            return RpcResponse(error=message)

        logger.debug(
            "RPC %s ok in %.0f ms (has_result=%s)",
            method,
            elapsed_ms,
            response.get("result") is not None,
        )
        return RpcResponse(result=response.get("result"))


def _rpc_error_message(error: Any) -> str:
    """Extract a readable message from a JSON-RPC error object."""
    if isinstance(error, dict):
        message = error.get("message")
        code = error.get("code")
        if message:
            return f"{message} (code {code})" if code is not None else str(message)
        return str(error)
    return str(error)


# =====================================================================
# Receipt parsing (pure, no I/O)
# =====================================================================


def parse_receipt(result: Any, tx_hash: str) -> TxReceipt | None:
    """Parse an ``eth_getTransactionReceipt`` result into a TxReceipt.

    Returns None for a null result (not mined yet) and for results that
    do not look like a receipt at all.
    """
    if result is None:
        return None

    try:
        jsonschema.validate(instance=result, schema=RECEIPT_SCHEMA)
    except jsonschema.ValidationError as exc:
        logger.warning("Ignoring malformed receipt for %s: %s", tx_hash, exc.message)
        return None

    return TxReceipt(
        tx_hash=result.get("transactionHash") or tx_hash,
        # Receipts without a status field predate EIP-658; treat as failed.
        status=result.get("status") or "0x0",
        block_number=from_quantity(result.get("blockNumber")),
        logs=tuple(result.get("logs") or ()),
    )
