"""
Ledger backends for message anchoring.

Public API:

    Protocol (for dependency injection):
        - ``LedgerClient`` — submit a hash, fetch a receipt, check confirmation.
        - ``TransactionSigner`` — secrets boundary (sign an unsigned tx).
        - ``JsonRpcTransport`` — injectable HTTP layer for JSON-RPC.

    Variants:
        - ``SimulatedLedgerClient`` — in-memory, randomized confirmation delay.
        - ``ReadOnlyLedgerClient`` — JSON-RPC reads, submit unsupported.
        - ``SigningLedgerClient`` — nonce/gas/sign/broadcast pipeline.

    Result types:
        - ``SubmitResult``, ``TxReceipt``, ``SignResult``, ``RpcResponse``.

    Errors:
        - ``ErrorCode`` — failure taxonomy carried in results.

    Pure helpers:
        - ``plan_transaction``, ``UnsignedTransaction`` — transaction recipe.
        - ``to_quantity``, ``from_quantity`` — JSON-RPC number codec.
"""

from hashnote.ledger.client import (
    LedgerClient,
    LedgerMode,
    SubmitResult,
    TxReceipt,
)
from hashnote.ledger.codec import from_quantity, to_quantity
from hashnote.ledger.errors import ErrorCode, TransportError
from hashnote.ledger.jsonrpc_client import JsonRpcClient, RpcResponse, parse_receipt
from hashnote.ledger.readonly import ReadOnlyLedgerClient
from hashnote.ledger.signer import (
    LocalKeySigner,
    SignResult,
    SigningTransactionBuilder,
    TransactionSigner,
)
from hashnote.ledger.signing import SigningLedgerClient
from hashnote.ledger.simulated import SimulatedLedgerClient, SimulatedLedgerState
from hashnote.ledger.transport import HttpxTransport, JsonRpcTransport
from hashnote.ledger.tx import UnsignedTransaction, plan_transaction

__all__ = [
    "ErrorCode",
    "HttpxTransport",
    "JsonRpcClient",
    "JsonRpcTransport",
    "LedgerClient",
    "LedgerMode",
    "LocalKeySigner",
    "ReadOnlyLedgerClient",
    "RpcResponse",
    "SignResult",
    "SigningLedgerClient",
    "SigningTransactionBuilder",
    "SimulatedLedgerClient",
    "SimulatedLedgerState",
    "SubmitResult",
    "TransactionSigner",
    "TransportError",
    "TxReceipt",
    "UnsignedTransaction",
    "from_quantity",
    "parse_receipt",
    "plan_transaction",
    "to_quantity",
]
