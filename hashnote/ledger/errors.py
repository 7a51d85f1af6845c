"""
Error taxonomy for the anchoring core.

Expected failures travel as values (``SubmitResult.error_code``,
``CreateResult.error.code``), not as exceptions. Callers branch on the
code instead of catching broad exception hierarchies.

Codes:
    - VALIDATION_FAILED: message text out of bounds. Client-input fault,
      never retried.
    - UNSUPPORTED_OPERATION: write attempted against a read-only ledger.
      The boundary reports it as "not implemented", not as a server error.
    - SUBMISSION_FAILED: nonce/gas fetch, signing or broadcast failed.
    - TRANSPORT_FAILED: timeout, non-200, malformed JSON or RPC error
      object. Never leaves the JSON-RPC routine; callers only ever see
      "no result".
"""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    """Machine-readable failure category."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    UNSUPPORTED_OPERATION = "UNSUPPORTED_OPERATION"
    SUBMISSION_FAILED = "SUBMISSION_FAILED"
    TRANSPORT_FAILED = "TRANSPORT_FAILED"


class TransportError(Exception):
    """Raised by transports for non-200 responses or unparsable bodies.

    Caught by ``JsonRpcClient.call`` and turned into an ``RpcResponse``
    with an error; it never reaches ledger clients.
    """
