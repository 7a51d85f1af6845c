"""
Transport protocol for JSON-RPC calls.

Defines the seam where concrete HTTP implementations plug in. The
JSON-RPC client depends on this protocol, not on httpx directly, so the
transport can be swapped for test fakes without changing client logic.

Concrete implementations:
    - HttpxTransport (default, uses httpx.AsyncClient)
    - FakeTransport (tests, returns canned responses)
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import httpx

from hashnote.ledger.errors import TransportError

# Default request timeout in seconds.
DEFAULT_TIMEOUT = 30.0


@runtime_checkable
class JsonRpcTransport(Protocol):
    """Async transport for JSON-RPC POST requests."""

    async def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Send a JSON-RPC request and return the parsed response.

        Args:
            url: The JSON-RPC endpoint URL.
            payload: The JSON-RPC request envelope (jsonrpc, method, params, id).

        Returns:
            Parsed JSON response as a dict.

        Raises:
            Exception: On transport-level failures (connection refused,
                timeout, non-200 status, unparsable body). The JSON-RPC
                client maps these to a failed call.
        """
        ...


class HttpxTransport:
    """Default transport using httpx.AsyncClient.

    Requires exactly HTTP 200 and a JSON object body; anything else raises
    ``TransportError``. Timeouts and connection errors surface as the
    ``httpx`` exceptions themselves.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._timeout = timeout

    @property
    def timeout(self) -> float:
        return self._timeout

    async def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Send JSON-RPC request via httpx."""
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(
                url,
                json=payload,
                headers={"Content-Type": "application/json"},
            )

        if response.status_code != 200:
            raise TransportError(f"HTTP {response.status_code} from {url}")
        if not response.content:
            raise TransportError(f"empty response body from {url}")

        try:
            result = response.json()
        except ValueError as exc:
            raise TransportError(f"unparsable response body: {exc}") from exc

        if not isinstance(result, dict):
            raise TransportError(
                f"expected JSON object, got {type(result).__name__}"
            )
        return result
