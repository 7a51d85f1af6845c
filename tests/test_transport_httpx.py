"""
Tests for HttpxTransport against a mocked httpx (pytest-httpx).

Test plan:
- 200 + JSON object → parsed dict
- request is a JSON POST carrying the envelope
- non-200, non-JSON body, non-object JSON → TransportError
- timeout propagates as httpx exception
- through JsonRpcClient, every failure becomes a failed RpcResponse
"""

import json

import httpx
import pytest
from pytest_httpx import HTTPXMock

from hashnote.ledger.errors import TransportError
from hashnote.ledger.jsonrpc_client import JsonRpcClient
from hashnote.ledger.transport import HttpxTransport

RPC_URL = "http://node.test:8545"
PAYLOAD = {"jsonrpc": "2.0", "method": "eth_chainId", "params": [], "id": 1}


class TestHttpxTransport:
    @pytest.mark.asyncio
    async def test_parses_json_object(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=RPC_URL, method="POST", json={"result": "0xaa36a7"})
        result = await HttpxTransport(timeout=5).post_json(RPC_URL, PAYLOAD)
        assert result == {"result": "0xaa36a7"}

    @pytest.mark.asyncio
    async def test_sends_json_envelope(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=RPC_URL, method="POST", json={"result": "0x1"})
        await HttpxTransport().post_json(RPC_URL, PAYLOAD)

        request = httpx_mock.get_request()
        assert request is not None
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == PAYLOAD

    @pytest.mark.asyncio
    async def test_non_200_raises(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=RPC_URL, method="POST", status_code=503, json={})
        with pytest.raises(TransportError, match="HTTP 503"):
            await HttpxTransport().post_json(RPC_URL, PAYLOAD)

    @pytest.mark.asyncio
    async def test_non_json_body_raises(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=RPC_URL, method="POST", content=b"<html>oops</html>")
        with pytest.raises(TransportError, match="unparsable"):
            await HttpxTransport().post_json(RPC_URL, PAYLOAD)

    @pytest.mark.asyncio
    async def test_empty_body_raises(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=RPC_URL, method="POST", content=b"")
        with pytest.raises(TransportError, match="empty"):
            await HttpxTransport().post_json(RPC_URL, PAYLOAD)

    @pytest.mark.asyncio
    async def test_non_object_json_raises(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=RPC_URL, method="POST", json=[1, 2, 3])
        with pytest.raises(TransportError, match="JSON object"):
            await HttpxTransport().post_json(RPC_URL, PAYLOAD)

    @pytest.mark.asyncio
    async def test_timeout_propagates(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_exception(httpx.ReadTimeout("timed out"))
        with pytest.raises(httpx.ReadTimeout):
            await HttpxTransport(timeout=0.1).post_json(RPC_URL, PAYLOAD)


class TestFailClosedOverHttp:
    @pytest.mark.asyncio
    async def test_server_error_becomes_no_result(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=RPC_URL, method="POST", status_code=500, text="boom")
        response = await JsonRpcClient(RPC_URL, HttpxTransport()).call("eth_gasPrice")
        assert not response.ok
        assert response.result is None

    @pytest.mark.asyncio
    async def test_connection_error_becomes_no_result(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_exception(httpx.ConnectError("connection refused"))
        response = await JsonRpcClient(RPC_URL, HttpxTransport()).call("eth_gasPrice")
        assert not response.ok
        assert "connection refused" in (response.error or "")

    @pytest.mark.asyncio
    async def test_rpc_error_over_http(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(
            url=RPC_URL,
            method="POST",
            json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32601, "message": "method not found"}},
        )
        response = await JsonRpcClient(RPC_URL, HttpxTransport()).call("eth_foo")
        assert not response.ok
        assert "method not found" in (response.error or "")
