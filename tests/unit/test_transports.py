"""Call transport tests."""

import json

import httpx
import pytest

from surecast.config import SurecastConfig
from surecast.errors import RecordReadError
from surecast.transports import (
    HttpCallTransport,
    InMemoryCallTransport,
    get_transport,
)

RPC_URL = "https://rpc.test"


def _transport(handler) -> HttpCallTransport:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpCallTransport(url=RPC_URL, client=client)


@pytest.mark.asyncio
async def test_http_transport_returns_result():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(json.loads(request.content))
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "0xabcd"})

    transport = _transport(handler)
    result = await transport.eth_call("0xdead", "0x1234")

    assert result == "0xabcd"
    assert seen["method"] == "eth_call"
    assert seen["params"] == [{"to": "0xdead", "data": "0x1234"}, "latest"]


@pytest.mark.asyncio
async def test_http_transport_null_result_is_empty():
    def handler(request):
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": None})

    assert await _transport(handler).eth_call("0xdead", "0x") == "0x"


@pytest.mark.asyncio
async def test_html_response_is_rate_limit_error():
    def handler(request):
        return httpx.Response(200, text="<html>Too many requests</html>")

    with pytest.raises(RecordReadError, match="HTML"):
        await _transport(handler).eth_call("0xdead", "0x")


@pytest.mark.asyncio
async def test_rpc_error_payload():
    def handler(request):
        return httpx.Response(
            200,
            json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "execution reverted"}},
        )

    with pytest.raises(RecordReadError, match="execution reverted"):
        await _transport(handler).eth_call("0xdead", "0x")


@pytest.mark.asyncio
async def test_http_status_error():
    def handler(request):
        return httpx.Response(429, text="slow down")

    with pytest.raises(RecordReadError, match="429"):
        await _transport(handler).eth_call("0xdead", "0x")


@pytest.mark.asyncio
async def test_malformed_json():
    def handler(request):
        return httpx.Response(200, text="not json")

    with pytest.raises(RecordReadError, match="Malformed"):
        await _transport(handler).eth_call("0xdead", "0x")


@pytest.mark.asyncio
async def test_connection_failure():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(RecordReadError, match="failed"):
        await _transport(handler).eth_call("0xdead", "0x")


@pytest.mark.asyncio
async def test_disconnect_keeps_injected_client_open():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))
    transport = HttpCallTransport(url=RPC_URL, client=client)
    await transport.disconnect()
    assert not client.is_closed
    await client.aclose()


def test_get_transport_uses_config():
    config = SurecastConfig(rpc={"backend": "http", "url": "https://node.example", "timeout": 3})
    transport = get_transport(config=config)
    assert isinstance(transport, HttpCallTransport)
    assert transport.url == "https://node.example"
    assert transport.timeout == 3


def test_get_transport_env_backend(monkeypatch):
    monkeypatch.setenv("SURECAST_RPC_BACKEND", "inmemory")
    assert isinstance(get_transport(config=SurecastConfig()), InMemoryCallTransport)


def test_get_transport_rejects_unknown_backend():
    with pytest.raises(ValueError):
        get_transport("carrier-pigeon", config=SurecastConfig())
