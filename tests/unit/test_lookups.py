import httpx
import pytest

from surecast.config import LookupConfig
from surecast.lookups import prefetch_manifest, reverse_lookup
from surecast.namehash import name_hash
from surecast.records import TextRecordClient
from surecast.transports import InMemoryCallTransport

ADDRESS = "0x1111111111111111111111111111111111111111"
CONFIG = LookupConfig(reverse_name_url="https://names.test/resolve/")


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_reverse_lookup_returns_name():
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, json={"name": "alice.eth", "address": ADDRESS})

    result = await reverse_lookup(ADDRESS, CONFIG, _client(handler))

    assert result.ok
    assert result.value == "alice.eth"
    assert seen == [f"https://names.test/resolve/{ADDRESS}"]


@pytest.mark.asyncio
async def test_reverse_lookup_without_name():
    def handler(request):
        return httpx.Response(200, json={"name": None})

    result = await reverse_lookup(ADDRESS, CONFIG, _client(handler))
    assert result.ok
    assert result.value is None


@pytest.mark.asyncio
async def test_reverse_lookup_failure_is_contained(caplog):
    def handler(request):
        return httpx.Response(503, text="unavailable")

    result = await reverse_lookup(ADDRESS, CONFIG, _client(handler))

    assert not result.ok
    assert result.value is None
    assert "Reverse name lookup" in caplog.text


@pytest.mark.asyncio
async def test_reverse_lookup_bad_json_is_contained():
    def handler(request):
        return httpx.Response(200, text="<html>")

    result = await reverse_lookup(ADDRESS, CONFIG, _client(handler))
    assert result.error


@pytest.mark.asyncio
async def test_prefetch_manifest_reads_entries():
    transport = InMemoryCallTransport()
    node = name_hash("alice.eth")
    transport.set_text(node, "com.surecast.workflows", '[["loop","Loop"]]')

    result = await prefetch_manifest(TextRecordClient(transport), "alice.eth")

    assert result.ok
    assert result.value.slugs() == ["loop"]


@pytest.mark.asyncio
async def test_prefetch_manifest_tolerates_failures():
    transport = InMemoryCallTransport()
    transport.fail_with = "RPC returned HTML, likely rate-limited"

    result = await prefetch_manifest(TextRecordClient(transport), "alice.eth")

    assert result.value is None
    assert "rate-limited" in result.error


@pytest.mark.asyncio
async def test_prefetch_manifest_tolerates_garbage():
    transport = InMemoryCallTransport()
    node = name_hash("alice.eth")
    transport.set_text(node, "com.surecast.workflows", "not a manifest")

    result = await prefetch_manifest(TextRecordClient(transport), "alice.eth")
    assert not result.ok


@pytest.mark.asyncio
async def test_prefetch_manifest_rejects_bad_name():
    result = await prefetch_manifest(TextRecordClient(InMemoryCallTransport()), "foo..eth")

    assert result.value is None
    assert result.error
