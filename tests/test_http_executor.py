import httpx
import pytest

from rest_enrich.api.http_executor import HttpExecutor
from rest_enrich.config import Settings
from rest_enrich.errors import TransportError


@pytest.mark.asyncio
async def test_execute_sends_headers_params_and_body():
    captured = {}

    async def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["headers"] = dict(request.headers)
        captured["content"] = request.content
        return httpx.Response(202, content=b'{"ok": true}')

    transport = httpx.MockTransport(handler)
    settings = Settings(user_agent="enricher-test/2.0")

    async with httpx.AsyncClient(transport=transport) as client:
        executor = HttpExecutor(settings=settings, client=client)
        status, body = await executor.execute(
            "post",
            "https://example.test/lookup",
            headers={"X-Flag": True, "X-Count": 3},
            params={"ids": (1, 2), "q": "a b"},
            body='{"hello":"world"}',
        )

    assert status == 202
    assert body == b'{"ok": true}'
    assert captured["url"] == "https://example.test/lookup?ids=1&ids=2&q=a+b"
    assert captured["headers"]["user-agent"] == "enricher-test/2.0"
    assert captured["headers"]["x-flag"] == "true"
    assert captured["headers"]["x-count"] == "3"
    assert captured["content"] == b'{"hello":"world"}'


@pytest.mark.asyncio
async def test_execute_wraps_transport_failures():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        executor = HttpExecutor(settings=Settings(), client=client)
        with pytest.raises(TransportError, match="connection refused") as exc_info:
            await executor.execute("get", "http://unreachable.test/")

    assert exc_info.value.url == "http://unreachable.test/"
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
async def test_non_2xx_is_returned_not_raised():
    transport = httpx.MockTransport(lambda request: httpx.Response(500, content=b"boom"))

    async with httpx.AsyncClient(transport=transport) as client:
        executor = HttpExecutor(settings=Settings(), client=client)
        assert await executor.execute("get", "http://host/") == (500, b"boom")


@pytest.mark.asyncio
async def test_execute_requires_lifecycle():
    executor = HttpExecutor(settings=Settings())

    with pytest.raises(RuntimeError, match="lifecycle"):
        await executor.execute("get", "http://host/")


@pytest.mark.asyncio
async def test_lifecycle_reuses_injected_client():
    transport = httpx.MockTransport(lambda request: httpx.Response(200))

    async with httpx.AsyncClient(transport=transport) as client:
        executor = HttpExecutor(settings=Settings(), client=client)
        async with executor.lifecycle() as active:
            assert active is executor
            assert (await executor.execute("get", "http://host/"))[0] == 200
        assert not client.is_closed
