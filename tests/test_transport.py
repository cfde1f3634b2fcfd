"""Tests for HttpxTransport using httpx.MockTransport."""

import httpx
import pytest

from kyclient.config import KySettings
from kyclient.exceptions import NetworkError, TimeoutError, TransportError
from kyclient.models import HttpTransport
from kyclient.transport import HttpxTransport


@pytest.fixture
def settings():
    return KySettings(_env_file=None, user_agent="kyclient-tests")


def mock_transport(handler, settings, timeout=30.0) -> HttpxTransport:
    return HttpxTransport(
        timeout, settings=settings, transport=httpx.MockTransport(handler)
    )


def test_satisfies_protocol(settings):
    assert isinstance(mock_transport(lambda r: httpx.Response(200), settings), HttpTransport)


@pytest.mark.asyncio
async def test_exchange_sends_method_headers_and_body(settings):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"id": 7})

    transport = mock_transport(handler, settings)
    response = await transport.exchange(
        "POST",
        "https://api.example.com/items?a=1",
        {"Content-Type": "application/json", "X-Trace": "t"},
        b'{"name":"n"}',
    )

    (request,) = seen
    assert request.method == "POST"
    assert str(request.url) == "https://api.example.com/items?a=1"
    assert request.headers["x-trace"] == "t"
    assert request.headers["user-agent"] == "kyclient-tests"
    assert request.content == b'{"name":"n"}'
    assert response.status == 201
    assert response.status_text == "Created"
    assert response.json() == {"id": 7}
    assert response.url == "https://api.example.com/items?a=1"
    await transport.aclose()


@pytest.mark.asyncio
async def test_repeated_response_headers_are_grouped(settings):
    def handler(request):
        return httpx.Response(
            200, headers=[("Set-Cookie", "a=1"), ("Set-Cookie", "b=2"), ("X-One", "1")]
        )

    response = await mock_transport(handler, settings).exchange(
        "GET", "https://api.example.com/", {}
    )

    assert response.header_values("set-cookie") == ["a=1", "b=2"]
    assert response.header("x-one") == "1"


@pytest.mark.asyncio
async def test_redirects_are_followed_and_final_url_reported(settings):
    def handler(request):
        if request.url.path == "/old":
            return httpx.Response(301, headers={"Location": "https://api.example.com/new"})
        return httpx.Response(200, text="moved")

    response = await mock_transport(handler, settings).exchange(
        "GET", "https://api.example.com/old", {}
    )

    assert response.status == 200
    assert response.url == "https://api.example.com/new"
    assert response.text() == "moved"


@pytest.mark.asyncio
async def test_redirects_can_be_disabled():
    settings = KySettings(_env_file=None, follow_redirects=False)

    def handler(request):
        return httpx.Response(302, headers={"Location": "https://api.example.com/new"})

    response = await mock_transport(handler, settings).exchange(
        "GET", "https://api.example.com/old", {}
    )
    assert response.status == 302
    assert response.ok is False


@pytest.mark.asyncio
async def test_error_statuses_are_returned_not_raised(settings):
    response = await mock_transport(lambda r: httpx.Response(503), settings).exchange(
        "GET", "https://api.example.com/", {}
    )
    assert response.status == 503
    assert response.status_text == "Service Unavailable"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("raised", "expected"),
    [
        (httpx.ConnectTimeout("slow connect"), TimeoutError),
        (httpx.ReadTimeout("slow read"), TimeoutError),
        (httpx.ConnectError("refused"), NetworkError),
        (httpx.UnsupportedProtocol("ftp"), TransportError),
    ],
)
async def test_httpx_errors_are_mapped(settings, raised, expected):
    def handler(request):
        raise raised

    with pytest.raises(expected) as exc_info:
        await mock_transport(handler, settings).exchange(
            "GET", "https://api.example.com/", {}
        )
    assert exc_info.value.__cause__ is raised


@pytest.mark.asyncio
async def test_timeouts_reach_the_request(settings):
    seen: list[dict] = []

    def handler(request):
        seen.append(request.extensions["timeout"])
        return httpx.Response(200)

    transport = mock_transport(handler, settings, timeout=5.0)
    await transport.exchange("GET", "https://api.example.com/", {})
    await transport.exchange("GET", "https://api.example.com/", {}, timeout=1.5)

    assert seen[0]["read"] == 5.0
    assert seen[1] == {"connect": 1.5, "read": 1.5, "write": 1.5, "pool": 1.5}


@pytest.mark.asyncio
async def test_with_timeout_shares_the_pool(settings):
    transport = mock_transport(lambda r: httpx.Response(200), settings)
    derived = transport.with_timeout(2.0)

    assert derived.timeout == 2.0
    assert transport.timeout == 30.0
    assert derived._pool is transport._pool

    await derived.aclose()
    assert not derived._client.is_closed
    response = await transport.exchange("GET", "https://api.example.com/", {})
    assert response.ok


@pytest.mark.asyncio
async def test_aclose_closes_owned_pool(settings):
    transport = HttpxTransport(settings=settings)
    await transport.aclose()
    assert transport._client.is_closed
    await transport.aclose()
