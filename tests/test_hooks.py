"""Tests for the hook chain and the built-in logging hooks."""

import pytest
from loguru import logger

from kyclient.exceptions import HTTPStatusError, NetworkError, RequestError
from kyclient.hooks import (
    Hook,
    LoggingHook,
    LoguruSink,
    RetryLoggingHook,
    run_after_response,
    run_before_request,
    run_before_retry,
    run_on_error,
)
from kyclient.types import Request, Response

from .conftest import make_response


class Unauthorized(HTTPStatusError):
    pass


class Tagging(Hook):
    """Appends its name to X-Trail / the response status text."""

    def __init__(self, name: str, calls: list[str]):
        self.name = name
        self.calls = calls

    async def before_request(self, request: Request) -> Request:
        self.calls.append(f"{self.name}.before_request")
        trail = request.header("X-Trail") or ""
        return request.with_header("X-Trail", trail + self.name)

    async def after_response(self, request: Request, response: Response) -> Response:
        self.calls.append(f"{self.name}.after_response")
        return response.model_copy(update={"status_text": response.status_text + self.name})

    async def before_retry(self, request, error, attempt_number):
        self.calls.append(f"{self.name}.before_retry:{attempt_number}")
        return request.with_header("X-Attempt", str(attempt_number))

    async def on_error(self, request, error):
        self.calls.append(f"{self.name}.on_error")
        return error


class MapUnauthorized(Hook):
    async def on_error(self, request: Request, error: RequestError) -> RequestError:
        if isinstance(error, HTTPStatusError) and error.status == 401:
            return Unauthorized("Unauthorized", request=request, response=error.response)
        return error


@pytest.fixture
def request_():
    return Request(url="https://api.example.com/p")


@pytest.mark.asyncio
async def test_base_hook_is_identity(request_):
    hook = Hook()
    response = make_response()
    error = NetworkError("down")

    assert await hook.before_request(request_) is request_
    assert await hook.after_response(request_, response) is response
    assert await hook.before_retry(request_, error, 1) is request_
    assert await hook.on_error(request_, error) is error


@pytest.mark.asyncio
async def test_empty_chain_returns_input(request_):
    response = make_response()
    error = NetworkError("down")
    assert await run_before_request([], request_) is request_
    assert await run_after_response([], request_, response) is response
    assert await run_before_retry([], request_, error, 1) is request_
    assert await run_on_error([], request_, error) is error


@pytest.mark.asyncio
async def test_hooks_fold_in_registration_order_at_every_point(request_):
    calls: list[str] = []
    hooks = [Tagging("a", calls), Tagging("b", calls)]
    error = NetworkError("down")

    request = await run_before_request(hooks, request_)
    response = await run_after_response(hooks, request, make_response(status_text="OK"))
    retried = await run_before_retry(hooks, request, error, 2)
    await run_on_error(hooks, request, error)

    assert request.header("X-Trail") == "ab"
    assert response.status_text == "OKab"
    assert retried.header("X-Attempt") == "2"
    assert calls == [
        "a.before_request",
        "b.before_request",
        "a.after_response",
        "b.after_response",
        "a.before_retry:2",
        "b.before_retry:2",
        "a.on_error",
        "b.on_error",
    ]


@pytest.mark.asyncio
async def test_on_error_can_reclassify(request_):
    error = HTTPStatusError("HTTP 401: Unauthorized", response=make_response(401))
    result = await run_on_error([MapUnauthorized()], request_, error)
    assert isinstance(result, Unauthorized)
    assert result.status == 401


@pytest.mark.asyncio
async def test_on_error_must_return_a_request_error(request_):
    class Broken(Hook):
        async def on_error(self, request, error):
            return ValueError("nope")

    with pytest.raises(TypeError, match="Broken.on_error must return RequestError"):
        await run_on_error([Broken()], request_, NetworkError("down"))


@pytest.mark.asyncio
async def test_before_request_must_return_a_request(request_):
    class Forgetful(Hook):
        async def before_request(self, request):
            return None

    with pytest.raises(TypeError, match="Forgetful.before_request"):
        await run_before_request([Forgetful()], request_)


@pytest.mark.asyncio
async def test_logging_hook_redacts_sensitive_headers(sink):
    hook = LoggingHook(sink)
    request = Request(
        url="https://api.example.com/p",
        params={"q": "x"},
        headers={"authorization": "Bearer secret", "Accept": "application/json"},
    )

    assert await hook.before_request(request) is request
    await hook.after_response(request, make_response(204))
    await hook.on_error(request, NetworkError("connection refused"))

    start, end, failure = sink.records
    assert start["event"] == "request.start"
    assert start["url"] == "https://api.example.com/p?q=x"
    assert start["headers"] == {"authorization": "[REDACTED]", "Accept": "application/json"}
    assert end["event"] == "request.end"
    assert end["status"] == 204
    assert failure["level"] == "ERROR"
    assert failure["error"] == "NetworkError"
    assert "connection refused" in failure["message"]


@pytest.mark.asyncio
async def test_retry_logging_hook(sink):
    hook = RetryLoggingHook(sink)
    request = Request(url="https://api.example.com/p")

    await hook.before_retry(request, NetworkError("down"), 3)

    (record,) = sink.records
    assert record["event"] == "request.retry"
    assert record["attempt"] == 3
    assert record["level"] == "WARNING"


def test_loguru_sink_binds_fields():
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    try:
        LoguruSink().emit("INFO", "hello {not formatted}", event="request.start", status=200)
    finally:
        logger.remove(handler_id)

    (record,) = records
    assert record["message"] == "hello {not formatted}"
    assert record["extra"] == {"event": "request.start", "status": 200}
    assert record["level"].name == "INFO"
