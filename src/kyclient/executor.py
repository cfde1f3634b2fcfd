"""Execution pipeline for one logical request.

`RequestExecutor.execute` resolves the URL, merges the client's defaults with
the call-site values, runs the hook chain and drives the retry controller,
performing one transport exchange per attempt.
"""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from . import query
from .codec import encode_body
from .exceptions import (
    HTTPStatusError,
    RequestError,
    SerializationError,
    TransportError,
)
from .hooks import run_after_response, run_before_request, run_before_retry, run_on_error
from .log_config import logger
from .retry import RetryController, Sleep
from .types import HttpMethod, Request, Response, find_header, merge_headers

if TYPE_CHECKING:
    from .client import Ky

ABSOLUTE_URL_PREFIXES = ("http://", "https://")


def resolve_url(base_url: str, url: str) -> str:
    """Resolve `url` against `base_url`.

    Absolute http(s) URLs are returned unchanged. Otherwise the two parts are
    joined with exactly one slash between them, so this is not plain string
    concatenation: `("https://a/v2", "users")` gives `https://a/v2/users`,
    not `https://a/v2users`. Plain concatenation is kept only when either
    part is empty or `url` starts with `?` or `#`.
    """
    if url.lower().startswith(ABSOLUTE_URL_PREFIXES):
        return url
    if not base_url or not url or url.startswith(("?", "#")):
        return f"{base_url}{url}"
    return f"{base_url.rstrip('/')}/{url.lstrip('/')}"


class RequestExecutor:
    """Runs requests for a client.

    Holds no per-call state, so one executor serves concurrent calls.

    Attributes:
        _backoff: Linear backoff step in seconds.
        _sleep: Awaitable used for backoff waits (`asyncio.sleep` by default).
    """

    def __init__(self, backoff: float = 1.0, *, sleep: Sleep | None = None):
        self._backoff = backoff
        self._sleep = sleep

    async def execute(
        self,
        client: "Ky",
        url: str,
        method: str | HttpMethod = HttpMethod.GET,
        headers: Mapping[str, str] | None = None,
        body: Any | None = None,
        params: Mapping[str, Any] | None = None,
        timeout: float | None = None,
        max_retries: int = 0,
    ) -> Response:
        """Execute one logical request against `client`'s transport.

        Args:
            client: The client providing base URL, defaults, hooks and transport.
            url: Absolute URL or a path relative to `client.base_url`.
            method: HTTP method, case-insensitive.
            headers: Call-site headers; override the client's defaults.
            body: bytes, str or any JSON-serializable value. Only sent for
                POST, PUT and PATCH.
            params: Call-site query params; replace the client's defaults per key.
            timeout: Per-exchange timeout in seconds; None uses the transport default.
            max_retries: Retries after the initial attempt.

        Returns:
            Response: The first successful (2xx) response.

        Raises:
            RequestError: The final (possibly hook-reclassified) error.
            ConfigurationError: If the method is not supported.
            asyncio.CancelledError: If the calling task is cancelled.
        """
        request = Request(
            url=resolve_url(client.base_url, url),
            method=method,
            headers=merge_headers(client.headers, headers),
            body=body,
            params=query.merge(client.params, params),
            timeout=timeout,
            max_retries=max_retries,
        )
        hooks = client.hooks
        request = await run_before_request(hooks, request)

        async def attempt() -> Response:
            return await self._attempt(client, request)

        async def before_retry(error: RequestError, attempt_number: int) -> None:
            nonlocal request
            request = await run_before_retry(hooks, request, error, attempt_number)

        controller = RetryController(
            request.max_retries, self._backoff, sleep=self._sleep
        )
        response = await controller.run(attempt, before_retry)
        logger.debug(
            f"{request.method_name} {request.full_url} succeeded after "
            f"{controller.attempts} attempt(s)"
        )
        return response

    async def _attempt(self, client: "Ky", request: Request) -> Response:
        """Perform one exchange, classify the outcome and run the matching hooks."""
        method = request.method_name
        # Serialization failures surface directly: no hooks, no retry
        try:
            content, content_type = encode_body(method, request.body)
        except SerializationError as e:
            e.request = request
            raise
        wire_headers = dict(request.headers)
        if content_type and find_header(wire_headers, "Content-Type") is None:
            wire_headers["Content-Type"] = content_type

        try:
            try:
                response = await client.transport.exchange(
                    method,
                    request.full_url,
                    wire_headers,
                    content,
                    timeout=request.timeout,
                )
            except RequestError:
                raise
            except Exception as e:
                logger.exception(f"Unexpected transport failure for {request.full_url}")
                raise TransportError(f"Transport failure: {e}") from e

            response = await run_after_response(client.hooks, request, response)
            if not response.ok:
                raise HTTPStatusError(
                    f"HTTP {response.status}: {response.status_text}",
                    request=request,
                    response=response,
                )
            return response
        except RequestError as e:
            if e.request is None:
                e.request = request
            logger.warning(f"Attempt failed for {method} {request.full_url}: {e}")
            processed = await run_on_error(client.hooks, request, e)
            if processed is e:
                raise
            if processed.request is None:
                processed.request = request
            raise processed from e
