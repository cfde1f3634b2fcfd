"""httpx-backed implementation of the `HttpTransport` protocol."""

import ssl
from collections.abc import Mapping
from typing import Self

import certifi
import httpx

from .config import KySettings, get_settings
from .exceptions import NetworkError, TimeoutError, TransportError
from .log_config import logger
from .types import Response


def _create_ssl_context() -> ssl.SSLContext | bool:
    try:
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        logger.debug("Using certifi SSL context.")
        return ssl_context
    except Exception:
        logger.warning(
            "certifi not found or failed to load. Using default SSL verification."
        )
        return True


class HttpxTransport:
    """Performs exchanges with an `httpx.AsyncClient`.

    The timeout applies uniformly to the connect, read, write and pool phases.
    Transports derived with `with_timeout` reuse the same connection pool; only
    the transport that created the pool closes it.

    Attributes:
        _timeout: Default per-phase timeout in seconds.
        _pool: The shared `httpx.AsyncBaseTransport` (connection pool).
        _owns_pool: Whether `aclose()` closes the pool.
        _client: The `httpx.AsyncClient` used to send requests.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        *,
        settings: KySettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        _owns_pool: bool | None = None,
    ):
        """Initialize the transport.

        Args:
            timeout: Default per-phase timeout in seconds.
            settings: Settings providing the User-Agent and redirect policy.
            transport: Optional pre-built httpx transport (e.g. `httpx.MockTransport`).
                A default pooled `httpx.AsyncHTTPTransport` is created otherwise.
        """
        self._settings = settings or get_settings()
        self._timeout = timeout
        self._pool: httpx.AsyncBaseTransport = transport or httpx.AsyncHTTPTransport(
            verify=_create_ssl_context()
        )
        self._owns_pool = (transport is None) if _owns_pool is None else _owns_pool
        self._client = httpx.AsyncClient(
            transport=self._pool,
            timeout=httpx.Timeout(timeout),
            follow_redirects=self._settings.follow_redirects,
            headers={"User-Agent": self._settings.user_agent},
        )
        logger.debug(f"HttpxTransport initialized with timeout={timeout}s.")

    @property
    def timeout(self) -> float:
        return self._timeout

    def with_timeout(self, timeout: float) -> Self:
        """Return a transport with a new default timeout sharing this pool."""
        logger.debug(f"Deriving HttpxTransport with timeout={timeout}s.")
        return type(self)(
            timeout,
            settings=self._settings,
            transport=self._pool,
            _owns_pool=False,
        )

    async def exchange(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        content: bytes | None = None,
        *,
        timeout: float | None = None,
    ) -> Response:
        """Send one request and translate the result into a `Response`.

        Raises:
            TimeoutError: If any phase of the exchange times out.
            NetworkError: For connection level failures.
            TransportError: For any other httpx request error.
        """
        request = self._client.build_request(
            method,
            url,
            headers=list(headers.items()),
            content=content,
            timeout=(
                httpx.Timeout(timeout)
                if timeout is not None
                else httpx.USE_CLIENT_DEFAULT
            ),
        )
        logger.debug(f"Sending request: {request.method} {request.url}")
        try:
            response = await self._client.send(request)
            try:
                body = await response.aread()
            finally:
                await response.aclose()
        except httpx.TimeoutException as e:
            logger.error(f"Request timed out: {request.url}")
            raise TimeoutError(f"Request timed out: {e}") from e
        except httpx.NetworkError as e:
            logger.error(f"Network error occurred for {request.url}: {e}")
            raise NetworkError(f"Network error for {request.url}: {e}") from e
        except httpx.RequestError as e:
            logger.error(f"HTTP request error for {request.url}: {e}")
            raise TransportError(f"HTTP request error for {request.url}: {e}") from e

        logger.debug(f"Received response: {response.status_code} for {request.url}")
        logger.trace(f"Response Headers: {response.headers}")

        headers_out: dict[str, list[str]] = {}
        encoding = response.headers.encoding
        for raw_name, raw_value in response.headers.raw:
            headers_out.setdefault(raw_name.decode(encoding), []).append(
                raw_value.decode(encoding)
            )

        return Response(
            status=response.status_code,
            status_text=response.reason_phrase,
            headers=headers_out,
            content=body,
            url=str(response.url),
        )

    async def aclose(self) -> None:
        """Close the underlying client if this transport owns the pool."""
        if self._owns_pool and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("HttpxTransport closed its connection pool.")
