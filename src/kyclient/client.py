"""The `Ky` client: configuration holder and fluent request API.

A `Ky` instance bundles a base URL, default headers and query params, an
ordered hook list and a transport. Instances are read-only after
construction; `extend()` derives a new, independently configured instance
that shares the parent's transport unless a new timeout is requested.

Example:
    ```python
    async with Ky.create(
        "https://api.example.com",
        headers={"Accept": "application/json"},
        hooks=[LoggingHook(), AuthHook("token")],
    ) as ky:
        post = (await ky.get("/posts/1")).json(Post)
        v2 = ky.extend(base_url="https://api.example.com/v2")
        await v2.post("/posts", body=post, retries=3)
    ```
"""

from collections.abc import Mapping, Sequence
from typing import Any, Self

from .config import KySettings, get_settings
from .executor import RequestExecutor
from .hooks import Hook, validate_hooks
from .log_config import logger
from .models import HttpTransport
from .retry import Sleep
from .transport import HttpxTransport
from .types import HttpMethod, Response


class Ky:
    """Immutable HTTP client configuration with request helpers.

    Attributes:
        _base_url: Prefix for relative request URLs.
        _headers: Default headers, overridden per key by call-site headers.
        _params: Default query params, replaced per key by call-site params.
        _hooks: Hooks applied to every request, in order.
        _timeout: Default per-exchange timeout in seconds.
        _transport: Transport performing the exchanges; shared with derived clients.
        _owns_transport: Whether `aclose()` closes the transport.
        _settings: Settings supplying retry defaults.
        _executor: Pipeline running the requests.
    """

    def __init__(
        self,
        transport: HttpTransport,
        *,
        base_url: str = "",
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        hooks: Sequence[Hook] = (),
        timeout: float = 30.0,
        settings: KySettings | None = None,
        sleep: Sleep | None = None,
        owns_transport: bool = False,
    ):
        """Initialize the client. Prefer `Ky.create()` and `extend()`.

        Args:
            transport: Transport used for every exchange.
            base_url: Prefix for relative request URLs.
            headers: Default headers.
            params: Default query params.
            hooks: Hooks applied in order at every extension point.
            timeout: Default per-exchange timeout in seconds (informational;
                the transport enforces it).
            settings: Settings supplying retry defaults.
            sleep: Awaitable used for backoff waits; `asyncio.sleep` by default.
            owns_transport: Whether `aclose()` should close the transport.
        """
        self._transport = transport
        self._base_url = base_url
        self._headers: dict[str, str] = dict(headers or {})
        self._params: dict[str, Any] = dict(params or {})
        self._hooks: tuple[Hook, ...] = validate_hooks(hooks)
        self._timeout = timeout
        self._settings = settings or get_settings()
        self._sleep = sleep
        self._owns_transport = owns_transport
        self._executor = RequestExecutor(self._settings.retry_backoff, sleep=sleep)
        logger.debug(
            f"Ky initialized: base_url={base_url!r}, timeout={timeout}s, "
            f"{len(self._hooks)} hook(s)."
        )

    @classmethod
    def create(
        cls,
        base_url: str = "",
        timeout: float | None = None,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        hooks: Sequence[Hook] | None = None,
        *,
        settings: KySettings | None = None,
        transport: HttpTransport | None = None,
        sleep: Sleep | None = None,
    ) -> Self:
        """Create a client with its own transport.

        Args:
            base_url: Prefix for relative request URLs.
            timeout: Per-exchange timeout in seconds applied to the connect,
                read and write phases. Defaults to `settings.request_timeout`.
                With a supplied `transport`, an explicit timeout is applied
                through `transport.with_timeout()`; without one the
                transport's own timeout is kept.
            headers: Default headers.
            params: Default query params.
            hooks: Hooks applied in order. Defaults to none.
            settings: Settings to use instead of `get_settings()`.
            transport: Transport to use instead of a new `HttpxTransport`; the
                caller keeps ownership of it.
            sleep: Awaitable used for backoff waits.

        Returns:
            Ky: The new client.
        """
        settings = settings or get_settings()
        owns_transport = transport is None
        if transport is None:
            timeout = settings.request_timeout if timeout is None else timeout
            transport = HttpxTransport(timeout, settings=settings)
        elif timeout is not None:
            transport = transport.with_timeout(timeout)
        else:
            timeout = getattr(transport, "timeout", settings.request_timeout)
        return cls(
            transport,
            base_url=base_url,
            headers=headers,
            params=params,
            hooks=() if hooks is None else hooks,
            timeout=timeout,
            settings=settings,
            sleep=sleep,
            owns_transport=owns_transport,
        )

    def extend(
        self,
        base_url: str | None = None,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        hooks: Sequence[Hook] | None = None,
        timeout: float | None = None,
    ) -> Self:
        """Derive a client, overriding the given fields.

        Unspecified fields keep the parent's values. Supplied headers, params
        and hooks replace the parent's wholesale; merge them beforehand if
        needed. A new `timeout` derives a transport with that timeout which
        shares the parent's connections; otherwise the transport is shared.
        """
        transport = self._transport
        if timeout is not None:
            transport = transport.with_timeout(timeout)
        return type(self)(
            transport,
            base_url=self._base_url if base_url is None else base_url,
            headers=self._headers if headers is None else headers,
            params=self._params if params is None else params,
            hooks=self._hooks if hooks is None else hooks,
            timeout=self._timeout if timeout is None else timeout,
            settings=self._settings,
            sleep=self._sleep,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._headers)

    @property
    def params(self) -> dict[str, Any]:
        return dict(self._params)

    @property
    def hooks(self) -> tuple[Hook, ...]:
        return self._hooks

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def transport(self) -> HttpTransport:
        return self._transport

    @property
    def settings(self) -> KySettings:
        return self._settings

    async def request(
        self,
        url: str,
        method: str | HttpMethod = HttpMethod.GET,
        *,
        headers: Mapping[str, str] | None = None,
        body: Any | None = None,
        params: Mapping[str, Any] | None = None,
        timeout: float | None = None,
        retries: int | None = None,
    ) -> Response:
        """Perform a request with hooks and retries.

        Args:
            url: Absolute URL or path relative to the base URL.
            method: HTTP method, case-insensitive.
            headers: Headers overriding the defaults for this call.
            body: bytes, str or a JSON-serializable value (POST/PUT/PATCH only).
            params: Query params replacing the defaults per key for this call.
            timeout: Per-exchange timeout in seconds for this call.
            retries: Retries after the initial attempt; defaults to
                `settings.max_retries`.

        Returns:
            Response: The successful response.

        Raises:
            RequestError: If the request ultimately fails.
        """
        return await self._executor.execute(
            self,
            url,
            method,
            headers=headers,
            body=body,
            params=params,
            timeout=timeout,
            max_retries=self._settings.max_retries if retries is None else retries,
        )

    async def get(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        timeout: float | None = None,
        retries: int | None = None,
    ) -> Response:
        return await self.request(
            url,
            HttpMethod.GET,
            headers=headers,
            params=params,
            timeout=timeout,
            retries=retries,
        )

    async def head(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        timeout: float | None = None,
        retries: int | None = None,
    ) -> Response:
        return await self.request(
            url,
            HttpMethod.HEAD,
            headers=headers,
            params=params,
            timeout=timeout,
            retries=retries,
        )

    async def delete(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        timeout: float | None = None,
        retries: int | None = None,
    ) -> Response:
        return await self.request(
            url,
            HttpMethod.DELETE,
            headers=headers,
            params=params,
            timeout=timeout,
            retries=retries,
        )

    async def post(
        self,
        url: str,
        body: Any | None = None,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        timeout: float | None = None,
        retries: int | None = None,
    ) -> Response:
        return await self.request(
            url,
            HttpMethod.POST,
            headers=headers,
            body=body,
            params=params,
            timeout=timeout,
            retries=retries,
        )

    async def put(
        self,
        url: str,
        body: Any | None = None,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        timeout: float | None = None,
        retries: int | None = None,
    ) -> Response:
        return await self.request(
            url,
            HttpMethod.PUT,
            headers=headers,
            body=body,
            params=params,
            timeout=timeout,
            retries=retries,
        )

    async def patch(
        self,
        url: str,
        body: Any | None = None,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        timeout: float | None = None,
        retries: int | None = None,
    ) -> Response:
        return await self.request(
            url,
            HttpMethod.PATCH,
            headers=headers,
            body=body,
            params=params,
            timeout=timeout,
            retries=retries,
        )

    async def aclose(self) -> None:
        """Close the transport if this client created it.

        Derived clients never close the shared transport; close the root
        client once all derived clients are done.
        """
        if self._owns_transport:
            await self._transport.aclose()
            logger.info(f"Ky transport closed. Client ID: {id(self)}.")

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        await self.aclose()


create = Ky.create
