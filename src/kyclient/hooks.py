"""Request lifecycle hooks and the chain that applies them.

A hook is any object implementing the four `Hook` methods; subclassing `Hook`
gives identity defaults so only the interesting ones need overriding. The
`run_*` functions fold a sequence of hooks left-to-right at each extension
point: every hook receives the previous hook's output, and hooks run in
registration order at every point.

Example:
    ```python
    class ApiVersionHook(Hook):
        async def before_request(self, request: Request) -> Request:
            return request.with_header("API-Version", "2.0")
    ```
"""

from collections.abc import Sequence
from typing import Any, Protocol

from .exceptions import ConfigurationError, RequestError
from .log_config import logger
from .types import Request, Response


class Hook:
    """Base lifecycle interceptor; every method returns its input unchanged."""

    async def before_request(self, request: Request) -> Request:
        """Called once per logical request, before the first attempt."""
        return request

    async def after_response(self, request: Request, response: Response) -> Response:
        """Called after every exchange that produced a response, whatever its status."""
        return response

    async def before_retry(
        self, request: Request, error: RequestError, attempt_number: int
    ) -> Request:
        """Called before retry `attempt_number` (1 for the first retry)."""
        return request

    async def on_error(self, request: Request, error: RequestError) -> RequestError:
        """Called for every failed attempt; may return a reclassified error."""
        return error


def _hook_name(hook: Any) -> str:
    return type(hook).__name__


HOOK_METHODS = ("before_request", "after_response", "before_retry", "on_error")


def validate_hooks(hooks: Sequence[Any]) -> tuple[Hook, ...]:
    """Check that every entry implements the four hook methods.

    Raises:
        ConfigurationError: Naming the first entry that is not a hook.
    """
    for hook in hooks:
        missing = [m for m in HOOK_METHODS if not callable(getattr(hook, m, None))]
        if missing:
            raise ConfigurationError(
                f"{_hook_name(hook)} {hook!r} is not a hook; "
                f"missing {', '.join(missing)}."
            )
    return tuple(hooks)


def _check(hook: Any, point: str, result: Any, expected: type) -> Any:
    if not isinstance(result, expected):
        raise TypeError(
            f"{_hook_name(hook)}.{point} must return {expected.__name__}, "
            f"got {type(result).__name__}"
        )
    return result


async def run_before_request(hooks: Sequence[Hook], request: Request) -> Request:
    """Fold `before_request` over `hooks`."""
    if hooks:
        logger.debug(
            f"Executing {len(hooks)} before_request hooks for "
            f"{request.method_name} {request.url}"
        )
    for hook in hooks:
        result = await hook.before_request(request)
        request = _check(hook, "before_request", result, Request)
    return request


async def run_after_response(
    hooks: Sequence[Hook], request: Request, response: Response
) -> Response:
    """Fold `after_response` over `hooks` with a fixed request."""
    for hook in hooks:
        result = await hook.after_response(request, response)
        response = _check(hook, "after_response", result, Response)
    return response


async def run_before_retry(
    hooks: Sequence[Hook], request: Request, error: RequestError, attempt_number: int
) -> Request:
    """Fold `before_retry` over `hooks`."""
    for hook in hooks:
        result = await hook.before_retry(request, error, attempt_number)
        request = _check(hook, "before_retry", result, Request)
    return request


async def run_on_error(
    hooks: Sequence[Hook], request: Request, error: RequestError
) -> RequestError:
    """Fold `on_error` over `hooks`.

    Raises:
        TypeError: If a hook returns something outside the `RequestError`
            hierarchy.
    """
    for hook in hooks:
        result = await hook.on_error(request, error)
        error = _check(hook, "on_error", result, RequestError)
    return error


class LogSink(Protocol):
    """Destination for structured log records written by hooks."""

    def emit(self, level: str, message: str, **fields: Any) -> None: ...


class LoguruSink:
    """`LogSink` writing through the library's Loguru logger.

    Fields are attached to the record with `logger.bind`, so they show up in
    `record["extra"]`.
    """

    def __init__(self, bound_logger: Any = None):
        self._logger = bound_logger or logger

    def emit(self, level: str, message: str, **fields: Any) -> None:
        self._logger.bind(**fields).log(level, message)


DEFAULT_REDACTED_HEADERS = ("Authorization", "Proxy-Authorization", "Cookie")
REDACTED = "[REDACTED]"


class LoggingHook(Hook):
    """Logs every request, response and error to a `LogSink`.

    Values of sensitive headers are replaced by `[REDACTED]`; header names are
    compared case-insensitively.
    """

    def __init__(
        self,
        sink: LogSink | None = None,
        *,
        redact: Sequence[str] = DEFAULT_REDACTED_HEADERS,
    ):
        self._sink = sink or LoguruSink()
        self._redact = frozenset(name.lower() for name in redact)

    def _safe_headers(self, headers: dict[str, str]) -> dict[str, str]:
        return {
            name: REDACTED if name.lower() in self._redact else value
            for name, value in headers.items()
        }

    async def before_request(self, request: Request) -> Request:
        self._sink.emit(
            "INFO",
            f"-> {request.method_name} {request.full_url}",
            event="request.start",
            method=request.method_name,
            url=request.full_url,
            headers=self._safe_headers(request.headers),
        )
        return request

    async def after_response(self, request: Request, response: Response) -> Response:
        self._sink.emit(
            "INFO",
            f"<- {response.status} {request.method_name} {request.full_url}",
            event="request.end",
            method=request.method_name,
            url=request.full_url,
            status=response.status,
        )
        return response

    async def on_error(self, request: Request, error: RequestError) -> RequestError:
        self._sink.emit(
            "ERROR",
            f"!! {request.method_name} {request.full_url}: {error.message}",
            event="request.error",
            method=request.method_name,
            url=request.full_url,
            error=type(error).__name__,
        )
        return error


class RetryLoggingHook(Hook):
    """Logs each retry attempt to a `LogSink`."""

    def __init__(self, sink: LogSink | None = None):
        self._sink = sink or LoguruSink()

    async def before_retry(
        self, request: Request, error: RequestError, attempt_number: int
    ) -> Request:
        self._sink.emit(
            "WARNING",
            f"Retrying {request.method_name} {request.full_url} "
            f"(attempt {attempt_number}): {error.message}",
            event="request.retry",
            method=request.method_name,
            url=request.full_url,
            attempt=attempt_number,
            error=type(error).__name__,
        )
        return request
