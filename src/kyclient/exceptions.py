"""Custom exception classes for the kyclient library."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .types import Request, Response


class KyError(Exception):
    """Base exception class for all kyclient errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ConfigurationError(KyError):
    """Represents an error in the client's configuration (settings, method, hooks)."""


class AuthError(KyError):
    """Raised when an authentication hook fails, e.g. fetching a token fails."""


class RequestError(KyError):
    """Base class for every failure of a logical request.

    Carries the `Request` that failed and, when one was received, the
    `Response`. Hooks receive and return members of this hierarchy in
    `on_error`.
    """

    def __init__(
        self,
        message: str,
        *,
        request: "Request | None" = None,
        response: "Response | None" = None,
    ):
        """Initializes the request error.

        Args:
            message: The error message.
            request: Optional `Request` associated with the error.
            response: Optional `Response` associated with the error.
        """
        super().__init__(message)
        self.request = request
        self.response = response

    def __str__(self) -> str:
        if self.response is not None:
            # Prefer response info if available
            return (
                f"{self.message} (Status: {self.response.status}, "
                f"URL: {self.response.url})"
            )
        if self.request is not None:
            return f"{self.message} (URL: {self.request.full_url})"
        return self.message


class TransportError(RequestError):
    """Represents a failed transport exchange (I/O, DNS, refused connection).

    Transport errors are retried until the retry budget is exhausted.
    """


class TimeoutError(TransportError):
    """Represents a request timeout.

    Raised when a phase of the exchange (connect, read, write, pool) does not
    complete within the configured timeout.
    """


class NetworkError(TransportError):
    """Represents a network connection error (e.g. DNS failure, connection refused)."""


class HTTPStatusError(RequestError):
    """Represents a response whose status is outside 200-299.

    Always carries the response. Retried exactly like a transport failure.
    """

    def __init__(
        self,
        message: str,
        *,
        response: "Response",
        request: "Request | None" = None,
    ):
        super().__init__(message, request=request, response=response)

    @property
    def status(self) -> int:
        """The HTTP status code of the failed response."""
        assert self.response is not None
        return self.response.status


class SerializationError(RequestError):
    """Represents a JSON encode or decode failure.

    Raised while encoding a request body (before the exchange) or while
    decoding a response with `Response.json()`. Never retried.
    """
