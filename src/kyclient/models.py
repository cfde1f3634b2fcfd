# kyclient/models.py
"""Core protocols for kyclient.

The `HttpTransport` protocol is the seam between the request pipeline and the
network: the executor only ever asks a transport to perform one exchange. The
library ships `kyclient.transport.HttpxTransport`; tests and alternative
backends provide their own implementations.
"""

from collections.abc import Mapping
from typing import Protocol, Self, runtime_checkable

from .types import Response


@runtime_checkable
class HttpTransport(Protocol):
    """Protocol for performing a single HTTP exchange.

    Implementations own connection handling, TLS and timeouts. They must be
    safe to use from concurrent tasks.
    """

    async def exchange(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        content: bytes | None = None,
        *,
        timeout: float | None = None,
    ) -> Response:
        """Send one request and return the response, whatever its status.

        Args:
            method: Upper-case HTTP method.
            url: Absolute URL including the query string.
            headers: Request headers in order.
            content: Encoded body, or None for no body.
            timeout: Per-phase timeout in seconds; None uses the transport default.

        Returns:
            Response: The received response. Non-2xx statuses are not errors here.

        Raises:
            TransportError: On connection, DNS, I/O or timeout failures.
        """
        ...

    def with_timeout(self, timeout: float) -> Self:
        """Return a transport with a new default timeout sharing this one's connections."""
        ...

    async def aclose(self) -> None:
        """Release resources owned by this transport. Must be idempotent."""
        ...
