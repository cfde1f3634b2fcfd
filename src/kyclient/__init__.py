"""kyclient: a small, fluent asynchronous HTTP client with hooks and retries.

This package wraps httpx with a chainable request API (GET/POST/PUT/DELETE/
PATCH/HEAD), default base URL, headers, query params and timeout, a
request/response lifecycle hook chain, linear retry backoff and JSON
(de)serialization helpers.
"""

__version__ = "0.1.0"

# Import core modules for easy access
from . import (
    auth,
    client,
    codec,
    config,
    exceptions,
    executor,
    hooks,
    log_config,
    models,
    query,
    retry,
    transport,
    types,
)
from .auth import AuthHook, ClientCredentialsAuth
from .client import Ky, create
from .exceptions import (
    ConfigurationError,
    HTTPStatusError,
    KyError,
    NetworkError,
    RequestError,
    SerializationError,
    TimeoutError,
    TransportError,
)
from .hooks import Hook, LoggingHook, RetryLoggingHook
from .types import HttpMethod, Request, Response

__all__ = [
    "__version__",
    "auth",
    "client",
    "codec",
    "config",
    "exceptions",
    "executor",
    "hooks",
    "log_config",
    "models",
    "query",
    "retry",
    "transport",
    "types",
    "AuthHook",
    "ClientCredentialsAuth",
    "ConfigurationError",
    "HTTPStatusError",
    "Hook",
    "HttpMethod",
    "Ky",
    "KyError",
    "LoggingHook",
    "NetworkError",
    "Request",
    "RequestError",
    "Response",
    "RetryLoggingHook",
    "SerializationError",
    "TimeoutError",
    "TransportError",
    "create",
]
