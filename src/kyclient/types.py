# kyclient/types.py
"""Core type definitions and data structures for kyclient.

This module defines the immutable `Request` and `Response` values that flow
through the hook chain, the supported HTTP methods, and small helpers for
case-insensitive header handling.
"""

import re
from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from . import codec, query
from .exceptions import ConfigurationError, SerializationError

_CHARSET_RE = re.compile(r"charset=[\"']?([\w.:-]+)", re.IGNORECASE)


class HttpMethod(str, Enum):
    """HTTP methods supported by the client."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"

    @classmethod
    def parse(cls, value: "str | HttpMethod") -> "HttpMethod":
        """Resolve a method name case-insensitively.

        Raises:
            ConfigurationError: If the method is not supported.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ConfigurationError(f"Unsupported HTTP method: {value!r}") from None


def find_header(headers: Mapping[str, Any], name: str) -> str | None:
    """Return the stored spelling of header `name`, ignoring case."""
    lowered = name.lower()
    for key in headers:
        if key.lower() == lowered:
            return key
    return None


def merge_headers(*header_sets: Mapping[str, str] | None) -> dict[str, str]:
    """Merge header mappings; later sets win key-by-key, ignoring case.

    The spelling of the winning entry is kept.
    """
    merged: dict[str, str] = {}
    for headers in header_sets:
        if not headers:
            continue
        for name, value in headers.items():
            existing = find_header(merged, name)
            if existing is not None:
                del merged[existing]
            merged[name] = value
    return merged


class Request(BaseModel):
    """A single logical HTTP request as seen by hooks.

    Requests are immutable: hooks return a new instance, typically built with
    `with_header` or `model_copy(update=...)`.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    url: str
    method: HttpMethod = HttpMethod.GET
    headers: dict[str, str] = Field(default_factory=dict)
    body: Any | None = None
    params: dict[str, Any] = Field(default_factory=dict)
    timeout: float | None = Field(default=None, gt=0)
    max_retries: int = Field(default=0, ge=0)

    @field_validator("method", mode="before")
    @classmethod
    def _parse_method(cls, value: Any) -> Any:
        return HttpMethod.parse(value)

    @property
    def method_name(self) -> str:
        """Upper-case method name, also for methods set through `model_copy`."""
        return HttpMethod.parse(self.method).value

    @property
    def full_url(self) -> str:
        """The URL sent to the transport: `url` with the params appended."""
        return query.append_to_url(self.url, self.params)

    def header(self, name: str) -> str | None:
        """Look up a header value, ignoring case."""
        key = find_header(self.headers, name)
        return None if key is None else self.headers[key]

    def with_header(self, name: str, value: str) -> "Request":
        """Return a copy with header `name` set, replacing any casing of it."""
        return self.model_copy(
            update={"headers": merge_headers(self.headers, {name: value})}
        )

    def without_header(self, name: str) -> "Request":
        """Return a copy without header `name` (any casing)."""
        key = find_header(self.headers, name)
        if key is None:
            return self
        headers = {k: v for k, v in self.headers.items() if k != key}
        return self.model_copy(update={"headers": headers})


class Response(BaseModel):
    """The result of one transport exchange.

    Attributes:
        status: HTTP status code.
        status_text: Reason phrase, e.g. "Not Found".
        headers: Response headers; each name maps to all of its values.
        content: Raw body bytes.
        url: Final URL of the exchange, after redirects.
    """

    model_config = ConfigDict(frozen=True)

    status: int = Field(ge=100, le=599)
    status_text: str = ""
    headers: dict[str, list[str]] = Field(default_factory=dict)
    content: bytes = b""
    url: str = ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def ok(self) -> bool:
        """True when the status is in the 2xx range."""
        return 200 <= self.status <= 299

    def header_values(self, name: str) -> list[str]:
        """All values of header `name`, ignoring case."""
        key = find_header(self.headers, name)
        return [] if key is None else list(self.headers[key])

    def header(self, name: str) -> str | None:
        """First value of header `name`, ignoring case."""
        values = self.header_values(name)
        return values[0] if values else None

    @property
    def encoding(self) -> str:
        content_type = self.header("Content-Type") or ""
        match = _CHARSET_RE.search(content_type)
        return match.group(1) if match else "utf-8"

    def text(self) -> str:
        """The body decoded with the response charset (UTF-8 by default)."""
        try:
            return self.content.decode(self.encoding, errors="replace")
        except LookupError:
            return self.content.decode("utf-8", errors="replace")

    def json(self, model: Any = None) -> Any:
        """Decode the body as JSON, optionally validated into `model`.

        Args:
            model: Optional target type (pydantic model, dataclass,
                `list[Model]`, ...). Unknown fields are ignored.

        Raises:
            SerializationError: If decoding or validation fails.
        """
        try:
            return codec.decode_json(self.content, model)
        except SerializationError as e:
            e.response = self
            raise
