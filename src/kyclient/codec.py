"""JSON and request-body encoding on top of pydantic.

Structured values (dicts, lists, pydantic models, dataclasses, datetimes...)
are serialized with a `TypeAdapter`; responses are validated into the
requested shape, ignoring unknown fields.
"""

from functools import lru_cache
from typing import Any

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from .exceptions import SerializationError

BODY_METHODS = frozenset(["POST", "PUT", "PATCH"])
"""Methods that carry a request body to the transport."""

OCTET_STREAM = "application/octet-stream"
TEXT_PLAIN = "text/plain; charset=utf-8"
APPLICATION_JSON = "application/json"


@lru_cache(maxsize=256)
def _adapter(model: Any) -> TypeAdapter[Any]:
    return TypeAdapter(model)


def encode_json(value: Any) -> str:
    """Serialize `value` to JSON text.

    Raises:
        SerializationError: If the value cannot be serialized.
    """
    try:
        return _adapter(Any).dump_json(value).decode("utf-8")
    except (PydanticSerializationError, TypeError, ValueError) as e:
        raise SerializationError(
            f"Could not encode {type(value).__name__} as JSON: {e}"
        ) from e


def decode_json(data: bytes | str, model: Any = None) -> Any:
    """Parse JSON `data`, validating it into `model` when given.

    Unknown fields are ignored by pydantic models unless the model itself
    forbids them.

    Raises:
        SerializationError: If the data is not valid JSON or does not fit `model`.
    """
    try:
        return _adapter(Any if model is None else model).validate_json(data)
    except ValidationError as e:
        target = "JSON" if model is None else getattr(model, "__name__", str(model))
        raise SerializationError(f"Could not decode response as {target}: {e}") from e
    except TypeError as e:
        # Unhashable or otherwise unsupported model types end up here
        raise SerializationError(f"Unsupported decode target {model!r}: {e}") from e


def encode_body(method: str, body: Any) -> tuple[bytes | None, str | None]:
    """Turn a request body into wire bytes and an inferred content type.

    Only POST, PUT and PATCH carry a body; for any other method, or a `None`
    body, `(None, None)` is returned.
    """
    if body is None or method.upper() not in BODY_METHODS:
        return None, None
    if isinstance(body, bytes | bytearray):
        return bytes(body), OCTET_STREAM
    if isinstance(body, str):
        return body.encode("utf-8"), TEXT_PLAIN
    return encode_json(body).encode("utf-8"), APPLICATION_JSON
