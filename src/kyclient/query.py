"""Query-string encoding, decoding and merging.

Values are form-encoded (`quote_plus`), so `decode(encode(params))` gives back
the same scalars as strings and list values as lists in the same order.
"""

from collections.abc import Mapping
from typing import Any
from urllib.parse import quote_plus, unquote_plus

QueryScalar = str | int | float | bool
QueryValue = QueryScalar | list[QueryScalar | None] | tuple[QueryScalar | None, ...] | None
QueryParams = dict[str, QueryValue]


def _render(value: QueryScalar) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode(params: Mapping[str, Any] | None) -> str:
    """Encode a params mapping into a query string (without the leading `?`).

    Null values are skipped. List and tuple values are rendered as repeated
    `key=item` pairs, skipping null items.
    """
    if not params:
        return ""
    pairs: list[str] = []
    for key, value in params.items():
        if value is None:
            continue
        encoded_key = quote_plus(str(key))
        items = value if isinstance(value, list | tuple) else [value]
        for item in items:
            if item is None:
                continue
            pairs.append(f"{encoded_key}={quote_plus(_render(item))}")
    return "&".join(pairs)


def append_to_url(base_url: str, params: Mapping[str, Any] | None) -> str:
    """Append encoded `params` to `base_url`.

    Uses `?` when the URL has no query component yet and `&` otherwise. A
    fragment, if any, is kept at the end of the URL.
    """
    query = encode(params)
    if not query:
        return base_url

    url, hash_sign, fragment = base_url.partition("#")
    if url.endswith(("?", "&")):
        separator = ""
    elif "?" in url:
        separator = "&"
    else:
        separator = "?"
    return f"{url}{separator}{query}{hash_sign}{fragment}"


def merge(*param_sets: Mapping[str, Any] | None) -> QueryParams:
    """Merge param sets; a later set replaces earlier values for the same key."""
    merged: QueryParams = {}
    for params in param_sets:
        if params:
            merged.update(params)
    return merged


def decode(query: str) -> dict[str, str | list[str]]:
    """Decode a query string into a mapping.

    Repeated keys accumulate into a list in order of appearance. Pairs
    without `=` are dropped.
    """
    decoded: dict[str, str | list[str]] = {}
    if query.startswith("?"):
        query = query[1:]
    for pair in query.split("&"):
        if "=" not in pair:
            continue
        raw_key, raw_value = pair.split("=", 1)
        key, value = unquote_plus(raw_key), unquote_plus(raw_value)
        existing = decoded.get(key)
        if existing is None:
            decoded[key] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            decoded[key] = [existing, value]
    return decoded
