"""Shared fixtures: a scripted transport, a recording sleep and a log sink."""

import json as jsonlib
from dataclasses import dataclass, field
from typing import Any

import pytest

from kyclient.config import KySettings
from kyclient.types import Response


def make_response(
    status: int = 200,
    *,
    json: Any = None,
    text: str | None = None,
    status_text: str = "",
    headers: dict[str, list[str]] | None = None,
    url: str = "https://api.example.com/",
) -> Response:
    """Build a Response the way a transport would."""
    content = b""
    if json is not None:
        content = jsonlib.dumps(json).encode()
        headers = {"Content-Type": ["application/json"], **(headers or {})}
    elif text is not None:
        content = text.encode()
    return Response(
        status=status,
        status_text=status_text,
        headers=headers or {},
        content=content,
        url=url,
    )


@dataclass
class Exchange:
    method: str
    url: str
    headers: dict[str, str]
    content: bytes | None
    timeout: float | None


@dataclass
class FakeTransport:
    """HttpTransport replaying scripted outcomes; the last outcome repeats.

    Outcomes are Responses or exceptions to raise.
    """

    outcomes: list[Any] = field(default_factory=lambda: [make_response()])
    timeout: float = 30.0
    calls: list[Exchange] = field(default_factory=list)
    derived: list["FakeTransport"] = field(default_factory=list)
    closed: bool = False

    async def exchange(self, method, url, headers, content=None, *, timeout=None):
        self.calls.append(Exchange(method, url, dict(headers), content, timeout))
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome.model_copy(update={"url": url})

    def with_timeout(self, timeout):
        clone = FakeTransport(outcomes=self.outcomes, timeout=timeout, calls=self.calls)
        self.derived.append(clone)
        return clone

    async def aclose(self):
        self.closed = True


class RecordingSink:
    """LogSink keeping every emitted record."""

    def __init__(self):
        self.records: list[dict[str, Any]] = []

    def emit(self, level: str, message: str, **fields: Any) -> None:
        self.records.append({"level": level, "message": message, **fields})

    def events(self) -> list[str]:
        return [record["event"] for record in self.records]


@pytest.fixture
def settings():
    """Settings isolated from the environment and .env files."""
    return KySettings(_env_file=None, max_retries=0, retry_backoff=1.0)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def sleeps():
    """Delays passed to the recording sleep, in order."""
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return _sleep


@pytest.fixture
def sink():
    return RecordingSink()
