from typing import Any, Callable, Dict, List

import httpx
import pytest

from core.profile import UserProfile


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubLLM:
    """
    Stands in for OllamaClient; replies with canned content or raises.
    With replies, call n gets replies[n] (the last one repeats).
    """

    def __init__(
        self,
        content: Any = None,
        error: Exception | None = None,
        replies: List[Any] | None = None,
    ) -> None:
        self.content = content
        self.error = error
        self.replies = replies or []
        self.prompts: List[str] = []

    async def evaluate(self, prompt: str) -> Dict[str, Any]:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        content = self.content
        if self.replies:
            content = self.replies[min(len(self.prompts), len(self.replies)) - 1]
        return {"raw": None, "content": content, "latency_ms": 1}


def failing_transport(status: int = 503) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json={"error": "unavailable"})

    return httpx.MockTransport(handler)


def recording_transport(handler: Callable[[httpx.Request], httpx.Response]):
    calls: List[httpx.Request] = []

    def wrapped(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return handler(request)

    return httpx.MockTransport(wrapped), calls


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def veteran_profile() -> UserProfile:
    return UserProfile.from_dict({
        "name": "Sam",
        "location": "Sacramento, CA",
        "monthly_income": 4000,
        "is_veteran": True,
    })
