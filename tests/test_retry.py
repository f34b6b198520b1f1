from __future__ import annotations

import asyncio

import pytest

from stream_engine.core.exceptions import TransientGenerationFailure
from stream_engine.services.retry import retry_with_backoff


class Flaky:
    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise TransientGenerationFailure(f"failure {self.calls}")
        return "ok"


def test_succeeds_after_transient_failures() -> None:
    func = Flaky(failures=2)
    assert asyncio.run(retry_with_backoff(func, max_retries=3, delay=0)) == "ok"
    assert func.calls == 3


def test_raises_after_last_attempt() -> None:
    func = Flaky(failures=10)
    with pytest.raises(TransientGenerationFailure):
        asyncio.run(retry_with_backoff(func, max_retries=2, delay=0))
    assert func.calls == 3


def test_other_exceptions_are_not_retried() -> None:
    calls = []

    def func() -> None:
        calls.append(1)
        raise KeyError("boom")

    with pytest.raises(KeyError):
        asyncio.run(retry_with_backoff(func, max_retries=3, delay=0))
    assert len(calls) == 1


def test_async_callable() -> None:
    attempts = []

    async def func() -> int:
        attempts.append(1)
        if len(attempts) < 2:
            raise TransientGenerationFailure("later")
        return 7

    assert asyncio.run(retry_with_backoff(func, delay=0)) == 7
    assert len(attempts) == 2
