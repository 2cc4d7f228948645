from __future__ import annotations

import pytest

from signalist.core.finnhub_client import FinnhubRequestError
from signalist.core.retry import RetryPolicy, status_code_of


def _recording_sleep():
    slept: list[float] = []

    async def _sleep(seconds: float) -> None:
        slept.append(seconds)

    return slept, _sleep


@pytest.mark.asyncio
async def test_rate_limited_calls_back_off_exponentially() -> None:
    slept, sleep = _recording_sleep()
    policy = RetryPolicy(max_attempts=3, sleep=sleep)
    responses = [FinnhubRequestError("slow down", 429), FinnhubRequestError("slow down", 429), {"c": 1.0}]

    async def _op():
        item = responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    result = await policy.run(_op, label="/quote")
    assert result == {"c": 1.0}
    assert slept == [1.0, 2.0]


@pytest.mark.asyncio
async def test_non_rate_limit_failures_use_fixed_delay_then_raise() -> None:
    slept, sleep = _recording_sleep()
    policy = RetryPolicy(max_attempts=3, sleep=sleep)
    attempts = {"n": 0}

    async def _op():
        attempts["n"] += 1
        raise FinnhubRequestError("boom", 500)

    with pytest.raises(FinnhubRequestError):
        await policy.run(_op)
    assert attempts["n"] == 3
    assert slept == [0.5, 0.5]


@pytest.mark.asyncio
async def test_fourth_rate_limit_attempt_waits_four_seconds() -> None:
    slept, sleep = _recording_sleep()
    policy = RetryPolicy(max_attempts=4, sleep=sleep)

    async def _op():
        raise FinnhubRequestError("slow down", 429)

    with pytest.raises(FinnhubRequestError):
        await policy.run(_op)
    assert slept == [1.0, 2.0, 4.0]


@pytest.mark.asyncio
async def test_unlisted_exceptions_are_not_retried() -> None:
    slept, sleep = _recording_sleep()
    policy = RetryPolicy(retry_on=(FinnhubRequestError,), sleep=sleep)

    async def _op():
        raise KeyError("nope")

    with pytest.raises(KeyError):
        await policy.run(_op)
    assert slept == []


def test_status_code_reads_response_attribute() -> None:
    class _Resp:
        status_code = 429

    class _Err(Exception):
        response = _Resp()

    assert status_code_of(_Err()) == 429
    assert status_code_of(ValueError("x")) is None


def test_rejects_zero_attempts() -> None:
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)
