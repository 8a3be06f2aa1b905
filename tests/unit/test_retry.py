from __future__ import annotations

import pytest

from conftest import RecordingSleep
from oda_crawler.errors import (
    ClientError,
    ExhaustedRetriesError,
    NotFoundError,
    RateLimitError,
    TransientFetchError,
)
from oda_crawler.utils.http import ClientFailure, RateLimited, Success, TransientFailure
from oda_crawler.utils.retry import RetryPolicy, run_with_retry

URL = "https://shop.test/page"


class ScriptedOperation:
    def __init__(self, *outcomes) -> None:
        self.outcomes = list(outcomes)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if len(self.outcomes) > 1:
            return self.outcomes.pop(0)
        return self.outcomes[0]


def transient():
    return TransientFailure(url=URL, reason="503", status=503)


def ok():
    return Success(url=URL, status=200, body="<html></html>")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_success_first_try_does_not_wait():
    op = ScriptedOperation(ok())
    sleep = RecordingSleep()

    result = await run_with_retry(op, RetryPolicy(), sleep=sleep)

    assert result == ok()
    assert op.calls == 1
    assert sleep.delays == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_transient_failures_back_off_exponentially():
    op = ScriptedOperation(transient(), transient(), transient(), ok())
    sleep = RecordingSleep()

    result = await run_with_retry(op, RetryPolicy(), sleep=sleep)

    assert isinstance(result, Success)
    assert op.calls == 4
    assert sleep.delays == [1.0, 2.0, 4.0]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_exhausted_after_max_attempts():
    op = ScriptedOperation(transient())
    sleep = RecordingSleep()

    with pytest.raises(ExhaustedRetriesError) as info:
        await run_with_retry(op, RetryPolicy(), sleep=sleep)

    assert op.calls == 5
    assert info.value.attempts == 5
    assert info.value.url == URL
    assert isinstance(info.value.__cause__, TransientFetchError)
    assert sleep.delays == [1.0, 2.0, 4.0, 8.0]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_client_error_aborts_immediately():
    op = ScriptedOperation(ClientFailure(url=URL, status=403), ok())
    sleep = RecordingSleep()

    with pytest.raises(ClientError) as info:
        await run_with_retry(op, RetryPolicy(), sleep=sleep)

    assert info.value.status == 403
    assert not isinstance(info.value, NotFoundError)
    assert op.calls == 1
    assert sleep.delays == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_not_found_aborts_immediately():
    op = ScriptedOperation(ClientFailure(url=URL, status=404))

    with pytest.raises(NotFoundError):
        await run_with_retry(op, RetryPolicy(), sleep=RecordingSleep())

    assert op.calls == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_rate_limit_waits_retry_after_minus_attempt_squared_ms():
    op = ScriptedOperation(RateLimited(url=URL, retry_after=2.0), ok())
    sleep = RecordingSleep()

    await run_with_retry(op, RetryPolicy(), sleep=sleep)

    # (2000 ms - 1 ** 2 ms)
    assert sleep.delays == [pytest.approx(1.999)]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_rate_limit_does_not_wait_on_final_attempt():
    op = ScriptedOperation(RateLimited(url=URL, retry_after=2.0))
    sleep = RecordingSleep()

    with pytest.raises(ExhaustedRetriesError) as info:
        await run_with_retry(op, RetryPolicy(), sleep=sleep)

    assert op.calls == 5
    assert sleep.delays == [pytest.approx((2000 - n ** 2) / 1000) for n in range(1, 5)]
    assert isinstance(info.value.__cause__, RateLimitError)
    assert info.value.__cause__.retry_after == 2.0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_rate_limit_wait_is_never_negative():
    op = ScriptedOperation(
        RateLimited(url=URL, retry_after=0.001),
        RateLimited(url=URL, retry_after=0.001),
        ok(),
    )
    sleep = RecordingSleep()

    await run_with_retry(op, RetryPolicy(), sleep=sleep)

    # attempt 1: 1ms - 1ms, attempt 2: 1ms - 4ms
    assert sleep.delays == [0.0, 0.0]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_rate_limit_without_retry_after_uses_backoff():
    op = ScriptedOperation(RateLimited(url=URL), RateLimited(url=URL), ok())
    sleep = RecordingSleep()

    await run_with_retry(op, RetryPolicy(), sleep=sleep)

    assert sleep.delays == [1.0, 2.0]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_retry_window_caps_total_wait():
    op = ScriptedOperation(transient())
    sleep = RecordingSleep()

    with pytest.raises(ExhaustedRetriesError) as info:
        await run_with_retry(op, RetryPolicy(max_retry_time=2.5), sleep=sleep)

    # 1s fits in the window, the following 2s would not.
    assert sleep.delays == [1.0]
    assert info.value.attempts == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_server_directed_wait_counts_against_window():
    op = ScriptedOperation(RateLimited(url=URL, retry_after=120.0), ok())
    sleep = RecordingSleep()

    with pytest.raises(ExhaustedRetriesError):
        await run_with_retry(op, RetryPolicy(), sleep=sleep)

    assert op.calls == 1
    assert sleep.delays == []


@pytest.mark.unit
def test_backoff_with_jitter_stays_within_double():
    policy = RetryPolicy(base_delay=1.0, factor=2.0, jitter=True)

    for attempt in range(1, 5):
        base = 2.0 ** (attempt - 1)
        assert base <= policy.backoff(attempt) <= 2 * base


@pytest.mark.unit
def test_policy_from_config(crawl_config):
    crawl_config.max_attempts = 3
    crawl_config.retry_base_delay = 0.5

    policy = RetryPolicy.from_config(crawl_config)

    assert policy.max_attempts == 3
    assert policy.base_delay == 0.5
    assert policy.factor == 2.0
    assert policy.max_retry_time == 60.0
