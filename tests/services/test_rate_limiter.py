import asyncio

import pytest

from licita.core.errors import RateLimitedError
from licita.services.rate_limiter import LoginFailureTracker, RateLimiter


async def test_requests_within_limit_pass(redis_client):
    limiter = RateLimiter(redis_client, "biddings", max_requests=3, window_seconds=60)

    statuses = [await limiter.check_rate_limit("user-1") for _ in range(3)]

    assert [status.remaining for status in statuses] == [2, 1, 0]
    assert statuses[0].limit == 3


async def test_request_over_limit_is_rejected_with_retry_after(redis_client):
    limiter = RateLimiter(redis_client, "biddings", max_requests=2, window_seconds=60)
    await limiter.check_rate_limit("user-1")
    await limiter.check_rate_limit("user-1")

    with pytest.raises(RateLimitedError) as excinfo:
        await limiter.check_rate_limit("user-1")

    assert 0 < excinfo.value.retry_after <= 60
    assert excinfo.value.status_code == 429


async def test_rejected_request_does_not_extend_counter(redis_client):
    limiter = RateLimiter(redis_client, "biddings", max_requests=1, window_seconds=60)
    await limiter.check_rate_limit("user-1")

    for _ in range(3):
        with pytest.raises(RateLimitedError):
            await limiter.check_rate_limit("user-1")

    assert await redis_client.get(limiter.key_for("user-1")) == "1"


async def test_counters_are_per_identifier_and_name(redis_client):
    biddings = RateLimiter(redis_client, "biddings", max_requests=1, window_seconds=60)
    proposals = RateLimiter(redis_client, "proposals", max_requests=1, window_seconds=60)
    await biddings.check_rate_limit("user-1")

    await biddings.check_rate_limit("user-2")
    await proposals.check_rate_limit("user-1")
    assert biddings.key_for("user-1") == "rate_limit:biddings:user-1"


async def test_window_expiry_restores_access(redis_client):
    limiter = RateLimiter(redis_client, "login", max_requests=1, window_seconds=1)
    await limiter.check_rate_limit("10.0.0.1")
    with pytest.raises(RateLimitedError):
        await limiter.check_rate_limit("10.0.0.1")

    await asyncio.sleep(1.1)

    assert (await limiter.check_rate_limit("10.0.0.1")).remaining == 0


async def test_reset_clears_counter(redis_client):
    limiter = RateLimiter(redis_client, "login", max_requests=1, window_seconds=60)
    await limiter.check_rate_limit("10.0.0.1")

    await limiter.reset("10.0.0.1")

    await limiter.check_rate_limit("10.0.0.1")


async def test_login_failures_block_after_threshold(redis_client):
    tracker = LoginFailureTracker(redis_client, max_failures=3, window_seconds=600)

    for attempt in range(1, 4):
        await tracker.check("10.0.0.1")
        assert await tracker.record_failure("10.0.0.1") == attempt

    with pytest.raises(RateLimitedError, match="failed login attempts"):
        await tracker.check("10.0.0.1")
    await tracker.check("10.0.0.2")


async def test_clear_resets_login_failures(redis_client):
    tracker = LoginFailureTracker(redis_client, max_failures=1, window_seconds=600)
    await tracker.record_failure("10.0.0.1")

    await tracker.clear("10.0.0.1")

    await tracker.check("10.0.0.1")
