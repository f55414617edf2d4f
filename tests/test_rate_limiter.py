from unittest.mock import MagicMock

import pytest
import redis
from fastapi import HTTPException

from cal_notify import rate_limiter
from cal_notify.rate_limiter import RateLimiter, check_rate_limit


@pytest.fixture(autouse=True)
def empty_cache():
    rate_limiter.memory_cache.clear()
    yield
    rate_limiter.memory_cache.clear()


@pytest.fixture
def redis_client():
    client = MagicMock()
    client.get.return_value = None
    client.ttl.return_value = -2
    return client


def test_allows_up_to_limit(redis_client):
    results = [check_rate_limit("api:totp-setup:1", 3, 60, redis_client)[0] for _ in range(4)]

    assert results == [True, True, True, False]


def test_keys_are_independent(redis_client):
    for _ in range(2):
        check_rate_limit("api:totp-setup:1", 2, 60, redis_client)

    assert check_rate_limit("api:totp-setup:2", 2, 60, redis_client)[0] is True


def test_resumes_count_from_redis(redis_client):
    redis_client.get.return_value = "5"
    redis_client.ttl.return_value = 30

    allowed, count, ttl = check_rate_limit("api:totp-setup:1", 5, 60, redis_client)

    assert allowed is False
    assert count == 5
    assert 0 < ttl <= 30


def test_redis_read_failure_falls_back_to_memory(redis_client):
    redis_client.get.side_effect = redis.ConnectionError("down")
    redis_client.set.side_effect = redis.ConnectionError("down")

    allowed, count, _ = check_rate_limit("api:totp-setup:1", 2, 60, redis_client)

    assert allowed is True
    assert count == 1


def test_limiter_raises_429_with_retry_after(redis_client):
    limiter = RateLimiter(client_factory=lambda: redis_client)
    limiter.check("api:totp-setup:1", limit=1, window_seconds=60)

    with pytest.raises(HTTPException) as exc_info:
        limiter.check("api:totp-setup:1", limit=1, window_seconds=60)

    assert exc_info.value.status_code == 429
    assert exc_info.value.detail["limit"] == 1
    assert "Retry-After" in exc_info.value.headers


def test_limiter_fails_closed_without_redis():
    def unavailable():
        raise redis.ConnectionError("refused")

    with pytest.raises(HTTPException) as exc_info:
        RateLimiter(client_factory=unavailable).check("api:totp-setup:1", 10, 60)

    assert exc_info.value.status_code == 503
