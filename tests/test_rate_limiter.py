import asyncio

from mediapress.services.rate_limiter import RateLimiter

from doubles import new_redis


def run(coro):
    return asyncio.run(coro)


def test_requests_beyond_the_limit_are_rejected():
    async def scenario():
        limiter = RateLimiter(new_redis(), max_requests=3, window_ms=60000)
        return [await limiter.check("key-a") for _ in range(4)]

    decisions = run(scenario())

    assert [d.allowed for d in decisions] == [True, True, True, False]
    assert [d.remaining for d in decisions] == [2, 1, 0, 0]
    assert all(0 < d.reset_after_ms <= 60000 for d in decisions)
    assert decisions[-1].limit == 3


def test_identifiers_are_counted_separately():
    async def scenario():
        limiter = RateLimiter(new_redis(), max_requests=1, window_ms=60000)
        return await limiter.check("key-a"), await limiter.check("key-b")

    first, second = run(scenario())

    assert first.allowed
    assert second.allowed


def test_counter_resets_after_the_window():
    async def scenario():
        limiter = RateLimiter(new_redis(), max_requests=1, window_ms=200)
        await limiter.check("key-a")
        blocked = await limiter.check("key-a")
        await asyncio.sleep(0.3)
        expired = await limiter.current("key-a")
        fresh = await limiter.check("key-a")
        return blocked, expired, fresh

    blocked, expired, fresh = run(scenario())

    assert not blocked.allowed
    assert expired == 0
    assert fresh.allowed
    assert fresh.remaining == 0
