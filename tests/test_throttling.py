import pytest

from ridematch.services.routing.throttling import BoundedTTLCache, RateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def test_rate_limiter_delays_calls_that_come_too_soon():
    clock = FakeClock()
    limiter = RateLimiter(0.3, clock=clock, sleep=clock.sleep)

    assert limiter.acquire() == 0.0
    clock.now += 0.1
    assert limiter.acquire() == pytest.approx(0.2)
    assert clock.sleeps == [pytest.approx(0.2)]

    clock.now += 1.0
    assert limiter.acquire() == 0.0
    assert len(clock.sleeps) == 1


def test_rate_limiter_spaces_back_to_back_calls():
    clock = FakeClock()
    limiter = RateLimiter(0.5, clock=clock, sleep=clock.sleep)

    for _ in range(4):
        limiter.acquire()

    assert clock.sleeps == [pytest.approx(0.5)] * 3
    assert clock.now == pytest.approx(1.5)


def test_rate_limiter_rejects_negative_interval():
    with pytest.raises(ValueError):
        RateLimiter(-1.0)


def test_cache_evicts_least_recently_used():
    cache = BoundedTTLCache(max_entries=2, clock=FakeClock())
    cache.set("a", 1)
    cache.set("b", 2)
    assert cache.get("a") == 1
    cache.set("c", 3)

    assert cache.get("b") is None
    assert cache.get("a") == 1
    assert cache.get("c") == 3
    assert len(cache) == 2


def test_cache_entries_expire_after_ttl():
    clock = FakeClock()
    cache = BoundedTTLCache(max_entries=8, ttl_seconds=10.0, clock=clock)
    cache.set(("directions", 1), "route")

    clock.now = 9.9
    assert cache.get(("directions", 1)) == "route"
    clock.now = 10.0
    assert cache.get(("directions", 1)) is None
    assert len(cache) == 0
    assert cache.hits == 1
    assert cache.misses == 1


def test_cache_clear():
    cache = BoundedTTLCache()
    cache.set("key", "value")
    cache.clear()
    assert cache.get("key") is None
