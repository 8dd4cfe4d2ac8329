"""Tests for the sliding-window rate limiter and its background sweep."""
import asyncio
import threading

import pytest

from autostream.rate_limiter import RateLimiter


class FakeClock:
    def __init__(self, start: float = 10000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


def make_limiter(clock, **kwargs):
    limiter = RateLimiter(**kwargs)
    limiter._now = clock
    return limiter


def test_admits_exactly_max_requests_in_window():
    clock = FakeClock()
    limiter = make_limiter(clock, max_requests=3, window_ms=1000)
    assert [limiter.is_allowed("ip") for _ in range(3)] == [True, True, True]
    assert limiter.is_allowed("ip") is False


def test_admits_again_after_oldest_leaves_window():
    clock = FakeClock()
    limiter = make_limiter(clock, max_requests=2, window_ms=1000)
    assert limiter.is_allowed("ip")
    clock.advance(400)
    assert limiter.is_allowed("ip")
    assert not limiter.is_allowed("ip")
    clock.advance(600)  # first admission is now exactly window_ms old
    assert limiter.is_allowed("ip")
    assert not limiter.is_allowed("ip")


def test_denial_does_not_consume_capacity():
    clock = FakeClock()
    limiter = make_limiter(clock, max_requests=1, window_ms=1000)
    assert limiter.is_allowed("ip")
    for _ in range(10):
        clock.advance(10)
        assert not limiter.is_allowed("ip")
    clock.advance(901)
    assert limiter.is_allowed("ip")


def test_keys_are_independent():
    clock = FakeClock()
    limiter = make_limiter(clock, max_requests=1, window_ms=1000)
    assert limiter.is_allowed("a")
    assert limiter.is_allowed("b")
    assert not limiter.is_allowed("a")


def test_cleanup_drops_idle_keys():
    clock = FakeClock()
    limiter = make_limiter(clock, max_requests=5, window_ms=1000)
    limiter.is_allowed("old")
    clock.advance(500)
    limiter.is_allowed("fresh")
    clock.advance(600)
    assert limiter.cleanup() == 1
    assert limiter.tracked_keys() == ["fresh"]


def test_cleanup_evicts_least_recently_active_over_ceiling():
    clock = FakeClock()
    limiter = make_limiter(clock, max_requests=5, window_ms=60000, max_keys=2)
    limiter.is_allowed("a")
    clock.advance(10)
    limiter.is_allowed("b")
    clock.advance(10)
    limiter.is_allowed("c")
    clock.advance(10)
    limiter.is_allowed("a")  # "a" becomes the most recently active
    assert limiter.cleanup() == 1
    assert sorted(limiter.tracked_keys()) == ["a", "c"]
    assert limiter.stats()["active_keys"] == 2


def test_concurrent_threads_never_exceed_limit():
    limiter = RateLimiter(max_requests=25, window_ms=60000)
    admitted = []
    lock = threading.Lock()

    def worker():
        for _ in range(20):
            if limiter.is_allowed("shared"):
                with lock:
                    admitted.append(1)

    threads = [threading.Thread(target=worker) for _ in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(admitted) == 25


@pytest.mark.asyncio
async def test_concurrent_tasks_never_exceed_limit():
    limiter = RateLimiter(max_requests=5, window_ms=60000)

    async def attempt():
        await asyncio.sleep(0)
        return limiter.is_allowed("shared")

    results = await asyncio.gather(*[attempt() for _ in range(20)])
    assert results.count(True) == 5


@pytest.mark.asyncio
async def test_sweep_runs_periodically_and_stops():
    limiter = RateLimiter(max_requests=5, window_ms=5, sweep_interval_ms=10)
    limiter.is_allowed("ip")
    limiter.start()
    assert limiter.running
    limiter.start()  # idempotent
    await asyncio.sleep(0.1)
    assert limiter.tracked_keys() == []
    await limiter.stop()
    assert not limiter.running
    await limiter.stop()  # safe to call twice
