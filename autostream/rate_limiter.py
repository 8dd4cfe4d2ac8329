from __future__ import annotations

import asyncio
import contextlib
import threading
import time
from typing import Dict, List, Optional

from autostream.logger import LogCallback, emit


class RateLimiter:
    """Sliding-window admission control keyed by an arbitrary string.

    Each key keeps the timestamps of its admitted calls. A call is admitted
    while fewer than ``max_requests`` of them fall inside the trailing
    ``window_ms``. Decisions are made under one lock, so concurrent callers
    for the same key can never jointly exceed the limit.

    ``start()`` launches a recurring sweep on the running event loop that
    drops idle keys and caps the number of tracked keys at ``max_keys``;
    ``stop()`` cancels it.
    """

    def __init__(
        self,
        max_requests: int = 50,
        window_ms: float = 60000,
        max_keys: int = 10000,
        sweep_interval_ms: float = 60000,
        log: Optional[LogCallback] = None,
    ) -> None:
        self.max_requests = max_requests
        self.window_ms = window_ms
        self.max_keys = max_keys
        self.sweep_interval_ms = sweep_interval_ms
        self._log = log
        self._lock = threading.Lock()
        self._requests: Dict[str, List[float]] = {}
        self._sweeper: Optional[asyncio.Task] = None

    def _now(self) -> float:
        return time.monotonic() * 1000.0

    def _live(self, timestamps: List[float], now: float) -> List[float]:
        return [t for t in timestamps if now - t < self.window_ms]

    def is_allowed(self, key: str) -> bool:
        with self._lock:
            now = self._now()
            valid = self._live(self._requests.get(key, []), now)
            if len(valid) >= self.max_requests:
                return False
            valid.append(now)
            self._requests[key] = valid
            return True

    def cleanup(self) -> int:
        """Compact all windows; returns the number of keys removed."""
        with self._lock:
            now = self._now()
            removed = 0
            for key in list(self._requests):
                valid = self._live(self._requests[key], now)
                if valid:
                    self._requests[key] = valid
                else:
                    del self._requests[key]
                    removed += 1

            overflow = len(self._requests) - self.max_keys
            if overflow > 0:
                # timestamps are appended in order, the last one is the most recent
                by_activity = sorted(self._requests.items(), key=lambda kv: kv[1][-1])
                for key, _ in by_activity[:overflow]:
                    del self._requests[key]
                removed += overflow
                emit(self._log, "rate limiter evicted keys", overflow)
        return removed

    def tracked_keys(self) -> List[str]:
        with self._lock:
            return list(self._requests)

    def stats(self) -> dict:
        with self._lock:
            return {
                "active_keys": len(self._requests),
                "max_keys": self.max_keys,
                "max_requests": self.max_requests,
                "window_ms": self.window_ms,
            }

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval_ms / 1000.0)
            removed = self.cleanup()
            if removed:
                emit(self._log, "rate limiter sweep", removed)

    @property
    def running(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    def start(self) -> None:
        if self.running:
            return
        self._sweeper = asyncio.get_running_loop().create_task(self._sweep_forever())

    async def stop(self) -> None:
        task, self._sweeper = self._sweeper, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
