"""
Submission Throttle - sliding window limit on link submissions per origin.

A submission is accepted if fewer than `max_requests` were accepted for the
same key in the trailing `window_seconds`. Only accepted submissions count.
"""
from __future__ import annotations

import logging
import threading
import time
import uuid
from abc import ABC, abstractmethod
from collections import deque
from typing import Callable, Deque, Dict, Optional

from redis import Redis
from redis.exceptions import WatchError

from tubeingest.core.enums import ThrottleBackend
from tubeingest.core.settings import settings

logger = logging.getLogger(__name__)


class SubmissionThrottle(ABC):
    def __init__(self, max_requests: int = 5, window_seconds: float = 3600):
        self.max_requests = max_requests
        self.window_seconds = window_seconds

    @abstractmethod
    def check_and_record(self, key: str) -> bool:
        """Record a submission for `key` and return True, or return False if over the limit."""


class InMemorySubmissionThrottle(SubmissionThrottle):
    """
    Per-process window store. Each key is pruned when it is checked; keys
    left empty are dropped, and every `sweep_every` checks all idle keys are
    swept so origins that never come back do not accumulate.
    """

    def __init__(
        self,
        max_requests: int = 5,
        window_seconds: float = 3600,
        clock: Callable[[], float] = time.monotonic,
        sweep_every: int = 1000,
    ):
        super().__init__(max_requests, window_seconds)
        self._clock = clock
        self._sweep_every = sweep_every
        self._checks = 0
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()

    def _prune(self, hits: Deque[float], now: float) -> None:
        while hits and now - hits[0] >= self.window_seconds:
            hits.popleft()

    def check_and_record(self, key: str) -> bool:
        with self._lock:
            now = self._clock()
            self._checks += 1
            if self._checks % self._sweep_every == 0:
                self._sweep(now)

            hits = self._hits.get(key)
            if hits is not None:
                self._prune(hits, now)
            if hits and len(hits) >= self.max_requests:
                return False

            if hits is None:
                hits = self._hits[key] = deque()
            hits.append(now)
            return True

    def _sweep(self, now: float) -> None:
        for key in list(self._hits):
            hits = self._hits[key]
            self._prune(hits, now)
            if not hits:
                del self._hits[key]

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
            self._checks = 0


class RedisSubmissionThrottle(SubmissionThrottle):
    """
    Window store shared by every API instance: one sorted set per origin,
    scored by timestamp. WATCH/MULTI makes the check and the insert one step,
    and each key expires a window after its last submission.
    """

    def __init__(
        self,
        redis_conn: Redis,
        max_requests: int = 5,
        window_seconds: float = 3600,
        prefix: str = "throttle:submission:",
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(max_requests, window_seconds)
        self.redis = redis_conn
        self.prefix = prefix
        self._clock = clock

    def check_and_record(self, key: str) -> bool:
        redis_key = f"{self.prefix}{key}"
        while True:
            now = self._clock()
            with self.redis.pipeline() as pipe:
                try:
                    pipe.watch(redis_key)
                    # Entries exactly one window old are already out
                    pipe.zremrangebyscore(redis_key, "-inf", now - self.window_seconds)
                    if pipe.zcard(redis_key) >= self.max_requests:
                        pipe.unwatch()
                        return False
                    pipe.multi()
                    pipe.zadd(redis_key, {f"{now}:{uuid.uuid4().hex}": now})
                    pipe.expire(redis_key, int(self.window_seconds) + 1)
                    pipe.execute()
                    return True
                except WatchError:
                    logger.debug(f"[throttle] Retrying contended key {redis_key}")
                    continue


_throttle: Optional[SubmissionThrottle] = None
_throttle_lock = threading.Lock()


def build_submission_throttle() -> SubmissionThrottle:
    if settings.submission_throttle_backend == ThrottleBackend.REDIS.value:
        return RedisSubmissionThrottle(
            Redis.from_url(settings.redis_url),
            max_requests=settings.submission_max_per_window,
            window_seconds=settings.submission_window_seconds,
        )
    return InMemorySubmissionThrottle(
        max_requests=settings.submission_max_per_window,
        window_seconds=settings.submission_window_seconds,
    )


def get_submission_throttle() -> SubmissionThrottle:
    """FastAPI dependency; one throttle per process, built on first use."""
    global _throttle
    with _throttle_lock:
        if _throttle is None:
            _throttle = build_submission_throttle()
        return _throttle
