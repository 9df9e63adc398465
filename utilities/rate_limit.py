"""Client-side limits on calls to the AI backend.

Both limiters expose the same ``acquire()`` method and raise
``RateLimitExceeded`` without touching the upstream service when the budget is
spent. The app factory builds one limiter per application and hands it to the
Gemini client.
"""
import logging
import threading
import time

from redis.exceptions import RedisError

from errors import UpstreamGenerationError

logger = logging.getLogger(__name__)


class RateLimitExceeded(UpstreamGenerationError):
    """Local call budget exhausted; the upstream AI was not contacted."""


class TokenBucket:
    """In-process token bucket.

    Holds up to ``capacity`` tokens and refills ``capacity`` tokens every
    ``refill_seconds`` (continuously, pro rata). ``clock`` must be monotonic.
    """

    def __init__(self, capacity: int = 50, refill_seconds: float = 60.0, clock=time.monotonic):
        if capacity < 1 or refill_seconds <= 0:
            raise ValueError('capacity must be >= 1 and refill_seconds > 0')
        self.capacity = capacity
        self.refill_seconds = refill_seconds
        self._clock = clock
        self._tokens = float(capacity)
        self._updated = clock()
        self._lock = threading.Lock()

    def _refill(self):
        now = self._clock()
        elapsed = max(0.0, now - self._updated)
        self._tokens = min(float(self.capacity), self._tokens + elapsed * self.capacity / self.refill_seconds)
        self._updated = now

    @property
    def available(self) -> int:
        with self._lock:
            self._refill()
            return int(self._tokens)

    def try_acquire(self, tokens: int = 1) -> bool:
        with self._lock:
            self._refill()
            if self._tokens < tokens:
                return False
            self._tokens -= tokens
            return True

    def acquire(self, tokens: int = 1) -> None:
        if not self.try_acquire(tokens):
            raise RateLimitExceeded(
                f"Rate limit exceeded ({self.capacity} calls per {self.refill_seconds:g}s) - using fallback questions"
            )
        logger.debug("AI call permitted; %s tokens left", int(self._tokens))


class RedisRateLimiter:
    """Fixed-window counter shared through Redis.

    Every process pointing at the same Redis and ``name`` shares one budget of
    ``limit`` calls per ``window_seconds``. If Redis stops answering the call
    is let through.
    """

    def __init__(self, redis_conn, limit: int = 50, window_seconds: int = 60,
                 name: str = 'gemini', clock=time.time):
        self.r = redis_conn
        self.limit = limit
        self.window_seconds = window_seconds
        self.name = name
        self._clock = clock

    def _key(self) -> str:
        window_index = int(self._clock() // self.window_seconds)
        return f"ratelimit:{self.name}:{window_index}"

    def try_acquire(self) -> bool:
        key = self._key()
        try:
            pipe = self.r.pipeline()
            pipe.incr(key)
            pipe.expire(key, self.window_seconds)
            count, _ = pipe.execute()
        except RedisError as e:
            logger.error("Redis error in rate limiter, allowing call: %s", e)
            return True
        return int(count) <= self.limit

    def acquire(self) -> None:
        if not self.try_acquire():
            raise RateLimitExceeded(
                f"Rate limit exceeded ({self.limit} calls per {self.window_seconds}s) - using fallback questions"
            )
