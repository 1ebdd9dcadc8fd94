"""
Rate limiting implementations for Nominatim requests.

Nominatim's usage policy allows at most one request per second. The gateway
calls ``wait()`` on its limiter before every request; the limiter is
injectable so tests can use ``NoOpRateLimiter`` and deployments can swap in
a ``TokenBucket`` without touching call sites.
"""

from __future__ import annotations

import time
import threading
from typing import Optional

from .base import RateLimiter
from ..utils.errors import SearchCancelledError

DEFAULT_PRE_CALL_DELAY_S = 1.25


def _check_cancelled(cancel_event: Optional[threading.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise SearchCancelledError("Cancelled while waiting for a request slot")


def sleep_unless_cancelled(seconds: float, cancel_event: Optional[threading.Event]) -> None:
    """Sleep, waking early and raising if ``cancel_event`` fires."""
    if seconds <= 0:
        _check_cancelled(cancel_event)
        return
    if cancel_event is None:
        time.sleep(seconds)
    elif cancel_event.wait(seconds):
        raise SearchCancelledError("Cancelled while waiting for a request slot")


class PreCallDelayGate(RateLimiter):
    """
    Fixed delay slept before every request.

    Not a token bucket: every call pays the full delay, even after a long
    idle period. 1.25 s keeps a comfortable margin under the provider's
    1 request/second limit. Thread-safe; concurrent callers sleep one after
    another.
    """

    def __init__(self, delay_s: float = DEFAULT_PRE_CALL_DELAY_S):
        """
        Initialize the gate.

        Args:
            delay_s: Seconds to sleep before each request
        """
        if delay_s < 0:
            raise ValueError("delay_s must be >= 0")

        self.delay_s = float(delay_s)
        self.lock = threading.Lock()

    def wait(self, cancel_event: Optional[threading.Event] = None) -> None:
        """Sleep the fixed delay."""
        self.acquire(1, cancel_event=cancel_event)

    def acquire(self, count: int = 1, cancel_event: Optional[threading.Event] = None) -> None:
        """
        Sleep the fixed delay once per requested slot.

        Args:
            count: Number of requests about to be made
            cancel_event: Optional cancellation hook
        """
        if count <= 0:
            raise ValueError("count must be > 0")

        with self.lock:
            _check_cancelled(cancel_event)
            sleep_unless_cancelled(self.delay_s * count, cancel_event)


class SimpleRateGate(RateLimiter):
    """
    Rate gate with a fixed minimum spacing between requests.

    Unlike PreCallDelayGate it only sleeps for whatever part of the
    interval has not already elapsed since the previous request.
    """

    def __init__(self, requests_per_second: float):
        """
        Initialize rate gate.

        Args:
            requests_per_second: Target rate (requests per second)
        """
        if requests_per_second <= 0:
            raise ValueError("requests_per_second must be > 0")

        self.dt = 1.0 / float(requests_per_second)
        self.next_time = time.perf_counter()
        self.lock = threading.Lock()

    def wait(self, cancel_event: Optional[threading.Event] = None) -> None:
        """Block until it's safe to make a request."""
        self.acquire(1, cancel_event=cancel_event)

    def acquire(self, count: int = 1, cancel_event: Optional[threading.Event] = None) -> None:
        """
        Acquire one or more request slots.

        Args:
            count: Number of requests to acquire
            cancel_event: Optional cancellation hook
        """
        with self.lock:
            _check_cancelled(cancel_event)
            now = time.perf_counter()
            delay_needed = self.next_time - now
            if delay_needed > 0:
                sleep_unless_cancelled(delay_needed, cancel_event)
                now = time.perf_counter()
            self.next_time = now + (self.dt * count)


class TokenBucket(RateLimiter):
    """
    Token bucket rate limiter.

    Maintains a bucket of "tokens" that refill at a specified rate
    (requests per second). Each request consumes one token. When the
    bucket is empty, requests wait until tokens become available.
    """

    def __init__(self, rate: float, capacity: Optional[int] = None):
        """
        Initialize token bucket.

        Args:
            rate: Tokens per second (i.e., requests per second allowed)
            capacity: Maximum bucket size (defaults to 1, i.e. no bursts)
        """
        if rate <= 0:
            raise ValueError("rate must be > 0")

        self.rate = float(rate)
        self.capacity = capacity or 1
        self.tokens = float(self.capacity)
        self.last_refill = time.perf_counter()
        self.lock = threading.Lock()

    def wait(self, cancel_event: Optional[threading.Event] = None) -> None:
        """Block until it's safe to make a request."""
        self.acquire(1, cancel_event=cancel_event)

    def acquire(self, count: int = 1, cancel_event: Optional[threading.Event] = None) -> None:
        """
        Acquire one or more tokens.

        Blocks until the requested number of tokens are available.

        Args:
            count: Number of tokens to acquire
            cancel_event: Optional cancellation hook
        """
        if count <= 0:
            raise ValueError("count must be > 0")
        if count > self.capacity:
            raise ValueError("count must not exceed the bucket capacity")

        while True:
            _check_cancelled(cancel_event)
            with self.lock:
                now = time.perf_counter()
                elapsed = now - self.last_refill
                self.last_refill = now
                self.tokens = min(self.capacity, self.tokens + elapsed * self.rate)

                if self.tokens >= count:
                    self.tokens -= count
                    return
                shortfall = (count - self.tokens) / self.rate

            sleep_unless_cancelled(min(shortfall, 0.05), cancel_event)


class NoOpRateLimiter(RateLimiter):
    """
    Rate limiter that does nothing (for testing/development).

    Still honors an already-set cancel event.
    """

    def wait(self, cancel_event: Optional[threading.Event] = None) -> None:
        _check_cancelled(cancel_event)

    def acquire(self, count: int = 1, cancel_event: Optional[threading.Event] = None) -> None:
        _check_cancelled(cancel_event)
