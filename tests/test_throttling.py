from __future__ import annotations

import inspect
import threading
from unittest.mock import patch

import pytest

from nearby_places.geocoding import NoOpRateLimiter, PreCallDelayGate, RateLimiter, SimpleRateGate, TokenBucket
from nearby_places.geocoding.throttling import DEFAULT_PRE_CALL_DELAY_S, sleep_unless_cancelled
from nearby_places.utils.errors import SearchCancelledError


def test_pre_call_delay_gate_sleeps_full_delay_every_call():
    gate = PreCallDelayGate()

    with patch("nearby_places.geocoding.throttling.time.sleep") as mock_sleep:
        gate.wait()
        gate.wait()

    assert DEFAULT_PRE_CALL_DELAY_S == 1.25
    assert [c.args[0] for c in mock_sleep.call_args_list] == [1.25, 1.25]


def test_pre_call_delay_gate_rejects_negative_delay():
    with pytest.raises(ValueError):
        PreCallDelayGate(-1)


def test_pre_call_delay_gate_wakes_on_cancel():
    event = threading.Event()
    event.set()

    with pytest.raises(SearchCancelledError):
        PreCallDelayGate(30).wait(event)


def test_noop_limiter_only_checks_cancellation():
    limiter = NoOpRateLimiter()
    limiter.wait()
    limiter.acquire(5)

    event = threading.Event()
    event.set()
    with pytest.raises(SearchCancelledError):
        limiter.wait(event)


def test_sleep_unless_cancelled_zero_seconds_returns():
    sleep_unless_cancelled(0, None)
    sleep_unless_cancelled(0, threading.Event())


def test_simple_rate_gate_spaces_requests():
    gate = SimpleRateGate(requests_per_second=1000)

    with patch("nearby_places.geocoding.throttling.time.sleep") as mock_sleep:
        gate.wait()

    mock_sleep.assert_not_called()


@pytest.mark.parametrize("rate", [0, -1])
def test_rate_must_be_positive(rate):
    with pytest.raises(ValueError):
        SimpleRateGate(rate)
    with pytest.raises(ValueError):
        TokenBucket(rate)


def test_token_bucket_first_token_is_free_and_count_bounded_by_capacity():
    bucket = TokenBucket(rate=1.0, capacity=2)

    with patch("nearby_places.geocoding.throttling.time.sleep") as mock_sleep:
        bucket.acquire(2)
    mock_sleep.assert_not_called()

    with pytest.raises(ValueError):
        bucket.acquire(3)


def test_rate_limiter_interface_accepts_cancel_event_on_acquire():
    class CountingLimiter(RateLimiter):
        def __init__(self):
            self.acquired = 0

        def wait(self, cancel_event=None):
            self.acquire(1, cancel_event=cancel_event)

        def acquire(self, count=1, cancel_event=None):
            if cancel_event is not None and cancel_event.is_set():
                raise SearchCancelledError("cancelled")
            self.acquired += count

    assert "cancel_event" in inspect.signature(RateLimiter.acquire).parameters

    limiter = CountingLimiter()
    limiter.acquire(2, cancel_event=threading.Event())
    assert limiter.acquired == 2

    event = threading.Event()
    event.set()
    for impl in (NoOpRateLimiter(), PreCallDelayGate(0), SimpleRateGate(1000), TokenBucket(1000), limiter):
        with pytest.raises(SearchCancelledError):
            impl.acquire(1, cancel_event=event)
