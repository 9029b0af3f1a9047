import pytest

from oai_async.breaker import CircuitBreaker, backoff_delay
from oai_async.errors import CircuitBreakerOpenError


def test_breaker_disabled_by_zero_threshold():
    b = CircuitBreaker(0, 30, clock=lambda: 0.0)
    for _ in range(5):
        b.record_failure()
    b.check()
    assert b.retry_after() is None


def test_breaker_opens_after_threshold_and_half_opens_after_reset():
    now = {"t": 10.0}
    b = CircuitBreaker(3, 20, clock=lambda: now["t"])

    b.record_failure()
    b.record_failure()
    b.check()

    b.record_failure()
    with pytest.raises(CircuitBreakerOpenError) as exc:
        b.check()
    assert exc.value.retry_after_seconds == 21

    now["t"] += 20.5
    b.check()

    b.record_failure()
    with pytest.raises(CircuitBreakerOpenError):
        b.check()


def test_breaker_success_resets_failure_count():
    b = CircuitBreaker(2, 20, clock=lambda: 0.0)
    b.record_failure()
    b.record_success()
    b.record_failure()
    b.check()
    assert b.failures == 1


def test_backoff_delay_grows_and_is_capped():
    assert 0.5 <= backoff_delay(0, initial=0.5, maximum=8.0) <= 0.55
    assert 2.0 <= backoff_delay(2, initial=0.5, maximum=8.0) <= 2.2
    assert 8.0 <= backoff_delay(10, initial=0.5, maximum=8.0) <= 8.25
    assert backoff_delay(3, initial=0.0, maximum=8.0) == 0.0
