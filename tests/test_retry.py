import pytest

from telemetry.retry import compute_backoff, retry_with_backoff


class Flaky:
    def __init__(self, failures, error=ConnectionError("reset")):
        self.failures = failures
        self.error = error
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return "done"


def test_retries_until_success():
    sleeps = []
    fn = Flaky(failures=2)

    assert retry_with_backoff(fn, retries=3, base_delay=2, jitter=0, sleep=sleeps.append) == "done"
    assert fn.calls == 3
    assert sleeps == [2, 4]


def test_gives_up_after_budget_without_final_sleep():
    sleeps, hooks = [], []
    fn = Flaky(failures=10)

    with pytest.raises(ConnectionError):
        retry_with_backoff(
            fn,
            retries=3,
            base_delay=2,
            jitter=0,
            sleep=sleeps.append,
            on_retry=lambda attempt, exc, delay: hooks.append((attempt, delay)),
        )
    assert fn.calls == 3
    assert sleeps == [2, 4]
    assert hooks == [(1, 2), (2, 4)]


def test_non_retryable_error_propagates_immediately():
    sleeps = []
    fn = Flaky(failures=1, error=KeyError("nope"))

    with pytest.raises(KeyError):
        retry_with_backoff(fn, retry_exceptions=(ConnectionError,), sleep=sleeps.append)
    assert fn.calls == 1
    assert sleeps == []


def test_compute_backoff_is_exponential():
    assert [compute_backoff(n, 2.0, 2.0) for n in range(3)] == [2.0, 4.0, 8.0]
    assert 0.5 <= compute_backoff(0, 0.5, 2.0, jitter=0.1) <= 0.6
