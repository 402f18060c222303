"""Tests for batch hydration, early exit and ID selection."""

import threading

import pytest

from curator.errors import UpstreamUnavailable
from curator.fetching import BatchPolicy, BatchOrchestrator, CircuitBreaker, fetch_concurrently, select_ids


class CountingFetch:
    """Thread-safe fetch stub that records every ID it was asked for."""

    def __init__(self, fail=lambda native_id: False, on_failure=None):
        self.fail = fail
        self.on_failure = on_failure
        self.calls = []
        self._lock = threading.Lock()

    def __call__(self, native_id):
        with self._lock:
            self.calls.append(native_id)
        if self.fail(native_id):
            if self.on_failure:
                self.on_failure()
            raise UpstreamUnavailable(f"fetch {native_id} failed", status_code=503)
        return f"artwork-{native_id}"


@pytest.fixture
def policy():
    return BatchPolicy(batch_delay=1.0, stagger=0.0)


class TestSelectIds:

    def test_short_list_returned_whole(self):
        assert select_ids(["1", "2", "3"], 5) == ["1", "2", "3"]

    def test_head_then_middle_band(self):
        ids = [str(i) for i in range(100)]
        selected = select_ids(ids, 20)
        assert len(selected) == 20
        assert selected[:12] == ids[:12]
        assert selected[12:] == [str(i) for i in range(20, 60, 5)]

    def test_overlap_topped_up_without_duplicates(self):
        ids = [str(i) for i in range(12)]
        selected = select_ids(ids, 10)
        assert len(selected) == 10
        assert len(set(selected)) == 10

    def test_zero_limit(self):
        assert select_ids(["1", "2"], 0) == []


class TestBatchOrchestrator:

    def test_early_exit_once_enough_collected(self, policy):
        fetch = CountingFetch()
        orchestrator = BatchOrchestrator(policy, sleep=lambda s: None)

        results = orchestrator.run([str(i) for i in range(100)], fetch, requested=20)

        assert len(results) == 10
        assert len(fetch.calls) == 10
        assert set(fetch.calls) == {str(i) for i in range(10)}

    def test_every_fetch_failing_returns_empty(self, policy):
        fetch = CountingFetch(fail=lambda native_id: True)
        orchestrator = BatchOrchestrator(policy, sleep=lambda s: None)

        results = orchestrator.run([str(i) for i in range(12)], fetch, requested=12)

        assert results == []
        assert len(fetch.calls) == 12

    def test_partial_failure_skips_items(self, policy):
        fetch = CountingFetch(fail=lambda native_id: native_id in ("2", "4"))
        orchestrator = BatchOrchestrator(policy, sleep=lambda s: None)

        results = orchestrator.run(["1", "2", "3", "4", "5"], fetch, requested=5)

        assert sorted(results) == ["artwork-1", "artwork-3", "artwork-5"]

    def test_low_success_rate_stops(self, policy):
        fetch = CountingFetch(fail=lambda native_id: int(native_id) % 3 != 0)
        orchestrator = BatchOrchestrator(policy, sleep=lambda s: None)

        results = orchestrator.run([str(i) for i in range(40)], fetch, requested=100)

        assert len(fetch.calls) == 20
        assert len(results) == 7

    def test_breaker_near_open_stops(self, policy, clock):
        breaker = CircuitBreaker(max_consecutive_failures=5, cooldown_period=60, clock=clock)
        fetch = CountingFetch(fail=lambda native_id: True, on_failure=breaker.record_failure)
        orchestrator = BatchOrchestrator(policy, breaker=breaker, sleep=lambda s: None)

        results = orchestrator.run([str(i) for i in range(20)], fetch, requested=20)

        assert results == []
        assert len(fetch.calls) == 5

    def test_no_delay_before_first_batch(self, policy):
        sleeps = []
        orchestrator = BatchOrchestrator(policy, sleep=sleeps.append)

        orchestrator.run([str(i) for i in range(10)], CountingFetch(), requested=1000)

        assert sleeps == [1.0]

    def test_delay_scales_with_breaker_failures(self, policy, clock):
        breaker = CircuitBreaker(max_consecutive_failures=5, clock=clock)
        breaker.record_failure()
        breaker.record_failure()
        sleeps = []
        orchestrator = BatchOrchestrator(policy, breaker=breaker, sleep=sleeps.append)

        orchestrator.run([str(i) for i in range(10)], CountingFetch(), requested=1000)

        assert sleeps == [2.0]

    def test_delay_multiplier_is_capped(self):
        breaker = CircuitBreaker(max_consecutive_failures=50)
        for _ in range(10):
            breaker.record_failure()
        orchestrator = BatchOrchestrator(BatchPolicy(batch_delay=1.0), breaker=breaker)
        assert orchestrator._batch_delay() == 2.5

    def test_starts_are_staggered(self):
        sleeps = []
        orchestrator = BatchOrchestrator(BatchPolicy(stagger=0.2), sleep=sleeps.append)

        orchestrator.run([str(i) for i in range(5)], CountingFetch(), requested=5)

        assert sorted(sleeps) == pytest.approx([0.2, 0.4, 0.6, 0.8])

    def test_policy_from_settings(self, test_settings):
        policy = BatchPolicy.from_settings(test_settings)
        assert policy.batch_size == 5
        assert policy.min_results == 10
        assert policy.target(20) == 10
        assert policy.target(100) == 25
        assert policy.failure_backoff_steps == 3
        assert policy.failure_backoff_factor == 0.5

    def test_backoff_tunables_from_settings(self, test_settings):
        tuned = test_settings.model_copy(update={
            'batch_delay': 2.0,
            'batch_failure_backoff_steps': 1,
            'batch_failure_backoff_factor': 1.0,
        })
        breaker = CircuitBreaker(max_consecutive_failures=50)
        for _ in range(4):
            breaker.record_failure()
        orchestrator = BatchOrchestrator(BatchPolicy.from_settings(tuned), breaker=breaker)
        assert orchestrator._batch_delay() == 4.0


class TestFetchConcurrently:

    def test_keeps_order_and_drops_failures(self):
        def fetch(item):
            if item == "b":
                raise UpstreamUnavailable("down")
            if item == "c":
                return None
            return item.upper()

        assert fetch_concurrently(["a", "b", "c", "d"], fetch, max_workers=4) == ["A", "D"]

    def test_empty(self):
        assert fetch_concurrently([], lambda item: item) == []
