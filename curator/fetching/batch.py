from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar
import logging
import math
import time

from .circuit_breaker import CircuitBreaker
from ..utils import PROGRAM_LOGGER

T = TypeVar('T')
R = TypeVar('R')


@dataclass
class BatchPolicy:
    """Tunables for batch hydration. Defaults are empirically chosen."""
    batch_size: int = 5
    batch_delay: float = 1.0
    stagger: float = 0.2
    min_results: int = 10
    result_fraction: float = 0.25
    min_success_rate: float = 0.5
    min_successes: int = 5
    min_attempted: int = 20
    failure_backoff_steps: int = 3
    failure_backoff_factor: float = 0.5

    @classmethod
    def from_settings(cls, settings) -> 'BatchPolicy':
        return cls(
            batch_size=settings.batch_size,
            batch_delay=settings.batch_delay,
            stagger=settings.batch_stagger,
            min_results=settings.early_exit_min_results,
            result_fraction=settings.early_exit_result_fraction,
            min_success_rate=settings.early_exit_min_success_rate,
            min_successes=settings.early_exit_min_successes,
            min_attempted=settings.early_exit_min_attempted,
            failure_backoff_steps=settings.batch_failure_backoff_steps,
            failure_backoff_factor=settings.batch_failure_backoff_factor
        )

    def target(self, requested: int) -> float:
        return max(self.min_results, requested * self.result_fraction)


def select_ids(ids: Sequence[T], limit: int, head_fraction: float = 0.6,
               band_start: float = 0.2, band_end: float = 0.6) -> List[T]:
    """Pick which search hits to hydrate.

    The first head_fraction of the limit comes straight from the top of the
    result list. The rest is sampled at an even stride across the
    [band_start, band_end) percentile band, topped up sequentially if the band
    is too thin.
    """
    ids = list(ids)
    if limit <= 0:
        return []
    if len(ids) <= limit:
        return ids

    head_count = min(limit, math.ceil(limit * head_fraction))
    selected = ids[:head_count]
    chosen = set(selected)
    remaining = limit - len(selected)

    if remaining > 0:
        total = len(ids)
        middle = ids[math.floor(total * band_start):math.floor(total * band_end)]
        step = max(1, len(middle) // remaining)
        for candidate in middle[::step]:
            if len(selected) >= limit:
                break
            if candidate not in chosen:
                selected.append(candidate)
                chosen.add(candidate)

    for candidate in ids:
        if len(selected) >= limit:
            break
        if candidate not in chosen:
            selected.append(candidate)
            chosen.add(candidate)

    return selected


def fetch_concurrently(items: Sequence[T], fn: Callable[[T], Optional[R]], max_workers: int = 10,
                       logger: Optional[logging.Logger] = None) -> List[R]:
    """Run fn over every item in parallel.

    A failing item yields nothing, it never cancels its siblings. Results keep
    the input order with failures and None results dropped.
    """
    logger = logger or logging.getLogger(PROGRAM_LOGGER)
    items = list(items)
    if not items:
        return []

    results: List[Optional[R]] = [None] * len(items)
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(items)))) as executor:
        futures = {executor.submit(fn, item): index for index, item in enumerate(items)}
        for future in as_completed(futures):
            index = futures[future]
            try:
                results[index] = future.result()
            except Exception as e:
                logger.warning(f"Skipping {items[index]}: {e}")
    return [result for result in results if result is not None]


class BatchOrchestrator:
    """Hydrates an ordered list of native IDs in small concurrent batches.

    Item failures are logged and skipped. The run stops early once enough
    results are in, once the success rate says more batches are not worth
    it, or once the circuit breaker is a single failure away from opening.
    """

    def __init__(self, policy: Optional[BatchPolicy] = None, breaker: Optional[CircuitBreaker] = None,
                 sleep: Callable[[float], None] = time.sleep, logger: Optional[logging.Logger] = None):
        self.policy = policy or BatchPolicy()
        self.breaker = breaker
        self.sleep = sleep
        self.logger = logger or logging.getLogger(PROGRAM_LOGGER)

    def run(self, ids: Sequence[str], fetch_one: Callable[[str], Optional[R]], requested: int) -> List[R]:
        ids = list(ids)
        size = max(1, self.policy.batch_size)
        batches = [ids[i:i + size] for i in range(0, len(ids), size)]

        collected: List[R] = []
        attempted = 0
        stop_reason = "Processed all selected IDs"

        for index, batch in enumerate(batches):
            if index > 0:
                self.sleep(self._batch_delay())

            results = self._run_batch(batch, fetch_one)
            attempted += len(batch)
            collected.extend(results)

            self.logger.progress(
                f"Batch {index + 1}/{len(batches)}: {len(results)}/{len(batch)} succeeded, "
                f"{len(collected)} collected so far"
            )

            reason = self._early_exit_reason(len(collected), attempted, requested)
            if reason:
                if index < len(batches) - 1:
                    stop_reason = reason
                    self.logger.progress(f"Stopping early: {reason}")
                break

        summary = self._generate_summary_report(attempted, len(collected), len(ids), stop_reason)
        self._log_summary(summary)
        return collected

    def _batch_delay(self) -> float:
        failures = self.breaker.consecutive_failures if self.breaker else 0
        steps = min(failures, self.policy.failure_backoff_steps)
        return self.policy.batch_delay * (1 + steps * self.policy.failure_backoff_factor)

    def _run_batch(self, batch: List[str], fetch_one: Callable[[str], Optional[R]]) -> List[R]:
        results: List[R] = []
        with ThreadPoolExecutor(max_workers=len(batch)) as executor:
            futures = [
                executor.submit(self._staggered_fetch, position, native_id, fetch_one)
                for position, native_id in enumerate(batch)
            ]
            for future in as_completed(futures):
                result = future.result()
                if result is not None:
                    results.append(result)
        return results

    def _staggered_fetch(self, position: int, native_id: str, fetch_one: Callable[[str], Optional[R]]) -> Optional[R]:
        if position and self.policy.stagger:
            self.sleep(position * self.policy.stagger)
        try:
            return fetch_one(native_id)
        except Exception as e:
            self.logger.warning(f"Failed to fetch artwork {native_id}, skipping: {e}")
            return None

    def _early_exit_reason(self, collected: int, attempted: int, requested: int) -> Optional[str]:
        if collected >= self.policy.target(requested):
            return f"collected {collected} artworks, enough for a request of {requested}"

        success_rate = collected / attempted if attempted else 0.0
        if (success_rate < self.policy.min_success_rate
                and collected >= self.policy.min_successes
                and attempted >= self.policy.min_attempted):
            return f"success rate {success_rate:.0%} after {attempted} attempts"

        if self.breaker is not None and self.breaker.near_open():
            return f"{self.breaker.consecutive_failures} consecutive upstream failures"

        return None

    def _generate_summary_report(self, attempted: int, collected: int, selected: int,
                                 stop_reason: str) -> Dict[str, Any]:
        success_rate = (collected / attempted) * 100 if attempted else 0
        return {
            'selected': selected,
            'attempted': attempted,
            'collected': collected,
            'success_rate': f"{success_rate:.2f}%",
            'stop_reason': stop_reason
        }

    def _log_summary(self, summary: Dict[str, Any]) -> None:
        self.logger.info(
            f"Batch summary: {summary['collected']} collected from {summary['attempted']} attempted "
            f"({summary['selected']} selected), success rate {summary['success_rate']}, "
            f"{summary['stop_reason']}"
        )
