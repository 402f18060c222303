from .circuit_breaker import FailureState, CircuitBreaker, RetryPolicy
from .batch import BatchPolicy, BatchOrchestrator, fetch_concurrently, select_ids

__all__ = [
    'FailureState',
    'CircuitBreaker',
    'RetryPolicy',
    'BatchPolicy',
    'BatchOrchestrator',
    'fetch_concurrently',
    'select_ids'
]
