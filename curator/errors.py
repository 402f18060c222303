from typing import Dict, Optional


class CuratorError(Exception):
    '''Base class for errors raised by the aggregation layer'''


class UpstreamError(CuratorError):
    '''A museum API answered with something we cannot use'''

    def __init__(self, message: str, source: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.source = source
        self.status_code = status_code


class UpstreamNotFound(UpstreamError):
    '''The upstream has no record with the requested ID (404)'''


class UpstreamAuthFailed(UpstreamError):
    '''Credentials are missing or were rejected (401/403)'''


class UpstreamUnavailable(UpstreamError):
    '''Rate limited, server error, transport failure or open circuit. Retryable.'''


class UpstreamFetchFailed(UpstreamError):
    '''Retries for a single item were exhausted'''

    def __init__(self, native_id: str, attempts: int, source: Optional[str] = None,
                 status_code: Optional[int] = None):
        super().__init__(
            f"Failed to fetch artwork {native_id} after {attempts} attempts",
            source=source,
            status_code=status_code
        )
        self.native_id = native_id
        self.attempts = attempts


class ResolutionFailed(CuratorError):
    '''A linked-data reference could not be dereferenced'''

    def __init__(self, reference: str, reason: str = ""):
        message = f"Could not resolve {reference}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.reference = reference


class AggregationPartialFailure(CuratorError):
    '''Every dispatched source failed, so there is nothing to return'''

    def __init__(self, errors: Dict[str, Exception]):
        summary = ", ".join(f"{source}: {error}" for source, error in errors.items())
        super().__init__(f"All sources failed ({summary})")
        self.errors = errors


class InvalidCompoundId(CuratorError, ValueError):
    '''A compound ID is not of the form "<source>:<nativeId>" or names an unknown source'''
