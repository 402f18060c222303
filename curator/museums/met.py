from typing import Dict, List, Any, Optional, Callable, Type
import random
import time

import requests
from urllib3.util.retry import Retry

from .base import MuseumAPIClient
from .schemas import (
    StandardizedArtwork,
    MuseumSource,
    RawSearchResult,
    SearchPage,
    SearchQuery,
    MetArtworkFactory
)
from ..settings import Settings
from ..settings.types import MuseumInfo
from ..fetching import CircuitBreaker, RetryPolicy, BatchPolicy, BatchOrchestrator, select_ids
from ..errors import UpstreamError, UpstreamUnavailable, UpstreamFetchFailed


class MetClient(MuseumAPIClient):
    '''Metropolitan Museum of Art Client Implementation

    Clean REST upstream without a documented SLA. Searches and single fetches
    go through a per-instance circuit breaker, fetches also through the retry
    policy, bulk hydration through the batch orchestrator.
    '''

    source = MuseumSource.MET

    def __init__(self, museum_info: MuseumInfo, settings: Optional[Settings] = None,
                 session: Optional[requests.Session] = None, breaker: Optional[CircuitBreaker] = None,
                 sleep: Callable[[float], None] = time.sleep, clock: Callable[[], float] = time.monotonic):
        super().__init__(museum_info=museum_info, settings=settings, session=session)
        s = self.settings
        self.sleep = sleep
        self.breaker = breaker or CircuitBreaker(
            max_consecutive_failures=s.met_max_consecutive_failures,
            cooldown_period=s.met_cooldown_period,
            clock=clock,
            logger=self.logger
        )
        self.retry_policy = RetryPolicy(
            max_attempts=s.met_fetch_attempts,
            rate_limit_delay_cap=s.met_rate_limit_delay_cap,
            server_error_delay_cap=s.met_server_error_delay_cap
        )
        self.batch_policy = BatchPolicy.from_settings(s)
        self.artwork_factory = MetArtworkFactory()

    def _get_retry_strategy(self) -> Retry:
        '''Retries are owned by the retry policy and circuit breaker'''
        return Retry(total=0, raise_on_status=False)

    def _map_status(self, status_code: int) -> Optional[Type[UpstreamError]]:
        # Anonymous API, a 403 here means we are being throttled
        if status_code == 403:
            return UpstreamUnavailable
        return super()._map_status(status_code)

    def _check_breaker(self) -> None:
        if not self.breaker.allow():
            raise UpstreamUnavailable(
                f"Met API in cooldown after {self.breaker.consecutive_failures} consecutive failures, "
                f"retry in {self.breaker.remaining_cooldown():.0f}s",
                source=self.source.value
            )

    def _build_search_params(self, query: SearchQuery) -> Dict[str, Any]:
        params: Dict[str, Any] = {'q': query.q or query.creator or '*'}
        if query.has_images:
            params['hasImages'] = 'true'
        if query.is_highlight is not None:
            params['isHighlight'] = str(query.is_highlight).lower()
        if query.creator and not query.q:
            params['artistOrCulture'] = 'true'
        if query.department and query.department.isdigit():
            params['departmentId'] = int(query.department)
        if query.date_begin is not None or query.date_end is not None:
            # The Met only honours the date filter when both ends are present
            params['dateBegin'] = query.date_begin if query.date_begin is not None else query.date_end
            params['dateEnd'] = query.date_end if query.date_end is not None else query.date_begin
        if query.object_type:
            params['medium'] = query.object_type
        return params

    def search(self, query: SearchQuery) -> RawSearchResult:
        url = f"{self.museum_info.base_url}/search"
        params = self._build_search_params(query)
        self._check_breaker()
        try:
            data = self._get_json(url, params=params, timeout=self.settings.met_search_timeout) or {}
        except UpstreamError:
            self.breaker.record_failure()
            raise
        self.breaker.record_success()

        object_ids = [str(object_id) for object_id in (data.get('objectIDs') or [])]
        total = data.get('total') or len(object_ids)
        self.logger.debug(f"Search {params} matched {total} objects")
        return RawSearchResult(ids=object_ids, total=total, page=1, total_pages=1)

    def fetch_by_id(self, native_id: str, max_attempts: Optional[int] = None) -> Dict[str, Any]:
        '''Fetch one object, gated by the circuit breaker and retried per the retry policy'''
        url = f"{self.museum_info.base_url}/objects/{native_id}"
        attempts = max_attempts or self.retry_policy.max_attempts
        last_error: Optional[UpstreamError] = None

        for attempt in range(1, attempts + 1):
            self._check_breaker()

            try:
                data = self._get_json(url, timeout=self.settings.met_fetch_timeout)
            except UpstreamError as e:
                self.breaker.record_failure()
                if not self.retry_policy.is_retryable(e):
                    raise
                last_error = e
                delay = self.retry_policy.delay_for(attempt, e) if attempt < attempts else None
                if delay is None:
                    break
                self.logger.info(f"Retrying artwork {native_id} in {delay}s (attempt {attempt}/{attempts}): {e}")
                self.sleep(delay)
                continue

            self.breaker.record_success()
            return data

        raise UpstreamFetchFailed(
            native_id,
            attempts,
            source=self.source.value,
            status_code=last_error.status_code if last_error else None
        ) from last_error

    def standardize(self, record: Dict[str, Any], native_id: Optional[str] = None) -> StandardizedArtwork:
        return self.artwork_factory.create_artwork(record, native_id)

    def _fetch_standardized(self, native_id: str) -> StandardizedArtwork:
        record = self.fetch_by_id(native_id, max_attempts=self.settings.met_batch_fetch_attempts)
        artwork = self.standardize(record, native_id)
        self.logger.artwork(f"Fetched {artwork.id} '{artwork.title}'")
        return artwork

    def _orchestrator(self) -> BatchOrchestrator:
        return BatchOrchestrator(self.batch_policy, breaker=self.breaker, sleep=self.sleep, logger=self.logger)

    def search_standardized(self, query: SearchQuery) -> SearchPage:
        result = self.search(query)
        if not result.ids:
            self.logger.progress(f"No Met results for {query.q!r}")
            return SearchPage(artworks=[], total=0, page=query.page, total_pages=0)

        s = self.settings
        selected = select_ids(
            result.ids,
            query.limit,
            head_fraction=s.selection_head_fraction,
            band_start=s.selection_band_start,
            band_end=s.selection_band_end
        )
        self.logger.progress(f"Hydrating {len(selected)} of {len(result.ids)} Met results for {query.q!r}")
        artworks = self._orchestrator().run(selected, self._fetch_standardized, query.limit)

        return SearchPage(
            artworks=artworks,
            total=result.total,
            page=query.page,
            total_pages=self._total_pages(result.total, query.limit)
        )

    def get_departments(self) -> List[Dict[str, Any]]:
        url = f"{self.museum_info.base_url}/departments"
        data = self._get_json(url, timeout=self.settings.met_search_timeout) or {}
        return data.get('departments') or []

    def get_random_artworks(self, count: int = 10) -> List[StandardizedArtwork]:
        '''Random highlights with images, falling back to a plain painting search'''
        result = self.search(SearchQuery(q='*', is_highlight=True, has_images=True))
        if not result.ids:
            result = self.search(SearchQuery(q='painting', has_images=True))

        candidates = list(result.ids)
        random.shuffle(candidates)
        # Oversample, records without an image are dropped
        candidates = candidates[:count * 2]

        artworks = self._orchestrator().run(candidates, self._fetch_standardized, count * 2)
        with_images = [artwork for artwork in artworks if artwork.image_url]
        return with_images[:count]
