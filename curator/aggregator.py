from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar, Union
import logging
import time

from .museums.base import MuseumAPIClient
from .museums.met import MetClient
from .museums.rijks import RijksClient
from .museums.va import VAClient
from .museums.fitzwilliam import FitzwilliamClient
from .museums.schemas import (
    StandardizedArtwork,
    MuseumSource,
    SearchPage,
    SearchQuery,
    ALL_SOURCES,
    parse_compound_id
)
from .settings import Settings, settings as default_settings
from .errors import AggregationPartialFailure, UpstreamError
from .utils import setup_logging, PROGRAM_LOGGER

T = TypeVar('T')

SourceSelector = Union[MuseumSource, str]


class Aggregator:
    """Single entry point over every configured museum client.

    Multi-source calls run each source on its own worker and wait at most
    `timeout` seconds overall. A source that raises contributes nothing, a
    source that is still running at the deadline is abandoned and contributes
    nothing. Only when every dispatched source raised is an
    AggregationPartialFailure propagated.
    """

    def __init__(self, clients: Dict[MuseumSource, MuseumAPIClient], settings: Optional[Settings] = None,
                 timeout: Optional[float] = None, logger: Optional[logging.Logger] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.clients = {MuseumSource(source): client for source, client in clients.items()}
        self.settings = settings or default_settings
        self.timeout = timeout if timeout is not None else self.settings.aggregator_timeout
        self.logger = logger or logging.getLogger(PROGRAM_LOGGER)
        self.clock = clock

    def _resolve_sources(self, source: SourceSelector) -> List[MuseumSource]:
        if source == ALL_SOURCES:
            # Dispatch order is declaration order of MuseumSource
            return [s for s in MuseumSource if s in self.clients]
        selected = MuseumSource(source)
        if selected not in self.clients:
            raise UpstreamError(f"Source {selected.value!r} is not configured", source=selected.value)
        return [selected]

    def _build_query(self, query: Union[SearchQuery, str, None], limit: Optional[int]) -> SearchQuery:
        if isinstance(query, SearchQuery):
            params = query.model_dump()
        else:
            params = {'q': query}
        if limit is not None:
            params['limit'] = limit
        elif not isinstance(query, SearchQuery):
            params['limit'] = self.settings.default_limit
        params['limit'] = min(params['limit'], self.settings.max_limit)
        return SearchQuery(**params)

    def _fan_out(self, sources: List[MuseumSource], call: Callable[[MuseumAPIClient], T],
                 action: str) -> Tuple[Dict[MuseumSource, T], Dict[str, Exception]]:
        results: Dict[MuseumSource, T] = {}
        errors: Dict[str, Exception] = {}
        if not sources:
            self.logger.warning(f"No museum clients configured, {action} returns nothing")
            return results, errors

        executor = ThreadPoolExecutor(max_workers=len(sources), thread_name_prefix="curator")
        try:
            futures = {source: executor.submit(call, self.clients[source]) for source in sources}
            deadline = self.clock() + self.timeout
            for source, future in futures.items():
                remaining = max(0.0, deadline - self.clock())
                try:
                    results[source] = future.result(timeout=remaining)
                except FuturesTimeoutError:
                    self.logger.warning(f"{source.value} {action} timed out after {self.timeout}s, treating as empty")
                except Exception as e:
                    self.logger.error(f"{source.value} {action} failed: {e}")
                    errors[source.value] = e
        finally:
            # Abandoned work finishes on its own HTTP timeouts
            executor.shutdown(wait=False, cancel_futures=True)

        if errors and len(errors) == len(sources):
            raise AggregationPartialFailure(errors)
        return results, errors

    def search_standardized(self, query: Union[SearchQuery, str, None], source: SourceSelector = ALL_SOURCES,
                            limit: Optional[int] = None) -> SearchPage:
        '''Paged search envelope, combined across sources when source is "all"'''
        search_query = self._build_query(query, limit)
        sources = self._resolve_sources(source)
        self.logger.progress(f"Searching {', '.join(s.value for s in sources)} for {search_query.q!r}")

        pages, _ = self._fan_out(sources, lambda client: client.search_standardized(search_query), "search")

        artworks: List[StandardizedArtwork] = []
        for s in sources:
            if s in pages:
                artworks.extend(pages[s].artworks)

        return SearchPage(
            artworks=artworks,
            total=sum(page.total for page in pages.values()),
            page=search_query.page,
            total_pages=max((page.total_pages for page in pages.values()), default=0)
        )

    def search(self, query: Union[SearchQuery, str, None], source: SourceSelector = ALL_SOURCES,
               limit: Optional[int] = None) -> List[StandardizedArtwork]:
        return self.search_standardized(query, source, limit).artworks

    def fetch_by_id(self, compound_id: str) -> StandardizedArtwork:
        '''Targeted lookup, errors propagate unchanged'''
        source, native_id = parse_compound_id(compound_id)
        client = self.clients.get(source)
        if client is None:
            raise UpstreamError(f"Source {source.value!r} is not configured", source=source.value)
        return client.get_artwork(native_id)

    def get_random_artworks(self, count: int = 10, source: SourceSelector = ALL_SOURCES) -> List[StandardizedArtwork]:
        sources = self._resolve_sources(source)
        results, _ = self._fan_out(sources, lambda client: client.get_random_artworks(count), "random artworks")
        artworks: List[StandardizedArtwork] = []
        for s in sources:
            artworks.extend(results.get(s, []))
        return artworks

    def get_departments(self, source: SourceSelector = ALL_SOURCES) -> Dict[str, List[Any]]:
        sources = self._resolve_sources(source)
        departments: Dict[str, List[Any]] = {}
        for s in sources:
            try:
                departments[s.value] = self.clients[s].get_departments()
            except UpstreamError as e:
                self.logger.error(f"{s.value} departments failed: {e}")
                departments[s.value] = []
        return departments


def build_aggregator(settings: Optional[Settings] = None, session=None) -> Aggregator:
    """Construct every museum client once and wrap them in an Aggregator."""
    settings = settings or default_settings
    logger = setup_logging(settings.logs_dir, settings.log_level)

    clients: Dict[MuseumSource, MuseumAPIClient] = {
        MuseumSource.MET: MetClient(settings.get_museum_info('met'), settings=settings, session=session),
        MuseumSource.RIJKS: RijksClient(settings.get_museum_info('rijks'), settings=settings, session=session),
        MuseumSource.VA: VAClient(settings.get_museum_info('va'), settings=settings, session=session),
        MuseumSource.FITZWILLIAM: FitzwilliamClient(
            settings.get_museum_info('fitzwilliam'), settings=settings, session=session
        ),
    }
    return Aggregator(clients, settings=settings, logger=logger)
