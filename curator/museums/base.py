from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, List, Type
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .schemas import StandardizedArtwork, MuseumSource, RawSearchResult, SearchPage, SearchQuery
from ..settings.types import MuseumInfo
from ..settings import Settings, settings as default_settings
from ..utils import setup_logging
from ..errors import (
    UpstreamError,
    UpstreamNotFound,
    UpstreamAuthFailed,
    UpstreamUnavailable
)

class MuseumAPIClient(ABC):
    '''Abstract base class for museum API clients'''

    source: MuseumSource

    def __init__(self, museum_info: MuseumInfo, settings: Optional[Settings] = None,
                 session: Optional[requests.Session] = None, api_key: Optional[str] = None):
        self.museum_info = museum_info
        self.settings = settings or default_settings
        self.api_key = api_key
        self.logger = setup_logging(self.settings.logs_dir, self.settings.log_level, museum_info.code)
        self.session = session if session is not None else self._create_session()

    def _create_session(self) -> requests.Session:
        '''Create a configured requests session with retry logic'''
        session = requests.Session()

        headers = {'Accept': 'application/json'}
        if self.museum_info.user_agent:
            headers['User-Agent'] = self.museum_info.user_agent
        if self.museum_info.contact_email:
            headers['From'] = self.museum_info.contact_email

        auth_header = self._get_auth_header()
        if auth_header:
            headers['Authorization'] = auth_header

        session.headers.update(headers)

        adapter = HTTPAdapter(max_retries=self._get_retry_strategy())
        session.mount("https://", adapter)
        session.mount("http://", adapter)

        self.logger.debug(f"Created session for {self.museum_info.name}")
        return session

    def _get_retry_strategy(self) -> Retry:
        '''Transport level retries, GET only. Errors still surface as status codes.'''
        return Retry(
            total=3,
            backoff_factor=0.5,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=frozenset(['GET']),
            raise_on_status=False
        )

    def _get_auth_header(self) -> Optional[str]:
        '''Return authentication header value, None for anonymous APIs'''
        return None

    def _map_status(self, status_code: int) -> Optional[Type[UpstreamError]]:
        '''Translate an HTTP status into the error raised for it'''
        if 200 <= status_code < 300:
            return None
        if status_code == 404:
            return UpstreamNotFound
        if status_code in (401, 403):
            return UpstreamAuthFailed
        if status_code == 429 or status_code >= 500:
            return UpstreamUnavailable
        return UpstreamError

    def _check_response(self, response: requests.Response, url: str) -> None:
        error_cls = self._map_status(response.status_code)
        if error_cls is not None:
            raise error_cls(
                f"{self.museum_info.name} returned HTTP {response.status_code} for {url}",
                source=self.source.value,
                status_code=response.status_code
            )

    def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None,
                  timeout: Optional[float] = None, headers: Optional[Dict[str, str]] = None) -> Any:
        '''GET a JSON document, mapping transport and status failures onto the error taxonomy'''
        self.logger.debug(f"GET {url} params={params}")
        try:
            response = self.session.get(url, params=params, timeout=timeout, headers=headers)
        except requests.exceptions.RequestException as e:
            raise UpstreamUnavailable(
                f"{self.museum_info.name} request to {url} failed: {e}",
                source=self.source.value
            ) from e

        self._check_response(response, url)

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(
                f"{self.museum_info.name} returned invalid JSON for {url}",
                source=self.source.value,
                status_code=response.status_code
            ) from e

    @abstractmethod
    def search(self, query: SearchQuery) -> RawSearchResult:
        '''Run one upstream search and return native references'''
        pass

    @abstractmethod
    def fetch_by_id(self, native_id: str) -> Dict[str, Any]:
        '''Fetch the raw upstream record for a native ID'''
        pass

    @abstractmethod
    def standardize(self, record: Dict[str, Any], native_id: Optional[str] = None) -> StandardizedArtwork:
        pass

    @abstractmethod
    def search_standardized(self, query: SearchQuery) -> SearchPage:
        '''Search and hydrate into standardized artworks'''
        pass

    @abstractmethod
    def get_random_artworks(self, count: int = 10) -> List[StandardizedArtwork]:
        pass

    def get_artwork(self, native_id: str) -> StandardizedArtwork:
        '''
        Fetch and standardize a single artwork.
        Errors propagate, a targeted lookup has no fallback.
        '''
        try:
            artwork = self.standardize(self.fetch_by_id(native_id), native_id)
        except UpstreamError as e:
            self.logger.error(f"Error fetching artwork {native_id}: {e}")
            raise
        self.logger.artwork(f"Fetched {artwork.id} '{artwork.title}' by '{artwork.artist}'")
        return artwork

    def get_departments(self) -> List[Any]:
        '''Departments offered by the upstream, empty where it has no such concept'''
        return []

    @staticmethod
    def _total_pages(total: int, limit: int) -> int:
        if total <= 0 or limit <= 0:
            return 0
        return (total + limit - 1) // limit
