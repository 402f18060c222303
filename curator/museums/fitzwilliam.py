from typing import Dict, List, Any, Optional
import threading

import requests

from .base import MuseumAPIClient
from .schemas import (
    StandardizedArtwork,
    MuseumSource,
    RawSearchResult,
    SearchPage,
    SearchQuery,
    FitzwilliamArtworkFactory
)
from ..settings import Settings
from ..settings.types import MuseumInfo
from ..errors import UpstreamAuthFailed, UpstreamUnavailable
from ..utils import as_dict, as_list

DEPARTMENTS = [
    'Paintings, Drawings and Prints',
    'Applied Arts',
    'Antiquities',
    'Coins and Medals',
    'Manuscripts and Printed Books'
]


class FitzwilliamClient(MuseumAPIClient):
    '''Fitzwilliam Museum client implementation

    Every request carries a bearer token. A configured API key is used as is,
    otherwise the client logs in once with username and password. The token
    is kept for the lifetime of the client, expiry is not handled.
    '''

    source = MuseumSource.FITZWILLIAM

    def __init__(self, museum_info: MuseumInfo, settings: Optional[Settings] = None,
                 session: Optional[requests.Session] = None, api_key: Optional[str] = None,
                 username: Optional[str] = None, password: Optional[str] = None):
        super().__init__(museum_info=museum_info, settings=settings, session=session)
        self.api_key = api_key if api_key is not None else self.settings.fitzwilliam_api_key
        self.username = username if username is not None else self.settings.fitzwilliam_username
        self.password = password if password is not None else self.settings.fitzwilliam_password
        self.artwork_factory = FitzwilliamArtworkFactory()
        self._token: Optional[str] = None
        self._token_lock = threading.Lock()

    @staticmethod
    def _as_bearer(token: str) -> str:
        return token if token.startswith('Bearer ') else f"Bearer {token}"

    def _login(self) -> str:
        '''POST /login and dig the token out of wherever the response put it'''
        login_url = f"{self.museum_info.base_url.replace('/v1', '')}/login"
        self.logger.debug(f"Logging in to {login_url} as {self.username}")
        try:
            response = self.session.post(
                login_url,
                json={'email': self.username, 'password': self.password},
                timeout=self.settings.fitzwilliam_timeout
            )
        except requests.exceptions.RequestException as e:
            raise UpstreamUnavailable(f"Fitzwilliam login failed: {e}", source=self.source.value) from e

        self._check_response(response, login_url)

        try:
            data = as_dict(response.json())
        except ValueError:
            data = {}
        token = (data.get('token')
                 or data.get('access_token')
                 or response.headers.get('authorization')
                 or response.headers.get('x-auth-token'))
        if not token:
            raise UpstreamAuthFailed("Fitzwilliam login response carried no token", source=self.source.value)
        return token

    def authenticate(self) -> str:
        '''Return the cached Authorization header value, obtaining a token on first use'''
        with self._token_lock:
            if self._token is None:
                if self.api_key:
                    token = self.api_key
                elif self.username and self.password:
                    token = self._login()
                    self.logger.progress("Authenticated with the Fitzwilliam API")
                else:
                    raise UpstreamAuthFailed(
                        "Fitzwilliam API needs FITZWILLIAM_API_KEY or FITZWILLIAM_USERNAME/FITZWILLIAM_PASSWORD",
                        source=self.source.value
                    )
                self._token = self._as_bearer(token)
            return self._token

    def _get_authorized(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return as_dict(self._get_json(
            f"{self.museum_info.base_url}{path}",
            params=params,
            timeout=self.settings.fitzwilliam_timeout,
            headers={'Authorization': self.authenticate()}
        ))

    def _build_search_params(self, query: SearchQuery) -> Dict[str, Any]:
        params: Dict[str, Any] = {'page': query.page, 'size': query.limit}
        if query.q:
            params['query'] = query.q
        if query.has_images or not query.q:
            params['images'] = 1
        if query.department:
            params['department'] = query.department
        if query.creator:
            params['maker'] = query.creator
        if query.date_begin is not None:
            params['dateFrom'] = query.date_begin
        if query.date_end is not None:
            params['dateTo'] = query.date_end
        return params

    def search(self, query: SearchQuery) -> RawSearchResult:
        data = self._get_authorized('/objects', self._build_search_params(query))
        records = [as_dict(record) for record in as_list(data.get('data'))]
        meta = as_dict(data.get('meta'))
        total = meta.get('total') or len(records)
        return RawSearchResult(
            ids=[str(r.get('uuid') or as_dict(r.get('admin')).get('uuid')) for r in records
                 if r.get('uuid') or as_dict(r.get('admin')).get('uuid')],
            total=total,
            page=meta.get('current_page') or query.page,
            total_pages=meta.get('last_page') or self._total_pages(total, query.limit),
            records=records
        )

    def fetch_by_id(self, native_id: str) -> Dict[str, Any]:
        data = self._get_authorized(f"/objects/{native_id}")
        return as_dict(data.get('data')) or data

    def standardize(self, record: Dict[str, Any], native_id: Optional[str] = None) -> StandardizedArtwork:
        return self.artwork_factory.create_artwork(record, native_id)

    def _standardize_records(self, records: List[Dict[str, Any]]) -> List[StandardizedArtwork]:
        artworks = []
        for record in records:
            try:
                artworks.append(self.standardize(record))
            except ValueError as e:
                self.logger.warning(f"Skipping Fitzwilliam record without uuid: {e}")
        return artworks

    def search_standardized(self, query: SearchQuery) -> SearchPage:
        result = self.search(query)
        artworks = self._standardize_records(result.records)
        self.logger.progress(f"Fitzwilliam returned {len(artworks)} of {result.total} records for {query.q!r}")
        return SearchPage(
            artworks=artworks,
            total=result.total,
            page=result.page,
            total_pages=result.total_pages
        )

    def get_departments(self) -> List[str]:
        return list(DEPARTMENTS)

    def get_random_artworks(self, count: int = 10) -> List[StandardizedArtwork]:
        data = self._get_authorized('/objects', {'images': 1, 'size': count * 2, 'sort': 'random'})
        records = [as_dict(r) for r in as_list(data.get('data')) if as_list(as_dict(r).get('multimedia'))]
        return self._standardize_records(records)[:count]
