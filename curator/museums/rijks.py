from typing import Dict, List, Any, Optional, Callable, Tuple
import random

import requests

from .base import MuseumAPIClient
from .linked_data import LinkedDataResolver
from .schemas import (
    StandardizedArtwork,
    MuseumSource,
    RawSearchResult,
    SearchPage,
    SearchQuery,
    RijksArtworkFactory
)
from ..settings import Settings
from ..settings.types import MuseumInfo
from ..fetching import fetch_concurrently
from ..errors import UpstreamError
from ..utils import as_dict, as_list

LINKED_ART_ACCEPT = 'application/ld+json'

RANDOM_OBJECT_TYPES = ['painting', 'sculpture', 'drawing', 'print', 'ceramic', 'furniture']


# The collection API has no free-text parameter, so a general query is tried
# against one filter field at a time. Each builder returns None when it does
# not apply to the query.
def _specific_filters(query: SearchQuery, fallback_type: str) -> Optional[Dict[str, Any]]:
    filters = {
        'creator': query.creator,
        'type': query.object_type,
        'material': query.material,
        'technique': query.technique,
    }
    filters = {key: value for key, value in filters.items() if value}
    if not filters:
        return None
    if query.q:
        filters['title'] = query.q
    return filters

def _title_filter(query: SearchQuery, fallback_type: str) -> Optional[Dict[str, Any]]:
    return {'title': query.q} if query.q else None

def _creator_filter(query: SearchQuery, fallback_type: str) -> Optional[Dict[str, Any]]:
    return {'creator': query.q} if query.q else None

def _description_filter(query: SearchQuery, fallback_type: str) -> Optional[Dict[str, Any]]:
    return {'description': query.q} if query.q else None

def _generic_filter(query: SearchQuery, fallback_type: str) -> Optional[Dict[str, Any]]:
    return {'type': fallback_type}


SearchStrategy = Tuple[str, Callable[[SearchQuery, str], Optional[Dict[str, Any]]]]

SEARCH_STRATEGIES: Tuple[SearchStrategy, ...] = (
    ('specific filters', _specific_filters),
    ('title', _title_filter),
    ('creator', _creator_filter),
    ('description', _description_filter),
    ('generic fallback', _generic_filter),
)


class RijksClient(MuseumAPIClient):
    '''Rijksmuseum Linked Art client implementation'''

    source = MuseumSource.RIJKS

    def __init__(self, museum_info: MuseumInfo, settings: Optional[Settings] = None,
                 session: Optional[requests.Session] = None,
                 strategies: Tuple[SearchStrategy, ...] = SEARCH_STRATEGIES):
        super().__init__(museum_info=museum_info, settings=settings, session=session)
        self.strategies = strategies
        self.artwork_factory = RijksArtworkFactory(iiif_host=self.settings.rijks_iiif_host)
        self.resolver = LinkedDataResolver(
            fetch=self._get_linked_data,
            iiif_host=self.settings.rijks_iiif_host,
            logger=self.logger
        )

    def _get_linked_data(self, url: str) -> Dict[str, Any]:
        return self._get_json(
            url,
            timeout=self.settings.rijks_fetch_timeout,
            headers={'Accept': LINKED_ART_ACCEPT}
        )

    @staticmethod
    def native_id_from_uri(uri: str) -> str:
        return uri.rstrip('/').split('/')[-1]

    def _common_params(self, query: SearchQuery) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if query.has_images:
            params['imageAvailable'] = 'true'
        if query.date_begin is not None:
            params['creationDate'] = str(query.date_begin)
        return params

    def search_with_filters(self, filters: Dict[str, Any], page_token: Optional[str] = None) -> RawSearchResult:
        '''Run one collection search with the given native filter fields'''
        params = dict(filters)
        if page_token:
            params['pageToken'] = page_token

        data = as_dict(self._get_json(
            f"{self.museum_info.base_url}/search/collection",
            params=params,
            timeout=self.settings.rijks_search_timeout,
            headers={'Accept': LINKED_ART_ACCEPT}
        ))

        ids = [
            self.native_id_from_uri(item['id'])
            for item in (as_dict(i) for i in as_list(data.get('orderedItems')))
            if item.get('id')
        ]
        total = as_dict(data.get('partOf')).get('totalItems') or len(ids)
        return RawSearchResult(ids=ids, total=total, page=1, total_pages=1)

    def search(self, query: SearchQuery) -> RawSearchResult:
        '''Try each search strategy in order, first non-empty result wins'''
        common = self._common_params(query)
        last_error: Optional[UpstreamError] = None
        attempted = failed = 0

        for name, build_filters in self.strategies:
            filters = build_filters(query, self.settings.rijks_fallback_type)
            if filters is None:
                continue
            attempted += 1
            try:
                result = self.search_with_filters({**filters, **common})
            except UpstreamError as e:
                self.logger.warning(f"Rijksmuseum {name} search failed: {e}")
                last_error = e
                failed += 1
                continue
            if result.ids:
                self.logger.progress(f"Rijksmuseum {name} search matched {result.total} objects")
                return result
            self.logger.debug(f"Rijksmuseum {name} search returned nothing")

        # Only an upstream that failed every strategy is an error
        if last_error is not None and failed == attempted:
            raise last_error
        return RawSearchResult()

    def fetch_by_id(self, native_id: str) -> Dict[str, Any]:
        if native_id.startswith('http'):
            url = native_id
        else:
            url = f"{self.museum_info.base_url}/{native_id}"
        return self._get_linked_data(url)

    def standardize(self, record: Dict[str, Any], native_id: Optional[str] = None) -> StandardizedArtwork:
        image_identifier = self.resolver.resolve_image_identifier(record)
        return self.artwork_factory.create_artwork(record, native_id, image_identifier=image_identifier)

    def _fetch_standardized(self, native_id: str) -> StandardizedArtwork:
        artwork = self.standardize(self.fetch_by_id(native_id), native_id)
        self.logger.artwork(f"Fetched {artwork.id} '{artwork.title}'")
        return artwork

    def _hydrate(self, ids: List[str]) -> List[StandardizedArtwork]:
        return fetch_concurrently(
            ids,
            self._fetch_standardized,
            max_workers=min(len(ids), self.settings.rijks_max_workers),
            logger=self.logger
        )

    def search_standardized(self, query: SearchQuery) -> SearchPage:
        result = self.search(query)
        if not result.ids:
            return SearchPage(artworks=[], total=0, page=query.page, total_pages=0)

        artworks = self._hydrate(result.ids[:query.limit])
        return SearchPage(
            artworks=artworks,
            total=result.total,
            page=query.page,
            total_pages=self._total_pages(result.total, query.limit)
        )

    def get_random_artworks(self, count: int = 10) -> List[StandardizedArtwork]:
        object_type = random.choice(RANDOM_OBJECT_TYPES)
        result = self.search_with_filters({'type': object_type, 'imageAvailable': 'true'})
        ids = list(result.ids)
        random.shuffle(ids)
        self.logger.progress(f"Picking {count} random Rijksmuseum {object_type} objects")
        return self._hydrate(ids[:count])
