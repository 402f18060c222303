from typing import Dict, List, Any, Optional

import requests

from .base import MuseumAPIClient
from .schemas import (
    StandardizedArtwork,
    MuseumSource,
    RawSearchResult,
    SearchPage,
    SearchQuery,
    VAArtworkFactory
)
from ..settings import Settings
from ..settings.types import MuseumInfo
from ..errors import UpstreamError
from ..utils import as_dict, as_list

CLUSTER_TYPES = ('maker', 'material', 'technique', 'place', 'category', 'person', 'organisation', 'collection')


class VAClient(MuseumAPIClient):
    '''Victoria and Albert Museum client implementation

    Faceted search returns full records, so listing needs no per-item fetch.
    '''

    source = MuseumSource.VA

    def __init__(self, museum_info: MuseumInfo, settings: Optional[Settings] = None,
                 session: Optional[requests.Session] = None):
        super().__init__(museum_info=museum_info, settings=settings, session=session)
        self.artwork_factory = VAArtworkFactory(iiif_base_url=self.settings.va_iiif_base_url)

    def _build_search_params(self, query: SearchQuery) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            'response_format': 'json',
            'page': query.page,
            'page_size': query.limit,
        }
        if query.q:
            params['q'] = query.q
        if query.has_images:
            params['images_exist'] = 1
        if query.date_begin is not None:
            params['made_after_year'] = query.date_begin
        if query.date_end is not None:
            params['made_before_year'] = query.date_end
        if query.creator:
            params['q_actor'] = query.creator
        # One free-text field covers both materials and techniques
        material_technique = ' '.join(term for term in (query.material, query.technique) if term)
        if material_technique:
            params['q_material_technique'] = material_technique
        if query.object_type:
            params['q_object_name'] = query.object_type
        if query.department:
            params['id_collection'] = query.department
        return params

    def search_records(self, params: Dict[str, Any]) -> Dict[str, Any]:
        '''Raw objects/search call, params passed through as given'''
        return as_dict(self._get_json(
            f"{self.museum_info.base_url}/objects/search",
            params=params,
            timeout=self.settings.va_timeout
        ))

    def search(self, query: SearchQuery) -> RawSearchResult:
        data = self.search_records(self._build_search_params(query))
        records = [as_dict(record) for record in as_list(data.get('records'))]
        info = as_dict(data.get('info'))
        total = info.get('record_count') or len(records)
        return RawSearchResult(
            ids=[record['systemNumber'] for record in records if record.get('systemNumber')],
            total=total,
            page=info.get('page') or query.page,
            total_pages=info.get('pages') or self._total_pages(total, query.limit),
            records=records
        )

    def fetch_by_id(self, native_id: str) -> Dict[str, Any]:
        data = as_dict(self._get_json(
            f"{self.museum_info.base_url}/museumobject/{native_id}",
            timeout=self.settings.va_timeout
        ))
        # v2 wraps the object in "record", older responses are bare
        return as_dict(data.get('record')) or data

    def standardize(self, record: Dict[str, Any], native_id: Optional[str] = None) -> StandardizedArtwork:
        return self.artwork_factory.create_artwork(record, native_id)

    def _standardize_records(self, records: List[Dict[str, Any]]) -> List[StandardizedArtwork]:
        artworks = []
        for record in records:
            try:
                artworks.append(self.standardize(record))
            except ValueError as e:
                self.logger.warning(f"Skipping V&A record without system number: {e}")
        return artworks

    def search_standardized(self, query: SearchQuery) -> SearchPage:
        result = self.search(query)
        artworks = self._standardize_records(result.records)
        self.logger.progress(f"V&A returned {len(artworks)} of {result.total} records for {query.q!r}")
        return SearchPage(
            artworks=artworks,
            total=result.total,
            page=result.page,
            total_pages=result.total_pages
        )

    def get_clusters(self, cluster_type: Optional[str] = None, q: Optional[str] = None,
                     cluster_size: int = 20) -> Dict[str, Any]:
        '''Facet counts, returned as the upstream sends them'''
        if cluster_type and cluster_type not in CLUSTER_TYPES:
            raise UpstreamError(
                f"Unknown V&A cluster type {cluster_type!r}, must be one of: {', '.join(CLUSTER_TYPES)}",
                source=self.source.value
            )
        if cluster_type:
            url = f"{self.museum_info.base_url}/objects/clusters/{cluster_type}/search"
        else:
            url = f"{self.museum_info.base_url}/objects/clusters/search"

        params: Dict[str, Any] = {'cluster_size': cluster_size}
        if q:
            params['q'] = q
        return self._get_json(url, params=params, timeout=self.settings.va_timeout)

    def get_random_artworks(self, count: int = 10) -> List[StandardizedArtwork]:
        data = self.search_records({
            'q': 'art',
            'images_exist': 1,
            'page_size': count * 2,
            'response_format': 'json'
        })
        records = [as_dict(record) for record in as_list(data.get('records'))]
        artworks = [a for a in self._standardize_records(records) if a.image_url]
        return artworks[:count]
