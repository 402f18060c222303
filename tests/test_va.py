"""Tests for the V&A client."""

import pytest

from curator.errors import UpstreamError, UpstreamNotFound
from curator.museums.va import VAClient
from curator.museums.schemas import MuseumSource, SearchQuery

from conftest import VA_BASE, ok

SEARCH_URL = f"{VA_BASE}/objects/search"


def va_summary(system_number, image_id="2006AM6767", **overrides):
    record = {
        'systemNumber': system_number,
        'accessionNumber': f"E.{system_number}-1900",
        'objectType': 'Print',
        '_primaryTitle': f"Print {system_number}",
        '_primaryMaker': {'name': 'Hokusai, Katsushika', 'association': 'artist'},
        '_primaryImageId': image_id,
        '_primaryDate': '1831',
        '_primaryPlace': 'Japan',
        '_images': {},
    }
    record.update(overrides)
    return record


def search_response(*records, record_count=None, pages=1):
    return {
        'info': {'record_count': record_count if record_count is not None else len(records), 'pages': pages, 'page': 1},
        'records': list(records),
    }


@pytest.fixture
def client(test_settings, session):
    return VAClient(test_settings.get_museum_info('va'), settings=test_settings, session=session)


class TestVASearch:

    def test_query_mapping(self, client):
        params = client._build_search_params(SearchQuery(
            q="wave", limit=15, page=2, date_begin=1800, date_end=1850,
            creator="Hokusai", material="paper", object_type="print", department="THES48601"
        ))
        assert params == {
            'response_format': 'json',
            'page': 2,
            'page_size': 15,
            'q': "wave",
            'images_exist': 1,
            'made_after_year': 1800,
            'made_before_year': 1850,
            'q_actor': "Hokusai",
            'q_material_technique': "paper",
            'q_object_name': "print",
            'id_collection': "THES48601",
        }

    def test_material_and_technique_combined(self, client):
        params = client._build_search_params(SearchQuery(q="bowl", material="porcelain", technique="glazing"))
        assert params['q_material_technique'] == "porcelain glazing"

    def test_technique_alone(self, client):
        params = client._build_search_params(SearchQuery(q="bowl", technique="glazing"))
        assert params['q_material_technique'] == "glazing"

    def test_images_optional(self, client):
        params = client._build_search_params(SearchQuery(q="wave", has_images=False))
        assert 'images_exist' not in params

    def test_search_standardized_needs_no_item_fetch(self, client, session):
        session.add(SEARCH_URL, ok(search_response(
            va_summary("O75881"), va_summary("O123456", image_id=None),
            record_count=240, pages=12
        )))

        page = client.search_standardized(SearchQuery(q="hokusai", limit=20))

        assert len(session.calls) == 1
        assert [artwork.id for artwork in page.artworks] == ["va:O75881", "va:O123456"]
        assert page.total == 240
        assert page.total_pages == 12
        wave = page.artworks[0]
        assert wave.source is MuseumSource.VA
        assert wave.artist == "Hokusai, Katsushika"
        assert wave.image_url == "https://framemark.vam.ac.uk/collections/2006AM6767/full/!800,800/0/default.jpg"
        assert page.artworks[1].image_url is None

    def test_records_without_system_number_skipped(self, client, session):
        session.add(SEARCH_URL, ok(search_response(va_summary("O1"), {'_primaryTitle': 'orphan'})))
        page = client.search_standardized(SearchQuery(q="orphan"))
        assert [artwork.id for artwork in page.artworks] == ["va:O1"]

    def test_empty_result(self, client, session):
        session.add(SEARCH_URL, ok({'info': {'record_count': 0, 'pages': 0}, 'records': []}))
        page = client.search_standardized(SearchQuery(q="zzzz"))
        assert page.artworks == []
        assert page.total == 0


class TestVAObjects:

    def test_fetch_unwraps_record(self, client, session):
        session.add(f"{VA_BASE}/museumobject/O75881", ok({
            'meta': {'images': {}},
            'record': {
                'systemNumber': 'O75881',
                'titles': [{'title': 'The Great Wave'}],
                'artistMakerPerson': [{'name': {'text': 'Hokusai, Katsushika'}, 'association': 'artist'}],
                'images': ['2006AM6767'],
            }
        }))

        artwork = client.get_artwork("O75881")

        assert artwork.id == "va:O75881"
        assert artwork.title == "The Great Wave"
        assert artwork.artist == "Hokusai, Katsushika"

    def test_missing_object(self, client):
        with pytest.raises(UpstreamNotFound):
            client.get_artwork("O0")


class TestVAClusters:

    def test_typed_cluster(self, client, session):
        url = f"{VA_BASE}/objects/clusters/material/search"
        session.add(url, ok([{'id': 'AAT14109', 'value': 'paper', 'count': 80}]))

        clusters = client.get_clusters('material', q="wave", cluster_size=5)

        assert clusters == [{'id': 'AAT14109', 'value': 'paper', 'count': 80}]
        assert session.calls[0]['params'] == {'cluster_size': 5, 'q': "wave"}

    def test_all_clusters(self, client, session):
        session.add(f"{VA_BASE}/objects/clusters/search", ok({'maker': {}, 'material': {}}))
        assert set(client.get_clusters()) == {'maker', 'material'}
        assert session.calls[0]['params'] == {'cluster_size': 20}

    def test_unknown_cluster_type(self, client, session):
        with pytest.raises(UpstreamError):
            client.get_clusters('colour')
        assert session.calls == []


class TestVARandom:

    def test_only_records_with_images(self, client, session):
        session.add(SEARCH_URL, ok(search_response(
            va_summary("O1", image_id=None), va_summary("O2"), va_summary("O3"), va_summary("O4")
        )))

        artworks = client.get_random_artworks(2)

        assert [artwork.id for artwork in artworks] == ["va:O2", "va:O3"]
        params = session.calls[0]['params']
        assert params['page_size'] == 4
        assert params['images_exist'] == 1
