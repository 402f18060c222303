"""Tests for the standardized artwork model and compound IDs."""

import dataclasses

import pytest

from curator.errors import InvalidCompoundId
from curator.museums.schemas import (
    StandardizedArtwork,
    MuseumSource,
    SearchPage,
    SearchQuery,
    make_compound_id,
    parse_compound_id
)

from conftest import make_artwork


class TestCompoundId:

    @pytest.mark.parametrize("source,native_id", [
        (MuseumSource.MET, "436535"),
        (MuseumSource.RIJKS, "200100988"),
        (MuseumSource.VA, "O1234"),
        (MuseumSource.FITZWILLIAM, "3d0b5e1e-4c2f-4f0e-9a3a-7a4e7b1f2c3d"),
    ])
    def test_round_trip(self, source, native_id):
        compound = make_compound_id(source, native_id)
        assert compound == f"{source.value}:{native_id}"
        assert parse_compound_id(compound) == (source, native_id)

    def test_native_id_keeps_colons(self):
        assert parse_compound_id("va:O1:2") == (MuseumSource.VA, "O1:2")

    def test_integer_native_id(self):
        assert make_compound_id(MuseumSource.MET, 45734) == "met:45734"

    @pytest.mark.parametrize("value", ["", "met", "louvre:1", "met:", ":123"])
    def test_rejects_malformed(self, value):
        with pytest.raises(InvalidCompoundId):
            parse_compound_id(value)

    def test_invalid_compound_id_is_value_error(self):
        with pytest.raises(ValueError):
            parse_compound_id("nope")

    @pytest.mark.parametrize("native_id", [None, "", "   "])
    def test_empty_native_id(self, native_id):
        with pytest.raises(InvalidCompoundId):
            make_compound_id(MuseumSource.MET, native_id)


class TestStandardizedArtwork:

    def test_defaults_are_empty_collections(self):
        artwork = make_artwork(MuseumSource.MET, "1")
        assert artwork.tags == ()
        assert artwork.additional_images == ()
        assert artwork.image_url is None
        assert artwork.is_highlight is False
        assert artwork.is_public_domain is False

    def test_lists_become_tuples(self):
        artwork = make_artwork(MuseumSource.MET, "1", tags=["a", "b"], additional_images=["x"])
        assert artwork.tags == ("a", "b")
        assert artwork.additional_images == ("x",)

    def test_none_collections_become_empty(self):
        artwork = make_artwork(MuseumSource.MET, "1", tags=None, additional_images=None)
        assert artwork.tags == ()
        assert artwork.additional_images == ()

    def test_immutable(self):
        artwork = make_artwork(MuseumSource.MET, "1")
        with pytest.raises(dataclasses.FrozenInstanceError):
            artwork.title = "Changed"

    def test_id_must_carry_source_prefix(self):
        with pytest.raises(InvalidCompoundId):
            StandardizedArtwork(id="rijks:1", source=MuseumSource.MET, title="t", artist="a")
        with pytest.raises(InvalidCompoundId):
            StandardizedArtwork(id="met:", source=MuseumSource.MET, title="t", artist="a")

    def test_source_string_is_coerced(self):
        artwork = StandardizedArtwork(id="va:O1", source="va", title="t", artist="a")
        assert artwork.source is MuseumSource.VA
        assert artwork.native_id == "O1"

    def test_equality_ignores_extra(self):
        first = make_artwork(MuseumSource.MET, "1", extra={'galleryNumber': '1'})
        second = make_artwork(MuseumSource.MET, "1", extra={'galleryNumber': '2'})
        assert first == second

    def test_to_dict(self):
        artwork = make_artwork(
            MuseumSource.MET, "1",
            artist_bio="bio",
            image_url="https://img/1.jpg",
            tags=["Flowers"],
            extra={'accessionNumber': '1998.325.2'}
        )
        data = artwork.to_dict()
        assert data['id'] == "met:1"
        assert data['source'] == "met"
        assert data['artistBio'] == "bio"
        assert data['imageUrl'] == "https://img/1.jpg"
        assert data['tags'] == ["Flowers"]
        assert data['additionalImages'] == []
        assert data['accessionNumber'] == '1998.325.2'

    def test_extra_is_read_only(self):
        passthrough = {'galleryNumber': '819'}
        artwork = make_artwork(MuseumSource.MET, "1", extra=passthrough)
        with pytest.raises(TypeError):
            artwork.extra['galleryNumber'] = '820'
        passthrough['galleryNumber'] = '820'
        assert artwork.extra == {'galleryNumber': '819'}

    def test_extra_cannot_shadow_core_fields(self):
        artwork = make_artwork(
            MuseumSource.MET, "1",
            tags=["Flowers"],
            extra={'id': 'x', 'source': 'louvre', 'tags': [], 'creditLine': 'Gift'}
        )
        data = artwork.to_dict()
        assert data['id'] == "met:1"
        assert data['source'] == "met"
        assert data['tags'] == ["Flowers"]
        assert data['creditLine'] == 'Gift'


class TestSearchEnvelope:

    def test_search_page_to_dict(self):
        page = SearchPage(artworks=[make_artwork(MuseumSource.VA, "O1")], total=41, page=2, total_pages=3)
        data = page.to_dict()
        assert data['total'] == 41
        assert data['page'] == 2
        assert data['totalPages'] == 3
        assert data['artworks'][0]['id'] == "va:O1"

    def test_query_blank_strings_become_none(self):
        query = SearchQuery(q="  ", creator="", department=" Prints ")
        assert query.q is None
        assert query.creator is None
        assert query.department == "Prints"

    def test_query_rejects_non_positive_limit(self):
        with pytest.raises(ValueError):
            SearchQuery(q="monet", limit=0)
