from abc import ABC, abstractmethod
from typing import Optional, Dict, Any, List
import re

from .artwork import StandardizedArtwork, MuseumSource, make_compound_id
from ...utils import clean_text, strip_html, unique_texts, as_list, as_dict

UNKNOWN_ARTIST = 'Unknown Artist'
UNTITLED = 'Untitled'

# Getty AAT vocabulary URIs used by the Rijksmuseum Linked Art graph
AAT_PRIMARY_NAME = "http://vocab.getty.edu/aat/300404670"
AAT_TITLE = "http://vocab.getty.edu/aat/300417207"
AAT_ATTRIBUTION = "http://vocab.getty.edu/aat/300435416"
AAT_OBJECT_NUMBER = "http://vocab.getty.edu/aat/300312355"
AAT_DESCRIPTION = "http://vocab.getty.edu/aat/300080091"

RIJKS_IMAGE_TEMPLATE = "https://{host}/{identifier}/full/{size}/0/default.jpg"
RIJKS_FULL_SIZE = "max"
RIJKS_SMALL_SIZE = "400,"

VA_IMAGE_TEMPLATE = "{base}/{identifier}/full/{size}/0/default.jpg"
VA_FULL_SIZE = "!800,800"
VA_SMALL_SIZE = "!200,200"

_YEAR = re.compile(r'^(-?\d{1,4})')


class ArtworkFactory(ABC):
    """Abstract base factory for creating StandardizedArtwork objects.

    Factories are pure: no I/O, and a missing optional field never raises.
    Only a record without any native identifier is rejected.
    """

    source: MuseumSource

    @abstractmethod
    def create_artwork(self, data: Dict[str, Any], native_id: Optional[str] = None) -> StandardizedArtwork:
        """Create StandardizedArtwork from API response data"""
        pass

    def _compound_id(self, *candidates: Any) -> str:
        for candidate in candidates:
            if candidate is not None and str(candidate).strip():
                return make_compound_id(self.source, candidate)
        return make_compound_id(self.source, None)

    @staticmethod
    def _parse_year(value: Any) -> Optional[str]:
        """Helper method to pull a leading year out of an ISO-ish timestamp"""
        if not isinstance(value, str):
            return None
        match = _YEAR.match(value.strip())
        return str(int(match.group(1))) if match else None


class MetArtworkFactory(ArtworkFactory):
    """Factory for creating Met Museum artwork records"""

    source = MuseumSource.MET

    def create_artwork(self, data: Dict[str, Any], native_id: Optional[str] = None) -> StandardizedArtwork:
        data = as_dict(data)
        object_id = data.get('objectID')
        tags = unique_texts(as_dict(tag).get('term') for tag in as_list(data.get('tags')))

        return StandardizedArtwork(
            id=self._compound_id(object_id, native_id),
            source=self.source,
            title=clean_text(data.get('title')) or UNTITLED,
            artist=clean_text(data.get('artistDisplayName')) or UNKNOWN_ARTIST,
            artist_bio=clean_text(data.get('artistDisplayBio')),
            culture=clean_text(data.get('culture')),
            date=clean_text(data.get('objectDate')),
            medium=clean_text(data.get('medium')),
            dimensions=clean_text(data.get('dimensions')),
            department=clean_text(data.get('department')),
            image_url=clean_text(data.get('primaryImage')),
            small_image_url=clean_text(data.get('primaryImageSmall')),
            additional_images=unique_texts(as_list(data.get('additionalImages'))),
            museum_url=clean_text(data.get('objectURL')),
            is_highlight=bool(data.get('isHighlight')),
            is_public_domain=bool(data.get('isPublicDomain')),
            tags=tags,
            extra={
                'objectID': object_id,
                'accessionNumber': clean_text(data.get('accessionNumber')),
                'creditLine': clean_text(data.get('creditLine')),
                'galleryNumber': clean_text(data.get('GalleryNumber')),
            }
        )


def _classified_as(item: Dict[str, Any], *aat_ids: str) -> bool:
    """Check if a Linked Art node is classified_as one of the given AAT URIs."""
    return any(as_dict(cls).get('id') in aat_ids for cls in as_list(item.get('classified_as')))


def _name_of(node: Any) -> Optional[str]:
    """Preferred display text of a Linked Art node: its Name, else its _label."""
    node = as_dict(node)
    for ident in as_list(node.get('identified_by')):
        ident = as_dict(ident)
        if ident.get('type') == 'Name' and clean_text(ident.get('content')):
            return clean_text(ident.get('content'))
    return clean_text(node.get('_label'))


def _format_number(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    return clean_text(value)


class RijksArtworkFactory(ArtworkFactory):
    """Factory for Rijksmuseum Linked Art (JSON-LD) objects.

    The IIIF identifier is not inline in the record. The client resolves it
    first and passes it in as image_identifier.
    """

    source = MuseumSource.RIJKS

    def __init__(self, iiif_host: str = "iiif.micr.io"):
        self.iiif_host = iiif_host

    def create_artwork(self, data: Dict[str, Any], native_id: Optional[str] = None,
                       image_identifier: Optional[str] = None) -> StandardizedArtwork:
        data = as_dict(data)
        record_id = clean_text(data.get('id'))
        object_id = record_id.rstrip('/').split('/')[-1] if record_id else None

        identified_by = [as_dict(i) for i in as_list(data.get('identified_by'))]
        produced_by = as_dict(data.get('produced_by'))
        parts = [as_dict(p) for p in as_list(produced_by.get('part'))]

        techniques = unique_texts(
            _name_of(t) for node in [produced_by, *parts] for t in as_list(node.get('technique'))
        )
        materials = unique_texts(_name_of(m) for m in as_list(data.get('made_of')))
        object_number = self._object_number(identified_by)

        image_url = small_image_url = None
        if image_identifier:
            image_url = self.build_image_url(image_identifier, RIJKS_FULL_SIZE)
            small_image_url = self.build_image_url(image_identifier, RIJKS_SMALL_SIZE)

        department = None
        for cls in as_list(data.get('classified_as')):
            cls = as_dict(cls)
            if cls.get('type') == 'Type' and clean_text(cls.get('_label')):
                department = clean_text(cls.get('_label'))
                break

        tags = unique_texts(
            _name_of(about)
            for shown in as_list(data.get('shows'))
            for about in as_list(as_dict(shown).get('about'))
        )

        compound_id = self._compound_id(object_id, native_id)
        artist = self._artist(produced_by, parts)
        return StandardizedArtwork(
            id=compound_id,
            source=self.source,
            title=self._title(identified_by, data.get('_label')),
            artist=artist,
            date=self._date(as_dict(produced_by.get('timespan'))),
            medium=', '.join(techniques) or ', '.join(materials) or None,
            dimensions=self._dimensions(as_list(data.get('dimension'))),
            department=department,
            description=self._description(as_list(data.get('referred_to_by'))),
            image_url=image_url,
            small_image_url=small_image_url,
            additional_images=[],
            museum_url=f"https://www.rijksmuseum.nl/en/collection/{object_number or compound_id.split(':', 1)[1]}",
            is_highlight=False,
            is_public_domain=True,
            tags=tags,
            extra={
                'objectNumber': object_number or compound_id.split(':', 1)[1],
                'creator': artist,
                'materials': materials,
                'techniques': techniques,
            }
        )

    def build_image_url(self, identifier: str, size: str) -> str:
        return RIJKS_IMAGE_TEMPLATE.format(host=self.iiif_host, identifier=identifier, size=size)

    @staticmethod
    def _title(identified_by: List[Dict[str, Any]], label: Any) -> str:
        first_name = None
        for entry in identified_by:
            if entry.get('type') != 'Name':
                continue
            content = clean_text(entry.get('content'))
            if not content:
                continue
            if _classified_as(entry, AAT_PRIMARY_NAME, AAT_TITLE):
                return content
            first_name = first_name or content
        return first_name or clean_text(label) or UNTITLED

    @staticmethod
    def _artist(produced_by: Dict[str, Any], parts: List[Dict[str, Any]]) -> str:
        for node in [produced_by, *parts]:
            for ref in as_list(node.get('referred_to_by')):
                ref = as_dict(ref)
                if ref.get('type') == 'LinguisticObject' and _classified_as(ref, AAT_ATTRIBUTION):
                    content = clean_text(ref.get('content'))
                    if content:
                        return content
        for node in [produced_by, *parts]:
            for person in as_list(node.get('carried_out_by')):
                name = _name_of(person)
                if name:
                    return name
        return UNKNOWN_ARTIST

    def _date(self, timespan: Dict[str, Any]) -> Optional[str]:
        if not timespan:
            return None
        for ident in as_list(timespan.get('identified_by')):
            ident = as_dict(ident)
            if ident.get('type') == 'Name' and clean_text(ident.get('content')):
                return clean_text(ident.get('content'))
        start = self._parse_year(timespan.get('begin_of_the_begin'))
        if start is None:
            return None
        end = self._parse_year(timespan.get('end_of_the_end')) or start
        return start if start == end else f"{start}-{end}"

    @staticmethod
    def _object_number(identified_by: List[Dict[str, Any]]) -> Optional[str]:
        for entry in identified_by:
            if entry.get('type') == 'Identifier' and _classified_as(entry, AAT_OBJECT_NUMBER):
                content = clean_text(entry.get('content'))
                if content:
                    return content
        return None

    @staticmethod
    def _dimensions(dimensions: List[Any]) -> Optional[str]:
        parts = []
        for dim in dimensions:
            dim = as_dict(dim)
            value = _format_number(dim.get('value'))
            if value is None:
                continue
            unit = _name_of(dim.get('unit')) or 'cm'
            parts.append(f"{value} {unit}")
        return ' x '.join(parts) or None

    @staticmethod
    def _description(referred_to_by: List[Any]) -> Optional[str]:
        for ref in referred_to_by:
            ref = as_dict(ref)
            if ref.get('type') == 'LinguisticObject' and _classified_as(ref, AAT_DESCRIPTION):
                content = strip_html(ref.get('content'))
                if content:
                    return content
        return None


class VAArtworkFactory(ArtworkFactory):
    """Factory for Victoria and Albert Museum records.

    Search results carry underscore-prefixed summary fields (_primaryTitle,
    _primaryMaker, ...). Full museumobject records carry the nested arrays.
    Both shapes are accepted, summary fields first.
    """

    source = MuseumSource.VA

    def __init__(self, iiif_base_url: str = "https://framemark.vam.ac.uk/collections"):
        self.iiif_base_url = iiif_base_url.rstrip('/')

    def create_artwork(self, data: Dict[str, Any], native_id: Optional[str] = None) -> StandardizedArtwork:
        data = as_dict(data)
        system_number = clean_text(data.get('systemNumber'))

        artist, artist_bio = self._artist(data)

        materials = unique_texts(as_dict(m).get('text') for m in as_list(data.get('materials')))
        techniques = unique_texts(as_dict(t).get('text') for t in as_list(data.get('techniques')))
        medium = clean_text(data.get('materialsAndTechniques')) or \
            '; '.join(part for part in (', '.join(materials), ', '.join(techniques)) if part) or None

        image_ids = self._image_ids(data)
        image_url = small_image_url = None
        if image_ids:
            image_url = self.build_image_url(image_ids[0], VA_FULL_SIZE)
            small_image_url = self.build_image_url(image_ids[0], VA_SMALL_SIZE)

        date = clean_text(data.get('_primaryDate'))
        if not date:
            dates = as_list(data.get('productionDates'))
            date = clean_text(as_dict(as_dict(dates[0]).get('date')).get('text')) if dates else None

        culture = clean_text(data.get('_primaryPlace'))
        if not culture:
            places = as_list(data.get('placesOfOrigin'))
            culture = clean_text(as_dict(as_dict(places[0]).get('place')).get('text')) if places else None

        object_type = clean_text(data.get('objectType'))
        compound_id = self._compound_id(system_number, native_id)

        return StandardizedArtwork(
            id=compound_id,
            source=self.source,
            title=self._title(data),
            artist=artist,
            artist_bio=artist_bio,
            culture=culture,
            date=date,
            medium=medium,
            dimensions=self._dimensions(data),
            department=object_type,
            description=strip_html(data.get('briefDescription')) or strip_html(data.get('physicalDescription'))
                or strip_html(data.get('summaryDescription')),
            image_url=image_url,
            small_image_url=small_image_url,
            additional_images=[self.build_image_url(i, VA_FULL_SIZE) for i in image_ids[1:]],
            museum_url=f"https://collections.vam.ac.uk/item/{compound_id.split(':', 1)[1]}/",
            is_highlight=False,
            is_public_domain=True,
            tags=unique_texts([*materials, *techniques, object_type]),
            extra={
                'systemNumber': system_number or native_id,
                'accessionNumber': clean_text(data.get('accessionNumber')),
                'accessionYear': data.get('accessionYear'),
            }
        )

    def build_image_url(self, identifier: str, size: str) -> str:
        return VA_IMAGE_TEMPLATE.format(base=self.iiif_base_url, identifier=identifier, size=size)

    @staticmethod
    def _title(data: Dict[str, Any]) -> str:
        title = clean_text(data.get('_primaryTitle'))
        if title:
            return title
        for entry in as_list(data.get('titles')):
            title = clean_text(as_dict(entry).get('title'))
            if title:
                return title
        return UNTITLED

    @staticmethod
    def _artist(data: Dict[str, Any]):
        maker = clean_text(as_dict(data.get('_primaryMaker')).get('name'))
        if maker:
            return maker, None
        for key in ('artistMakerPerson', 'artistMakerOrganisations', 'artistMakerPeople'):
            makers = as_list(data.get(key))
            if makers:
                first = as_dict(makers[0])
                name = clean_text(as_dict(first.get('name')).get('text'))
                bio = clean_text(first.get('note'))
                if name:
                    return name, bio
        return UNKNOWN_ARTIST, None

    @staticmethod
    def _image_ids(data: Dict[str, Any]) -> List[str]:
        primary = clean_text(data.get('_primaryImageId'))
        images = unique_texts(i for i in as_list(data.get('images')) if isinstance(i, str))
        if primary:
            return [primary] + [i for i in images if i != primary]
        return images

    @staticmethod
    def _dimensions(data: Dict[str, Any]) -> Optional[str]:
        summary = clean_text(data.get('dimensionsSummary'))
        if summary:
            return summary
        parts = []
        for dim in as_list(data.get('dimensions')):
            dim = as_dict(dim)
            value = _format_number(dim.get('value'))
            if value is None:
                continue
            label = clean_text(dim.get('dimension'))
            unit = clean_text(dim.get('unit')) or ''
            text = f"{value} {unit}".strip()
            parts.append(f"{label}: {text}" if label else text)
        return '; '.join(parts) or None


class FitzwilliamArtworkFactory(ArtworkFactory):
    """Factory for creating Fitzwilliam Museum artwork records"""

    source = MuseumSource.FITZWILLIAM

    def create_artwork(self, data: Dict[str, Any], native_id: Optional[str] = None) -> StandardizedArtwork:
        data = as_dict(data)
        uuid = clean_text(data.get('uuid')) or clean_text(as_dict(data.get('admin')).get('uuid'))

        multimedia = [as_dict(m) for m in as_list(data.get('multimedia'))]
        image_url = self._processed_location(multimedia[0], 'large', 'medium', 'original') if multimedia else None
        small_image_url = self._processed_location(multimedia[0], 'preview', 'medium') if multimedia else None
        additional_images = [
            url for url in (self._processed_location(m, 'large', 'medium', 'original') for m in multimedia[1:])
            if url
        ]

        creations = as_list(as_dict(data.get('lifecycle')).get('creation'))
        creation = as_dict(creations[0]) if creations else {}
        makers = as_list(creation.get('maker'))
        maker = as_dict(makers[0]) if makers else {}
        biography = [as_dict(b).get('value') for b in as_list(maker.get('biography'))]

        materials = unique_texts(as_dict(m).get('summary_title') for m in as_list(data.get('materials')))
        techniques = unique_texts(as_dict(t).get('summary_title') for t in as_list(data.get('techniques')))
        categories = unique_texts(as_dict(c).get('summary_title') for c in as_list(data.get('categories')))
        places = unique_texts(as_dict(p).get('summary_title') for p in as_list(creation.get('places')))

        notes = [
            strip_html(as_dict(note).get('value'))
            for note in as_list(data.get('note'))
            if as_dict(note).get('type') != 'admin'
        ]

        return StandardizedArtwork(
            id=self._compound_id(uuid, native_id),
            source=self.source,
            title=self._title(data),
            artist=clean_text(maker.get('summary_title')) or UNKNOWN_ARTIST,
            artist_bio=' '.join(unique_texts(biography)) or None,
            culture=places[0] if places else None,
            date=self._date(creation),
            medium='; '.join(part for part in (', '.join(materials), ', '.join(techniques)) if part) or None,
            dimensions=self._dimensions(data),
            department=clean_text(as_dict(data.get('department')).get('summary_title'))
                or clean_text(as_dict(data.get('type')).get('summary_title')),
            description=' '.join(n for n in notes if n) or None,
            image_url=image_url,
            small_image_url=small_image_url,
            additional_images=additional_images,
            museum_url=clean_text(data.get('uri')),
            is_highlight=False,
            is_public_domain=True,
            tags=unique_texts([*categories, *techniques, *materials]),
            extra={
                'priref': data.get('priref'),
                'uuid': uuid or native_id,
                'accessionNumber': self._accession_number(data),
            }
        )

    @staticmethod
    def _processed_location(media: Dict[str, Any], *sizes: str) -> Optional[str]:
        processed = as_dict(media.get('processed'))
        for size in sizes:
            location = clean_text(as_dict(processed.get(size)).get('location'))
            if location:
                return location
        return None

    @staticmethod
    def _title(data: Dict[str, Any]) -> str:
        title = clean_text(data.get('summary_title'))
        if title:
            return title
        titles = as_list(data.get('title'))
        if titles:
            title = clean_text(as_dict(titles[0]).get('value'))
        return title or UNTITLED

    @staticmethod
    def _date(creation: Dict[str, Any]) -> Optional[str]:
        dates = as_list(creation.get('date'))
        if not dates:
            return None
        date = as_dict(dates[0])
        value = clean_text(date.get('value'))
        if value:
            return value
        earliest = clean_text(date.get('earliest')) if not isinstance(date.get('earliest'), int) else str(date['earliest'])
        latest = clean_text(date.get('latest')) if not isinstance(date.get('latest'), int) else str(date['latest'])
        if earliest and latest:
            return earliest if earliest == latest else f"{earliest}-{latest}"
        return earliest or latest

    @staticmethod
    def _dimensions(data: Dict[str, Any]) -> Optional[str]:
        parts = []
        for dim in as_list(as_dict(data.get('measurements')).get('dimensions')):
            dim = as_dict(dim)
            value = _format_number(dim.get('value'))
            if value is None:
                continue
            label = clean_text(dim.get('dimension'))
            unit = clean_text(dim.get('units')) or ''
            text = f"{value} {unit}".strip()
            parts.append(f"{label}: {text}" if label else text)
        return '; '.join(parts) or None

    @staticmethod
    def _accession_number(data: Dict[str, Any]) -> Optional[str]:
        identifiers = [as_dict(i) for i in as_list(data.get('identifier'))]
        for ident in identifiers:
            if ident.get('type') == 'accession number' and clean_text(ident.get('value')):
                return clean_text(ident.get('value'))
        for ident in identifiers:
            if clean_text(ident.get('accession_number')):
                return clean_text(ident.get('accession_number'))
        priref = data.get('priref')
        return str(priref) if priref is not None else None
