from dataclasses import dataclass, field
from types import MappingProxyType
from enum import Enum
from typing import Optional, Dict, List, Any, Mapping, Tuple

from pydantic import BaseModel, Field, field_validator

from ...errors import InvalidCompoundId


class MuseumSource(str, Enum):
    """Upstream museum APIs the aggregator knows about"""
    MET = "met"
    RIJKS = "rijks"
    VA = "va"
    FITZWILLIAM = "fitzwilliam"


ALL_SOURCES = "all"


def make_compound_id(source: MuseumSource, native_id: Any) -> str:
    native = str(native_id).strip() if native_id is not None else ""
    if not native:
        raise InvalidCompoundId(f"Empty native ID for source {MuseumSource(source).value}")
    return f"{MuseumSource(source).value}:{native}"


def parse_compound_id(compound_id: str) -> Tuple[MuseumSource, str]:
    """Split "<source>:<nativeId>" on the first colon.

    Native IDs may themselves contain colons, only the prefix is interpreted.
    """
    if not isinstance(compound_id, str) or ':' not in compound_id:
        raise InvalidCompoundId(
            f'Artwork ID should be in format "source:objectId" (e.g. "met:12345"), got {compound_id!r}'
        )
    prefix, native_id = compound_id.split(':', 1)
    try:
        source = MuseumSource(prefix)
    except ValueError:
        valid = ', '.join(s.value for s in MuseumSource)
        raise InvalidCompoundId(f"Unknown source {prefix!r}, must be one of: {valid}") from None
    if not native_id:
        raise InvalidCompoundId(f"Missing native ID in {compound_id!r}")
    return source, native_id


@dataclass(frozen=True)
class StandardizedArtwork:
    """Standardized metadata for artwork across different museums"""

    # Core Identifiers
    id: str
    source: MuseumSource

    # Basic Artwork Info
    title: str
    artist: str
    artist_bio: Optional[str] = None
    culture: Optional[str] = None

    # Free text period, upstream date semantics vary too much to parse
    date: Optional[str] = None

    # Physical Details
    medium: Optional[str] = None
    dimensions: Optional[str] = None
    department: Optional[str] = None
    description: Optional[str] = None

    # Images
    image_url: Optional[str] = None
    small_image_url: Optional[str] = None
    additional_images: Tuple[str, ...] = ()
    museum_url: Optional[str] = None

    # Rights & Display
    is_highlight: bool = False
    is_public_domain: bool = False
    tags: Tuple[str, ...] = ()

    # Source specific passthrough (accession numbers, gallery numbers, ...)
    extra: Mapping[str, Any] = field(default_factory=dict, hash=False, compare=False)

    def __post_init__(self):
        source = MuseumSource(self.source)
        object.__setattr__(self, 'source', source)
        if not self.id or not self.id.startswith(f"{source.value}:") or self.id == f"{source.value}:":
            raise InvalidCompoundId(f"Artwork id {self.id!r} must carry the {source.value!r} prefix")
        object.__setattr__(self, 'additional_images', tuple(self.additional_images or ()))
        object.__setattr__(self, 'tags', tuple(self.tags or ()))
        # Read-only view over a private copy
        object.__setattr__(self, 'extra', MappingProxyType(dict(self.extra or {})))

    @property
    def native_id(self) -> str:
        return parse_compound_id(self.id)[1]

    def to_dict(self) -> Dict[str, Any]:
        """camelCase representation consumed by the curation application.

        Passthrough keys go in first so they can never shadow a core field.
        """
        result: Dict[str, Any] = dict(self.extra)
        result.update({
            'id': self.id,
            'source': self.source.value,
            'title': self.title,
            'artist': self.artist,
            'artistBio': self.artist_bio,
            'culture': self.culture,
            'date': self.date,
            'medium': self.medium,
            'dimensions': self.dimensions,
            'department': self.department,
            'description': self.description,
            'imageUrl': self.image_url,
            'smallImageUrl': self.small_image_url,
            'additionalImages': list(self.additional_images),
            'museumUrl': self.museum_url,
            'isHighlight': self.is_highlight,
            'isPublicDomain': self.is_public_domain,
            'tags': list(self.tags),
        })
        return result


@dataclass
class RawSearchResult:
    """Ordered native references returned by one upstream search call"""
    ids: List[str] = field(default_factory=list)
    total: int = 0
    page: int = 1
    total_pages: int = 1
    # Only filled by upstreams whose search returns full records
    records: List[Dict[str, Any]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.ids)


@dataclass
class SearchPage:
    artworks: List[StandardizedArtwork] = field(default_factory=list)
    total: int = 0
    page: int = 1
    total_pages: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'artworks': [artwork.to_dict() for artwork in self.artworks],
            'total': self.total,
            'page': self.page,
            'totalPages': self.total_pages,
        }


class SearchQuery(BaseModel):
    """Logical query accepted by every museum client"""
    q: Optional[str] = None
    limit: int = Field(default=20, ge=1)
    page: int = Field(default=1, ge=1)
    department: Optional[str] = None
    has_images: bool = True
    is_highlight: Optional[bool] = None
    date_begin: Optional[int] = None
    date_end: Optional[int] = None
    creator: Optional[str] = None
    object_type: Optional[str] = None
    material: Optional[str] = None
    technique: Optional[str] = None

    model_config = {"frozen": True}

    @field_validator('q', 'department', 'creator', 'object_type', 'material', 'technique')
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None
