# /curator/museums/schemas/__init__.py
from .artwork import (
    StandardizedArtwork,
    MuseumSource,
    RawSearchResult,
    SearchPage,
    SearchQuery,
    ALL_SOURCES,
    make_compound_id,
    parse_compound_id
)
from .factories import (
    ArtworkFactory,
    MetArtworkFactory,
    RijksArtworkFactory,
    VAArtworkFactory,
    FitzwilliamArtworkFactory
)

__all__ = [
    'StandardizedArtwork',
    'MuseumSource',
    'RawSearchResult',
    'SearchPage',
    'SearchQuery',
    'ALL_SOURCES',
    'make_compound_id',
    'parse_compound_id',
    'ArtworkFactory',
    'MetArtworkFactory',
    'RijksArtworkFactory',
    'VAArtworkFactory',
    'FitzwilliamArtworkFactory'
]
