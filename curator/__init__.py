from .aggregator import Aggregator, build_aggregator
from .museums import (
    MuseumAPIClient,
    MetClient,
    RijksClient,
    VAClient,
    FitzwilliamClient,
    LinkedDataResolver
)
from .museums.schemas import (
    StandardizedArtwork,
    MuseumSource,
    SearchQuery,
    SearchPage,
    parse_compound_id
)
from .settings import settings, Settings
from .log_level import LogLevel
from .errors import (
    CuratorError,
    UpstreamError,
    UpstreamNotFound,
    UpstreamAuthFailed,
    UpstreamUnavailable,
    UpstreamFetchFailed,
    ResolutionFailed,
    AggregationPartialFailure,
    InvalidCompoundId
)

__all__ = [
    'Aggregator',
    'build_aggregator',
    'MuseumAPIClient',
    'MetClient',
    'RijksClient',
    'VAClient',
    'FitzwilliamClient',
    'LinkedDataResolver',
    'StandardizedArtwork',
    'MuseumSource',
    'SearchQuery',
    'SearchPage',
    'parse_compound_id',
    'settings',
    'Settings',
    'LogLevel',
    'CuratorError',
    'UpstreamError',
    'UpstreamNotFound',
    'UpstreamAuthFailed',
    'UpstreamUnavailable',
    'UpstreamFetchFailed',
    'ResolutionFailed',
    'AggregationPartialFailure',
    'InvalidCompoundId'
]
