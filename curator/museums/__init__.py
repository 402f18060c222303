def __getattr__(name):
    if name == 'MetClient':
        from .met import MetClient
        return MetClient
    elif name in ('RijksClient', 'SEARCH_STRATEGIES'):
        from .rijks import RijksClient, SEARCH_STRATEGIES
        return locals()[name]
    elif name == 'LinkedDataResolver':
        from .linked_data import LinkedDataResolver
        return LinkedDataResolver
    elif name == 'VAClient':
        from .va import VAClient
        return VAClient
    elif name == 'FitzwilliamClient':
        from .fitzwilliam import FitzwilliamClient
        return FitzwilliamClient
    elif name == 'MuseumAPIClient':
        from .base import MuseumAPIClient
        return MuseumAPIClient
    elif name in ('StandardizedArtwork', 'MuseumSource', 'SearchQuery', 'SearchPage'):
        from .schemas import StandardizedArtwork, MuseumSource, SearchQuery, SearchPage
        return locals()[name]
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")

__all__ = [
    'MetClient',
    'RijksClient', 'SEARCH_STRATEGIES',
    'LinkedDataResolver',
    'VAClient',
    'FitzwilliamClient',
    'MuseumAPIClient',
    'StandardizedArtwork', 'MuseumSource', 'SearchQuery', 'SearchPage'
]
