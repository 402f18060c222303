from .types import LogLevel, MuseumConfig, MuseumInfo
from .config import Settings, settings

__all__ = ['Settings', 'settings', 'LogLevel', 'MuseumConfig', 'MuseumInfo']
