from enum import Enum

class LogLevel(str, Enum):
    """Log level settings for application"""
    NONE = "none"           # No logging
    ERRORS_ONLY = "errors"  # Only log errors
    PROGRESS = "progress"   # Batch and source progress
    ARTWORK = "artwork"     # Artwork + progress updates
    DEBUG = "debug"         # All logging including debug
