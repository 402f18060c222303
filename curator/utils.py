from pathlib import Path
import logging
from typing import Any, Iterable, List, Optional
import html
import re

from .log_level import LogLevel

ARTWORK = 15  # Between DEBUG (10) and INFO (20)
PROGRESS = 25  # Between INFO (20) and WARNING (30)

logging.addLevelName(ARTWORK, 'ARTWORK')
logging.addLevelName(PROGRESS, 'PROGRESS')

# Add convenience methods
def artwork(self, message, *args, **kwargs):
    if self.isEnabledFor(ARTWORK):
        self.log(ARTWORK, message, *args, **kwargs)

def progress(self, message, *args, **kwargs):
    if self.isEnabledFor(PROGRESS):
        self.log(PROGRESS, message, *args, **kwargs)


logging.Logger.artwork = artwork
logging.Logger.progress = progress

PROGRAM_LOGGER = "curator"

def setup_logging(log_dir: Optional[Path], log_level: LogLevel, museum_code: Optional[str] = None) -> logging.Logger:
    """Configure logging with both program-level and museum-specific logs.

    Args:
        log_dir: Directory where log files will be stored, or None for console only
        log_level: LogLevel enum specifying logging verbosity
        museum_code: Optional museum code for museum-specific logging

    Returns:
        Logger instance configured for the specified context
    """
    # Get the appropriate logger
    if museum_code:
        logger = logging.getLogger(f"{PROGRAM_LOGGER}.{museum_code}")
        log_file = f"{museum_code}.log"
    else:
        logger = logging.getLogger(PROGRAM_LOGGER)
        log_file = "curator.log"

    # Clear any existing handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # Museum loggers propagate to the program logger
    logger.propagate = museum_code is not None

    # Map log levels
    level_map = {
        LogLevel.NONE: logging.CRITICAL + 1,
        LogLevel.ERRORS_ONLY: logging.ERROR,
        LogLevel.PROGRESS: PROGRESS,
        LogLevel.ARTWORK: ARTWORK,
        LogLevel.DEBUG: logging.DEBUG
    }

    if log_level != LogLevel.NONE:
        if log_dir is not None:
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_dir / log_file)
            file_handler.setFormatter(
                logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
            )
            logger.addHandler(file_handler)

        # Console output only on the program logger
        if museum_code is None:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(
                logging.Formatter('%(levelname)s - %(name)s - %(message)s'))
            logger.addHandler(console_handler)

    logger.setLevel(level_map.get(log_level, logging.INFO))
    return logger


def clean_text(value: Any) -> Optional[str]:
    """Collapse whitespace in an upstream string; blank or non-string becomes None."""
    if not isinstance(value, str):
        return None
    text = ' '.join(value.split())
    return text or None

def strip_html(value: Any) -> Optional[str]:
    """Remove markup that some museums embed in description fields."""
    text = clean_text(value)
    if text is None:
        return None
    text = html.unescape(re.sub(r'<[^>]+>', '', text))
    return clean_text(text)

def unique_texts(values: Iterable[Any]) -> List[str]:
    """Clean a sequence of strings, dropping blanks and duplicates but keeping order."""
    seen = set()
    result = []
    for value in values:
        text = clean_text(value)
        if text and text not in seen:
            seen.add(text)
            result.append(text)
    return result

def as_list(value: Any) -> List[Any]:
    """Upstream arrays are sometimes null, a single object, or missing."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]

def as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}
