import sys
import json
import logging

from curator.aggregator import build_aggregator
from curator.museums.schemas import MuseumSource, ALL_SOURCES
from curator.settings import settings
from curator.errors import CuratorError

USAGE = "Usage: python main.py <query> [source] [limit]"

def parse_args(argv):
    '''Positional arguments: query, optional source selector, optional limit'''
    if not argv:
        raise ValueError(USAGE)

    query = argv[0]
    source = argv[1] if len(argv) > 1 else ALL_SOURCES
    valid_sources = [ALL_SOURCES] + [s.value for s in MuseumSource]
    if source not in valid_sources:
        raise ValueError(f"Invalid source: {source}. Available sources: {', '.join(valid_sources)}")

    limit = settings.default_limit
    if len(argv) > 2:
        try:
            limit = int(argv[2])
        except ValueError:
            raise ValueError(f"Limit must be a number, got {argv[2]!r}") from None
        if limit < 1:
            raise ValueError("Limit must be at least 1")
    return query, source, limit

def main():
    try:
        query, source, limit = parse_args(sys.argv[1:])
    except ValueError as e:
        print(e)
        sys.exit(1)

    aggregator = build_aggregator(settings)

    try:
        page = aggregator.search_standardized(query, source, limit)
    except KeyboardInterrupt:
        logging.info("Search interrupted by user")
        sys.exit(0)
    except CuratorError as e:
        logging.error(f"Search failed: {e}")
        sys.exit(1)

    print(json.dumps(page.to_dict(), indent=2, default=str))

if __name__ == "__main__":
    main()
