import threading
from typing import Any, Callable, Dict, List, Optional, Union

import pytest
from requests.structures import CaseInsensitiveDict

from curator.settings import Settings, LogLevel
from curator.museums.schemas import StandardizedArtwork, MuseumSource, make_compound_id

MET_BASE = "https://collectionapi.metmuseum.org/public/collection/v1"
RIJKS_BASE = "https://data.rijksmuseum.nl"
VA_BASE = "https://api.vam.ac.uk/v2"
FITZ_BASE = "https://data.fitzmuseum.cam.ac.uk/api/v1"

INVALID_JSON = object()


class FakeResponse:
    """Just enough of requests.Response for the clients"""

    def __init__(self, status_code: int = 200, payload: Any = None, headers: Optional[Dict[str, str]] = None):
        self.status_code = status_code
        self.payload = payload
        self.headers = CaseInsensitiveDict(headers or {})

    def json(self):
        if self.payload is INVALID_JSON:
            raise ValueError("No JSON object could be decoded")
        return self.payload


Route = Union[FakeResponse, List[FakeResponse], Callable[..., FakeResponse]]


class FakeSession:
    """requests.Session stand-in with a route table keyed by URL.

    A route is a FakeResponse, a list of responses served in order (the last
    one repeats) or a callable taking the request params. Unknown URLs 404.
    """

    def __init__(self, routes: Optional[Dict[str, Route]] = None):
        self.routes: Dict[str, Route] = dict(routes or {})
        self.headers: Dict[str, str] = {}
        self.calls: List[Dict[str, Any]] = []
        self._served: Dict[str, int] = {}
        self._lock = threading.Lock()

    def add(self, url: str, route: Route) -> None:
        self.routes[url] = route

    def _respond(self, url: str, params: Any) -> FakeResponse:
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(404, {'message': 'Not Found'})
        if isinstance(route, FakeResponse):
            return route
        if isinstance(route, list):
            with self._lock:
                index = self._served.get(url, 0)
                self._served[url] = index + 1
            return route[min(index, len(route) - 1)]
        return route(params or {})

    def get(self, url, params=None, timeout=None, headers=None):
        with self._lock:
            self.calls.append({'method': 'GET', 'url': url, 'params': params, 'timeout': timeout,
                               'headers': headers or {}})
        return self._respond(url, params)

    def post(self, url, json=None, timeout=None, headers=None):
        with self._lock:
            self.calls.append({'method': 'POST', 'url': url, 'json': json, 'timeout': timeout,
                               'headers': headers or {}})
        return self._respond(url, json)

    def calls_to(self, url: str, method: str = 'GET') -> List[Dict[str, Any]]:
        return [call for call in self.calls if call['url'] == url and call['method'] == method]


class ManualClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def ok(payload: Any) -> FakeResponse:
    return FakeResponse(200, payload)


def make_artwork(source: MuseumSource, native_id: str, **fields) -> StandardizedArtwork:
    fields.setdefault('title', f"Artwork {native_id}")
    fields.setdefault('artist', 'Unknown Artist')
    return StandardizedArtwork(id=make_compound_id(source, native_id), source=source, **fields)


def met_object(object_id: int, **overrides) -> Dict[str, Any]:
    record = {
        'objectID': object_id,
        'title': f"Water Lilies {object_id}",
        'artistDisplayName': 'Claude Monet',
        'artistDisplayBio': 'French, Paris 1840-1926 Giverny',
        'culture': '',
        'objectDate': '1919',
        'medium': 'Oil on canvas',
        'dimensions': '39 3/8 x 79 in. (100 x 200.7 cm)',
        'department': 'European Paintings',
        'primaryImage': f"https://images.metmuseum.org/CRDImages/ep/original/{object_id}.jpg",
        'primaryImageSmall': f"https://images.metmuseum.org/CRDImages/ep/web-large/{object_id}.jpg",
        'additionalImages': [],
        'objectURL': f"https://www.metmuseum.org/art/collection/search/{object_id}",
        'isHighlight': True,
        'isPublicDomain': True,
        'tags': [{'term': 'Water Lilies'}, {'term': 'Flowers'}],
        'accessionNumber': '1998.325.2',
        'creditLine': 'Gift of Louise Reinhardt Smith, 1983',
        'GalleryNumber': '819',
    }
    record.update(overrides)
    return record


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        log_level=LogLevel.NONE,
        contact_email=None,
        batch_delay=0.0,
        batch_stagger=0.0,
        fitzwilliam_api_key=None,
        fitzwilliam_username=None,
        fitzwilliam_password=None
    )


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()
