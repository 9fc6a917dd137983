import json
from types import SimpleNamespace

import pytest

from housetracker.errors import NotFoundError, RemoteError
from housetracker.models import DiscoveryResult, Listing

ROW_ONE = {
    "id": "1",
    "link": "http://example.org/1/",
    "vote": 7,
    "comment": "",
    "city": "Milano",
    "zone": "Piazzale Siena",
    "street": "Via Tommaso Gulli, 32",
    "lat": 45.4654,
    "lng": 9.1334,
    "rooms_number": 2,
    "square_meters": 71,
}
ROW_TWO = {
    "id": "2",
    "link": "http://example.org/2/",
    "vote": 4,
    "comment": "",
    "city": "Milano",
    "zone": "Dergano",
    "street": "Via Pellegrino Rossi, 13",
    "lat": 45.5081,
    "lng": 9.1775,
    "rooms_number": 2,
    "square_meters": 60,
}


class FakeHouseApi:
    """In-memory stand-in for HouseApiClient."""

    def __init__(self, listings=None):
        self.listings = list(listings or [])
        self.discoveries = {}
        self.failing = set()
        self.calls = []
        self.inserted = []

    def _call(self, name, *args):
        self.calls.append((name, ) + args)
        if name in self.failing:
            raise RemoteError(f"{name} failed", status_code=500)

    def fetch_all(self):
        self._call("fetch_all")
        return list(self.listings)

    def fetch_one(self, listing_id):
        self._call("fetch_one", listing_id)
        for listing in self.listings:
            if listing.id == listing_id:
                return listing
        raise NotFoundError(f"GET /api/houses/{listing_id} returned 404")

    def insert(self, draft):
        self._call("insert", draft)
        payload = draft.to_payload()
        self.inserted.append(payload)
        listing = Listing.from_dict(payload, listing_id=str(len(self.listings) + 100))
        self.listings.append(listing)
        return listing

    def update(self, listing_id, update):
        self._call("update", listing_id, update)
        self.listings = [
            Listing.from_dict({**vars(listing), **update.to_payload()})
            if listing.id == listing_id else listing
            for listing in self.listings
        ]

    def remove(self, listing_id):
        self._call("remove", listing_id)
        self.listings = [
            listing for listing in self.listings if listing.id != listing_id
        ]

    def lookup_by_link(self, url):
        self._call("lookup_by_link", url)
        if url not in self.discoveries:
            raise NotFoundError("GET /api/discover returned 404")
        return self.discoveries[url]

    def call_names(self):
        return [call[0] for call in self.calls]


class DummyResponse:

    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        if text is not None:
            self.content = text.encode("utf-8")
        elif payload is None:
            self.content = b""
        else:
            self.content = json.dumps(payload).encode("utf-8")

    def json(self):
        return json.loads(self.content.decode("utf-8"))


class FakeSession:
    """Routes (method, path) to queued responses and records every request."""

    def __init__(self, base_url="http://api.test"):
        self.base_url = base_url
        self.headers = {}
        self.routes = {}
        self.requests = []

    def route(self, method, path, *responses):
        self.routes.setdefault((method, path), []).extend(responses)

    def request(self, method, url, timeout=None, **kwargs):
        path = url[len(self.base_url):]
        self.requests.append(
            SimpleNamespace(method=method, path=path, timeout=timeout, **kwargs))
        queue = self.routes.get((method, path))
        if not queue:
            return DummyResponse(500, {"error": path})
        response = queue[0] if len(queue) == 1 else queue.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def sample_listings():
    return [Listing.from_dict(ROW_ONE), Listing.from_dict(ROW_TWO)]


@pytest.fixture
def fake_api(sample_listings):
    return FakeHouseApi(sample_listings)


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def discovery():
    return DiscoveryResult(
        city="Milano",
        zone="Dergano",
        street="Via Pellegrino Rossi, 13",
        lat=45.5081,
        lng=9.1775,
        rooms_number=2,
        square_meters=60,
        cost=2100,
    )
