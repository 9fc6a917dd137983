"""HTTP client for the house REST API."""

from __future__ import annotations

import logging
from typing import Any, List
from urllib.parse import quote

import requests

from .errors import NotFoundError, RemoteError
from .models import DiscoveryResult, Listing, ListingDraft, ListingUpdate

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10
HOUSES_PATH = "/api/houses"
DISCOVER_PATH = "/api/discover"


class HouseApiClient:
    """Lightweight wrapper around the house API.

    Every call is made exactly once: failures are logged and raised as
    ``RemoteError`` (``NotFoundError`` for 404) and never retried.
    """

    def __init__(self,
                 base_url: str,
                 session: requests.Session | None = None,
                 timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": "HouseTracker/1.0",
            "Accept": "application/json",
        })

    def fetch_all(self) -> List[Listing]:
        payload = self._json(self._request("GET", HOUSES_PATH))
        if not isinstance(payload, list):
            raise RemoteError(f"Unexpected response payload: {payload!r}")
        listings = [self._listing(row) for row in payload]
        logger.debug("Fetched %d listings", len(listings))
        return listings

    def fetch_one(self, listing_id: str) -> Listing:
        payload = self._json(self._request("GET", _house_path(listing_id)))
        return self._listing(payload)

    def insert(self, draft: ListingDraft) -> Listing:
        payload = draft.to_payload()
        response = self._request("POST", HOUSES_PATH, json=payload)
        listing_id = _created_id(response)
        logger.info("Inserted listing %s for %s", listing_id, draft.link)
        return Listing.from_dict(payload, listing_id=str(listing_id or ""))

    def update(self, listing_id: str, update: ListingUpdate) -> None:
        self._request("PATCH", _house_path(listing_id), json=update.to_payload())
        logger.info("Updated listing %s", listing_id)

    def remove(self, listing_id: str) -> None:
        self._request("DELETE", _house_path(listing_id))
        logger.info("Removed listing %s", listing_id)

    def lookup_by_link(self, url: str) -> DiscoveryResult:
        payload = self._json(
            self._request("GET", DISCOVER_PATH, params={"url": url}))
        if not isinstance(payload, dict):
            raise RemoteError(f"Unexpected discovery payload: {payload!r}")
        try:
            return DiscoveryResult.from_dict(payload)
        except (TypeError, ValueError) as exc:
            raise RemoteError(f"Malformed discovery result: {exc}") from exc

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method,
                                            url,
                                            timeout=self.timeout,
                                            **kwargs)
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise RemoteError(f"{method} {path} failed: {exc}") from exc

        if response.status_code == 404:
            logger.info("%s %s returned 404", method, url)
            raise NotFoundError(f"{method} {path} returned 404")
        if not 200 <= response.status_code < 300:
            logger.warning("%s %s returned %d", method, url,
                           response.status_code)
            raise RemoteError(
                f"{method} {path} returned {response.status_code}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteError(f"Invalid JSON body: {exc}",
                              status_code=response.status_code) from exc

    @staticmethod
    def _listing(row: Any) -> Listing:
        if not isinstance(row, dict):
            raise RemoteError(f"Unexpected listing payload: {row!r}")
        try:
            return Listing.from_dict(row)
        except (TypeError, ValueError) as exc:
            raise RemoteError(f"Malformed listing: {exc}") from exc


def _created_id(response: requests.Response) -> Any:
    """Id from a create response, if its body happens to carry one."""
    if not response.content:
        return None
    try:
        created = response.json()
    except ValueError:
        logger.debug("Create response body is not JSON, ignoring it")
        return None
    return created.get("id") if isinstance(created, dict) else None


def _house_path(listing_id: str) -> str:
    return f"{HOUSES_PATH}/{quote(str(listing_id), safe='')}"
