"""View models for the list, detail, map and insert pages.

Each view reads through the shared ``QueryCache`` and issues writes through a
``Mutation``; templates only consume what these objects expose.
"""

from __future__ import annotations

import enum
import logging
import weakref
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence, Tuple

from .cache import (
    COLLECTION_KEY,
    Mutation,
    QueryCache,
    QueryState,
    Status,
    discovery_key,
    item_key,
)
from .client import HouseApiClient
from .diff import diff_listings
from .errors import DiscoveryNotFound, NotFoundError
from .models import (
    DEFAULT_VOTE,
    DiscoveryResult,
    Listing,
    ListingDraft,
    ListingUpdate,
    validate_vote,
)
from .navigation import detail_url, map_url

logger = logging.getLogger(__name__)

DEFAULT_ZOOM = 12
MISSING = "-"

_watchers: "weakref.WeakKeyDictionary[QueryCache, Callable[[], None]]" = (
    weakref.WeakKeyDictionary())


class ViewStatus(str, enum.Enum):
    LOADING = "loading"
    ERROR = "error"
    EMPTY = "empty"
    READY = "ready"
    REMOVING = "removing"
    UPDATING = "updating"
    EDITING = "editing"
    WORKING = "working"
    DONE = "done"
    FAILED = "failed"


def _query_status(state: QueryState, allow_empty: bool = True) -> ViewStatus:
    if state.is_error:
        return ViewStatus.ERROR
    if state.data is None:
        return ViewStatus.LOADING
    if allow_empty and not state.data:
        return ViewStatus.EMPTY
    return ViewStatus.READY


def _text(value: object) -> str:
    return MISSING if value is None or value == "" else str(value)


def describe_place(listing: Listing) -> str:
    return f"{_text(listing.street)} ({_text(listing.zone)})"


def describe_size(listing: Listing) -> str:
    return f"{_text(listing.rooms_number)} locali, {_text(listing.square_meters)}mq"


def watch_collection(cache: QueryCache) -> Callable[[], None]:
    """Log what changed between consecutive snapshots of the collection.

    A cache is watched at most once; watching it again returns the existing
    unsubscribe function.
    """
    existing = _watchers.get(cache)
    if existing is not None:
        return existing
    previous: List[Sequence[Listing]] = []

    def on_change(state: QueryState) -> None:
        if not state.is_success:
            return
        if previous:
            diff = diff_listings(previous[-1], state.data)
            if not diff.is_empty:
                logger.info(
                    "Collection changed: +%d / -%d / ~%d",
                    len(diff.added),
                    len(diff.removed),
                    len(diff.changed),
                )
        previous[:] = [list(state.data)]

    cache.subscribe(COLLECTION_KEY, on_change)
    cache_ref = weakref.ref(cache)

    def stop() -> None:
        watched = cache_ref()
        if watched is not None:
            _watchers.pop(watched, None)
            watched.unsubscribe(COLLECTION_KEY, on_change)

    _watchers[cache] = stop
    return stop


@dataclass(frozen=True)
class ListRow:
    listing_id: str
    primary: str
    secondary: str
    map_url: str
    detail_url: str


class ListView:
    """Rows of the whole collection, in the order the API returns them."""

    def __init__(self, client: HouseApiClient, cache: QueryCache):
        self.client = client
        self.cache = cache
        self.removal: Mutation[str, None] = Mutation(
            client.remove, on_success=self._on_removed)

    @property
    def state(self) -> QueryState:
        return self.cache.get(COLLECTION_KEY)

    @property
    def status(self) -> ViewStatus:
        if self.removal.is_loading:
            return ViewStatus.REMOVING
        return _query_status(self.state)

    def load(self) -> QueryState:
        return self.cache.fetch(COLLECTION_KEY, self.client.fetch_all)

    def refresh(self) -> QueryState:
        return self.cache.refetch(COLLECTION_KEY, self.client.fetch_all)

    def remove(self, listing_id: str) -> Status:
        return self.removal.mutate(listing_id)

    def rows(self) -> List[ListRow]:
        listings = self.state.data or []
        return [
            ListRow(
                listing_id=listing.id,
                primary=describe_place(listing),
                secondary=describe_size(listing),
                map_url=map_url(listing.id),
                detail_url=detail_url(listing.id),
            ) for listing in listings
        ]

    def _on_removed(self, _result: None, listing_id: str) -> None:
        self.cache.remove(item_key(listing_id))
        self.refresh()


class DetailView:
    """One listing with a draft vote/comment awaiting an explicit update."""

    def __init__(self, client: HouseApiClient, cache: QueryCache,
                 listing_id: str):
        self.client = client
        self.cache = cache
        self.listing_id = listing_id
        self.vote: Optional[int] = None
        self.comment: Optional[str] = None
        self.updating: Mutation[ListingUpdate, None] = Mutation(
            self._send_update, on_success=self._on_updated)

    @property
    def key(self):
        return item_key(self.listing_id)

    @property
    def state(self) -> QueryState:
        return self.cache.get(self.key)

    @property
    def status(self) -> ViewStatus:
        if self.updating.is_loading:
            return ViewStatus.UPDATING
        return _query_status(self.state, allow_empty=False)

    @property
    def listing(self) -> Optional[Listing]:
        return self.state.data

    @property
    def is_missing(self) -> bool:
        error = self.state.error
        return error is not None and isinstance(error.__cause__, NotFoundError)

    @property
    def displayed_vote(self) -> int:
        if self.vote is not None:
            return self.vote
        return self.listing.vote if self.listing else DEFAULT_VOTE

    @property
    def displayed_comment(self) -> str:
        if self.comment is not None:
            return self.comment
        return self.listing.comment if self.listing else ""

    @property
    def map_url(self) -> str:
        return map_url(self.listing_id)

    def load(self) -> QueryState:
        return self.cache.fetch(self.key, self._fetch)

    def refresh(self) -> QueryState:
        return self.cache.refetch(self.key, self._fetch)

    def edit(self, vote: Optional[int] = None,
             comment: Optional[str] = None) -> None:
        """Change the local draft; nothing is sent until ``update``."""
        if vote is not None:
            self.vote = validate_vote(vote)
        if comment is not None:
            self.comment = comment

    def update(self) -> Status:
        return self.updating.mutate(
            ListingUpdate(comment=self.comment, vote=self.vote))

    def _fetch(self) -> Listing:
        return self.client.fetch_one(self.listing_id)

    def _send_update(self, update: ListingUpdate) -> None:
        self.client.update(self.listing_id, update)

    def _on_updated(self, _result: None, _update: ListingUpdate) -> None:
        self.refresh()
        self.cache.invalidate(COLLECTION_KEY)
        self.vote = None
        self.comment = None


def mapped_listings(listings: Sequence[Listing]) -> List[Listing]:
    """Listings that can be placed on the map (both coordinates present)."""
    return [listing for listing in listings if listing.is_mapped]


def center_of(listings: Sequence[Listing]) -> Optional[Tuple[float, float]]:
    """Arithmetic mean of the mapped coordinates, or None if nothing is mapped."""
    positions = [listing.position for listing in mapped_listings(listings)]
    if not positions:
        return None
    lat = sum(position[0] for position in positions) / len(positions)
    lng = sum(position[1] for position in positions) / len(positions)
    return (lat, lng)


@dataclass(frozen=True)
class Marker:
    listing: Listing
    selected: bool

    @property
    def position(self) -> Tuple[float, float]:
        return self.listing.position

    @property
    def icon_class(self) -> str:
        return f"vote-{self.listing.vote}"

    @property
    def summary(self) -> str:
        listing = self.listing
        return (f"{_text(listing.street)}, {_text(listing.rooms_number)} locali, "
                f"{_text(listing.square_meters)} mq")


class MapView:
    """Markers for mapped listings, centered on the selection if any."""

    def __init__(self,
                 client: HouseApiClient,
                 cache: QueryCache,
                 selected_id: Optional[str] = None):
        self.client = client
        self.cache = cache
        self.selected_id = selected_id
        self.zoom = DEFAULT_ZOOM

    @property
    def state(self) -> QueryState:
        return self.cache.get(COLLECTION_KEY)

    @property
    def status(self) -> ViewStatus:
        return _query_status(self.state)

    @property
    def listings(self) -> List[Listing]:
        return list(self.state.data or [])

    @property
    def selected(self) -> Optional[Listing]:
        if not self.selected_id:
            return None
        for listing in mapped_listings(self.listings):
            if listing.id == self.selected_id:
                return listing
        return None

    def load(self) -> QueryState:
        return self.cache.fetch(COLLECTION_KEY, self.client.fetch_all)

    def markers(self) -> List[Marker]:
        return [
            Marker(listing=listing, selected=listing.id == self.selected_id)
            for listing in mapped_listings(self.listings)
        ]

    def center(self) -> Optional[Tuple[float, float]]:
        selected = self.selected
        if selected is not None:
            return selected.position
        return center_of(self.listings)


class InsertView:
    """Draft of a new listing, discovery lookup and the one-shot insert."""

    def __init__(self,
                 client: HouseApiClient,
                 cache: QueryCache,
                 draft: Optional[ListingDraft] = None):
        self.client = client
        self.cache = cache
        self.draft = draft or ListingDraft(link="")
        self.insertion: Mutation[ListingDraft, Listing] = Mutation(client.insert)

    @property
    def status(self) -> ViewStatus:
        if self.insertion.is_loading:
            return ViewStatus.WORKING
        if self.insertion.is_error:
            return ViewStatus.FAILED
        if self.insertion.is_success:
            return ViewStatus.DONE
        return ViewStatus.EDITING

    @property
    def discovery_state(self) -> QueryState:
        return self.cache.get(discovery_key(self.draft.link))

    @property
    def discovery(self) -> Optional[DiscoveryResult]:
        state = self.discovery_state
        return state.data if state.is_success else None

    @property
    def discovery_message(self) -> Optional[str]:
        error = self.discovery_state.error
        if error is None:
            return None
        if isinstance(error, DiscoveryNotFound):
            return "Not found"
        return "Could not fetch info"

    def set_link(self, link: str) -> None:
        """Change the link, dropping whatever was discovered for the old one."""
        if link == self.draft.link:
            return
        self.cache.remove(discovery_key(self.draft.link))
        self.draft = self.draft.with_link(link)

    def set_vote(self, vote: int) -> None:
        self.draft = replace(self.draft, vote=vote)

    def set_comment(self, comment: str) -> None:
        self.draft = replace(self.draft, comment=comment)

    def fetch_info(self) -> QueryState:
        link = self.draft.link
        return self.cache.refetch(discovery_key(link), lambda: self._discover(link))

    def submit(self) -> Status:
        if self.status is not ViewStatus.EDITING:
            logger.warning("Ignoring repeated submit for %s", self.draft.link)
            return self.insertion.status
        draft = replace(self.draft, discovery=self.discovery)
        return self.insertion.mutate(draft)

    def _discover(self, link: str) -> DiscoveryResult:
        try:
            return self.client.lookup_by_link(link)
        except NotFoundError as exc:
            raise DiscoveryNotFound(link) from exc
