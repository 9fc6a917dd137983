"""URL contract of the browser surface and the mode switch."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import List, Mapping, Optional
from urllib.parse import quote, unquote, urlencode

SELECTION_PARAM = "houseId"


class Mode(str, enum.Enum):
    INSERT = "insert"
    LIST = "list"
    MAP = "map"


class Page(str, enum.Enum):
    INSERT = "insert"
    LIST = "list"
    MAP = "map"
    DETAIL = "detail"


SWITCH_LABELS = {
    Mode.INSERT: "Add",
    Mode.LIST: "List",
    Mode.MAP: "Map",
}


@dataclass(frozen=True)
class Route:
    """A resolved browser location."""

    page: Page
    listing_id: Optional[str] = None
    selected_id: Optional[str] = None
    redirected: bool = False

    @property
    def mode(self) -> Mode:
        """Destination highlighted by the switch; detail falls back to list."""
        if self.page is Page.INSERT:
            return Mode.INSERT
        if self.page is Page.MAP:
            return Mode.MAP
        return Mode.LIST

    @property
    def url(self) -> str:
        if self.page is Page.DETAIL:
            return detail_url(self.listing_id or "")
        if self.page is Page.MAP:
            return map_url(self.selected_id)
        return f"/{self.page.value}"


@dataclass(frozen=True)
class SwitchItem:
    mode: Mode
    label: str
    url: str
    active: bool


def resolve(path: str, query: Mapping[str, str] | None = None) -> Route:
    """Map a path (and query string values) to a route.

    Unrecognized paths resolve to the list page with ``redirected`` set.
    """
    query = query or {}
    segments = [segment for segment in path.strip().split("/") if segment]

    if segments == ["insert"]:
        return Route(page=Page.INSERT)
    if segments == ["list"]:
        return Route(page=Page.LIST)
    if segments == ["map"]:
        selected = (query.get(SELECTION_PARAM) or "").strip()
        return Route(page=Page.MAP, selected_id=selected or None)
    if len(segments) == 2 and segments[0] == "houses":
        return Route(page=Page.DETAIL, listing_id=unquote(segments[1]))
    return Route(page=Page.LIST, redirected=True)


def map_url(selected_id: Optional[str] = None) -> str:
    if not selected_id:
        return "/map"
    return "/map?" + urlencode({SELECTION_PARAM: selected_id})


def detail_url(listing_id: str) -> str:
    return f"/houses/{quote(str(listing_id), safe='')}"


def switch_items(route: Route) -> List[SwitchItem]:
    """The three switch destinations, exactly one of them active."""
    active = route.mode
    return [
        SwitchItem(mode=mode,
                   label=SWITCH_LABELS[mode],
                   url=f"/{mode.value}",
                   active=mode is active) for mode in Mode
    ]
