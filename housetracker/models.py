"""Core data models for HouseTracker."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

MIN_VOTE = 0
MAX_VOTE = 10
DEFAULT_VOTE = 5
DISPLAY_ONLY_FIELDS = ("cost",)


def validate_vote(value: Any) -> int:
    """Coerce a vote to an integer and reject anything outside 0..10."""
    if isinstance(value, bool):
        raise ValueError(f"Vote must be an integer, got {value!r}")
    try:
        vote = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Vote must be an integer, got {value!r}") from exc
    if isinstance(value, float) and vote != value:
        raise ValueError(f"Vote must be an integer, got {value!r}")
    if not MIN_VOTE <= vote <= MAX_VOTE:
        raise ValueError(f"Vote must be between {MIN_VOTE} and {MAX_VOTE}, got {vote}")
    return vote


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


@dataclass(frozen=True)
class DiscoveryResult:
    """Metadata discovered for a listing link. Every field is optional."""

    city: Optional[str] = None
    zone: Optional[str] = None
    street: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    rooms_number: Optional[int] = None
    square_meters: Optional[int] = None
    cost: Optional[int] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "DiscoveryResult":
        return cls(
            city=_optional_str(payload.get("city")),
            zone=_optional_str(payload.get("zone")),
            street=_optional_str(payload.get("street")),
            lat=_optional_float(payload.get("lat")),
            lng=_optional_float(payload.get("lng")),
            rooms_number=_optional_int(payload.get("rooms_number")),
            square_meters=_optional_int(payload.get("square_meters")),
            cost=_optional_int(payload.get("cost")),
        )

    def to_payload(self) -> Dict[str, Any]:
        """Return the discovered listing fields; ``cost`` is display only."""
        return {
            item.name: getattr(self, item.name)
            for item in fields(self)
            if item.name not in DISPLAY_ONLY_FIELDS
            and getattr(self, item.name) is not None
        }


@dataclass(frozen=True)
class Listing:
    """A tracked house/apartment candidate as served by the house API."""

    id: str
    link: str
    vote: int = 0
    comment: str = ""
    city: Optional[str] = None
    zone: Optional[str] = None
    street: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    rooms_number: Optional[int] = None
    square_meters: Optional[int] = None

    @classmethod
    def from_dict(cls,
                  payload: Mapping[str, Any],
                  listing_id: Optional[str] = None) -> "Listing":
        """Build a Listing; ``listing_id`` overrides the id in the payload."""
        if listing_id is None:
            if not payload.get("id"):
                raise ValueError(f"Listing payload without id: {payload!r}")
            listing_id = str(payload["id"])
        return cls(
            id=listing_id,
            link=str(payload.get("link") or ""),
            vote=_optional_int(payload.get("vote")) or 0,
            comment=str(payload.get("comment") or ""),
            city=_optional_str(payload.get("city")),
            zone=_optional_str(payload.get("zone")),
            street=_optional_str(payload.get("street")),
            lat=_optional_float(payload.get("lat")),
            lng=_optional_float(payload.get("lng")),
            rooms_number=_optional_int(payload.get("rooms_number")),
            square_meters=_optional_int(payload.get("square_meters")),
        )

    @property
    def position(self) -> Optional[Tuple[float, float]]:
        """Coordinates when both are known, otherwise None."""
        if self.lat is None or self.lng is None:
            return None
        return (self.lat, self.lng)

    @property
    def is_mapped(self) -> bool:
        return self.position is not None


@dataclass(frozen=True)
class ListingDraft:
    """User input for a new listing, optionally enriched by discovery."""

    link: str
    vote: int = DEFAULT_VOTE
    comment: str = ""
    discovery: Optional[DiscoveryResult] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "vote", validate_vote(self.vote))

    def with_link(self, link: str) -> "ListingDraft":
        """Change the link; metadata discovered for the old link is dropped."""
        if link == self.link:
            return self
        return replace(self, link=link, discovery=None)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if self.discovery is not None:
            payload.update(self.discovery.to_payload())
        payload.update(link=self.link, vote=self.vote, comment=self.comment)
        return payload


@dataclass(frozen=True)
class ListingUpdate:
    """Partial update accepted by the house API."""

    comment: Optional[str] = None
    vote: Optional[int] = None

    def __post_init__(self) -> None:
        if self.vote is not None:
            object.__setattr__(self, "vote", validate_vote(self.vote))

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if self.comment is not None:
            payload["comment"] = self.comment
        if self.vote is not None:
            payload["vote"] = self.vote
        return payload


@dataclass
class DiffResult:
    """Holds the result of comparing two collection snapshots."""

    added: List[Listing]
    removed: List[Listing]
    changed: List[Listing]
    unchanged: List[Listing]

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.changed)
