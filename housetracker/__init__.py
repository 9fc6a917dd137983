"""HouseTracker package initialization."""

from .cache import COLLECTION_KEY, Mutation, QueryCache, QueryState
from .client import HouseApiClient
from .diff import diff_listings
from .errors import (
    DiscoveryNotFound,
    LoadError,
    MutationError,
    NotFoundError,
    RemoteError,
)
from .export import export_listings_to_xlsx
from .models import (
    DiffResult,
    DiscoveryResult,
    Listing,
    ListingDraft,
    ListingUpdate,
)
from .views import DetailView, InsertView, ListView, MapView
from .web import create_app

__all__ = [
    "COLLECTION_KEY",
    "DetailView",
    "DiffResult",
    "DiscoveryNotFound",
    "DiscoveryResult",
    "HouseApiClient",
    "InsertView",
    "ListView",
    "Listing",
    "ListingDraft",
    "ListingUpdate",
    "LoadError",
    "MapView",
    "Mutation",
    "MutationError",
    "NotFoundError",
    "QueryCache",
    "QueryState",
    "RemoteError",
    "create_app",
    "diff_listings",
    "export_listings_to_xlsx",
]
