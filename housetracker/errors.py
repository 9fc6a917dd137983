"""Exception hierarchy shared by the client, the query cache and the views."""

from __future__ import annotations


class HouseTrackerError(Exception):
    """Base class for every error raised by HouseTracker."""


class RemoteError(HouseTrackerError):
    """The house API could not be reached or answered with a failure."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(RemoteError):
    """The house API answered 404."""

    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class LoadError(HouseTrackerError):
    """A cached query (collection, item or discovery) failed to load."""


class DiscoveryNotFound(LoadError):
    """No metadata could be discovered for a link."""

    def __init__(self, link: str):
        super().__init__(f"Not found: {link}")
        self.link = link


class MutationError(HouseTrackerError):
    """An insert, update or delete was rejected by the house API."""


__all__ = [
    "DiscoveryNotFound",
    "HouseTrackerError",
    "LoadError",
    "MutationError",
    "NotFoundError",
    "RemoteError",
]
