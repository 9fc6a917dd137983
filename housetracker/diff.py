"""Diff utilities for comparing collection snapshots."""

from __future__ import annotations

from typing import Iterable

from .models import DiffResult, Listing


def diff_listings(
    previous: Iterable[Listing],
    current: Iterable[Listing],
) -> DiffResult:
    """Compute added, removed, and unchanged listings keyed by id.

    A listing whose id survives but whose fields changed is reported as
    ``changed`` rather than ``unchanged``.
    """
    previous_map = {listing.id: listing for listing in previous}
    current_map = {listing.id: listing for listing in current}

    added = []
    changed = []
    unchanged = []
    for listing_id, listing in current_map.items():
        before = previous_map.get(listing_id)
        if before is None:
            added.append(listing)
        elif before != listing:
            changed.append(listing)
        else:
            unchanged.append(listing)

    removed = [
        listing for listing_id, listing in previous_map.items()
        if listing_id not in current_map
    ]

    return DiffResult(added=added,
                      removed=removed,
                      changed=changed,
                      unchanged=unchanged)
