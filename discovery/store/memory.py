"""
In-memory listing store.

Evaluates compiled queries directly against Listing objects. Used by the
test-suite, the CLI's fixture mode and the `memory` store backend.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from discovery.geo import within_radius
from discovery.models import Listing, ListingDetail, ListingMedia, OwnerSummary
from discovery.query.compiler import CompiledQuery
from .base import ListingStore, ProfileDirectory


logger = logging.getLogger(__name__)


class InMemoryListingStore(ListingStore, ProfileDirectory):
    """Listing store backed by plain Python collections.

    Attributes:
        listings: Listings in insertion order
        details: Detail records keyed by listing id
        media: Media collections keyed by listing id
        profiles: Owner summaries keyed by owner id
    """

    def __init__(
        self,
        listings: Iterable[Listing] = (),
        details: Optional[Iterable[ListingDetail]] = None,
        media: Optional[Iterable[ListingMedia]] = None,
        profiles: Optional[Iterable[OwnerSummary]] = None
    ):
        self.listings: List[Listing] = list(listings)
        self.details: Dict[str, ListingDetail] = {d.listing_id: d for d in details or ()}
        self.media: Dict[str, List[ListingMedia]] = {}
        for item in media or ():
            self.media.setdefault(item.listing_id, []).append(item)
        self.profiles: Dict[str, OwnerSummary] = {p.id: p for p in profiles or ()}

    @classmethod
    def from_fixture(cls, path: str) -> "InMemoryListingStore":
        """Load a JSON fixture with listings, details, media and profiles arrays."""
        with open(Path(path), 'r') as f:
            data = json.load(f)
        store = cls(
            listings=[Listing(**item) for item in data.get("listings", [])],
            details=[ListingDetail(**item) for item in data.get("details", [])],
            media=[ListingMedia(**item) for item in data.get("media", [])],
            profiles=[OwnerSummary(**item) for item in data.get("profiles", [])],
        )
        logger.info(f"Loaded {len(store.listings)} listings from {path}")
        return store

    def add(self, listing: Listing) -> None:
        self.listings.append(listing)

    async def find_ids_within_radius(
        self,
        latitude: float,
        longitude: float,
        radius_km: float
    ) -> List[str]:
        return [
            listing.id
            for listing in self.listings
            if listing.is_live
            and listing.has_coordinates
            and within_radius(latitude, longitude, listing.latitude, listing.longitude, radius_km)
        ]

    async def query(self, compiled: CompiledQuery) -> Tuple[List[Listing], int]:
        matched = [listing for listing in self.listings if compiled.matches(listing)]

        # Stable sorts applied from the least significant term upwards
        for term in reversed(compiled.ordering):
            matched.sort(key=lambda listing: _sort_key(term.key(listing), term.descending), reverse=term.descending)

        window = matched[compiled.offset:compiled.offset + compiled.limit]
        return window, len(matched)

    async def get_listing(self, listing_id: str) -> Optional[Listing]:
        for listing in self.listings:
            if listing.id == listing_id and listing.is_live:
                return listing
        return None

    async def get_detail(self, listing_id: str) -> Optional[ListingDetail]:
        return self.details.get(listing_id)

    async def get_media(self, listing_id: str) -> List[ListingMedia]:
        return list(self.media.get(listing_id, []))

    async def get_owner_summary(self, owner_id: str) -> Optional[OwnerSummary]:
        return self.profiles.get(owner_id)


def _sort_key(value: Any, descending: bool) -> Tuple[int, Any]:
    # Missing values sort last in either direction
    if value is None:
        return (0, 0) if descending else (1, 0)
    return (1, value) if descending else (0, value)
