"""
Result assembler for property discovery.

Joins each matched listing with its detail record, media and owner summary,
and computes the derived fields shown on result cards. A failed join for one
row degrades that row only; it is logged and never fails the page.
"""

import asyncio
import logging
import math
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, List, Optional, Tuple

from discovery.error_handling import EnrichmentError
from discovery.models import EnrichedListing, Listing, OwnerSummary
from discovery.query.compiler import distance_from
from discovery.store.base import ListingStore, ProfileDirectory
from .counters import CounterService, ListingCounters, PlaceholderCounterService
from .profile_cache import ProfileSummaryCache

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 60 * 60 * 24


def days_listed(created_at: datetime, now: datetime) -> int:
    """Whole days between creation and now, never negative."""
    if created_at.tzinfo is None and now.tzinfo is not None:
        now = now.astimezone(timezone.utc).replace(tzinfo=None)
    elif created_at.tzinfo is not None and now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    elapsed = (now - created_at).total_seconds()
    return max(0, math.floor(elapsed / SECONDS_PER_DAY))


class ResultAssembler:
    """Enriches listing rows for the explore response.

    Attributes:
        store: Source of detail and media records
        profiles: Owner summary projection
        counters: View/like counter service
        profile_cache: Optional cache in front of the profile projection
        clock: Returns "now" for days-listed computation
    """

    def __init__(
        self,
        store: ListingStore,
        profiles: ProfileDirectory,
        counters: Optional[CounterService] = None,
        profile_cache: Optional[ProfileSummaryCache] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.store = store
        self.profiles = profiles
        self.counters = counters or PlaceholderCounterService()
        self.profile_cache = profile_cache
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def assemble(
        self,
        listings: List[Listing],
        origin: Optional[Tuple[float, float]] = None
    ) -> List[EnrichedListing]:
        """Enrich a page of listings concurrently, preserving order."""
        now = self.clock()
        return list(await asyncio.gather(
            *(self.enrich(listing, origin=origin, now=now) for listing in listings)
        ))

    async def enrich(
        self,
        listing: Listing,
        origin: Optional[Tuple[float, float]] = None,
        now: Optional[datetime] = None
    ) -> EnrichedListing:
        detail = await self._join(listing, "detail", lambda: self.store.get_detail(listing.id), None)
        media = await self._join(listing, "media", lambda: self.store.get_media(listing.id), [])
        owner = None
        if listing.owner_id:
            owner = await self._join(listing, "owner", lambda: self._load_owner(listing.owner_id), None)
        counters = await self._join(
            listing, "counters", lambda: self.counters.get_counters(listing), ListingCounters()
        )

        distance = distance_from(origin, listing)
        return EnrichedListing(
            **listing.model_dump(),
            detail=detail,
            media=media,
            owner=owner,
            days_listed=days_listed(listing.created_at, now or self.clock()),
            view_count=counters.view_count,
            like_count=counters.like_count,
            distance_km=round(distance, 3) if distance is not None else None,
        )

    async def _join(
        self,
        listing: Listing,
        part: str,
        load: Callable[[], Awaitable[Any]],
        default: Any
    ) -> Any:
        try:
            return await load()
        except Exception as e:
            logger.warning(str(EnrichmentError(listing.id, part, e)))
            return default

    async def _load_owner(self, owner_id: str) -> Optional[OwnerSummary]:
        if self.profile_cache is None:
            return await self.profiles.get_owner_summary(owner_id)
        return await self.profile_cache.get_or_load(owner_id, self.profiles.get_owner_summary)

