"""
View and like counters for listings.

No authoritative counter source exists yet for every deployment, so the
counter service is pluggable: the placeholder implementation serves the
stored view count and zero likes, the redis implementation keeps real
counters and falls back to the placeholder values for unseen listings.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict

import redis.asyncio as redis
from redis.exceptions import RedisError

from discovery.error_handling import StoreUnavailableError
from discovery.models import Listing

logger = logging.getLogger(__name__)


@dataclass
class ListingCounters:
    view_count: int = 0
    like_count: int = 0


class CounterService(ABC):
    """Source of view/like counts shown on result cards"""

    @abstractmethod
    async def get_counters(self, listing: Listing) -> ListingCounters:
        ...

    @abstractmethod
    async def record_view(self, listing: Listing) -> int:
        """Increment the view counter and return the new total.

        The first recorded view counts on top of the stored views_count.
        """
        ...

    @abstractmethod
    async def record_like(self, listing_id: str, liked: bool = True) -> int:
        """Increment (or decrement when liked is False) the like counter."""
        ...


class PlaceholderCounterService(CounterService):
    """Temporary stand-in: stored views_count plus in-process increments."""

    def __init__(self):
        self.views: Dict[str, int] = {}
        self.likes: Dict[str, int] = {}

    async def get_counters(self, listing: Listing) -> ListingCounters:
        return ListingCounters(
            view_count=listing.views_count + self.views.get(listing.id, 0),
            like_count=self.likes.get(listing.id, 0),
        )

    async def record_view(self, listing: Listing) -> int:
        self.views[listing.id] = self.views.get(listing.id, 0) + 1
        return listing.views_count + self.views[listing.id]

    async def record_like(self, listing_id: str, liked: bool = True) -> int:
        current = self.likes.get(listing_id, 0) + (1 if liked else -1)
        self.likes[listing_id] = max(current, 0)
        return self.likes[listing_id]


class RedisCounterService(CounterService):
    """Counters kept in redis under listing:<id>:views / listing:<id>:likes"""

    KEY_PREFIX = "listing"

    def __init__(self, client: redis.Redis):
        self.client = client

    def _key(self, listing_id: str, counter: str) -> str:
        return f"{self.KEY_PREFIX}:{listing_id}:{counter}"

    async def get_counters(self, listing: Listing) -> ListingCounters:
        views, likes = await self.client.mget(
            self._key(listing.id, "views"),
            self._key(listing.id, "likes"),
        )
        return ListingCounters(
            view_count=int(views) if views is not None else listing.views_count,
            like_count=int(likes) if likes is not None else 0,
        )

    async def record_view(self, listing: Listing) -> int:
        key = self._key(listing.id, "views")
        try:
            # Seed unseen listings with their stored count so INCR continues from it
            await self.client.set(key, listing.views_count, nx=True)
            return int(await self.client.incr(key))
        except RedisError as e:
            raise StoreUnavailableError("Counter store unavailable", cause=e) from e

    async def record_like(self, listing_id: str, liked: bool = True) -> int:
        key = self._key(listing_id, "likes")
        if liked:
            return int(await self.client.incr(key))
        value = int(await self.client.decr(key))
        if value < 0:
            await self.client.set(key, 0)
            value = 0
        return value
