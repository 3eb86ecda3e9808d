"""
Collaborator interfaces consumed by property discovery.

Implementations trust their inputs: specifications are validated and
compiled before any store method is called. Driver and network failures must
surface as StoreUnavailableError.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from discovery.models import Listing, ListingDetail, ListingMedia, OwnerSummary
from discovery.query.compiler import CompiledQuery


class ListingStore(ABC):
    """Relational listing collection plus one geospatial primitive."""

    @abstractmethod
    async def find_ids_within_radius(
        self,
        latitude: float,
        longitude: float,
        radius_km: float
    ) -> List[str]:
        """Identifiers of live listings within radius_km of the center."""
        ...

    @abstractmethod
    async def query(self, compiled: CompiledQuery) -> Tuple[List[Listing], int]:
        """Apply predicates, ordering and the page window.

        Returns:
            The page of listings and the match count before pagination
        """
        ...

    @abstractmethod
    async def get_listing(self, listing_id: str) -> Optional[Listing]:
        """One live listing by id, or None."""
        ...

    @abstractmethod
    async def get_detail(self, listing_id: str) -> Optional[ListingDetail]:
        ...

    @abstractmethod
    async def get_media(self, listing_id: str) -> List[ListingMedia]:
        ...


class ProfileDirectory(ABC):
    """Read-only projection of owner profiles."""

    @abstractmethod
    async def get_owner_summary(self, owner_id: str) -> Optional[OwnerSummary]:
        ...
