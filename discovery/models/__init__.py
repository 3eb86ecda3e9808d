"""Data models for RealEst property discovery"""

from .listing import (
    EnrichedListing,
    Listing,
    ListingBase,
    ListingDetail,
    ListingMedia,
    OwnerSummary,
)
from .search import ExploreResponse, FiltersEcho, Pagination

__all__ = [
    "EnrichedListing",
    "Listing",
    "ListingBase",
    "ListingDetail",
    "ListingMedia",
    "OwnerSummary",
    "ExploreResponse",
    "FiltersEcho",
    "Pagination",
]
