"""
Facet catalog for property discovery.

Every recognized filter dimension and its legal values. Membership tests are
the only behavior; anything outside these sets is a validation failure.
"""

from enum import Enum
from typing import Dict, FrozenSet, Type


class PropertyType(str, Enum):
    """Property categories a listing can be filed under"""
    HOUSE = "house"
    APARTMENT = "apartment"
    DUPLEX = "duplex"
    LAND = "land"
    COMMERCIAL = "commercial"
    EVENT_CENTER = "event_center"
    HOTEL = "hotel"
    SHOP = "shop"
    OFFICE = "office"


class ListingType(str, Enum):
    """Commercial terms a listing is offered under"""
    FOR_RENT = "for_rent"
    FOR_SALE = "for_sale"
    FOR_LEASE = "for_lease"
    SHORT_LET = "short_let"


class PriceFrequency(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"
    SALE = "sale"
    NIGHTLY = "nightly"


class NepaStatus(str, Enum):
    """Grid power reliability"""
    STABLE = "stable"
    INTERMITTENT = "intermittent"
    POOR = "poor"
    NONE = "none"
    GENERATOR_ONLY = "generator_only"


class WaterSource(str, Enum):
    BOREHOLE = "borehole"
    PUBLIC_WATER = "public_water"
    WELL = "well"
    WATER_VENDOR = "water_vendor"
    NONE = "none"


class InternetType(str, Enum):
    FIBER = "fiber"
    STARLINK = "starlink"
    FOUR_G = "4g"
    THREE_G = "3g"
    NONE = "none"


class SecurityType(str, Enum):
    """Security features; a listing carries a set of these"""
    GATED_COMMUNITY = "gated_community"
    SECURITY_POST = "security_post"
    CCTV = "cctv"
    PERIMETER_FENCE = "perimeter_fence"
    SECURITY_DOGS = "security_dogs"
    NONE = "none"


class ListingStatus(str, Enum):
    """Lifecycle states. Only LIVE listings are discoverable."""
    DRAFT = "draft"
    PENDING_REVIEW = "pending_review"
    LIVE = "live"
    INACTIVE = "inactive"
    SOLD = "sold"
    RENTED = "rented"


class SortKey(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    DISTANCE = "distance"


class ViewMode(str, Enum):
    """Presentation of a result page. Never affects filtering."""
    GRID = "grid"
    LIST = "list"
    MAP = "map"


# "relevance" has no scoring behind it and is served as recency
SORT_ALIASES: Dict[str, SortKey] = {
    "relevance": SortKey.NEWEST,
}

DEFAULT_SORT = SortKey.NEWEST

# Single-valued infrastructure facets, keyed by their wire name
INFRASTRUCTURE_FACETS: Dict[str, Type[Enum]] = {
    "nepa_status": NepaStatus,
    "water_source": WaterSource,
    "internet_type": InternetType,
}

# Multi-valued facets, matched with set-overlap semantics
MULTI_VALUED_FACETS: Dict[str, Type[Enum]] = {
    "security_type": SecurityType,
}


def legal_values(facet: Type[Enum]) -> FrozenSet[str]:
    """Return the wire values accepted for a facet enumeration."""
    return frozenset(member.value for member in facet)


def is_legal(facet: Type[Enum], value: str) -> bool:
    """Membership test against a facet enumeration."""
    return value in legal_values(facet)


def resolve_sort_key(value: str) -> SortKey:
    """Map a wire sort value (including aliases) onto a SortKey.

    Raises:
        ValueError: If the value is neither a sort key nor an alias
    """
    if value in SORT_ALIASES:
        return SORT_ALIASES[value]
    return SortKey(value)
