"""Listing data models"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, List, Optional

from discovery.catalog import (
    InternetType,
    ListingStatus,
    ListingType,
    NepaStatus,
    PriceFrequency,
    PropertyType,
    SecurityType,
    WaterSource,
)


class ListingBase(BaseModel):
    """Base listing fields"""
    title: str
    description: Optional[str] = None
    property_type: PropertyType
    listing_type: Optional[ListingType] = None
    price: float
    price_frequency: PriceFrequency = PriceFrequency.SALE

    # Location
    address: Optional[str] = None
    state: Optional[str] = None
    lga: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    # Structure
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    size_sqm: Optional[float] = None
    has_bq: bool = False

    # Regional infrastructure
    nepa_status: Optional[NepaStatus] = None
    water_source: Optional[WaterSource] = None
    internet_type: Optional[InternetType] = None
    security_type: List[SecurityType] = Field(default_factory=list)


class Listing(ListingBase):
    """Complete listing model as stored"""
    id: str
    owner_id: Optional[str] = None
    status: ListingStatus = ListingStatus.DRAFT
    verified_at: Optional[datetime] = None
    is_featured: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None
    views_count: int = 0

    class Config:
        from_attributes = True

    @property
    def is_live(self) -> bool:
        return self.status == ListingStatus.LIVE

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class ListingDetail(BaseModel):
    """One-to-one detail record; absent for many listings"""
    listing_id: str
    toilets: Optional[int] = None
    parking_spaces: Optional[int] = None
    year_built: Optional[int] = None
    furnished: Optional[bool] = None
    amenities: List[str] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        from_attributes = True


class ListingMedia(BaseModel):
    """A photo, video or virtual tour attached to a listing"""
    id: str
    listing_id: str
    media_type: str = "image"
    file_url: str
    is_primary: bool = False
    position: int = 0

    class Config:
        from_attributes = True


class OwnerSummary(BaseModel):
    """Public projection of the owning profile. Never the full profile."""
    id: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    user_type: Optional[str] = None

    class Config:
        from_attributes = True


class EnrichedListing(Listing):
    """Listing joined with its related records and derived fields"""
    detail: Optional[ListingDetail] = None
    media: List[ListingMedia] = Field(default_factory=list)
    owner: Optional[OwnerSummary] = None

    # Derived, not persisted
    days_listed: int = 0
    view_count: int = 0
    like_count: int = 0
    distance_km: Optional[float] = None
