"""Shared fixtures for discovery tests."""

from datetime import datetime, timedelta

import pytest

from discovery.config import DiscoverySettings
from discovery.models import Listing, ListingDetail, ListingMedia, OwnerSummary
from discovery.services import ExploreService, ResultAssembler
from discovery.store import InMemoryListingStore


BASE_TIME = datetime(2024, 6, 1, 12, 0, 0)


def build_listing(listing_id: str, **overrides) -> Listing:
    """Live Lagos apartment with sensible defaults; override any field."""
    fields = dict(
        id=listing_id,
        owner_id="owner-1",
        title=f"Listing {listing_id}",
        description="Spacious and well lit",
        property_type="apartment",
        listing_type="for_rent",
        price=1_000_000,
        price_frequency="yearly",
        address="12 Admiralty Way",
        state="Lagos",
        lga="Lekki",
        bedrooms=2,
        bathrooms=2,
        status="live",
        created_at=BASE_TIME,
    )
    fields.update(overrides)
    return Listing(**fields)


@pytest.fixture
def settings():
    return DiscoverySettings()


@pytest.fixture
def sample_listings():
    """A small catalog covering the facets most tests filter on."""
    return [
        build_listing(
            "lekki-duplex",
            title="Five bedroom duplex with BQ",
            property_type="duplex",
            listing_type="for_sale",
            price_frequency="sale",
            price=150_000_000,
            bedrooms=5,
            bathrooms=6,
            has_bq=True,
            nepa_status="stable",
            water_source="borehole",
            security_type=["gated_community", "cctv"],
            latitude=6.4474,
            longitude=3.4700,
            verified_at=BASE_TIME,
            created_at=BASE_TIME - timedelta(days=10),
        ),
        build_listing(
            "ikoyi-flat",
            title="Serviced flat in Ikoyi",
            lga="Ikoyi",
            price=8_000_000,
            bedrooms=3,
            nepa_status="intermittent",
            water_source="public_water",
            security_type=["security_post"],
            latitude=6.4550,
            longitude=3.4340,
            created_at=BASE_TIME - timedelta(days=3),
        ),
        build_listing(
            "abuja-office",
            title="Open plan office",
            property_type="office",
            state="FCT",
            lga="Wuse",
            price=12_000_000,
            bedrooms=None,
            bathrooms=1,
            internet_type="fiber",
            latitude=9.0765,
            longitude=7.3986,
            created_at=BASE_TIME - timedelta(days=1),
        ),
        build_listing(
            "lekki-draft",
            title="Unpublished duplex",
            property_type="duplex",
            status="draft",
            price=90_000_000,
            latitude=6.4480,
            longitude=3.4710,
            created_at=BASE_TIME,
        ),
        build_listing(
            "ajah-land",
            title="Dry land plot",
            property_type="land",
            listing_type="for_sale",
            lga="Ajah",
            price=25_000_000,
            bedrooms=None,
            bathrooms=None,
            created_at=BASE_TIME - timedelta(days=30),
        ),
    ]


@pytest.fixture
def store(sample_listings):
    return InMemoryListingStore(
        listings=sample_listings,
        details=[ListingDetail(listing_id="lekki-duplex", toilets=7, parking_spaces=4)],
        media=[
            ListingMedia(id="m2", listing_id="lekki-duplex", file_url="https://cdn.example/2.jpg", position=1),
            ListingMedia(id="m1", listing_id="lekki-duplex", file_url="https://cdn.example/1.jpg", is_primary=True),
        ],
        profiles=[OwnerSummary(id="owner-1", full_name="Ada Obi", email="ada@example.com")],
    )


@pytest.fixture
def explore_service(store, settings):
    assembler = ResultAssembler(store=store, profiles=store, clock=lambda: BASE_TIME)
    return ExploreService(store, assembler, settings)
