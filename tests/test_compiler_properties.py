"""
Property-based tests for query compilation and execution.

These tests run compiled queries against the in-memory store and check the
result sets against a brute-force evaluation of the same filters.
"""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from hypothesis import given, settings, strategies as st

from discovery.catalog import ListingStatus, SecurityType, SortKey
from discovery.geo import haversine_km
from discovery.models import Listing
from discovery.query import Operator, compile_query, execute, normalize
from discovery.store import InMemoryListingStore

from conftest import build_listing


STATES = ["Lagos", "FCT", "Oyo"]
BASE = datetime(2024, 1, 1)

# Strategy for generating one listing's facet values; ids are assigned later
listing_parts = st.fixed_dictionaries({
    "state": st.sampled_from(STATES),
    "property_type": st.sampled_from(["house", "apartment", "duplex", "land"]),
    "price": st.integers(min_value=0, max_value=1_000_000),
    "bedrooms": st.one_of(st.none(), st.integers(min_value=0, max_value=6)),
    "has_bq": st.booleans(),
    "status": st.sampled_from(["live", "live", "live", "draft", "sold"]),
    "security_type": st.lists(st.sampled_from([m.value for m in SecurityType]), max_size=3, unique=True),
    # Few distinct timestamps so ties are common
    "age_days": st.integers(min_value=0, max_value=4),
    "latitude": st.floats(min_value=6.3, max_value=6.7, allow_nan=False),
    "longitude": st.floats(min_value=3.2, max_value=3.6, allow_nan=False),
})

catalogs = st.lists(listing_parts, min_size=0, max_size=30)

specs = st.fixed_dictionaries({
    "state": st.one_of(st.none(), st.sampled_from(STATES)),
    "property_type": st.one_of(st.none(), st.sampled_from(["house", "apartment", "duplex", "land"])),
    "min_price": st.one_of(st.none(), st.integers(min_value=0, max_value=500_000)),
    "bedrooms": st.one_of(st.none(), st.integers(min_value=0, max_value=4)),
    "has_bq": st.one_of(st.none(), st.booleans()),
    "security_type": st.lists(st.sampled_from([m.value for m in SecurityType]), max_size=2, unique=True),
    "sort_by": st.sampled_from([m.value for m in SortKey]),
    "per_page": st.integers(min_value=1, max_value=7),
})


def build_catalog(parts_list):
    listings = []
    for index, parts in enumerate(parts_list):
        parts = dict(parts)
        age_days = parts.pop("age_days")
        listings.append(build_listing(
            f"listing-{index:03d}",
            created_at=BASE - timedelta(days=age_days),
            **parts
        ))
    return listings


def brute_force_matches(listing: Listing, raw: dict) -> bool:
    """Reference evaluation of the filters, independent of the compiler."""
    if listing.status != ListingStatus.LIVE:
        return False
    if raw["state"] is not None and listing.state != raw["state"]:
        return False
    if raw["property_type"] is not None and listing.property_type.value != raw["property_type"]:
        return False
    if raw["min_price"] is not None and listing.price < raw["min_price"]:
        return False
    if raw["bedrooms"] is not None and (listing.bedrooms is None or listing.bedrooms < raw["bedrooms"]):
        return False
    if raw["has_bq"] is not None and listing.has_bq != raw["has_bq"]:
        return False
    if raw["security_type"]:
        wanted = set(raw["security_type"])
        if not wanted & {item.value for item in listing.security_type}:
            return False
    return True


async def fetch_all_pages(store, raw):
    """Walk every page of a query; return (ids in order, totals seen)."""
    ids, totals = [], []
    page = 1
    while True:
        spec = normalize({**raw, "page": page})
        result = await execute(compile_query(spec), store)
        totals.append(result.total)
        ids.extend(listing.id for listing in result.listings)
        if not result.pagination.has_next:
            return ids, totals
        page += 1


@pytest.mark.asyncio
@given(parts_list=catalogs, raw=specs)
@settings(max_examples=100, deadline=None)
async def test_results_satisfy_every_filter(parts_list, raw):
    """
    **Feature: property-discovery, Property: Conjunctive correctness**

    For any catalog and specification, every returned listing is live and
    satisfies every supplied filter, and the total equals the brute-force
    match count.
    """
    catalog = build_catalog(parts_list)
    store = InMemoryListingStore(catalog)

    spec = normalize(raw)
    result = await execute(compile_query(spec), store)

    expected = [listing for listing in catalog if brute_force_matches(listing, raw)]
    assert result.total == len(expected)
    assert len(result.listings) <= spec.per_page
    for listing in result.listings:
        assert brute_force_matches(listing, raw), f"{listing.id} violates {raw}"


@pytest.mark.asyncio
@given(parts_list=catalogs, raw=specs)
@settings(max_examples=100, deadline=None)
async def test_pages_partition_the_match_set(parts_list, raw):
    """
    **Feature: property-discovery, Property: Pagination is a stable partition**

    Walking every page yields each match exactly once, and the total is the
    same on every page.
    """
    catalog = build_catalog(parts_list)
    store = InMemoryListingStore(catalog)

    ids, totals = await fetch_all_pages(store, raw)
    expected = {listing.id for listing in catalog if brute_force_matches(listing, raw)}

    assert len(set(totals)) == 1
    assert len(ids) == len(set(ids))
    assert set(ids) == expected


@pytest.mark.asyncio
@given(parts_list=catalogs, sort_by=st.sampled_from(["newest", "oldest", "price_asc", "price_desc"]))
@settings(max_examples=100, deadline=None)
async def test_sort_order_respected(parts_list, sort_by):
    """
    **Feature: property-discovery, Property: Deterministic ordering**

    Results are ordered by the sort key, ties broken by creation time then id.
    """
    catalog = build_catalog(parts_list)
    store = InMemoryListingStore(catalog)

    spec = normalize({"sort_by": sort_by, "per_page": 50})
    result = await execute(compile_query(spec), store)
    rows = result.listings

    def key(listing):
        if sort_by == "newest":
            return (-listing.created_at.timestamp(), listing.id)
        if sort_by == "oldest":
            return (listing.created_at.timestamp(), listing.id)
        if sort_by == "price_asc":
            return (listing.price, listing.created_at.timestamp(), listing.id)
        return (-listing.price, listing.created_at.timestamp(), listing.id)

    assert [listing.id for listing in rows] == [listing.id for listing in sorted(rows, key=key)]


@pytest.mark.asyncio
@given(
    parts_list=catalogs,
    radius_km=st.floats(min_value=1, max_value=30, allow_nan=False),
)
@settings(max_examples=100, deadline=None)
async def test_radius_restricts_to_candidates(parts_list, radius_km):
    """
    **Feature: property-discovery, Property: Radius pre-filter**

    With a radius, every result lies within it, and results never include
    listings outside the candidate set.
    """
    catalog = build_catalog(parts_list)
    store = InMemoryListingStore(catalog)
    center = (6.5, 3.4)

    spec = normalize({
        "latitude": center[0],
        "longitude": center[1],
        "radius_km": radius_km,
        "per_page": 50,
    })
    result = await execute(compile_query(spec), store)

    expected = {
        listing.id for listing in catalog
        if listing.status == ListingStatus.LIVE
        and haversine_km(center[0], center[1], listing.latitude, listing.longitude) <= radius_km
    }
    assert {listing.id for listing in result.listings} == expected
    assert result.total == len(expected)


@pytest.mark.asyncio
async def test_empty_radius_short_circuits():
    """Test that an empty candidate set returns an empty page without querying."""
    store = AsyncMock()
    store.find_ids_within_radius = AsyncMock(return_value=[])
    store.query = AsyncMock()

    spec = normalize({"latitude": 6.45, "longitude": 3.47, "radius_km": 5, "page": 3})
    result = await execute(compile_query(spec), store)

    assert result.listings == []
    assert result.total == 0
    assert result.page == 3
    assert result.pagination.total_pages == 0
    assert result.pagination.has_next is False
    store.query.assert_not_called()


@pytest.mark.asyncio
async def test_candidate_set_reaches_store():
    """Test that a non-empty radius narrows the relational query by id."""
    store = AsyncMock()
    store.find_ids_within_radius = AsyncMock(return_value=["a", "b"])
    store.query = AsyncMock(return_value=([], 0))

    spec = normalize({"latitude": 6.45, "longitude": 3.47, "radius_km": 5})
    await execute(compile_query(spec), store)

    compiled = store.query.call_args[0][0]
    assert compiled.candidate_ids == {"a", "b"}
    assert compiled.predicates[0].field == "status"
    assert compiled.predicates[1].op is Operator.IN
    assert compiled.predicates[1].value == {"a", "b"}


def test_compiled_predicates_follow_fixed_order():
    spec = normalize({
        "q": "pool",
        "security_type": ["cctv"],
        "min_price": 10,
        "state": "Lagos",
        "verified_only": True,
    })
    compiled = compile_query(spec)

    assert [p.fields[0] for p in compiled.predicates] == [
        "status", "state", "price", "verified_at", "security_type", "title",
    ]
    assert compiled.predicates[-1].fields == ("title", "address", "description")
    assert compiled.offset == 0
    assert compiled.limit == 20


def test_distance_sort_without_center_falls_back_to_newest():
    compiled = compile_query(normalize({"sort_by": "distance"}))

    assert compiled.ordering[0].field == "created_at"
    assert compiled.ordering[0].descending is True
    assert compiled.ordering[-1].field == "id"


@pytest.mark.asyncio
async def test_lagos_duplex_example(store):
    """Lagos duplexes with a BQ, at least 4 bedrooms, cheapest first."""
    spec = normalize({
        "state": "Lagos",
        "property_type": "duplex",
        "bedrooms": 4,
        "has_bq": "true",
        "sort_by": "price_asc",
    })
    result = await execute(compile_query(spec), store)

    # The draft duplex nearby is never discoverable
    assert [listing.id for listing in result.listings] == ["lekki-duplex"]
    assert result.total == 1


@pytest.mark.asyncio
async def test_radius_example_five_vs_eight_km():
    """A listing about 5.6 km away is outside 5 km and inside 8 km."""
    near = build_listing("near", latitude=6.50, longitude=3.47)
    store = InMemoryListingStore([near])

    five = await execute(compile_query(normalize(
        {"latitude": 6.45, "longitude": 3.47, "radius_km": 5}
    )), store)
    eight = await execute(compile_query(normalize(
        {"latitude": 6.45, "longitude": 3.47, "radius_km": 8}
    )), store)

    assert five.total == 0
    assert [listing.id for listing in eight.listings] == ["near"]


@pytest.mark.asyncio
async def test_free_text_matches_title_address_or_description(store):
    by_title = await execute(compile_query(normalize({"q": "SERVICED"})), store)
    by_address = await execute(compile_query(normalize({"q": "admiralty", "per_page": 50})), store)

    assert [listing.id for listing in by_title.listings] == ["ikoyi-flat"]
    assert by_address.total == 4


@pytest.mark.asyncio
async def test_security_type_set_overlap(store):
    """Test that a multi-valued facet matches on any overlap."""
    spec = normalize({"security_type": ["cctv", "security_post"], "sort_by": "oldest"})
    result = await execute(compile_query(spec), store)

    assert [listing.id for listing in result.listings] == ["lekki-duplex", "ikoyi-flat"]


@pytest.mark.asyncio
async def test_page_past_end_is_empty_with_true_total(store):
    spec = normalize({"page": 9, "per_page": 2})
    result = await execute(compile_query(spec), store)

    assert result.listings == []
    assert result.total == 4
    assert result.pagination.total_pages == 2
    assert result.pagination.has_prev is True
