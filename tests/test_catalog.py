"""Tests for the facet catalog."""

import pytest

from discovery.catalog import (
    DEFAULT_SORT,
    MULTI_VALUED_FACETS,
    InternetType,
    NepaStatus,
    PropertyType,
    SecurityType,
    SortKey,
    WaterSource,
    is_legal,
    legal_values,
    resolve_sort_key,
)


def test_property_types_cover_catalog():
    """Test that every property type in the catalog is accepted."""
    assert legal_values(PropertyType) == {
        "house", "apartment", "duplex", "land", "commercial",
        "event_center", "hotel", "shop", "office",
    }


def test_infrastructure_facets():
    """Test the regional infrastructure enumerations."""
    assert is_legal(NepaStatus, "generator_only")
    assert is_legal(WaterSource, "borehole")
    assert is_legal(InternetType, "4g")
    assert not is_legal(InternetType, "5g")
    assert not is_legal(WaterSource, "Borehole")


def test_security_type_is_multi_valued():
    """Test that security_type is matched as a set."""
    assert MULTI_VALUED_FACETS["security_type"] is SecurityType


def test_default_sort_is_newest():
    assert DEFAULT_SORT is SortKey.NEWEST


@pytest.mark.parametrize("value,expected", [
    ("newest", SortKey.NEWEST),
    ("oldest", SortKey.OLDEST),
    ("price_asc", SortKey.PRICE_ASC),
    ("price_desc", SortKey.PRICE_DESC),
    ("distance", SortKey.DISTANCE),
    ("relevance", SortKey.NEWEST),
])
def test_resolve_sort_key(value, expected):
    """Test sort keys and the relevance alias."""
    assert resolve_sort_key(value) is expected


def test_resolve_sort_key_rejects_unknown():
    with pytest.raises(ValueError):
        resolve_sort_key("cheapest")
