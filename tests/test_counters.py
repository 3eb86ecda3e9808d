"""Tests for view and like counters."""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from discovery.error_handling import StoreUnavailableError
from discovery.services import PlaceholderCounterService, RedisCounterService

from conftest import build_listing


@pytest.mark.asyncio
async def test_placeholder_serves_stored_view_count():
    counters = PlaceholderCounterService()
    listing = build_listing("a", views_count=12)

    result = await counters.get_counters(listing)
    assert result.view_count == 12
    assert result.like_count == 0

    assert await counters.record_view(listing) == 13
    assert (await counters.get_counters(listing)).view_count == 13


@pytest.mark.asyncio
async def test_placeholder_likes_never_negative():
    counters = PlaceholderCounterService()

    assert await counters.record_like("a", liked=False) == 0
    assert await counters.record_like("a") == 1
    assert await counters.record_like("a") == 2
    assert await counters.record_like("a", liked=False) == 1


@pytest.mark.asyncio
async def test_redis_counters_fall_back_for_unseen_listings():
    client = AsyncMock()
    client.mget = AsyncMock(return_value=[None, "4"])
    counters = RedisCounterService(client)

    result = await counters.get_counters(build_listing("a", views_count=7))

    client.mget.assert_awaited_once_with("listing:a:views", "listing:a:likes")
    assert result.view_count == 7
    assert result.like_count == 4


@pytest.mark.asyncio
async def test_redis_unlike_is_floored_at_zero():
    client = AsyncMock()
    client.decr = AsyncMock(return_value=-1)
    counters = RedisCounterService(client)

    assert await counters.record_like("a", liked=False) == 0
    client.set.assert_awaited_once_with("listing:a:likes", 0)


@pytest.mark.asyncio
async def test_redis_view_failure_is_store_unavailable():
    client = AsyncMock()
    client.incr = AsyncMock(side_effect=RedisConnectionError("refused"))
    counters = RedisCounterService(client)

    with pytest.raises(StoreUnavailableError):
        await counters.record_view(build_listing("a"))


@pytest.mark.asyncio
async def test_placeholder_record_view_continues_from_stored_count():
    counters = PlaceholderCounterService()
    listing = build_listing("a", views_count=500)

    assert await counters.record_view(listing) == 501
    assert await counters.record_view(listing) == 502
    assert (await counters.get_counters(listing)).view_count == 502


@pytest.mark.asyncio
async def test_redis_record_view_seeds_from_stored_count():
    """Test that the first recorded view counts on top of views_count."""
    client = AsyncMock()
    client.incr = AsyncMock(return_value=501)
    counters = RedisCounterService(client)

    assert await counters.record_view(build_listing("a", views_count=500)) == 501

    client.set.assert_awaited_once_with("listing:a:views", 500, nx=True)
    client.incr.assert_awaited_once_with("listing:a:views")
