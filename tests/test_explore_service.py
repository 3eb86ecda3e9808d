"""Tests for the explore orchestrator."""

from unittest.mock import AsyncMock

import pytest

from discovery.error_handling import QueryValidationError, StoreUnavailableError
from discovery.services import ExploreService, ResultAssembler


@pytest.mark.asyncio
async def test_explore_returns_page_with_echo(explore_service):
    response = await explore_service.explore({
        "state": "Lagos",
        "per_page": "2",
        "sort_by": "price_desc",
        "unknown": "ignored",
    })

    assert [row.id for row in response.data] == ["lekki-duplex", "ajah-land"]
    assert response.pagination.total == 3
    assert response.pagination.total_pages == 2
    assert response.pagination.has_next is True
    assert response.pagination.has_prev is False
    assert response.filters.applied == {"state": "Lagos"}
    assert response.data[0].owner.full_name == "Ada Obi"


@pytest.mark.asyncio
async def test_validation_happens_before_store_access(settings):
    store = AsyncMock()
    service = ExploreService(store, ResultAssembler(store, store), settings)

    with pytest.raises(QueryValidationError):
        await service.explore({"bedrooms": "many"})

    store.query.assert_not_called()
    store.find_ids_within_radius.assert_not_called()


@pytest.mark.asyncio
async def test_store_failure_propagates(settings):
    store = AsyncMock()
    store.query = AsyncMock(side_effect=StoreUnavailableError())
    service = ExploreService(store, ResultAssembler(store, store), settings)

    with pytest.raises(StoreUnavailableError):
        await service.explore({})


@pytest.mark.asyncio
async def test_empty_result_is_not_an_error(explore_service):
    response = await explore_service.explore({"state": "Kano"})

    assert response.is_empty
    assert response.data == []
    assert response.pagination.total_pages == 0


@pytest.mark.asyncio
async def test_record_view_uses_counter_service(explore_service):
    assert await explore_service.record_view("ikoyi-flat") == 1
    assert await explore_service.record_view("ikoyi-flat") == 2


@pytest.mark.asyncio
async def test_record_view_counts_on_top_of_stored_views(explore_service, store):
    store.listings[1] = store.listings[1].model_copy(update={"views_count": 500})

    assert await explore_service.record_view("ikoyi-flat") == 501


@pytest.mark.asyncio
async def test_record_view_ignores_unknown_and_draft_listings(explore_service):
    assert await explore_service.record_view("missing") is None
    assert await explore_service.record_view("lekki-draft") is None
