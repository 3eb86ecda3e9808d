"""
Explore routes for faceted property discovery.
"""

import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from discovery.error_handling import QueryValidationError, StoreUnavailableError
from discovery.models import ExploreResponse
from discovery.query import collect_query_params
from discovery.services import ExploreService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_explore_service(request: Request) -> ExploreService:
    """Explore service built at startup"""
    return request.app.state.explore_service


@router.get("/properties/explore", response_model=ExploreResponse)
async def explore_properties(
    request: Request,
    service: ExploreService = Depends(get_explore_service)
):
    """
    Search live listings.

    Every query parameter is optional. Multi-valued facets (security_type)
    may be repeated or comma separated. Unknown parameters are ignored.
    """
    raw = collect_query_params(request.query_params.multi_items())

    try:
        return await service.explore(raw)

    except QueryValidationError as e:
        return JSONResponse(status_code=400, content=e.to_dict())
    except StoreUnavailableError as e:
        logger.error(f"Explore query failed: {e} (cause: {e.cause!r})")
        return JSONResponse(status_code=503, content={"error": "Failed to fetch properties"})
    except Exception as e:
        logger.exception(f"Unexpected explore failure: {e}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


@router.post("/properties/{listing_id}/view")
async def record_property_view(
    listing_id: str,
    service: ExploreService = Depends(get_explore_service)
):
    """Increment the view counter for a listing"""
    try:
        views = await service.record_view(listing_id)
        if views is None:
            return JSONResponse(status_code=404, content={"error": "Property not found"})
        return {"listing_id": listing_id, "views": views}

    except StoreUnavailableError as e:
        logger.error(f"Failed to record view for {listing_id}: {e}")
        return JSONResponse(status_code=503, content={"error": "Failed to record view"})
    except Exception as e:
        logger.exception(f"Unexpected view tracking failure for {listing_id}: {e}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
