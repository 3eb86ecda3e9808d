"""
Explore orchestrator - coordinates normalization, compilation, execution and
enrichment of one property search.
"""

import logging
import time
from typing import Any, Mapping, Optional

from discovery.config import DiscoverySettings, get_discovery_settings
from discovery.models import ExploreResponse, FiltersEcho
from discovery.query import QuerySpecification, compile_query, execute, normalize
from discovery.store.base import ListingStore
from .assembler import ResultAssembler

logger = logging.getLogger(__name__)


class ExploreService:
    """Orchestrate the complete explore workflow"""

    def __init__(
        self,
        store: ListingStore,
        assembler: ResultAssembler,
        settings: Optional[DiscoverySettings] = None
    ):
        self.store = store
        self.assembler = assembler
        self.settings = settings or get_discovery_settings()

    async def explore(self, raw: Mapping[str, Any]) -> ExploreResponse:
        """
        Validate raw query parameters and run the search.

        Raises:
            QueryValidationError: Before any store access
            StoreUnavailableError: If the store fails
        """
        spec = normalize(raw, self.settings)
        return await self.search(spec)

    async def search(self, spec: QuerySpecification) -> ExploreResponse:
        """
        Run an already-normalized specification.

        1. Compiles the specification
        2. Resolves the radius pre-filter (empty radius -> empty page)
        3. Filters, sorts and paginates in the store
        4. Enriches rows and builds the response
        """
        start_time = time.time()

        compiled = compile_query(spec)
        page = await execute(compiled, self.store)
        data = await self.assembler.assemble(page.listings, origin=spec.center)

        elapsed_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Explore page {spec.page} returned {len(data)}/{page.total} listings "
            f"in {elapsed_ms:.1f}ms"
        )
        return ExploreResponse(
            data=data,
            pagination=page.pagination,
            filters=FiltersEcho(applied=spec.applied_filters()),
        )

    async def record_view(self, listing_id: str) -> Optional[int]:
        """Count one view of a live listing; None if no such listing."""
        listing = await self.store.get_listing(listing_id)
        if listing is None:
            logger.info(f"View for unknown or unpublished listing {listing_id} ignored")
            return None
        return await self.assembler.counters.record_view(listing)
