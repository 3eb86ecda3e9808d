"""
PostgreSQL listing store backed by an asyncpg connection pool.
"""

import asyncio
import json
import logging
from typing import List, Optional, Tuple

import asyncpg

from discovery.error_handling import StoreUnavailableError
from discovery.models import Listing, ListingDetail, ListingMedia, OwnerSummary
from discovery.query.compiler import CompiledQuery
from .base import ListingStore, ProfileDirectory
from .sql import LISTING_BY_ID_SQL, RADIUS_SQL, build_count, build_select

logger = logging.getLogger(__name__)

# Failures that mean "the store is unavailable" rather than a programming error
STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


class PostgresListingStore(ListingStore, ProfileDirectory):
    """Listing store issuing parameterized SQL through an asyncpg pool"""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def find_ids_within_radius(
        self,
        latitude: float,
        longitude: float,
        radius_km: float
    ) -> List[str]:
        try:
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(RADIUS_SQL, latitude, longitude, radius_km)
        except STORE_ERRORS as e:
            logger.error(f"Radius lookup failed: {e}")
            raise StoreUnavailableError(cause=e) from e
        return [row['id'] for row in rows]

    async def query(self, compiled: CompiledQuery) -> Tuple[List[Listing], int]:
        count_sql, count_args = build_count(compiled)
        select_sql, select_args = build_select(compiled)
        try:
            async with self.pool.acquire() as conn:
                total = await conn.fetchval(count_sql, *count_args)
                rows = await conn.fetch(select_sql, *select_args)
        except STORE_ERRORS as e:
            logger.error(f"Listing query failed: {e}")
            raise StoreUnavailableError(cause=e) from e
        return [Listing.model_validate(dict(row)) for row in rows], int(total or 0)

    async def get_listing(self, listing_id: str) -> Optional[Listing]:
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(LISTING_BY_ID_SQL, listing_id)
        except STORE_ERRORS as e:
            raise StoreUnavailableError(cause=e) from e
        return Listing.model_validate(dict(row)) if row else None

    async def get_detail(self, listing_id: str) -> Optional[ListingDetail]:
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow("""
                    SELECT listing_id, toilets, parking_spaces, year_built,
                           furnished, amenities, metadata
                    FROM listing_details
                    WHERE listing_id = $1
                """, listing_id)
        except STORE_ERRORS as e:
            raise StoreUnavailableError(cause=e) from e

        if row is None:
            return None
        data = dict(row)
        if isinstance(data.get('metadata'), str):
            data['metadata'] = json.loads(data['metadata'])
        data['metadata'] = data.get('metadata') or {}
        data['amenities'] = data.get('amenities') or []
        return ListingDetail(**data)

    async def get_media(self, listing_id: str) -> List[ListingMedia]:
        try:
            async with self.pool.acquire() as conn:
                rows = await conn.fetch("""
                    SELECT id, listing_id, media_type, file_url, is_primary, position
                    FROM listing_media
                    WHERE listing_id = $1
                    ORDER BY is_primary DESC, position ASC, id ASC
                """, listing_id)
        except STORE_ERRORS as e:
            raise StoreUnavailableError(cause=e) from e
        return [ListingMedia(**dict(row)) for row in rows]

    async def get_owner_summary(self, owner_id: str) -> Optional[OwnerSummary]:
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow("""
                    SELECT id, full_name, avatar_url, email, phone, user_type
                    FROM profiles
                    WHERE id = $1
                """, owner_id)
        except STORE_ERRORS as e:
            raise StoreUnavailableError(cause=e) from e
        return OwnerSummary(**dict(row)) if row else None
