"""
Database connection and initialization.
"""

import asyncpg
import redis.asyncio as redis
from typing import Optional
import logging

from discovery.config import StorageConfig

logger = logging.getLogger(__name__)

# Global connection pools
pg_pool: Optional[asyncpg.Pool] = None
redis_client: Optional[redis.Redis] = None


async def init_db(storage: StorageConfig, use_postgres: bool = True, use_redis: bool = False):
    """Initialize database connections"""
    global pg_pool, redis_client

    # PostgreSQL
    if use_postgres:
        try:
            pg_pool = await asyncpg.create_pool(storage.database_url, min_size=2, max_size=10)
            logger.info("PostgreSQL connection pool created")

            # Create tables
            await create_tables()
        except Exception as e:
            logger.error(f"Failed to connect to PostgreSQL: {e}")
            raise

    # Redis is only needed for authoritative counters
    if not use_redis:
        return
    try:
        redis_client = redis.from_url(storage.redis_url, decode_responses=True)
        await redis_client.ping()
        logger.info("Redis connection established")
    except Exception as e:
        logger.error(f"Failed to connect to Redis: {e}")
        raise


async def close_db():
    """Close database connections"""
    global pg_pool, redis_client

    if pg_pool:
        await pg_pool.close()
        pg_pool = None
        logger.info("PostgreSQL connection pool closed")

    if redis_client:
        await redis_client.close()
        redis_client = None
        logger.info("Redis connection closed")


async def create_tables():
    """Create database tables if they don't exist"""
    async with pg_pool.acquire() as conn:
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS profiles (
                id TEXT PRIMARY KEY,
                full_name TEXT,
                avatar_url TEXT,
                email TEXT,
                phone TEXT,
                user_type TEXT,
                created_at TIMESTAMP NOT NULL DEFAULT NOW()
            )
        """)

        # Listings table
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS listings (
                id TEXT PRIMARY KEY,
                owner_id TEXT REFERENCES profiles(id),
                title TEXT NOT NULL,
                description TEXT,
                property_type TEXT NOT NULL,
                listing_type TEXT,
                price DOUBLE PRECISION NOT NULL,
                price_frequency TEXT NOT NULL DEFAULT 'sale',
                address TEXT,
                state TEXT,
                lga TEXT,
                latitude DOUBLE PRECISION,
                longitude DOUBLE PRECISION,
                bedrooms INTEGER,
                bathrooms INTEGER,
                size_sqm DOUBLE PRECISION,
                has_bq BOOLEAN NOT NULL DEFAULT FALSE,
                nepa_status TEXT,
                water_source TEXT,
                internet_type TEXT,
                security_type TEXT[] NOT NULL DEFAULT '{}',
                status TEXT NOT NULL DEFAULT 'draft',
                verified_at TIMESTAMP,
                is_featured BOOLEAN NOT NULL DEFAULT FALSE,
                views_count INTEGER NOT NULL DEFAULT 0,
                created_at TIMESTAMP NOT NULL DEFAULT NOW(),
                updated_at TIMESTAMP
            )
        """)

        await conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_listings_status_created ON listings(status, created_at);
        """)

        await conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_listings_status_price ON listings(status, price);
        """)

        await conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_listings_state_lga ON listings(state, lga);
        """)

        await conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_listings_security_type ON listings USING GIN (security_type);
        """)

        await conn.execute("""
            CREATE TABLE IF NOT EXISTS listing_details (
                listing_id TEXT PRIMARY KEY REFERENCES listings(id),
                toilets INTEGER,
                parking_spaces INTEGER,
                year_built INTEGER,
                furnished BOOLEAN,
                amenities TEXT[] NOT NULL DEFAULT '{}',
                metadata JSONB NOT NULL DEFAULT '{}'
            )
        """)

        await conn.execute("""
            CREATE TABLE IF NOT EXISTS listing_media (
                id TEXT PRIMARY KEY,
                listing_id TEXT NOT NULL REFERENCES listings(id),
                media_type TEXT NOT NULL DEFAULT 'image',
                file_url TEXT NOT NULL,
                is_primary BOOLEAN NOT NULL DEFAULT FALSE,
                position INTEGER NOT NULL DEFAULT 0
            )
        """)

        await conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_listing_media_listing ON listing_media(listing_id);
        """)

        logger.info("Database tables created/verified")


def get_pg_pool() -> asyncpg.Pool:
    """Get PostgreSQL connection pool"""
    if pg_pool is None:
        raise RuntimeError("Database not initialized")
    return pg_pool


def get_redis() -> redis.Redis:
    """Get Redis client"""
    if redis_client is None:
        raise RuntimeError("Redis not initialized")
    return redis_client
