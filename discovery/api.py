"""
FastAPI main application for RealEst property discovery.
"""

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import Optional
import logging

from discovery import __version__, db
from discovery.config import DiscoverySettings, get_discovery_settings
from discovery.routers import explore
from discovery.services import (
    CounterService,
    ExploreService,
    PlaceholderCounterService,
    ProfileSummaryCache,
    RedisCounterService,
    ResultAssembler,
)
from discovery.store import InMemoryListingStore

settings = get_discovery_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def build_explore_service(
    settings: DiscoverySettings,
    store=None,
    counters: Optional[CounterService] = None
) -> ExploreService:
    """Wire store, profile cache, counters and assembler into an ExploreService"""
    if store is None:
        if settings.storage.store_backend == "memory":
            store = InMemoryListingStore()
        else:
            from discovery.store.postgres import PostgresListingStore
            store = PostgresListingStore(db.get_pg_pool())

    if counters is None:
        if settings.storage.counter_backend == "redis":
            counters = RedisCounterService(db.get_redis())
        else:
            counters = PlaceholderCounterService()

    assembler = ResultAssembler(
        store=store,
        profiles=store,
        counters=counters,
        profile_cache=ProfileSummaryCache(ttl_seconds=settings.cache.profile_ttl_seconds),
    )
    return ExploreService(store, assembler, settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Startup
    logger.info("Starting RealEst discovery API...")
    storage = settings.storage
    uses_postgres = storage.store_backend != "memory"
    uses_redis = storage.counter_backend == "redis"
    if uses_postgres or uses_redis:
        await db.init_db(storage, use_postgres=uses_postgres, use_redis=uses_redis)
        logger.info("Database initialized")

    if getattr(app.state, "explore_service", None) is None:
        app.state.explore_service = build_explore_service(settings)
    logger.info(
        f"Explore service ready (store={storage.store_backend}, counters={storage.counter_backend})"
    )

    yield

    # Shutdown
    logger.info("Shutting down RealEst discovery API...")
    await db.close_db()


app = FastAPI(
    title="RealEst Discovery API",
    description="Faceted property search over live listings",
    version=__version__,
    lifespan=lifespan
)

# CORS middleware - allow all origins for development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": __version__
    }


app.include_router(explore.router, prefix="/api", tags=["explore"])


def serve():
    """Run the API with uvicorn (HOST/PORT from the environment)"""
    import os
    import uvicorn

    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    serve()
