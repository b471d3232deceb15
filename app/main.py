"""
Organogram Service application.

Startup creates the employees table and connects the cache; the cache is
kept on app.state so request dependencies share one instance per process.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.dependencies import CacheDep
from app.api.routers.employees import router as employees_router
from app.core.cache import CacheService
from app.core.config import settings
from app.core.database import create_db_and_tables, engine, supports_recursive_queries
from app.core.logging import get_logger, setup_logging
from app.models.employee import CacheStatus, Employee

logger = get_logger(__name__)


def hierarchy_strategy() -> str:
    """Strategy the resolver runs with against the configured database."""
    if settings.HIERARCHY_STRATEGY != "auto":
        return settings.HIERARCHY_STRATEGY
    return "recursive" if supports_recursive_queries(engine) else "iterative"


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    create_db_and_tables(Employee)

    cache = CacheService.from_settings(settings)
    if not cache.connect():
        logger.warning("Serving from the in-memory cache until Redis is reachable")
    app.state.cache = cache

    logger.info(
        f"Hierarchy resolution: {hierarchy_strategy()} "
        f"(max depth {settings.HIERARCHY_MAX_DEPTH})"
    )

    yield

    logger.info("Closing cache connections")
    cache.close()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)

app.include_router(employees_router, prefix="/api/v1")


@app.get("/health", tags=["health"])
async def health_check(cache: CacheDep):
    """
    Service identity, the active cache tier and the hierarchy strategy.

    A lost Redis connection does not make the service unhealthy; requests
    are still served from the local tier.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "cache": cache.get_status(),
        "hierarchy": {
            "strategy": hierarchy_strategy(),
            "max_depth": settings.HIERARCHY_MAX_DEPTH,
        },
    }


@app.get("/cache-status", response_model=CacheStatus, tags=["health"])
async def cache_status(cache: CacheDep):
    """Which cache tier is serving requests."""
    return cache.get_status()
