"""FastAPI application for storekeeper."""

import dataclasses
import logging
import os
import sys
from contextlib import asynccontextmanager

import redis.asyncio as redis
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storekeeper import Storekeeper
from storekeeper.config import StorekeeperConfig

from .config import settings
from .routers import backup, collections, health, jobs, management, sequence

# App-managed pattern: attach our own handler and don't propagate, so INFO
# logs are visible regardless of uvicorn's logging config
storekeeper_logger = logging.getLogger("storekeeper")
storekeeper_logger.setLevel(logging.INFO)
storekeeper_logger.propagate = False
storekeeper_logger.handlers.clear()

console_handler = logging.StreamHandler(sys.stdout)
console_handler.setLevel(logging.INFO)
console_handler.setFormatter(logging.Formatter(
    '%(asctime)s - [%(name)s] - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
))
storekeeper_logger.addHandler(console_handler)

if os.getenv("DISABLE_APP_LOGGING", "false").lower() == "true":
    storekeeper_logger.handlers.clear()
    storekeeper_logger.propagate = True  # Fall back to server-managed pattern

logger = logging.getLogger(__name__)


def build_config() -> StorekeeperConfig:
    """Environment config with the API settings layered on top."""
    config = StorekeeperConfig.from_env()
    store_overrides = {"backend": settings.store_backend}
    if settings.redis_url:
        store_overrides["redis_url"] = settings.redis_url
        store_overrides["redis_password"] = settings.redis_password

    return dataclasses.replace(
        config,
        store=dataclasses.replace(config.store, **store_overrides),
        blob=dataclasses.replace(config.blob, backend=settings.blob_backend),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage Storekeeper lifecycle."""
    logger.info("Initializing storekeeper...")
    try:
        app.state.keeper = Storekeeper(build_config())
    except Exception as e:
        logger.error(f"Failed to initialize storekeeper: {e}")
        raise

    app.state.jobs = {}
    app.state.redis_client = None
    if settings.redis_url:
        try:
            app.state.redis_client = redis.from_url(
                settings.redis_url,
                password=settings.redis_password,
                encoding="utf-8",
                decode_responses=True,
            )
            await app.state.redis_client.ping()
            logger.info("Redis client initialized for job tracking")
        except Exception as e:
            logger.warning(f"Failed to initialize Redis client: {e}")
            app.state.redis_client = None
    else:
        logger.info("Redis not configured - jobs tracked in-process")

    yield

    logger.info("Shutting down storekeeper...")
    if app.state.redis_client:
        await app.state.redis_client.aclose()
    await app.state.keeper.close()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
        docs_url=f"{settings.api_prefix}/docs",
        openapi_url=f"{settings.api_prefix}/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(jobs.router, prefix=settings.api_prefix)
    app.include_router(sequence.router, prefix=settings.api_prefix)
    app.include_router(collections.router, prefix=settings.api_prefix)
    app.include_router(backup.router, prefix=settings.api_prefix)
    app.include_router(health.router, prefix=settings.api_prefix)
    app.include_router(management.router, prefix=settings.api_prefix)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": settings.api_title,
            "version": settings.api_version,
            "docs": f"{settings.api_prefix}/docs"
        }

    return app


# Create default app instance
app = create_app()
