"""Dependency injection for FastAPI."""

from typing import TYPE_CHECKING, Optional

from fastapi import Request

from .jobs import JobManager

if TYPE_CHECKING:
    import redis.asyncio as redis

    from storekeeper import Storekeeper


async def get_keeper(request: Request) -> "Storekeeper":
    """Get Storekeeper instance from app state."""
    return request.app.state.keeper


async def get_redis(request: Request) -> Optional["redis.Redis"]:
    """Get Redis client from app state if available."""
    return getattr(request.app.state, "redis_client", None)


async def get_job_manager(request: Request) -> JobManager:
    """JobManager over Redis, or over the app's in-process job table."""
    return JobManager(
        getattr(request.app.state, "redis_client", None),
        local_jobs=getattr(request.app.state, "jobs", None),
    )
