"""Health check endpoints."""

import asyncio
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException

from storekeeper import Storekeeper

from ..dependencies import get_keeper, get_redis
from ..models import HealthStatus

router = APIRouter(prefix="/health", tags=["health"])


async def check_redis(redis_client) -> bool:
    """Check the job-tracking Redis connection."""
    if redis_client is None:
        return True  # Job tracking runs in-process
    try:
        return bool(await redis_client.ping())
    except Exception:
        return False


@router.get("", response_model=HealthStatus)
async def health_check(
    keeper: Storekeeper = Depends(get_keeper),
    redis_client=Depends(get_redis),
) -> HealthStatus:
    """Health of the document store and of job tracking."""
    store_health, redis_health = await asyncio.gather(
        keeper.check_health(),
        check_redis(redis_client),
        return_exceptions=True,
    )

    store_ok = store_health is True
    redis_ok = redis_health is True

    if store_ok and redis_ok:
        status = "healthy"
    elif not store_ok and not redis_ok:
        status = "unhealthy"
    else:
        status = "degraded"

    return HealthStatus(status=status, store=store_ok, redis=redis_ok)


@router.get("/ready")
async def readiness_probe(
    keeper: Storekeeper = Depends(get_keeper),
    redis_client=Depends(get_redis),
) -> Dict[str, str]:
    """Kubernetes readiness probe."""
    health = await health_check(keeper, redis_client)
    if not health.store:
        raise HTTPException(status_code=503, detail="Service not ready")
    return {"status": "ready"}


@router.get("/live")
async def liveness_probe() -> Dict[str, str]:
    """Kubernetes liveness probe."""
    return {"status": "alive"}
