"""Management endpoints."""

import platform
import sys
from typing import Dict

from fastapi import APIRouter, Depends

from storekeeper import Storekeeper
from storekeeper import __version__ as storekeeper_version
from storekeeper.sequence import NAMESPACES

from ..config import settings
from ..dependencies import get_keeper

router = APIRouter(tags=["management"])


@router.get("/info")
async def get_info(keeper: Storekeeper = Depends(get_keeper)) -> Dict:
    """Get system information."""
    return {
        "storekeeper_version": storekeeper_version,
        "api_version": settings.api_version,
        "python_version": sys.version,
        "platform": platform.platform(),
        "backends": {
            "store": keeper.config.store.backend,
            "blob": keeper.config.blob.backend,
        },
        "max_batch_size": keeper.store.max_batch_size,
        "namespaces": {
            name: {"prefix": ns.prefix, "start": ns.start, "collections": list(ns.collections)}
            for name, ns in NAMESPACES.items()
        },
    }
