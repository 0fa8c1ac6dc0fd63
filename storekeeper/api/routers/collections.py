"""Collection catalog, statistics and bulk erase endpoints."""

from typing import Dict, List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query

from storekeeper import Storekeeper
from storekeeper.backup import DEFAULT_COLLECTIONS, CollectionDescriptor, EraseReport
from storekeeper.sequence import get_namespace

from ..dependencies import get_keeper
from ..models import EraseRequest

router = APIRouter(prefix="/collections", tags=["collections"])


@router.get("", response_model=List[CollectionDescriptor])
async def list_collections() -> List[CollectionDescriptor]:
    return DEFAULT_COLLECTIONS


@router.get("/stats", response_model=Dict[str, Union[int, str]])
async def collection_stats(
    names: Optional[List[str]] = Query(default=None),
    keeper: Storekeeper = Depends(get_keeper),
) -> Dict[str, Union[int, str]]:
    """Document count per collection; ``"error"`` for collections that could not be counted."""
    return await keeper.stats.scan(names)


@router.post("/erase", response_model=EraseReport)
async def erase_collections(request: EraseRequest, keeper: Storekeeper = Depends(get_keeper)) -> EraseReport:
    """Delete every document of the selected collections."""
    return await keeper.eraser.erase(request.collections)


@router.post("/erase-namespace/{namespace}", response_model=EraseReport)
async def erase_namespace(namespace: str, keeper: Storekeeper = Depends(get_keeper)) -> EraseReport:
    """Delete every document carrying an identifier of ``namespace``."""
    try:
        ns = get_namespace(namespace)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return await keeper.eraser.erase_namespace(ns)
