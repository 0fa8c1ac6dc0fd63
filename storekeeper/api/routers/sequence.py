"""Identifier allocation endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query

from storekeeper import Storekeeper
from storekeeper.exceptions import StorekeeperError
from storekeeper.sequence import Identifier, SequenceStatus, get_namespace

from ..dependencies import get_keeper
from ..exceptions import to_http_error
from ..models import AvailabilityResponse

router = APIRouter(prefix="/sequence", tags=["sequence"])


def _namespace(namespace: str):
    try:
        return get_namespace(namespace)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{namespace}/next", response_model=Identifier)
async def next_identifier(namespace: str, keeper: Storekeeper = Depends(get_keeper)) -> Identifier:
    """Compute the next free identifier of a namespace.

    Nothing is reserved: the caller persists the document carrying the value.
    """
    ns = _namespace(namespace)
    try:
        return await keeper.allocator.next(ns)
    except StorekeeperError as e:
        raise to_http_error(e)


@router.get("/{namespace}/available", response_model=AvailabilityResponse)
async def check_available(
    namespace: str,
    candidate: str = Query(..., min_length=1),
    keeper: Storekeeper = Depends(get_keeper),
) -> AvailabilityResponse:
    ns = _namespace(namespace)
    try:
        available = await keeper.allocator.is_available(candidate, ns)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorekeeperError as e:
        raise to_http_error(e)
    return AvailabilityResponse(
        namespace=ns.name, candidate=ns.format(ns.normalize(candidate)), available=available
    )


@router.get("/{namespace}/status", response_model=SequenceStatus)
async def sequence_status(namespace: str, keeper: Storekeeper = Depends(get_keeper)) -> SequenceStatus:
    """Used values, gaps and duplicates of a namespace."""
    ns = _namespace(namespace)
    try:
        return await keeper.allocator.status(ns)
    except StorekeeperError as e:
        raise to_http_error(e)
