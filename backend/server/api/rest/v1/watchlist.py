from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from application.watchlist import WatchlistResult, WatchlistService
from domain.watchlist import (
    MediaType,
    WatchlistError,
    WatchlistErrorType,
    WatchStatus,
    media_item_from_payload,
)
from server.api.rest.dependencies import get_watchlist_service
from server.models.schemas import (
    RecoveryResponse,
    WatchlistAddRequest,
    WatchlistResponse,
    WatchlistStatusUpdateRequest,
)

router = APIRouter(prefix="/api/v1", tags=["watchlist-v1"])

_STATUS_CODES = {
    WatchlistErrorType.DUPLICATE_ITEM: 409,
    WatchlistErrorType.CAPACITY_EXCEEDED: 409,
    WatchlistErrorType.ITEM_NOT_FOUND: 404,
    WatchlistErrorType.INVALID_DATA: 400,
    WatchlistErrorType.STORAGE_QUOTA_EXCEEDED: 507,
    WatchlistErrorType.STORAGE_UNAVAILABLE: 503,
    WatchlistErrorType.RATE_LIMITED: 429,
}


def _raise_for(error: Optional[WatchlistError]) -> None:
    if error is None:
        error = WatchlistError(WatchlistErrorType.UNKNOWN_ERROR, "watchlist operation failed")
    raise HTTPException(status_code=_STATUS_CODES.get(error.type, 500), detail=error.to_dict())


def _invalid(message: str) -> HTTPException:
    error = WatchlistError(WatchlistErrorType.INVALID_DATA, message, message, False)
    return HTTPException(status_code=400, detail=error.to_dict())


def _response(service: WatchlistService, result: WatchlistResult) -> Dict[str, Any]:
    if not result.success:
        _raise_for(result.error)
    return {
        "success": True,
        "items": [item.to_dict() for item in result.items],
        "warning": result.warning,
        "capacity": service.capacity.to_dict(),
    }


@router.get("/watchlist", response_model=WatchlistResponse)
def list_watchlist(
    status: Optional[str] = Query(default=None, description="过滤状态：plan_to_watch/currently_watching/watched（可选）"),
    media_type: Optional[str] = Query(default=None, description="过滤类型：movie/tv（可选）"),
    service: WatchlistService = Depends(get_watchlist_service),
) -> Dict[str, Any]:
    try:
        status_filter = WatchStatus(status) if status else None
        type_filter = MediaType(media_type) if media_type else None
    except ValueError as e:
        raise _invalid(str(e))

    items = service.get_items_by_status(status_filter) if status_filter else list(service.items)
    if type_filter is not None:
        items = [i for i in items if i.media_type == type_filter]
    return {
        "success": True,
        "items": [i.to_dict() for i in items],
        "warning": service.last_warning,
        "capacity": service.capacity.to_dict(),
    }


@router.post("/watchlist", response_model=WatchlistResponse, status_code=201)
def add_watchlist_item(
    req: WatchlistAddRequest,
    service: WatchlistService = Depends(get_watchlist_service),
) -> Dict[str, Any]:
    try:
        media = media_item_from_payload(req.media, kind=req.media_type)
    except ValueError as e:
        raise _invalid(f"Invalid item: {e}")
    return _response(service, service.add(media, req.watch_status))


@router.delete("/watchlist", response_model=WatchlistResponse)
def clear_watchlist(service: WatchlistService = Depends(get_watchlist_service)) -> Dict[str, Any]:
    return _response(service, service.clear())


@router.get("/watchlist/stats")
def get_watchlist_stats(service: WatchlistService = Depends(get_watchlist_service)) -> Dict[str, Any]:
    last_error = service.last_error
    return {
        "stats": service.stats.to_dict(),
        "capacity": service.capacity.to_dict(),
        "storage": service.storage_info().to_dict(),
        "last_error": last_error.to_dict() if last_error else None,
    }


@router.post("/watchlist/recover", response_model=RecoveryResponse)
def recover_watchlist(service: WatchlistService = Depends(get_watchlist_service)) -> Dict[str, Any]:
    result = service.attempt_recovery()
    return {"success": result.success, "message": result.message}


@router.post("/watchlist/backup", response_model=RecoveryResponse)
def backup_watchlist(service: WatchlistService = Depends(get_watchlist_service)) -> Dict[str, Any]:
    result = service.create_backup()
    if not result.success:
        raise HTTPException(status_code=500, detail=result.message)
    return {"success": True, "message": result.message}


@router.patch("/watchlist/{item_id}", response_model=WatchlistResponse)
def update_watchlist_item(
    item_id: str,
    req: WatchlistStatusUpdateRequest,
    service: WatchlistService = Depends(get_watchlist_service),
) -> Dict[str, Any]:
    return _response(service, service.update_status(item_id, req.watch_status))


@router.delete("/watchlist/{item_id}", response_model=WatchlistResponse)
def remove_watchlist_item(
    item_id: str,
    service: WatchlistService = Depends(get_watchlist_service),
) -> Dict[str, Any]:
    return _response(service, service.remove(item_id))
