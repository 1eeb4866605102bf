"""routes/favorites.py – /api/favorites (any signed-in user)"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from ..core.errors import TruckTraceError
from ..core.users import Principal
from ..deps import current_principal, get_favorite_handler, get_favorites
from ..models import ApiResponse, FavoriteRequest

router = APIRouter(prefix="/api/favorites", tags=["Favorites"])


@router.get("", response_model=ApiResponse)
async def list_favorites(
    lat:       Optional[float] = Query(default=None),
    lng:       Optional[float] = Query(default=None),
    radius:    Optional[float] = Query(default=None, description="Miles, default 50"),
    principal: Principal       = Depends(current_principal),
):
    """
    Newest favorite first. With **lat**/**lng** every row gets
    `distance_miles` and `is_within_radius`; rows are never dropped.
    """
    try:
        favorites = await get_favorite_handler().list(principal.user.id, lat, lng, radius)
        return ApiResponse(data={"favorites": favorites, "count": len(favorites)})
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/trucks", response_model=ApiResponse)
async def favorite_trucks(principal: Principal = Depends(current_principal)):
    trucks = await get_favorites().list_for_user(principal.user.id)
    return ApiResponse(data={"trucks": trucks, "count": len(trucks)})


@router.get("/check/{truck_id}", response_model=ApiResponse)
async def check_favorite(truck_id: UUID, principal: Principal = Depends(current_principal)):
    is_fav = await get_favorites().is_favorite(principal.user.id, str(truck_id))
    return ApiResponse(data={"is_favorite": is_fav})


@router.post("", response_model=ApiResponse, status_code=201)
async def add_favorite(req: FavoriteRequest, principal: Principal = Depends(current_principal)):
    try:
        fav = await get_favorites().add(principal.user.id, str(req.truck_id))
        return ApiResponse(message="Truck added to favorites", data=fav)
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.delete("", response_model=ApiResponse)
async def remove_favorite(req: FavoriteRequest, principal: Principal = Depends(current_principal)):
    try:
        await get_favorites().remove(principal.user.id, str(req.truck_id))
        return ApiResponse(message="Truck removed from favorites")
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
