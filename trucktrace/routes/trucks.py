"""routes/trucks.py – /api/trucks

  GET    /api/trucks              → list / filter, or nearby mode with lat+lng
  GET    /api/trucks/top          → ranked by favorite count
  GET    /api/trucks/my           → the caller's own truck (owner)
  GET    /api/trucks/{id}         → detail with available menu items
  POST   /api/trucks              → create (account without a truck)
  PUT    /api/trucks/{id}         → update (owner)
  DELETE /api/trucks/{id}         → delete (owner)
  POST   /api/trucks/{id}/ratings → rate 1–5 (customer)
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from ..core.errors import TruckTraceError
from ..core.users import Customer, Owner, Principal
from ..deps import current_principal, customer_only, get_favorites, get_truck_list, get_trucks, owner_only
from ..models import ApiResponse, RatingRequest, TruckCreateRequest, TruckUpdateRequest

router = APIRouter(prefix="/api/trucks", tags=["Trucks"])


@router.get("", response_model=ApiResponse)
async def list_trucks(
    cuisine_types: Optional[str]   = Query(default=None, description="Comma-separated, e.g. Mexican,Thai"),
    search:        Optional[str]   = Query(default=None, description="Substring of truck or business name"),
    limit:         Optional[int]   = Query(default=None, ge=1, le=100),
    lat:           Optional[float] = Query(default=None),
    lng:           Optional[float] = Query(default=None),
    radius:        Optional[float] = Query(default=None, description="Miles, default 5 (nearby mode only)"),
):
    """
    With **lat** and **lng** the result is a radius search sorted by distance.
    Otherwise trucks are filtered by name and cuisine, best rated first.
    """
    try:
        trucks = await get_truck_list().handle(cuisine_types, search, limit, lat, lng, radius)
        return ApiResponse(data=trucks)
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/top", response_model=ApiResponse)
async def top_trucks(limit: int = Query(default=10, ge=1, le=50)):
    """Each item carries `favorite_count` and a 1-based `rank`."""
    return ApiResponse(data=await get_favorites().top_trucks(limit))


@router.get("/my", response_model=ApiResponse)
async def my_truck(owner: Owner = Depends(owner_only)):
    try:
        return ApiResponse(data=await get_trucks().my_truck(owner.truck.id))
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/{truck_id}", response_model=ApiResponse)
async def get_truck(truck_id: UUID):
    try:
        return ApiResponse(data=await get_trucks().get_truck(str(truck_id)))
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("", response_model=ApiResponse, status_code=201)
async def create_truck(req: TruckCreateRequest, principal: Principal = Depends(current_principal)):
    try:
        truck = await get_trucks().create_truck(principal.user.id, req)
        return ApiResponse(message="Food truck created successfully", data=truck)
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.put("/{truck_id}", response_model=ApiResponse)
async def update_truck(truck_id: UUID, req: TruckUpdateRequest, owner: Owner = Depends(owner_only)):
    try:
        truck = await get_trucks().update_truck(str(truck_id), owner.user.id, req)
        return ApiResponse(message="Food truck updated successfully", data=truck)
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.delete("/{truck_id}", response_model=ApiResponse)
async def delete_truck(truck_id: UUID, owner: Owner = Depends(owner_only)):
    try:
        await get_trucks().delete_truck(str(truck_id), owner.user.id)
        return ApiResponse(message="Food truck deleted successfully")
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("/{truck_id}/ratings", response_model=ApiResponse, status_code=201)
async def rate_truck(truck_id: UUID, req: RatingRequest, customer: Customer = Depends(customer_only)):
    try:
        result = await get_trucks().rate_truck(str(truck_id), req.stars)
        return ApiResponse(message="Rating recorded", data=result)
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
