"""routes/locations.py – /api/locations

  GET    /api/locations/nearby   → radius search (public)
  GET    /api/locations          → a truck's locations (public)
  GET    /api/locations/current  → a truck's current location (public)
  POST   /api/locations          → create on the caller's truck (owner)
  PUT    /api/locations/{id}     → update (owner)
  DELETE /api/locations/{id}     → delete (owner)
"""
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from ..core.errors import TruckTraceError
from ..core.users import Owner
from ..deps import get_locations, owner_only
from ..models import ApiResponse, LocationCreateRequest, LocationUpdateRequest, NearbyQuery

router = APIRouter(prefix="/api/locations", tags=["Locations"])


@router.get("/nearby", response_model=ApiResponse)
async def nearby(q: Annotated[NearbyQuery, Query()]):
    """Trucks with a current location inside the radius (0.5 – 50 miles, default 5), nearest first."""
    if q.lat is None or q.lng is None:
        raise HTTPException(status_code=400, detail="Latitude and longitude are required")
    try:
        trucks = await get_locations().nearby_trucks(q.lat, q.lng, q.radius)
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return ApiResponse(data={
        "trucks": trucks,
        "search_center": {"latitude": q.lat, "longitude": q.lng},
        "radius_miles": q.radius,
        "count": len(trucks),
    })


@router.get("", response_model=ApiResponse)
async def truck_locations(
    truck_id:          Optional[UUID] = Query(default=None),
    include_scheduled: bool           = Query(default=False),
):
    if truck_id is None:
        raise HTTPException(status_code=400, detail="Truck ID is required")
    try:
        return ApiResponse(data=await get_locations().truck_locations(str(truck_id), include_scheduled))
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/current", response_model=ApiResponse)
async def current_location(truck_id: Optional[UUID] = Query(default=None)):
    if truck_id is None:
        raise HTTPException(status_code=400, detail="Truck ID is required")
    try:
        return ApiResponse(data=await get_locations().current_location(str(truck_id)))
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("", response_model=ApiResponse, status_code=201)
async def create_location(req: LocationCreateRequest, owner: Owner = Depends(owner_only)):
    """
    With `is_current: true` the truck's previous current location is
    unset in the same transaction. A concurrent writer gets 409.
    """
    try:
        loc = await get_locations().create_location(owner.truck.id, req)
        return ApiResponse(message="Location created successfully", data=loc)
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.put("/{location_id}", response_model=ApiResponse)
async def update_location(location_id: UUID, req: LocationUpdateRequest, owner: Owner = Depends(owner_only)):
    try:
        loc = await get_locations().update_location(str(location_id), owner.truck.id, req)
        return ApiResponse(message="Location updated successfully", data=loc)
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.delete("/{location_id}", response_model=ApiResponse)
async def delete_location(location_id: UUID, owner: Owner = Depends(owner_only)):
    try:
        await get_locations().delete_location(str(location_id), owner.truck.id)
        return ApiResponse(message="Location deleted successfully")
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
