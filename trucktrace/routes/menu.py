"""routes/menu.py – /api/menu

  GET    /api/menu?truck_id=...          → items (filters or search term)
  GET    /api/menu/categories?truck_id=  → distinct categories
  POST   /api/menu                       → create on the caller's truck (owner)
  PUT    /api/menu/{id}                  → update (owner)
  PUT    /api/menu/{id}/availability     → toggle availability (owner)
  DELETE /api/menu/{id}                  → delete (owner)
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from ..core.errors import TruckTraceError
from ..core.users import Owner
from ..deps import get_menu, owner_only
from ..models import ApiResponse, AvailabilityRequest, MenuItemCreateRequest, MenuItemUpdateRequest

router = APIRouter(prefix="/api/menu", tags=["Menu"])


@router.get("", response_model=ApiResponse)
async def list_menu(
    truck_id:  UUID,
    category:  Optional[str]  = Query(default=None),
    available: Optional[bool] = Query(default=None),
    signature: Optional[bool] = Query(default=None),
    search:    Optional[str]  = Query(default=None, min_length=1, description="Name/description substring; available items only"),
):
    try:
        if search:
            items = await get_menu().search(str(truck_id), search)
        else:
            items = await get_menu().list_items(str(truck_id), category, available, signature)
        return ApiResponse(data=items)
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/categories", response_model=ApiResponse)
async def categories(truck_id: UUID):
    try:
        return ApiResponse(data=await get_menu().categories(str(truck_id)))
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("", response_model=ApiResponse, status_code=201)
async def create_item(req: MenuItemCreateRequest, owner: Owner = Depends(owner_only)):
    try:
        item = await get_menu().create_item(owner.truck.id, req)
        return ApiResponse(message="Menu item created successfully", data=item)
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.put("/{item_id}", response_model=ApiResponse)
async def update_item(item_id: UUID, req: MenuItemUpdateRequest, owner: Owner = Depends(owner_only)):
    try:
        item = await get_menu().update_item(str(item_id), owner.truck.id, req)
        return ApiResponse(message="Menu item updated successfully", data=item)
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.put("/{item_id}/availability", response_model=ApiResponse)
async def set_availability(item_id: UUID, req: AvailabilityRequest, owner: Owner = Depends(owner_only)):
    try:
        item = await get_menu().set_availability(str(item_id), owner.truck.id, req.is_available)
        return ApiResponse(message="Menu item availability updated", data=item)
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.delete("/{item_id}", response_model=ApiResponse)
async def delete_item(item_id: UUID, owner: Owner = Depends(owner_only)):
    try:
        await get_menu().delete_item(str(item_id), owner.truck.id)
        return ApiResponse(message="Menu item deleted successfully")
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
