"""routes/users.py – GET/PUT /api/users/profile, PUT /api/users/password"""
from fastapi import APIRouter, Depends, HTTPException

from ..core.errors import TruckTraceError
from ..core.users import Principal
from ..deps import current_principal, get_users
from ..models import ApiResponse, PasswordChangeRequest, ProfileUpdateRequest

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/profile", response_model=ApiResponse)
async def get_profile(principal: Principal = Depends(current_principal)):
    return ApiResponse(data=principal.user)


@router.put("/profile", response_model=ApiResponse)
async def update_profile(req: ProfileUpdateRequest, principal: Principal = Depends(current_principal)):
    try:
        user = await get_users().update_profile(principal.user.id, req)
        return ApiResponse(message="Profile updated successfully", data=user)
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.put("/password", response_model=ApiResponse)
async def change_password(req: PasswordChangeRequest, principal: Principal = Depends(current_principal)):
    try:
        await get_users().change_password(principal.user.id, req.current_password, req.new_password)
        return ApiResponse(message="Password changed successfully")
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
