"""routes/auth.py – registration, login portals, password reset, /me"""
from fastapi import APIRouter, Depends, HTTPException

from ..core.errors import TruckTraceError
from ..core.users import FORGOT_PASSWORD_MSG, Principal
from ..deps import current_principal, get_users
from ..models import (
    ApiResponse, CustomerRegisterRequest, ForgotPasswordRequest, LoginRequest,
    OwnerRegisterRequest, ResetPasswordRequest,
)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/register/customer", response_model=ApiResponse, status_code=201)
async def register_customer(req: CustomerRegisterRequest):
    try:
        data = await get_users().register_customer(req)
        return ApiResponse(message="Customer registration successful", data=data)
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("/register/owner", response_model=ApiResponse, status_code=201)
async def register_owner(req: OwnerRegisterRequest):
    """Creates the account and its food truck together."""
    try:
        data = await get_users().register_owner(req)
        return ApiResponse(message="Owner registration successful", data=data)
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("/login/customer", response_model=ApiResponse)
async def login_customer(req: LoginRequest):
    try:
        data = await get_users().login(req.email, req.password, "customer")
        return ApiResponse(message="Customer login successful", data=data)
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("/login/owner", response_model=ApiResponse)
async def login_owner(req: LoginRequest):
    try:
        data = await get_users().login(req.email, req.password, "owner")
        return ApiResponse(message="Owner login successful", data=data)
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("/forgot-password", response_model=ApiResponse)
async def forgot_password(req: ForgotPasswordRequest):
    """Same answer whether or not the email is registered."""
    await get_users().forgot_password(req.email)
    return ApiResponse(message=FORGOT_PASSWORD_MSG)


@router.post("/reset-password", response_model=ApiResponse)
async def reset_password(req: ResetPasswordRequest):
    try:
        await get_users().reset_password(req.token, req.new_password)
        return ApiResponse(message="Password reset successful")
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/me", response_model=ApiResponse)
async def me(principal: Principal = Depends(current_principal)):
    return ApiResponse(data={"user": principal.user, "truck": principal.truck})
