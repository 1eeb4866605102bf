"""routes/system.py – /health"""
from datetime import datetime, timezone

from fastapi import APIRouter

from ..deps import get_app_settings

router = APIRouter(tags=["System"])


@router.get("/health")
async def health():
    return {
        "success": True,
        "message": "TruckTrace API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": get_app_settings().environment,
    }
