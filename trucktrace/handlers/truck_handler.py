"""
handlers/truck_handler.py – TruckListHandler class.
Responsibility: GET /api/trucks picks nearby mode or filter mode.
"""
from typing import Optional

from ..core.locations import LocationService
from ..core.trucks import TruckService
from ..models import NearbyTruck, TruckListItem

DEFAULT_RADIUS_MILES = 5.0


class TruckListHandler:
    """lat + lng present → radius search; otherwise name/cuisine filters."""

    def __init__(self, trucks: TruckService, locations: LocationService) -> None:
        self._trucks    = trucks
        self._locations = locations

    async def handle(
        self,
        cuisine_types: Optional[str] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        radius: Optional[float] = None,
    ) -> list[NearbyTruck] | list[TruckListItem]:
        if lat is not None and lng is not None:
            radius_miles = DEFAULT_RADIUS_MILES if radius is None else radius
            return await self._locations.nearby_trucks(lat, lng, radius_miles)
        return await self._trucks.list_trucks(split_csv(cuisine_types), search, limit)


def split_csv(value: Optional[str]) -> Optional[list[str]]:
    """'Mexican, Thai' → ['Mexican', 'Thai']; empty → None."""
    if not value:
        return None
    parts = [p.strip() for p in value.split(",") if p.strip()]
    return parts or None
