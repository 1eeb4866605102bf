"""
handlers/favorite_handler.py – FavoriteHandler class.
Responsibility: favorites list + optional distance annotation.

Annotation never drops rows: a favorite outside the radius is still
returned, flagged is_within_radius=False.
"""
import logging
from typing import Optional

from ..core.favorites import FavoriteService
from ..core.geo import haversine_miles_many, validate_coordinates
from ..models import FavoriteTruck

logger = logging.getLogger(__name__)

DEFAULT_RADIUS_MILES = 50.0


class FavoriteHandler:
    """Handles GET /api/favorites."""

    def __init__(self, favorites: FavoriteService) -> None:
        self._favorites = favorites

    async def list(
        self,
        user_id: str,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        radius: Optional[float] = None,
    ) -> list[FavoriteTruck]:
        items = await self._favorites.list_for_user(user_id)
        if lat is None or lng is None:
            return items
        validate_coordinates(lat, lng)
        return annotate_distance(items, lat, lng, DEFAULT_RADIUS_MILES if radius is None else radius)


def annotate_distance(items: list[FavoriteTruck], lat: float, lng: float, radius_miles: float) -> list[FavoriteTruck]:
    located = [f for f in items if f.current_location is not None]
    for fav in items:
        if fav.current_location is None:
            fav.distance_miles   = None
            fav.is_within_radius = False
    if located:
        distances = haversine_miles_many(
            lat, lng,
            [f.current_location.latitude for f in located],
            [f.current_location.longitude for f in located],
        )
        for fav, dist in zip(located, distances):
            fav.distance_miles   = float(dist)
            fav.is_within_radius = bool(dist <= radius_miles)
    return items
