"""
core/favorites.py – FavoriteService class.

Responsibility: a customer's favorites list and the truck ranking by
favorite count. Favorites are create/delete only, one row per (user, truck).
"""
import asyncio
import logging

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import aliased

from ..db.models import Favorite, FoodTruck, Location
from ..db.session import db_session
from ..models import FavoriteTruck, TopTruck
from .convert import to_location, to_truck
from .errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

ALREADY_FAVORITE_MSG = "Truck is already in your favorites"


class FavoriteService:
    """Favorites: add / remove / list / check + top trucks."""

    def __init__(self, database_url: str) -> None:
        self._db = database_url

    # ── Public ─────────────────────────────────────────────────────────────────

    async def add(self, user_id: str, truck_id: str) -> dict:
        """The new favorite row as {id, user_id, truck_id, created_at}."""
        return await asyncio.get_event_loop().run_in_executor(None, self._do_add, user_id, truck_id)

    async def remove(self, user_id: str, truck_id: str) -> None:
        await asyncio.get_event_loop().run_in_executor(None, self._do_remove, user_id, truck_id)

    async def list_for_user(self, user_id: str) -> list[FavoriteTruck]:
        """Favorited trucks with their current location, newest favorite first."""
        return await asyncio.get_event_loop().run_in_executor(None, self._fetch_for_user, user_id)

    async def is_favorite(self, user_id: str, truck_id: str) -> bool:
        return await asyncio.get_event_loop().run_in_executor(None, self._fetch_is_favorite, user_id, truck_id)

    async def top_trucks(self, limit: int = 10) -> list[TopTruck]:
        """
        Trucks ordered by how many users favorited them.
        Trucks nobody favorited still appear (count 0) when the limit allows.
        """
        return await asyncio.get_event_loop().run_in_executor(None, self._fetch_top, limit)

    # ── Private ────────────────────────────────────────────────────────────────

    def _do_add(self, user_id: str, truck_id: str) -> dict:
        try:
            with db_session(self._db) as session:
                if session.get(FoodTruck, truck_id) is None:
                    raise NotFoundError("Food truck not found")
                exists = session.scalar(
                    select(Favorite.id).where(Favorite.user_id == user_id, Favorite.truck_id == truck_id)
                )
                if exists is not None:
                    raise ConflictError(ALREADY_FAVORITE_MSG)
                fav = Favorite(user_id=user_id, truck_id=truck_id)
                session.add(fav)
                session.flush()
                return {"id": fav.id, "user_id": user_id, "truck_id": truck_id, "created_at": fav.created_at}
        except IntegrityError:
            # lost a race against the same (user, truck) insert
            raise ConflictError(ALREADY_FAVORITE_MSG)

    def _do_remove(self, user_id: str, truck_id: str) -> None:
        with db_session(self._db) as session:
            result = session.execute(
                delete(Favorite).where(Favorite.user_id == user_id, Favorite.truck_id == truck_id)
            )
            if result.rowcount == 0:
                raise NotFoundError("Favorite not found")

    def _fetch_for_user(self, user_id: str) -> list[FavoriteTruck]:
        current = aliased(Location)
        q = (
            select(Favorite, FoodTruck, current)
            .join(FoodTruck, FoodTruck.id == Favorite.truck_id)
            .outerjoin(current, (current.truck_id == FoodTruck.id) & current.is_current.is_(True))
            .where(Favorite.user_id == user_id)
            .order_by(Favorite.created_at.desc())
        )
        with db_session(self._db) as session:
            return [
                FavoriteTruck(
                    **to_truck(truck).model_dump(),
                    favorite_id=fav.id,
                    favorited_at=fav.created_at,
                    current_location=to_location(loc),
                )
                for fav, truck, loc in session.execute(q).all()
            ]

    def _fetch_is_favorite(self, user_id: str, truck_id: str) -> bool:
        with db_session(self._db) as session:
            return session.scalar(
                select(Favorite.id).where(Favorite.user_id == user_id, Favorite.truck_id == truck_id)
            ) is not None

    def _fetch_top(self, limit: int) -> list[TopTruck]:
        fav_count = func.count(Favorite.id).label("favorite_count")
        with db_session(self._db) as session:
            rows = session.execute(
                select(FoodTruck, fav_count)
                .outerjoin(Favorite, Favorite.truck_id == FoodTruck.id)
                .group_by(FoodTruck.id)
                .order_by(fav_count.desc(), FoodTruck.average_rating.desc(), FoodTruck.created_at)
                .limit(limit)
            ).all()
            return [
                TopTruck(**to_truck(truck).model_dump(), favorite_count=count, rank=rank)
                for rank, (truck, count) in enumerate(rows, start=1)
            ]
