"""
core/trucks.py – TruckService class.

Responsibility: truck listing/filtering, detail views, owner CRUD and
customer ratings. Listing order: rating desc, review count desc.
"""
import asyncio
import logging
from typing import Iterable, Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session, aliased

from ..db.models import FoodTruck, Location, MenuItem, User
from ..db.session import db_session
from ..models import (
    RatingResult, TruckCreateRequest, TruckDetail, TruckItem, TruckListItem,
    TruckUpdateRequest,
)
from .convert import to_location, to_menu_item, to_truck, to_truck_list_item
from .errors import ConflictError, ForbiddenError, NotFoundError
from .locations import current_of

logger = logging.getLogger(__name__)


def cuisines_match(truck_cuisines: Iterable[str], wanted: set[str]) -> bool:
    """True when at least one of the truck's tags is in the filter set (case-insensitive)."""
    return any(c.strip().lower() in wanted for c in truck_cuisines or [])


class TruckService:
    """Food trucks: discovery + owner management."""

    def __init__(self, database_url: str) -> None:
        self._db = database_url

    # ── Public: Discovery ──────────────────────────────────────────────────────

    async def list_trucks(
        self,
        cuisine_types: Optional[list[str]] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[TruckListItem]:
        """Filter by name substring and cuisine intersection."""
        return await asyncio.get_event_loop().run_in_executor(
            None, self._fetch_trucks, cuisine_types, search, limit
        )

    async def get_truck(self, truck_id: str) -> TruckDetail:
        """Detail + current location + available menu items."""
        return await asyncio.get_event_loop().run_in_executor(None, self._fetch_detail, truck_id, False)

    async def my_truck(self, truck_id: str) -> TruckDetail:
        """Owner view: every location and every menu item."""
        return await asyncio.get_event_loop().run_in_executor(None, self._fetch_detail, truck_id, True)

    # ── Public: Owner CRUD ─────────────────────────────────────────────────────

    async def create_truck(self, user_id: str, req: TruckCreateRequest) -> TruckItem:
        return await asyncio.get_event_loop().run_in_executor(None, self._do_create, user_id, req)

    async def update_truck(self, truck_id: str, user_id: str, req: TruckUpdateRequest) -> TruckItem:
        return await asyncio.get_event_loop().run_in_executor(None, self._do_update, truck_id, user_id, req)

    async def delete_truck(self, truck_id: str, user_id: str) -> None:
        await asyncio.get_event_loop().run_in_executor(None, self._do_delete, truck_id, user_id)

    # ── Public: Ratings ────────────────────────────────────────────────────────

    async def rate_truck(self, truck_id: str, stars: int) -> RatingResult:
        """Fold one 1–5 rating into the running average."""
        return await asyncio.get_event_loop().run_in_executor(None, self._do_rate, truck_id, stars)

    # ── Private: Discovery ─────────────────────────────────────────────────────

    def _fetch_trucks(self, cuisine_types: Optional[list[str]], search: Optional[str], limit: Optional[int]) -> list[TruckListItem]:
        current = aliased(Location)
        q = (
            select(FoodTruck, User.username, current)
            .join(User, User.id == FoodTruck.owner_id)
            .outerjoin(current, (current.truck_id == FoodTruck.id) & current.is_current.is_(True))
        )
        if search:
            q = q.where(or_(
                FoodTruck.truck_name.icontains(search, autoescape=True),
                FoodTruck.business_name.icontains(search, autoescape=True),
            ))
        q = q.order_by(FoodTruck.average_rating.desc(), FoodTruck.review_count.desc(), FoodTruck.created_at)

        wanted = {c.strip().lower() for c in cuisine_types or [] if c.strip()}
        with db_session(self._db) as session:
            if not wanted and limit:
                q = q.limit(limit)
            rows = session.execute(q).all()
            # JSON cuisine sets: intersection is evaluated here, not in SQL
            if wanted:
                rows = [r for r in rows if cuisines_match(r[0].cuisine_types, wanted)]
                if limit:
                    rows = rows[:limit]
            return [to_truck_list_item(truck, username, loc) for truck, username, loc in rows]

    def _fetch_detail(self, truck_id: str, owner_view: bool) -> TruckDetail:
        with db_session(self._db) as session:
            truck = self._get(session, truck_id)
            menu_q = select(MenuItem).where(MenuItem.truck_id == truck_id)
            if not owner_view:
                menu_q = menu_q.where(MenuItem.is_available.is_(True))
            menu = session.scalars(menu_q.order_by(MenuItem.category, MenuItem.name)).all()
            base = to_truck_list_item(truck, truck.owner.username, current_of(session, truck_id))
            detail = TruckDetail(**base.model_dump(), menu_items=[to_menu_item(m) for m in menu])
            if owner_view:
                locs = session.scalars(
                    select(Location).where(Location.truck_id == truck_id).order_by(Location.created_at.desc())
                ).all()
                detail.locations = [to_location(loc) for loc in locs]
            return detail

    # ── Private: Owner CRUD ────────────────────────────────────────────────────

    def _do_create(self, user_id: str, req: TruckCreateRequest) -> TruckItem:
        with db_session(self._db) as session:
            if session.scalar(select(FoodTruck.id).where(FoodTruck.owner_id == user_id)) is not None:
                raise ConflictError("You already own a food truck")
            truck = FoodTruck(owner_id=user_id, **req.model_dump())
            session.add(truck)
            session.flush()
            item = to_truck(truck)
        logger.info("Truck created: %s (owner %s)", item.id, user_id)
        return item

    def _do_update(self, truck_id: str, user_id: str, req: TruckUpdateRequest) -> TruckItem:
        with db_session(self._db) as session:
            truck = self._owned(session, truck_id, user_id, "update")
            for field, value in req.model_dump(exclude_unset=True).items():
                # business_name/truck_name/cuisine_types are NOT NULL
                if value is None and field in ("business_name", "truck_name", "cuisine_types", "social_links"):
                    continue
                setattr(truck, field, value)
            session.flush()
            return to_truck(truck)

    def _do_delete(self, truck_id: str, user_id: str) -> None:
        with db_session(self._db) as session:
            truck = self._owned(session, truck_id, user_id, "delete")
            session.delete(truck)
        logger.info("Truck deleted: %s", truck_id)

    def _do_rate(self, truck_id: str, stars: int) -> RatingResult:
        # the fold happens inside one UPDATE; each rating bumps review_count exactly once
        count = func.coalesce(FoodTruck.review_count, 0)
        mean = func.coalesce(FoodTruck.average_rating, 0.0)
        with db_session(self._db) as session:
            result = session.execute(
                update(FoodTruck)
                .where(FoodTruck.id == truck_id)
                .values(average_rating=(mean * count + stars) / (count + 1), review_count=count + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundError("Food truck not found")
            row = session.execute(
                select(FoodTruck.average_rating, FoodTruck.review_count).where(FoodTruck.id == truck_id)
            ).one()
            return RatingResult(average_rating=row.average_rating, review_count=row.review_count)

    # ── Private: helpers ───────────────────────────────────────────────────────

    @staticmethod
    def _get(session: Session, truck_id: str) -> FoodTruck:
        truck = session.get(FoodTruck, truck_id)
        if truck is None:
            raise NotFoundError("Food truck not found")
        return truck

    def _owned(self, session: Session, truck_id: str, user_id: str, verb: str) -> FoodTruck:
        truck = self._get(session, truck_id)
        if truck.owner_id != user_id:
            raise ForbiddenError(f"Access denied. You can only {verb} your own truck.")
        return truck
