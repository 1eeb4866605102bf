"""
core/locations.py – LocationService class.

Responsibility: location history per truck, the single "current" location,
and the radius search behind /nearby.

Current-location transition: unset-others + set-new run in one transaction.
The partial unique index uq_locations_one_current rejects a second
concurrent writer instead of letting both rows end up current.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db.models import FoodTruck, Location
from ..db.session import db_session
from ..models import LocationCreateRequest, LocationItem, LocationUpdateRequest, NearbyTruck
from .convert import to_location, to_truck, to_truck_ref
from .errors import CurrentLocationConflict, ForbiddenError, NotFoundError, ValidationFailed
from .geo import bounding_box, haversine_miles_many, miles_to_meters, validate_coordinates

logger = logging.getLogger(__name__)


class LocationService:
    """Truck positions + geospatial nearby search."""

    def __init__(self, database_url: str) -> None:
        self._db = database_url

    # ── Public: Search ─────────────────────────────────────────────────────────

    async def nearby_trucks(self, lat: float, lng: float, radius_miles: float) -> list[NearbyTruck]:
        """Trucks whose current location lies within radius_miles, nearest first."""
        validate_coordinates(lat, lng)
        if radius_miles <= 0:
            return []
        return await asyncio.get_event_loop().run_in_executor(
            None, self._fetch_nearby, lat, lng, radius_miles
        )

    # ── Public: Read ───────────────────────────────────────────────────────────

    async def truck_locations(self, truck_id: str, include_scheduled: bool = False) -> dict:
        """{truck, locations}. Only the current row unless include_scheduled."""
        return await asyncio.get_event_loop().run_in_executor(
            None, self._fetch_truck_locations, truck_id, include_scheduled
        )

    async def current_location(self, truck_id: str) -> dict:
        """{truck, current_location} – current_location may be None."""
        return await asyncio.get_event_loop().run_in_executor(None, self._fetch_current, truck_id)

    # ── Public: Write (owner) ──────────────────────────────────────────────────

    async def create_location(self, truck_id: str, req: LocationCreateRequest) -> LocationItem:
        _check_schedule(req.scheduled_start, req.scheduled_end)
        return await asyncio.get_event_loop().run_in_executor(None, self._do_create, truck_id, req)

    async def update_location(self, location_id: str, owner_truck_id: str, req: LocationUpdateRequest) -> LocationItem:
        return await asyncio.get_event_loop().run_in_executor(
            None, self._do_update, location_id, owner_truck_id, req
        )

    async def delete_location(self, location_id: str, owner_truck_id: str) -> None:
        await asyncio.get_event_loop().run_in_executor(None, self._do_delete, location_id, owner_truck_id)

    # ── Private: Search ────────────────────────────────────────────────────────

    def _fetch_nearby(self, lat: float, lng: float, radius_miles: float) -> list[NearbyTruck]:
        box = bounding_box(lat, lng, radius_miles)
        with db_session(self._db) as session:
            q = (
                select(FoodTruck, Location)
                .join(Location, Location.truck_id == FoodTruck.id)
                .where(Location.is_current.is_(True))
                .where(Location.latitude.between(box.min_lat, box.max_lat))
            )
            if box.min_lng is not None:
                q = q.where(Location.longitude.between(box.min_lng, box.max_lng))
            rows = session.execute(q).all()
            if not rows:
                return []

            distances = haversine_miles_many(
                lat, lng,
                [loc.latitude for _, loc in rows],
                [loc.longitude for _, loc in rows],
            )
            radius_m = miles_to_meters(radius_miles)
            hits = [
                NearbyTruck(
                    **to_truck(truck).model_dump(),
                    location=to_location(loc),
                    distance_miles=float(dist),
                )
                for (truck, loc), dist in zip(rows, distances)
                if miles_to_meters(float(dist)) <= radius_m
            ]
        hits.sort(key=lambda t: t.distance_miles)
        return hits

    # ── Private: Read ──────────────────────────────────────────────────────────

    def _fetch_truck_locations(self, truck_id: str, include_scheduled: bool) -> dict:
        with db_session(self._db) as session:
            truck = self._get_truck(session, truck_id)
            q = select(Location).where(Location.truck_id == truck_id)
            if not include_scheduled:
                q = q.where(Location.is_current.is_(True))
            rows = session.scalars(q.order_by(Location.created_at.desc())).all()
            return {"truck": to_truck_ref(truck), "locations": [to_location(r) for r in rows]}

    def _fetch_current(self, truck_id: str) -> dict:
        with db_session(self._db) as session:
            truck = self._get_truck(session, truck_id)
            return {"truck": to_truck_ref(truck), "current_location": to_location(current_of(session, truck_id))}

    # ── Private: Write ─────────────────────────────────────────────────────────

    def _do_create(self, truck_id: str, req: LocationCreateRequest) -> LocationItem:
        try:
            with db_session(self._db) as session:
                if req.is_current:
                    session.execute(
                        update(Location)
                        .where(Location.truck_id == truck_id, Location.is_current.is_(True))
                        .values(is_current=False)
                    )
                fields = req.model_dump()
                for key in ("scheduled_start", "scheduled_end"):
                    fields[key] = as_utc(fields[key])
                loc = Location(truck_id=truck_id, **fields)
                session.add(loc)
                session.flush()
                item = to_location(loc)
        except IntegrityError as e:
            raise self._conflict(truck_id, e)
        if item.is_current:
            logger.info("Truck %s current location → %s", truck_id, item.id)
        return item

    def _do_update(self, location_id: str, owner_truck_id: str, req: LocationUpdateRequest) -> LocationItem:
        changes = req.model_dump(exclude_unset=True)
        try:
            with db_session(self._db) as session:
                loc = self._owned_location(session, location_id, owner_truck_id, "update")
                _check_schedule(
                    changes.get("scheduled_start", loc.scheduled_start),
                    changes.get("scheduled_end", loc.scheduled_end),
                )
                if changes.get("is_current"):
                    session.execute(
                        update(Location)
                        .where(
                            Location.truck_id == loc.truck_id,
                            Location.id != loc.id,
                            Location.is_current.is_(True),
                        )
                        .values(is_current=False)
                    )
                for field, value in changes.items():
                    if value is None and field in ("latitude", "longitude", "is_current", "status"):
                        continue
                    if field in ("scheduled_start", "scheduled_end"):
                        value = as_utc(value)
                    setattr(loc, field, value)
                session.flush()
                item = to_location(loc)
        except IntegrityError as e:
            raise self._conflict(owner_truck_id, e)
        if changes.get("is_current"):
            logger.info("Truck %s current location → %s", item.truck_id, item.id)
        return item

    def _do_delete(self, location_id: str, owner_truck_id: str) -> None:
        with db_session(self._db) as session:
            loc = self._owned_location(session, location_id, owner_truck_id, "delete")
            session.delete(loc)

    # ── Private: helpers ───────────────────────────────────────────────────────

    @staticmethod
    def _get_truck(session: Session, truck_id: str) -> FoodTruck:
        truck = session.get(FoodTruck, truck_id)
        if truck is None:
            raise NotFoundError("Food truck not found")
        return truck

    @staticmethod
    def _owned_location(session: Session, location_id: str, owner_truck_id: str, verb: str) -> Location:
        loc = session.get(Location, location_id)
        if loc is None:
            raise NotFoundError("Location not found")
        if loc.truck_id != owner_truck_id:
            raise ForbiddenError(f"Access denied. You can only {verb} your own truck locations.")
        return loc

    @staticmethod
    def _conflict(truck_id: str, err: IntegrityError) -> CurrentLocationConflict:
        logger.warning("Concurrent current-location write rejected for truck %s: %s", truck_id, err.orig)
        return CurrentLocationConflict("Another location was set as current at the same time; retry")


def current_of(session: Session, truck_id: str) -> Optional[Location]:
    """The truck's current location row, if any (same session)."""
    return session.scalar(
        select(Location).where(Location.truck_id == truck_id, Location.is_current.is_(True))
    )


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes (SQLite round-trips) are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _check_schedule(start, end) -> None:
    start, end = as_utc(start), as_utc(end)
    if start is not None and end is not None and end < start:
        raise ValidationFailed("scheduled_end must be after scheduled_start")
