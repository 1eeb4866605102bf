"""
core/menu.py – MenuService class.

Responsibility: a truck's menu. Reads are public; writes require the
caller to own the item's truck.
"""
import asyncio
import logging
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from ..db.models import FoodTruck, MenuItem
from ..db.session import db_session
from ..models import MenuItemCreateRequest, MenuItemOut, MenuItemUpdateRequest
from .convert import to_menu_item
from .errors import ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)

# NOT NULL columns: a null in a partial update means "leave as is"
_REQUIRED_FIELDS = ("name", "price", "is_available", "is_signature", "dietary_tags")


class MenuService:
    """Menu items per truck."""

    def __init__(self, database_url: str) -> None:
        self._db = database_url

    # ── Public: Read ───────────────────────────────────────────────────────────

    async def list_items(
        self,
        truck_id: str,
        category: Optional[str] = None,
        available: Optional[bool] = None,
        signature: Optional[bool] = None,
    ) -> list[MenuItemOut]:
        """Ordered by category, then name."""
        return await asyncio.get_event_loop().run_in_executor(
            None, self._fetch_items, truck_id, category, available, signature
        )

    async def search(self, truck_id: str, term: str) -> list[MenuItemOut]:
        """Available items whose name or description contains term. Signature dishes first."""
        return await asyncio.get_event_loop().run_in_executor(None, self._fetch_search, truck_id, term)

    async def categories(self, truck_id: str) -> list[str]:
        return await asyncio.get_event_loop().run_in_executor(None, self._fetch_categories, truck_id)

    # ── Public: Write (owner) ──────────────────────────────────────────────────

    async def create_item(self, truck_id: str, req: MenuItemCreateRequest) -> MenuItemOut:
        return await asyncio.get_event_loop().run_in_executor(None, self._do_create, truck_id, req)

    async def update_item(self, item_id: str, owner_truck_id: str, req: MenuItemUpdateRequest) -> MenuItemOut:
        return await asyncio.get_event_loop().run_in_executor(
            None, self._do_update, item_id, owner_truck_id, req.model_dump(exclude_unset=True)
        )

    async def set_availability(self, item_id: str, owner_truck_id: str, is_available: bool) -> MenuItemOut:
        return await asyncio.get_event_loop().run_in_executor(
            None, self._do_update, item_id, owner_truck_id, {"is_available": is_available}
        )

    async def delete_item(self, item_id: str, owner_truck_id: str) -> None:
        await asyncio.get_event_loop().run_in_executor(None, self._do_delete, item_id, owner_truck_id)

    # ── Private: Read ──────────────────────────────────────────────────────────

    def _fetch_items(self, truck_id: str, category: Optional[str], available: Optional[bool], signature: Optional[bool]) -> list[MenuItemOut]:
        q = select(MenuItem).where(MenuItem.truck_id == truck_id)
        if category:
            q = q.where(MenuItem.category == category)
        if available is not None:
            q = q.where(MenuItem.is_available.is_(available))
        if signature is not None:
            q = q.where(MenuItem.is_signature.is_(signature))
        with db_session(self._db) as session:
            self._get_truck(session, truck_id)
            rows = session.scalars(q.order_by(MenuItem.category, MenuItem.name)).all()
            return [to_menu_item(r) for r in rows]

    def _fetch_search(self, truck_id: str, term: str) -> list[MenuItemOut]:
        with db_session(self._db) as session:
            self._get_truck(session, truck_id)
            rows = session.scalars(
                select(MenuItem)
                .where(
                    MenuItem.truck_id == truck_id,
                    MenuItem.is_available.is_(True),
                    or_(
                        MenuItem.name.icontains(term, autoescape=True),
                        MenuItem.description.icontains(term, autoescape=True),
                    ),
                )
                .order_by(MenuItem.is_signature.desc(), MenuItem.name)
            ).all()
            return [to_menu_item(r) for r in rows]

    def _fetch_categories(self, truck_id: str) -> list[str]:
        with db_session(self._db) as session:
            self._get_truck(session, truck_id)
            return list(session.scalars(
                select(MenuItem.category)
                .where(MenuItem.truck_id == truck_id, MenuItem.category.is_not(None))
                .distinct()
                .order_by(MenuItem.category)
            ).all())

    # ── Private: Write ─────────────────────────────────────────────────────────

    def _do_create(self, truck_id: str, req: MenuItemCreateRequest) -> MenuItemOut:
        with db_session(self._db) as session:
            self._get_truck(session, truck_id)
            item = MenuItem(truck_id=truck_id, **req.model_dump())
            session.add(item)
            session.flush()
            return to_menu_item(item)

    def _do_update(self, item_id: str, owner_truck_id: str, changes: dict) -> MenuItemOut:
        with db_session(self._db) as session:
            item = self._owned_item(session, item_id, owner_truck_id, "update")
            for field, value in changes.items():
                if value is None and field in _REQUIRED_FIELDS:
                    continue
                setattr(item, field, value)
            session.flush()
            return to_menu_item(item)

    def _do_delete(self, item_id: str, owner_truck_id: str) -> None:
        with db_session(self._db) as session:
            item = self._owned_item(session, item_id, owner_truck_id, "delete")
            session.delete(item)
        logger.info("Menu item deleted: %s", item_id)

    # ── Private: helpers ───────────────────────────────────────────────────────

    @staticmethod
    def _get_truck(session: Session, truck_id: str) -> FoodTruck:
        truck = session.get(FoodTruck, truck_id)
        if truck is None:
            raise NotFoundError("Food truck not found")
        return truck

    @staticmethod
    def _owned_item(session: Session, item_id: str, owner_truck_id: str, verb: str) -> MenuItem:
        item = session.get(MenuItem, item_id)
        if item is None:
            raise NotFoundError("Menu item not found")
        if item.truck_id != owner_truck_id:
            raise ForbiddenError(f"Access denied. You can only {verb} your own menu items.")
        return item
