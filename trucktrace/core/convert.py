"""
core/convert.py – ORM row → response model converters shared by services.

Must be called while the row's session is still open if relationships
are touched (owner, locations).
"""
from typing import Optional

from ..db.models import FoodTruck, Location, MenuItem, User
from ..models import LocationItem, MenuItemOut, TruckItem, TruckListItem, TruckRef, UserItem


def to_user(user: User) -> UserItem:
    return UserItem.model_validate(user)


def to_truck(truck: FoodTruck) -> TruckItem:
    return TruckItem.model_validate(truck)


def to_truck_ref(truck: FoodTruck) -> TruckRef:
    return TruckRef(id=truck.id, truck_name=truck.truck_name, business_name=truck.business_name)


def to_location(loc: Optional[Location]) -> Optional[LocationItem]:
    return LocationItem.model_validate(loc) if loc is not None else None


def to_menu_item(item: MenuItem) -> MenuItemOut:
    return MenuItemOut.model_validate(item)


def to_truck_list_item(
    truck: FoodTruck,
    owner_username: Optional[str],
    current: Optional[Location],
) -> TruckListItem:
    return TruckListItem(
        **to_truck(truck).model_dump(),
        owner_username=owner_username,
        current_location=to_location(current),
    )
