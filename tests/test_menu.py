"""
tests/test_menu.py – MenuService filters, search, categories, owner writes.
"""
from decimal import Decimal

import pytest

from conftest import seed_menu_item, seed_truck
from trucktrace.core.errors import ForbiddenError, NotFoundError
from trucktrace.models import MenuItemCreateRequest, MenuItemUpdateRequest


@pytest.fixture
def truck(db_url) -> str:
    truck_id = seed_truck(db_url)
    seed_menu_item(db_url, truck_id, "Carnitas Taco", category="Tacos", is_signature=True, description="slow pork")
    seed_menu_item(db_url, truck_id, "Al Pastor Taco", category="Tacos", description="pork and pineapple")
    seed_menu_item(db_url, truck_id, "Horchata", category="Drinks")
    seed_menu_item(db_url, truck_id, "Pork Tamale", category=None, is_available=False)
    return truck_id


class TestReads:
    @pytest.mark.asyncio
    async def test_filters(self, menu, truck):
        tacos = await menu.list_items(truck, category="Tacos")
        assert [i.name for i in tacos] == ["Al Pastor Taco", "Carnitas Taco"]
        assert [i.name for i in await menu.list_items(truck, signature=True)] == ["Carnitas Taco"]
        assert "Pork Tamale" not in {i.name for i in await menu.list_items(truck, available=True)}

    @pytest.mark.asyncio
    async def test_search_available_signature_first(self, menu, truck):
        hits = await menu.search(truck, "PORK")
        assert [i.name for i in hits] == ["Carnitas Taco", "Al Pastor Taco"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("term", ["%", "_", "Taco%"])
    async def test_search_wildcards_are_literal(self, menu, truck, term):
        assert await menu.search(truck, term) == []

    @pytest.mark.asyncio
    async def test_categories(self, menu, truck):
        assert await menu.categories(truck) == ["Drinks", "Tacos"]

    @pytest.mark.asyncio
    async def test_unknown_truck(self, menu):
        with pytest.raises(NotFoundError):
            await menu.list_items("00000000-0000-0000-0000-000000000000")


class TestWrites:
    @pytest.mark.asyncio
    async def test_create_update_toggle_delete(self, menu, truck):
        item = await menu.create_item(truck, MenuItemCreateRequest(name="Elote", price=Decimal("4.25"), category="Sides"))
        assert item.price == Decimal("4.25")
        item = await menu.update_item(item.id, truck, MenuItemUpdateRequest(price=Decimal("4.75"), name=None))
        assert item.price == Decimal("4.75")
        assert item.name == "Elote"
        item = await menu.set_availability(item.id, truck, False)
        assert item.is_available is False
        await menu.delete_item(item.id, truck)
        assert "Elote" not in {i.name for i in await menu.list_items(truck)}

    @pytest.mark.asyncio
    async def test_foreign_item_forbidden(self, db_url, menu, truck):
        other = seed_truck(db_url, truck_name="Other Truck")
        item = seed_menu_item(db_url, truck, "Churro")
        with pytest.raises(ForbiddenError, match="your own menu items"):
            await menu.set_availability(item, other, False)
