"""
tests/test_trucks.py – TruckService filtering, detail views, CRUD, ratings;
TruckListHandler mode selection.
"""
import asyncio

import pytest

from conftest import seed_location, seed_menu_item, seed_truck, seed_user
from trucktrace.core.errors import ConflictError, ForbiddenError, NotFoundError
from trucktrace.core.trucks import cuisines_match
from trucktrace.handlers.truck_handler import TruckListHandler, split_csv
from trucktrace.models import RatingResult, TruckCreateRequest, TruckUpdateRequest


@pytest.fixture
def fleet(db_url):
    return {
        "taco":  seed_truck(db_url, truck_name="Taco Wheels", business_name="TW LLC", cuisines=("Mexican", "Vegan"), rating=4.5, reviews=10),
        "thai":  seed_truck(db_url, truck_name="Thai Express", business_name="Bangkok Bites", cuisines=("Thai",), rating=4.5, reviews=30),
        "pizza": seed_truck(db_url, truck_name="Pizza Box", business_name="Slice Co", cuisines=("Italian",), rating=3.9, reviews=50),
    }


class TestListTrucks:
    @pytest.mark.asyncio
    async def test_default_order_rating_then_reviews(self, trucks, fleet):
        result = await trucks.list_trucks()
        assert [t.truck_name for t in result] == ["Thai Express", "Taco Wheels", "Pizza Box"]

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive_on_both_names(self, trucks, fleet):
        by_truck = await trucks.list_trucks(search="taco")
        by_business = await trucks.list_trucks(search="bangkok")
        assert [t.truck_name for t in by_truck] == ["Taco Wheels"]
        assert [t.truck_name for t in by_business] == ["Thai Express"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("term", ["%", "_", "Pizza_Box"])
    async def test_search_wildcards_are_literal(self, trucks, fleet, term):
        assert await trucks.list_trucks(search=term) == []

    @pytest.mark.asyncio
    async def test_cuisine_intersection(self, trucks, fleet):
        result = await trucks.list_trucks(cuisine_types=["vegan", "Italian"])
        assert {t.truck_name for t in result} == {"Taco Wheels", "Pizza Box"}

    @pytest.mark.asyncio
    async def test_limit(self, trucks, fleet):
        assert len(await trucks.list_trucks(limit=2)) == 2
        assert len(await trucks.list_trucks(cuisine_types=["Mexican", "Thai", "Italian"], limit=1)) == 1

    @pytest.mark.asyncio
    async def test_rows_carry_owner_and_current_location(self, db_url, trucks, fleet):
        seed_location(db_url, fleet["taco"], 40.0, -74.0)
        result = {t.truck_name: t for t in await trucks.list_trucks()}
        assert result["Taco Wheels"].current_location.latitude == 40.0
        assert result["Taco Wheels"].owner_username == "Taco_Wheels"
        assert result["Pizza Box"].current_location is None


def test_cuisines_match():
    assert cuisines_match([" Thai ", "Lao"], {"thai"})
    assert not cuisines_match([], {"thai"})


class TestDetail:
    @pytest.mark.asyncio
    async def test_public_detail_hides_unavailable_items(self, db_url, trucks, fleet):
        seed_menu_item(db_url, fleet["taco"], "Al Pastor")
        seed_menu_item(db_url, fleet["taco"], "Sold Out Special", is_available=False)
        detail = await trucks.get_truck(fleet["taco"])
        assert [m.name for m in detail.menu_items] == ["Al Pastor"]
        assert detail.locations is None

    @pytest.mark.asyncio
    async def test_owner_view_has_everything(self, db_url, trucks, fleet):
        seed_menu_item(db_url, fleet["taco"], "Al Pastor")
        seed_menu_item(db_url, fleet["taco"], "Sold Out Special", is_available=False)
        seed_location(db_url, fleet["taco"], 40.0, -74.0)
        seed_location(db_url, fleet["taco"], 41.0, -74.0, is_current=False)
        detail = await trucks.my_truck(fleet["taco"])
        assert len(detail.menu_items) == 2
        assert len(detail.locations) == 2
        assert detail.current_location.latitude == 40.0

    @pytest.mark.asyncio
    async def test_missing_truck(self, trucks):
        with pytest.raises(NotFoundError, match="Food truck not found"):
            await trucks.get_truck("00000000-0000-0000-0000-000000000000")


class TestOwnerCrud:
    def _create_req(self) -> TruckCreateRequest:
        return TruckCreateRequest(business_name="Curry Co", truck_name="Curry Cart", cuisine_types=["Indian"])

    @pytest.mark.asyncio
    async def test_create_for_user_without_truck(self, db_url, trucks):
        user = seed_user(db_url)
        truck = await trucks.create_truck(user, self._create_req())
        assert truck.owner_id == user
        assert truck.average_rating == 0.0

    @pytest.mark.asyncio
    async def test_second_truck_rejected(self, db_url, trucks):
        user = seed_user(db_url)
        await trucks.create_truck(user, self._create_req())
        with pytest.raises(ConflictError, match="already own"):
            await trucks.create_truck(user, self._create_req())

    @pytest.mark.asyncio
    async def test_partial_update(self, db_url, trucks):
        user = seed_user(db_url)
        truck = await trucks.create_truck(user, self._create_req())
        updated = await trucks.update_truck(truck.id, user, TruckUpdateRequest(description="Spicy"))
        assert updated.description == "Spicy"
        assert updated.truck_name == "Curry Cart"

    @pytest.mark.asyncio
    async def test_update_foreign_truck_forbidden(self, db_url, trucks, fleet):
        stranger = seed_user(db_url)
        with pytest.raises(ForbiddenError, match="only update your own truck"):
            await trucks.update_truck(fleet["taco"], stranger, TruckUpdateRequest(description="mine now"))

    @pytest.mark.asyncio
    async def test_delete_cascades(self, db_url, trucks, fleet):
        from conftest import current_rows
        seed_location(db_url, fleet["taco"], 40.0, -74.0)
        detail = await trucks.get_truck(fleet["taco"])
        await trucks.delete_truck(fleet["taco"], detail.owner_id)
        assert current_rows(db_url, fleet["taco"]) == []
        with pytest.raises(NotFoundError):
            await trucks.get_truck(fleet["taco"])


class TestRatings:
    @pytest.mark.asyncio
    async def test_running_average(self, db_url, trucks):
        truck = seed_truck(db_url)
        await trucks.rate_truck(truck, 5)
        result = await trucks.rate_truck(truck, 2)
        assert result.review_count == 2
        assert result.average_rating == pytest.approx(3.5)

    @pytest.mark.asyncio
    async def test_concurrent_ratings_all_counted(self, db_url, trucks):
        truck = seed_truck(db_url)
        # rate_truck runs on the default thread pool, so these writes race
        await asyncio.gather(*(trucks.rate_truck(truck, stars) for stars in [5, 1] * 20))
        detail = await trucks.get_truck(truck)
        assert detail.review_count == 40
        assert detail.average_rating == pytest.approx(3.0)

    @pytest.mark.asyncio
    async def test_unknown_truck(self, trucks):
        with pytest.raises(NotFoundError):
            await trucks.rate_truck("00000000-0000-0000-0000-000000000000", 4)

    def test_response_rounds_mean(self):
        assert RatingResult(average_rating=11 / 3, review_count=3).model_dump()["average_rating"] == 3.67


class TestTruckListHandler:
    @pytest.mark.asyncio
    async def test_nearby_mode_when_lat_lng_present(self, db_url, trucks, locations, fleet):
        seed_location(db_url, fleet["thai"], 40.01, -74.0)
        seed_location(db_url, fleet["pizza"], 41.0, -74.0)
        handler = TruckListHandler(trucks, locations)
        result = await handler.handle(lat=40.0, lng=-74.0)
        assert [t.truck_name for t in result] == ["Thai Express"]
        assert result[0].distance_miles < 5

    @pytest.mark.asyncio
    async def test_filter_mode_otherwise(self, trucks, locations, fleet):
        handler = TruckListHandler(trucks, locations)
        result = await handler.handle(cuisine_types="Thai, Italian")
        assert {t.truck_name for t in result} == {"Thai Express", "Pizza Box"}

    def test_split_csv(self):
        assert split_csv("Mexican, Thai,,") == ["Mexican", "Thai"]
        assert split_csv("") is None
