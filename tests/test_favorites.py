"""
tests/test_favorites.py – FavoriteService + FavoriteHandler distance annotation.
"""
import pytest

from conftest import seed_favorite, seed_location, seed_truck, seed_user
from trucktrace.core.errors import ConflictError, NotFoundError
from trucktrace.core.geo import haversine_miles
from trucktrace.handlers.favorite_handler import FavoriteHandler

MISSING = "00000000-0000-0000-0000-000000000000"


@pytest.fixture
def customer(db_url) -> str:
    return seed_user(db_url)


class TestAddRemove:
    @pytest.mark.asyncio
    async def test_add_then_check(self, db_url, favorites, customer):
        truck = seed_truck(db_url)
        fav = await favorites.add(customer, truck)
        assert fav["truck_id"] == truck
        assert await favorites.is_favorite(customer, truck)

    @pytest.mark.asyncio
    async def test_duplicate_is_rejected_and_table_unchanged(self, db_url, favorites, customer):
        truck = seed_truck(db_url)
        await favorites.add(customer, truck)
        with pytest.raises(ConflictError, match="already in your favorites"):
            await favorites.add(customer, truck)
        assert len(await favorites.list_for_user(customer)) == 1

    @pytest.mark.asyncio
    async def test_add_unknown_truck(self, favorites, customer):
        with pytest.raises(NotFoundError, match="Food truck not found"):
            await favorites.add(customer, MISSING)

    @pytest.mark.asyncio
    async def test_remove(self, db_url, favorites, customer):
        truck = seed_truck(db_url)
        await favorites.add(customer, truck)
        await favorites.remove(customer, truck)
        assert not await favorites.is_favorite(customer, truck)

    @pytest.mark.asyncio
    async def test_remove_absent(self, db_url, favorites, customer):
        truck = seed_truck(db_url)
        with pytest.raises(NotFoundError, match="Favorite not found"):
            await favorites.remove(customer, truck)


class TestListing:
    @pytest.mark.asyncio
    async def test_newest_first_with_current_location(self, db_url, favorites, customer):
        first, second = seed_truck(db_url, truck_name="First"), seed_truck(db_url, truck_name="Second")
        seed_location(db_url, first, 40.0, -74.0)
        await favorites.add(customer, first)
        await favorites.add(customer, second)
        items = await favorites.list_for_user(customer)
        assert [i.truck_name for i in items] == ["Second", "First"]
        assert items[1].current_location.latitude == 40.0
        assert items[0].current_location is None

    @pytest.mark.asyncio
    async def test_only_own_favorites(self, db_url, favorites, customer):
        other = seed_user(db_url, email="other@example.com", username="other")
        truck = seed_truck(db_url)
        seed_favorite(db_url, other, truck)
        assert await favorites.list_for_user(customer) == []


class TestAnnotation:
    @pytest.mark.asyncio
    async def test_annotates_without_filtering(self, db_url, favorites, customer):
        near, far, parked = (seed_truck(db_url, truck_name=n) for n in ("Near", "Far", "Parked"))
        seed_location(db_url, near, 40.01, -74.0)
        seed_location(db_url, far, 41.0, -74.0)
        for t in (near, far, parked):
            await favorites.add(customer, t)

        items = await FavoriteHandler(favorites).list(customer, lat=40.0, lng=-74.0, radius=10)
        by_name = {i.truck_name: i for i in items}
        assert set(by_name) == {"Near", "Far", "Parked"}
        assert by_name["Near"].is_within_radius is True
        assert by_name["Near"].distance_miles == pytest.approx(0.69, abs=0.01)
        assert by_name["Far"].is_within_radius is False
        assert by_name["Far"].distance_miles > 10
        assert by_name["Parked"].distance_miles is None
        assert by_name["Parked"].is_within_radius is False

    @pytest.mark.asyncio
    async def test_distance_is_unrounded_haversine(self, db_url, favorites, customer):
        truck = seed_truck(db_url)
        seed_location(db_url, truck, 40.0123, -74.0045)
        await favorites.add(customer, truck)
        items = await FavoriteHandler(favorites).list(customer, lat=40.0, lng=-74.0)
        assert items[0].distance_miles == pytest.approx(haversine_miles(40.0, -74.0, 40.0123, -74.0045))

    @pytest.mark.asyncio
    async def test_no_annotation_without_location(self, db_url, favorites, customer):
        truck = seed_truck(db_url)
        await favorites.add(customer, truck)
        items = await FavoriteHandler(favorites).list(customer)
        assert items[0].distance_miles is None
        assert items[0].is_within_radius is None


class TestTopTrucks:
    @pytest.mark.asyncio
    async def test_ranked_by_favorite_count(self, db_url, favorites):
        a, b, c = (seed_truck(db_url, truck_name=n) for n in ("Alpha", "Bravo", "Charlie"))
        fans = [seed_user(db_url, email=f"fan{i}@example.com", username=f"fan{i}") for i in range(3)]
        for fan in fans:
            seed_favorite(db_url, fan, b)
        seed_favorite(db_url, fans[0], c)

        top = await favorites.top_trucks()
        assert [(t.truck_name, t.favorite_count, t.rank) for t in top] == [
            ("Bravo", 3, 1), ("Charlie", 1, 2), ("Alpha", 0, 3),
        ]

    @pytest.mark.asyncio
    async def test_limit(self, db_url, favorites):
        for n in ("Alpha", "Bravo", "Charlie"):
            seed_truck(db_url, truck_name=n)
        assert len(await favorites.top_trucks(limit=2)) == 2
