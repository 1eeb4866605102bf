"""tests/conftest.py – shared fixtures: temp SQLite database, services, seed helpers."""
from dataclasses import replace
from decimal import Decimal

import pytest

from trucktrace.config import get_settings
from trucktrace.core.favorites import FavoriteService
from trucktrace.core.locations import LocationService
from trucktrace.core.menu import MenuService
from trucktrace.core.security import TokenSigner, hash_password
from trucktrace.core.trucks import TruckService
from trucktrace.core.users import UserService
from trucktrace.db.models import Favorite, FoodTruck, Location, MenuItem, User
from trucktrace.db.session import db_session, dispose_engines, init_db

TEST_SECRET = "test-secret"


# ── Global: one fresh engine cache per test ────────────────────────────────────

@pytest.fixture(autouse=True)
def clear_engine_cache():
    dispose_engines()
    yield
    dispose_engines()


@pytest.fixture
def db_url(tmp_path) -> str:
    url = f"sqlite:///{tmp_path / 'trucktrace.db'}"
    init_db(url)
    return url


@pytest.fixture
def signer() -> TokenSigner:
    return TokenSigner(TEST_SECRET)


@pytest.fixture
def users(db_url, signer) -> UserService:
    return UserService(db_url, signer)


@pytest.fixture
def trucks(db_url) -> TruckService:
    return TruckService(db_url)


@pytest.fixture
def locations(db_url) -> LocationService:
    return LocationService(db_url)


@pytest.fixture
def favorites(db_url) -> FavoriteService:
    return FavoriteService(db_url)


@pytest.fixture
def menu(db_url) -> MenuService:
    return MenuService(db_url)


@pytest.fixture
def settings(db_url):
    return replace(get_settings(), database_url=db_url, jwt_secret=TEST_SECRET, rate_limit_enabled=False)


@pytest.fixture
def client(settings):
    """TestClient wired to the temp database, rate limiting off."""
    from fastapi.testclient import TestClient
    from trucktrace import deps
    from trucktrace.main import app

    deps.configure(settings)
    return TestClient(app)


# ── Seed helpers (direct ORM, no bcrypt cost except for login users) ───────────

def seed_user(db_url: str, email: str = "cust@example.com", username: str = "cust", password: str | None = None) -> str:
    with db_session(db_url) as session:
        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password) if password else "x",
        )
        session.add(user)
        session.flush()
        return user.id


def seed_truck(
    db_url: str,
    truck_name: str = "Taco Wheels",
    business_name: str = "Taco Wheels LLC",
    cuisines: tuple[str, ...] = ("Mexican",),
    rating: float = 0.0,
    reviews: int = 0,
    owner_email: str | None = None,
) -> str:
    owner_email = owner_email or f"{truck_name.lower().replace(' ', '')}@example.com"
    owner_id = seed_user(db_url, email=owner_email, username=truck_name.replace(" ", "_"))
    with db_session(db_url) as session:
        truck = FoodTruck(
            owner_id=owner_id,
            business_name=business_name,
            truck_name=truck_name,
            cuisine_types=list(cuisines),
            average_rating=rating,
            review_count=reviews,
        )
        session.add(truck)
        session.flush()
        return truck.id


def seed_location(db_url: str, truck_id: str, lat: float, lng: float, is_current: bool = True) -> str:
    with db_session(db_url) as session:
        loc = Location(truck_id=truck_id, latitude=lat, longitude=lng, is_current=is_current)
        session.add(loc)
        session.flush()
        return loc.id


def seed_menu_item(db_url: str, truck_id: str, name: str, price: Decimal = Decimal("9.50"), **kw) -> str:
    with db_session(db_url) as session:
        item = MenuItem(truck_id=truck_id, name=name, price=price, **kw)
        session.add(item)
        session.flush()
        return item.id


def seed_favorite(db_url: str, user_id: str, truck_id: str) -> None:
    with db_session(db_url) as session:
        session.add(Favorite(user_id=user_id, truck_id=truck_id))


def current_rows(db_url: str, truck_id: str) -> list[Location]:
    with db_session(db_url) as session:
        return list(session.query(Location).filter_by(truck_id=truck_id, is_current=True).all())
