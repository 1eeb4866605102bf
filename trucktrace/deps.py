"""
deps.py – Dependency Injection: singleton service instances + auth dependencies.

configure() builds every singleton from Settings; it runs once at import
and again whenever a test points the app at another database.
"""
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from limits import RateLimitItem, parse
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter

from .config import Settings, get_settings
from .core.errors import TruckTraceError
from .core.favorites import FavoriteService
from .core.locations import LocationService
from .core.menu import MenuService
from .core.security import TokenSigner
from .core.trucks import TruckService
from .core.users import Customer, Owner, Principal, UserService
from .handlers.favorite_handler import FavoriteHandler
from .handlers.truck_handler import TruckListHandler

_settings:  Settings
_signer:    TokenSigner
_users:     UserService
_trucks:    TruckService
_locations: LocationService
_menu:      MenuService
_favorites: FavoriteService
_truck_list: TruckListHandler
_favorite_h: FavoriteHandler
_limiter:   Optional[MovingWindowRateLimiter]
_rate_item: RateLimitItem


def configure(settings: Settings) -> None:
    """(Re)build the singletons for the given settings."""
    global _settings, _signer, _users, _trucks, _locations, _menu, _favorites
    global _truck_list, _favorite_h, _limiter, _rate_item

    # ── Core singletons ────────────────────────────────────────────────────────
    _settings  = settings
    _signer    = TokenSigner(settings.jwt_secret, settings.jwt_expires_days, settings.reset_token_minutes)
    _users     = UserService(settings.database_url, _signer)
    _trucks    = TruckService(settings.database_url)
    _locations = LocationService(settings.database_url)
    _menu      = MenuService(settings.database_url)
    _favorites = FavoriteService(settings.database_url)

    # ── Handler singletons ─────────────────────────────────────────────────────
    _truck_list = TruckListHandler(_trucks, _locations)
    _favorite_h = FavoriteHandler(_favorites)

    # ── Rate limiting (per client IP, in-process) ──────────────────────────────
    _rate_item = parse(settings.rate_limit)
    _limiter   = MovingWindowRateLimiter(MemoryStorage()) if settings.rate_limit_enabled else None


configure(get_settings())


# ── Getters (used by routes) ───────────────────────────────────────────────────

def get_app_settings()     -> Settings:         return _settings
def get_users()            -> UserService:      return _users
def get_trucks()           -> TruckService:     return _trucks
def get_locations()        -> LocationService:  return _locations
def get_menu()             -> MenuService:      return _menu
def get_favorites()        -> FavoriteService:  return _favorites
def get_truck_list()       -> TruckListHandler: return _truck_list
def get_favorite_handler() -> FavoriteHandler:  return _favorite_h


def get_rate_limiter() -> tuple[Optional[MovingWindowRateLimiter], RateLimitItem]:
    return _limiter, _rate_item


# ── Auth dependencies ──────────────────────────────────────────────────────────

_bearer = HTTPBearer(auto_error=False)


async def current_principal(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> Principal:
    """Bearer token → Customer | Owner, or 401."""
    if creds is None or not creds.credentials:
        raise HTTPException(status_code=401, detail="Access denied. No token provided.")
    try:
        return await _users.authenticate(creds.credentials)
    except TruckTraceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


async def owner_only(principal: Principal = Depends(current_principal)) -> Owner:
    if not isinstance(principal, Owner):
        raise HTTPException(status_code=403, detail="Access denied. Food truck owner privileges required.")
    return principal


async def customer_only(principal: Principal = Depends(current_principal)) -> Customer:
    if not isinstance(principal, Customer):
        raise HTTPException(status_code=403, detail="Access denied. Customer privileges required.")
    return principal
