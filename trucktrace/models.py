"""
models.py – Pydantic schemas for request/response.

Request fields are Annotated with core.rules so one field carries the same
constraint and message on every endpoint.
"""
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, List, Literal, Optional
from uuid import UUID

from pydantic import (
    AfterValidator, AliasChoices, BaseModel, ConfigDict, Field, field_serializer,
    model_serializer,
)

from .core import rules


# ── Envelope ──────────────────────────────────────────────────────────────────

class ApiResponse(BaseModel):
    """{success, message?, data?, errors?} – top-level None fields are dropped."""
    success: bool = True
    message: Optional[str] = None
    data: Any = None
    errors: Optional[List[dict]] = None

    @model_serializer(mode="wrap")
    def _drop_empty(self, handler):
        return {k: v for k, v in handler(self).items() if v is not None}


# ── Field types ───────────────────────────────────────────────────────────────

Username      = Annotated[str, AfterValidator(rules.username)]
Email         = Annotated[str, AfterValidator(rules.email)]
NewPassword   = Annotated[str, AfterValidator(rules.new_password)]
PhotoUrl      = Annotated[str, AfterValidator(rules.url("Profile photo URL must be a valid URL"))]
LogoUrl       = Annotated[str, AfterValidator(rules.url("Logo URL must be a valid URL"))]
CoverUrl      = Annotated[str, AfterValidator(rules.url("Cover photo URL must be a valid URL"))]
ItemPhotoUrl  = Annotated[str, AfterValidator(rules.url("Photo URL must be a valid URL"))]
Phone         = Annotated[str, AfterValidator(rules.phone)]
BusinessName  = Annotated[str, AfterValidator(rules.business_name)]
TruckName     = Annotated[str, AfterValidator(rules.truck_name)]
Description   = Annotated[str, AfterValidator(rules.description)]
Address       = Annotated[str, AfterValidator(rules.address)]
TruckCuisines = Annotated[List[str], AfterValidator(rules.truck_cuisines)]
TagList       = Annotated[List[str], AfterValidator(rules.preferred)]
NotifyRadius  = Annotated[int, AfterValidator(rules.notify_radius)]
Latitude      = Annotated[float, AfterValidator(rules.latitude)]
Longitude     = Annotated[float, AfterValidator(rules.longitude)]
StatusField   = Annotated[str, AfterValidator(rules.location_status)]
Stars         = Annotated[int, AfterValidator(rules.rating_stars)]
NearbyRadius  = Annotated[float, AfterValidator(rules.nearby_radius)]
MenuName      = Annotated[str, AfterValidator(rules.menu_name)]
Category      = Annotated[str, AfterValidator(rules.category)]
Price         = Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2)]

PasswordText  = Annotated[str, AfterValidator(rules.required("Password is required"))]
ResetToken    = Annotated[str, AfterValidator(rules.required("Reset token is required"))]
CurrentPwd    = Annotated[str, AfterValidator(rules.required("Current password is required"))]


# ── Request Models: auth / users ──────────────────────────────────────────────

class CustomerRegisterRequest(BaseModel):
    username: Username
    email: Email
    password: NewPassword
    profile_photo_url: Optional[PhotoUrl] = None
    preferred_cuisines: TagList = Field(default_factory=list)
    notification_radius_miles: NotifyRadius = 5


class OwnerRegisterRequest(BaseModel):
    username: Username
    email: Email
    password: NewPassword
    business_name: BusinessName
    truck_name: TruckName
    cuisine_types: TruckCuisines
    description: Optional[Description] = None
    logo_url: Optional[LogoUrl] = None
    cover_photo_url: Optional[CoverUrl] = None
    contact_phone: Optional[Phone] = None
    social_links: dict[str, str] = Field(default_factory=dict)

    def truck_fields(self) -> dict:
        return self.model_dump(exclude={"username", "email", "password"})


class LoginRequest(BaseModel):
    email: Email
    password: PasswordText


class ForgotPasswordRequest(BaseModel):
    email: Email


class ResetPasswordRequest(BaseModel):
    token: ResetToken
    new_password: NewPassword = Field(validation_alias=AliasChoices("new_password", "newPassword"))


class ProfileUpdateRequest(BaseModel):
    username: Optional[Username] = None
    profile_photo_url: Optional[PhotoUrl] = None
    preferred_cuisines: Optional[TagList] = None
    notification_radius_miles: Optional[NotifyRadius] = None
    push_notifications_enabled: Optional[bool] = None


class PasswordChangeRequest(BaseModel):
    current_password: CurrentPwd
    new_password: NewPassword


# ── Request Models: trucks / menu ─────────────────────────────────────────────

class TruckCreateRequest(BaseModel):
    business_name: BusinessName
    truck_name: TruckName
    cuisine_types: TruckCuisines
    description: Optional[Description] = None
    logo_url: Optional[LogoUrl] = None
    cover_photo_url: Optional[CoverUrl] = None
    contact_phone: Optional[Phone] = None
    social_links: dict[str, str] = Field(default_factory=dict)


class TruckUpdateRequest(BaseModel):
    business_name: Optional[BusinessName] = None
    truck_name: Optional[TruckName] = None
    cuisine_types: Optional[TruckCuisines] = None
    description: Optional[Description] = None
    logo_url: Optional[LogoUrl] = None
    cover_photo_url: Optional[CoverUrl] = None
    contact_phone: Optional[Phone] = None
    social_links: Optional[dict[str, str]] = None


class RatingRequest(BaseModel):
    stars: Stars


class MenuItemCreateRequest(BaseModel):
    name: MenuName
    description: Optional[Description] = None
    price: Price
    category: Optional[Category] = None
    photo_url: Optional[ItemPhotoUrl] = None
    is_available: bool = True
    is_signature: bool = False
    dietary_tags: TagList = Field(default_factory=list)


class MenuItemUpdateRequest(BaseModel):
    name: Optional[MenuName] = None
    description: Optional[Description] = None
    price: Optional[Price] = None
    category: Optional[Category] = None
    photo_url: Optional[ItemPhotoUrl] = None
    is_available: Optional[bool] = None
    is_signature: Optional[bool] = None
    dietary_tags: Optional[TagList] = None


class AvailabilityRequest(BaseModel):
    is_available: bool


# ── Request Models: locations / favorites ─────────────────────────────────────

LocationStatus = Literal["open", "closing_soon", "closed"]


class LocationCreateRequest(BaseModel):
    latitude: Latitude
    longitude: Longitude
    address: Optional[Address] = None
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    is_current: bool = False
    status: StatusField = "open"


class LocationUpdateRequest(BaseModel):
    latitude: Optional[Latitude] = None
    longitude: Optional[Longitude] = None
    address: Optional[Address] = None
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    is_current: Optional[bool] = None
    status: Optional[StatusField] = None


class FavoriteRequest(BaseModel):
    truck_id: UUID


class NearbyQuery(BaseModel):
    """Query string of GET /api/locations/nearby. lat/lng presence is checked by the route."""
    lat: Optional[Latitude] = None
    lng: Optional[Longitude] = None
    radius: NearbyRadius = 5.0


# ── Response Models ───────────────────────────────────────────────────────────

class UserItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    profile_photo_url: Optional[str] = None
    preferred_cuisines: List[str] = []
    notification_radius_miles: int = 5
    push_notifications_enabled: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LocationItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    truck_id: str
    address: Optional[str] = None
    latitude: float
    longitude: float
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    is_current: bool
    status: LocationStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MenuItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    truck_id: str
    name: str
    description: Optional[str] = None
    price: Decimal
    category: Optional[str] = None
    photo_url: Optional[str] = None
    is_available: bool
    is_signature: bool
    dietary_tags: List[str] = []


class TruckRef(BaseModel):
    id: str
    truck_name: str
    business_name: str


class TruckItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    business_name: str
    truck_name: str
    cuisine_types: List[str] = []
    description: Optional[str] = None
    logo_url: Optional[str] = None
    cover_photo_url: Optional[str] = None
    contact_phone: Optional[str] = None
    social_links: dict[str, str] = {}
    average_rating: float = 0.0
    review_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_serializer("average_rating")
    def _round_rating(self, value: float) -> float:
        return round(value, 2)


class TruckListItem(TruckItem):
    """TruckItem + owner username + current location (None when not out)."""
    owner_username: Optional[str] = None
    current_location: Optional[LocationItem] = None


class TruckDetail(TruckListItem):
    menu_items: List[MenuItemOut] = []
    locations: Optional[List[LocationItem]] = None


class NearbyTruck(TruckItem):
    location: LocationItem
    distance_miles: float


class TopTruck(TruckItem):
    favorite_count: int = Field(description="Number of users who favorited the truck")
    rank: int = Field(description="1-based rank")


class FavoriteTruck(TruckItem):
    favorite_id: str
    favorited_at: datetime
    current_location: Optional[LocationItem] = None
    # only set when the caller supplied lat/lng
    distance_miles: Optional[float] = None
    is_within_radius: Optional[bool] = None


class RatingResult(BaseModel):
    average_rating: float
    review_count: int

    @field_serializer("average_rating")
    def _round_rating(self, value: float) -> float:
        return round(value, 2)
