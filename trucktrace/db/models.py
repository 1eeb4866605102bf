"""
db/models.py – SQLAlchemy ORM models: users, food_trucks, locations,
menu_items, favorites.

Ids are UUID strings; set-valued fields (cuisines, tags) are JSON lists.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON, Boolean, Column, DateTime, Float, ForeignKey, Index, Integer,
    Numeric, String, Text, UniqueConstraint, text,
)
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id                         = Column(String(36), primary_key=True, default=_uuid)
    username                   = Column(String(50),  nullable=False)
    email                      = Column(String(255), nullable=False, unique=True, index=True)
    password_hash              = Column(String(255), nullable=False)
    profile_photo_url          = Column(String(500), nullable=True)
    preferred_cuisines         = Column(JSON,    nullable=False, default=list)
    notification_radius_miles  = Column(Integer, nullable=False, default=5)
    push_notifications_enabled = Column(Boolean, nullable=False, default=True)
    created_at                 = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at                 = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    truck     = relationship("FoodTruck", back_populates="owner", uselist=False)
    favorites = relationship("Favorite", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r}>"


class FoodTruck(Base):
    __tablename__ = "food_trucks"

    id              = Column(String(36), primary_key=True, default=_uuid)
    # unique → at most one truck per owner
    owner_id        = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    business_name   = Column(String(255), nullable=False)
    truck_name      = Column(String(255), nullable=False, index=True)
    cuisine_types   = Column(JSON,   nullable=False, default=list)
    description     = Column(Text,   nullable=True)
    logo_url        = Column(String(500), nullable=True)
    cover_photo_url = Column(String(500), nullable=True)
    contact_phone   = Column(String(30),  nullable=True)
    social_links    = Column(JSON,   nullable=False, default=dict)
    average_rating  = Column(Float,  nullable=False, default=0.0)
    review_count    = Column(Integer, nullable=False, default=0)
    created_at      = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at      = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    owner      = relationship("User", back_populates="truck")
    locations  = relationship("Location", back_populates="truck", cascade="all, delete-orphan", passive_deletes=True)
    menu_items = relationship("MenuItem", back_populates="truck", cascade="all, delete-orphan", passive_deletes=True)
    favorites  = relationship("Favorite", back_populates="truck", cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<FoodTruck id={self.id} truck_name={self.truck_name!r}>"


class Location(Base):
    __tablename__ = "locations"

    id              = Column(String(36), primary_key=True, default=_uuid)
    truck_id        = Column(String(36), ForeignKey("food_trucks.id", ondelete="CASCADE"), nullable=False, index=True)
    address         = Column(String(255), nullable=True)
    latitude        = Column(Float, nullable=False)
    longitude       = Column(Float, nullable=False)
    scheduled_start = Column(DateTime(timezone=True), nullable=True)
    scheduled_end   = Column(DateTime(timezone=True), nullable=True)
    is_current      = Column(Boolean, nullable=False, default=False)
    status          = Column(String(20), nullable=False, default="open")
    created_at      = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at      = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    truck = relationship("FoodTruck", back_populates="locations")

    __table_args__ = (
        # at most one current row per truck, enforced by the store
        Index(
            "uq_locations_one_current", "truck_id",
            unique=True,
            sqlite_where=text("is_current = 1"),
            postgresql_where=text("is_current"),
        ),
        Index("ix_locations_current_lat_lng", "is_current", "latitude", "longitude"),
    )

    def __repr__(self) -> str:
        return f"<Location id={self.id} truck_id={self.truck_id} current={self.is_current}>"


class MenuItem(Base):
    __tablename__ = "menu_items"

    id           = Column(String(36), primary_key=True, default=_uuid)
    truck_id     = Column(String(36), ForeignKey("food_trucks.id", ondelete="CASCADE"), nullable=False, index=True)
    name         = Column(String(255), nullable=False)
    description  = Column(Text, nullable=True)
    price        = Column(Numeric(10, 2), nullable=False)
    category     = Column(String(100), nullable=True)
    photo_url    = Column(String(500), nullable=True)
    is_available = Column(Boolean, nullable=False, default=True)
    is_signature = Column(Boolean, nullable=False, default=False)
    dietary_tags = Column(JSON, nullable=False, default=list)
    created_at   = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at   = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    truck = relationship("FoodTruck", back_populates="menu_items")

    def __repr__(self) -> str:
        return f"<MenuItem id={self.id} name={self.name!r}>"


class Favorite(Base):
    __tablename__ = "favorites"

    id         = Column(String(36), primary_key=True, default=_uuid)
    user_id    = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    truck_id   = Column(String(36), ForeignKey("food_trucks.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    user  = relationship("User", back_populates="favorites")
    truck = relationship("FoodTruck", back_populates="favorites")

    __table_args__ = (
        UniqueConstraint("user_id", "truck_id", name="uq_favorites_user_truck"),
    )

    def __repr__(self) -> str:
        return f"<Favorite user_id={self.user_id} truck_id={self.truck_id}>"
