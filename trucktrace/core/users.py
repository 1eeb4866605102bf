"""
core/users.py – UserService class + request principals.

Responsibility: registration, login portals, profile, password flows.
Role is resolved once per request into Customer | Owner (an owner is a
user who has a truck row).
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Literal, Optional, Union

from sqlalchemy import select

from ..db.models import FoodTruck, User
from ..db.session import db_session
from ..models import (
    CustomerRegisterRequest, OwnerRegisterRequest, ProfileUpdateRequest, TruckItem, UserItem,
)
from .convert import to_truck, to_user
from .errors import AuthError, ConflictError, NotFoundError, ValidationFailed
from .security import TokenSigner, hash_password, password_fingerprint, verify_password

logger = logging.getLogger(__name__)

Portal = Literal["customer", "owner"]

FORGOT_PASSWORD_MSG = "If an account with that email exists, a password reset link has been sent."


# ── Principals ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Customer:
    user: UserItem
    role: Literal["customer"] = "customer"

    @property
    def truck(self) -> None:
        return None


@dataclass(frozen=True)
class Owner:
    user: UserItem
    truck: TruckItem
    role: Literal["owner"] = "owner"


Principal = Union[Customer, Owner]


def make_principal(user: UserItem, truck: Optional[TruckItem]) -> Principal:
    return Owner(user=user, truck=truck) if truck is not None else Customer(user=user)


# ── Service ───────────────────────────────────────────────────────────────────

class UserService:
    """Accounts and sessions. Tokens carry the user id only."""

    def __init__(self, database_url: str, signer: TokenSigner) -> None:
        self._db     = database_url
        self._signer = signer

    # ── Public: Registration / Login ───────────────────────────────────────────

    async def register_customer(self, req: CustomerRegisterRequest) -> dict:
        return await asyncio.get_event_loop().run_in_executor(None, self._do_register_customer, req)

    async def register_owner(self, req: OwnerRegisterRequest) -> dict:
        """User + truck in one transaction."""
        return await asyncio.get_event_loop().run_in_executor(None, self._do_register_owner, req)

    async def login(self, email: str, password: str, portal: Portal) -> dict:
        return await asyncio.get_event_loop().run_in_executor(None, self._do_login, email, password, portal)

    # ── Public: Session ────────────────────────────────────────────────────────

    async def authenticate(self, token: str) -> Principal:
        """Bearer token → Principal. Raises AuthError."""
        user_id = self._signer.decode_access_token(token)
        return await self.resolve(user_id)

    async def resolve(self, user_id: str) -> Principal:
        return await asyncio.get_event_loop().run_in_executor(None, self._fetch_principal, user_id)

    # ── Public: Profile / Password ─────────────────────────────────────────────

    async def update_profile(self, user_id: str, req: ProfileUpdateRequest) -> UserItem:
        return await asyncio.get_event_loop().run_in_executor(None, self._do_update_profile, user_id, req)

    async def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        await asyncio.get_event_loop().run_in_executor(
            None, self._do_change_password, user_id, current_password, new_password
        )

    async def forgot_password(self, email: str) -> Optional[str]:
        """Issue a reset token when the email exists. No delivery channel yet."""
        return await asyncio.get_event_loop().run_in_executor(None, self._do_forgot_password, email)

    async def reset_password(self, token: str, new_password: str) -> None:
        await asyncio.get_event_loop().run_in_executor(None, self._do_reset_password, token, new_password)

    # ── Private: ORM ───────────────────────────────────────────────────────────

    def _do_register_customer(self, req: CustomerRegisterRequest) -> dict:
        with db_session(self._db) as session:
            self._ensure_email_free(session, req.email)
            user = User(
                username=req.username,
                email=req.email,
                password_hash=hash_password(req.password),
                profile_photo_url=req.profile_photo_url,
                preferred_cuisines=req.preferred_cuisines,
                notification_radius_miles=req.notification_radius_miles,
            )
            session.add(user)
            session.flush()
            item = to_user(user)
        logger.info("Customer registered: %s", item.id)
        return {"user": item, "token": self._signer.create_access_token(item.id)}

    def _do_register_owner(self, req: OwnerRegisterRequest) -> dict:
        with db_session(self._db) as session:
            self._ensure_email_free(session, req.email)
            user = User(username=req.username, email=req.email, password_hash=hash_password(req.password))
            session.add(user)
            session.flush()
            truck = FoodTruck(owner_id=user.id, **req.truck_fields())
            session.add(truck)
            session.flush()
            user_item, truck_item = to_user(user), to_truck(truck)
        logger.info("Owner registered: %s (truck %s)", user_item.id, truck_item.id)
        return {"user": user_item, "truck": truck_item, "token": self._signer.create_access_token(user_item.id)}

    def _do_login(self, email: str, password: str, portal: Portal) -> dict:
        with db_session(self._db) as session:
            user = session.scalar(select(User).where(User.email == email))
            if user is None or not verify_password(password, user.password_hash):
                logger.warning("Failed %s login for %s", portal, email)
                raise AuthError("Invalid email or password")
            truck = session.scalar(select(FoodTruck).where(FoodTruck.owner_id == user.id))
            if portal == "customer" and truck is not None:
                raise AuthError("Please use the owner login portal")
            if portal == "owner" and truck is None:
                raise AuthError("Please use the customer login portal")
            result: dict = {"user": to_user(user)}
            if truck is not None:
                result["truck"] = to_truck(truck)
        result["token"] = self._signer.create_access_token(result["user"].id)
        return result

    def _fetch_principal(self, user_id: str) -> Principal:
        with db_session(self._db) as session:
            user = session.get(User, user_id)
            if user is None:
                raise AuthError("Invalid token. User not found.")
            truck = session.scalar(select(FoodTruck).where(FoodTruck.owner_id == user.id))
            return make_principal(to_user(user), to_truck(truck) if truck else None)

    def _do_update_profile(self, user_id: str, req: ProfileUpdateRequest) -> UserItem:
        with db_session(self._db) as session:
            user = session.get(User, user_id)
            if user is None:
                raise NotFoundError("User not found")
            for field, value in req.model_dump(exclude_unset=True).items():
                if value is not None:
                    setattr(user, field, value)
            session.flush()
            return to_user(user)

    def _do_change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        with db_session(self._db) as session:
            user = session.get(User, user_id)
            if user is None:
                raise NotFoundError("User not found")
            if not verify_password(current_password, user.password_hash):
                raise ValidationFailed("Current password is incorrect")
            user.password_hash = hash_password(new_password)
        logger.info("Password changed: %s", user_id)

    def _do_forgot_password(self, email: str) -> Optional[str]:
        with db_session(self._db) as session:
            user = session.scalar(select(User).where(User.email == email))
            if user is None:
                return None
            token = self._signer.create_reset_token(user.id, user.password_hash)
        logger.info("Password reset token issued for %s", user.id)
        logger.debug("Reset token for %s: %s", user.id, token)
        return token

    def _do_reset_password(self, token: str, new_password: str) -> None:
        user_id, fingerprint = self._signer.decode_reset_token(token)
        with db_session(self._db) as session:
            user = session.get(User, user_id)
            # a token stops working once the password it was issued for changes
            if user is None or password_fingerprint(user.password_hash) != fingerprint:
                raise AuthError("Invalid or expired reset token")
            user.password_hash = hash_password(new_password)
        logger.info("Password reset: %s", user_id)

    @staticmethod
    def _ensure_email_free(session, email: str) -> None:
        if session.scalar(select(User.id).where(User.email == email)) is not None:
            raise ConflictError("Email already registered")
