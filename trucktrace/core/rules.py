"""
core/rules.py – Declarative field rules: field → constraint → message.

Each rule is a plain callable (value → value) that raises ValueError with
the user-facing message. Request schemas in models.py attach them as
pydantic AfterValidators; the API surfaces the messages as
`errors: [{field, message}]`.
"""
import re
from typing import Callable, Iterable, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import HttpUrl, TypeAdapter, ValidationError

Rule = Callable[[object], object]

USERNAME_RE = re.compile(r"^[a-zA-Z0-9_]+$")
PHONE_RE    = re.compile(r"^\+?[0-9 ()\-.]{7,20}$")

_http_url = TypeAdapter(HttpUrl)

LOCATION_STATUSES = ("open", "closing_soon", "closed")

PASSWORD_MSG = "Password must contain at least one uppercase letter, one lowercase letter, and one number"


# ── Rule builders ─────────────────────────────────────────────────────────────

def length(min_len: int, max_len: int, message: str) -> Rule:
    def _rule(value):
        if value is not None and not (min_len <= len(value) <= max_len):
            raise ValueError(message)
        return value
    return _rule


def max_length(max_len: int, message: str) -> Rule:
    return length(0, max_len, message)


def number_range(lo: float, hi: float, message: str) -> Rule:
    def _rule(value):
        if value is not None and not (lo <= value <= hi):
            raise ValueError(message)
        return value
    return _rule


def one_of(choices: Iterable[str], message: str) -> Rule:
    allowed = set(choices)
    def _rule(value):
        if value is not None and value not in allowed:
            raise ValueError(message)
        return value
    return _rule


# ── Field rules ───────────────────────────────────────────────────────────────

def username(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if not 3 <= len(value) <= 50:
        raise ValueError("Username must be between 3 and 50 characters")
    if not USERNAME_RE.match(value):
        raise ValueError("Username can only contain letters, numbers, and underscores")
    return value


def email(value: str) -> str:
    """Syntax check only (no DNS lookup); stored lowercased."""
    try:
        checked = validate_email((value or "").strip(), check_deliverability=False)
    except EmailNotValidError:
        raise ValueError("Valid email is required") from None
    return checked.normalized.lower()


def new_password(value: str) -> str:
    if len(value or "") < 8:
        raise ValueError("Password must be at least 8 characters long")
    if not (re.search(r"[a-z]", value) and re.search(r"[A-Z]", value) and re.search(r"\d", value)):
        raise ValueError(PASSWORD_MSG)
    return value


def required(message: str) -> Rule:
    def _rule(value):
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError(message)
        return value
    return _rule


def url(message: str) -> Rule:
    def _rule(value):
        if value is None:
            return value
        value = value.strip()
        try:
            _http_url.validate_python(value)
        except ValidationError:
            raise ValueError(message) from None
        return value
    return _rule


def phone(value: Optional[str]) -> Optional[str]:
    if value is not None and not PHONE_RE.match(value.strip()):
        raise ValueError("Valid phone number is required")
    return value


def cuisine_list(min_items: int, message: str) -> Rule:
    def _rule(value):
        if value is None:
            return value
        cleaned = [c.strip() for c in value if c and c.strip()]
        if len(cleaned) < min_items:
            raise ValueError(message)
        # keep first occurrence order, drop duplicates
        return list(dict.fromkeys(cleaned))
    return _rule


business_name   = length(2, 255, "Business name must be between 2 and 255 characters")
truck_name      = length(2, 255, "Truck name must be between 2 and 255 characters")
description     = max_length(1000, "Description must not exceed 1000 characters")
address         = max_length(255, "Address must not exceed 255 characters")
truck_cuisines  = cuisine_list(1, "At least one cuisine type must be selected")
preferred       = cuisine_list(0, "Preferred cuisines must be an array")
notify_radius   = number_range(1, 50, "Notification radius must be between 1 and 50 miles")
location_status = one_of(LOCATION_STATUSES, "Status must be one of: open, closing_soon, closed")
latitude        = number_range(-90, 90, "Valid latitude is required (-90 to 90)")
longitude       = number_range(-180, 180, "Valid longitude is required (-180 to 180)")
nearby_radius   = number_range(0.5, 50, "Radius must be between 0.5 and 50 miles")
rating_stars    = number_range(1, 5, "Rating must be between 1 and 5")
menu_name       = length(1, 255, "Menu item name must be between 1 and 255 characters")
category        = max_length(100, "Category must not exceed 100 characters")
