"""
core/security.py – Password hashing (bcrypt) + signed tokens (PyJWT, HS256).

Access token payload carries the user id only; it is re-resolved to a
full principal on every request.
"""
import hashlib
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from .errors import AuthError

ALGORITHM     = "HS256"
RESET_PURPOSE = "password_reset"


# ── Passwords ─────────────────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


# ── Tokens ────────────────────────────────────────────────────────────────────

class TokenSigner:
    """Issues and verifies access + password-reset tokens with one secret."""

    def __init__(self, secret: str, access_days: int = 7, reset_minutes: int = 30) -> None:
        self._secret        = secret
        self._access_ttl    = timedelta(days=access_days)
        self._reset_ttl     = timedelta(minutes=reset_minutes)

    def create_access_token(self, user_id: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {"id": user_id, "iat": now, "exp": now + self._access_ttl}
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def decode_access_token(self, token: str) -> str:
        """Return the user id carried by the token."""
        payload = self._decode(token, "Token expired.", "Invalid token.")
        if payload.get("purpose") or not payload.get("id"):
            raise AuthError("Invalid token.")
        return payload["id"]

    def create_reset_token(self, user_id: str, password_hash: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "id":      user_id,
            "purpose": RESET_PURPOSE,
            "pwd":     password_fingerprint(password_hash),
            "iat":     now,
            "exp":     now + self._reset_ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def decode_reset_token(self, token: str) -> tuple[str, str]:
        """Return (user_id, password fingerprint) of a reset token."""
        msg = "Invalid or expired reset token"
        payload = self._decode(token, msg, msg)
        if payload.get("purpose") != RESET_PURPOSE or not payload.get("id"):
            raise AuthError(msg)
        return payload["id"], payload.get("pwd", "")

    # ── Private ────────────────────────────────────────────────────────────────

    def _decode(self, token: str, expired_msg: str, invalid_msg: str) -> dict:
        try:
            return jwt.decode(token, self._secret, algorithms=[ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise AuthError(expired_msg)
        except jwt.InvalidTokenError:
            raise AuthError(invalid_msg)


def password_fingerprint(password_hash: str) -> str:
    # a reset token dies as soon as the password it was issued against changes
    return hashlib.sha256(password_hash.encode("utf-8")).hexdigest()[:16]
