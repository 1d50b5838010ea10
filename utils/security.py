"""
security helpers:
- Argon2 password hashing via argon2-cffi
- Access token creation/verification via PyJWT
- Opaque refresh token generation
"""
from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Dict, Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

ph = PasswordHasher()

REFRESH_TOKEN_BYTES = 32


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    """Verify a plaintext password against an Argon2 hash.
    A mismatch or a malformed stored hash both count as a failed check.
    """
    if not password_hash:
        return False
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def generate_refresh_token(nbytes: int = REFRESH_TOKEN_BYTES) -> str:
    """Opaque, URL-safe refresh token value."""
    return secrets.token_urlsafe(nbytes)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class AccessTokenIssuer:
    """Mints and checks the short-lived signed access tokens."""

    token_type = "access"

    def __init__(self, secret: str, algorithm: str = "HS256", ttl: timedelta = timedelta(hours=1),
                 issuer: str = "ps-sports-api"):
        self.secret = secret
        self.algorithm = algorithm
        self.ttl = ttl
        self.issuer = issuer

    def issue(self, user_id: str, email: str) -> str:
        now = _now()
        payload = {
            "id": str(user_id),
            "email": email,
            "sub": str(user_id),
            "iss": self.issuer,
            "iat": int(now.timestamp()),
            "exp": int((now + self.ttl).timestamp()),
            "type": self.token_type,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode(self, token: str) -> Dict[str, Any]:
        """
        Decode and validate an access token.
        Raises jwt.InvalidTokenError (or a subclass) on bad signature, expiry,
        wrong issuer or wrong token type.
        """
        decoded = jwt.decode(
            token,
            self.secret,
            algorithms=[self.algorithm],
            issuer=self.issuer,
            options={"require": ["exp", "iat", "sub"]},
        )
        if decoded.get("type") != self.token_type:
            raise jwt.InvalidTokenError("Wrong token type")
        return decoded
