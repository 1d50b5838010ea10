"""
Session authority: turns a verified identity into a bounded-lifetime access
token and lets it be renewed (refresh-token rotation) or revoked (logout)
without re-presenting the password.

Refresh session lifecycle, one RefreshToken row each:
    login    -> row created
    refresh  -> same row, new value and expiry (old value stops matching)
    expired  -> row deleted when presented
    logout   -> row deleted
Absence is the only terminal state, so a reused token and one that was never
issued are indistinguishable ("Refresh token inválido").
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Mapping, Optional

import jwt

from models.user import User
from services.errors import AuthenticationError, ValidationError
from services.stores import CredentialStore, RefreshTokenStore, utcnow
from utils.security import AccessTokenIssuer, generate_refresh_token, verify_password

logger = logging.getLogger(__name__)

MSG_CREDENTIALS_REQUIRED = "Email e senha são obrigatórios"
MSG_BAD_CREDENTIALS = "Email ou senha incorretos"
MSG_INACTIVE_USER = "Usuário inativo. Contate o administrador."
MSG_REFRESH_REQUIRED = "Refresh token é obrigatório"
MSG_REFRESH_INVALID = "Refresh token inválido"
MSG_REFRESH_EXPIRED = "Refresh token expirado"
MSG_OWNER_INVALID = "Usuário inválido ou inativo"
MSG_LOGOUT_OK = "Logout realizado com sucesso"
MSG_TOKEN_MISSING = "Token não fornecido"
MSG_TOKEN_INVALID = "Token inválido ou expirado"


def format_ttl(ttl: timedelta) -> str:
    """Render a lifetime the way clients already parse it: 1h, 15m, 90s."""
    seconds = int(ttl.total_seconds())
    if seconds and seconds % 3600 == 0:
        return f"{seconds // 3600}h"
    if seconds and seconds % 60 == 0:
        return f"{seconds // 60}m"
    return f"{seconds}s"


@dataclass(frozen=True)
class SessionSettings:
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "ps-sports-api"
    access_token_ttl: timedelta = timedelta(hours=1)
    refresh_token_ttl: timedelta = timedelta(days=30)

    def __post_init__(self):
        if not self.jwt_secret:
            raise ValueError("jwt_secret must be a non-empty string")

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "SessionSettings":
        return cls(
            jwt_secret=config.get("JWT_SECRET"),
            jwt_algorithm=config.get("JWT_ALGORITHM", "HS256"),
            jwt_issuer=config.get("JWT_ISSUER", "ps-sports-api"),
            access_token_ttl=config.get("ACCESS_TOKEN_EXPIRES", timedelta(hours=1)),
            refresh_token_ttl=config.get("REFRESH_TOKEN_EXPIRES", timedelta(days=30)),
        )


@dataclass
class LoginResult:
    user: User
    access_token: str
    refresh_token: str
    expires_in: str


@dataclass
class RefreshResult:
    access_token: str
    refresh_token: str
    expires_in: str


def _is_filled(value) -> bool:
    return isinstance(value, str) and value.strip() != ""


class SessionAuthority:
    def __init__(self, settings: SessionSettings, credentials: CredentialStore,
                 refresh_tokens: RefreshTokenStore, issuer: Optional[AccessTokenIssuer] = None):
        self.settings = settings
        self.credentials = credentials
        self.refresh_tokens = refresh_tokens
        self.issuer = issuer or AccessTokenIssuer(
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            ttl=settings.access_token_ttl,
            issuer=settings.jwt_issuer,
        )

    @property
    def expires_in(self) -> str:
        return format_ttl(self.settings.access_token_ttl)

    def login(self, email, password) -> LoginResult:
        if not _is_filled(email) or not _is_filled(password):
            raise ValidationError(MSG_CREDENTIALS_REQUIRED)

        user = self.credentials.find_by_email(email.strip().lower())
        if user is None:
            logger.info("Login rejected: unknown email")
            raise AuthenticationError(MSG_BAD_CREDENTIALS)
        # Inactive accounts get their own message even with a correct password
        if not user.is_active:
            logger.info("Login rejected: inactive user %s", user.id)
            raise AuthenticationError(MSG_INACTIVE_USER)
        if not verify_password(password, user.password_hash):
            logger.info("Login rejected: wrong password for user %s", user.id)
            raise AuthenticationError(MSG_BAD_CREDENTIALS)

        access_token = self.issuer.issue(user.id, user.email)
        refresh_token = generate_refresh_token()
        self.refresh_tokens.create(user.id, refresh_token, utcnow() + self.settings.refresh_token_ttl)
        logger.info("User %s logged in", user.id)
        return LoginResult(user=user, access_token=access_token,
                           refresh_token=refresh_token, expires_in=self.expires_in)

    def refresh(self, refresh_token) -> RefreshResult:
        if not _is_filled(refresh_token):
            raise ValidationError(MSG_REFRESH_REQUIRED)

        record = self.refresh_tokens.find(refresh_token)
        if record is None:
            raise AuthenticationError(MSG_REFRESH_INVALID)

        if utcnow() > record.expires_at:
            logger.info("Refresh token %s expired; deleting", record.id)
            self.refresh_tokens.delete_by_token(refresh_token)
            raise AuthenticationError(MSG_REFRESH_EXPIRED)

        user = self.credentials.get(record.user_id)
        if user is None or not user.is_active:
            logger.info("Refresh token %s belongs to a missing or inactive user; deleting", record.id)
            self.refresh_tokens.delete_by_token(refresh_token)
            raise AuthenticationError(MSG_OWNER_INVALID)

        access_token = self.issuer.issue(user.id, user.email)
        new_refresh_token = generate_refresh_token()
        rotated = self.refresh_tokens.rotate(
            record.id, refresh_token, new_refresh_token, utcnow() + self.settings.refresh_token_ttl
        )
        if not rotated:
            # Someone else rotated or revoked this value between our read and write
            logger.warning("Lost rotation race on refresh token %s", record.id)
            raise AuthenticationError(MSG_REFRESH_INVALID)

        logger.info("Rotated refresh token %s for user %s", record.id, user.id)
        return RefreshResult(access_token=access_token, refresh_token=new_refresh_token,
                             expires_in=self.expires_in)

    def logout(self, refresh_token) -> str:
        if not _is_filled(refresh_token):
            raise ValidationError(MSG_REFRESH_REQUIRED)
        # Unknown or already-revoked tokens are still a successful logout
        if self.refresh_tokens.delete_by_token(refresh_token):
            logger.info("Refresh session revoked by logout")
        return MSG_LOGOUT_OK

    def verify_token(self, authorization: Optional[str]) -> Dict[str, Any]:
        """
        Check an `Authorization: Bearer <token>` header value and return the
        decoded claims.
        """
        token = extract_bearer_token(authorization)
        if not token:
            raise AuthenticationError(MSG_TOKEN_MISSING)
        try:
            return self.issuer.decode(token)
        except jwt.InvalidTokenError:
            raise AuthenticationError(MSG_TOKEN_INVALID) from None


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None
