"""
Persistence adapters used by the session authority.

Both stores sit on the DBStorage scoped session and translate SQLAlchemy
failures into InternalError, so callers only ever see the service taxonomy.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import wraps
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from models.refresh_token import RefreshToken
from models.user import User
from services.errors import InternalError

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Naive UTC, matching how the DateTime columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _translate_db_errors(fn):
    @wraps(fn)
    def wrapper(self, *args, **kwargs):
        try:
            return fn(self, *args, **kwargs)
        except SQLAlchemyError as exc:
            self.storage.rollback()
            raise InternalError(f"{type(self).__name__}.{fn.__name__} failed: {exc}") from exc

    return wrapper


class CredentialStore:
    """Read-only view of the users table."""

    def __init__(self, storage):
        self.storage = storage

    @_translate_db_errors
    def find_by_email(self, email: str) -> Optional[User]:
        session = self.storage.get_session()
        return session.query(User).filter(User.email == email).first()

    @_translate_db_errors
    def get(self, user_id: str) -> Optional[User]:
        return self.storage.get(User, user_id)


class RefreshTokenStore:
    """One row per live refresh session."""

    def __init__(self, storage):
        self.storage = storage

    @_translate_db_errors
    def create(self, user_id: str, token: str, expires_at: datetime) -> RefreshToken:
        record = RefreshToken(user_id=user_id, refresh_token=token, expires_at=expires_at)
        self.storage.new(record)
        self.storage.save()
        return record

    @_translate_db_errors
    def find(self, token: str) -> Optional[RefreshToken]:
        session = self.storage.get_session()
        return session.query(RefreshToken).filter(RefreshToken.refresh_token == token).first()

    @_translate_db_errors
    def delete_by_token(self, token: str) -> int:
        session = self.storage.get_session()
        deleted = (
            session.query(RefreshToken)
            .filter(RefreshToken.refresh_token == token)
            .delete(synchronize_session="fetch")
        )
        self.storage.save()
        return deleted

    @_translate_db_errors
    def rotate(self, record_id: str, old_token: str, new_token: str, expires_at: datetime) -> bool:
        """
        Compare-and-swap the token value of one row.
        Returns False when the row no longer holds `old_token` (already
        rotated, logged out or deleted), so two concurrent rotations of the
        same value cannot both succeed.
        """
        session = self.storage.get_session()
        updated = (
            session.query(RefreshToken)
            .filter(RefreshToken.id == record_id, RefreshToken.refresh_token == old_token)
            .update(
                {
                    RefreshToken.refresh_token: new_token,
                    RefreshToken.expires_at: expires_at,
                    RefreshToken.updated_at: utcnow(),
                },
                synchronize_session="fetch",
            )
        )
        self.storage.save()
        return updated == 1

    @_translate_db_errors
    def purge_expired(self, now: datetime) -> int:
        session = self.storage.get_session()
        deleted = (
            session.query(RefreshToken)
            .filter(RefreshToken.expires_at < now)
            .delete(synchronize_session="fetch")
        )
        self.storage.save()
        if deleted:
            logger.info("Purged %d expired refresh tokens", deleted)
        return deleted
