"""
VideoTube Backend — User Service
=================================

What:  Validated persistence for User records: create, read, partial update,
       delete, authentication with refresh tokens, and watch history.
How:   Each write validates first (uniqueness against existing rows), then
       runs the save path, then commits. Nothing reaches the store until the
       constraints pass, and there is no implicit retry.

Save path (`_save`):
    1. If the plaintext password was modified, await its hash (threadpool)
    2. Add and flush the row
    An update that does not touch the password never re-derives the hash.

Error Handling:
    UniqueConstraintError (409) for taken usernames/emails, including the
    race where the store's unique index fires first. NotFoundError (404),
    ConflictError (409) for restricted deletes, AuthenticationError (401).
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    UniqueConstraintError,
)
from videotube.models.user import User, WatchHistoryEntry
from videotube.models.video import Video
from videotube.schemas.user import UserCreate, UserUpdate
from videotube import security

logger = logging.getLogger(__name__)

UNIQUE_FIELDS = ("username", "email")


class UserService:
    """Business logic for User records. Stateless; sessions are passed per call."""

    async def _save(self, db: AsyncSession, user: User) -> User:
        if user.password_modified:
            user.password_hash = await security.hash_password(user.pop_pending_password())
        db.add(user)
        try:
            await db.flush()
        except IntegrityError as exc:
            await db.rollback()
            unique_error = self._unique_error_from(exc)
            if unique_error is None:
                raise
            raise unique_error from exc
        return user

    @staticmethod
    def _unique_error_from(exc: IntegrityError) -> Optional[UniqueConstraintError]:
        """Map a unique-index violation on username/email; None for any other integrity failure."""
        detail = str(exc.orig).lower()
        # PostgreSQL: duplicate key ... "ix_users_email"; SQLite: UNIQUE constraint failed: users.email
        if "unique" not in detail and "duplicate" not in detail:
            return None
        for field in UNIQUE_FIELDS:
            if field in detail:
                return UniqueConstraintError(field)
        return None

    async def _ensure_unique(
        self, db: AsyncSession, values: Dict[str, Any], exclude_id: Optional[UUID] = None
    ) -> None:
        for field in UNIQUE_FIELDS:
            value = values.get(field)
            if value is None:
                continue
            query = select(User.id).where(getattr(User, field) == value)
            if exclude_id is not None:
                query = query.where(User.id != exclude_id)
            result = await db.execute(query.limit(1))
            if result.scalar_one_or_none() is not None:
                raise UniqueConstraintError(field, value)

    async def create_user(self, db: AsyncSession, data: UserCreate) -> User:
        values = data.model_dump(exclude={"password"})
        await self._ensure_unique(db, values)

        user = User(**values, watch_history_entries=[])
        user.set_password(data.password)
        await self._save(db, user)
        await db.commit()

        logger.info("User created: %s (%s)", user.id, user.username)
        return user

    async def get_user(self, db: AsyncSession, user_id: UUID) -> User:
        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError(resource="user", resource_id=user_id)
        return user

    async def update_user(self, db: AsyncSession, user_id: UUID, data: UserUpdate) -> User:
        """Apply only the fields present in the request."""
        changes = data.model_dump(exclude_unset=True)
        user = await self.get_user(db, user_id)

        changed_unique = {
            field: changes[field]
            for field in UNIQUE_FIELDS
            if field in changes and changes[field] != getattr(user, field)
        }
        await self._ensure_unique(db, changed_unique, exclude_id=user.id)

        password = changes.pop("password", None)
        for field, value in changes.items():
            setattr(user, field, value)
        if password is not None:
            user.set_password(password)

        await self._save(db, user)
        await db.commit()
        logger.info("User updated: %s fields=%s", user.id, sorted(data.model_fields_set))
        return user

    async def delete_user(self, db: AsyncSession, user_id: UUID) -> None:
        """Restrict: a user who still owns videos cannot be deleted."""
        user = await self.get_user(db, user_id)
        owned = await db.execute(
            select(func.count()).select_from(Video).where(Video.owner_id == user.id)
        )
        count = owned.scalar() or 0
        if count:
            raise ConflictError(
                f"User still owns {count} video(s); delete or reassign them first"
            )
        await db.delete(user)
        await db.commit()
        logger.info("User deleted: %s", user_id)

    # ── Sessions ──────────────────────────────────────────────────────────

    async def authenticate(self, db: AsyncSession, login: str, password: str) -> User:
        """Verify credentials and rotate the user's refresh token."""
        login = login.strip().lower()
        result = await db.execute(
            select(User).where(or_(User.username == login, User.email == login))
        )
        user = result.scalar_one_or_none()
        if user is None or not await security.verify_password(password, user.password_hash):
            raise AuthenticationError()

        user.refresh_token = security.generate_refresh_token()
        await self._save(db, user)
        await db.commit()
        logger.info("User logged in: %s", user.id)
        return user

    async def get_by_refresh_token(self, db: AsyncSession, token: Optional[str]) -> User:
        if not token:
            raise AuthenticationError("Missing refresh token")
        result = await db.execute(select(User).where(User.refresh_token == token))
        user = result.scalar_one_or_none()
        if user is None:
            raise AuthenticationError("Invalid or expired refresh token")
        return user

    async def revoke_refresh_token(self, db: AsyncSession, user: User) -> None:
        user.refresh_token = None
        await self._save(db, user)
        await db.commit()

    # ── Watch History ─────────────────────────────────────────────────────

    async def add_to_watch_history(self, db: AsyncSession, user_id: UUID, video_id: UUID) -> User:
        user = await self.get_user(db, user_id)
        video = await db.get(Video, video_id)
        if video is None:
            raise NotFoundError(resource="video", resource_id=video_id)

        user.watch_history_entries.append(WatchHistoryEntry(video_id=video.id))
        await self._save(db, user)
        await db.commit()
        return user

    async def get_watch_history(self, db: AsyncSession, user_id: UUID) -> List[UUID]:
        user = await self.get_user(db, user_id)
        return user.watch_history


user_service = UserService()
