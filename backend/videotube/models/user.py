"""
VideoTube Backend — User and Watch History Models
==================================================

What:  ORM models for the `users` and `watch_history` tables.
Who:   UserService for CRUD and authentication; Alembic for migrations.

Table Design:
    - UUID primary key generated in Python (portable across PostgreSQL and SQLite)
    - username / email: unique indexes; the service checks them before insert
      so clients get a 409 instead of a raw IntegrityError
    - password_hash: argon2 digest; the plaintext only lives on the instance
      until the save path hashes it (see User.set_password)
    - watch_history: ordered association rows (position) pointing at videos;
      owned by the user, never owning the video

Async note:
    Lazy loading is unavailable under asyncio, so `watch_history_entries`
    loads eagerly (selectin) with every User query.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import Mapped, mapped_column, relationship

from videotube.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    full_name: Mapped[str] = mapped_column(String(120), nullable=False)

    # Externally hosted images (CDN links)
    avatar_url: Mapped[str] = mapped_column(String(500), nullable=False)
    cover_image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    refresh_token: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    watch_history_entries: Mapped[List["WatchHistoryEntry"]] = relationship(
        back_populates="user",
        order_by="WatchHistoryEntry.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    # Plaintext waiting to be hashed by the save path. Not mapped.
    _pending_password = None

    def set_password(self, plain: str) -> None:
        """Mark the password as modified; the next save re-derives password_hash."""
        self._pending_password = plain

    @property
    def password_modified(self) -> bool:
        return self._pending_password is not None

    def pop_pending_password(self) -> Optional[str]:
        plain, self._pending_password = self._pending_password, None
        return plain

    @property
    def watch_history(self) -> List[uuid.UUID]:
        """Watched video IDs, oldest first."""
        return [entry.video_id for entry in self.watch_history_entries]

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"


class WatchHistoryEntry(Base):
    __tablename__ = "watch_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    video_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("videos.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    watched_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    user: Mapped[User] = relationship(back_populates="watch_history_entries")
