"""
VideoTube Backend — Video Model
================================

What:  ORM model for the `videos` table.

Constraints enforced here as well as in the request schemas:
    - duration >= 0
    - views >= 0 and never lower than the value already on the instance
Both raise ValidationError (400) through @validates, before anything
reaches the store. CHECK constraints back them up in the database.

owner_id uses ON DELETE RESTRICT: a user who still owns videos cannot be
deleted (UserService reports that as 409 before the store does).
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, validates

from videotube.database import Base
from videotube.exceptions import ValidationError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Video(Base):
    __tablename__ = "videos"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    video_file_url: Mapped[str] = mapped_column(String(500), nullable=False)
    thumbnail_url: Mapped[str] = mapped_column(String(500), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    # Seconds
    duration: Mapped[float] = mapped_column(Float, nullable=False)
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    __table_args__ = (
        CheckConstraint("duration >= 0", name="ck_videos_duration_non_negative"),
        CheckConstraint("views >= 0", name="ck_videos_views_non_negative"),
        Index("idx_videos_created_at", created_at.desc()),
    )

    @validates("duration")
    def _validate_duration(self, key: str, value: float) -> float:
        if value is None or value < 0:
            raise ValidationError("duration must be a non-negative number", field="duration")
        return value

    @validates("views")
    def _validate_views(self, key: str, value: int) -> int:
        if value is None or value < 0:
            raise ValidationError("views must be a non-negative integer", field="views")
        current = self.views
        if current is not None and value < current:
            raise ValidationError(
                f"views cannot decrease (current {current}, got {value})", field="views"
            )
        return value

    def __repr__(self) -> str:
        return f"<Video(id={self.id}, title='{self.title}', views={self.views})>"
