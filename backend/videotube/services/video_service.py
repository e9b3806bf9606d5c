"""
VideoTube Backend — Video Service
==================================

What:  Validated persistence for Video records.
How:   Stateless; each call receives the request's session and commits its
       own writes.

Invariants:
    - owner_id must reference an existing user (404 otherwise)
    - views never decrease: a partial update carrying a lower `views` is
      rejected before any field is applied; `record_view` increments in SQL
      so concurrent viewers never lose a count
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.exceptions import NotFoundError, ValidationError
from videotube.models.user import User
from videotube.models.video import Video
from videotube.schemas.video import VideoCreate, VideoListResponse, VideoResponse, VideoUpdate

logger = logging.getLogger(__name__)


class VideoService:

    async def create_video(self, db: AsyncSession, data: VideoCreate) -> Video:
        owner = await db.get(User, data.owner_id)
        if owner is None:
            raise NotFoundError(resource="user", resource_id=data.owner_id)

        video = Video(**data.model_dump())
        db.add(video)
        await db.flush()
        await db.commit()
        logger.info("Video created: %s owner=%s", video.id, video.owner_id)
        return video

    async def get_video(self, db: AsyncSession, video_id: UUID) -> Video:
        video = await db.get(Video, video_id)
        if video is None:
            raise NotFoundError(resource="video", resource_id=video_id)
        return video

    async def list_videos(
        self,
        db: AsyncSession,
        owner_id: Optional[UUID] = None,
        published: Optional[bool] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> VideoListResponse:
        """Newest first, with the total count of matching rows."""
        filters = []
        if owner_id is not None:
            filters.append(Video.owner_id == owner_id)
        if published is not None:
            filters.append(Video.is_published == published)

        query = (
            select(Video)
            .where(*filters)
            .order_by(desc(Video.created_at), desc(Video.id))
            .limit(limit)
            .offset(offset)
        )
        result = await db.execute(query)
        videos = result.scalars().all()

        count_result = await db.execute(select(func.count()).select_from(Video).where(*filters))
        total = count_result.scalar() or 0

        return VideoListResponse(
            videos=[VideoResponse.model_validate(v) for v in videos],
            total_count=total,
            limit=limit,
            offset=offset,
        )

    async def update_video(self, db: AsyncSession, video_id: UUID, data: VideoUpdate) -> Video:
        """Apply only the fields present in the request."""
        changes = data.model_dump(exclude_unset=True)
        video = await self.get_video(db, video_id)

        new_views = changes.get("views")
        if new_views is not None and new_views < video.views:
            raise ValidationError(
                f"views cannot decrease (current {video.views}, got {new_views})",
                field="views",
            )

        for field, value in changes.items():
            setattr(video, field, value)
        await db.flush()
        await db.commit()
        logger.info("Video updated: %s fields=%s", video.id, sorted(changes))
        return video

    async def record_view(self, db: AsyncSession, video_id: UUID) -> Video:
        await self.get_video(db, video_id)
        await db.execute(
            update(Video)
            .where(Video.id == video_id)
            .values(views=Video.views + 1)
            .execution_options(synchronize_session=False)
        )
        await db.commit()

        result = await db.execute(
            select(Video).where(Video.id == video_id).execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def delete_video(self, db: AsyncSession, video_id: UUID) -> None:
        video = await self.get_video(db, video_id)
        await db.delete(video)
        await db.commit()
        logger.info("Video deleted: %s", video_id)


video_service = VideoService()
