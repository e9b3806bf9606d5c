"""
VideoTube Backend — Video Routes
=================================

    POST   /api/v1/videos               create (owner must exist)
    GET    /api/v1/videos               list, newest first
    GET    /api/v1/videos/{id}          detail
    PATCH  /api/v1/videos/{id}          partial update (views never decrease)
    POST   /api/v1/videos/{id}/views    count one view
    DELETE /api/v1/videos/{id}          remove
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.database import get_db_session
from videotube.executor import async_handler
from videotube.schemas.common import ErrorResponse
from videotube.schemas.video import (
    VideoCreate,
    VideoListResponse,
    VideoResponse,
    VideoUpdate,
    ViewCountResponse,
)
from videotube.services.video_service import video_service

router = APIRouter(
    prefix="/api/v1/videos",
    tags=["Videos"],
    responses={500: {"model": ErrorResponse}},
)


@router.post("", status_code=201, response_model=VideoResponse, responses={404: {"model": ErrorResponse}})
@async_handler
async def create_video(payload: VideoCreate, db: AsyncSession = Depends(get_db_session)):
    video = await video_service.create_video(db, payload)
    return VideoResponse.model_validate(video)


@router.get("", response_model=VideoListResponse)
@async_handler
async def list_videos(
    response: Response,
    owner_id: Optional[UUID] = Query(default=None, description="Only videos of this user"),
    published: Optional[bool] = Query(default=None, description="Filter on is_published"),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db_session),
):
    result = await video_service.list_videos(
        db, owner_id=owner_id, published=published, limit=limit, offset=offset
    )
    response.headers["X-Total-Count"] = str(result.total_count)
    return result


@router.get("/{video_id}", response_model=VideoResponse, responses={404: {"model": ErrorResponse}})
@async_handler
async def get_video(video_id: UUID, db: AsyncSession = Depends(get_db_session)):
    video = await video_service.get_video(db, video_id)
    return VideoResponse.model_validate(video)


@router.patch(
    "/{video_id}",
    response_model=VideoResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
@async_handler
async def update_video(video_id: UUID, payload: VideoUpdate, db: AsyncSession = Depends(get_db_session)):
    video = await video_service.update_video(db, video_id, payload)
    return VideoResponse.model_validate(video)


@router.post("/{video_id}/views", response_model=ViewCountResponse, responses={404: {"model": ErrorResponse}})
@async_handler
async def record_view(video_id: UUID, db: AsyncSession = Depends(get_db_session)):
    video = await video_service.record_view(db, video_id)
    return ViewCountResponse(id=video.id, views=video.views)


@router.delete("/{video_id}", status_code=204, responses={404: {"model": ErrorResponse}})
@async_handler
async def delete_video(video_id: UUID, db: AsyncSession = Depends(get_db_session)):
    await video_service.delete_video(db, video_id)
    return Response(status_code=204)
