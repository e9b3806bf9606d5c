"""
VideoTube Backend — User Routes
================================

Routes are thin: parse the request, call UserService, shape the response.
Every handler is wrapped by `async_handler`, so a raised ApiError (or
anything unexpected) becomes `{"success": false, "message": ...}`.

Session cookie:
    POST /login sets an httponly `refreshToken` cookie. GET /current and
    POST /logout read it back from `request.cookies`.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.config import settings
from videotube.database import get_db_session
from videotube.executor import async_handler
from videotube.schemas.common import ErrorResponse, MessageResponse
from videotube.schemas.user import (
    UserCreate,
    UserLogin,
    UserResponse,
    UserUpdate,
    WatchHistoryAdd,
    WatchHistoryResponse,
)
from videotube.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/users",
    tags=["Users"],
    responses={500: {"model": ErrorResponse}},
)


@router.post(
    "",
    status_code=201,
    response_model=UserResponse,
    responses={409: {"model": ErrorResponse, "description": "Username or email taken"}},
)
@async_handler
async def register_user(payload: UserCreate, db: AsyncSession = Depends(get_db_session)):
    user = await user_service.create_user(db, payload)
    return UserResponse.model_validate(user)


# ── Session (cookie) routes; declared before /{user_id} ──────────────────

@router.post("/login", response_model=UserResponse, responses={401: {"model": ErrorResponse}})
@async_handler
async def login(payload: UserLogin, response: Response, db: AsyncSession = Depends(get_db_session)):
    user = await user_service.authenticate(db, payload.login, payload.password)
    response.set_cookie(
        settings.refresh_token_cookie,
        user.refresh_token,
        httponly=True,
        samesite="lax",
    )
    return UserResponse.model_validate(user)


@router.get("/current", response_model=UserResponse, responses={401: {"model": ErrorResponse}})
@async_handler
async def current_user(request: Request, db: AsyncSession = Depends(get_db_session)):
    token = request.cookies.get(settings.refresh_token_cookie)
    user = await user_service.get_by_refresh_token(db, token)
    return UserResponse.model_validate(user)


@router.post("/logout", response_model=MessageResponse, responses={401: {"model": ErrorResponse}})
@async_handler
async def logout(request: Request, response: Response, db: AsyncSession = Depends(get_db_session)):
    token = request.cookies.get(settings.refresh_token_cookie)
    user = await user_service.get_by_refresh_token(db, token)
    await user_service.revoke_refresh_token(db, user)
    response.delete_cookie(settings.refresh_token_cookie)
    return MessageResponse(message="Logged out")


# ── Records ───────────────────────────────────────────────────────────────

@router.get("/{user_id}", response_model=UserResponse, responses={404: {"model": ErrorResponse}})
@async_handler
async def get_user(user_id: UUID, db: AsyncSession = Depends(get_db_session)):
    user = await user_service.get_user(db, user_id)
    return UserResponse.model_validate(user)


@router.patch(
    "/{user_id}",
    response_model=UserResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
@async_handler
async def update_user(user_id: UUID, payload: UserUpdate, db: AsyncSession = Depends(get_db_session)):
    user = await user_service.update_user(db, user_id, payload)
    return UserResponse.model_validate(user)


@router.delete(
    "/{user_id}",
    status_code=204,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse, "description": "User owns videos"}},
)
@async_handler
async def delete_user(user_id: UUID, db: AsyncSession = Depends(get_db_session)):
    await user_service.delete_user(db, user_id)
    return Response(status_code=204)


@router.get("/{user_id}/history", response_model=WatchHistoryResponse, responses={404: {"model": ErrorResponse}})
@async_handler
async def get_watch_history(user_id: UUID, db: AsyncSession = Depends(get_db_session)):
    video_ids = await user_service.get_watch_history(db, user_id)
    return WatchHistoryResponse(user_id=user_id, video_ids=video_ids)


@router.post(
    "/{user_id}/history",
    status_code=201,
    response_model=WatchHistoryResponse,
    responses={404: {"model": ErrorResponse}},
)
@async_handler
async def add_watch_history(
    user_id: UUID, payload: WatchHistoryAdd, db: AsyncSession = Depends(get_db_session)
):
    user = await user_service.add_to_watch_history(db, user_id, payload.video_id)
    return WatchHistoryResponse(user_id=user.id, video_ids=user.watch_history)
