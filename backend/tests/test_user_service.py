"""
VideoTube Backend — User Service Tests
=======================================

What:  Tests for UserService against an in-memory SQLite store.
Why:   The save path owns password hashing and uniqueness; regressions there
       either leak plaintext or let duplicate accounts through.
How:   Real ORM round-trips through the `db_session` fixture; the password
       hasher is patched where a test counts hash derivations.

What we test:
    ✅ Create stores a one-way hash, never the plaintext
    ✅ Unrelated updates do not re-hash; a password change does
    ✅ Duplicate username / email → UniqueConstraintError (409)
    ✅ IntegrityError from a unique index is reported the same way; other
       integrity failures propagate
    ✅ Delete is restricted while the user owns videos
    ✅ Watch history keeps insertion order and duplicates
    ✅ Login rotates the refresh token; logout revokes it
"""

from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from videotube import security
from videotube.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    UniqueConstraintError,
)
from videotube.models.user import User
from videotube.schemas.user import UserCreate, UserUpdate
from videotube.schemas.video import VideoCreate
from videotube.services.user_service import UserService
from videotube.services.video_service import VideoService


async def fake_hash(plain):
    return f"hashed::{plain}"


class TestUserServiceCreate:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_password_is_hashed(self, db_session, user_payload):
        user = await self.service.create_user(db_session, UserCreate(**user_payload()))

        assert user.id is not None
        assert user.password_hash != "correct-horse-battery"
        assert "correct-horse-battery" not in user.password_hash
        assert user.password_hash.startswith("$argon2")
        assert security.pwd_context.verify("correct-horse-battery", user.password_hash)
        assert user.password_modified is False

    @pytest.mark.asyncio
    async def test_username_and_email_are_normalized(self, db_session, user_payload):
        user = await self.service.create_user(
            db_session, UserCreate(**user_payload(username="Alice", email="Alice@Example.com"))
        )
        assert user.username == "alice"
        assert user.email == "alice@example.com"

    @pytest.mark.asyncio
    async def test_duplicate_username(self, db_session, user_payload):
        await self.service.create_user(db_session, UserCreate(**user_payload()))

        with pytest.raises(UniqueConstraintError) as exc_info:
            await self.service.create_user(
                db_session, UserCreate(**user_payload(email="other@example.com"))
            )
        assert exc_info.value.status_code == 409
        assert exc_info.value.field == "username"

    @pytest.mark.asyncio
    async def test_duplicate_email_differs_only_in_case(self, db_session, user_payload):
        await self.service.create_user(db_session, UserCreate(**user_payload()))

        with pytest.raises(UniqueConstraintError) as exc_info:
            await self.service.create_user(
                db_session, UserCreate(**user_payload(username="bob", email="ALICE@example.com"))
            )
        assert exc_info.value.field == "email"

    @pytest.mark.asyncio
    async def test_integrity_error_becomes_unique_error(self, mock_db_session):
        """A unique index firing first (concurrent insert) is still a 409."""
        mock_db_session.flush.side_effect = IntegrityError(
            "INSERT INTO users ...", {}, Exception("UNIQUE constraint failed: users.email")
        )
        user = User(
            username="carol",
            email="carol@example.com",
            full_name="Carol",
            avatar_url="https://cdn.example.com/c.png",
            password_hash="already-hashed",
        )

        with pytest.raises(UniqueConstraintError) as exc_info:
            await self.service._save(mock_db_session, user)

        assert exc_info.value.field == "email"
        mock_db_session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_other_integrity_errors_propagate(self, mock_db_session):
        """A foreign-key failure is not reported as a taken username or email."""
        mock_db_session.flush.side_effect = IntegrityError(
            "INSERT INTO watch_history ...", {}, Exception("FOREIGN KEY constraint failed")
        )
        user = User(
            username="dave",
            email="dave@example.com",
            full_name="Dave",
            avatar_url="https://cdn.example.com/d.png",
            password_hash="already-hashed",
        )

        with pytest.raises(IntegrityError):
            await self.service._save(mock_db_session, user)

        mock_db_session.rollback.assert_awaited_once()


class TestUserServiceUpdate:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_hash_is_derived_only_when_password_changes(self, db_session, user_payload):
        with patch("videotube.security.hash_password", AsyncMock(side_effect=fake_hash)) as mock_hash:
            user = await self.service.create_user(db_session, UserCreate(**user_payload()))
            assert mock_hash.await_count == 1
            original_hash = user.password_hash
            assert original_hash == "hashed::correct-horse-battery"

            user = await self.service.update_user(
                db_session, user.id, UserUpdate(full_name="Alice P. Liddell")
            )
            assert mock_hash.await_count == 1
            assert user.password_hash == original_hash
            assert user.full_name == "Alice P. Liddell"

            user = await self.service.update_user(
                db_session, user.id, UserUpdate(password="a-brand-new-secret")
            )
            assert mock_hash.await_count == 2
            assert user.password_hash == "hashed::a-brand-new-secret"

    @pytest.mark.asyncio
    async def test_update_to_taken_username(self, db_session, user_payload):
        await self.service.create_user(db_session, UserCreate(**user_payload()))
        bob = await self.service.create_user(
            db_session, UserCreate(**user_payload(username="bob", email="bob@example.com"))
        )

        with pytest.raises(UniqueConstraintError):
            await self.service.update_user(db_session, bob.id, UserUpdate(username="alice"))

    @pytest.mark.asyncio
    async def test_update_keeping_own_username(self, db_session, user_payload):
        user = await self.service.create_user(db_session, UserCreate(**user_payload()))
        updated = await self.service.update_user(
            db_session, user.id, UserUpdate(username="alice", cover_image_url="https://cdn.example.com/c.jpg")
        )
        assert updated.cover_image_url == "https://cdn.example.com/c.jpg"

    @pytest.mark.asyncio
    async def test_update_missing_user(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.update_user(db_session, uuid4(), UserUpdate(full_name="Nobody"))


class TestUserServiceDelete:

    def setup_method(self):
        self.service = UserService()
        self.videos = VideoService()

    @pytest.mark.asyncio
    async def test_delete_is_restricted_while_owning_videos(self, db_session, user_payload, video_payload):
        user = await self.service.create_user(db_session, UserCreate(**user_payload()))
        video = await self.videos.create_video(db_session, VideoCreate(**video_payload(user.id)))

        with pytest.raises(ConflictError) as exc_info:
            await self.service.delete_user(db_session, user.id)
        assert exc_info.value.status_code == 409

        await self.videos.delete_video(db_session, video.id)
        await self.service.delete_user(db_session, user.id)

        with pytest.raises(NotFoundError):
            await self.service.get_user(db_session, user.id)


class TestWatchHistory:

    def setup_method(self):
        self.service = UserService()
        self.videos = VideoService()

    @pytest.mark.asyncio
    async def test_order_and_duplicates_are_kept(self, db_session, user_payload, video_payload):
        user = await self.service.create_user(db_session, UserCreate(**user_payload()))
        first = await self.videos.create_video(db_session, VideoCreate(**video_payload(user.id)))
        second = await self.videos.create_video(
            db_session, VideoCreate(**video_payload(user.id, title="Second"))
        )

        for video in (second, first, second):
            await self.service.add_to_watch_history(db_session, user.id, video.id)

        history = await self.service.get_watch_history(db_session, user.id)
        assert history == [second.id, first.id, second.id]

    @pytest.mark.asyncio
    async def test_unknown_video(self, db_session, user_payload):
        user = await self.service.create_user(db_session, UserCreate(**user_payload()))
        with pytest.raises(NotFoundError):
            await self.service.add_to_watch_history(db_session, user.id, uuid4())

    @pytest.mark.asyncio
    async def test_new_user_has_empty_history(self, db_session, user_payload):
        user = await self.service.create_user(db_session, UserCreate(**user_payload()))
        assert user.watch_history == []


class TestAuthentication:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_login_by_username_or_email(self, db_session, user_payload):
        await self.service.create_user(db_session, UserCreate(**user_payload()))

        by_name = await self.service.authenticate(db_session, "alice", "correct-horse-battery")
        first_token = by_name.refresh_token
        assert first_token

        by_email = await self.service.authenticate(db_session, "ALICE@example.com", "correct-horse-battery")
        assert by_email.id == by_name.id
        assert by_email.refresh_token != first_token

    @pytest.mark.asyncio
    async def test_wrong_password(self, db_session, user_payload):
        await self.service.create_user(db_session, UserCreate(**user_payload()))
        with pytest.raises(AuthenticationError) as exc_info:
            await self.service.authenticate(db_session, "alice", "wrong-password")
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_login(self, db_session):
        with pytest.raises(AuthenticationError):
            await self.service.authenticate(db_session, "ghost", "whatever-password")

    @pytest.mark.asyncio
    async def test_refresh_token_lookup_and_revoke(self, db_session, user_payload):
        await self.service.create_user(db_session, UserCreate(**user_payload()))
        user = await self.service.authenticate(db_session, "alice", "correct-horse-battery")
        token = user.refresh_token

        found = await self.service.get_by_refresh_token(db_session, token)
        assert found.id == user.id

        await self.service.revoke_refresh_token(db_session, found)
        with pytest.raises(AuthenticationError):
            await self.service.get_by_refresh_token(db_session, token)

    @pytest.mark.asyncio
    async def test_missing_token(self, db_session):
        with pytest.raises(AuthenticationError):
            await self.service.get_by_refresh_token(db_session, None)
